import numpy as np
import pytest

pytest.importorskip("PySide6")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from fractal_engine.adapters.qt_render_bridge import QtRenderBridge, ndarray_to_qimage  # noqa: E402
from fractal_engine.api.render_api import RenderAPI  # noqa: E402
from fractal_engine.rendering.service import EngineConfig, RenderService  # noqa: E402


def test_ndarray_to_qimage():
    arr = np.zeros((3, 4, 3), dtype=np.uint8)
    arr[1, 2] = (10, 20, 30)
    img = ndarray_to_qimage(arr)
    assert (img.width(), img.height()) == (4, 3)
    colour = img.pixelColor(2, 1)
    assert (colour.red(), colour.green(), colour.blue()) == (10, 20, 30)


def test_ndarray_to_qimage_rejects_grayscale():
    with pytest.raises(ValueError):
        ndarray_to_qimage(np.zeros((3, 4), dtype=np.uint8))


def test_bridge_emits_signals():
    app = QCoreApplication.instance() or QCoreApplication([])
    api = RenderAPI(RenderService(EngineConfig(worker_count=2)))
    bridge = QtRenderBridge(api)
    tiles, images, stats = [], [], []
    bridge.tile_ready.connect(lambda x, y, img: tiles.append((x, y, img.width())))
    bridge.image_updated.connect(lambda img, w, h: images.append((w, h)))
    bridge.stats_ready.connect(stats.append)
    try:
        api.set_parameters(api.configure().size(40, 30).max_iterations(32).build())
        api.start_async_render()
        assert api.wait(timeout=60)
    finally:
        api.close()
    app.processEvents()
    assert sum(w for _, _, w in tiles) == 40
    assert images == [(40, 30)]
    assert stats and stats[0].pixel_count == 1200
