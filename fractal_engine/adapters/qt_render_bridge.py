import numpy as np
from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from fractal_engine.api.render_api import RenderAPI
from fractal_engine.rendering.partition import Tile


def ndarray_to_qimage(arr: np.ndarray) -> QImage:
    """
    Convert an (h, w, 3) uint8 RGB array into a QImage that owns its memory.
    """
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"expected an (h, w, 3) RGB array; got shape {arr.shape}")
    h, w, _ = arr.shape
    data = np.ascontiguousarray(arr, dtype=np.uint8)
    qimg = QImage(data.tobytes(), w, h, 3 * w, QImage.Format_RGB888)
    return qimg.copy()


class QtRenderBridge(QObject):
    """
    Thin adapter that converts engine events to Qt signals for the UI.
    Callbacks arrive on the engine's dispatcher thread; Qt queues the
    signals to receivers living in the GUI thread.
    """
    render_started = Signal()
    tile_ready = Signal(int, int, QImage)
    image_updated = Signal(QImage, int, int)
    stats_ready = Signal(object)
    error_text = Signal(str)

    def __init__(self, api: RenderAPI, parent=None):
        super().__init__(parent)
        self.api = api

        # Subscribe to API events with conversions
        self.api.on_begun(self._on_begun)
        self.api.on_tile(self._on_tile)
        self.api.on_finished(self._on_finished)
        self.api.on_stats(self._on_stats)
        self.api.on_error(self._on_error)

    # --------- Conversions ---------------------
    def _on_begun(self) -> None:
        self.render_started.emit()

    def _on_tile(self, tile: Tile) -> None:
        buf = self.api.image()
        if buf is None:
            return
        rows, cols = tile.slices()
        self.tile_ready.emit(int(tile.x), int(tile.y), ndarray_to_qimage(buf[rows, cols]))

    def _on_finished(self) -> None:
        buf = self.api.image()
        if buf is None:
            return
        h, w, _ = buf.shape
        self.image_updated.emit(ndarray_to_qimage(buf), w, h)

    def _on_stats(self) -> None:
        self.stats_ready.emit(self.api.statistics())

    def _on_error(self, error: BaseException) -> None:
        self.error_text.emit(f"{type(error).__name__}: {error}")
