import logging
from typing import List, Optional

import numpy as np

from fractal_engine.backend.be_base import Backend
from fractal_engine.fractals.base import RenderParameters
from fractal_engine.rendering.events import EventHandler
from fractal_engine.rendering.service import EngineConfig, RenderService
from fractal_engine.rendering.stats import Statistics

logger = logging.getLogger(__name__)


class _ErrorCollector(EventHandler):
    def __init__(self):
        self.errors: List[BaseException] = []

    def rendering_begun(self) -> None:
        self.errors.clear()

    def error_occurred(self, error: BaseException) -> None:
        self.errors.append(error)


class CpuBackend(Backend):
    """
    Runs the threaded engine in-process and blocks until the render is done.
    """
    name = "CPU"

    def __init__(self, worker_count: Optional[int] = None):
        self._errors = _ErrorCollector()
        self.service = RenderService(EngineConfig(worker_count=worker_count))
        self.service.initialize(self._errors)
        self.image: Optional[np.ndarray] = None
        self._warmed_up = False

        # Warmup configuration
        self._wu_w, self._wu_h = 64, 64
        self._wu_bounds = (-2.0, 1.0, -1.5, 1.5)
        self._wu_max_iter = 64

    @property
    def worker_count(self) -> int:
        return self.service.worker_count

    def warmup(self) -> None:
        if self._warmed_up:
            return
        minx, maxx, miny, maxy = self._wu_bounds
        self.render(RenderParameters(minx, maxx, miny, maxy,
                                     self._wu_w, self._wu_h, self._wu_max_iter))
        self._warmed_up = True

    def render(self, params: RenderParameters) -> Statistics:
        self.service.set_parameters(params)
        self.service.start_rendering()
        self.service.wait()
        if self._errors.errors:
            raise RuntimeError(f"{self.name} render failed") from self._errors.errors[0]
        self.image = self.service.get_pixel_buffer()
        return self.service.get_statistics()

    def close(self) -> None:
        self.service.shutdown()
