from typing import Any, Callable, Optional, Tuple

import numpy as np

from fractal_engine.fractals.base import RenderParameters
from fractal_engine.rendering.events import EventHandler
from fractal_engine.rendering.partition import Tile
from fractal_engine.rendering.service import RenderService
from fractal_engine.rendering.stats import Statistics
from fractal_engine.utils.coords import window_from_view
from fractal_engine.utils.enums import ColouringMethod, MandelbrotVariant


class ParametersBuilder:
    """
    Builder for RenderParameters.
    """
    def __init__(self):
        self._window: Optional[Tuple[Any, Any, Any, Any]] = (-2, 1, -1.5, 1.5)
        self._view: Optional[Tuple[Any, Any, Any]] = None
        self._width = 800
        self._height = 600
        self._max_iter = 500
        self._colouring = ColouringMethod.REGULAR
        self._variant = MandelbrotVariant.REGULAR
        self._samples: Optional[int] = None
        self._bits: Optional[int] = None
        self._seed: Optional[int] = None

    def window(self, min_x, max_x, min_y, max_y) -> 'ParametersBuilder':
        self._window = (min_x, max_x, min_y, max_y)
        self._view = None
        return self

    def view(self, center_x, center_y, zoom) -> 'ParametersBuilder':
        """Window centred on (center_x, center_y); zoom is pixels per plane unit."""
        self._view = (center_x, center_y, zoom)
        self._window = None
        return self

    def size(self, width: int, height: int) -> 'ParametersBuilder':
        self._width, self._height = width, height
        return self

    def resolution(self, preset: str) -> 'ParametersBuilder':
        self._width, self._height = self._compute_size(preset)
        return self

    def max_iterations(self, value: int) -> 'ParametersBuilder':
        self._max_iter = value
        return self

    def colouring(self, mode: ColouringMethod) -> 'ParametersBuilder':
        self._colouring = mode
        return self

    def variant(self, variant: MandelbrotVariant) -> 'ParametersBuilder':
        self._variant = variant
        return self

    def sample_size(self, value: int) -> 'ParametersBuilder':
        self._samples = value
        return self

    def precision(self, bits: int) -> 'ParametersBuilder':
        self._bits = bits
        return self

    def seed(self, value: int) -> 'ParametersBuilder':
        self._seed = value
        return self

    def build(self) -> RenderParameters:
        if self._view is not None:
            cx, cy, zoom = self._view
            window = window_from_view(cx, cy, zoom, self._width, self._height,
                                      bits=self._bits or RenderParameters.default_precision_bits)
        else:
            window = self._window
        return RenderParameters(*window, self._width, self._height, self._max_iter,
                                colouring=self._colouring, variant=self._variant,
                                sample_size=self._samples, precision_bits=self._bits,
                                seed=self._seed)

    @staticmethod
    def _compute_size(preset: str) -> tuple[int, int]:
        mapping = {
            "2160p": 3840,
            "1440p": 2560,
            "1080p": 1920,
            "720p": 1280,
            "480p": 854,
            "360p": 640,
        }
        if preset not in mapping:
            raise ValueError(f"Unknown resolution preset {preset!r}; expected one of {sorted(mapping)}")
        return mapping[preset], int(preset.replace("p", ""))


class CallbackHandler(EventHandler):
    """
    EventHandler that forwards to plain callables. All callbacks run on the
    engine's dispatcher thread.
    """
    def __init__(self):
        self.on_begun: Optional[Callable[[], None]] = None
        self.on_tile: Optional[Callable[[Tile], None]] = None
        self.on_finished: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[BaseException], None]] = None
        self.on_stats: Optional[Callable[[], None]] = None

    def rendering_begun(self) -> None:
        if self.on_begun:
            self.on_begun()

    def region_rendered(self, tile: Tile) -> None:
        if self.on_tile:
            self.on_tile(tile)

    def rendering_ended(self) -> None:
        if self.on_finished:
            self.on_finished()

    def error_occurred(self, error: BaseException) -> None:
        if self.on_error:
            self.on_error(error)

    def stats_generated(self) -> None:
        if self.on_stats:
            self.on_stats()


class RenderAPI:
    """
    Facade for controlling rendering operations and managing callbacks.
    """
    def __init__(self, service: Optional[RenderService] = None):
        self.service: RenderService = service or RenderService()
        self.handler = CallbackHandler()
        self.service.initialize(self.handler)

    # ---------- Callbacks --------------------------------
    def on_begun(self, cb): self.handler.on_begun = cb
    def on_tile(self, cb): self.handler.on_tile = cb
    def on_finished(self, cb): self.handler.on_finished = cb
    def on_error(self, cb): self.handler.on_error = cb
    def on_stats(self, cb): self.handler.on_stats = cb

    # ----------- Facade methods --------------------------
    def configure(self) -> ParametersBuilder:
        """
        Starts a fluent parameter builder; pass its result to set_parameters().

        Returns:
            ParametersBuilder: builder pre-filled with the classic full-set view.
        """
        return ParametersBuilder()

    def set_parameters(self, params: RenderParameters) -> RenderParameters:
        """
        Sets the parameters of the next render.

        Args:
            params (RenderParameters): The parameters to render.

        Raises:
            ParameterError: If the parameters are rejected.
        """
        return self.service.set_parameters(params)

    def set_view(self, center_x, center_y, zoom) -> RenderParameters:
        """
        Re-centres the current parameters, keeping size, iterations and colouring.

        Args:
            center_x: The x-coordinate of the center of the view.
            center_y: The y-coordinate of the center of the view.
            zoom: Pixels per plane unit.
        """
        current = self.service.get_parameters()
        builder = ParametersBuilder()
        if current is not None:
            builder.size(current.width, current.height) \
                .max_iterations(current.max_iterations) \
                .colouring(current.colouring) \
                .variant(current.variant) \
                .precision(current.working_bits)
            if current.sample_size is not None:
                builder.sample_size(current.sample_size)
        return self.service.set_parameters(builder.view(center_x, center_y, zoom).build())

    def start_async_render(self) -> int:
        """
        Starts rendering in the background and returns the render generation.
        """
        return self.service.start_rendering()

    def pause_render(self) -> None:
        self.service.pause_rendering()

    def resume_render(self) -> None:
        self.service.resume_rendering()

    def stop_render(self) -> None:
        """
        Stops the ongoing rendering process.
        """
        self.service.stop_rendering()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self.service.wait(timeout)

    def recolour(self, mode: ColouringMethod) -> RenderParameters:
        return self.service.recolour(mode)

    def image(self) -> Optional[np.ndarray]:
        return self.service.get_pixel_buffer()

    def statistics(self) -> Optional[Statistics]:
        return self.service.get_statistics()

    def close(self) -> None:
        self.service.shutdown()
