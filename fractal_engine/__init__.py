"""
Tiled, multi-threaded Mandelbrot escape-time engine.

    from fractal_engine import RenderService, RenderParameters

    service = RenderService()
    service.initialize(handler)
    service.set_parameters(RenderParameters(-2, 1, -1.5, 1.5, 800, 600, 500))
    service.start_rendering()
"""
from fractal_engine.fractals import PrecisionConfig, RenderParameters, ParameterError
from fractal_engine.rendering import (EngineConfig, EngineStateError,
                                      EventHandler, RenderService, Statistics,
                                      Tile)
from fractal_engine.utils.enums import ColouringMethod, MandelbrotVariant, SessionState

__version__ = "0.2.0"

__all__ = [
    "PrecisionConfig",
    "RenderParameters",
    "ParameterError",
    "EngineConfig",
    "EngineStateError",
    "EventHandler",
    "RenderService",
    "Statistics",
    "Tile",
    "ColouringMethod",
    "MandelbrotVariant",
    "SessionState",
]
