from fractal_engine.fractals.base import (PrecisionConfig, RenderParameters,
                                          DEFAULT_PRECISION_BITS,
                                          DEFAULT_SAMPLE_SIZE)
from fractal_engine.fractals.param_validator import ParameterError

__all__ = [
    "PrecisionConfig",
    "RenderParameters",
    "ParameterError",
    "DEFAULT_PRECISION_BITS",
    "DEFAULT_SAMPLE_SIZE",
]
