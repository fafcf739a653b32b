import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from mpmath import mpf, workprec

from fractal_engine.fractals.param_validator import (ParameterError,
                                                     validate_parameters,
                                                     MIN_PRECISION_BITS)
from fractal_engine.utils.enums import ColouringMethod, MandelbrotVariant

DEFAULT_PRECISION_BITS = 80
DEFAULT_SAMPLE_SIZE = 100000


@dataclass(frozen=True)
class PrecisionConfig:
    """
    Working precision (in bits) for plane window arithmetic.
    Used for parameters that do not carry their own precision_bits.
    """
    bits: int = DEFAULT_PRECISION_BITS

    def __post_init__(self):
        if not isinstance(self.bits, int) or isinstance(self.bits, bool) \
                or self.bits < MIN_PRECISION_BITS:
            raise ParameterError(
                f"Parameter validation failed:\n- precision bits must be an "
                f"integer >= {MIN_PRECISION_BITS}; got {self.bits!r}.")


@dataclass(frozen=True)
class RenderParameters:
    """
    Immutable configuration for one render.
    The plane window (min_x..max_x, min_y..max_y) is held as mpf at
    `precision_bits` (or the default precision); width and height are the size
    of the output raster in pixels. plane_unit_x / plane_unit_y are the plane
    distance covered by one pixel and are derived once, at construction.
    """
    min_x: Any
    max_x: Any
    min_y: Any
    max_y: Any
    width: int
    height: int
    max_iterations: int
    colouring: ColouringMethod = ColouringMethod.REGULAR
    variant: MandelbrotVariant = MandelbrotVariant.REGULAR
    sample_size: Optional[int] = None
    precision_bits: Optional[int] = None
    seed: Optional[int] = None

    plane_unit_x: mpf = field(init=False, repr=False, compare=False)
    plane_unit_y: mpf = field(init=False, repr=False, compare=False)
    raw_window: Tuple[Any, Any, Any, Any] = field(init=False, repr=False, compare=False)

    default_precision_bits = DEFAULT_PRECISION_BITS

    def __post_init__(self):
        window = validate_parameters(self)
        object.__setattr__(self, "raw_window", (self.min_x, self.max_x, self.min_y, self.max_y))
        with workprec(self.working_bits):
            for name, value in window.items():
                object.__setattr__(self, name, value)
            unit_x = (self.max_x - self.min_x) / self.width
            unit_y = (self.max_y - self.min_y) / self.height
        if float(unit_x) == 0.0 or float(unit_y) == 0.0:
            raise ParameterError(
                "Parameter validation failed:\n- plane window is too narrow "
                "for double-precision pixel spacing.")
        object.__setattr__(self, "plane_unit_x", unit_x)
        object.__setattr__(self, "plane_unit_y", unit_y)
        if self.variant is MandelbrotVariant.BUDDHABROT and self.sample_size is None:
            object.__setattr__(self, "sample_size", DEFAULT_SAMPLE_SIZE)

    def with_precision(self, bits: int) -> "RenderParameters":
        """
        The same render at `bits` of working precision. The window is read
        again from the values it was built from, so extra digits are kept.
        """
        min_x, max_x, min_y, max_y = self.raw_window
        return dataclasses.replace(self, min_x=min_x, max_x=max_x,
                                   min_y=min_y, max_y=max_y, precision_bits=bits)

    @property
    def working_bits(self) -> int:
        return self.precision_bits or self.default_precision_bits

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def float_window(self) -> Tuple[float, float, float, float]:
        """(min_x, max_y, unit_x, unit_y) as doubles, in the order kernels take them."""
        return (float(self.min_x), float(self.max_y),
                float(self.plane_unit_x), float(self.plane_unit_y))
