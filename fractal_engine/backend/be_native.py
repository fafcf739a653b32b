"""
Optional native rendering collaborator.

The whole contract is one call: the serialized parameters go in, a
colon-delimited statistics record comes out.

    request:  minX:maxX:minY:maxY:width:height:maxIterations:variant:colouring:sampleSize:precisionBits
    response: min:mean:max:convergentPoints:timeMs

Plane coordinates are written in decimal at the parameters' working
precision; enums are written by their lowercase tag; a missing sample size
is written as 0.
"""
import ctypes
import logging
import math
from typing import Callable, Optional

from mpmath import nstr, workprec

from fractal_engine.backend.be_base import Backend
from fractal_engine.fractals.base import RenderParameters
from fractal_engine.fractals.param_validator import ParameterError
from fractal_engine.rendering.stats import Statistics
from fractal_engine.utils.enums import ColouringMethod, MandelbrotVariant

logger = logging.getLogger(__name__)

SEPARATOR = ":"
PARAMETER_FIELDS = 11
STATS_FIELDS = 5


class NativeProtocolError(ValueError):
    """A malformed record crossed the native boundary."""


def _digits(bits: int) -> int:
    return max(17, int(math.ceil(bits * math.log10(2))) + 2)


def serialize_parameters(params: RenderParameters) -> str:
    bits = params.working_bits
    with workprec(bits):
        window = [nstr(v, _digits(bits)) for v in
                  (params.min_x, params.max_x, params.min_y, params.max_y)]
    fields = window + [
        str(params.width),
        str(params.height),
        str(params.max_iterations),
        params.variant.value,
        params.colouring.value,
        str(params.sample_size or 0),
        str(bits),
    ]
    return SEPARATOR.join(fields)


def parse_parameters(record: str) -> RenderParameters:
    fields = record.strip().split(SEPARATOR)
    if len(fields) != PARAMETER_FIELDS:
        raise NativeProtocolError(
            f"parameter record needs {PARAMETER_FIELDS} fields; got {len(fields)}: {record!r}")
    min_x, max_x, min_y, max_y = fields[:4]
    try:
        width, height, max_iter = (int(f) for f in fields[4:7])
        variant = MandelbrotVariant.from_tag(fields[7])
        colouring = ColouringMethod.from_tag(fields[8])
        sample_size = int(fields[9]) or None
        bits = int(fields[10])
    except ValueError as e:
        raise NativeProtocolError(f"bad parameter record {record!r}: {e}") from e
    try:
        return RenderParameters(min_x, max_x, min_y, max_y, width, height, max_iter,
                                colouring=colouring, variant=variant,
                                sample_size=sample_size, precision_bits=bits)
    except ParameterError as e:
        raise NativeProtocolError(f"parameter record {record!r} is invalid: {e}") from e


def parse_stats_record(record: str) -> Statistics:
    fields = record.strip().split(SEPARATOR)
    if len(fields) != STATS_FIELDS:
        raise NativeProtocolError(
            f"statistics record needs {STATS_FIELDS} fields; got {len(fields)}: {record!r}")
    try:
        min_iter = int(fields[0])
        mean_iter = float(fields[1])
        max_iter = int(fields[2])
        convergent = int(fields[3])
        time_ms = float(fields[4])
    except ValueError as e:
        raise NativeProtocolError(f"bad statistics record {record!r}: {e}") from e
    if not (math.isfinite(mean_iter) and math.isfinite(time_ms)):
        raise NativeProtocolError(f"non-finite value in statistics record {record!r}")
    return Statistics(min_iterations=min_iter, max_iterations=max_iter,
                      mean_iterations=mean_iter, convergent_points=convergent,
                      rendering_time_ms=time_ms)


def format_stats_record(stats: Statistics) -> str:
    return SEPARATOR.join([
        str(stats.min_iterations),
        repr(float(stats.mean_iterations)),
        str(stats.max_iterations),
        str(stats.convergent_points),
        repr(float(stats.rendering_time_ms)),
    ])


class NativeBackend(Backend):
    """
    Backend over a `str -> str` call into native code.
    The native side owns its own threads and pixel output; only statistics
    come back across the boundary.
    """
    name = "Native"

    def __init__(self, call: Callable[[str], str], library: Optional[ctypes.CDLL] = None):
        self._call = call
        self._library = library

    @classmethod
    def from_library(cls, path: str, symbol: str = "render") -> "NativeBackend":
        """Binds `const char* symbol(const char*)` from a shared library."""
        library = ctypes.CDLL(path)
        fn = getattr(library, symbol)
        fn.argtypes = [ctypes.c_char_p]
        fn.restype = ctypes.c_char_p

        def call(payload: str) -> str:
            raw = fn(payload.encode("ascii"))
            if raw is None:
                raise NativeProtocolError(f"{symbol}() returned NULL")
            return raw.decode("ascii")

        logger.info("Loaded native renderer %s from %s", symbol, path)
        return cls(call, library)

    def render(self, params: RenderParameters) -> Statistics:
        if self._call is None:
            raise RuntimeError("native backend is closed")
        payload = serialize_parameters(params)
        logger.debug("Native render request %s", payload)
        return parse_stats_record(self._call(payload))

    def close(self) -> None:
        self._call = None
        self._library = None
