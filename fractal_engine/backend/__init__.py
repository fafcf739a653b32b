from fractal_engine.backend.be_base import Backend
from fractal_engine.backend.be_cpu import CpuBackend
from fractal_engine.backend.be_native import (NativeBackend, NativeProtocolError,
                                              serialize_parameters, parse_parameters,
                                              parse_stats_record, format_stats_record)

__all__ = [
    "Backend",
    "CpuBackend",
    "NativeBackend",
    "NativeProtocolError",
    "serialize_parameters",
    "parse_parameters",
    "parse_stats_record",
    "format_stats_record",
]
