from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, List, Optional

from mpmath import mpf, isfinite, workprec

from fractal_engine.utils.enums import ColouringMethod, MandelbrotVariant

MIN_PRECISION_BITS = 53


class ParameterError(ValueError):
    """Aggregated RenderParameters validation error(s)."""


def to_mpf(value: Any) -> mpf:
    """
    Coerce a plane coordinate to mpf at the current working precision.
    Accepts str, int, float, Decimal and mpf.
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not plane coordinates")
    if isinstance(value, mpf):
        return +value
    if isinstance(value, Decimal):
        return mpf(str(value))
    if isinstance(value, (int, float, str)):
        return mpf(value)
    raise TypeError(f"unsupported coordinate type {type(value).__name__}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_positive_int(name: str, value: Any, errors: List[str]) -> None:
    if not _is_int(value):
        errors.append(f"{name} must be an integer; got {type(value).__name__}.")
    elif value <= 0:
        errors.append(f"{name} must be positive; got {value}.")


def validate_parameters(p) -> Dict[str, mpf]:
    """
    Validates a RenderParameters instance. Raises ParameterError listing every
    violated constraint; returns the plane window coerced to mpf.
    """
    errors: List[str] = []

    # --- precision ---
    bits: Optional[int] = p.precision_bits
    if bits is not None and (not _is_int(bits) or bits < MIN_PRECISION_BITS):
        errors.append(f"precision_bits must be an integer >= {MIN_PRECISION_BITS}; got {bits!r}.")
        bits = None
    working_bits = bits or p.default_precision_bits

    # --- raster ---
    _check_positive_int("width", p.width, errors)
    _check_positive_int("height", p.height, errors)
    _check_positive_int("max_iterations", p.max_iterations, errors)

    # --- enums ---
    if not isinstance(p.colouring, ColouringMethod):
        errors.append(f"colouring must be a ColouringMethod; got {p.colouring!r}.")
    if not isinstance(p.variant, MandelbrotVariant):
        errors.append(f"variant must be a MandelbrotVariant; got {p.variant!r}.")

    if p.sample_size is not None:
        _check_positive_int("sample_size", p.sample_size, errors)
    if p.seed is not None and (not _is_int(p.seed) or p.seed < 0):
        errors.append(f"seed must be a non-negative integer; got {p.seed!r}.")

    # --- plane window ---
    window: Dict[str, mpf] = {}
    with workprec(working_bits):
        for name in ("min_x", "max_x", "min_y", "max_y"):
            raw = getattr(p, name)
            try:
                value = to_mpf(raw)
            except (TypeError, ValueError) as e:
                errors.append(f"{name}: cannot read {raw!r} as a real number ({e}).")
                continue
            if not isfinite(value):
                errors.append(f"{name} must be finite; got {raw!r}.")
                continue
            window[name] = value

        if "min_x" in window and "max_x" in window and not window["min_x"] < window["max_x"]:
            errors.append(f"min_x must be less than max_x; got [{window['min_x']}, {window['max_x']}].")
        if "min_y" in window and "max_y" in window and not window["min_y"] < window["max_y"]:
            errors.append(f"min_y must be less than max_y; got [{window['min_y']}, {window['max_y']}].")

    if errors:
        raise ParameterError("Parameter validation failed:\n- " + "\n- ".join(errors))
    return window
