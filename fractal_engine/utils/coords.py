from typing import Tuple

from mpmath import mpf, workprec

from fractal_engine.fractals.param_validator import to_mpf


def pixel_to_plane(params, px: int, py: int) -> Tuple[float, float]:
    """
    Maps raster pixel (px, py) to its point on the complex plane.
    Row 0 is the top edge of the window (max_y).
    """
    cr = float(params.min_x) + float(params.plane_unit_x) * px
    ci = float(params.max_y) - float(params.plane_unit_y) * py
    return cr, ci


def plane_to_pixel(params, cr: float, ci: float) -> Tuple[int, int]:
    px = int((cr - float(params.min_x)) / float(params.plane_unit_x))
    py = int((float(params.max_y) - ci) / float(params.plane_unit_y))
    return px, py


def window_from_view(center_x, center_y, zoom, width: int, height: int,
                     bits: int = 80) -> Tuple[mpf, mpf, mpf, mpf]:
    """
    Plane window (min_x, max_x, min_y, max_y) centred on (center_x, center_y)
    where `zoom` is the number of pixels per plane unit.
    """
    with workprec(bits):
        cx, cy = to_mpf(center_x), to_mpf(center_y)
        scale = 1 / to_mpf(zoom)
        half_w = mpf(width) / 2 * scale
        half_h = mpf(height) / 2 * scale
        return cx - half_w, cx + half_w, cy - half_h, cy + half_h
