from typing import Tuple

import numpy as np

from fractal_engine.coloring.base import ColoringStrategy
from fractal_engine.kernel_sources.cpu.mandelbrot import (
    MODE_REGULAR, MODE_RED, MODE_GREEN, MODE_BLUE,
    escape_colour, colour_escape_tile)
from fractal_engine.utils.enums import ColouringMethod

INTERIOR_COLOUR = (0, 0, 0)

_MODE_CODES = {
    ColouringMethod.REGULAR: MODE_REGULAR,
    ColouringMethod.RED: MODE_RED,
    ColouringMethod.GREEN: MODE_GREEN,
    ColouringMethod.BLUE: MODE_BLUE,
}


def pixel_colour(iterations: int, z_real: float, z_imag: float,
                 mode: ColouringMethod, max_iterations: int) -> Tuple[int, int, int]:
    """
    Colour of a single pixel from its escape count and final orbit value.
    Points that never escaped (iterations == max_iterations) are INTERIOR_COLOUR.
    """
    r, g, b = escape_colour(int(iterations), float(z_real), float(z_imag),
                            int(max_iterations), _MODE_CODES[mode])
    return int(r), int(g), int(b)


class EscapeTimeColoring(ColoringStrategy):
    """
    REGULAR: hue from the cube root of k / max_iterations.
    RED / GREEN / BLUE: smooth (normalized) escape count over a third of the
    hue circle starting at the tint.
    """

    def apply(self, iters: np.ndarray, z_real: np.ndarray, z_imag: np.ndarray,
              *, mode: ColouringMethod = ColouringMethod.REGULAR,
              max_iterations: int = 1) -> np.ndarray:
        if not (iters.shape == z_real.shape == z_imag.shape):
            raise ValueError(f"buffer shapes differ: {iters.shape}, {z_real.shape}, {z_imag.shape}")
        return colour_escape_tile(np.ascontiguousarray(iters, dtype=np.int32),
                                  np.ascontiguousarray(z_real, dtype=np.float64),
                                  np.ascontiguousarray(z_imag, dtype=np.float64),
                                  int(max_iterations), _MODE_CODES[mode])
