import numpy as np

from fractal_engine.coloring.base import ColoringStrategy
from fractal_engine.kernel_sources.cpu.mandelbrot import colour_density


class DensityColoring(ColoringStrategy):
    """
    Orbit-density colouring for the Buddhabrot variant. Densities are scaled
    against the brightest pixel, so it only makes sense on a complete buffer.
    """

    def apply(self, density: np.ndarray, **options) -> np.ndarray:
        return colour_density(np.ascontiguousarray(density, dtype=np.int64))
