# Kernel sources package
from fractal_engine.kernel_sources.cpu.mandelbrot import (
    iterate, escape_tile, orbit_density,
    escape_colour, colour_escape_tile, colour_density, hsb_to_rgb,
)

__all__ = [
    "iterate",
    "escape_tile",
    "orbit_density",
    "escape_colour",
    "colour_escape_tile",
    "colour_density",
    "hsb_to_rgb",
]
