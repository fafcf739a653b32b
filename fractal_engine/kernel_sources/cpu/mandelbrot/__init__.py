from fractal_engine.kernel_sources.cpu.mandelbrot.iter import (
    BAILOUT, iterate, escape_tile)
from fractal_engine.kernel_sources.cpu.mandelbrot.orbit import (
    ORBIT_BAILOUT, ORBIT_SKIP, orbit_density)
from fractal_engine.kernel_sources.cpu.mandelbrot.colour import (
    MODE_REGULAR, MODE_RED, MODE_GREEN, MODE_BLUE,
    hsb_to_rgb, escape_colour, colour_escape_tile, colour_density)
