from fractal_engine.coloring.base import ColoringStrategy
from fractal_engine.coloring.smooth_escape import (EscapeTimeColoring,
                                                   pixel_colour, INTERIOR_COLOUR)
from fractal_engine.coloring.density import DensityColoring

__all__ = [
    "ColoringStrategy",
    "EscapeTimeColoring",
    "DensityColoring",
    "pixel_colour",
    "INTERIOR_COLOUR",
]
