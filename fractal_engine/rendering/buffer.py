from __future__ import annotations

import threading
from typing import Optional

import numpy as np

from fractal_engine.rendering.partition import Tile

UNRENDERED = -1


class PixelBuffer:
    """
    Output raster of one render session.

    rgb is the (height, width, 3) uint8 image. Escape-time renders also keep
    the raw escape counts (UNRENDERED until a tile lands) and the final orbit
    values for recolouring; stochastic renders keep an orbit-density raster.

    Every write carries the generation of the session that produced it and is
    refused once the generation no longer matches or the buffer is released.
    Region writes need no lock (tiles are disjoint); density merges overlap
    and are serialized.
    """

    def __init__(self, width: int, height: int, generation: int,
                 *, keep_raw: bool = True, density: bool = False) -> None:
        self.width = int(width)
        self.height = int(height)
        self.generation = int(generation)
        self.rgb: Optional[np.ndarray] = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.iterations: Optional[np.ndarray] = None
        self.z_real: Optional[np.ndarray] = None
        self.z_imag: Optional[np.ndarray] = None
        self.density: Optional[np.ndarray] = None
        if keep_raw:
            self.iterations = np.full((self.height, self.width), UNRENDERED, dtype=np.int32)
            self.z_real = np.zeros((self.height, self.width), dtype=np.float64)
            self.z_imag = np.zeros((self.height, self.width), dtype=np.float64)
        if density:
            self.density = np.zeros((self.height, self.width), dtype=np.int64)
        self._density_lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self.rgb is None

    @property
    def size(self) -> int:
        return self.width * self.height

    def accepts(self, generation: int) -> bool:
        return not self.released and generation == self.generation

    def matches(self, width: int, height: int) -> bool:
        return (not self.released and self.rgb.shape[:2] == (height, width)
                and self.size == width * height)

    def write_region(self, tile: Tile, generation: int, rgb: np.ndarray,
                     iterations: Optional[np.ndarray] = None,
                     z_real: Optional[np.ndarray] = None,
                     z_imag: Optional[np.ndarray] = None) -> bool:
        if not self.accepts(generation):
            return False
        rows, cols = tile.slices()
        self.rgb[rows, cols] = rgb
        if self.iterations is not None and iterations is not None:
            self.iterations[rows, cols] = iterations
            self.z_real[rows, cols] = z_real
            self.z_imag[rows, cols] = z_imag
        return True

    def add_density(self, generation: int, density: np.ndarray) -> bool:
        with self._density_lock:
            if not self.accepts(generation) or self.density is None:
                return False
            self.density += density
            return True

    def release(self) -> None:
        with self._density_lock:
            self.rgb = None
            self.iterations = None
            self.z_real = None
            self.z_imag = None
            self.density = None
            self.generation = -1
