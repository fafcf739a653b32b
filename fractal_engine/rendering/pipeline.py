from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from fractal_engine.coloring.smooth_escape import EscapeTimeColoring
from fractal_engine.fractals.base import RenderParameters
from fractal_engine.kernel_sources.cpu.mandelbrot import escape_tile, orbit_density
from fractal_engine.rendering.partition import SampleBatch, Tile
from fractal_engine.rendering.stats import TileStats

_COLORING = EscapeTimeColoring()


@dataclass(frozen=True)
class RegionResult:
    tile: Tile
    rgb: np.ndarray
    iterations: np.ndarray
    z_real: np.ndarray
    z_imag: np.ndarray
    stats: TileStats


@dataclass(frozen=True)
class SampleResult:
    batch: SampleBatch
    density: np.ndarray
    stats: TileStats


def render_region(params: RenderParameters, tile: Tile) -> RegionResult:
    """Escape kernel, colouring and tile statistics for one tile."""
    min_x, max_y, unit_x, unit_y = params.float_window()
    iters, z_real, z_imag = escape_tile(tile.x, tile.y, tile.width, tile.height,
                                        min_x, max_y, unit_x, unit_y,
                                        params.max_iterations)
    rgb = _COLORING.apply(iters, z_real, z_imag,
                          mode=params.colouring,
                          max_iterations=params.max_iterations)
    stats = TileStats.from_iterations(iters, params.max_iterations)
    return RegionResult(tile, rgb, iters, z_real, z_imag, stats)


def sample_points(params: RenderParameters, batch: SampleBatch, seed: int):
    """Uniform starting points for one batch; depends only on (seed, batch.index)."""
    min_x, max_y, unit_x, unit_y = params.float_window()
    rng = np.random.default_rng([seed, batch.index])
    re = min_x + rng.random(batch.count) * (unit_x * params.width)
    im = (max_y - unit_y * params.height) + rng.random(batch.count) * (unit_y * params.height)
    return re, im


def render_samples(params: RenderParameters, batch: SampleBatch, seed: int) -> SampleResult:
    """Orbit-density pass for one sample batch (Buddhabrot variant)."""
    min_x, max_y, unit_x, unit_y = params.float_window()
    re, im = sample_points(params, batch, seed)
    density, counts = orbit_density(re, im, params.max_iterations,
                                    min_x, max_y, unit_x, unit_y,
                                    params.width, params.height)
    return SampleResult(batch, density, TileStats.from_iterations(counts, params.max_iterations))
