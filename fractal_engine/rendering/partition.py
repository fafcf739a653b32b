from __future__ import annotations

from dataclasses import dataclass
from typing import List

# Samples per stochastic work unit. Fixed so that batch contents do not depend
# on the worker count.
SAMPLE_BATCH_SIZE = 4096


@dataclass(frozen=True)
class Tile:
    """Pixel rectangle [x, x + width) x [y, y + height) of the output raster."""
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def slices(self):
        return slice(self.y, self.y + self.height), slice(self.x, self.x + self.width)


@dataclass(frozen=True)
class SampleBatch:
    """Slice [start, start + count) of a stochastic render's sample points."""
    index: int
    start: int
    count: int


def stripe_width(width: int, worker_count: int) -> int:
    return width // (worker_count * 10) + 1


def partition_strips(width: int, height: int, worker_count: int) -> List[Tile]:
    """
    Full-height vertical strips, left to right. About ten strips per worker,
    so that queue draining balances the uneven per-pixel cost; the last strip
    takes the remainder when the width is not a multiple of the stripe width.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"raster must be non-empty; got {width}x{height}")
    if worker_count < 1:
        raise ValueError(f"worker_count must be >= 1; got {worker_count}")

    stripe = stripe_width(width, worker_count)
    tiles: List[Tile] = []
    x = 0
    while x + stripe <= width:
        tiles.append(Tile(x, 0, stripe, height))
        x += stripe
    if x < width:
        tiles.append(Tile(x, 0, width - x, height))
    return tiles


def partition_samples(sample_size: int, batch_size: int = SAMPLE_BATCH_SIZE) -> List[SampleBatch]:
    if sample_size <= 0:
        raise ValueError(f"sample_size must be positive; got {sample_size}")
    batches: List[SampleBatch] = []
    for index, start in enumerate(range(0, sample_size, batch_size)):
        batches.append(SampleBatch(index, start, min(batch_size, sample_size - start)))
    return batches
