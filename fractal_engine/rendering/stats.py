from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class Statistics:
    """
    Published statistics of one render.
    convergent_points counts pixels (or samples) that escaped before the
    iteration cap. pixel_count is the number of points the aggregates cover;
    it is below the raster size only for a partial render.
    """
    min_iterations: int = 0
    max_iterations: int = 0
    mean_iterations: float = 0.0
    convergent_points: int = 0
    rendering_time_ms: float = 0.0
    pixel_count: int = 0
    partial: bool = False


@dataclass(frozen=True)
class TileStats:
    min_iterations: int
    max_iterations: int
    total_iterations: int
    convergent_points: int
    pixel_count: int

    @classmethod
    def from_iterations(cls, iters: np.ndarray, max_iterations: int) -> "TileStats":
        if iters.size == 0:
            return cls(0, 0, 0, 0, 0)
        return cls(
            min_iterations=int(iters.min()),
            max_iterations=int(iters.max()),
            total_iterations=int(iters.sum(dtype=np.int64)),
            convergent_points=int(np.count_nonzero(iters < max_iterations)),
            pixel_count=int(iters.size),
        )


class StatsAccumulator:
    """
    Running min / max / sum of per-pixel escape counts, merged once per tile
    under a single lock. The mean is only computed by finalize().
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._min: Optional[int] = None
        self._max: Optional[int] = None
        self._total = 0
        self._convergent = 0
        self._pixels = 0
        self._published: Optional[Statistics] = None

    def merge(self, part: TileStats) -> None:
        if part.pixel_count == 0:
            return
        with self._lock:
            if self._published is not None:
                raise RuntimeError("statistics already finalized")
            self._min = part.min_iterations if self._min is None else min(self._min, part.min_iterations)
            self._max = part.max_iterations if self._max is None else max(self._max, part.max_iterations)
            self._total += part.total_iterations
            self._convergent += part.convergent_points
            self._pixels += part.pixel_count

    @property
    def pixel_count(self) -> int:
        with self._lock:
            return self._pixels

    @property
    def published(self) -> Optional[Statistics]:
        return self._published

    def finalize(self, rendering_time_ms: float, expected_pixels: Optional[int] = None,
                 partial: bool = False) -> Statistics:
        """
        Publishes the aggregate. A complete render (partial=False) must have
        covered exactly `expected_pixels` points.
        """
        with self._lock:
            if self._published is not None:
                return self._published
            if not partial and expected_pixels is not None and self._pixels != expected_pixels:
                raise RuntimeError(
                    f"statistics cover {self._pixels} points, expected {expected_pixels}")
            mean = self._total / self._pixels if self._pixels else 0.0
            self._published = Statistics(
                min_iterations=self._min or 0,
                max_iterations=self._max or 0,
                mean_iterations=mean,
                convergent_points=self._convergent,
                rendering_time_ms=float(rendering_time_ms),
                pixel_count=self._pixels,
                partial=partial,
            )
            return self._published
