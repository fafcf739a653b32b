from dataclasses import dataclass
from typing import Optional

from fractal_engine.rendering.partition import Tile
from fractal_engine.rendering.stats import Statistics


@dataclass(frozen=True)
class RenderingBegun:
    seq: int        # generation / render sequence number


@dataclass(frozen=True)
class RegionRendered:
    tile: Tile
    seq: int


@dataclass(frozen=True)
class RenderingEnded:
    seq: int
    partial: bool = False


@dataclass(frozen=True)
class ErrorOccurred:
    error: BaseException
    seq: Optional[int] = None


@dataclass(frozen=True)
class StatsGenerated:
    stats: Statistics
    seq: int


class EventHandler:
    """
    Receiver of render lifecycle events. All methods are invoked from the
    engine's single dispatcher thread, one at a time and in post order.

    Plain class rather than an ABC so it can be mixed into Qt objects.
    """

    def rendering_begun(self) -> None:
        pass

    def region_rendered(self, tile: Tile) -> None:
        pass

    def rendering_ended(self) -> None:
        pass

    def error_occurred(self, error: BaseException) -> None:
        pass

    def stats_generated(self) -> None:
        pass
