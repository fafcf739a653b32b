from fractal_engine.rendering.events import (EventHandler, RenderingBegun,
                                             RegionRendered, RenderingEnded,
                                             ErrorOccurred, StatsGenerated)
from fractal_engine.rendering.partition import Tile, SampleBatch, partition_strips
from fractal_engine.rendering.stats import Statistics
from fractal_engine.rendering.session import EngineStateError, RenderSession
from fractal_engine.rendering.service import EngineConfig, RenderService

__all__ = [
    "EventHandler",
    "RenderingBegun",
    "RegionRendered",
    "RenderingEnded",
    "ErrorOccurred",
    "StatsGenerated",
    "Tile",
    "SampleBatch",
    "partition_strips",
    "Statistics",
    "EngineStateError",
    "RenderSession",
    "EngineConfig",
    "RenderService",
]
