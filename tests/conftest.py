import threading

import pytest

from fractal_engine.fractals.base import RenderParameters
from fractal_engine.rendering.events import EventHandler
from fractal_engine.rendering.service import EngineConfig, RenderService


class RecordingHandler(EventHandler):
    """Records every callback as (name, payload, thread name)."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, name, payload=None):
        with self._lock:
            self.calls.append((name, payload, threading.current_thread().name))

    def rendering_begun(self):
        self._record("begun")

    def region_rendered(self, tile):
        self._record("region", tile)

    def rendering_ended(self):
        self._record("ended")

    def error_occurred(self, error):
        self._record("error", error)

    def stats_generated(self):
        self._record("stats")

    def names(self):
        with self._lock:
            return [c[0] for c in self.calls]

    def payloads(self, name):
        with self._lock:
            return [c[1] for c in self.calls if c[0] == name]


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def scenario_params():
    return RenderParameters(-2, 1, -1.5, 1.5, 100, 100, 50)


@pytest.fixture
def small_params():
    return RenderParameters(-2, 1, -1.5, 1.5, 64, 48, 100)


@pytest.fixture
def service(handler):
    svc = RenderService(EngineConfig(worker_count=4))
    svc.initialize(handler)
    yield svc
    svc.shutdown()
