from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from fractal_engine.rendering.events import (EventHandler, RenderingBegun,
                                             RegionRendered, RenderingEnded,
                                             ErrorOccurred, StatsGenerated)

logger = logging.getLogger(__name__)

_STOP = object()


class EventChannel:
    """
    Single-consumer event queue. Any thread may post(); one dispatcher thread
    drains the queue and calls the EventHandler, so handler methods run one
    at a time, in post order, on the same thread.
    """

    def __init__(self, handler: Optional[EventHandler] = None, name: str = "render-events") -> None:
        self.handler = handler or EventHandler()
        self._queue: "queue.Queue" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def in_dispatcher(self) -> bool:
        return threading.current_thread() is self._thread

    @property
    def closed(self) -> bool:
        return self._closed

    def post(self, event, wait: bool = False) -> None:
        """
        Queue an event. With wait=True, block until the handler has seen it
        (not when called from the dispatcher thread itself).
        """
        done = threading.Event() if wait and not self.in_dispatcher() else None
        with self._lock:
            if self._closed:
                logger.debug("Dropping %s posted after close", type(event).__name__)
                return
            self._queue.put((event, done))
        if done is not None:
            done.wait()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Blocks until every event posted before this call has been delivered."""
        if self.in_dispatcher():
            return True
        done = threading.Event()
        with self._lock:
            if self._closed:
                return not self._thread.is_alive()
            self._queue.put((None, done))
        return done.wait(timeout)

    def close(self, timeout: Optional[float] = None) -> None:
        """Delivers what is already queued, then stops the dispatcher."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if not self.in_dispatcher():
            self._thread.join(timeout)

    # ---- Dispatcher -----------------------------------------------------

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            event, done = item
            try:
                if event is not None:
                    self._deliver(event)
            except Exception:
                logger.exception("Event handler failed on %s", type(event).__name__)
            finally:
                if done is not None:
                    done.set()

    def _deliver(self, event) -> None:
        h = self.handler
        if isinstance(event, RegionRendered):
            h.region_rendered(event.tile)
        elif isinstance(event, RenderingBegun):
            h.rendering_begun()
        elif isinstance(event, RenderingEnded):
            h.rendering_ended()
        elif isinstance(event, StatsGenerated):
            h.stats_generated()
        elif isinstance(event, ErrorOccurred):
            h.error_occurred(event.error)
        else:
            raise TypeError(f"unknown event {event!r}")
