from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Generic, List, Optional, TypeVar

from fractal_engine.rendering.work_queue import WorkQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_worker_count() -> int:
    return max(1, os.cpu_count() or 1)


class WorkerPool(Generic[T]):
    """
    `worker_count` threads draining a WorkQueue, each calling `work_fn` on
    the units it pops.

    A live-worker counter is set to worker_count before any thread starts and
    decremented in a `finally` when a worker leaves its loop, whether the
    queue ran dry or `work_fn` raised. The worker taking it to zero releases
    the completion barrier, so wait() returns exactly once per pool.
    """

    def __init__(
        self,
        queue: WorkQueue[T],
        work_fn: Callable[[T], None],
        worker_count: Optional[int] = None,
        *,
        on_error: Optional[Callable[[BaseException], None]] = None,
        name: str = "render-worker",
    ) -> None:
        self.queue = queue
        self.work_fn = work_fn
        self.worker_count = int(worker_count or default_worker_count())
        if self.worker_count < 1:
            raise ValueError(f"worker_count must be >= 1; got {worker_count}")
        self.on_error = on_error or (lambda *_: None)
        self.name = name

        self._lock = threading.Lock()
        self._live = 0
        self._failures: List[BaseException] = []
        self._done = threading.Event()
        self._threads: List[threading.Thread] = []

    # ---- Lifecycle ------------------------------------------------------

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("worker pool already started")
        self._live = self.worker_count
        self._threads = [
            threading.Thread(target=self._run, name=f"{self.name}-{i}", daemon=True)
            for i in range(self.worker_count)
        ]
        for t in self._threads:
            t.start()
        logger.debug("Started %d workers (%s)", self.worker_count, self.name)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks on the completion barrier, then joins the workers. Returns False on timeout."""
        if not self._done.wait(timeout):
            return False
        current = threading.current_thread()
        for t in self._threads:
            if t is not current:
                t.join()
        return True

    @property
    def live_workers(self) -> int:
        with self._lock:
            return self._live

    @property
    def failures(self) -> List[BaseException]:
        with self._lock:
            return list(self._failures)

    # ---- Worker loop ----------------------------------------------------

    def _run(self) -> None:
        try:
            while True:
                unit = self.queue.pop()
                if unit is None:
                    break
                self.work_fn(unit)
        except Exception as e:
            logger.exception("Worker %s failed", threading.current_thread().name)
            with self._lock:
                self._failures.append(e)
            self.on_error(e)
        finally:
            self._worker_done()

    def _worker_done(self) -> None:
        with self._lock:
            self._live -= 1
            last = self._live == 0
        if last:
            self._done.set()
