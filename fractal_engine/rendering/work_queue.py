from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")


class WorkQueue(Generic[T]):
    """
    Pool of pending work units (tiles or sample batches), filled once before
    the workers start and drained by them.

    - pop() is atomic: every unit is handed out at most once.
    - pause() holds back further pops without dropping anything; resume()
      releases them.
    - cancel() discards whatever has not been popped yet; every later pop
      returns None.
    """

    def __init__(self) -> None:
        self._items: Deque[T] = deque()
        self._cond = threading.Condition()
        self._capacity = 0
        self._populated = False
        self._paused = False
        self._cancelled = False

    def populate(self, items: Iterable[T]) -> int:
        with self._cond:
            if self._populated:
                raise RuntimeError("work queue already populated")
            self._populated = True
            items = list(items)
            self._capacity = len(items)
            if not self._cancelled:
                self._items.extend(items)
            self._cond.notify_all()
            return len(self._items)

    def pop(self) -> Optional[T]:
        """Next unit, or None once the queue is exhausted or cancelled. Blocks while paused."""
        with self._cond:
            while self._paused and not self._cancelled and self._items:
                self._cond.wait()
            if self._cancelled or not self._items:
                return None
            return self._items.popleft()

    def pause(self) -> None:
        with self._cond:
            self._paused = True

    def resume(self) -> None:
        with self._cond:
            self._paused = False
            self._cond.notify_all()

    def cancel(self) -> List[T]:
        """Discards and returns the units that were never handed out."""
        with self._cond:
            self._cancelled = True
            dropped = list(self._items)
            self._items.clear()
            self._cond.notify_all()
            return dropped

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)
