"""Capture queue: insertions staged between the capture and finalize phases."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable

from autohistory.application.dtos.history import PendingMutation


class CaptureQueue:
    """Thread-safe FIFO of PendingMutation owned by one persistence context.

    enqueue never blocks beyond a short lock and never drops items.
    drain_all atomically takes every item queued so far; items enqueued
    after the swap belong to the next drain.
    """

    def __init__(self, items: Iterable[PendingMutation] = ()) -> None:
        self._lock = threading.Lock()
        self._items: deque[PendingMutation] = deque(items)

    def enqueue(self, item: PendingMutation) -> None:
        with self._lock:
            self._items.append(item)

    def drain_all(self) -> list[PendingMutation]:
        """Remove and return all queued items in FIFO order."""
        with self._lock:
            drained, self._items = self._items, deque()
        return list(drained)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __bool__(self) -> bool:
        return len(self) > 0
