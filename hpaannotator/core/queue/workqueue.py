"""
Deduplicating FIFO work queue.

Items are hashable keys.  An item is delivered to at most one consumer at a
time: re-adding an item that is being processed only marks it dirty, and it is
queued again once the consumer calls :meth:`WorkQueue.done`.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, Hashable, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class WorkQueue:
    def __init__(self, name: str = ""):
        self.name = name
        self._queue: Deque[Hashable] = deque()
        # 需要处理的 item（包括已排队和处理中被再次 add 的）
        self._dirty: Set[Hashable] = set()
        # 正在被某个 worker 处理的 item
        self._processing: Set[Hashable] = set()
        self._cond = threading.Condition()
        self._shutting_down = False

    def add(self, item: Hashable) -> None:
        with self._cond:
            if self._shutting_down:
                return
            if item in self._dirty:
                return
            self._dirty.add(item)
            if item in self._processing:
                return
            self._queue.append(item)
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> Tuple[Optional[Hashable], bool]:
        """
        Block until an item is available or the queue shuts down.

        Returns:
            ``(item, False)`` for a delivered item, ``(None, True)`` once the
            queue is shutting down.  With a ``timeout`` that expires first,
            returns ``(None, False)``.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._queue or self._shutting_down, timeout):
                return None, False
            if self._shutting_down:
                return None, True
            item = self._queue.popleft()
            self._processing.add(item)
            self._dirty.discard(item)
            return item, False

    def done(self, item: Hashable) -> None:
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                self._cond.notify()

    def shut_down(self) -> None:
        with self._cond:
            if self._shutting_down:
                return
            self._shutting_down = True
            self._cond.notify_all()
        logger.debug("Work queue %r shutting down", self.name)

    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    def is_processing(self, item: Hashable) -> bool:
        with self._cond:
            return item in self._processing

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)
