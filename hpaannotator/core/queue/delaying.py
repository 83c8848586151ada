"""
Work queue with delayed re-adds.

Delayed items wait in a heap keyed by their ready time.  A background thread
moves them into the FIFO once the delay has elapsed.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from .workqueue import WorkQueue

logger = logging.getLogger(__name__)


class DelayingQueue(WorkQueue):
    def __init__(self, name: str = "", *, clock: Optional[Callable[[], float]] = None):
        super().__init__(name)
        self._clock = clock or time.monotonic
        self._heap: List[Tuple[float, int, Hashable]] = []
        # item -> earliest ready time; stale heap entries are skipped on pop
        self._waiting: Dict[Hashable, float] = {}
        self._counter = itertools.count()
        self._delay_cond = threading.Condition()
        self._stopped = False
        self._waiter = threading.Thread(
            target=self._waiting_loop,
            name=f"delaying-queue-{name or id(self)}",
            daemon=True,
        )
        self._waiter.start()

    def add_after(self, item: Hashable, delay: float) -> None:
        """
        延迟 ``delay`` 秒后把 ``item`` 放回队列。

        Args:
            item: 队列元素（通常是 ``namespace/name`` 键）
            delay: 延迟秒数；``<= 0`` 时立即加入

        同一元素重复等待时只保留最早的就绪时间；队列关闭后调用被忽略。
        """
        if self.shutting_down():
            return
        if delay <= 0:
            self.add(item)
            return

        ready_at = self._clock() + delay
        with self._delay_cond:
            if self._stopped:
                return
            existing = self._waiting.get(item)
            if existing is not None and existing <= ready_at:
                return
            self._waiting[item] = ready_at
            heapq.heappush(self._heap, (ready_at, next(self._counter), item))
            self._delay_cond.notify()

    def num_waiting(self) -> int:
        with self._delay_cond:
            return len(self._waiting)

    def shut_down(self) -> None:
        super().shut_down()
        with self._delay_cond:
            self._stopped = True
            self._heap.clear()
            self._waiting.clear()
            self._delay_cond.notify_all()
        if self._waiter is not threading.current_thread():
            self._waiter.join(timeout=1.0)

    def _pop_ready(self) -> Tuple[List[Hashable], Optional[float]]:
        """Collect ready items; return them and the time until the next one (or None)."""
        ready: List[Hashable] = []
        now = self._clock()
        while self._heap:
            ready_at, _, item = self._heap[0]
            if self._waiting.get(item) != ready_at:
                heapq.heappop(self._heap)
                continue
            if ready_at > now:
                return ready, ready_at - now
            heapq.heappop(self._heap)
            del self._waiting[item]
            ready.append(item)
        return ready, None

    def _waiting_loop(self) -> None:
        while True:
            with self._delay_cond:
                if self._stopped:
                    return
                ready, wait_for = self._pop_ready()
                if not ready:
                    self._delay_cond.wait(timeout=wait_for)
                    continue
            for item in ready:
                self.add(item)
