"""
Polling helpers shared by the informer and the controller.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from hpaannotator.core.utils.runtime import ErrorSink

logger = logging.getLogger(__name__)


def wait_for_cache_sync(
    stop_event: threading.Event,
    *synced: Callable[[], bool],
    timeout: Optional[float] = None,
    poll_interval: float = 0.1,
) -> bool:
    """
    等待所有缓存完成首次同步。

    Args:
        stop_event: 置位后立即放弃等待
        *synced: 返回缓存是否已同步的可调用对象
        timeout: 最长等待秒数，``None`` 表示一直等到 ``stop_event``
        poll_interval: 轮询间隔（秒）

    Returns:
        全部同步返回 ``True``；被停止或超时返回 ``False``
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        if all(fn() for fn in synced):
            return True
        if stop_event.is_set():
            logger.info("Stop requested while waiting for caches to sync")
            return False
        wait = poll_interval
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("Timed out waiting for caches to sync")
                return False
            wait = min(wait, remaining)
        stop_event.wait(wait)


def until(
    fn: Callable[[], None],
    period: float,
    stop_event: threading.Event,
    *,
    error_sink: Optional[ErrorSink] = None,
) -> None:
    """
    Call ``fn`` repeatedly, pausing ``period`` seconds between calls, until
    ``stop_event`` is set.  Exceptions are reported and the loop keeps going.
    """
    while not stop_event.is_set():
        try:
            fn()
        except Exception as exc:
            if error_sink is None:
                logger.exception("Loop function %s crashed", getattr(fn, "__name__", fn))
            else:
                error_sink.handle_crash(exc, loop=getattr(fn, "__name__", repr(fn)))
        if stop_event.wait(period):
            return
