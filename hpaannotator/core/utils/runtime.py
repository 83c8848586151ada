"""
Process-wide error sink.

Components never crash on a single bad object; they hand the error to an
:class:`ErrorSink` that is built once per process and passed in explicitly.
"""

from __future__ import annotations

import logging
import threading
import time
import traceback
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ErrorRecord:
    error: BaseException
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": repr(self.error),
            "type": type(self.error).__name__,
            "context": dict(self.context),
            "timestamp": self.timestamp,
        }


class ErrorSink:
    """
    Collects errors that should be reported but must not stop the caller.

    Every error is logged and kept in a bounded ring so tests and the head can
    inspect what was dropped.
    """

    def __init__(self, *, max_records: int = 256, sink_logger: Optional[logging.Logger] = None):
        self._records: Deque[ErrorRecord] = deque(maxlen=max(1, max_records))
        self._lock = threading.Lock()
        self._total = 0
        self._logger = sink_logger or logger

    def handle_error(self, error: BaseException, **context: Any) -> None:
        record = ErrorRecord(error=error, context=context)
        with self._lock:
            self._records.append(record)
            self._total += 1
        if context:
            self._logger.error("Unhandled error: %s %s", error, context)
        else:
            self._logger.error("Unhandled error: %s", error)

    def handle_crash(self, error: BaseException, **context: Any) -> None:
        """Report an unexpected exception together with its traceback."""
        tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        self._logger.error("Observed a panic: %s\n%s", error, tb)
        with self._lock:
            self._records.append(ErrorRecord(error=error, context=dict(context, crash=True)))
            self._total += 1

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def records(self) -> List[ErrorRecord]:
        with self._lock:
            return list(self._records)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "total": self._total,
                "recent": [record.to_dict() for record in self._records],
            }
