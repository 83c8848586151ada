"""
Ray metrics emitted by the annotation controller.

The controller runs in the driver process, so the metrics are only created
once Ray is connected; before that every call is a no-op.
"""

from __future__ import annotations

import logging

import ray
from ray.util import metrics

logger = logging.getLogger(__name__)


class ControllerMetrics:
    """Sync latency and retry counters for one controller queue."""

    def __init__(self, queue_name: str = "scalingpolicy"):
        self.queue_name = queue_name
        self.enabled = ray.is_initialized()
        self.sync_latency_gauge = None
        self.retry_counter = None
        if not self.enabled:
            logger.debug("Ray not initialised; controller metrics disabled queue=%s", queue_name)
            return

        # 在 Ray 连接后创建，避免在未初始化的进程里注册指标
        self.sync_latency_gauge = metrics.Gauge(
            name="hpaannotator_sync_latency_ms",
            description="Scaling policy sync latency (ms)",
            tag_keys=("queue", "outcome"),
        )
        self.retry_counter = metrics.Counter(
            name="hpaannotator_sync_retry_count",
            description="Scaling policy keys requeued or dropped after a failed sync",
            tag_keys=("queue", "action"),
        )

    def observe_sync(self, duration_s: float, outcome: str) -> None:
        """
        记录一次 sync 的耗时。

        Args:
            duration_s: sync 耗时（秒）
            outcome: ``success`` 或 ``error``
        """
        if self.sync_latency_gauge is None:
            return
        self.sync_latency_gauge.set(
            duration_s * 1000,
            tags={"queue": self.queue_name, "outcome": outcome},
        )

    def record_retry(self) -> None:
        self._inc_retry("requeued")

    def record_drop(self) -> None:
        self._inc_retry("dropped")

    def _inc_retry(self, action: str) -> None:
        if self.retry_counter is None:
            return
        self.retry_counter.inc(tags={"queue": self.queue_name, "action": action})
