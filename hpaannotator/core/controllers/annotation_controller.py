"""
Scaling-policy annotation controller.

Watches scaling policies and writes the targets of their ``cpu`` / ``memory``
resource metrics back as annotations (``cpuTargetUtilization``,
``memoryTargetValue``), so dashboards can read them without parsing the metric list.

Every add/update event enqueues the policy key; worker threads pull keys,
run :meth:`AnnotationController.sync` and requeue failures with exponential
backoff until :data:`MAX_RETRIES` is reached.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, Hashable, List, Optional, Protocol

from hpaannotator.config.policy import annotation_key_for
from hpaannotator.core.cache import (
    ResourceEventHandlerFuncs,
    ScalingPolicyLister,
    meta_namespace_key,
    split_meta_namespace_key,
    until,
    wait_for_cache_sync,
)
from hpaannotator.core.config import ControllerConfig, get_controller_config
from hpaannotator.core.entities import ResourceMetricSource, ScalingPolicy
from hpaannotator.core.errors import CacheSyncError, is_not_found
from hpaannotator.core.queue import RateLimitingQueue, default_controller_rate_limiter
from hpaannotator.core.utils.metrics import ControllerMetrics
from hpaannotator.core.utils.runtime import ErrorSink

logger = logging.getLogger(__name__)

_WORKER_JOIN_TIMEOUT = 5.0


class PolicyInformer(Protocol):
    lister: ScalingPolicyLister

    def has_synced(self) -> bool:
        ...

    def add_event_handler(self, handler: ResourceEventHandlerFuncs) -> None:
        ...


class ScalingPolicyClient(Protocol):
    def update(self, namespace: str, policy: ScalingPolicy) -> ScalingPolicy:
        ...


def derive_annotations(policy: ScalingPolicy) -> Dict[str, str]:
    """
    Compute the annotations that summarise ``policy``'s resource targets.

    Only ``Resource`` metrics on ``cpu`` / ``memory`` with an
    ``average_utilization`` target contribute; everything else is skipped.
    """
    annotations: Dict[str, str] = {}
    for metric in policy.spec.metrics:
        if not isinstance(metric, ResourceMetricSource):
            continue
        key = annotation_key_for(metric.name)
        if key is None:
            continue
        utilization = metric.target.average_utilization
        if utilization is None:
            continue
        annotations[key] = str(int(utilization))
    return annotations


class AnnotationController:
    """Level-triggered controller keeping scaling-policy annotations in step with their metrics."""

    def __init__(
        self,
        informer: PolicyInformer,
        client: ScalingPolicyClient,
        *,
        error_sink: ErrorSink,
        config: Optional[ControllerConfig] = None,
        queue: Optional[RateLimitingQueue] = None,
    ):
        """
        Args:
            informer: 提供 lister、同步状态和事件回调的缓存
            client: 写回 scaling policy 的客户端
            error_sink: 无法重试的错误最终上报到这里
            config: 控制器配置，默认读取全局配置
            queue: 自定义工作队列；为空时按配置构建限速队列
        """
        self.config = config or get_controller_config()
        self.client = client
        self.error_sink = error_sink
        self.lister = informer.lister
        self._has_synced = informer.has_synced
        if queue is None:
            queue = RateLimitingQueue(
                default_controller_rate_limiter(
                    self.config.base_delay,
                    self.config.max_delay,
                    self.config.qps,
                    self.config.burst,
                ),
                name="scalingpolicy",
            )
        self.queue = queue
        self.metrics = ControllerMetrics(queue.name or "scalingpolicy")
        self._workers: List[threading.Thread] = []

        informer.add_event_handler(
            ResourceEventHandlerFuncs(
                on_add=self.enqueue,
                on_update=lambda old, cur: self.enqueue(cur),
            )
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self, stop_event: threading.Event) -> None:
        self.run(self.config.workers, stop_event)

    def run(self, workers: int, stop_event: threading.Event) -> None:
        """
        Wait for the cache, launch ``workers`` worker threads and block until
        ``stop_event`` is set.

        Raises:
            CacheSyncError: if the cache never completes its initial sync.
        """
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        logger.info("Starting scaling policy annotation controller")
        try:
            if not wait_for_cache_sync(stop_event, self._has_synced, timeout=self.config.cache_sync_timeout):
                raise CacheSyncError("failed to wait for caches to sync")

            for idx in range(workers):
                thread = threading.Thread(
                    target=until,
                    args=(self.worker, self.config.worker_loop_period, stop_event),
                    kwargs={"error_sink": self.error_sink},
                    name=f"annotation-worker-{idx}",
                    daemon=True,
                )
                thread.start()
                self._workers.append(thread)
            logger.info("Started %d annotation worker(s)", workers)

            stop_event.wait()
        finally:
            self.queue.shut_down()
            for thread in self._workers:
                thread.join(timeout=_WORKER_JOIN_TIMEOUT)
            self._workers.clear()
            logger.info("Shutting down scaling policy annotation controller")

    # ------------------------------------------------------------------ #
    # Event routing
    # ------------------------------------------------------------------ #

    def enqueue(self, obj: Any) -> None:
        try:
            key = meta_namespace_key(obj)
        except Exception as exc:
            self.error_sink.handle_error(exc, reason="couldn't get key for object", object=repr(obj))
            return
        self.queue.add(key)

    # ------------------------------------------------------------------ #
    # Workers
    # ------------------------------------------------------------------ #

    def worker(self) -> None:
        while self.process_next_work_item():
            pass

    def process_next_work_item(self) -> bool:
        key, quit_ = self.queue.get()
        if quit_:
            return False

        try:
            try:
                self.sync(key)
            except Exception as exc:
                self.handle_err(exc, key)
            else:
                self.handle_err(None, key)
        finally:
            self.queue.done(key)
        return True

    def sync(self, key: str) -> None:
        """
        Reconcile one scaling policy.

        A policy missing from the cache has been deleted and is treated as
        success.  Otherwise the derived annotations are merged into a copy and
        written back whenever at least one was computed; the write is not
        skipped when the values already match.
        """
        start = time.monotonic()
        outcome = "error"
        try:
            namespace, name = split_meta_namespace_key(key)

            try:
                policy = self.lister.scaling_policies(namespace).get(name)
            except Exception as exc:
                # 已被删除
                if is_not_found(exc):
                    logger.debug("Scaling policy %s has been deleted", key)
                    outcome = "success"
                    return
                logger.error("Get scaling policy failed namespace=%s name=%s: %s", namespace, name, exc)
                raise

            policy_copy = policy.deep_copy()

            annotations = derive_annotations(policy_copy)
            if not annotations:
                outcome = "success"
                return

            if policy_copy.metadata.annotations is None:
                policy_copy.metadata.annotations = {}
            policy_copy.metadata.annotations.update(annotations)

            self.client.update(policy_copy.namespace, policy_copy)
            outcome = "success"
        finally:
            duration = time.monotonic() - start
            self.metrics.observe_sync(duration, outcome)
            logger.debug("Finished syncing scaling policy key=%s duration=%.3fs", key, duration)

    def handle_err(self, err: Optional[BaseException], key: Hashable) -> None:
        if err is None:
            self.queue.forget(key)
            return

        if self.queue.num_requeues(key) < self.config.max_retries:
            logger.debug("Error syncing scaling policy, retrying key=%s error=%s", key, err)
            self.queue.add_rate_limited(key)
            self.metrics.record_retry()
            return

        logger.debug("Dropping scaling policy out of the queue key=%s error=%s", key, err)
        self.queue.forget(key)
        self.metrics.record_drop()
        self.error_sink.handle_error(err, key=key, reason="max retries exceeded")
