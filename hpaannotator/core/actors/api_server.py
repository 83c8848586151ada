"""
Ray actor serving the scaling-policy registry.

The actor is the remote backend the controller writes to; its methods return
plain dicts (``{"success": ...}``) so callers can translate failures into
exceptions on their side.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import ray
from ray.util import metrics

from hpaannotator.core.errors import ConflictError
from hpaannotator.core.registry import ScalingPolicyRegistry
from hpaannotator.core.utils import configure_runtime_logging

from .config import ActorConfig

logger = logging.getLogger(__name__)


@ray.remote
class ApiServerActor:
    """Remote endpoint for scaling-policy reads, writes and watches."""

    def __init__(self, config: ActorConfig):
        configure_runtime_logging()
        self.config = config
        self._registry = ScalingPolicyRegistry(max_events=config.max_events)

        # 初始化 Ray metrics（在 actor 初始化时创建，避免重复创建）
        self.update_counter = metrics.Counter(
            name="hpaannotator_policy_update_count",
            description="Scaling policy updates accepted by the API server",
            tag_keys=("namespace", "result"),
        )
        self.conflict_counter = metrics.Counter(
            name="hpaannotator_policy_conflict_count",
            description="Scaling policy updates rejected for a stale resource version",
            tag_keys=("namespace",),
        )
        logger.info("ApiServerActor[%s] initialised max_events=%d", config.name, config.max_events)

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        return self._registry.create(obj)

    def update(self, namespace: str, obj: Dict[str, Any]) -> Dict[str, Any]:
        result = self._registry.update(namespace, obj)
        tag_namespace = namespace or "-"
        if result.get("success"):
            self.update_counter.inc(
                tags={"namespace": tag_namespace, "result": "noop" if result.get("noop") else "applied"}
            )
        elif result.get("reason") == ConflictError.reason:
            self.conflict_counter.inc(tags={"namespace": tag_namespace})
        return result

    def delete(self, namespace: str, name: str) -> Dict[str, Any]:
        return self._registry.delete(namespace, name)

    def get(self, namespace: str, name: str) -> Dict[str, Any]:
        return self._registry.get(namespace, name)

    def list(self, namespace: Optional[str] = None) -> Dict[str, Any]:
        return self._registry.list(namespace)

    def watch(self, resource_version: int, namespace: Optional[str] = None) -> Dict[str, Any]:
        return self._registry.watch(resource_version, namespace)

    def inject_failures(self, method: str, count: int = 1, reason: str = "InternalError") -> Dict[str, Any]:
        return self._registry.inject_failures(method, count, reason)

    def snapshot_state(self) -> Dict[str, Any]:
        return self._registry.snapshot_state()

    def health_check(self) -> Dict[str, Any]:
        return {"success": True, "name": self.config.name}
