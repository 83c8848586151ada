"""
Typed clients for the scaling-policy backend.

:class:`RayApiClient` talks to an :class:`ApiServerActor`;
:class:`LocalApiClient` calls a :class:`ScalingPolicyRegistry` in-process.
Both translate error payloads into :mod:`hpaannotator.core.errors`
exceptions and implement the informer's ``ListWatch`` protocol.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from hpaannotator.core.entities import ScalingPolicy, WatchEvent
from hpaannotator.core.errors import api_error_from_dict
from hpaannotator.core.registry import ScalingPolicyRegistry

logger = logging.getLogger(__name__)

_WATCH_POLL_INTERVAL = 0.05


class BaseApiClient(ABC):
    @abstractmethod
    def _call(self, method: str, *args: Any) -> Dict[str, Any]:
        """Invoke ``method`` on the backend and return its raw dict result."""

    def _checked(self, method: str, *args: Any) -> Dict[str, Any]:
        result = self._call(method, *args)
        if not result.get("success"):
            raise api_error_from_dict(result)
        return result

    def create(self, policy: ScalingPolicy) -> ScalingPolicy:
        return ScalingPolicy.from_dict(self._checked("create", policy.to_dict())["object"])

    def get(self, namespace: str, name: str) -> ScalingPolicy:
        return ScalingPolicy.from_dict(self._checked("get", namespace, name)["object"])

    def update(self, namespace: str, policy: ScalingPolicy) -> ScalingPolicy:
        """Replace the whole object; a stale resource version raises ``ConflictError``."""
        return ScalingPolicy.from_dict(self._checked("update", namespace, policy.to_dict())["object"])

    def delete(self, namespace: str, name: str) -> None:
        self._checked("delete", namespace, name)

    def list(self, namespace: Optional[str] = None) -> Tuple[List[ScalingPolicy], int]:
        result = self._checked("list", namespace)
        items = [ScalingPolicy.from_dict(item) for item in result.get("items", [])]
        return items, int(result.get("resourceVersion", 0))

    def watch(
        self,
        resource_version: int,
        timeout: float,
        namespace: Optional[str] = None,
    ) -> Tuple[List[WatchEvent], int]:
        """
        轮询 ``resource_version`` 之后的事件。

        Args:
            resource_version: 调用方已处理到的版本
            timeout: 没有事件时最多等待的秒数
            namespace: 只返回该命名空间的事件，``None`` 表示全部

        Returns:
            ``(events, latest_resource_version)``

        Raises:
            ExpiredError: 请求的版本已被压缩，需要重新 list
        """
        deadline = time.monotonic() + max(0.0, timeout)
        while True:
            result = self._checked("watch", resource_version, namespace)
            events = [WatchEvent.from_dict(item) for item in result.get("events", [])]
            latest = int(result.get("resourceVersion", resource_version))
            if events or time.monotonic() >= deadline:
                return events, latest
            time.sleep(min(_WATCH_POLL_INTERVAL, max(0.0, deadline - time.monotonic())))


class LocalApiClient(BaseApiClient):
    def __init__(self, registry: Optional[ScalingPolicyRegistry] = None):
        self.registry = registry or ScalingPolicyRegistry()

    def _call(self, method: str, *args: Any) -> Dict[str, Any]:
        return getattr(self.registry, method)(*args)


class RayApiClient(BaseApiClient):
    """Synchronous wrapper around an ``ApiServerActor`` handle."""

    def __init__(self, actor: Any, *, timeout: Optional[float] = 30.0):
        import ray

        self._ray = ray
        self._actor = actor
        self._timeout = timeout

    @property
    def actor(self) -> Any:
        return self._actor

    def _call(self, method: str, *args: Any) -> Dict[str, Any]:
        remote_method = getattr(self._actor, method)
        return self._ray.get(remote_method.remote(*args), timeout=self._timeout)
