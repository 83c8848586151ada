"""
Authoritative scaling-policy registry.

Holds the backend copy of every scaling policy together with a bounded event
log used to serve watches.  Results are plain dicts so the registry can sit
behind a Ray actor unchanged.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

from hpaannotator.core.cache.keys import split_meta_namespace_key
from hpaannotator.core.entities import EventType, ScalingPolicy
from hpaannotator.core.errors import (
    AlreadyExistsError,
    ApiError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    api_error_from_dict,
)

logger = logging.getLogger(__name__)


def _comparable(obj: Dict[str, Any]) -> Dict[str, Any]:
    data = copy.deepcopy(obj)
    metadata = data.get("metadata", {})
    metadata.pop("resourceVersion", None)
    metadata.pop("uid", None)
    if not metadata.get("annotations"):
        metadata.pop("annotations", None)
    return data


class ScalingPolicyRegistry:
    """In-memory backend store with optimistic concurrency on ``resourceVersion``."""

    def __init__(self, max_events: int = 1000):
        self._objects: Dict[str, Dict[str, Any]] = {}
        self._events: Deque[Tuple[int, str, Dict[str, Any]]] = deque()
        self._max_events = max(1, max_events)
        self._resource_version = 0
        # 被压缩掉的最新事件版本；比它更旧的 watch 需要重新 list
        self._compacted_version = 0
        self._lock = threading.RLock()
        # method -> list of pending injected failures (reason strings)
        self._injected_failures: Dict[str, Deque[str]] = {}
        self._stats = {"creates": 0, "updates": 0, "noop_updates": 0, "deletes": 0, "conflicts": 0}

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with self._lock:
                self._maybe_fail("create")
                policy = ScalingPolicy.from_dict(obj)
                key = self._key(policy.namespace, policy.name)
                if key in self._objects:
                    raise AlreadyExistsError(f'scalingpolicy "{policy.name}" already exists', details={"key": key})
                stored = policy.to_dict()
                stored["metadata"]["uid"] = stored["metadata"].get("uid") or str(uuid.uuid4())
                committed = self._commit(key, EventType.ADDED, stored)
                self._stats["creates"] += 1
                return {"success": True, "object": copy.deepcopy(committed)}
        except ValueError as exc:
            return ApiError(f"invalid scaling policy: {exc}").to_dict()
        except ApiError as exc:
            return exc.to_dict()

    def update(self, namespace: str, obj: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the stored object.

        A stale ``resourceVersion`` is rejected with a conflict; an update
        identical to the stored object is accepted without a new version or
        event.
        """
        try:
            with self._lock:
                self._maybe_fail("update")
                policy = ScalingPolicy.from_dict(obj)
                if policy.namespace != namespace:
                    raise ApiError(
                        f"namespace mismatch: {policy.namespace!r} != {namespace!r}",
                        details={"namespace": namespace},
                    )
                key = self._key(namespace, policy.name)
                current = self._objects.get(key)
                if current is None:
                    raise NotFoundError(f'scalingpolicy "{policy.name}" not found', details={"key": key})

                current_version = current["metadata"]["resourceVersion"]
                if policy.metadata.resource_version and policy.metadata.resource_version != current_version:
                    self._stats["conflicts"] += 1
                    raise ConflictError(
                        f'Operation cannot be fulfilled on scalingpolicy "{policy.name}": '
                        "the object has been modified; please apply your changes to the latest version and try again",
                        details={"key": key, "resourceVersion": current_version},
                    )

                stored = policy.to_dict()
                stored["metadata"]["uid"] = current["metadata"].get("uid", "")
                if _comparable(stored) == _comparable(current):
                    self._stats["noop_updates"] += 1
                    return {"success": True, "object": copy.deepcopy(current), "noop": True}

                committed = self._commit(key, EventType.MODIFIED, stored)
                self._stats["updates"] += 1
                return {"success": True, "object": copy.deepcopy(committed), "noop": False}
        except ValueError as exc:
            return ApiError(f"invalid scaling policy: {exc}").to_dict()
        except ApiError as exc:
            return exc.to_dict()

    def delete(self, namespace: str, name: str) -> Dict[str, Any]:
        try:
            with self._lock:
                self._maybe_fail("delete")
                key = self._key(namespace, name)
                current = self._objects.get(key)
                if current is None:
                    raise NotFoundError(f'scalingpolicy "{name}" not found', details={"key": key})
                self._commit(key, EventType.DELETED, current)
                self._stats["deletes"] += 1
                return {"success": True}
        except ApiError as exc:
            return exc.to_dict()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, namespace: str, name: str) -> Dict[str, Any]:
        try:
            with self._lock:
                self._maybe_fail("get")
                key = self._key(namespace, name)
                current = self._objects.get(key)
                if current is None:
                    raise NotFoundError(f'scalingpolicy "{name}" not found', details={"key": key})
                return {"success": True, "object": copy.deepcopy(current)}
        except ApiError as exc:
            return exc.to_dict()

    def list(self, namespace: Optional[str] = None) -> Dict[str, Any]:
        try:
            with self._lock:
                self._maybe_fail("list")
                items = [
                    copy.deepcopy(obj)
                    for key, obj in sorted(self._objects.items())
                    if self._in_namespace(key, namespace)
                ]
                return {"success": True, "items": items, "resourceVersion": self._resource_version}
        except ApiError as exc:
            return exc.to_dict()

    def watch(self, resource_version: int, namespace: Optional[str] = None) -> Dict[str, Any]:
        """Return events newer than ``resource_version`` (non-blocking)."""
        try:
            with self._lock:
                self._maybe_fail("watch")
                if resource_version < self._compacted_version:
                    raise ExpiredError(
                        f"too old resource version: {resource_version} ({self._compacted_version})",
                        details={"resourceVersion": resource_version},
                    )
                events = [
                    {"type": event_type, "object": copy.deepcopy(obj), "resourceVersion": version}
                    for version, event_type, obj in self._events
                    if version > resource_version and self._in_namespace(self._key_of(obj), namespace)
                ]
                return {"success": True, "events": events, "resourceVersion": self._resource_version}
        except ApiError as exc:
            return exc.to_dict()

    # ------------------------------------------------------------------ #
    # Test / operational helpers
    # ------------------------------------------------------------------ #

    def inject_failures(self, method: str, count: int = 1, reason: str = ApiError.reason) -> Dict[str, Any]:
        """
        注入失败，供测试和故障演练使用。

        Args:
            method: 要失败的方法名（``get``/``update``/``watch`` 等）
            count: 接下来失败的调用次数
            reason: 返回的错误原因，例如 ``Conflict``、``NotFound``

        Returns:
            ``{"success": True, "pending": n}``
        """
        with self._lock:
            pending = self._injected_failures.setdefault(method, deque())
            pending.extend([reason] * max(0, count))
            return {"success": True, "pending": len(pending)}

    def snapshot_state(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "objects": len(self._objects),
                "resourceVersion": self._resource_version,
                "events": len(self._events),
                "stats": dict(self._stats),
            }

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _key(namespace: str, name: str) -> str:
        return f"{namespace}/{name}" if namespace else name

    @staticmethod
    def _key_of(obj: Dict[str, Any]) -> str:
        metadata = obj.get("metadata", {})
        namespace = metadata.get("namespace") or ""
        name = metadata.get("name", "")
        return f"{namespace}/{name}" if namespace else name

    @staticmethod
    def _in_namespace(key: str, namespace: Optional[str]) -> bool:
        if namespace is None:
            return True
        ns, _ = split_meta_namespace_key(key)
        return ns == namespace

    def _commit(self, key: str, event_type: EventType, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Store ``obj`` under a new resource version and return the stored copy."""
        self._resource_version += 1
        obj = copy.deepcopy(obj)
        obj["metadata"]["resourceVersion"] = str(self._resource_version)
        if event_type == EventType.DELETED:
            self._objects.pop(key, None)
        else:
            self._objects[key] = obj
        self._events.append((self._resource_version, event_type.value, copy.deepcopy(obj)))
        while len(self._events) > self._max_events:
            version, _, _ = self._events.popleft()
            self._compacted_version = version
        logger.debug("Registry %s %s at version %d", event_type.value, key, self._resource_version)
        return obj

    def _maybe_fail(self, method: str) -> None:
        pending = self._injected_failures.get(method)
        if not pending:
            return
        reason = pending.popleft()
        raise api_error_from_dict({"reason": reason, "error": f"injected {reason} failure for {method}"})
