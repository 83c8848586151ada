"""
Read-only views over the informer store.

Objects returned here are shared with the cache and must be treated as
read-only; use :meth:`ScalingPolicy.deep_copy` before mutating.
"""

from __future__ import annotations

from typing import List, Optional

from hpaannotator.core.entities import ScalingPolicy
from hpaannotator.core.errors import NotFoundError

from .store import ThreadSafeStore


class ScalingPolicyNamespaceLister:
    def __init__(self, store: ThreadSafeStore, namespace: str):
        self._store = store
        self._namespace = namespace

    def get(self, name: str) -> ScalingPolicy:
        key = f"{self._namespace}/{name}" if self._namespace else name
        obj = self._store.get_by_key(key)
        if obj is None:
            raise NotFoundError(
                f'scalingpolicy "{name}" not found',
                details={"namespace": self._namespace, "name": name},
            )
        return obj

    def list(self) -> List[ScalingPolicy]:
        return [obj for obj in self._store.list() if obj.namespace == self._namespace]


class ScalingPolicyLister:
    def __init__(self, store: ThreadSafeStore):
        self._store = store

    def list(self, namespace: Optional[str] = None) -> List[ScalingPolicy]:
        if namespace is None:
            return self._store.list()
        return self.scaling_policies(namespace).list()

    def scaling_policies(self, namespace: str) -> ScalingPolicyNamespaceLister:
        return ScalingPolicyNamespaceLister(self._store, namespace)
