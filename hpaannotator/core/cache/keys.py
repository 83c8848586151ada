"""
Resource key helpers: ``namespace/name`` (or just ``name`` when cluster scoped).
"""

from __future__ import annotations

from typing import Any, Tuple

from hpaannotator.core.errors import KeyFormatError


def meta_namespace_key(obj: Any) -> str:
    """
    Build the queue/cache key for an object exposing ``metadata.name`` and
    ``metadata.namespace``.

    Raises:
        KeyFormatError: if the object has no usable metadata.
    """
    if isinstance(obj, str):
        # 已经是 key（例如 tombstone），原样返回
        return obj
    metadata = getattr(obj, "metadata", None)
    if metadata is None:
        raise KeyFormatError(f"object has no metadata: {obj!r}")
    name = getattr(metadata, "name", None)
    if not isinstance(name, str) or not name:
        raise KeyFormatError(f"object has no name: {obj!r}")
    namespace = getattr(metadata, "namespace", "") or ""
    if not isinstance(namespace, str):
        raise KeyFormatError(f"object has invalid namespace: {obj!r}")
    if namespace:
        return f"{namespace}/{name}"
    return name


def split_meta_namespace_key(key: str) -> Tuple[str, str]:
    """Return ``(namespace, name)``; namespace is ``""`` for cluster-scoped keys."""
    if not isinstance(key, str):
        raise KeyFormatError(f"unexpected key type: {type(key).__name__}")
    parts = key.split("/")
    if len(parts) == 1 and parts[0]:
        return "", parts[0]
    if len(parts) == 2 and parts[1]:
        return parts[0], parts[1]
    raise KeyFormatError(f"unexpected key format: {key!r}")
