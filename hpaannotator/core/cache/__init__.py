"""
Local resource cache: store, informer and listers.
"""

from .informer import ListWatch, ResourceEventHandlerFuncs, SharedInformer  # noqa: F401
from .keys import meta_namespace_key, split_meta_namespace_key  # noqa: F401
from .lister import ScalingPolicyLister, ScalingPolicyNamespaceLister  # noqa: F401
from .store import ThreadSafeStore  # noqa: F401
from .wait import until, wait_for_cache_sync  # noqa: F401

__all__ = [
    "ListWatch",
    "ResourceEventHandlerFuncs",
    "ScalingPolicyLister",
    "ScalingPolicyNamespaceLister",
    "SharedInformer",
    "ThreadSafeStore",
    "meta_namespace_key",
    "split_meta_namespace_key",
    "until",
    "wait_for_cache_sync",
]
