"""
List/watch driven informer.

The informer keeps a local :class:`ThreadSafeStore` in step with a backend by
listing everything once, then applying watch events.  Any watch failure
triggers a fresh list, so a restarted or lagging informer always converges on
the backend's current state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Tuple

from hpaannotator.core.entities import EventType, ScalingPolicy, WatchEvent
from hpaannotator.core.utils.runtime import ErrorSink

from .lister import ScalingPolicyLister
from .store import ThreadSafeStore

logger = logging.getLogger(__name__)


class ListWatch(Protocol):
    def list(self, namespace: Optional[str] = None) -> Tuple[List[ScalingPolicy], int]:
        ...

    def watch(
        self,
        resource_version: int,
        timeout: float,
        namespace: Optional[str] = None,
    ) -> Tuple[List[WatchEvent], int]:
        ...


@dataclass
class ResourceEventHandlerFuncs:
    """Optional callbacks; missing ones are skipped."""

    on_add: Optional[Callable[[Any], None]] = None
    on_update: Optional[Callable[[Any, Any], None]] = None
    on_delete: Optional[Callable[[Any], None]] = None


class SharedInformer:
    def __init__(
        self,
        list_watch: ListWatch,
        *,
        error_sink: ErrorSink,
        namespace: Optional[str] = None,
        resync_period: float = 0.0,
        watch_timeout: float = 1.0,
        relist_backoff: float = 1.0,
    ):
        self._list_watch = list_watch
        self._error_sink = error_sink
        self._namespace = namespace
        self._resync_period = max(0.0, resync_period)
        self._watch_timeout = watch_timeout
        self._relist_backoff = relist_backoff

        self.store = ThreadSafeStore()
        self.lister = ScalingPolicyLister(self.store)
        self._handlers: List[ResourceEventHandlerFuncs] = []
        self._handlers_lock = threading.Lock()
        self._synced = threading.Event()
        self._resource_version = 0
        self._last_resync = time.monotonic()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def add_event_handler(self, handler: ResourceEventHandlerFuncs) -> None:
        with self._handlers_lock:
            self._handlers.append(handler)

    def has_synced(self) -> bool:
        return self._synced.is_set()

    @property
    def resource_version(self) -> int:
        return self._resource_version

    def start(self, stop_event: threading.Event) -> threading.Thread:
        """Run the informer in a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(
            target=self.run, args=(stop_event,), name="scalingpolicy-informer", daemon=True
        )
        self._thread.start()
        return self._thread

    def run(self, stop_event: threading.Event) -> None:
        logger.info("Starting scaling policy informer namespace=%s", self._namespace or "<all>")
        while not stop_event.is_set():
            try:
                self._list_and_replace()
                self._watch_until_error(stop_event)
            except Exception as exc:
                self._error_sink.handle_error(exc, component="informer", resource_version=self._resource_version)
                if stop_event.wait(self._relist_backoff):
                    break
        logger.info("Scaling policy informer stopped")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _list_and_replace(self) -> None:
        items, resource_version = self._list_watch.list(namespace=self._namespace)
        previous = {key: self.store.get_by_key(key) for key in self.store.list_keys()}
        self.store.replace(items)
        self._resource_version = resource_version

        seen = set()
        for obj in items:
            key = self.store.key_of(obj)
            seen.add(key)
            old = previous.get(key)
            if old is None:
                self._dispatch_add(obj)
            else:
                self._dispatch_update(old, obj)
        for key, old in previous.items():
            if key not in seen and old is not None:
                self._dispatch_delete(old)

        if not self._synced.is_set():
            logger.info("Scaling policy cache synced: %d object(s) at version %d", len(items), resource_version)
        self._synced.set()

    def _watch_until_error(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            events, resource_version = self._list_watch.watch(
                self._resource_version, self._watch_timeout, namespace=self._namespace
            )
            for event in events:
                self._apply(event)
            self._resource_version = max(self._resource_version, resource_version)
            self._maybe_resync()

    def _apply(self, event: WatchEvent) -> None:
        obj = event.object
        key = self.store.key_of(obj)
        old = self.store.get_by_key(key)
        self._resource_version = max(self._resource_version, event.resource_version)
        if event.type == EventType.DELETED:
            self.store.delete(obj)
            self._dispatch_delete(old if old is not None else obj)
        elif old is None:
            self.store.add(obj)
            self._dispatch_add(obj)
        else:
            self.store.update(obj)
            self._dispatch_update(old, obj)

    def _maybe_resync(self) -> None:
        if self._resync_period <= 0:
            return
        now = time.monotonic()
        if now - self._last_resync < self._resync_period:
            return
        self._last_resync = now
        objs = self.store.list()
        logger.debug("Resyncing %d cached scaling policies", len(objs))
        for obj in objs:
            self._dispatch_update(obj, obj)

    def _handlers_snapshot(self) -> List[ResourceEventHandlerFuncs]:
        with self._handlers_lock:
            return list(self._handlers)

    def _call(self, fn: Optional[Callable[..., None]], *args: Any) -> None:
        if fn is None:
            return
        try:
            fn(*args)
        except Exception as exc:
            self._error_sink.handle_crash(exc, component="informer-handler")

    def _dispatch_add(self, obj: Any) -> None:
        for handler in self._handlers_snapshot():
            self._call(handler.on_add, obj)

    def _dispatch_update(self, old: Any, new: Any) -> None:
        for handler in self._handlers_snapshot():
            self._call(handler.on_update, old, new)

    def _dispatch_delete(self, obj: Any) -> None:
        for handler in self._handlers_snapshot():
            self._call(handler.on_delete, obj)
