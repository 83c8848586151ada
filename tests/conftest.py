"""
Shared pytest fixtures.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

import pytest

from hpaannotator.core.cache import ScalingPolicyLister, ThreadSafeStore
from hpaannotator.core.config import reset_controller_config
from hpaannotator.core.entities import ScalingPolicy

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s", force=True)
logging.getLogger("hpaannotator").setLevel(logging.DEBUG)


@pytest.fixture(autouse=True)
def clear_config(monkeypatch):
    monkeypatch.delenv("HPAANNOTATOR_CONFIG", raising=False)
    reset_controller_config()
    yield
    reset_controller_config()


def _resource_metric(name: str, utilization: Optional[int]) -> Dict[str, Any]:
    target: Dict[str, Any] = {"type": "Utilization"}
    if utilization is not None:
        target["averageUtilization"] = utilization
    return {"type": "Resource", "resource": {"name": name, "target": target}}


@pytest.fixture
def make_policy() -> Callable[..., ScalingPolicy]:
    """Build a ScalingPolicy; ``cpu``/``memory`` add Resource metrics with that utilization."""

    def _make(
        name: str = "web",
        namespace: str = "default",
        *,
        cpu: Optional[int] = None,
        memory: Optional[int] = None,
        annotations: Optional[Dict[str, str]] = None,
        extra_metrics: Optional[List[Dict[str, Any]]] = None,
    ) -> ScalingPolicy:
        metrics: List[Dict[str, Any]] = []
        if cpu is not None:
            metrics.append(_resource_metric("cpu", cpu))
        if memory is not None:
            metrics.append(_resource_metric("memory", memory))
        metrics.extend(extra_metrics or [])
        metadata: Dict[str, Any] = {"name": name, "namespace": namespace}
        if annotations is not None:
            metadata["annotations"] = dict(annotations)
        return ScalingPolicy.from_dict(
            {
                "metadata": metadata,
                "spec": {
                    "scaleTargetRef": {"kind": "Deployment", "name": name},
                    "minReplicas": 1,
                    "maxReplicas": 10,
                    "metrics": metrics,
                },
            }
        )

    return _make


class FakeInformer:
    """Informer stand-in backed by a plain store the test fills directly."""

    def __init__(self, synced: bool = True):
        self.store = ThreadSafeStore()
        self.lister = ScalingPolicyLister(self.store)
        self.handlers: List[Any] = []
        self.synced = synced

    def has_synced(self) -> bool:
        return self.synced

    def add_event_handler(self, handler) -> None:
        self.handlers.append(handler)


class RecordingClient:
    """Records every update; raises the queued errors first."""

    def __init__(self, errors: Optional[List[BaseException]] = None):
        self.updates: List[tuple] = []
        self.errors = list(errors or [])
        self._lock = threading.Lock()

    def update(self, namespace: str, policy: ScalingPolicy) -> ScalingPolicy:
        with self._lock:
            if self.errors:
                raise self.errors.pop(0)
            self.updates.append((namespace, policy))
        return policy


@pytest.fixture
def fake_informer() -> FakeInformer:
    return FakeInformer()


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()


def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Poll a predicate until it holds or the timeout expires."""
    return _wait_until


@pytest.fixture
def ray_runtime():
    """Spin up a local Ray runtime for tests and mirror worker logs to the driver."""
    ray = pytest.importorskip("ray")
    try:
        ray.init(
            ignore_reinit_error=True,
            num_cpus=2,
            include_dashboard=False,
            logging_level=logging.INFO,
        )
    except PermissionError as exc:
        pytest.skip(f"Ray init requires system permissions not available in this environment: {exc}")
    except Exception as exc:  # pragma: no cover - defensive guard for restricted sandboxes
        if "Operation not permitted" in str(exc):
            pytest.skip(f"Ray init skipped due to restricted environment: {exc}")
        raise
    try:
        yield
    finally:
        ray.shutdown()


@pytest.fixture
def head_name() -> str:
    return f"test-apiserver-{uuid.uuid4().hex[:8]}"
