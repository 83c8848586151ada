"""
Controller metrics tests.

``ray.util.metrics`` is replaced with recording fakes so the emitted values
can be inspected without a Ray cluster.
"""

from __future__ import annotations

import pytest

from hpaannotator.core.config import ControllerConfig
from hpaannotator.core.controllers import AnnotationController
from hpaannotator.core.errors import ApiError
from hpaannotator.core.utils import ControllerMetrics, ErrorSink
from hpaannotator.core.utils import metrics as metrics_module


class RecordingMetric:
    def __init__(self, name, description="", tag_keys=()):
        self.name = name
        self.tag_keys = tag_keys
        self.calls = []

    def set(self, value, tags=None):
        self.calls.append((value, dict(tags or {})))

    def inc(self, value=1.0, tags=None):
        self.calls.append((value, dict(tags or {})))


class FakeMetrics:
    Gauge = RecordingMetric
    Counter = RecordingMetric


@pytest.fixture
def ray_metrics(monkeypatch):
    monkeypatch.setattr(metrics_module.ray, "is_initialized", lambda: True)
    monkeypatch.setattr(metrics_module, "metrics", FakeMetrics)


def test_metrics_disabled_without_ray(monkeypatch):
    monkeypatch.setattr(metrics_module.ray, "is_initialized", lambda: False)

    recorder = ControllerMetrics("scalingpolicy")
    recorder.observe_sync(0.01, "success")
    recorder.record_retry()
    recorder.record_drop()

    assert recorder.enabled is False
    assert recorder.sync_latency_gauge is None
    assert recorder.retry_counter is None


def test_metrics_record_latency_and_retries(ray_metrics):
    recorder = ControllerMetrics("scalingpolicy")

    recorder.observe_sync(0.25, "error")
    recorder.record_retry()
    recorder.record_drop()

    assert recorder.sync_latency_gauge.calls == [(250.0, {"queue": "scalingpolicy", "outcome": "error"})]
    assert [tags["action"] for _, tags in recorder.retry_counter.calls] == ["requeued", "dropped"]


def test_controller_emits_sync_and_retry_metrics(ray_metrics, fake_informer, recording_client, make_policy):
    controller = AnnotationController(
        fake_informer, recording_client, error_sink=ErrorSink(), config=ControllerConfig(max_retries=1)
    )
    try:
        fake_informer.store.add(make_policy(cpu=80))
        controller.sync("default/web")
        controller.handle_err(ApiError("boom"), "default/web")
        controller.handle_err(ApiError("boom"), "default/web")
    finally:
        controller.queue.shut_down()

    outcomes = [tags["outcome"] for _, tags in controller.metrics.sync_latency_gauge.calls]
    assert outcomes == ["success"]
    actions = [tags["action"] for _, tags in controller.metrics.retry_counter.calls]
    assert actions == ["requeued", "dropped"]
