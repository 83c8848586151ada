"""
End-to-end tests: API server actor + informer + annotation controller.
"""

from __future__ import annotations

import ray

from hpaannotator.core.config import ControllerConfig
from hpaannotator.core.head import AnnotatorHead


def _annotations(head, name, namespace="default"):
    return head.client.get(namespace, name).annotations or {}


def _start_head(head_name, **config_overrides) -> AnnotatorHead:
    config = ControllerConfig(workers=3, **config_overrides)
    head = AnnotatorHead(name=head_name, config=config)
    assert head.start() is True
    return head


def test_head_start_stop(ray_runtime, head_name):
    head = _start_head(head_name)
    try:
        assert head._actor is not None  # pylint: disable=protected-access
        assert head.informer is not None
    finally:
        assert head.stop() is True
    assert head._actor is None  # pylint: disable=protected-access
    assert head.controller.queue.shutting_down()
    assert head.controller_error is None


def test_created_policy_gets_annotated(ray_runtime, head_name, make_policy, wait_until):
    head = _start_head(head_name)
    try:
        head.client.create(make_policy(cpu=70, memory=60, annotations={"owner": "sre"}))

        assert wait_until(lambda: _annotations(head, "web") == {
            "owner": "sre",
            "cpuTargetUtilization": "70",
            "memoryTargetValue": "60",
        })

        # editing the metrics re-triggers the sync
        current = head.client.get("default", "web")
        current.spec.metrics[0].target.average_utilization = 85
        head.client.update("default", current)
        assert wait_until(lambda: _annotations(head, "web").get("cpuTargetUtilization") == "85")

        # the controller's own write echoes back as a no-op, not a new version
        state = ray.get(head.client.actor.snapshot_state.remote())
        assert state["stats"]["updates"] == 3
    finally:
        head.stop()


def test_policy_without_metrics_left_alone(ray_runtime, head_name, make_policy, wait_until):
    head = _start_head(head_name)
    try:
        head.client.create(make_policy(name="plain"))
        head.client.create(make_policy(name="marker", cpu=50))
        assert wait_until(lambda: _annotations(head, "marker").get("cpuTargetUtilization") == "50")

        assert head.client.get("default", "plain").annotations is None
    finally:
        head.stop()


def test_transient_update_failures_are_retried(ray_runtime, head_name, make_policy, wait_until):
    head = _start_head(head_name)
    try:
        ray.get(head.client.actor.inject_failures.remote("update", 4, "InternalError"))
        head.client.create(make_policy(cpu=90))

        assert wait_until(lambda: _annotations(head, "web").get("cpuTargetUtilization") == "90", timeout=10.0)
        assert head.error_sink.total == 0
    finally:
        head.stop()


def test_deleted_policy_is_not_an_error(ray_runtime, head_name, make_policy, wait_until):
    head = _start_head(head_name)
    try:
        head.client.create(make_policy(cpu=40))
        assert wait_until(lambda: _annotations(head, "web").get("cpuTargetUtilization") == "40")

        head.client.delete("default", "web")
        assert wait_until(lambda: head.informer.store.get_by_key("default/web") is None)
        assert head.error_sink.total == 0
    finally:
        head.stop()


def test_namespace_scoped_controller(ray_runtime, head_name, make_policy, wait_until):
    head = _start_head(head_name, namespace="prod")
    try:
        head.client.create(make_policy(name="ignored", namespace="dev", cpu=10))
        head.client.create(make_policy(name="watched", namespace="prod", cpu=20))

        assert wait_until(lambda: _annotations(head, "watched", "prod").get("cpuTargetUtilization") == "20")
        assert head.client.get("dev", "ignored").annotations is None
    finally:
        head.stop()
