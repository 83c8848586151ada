"""
Scaling policy registry and local client tests.
"""

from __future__ import annotations

import pytest

from hpaannotator.core.client import LocalApiClient
from hpaannotator.core.entities import EventType
from hpaannotator.core.errors import (
    AlreadyExistsError,
    ApiError,
    ConflictError,
    ExpiredError,
    NotFoundError,
)
from hpaannotator.core.registry import ScalingPolicyRegistry


@pytest.fixture
def client():
    return LocalApiClient(ScalingPolicyRegistry(max_events=5))


def test_create_assigns_version_and_uid(client, make_policy):
    created = client.create(make_policy(cpu=80))

    assert created.metadata.resource_version == "1"
    assert created.metadata.uid
    with pytest.raises(AlreadyExistsError):
        client.create(make_policy(cpu=80))


def test_update_replaces_object_and_bumps_version(client, make_policy):
    created = client.create(make_policy(cpu=80))
    copy = created.deep_copy()
    copy.metadata.annotations = {"cpuTargetUtilization": "80"}

    updated = client.update("default", copy)

    assert updated.metadata.resource_version == "2"
    assert updated.metadata.uid == created.metadata.uid
    assert client.get("default", "web").annotations == {"cpuTargetUtilization": "80"}


def test_identical_update_is_noop(client, make_policy):
    created = client.create(make_policy(cpu=80, annotations={"cpuTargetUtilization": "80"}))

    again = client.update("default", created.deep_copy())

    assert again.metadata.resource_version == created.metadata.resource_version
    state = client.registry.snapshot_state()
    assert state["stats"]["noop_updates"] == 1
    assert state["resourceVersion"] == 1


def test_stale_resource_version_conflicts(client, make_policy):
    created = client.create(make_policy(cpu=80))
    first = created.deep_copy()
    first.metadata.annotations = {"a": "1"}
    client.update("default", first)

    stale = created.deep_copy()
    stale.metadata.annotations = {"a": "2"}
    with pytest.raises(ConflictError):
        client.update("default", stale)


def test_update_missing_object_not_found(client, make_policy):
    with pytest.raises(NotFoundError):
        client.update("default", make_policy(cpu=80))
    with pytest.raises(NotFoundError):
        client.get("default", "web")
    with pytest.raises(NotFoundError):
        client.delete("default", "web")


def test_update_namespace_mismatch_rejected(client, make_policy):
    client.create(make_policy(cpu=80))
    with pytest.raises(ApiError):
        client.update("other", make_policy(cpu=80))


def test_list_and_watch_filter_by_namespace(client, make_policy):
    client.create(make_policy(name="a", namespace="prod", cpu=10))
    client.create(make_policy(name="b", namespace="dev", cpu=20))

    items, version = client.list("prod")
    assert [policy.name for policy in items] == ["a"]
    assert version == 2

    events, _ = client.watch(0, timeout=0, namespace="dev")
    assert [(event.type, event.object.name) for event in events] == [(EventType.ADDED, "b")]


def test_watch_returns_events_after_version(client, make_policy):
    created = client.create(make_policy(cpu=80))
    client.delete("default", "web")

    events, version = client.watch(1, timeout=0)

    assert version == 2
    assert [event.type for event in events] == [EventType.DELETED]
    assert events[0].object.metadata.uid == created.metadata.uid


def test_watch_times_out_without_events(client):
    events, version = client.watch(0, timeout=0.05)
    assert events == []
    assert version == 0


def test_compacted_watch_expires(client, make_policy):
    for idx in range(8):
        client.create(make_policy(name=f"p{idx}", cpu=idx))

    with pytest.raises(ExpiredError):
        client.watch(1, timeout=0)
    events, _ = client.watch(3, timeout=0)
    assert len(events) == 5


def test_injected_failures_are_consumed(client, make_policy):
    client.create(make_policy(cpu=80))
    client.registry.inject_failures("get", 2, reason="Conflict")

    with pytest.raises(ConflictError):
        client.get("default", "web")
    with pytest.raises(ConflictError):
        client.get("default", "web")
    assert client.get("default", "web").name == "web"


def test_invalid_object_rejected(client):
    result = client.registry.create({"metadata": {}})
    assert result["success"] is False
    with pytest.raises(ApiError):
        client._checked("create", {"metadata": {}})  # pylint: disable=protected-access


def test_returned_versions_match_stored_object(client, make_policy):
    created = client.create(make_policy(cpu=80))
    assert created.metadata.resource_version == client.get("default", "web").metadata.resource_version

    changed = created.deep_copy()
    changed.metadata.annotations = {"cpuTargetUtilization": "80"}
    updated = client.update("default", changed)
    assert updated.metadata.resource_version == client.get("default", "web").metadata.resource_version == "2"


def test_writing_back_returned_object_keeps_optimistic_concurrency(client, make_policy):
    created = client.create(make_policy(cpu=80))

    # 另一个写者基于同一个返回值先完成更新
    winner = created.deep_copy()
    winner.metadata.annotations = {"owner": "a"}
    client.update("default", winner)

    loser = created.deep_copy()
    loser.metadata.annotations = {"owner": "b"}
    with pytest.raises(ConflictError):
        client.update("default", loser)
    assert client.get("default", "web").annotations == {"owner": "a"}
    assert client.registry.snapshot_state()["stats"]["conflicts"] == 1


def test_update_result_marks_noop(client, make_policy):
    created = client.create(make_policy(cpu=80))

    result = client.registry.update("default", created.to_dict())
    assert result["success"] is True
    assert result["noop"] is True

    changed = created.deep_copy()
    changed.metadata.annotations = {"cpuTargetUtilization": "80"}
    assert client.registry.update("default", changed.to_dict())["noop"] is False
