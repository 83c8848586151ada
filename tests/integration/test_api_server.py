"""
Integration tests for the Ray-backed API server actor and client.
"""

from __future__ import annotations

import pytest
import ray

from hpaannotator.core.actors import ActorConfig, ApiServerActor
from hpaannotator.core.client import RayApiClient
from hpaannotator.core.errors import ConflictError, NotFoundError


@pytest.fixture
def api_client(ray_runtime, head_name):
    actor = ApiServerActor.remote(ActorConfig(name=head_name, max_events=50))
    try:
        yield RayApiClient(actor)
    finally:
        ray.kill(actor, no_restart=True)


def test_actor_health_check(api_client, head_name):
    result = ray.get(api_client.actor.health_check.remote())
    assert result == {"success": True, "name": head_name}


def test_create_update_conflict_round_trip(api_client, make_policy):
    created = api_client.create(make_policy(cpu=80))
    assert created.metadata.resource_version == "1"

    fresh = created.deep_copy()
    fresh.metadata.annotations = {"cpuTargetUtilization": "80"}
    updated = api_client.update("default", fresh)
    assert updated.annotations == {"cpuTargetUtilization": "80"}

    stale = created.deep_copy()
    stale.metadata.annotations = {"cpuTargetUtilization": "10"}
    with pytest.raises(ConflictError):
        api_client.update("default", stale)


def test_missing_policy_errors(api_client, make_policy):
    with pytest.raises(NotFoundError):
        api_client.get("default", "missing")
    with pytest.raises(NotFoundError):
        api_client.update("default", make_policy(name="missing", cpu=10))


def test_list_and_watch_through_actor(api_client, make_policy):
    api_client.create(make_policy(name="a", cpu=10))
    api_client.create(make_policy(name="b", memory=20))

    items, version = api_client.list()
    assert sorted(policy.name for policy in items) == ["a", "b"]
    assert version == 2

    api_client.delete("default", "a")
    events, latest = api_client.watch(version, timeout=1.0)
    assert latest == 3
    assert [(event.type.value, event.object.name) for event in events] == [("DELETED", "a")]

    state = ray.get(api_client.actor.snapshot_state.remote())
    assert state["objects"] == 1
    assert state["stats"]["deletes"] == 1


def test_identical_update_through_actor_is_noop(api_client, make_policy):
    created = api_client.create(make_policy(cpu=80, annotations={"cpuTargetUtilization": "80"}))

    again = api_client.update("default", created.deep_copy())

    assert again.metadata.resource_version == created.metadata.resource_version == "1"
    state = ray.get(api_client.actor.snapshot_state.remote())
    assert state["stats"]["noop_updates"] == 1
    assert state["stats"]["updates"] == 0
