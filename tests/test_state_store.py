"""Tests for the flat-file state store."""
import json

import pytest

from broker.errors import PersistenceFailure
from broker.models import (
    BindResponse,
    LastOperation,
    ServiceBinding,
    ServiceInstance,
    StateCategory,
)
from broker.services.state_store import StateStore


def _instance(instance_id="inst-1", **overrides):
    fields = dict(
        instance_id=instance_id,
        service_id="nfs-service-guid",
        plan_id="free-plan-guid",
        organization_guid="org-1",
        space_guid="space-1",
        parameters={"quota": {"gb": 10}, "tags": ["a", "b"]},
        dashboard_url="http://dashboard_url",
        last_operation=LastOperation(description="creating", async_poll_interval_seconds=10),
    )
    fields.update(overrides)
    return ServiceInstance(**fields)


def test_missing_files_load_empty(tmp_path):
    store = StateStore(str(tmp_path / "state"))

    assert store.instances == {}
    assert store.bindings == {}
    assert store.load(StateCategory.INSTANCES) == {}


def test_malformed_file_loads_empty(tmp_path):
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    (state_dir / "service_instances.json").write_text("{not json")

    store = StateStore(str(state_dir))

    assert store.instances == {}


def test_non_object_file_loads_empty(tmp_path):
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    (state_dir / "service_bindings.json").write_text("[1, 2, 3]")

    assert StateStore(str(state_dir)).bindings == {}


def test_invalid_record_loads_empty(tmp_path):
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    (state_dir / "service_instances.json").write_text(json.dumps({"inst-1": {"plan_id": "p"}}))

    assert StateStore(str(state_dir)).instances == {}


def test_persist_round_trip(tmp_path):
    state_dir = str(tmp_path / "state")
    store = StateStore(state_dir)
    instances = {"inst-1": _instance(), "inst-2": _instance("inst-2", parameters={})}
    bindings = {
        "bind-1": ServiceBinding(
            binding_id="bind-1",
            instance_id="inst-1",
            app_guid="app-1",
            parameters={"readonly": True},
            response=BindResponse(),
        )
    }

    store.persist(StateCategory.INSTANCES, instances)
    store.persist(StateCategory.BINDINGS, bindings)

    reloaded = StateStore(state_dir)
    assert reloaded.instances == instances
    assert reloaded.bindings == bindings


def test_persist_replaces_in_memory_view(tmp_path):
    store = StateStore(str(tmp_path / "state"))
    mapping = {"inst-1": _instance()}

    store.persist(StateCategory.INSTANCES, mapping)
    mapping["inst-2"] = _instance("inst-2")

    assert list(store.instances) == ["inst-1"]


def test_file_is_keyed_by_id(tmp_path):
    store = StateStore(str(tmp_path / "state"))
    store.persist(StateCategory.INSTANCES, {"inst-1": _instance()})

    data = json.loads((tmp_path / "state" / "service_instances.json").read_text())

    assert list(data) == ["inst-1"]
    assert data["inst-1"]["organization_guid"] == "org-1"
    assert data["inst-1"]["last_operation"]["state"] == "in progress"


def test_persist_rewrites_whole_file(tmp_path):
    store = StateStore(str(tmp_path / "state"))
    store.persist(StateCategory.INSTANCES, {"inst-1": _instance(), "inst-2": _instance("inst-2")})
    store.persist(StateCategory.INSTANCES, {"inst-2": _instance("inst-2")})

    data = json.loads((tmp_path / "state" / "service_instances.json").read_text())

    assert list(data) == ["inst-2"]


def test_persist_failure_keeps_memory(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("state dir is a file")
    store = StateStore(str(blocker))

    with pytest.raises(PersistenceFailure):
        store.persist(StateCategory.INSTANCES, {"inst-1": _instance()})

    assert store.instances == {}
