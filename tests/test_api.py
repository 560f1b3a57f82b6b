"""Tests for the service-broker HTTP endpoints."""
from fastapi.testclient import TestClient

from broker.service import create_app

PROVISION_BODY = {
    "service_id": "nfs-service-guid",
    "plan_id": "free-plan-guid",
    "organization_guid": "org-1",
    "space_guid": "space-1",
    "parameters": {},
}

BIND_BODY = {
    "service_id": "nfs-service-guid",
    "plan_id": "free-plan-guid",
    "app_guid": "app-1",
    "parameters": {"readonly": True},
}


def _provision(client, instance_id="inst-1", body=PROVISION_BODY):
    return client.put(f"/v2/service_instances/{instance_id}", json=body)


def _binding_url(instance_id="inst-1", binding_id="b1"):
    return f"/v2/service_instances/{instance_id}/service_bindings/{binding_id}"


def test_root_banner(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["service"] == "nfsbroker"


def test_catalog(client):
    r = client.get("/v2/catalog")

    assert r.status_code == 200
    service = r.json()["services"][0]
    assert service["name"] == "nfs"
    assert service["bindable"] is True
    assert service["requires"] == ["volume_mount"]
    assert len(service["plans"]) == 1


def test_provision_then_replay(client):
    first = _provision(client)
    second = _provision(client)

    assert first.status_code == 201
    assert second.status_code == 200
    assert first.json() == second.json()
    assert first.json()["last_operation"] == {
        "state": "in progress",
        "description": "creating nfs service instance",
        "async_poll_interval_seconds": 10,
    }


def test_provision_conflict(client):
    _provision(client)
    r = _provision(client, body={**PROVISION_BODY, "space_guid": "space-2"})
    assert r.status_code == 409


def test_update_and_last_operation_are_not_implemented(client):
    _provision(client)

    assert client.patch("/v2/service_instances/inst-1", json={"plan_id": "x"}).status_code == 501
    assert client.get("/v2/service_instances/inst-1/last_operation").status_code == 501


def test_deprovision(client):
    _provision(client)

    r = client.delete("/v2/service_instances/inst-1")
    assert r.status_code == 200
    assert r.json() == {}

    gone = client.delete("/v2/service_instances/inst-1")
    assert gone.status_code == 410


def test_bind_without_instance(client):
    r = client.put(_binding_url(), json=BIND_BODY)
    assert r.status_code == 404


def test_bind_lifecycle(client):
    _provision(client)

    created = client.put(_binding_url(), json=BIND_BODY)
    assert created.status_code == 201
    body = created.json()
    assert body["credentials"] == {}
    mount = body["volume_mounts"][0]
    assert mount["mode"] == "r"
    assert mount["device_type"] == "shared"
    assert mount["device"]["volume_id"] == "inst-1"
    assert mount["device"]["mount_config"]["remote_mountpoint"] == "/export/inst-1"

    replay = client.put(_binding_url(), json=BIND_BODY)
    assert replay.status_code == 200
    assert replay.json() == body

    fetched = client.get(_binding_url())
    assert fetched.status_code == 200
    assert fetched.json() == body

    assert client.delete(_binding_url()).status_code == 200
    assert client.get(_binding_url()).status_code == 404
    assert client.delete(_binding_url()).status_code == 410


def test_bind_validation_failure(client):
    _provision(client)
    r = client.put(_binding_url(), json={**BIND_BODY, "parameters": {"readonly": "yes"}})
    assert r.status_code == 422


def test_bind_conflict(client):
    _provision(client)
    client.put(_binding_url(), json=BIND_BODY)
    r = client.put(_binding_url(), json={**BIND_BODY, "app_guid": "app-2"})
    assert r.status_code == 409


def test_mount_failure_is_server_error(client, invoker):
    invoker.mount_error = OSError("mount.nfs: connection refused")
    r = _provision(client)
    assert r.status_code == 500


def test_uninitialized_app_is_unavailable():
    client = TestClient(create_app())
    assert client.get("/v2/catalog").status_code == 503


def test_unbind_from_missing_instance_is_gone(client):
    r = client.delete(_binding_url(instance_id="nope"))
    assert r.status_code == 410
    assert r.json() == {}


def test_null_parameters_read_as_empty(client):
    r = _provision(client, body={**PROVISION_BODY, "parameters": None})
    assert r.status_code == 201

    bound = client.put(_binding_url(), json={**BIND_BODY, "parameters": None})
    assert bound.status_code == 201
    assert bound.json()["volume_mounts"][0]["mode"] == "rw"

    replay = _provision(client)
    assert replay.status_code == 200


def test_bind_without_app_guid_is_rejected(client):
    _provision(client)
    r = client.put(_binding_url(), json={**BIND_BODY, "app_guid": ""})
    assert r.status_code == 422
