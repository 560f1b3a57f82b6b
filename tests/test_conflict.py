"""Tests for replay/conflict classification."""
from broker.models import BindRequest, ProvisionRequest, ServiceBinding, ServiceInstance
from broker.services.conflict import (
    binding_differences,
    binding_matches,
    instance_differences,
    instance_matches,
)

REQUEST = ProvisionRequest(
    service_id="svc",
    plan_id="plan",
    organization_guid="org",
    space_guid="space",
    parameters={"nested": {"list": [1, 2]}},
)


def _stored_instance(request=REQUEST):
    return ServiceInstance(instance_id="inst-1", dashboard_url="http://dashboard_url", **request.model_dump())


def test_identical_request_matches():
    assert instance_matches(_stored_instance(), REQUEST.model_copy(deep=True))


def test_each_field_is_compared():
    for field, value in [
        ("service_id", "other"),
        ("plan_id", "other"),
        ("organization_guid", "other"),
        ("space_guid", "other"),
    ]:
        request = REQUEST.model_copy(update={field: value})
        assert instance_differences(_stored_instance(), request) == [field]


def test_nested_parameter_difference_conflicts():
    request = REQUEST.model_copy(update={"parameters": {"nested": {"list": [1, 3]}}})
    assert instance_differences(_stored_instance(), request) == ["parameters"]


def test_bool_and_int_parameters_differ():
    stored = _stored_instance(REQUEST.model_copy(update={"parameters": {"flag": True}}))
    request = REQUEST.model_copy(update={"parameters": {"flag": 1}})
    assert not instance_matches(stored, request)


def test_extra_parameter_key_conflicts():
    request = REQUEST.model_copy(update={"parameters": {"nested": {"list": [1, 2]}, "extra": "x"}})
    assert not instance_matches(_stored_instance(), request)


def test_binding_matches_only_on_same_instance():
    request = BindRequest(service_id="svc", plan_id="plan", app_guid="app", parameters={"readonly": True})
    stored = ServiceBinding(binding_id="b1", instance_id="inst-1", **request.model_dump())

    assert binding_matches(stored, "inst-1", request)
    assert binding_differences(stored, "inst-2", request) == ["instance_id"]


def test_binding_app_and_parameters_compared():
    request = BindRequest(app_guid="app", parameters={"readonly": True})
    stored = ServiceBinding(binding_id="b1", instance_id="inst-1", **request.model_dump())
    changed = BindRequest(app_guid="other-app", parameters={"readonly": False})

    assert binding_differences(stored, "inst-1", changed) == ["app_guid", "parameters"]
