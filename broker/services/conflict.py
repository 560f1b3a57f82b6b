"""
Replay-versus-conflict classification for repeated lifecycle requests.

Fields are compared one by one so the conflict contract stays explicit when
records gain new attributes. Parameters compare as whole JSON values.
"""

from typing import Any, Dict, List, Tuple

from broker.models import BindRequest, ProvisionRequest, ServiceBinding, ServiceInstance


def _parameters_equal(left: Dict[str, Any], right: Dict[str, Any]) -> bool:
    # bool is an int subclass in Python; JSON keeps true and 1 apart
    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        if left.keys() != right.keys():
            return False
        return all(_parameters_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(_parameters_equal(a, b) for a, b in zip(left, right))
    return left == right


def instance_differences(existing: ServiceInstance, request: ProvisionRequest) -> List[str]:
    pairs: List[Tuple[str, Any, Any]] = [
        ("service_id", existing.service_id, request.service_id),
        ("plan_id", existing.plan_id, request.plan_id),
        ("organization_guid", existing.organization_guid, request.organization_guid),
        ("space_guid", existing.space_guid, request.space_guid),
    ]
    differences = [name for name, old, new in pairs if old != new]
    if not _parameters_equal(existing.parameters, request.parameters):
        differences.append("parameters")
    return differences


def instance_matches(existing: ServiceInstance, request: ProvisionRequest) -> bool:
    return not instance_differences(existing, request)


def binding_differences(existing: ServiceBinding, instance_id: str, request: BindRequest) -> List[str]:
    pairs: List[Tuple[str, Any, Any]] = [
        ("instance_id", existing.instance_id, instance_id),
        ("service_id", existing.service_id, request.service_id),
        ("plan_id", existing.plan_id, request.plan_id),
        ("app_guid", existing.app_guid, request.app_guid),
    ]
    differences = [name for name, old, new in pairs if old != new]
    if not _parameters_equal(existing.parameters, request.parameters):
        differences.append("parameters")
    return differences


def binding_matches(existing: ServiceBinding, instance_id: str, request: BindRequest) -> bool:
    return not binding_differences(existing, instance_id, request)
