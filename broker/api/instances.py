"""
Service instance endpoints (service-broker v2).

Endpoints:
- PUT /v2/service_instances/{instance_id}: provision (201 created, 200 replay)
- PATCH /v2/service_instances/{instance_id}: update (not supported, 501)
- GET /v2/service_instances/{instance_id}/last_operation: poll (not supported, 501)
- DELETE /v2/service_instances/{instance_id}: deprovision (200, 410 when absent)
"""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
import logging

from broker.api.common import get_controller, http_error
from broker.errors import BrokerError, InstanceNotFound
from broker.models import ProvisionRequest, ProvisionResponse, UpdateRequest
from broker.services.lifecycle import LifecycleController

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v2/service_instances", tags=["service_instances"])


@router.put("/{instance_id}", response_model=ProvisionResponse)
def provision_instance(
    instance_id: str,
    body: ProvisionRequest,
    response: Response,
    controller: LifecycleController = Depends(get_controller),
):
    try:
        result, created = controller.provision(instance_id, body)
    except BrokerError as e:
        logger.error(f"Provision {instance_id} failed: {e.message}")
        raise http_error(e)
    response.status_code = 201 if created else 200
    return result


@router.patch("/{instance_id}")
def update_instance(
    instance_id: str,
    body: UpdateRequest,
    controller: LifecycleController = Depends(get_controller),
):
    try:
        return controller.update(instance_id, body)
    except BrokerError as e:
        raise http_error(e)


@router.get("/{instance_id}/last_operation")
def get_last_operation(instance_id: str, controller: LifecycleController = Depends(get_controller)):
    try:
        return controller.last_operation(instance_id)
    except BrokerError as e:
        raise http_error(e)


@router.delete("/{instance_id}")
def deprovision_instance(instance_id: str, controller: LifecycleController = Depends(get_controller)):
    try:
        controller.deprovision(instance_id)
    except InstanceNotFound:
        return JSONResponse(status_code=410, content={})
    except BrokerError as e:
        logger.error(f"Deprovision {instance_id} failed: {e.message}")
        raise http_error(e)
    return {}
