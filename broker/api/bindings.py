from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
import logging

from broker.api.common import get_controller, http_error
from broker.errors import BindingNotFound, BrokerError, InstanceNotFound
from broker.models import BindRequest, BindResponse
from broker.services.lifecycle import LifecycleController

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v2/service_instances", tags=["service_bindings"])


@router.put("/{instance_id}/service_bindings/{binding_id}", response_model=BindResponse)
def bind_instance(
    instance_id: str,
    binding_id: str,
    body: BindRequest,
    response: Response,
    controller: LifecycleController = Depends(get_controller),
):
    try:
        result, created = controller.bind(instance_id, binding_id, body)
    except BrokerError as e:
        logger.error(f"Bind {binding_id} to {instance_id} failed: {e.message}")
        raise http_error(e)
    response.status_code = 201 if created else 200
    return result


@router.get("/{instance_id}/service_bindings/{binding_id}", response_model=BindResponse)
def get_binding(
    instance_id: str,
    binding_id: str,
    controller: LifecycleController = Depends(get_controller),
):
    try:
        binding = controller.get_binding(instance_id, binding_id)
    except BrokerError as e:
        raise http_error(e)
    return binding.response


@router.delete("/{instance_id}/service_bindings/{binding_id}")
def unbind_instance(
    instance_id: str,
    binding_id: str,
    controller: LifecycleController = Depends(get_controller),
):
    try:
        controller.unbind(instance_id, binding_id)
    except (InstanceNotFound, BindingNotFound):
        return JSONResponse(status_code=410, content={})
    except BrokerError as e:
        logger.error(f"Unbind {binding_id} from {instance_id} failed: {e.message}")
        raise http_error(e)
    return {}
