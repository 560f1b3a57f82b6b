from fastapi import HTTPException, Request

from broker.errors import BrokerError
from broker.services.lifecycle import LifecycleController


def get_controller(request: Request) -> LifecycleController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Broker is not initialized")
    return controller


def http_error(error: BrokerError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
