from fastapi import APIRouter, Depends

from broker.api.common import get_controller
from broker.models import Catalog
from broker.services.lifecycle import LifecycleController

router = APIRouter(prefix="/v2", tags=["catalog"])


@router.get("/catalog", response_model=Catalog)
def get_catalog(controller: LifecycleController = Depends(get_controller)):
    return controller.catalog()
