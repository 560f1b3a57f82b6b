"""
NFS Broker Service Entrypoint

FastAPI application exposing the service-broker v2 endpoints.
The lifecycle controller is built on startup from environment settings
unless one was handed to create_app.
"""
from fastapi import FastAPI
import logging

from broker.api import bindings, catalog, instances
from broker.config import BrokerSettings, MOUNTER_LOCAL
from broker.services.lifecycle import LifecycleController
from broker.services.mounter import LocalMounter, Mounter, NfsMounter
from broker.services.state_store import StateStore
from broker.startup_profile import validate_broker_settings

logger = logging.getLogger(__name__)


def build_mounter(settings: BrokerSettings) -> Mounter:
    mounter_cls = LocalMounter if settings.mounter == MOUNTER_LOCAL else NfsMounter
    return mounter_cls(
        remote_host=settings.remote_host,
        remote_root=settings.remote_root,
        version=settings.nfs_version,
        local_root=settings.mount_root,
    )


def build_controller(settings: BrokerSettings) -> LifecycleController:
    validate_broker_settings(settings)
    store = StateStore(settings.state_dir)
    return LifecycleController(build_mounter(settings), store, settings)


def create_app(controller: LifecycleController | None = None) -> FastAPI:
    app = FastAPI(title="NFS Broker Service")
    app.state.controller = controller

    app.include_router(catalog.router)
    app.include_router(instances.router)
    app.include_router(bindings.router)

    @app.on_event("startup")
    def startup_init():
        """Build the controller from the environment if none was injected"""
        if app.state.controller is None:
            settings = BrokerSettings.from_env()
            app.state.controller = build_controller(settings)
            logger.info(
                f"Broker controller ready: mounter={settings.mounter}, "
                f"remote={settings.remote_host}:{settings.remote_root}, "
                f"state_dir={settings.state_dir}"
            )
        logger.info("NFS broker service startup complete")

    @app.on_event("shutdown")
    def shutdown_cleanup():
        logger.info("NFS broker service shutdown complete")

    @app.get("/")
    def root():
        settings = app.state.controller.settings if app.state.controller else BrokerSettings()
        return {
            "service": "nfsbroker",
            "service_name": settings.service_name,
            "message": "NFS service broker running",
        }

    return app


app = create_app()
