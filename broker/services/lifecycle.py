"""
Service instance and binding lifecycle.

Provision, deprovision, bind and unbind are serialized behind one
process-wide lock covering validation, the mounter side effect and the
state file write.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Tuple

from broker.config import (
    BrokerSettings,
    DEFAULT_CONTAINER_PATH,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEPROVISION_STRICT,
)
from broker.errors import (
    BindingNotFound,
    BindingsOutstanding,
    Conflict,
    InstanceNotFound,
    NotImplementedFailure,
    PersistenceFailure,
    ShareOperationFailure,
    ValidationFailure,
)
from broker.models import (
    BindParameters,
    BindRequest,
    BindResponse,
    Catalog,
    LastOperation,
    MountConfig,
    OperationState,
    ProvisionRequest,
    ProvisionResponse,
    Service,
    ServiceBinding,
    ServiceInstance,
    ServicePlan,
    SharedDevice,
    StateCategory,
    UpdateRequest,
    VolumeMount,
)
from broker.services.conflict import binding_differences, instance_differences
from broker.services.mounter import Mounter
from broker.services.state_store import StateStore

logger = logging.getLogger(__name__)


class LifecycleController:
    """
    Orchestrates the broker lifecycle over a mounter and a state store.

    Both collaborators are owned by the controller; nothing else should
    mutate the store's maps while the controller is in use.
    """

    def __init__(self, mounter: Mounter, store: StateStore, settings: BrokerSettings | None = None):
        self.mounter = mounter
        self.store = store
        self.settings = settings or BrokerSettings()
        self._lock = threading.Lock()

    # ========================================================================
    # CATALOG
    # ========================================================================

    def catalog(self) -> Catalog:
        s = self.settings
        plan = ServicePlan(id=s.plan_id, name=s.plan_name, description=s.plan_description, free=True)
        service = Service(
            id=s.service_id,
            name=s.service_name,
            description=f"Provides the {s.service_name.upper()} volume service, including volume creation and volume mounts",
            bindable=True,
            plan_updateable=False,
            tags=[s.service_name],
            requires=["volume_mount"],
            plans=[plan],
        )
        return Catalog(services=[service])

    # ========================================================================
    # SERVICE INSTANCES
    # ========================================================================

    def _ensure_root_mounted(self) -> None:
        if not self.mounter.is_root_mounted():
            self.mounter.mount_root(self.settings.remote_root)

    def get_instance(self, instance_id: str) -> ServiceInstance:
        instance = self.store.instances.get(instance_id)
        if instance is None:
            raise InstanceNotFound(f"service instance '{instance_id}' does not exist")
        return instance

    def provision(self, instance_id: str, request: ProvisionRequest) -> Tuple[ProvisionResponse, bool]:
        """
        Create a service instance backed by a new share directory.

        Returns (response, created). A repeat of an identical request returns
        the stored response with created=False and no side effects.
        """
        with self._lock:
            existing = self.store.instances.get(instance_id)
            if existing is not None:
                differences = instance_differences(existing, request)
                if differences:
                    logger.warning(f"Provision conflict for instance {instance_id}: {', '.join(differences)} differ")
                    raise Conflict(f"service instance '{instance_id}' already exists with different attributes")
                logger.info(f"Provision replay for instance {instance_id}")
                return existing.to_response(), False

            self._ensure_root_mounted()
            share_path = self.mounter.create_share(instance_id)

            instance = ServiceInstance(
                instance_id=instance_id,
                service_id=request.service_id,
                plan_id=request.plan_id,
                organization_guid=request.organization_guid,
                space_guid=request.space_guid,
                parameters=copy.deepcopy(request.parameters),
                dashboard_url=self.settings.dashboard_url,
                last_operation=LastOperation(
                    state=OperationState.IN_PROGRESS,
                    description=f"creating {self.settings.service_name} service instance",
                    async_poll_interval_seconds=DEFAULT_POLL_INTERVAL_SECONDS,
                ),
            )
            updated = dict(self.store.instances)
            updated[instance_id] = instance
            try:
                self.store.persist(StateCategory.INSTANCES, updated)
            except PersistenceFailure:
                self._discard_share(instance_id)
                raise

            logger.info(f"Provisioned instance {instance_id} at {share_path}")
            return instance.to_response(), True

    def _discard_share(self, instance_id: str) -> None:
        try:
            self.mounter.delete_share(instance_id)
        except ShareOperationFailure as e:
            logger.error(f"Could not remove share of unrecorded instance {instance_id}: {e}")

    def deprovision(self, instance_id: str) -> None:
        with self._lock:
            if instance_id not in self.store.instances:
                raise InstanceNotFound(f"service instance '{instance_id}' does not exist")

            bound = sorted(
                binding.binding_id
                for binding in self.store.bindings.values()
                if binding.instance_id == instance_id
            )
            if bound:
                if self.settings.deprovision_policy == DEPROVISION_STRICT:
                    raise BindingsOutstanding(
                        f"service instance '{instance_id}' still has bindings: {', '.join(bound)}"
                    )
                logger.warning(f"Deprovisioning instance {instance_id} with outstanding bindings: {', '.join(bound)}")

            self._ensure_root_mounted()
            self.mounter.delete_share(instance_id)

            updated = dict(self.store.instances)
            del updated[instance_id]
            self.store.persist(StateCategory.INSTANCES, updated)
            logger.info(f"Deprovisioned instance {instance_id}")

    def update(self, instance_id: str, request: UpdateRequest) -> ProvisionResponse:
        raise NotImplementedFailure("updating a service instance is not supported")

    def last_operation(self, instance_id: str) -> LastOperation:
        raise NotImplementedFailure("polling the last operation is not supported")

    # ========================================================================
    # SERVICE BINDINGS
    # ========================================================================

    def bind(self, instance_id: str, binding_id: str, request: BindRequest) -> Tuple[BindResponse, bool]:
        """
        Grant a share to a consumer as a volume-mount descriptor.

        Returns (response, created) like provision.
        """
        with self._lock:
            if instance_id not in self.store.instances:
                raise InstanceNotFound(f"service instance '{instance_id}' does not exist")
            if not request.app_guid:
                raise ValidationFailure("app_guid is required to bind")

            existing = self.store.bindings.get(binding_id)
            if existing is not None:
                differences = binding_differences(existing, instance_id, request)
                if differences:
                    logger.warning(f"Bind conflict for binding {binding_id}: {', '.join(differences)} differ")
                    raise Conflict(f"service binding '{binding_id}' already exists with different attributes")
                logger.info(f"Bind replay for binding {binding_id}")
                return existing.response, False

            params = BindParameters.parse(request.parameters)

            self._ensure_root_mounted()
            remote_share_path, cell_path = self.mounter.resolve_share_path(instance_id)
            remote_host, version = self.mounter.get_config()

            volume_mount = VolumeMount(
                container_dir=params.container_dir(instance_id, DEFAULT_CONTAINER_PATH),
                mode=params.mode,
                driver=f"{self.settings.service_name}driver",
                device_type="shared",
                device=SharedDevice(
                    volume_id=instance_id,
                    mount_config=MountConfig(
                        remote_info=remote_host.split(":")[0],
                        version=version,
                        remote_mountpoint=remote_share_path,
                        local_mountpoint=cell_path,
                    ),
                ),
            )
            response = BindResponse(credentials={}, volume_mounts=[volume_mount])

            binding = ServiceBinding(
                binding_id=binding_id,
                instance_id=instance_id,
                service_id=request.service_id,
                plan_id=request.plan_id,
                app_guid=request.app_guid,
                parameters=copy.deepcopy(request.parameters),
                response=response,
            )
            updated = dict(self.store.bindings)
            updated[binding_id] = binding
            self.store.persist(StateCategory.BINDINGS, updated)

            logger.info(
                f"Bound instance {instance_id} as {binding_id} "
                f"({volume_mount.mode.value} at {volume_mount.container_dir})"
            )
            return response, True

    def _lookup_binding(self, instance_id: str, binding_id: str) -> ServiceBinding:
        binding = self.store.bindings.get(binding_id)
        if binding is None or binding.instance_id != instance_id:
            raise BindingNotFound(f"service binding '{binding_id}' does not exist")
        return binding

    def unbind(self, instance_id: str, binding_id: str) -> None:
        with self._lock:
            if instance_id not in self.store.instances:
                raise InstanceNotFound(f"service instance '{instance_id}' does not exist")
            self._lookup_binding(instance_id, binding_id)

            updated = dict(self.store.bindings)
            del updated[binding_id]
            self.store.persist(StateCategory.BINDINGS, updated)
            logger.info(f"Unbound {binding_id} from instance {instance_id}")

    def get_binding(self, instance_id: str, binding_id: str) -> ServiceBinding:
        return self._lookup_binding(instance_id, binding_id)
