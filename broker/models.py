from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import enum
import posixpath

from pydantic import BaseModel, Field, field_validator

from broker.errors import ValidationFailure

# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class StateCategory(str, enum.Enum):
    """Persisted record categories, one state file each"""
    INSTANCES = "service_instances"
    BINDINGS = "service_bindings"

class MountMode(str, enum.Enum):
    """Access mode handed to the consumer's volume driver"""
    READ_ONLY = "r"
    READ_WRITE = "rw"

class OperationState(str, enum.Enum):
    """Asynchronous operation state reported in last_operation"""
    IN_PROGRESS = "in progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ============================================================================
# CATALOG
# ============================================================================

class ServicePlan(BaseModel):
    id: str
    name: str
    description: str
    free: bool = True


class Service(BaseModel):
    id: str
    name: str
    description: str
    bindable: bool = True
    plan_updateable: bool = False
    tags: List[str] = Field(default_factory=list)
    requires: List[str] = Field(default_factory=list)
    plans: List[ServicePlan] = Field(default_factory=list)


class Catalog(BaseModel):
    services: List[Service]


# ============================================================================
# SERVICE INSTANCES
# ============================================================================

class ParametersBody(BaseModel):
    """Request body carrying a free-form parameters map; null reads as empty."""
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def null_parameters_as_empty(cls, value):
        return {} if value is None else value


class LastOperation(BaseModel):
    state: OperationState = OperationState.IN_PROGRESS
    description: str = ""
    async_poll_interval_seconds: int = 0


class ProvisionRequest(ParametersBody):
    service_id: str = ""
    plan_id: str = ""
    organization_guid: str = ""
    space_guid: str = ""


class UpdateRequest(ParametersBody):
    service_id: str = ""
    plan_id: Optional[str] = None


class ProvisionResponse(BaseModel):
    dashboard_url: str
    last_operation: Optional[LastOperation] = None


class ServiceInstance(BaseModel):
    """Provisioned instance; only last_operation changes after creation"""
    instance_id: str
    service_id: str = ""
    plan_id: str = ""
    organization_guid: str = ""
    space_guid: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    dashboard_url: str = ""
    last_operation: Optional[LastOperation] = None

    def to_response(self) -> ProvisionResponse:
        return ProvisionResponse(
            dashboard_url=self.dashboard_url,
            last_operation=self.last_operation,
        )


# ============================================================================
# SERVICE BINDINGS
# ============================================================================

class MountConfig(BaseModel):
    remote_info: str
    version: int
    remote_mountpoint: str
    local_mountpoint: str


class SharedDevice(BaseModel):
    volume_id: str
    mount_config: MountConfig


class VolumeMount(BaseModel):
    container_dir: str
    mode: MountMode
    driver: str
    device_type: str = "shared"
    device: SharedDevice


class BindRequest(ParametersBody):
    service_id: str = ""
    plan_id: str = ""
    app_guid: str = ""


class BindResponse(BaseModel):
    credentials: Dict[str, Any] = Field(default_factory=dict)
    volume_mounts: List[VolumeMount] = Field(default_factory=list)


class ServiceBinding(BaseModel):
    """Binding record; binding ids are unique across all instances"""
    binding_id: str
    instance_id: str
    service_id: str = ""
    plan_id: str = ""
    app_guid: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    response: BindResponse = Field(default_factory=BindResponse)


# ============================================================================
# BIND PARAMETERS
# ============================================================================

@dataclass
class BindParameters:
    """
    Typed view over a bind request's parameters.

    Recognized keys are type-checked; anything else is kept in `extra`
    untouched.
    """
    readonly: Optional[bool] = None
    container_path: Optional[str] = None
    path: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, raw: Optional[Dict[str, Any]]) -> "BindParameters":
        raw = dict(raw or {})
        parsed = cls()
        if "readonly" in raw:
            readonly = raw.pop("readonly")
            if not isinstance(readonly, bool):
                raise ValidationFailure(f"parameter 'readonly' must be a boolean, got {readonly!r}")
            parsed.readonly = readonly
        for key in ("container_path", "path"):
            if key not in raw:
                continue
            value = raw.pop(key)
            if not isinstance(value, str):
                raise ValidationFailure(f"parameter '{key}' must be a string, got {value!r}")
            setattr(parsed, key, value)
        parsed.extra = raw
        return parsed

    def container_dir(self, instance_id: str, default_root: str) -> str:
        # An empty override counts as absent
        if self.container_path:
            return self.container_path
        if self.path:
            return self.path
        return posixpath.join(default_root, instance_id)

    @property
    def mode(self) -> MountMode:
        if self.readonly:
            return MountMode.READ_ONLY
        return MountMode.READ_WRITE
