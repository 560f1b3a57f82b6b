import os
from dataclasses import dataclass


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except Exception:
        return default


def _str_env(name: str, default: str) -> str:
    return str(os.getenv(name, default)).strip()


DEFAULT_CONTAINER_PATH = "/var/vcap/data"
CELL_BASE_PATH = "/var/vcap/data/volumes"
DEFAULT_POLL_INTERVAL_SECONDS = 10
DEFAULT_NFS_V3_OPTIONS = "port=2049,nolock,proto=tcp"

MOUNTER_NFS = "nfs"
MOUNTER_LOCAL = "local"

DEPROVISION_PERMISSIVE = "permissive"
DEPROVISION_STRICT = "strict"


@dataclass(frozen=True)
class BrokerSettings:
    host: str = "0.0.0.0"
    port: int = 8980
    remote_host: str = "10.10.130.49"
    remote_root: str = "/var/vcap/store"
    nfs_version: int = 4
    state_dir: str = "/tmp/nfsbroker"
    mount_root: str = "/tmp/share"
    mounter: str = MOUNTER_NFS
    deprovision_policy: str = DEPROVISION_PERMISSIVE
    service_name: str = "nfs"
    service_id: str = "nfs-service-guid"
    plan_name: str = "free"
    plan_id: str = "free-plan-guid"
    plan_description: str = "free nfs filesystem"
    dashboard_url: str = "http://dashboard_url"
    log_level: str = "INFO"
    log_file: str = ""

    @classmethod
    def from_env(cls) -> "BrokerSettings":
        defaults = cls()
        return cls(
            host=_str_env("NFSBROKER_BIND_HOST", defaults.host),
            port=_int_env("NFSBROKER_PORT", defaults.port),
            remote_host=_str_env("NFSBROKER_REMOTE_HOST", defaults.remote_host),
            remote_root=_str_env("NFSBROKER_REMOTE_ROOT", defaults.remote_root),
            nfs_version=_int_env("NFSBROKER_NFS_VERSION", defaults.nfs_version),
            state_dir=_str_env("NFSBROKER_STATE_DIR", defaults.state_dir),
            mount_root=_str_env("NFSBROKER_MOUNT_ROOT", defaults.mount_root),
            mounter=_str_env("NFSBROKER_MOUNTER", defaults.mounter).lower(),
            deprovision_policy=_str_env("NFSBROKER_DEPROVISION_POLICY", defaults.deprovision_policy).lower(),
            service_name=_str_env("NFSBROKER_SERVICE_NAME", defaults.service_name),
            service_id=_str_env("NFSBROKER_SERVICE_ID", defaults.service_id),
            plan_name=_str_env("NFSBROKER_PLAN_NAME", defaults.plan_name),
            plan_id=_str_env("NFSBROKER_PLAN_ID", defaults.plan_id),
            plan_description=_str_env("NFSBROKER_PLAN_DESCRIPTION", defaults.plan_description),
            dashboard_url=_str_env("NFSBROKER_DASHBOARD_URL", defaults.dashboard_url),
            log_level=_str_env("NFSBROKER_LOG_LEVEL", defaults.log_level).upper(),
            log_file=_str_env("NFSBROKER_LOG_FILE", defaults.log_file),
        )
