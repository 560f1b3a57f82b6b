from __future__ import annotations

from broker.config import (
    BrokerSettings,
    DEPROVISION_PERMISSIVE,
    DEPROVISION_STRICT,
    MOUNTER_LOCAL,
    MOUNTER_NFS,
)


def _require_valid_port(port: int, field_name: str = "port") -> None:
    if int(port) < 1 or int(port) > 65535:
        raise ValueError(f"{field_name} must be in range 1..65535")


def _require_non_empty(value: str, field_name: str) -> None:
    if not str(value or "").strip():
        raise ValueError(f"{field_name} is required")


def validate_broker_settings(settings: BrokerSettings) -> None:
    _require_non_empty(settings.host, "host")
    _require_valid_port(settings.port)
    _require_non_empty(settings.state_dir, "state_dir")
    _require_non_empty(settings.mount_root, "mount_root")
    _require_non_empty(settings.service_name, "service_name")

    if settings.mounter not in {MOUNTER_NFS, MOUNTER_LOCAL}:
        raise ValueError(f"mounter must be '{MOUNTER_NFS}' or '{MOUNTER_LOCAL}', got '{settings.mounter}'")
    if settings.deprovision_policy not in {DEPROVISION_PERMISSIVE, DEPROVISION_STRICT}:
        raise ValueError(
            f"deprovision_policy must be '{DEPROVISION_PERMISSIVE}' or '{DEPROVISION_STRICT}', "
            f"got '{settings.deprovision_policy}'"
        )
    # bind descriptors advertise the remote export even for the local mounter
    _require_non_empty(settings.remote_host, "remote_host")
    _require_non_empty(settings.remote_root, "remote_root")
    if int(settings.nfs_version) <= 0:
        raise ValueError("nfs_version must be a positive integer")
