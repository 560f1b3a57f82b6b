"""
NFS Broker Service Launcher

Starts the service-broker HTTP API backed by an NFS share root.

Usage:
    python scripts/run_broker_service.py --port 8980 --remote-host 10.10.130.49 --nfs-version 4

Environment Variables:
    NFSBROKER_BIND_HOST: Bind address (default: 0.0.0.0)
    NFSBROKER_PORT: API port (default: 8980)
    NFSBROKER_REMOTE_HOST: NFS server host (default: 10.10.130.49)
    NFSBROKER_REMOTE_ROOT: Exported directory on the NFS server (default: /var/vcap/store)
    NFSBROKER_NFS_VERSION: NFS protocol version, 3 or 4 (default: 4)
    NFSBROKER_STATE_DIR: Directory for the instance/binding state files (default: /tmp/nfsbroker)
    NFSBROKER_MOUNT_ROOT: Local directory the export is mounted on (default: /tmp/share)
    NFSBROKER_MOUNTER: 'nfs' or 'local' (default: nfs)
    NFSBROKER_DEPROVISION_POLICY: 'permissive' or 'strict' (default: permissive)
"""
import argparse
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

from broker.config import BrokerSettings
from broker.logging_config import setup_broker_logging
from broker.startup_profile import validate_broker_settings

_ENV_FLAGS = {
    "host": "NFSBROKER_BIND_HOST",
    "port": "NFSBROKER_PORT",
    "remote_host": "NFSBROKER_REMOTE_HOST",
    "remote_root": "NFSBROKER_REMOTE_ROOT",
    "nfs_version": "NFSBROKER_NFS_VERSION",
    "state_dir": "NFSBROKER_STATE_DIR",
    "mount_root": "NFSBROKER_MOUNT_ROOT",
    "mounter": "NFSBROKER_MOUNTER",
    "deprovision_policy": "NFSBROKER_DEPROVISION_POLICY",
    "log_level": "NFSBROKER_LOG_LEVEL",
    "log_file": "NFSBROKER_LOG_FILE",
}


def main() -> None:
    defaults = BrokerSettings.from_env()
    parser = argparse.ArgumentParser(description="Run the NFS service broker")
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--remote-host", default=defaults.remote_host, help="NFS server host")
    parser.add_argument("--remote-root", default=defaults.remote_root, help="exported directory on the NFS server")
    parser.add_argument("--nfs-version", type=int, default=defaults.nfs_version, help="NFS protocol version (3 or 4)")
    parser.add_argument("--state-dir", default=defaults.state_dir, help="directory for state files")
    parser.add_argument("--mount-root", default=defaults.mount_root, help="local directory to mount within")
    parser.add_argument("--mounter", choices=["nfs", "local"], default=defaults.mounter)
    parser.add_argument("--deprovision-policy", choices=["permissive", "strict"], default=defaults.deprovision_policy)
    parser.add_argument("--log-level", default=defaults.log_level)
    parser.add_argument("--log-file", default=defaults.log_file)
    args = parser.parse_args()

    # The app reads its settings from the environment on startup
    for attr, env_name in _ENV_FLAGS.items():
        os.environ[env_name] = str(getattr(args, attr))

    settings = BrokerSettings.from_env()
    validate_broker_settings(settings)
    setup_broker_logging(settings)

    print("=" * 60)
    print("NFS Service Broker")
    print("=" * 60)
    print(f"API Address: {settings.host}:{settings.port}")
    print(f"NFS Export: {settings.remote_host}:{settings.remote_root} (v{settings.nfs_version})")
    print(f"Mount Root: {settings.mount_root} ({settings.mounter})")
    print(f"State Dir: {settings.state_dir}")
    print("=" * 60)

    uvicorn.run("broker.service:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
