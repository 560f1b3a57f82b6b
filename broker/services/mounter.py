"""
Mount client for the shared NFS root.

The remote export is mounted once per process onto a local root directory;
each service instance then owns one share directory beneath it.
"""

from __future__ import annotations

import logging
import posixpath
import shutil
import subprocess
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Sequence, Tuple

from broker.config import CELL_BASE_PATH, DEFAULT_NFS_V3_OPTIONS
from broker.errors import MountFailure, ShareNotFound, ShareOperationFailure

logger = logging.getLogger(__name__)


@dataclass
class MountState:
    local_root_path: str
    remote_host: str
    remote_root_path: str
    protocol_version: int
    mounted: bool = False


class Invoker(ABC):
    """Runs an external executable on behalf of the mounter."""

    @abstractmethod
    def invoke(self, executable: str, args: Sequence[str], check: bool = True) -> str:
        """Run `executable args...` and return its stdout.

        Raises OSError when the executable cannot be started and, with
        `check`, subprocess.CalledProcessError on a non-zero exit.
        """


class SubprocessInvoker(Invoker):
    def invoke(self, executable: str, args: Sequence[str], check: bool = True) -> str:
        result = subprocess.run(
            [executable, *args],
            capture_output=True,
            text=True,
            check=check,
        )
        return result.stdout


class Mounter(ABC):
    """Capability interface used by the lifecycle controller."""

    @abstractmethod
    def is_root_mounted(self) -> bool:
        pass

    @abstractmethod
    def mount_root(self, remote_path: str) -> str:
        """Probe and mount the remote root as one step; returns the local root."""

    @abstractmethod
    def create_share(self, name: str) -> str:
        pass

    @abstractmethod
    def delete_share(self, name: str) -> None:
        pass

    @abstractmethod
    def resolve_share_path(self, name: str) -> Tuple[str, str]:
        """Return (remote share path, cell-side local path) for a share."""

    @abstractmethod
    def get_config(self) -> Tuple[str, int]:
        """Return (remote host, protocol version)."""

    @abstractmethod
    def mount_state(self) -> MountState:
        pass


class NfsMounter(Mounter):
    """
    Mounter backed by the OS `mountpoint` and `mount` tools.

    The already-mounted probe compares the human readable output of
    `mountpoint`; a failing probe is logged and the mount is attempted anyway.
    """

    def __init__(
        self,
        remote_host: str,
        remote_root: str,
        version: int,
        local_root: str,
        invoker: Invoker | None = None,
    ):
        self._state = MountState(
            local_root_path=local_root,
            remote_host=remote_host,
            remote_root_path=remote_root,
            protocol_version=version,
        )
        self.invoker = invoker or SubprocessInvoker()
        self._lock = threading.Lock()

    @property
    def local_root(self) -> Path:
        return Path(self._state.local_root_path)

    def is_root_mounted(self) -> bool:
        return self._state.mounted

    def mount_state(self) -> MountState:
        return replace(self._state)

    # ========================================================================
    # ROOT MOUNT
    # ========================================================================

    def mount_root(self, remote_path: str) -> str:
        with self._lock:
            root = self._state.local_root_path
            try:
                self.local_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to create local root '{root}': {e}")
                raise MountFailure(f"failed to create local directory '{root}', mount filesystem failed") from e

            if self._probe_mounted():
                logger.info(f"Local root '{root}' is already a mountpoint")
                self._state.mounted = True
                return root

            args = self._mount_args(remote_path)
            logger.info(f"Mounting NFS v{self._state.protocol_version}: mount {' '.join(args)}")
            try:
                self.invoker.invoke("mount", args)
            except (OSError, subprocess.SubprocessError) as e:
                logger.error(f"NFS mount of '{root}' failed: {e}")
                raise MountFailure(f"failed to mount '{self._remote_target(remote_path)}' on '{root}': {e}") from e

            self._state.mounted = True
            return root

    def _probe_mounted(self) -> bool:
        root = self._state.local_root_path
        try:
            out = self.invoker.invoke("mountpoint", [root], check=False)
        except OSError as e:
            logger.warning(f"mountpoint probe for '{root}' failed: {e}")
            return False
        normalized = (out or "").replace("\n", "").strip()
        return normalized.lower() == f"{root} is a mountpoint".lower()

    def _remote_target(self, remote_path: str) -> str:
        return f"{self._state.remote_host}:{remote_path}"

    def _mount_args(self, remote_path: str) -> List[str]:
        target = self._remote_target(remote_path)
        root = self._state.local_root_path
        if self._state.protocol_version == 3:
            return ["-o", DEFAULT_NFS_V3_OPTIONS, target, root]
        return ["-t", "nfs4", target, root]

    # ========================================================================
    # SHARES
    # ========================================================================

    def _share_path(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ShareOperationFailure(f"invalid share name '{name}'")
        return self.local_root / name

    def create_share(self, name: str) -> str:
        share_path = self._share_path(name)
        try:
            share_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create share '{share_path}': {e}")
            raise ShareOperationFailure(f"failed to create share '{share_path}'") from e
        logger.info(f"Share created: {share_path}")
        return str(share_path)

    def delete_share(self, name: str) -> None:
        share_path = self._share_path(name)
        if not share_path.exists() and not share_path.is_symlink():
            logger.info(f"Share '{share_path}' already absent")
            return
        try:
            shutil.rmtree(share_path)
        except OSError as e:
            logger.error(f"Failed to delete share '{share_path}': {e}")
            raise ShareOperationFailure(f"failed to delete share '{share_path}'") from e
        logger.info(f"Share deleted: {share_path}")

    def resolve_share_path(self, name: str) -> Tuple[str, str]:
        share_path = self._share_path(name)
        if not share_path.is_dir():
            raise ShareNotFound(f"share '{name}' not found")
        remote_share_path = posixpath.join(self._state.remote_root_path, name)
        cell_path = posixpath.join(CELL_BASE_PATH, name)
        return remote_share_path, cell_path

    def get_config(self) -> Tuple[str, int]:
        if not self._state.remote_host or not self._state.protocol_version:
            raise MountFailure("error retrieving nfs config details")
        return self._state.remote_host, self._state.protocol_version


class LocalMounter(NfsMounter):
    """
    Mounter that treats the local root as already mounted.

    Used when the broker runs without an NFS server; shares are plain
    directories under the local root.
    """

    def _probe_mounted(self) -> bool:
        return True
