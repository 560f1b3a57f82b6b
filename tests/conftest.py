"""Pytest configuration for the NFS broker tests."""
import sys
from pathlib import Path

_PROJECT_ROOT = Path(__file__).parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

import pytest
from fastapi.testclient import TestClient

from broker.config import BrokerSettings
from broker.service import create_app
from broker.services.lifecycle import LifecycleController
from broker.services.mounter import Invoker, NfsMounter
from broker.services.state_store import StateStore


class FakeInvoker(Invoker):
    """Records invocations instead of running mountpoint/mount."""

    def __init__(self, probe_output="", probe_error=None, mount_error=None):
        self.probe_output = probe_output
        self.probe_error = probe_error
        self.mount_error = mount_error
        self.calls = []

    def invoke(self, executable, args, check=True):
        self.calls.append((executable, list(args)))
        if executable == "mountpoint":
            if self.probe_error is not None:
                raise self.probe_error
            return self.probe_output
        if executable == "mount" and self.mount_error is not None:
            raise self.mount_error
        return ""

    @property
    def mount_calls(self):
        return [args for executable, args in self.calls if executable == "mount"]


class CountingMounter(NfsMounter):
    """NfsMounter that counts share side effects."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.created = []
        self.deleted = []

    def create_share(self, name):
        self.created.append(name)
        return super().create_share(name)

    def delete_share(self, name):
        self.deleted.append(name)
        return super().delete_share(name)


@pytest.fixture
def invoker():
    return FakeInvoker()


@pytest.fixture
def mount_root(tmp_path):
    return tmp_path / "share"


@pytest.fixture
def state_dir(tmp_path):
    return tmp_path / "state"


@pytest.fixture
def settings(mount_root, state_dir):
    return BrokerSettings(
        remote_host="nfs.example.com",
        remote_root="/export",
        nfs_version=4,
        state_dir=str(state_dir),
        mount_root=str(mount_root),
    )


@pytest.fixture
def mounter(settings, invoker):
    return CountingMounter(
        remote_host=settings.remote_host,
        remote_root=settings.remote_root,
        version=settings.nfs_version,
        local_root=settings.mount_root,
        invoker=invoker,
    )


@pytest.fixture
def store(settings):
    return StateStore(settings.state_dir)


@pytest.fixture
def controller(mounter, store, settings):
    return LifecycleController(mounter, store, settings)


@pytest.fixture
def client(controller):
    return TestClient(create_app(controller))
