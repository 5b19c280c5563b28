from pathlib import Path

import pytest

from nvsync.config import Config
from nvsync.reconcile import Orchestrator
from nvsync.reconcile.devices import BLACKLIST, BLACKLIST_PATH, UNIT, UNIT_PATH
from nvsync.reconcile.repository import PIN_PATH, RepositoryReconciler
from nvsync.target import Host

from .fakes import LIBDIR, FakeConnection, FakeVendor, ProxmoxHost

PIN = RepositoryReconciler(FakeVendor()).pin_content()
DEVICE_NODES = {
    "/dev/nvidia0": "c 195:0",
    "/dev/nvidiactl": "c 195:255",
    "/dev/nvidia-modeset": "c 195:254",
    "/dev/nvidia-uvm": "c 508:0",
    "/dev/nvidia-uvm-tools": "c 508:1",
    "/dev/nvidia-caps/nvidia-cap1": "c 237:1",
    "/dev/nvidia-caps/nvidia-cap2": "c 237:2",
}


def satisfied_host(version: str = "590.48.01") -> ProxmoxHost:
    """A host with the driver built, loaded and fully configured."""
    node = ProxmoxHost()
    node.dkms = {version: "installed"}
    node.load_driver(version)
    node.add_source("debian12")
    node.files[str(PIN_PATH)] = PIN
    node.files[BLACKLIST_PATH] = BLACKLIST
    node.files[UNIT_PATH] = UNIT
    node.files.update(DEVICE_NODES)
    node.services["nvidia-device-nodes.service"] = "enabled"
    node.services["nvidia-persistenced.service"] = "enabled"
    node.files[f"{LIBDIR}/libnvidia-ml.so.{version}"] = ""
    return node


def stale_host(old: str = "580.95.05") -> ProxmoxHost:
    """A host still running an older driver series."""
    node = ProxmoxHost()
    node.dkms = {old: "installed"}
    node.load_driver(old)
    node.add_source("debian12")
    node.files[f"{LIBDIR}/libnvidia-ml.so.{old}"] = ""
    node.files[f"{LIBDIR}/libnvidia-ml.so.1"] = ""
    node.held.update({"nvidia-driver", "nvidia-kernel-dkms"})
    return node


@pytest.fixture
def make_config(tmp_path, monkeypatch):
    monkeypatch.delenv("TARGET_VERSION", raising=False)
    monkeypatch.delenv("NVSYNC_CONF", raising=False)

    def _make(text: str = "", validate: bool = True) -> Config:
        path = tmp_path / "nvsync.cfg"
        path.write_text(f"[nvsync]\ncatalogs = {tmp_path / 'catalogs.yml'}\n" + text)
        cfg = Config(path)
        if validate:
            cfg.validate()
        return cfg

    return _make


@pytest.fixture
def make_orchestrator(make_config):
    def _make(
        node: ProxmoxHost,
        reboot: str = "",
        staging: str = "",
        dry_run: bool = False,
        version: str = "590.48",
    ) -> Orchestrator:
        cfg = make_config(
            "version = {}\n[containers]\nreboot = {}\nstaging = {}\n".format(
                version, reboot, staging
            )
        )
        cfg.dry_run = dry_run
        host = Host(FakeConnection(node), dryrun=dry_run)
        sleeps: list[float] = []
        orchestrator = Orchestrator(cfg, host, vendor=FakeVendor(), sleep=sleeps.append)
        orchestrator.sleeps = sleeps  # type: ignore
        return orchestrator

    return _make


@pytest.fixture
def host_node() -> ProxmoxHost:
    return satisfied_host()


@pytest.fixture
def catalogs_file(tmp_path) -> Path:
    return tmp_path / "catalogs.yml"
