from argparse import Namespace
from pathlib import Path

import pytest

from nvsync import config
from nvsync.messages import (
    InvalidContainerIdError,
    InvalidVersionError,
    NoLibraryDirsError,
    OverlappingContainersError,
)
from nvsync.types import DesiredVersion


def test_default_config(tmpdir, monkeypatch):
    """
    Test default config
    """
    monkeypatch.delenv("TARGET_VERSION", raising=False)
    config_file = Path(tmpdir.join("test.cfg"))
    config_file.write_text("")
    cfg = config.Config(config_file)
    assert cfg.target_version == "590.48"
    assert cfg.settle_delay == 5
    assert cfg.restart_delay == 2
    assert cfg.catalogs_path == Path("/etc/nvsync/catalogs.yml")
    assert cfg.repo_host == "developer.download.nvidia.com"
    assert cfg.pin_priority == 1001
    assert cfg.reboot_containers == ["100"]
    assert cfg.staging_containers == []
    assert cfg.host_hostname == ""
    assert cfg.host_port == 22
    assert cfg.headers_package == "proxmox-default-headers"
    assert cfg.library_dirs == ["/usr/lib/x86_64-linux-gnu", "/lib/x86_64-linux-gnu"]
    assert cfg.probe_library == "libnvidia-ml.so"
    assert "{descriptor}" in cfg.keyring_url
    assert cfg.dry_run is False


def test_override_config(tmpdir):
    """
    Test override config
    """
    config_file = Path(tmpdir.join("test.cfg"))
    config_file.write_text(
        "[nvsync]\n"
        "version = 580.95\n"
        "settle_delay = 10\n"
        "catalogs = /test/catalogs.yml\n"
        "[containers]\n"
        "reboot = 101, 102\n"
        "staging = 103 104\n"
        "[host]\n"
        "hostname = pve.example.com\n"
        "port = 2222\n"
        "[repository]\n"
        "pin_priority = 900\n"
    )
    cfg = config.Config(config_file)
    assert cfg.target_version == "580.95"
    assert cfg.settle_delay == 10
    assert cfg.catalogs_path == Path("/test/catalogs.yml")
    assert cfg.reboot_containers == ["101", "102"]
    assert cfg.staging_containers == ["103", "104"]
    assert cfg.host_hostname == "pve.example.com"
    assert cfg.host_port == 2222
    assert cfg.pin_priority == 900


def test_version_from_environment(tmpdir, monkeypatch):
    monkeypatch.setenv("TARGET_VERSION", "575.64")
    config_file = Path(tmpdir.join("test.cfg"))
    config_file.write_text("")
    assert config.Config(config_file).target_version == "575.64"


def test_config_file_from_environment(tmpdir, monkeypatch):
    config_file = Path(tmpdir.join("env.cfg"))
    config_file.write_text("[nvsync]\nrestart_delay = 7\n")
    monkeypatch.setenv("NVSYNC_CONF", str(config_file))
    cfg = config.Config()
    assert cfg.configfiles == [config_file]
    assert cfg.restart_delay == 7


def test_invalid_integer_falls_back(tmpdir):
    config_file = Path(tmpdir.join("test.cfg"))
    config_file.write_text("[nvsync]\nsettle_delay = soon\n")
    assert config.Config(config_file).settle_delay == 5


def test_merge_args(tmpdir):
    """
    Test merge_args
    """
    config_file = Path(tmpdir.join("test.cfg"))
    config_file.write_text("")
    cfg = config.Config(config_file)
    args = Namespace(dry_run=True, target_version="590.48", host="pve2")
    cfg.merge_args(args)
    assert cfg.dry_run is True
    assert cfg.target_version == "590.48"
    assert cfg.host_hostname == "pve2"


def test_merge_args_keeps_config(tmpdir):
    config_file = Path(tmpdir.join("test.cfg"))
    config_file.write_text("[nvsync]\nversion = 580.95\n")
    cfg = config.Config(config_file)
    cfg.merge_args(Namespace(dry_run=False, target_version=None, host=None))
    assert cfg.dry_run is False
    assert cfg.target_version == "580.95"


def test_validate(make_config):
    cfg = make_config("version = 590.48\n[containers]\nreboot = 101 101\nstaging = 103\n")
    assert cfg.desired_version == DesiredVersion("590.48")
    assert cfg.reboot_ids == [101]
    assert cfg.staging_ids == [103]


def test_validate_bad_version(make_config):
    cfg = make_config("version = 590\n", validate=False)
    with pytest.raises(InvalidVersionError):
        cfg.validate()


def test_validate_empty_version(make_config):
    cfg = make_config("version =\n", validate=False)
    with pytest.raises(InvalidVersionError):
        cfg.validate()


def test_validate_bad_container_id(make_config):
    cfg = make_config("[containers]\nreboot = 101 web\n", validate=False)
    with pytest.raises(InvalidContainerIdError):
        cfg.validate()


def test_validate_overlapping_groups(make_config):
    cfg = make_config("[containers]\nreboot = 101 102\nstaging = 102\n", validate=False)
    with pytest.raises(OverlappingContainersError) as e:
        cfg.validate()
    assert e.value.ids == [102]


def test_validate_empty_library_dirs(make_config):
    cfg = make_config("[paths]\nlibrary_dirs =\n", validate=False)
    assert cfg.library_dirs == []
    with pytest.raises(NoLibraryDirsError):
        cfg.validate()
