import logging

import pytest

from nvsync.catalogs import DEBIAN_PACKAGES, HOST_PACKAGES, UBUNTU_PACKAGES
from nvsync.exceptions import ReconcileError
from nvsync.messages import NotRootError
from nvsync.reconcile import summarize
from nvsync.types import Outcome, Phase

from .conftest import satisfied_host, stale_host
from .fakes import LIBDIR, is_mutating, os_release

PACKAGE_TOOLS = {"apt-get", "apt-mark", "dpkg", "env"}


def add_guests(node, stale="580.95.05"):
    ubuntu = node.add_container(101, "ubuntu", "24.04")
    ubuntu.files[f"{LIBDIR}/libnvidia-ml.so.{stale}"] = ""
    ubuntu.files[f"{LIBDIR}/libnvidia-ml.so.1"] = ""
    debian = node.add_container(103, "debian", "12")
    debian.add_source("ubuntu2204")
    return ubuntu, debian


def host_level(node):
    """Commands the host ran for itself, not on behalf of a container."""
    return [x for x in node.commands if x[:2] != ["pct", "exec"]]


def test_end_to_end(make_orchestrator, caplog):
    node = satisfied_host()
    ubuntu, debian = add_guests(node)
    orchestrator = make_orchestrator(node, reboot="101", staging="103")

    with caplog.at_level(logging.INFO):
        reports = orchestrator.run()

    assert [(r.target, r.outcome) for r in reports] == [
        ("pve", Outcome.ALREADY_SATISFIED),
        ("ct101", Outcome.UPDATED),
        ("ct103", Outcome.UPDATED),
    ]

    # host: no package operations, device reconciliation still ran
    assert not [x for x in host_level(node) if x[0] in PACKAGE_TOOLS]
    assert ["test", "-e", "/dev/nvidia0"] in node.commands
    assert reports[0].phases == [Phase.PENDING, Phase.CHECKING, Phase.SATISFIED, Phase.DONE]

    # container 101: full cycle and restart
    assert ubuntu.vendor_descriptors() == ["ubuntu2404"]
    assert f"{LIBDIR}/libnvidia-ml.so.580.95.05" not in ubuntu.files
    assert f"{LIBDIR}/libnvidia-ml.so.590.48.01" in ubuntu.files
    assert f"{LIBDIR}/libnvidia-ml.so.1" in ubuntu.files
    assert set(UBUNTU_PACKAGES) <= ubuntu.held
    assert any("libnvidia-compute=590.48*" in x for x in ubuntu.commands)
    assert reports[1].phases == [
        Phase.PENDING,
        Phase.CHECKING,
        Phase.NEEDS_UPDATE,
        Phase.RECONCILING_REPO,
        Phase.CLEANING_ORPHANS,
        Phase.INSTALLING,
        Phase.PINNED,
        Phase.REBOOT,
        Phase.DONE,
    ]
    assert node.stops == [101]
    assert node.starts == [101]
    assert orchestrator.sleeps == [2]

    # container 103: same minus the restart, ending with a warning
    assert debian.vendor_descriptors() == ["debian12"]
    assert set(DEBIAN_PACKAGES) <= debian.held
    assert Phase.STAGED in reports[2].phases
    assert Phase.REBOOT not in reports[2].phases
    assert 103 not in node.stops
    assert "Container 103 NOT rebooted" in caplog.text

    # catalogs never cross between host and containers
    assert not set(HOST_PACKAGES) & (ubuntu.held | debian.held)


def test_idempotence(make_orchestrator):
    node = satisfied_host()
    add_guests(node)
    make_orchestrator(node, reboot="101", staging="103").run()

    for machine in [node, *node.containers.values()]:
        machine.commands.clear()
    reports = make_orchestrator(node, reboot="101", staging="103").run()

    assert [r.outcome for r in reports] == [Outcome.ALREADY_SATISFIED] * 3
    assert node.mutations() == []
    for machine in node.containers.values():
        assert machine.mutations() == []
    assert node.stops == [101]


def test_host_update_releases_driver_first(make_orchestrator):
    node = stale_host()
    add_guests(node)
    orchestrator = make_orchestrator(node, reboot="101", staging="103")

    reports = orchestrator.run()

    assert [r.outcome for r in reports] == [Outcome.UPDATED] * 3
    commands = host_level(node)
    first_stop = commands.index(["pct", "stop", "101"])
    first_package_op = next(i for i, x in enumerate(commands) if x[0] in PACKAGE_TOOLS)
    assert first_stop < first_package_op
    assert commands.index(["pct", "stop", "103"]) < first_package_op

    assert node.dkms == {"590.48.01": "installed"}
    assert "590.48.01" in node.files["/proc/driver/nvidia/version"]
    assert node.held == set(HOST_PACKAGES)
    assert f"{LIBDIR}/libnvidia-ml.so.580.95.05" not in node.files
    assert f"{LIBDIR}/libnvidia-ml.so.1" in node.files

    # the stopped containers were started again and given time to settle
    assert node.stops == [101, 103, 101]
    assert node.starts == [101, 101, 103]
    assert orchestrator.sleeps == [5, 2, 5]
    assert node.status == {101: "running", 103: "running"}


def test_satisfied_host_keeps_containers_running(make_orchestrator):
    node = satisfied_host()
    ubuntu, _ = add_guests(node)
    ubuntu.files[f"{LIBDIR}/libnvidia-ml.so.590.48.01"] = ""

    make_orchestrator(node, reboot="101").run()

    assert node.stops == []


def test_dry_run_changes_nothing(make_orchestrator, caplog):
    node = stale_host()
    add_guests(node)
    node.add_container(102, "ubuntu", "22.04", status="stopped")
    before = node.all_state()

    with caplog.at_level(logging.INFO):
        reports = make_orchestrator(node, reboot="101 102", staging="103", dry_run=True).run()

    assert node.all_state() == before
    assert node.mutations() == []
    for machine in node.containers.values():
        assert machine.mutations() == []
    outcomes = {r.target: r.outcome for r in reports}
    assert outcomes["ct102"] == Outcome.SKIPPED_INDETERMINATE
    assert outcomes["ct101"] == Outcome.UPDATED
    assert "dryrun: container 102 is stopped" in caplog.text
    assert 'dryrun: pve running "pct stop 101"' in caplog.text


def test_dry_run_satisfied_host(make_orchestrator):
    node = satisfied_host()
    add_guests(node)
    before = node.all_state()

    make_orchestrator(node, reboot="101", staging="103", dry_run=True).run()

    assert node.all_state() == before


@pytest.mark.parametrize("family", ["ubuntu", "debian"])
def test_unsupported_container_os(make_orchestrator, family):
    node = satisfied_host()
    guest = node.add_container(104, family, "99")

    reports = make_orchestrator(node, reboot="104").run()

    assert reports[1].outcome == Outcome.SKIPPED_UNSUPPORTED_OS
    assert reports[1].phase == Phase.SKIPPED
    assert guest.mutations() == []
    assert [x for x in node.mutations() if x[:2] != ["pct", "exec"]] == []


@pytest.mark.parametrize("family", ["ubuntu", "debian"])
def test_unsupported_stopped_container_is_stopped_again(make_orchestrator, family):
    node = satisfied_host()
    guest = node.add_container(104, family, "99", status="stopped")

    reports = make_orchestrator(node, reboot="104").run()

    assert reports[1].outcome == Outcome.SKIPPED_UNSUPPORTED_OS
    assert guest.mutations() == []
    assert [x for x in host_level(node) if is_mutating(x)] == [
        ["pct", "start", "104"],
        ["pct", "stop", "104"],
    ]
    assert node.status == {104: "stopped"}


def test_satisfied_stopped_container_is_stopped_again(make_orchestrator):
    node = satisfied_host()
    guest = node.add_container(102, "ubuntu", "22.04", status="stopped")
    guest.files[f"{LIBDIR}/libnvidia-ml.so.590.48.01"] = ""

    reports = make_orchestrator(node, staging="102").run()

    assert reports[1].outcome == Outcome.ALREADY_SATISFIED
    assert guest.mutations() == []
    assert node.status == {102: "stopped"}


def test_released_container_is_running_afterwards(make_orchestrator):
    node = stale_host()
    guest = node.add_container(101, "ubuntu", "24.04")
    guest.files[f"{LIBDIR}/libnvidia-ml.so.590.48.01"] = ""

    reports = make_orchestrator(node, reboot="101").run()

    assert reports[1].outcome == Outcome.ALREADY_SATISFIED
    assert node.stops == [101]
    assert node.status == {101: "running"}


def test_unsupported_host_os(make_orchestrator):
    node = stale_host()
    node.files["/etc/os-release"] = os_release("debian", "99")
    add_guests(node)
    before = node.state()

    reports = make_orchestrator(node, reboot="101").run()

    assert reports[0].outcome == Outcome.SKIPPED_UNSUPPORTED_OS
    assert not [x for x in host_level(node) if x[0] in PACKAGE_TOOLS]
    assert node.dkms == before["dkms"]
    assert node.held == before["held"]
    # containers are still reconciled; only the restart stopped 101
    assert reports[1].outcome == Outcome.UPDATED
    assert node.stops == [101]


def test_absent_container_is_skipped(make_orchestrator, caplog):
    node = satisfied_host()
    add_guests(node)

    reports = make_orchestrator(node, reboot="150 101").run()

    assert reports[1].outcome == Outcome.SKIPPED_ABSENT
    assert "Container 150 does not exist" in caplog.text
    assert reports[2].outcome == Outcome.UPDATED


def test_fatal_error_aborts_run(make_orchestrator):
    node = satisfied_host()
    ubuntu, debian = add_guests(node)
    ubuntu.apt_locked = True
    orchestrator = make_orchestrator(node, reboot="101", staging="103")

    with pytest.raises(ReconcileError, match="package manager locked"):
        orchestrator.run()

    assert [r.outcome for r in orchestrator.reports] == [
        Outcome.ALREADY_SATISFIED,
        Outcome.FAILED,
    ]
    assert orchestrator.reports[1].phase == Phase.FAILED
    assert debian.commands == []


def test_not_root(make_orchestrator):
    node = satisfied_host()
    node.uid = "1000"
    orchestrator = make_orchestrator(node)

    with pytest.raises(NotRootError):
        orchestrator.run()
    assert node.commands == [["id", "-u"]]
    assert orchestrator.reports == []


def test_group_order(make_orchestrator):
    node = satisfied_host()
    for ct_id in (105, 101, 103, 102):
        node.add_container(ct_id, "debian", "12")

    reports = make_orchestrator(node, reboot="105 101", staging="103 102").run()

    assert [r.target for r in reports] == ["pve", "ct105", "ct101", "ct103", "ct102"]


def test_summarize(make_orchestrator, caplog):
    node = satisfied_host()
    add_guests(node)
    reports = make_orchestrator(node, reboot="150").run()

    with caplog.at_level(logging.INFO):
        summarize(reports)

    assert "pve: already-satisfied" in caplog.text
    assert "ct150: skipped-absent (Container 150 does not exist. Skipping.)" in caplog.text
