"""Sequences the reconciliation of the host and its containers."""

import time
from collections.abc import Callable
from logging import getLogger
from typing import Any

from ..catalogs import Catalogs
from ..colorlog import SUCCESS
from ..config import Config
from ..connector import NvidiaRepository
from ..exceptions import (
    ReconcileError,
    TargetAbsent,
    TargetIndeterminate,
    TargetSkipped,
    TargetUnsupported,
)
from ..messages import (
    ContainerAbsentMessage,
    ContainerStoppedDryRunMessage,
    ErrorMessage,
    NotRootError,
    StagedChangesMessage,
    UnsupportedSystemError,
)
from ..target import Container, Host, Target
from ..types import ContainerState, Outcome, Phase, RebootPolicy, System
from .devices import DeviceReconciler
from .installer import Installer
from .orphans import OrphanCleaner
from .prober import VersionProber
from .repository import RepositoryReconciler
from .report import TargetReport

logger = getLogger("nvsync.reconcile.orchestrator")


class Orchestrator:
    """Drives every target through the reconciliation phases.

    The host goes first. Containers follow strictly one at a time, the
    must-reboot group before the stage-only group, each in the order it
    was configured. A fatal error stops the whole run.
    """

    def __init__(
        self,
        config: Config,
        host: Host,
        catalogs: Catalogs | None = None,
        vendor: NvidiaRepository | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.config = config
        self.version = config.desired_version
        self.host = host
        self.sleep = sleep
        self.catalogs = catalogs or Catalogs.load(config.catalogs_path)

        self.containers = [
            Container(host, x, RebootPolicy.MUST_REBOOT) for x in config.reboot_ids
        ] + [Container(host, x, RebootPolicy.STAGE_ONLY) for x in config.staging_ids]

        self.prober = VersionProber(config.library_dirs[0], config.probe_library)
        self.repository = RepositoryReconciler(
            vendor or NvidiaRepository(config.keyring_url),
            config.repo_host,
            config.pin_priority,
        )
        self.cleaner = OrphanCleaner(config.library_dirs, self.version)
        self.installer = Installer(config.headers_package)
        self.devices = DeviceReconciler()

        self.reports: list[TargetReport] = []
        self.released: set[int] = set()

    def check_root(self) -> None:
        """Makes sure commands on the host run as root.

        Raises:
            NotRootError: If `id -u` on the host doesn't print 0.
        """
        uid = self.host.query(["id", "-u"]).stdout.strip()
        if uid != "0":
            raise NotRootError(uid)

    def run(self) -> list[TargetReport]:
        """Reconciles the host and then every configured container.

        Returns:
            One report per target, in processing order.

        Raises:
            NotRootError: If the host user isn't root.
            ReconcileError: If a required step failed on any target.
        """
        self.reports = []
        self.released = set()
        self.check_root()
        logger.info("Target NVIDIA driver version: %s", self.version)
        if self.host.dryrun:
            logger.warning("dryrun: no changes will be made")

        steps: list[tuple[Target, Callable[[Any, TargetReport], None]]] = [
            (self.host, self.reconcile_host)
        ]
        steps += [(x, self.reconcile_container) for x in self.containers]

        for target, reconcile in steps:
            report = TargetReport(target.hostname)
            self.reports.append(report)
            try:
                reconcile(target, report)
            except TargetSkipped as e:
                logger.warning(e)
                report.skip(e.outcome, str(e))
            except (ReconcileError, ErrorMessage) as e:
                report.fail(str(e))
                raise

        return self.reports

    def check_system(self, target: Target) -> System:
        """Reads the target's OS and makes sure a repository exists for it.

        Raises:
            TargetUnsupported: If the OS has no vendor repository.
        """
        system = target.detect_system()
        try:
            system.get_descriptor()
        except UnsupportedSystemError as e:
            raise TargetUnsupported(f"{target.hostname}: {e}. Skipping.", target.hostname) from e
        return system

    def release_driver(self) -> None:
        """Stops running containers so the kernel module can be replaced."""
        for container in self.containers:
            if container.status() == ContainerState.RUNNING:
                logger.info("Stopping container %s to release the driver", container.ct_id)
                container.stop()
                self.released.add(container.ct_id)

    def reconcile_host(self, host: Host, report: TargetReport) -> None:
        report.enter(Phase.CHECKING)
        logger.info("Checking host driver version...")
        self.check_system(host)

        if self.prober.is_satisfied(host, self.version):
            report.enter(Phase.SATISFIED)
            logger.log(SUCCESS, "Host is already at target version (%s). Skipping update.", self.version)
            self.devices.ensure_devices_and_modules(host)
            report.finish(Outcome.ALREADY_SATISFIED)
            return

        report.enter(Phase.NEEDS_UPDATE)
        logger.info("Host needs update to %s", self.version)
        self.release_driver()
        self.update(host, report, self.catalogs.for_host())
        self.devices.ensure_devices_and_modules(host)
        report.finish(Outcome.UPDATED)
        logger.log(SUCCESS, "Host updated to %s.", self.version)

    def reconcile_container(self, container: Container, report: TargetReport) -> None:
        report.enter(Phase.CHECKING)
        logger.info("Checking container %s (%s)...", container.ct_id, container.policy)

        state = container.status()
        if state == ContainerState.ABSENT:
            raise TargetAbsent(ContainerAbsentMessage(container.ct_id), container.hostname)
        started = False
        if state == ContainerState.STOPPED:
            if container.dryrun:
                raise TargetIndeterminate(
                    ContainerStoppedDryRunMessage(container.ct_id), container.hostname
                )
            logger.info("Starting container %s...", container.ct_id)
            container.start()
            started = container.ct_id not in self.released
            self.sleep(self.config.settle_delay)

        try:
            family = self.check_system(container).get_family()
        except TargetUnsupported:
            if started:
                self.restore_stopped(container)
            raise

        if self.prober.is_satisfied(container, self.version):
            report.enter(Phase.SATISFIED)
            logger.log(SUCCESS, "Container %s already at %s.", container.ct_id, self.version)
            if started:
                self.restore_stopped(container)
            report.finish(Outcome.ALREADY_SATISFIED)
            return

        report.enter(Phase.NEEDS_UPDATE)
        logger.info("Container %s (%s) needs update", container.ct_id, family)
        self.update(container, report, self.catalogs.for_container(family))

        if container.policy == RebootPolicy.MUST_REBOOT:
            report.enter(Phase.REBOOT)
            logger.info("Restarting container %s...", container.ct_id)
            container.restart(self.config.restart_delay, self.sleep)
        else:
            report.enter(Phase.STAGED)
            logger.warning(StagedChangesMessage(container.ct_id))

        report.finish(Outcome.UPDATED)
        logger.log(SUCCESS, "Container %s updated.", container.ct_id)

    def restore_stopped(self, container: Container) -> None:
        """Stops a container that was only started to be inspected."""
        logger.info("Stopping container %s again, nothing to change", container.ct_id)
        container.stop()

    def update(self, target: Target, report: TargetReport, packages: list[str]) -> None:
        report.enter(Phase.RECONCILING_REPO)
        self.repository.ensure_repository(target)
        report.enter(Phase.CLEANING_ORPHANS)
        self.cleaner.cleanup_orphans(target)
        report.enter(Phase.INSTALLING)
        self.installer.install_pinned(target, packages, self.version)
        report.enter(Phase.PINNED)


def summarize(reports: list[TargetReport]) -> None:
    """Logs the outcome of every target."""
    logger.info("Summary:")
    for report in reports:
        if report.outcome == Outcome.FAILED:
            logger.error("  %s", report)
        elif report.outcome in (Outcome.UPDATED, Outcome.ALREADY_SATISFIED):
            logger.log(SUCCESS, "  %s", report)
        else:
            logger.warning("  %s", report)
