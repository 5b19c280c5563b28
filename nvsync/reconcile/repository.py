"""Keeps exactly one vendor repository configured and pinned on a target."""

import tempfile
from logging import getLogger
from pathlib import Path, PurePosixPath

from .. import checks
from ..actions import dpkg_install_command, policy_command
from ..connector import NvidiaRepository
from ..exceptions import ReconcileError
from ..messages import KeyringDownloadError
from ..target import Target
from ..target.parsers import parse_policy, vendor_descriptors
from ..types import RepoStatus

logger = getLogger("nvsync.reconcile.repository")

PIN_PATH = PurePosixPath("/etc/apt/preferences.d/nvidia-repo-pin")
SOURCES_LIST = PurePosixPath("/etc/apt/sources.list")
SOURCES_DIR = PurePosixPath("/etc/apt/sources.list.d")
KEYRING_PATH = PurePosixPath("/tmp/cuda-keyring.deb")


class RepositoryReconciler:
    """Configures the CUDA repository matching the target's OS.

    A repository is correct only when the vendor host is present in the
    apt policy and the only vendor descriptor found is the one for the
    target's OS. Anything else is replaced by a fresh keyring install.
    """

    def __init__(
        self,
        vendor: NvidiaRepository,
        repo_host: str = "developer.download.nvidia.com",
        pin_priority: int = 1001,
    ) -> None:
        self.vendor = vendor
        self.repo_host = repo_host
        self.pin_priority = pin_priority

    def pin_content(self) -> str:
        return (
            "Package: *\n"
            f"Pin: origin {self.repo_host}\n"
            f"Pin-Priority: {self.pin_priority}\n"
        )

    def ensure_repository(self, target: Target) -> RepoStatus:
        """Reconciles the repository and the pin file of a target.

        Returns:
            `RepoStatus.CONFIGURED` if the repository was replaced,
            `RepoStatus.PINNED` if only the pin file was rewritten,
            `RepoStatus.OK` otherwise.

        Raises:
            UnsupportedSystemError: If the target's OS has no repository.
            ReconcileError: If a required step fails.
        """
        system = target.system or target.detect_system()
        descriptor = system.get_descriptor()

        sources = parse_policy(target.query(policy_command).stdout)
        found = vendor_descriptors(sources, self.repo_host)
        status = RepoStatus.OK

        if found == {descriptor}:
            logger.info("NVIDIA repository %s already configured on %s", descriptor, target.hostname)
        else:
            if found:
                logger.warning(
                    "%s: found NVIDIA repository %s, expected %s. Replacing",
                    target.hostname,
                    ", ".join(sorted(found)),
                    descriptor,
                )
            else:
                logger.info("Adding NVIDIA CUDA repository (%s) on %s", descriptor, target.hostname)
            self.remove_fragments(target)
            self.install_keyring(target, descriptor)
            status = RepoStatus.CONFIGURED

        if target.read_file(PIN_PATH) != self.pin_content():
            logger.info("Pinning NVIDIA repository on %s", target.hostname)
            target.write_file(PIN_PATH, self.pin_content(), "writing apt pin file failed")
            if status == RepoStatus.OK:
                status = RepoStatus.PINNED

        return status

    def remove_fragments(self, target: Target) -> list[str]:
        """Removes every source list referencing the vendor host.

        Fragments under `sources.list.d` are deleted; in the main
        `sources.list` only the lines naming the vendor host are dropped.
        """
        log = target.query(["grep", "-rlF", self.repo_host, str(SOURCES_DIR)])
        fragments = [x.strip() for x in log.stdout.splitlines() if x.strip()]
        if fragments:
            logger.debug("%s: removing %s", target.hostname, ", ".join(fragments))
            target.required(["rm", "-f", *fragments], "removing stale repository lists failed")
        if target.query(["grep", "-qF", self.repo_host, str(SOURCES_LIST)]).ok:
            logger.debug("%s: dropping vendor lines from %s", target.hostname, SOURCES_LIST)
            pattern = self.repo_host.replace(".", r"\.")
            target.required(
                ["sed", "-i", f"/{pattern}/d", str(SOURCES_LIST)],
                "removing stale repository lines failed",
            )
            fragments.append(str(SOURCES_LIST))
        return fragments

    def install_keyring(self, target: Target, descriptor: str) -> None:
        """Fetches the keyring package and installs it on the target.

        The temporary files on both ends are removed whatever happens.
        """
        with tempfile.TemporaryDirectory(prefix="nvsync-") as tmp:
            local = Path(tmp) / KEYRING_PATH.name
            if target.dryrun:
                logger.info("dryrun: download %s", self.vendor.keyring_for(descriptor))
            else:
                try:
                    self.vendor.download_keyring(descriptor, local)
                except KeyringDownloadError as e:
                    logger.error(e)
                    raise ReconcileError(str(e), target.hostname) from e

            try:
                target.push_file(local, KEYRING_PATH)
                target.required(
                    dpkg_install_command(KEYRING_PATH),
                    "installing cuda-keyring failed",
                    check=checks.dpkg,
                )
            finally:
                target.best_effort(["rm", "-f", str(KEYRING_PATH)])
