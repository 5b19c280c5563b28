"""Installs the package set at the desired version and holds it there."""

from collections.abc import Sequence
from logging import getLogger

from .. import checks
from ..actions import (
    hold_command,
    install_command,
    installer,
    showhold_command,
    unhold_command,
    update_command,
)
from ..target import Target
from ..target.parsers import parse_driver_version, parse_lsmod, parse_showhold
from ..types import DesiredVersion

logger = getLogger("nvsync.reconcile.installer")

DRIVER_VERSION_PATH = "/proc/driver/nvidia/version"
DISPLAY_MANAGER = "display-manager.service"

#: Modules unloaded before the new driver is loaded, users first.
MODULE_STACK = ["nvidia_uvm", "nvidia_drm", "nvidia_modeset", "nvidia"]


class Installer:
    """Runs the unhold, update, reinstall and hold cycle on a target."""

    def __init__(self, headers_package: str = "proxmox-default-headers") -> None:
        self.headers_package = headers_package

    def relevant_holds(self, target: Target, packages: Sequence[str]) -> list[str]:
        """Returns the held packages that would block the install."""
        held = parse_showhold(target.query(showhold_command).stdout)
        return [x for x in held if x in packages or x.startswith(("nvidia", "libnvidia"))]

    def unhold(self, target: Target, packages: Sequence[str]) -> None:
        names = list(dict.fromkeys([*packages, *self.relevant_holds(target, packages)]))
        logger.debug("%s: unholding %s", target.hostname, ", ".join(names))
        target.best_effort(unhold_command(names))

    def install_pinned(
        self, target: Target, packages: Sequence[str], version: DesiredVersion
    ) -> None:
        """Installs `packages` at `version` and puts them on hold.

        Args:
            target: The host or a container.
            packages: The package set for the target.
            version: The desired driver version.

        Raises:
            ReconcileError: If refreshing, installing or holding fails.
            MissingInstallerError: If the target kind is unknown.
        """
        settings = installer[target.kind]

        self.unhold(target, packages)

        logger.info("Updating package lists on %s...", target.hostname)
        target.required(update_command, "apt-get update failed", check=checks.apt)

        if settings["headers"] and self.headers_package:
            logger.info("Installing kernel headers on %s...", target.hostname)
            target.required(
                install_command(["-y"], [self.headers_package]),
                "installing kernel headers failed",
                check=checks.apt,
            )

        logger.info("Installing NVIDIA %s packages on %s...", version, target.hostname)
        target.required(
            install_command(settings["flags"], [version.pin(x) for x in packages]),
            "package installation failed",
            check=checks.apt,
        )

        self.disable_display_manager(target)

        if settings["reload_modules"]:
            self.reload_modules(target, version)

        logger.info("Holding NVIDIA packages on %s", target.hostname)
        target.required(hold_command(packages), "apt-mark hold failed")

    def disable_display_manager(self, target: Target) -> None:
        target.best_effort(["systemctl", "disable", DISPLAY_MANAGER])
        target.best_effort(["systemctl", "mask", DISPLAY_MANAGER])

    def reload_modules(self, target: Target, version: DesiredVersion) -> bool:
        """Loads the new kernel module unless it already runs.

        Returns:
            True if the module stack was reloaded.

        Raises:
            ReconcileError: If the new module can't be loaded.
        """
        loaded = parse_driver_version(target.read_file(DRIVER_VERSION_PATH) or "")
        if loaded and version.matches(loaded):
            logger.info("%s: driver %s already loaded", target.hostname, loaded)
            return False

        logger.info("Reloading NVIDIA kernel modules on %s...", target.hostname)
        if "nouveau" in parse_lsmod(target.query(["lsmod"]).stdout):
            logger.warning("Nouveau driver is loaded on %s. Attempting to unload...", target.hostname)
            target.best_effort(["modprobe", "-r", "nouveau"])

        target.best_effort(["modprobe", "-r", *MODULE_STACK])
        target.required(["modprobe", "nvidia"], "loading the nvidia kernel module failed")
        return True
