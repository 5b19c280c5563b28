"""Defines the package manager commands run on targets."""

from collections.abc import Iterable
from pathlib import PurePosixPath

from ..messages import MissingInstallerError
from ..utils import DictWithInjections

#: Runs apt-get without interactive prompts.
APT_GET = ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get"]

update_command = ["apt-get", "update"]
showhold_command = ["apt-mark", "showhold"]
policy_command = ["apt-cache", "policy"]

#: Install flags for the host.
host_install = {
    "flags": ["-y", "--reinstall"],
    "headers": True,
    "reload_modules": True,
}

#: Install flags for containers. Containers only carry the userspace
#: libraries, so held packages are overridden and recommends skipped.
container_install = {
    "flags": [
        "-y",
        "--reinstall",
        "--allow-change-held-packages",
        "--no-install-recommends",
    ],
    "headers": False,
    "reload_modules": False,
}

#: A dictionary that maps target kinds to install settings.
installer = DictWithInjections(
    {
        "host": host_install,
        "container": container_install,
    },
    key_error=MissingInstallerError,
)


def install_command(flags: Iterable[str], packages: Iterable[str]) -> list[str]:
    return [*APT_GET, "install", *flags, *packages]


def hold_command(packages: Iterable[str]) -> list[str]:
    return ["apt-mark", "hold", *packages]


def unhold_command(packages: Iterable[str]) -> list[str]:
    return ["apt-mark", "unhold", *packages]


def dpkg_install_command(path: PurePosixPath) -> list[str]:
    """Installs a local .deb, restoring config files the admin deleted."""
    return ["dpkg", "-i", "--force-confmiss", str(path)]
