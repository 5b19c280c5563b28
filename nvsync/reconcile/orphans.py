"""Removes library files left behind by earlier driver versions."""

import re
from collections.abc import Iterable
from logging import getLogger
from pathlib import PurePosixPath

from ..target import Target
from ..types import DesiredVersion

logger = getLogger("nvsync.reconcile.orphans")

#: Name fragments of files that belong to the driver stack.
STACK_NAMES = ("nvidia", "cuda", "nvcuvid")

# a driver series version has a three digit major, e.g. .so.580.95.05
_series = re.compile(r"\.so\.(?P<version>\d{3,}\.\d+(?:\.\d+)*)$")


def is_orphan(name: str, version: DesiredVersion) -> bool:
    """Checks if a library file belongs to another driver version.

    Sonames such as `libcuda.so.1` and CUDA runtime versions such as
    `libcudart.so.12.4.127` are never orphans.
    """
    if not any(x in name for x in STACK_NAMES):
        return False
    if not (match := _series.search(name)):
        return False
    return not version.matches(match.group("version"))


class OrphanCleaner:
    """Deletes stale versioned libraries and refreshes the linker cache."""

    def __init__(self, library_dirs: Iterable[str], version: DesiredVersion) -> None:
        self.library_dirs = [PurePosixPath(x) for x in library_dirs]
        self.version = version

    def find_orphans(self, target: Target) -> list[str]:
        paths: list[str] = []
        for directory in self.library_dirs:
            paths += target.list_files(directory, "*.so.*")
        return [x for x in paths if is_orphan(PurePosixPath(x).name, self.version)]

    def cleanup_orphans(self, target: Target) -> list[str]:
        """Removes orphaned libraries from a target. Failures are ignored.

        Returns:
            The paths that were removed.
        """
        logger.info("Cleaning up orphaned NVIDIA library files on %s...", target.hostname)
        orphans = self.find_orphans(target)
        if orphans:
            logger.debug("%s: removing %s", target.hostname, ", ".join(orphans))
            target.best_effort(["rm", "-f", *orphans])
        target.best_effort(["ldconfig"])
        return orphans
