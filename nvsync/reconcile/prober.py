"""Decides whether a target already runs the desired driver version."""

from logging import getLogger
from pathlib import PurePosixPath

from ..target import Target
from ..target.parsers import parse_dkms_status
from ..types import DesiredVersion

logger = getLogger("nvsync.reconcile.prober")


class VersionProber:
    """Inspects files and module state, never package metadata.

    Containers are satisfied when the versioned management library is
    on disk. The host is satisfied when DKMS has built and installed the
    `nvidia` module at the desired version.
    """

    def __init__(self, library_dir: str, library: str = "libnvidia-ml.so") -> None:
        self.library_dir = PurePosixPath(library_dir)
        self.library = library

    def is_satisfied(self, target: Target, version: DesiredVersion) -> bool:
        if target.kind == "host":
            return self.module_installed(target, version)
        return self.library_present(target, version)

    def library_present(self, target: Target, version: DesiredVersion) -> bool:
        names = [
            PurePosixPath(x).name
            for x in target.list_files(self.library_dir, f"{self.library}.*")
        ]
        found = [x for x in names if version.matches_file(x, self.library)]
        logger.debug(
            "%s: %s candidates %s, matching %s",
            target.hostname,
            self.library,
            names,
            found,
        )
        return bool(found)

    def module_installed(self, target: Target, version: DesiredVersion) -> bool:
        entries = parse_dkms_status(target.query(["dkms", "status"]).stdout)
        for entry in entries:
            logger.debug("%s: dkms %s", target.hostname, entry)
        return any(
            x.module == "nvidia" and x.state == "installed" and version.matches(x.version)
            for x in entries
        )
