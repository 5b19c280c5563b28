"""Package catalogs: which packages make up the driver on each target.

The built-in catalogs can be overridden by a YAML file such as::

    host: [nvidia-driver, firmware-nvidia-gsp, nvidia-kernel-dkms]
    ubuntu: [libnvidia-compute, libnvidia-encode]
    debian: [libcuda1, libnvidia-ml1]

Keys missing from the file keep their built-in value.
"""

from logging import getLogger
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .messages import InvalidCatalogError, MissingCatalogError
from .types import Family
from .utils import DictWithInjections

logger = getLogger("nvsync.catalogs")

HOST = "host"

#: The kernel module, its firmware and the userspace of the host.
HOST_PACKAGES = ["nvidia-driver", "firmware-nvidia-gsp", "nvidia-kernel-dkms"]

#: Compute, encode, decode and GL libraries for Ubuntu containers.
UBUNTU_PACKAGES = [
    "libnvidia-compute",
    "libnvidia-encode",
    "libnvidia-decode",
    "libnvidia-gl",
]

#: CUDA, encode, decode and management libraries for Debian containers.
DEBIAN_PACKAGES = ["libcuda1", "libnvidia-encode1", "libnvcuvid1", "libnvidia-ml1"]


class Catalogs:
    """Looks up the package set for the host or a container family."""

    def __init__(self, table: dict[str, list[str]] | None = None) -> None:
        self.table = DictWithInjections(
            {
                HOST: list(HOST_PACKAGES),
                str(Family.UBUNTU): list(UBUNTU_PACKAGES),
                str(Family.DEBIAN): list(DEBIAN_PACKAGES),
            },
            key_error=MissingCatalogError,
        )
        if table:
            self.table.update(table)

    @classmethod
    def load(cls, path: Path | None) -> "Catalogs":
        """Reads catalog overrides from a YAML file if it exists.

        Raises:
            InvalidCatalogError: If the file isn't valid YAML.
        """
        if not path or not path.is_file():
            return cls()

        try:
            with path.open() as fd:
                data = YAML(typ="safe").load(fd) or {}
        except YAMLError as error:
            raise InvalidCatalogError(path, error) from error
        if not isinstance(data, dict):
            raise InvalidCatalogError(path, "expected a mapping")

        table: dict[str, list[str]] = {}
        for key, packages in data.items():
            if not isinstance(packages, list):
                logger.warning("%s: ignoring catalog %r, not a list", path, key)
                continue
            table[str(key)] = [str(x) for x in packages]
        logger.debug("catalog overrides from %s: %s", path, ", ".join(table))
        return cls(table)

    def for_host(self) -> list[str]:
        return self.table[HOST]

    def for_container(self, family: Family) -> list[str]:
        """Returns the package set for a container's OS family.

        Raises:
            MissingCatalogError: If there is no catalog for the family.
        """
        return self.table[str(family)]
