"""A class for representing the operating system of a target."""

from ..messages import UnsupportedSystemError
from . import Family, OSRelease

#: Vendor repository descriptor per (family, VERSION_ID).
DESCRIPTORS: dict[tuple[Family, str], str] = {
    (Family.DEBIAN, "12"): "debian12",
    (Family.DEBIAN, "13"): "debian13",
    (Family.UBUNTU, "22.04"): "ubuntu2204",
    (Family.UBUNTU, "24.04"): "ubuntu2404",
}


class System:
    """Represents the operating system of a target.

    This class maps the os-release identity of a host or container to
    the OS family and the vendor repository it has to use.
    """

    def __init__(self, release: OSRelease) -> None:
        self.__release = release

    def get_family(self) -> Family:
        """Gets the OS family of the system.

        Raises:
            UnsupportedSystemError: If the distribution isn't supported.
        """
        try:
            return Family(self.__release.id)
        except ValueError:
            raise UnsupportedSystemError(
                self.__release.id, self.__release.version_id
            ) from None

    def get_descriptor(self) -> str:
        """Gets the vendor repository descriptor, e.g. `debian12`.

        Raises:
            UnsupportedSystemError: If there is no vendor repository for
                this family and version.
        """
        key = (self.get_family(), self.__release.version_id)
        try:
            return DESCRIPTORS[key]
        except KeyError:
            raise UnsupportedSystemError(*self.__release) from None

    def is_supported(self) -> bool:
        """Checks if a vendor repository exists for the system."""
        try:
            self.get_descriptor()
        except UnsupportedSystemError:
            return False
        return True

    def __str__(self) -> str:
        return "{}-{}".format(self.__release.id, self.__release.version_id)

    def __eq__(self, other) -> bool:
        return isinstance(other, System) and self.__release == other.__release

    def __hash__(self) -> int:
        return hash(self.__release)
