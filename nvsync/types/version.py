"""The driver version every target has to converge to."""

import re

from ..messages import InvalidVersionError


class DesiredVersion:
    """A `<major>.<minor>` driver version such as `590.48`.

    The version is used as an apt selector (`pkg=590.48*`) and to match
    versioned file names. Patch levels are accepted on match, so
    `590.48` matches `590.48.01` but not `590.480`.
    """

    _format = re.compile(r"^\d+\.\d+$")

    def __init__(self, version: str) -> None:
        version = str(version).strip()
        if not self._format.match(version):
            raise InvalidVersionError(version)
        self.version = version

    @property
    def selector(self) -> str:
        """The apt version glob for this version."""
        return f"{self.version}*"

    def pin(self, package: str) -> str:
        """Returns the `name=version*` install argument for a package."""
        return f"{package}={self.selector}"

    def matches(self, version: str) -> bool:
        """Checks a full version string against this version.

        Args:
            version: A version as found on the target, e.g. `590.48.01`.

        Returns:
            True if `version` is this version or one of its patch levels.
        """
        return version == self.version or version.startswith(self.version + ".")

    def matches_file(self, filename: str, stem: str) -> bool:
        """Checks if `filename` is `stem` suffixed with this version.

        Args:
            filename: The file name, e.g. `libnvidia-ml.so.590.48.01`.
            stem: The unversioned name, e.g. `libnvidia-ml.so`.
        """
        prefix = stem + "."
        if not filename.startswith(prefix):
            return False
        return self.matches(filename[len(prefix) :])

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DesiredVersion):
            return self.version == other.version
        return self.version == other

    def __hash__(self) -> int:
        return hash(self.version)

    def __str__(self) -> str:
        return self.version

    def __repr__(self) -> str:
        return f"<DesiredVersion {self.version}>"
