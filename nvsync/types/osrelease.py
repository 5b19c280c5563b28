"""A named tuple for representing the identity of an operating system."""

from typing import NamedTuple


class OSRelease(NamedTuple):
    """The `ID` and `VERSION_ID` fields of an os-release file.

    Attributes:
        id: The lower case distribution identifier, e.g. `debian`.
        version_id: The distribution version, e.g. `12` or `24.04`.
    """

    id: str
    version_id: str
