"""This package contains the type classes for nvsync.

Each module in this package defines a specific type that is used
throughout the application.
"""

from .commandlog import CommandLog
from .enums import (
    ContainerState,
    Family,
    Outcome,
    Phase,
    RebootPolicy,
    RepoStatus,
)
from .hostlog import HostLog
from .osrelease import OSRelease
from .systems import System
from .version import DesiredVersion

__all__ = [
    "CommandLog",
    "ContainerState",
    "DesiredVersion",
    "Family",
    "HostLog",
    "OSRelease",
    "Outcome",
    "Phase",
    "RebootPolicy",
    "RepoStatus",
    "System",
]
