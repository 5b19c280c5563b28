"""This package contains the reconciliation components of nvsync.

The `Orchestrator` drives the host and every container through the
prober, the repository reconciler, the orphan cleaner, the installer
and, on the host, the device reconciler.
"""

from .devices import DeviceReconciler, DeviceStatus
from .installer import Installer
from .orchestrator import Orchestrator, summarize
from .orphans import OrphanCleaner, is_orphan
from .prober import VersionProber
from .repository import RepositoryReconciler
from .report import TargetReport

__all__ = [
    "DeviceReconciler",
    "DeviceStatus",
    "Installer",
    "Orchestrator",
    "OrphanCleaner",
    "RepositoryReconciler",
    "TargetReport",
    "VersionProber",
    "is_orphan",
    "summarize",
]
