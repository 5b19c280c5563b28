"""Enumerations describing targets and the reconciliation state machine."""

from enum import StrEnum, auto


class Family(StrEnum):
    """Supported operating system families."""

    DEBIAN = auto()
    UBUNTU = auto()


class ContainerState(StrEnum):
    """Running state of a container as reported by the runtime."""

    RUNNING = auto()
    STOPPED = auto()
    ABSENT = auto()


class RebootPolicy(StrEnum):
    """What happens to a container after its packages were replaced."""

    MUST_REBOOT = "must-reboot"
    STAGE_ONLY = "stage-only"


class Outcome(StrEnum):
    """Result of reconciling a single target."""

    PENDING = "pending"
    ALREADY_SATISFIED = "already-satisfied"
    UPDATED = "updated"
    SKIPPED_ABSENT = "skipped-absent"
    SKIPPED_UNSUPPORTED_OS = "skipped-unsupported-os"
    SKIPPED_INDETERMINATE = "skipped-indeterminate"
    FAILED = "failed"


class Phase(StrEnum):
    """States a target moves through while it is reconciled."""

    PENDING = "pending"
    CHECKING = "checking"
    SATISFIED = "satisfied"
    NEEDS_UPDATE = "needs-update"
    RECONCILING_REPO = "reconciling-repo"
    CLEANING_ORPHANS = "cleaning-orphans"
    INSTALLING = "installing"
    PINNED = "pinned"
    REBOOT = "reboot"
    STAGED = "staged"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class RepoStatus(StrEnum):
    """Result of a repository reconciliation."""

    OK = "ok"
    CONFIGURED = "configured"
    PINNED = "pinned"
