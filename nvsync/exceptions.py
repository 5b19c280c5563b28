from .types import Outcome


class ReconcileError(Exception):
    """A required step failed; the whole run must stop."""

    def __init__(self, reason: str, host: str | None = None) -> None:
        self.reason: str = reason
        self.host: str | None = host

    def __str__(self) -> str:
        if self.host is None:
            return self.reason
        return "{!s}: {!s}".format(self.host, self.reason)


class TargetSkipped(Exception):
    """The target can't be reconciled in this run; move on to the next."""

    outcome: Outcome = Outcome.SKIPPED_ABSENT

    def __init__(self, message, host: str | None = None) -> None:
        self.message = message
        self.host = host

    def __str__(self) -> str:
        return str(self.message)


class TargetAbsent(TargetSkipped):
    outcome = Outcome.SKIPPED_ABSENT


class TargetUnsupported(TargetSkipped):
    outcome = Outcome.SKIPPED_UNSUPPORTED_OS


class TargetIndeterminate(TargetSkipped):
    outcome = Outcome.SKIPPED_INDETERMINATE
