"""Per-target record of the reconciliation state machine."""

from dataclasses import dataclass, field
from logging import getLogger

from ..types import Outcome, Phase

logger = getLogger("nvsync.reconcile.report")


@dataclass
class TargetReport:
    """Phases a target went through and how it ended."""

    target: str
    outcome: Outcome = Outcome.PENDING
    phases: list[Phase] = field(default_factory=lambda: [Phase.PENDING])
    reason: str = ""

    @property
    def phase(self) -> Phase:
        return self.phases[-1]

    def enter(self, phase: Phase) -> None:
        logger.debug("%s: %s -> %s", self.target, self.phase, phase)
        self.phases.append(phase)

    def finish(self, outcome: Outcome) -> None:
        self.enter(Phase.DONE)
        self.outcome = outcome

    def skip(self, outcome: Outcome, reason: str) -> None:
        self.enter(Phase.SKIPPED)
        self.outcome = outcome
        self.reason = reason

    def fail(self, reason: str) -> None:
        self.enter(Phase.FAILED)
        self.outcome = Outcome.FAILED
        self.reason = reason

    def __str__(self) -> str:
        if self.reason:
            return f"{self.target}: {self.outcome} ({self.reason})"
        return f"{self.target}: {self.outcome}"
