"""Per-step outcomes and the run report built from them."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class OutcomeStatus(Enum):
    """Result of a single installer step."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class Outcome:
    """What happened in one step."""

    step: str
    status: OutcomeStatus
    reason: str = ""
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def succeeded(cls, step: str, reason: str = "", **details: Any) -> "Outcome":
        return cls(step, OutcomeStatus.SUCCEEDED, reason, details or None)

    @classmethod
    def skipped(cls, step: str, reason: str, **details: Any) -> "Outcome":
        return cls(step, OutcomeStatus.SKIPPED, reason, details or None)

    @classmethod
    def failed(cls, step: str, reason: str, **details: Any) -> "Outcome":
        return cls(step, OutcomeStatus.FAILED, reason, details or None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "status": self.status.value,
            "reason": self.reason,
            "details": self.details,
        }


@dataclass
class RunReport:
    """Ordered outcomes of an install or uninstall run."""

    mode: str
    outcomes: List[Outcome] = field(default_factory=list)
    removed_items: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def record(self, outcome: Outcome) -> Outcome:
        self.outcomes.append(outcome)
        if outcome.status is OutcomeStatus.FAILED:
            self.warnings.append(f"{outcome.step}: {outcome.reason}")
        return outcome

    def _with_status(self, status: OutcomeStatus) -> List[Outcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def succeeded(self) -> List[Outcome]:
        return self._with_status(OutcomeStatus.SUCCEEDED)

    @property
    def skipped(self) -> List[Outcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> List[Outcome]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def steps(self) -> List[str]:
        return [o.step for o in self.outcomes]

    def outcome_for(self, step: str) -> Optional[Outcome]:
        """Return the last recorded outcome for step."""
        for outcome in reversed(self.outcomes):
            if outcome.step == step:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "mode": self.mode,
            "timestamp": self.timestamp,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "removed_items": list(self.removed_items),
            "warnings": list(self.warnings),
        }
