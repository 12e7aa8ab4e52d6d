"""Non-fatal diagnostics emitted by the rehearsal flow."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..models.enums import Stage


class DiagnosticKind(Enum):
    """Category of a diagnostic."""

    MISSING_PREREQUISITE = "missing_prerequisite"
    INVALID_STATE_ENTRY = "invalid_state_entry"
    SCORING_FAILURE = "scoring_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    REJECTED_TRANSITION = "rejected_transition"

    @property
    def log_level(self) -> int:
        if self in (DiagnosticKind.SCORING_FAILURE, DiagnosticKind.PERSISTENCE_FAILURE,
                    DiagnosticKind.MISSING_PREREQUISITE):
            return logging.ERROR
        return logging.WARNING


@dataclass(frozen=True)
class Diagnostic:
    """A logged notice of a self-healing redirect or collaborator failure."""

    kind: DiagnosticKind
    message: str
    from_stage: Optional[Stage] = None
    to_stage: Optional[Stage] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def log_extra(self) -> Dict[str, Any]:
        extra = {
            "diagnostic": self.kind.value,
            "from_stage": self.from_stage.value if self.from_stage else None,
            "to_stage": self.to_stage.value if self.to_stage else None,
        }
        extra.update(self.details)
        return extra
