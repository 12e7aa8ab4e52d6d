"""Working set of one rehearsal attempt."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..models.interview import InterviewSettings, Question, RecordedMedia, Report


@dataclass
class SessionContext:
    """Settings, questions, recording and report of the current attempt.

    Owned by a single StateMachine; created empty when a user authenticates and
    wiped on every entry into setup and on logout.
    """

    settings: Optional[InterviewSettings] = None
    questions: List[Question] = field(default_factory=list)
    recorded_media: Optional[RecordedMedia] = None
    report: Optional[Report] = None

    def reset(self) -> None:
        """Clear all four fields together."""
        self.settings = None
        self.questions = []
        self.recorded_media = None
        self.report = None

    @property
    def is_empty(self) -> bool:
        return (
            self.settings is None
            and not self.questions
            and self.recorded_media is None
            and self.report is None
        )

    @property
    def ready_for_analysis(self) -> bool:
        """Settings captured and at least one question to score."""
        return self.settings is not None and len(self.questions) > 0
