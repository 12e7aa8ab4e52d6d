"""Enumeration types for the Rehearsal Coach."""

from enum import Enum
from typing import FrozenSet


class Stage(Enum):
    """Step of the rehearsal flow that is currently active."""

    LANDING = "landing"
    LOGIN = "login"
    DASHBOARD = "dashboard"
    PROFILE = "profile"
    SETUP = "setup"
    SESSION = "session"
    REVIEW = "review"
    ANALYZING = "analyzing"
    REPORT = "report"

    @property
    def requires_identity(self) -> bool:
        """Whether this stage is only reachable by an authenticated user."""
        return self not in PUBLIC_STAGES

    @classmethod
    def _missing_(cls, value):
        """Handle upper-case names and "Stage.X" strings during deserialization."""
        if isinstance(value, str):
            if value.startswith("Stage."):
                value = value.split(".", 1)[1]
            try:
                return cls[value.upper()]
            except KeyError:
                pass
        return None


PUBLIC_STAGES: FrozenSet[Stage] = frozenset({Stage.LANDING, Stage.LOGIN})


class QuestionCategory(Enum):
    """Kind of interview question."""

    BEHAVIORAL = "Behavioral"
    TECHNICAL = "Technical"
    SITUATIONAL = "Situational"

    @classmethod
    def _missing_(cls, value):
        """Accept any casing of the category name."""
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class Theme(Enum):
    """Colour theme of the shell."""

    LIGHT = "light"
    DARK = "dark"

    def toggled(self) -> "Theme":
        return Theme.LIGHT if self == Theme.DARK else Theme.DARK

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None
