"""Data models for the Rehearsal Coach."""

from .base import BaseModel, WireModel, iso_timestamp
from .enums import QuestionCategory, Stage, Theme
from .interview import (
    AnswerSet,
    CategoryScore,
    InterviewSettings,
    Question,
    RecordedMedia,
    Report,
    ReportData,
)
from .user import Identity

__all__ = [
    "BaseModel",
    "WireModel",
    "iso_timestamp",
    "QuestionCategory",
    "Stage",
    "Theme",
    "AnswerSet",
    "CategoryScore",
    "InterviewSettings",
    "Question",
    "RecordedMedia",
    "Report",
    "ReportData",
    "Identity",
]
