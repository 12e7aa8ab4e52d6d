"""Shared fixtures and fakes for the rehearsal core tests."""

import asyncio
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from rehearsal_coach.flow.state_machine import StateMachine
from rehearsal_coach.models.enums import QuestionCategory, Stage
from rehearsal_coach.models.interview import (
    CategoryScore,
    InterviewSettings,
    Question,
    RecordedMedia,
    Report,
    ReportData,
)
from rehearsal_coach.models.user import Identity
from rehearsal_coach.services.scoring_service import ScoringService
from rehearsal_coach.services.storage_manager import HistoryStore
from rehearsal_coach.utils.exceptions import ScoringError, StorageError


def make_report_data(overall: float = 78) -> ReportData:
    return ReportData(
        overall_score=overall,
        clarity_of_communication=CategoryScore(score=80, feedback="Clear structure."),
        technical_proficiency=CategoryScore(score=70, feedback="Solid basics."),
        behavioral_competency=CategoryScore(score=85, feedback="Good STAR answers."),
        confidence_and_demeanor=CategoryScore(score=75, feedback="Calm delivery."),
        strengths=["Structured answers"],
        areas_for_improvement=["Quantify impact"],
    )


class StubScoringService(ScoringService):
    """Returns a fixed report, optionally after a delay or by raising."""

    def __init__(self, result: Optional[ReportData] = None, error: Optional[Exception] = None,
                 delay: float = 0.0, gate: Optional[asyncio.Event] = None):
        self.result = result or make_report_data()
        self.error = error
        self.delay = delay
        self.calls = []
        self.gate = gate

    async def analyze(self, questions, settings, answers):
        self.calls.append((list(questions), settings, dict(answers)))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class RecordingHistoryStore(HistoryStore):
    """In-memory history store that counts saves.

    ``gate`` holds each save open until it is set; ``on_saved`` runs right
    after a report is stored.
    """

    def __init__(self, fail: bool = False, gate: Optional[asyncio.Event] = None,
                 on_saved: Optional[Callable[[], None]] = None):
        self.saved: List[Report] = []
        self.fail = fail
        self.gate = gate
        self.on_saved = on_saved
        self.waiting = False

    async def save(self, report: Report) -> None:
        if self.gate is not None:
            self.waiting = True
            await self.gate.wait()
        if self.fail:
            raise StorageError("disk full")
        self.saved.append(report)
        if self.on_saved is not None:
            self.on_saved()

    async def load_report(self, report_id: str) -> Optional[Report]:
        return next((r for r in self.saved if r.id == report_id), None)

    async def list_reports(self) -> List[Report]:
        return sorted(self.saved, key=lambda r: r.date, reverse=True)


@pytest.fixture
def identity() -> Identity:
    return Identity(name="Ada Lovelace", email="ada@example.com")


@pytest.fixture
def settings() -> InterviewSettings:
    return InterviewSettings(
        job_role="Frontend Developer",
        experience="Mid Level",
        interview_type="Mixed",
        difficulty="Medium",
        duration="30 minutes",
    )


@pytest.fixture
def questions() -> List[Question]:
    return [
        Question(question="Tell me about a time you resolved a conflict.", type="Behavioral"),
        Question(question="How does the browser event loop work?", type=QuestionCategory.TECHNICAL),
        Question(question="A release breaks checkout on Friday evening. What do you do?", type="Situational"),
    ]


@pytest.fixture
def media(tmp_path: Path) -> RecordedMedia:
    path = tmp_path / "recording.webm"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return RecordedMedia(path=path, content_type="video/webm", size_bytes=4)


@pytest.fixture
def machine(identity) -> StateMachine:
    machine = StateMachine()
    machine.initialize(identity)
    return machine


@pytest.fixture
def reviewing_machine(machine, settings, questions, media) -> StateMachine:
    """A machine that went through setup and session and now sits on review."""
    machine.navigate(Stage.SETUP)
    machine.complete_setup(settings, questions)
    machine.complete_session(media)
    assert machine.stage == Stage.REVIEW
    return machine


@pytest.fixture
def scoring_error() -> ScoringError:
    return ScoringError("provider unavailable", provider_name="stub", status_code=503)
