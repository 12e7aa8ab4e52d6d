"""Analysis orchestrator: turns a reviewed rehearsal into a persisted report."""

import asyncio
import re
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from ..flow.diagnostics import Diagnostic, DiagnosticKind
from ..flow.state_machine import StateMachine
from ..models.base import iso_timestamp
from ..models.enums import Stage
from ..models.interview import AnswerSet, Report
from ..services.scoring_service import ScoringService
from ..services.storage_manager import HistoryStore
from ..utils.exceptions import AnalysisInProgressError, OrchestrationError
from ..utils.logging import get_correlation_id, get_logger, log_error

REPORT_ID_ALPHABET = string.digits + string.ascii_lowercase
REPORT_ID_SUFFIX_LENGTH = 10
REPORT_ID_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z[0-9a-z]{%d}$" % REPORT_ID_SUFFIX_LENGTH
)


def generate_report_id(timestamp: str) -> str:
    """Timestamp followed by a random base-36 suffix."""
    suffix = "".join(secrets.choice(REPORT_ID_ALPHABET) for _ in range(REPORT_ID_SUFFIX_LENGTH))
    return f"{timestamp}{suffix}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisOrchestrator:
    """Moves the flow from review through analyzing to report.

    While the scoring call and the history save run the stage is ``analyzing``
    and a second ``start_analysis`` is rejected. Any scoring failure, timeout or
    cancellation returns the flow to ``review`` with the recording, settings and
    questions untouched so the user can retry. Leaving ``analyzing`` any other
    way, as logout does, cancels the attempt and its result is discarded.
    """

    def __init__(self, machine: StateMachine, scoring_service: ScoringService,
                 history_store: HistoryStore, analysis_timeout: Optional[float] = 120.0,
                 clock: Callable[[], datetime] = _utc_now):
        """Initialize the orchestrator.

        Args:
            machine: State machine owning the stage and the session context.
            scoring_service: Collaborator that scores the answers.
            history_store: Collaborator that persists finished reports.
            analysis_timeout: Upper bound for the scoring call in seconds, None for no bound.
            clock: Source of the current UTC time.
        """
        self.agent_name = "AnalysisOrchestrator"
        self.logger = get_logger("agent.analysis_orchestrator")
        self.machine = machine
        self.scoring_service = scoring_service
        self.history_store = history_store
        self.analysis_timeout = analysis_timeout
        self._clock = clock

        self.last_answers: Optional[AnswerSet] = None
        self._inflight: Optional[asyncio.Future] = None
        self._cancel_requested = False
        self._initialized = False
        machine.add_stage_listener(self._on_stage_change)

    def initialize(self) -> None:
        """Check the collaborators before the first analysis."""
        if self._initialized:
            self.logger.warning(f"{self.agent_name} already initialized")
            return
        if self.scoring_service is None or self.history_store is None:
            raise OrchestrationError("Scoring service and history store are required",
                                     agent_name=self.agent_name, step_name="initialize")
        self._initialized = True
        self.logger.info(f"{self.agent_name} initialized")

    async def cleanup(self) -> None:
        """Cancel a running analysis and mark the orchestrator unusable until re-initialized."""
        if not self._initialized:
            return
        self.cancel_analysis()
        self._initialized = False
        self.logger.info(f"{self.agent_name} cleaned up")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def health_status(self) -> Dict[str, Any]:
        return {
            "agent_name": self.agent_name,
            "initialized": self._initialized,
            "analysis_in_flight": self.in_flight,
            "stage": self.machine.stage.value,
            "correlation_id": get_correlation_id(),
        }

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.logger.info(f"Operation: {operation}", extra=details or {})

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    def cancel_analysis(self) -> bool:
        """Cancel the running scoring call or history save. Returns False if nothing was running."""
        if self._inflight is None or self._inflight.done():
            return False
        self._cancel_requested = True
        self._inflight.cancel()
        return True

    async def start_analysis(self, answers: AnswerSet) -> Optional[Report]:
        """Score ``answers`` and persist the resulting report.

        Returns the report, or None when the analysis could not run or failed.

        Raises:
            AnalysisInProgressError: If an analysis is already running.
        """
        if self.in_flight or self.machine.stage == Stage.ANALYZING:
            raise AnalysisInProgressError(stage=self.machine.stage.value)

        context = self.machine.context
        if not context.ready_for_analysis:
            self.machine.emit(Diagnostic(
                kind=DiagnosticKind.MISSING_PREREQUISITE,
                message="Settings or questions are missing for analysis. Redirecting to setup.",
                from_stage=self.machine.stage,
                to_stage=Stage.SETUP,
                details={"has_settings": context.settings is not None, "question_count": len(context.questions)},
            ))
            self.machine.navigate(Stage.SETUP)
            return None

        answers = dict(answers)
        self.last_answers = answers
        self._cancel_requested = False
        self.machine.begin_analysis()
        self.log_operation("analysis started", {
            "question_count": len(context.questions),
            "answered_count": len(answers),
        })

        self._inflight = asyncio.ensure_future(
            self.scoring_service.analyze(list(context.questions), context.settings, answers)
        )
        try:
            try:
                report_data = await asyncio.wait_for(self._inflight, timeout=self.analysis_timeout)
            except asyncio.CancelledError:
                if not self._cancel_requested:
                    self.machine.abort_analysis()
                    raise
                self.logger.info("Analysis cancelled")
                self.machine.abort_analysis()
                return None
            except asyncio.TimeoutError as e:
                self._scoring_failed(e, f"Scoring did not finish within {self.analysis_timeout}s.")
                return None
            except Exception as e:
                self._scoring_failed(e, f"Scoring failed: {e}")
                return None

            if self._discard_result():
                return None

            timestamp = iso_timestamp(self._clock())
            report = Report.from_data(report_data, report_id=generate_report_id(timestamp), date=timestamp)

            self._inflight = asyncio.ensure_future(self.history_store.save(report))
            try:
                await self._inflight
            except asyncio.CancelledError:
                if not self._cancel_requested:
                    self.machine.abort_analysis()
                    raise
                self.logger.info(f"Analysis cancelled while saving report {report.id}")
                self.machine.abort_analysis()
                return None
            except Exception as e:
                log_error(e, {"report_id": report.id}, level="ERROR", logger=self.logger)
                self.machine.emit(Diagnostic(
                    kind=DiagnosticKind.PERSISTENCE_FAILURE,
                    message=f"Report {report.id} could not be saved to history: {e}",
                    from_stage=Stage.ANALYZING,
                    to_stage=Stage.REPORT,
                    details={"report_id": report.id},
                ))

            if self._discard_result():
                return None

            self.machine.finish_analysis(report)
            self.log_operation("analysis completed", {"report_id": report.id})
            return report
        finally:
            self._inflight = None
            self._cancel_requested = False

    def _on_stage_change(self, previous: Stage, current: Stage) -> None:
        # Scoring and saving settle before finish or abort, so a live attempt here means logout
        if previous == Stage.ANALYZING and self.in_flight:
            self.logger.info("Flow left analyzing, cancelling the running analysis")
            self.cancel_analysis()

    def _discard_result(self) -> bool:
        if self.machine.stage == Stage.ANALYZING and not self._cancel_requested:
            return False
        self.logger.warning(f"Discarding analysis result, flow moved to {self.machine.stage.value}")
        self.machine.abort_analysis()
        return True

    def _scoring_failed(self, error: BaseException, message: str) -> None:
        log_error(error, {"analysis_timeout": self.analysis_timeout}, level="ERROR", logger=self.logger)
        if self.machine.stage != Stage.ANALYZING:
            return
        self.machine.emit(Diagnostic(
            kind=DiagnosticKind.SCORING_FAILURE,
            message=f"{message} Returning to review.",
            from_stage=Stage.ANALYZING,
            to_stage=Stage.REVIEW,
            details={"error_type": type(error).__name__},
        ))
        self.machine.abort_analysis()
