"""Stage state machine for the rehearsal flow."""

from typing import Callable, List, Optional, Sequence

from ..models.enums import Stage
from ..models.interview import InterviewSettings, Question, RecordedMedia, Report
from ..models.user import Identity
from ..utils.exceptions import SessionError
from ..utils.logging import get_logger, set_correlation_id, set_log_stage
from .diagnostics import Diagnostic, DiagnosticKind
from .session_context import SessionContext
from .validator import validate_stage

StageListener = Callable[[Stage, Stage], None]

# A redirect always targets dashboard or landing, both of which validate
# cleanly, so two passes are enough. The bound guards against future rules.
_MAX_REDIRECTS = 4


class StateMachine:
    """Single source of truth for the current stage.

    Every operation that changes the stage ends by running the validator, so
    an invalid entry into review or report (or into an authenticated stage
    without a user) is corrected before control returns to the caller.
    """

    def __init__(self, context: Optional[SessionContext] = None):
        self._stage = Stage.LANDING
        self._identity: Optional[Identity] = None
        self.context = context or SessionContext()
        self.diagnostics: List[Diagnostic] = []
        self.logger = get_logger("flow.state_machine")
        self._listeners: List[StageListener] = []

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def stage(self) -> Stage:
        return self._stage

    @stage.setter
    def stage(self, target: Stage) -> None:
        """Direct assignment follows the same rules as ``navigate``."""
        self.navigate(target)

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    def add_stage_listener(self, listener: StageListener) -> None:
        """Register a callback invoked with (old, new) after each validated transition."""
        self._listeners.append(listener)

    def remove_stage_listener(self, listener: StageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # =========================================================================
    # USER-DRIVEN TRANSITIONS
    # =========================================================================

    def initialize(self, identity: Optional[Identity]) -> Stage:
        """Pick the boot stage from the identity resolved by the auth gate."""
        self.context = SessionContext()
        self._identity = identity
        if identity is not None:
            set_correlation_id(identity.email)
            self.logger.info(f"Resumed session for {identity.email}")
            return self._transition(Stage.DASHBOARD)
        return self._transition(Stage.LANDING)

    def navigate(self, target: Stage) -> Stage:
        """Move to ``target`` on behalf of the user.

        ``analyzing`` is never a valid target here, and every move is refused
        while an analysis is running.
        """
        target = Stage(target)
        if target == Stage.ANALYZING:
            self.emit(Diagnostic(
                kind=DiagnosticKind.REJECTED_TRANSITION,
                message="Analysis can only be started from the review stage.",
                from_stage=self._stage,
                to_stage=target,
            ))
            return self._stage
        if not self._allow_user_transition(target):
            return self._stage
        return self._transition(target)

    def on_login(self, identity: Identity) -> Stage:
        self._identity = identity
        set_correlation_id(identity.email)
        self.logger.info(f"User {identity.email} logged in")
        return self._transition(Stage.DASHBOARD)

    def on_logout(self) -> Stage:
        if self._identity is not None:
            self.logger.info(f"User {self._identity.email} logged out")
        self._identity = None
        self.context.reset()
        stage = self._transition(Stage.LANDING)
        set_correlation_id("")
        return stage

    def complete_setup(self, settings: InterviewSettings, questions: Sequence[Question]) -> Stage:
        """Capture the interview configuration and move on to the session."""
        if not self._allow_user_transition(Stage.SESSION):
            return self._stage
        if not questions:
            self.emit(Diagnostic(
                kind=DiagnosticKind.REJECTED_TRANSITION,
                message="Setup completed without any questions. Staying on setup.",
                from_stage=self._stage,
                to_stage=Stage.SESSION,
            ))
            return self._stage

        self.context.settings = settings
        self.context.questions = list(questions)
        return self._transition(Stage.SESSION)

    def complete_session(self, recorded_media: RecordedMedia) -> Stage:
        """Keep the recording and move on to the review."""
        if not self._allow_user_transition(Stage.REVIEW):
            return self._stage
        self.context.recorded_media = recorded_media
        return self._transition(Stage.REVIEW)

    # =========================================================================
    # ANALYSIS TRANSITIONS (driven by the orchestrator)
    # =========================================================================

    def begin_analysis(self) -> Stage:
        if not self.context.ready_for_analysis:
            raise SessionError("Cannot analyze without settings and questions", stage=self._stage.value)
        return self._transition(Stage.ANALYZING)

    def finish_analysis(self, report: Report) -> Stage:
        if self._stage != Stage.ANALYZING:
            raise SessionError("No analysis is running", stage=self._stage.value)
        self.context.report = report
        return self._transition(Stage.REPORT)

    def abort_analysis(self) -> Stage:
        """Return to review. A no-op once the flow has left analyzing, e.g. after logout."""
        if self._stage != Stage.ANALYZING:
            self.logger.debug(f"Not aborting analysis from {self._stage.value}")
            return self._stage
        return self._transition(Stage.REVIEW)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def emit(self, diagnostic: Diagnostic) -> None:
        """Record and log a diagnostic."""
        self.diagnostics.append(diagnostic)
        self.logger.log(diagnostic.kind.log_level, diagnostic.message, extra=diagnostic.log_extra())

    def _allow_user_transition(self, target: Stage) -> bool:
        if self._stage != Stage.ANALYZING:
            return True
        self.emit(Diagnostic(
            kind=DiagnosticKind.REJECTED_TRANSITION,
            message=f"Ignoring move to {target.value} while an analysis is running.",
            from_stage=self._stage,
            to_stage=target,
        ))
        return False

    def _transition(self, target: Stage) -> Stage:
        previous = self._stage
        self._enter(target)
        self._validate()
        set_log_stage(self._stage.value)
        if self._stage != previous:
            self.logger.debug(f"Stage {previous.value} -> {self._stage.value}")
            for listener in list(self._listeners):
                listener(previous, self._stage)
        return self._stage

    def _enter(self, stage: Stage) -> None:
        # Every entry into setup starts a fresh attempt
        if stage == Stage.SETUP:
            self.context.reset()
        self._stage = stage

    def _validate(self) -> None:
        for _ in range(_MAX_REDIRECTS):
            diagnostic = validate_stage(self._stage, self._identity, self.context)
            if diagnostic is None:
                return
            self.emit(diagnostic)
            self._enter(diagnostic.to_stage)
        raise SessionError(f"Stage validation did not settle at {self._stage.value}", stage=self._stage.value)
