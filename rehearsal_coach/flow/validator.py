"""Post-transition invariant checks for the rehearsal flow."""

from typing import Optional

from ..models.enums import Stage
from ..models.user import Identity
from .diagnostics import Diagnostic, DiagnosticKind
from .session_context import SessionContext


def validate_stage(stage: Stage, identity: Optional[Identity], context: SessionContext) -> Optional[Diagnostic]:
    """Check the data required by ``stage``.

    Returns a diagnostic carrying the stage to redirect to, or None when the
    stage is consistent with the identity and the session context.
    """
    if identity is None and stage.requires_identity:
        return Diagnostic(
            kind=DiagnosticKind.INVALID_STATE_ENTRY,
            message=f"Entered {stage.value} without an authenticated user. Redirecting to landing.",
            from_stage=stage,
            to_stage=Stage.LANDING,
        )

    if stage == Stage.ANALYZING and not context.ready_for_analysis:
        return Diagnostic(
            kind=DiagnosticKind.MISSING_PREREQUISITE,
            message="Entered analyzing without settings or questions. Redirecting to setup.",
            from_stage=stage,
            to_stage=Stage.SETUP,
            details={"has_settings": context.settings is not None, "question_count": len(context.questions)},
        )

    if stage == Stage.REVIEW and context.recorded_media is None:
        return Diagnostic(
            kind=DiagnosticKind.INVALID_STATE_ENTRY,
            message="Entered review without a recording. Redirecting to dashboard.",
            from_stage=stage,
            to_stage=Stage.DASHBOARD,
        )

    if stage == Stage.REPORT and (context.report is None or context.recorded_media is None):
        return Diagnostic(
            kind=DiagnosticKind.INVALID_STATE_ENTRY,
            message="Entered report without a report or recording. Redirecting to dashboard.",
            from_stage=stage,
            to_stage=Stage.DASHBOARD,
            details={
                "has_report": context.report is not None,
                "has_recording": context.recorded_media is not None,
            },
        )

    return None
