"""Rehearsal flow: stage state machine, session context and invariant checks."""

from .diagnostics import Diagnostic, DiagnosticKind
from .session_context import SessionContext
from .state_machine import StateMachine
from .validator import validate_stage

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "SessionContext",
    "StateMachine",
    "validate_stage",
]
