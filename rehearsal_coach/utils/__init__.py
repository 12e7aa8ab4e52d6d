"""Utility modules for the Rehearsal Coach."""

from .logging import setup_logging, get_logger, set_correlation_id, get_correlation_id, set_log_stage, log_error
from .exceptions import (
    RehearsalCoachError,
    ConfigurationError,
    StorageError,
    ScoringError,
    AuthenticationError,
    SessionError,
    AnalysisInProgressError,
    OrchestrationError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "set_log_stage",
    "log_error",
    "RehearsalCoachError",
    "ConfigurationError",
    "StorageError",
    "ScoringError",
    "AuthenticationError",
    "SessionError",
    "AnalysisInProgressError",
    "OrchestrationError",
]
