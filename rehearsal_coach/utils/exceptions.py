"""Custom exceptions for the Rehearsal Coach."""

from typing import Optional, Any, Dict


class RehearsalCoachError(Exception):
    """Base exception for all Rehearsal Coach errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the exception.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(RehearsalCoachError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIG_ERROR", details)
        self.config_key = config_key


class StorageError(RehearsalCoachError):
    """Exception raised for storage-related errors."""

    def __init__(self, message: str, file_path: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the storage error.

        Args:
            message: Error message
            file_path: Optional file path that caused the error
            details: Optional additional error details
        """
        super().__init__(message, "STORAGE_ERROR", details)
        self.file_path = file_path


class ScoringError(RehearsalCoachError):
    """Exception raised when the scoring provider fails or returns unusable data."""

    def __init__(self, message: str, provider_name: Optional[str] = None,
                 status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the scoring error.

        Args:
            message: Error message
            provider_name: Optional name of the provider that failed
            status_code: Optional HTTP status code returned by the provider
            details: Optional additional error details
        """
        super().__init__(message, "SCORING_ERROR", details)
        self.provider_name = provider_name
        self.status_code = status_code


class AuthenticationError(RehearsalCoachError):
    """Exception raised for authentication errors."""

    def __init__(self, message: str, auth_method: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHENTICATION_ERROR", details)
        self.auth_method = auth_method


class SessionError(RehearsalCoachError):
    """Exception raised for rehearsal session errors."""

    def __init__(self, message: str, stage: Optional[str] = None, details: Optional[Dict[str, Any]] = None,
                 error_code: str = "SESSION_ERROR"):
        """Initialize the session error.

        Args:
            message: Error message
            stage: Optional stage the session was in
            details: Optional additional error details
            error_code: Error code for categorization
        """
        super().__init__(message, error_code, details)
        self.stage = stage


class AnalysisInProgressError(SessionError):
    """Raised when an analysis is requested while another one is still running."""

    def __init__(self, message: str = "An analysis is already in progress", stage: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, stage, details, error_code="ANALYSIS_IN_PROGRESS")


class OrchestrationError(RehearsalCoachError):
    """Exception raised when an agent is wired or driven incorrectly."""

    def __init__(self, message: str, agent_name: Optional[str] = None, step_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        """Initialize the orchestration error.

        Args:
            message: Error message
            agent_name: Optional name of the agent that failed
            step_name: Optional name of the step that failed
            details: Optional additional error details
        """
        super().__init__(message, "ORCHESTRATION_ERROR", details)
        self.agent_name = agent_name
        self.step_name = step_name
