"""Service modules for the Rehearsal Coach."""

from .auth_gate import AuthGate, Credentials, FileAuthGate
from .configuration_manager import AppConfig, ConfigurationManager, ScoringProviderConfig
from .preferences import THEME_KEY, PreferenceStore, ThemeManager
from .scoring_service import ChatCompletionCoach, QuestionGenerator, ScoringService
from .storage_manager import FileHistoryStore, HistoryStore

__all__ = [
    "AuthGate",
    "Credentials",
    "FileAuthGate",
    "AppConfig",
    "ConfigurationManager",
    "ScoringProviderConfig",
    "THEME_KEY",
    "PreferenceStore",
    "ThemeManager",
    "ChatCompletionCoach",
    "QuestionGenerator",
    "ScoringService",
    "FileHistoryStore",
    "HistoryStore",
]
