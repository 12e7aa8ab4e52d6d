"""Agents that coordinate the rehearsal collaborators."""

from .analysis_orchestrator import AnalysisOrchestrator, REPORT_ID_PATTERN, generate_report_id

__all__ = [
    "AnalysisOrchestrator",
    "REPORT_ID_PATTERN",
    "generate_report_id",
]
