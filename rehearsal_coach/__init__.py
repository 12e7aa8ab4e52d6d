"""Rehearsal Coach - mock interview rehearsal with scored feedback."""

__version__ = "0.1.0"
