"""Errors raised by the scoring engine."""


class ScoringError(Exception):
    """Base class for scoring failures."""


class ScoringConfigurationError(ScoringError, ValueError):
    """A submission needs judgment scoring but the call is not set up for it."""

    def __init__(self, message: str, task_type: str = ""):
        super().__init__(message)
        self.task_type = task_type
