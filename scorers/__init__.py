"""Scorers for classroom task submissions."""

from .exceptions import ScoringError, ScoringConfigurationError
from .base import BaseScorer
from .rule_scorer import RuleScorer
from .work_description import WorkDescriptionBuilder
from .judgment_scorer import ExternalJudgmentScorer, JudgmentClient, JudgmentRequest, parse_judgment_reply
from .ai_client import AIClient
from .dispatcher import ScoringDispatcher

__all__ = [
    "ScoringError", "ScoringConfigurationError",
    "BaseScorer", "RuleScorer", "WorkDescriptionBuilder",
    "ExternalJudgmentScorer", "JudgmentClient", "JudgmentRequest", "parse_judgment_reply",
    "AIClient", "ScoringDispatcher",
]
