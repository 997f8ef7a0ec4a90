"""
Base scorer class shared by the rule-based and judgment-based scorers.
"""

import abc
import logging
from typing import Dict, Any, Optional

from config.models import TaskDefinition, Submission, ScoreResult, ScoringMethod
from config.settings import ScoringConfig, get_scoring_config

logger = logging.getLogger(__name__)


class BaseScorer(abc.ABC):
    """Abstract base class for all scorers."""

    method: ScoringMethod = ScoringMethod.NONE

    def __init__(self, scoring_config: Optional[ScoringConfig] = None):
        self.scoring_config = scoring_config or get_scoring_config()

    # ------------------------------------------------------------------
    # Support helpers
    # ------------------------------------------------------------------
    def _points(self, task: TaskDefinition) -> float:
        return task.point_value(self.scoring_config.default_points)

    def _result(
        self, score: float, max_points: float,
        details: Optional[Dict[str, Any]] = None, reason: Optional[str] = None
    ) -> ScoreResult:
        return ScoreResult(
            score=max(0.0, min(float(max_points), float(score))),
            max_points=float(max_points),
            method=self.method,
            details=details or {},
            reason=reason,
        )

    def _log_scoring_start(self, task: TaskDefinition):
        logger.debug(
            f"→ START {self.method.value} scoring "
            f"(task={task.id}, type={task.task_type})"
        )

    def _log_scoring_complete(self, task: TaskDefinition, result: ScoreResult):
        logger.debug(
            f"✓ DONE {self.method.value} scoring (task={task.id}) "
            f"score={result.score}/{result.max_points}"
        )

    @abc.abstractmethod
    def score(self, task: TaskDefinition, submission: Submission, *args, **kwargs) -> Optional[ScoreResult]:
        raise NotImplementedError()
