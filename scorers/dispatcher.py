"""
Single entry point for scoring one submission.

Resolution order:
  1. specialised categories (puzzle, discovery, photo-journal)
  2. deterministic rule scoring, which always wins when it applies
  3. external judgment, when the task requires it and a rubric is available
  4. otherwise an explicit "no score" result
"""

import json
import logging
from typing import Any, Optional, Union

from config.models import (
    Rubric, RubricCriterion, ScoreResult, ScoringCategory, ScoringMethod, Submission, TaskDefinition
)
from config.models.core_models import is_number
from config.settings import ScoringConfig, get_scoring_config
from .exceptions import ScoringConfigurationError
from .judgment_scorer import ExternalJudgmentScorer, JudgmentClient
from .rule_scorer import RuleScorer
from .work_description import WorkDescriptionBuilder

logger = logging.getLogger(__name__)

RubricInput = Union[Rubric, dict, str, None]


class ScoringDispatcher:
    """Routes a (task, submission, rubric?) triple to the right scorer."""

    def __init__(
        self,
        judge: Optional[JudgmentClient] = None,
        rule_scorer: Optional[RuleScorer] = None,
        builder: Optional[WorkDescriptionBuilder] = None,
        scoring_config: Optional[ScoringConfig] = None,
    ):
        self.scoring_config = scoring_config or get_scoring_config()
        self.judge = judge
        self.builder = builder or WorkDescriptionBuilder()
        self.rule_scorer = rule_scorer or RuleScorer(self.scoring_config)
        self.judgment_scorer = (
            ExternalJudgmentScorer(judge, self.builder, self.scoring_config) if judge is not None else None
        )

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------
    def score(self, task: Any, submission: Any, rubric: RubricInput = None) -> ScoreResult:
        """
        Score one submission.

        Returns a ``method="none"`` result when no scoring path applies.
        Raises ScoringConfigurationError only when judgment is required and
        cannot be set up (no rubric, no judgment client).
        """
        task = self._coerce_task(task)
        submission = Submission.coerce(submission)
        rubric = self._coerce_rubric(rubric)

        category = task.category
        logger.debug(f"Dispatching task {task.id} (type={task.task_type}, category={category})")

        if category == ScoringCategory.PUZZLE:
            return self.score_puzzle(task, submission, rubric)
        if category == ScoringCategory.DISCOVERY:
            return self.score_discovery(task, submission, rubric)
        if category == ScoringCategory.PHOTO_JOURNAL:
            return self.score_photo_journal(task, submission, rubric)

        # an explicit judgment override bypasses rule scoring
        if task.ai_scoring_required is not True:
            result = self.rule_scorer.score(task, submission)
            if result is not None:
                return result

        if not self.judgment_required(task, rubric):
            logger.debug(f"No scoring path for task {task.id}; leaving unscored")
            return ScoreResult(
                method=ScoringMethod.NONE,
                score=None,
                max_points=float(task.points) if is_number(task.points) else None,
                details={"reason": "No rule applies and judgment is not required."},
            )

        if rubric is None:
            raise ScoringConfigurationError(
                f"Task type '{task.task_type}' requires judgment scoring but no rubric was provided",
                task_type=task.task_type,
            )
        return self._judge(task, submission, rubric, self._task_points(task))

    # ------------------------------------------------------------------
    # Judgment decision
    # ------------------------------------------------------------------
    def judgment_required(self, task: TaskDefinition, rubric: Optional[Rubric]) -> bool:
        if task.ai_scoring_required is not None:
            return bool(task.ai_scoring_required)
        meta = task.meta
        if meta is not None and meta.default_ai_scoring_required:
            return True
        return not task.has_correct_answer and rubric is not None

    # ------------------------------------------------------------------
    # Specialised categories
    # ------------------------------------------------------------------
    def score_puzzle(self, task: TaskDefinition, submission: Submission, rubric: Optional[Rubric]) -> ScoreResult:
        if rubric is not None:
            return self._judge(task, submission, rubric, self._task_points(task))

        result = self._judge(task, submission, self.puzzle_rubric(task), None)
        if submission.completed:
            return result

        cap = result.max_points * self.scoring_config.puzzle_partial_band
        if result.score <= cap:
            return result
        logger.info(f"Puzzle {task.id} not completed; capping judged score {result.score} at {cap}")
        return result.model_copy(update={
            "score": cap,
            "details": {**result.details, "partialBandCap": cap},
        })

    def score_discovery(self, task: TaskDefinition, submission: Submission, rubric: Optional[Rubric]) -> ScoreResult:
        if submission.found_count is not None:
            return self.rule_scorer.score_discovery(task, submission)

        if self.builder.extract_text(submission):
            if rubric is not None:
                return self._judge(task, submission, rubric, self._task_points(task))
            points = task.point_value(self.scoring_config.discovery_default_points)
            return self._judge(task, submission, self.discovery_rubric(task, points), None)

        return self.rule_scorer.score_discovery(task, submission)

    def score_photo_journal(self, task: TaskDefinition, submission: Submission, rubric: Optional[Rubric]) -> ScoreResult:
        if rubric is not None:
            return self._judge(task, submission, rubric, self._task_points(task))
        return self._judge(task, submission, self.photo_journal_rubric(task), None)

    # ------------------------------------------------------------------
    # Built-in rubrics
    # ------------------------------------------------------------------
    def puzzle_rubric(self, task: TaskDefinition) -> Rubric:
        total = task.point_value(self.scoring_config.default_points)
        band = total * self.scoring_config.puzzle_partial_band
        return Rubric(
            total_points=total,
            criteria=[
                RubricCriterion(
                    id="completion",
                    label="Concept map completion",
                    max_points=total,
                    description=(
                        f"Award full credit ({total:g}) when the map is completed and every node is "
                        f"connected in a sensible order. Otherwise award at most {band:g} for partial progress."
                    ),
                ),
            ],
        )

    def discovery_rubric(self, task: TaskDefinition, points: float) -> Rubric:
        expected = len(task.differences) or int(self.scoring_config.discovery_default_targets)
        return Rubric(
            total_points=points,
            criteria=[
                RubricCriterion(
                    id="differences",
                    label="Differences identified",
                    max_points=points,
                    description=(
                        f"The student should identify {expected} differences. "
                        "Award credit in proportion to the real differences correctly described."
                    ),
                ),
            ],
        )

    def photo_journal_rubric(self, task: TaskDefinition) -> Rubric:
        total = task.point_value(10.0)
        photo_weight = self.scoring_config.photo_relevance_weight
        return Rubric(
            total_points=total,
            criteria=[
                RubricCriterion(
                    id="photo",
                    label="Photo relevance",
                    max_points=round(total * photo_weight, 2),
                    description="A photo was taken and it relates to the prompt.",
                ),
                RubricCriterion(
                    id="explanation",
                    label="Explanation quality",
                    max_points=round(total * (1 - photo_weight), 2),
                    description="The caption explains what the photo shows and how it answers the prompt.",
                ),
            ],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _judge(
        self, task: TaskDefinition, submission: Submission, rubric: Rubric, total_points: Optional[float]
    ) -> ScoreResult:
        if self.judgment_scorer is None:
            raise ScoringConfigurationError(
                f"Task type '{task.task_type}' requires judgment scoring but no judgment client is configured",
                task_type=task.task_type,
            )
        return self.judgment_scorer.score(task, submission, rubric, total_points=total_points)

    @staticmethod
    def _task_points(task: TaskDefinition) -> Optional[float]:
        if is_number(task.points) and task.points > 0:
            return float(task.points)
        return None

    @staticmethod
    def _coerce_task(task: Any) -> TaskDefinition:
        if isinstance(task, TaskDefinition):
            return task
        if isinstance(task, str):
            return TaskDefinition.model_validate_json(task)
        return TaskDefinition.model_validate(task)

    @staticmethod
    def _coerce_rubric(rubric: RubricInput) -> Optional[Rubric]:
        if rubric is None or isinstance(rubric, Rubric):
            return rubric
        if isinstance(rubric, str):
            if not rubric.strip():
                return None
            return Rubric.model_validate(json.loads(rubric))
        return Rubric.model_validate(rubric)
