"""Deterministic scoring for task types with a defined correct answer."""

import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from config.models import (
    ScoringCategory, ScoringMethod, ScoreResult, Submission, TaskDefinition, TaskItem
)
from config.models.core_models import Bucket, is_number
from .base import BaseScorer
from .normalizer import build_candidates, clamp, matches_any, normalize_answer, round_half_up

logger = logging.getLogger(__name__)


class RuleScorer(BaseScorer):
    """Exact and partial-credit scoring. Pure: no I/O, no shared state."""

    method = ScoringMethod.RULE_BASED

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def score(self, task: TaskDefinition, submission: Submission) -> Optional[ScoreResult]:
        """Score the submission, or return None when no rule applies to the task."""
        meta = task.meta
        if meta is None or not meta.objective_scoring:
            return None

        category = meta.category
        if category == ScoringCategory.DISCOVERY:
            return self.score_discovery(task, submission)

        if not task.has_correct_answer:
            return None

        # sort and sequence rules need the authored items
        if category in (ScoringCategory.BUCKET_SORT, ScoringCategory.ORDERING) and not task.config.items:
            logger.debug(f"Task {task.id} has no configured items; no rule applies")
            return None

        self._log_scoring_start(task)

        if category == ScoringCategory.BUCKET_SORT:
            result = self.score_bucket_sort(task, submission)
        elif category == ScoringCategory.ORDERING:
            result = self.score_ordering(task, submission)
        elif task.items:
            result = self.score_item_set(task, submission)
        else:
            result = self.score_single(task, submission)

        self._log_scoring_complete(task, result)
        return result

    # ------------------------------------------------------------------
    # Choice / boolean / text
    # ------------------------------------------------------------------
    def score_single(self, task: TaskDefinition, submission: Submission) -> ScoreResult:
        points = self._points(task)
        student = normalize_answer(submission.primary_answer())
        candidates = build_candidates(task.correct_answer, task.options)

        is_correct = student is not None and matches_any(student, candidates)

        details: Dict[str, Any] = {
            "isCorrect": is_correct,
            "studentAnswer": student,
            "candidates": candidates,
        }
        if student is None:
            details["reason"] = "No answer submitted."

        return self._result(points if is_correct else 0.0, points, details)

    def score_item_set(self, task: TaskDefinition, submission: Submission) -> ScoreResult:
        points = self._points(task)
        answers = submission.answers if submission.answers is not None else submission.answer

        correct_count = 0
        item_results: List[Dict[str, Any]] = []

        for index, item in enumerate(task.items):
            student = normalize_answer(self._item_answer(answers, item, index))
            if student is None or item.correct_answer is None:
                item_results.append({"index": index, "skipped": True})
                continue

            candidates = build_candidates(item.correct_answer, item.options or task.options)
            hit = matches_any(student, candidates)
            if hit:
                correct_count += 1
            item_results.append({"index": index, "isCorrect": hit, "studentAnswer": student})

        return self._result(
            points * correct_count,
            points * len(task.items),
            {
                "itemCount": len(task.items),
                "correctCount": correct_count,
                "items": item_results,
            },
        )

    def _item_answer(self, answers: Any, item: TaskItem, index: int) -> Any:
        if isinstance(answers, (list, tuple)):
            return answers[index] if index < len(answers) else None
        if isinstance(answers, Mapping):
            if item.id is not None and item.id in answers:
                return answers[item.id]
            return answers.get(str(index), answers.get(index))
        return None

    # ------------------------------------------------------------------
    # Bucket sort
    # ------------------------------------------------------------------
    def score_bucket_sort(self, task: TaskDefinition, submission: Submission) -> ScoreResult:
        points = self._points(task)
        items = task.config.items
        mapping = self._bucket_mapping(task, submission)

        if not items:
            return self._result(0.0, points, {
                "reason": "Task has no items to sort.",
                "itemCount": 0,
                "correctCount": 0,
            })

        if not mapping:
            return self._result(0.0, points, {
                "reason": "No bucket assignments submitted.",
                "itemCount": len(items),
                "correctCount": 0,
            })

        per_item = points / len(items)
        buckets = task.config.buckets
        score = 0.0
        correct_count = 0

        for item in items:
            expected = self._bucket_number(item.bucket_index, buckets)
            submitted = self._bucket_number(mapping.get(item.id), buckets)
            if expected is None or submitted is None:
                continue
            if math.isclose(expected, submitted):
                score += per_item
                correct_count += 1

        return self._result(score, points, {
            "itemCount": len(items),
            "correctCount": correct_count,
            "perItemPoints": per_item,
        })

    def _bucket_mapping(self, task: TaskDefinition, submission: Submission) -> Dict[str, Any]:
        """Collapse the accepted assignment shapes into item id -> bucket."""
        source = submission.mapping if submission.mapping else submission.assignments
        if isinstance(source, Mapping):
            return {str(k): v for k, v in source.items()}

        mapping: Dict[str, Any] = {}
        if not isinstance(source, (list, tuple)):
            return mapping

        items = task.config.items
        for entry in source:
            if not isinstance(entry, Mapping):
                continue
            item_id = entry.get("itemId", entry.get("id"))
            item_index = entry.get("itemIndex")
            if item_id is None and is_number(item_index) and 0 <= int(item_index) < len(items):
                item_id = items[int(item_index)].id
            if item_id is None:
                continue
            bucket = entry.get("bucketIndex", entry.get("bucketId", entry.get("bucket")))
            mapping[str(item_id)] = bucket
        return mapping

    def _bucket_number(self, value: Any, buckets: List[Bucket]) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        if is_number(value):
            return float(value)
        text = str(value).strip()
        try:
            return float(text)
        except ValueError:
            pass
        # bucket referenced by its id rather than its position
        for index, bucket in enumerate(buckets):
            if bucket.id is not None and bucket.id == text:
                return float(index)
        return None

    # ------------------------------------------------------------------
    # Ordering / timeline
    # ------------------------------------------------------------------
    def score_ordering(self, task: TaskDefinition, submission: Submission) -> ScoreResult:
        points = self._points(task)
        expected = [item.id for item in task.config.items]
        order = [self._order_id(entry) for entry in submission.order]

        if not expected:
            return self._result(0.0, points, {
                "reason": "Task has no items to order.",
                "itemCount": 0,
                "correctCount": 0,
            })

        if not order:
            return self._result(0.0, points, {
                "reason": "No order submitted.",
                "itemCount": len(expected),
                "correctCount": 0,
            })

        positions: Dict[str, int] = {}
        for position, item_id in enumerate(order):
            positions.setdefault(item_id, position)

        per_item = points / len(expected)
        score = 0.0
        correct_count = 0
        for index, item_id in enumerate(expected):
            if positions.get(item_id) == index:
                score += per_item
                correct_count += 1

        return self._result(score, points, {
            "itemCount": len(expected),
            "correctCount": correct_count,
            "perItemPoints": per_item,
        })

    @staticmethod
    def _order_id(entry: Any) -> str:
        if isinstance(entry, Mapping):
            entry = entry.get("id")
        return str(entry)

    # ------------------------------------------------------------------
    # Discovery / ratio
    # ------------------------------------------------------------------
    def score_discovery(self, task: TaskDefinition, submission: Submission) -> ScoreResult:
        points = task.point_value(self.scoring_config.discovery_default_points)
        total = self._total_targets(task)

        if total <= 0:
            return self._result(0.0, points, {
                "reason": "Task has no targets to find.",
                "totalTargets": total,
            })

        found = self._found_count(submission)
        ratio = clamp(found / total, 0.0, 1.0)

        return self._result(round_half_up(ratio * points), points, {
            "foundCount": found,
            "totalTargets": total,
            "ratio": ratio,
        })

    def _total_targets(self, task: TaskDefinition) -> float:
        configured = task.config.total_targets
        if is_number(configured):
            return float(configured)
        if task.differences:
            return float(len(task.differences))
        return float(self.scoring_config.discovery_default_targets)

    @staticmethod
    def _found_count(submission: Submission) -> float:
        try:
            value = float(submission.found_count)
        except (TypeError, ValueError):
            return 0.0
        return value if math.isfinite(value) else 0.0
