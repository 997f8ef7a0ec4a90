"""Session Analytics Aggregator — folds a session's scored submissions into dashboard analytics."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from config.models import (
    AnalyticsResult,
    PerTaskEntry,
    ScoredSubmission,
    ScoreResult,
    ScoringMethod,
    SessionAnalytics,
    SessionContext,
    StudentAnalyticsSummary,
    TaskAnalyticsSummary,
    TaskDefinition,
    TeamAnalyticsSummary,
)
from config.settings import ScoringConfig, get_scoring_config
from scorers.normalizer import round_half_up

logger = logging.getLogger(__name__)


def _pct(numerator: float, denominator: float) -> int:
    return round_half_up(100 * numerator / denominator) if denominator > 0 else 0


def _mean(total: float, count: int) -> int:
    return round_half_up(total / count) if count > 0 else 0


# -------------------------------------------------------------------------
# Accumulators (one set per aggregate() call)
# -------------------------------------------------------------------------

class TaskAccumulator(BaseModel):
    task_id: str
    task_type: str = ""
    prompt: str = ""
    points_total: float = 0.0
    points_max_total: float = 0.0
    correct_count: int = 0
    incorrect_count: int = 0
    submissions_count: int = 0
    total_latency_ms: float = 0.0


class TeamAccumulator(BaseModel):
    team_id: str
    team_name: str = "Team"
    total_points: float = 0.0
    correct_count: int = 0
    incorrect_count: int = 0
    submissions_count: int = 0
    total_latency_ms: float = 0.0


class StudentAccumulator(BaseModel):
    student_id: str
    student_name: str = "Unknown"
    submissions_count: int = 0
    total_latency_ms: float = 0.0
    # task id -> best attempt, in first-attempt order
    best: Dict[str, PerTaskEntry] = Field(default_factory=dict)


class SessionAnalyticsAggregator:
    """
    Batch aggregation of one session.

    Pure: the same session and submissions always produce the same output.
    Must only run once the full submission set is available.
    """

    def __init__(self, scoring_config: Optional[ScoringConfig] = None):
        self.scoring_config = scoring_config or get_scoring_config()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def aggregate(self, session: Any, submissions: Iterable[Any]) -> AnalyticsResult:
        """Aggregate all scored submissions of a session into analytics."""
        session = session if isinstance(session, SessionContext) else SessionContext.model_validate(session)
        submissions = [
            s if isinstance(s, ScoredSubmission) else ScoredSubmission.model_validate(s)
            for s in submissions
        ]

        tasks = {task.id: task for task in session.tasks if task.id is not None}
        teams = {team.id: team for team in session.teams}
        names = {student.id: student.name for student in session.students}

        task_accs: Dict[str, TaskAccumulator] = {}
        team_accs: Dict[str, TeamAccumulator] = {}
        student_accs: Dict[str, StudentAccumulator] = {}
        submitted_task_ids = set()

        logger.info(f"Aggregating {len(submissions)} submissions for session {session.id}")

        for sub in submissions:
            task = tasks.get(sub.task_id)
            if task is None:
                logger.warning(f"Submission {sub.id} references unknown task {sub.task_id}; skipped")
                continue
            submitted_task_ids.add(sub.task_id)

            points = self._points(sub.result)
            max_points = self.max_points_for(task, sub.result)
            is_correct = self.correctness(sub, points, max_points)
            latency = sub.latency_ms

            # ---- per task ----
            t_acc = task_accs.get(sub.task_id)
            if t_acc is None:
                t_acc = task_accs[sub.task_id] = TaskAccumulator(
                    task_id=sub.task_id, task_type=task.task_type, prompt=task.prompt
                )
            t_acc.points_total += points
            t_acc.points_max_total += max_points
            t_acc.submissions_count += 1
            t_acc.total_latency_ms += latency
            if is_correct is True:
                t_acc.correct_count += 1
            elif is_correct is False:
                t_acc.incorrect_count += 1

            # ---- per team ----
            team = teams.get(sub.team_id) if sub.team_id else None
            if sub.team_id:
                tm_acc = team_accs.get(sub.team_id)
                if tm_acc is None:
                    tm_acc = team_accs[sub.team_id] = TeamAccumulator(
                        team_id=sub.team_id, team_name=team.name if team else "Team"
                    )
                tm_acc.total_points += points
                tm_acc.submissions_count += 1
                tm_acc.total_latency_ms += latency
                if is_correct is True:
                    tm_acc.correct_count += 1
                elif is_correct is False:
                    tm_acc.incorrect_count += 1

            # ---- per student ----
            student_ids = sub.student_ids or (team.student_ids if team else [])
            for student_id in student_ids:
                s_acc = student_accs.get(student_id)
                if s_acc is None:
                    s_acc = student_accs[student_id] = StudentAccumulator(
                        student_id=student_id, student_name=names.get(student_id, "Unknown")
                    )
                s_acc.submissions_count += 1
                s_acc.total_latency_ms += latency

                existing = s_acc.best.get(sub.task_id)
                if existing is None or points > existing.points:
                    s_acc.best[sub.task_id] = PerTaskEntry(
                        task_id=sub.task_id,
                        task_type=task.task_type,
                        prompt=task.prompt,
                        points=points,
                        max_points=max_points,
                        is_correct=is_correct,
                        latency_ms=latency,
                        submission_id=sub.id,
                    )

        tasks_assigned = len(session.tasks) or len(submitted_task_ids)
        student_summaries = [
            self._finalize_student(session.id, acc, tasks_assigned) for acc in student_accs.values()
        ]

        result = AnalyticsResult(
            session_analytics=SessionAnalytics(
                session_id=session.id,
                teacher_id=session.teacher_id,
                classroom_id=session.classroom_id,
                class_average_score=self._class_average_score(student_summaries),
                class_average_accuracy=self._class_average_accuracy(student_summaries),
                tasks=[self._finalize_task(acc) for acc in task_accs.values()],
                teams=[self._finalize_team(acc) for acc in team_accs.values()],
            ),
            student_analytics_list=student_summaries,
        )
        logger.info(
            f"Session {session.id}: {len(student_summaries)} students, "
            f"class average {result.session_analytics.class_average_score}%"
        )
        return result

    # -------------------------------------------------------------------------
    # Per-submission resolution
    # -------------------------------------------------------------------------
    @staticmethod
    def _points(result: Optional[ScoreResult]) -> float:
        if result is None or result.score is None:
            return 0.0
        return float(result.score)

    def max_points_for(self, task: TaskDefinition, result: Optional[ScoreResult]) -> float:
        """Max points contributed by one submission."""
        if result is not None and result.max_points is not None and result.max_points > 0:
            return float(result.max_points)
        meta = task.meta
        if meta is not None and meta.participation:
            return self.scoring_config.participation_max_points
        return self.scoring_config.objective_max_points

    @staticmethod
    def correctness(sub: ScoredSubmission, points: float, max_points: float) -> Optional[bool]:
        """True/False when correctness is unambiguous, else None."""
        if sub.is_correct is not None:
            return sub.is_correct
        result = sub.result
        if result is None or result.method != ScoringMethod.RULE_BASED or max_points <= 0:
            return None
        if points >= max_points:
            return True
        if points <= 0:
            return False
        return None

    # -------------------------------------------------------------------------
    # Finalization
    # -------------------------------------------------------------------------
    @staticmethod
    def _finalize_task(acc: TaskAccumulator) -> TaskAnalyticsSummary:
        return TaskAnalyticsSummary(
            task_id=acc.task_id,
            task_type=acc.task_type,
            prompt=acc.prompt,
            points_total=acc.points_total,
            points_max_total=acc.points_max_total,
            correct_count=acc.correct_count,
            incorrect_count=acc.incorrect_count,
            submissions_count=acc.submissions_count,
            total_latency_ms=acc.total_latency_ms,
            avg_score=_pct(acc.points_total, acc.points_max_total),
            avg_correct_pct=_pct(acc.correct_count, acc.correct_count + acc.incorrect_count),
            avg_latency_ms=_mean(acc.total_latency_ms, acc.submissions_count),
        )

    @staticmethod
    def _finalize_team(acc: TeamAccumulator) -> TeamAnalyticsSummary:
        return TeamAnalyticsSummary(
            team_id=acc.team_id,
            team_name=acc.team_name,
            total_points=acc.total_points,
            correct_count=acc.correct_count,
            incorrect_count=acc.incorrect_count,
            avg_latency_ms=_mean(acc.total_latency_ms, acc.submissions_count),
        )

    @staticmethod
    def _finalize_student(session_id: str, acc: StudentAccumulator, tasks_assigned: int) -> StudentAnalyticsSummary:
        per_task: List[PerTaskEntry] = list(acc.best.values())
        correct = sum(1 for entry in per_task if entry.is_correct is True)
        incorrect = sum(1 for entry in per_task if entry.is_correct is False)
        return StudentAnalyticsSummary(
            session_id=session_id,
            student_id=acc.student_id,
            student_name=acc.student_name,
            total_points=sum(entry.points for entry in per_task),
            max_points=sum(entry.max_points for entry in per_task),
            accuracy_pct=_pct(correct, correct + incorrect),
            tasks_completed=len(per_task),
            tasks_assigned=tasks_assigned or len(per_task),
            avg_latency_ms=_mean(acc.total_latency_ms, acc.submissions_count),
            per_task=per_task,
        )

    # -------------------------------------------------------------------------
    # Class averages (mean of per-student ratios)
    # -------------------------------------------------------------------------
    @staticmethod
    def _class_average_score(students: List[StudentAnalyticsSummary]) -> int:
        if not students:
            return 0
        ratios = [s.total_points / s.max_points if s.max_points > 0 else 0.0 for s in students]
        return round_half_up(100 * sum(ratios) / len(students))

    @staticmethod
    def _class_average_accuracy(students: List[StudentAnalyticsSummary]) -> int:
        if not students:
            return 0
        return round_half_up(100 * sum(s.accuracy_pct / 100 for s in students) / len(students))
