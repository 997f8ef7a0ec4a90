from __future__ import annotations

from typing import Any, Optional

import pytest

from config.settings import ScoringConfig
from services.analytics import SessionAnalyticsAggregator


def _session(**overrides) -> dict[str, Any]:
    session = {
        "id": "sess-1",
        "teacherId": "teacher-1",
        "classroomId": "room-7",
        "teams": [
            {"id": "team-a", "name": "Otters", "studentIds": ["s1", "s2"]},
            {"id": "team-b", "name": "Hawks", "studentIds": ["s3"]},
        ],
        "students": [{"id": "s1", "name": "Ada"}, {"id": "s2", "name": "Ben"}, {"id": "s3", "name": "Cy"}],
        "tasks": [
            {"id": "t1", "taskType": "multiple-choice", "points": 10, "prompt": "Pick one"},
            {"id": "t2", "taskType": "photo", "prompt": "Snap a leaf"},
            {"id": "t3", "taskType": "open-text", "prompt": "Explain"},
        ],
    }
    session.update(overrides)
    return session


def _sub(
    task_id: str,
    students: list[str],
    score: Optional[float],
    max_points: Optional[float] = 10,
    method: str = "rule-based",
    **extra,
) -> dict[str, Any]:
    result = None
    if method == "none":
        result = {"method": "none", "maxPoints": max_points}
    elif score is not None:
        result = {"score": score, "maxPoints": max_points, "method": method}
    return {"taskId": task_id, "studentIds": students, "result": result, **extra}


@pytest.fixture
def aggregator(scoring_config: ScoringConfig) -> SessionAnalyticsAggregator:
    return SessionAnalyticsAggregator(scoring_config)


def test_class_average_is_mean_of_student_ratios(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [
        _sub("t1", ["s1"], 10),
        _sub("t1", ["s2"], 5),
        _sub("t1", ["s3"], 0),
    ]

    result = aggregator.aggregate(_session(), submissions)

    session = result.session_analytics
    assert session.class_average_score == 50
    # s1 correct, s2 partial (ambiguous), s3 incorrect
    assert session.class_average_accuracy == 33
    task = session.tasks[0]
    assert task.avg_score == 50
    assert task.correct_count == 1
    assert task.incorrect_count == 1
    assert task.avg_correct_pct == 50


def test_class_average_ignores_other_task_scales(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [
        _sub("t1", ["s1"], 10),
        _sub("t3", ["s1"], 100, max_points=100, method="ai-rubric"),
        _sub("t1", ["s2"], 0),
    ]

    result = aggregator.aggregate(_session(), submissions)

    # s1 = 110/110, s2 = 0/10
    assert result.session_analytics.class_average_score == 50


def test_best_attempt_per_task_is_kept(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [
        _sub("t1", ["s1"], 3, id="first", latencyMs=1000),
        _sub("t1", ["s1"], 7, id="second", latencyMs=2001),
    ]

    result = aggregator.aggregate(_session(), submissions)

    student = result.student_analytics_list[0]
    assert [entry.points for entry in student.per_task] == [7]
    assert student.per_task[0].submission_id == "second"
    assert student.total_points == 7
    assert student.max_points == 10
    assert student.tasks_completed == 1
    assert student.avg_latency_ms == 1501
    task = result.session_analytics.tasks[0]
    assert task.points_total == 10
    assert task.submissions_count == 2


def test_tied_attempts_keep_the_first(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [_sub("t1", ["s1"], 5, id="a"), _sub("t1", ["s1"], 5, id="b")]

    result = aggregator.aggregate(_session(), submissions)

    assert result.student_analytics_list[0].per_task[0].submission_id == "a"


def test_missing_max_points_fall_back_to_type_defaults(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [
        _sub("t2", ["s1"], None, max_points=None, method="none"),
        _sub("t3", ["s1"], None),
    ]

    result = aggregator.aggregate(_session(), submissions)

    max_by_task = {t.task_id: t.points_max_total for t in result.session_analytics.tasks}
    assert max_by_task == {"t2": 5, "t3": 10}
    student = result.student_analytics_list[0]
    assert student.total_points == 0
    assert student.max_points == 15


def test_explicit_correctness_is_used(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [_sub("t3", ["s1"], 4, method="ai-rubric", isCorrect=True)]

    result = aggregator.aggregate(_session(), submissions)

    assert result.session_analytics.tasks[0].correct_count == 1
    assert result.student_analytics_list[0].accuracy_pct == 100


def test_judged_partial_score_is_not_counted_for_accuracy(aggregator: SessionAnalyticsAggregator) -> None:
    result = aggregator.aggregate(_session(), [_sub("t3", ["s1"], 10, method="ai-rubric")])

    task = result.session_analytics.tasks[0]
    assert task.correct_count == 0
    assert task.incorrect_count == 0


def test_team_roster_used_when_submission_names_no_students(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [_sub("t1", [], 10, teamId="team-a", latencyMs=400)]

    result = aggregator.aggregate(_session(), submissions)

    names = [s.student_name for s in result.student_analytics_list]
    assert names == ["Ada", "Ben"]
    team = result.session_analytics.teams[0]
    assert team.team_name == "Otters"
    assert team.total_points == 10
    assert team.correct_count == 1
    assert team.avg_latency_ms == 400


def test_unknown_tasks_are_skipped(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [_sub("ghost", ["s1"], 10), _sub("t1", ["s2"], 10)]

    result = aggregator.aggregate(_session(), submissions)

    assert [t.task_id for t in result.session_analytics.tasks] == ["t1"]
    assert [s.student_id for s in result.student_analytics_list] == ["s2"]


def test_tasks_assigned_counts_session_tasks(aggregator: SessionAnalyticsAggregator) -> None:
    result = aggregator.aggregate(_session(), [_sub("t1", ["s1"], 10)])

    student = result.student_analytics_list[0]
    assert student.tasks_assigned == 3
    assert student.tasks_completed == 1
    assert student.session_id == "sess-1"


def test_empty_session(aggregator: SessionAnalyticsAggregator) -> None:
    result = aggregator.aggregate(_session(), [])

    assert result.session_analytics.class_average_score == 0
    assert result.session_analytics.tasks == []
    assert result.student_analytics_list == []


def test_aggregate_is_idempotent(aggregator: SessionAnalyticsAggregator) -> None:
    session = _session()
    submissions = [
        _sub("t1", ["s1"], 10, latencyMs=900),
        _sub("t1", ["s1"], 0),
        _sub("t2", [], 3, max_points=5, teamId="team-b"),
        _sub("t3", ["s2"], 6, method="ai-rubric"),
    ]

    first = aggregator.aggregate(session, submissions)
    second = aggregator.aggregate(session, submissions)

    assert first.model_dump(by_alias=True) == second.model_dump(by_alias=True)


def test_oddly_shaped_submission_does_not_block_the_session(aggregator: SessionAnalyticsAggregator) -> None:
    submissions = [
        _sub("t3", ["s1"], 6, method="ai-rubric", submission={"notes": ["a", "b"], "text": {"value": "x"}}),
        _sub("t1", ["s2"], 10, submission={"answer": 0, "caption": [1, 2], "completed": {"?": 1}}),
    ]

    result = aggregator.aggregate(_session(), submissions)

    assert [s.student_id for s in result.student_analytics_list] == ["s1", "s2"]
    assert result.session_analytics.class_average_score == 80
