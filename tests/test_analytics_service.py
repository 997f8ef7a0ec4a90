from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from config.models import ScoringMethod, SessionContext
from config.settings import ScoringConfig
from scorers import ScoringDispatcher
from services.analytics import AnalyticsService
from services.analytics.main import cli


SESSION: dict[str, Any] = {
    "id": "sess-42",
    "classroomId": "room-1",
    "teams": [{"id": "team-a", "name": "Otters", "studentIds": ["s1", "s2"]}],
    "students": [{"id": "s1", "name": "Ada"}, {"id": "s2", "name": "Ben"}],
    "tasks": [
        {"id": "t-mc", "taskType": "multiple-choice", "points": 10, "options": ["a", "b"], "correctAnswer": 0},
        {"id": "t-essay", "taskType": "open-text", "points": 10, "prompt": "Why do leaves change colour?"},
    ],
}


@pytest.fixture
def service(dispatcher: ScoringDispatcher, scoring_config: ScoringConfig) -> AnalyticsService:
    return AnalyticsService(dispatcher=dispatcher, scoring_config=scoring_config)


def test_score_submissions_fills_results_in_input_order(service: AnalyticsService, judge, rubric_doc: dict) -> None:
    judge.reply = '{"score": 6, "reason": "good start"}'
    submissions = [
        {"id": "sub-1", "taskId": "t-essay", "studentIds": ["s1"], "submission": {"text": "chlorophyll fades"}},
        {"id": "sub-2", "taskId": "t-mc", "studentIds": ["s2"], "submission": {"answer": "a"}},
    ]

    scored = service.score_submissions(SessionContext.model_validate(SESSION), submissions, {"t-essay": rubric_doc})

    assert [s.id for s in scored] == ["sub-1", "sub-2"]
    assert scored[0].result.method == ScoringMethod.AI_RUBRIC
    assert scored[0].result.score == 6
    assert scored[1].result.method == ScoringMethod.RULE_BASED
    assert scored[1].result.score == 10


def test_one_failed_judgment_leaves_others_scored(service: AnalyticsService, judge, rubric_doc: dict) -> None:
    def flaky(request):
        if "timeout" in json.dumps(request.normalized_work):
            raise TimeoutError("judgment call timed out")
        return '{"score": 8}'

    judge.reply = flaky
    submissions = [
        {"id": "bad", "taskId": "t-essay", "studentIds": ["s1"], "submission": {"text": "timeout please"}},
        {"id": "good", "taskId": "t-essay", "studentIds": ["s2"], "submission": {"text": "anthocyanins"}},
        {"id": "mc", "taskId": "t-mc", "studentIds": ["s1"], "submission": {"answer": 1}},
    ]

    scored = service.score_submissions(SessionContext.model_validate(SESSION), submissions, {"t-essay": rubric_doc})

    by_id = {s.id: s for s in scored}
    assert by_id["bad"].result is None
    assert by_id["good"].result.score == 8
    assert by_id["mc"].result.score == 0


def test_missing_rubric_only_affects_that_submission(service: AnalyticsService) -> None:
    submissions = [
        {"id": "essay", "taskId": "t-essay", "studentIds": ["s1"], "submission": {"text": "..."}},
        {"id": "mc", "taskId": "t-mc", "studentIds": ["s1"], "submission": {"answer": 0}},
    ]

    scored = service.score_submissions(SessionContext.model_validate(SESSION), submissions)

    assert scored[0].result is None
    assert scored[1].result.score == 10


def test_already_scored_submissions_are_not_rescored(service: AnalyticsService, judge) -> None:
    submissions = [{
        "id": "done",
        "taskId": "t-essay",
        "studentIds": ["s1"],
        "result": {"score": 3, "maxPoints": 10, "method": "ai-rubric"},
    }]

    scored = service.score_submissions(SessionContext.model_validate(SESSION), submissions)

    assert scored[0].result.score == 3
    assert judge.requests == []


def test_run_session_scores_aggregates_and_exports(
    service: AnalyticsService, judge, rubric_doc: dict, tmp_path: Path
) -> None:
    judge.reply = '{"score": 5}'
    submissions = [
        {"id": "1", "taskId": "t-mc", "teamId": "team-a", "submission": {"answer": "a"}, "latencyMs": 1200},
        {"id": "2", "taskId": "t-essay", "studentIds": ["s1"], "submission": {"text": "sunlight"}},
    ]
    pdf_path = tmp_path / "report.pdf"

    result = service.run_session(
        SESSION, submissions, rubrics={"t-essay": rubric_doc}, csv_dir=str(tmp_path), pdf_path=str(pdf_path)
    )

    students = {s.student_id: s for s in result.student_analytics_list}
    assert students["s1"].total_points == 15
    assert students["s2"].total_points == 10
    assert result.session_analytics.teams[0].total_points == 10
    assert (tmp_path / "sess-42_students.csv").exists()
    assert (tmp_path / "sess-42_tasks.csv").exists()
    assert pdf_path.read_bytes().startswith(b"%PDF")


def test_cli_score_prints_score_result(tmp_path: Path) -> None:
    task_file = tmp_path / "task.json"
    submission_file = tmp_path / "submission.json"
    task_file.write_text(json.dumps(SESSION["tasks"][0]))
    submission_file.write_text(json.dumps({"answer": "a"}))

    result = CliRunner().invoke(cli, ["score", str(task_file), str(submission_file)])

    assert result.exit_code == 0, result.output
    assert '"rule-based"' in result.output


def test_cli_score_reports_configuration_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("services.analytics.main._build_dispatcher", lambda: ScoringDispatcher())
    task_file = tmp_path / "task.json"
    submission_file = tmp_path / "submission.json"
    task_file.write_text(json.dumps(SESSION["tasks"][1]))
    submission_file.write_text(json.dumps({"text": "..."}))

    result = CliRunner().invoke(cli, ["score", str(task_file), str(submission_file)])

    assert result.exit_code == 1
    assert "open-text" in result.output


def test_cli_aggregate_prints_session_analytics(tmp_path: Path) -> None:
    session_file = tmp_path / "session.json"
    submissions_file = tmp_path / "submissions.json"
    session_file.write_text(json.dumps(SESSION))
    submissions_file.write_text(json.dumps([
        {"taskId": "t-mc", "studentIds": ["s1"], "result": {"score": 10, "maxPoints": 10, "method": "rule-based"}},
        {"taskId": "t-mc", "studentIds": ["s2"], "result": {"score": 0, "maxPoints": 10, "method": "rule-based"}},
    ]))

    result = CliRunner().invoke(cli, ["aggregate", str(session_file), str(submissions_file)])

    assert result.exit_code == 0, result.output
    assert '"classAverageScore": 50' in result.output
