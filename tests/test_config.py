from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from config.models import TaskType, get_task_type_meta, resolve_task_type
from config.models.task_types import ScoringCategory, TASK_TYPE_META
from config.settings import AIConfig, ScoringConfig, Settings
from scorers import AIClient, JudgmentRequest


def test_every_task_type_has_metadata() -> None:
    assert set(TASK_TYPE_META) == set(TaskType)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("multiple-choice", TaskType.MULTIPLE_CHOICE),
        ("MCQ", TaskType.MULTIPLE_CHOICE),
        ("true_false", TaskType.TRUE_FALSE),
        ("categorize", TaskType.SORT),
        ("spot-the-difference", TaskType.DIFF_DETECTIVE),
        ("concept-map", TaskType.MIND_MAPPER),
        ("not-a-task", None),
        (None, None),
    ],
)
def test_resolve_task_type(raw, expected) -> None:
    assert resolve_task_type(raw) == expected


def test_participation_types_are_flagged() -> None:
    assert get_task_type_meta("photo").participation
    assert get_task_type_meta("body-break").category == ScoringCategory.PARTICIPATION
    assert not get_task_type_meta("multiple-choice").participation


def test_scoring_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCORING_PARTICIPATION_MAX_POINTS", "7")
    monkeypatch.setenv("SCORING_MAX_CONCURRENT_JUDGMENTS", "2")

    config = ScoringConfig()

    assert config.participation_max_points == 7
    assert config.max_concurrent_judgments == 2


class _FakeCompletions:
    def __init__(self, content: str) -> None:
        self.content = content
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _request() -> JudgmentRequest:
    return JudgmentRequest(
        rubric={"totalPoints": 5, "criteria": []},
        normalized_work={"kind": "text", "text": "hi", "taskType": "open-text"},
        expected_score_range=[0.0, 5.0],
        task_type="open-text",
    )


def test_ai_client_sends_json_mode_request() -> None:
    completions = _FakeCompletions('  {"score": 2, "reason": "ok"}  ')
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    config = AIConfig(openai_api_key=None, openai_model="test-model", temperature=0.0, max_tokens=256, timeout_seconds=5)

    reply = AIClient(config=config, client=fake).request_judgment(_request())

    assert reply == '{"score": 2, "reason": "ok"}'
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"] == {"type": "json_object"}
    assert call["timeout"] == 5
    assert call["messages"][0]["role"] == "system"
    assert '"totalPoints": 5' in call["messages"][1]["content"]


def test_ai_client_without_key_is_unavailable() -> None:
    client = AIClient(config=AIConfig(openai_api_key=None))

    assert not client.available
    with pytest.raises(RuntimeError):
        client.request_judgment(_request())


def test_settings_groups_only_engine_config() -> None:
    assert set(Settings.model_fields) == {"ai", "scoring", "logging"}
