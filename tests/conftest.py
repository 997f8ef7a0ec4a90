from __future__ import annotations

import json
from typing import Any, Callable, List, Union

import pytest

from config.settings import ScoringConfig
from scorers import JudgmentRequest, ScoringDispatcher


class StubJudgmentClient:
    """Deterministic stand-in for the judgment service."""

    def __init__(self, reply: Union[str, dict, Callable[[JudgmentRequest], str]] = '{"score": 0}') -> None:
        self.reply = reply
        self.requests: List[JudgmentRequest] = []

    def request_judgment(self, request: JudgmentRequest) -> str:
        self.requests.append(request)
        if callable(self.reply):
            return self.reply(request)
        if isinstance(self.reply, dict):
            return json.dumps(self.reply)
        return self.reply


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig(
        default_points=1.0,
        discovery_default_points=10.0,
        discovery_default_targets=5,
        objective_max_points=10.0,
        participation_max_points=5.0,
        photo_relevance_weight=0.6,
        puzzle_partial_band=0.5,
        max_concurrent_judgments=4,
    )


@pytest.fixture
def judge() -> StubJudgmentClient:
    return StubJudgmentClient()


@pytest.fixture
def dispatcher(judge: StubJudgmentClient, scoring_config: ScoringConfig) -> ScoringDispatcher:
    return ScoringDispatcher(judge=judge, scoring_config=scoring_config)


@pytest.fixture
def rubric_doc() -> dict[str, Any]:
    return {
        "totalPoints": 10,
        "criteria": [
            {"id": "ideas", "label": "Ideas", "maxPoints": 6},
            {"id": "clarity", "label": "Clarity", "maxPoints": 4},
        ],
    }


@pytest.fixture
def make_judge() -> Callable[..., StubJudgmentClient]:
    return StubJudgmentClient
