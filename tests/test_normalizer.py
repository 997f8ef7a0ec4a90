from __future__ import annotations

import math

from scorers.normalizer import (
    answers_match,
    build_candidates,
    matches_any,
    normalize_answer,
    round_half_up,
)


def test_normalize_passes_primitives_through() -> None:
    assert normalize_answer(None) is None
    assert normalize_answer(3) == 3
    assert normalize_answer("b") == "b"
    assert normalize_answer(normalize_answer("b")) == "b"


def test_normalize_structured_answers_in_priority_order() -> None:
    assert normalize_answer({"baseIndex": 2, "value": "x", "answer": "y"}) == 2
    assert normalize_answer({"value": "x", "answer": "y"}) == "x"
    assert normalize_answer({"value": None, "answer": "y"}) == "y"
    assert normalize_answer({"baseIndex": True, "value": "v"}) == "v"

    raw = {"foo": 1}
    assert normalize_answer(raw) is raw


def test_answers_match_numeric_and_text() -> None:
    assert answers_match(" B ", "b")
    assert answers_match(1, 1.0)
    assert answers_match("1", 1)
    assert answers_match("true", True)
    assert not answers_match(None, "a")
    assert not answers_match("a", "b")


def test_build_candidates_accepts_index_or_option_text() -> None:
    assert build_candidates(1, ["a", "b", "c"]) == [1, "b"]
    assert build_candidates(5, ["a"]) == [5]
    assert build_candidates(["x", "y"], []) == ["x", "y"]
    assert build_candidates(0, [{"text": "Paris"}]) == [0, "Paris"]
    assert build_candidates("Paris", ["Rome", "Paris"]) == ["Paris"]


def test_matches_any() -> None:
    assert matches_any("PARIS", [0, "Paris"])
    assert matches_any(0, [0, "Paris"])
    assert not matches_any("Rome", [0, "Paris"])


def test_round_half_up_matches_classroom_rounding() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4) == 2
    assert round_half_up(33.333) == 33
    assert round_half_up(math.nan) == 0
