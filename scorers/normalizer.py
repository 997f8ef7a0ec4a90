"""Answer normalization and matching helpers."""

import math
from collections.abc import Mapping
from typing import Any, List, Sequence

from config.models.core_models import is_number


def normalize_answer(raw: Any) -> Any:
    """
    Reduce a submitted value to a single comparable primitive.

    Order of resolution for structured (mapping) input:
      • numeric ``baseIndex``
      • ``value`` when present
      • ``answer`` when present
      • the mapping itself
    Anything that is not a mapping is returned unchanged.
    """
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        return raw

    base_index = raw.get("baseIndex")
    if is_number(base_index):
        return base_index
    if raw.get("value") is not None:
        return raw["value"]
    if raw.get("answer") is not None:
        return raw["answer"]
    return raw


def _text_form(value: Any) -> str:
    return str(value).strip().lower()


def answers_match(submitted: Any, expected: Any) -> bool:
    """Numeric comparison when both sides are numbers, else trimmed case-insensitive text."""
    if submitted is None or expected is None:
        return False
    if is_number(submitted) and is_number(expected):
        return math.isclose(float(submitted), float(expected))
    return _text_form(submitted) == _text_form(expected)


def _valid_index(value: Any, options: Sequence[Any]) -> bool:
    if not is_number(value) or not float(value).is_integer():
        return False
    return 0 <= int(value) < len(options)


def _option_text(option: Any) -> Any:
    # options authored as objects carry their label under "text"
    if isinstance(option, Mapping):
        for key in ("text", "label", "value"):
            if option.get(key) is not None:
                return option[key]
    return option


def build_candidates(correct: Any, options: Sequence[Any]) -> List[Any]:
    """
    Accepted answers for a stored correct answer.

    A numeric correct answer that indexes into ``options`` accepts either the
    index or the option's text.
    """
    if isinstance(correct, (list, tuple)):
        return list(correct)
    if _valid_index(correct, options):
        index = int(correct)
        return [index, _option_text(options[index])]
    return [correct]


def matches_any(submitted: Any, candidates: Sequence[Any]) -> bool:
    return any(answers_match(submitted, candidate) for candidate in candidates)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (classroom rounding)."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
