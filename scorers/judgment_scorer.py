"""
Rubric-bounded scoring through an external judgment service.

The judge only proposes a score. Whatever comes back is coerced and clamped
into ``[0, rubric total]`` before it becomes a ScoreResult.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel

from config.models import Rubric, ScoreResult, ScoringMethod, Submission, TaskDefinition
from config.settings import ScoringConfig
from .base import BaseScorer
from .exceptions import ScoringConfigurationError
from .work_description import WorkDescriptionBuilder

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTIONS = (
    "You are an assistant helping a classroom teacher score student work.\n\n"
    "Always:\n"
    "- Use the rubric provided.\n"
    "- Give partial credit when a criterion is partially met.\n"
    "- Score fairly but generously when in doubt; do not penalise spelling, grammar or accents.\n"
    "- Never award more than the rubric total.\n"
    "- Return ONLY valid JSON in the exact structure requested, with no extra commentary."
)


class JudgmentRequest(BaseModel):
    """Everything the judgment service sees for one submission."""

    system_instructions: str = SYSTEM_INSTRUCTIONS
    rubric: Dict[str, Any]
    normalized_work: Dict[str, Any]
    expected_score_range: List[float]
    task_type: str = ""
    title: str = ""
    prompt: str = ""

    def render_user_prompt(self) -> str:
        return (
            "Here is the grading rubric (JSON):\n\n"
            f"{json.dumps(self.rubric, indent=2)}\n\n"
            f"Task type: {self.task_type}\n"
            f"Task title: {self.title}\n"
            f"Task prompt: {self.prompt}\n\n"
            "Here is the student's work (JSON):\n\n"
            f"{json.dumps(self.normalized_work, indent=2, default=str)}\n\n"
            f"Score the work according to the rubric. The score must be between "
            f"{self.expected_score_range[0]:g} and {self.expected_score_range[1]:g}.\n\n"
            "Return ONLY JSON in this format:\n"
            '{"score": number, "maxPoints": number, "reason": string}'
        )


class JudgmentClient(Protocol):
    """Anything that can answer a JudgmentRequest with raw reply text."""

    def request_judgment(self, request: JudgmentRequest) -> str:
        ...


# ----------------------------------------------------------------------
# Reply parsing
# ----------------------------------------------------------------------

def _extract_json_from_text(text: str) -> Any:
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    try:
        return json.loads(text[start:end])
    except ValueError:
        return None


def parse_judgment_reply(raw: Any) -> Dict[str, Any]:
    """Parse a judge reply into a dict. Anything unusable becomes ``{}``."""
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return {}

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Judgment reply not valid JSON — attempting to extract JSON manually.")
        parsed = _extract_json_from_text(raw)

    if not isinstance(parsed, dict):
        logger.warning("Judgment reply could not be parsed into an object; treating as empty.")
        return {}
    return parsed


def _coerce_score(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


# ----------------------------------------------------------------------
# Scorer
# ----------------------------------------------------------------------

class ExternalJudgmentScorer(BaseScorer):
    """Scores a submission by asking the injected judgment client."""

    method = ScoringMethod.AI_RUBRIC

    def __init__(
        self,
        judge: JudgmentClient,
        builder: Optional[WorkDescriptionBuilder] = None,
        scoring_config: Optional[ScoringConfig] = None,
    ):
        super().__init__(scoring_config)
        self.judge = judge
        self.builder = builder or WorkDescriptionBuilder()

    def build_request(
        self, task: TaskDefinition, submission: Submission, rubric: Rubric, total: float
    ) -> JudgmentRequest:
        rubric_doc = rubric.model_dump(by_alias=True)
        rubric_doc["totalPoints"] = total
        return JudgmentRequest(
            rubric=rubric_doc,
            normalized_work=self.builder.build(task, submission),
            expected_score_range=[0.0, total],
            task_type=task.task_type,
            title=task.title,
            prompt=task.prompt,
        )

    def score(
        self,
        task: TaskDefinition,
        submission: Submission,
        rubric: Rubric,
        total_points: Optional[float] = None,
    ) -> ScoreResult:
        total = total_points if total_points is not None else rubric.total_points
        if not total > 0:
            raise ScoringConfigurationError(
                f"Rubric total must be greater than 0 for task type '{task.task_type}'",
                task_type=task.task_type,
            )

        self._log_scoring_start(task)
        request = self.build_request(task, Submission.coerce(submission), rubric, float(total))
        reply = parse_judgment_reply(self.judge.request_judgment(request))

        raw_score = reply.get("score", reply.get("totalScore"))
        proposed = _coerce_score(raw_score)
        clamped = max(0.0, min(float(total), proposed))
        if clamped != proposed:
            logger.warning(
                f"Judged score {proposed} outside [0, {total}] for task {task.id}; clamped to {clamped}"
            )

        reason = reply.get("reason", reply.get("overallComment"))
        result = self._result(
            clamped,
            total,
            details={
                "rawScore": raw_score,
                "clamped": clamped != proposed,
                "rubricTotal": rubric.total_points,
                "judgeMaxPoints": reply.get("maxPoints"),
            },
            reason=str(reason) if reason is not None else None,
        )
        self._log_scoring_complete(task, result)
        return result
