"""Data models for the classroom scoring engine."""

import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .task_types import ScoringCategory, TaskType, TaskTypeMeta, get_task_type_meta, resolve_task_type


class CamelModel(BaseModel):
    """Base model reading and writing the camelCase keys used by the task store."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


def is_number(value: Any) -> bool:
    """True for real numbers, excluding booleans and NaN."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


TEXT_KEYS = ("text", "value", "content", "answer", "url")


def as_text(value: Any) -> Optional[str]:
    """Flatten a free-form text value; lists are joined line by line, unreadable shapes become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if is_number(value):
        return str(value)
    if isinstance(value, Mapping):
        for key in TEXT_KEYS:
            text = as_text(value.get(key))
            if text:
                return text
        return None
    if isinstance(value, (list, tuple)):
        parts = [as_text(part) for part in value]
        joined = "\n".join(p.strip() for p in parts if p and p.strip())
        return joined or None
    return None


def as_flag(value: Any) -> Optional[bool]:
    """Read a yes/no value; anything unrecognised becomes None."""
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    return None


# ----------------------------------------------------------------------
# TASK DEFINITIONS
# ----------------------------------------------------------------------

class TaskItem(CamelModel):
    """One sub-question of a multi-item task."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    prompt: str = ""
    correct_answer: Any = None
    options: List[Any] = Field(default_factory=list)


class ConfigItem(CamelModel):
    """Draggable item of a sort/sequence/concept-map task."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    text: str = ""
    bucket_index: Optional[Any] = None
    correct_order: Optional[int] = None


class Bucket(CamelModel):
    """Target bucket of a sort task."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    label: str = ""


class TaskConfig(CamelModel):
    """Type-specific task configuration."""
    model_config = ConfigDict(extra="allow")

    items: List[ConfigItem] = Field(default_factory=list)
    buckets: List[Bucket] = Field(default_factory=list)
    total_targets: Optional[float] = None

    @model_validator(mode="after")
    def _default_item_ids(self):
        # items authored without ids are addressed by position
        for index, item in enumerate(self.items):
            if item.id is None:
                item.id = str(index)
        return self


class TaskDefinition(CamelModel):
    """A task as authored by the teacher. Read-only to the engine."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    task_type: str = ""
    title: str = ""
    prompt: str = ""
    points: Optional[float] = None
    correct_answer: Any = None
    options: List[Any] = Field(default_factory=list)
    items: List[TaskItem] = Field(default_factory=list)
    config: TaskConfig = Field(default_factory=TaskConfig)
    ai_scoring_required: Optional[bool] = None
    differences: List[Any] = Field(default_factory=list)
    target_text: Optional[str] = None
    reference_text: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_type_key(cls, data):
        # older task documents store the tag under "type"
        if isinstance(data, dict) and not data.get("taskType") and not data.get("task_type") and data.get("type"):
            data = {**data, "taskType": data["type"]}
        return data

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, v):
        if v is None or is_number(v):
            return v
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @property
    def kind(self) -> Optional[TaskType]:
        return resolve_task_type(self.task_type)

    @property
    def meta(self) -> Optional[TaskTypeMeta]:
        return get_task_type_meta(self.task_type)

    @property
    def category(self) -> Optional[ScoringCategory]:
        meta = self.meta
        return meta.category if meta else None

    def point_value(self, default: float = 1.0) -> float:
        """Points usable as a scoring denominator (non-positive or missing -> default)."""
        if is_number(self.points) and self.points > 0:
            return float(self.points)
        return default

    @property
    def has_correct_answer(self) -> bool:
        """Whether a correct answer exists anywhere on the task."""
        if self.correct_answer is not None:
            return True
        if any(item.correct_answer is not None for item in self.items):
            return True
        category = self.category
        if category == ScoringCategory.ORDERING:
            return bool(self.config.items)
        if category == ScoringCategory.BUCKET_SORT:
            return any(item.bucket_index is not None for item in self.config.items)
        return False


# ----------------------------------------------------------------------
# SUBMISSIONS
# ----------------------------------------------------------------------

class PhotoMeta(CamelModel):
    """Photo reference without image bytes."""
    filename: Optional[str] = None
    mimetype: Optional[str] = None
    size: Optional[int] = None
    url: Optional[str] = None


class Submission(CamelModel):
    """What a student or team sent for a task. Shape varies by task category."""
    model_config = ConfigDict(extra="allow")

    # objective answers
    answer: Any = None
    answers: Any = None
    selected_index: Any = None
    answer_index: Any = None

    # ordering / sorting / discovery / puzzle
    order: List[Any] = Field(default_factory=list)
    mapping: Optional[Dict[str, Any]] = None
    assignments: Any = None
    completed: Optional[bool] = None
    found_count: Optional[Any] = None
    nodes: List[Any] = Field(default_factory=list)

    # free text
    answer_text: Optional[str] = None
    text: Optional[str] = None
    response: Optional[str] = None
    caption: Optional[str] = None
    explanation: Optional[str] = None

    # photo
    photo: Any = None
    photo_url: Optional[str] = None
    image_url: Optional[str] = None
    has_photo: Optional[bool] = None

    # speech
    spoken_text: Optional[str] = None
    recognized_text: Optional[str] = None
    transcript: Optional[str] = None
    reference_text: Optional[str] = None
    target_text: Optional[str] = None
    audio_url: Optional[str] = None

    # collaborative
    notes: Optional[str] = None
    main: Optional[str] = None
    reply: Optional[str] = None
    artifacts: List[Any] = Field(default_factory=list)

    @field_validator("order", "nodes", "artifacts", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return list(v)
        return [v]

    @field_validator(
        "answer_text", "text", "response", "caption", "explanation",
        "photo_url", "image_url",
        "spoken_text", "recognized_text", "transcript", "reference_text", "target_text", "audio_url",
        "notes", "main", "reply",
        mode="before",
    )
    @classmethod
    def _text_field(cls, v):
        return as_text(v)

    @field_validator("completed", "has_photo", mode="before")
    @classmethod
    def _flag_field(cls, v):
        return as_flag(v)

    @field_validator("mapping", mode="before")
    @classmethod
    def _mapping_field(cls, v):
        return dict(v) if isinstance(v, Mapping) else None

    @classmethod
    def coerce(cls, raw: Any) -> "Submission":
        """Lift whatever the client sent into a Submission."""
        if isinstance(raw, Submission):
            return raw
        if raw is None:
            return cls()
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        return cls(answer=raw)

    def primary_answer(self) -> Any:
        """First present single-answer field."""
        for value in (self.answer, self.selected_index, self.answer_index, self.answer_text, self.text):
            if value is not None:
                return value
        return None


# ----------------------------------------------------------------------
# RUBRICS AND RESULTS
# ----------------------------------------------------------------------

class RubricCriterion(CamelModel):
    """Single rubric criterion."""
    id: str
    label: str = ""
    max_points: float = 0.0
    description: str = ""


class Rubric(CamelModel):
    """Scoring guide bounding any judged score."""
    total_points: float
    criteria: List[RubricCriterion] = Field(default_factory=list)

    @field_validator("total_points")
    @classmethod
    def _positive_total(cls, v: float) -> float:
        if not v > 0:
            raise ValueError("totalPoints must be greater than 0")
        return v


class ScoringMethod(str, Enum):
    """Provenance of a score."""
    RULE_BASED = "rule-based"
    AI_RUBRIC = "ai-rubric"
    NONE = "none"


class ScoreResult(CamelModel):
    """Outcome of scoring a single submission."""
    model_config = ConfigDict(frozen=True)

    score: Optional[float] = None
    max_points: Optional[float] = None
    method: ScoringMethod
    details: Dict[str, Any] = Field(default_factory=dict)
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.method == ScoringMethod.NONE:
            if self.score is not None:
                raise ValueError("score must be absent when method is 'none'")
            return self
        if self.score is None or self.max_points is None:
            raise ValueError("scored results need both score and maxPoints")
        if self.score < 0 or self.score > self.max_points:
            raise ValueError(f"score {self.score} outside [0, {self.max_points}]")
        return self

    @property
    def is_scored(self) -> bool:
        return self.method != ScoringMethod.NONE


# ----------------------------------------------------------------------
# SESSION CONTEXT
# ----------------------------------------------------------------------

class Team(CamelModel):
    """Team roster entry."""
    id: str
    name: str = "Team"
    student_ids: List[str] = Field(default_factory=list)


class Student(CamelModel):
    """Roster entry used for display names."""
    id: str
    name: str = "Unknown"


class SessionContext(CamelModel):
    """Session roster and task set handed in by the session collaborator."""
    id: str
    teacher_id: Optional[str] = None
    classroom_id: Optional[str] = None
    teams: List[Team] = Field(default_factory=list)
    students: List[Student] = Field(default_factory=list)
    tasks: List[TaskDefinition] = Field(default_factory=list)


class ScoredSubmission(CamelModel):
    """A stored submission together with its score result."""
    id: Optional[str] = None
    task_id: str
    team_id: Optional[str] = None
    student_ids: List[str] = Field(default_factory=list)
    latency_ms: float = 0.0
    submission: Submission = Field(default_factory=Submission)
    result: Optional[ScoreResult] = None
    is_correct: Optional[bool] = None

    @field_validator("submission", mode="before")
    @classmethod
    def _lift_submission(cls, v):
        return Submission.coerce(v)

    @field_validator("latency_ms", mode="before")
    @classmethod
    def _latency_default(cls, v):
        return v if is_number(v) else 0.0


# ----------------------------------------------------------------------
# ANALYTICS
# ----------------------------------------------------------------------

class TaskAnalyticsSummary(CamelModel):
    """Per-task figures for the teacher dashboard."""
    task_id: str
    task_type: str = ""
    prompt: str = ""
    points_total: float = 0.0
    points_max_total: float = 0.0
    correct_count: int = 0
    incorrect_count: int = 0
    submissions_count: int = 0
    total_latency_ms: float = 0.0
    avg_score: int = 0
    avg_correct_pct: int = 0
    avg_latency_ms: int = 0


class PerTaskEntry(CamelModel):
    """A student's best attempt at one task."""
    task_id: str
    task_type: str = ""
    prompt: str = ""
    points: float = 0.0
    max_points: float = 0.0
    is_correct: Optional[bool] = None
    latency_ms: float = 0.0
    submission_id: Optional[str] = None


class StudentAnalyticsSummary(CamelModel):
    """Per-student transcript for one session."""
    session_id: str
    student_id: str
    student_name: str = "Unknown"
    total_points: float = 0.0
    max_points: float = 0.0
    accuracy_pct: int = 0
    tasks_completed: int = 0
    tasks_assigned: int = 0
    avg_latency_ms: int = 0
    per_task: List[PerTaskEntry] = Field(default_factory=list)


class TeamAnalyticsSummary(CamelModel):
    """Per-team totals for one session."""
    team_id: str
    team_name: str = "Team"
    total_points: float = 0.0
    correct_count: int = 0
    incorrect_count: int = 0
    avg_latency_ms: int = 0


class SessionAnalytics(CamelModel):
    """Class-level analytics for one session."""
    session_id: str
    teacher_id: Optional[str] = None
    classroom_id: Optional[str] = None
    class_average_score: int = 0
    class_average_accuracy: int = 0
    tasks: List[TaskAnalyticsSummary] = Field(default_factory=list)
    teams: List[TeamAnalyticsSummary] = Field(default_factory=list)


class AnalyticsResult(CamelModel):
    """Aggregator output handed to the persistence collaborator."""
    session_analytics: SessionAnalytics
    student_analytics_list: List[StudentAnalyticsSummary] = Field(default_factory=list)
