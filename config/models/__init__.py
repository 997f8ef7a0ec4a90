from .task_types import (
    TaskType,
    ScoringCategory,
    TaskTypeMeta,
    TASK_TYPE_META,
    resolve_task_type,
    get_task_type_meta,
)
from .core_models import (
    TaskItem,
    ConfigItem,
    Bucket,
    TaskConfig,
    TaskDefinition,
    PhotoMeta,
    Submission,
    RubricCriterion,
    Rubric,
    ScoringMethod,
    ScoreResult,
    Team,
    Student,
    SessionContext,
    ScoredSubmission,
    TaskAnalyticsSummary,
    PerTaskEntry,
    StudentAnalyticsSummary,
    TeamAnalyticsSummary,
    SessionAnalytics,
    AnalyticsResult,
)

__all__ = [
    "TaskType",
    "ScoringCategory",
    "TaskTypeMeta",
    "TASK_TYPE_META",
    "resolve_task_type",
    "get_task_type_meta",
    "TaskItem",
    "ConfigItem",
    "Bucket",
    "TaskConfig",
    "TaskDefinition",
    "PhotoMeta",
    "Submission",
    "RubricCriterion",
    "Rubric",
    "ScoringMethod",
    "ScoreResult",
    "Team",
    "Student",
    "SessionContext",
    "ScoredSubmission",
    "TaskAnalyticsSummary",
    "PerTaskEntry",
    "StudentAnalyticsSummary",
    "TeamAnalyticsSummary",
    "SessionAnalytics",
    "AnalyticsResult",
]
