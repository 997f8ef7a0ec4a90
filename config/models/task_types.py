"""Task type registry: canonical type ids and their scoring metadata."""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel


# ----------------------------------------------------------------------
# ENUMERATIONS
# ----------------------------------------------------------------------

class TaskType(str, Enum):
    """Canonical task type ids shared with the task editor and student app."""
    # Core Q&A
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"

    # Open / media responses
    OPEN_TEXT = "open-text"
    RECORD_AUDIO = "record-audio"
    DRAW = "draw"
    MIME = "mime"

    # Ordering / drag-and-drop
    SORT = "sort"
    SEQUENCE = "sequence"
    TIMELINE = "timeline"

    # Visual / creative proof
    PHOTO = "photo"
    PHOTO_JOURNAL = "photo-journal"
    MAKE_AND_SNAP = "make-and-snap"
    BODY_BREAK = "body-break"

    # Extended
    BRAIN_BLITZ = "brain-blitz"
    COLLABORATION = "collaboration"
    MUSICAL_CHAIRS = "musical-chairs"
    MYSTERY_CLUES = "mystery-clues"
    TRUE_FALSE_TICTACTOE = "true-false-tictactoe"
    MAD_DASH = "mad-dash"
    LIVE_DEBATE = "live-debate"
    FLASHCARDS = "flashcards"
    BRAIN_SPARK_NOTES = "brain-spark-notes"
    PET_FEEDING = "pet-feeding"
    MOTION_MISSION = "motion-mission"
    BRAINSTORM_BATTLE = "brainstorm-battle"
    MIND_MAPPER = "mind-mapper"
    HIDENSEEK = "hidenseek"
    SPEED_DRAW = "speed-draw"
    MULTI_ROOM_SCAVENGER_HUNT = "multi-room-scavenger-hunt"
    DIFF_DETECTIVE = "diff-detective"
    PRONUNCIATION = "pronunciation"
    SPEECH_RECOGNITION = "speech-recognition"
    AI_DEBATE_JUDGE = "ai-debate-judge"


class ScoringCategory(str, Enum):
    """How a task type is scored and described to the judge."""
    CHOICE = "choice"
    BUCKET_SORT = "bucket-sort"
    ORDERING = "ordering"
    DISCOVERY = "discovery"
    PUZZLE = "puzzle"
    PHOTO_JOURNAL = "photo-journal"
    PHOTO = "photo"
    SPEECH = "speech"
    COLLABORATIVE = "collaborative"
    TEXT = "text"
    PARTICIPATION = "participation"


# ----------------------------------------------------------------------
# METADATA
# ----------------------------------------------------------------------

class TaskTypeMeta(BaseModel):
    """Scoring hints for a task type."""
    label: str
    category: ScoringCategory
    objective_scoring: bool = False
    default_ai_scoring_required: bool = False
    participation: bool = False

    model_config = {"frozen": True}


def _meta(label, category, objective=False, ai_required=False, participation=False) -> TaskTypeMeta:
    return TaskTypeMeta(
        label=label,
        category=category,
        objective_scoring=objective,
        default_ai_scoring_required=ai_required,
        participation=participation,
    )


C = ScoringCategory

TASK_TYPE_META: Dict[TaskType, TaskTypeMeta] = {
    TaskType.MULTIPLE_CHOICE: _meta("Multiple choice", C.CHOICE, objective=True),
    TaskType.TRUE_FALSE: _meta("True / False", C.CHOICE, objective=True),
    TaskType.SHORT_ANSWER: _meta("Short answer", C.TEXT, objective=True),
    TaskType.TRUE_FALSE_TICTACTOE: _meta("True/False Tic-Tac-Toe", C.CHOICE, objective=True),
    TaskType.FLASHCARDS: _meta("Flashcards", C.TEXT, objective=True, ai_required=True),

    TaskType.SORT: _meta("Sort / categorize", C.BUCKET_SORT, objective=True),
    TaskType.SEQUENCE: _meta("Sequence", C.ORDERING, objective=True),
    TaskType.TIMELINE: _meta("Timeline", C.ORDERING, objective=True),

    TaskType.DIFF_DETECTIVE: _meta("Diff Detective", C.DISCOVERY, objective=True, ai_required=True),
    TaskType.MIND_MAPPER: _meta("Mind Mapper", C.PUZZLE),

    TaskType.PHOTO_JOURNAL: _meta("Photo Journal", C.PHOTO_JOURNAL, ai_required=True),
    TaskType.PHOTO: _meta("Photo Evidence", C.PHOTO, participation=True),
    TaskType.MAKE_AND_SNAP: _meta("Make It & Snap It", C.PHOTO, participation=True),
    TaskType.DRAW: _meta("Draw it", C.PHOTO),
    TaskType.MIME: _meta("Act it out", C.PHOTO),
    TaskType.BRAIN_SPARK_NOTES: _meta("Brain Spark Notes", C.PHOTO, ai_required=True),

    TaskType.RECORD_AUDIO: _meta("Record audio answer", C.SPEECH),
    TaskType.PRONUNCIATION: _meta("Pronunciation Practice", C.SPEECH, objective=True, ai_required=True),
    TaskType.SPEECH_RECOGNITION: _meta("Speech Recognition", C.SPEECH, objective=True, ai_required=True),

    TaskType.COLLABORATION: _meta("Collaboration", C.COLLABORATIVE, ai_required=True),
    TaskType.LIVE_DEBATE: _meta("Live Debate", C.COLLABORATIVE, ai_required=True),
    TaskType.BRAINSTORM_BATTLE: _meta("Brainstorm Battle", C.COLLABORATIVE),
    TaskType.AI_DEBATE_JUDGE: _meta("AI Debate Judge", C.COLLABORATIVE),

    TaskType.OPEN_TEXT: _meta("Open-text response", C.TEXT, ai_required=True),
    TaskType.BRAIN_BLITZ: _meta("Brain Blitz!", C.TEXT),
    TaskType.MYSTERY_CLUES: _meta("Mystery Clues", C.TEXT),

    TaskType.BODY_BREAK: _meta("Body Break", C.PARTICIPATION, participation=True),
    TaskType.MUSICAL_CHAIRS: _meta("Musical Chairs", C.PARTICIPATION, participation=True),
    TaskType.MAD_DASH: _meta("Mad Dash", C.PARTICIPATION, participation=True),
    TaskType.PET_FEEDING: _meta("Feed the Pet!", C.PARTICIPATION, participation=True),
    TaskType.MOTION_MISSION: _meta("Motion Mission", C.PARTICIPATION, participation=True),
    TaskType.HIDENSEEK: _meta("Hide & Seek", C.PARTICIPATION, participation=True),
    TaskType.SPEED_DRAW: _meta("Speed Draw", C.PARTICIPATION, participation=True),
    TaskType.MULTI_ROOM_SCAVENGER_HUNT: _meta("Multi-Room Scavenger Hunt", C.PARTICIPATION, participation=True),
}

# Legacy ids still found in stored task sets
_ALIASES: Dict[str, TaskType] = {
    "mcq": TaskType.MULTIPLE_CHOICE,
    "multiplechoice": TaskType.MULTIPLE_CHOICE,
    "tf": TaskType.TRUE_FALSE,
    "truefalse": TaskType.TRUE_FALSE,
    "sa": TaskType.SHORT_ANSWER,
    "shortanswer": TaskType.SHORT_ANSWER,
    "categorize": TaskType.SORT,
    "category": TaskType.SORT,
    "order": TaskType.SEQUENCE,
    "photo-evidence": TaskType.PHOTO,
    "image": TaskType.PHOTO,
    "open": TaskType.OPEN_TEXT,
    "drawing": TaskType.DRAW,
    "act": TaskType.MIME,
    "act-out": TaskType.MIME,
    "jeopardy": TaskType.BRAIN_BLITZ,
    "jeopardy-ai-ref": TaskType.BRAIN_BLITZ,
    "jp": TaskType.BRAIN_BLITZ,
    "spot-the-difference": TaskType.DIFF_DETECTIVE,
    "diff": TaskType.DIFF_DETECTIVE,
    "find-differences": TaskType.DIFF_DETECTIVE,
    "pronounce": TaskType.PRONUNCIATION,
    "speech-practice": TaskType.PRONUNCIATION,
    "speech": TaskType.SPEECH_RECOGNITION,
    "voice-answer": TaskType.SPEECH_RECOGNITION,
    "concept-map": TaskType.MIND_MAPPER,
}


def resolve_task_type(value) -> Optional[TaskType]:
    """Map a stored task type tag to a TaskType, or None when unknown."""
    if value is None:
        return None
    if isinstance(value, TaskType):
        return value

    key = str(value).strip().lower().replace("_", "-")
    if not key:
        return None
    try:
        return TaskType(key)
    except ValueError:
        return _ALIASES.get(key)


def get_task_type_meta(value) -> Optional[TaskTypeMeta]:
    """Safely look up metadata for a task type tag."""
    task_type = resolve_task_type(value)
    if task_type is None:
        return None
    return TASK_TYPE_META.get(task_type)
