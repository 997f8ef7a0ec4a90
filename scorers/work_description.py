"""Builds the judge-readable description of what a student actually did."""

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from config.models import ScoringCategory, Submission, TaskDefinition
from config.models.core_models import PhotoMeta, is_number
from .normalizer import _option_text, normalize_answer

logger = logging.getLogger(__name__)

PHOTO_TAKEN_MARKER = "[PHOTO TAKEN]"


def _first_text(*values: Any) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


class WorkDescriptionBuilder:
    """
    Summarises a submission per task category for the judgment request.

    The description is judgment input only and never stored as the score.
    Missing or oddly shaped fields degrade to empty/false defaults.
    """

    def build(self, task: TaskDefinition, submission: Any) -> Dict[str, Any]:
        submission = Submission.coerce(submission)
        category = task.category

        if category == ScoringCategory.CHOICE:
            work = self._describe_choice(task, submission)
        elif category == ScoringCategory.TEXT:
            work = self._describe_text(submission)
        elif category == ScoringCategory.PHOTO_JOURNAL:
            work = self._describe_photo_journal(submission)
        elif category in (ScoringCategory.PHOTO, ScoringCategory.PARTICIPATION):
            work = self._describe_photo(submission)
        elif category == ScoringCategory.SPEECH:
            work = self._describe_speech(task, submission)
        elif category == ScoringCategory.COLLABORATIVE:
            work = self._describe_collaboration(submission)
        elif category == ScoringCategory.PUZZLE:
            work = self._describe_puzzle(task, submission)
        elif category == ScoringCategory.DISCOVERY:
            work = self._describe_discovery(task, submission)
        elif category in (ScoringCategory.ORDERING, ScoringCategory.BUCKET_SORT):
            work = self._describe_arrangement(submission)
        else:
            work = self._describe_generic(task, submission)

        work["taskType"] = task.task_type
        return work

    # ------------------------------------------------------------------
    # Text extraction
    # ------------------------------------------------------------------
    def extract_text(self, submission: Submission) -> str:
        """Best available free-text answer, in priority order."""
        answer = normalize_answer(submission.answer)
        return _first_text(
            answer,
            submission.answer_text,
            submission.text,
            submission.response,
            submission.main,
            submission.explanation,
            submission.caption,
            submission.notes,
        )

    # ------------------------------------------------------------------
    # Per category
    # ------------------------------------------------------------------
    def _describe_choice(self, task: TaskDefinition, submission: Submission) -> Dict[str, Any]:
        selected = normalize_answer(submission.primary_answer())
        selected_text = ""
        if is_number(selected) and float(selected).is_integer() and 0 <= int(selected) < len(task.options):
            selected_text = str(_option_text(task.options[int(selected)]))
        elif selected is not None and not isinstance(selected, Mapping):
            selected_text = str(selected)
        return {
            "kind": "choice",
            "options": [str(_option_text(o)) for o in task.options],
            "selected": selected if not isinstance(selected, Mapping) else None,
            "selectedText": selected_text,
        }

    def _describe_text(self, submission: Submission) -> Dict[str, Any]:
        return {"kind": "text", "text": self.extract_text(submission)}

    def _describe_photo_journal(self, submission: Submission) -> Dict[str, Any]:
        photo = self._photo_meta(submission)
        return {
            "kind": "photo-journal",
            "caption": _first_text(
                submission.explanation,
                submission.caption,
                normalize_answer(submission.answer),
                submission.text,
                submission.answer_text,
            ),
            "hasPhoto": photo is not None or bool(submission.has_photo),
            "photo": photo.model_dump(by_alias=True, exclude_none=True) if photo else {},
        }

    def _describe_photo(self, submission: Submission) -> Dict[str, Any]:
        text = self.extract_text(submission)
        if submission.has_photo is not None:
            has_photo = bool(submission.has_photo)
        else:
            has_photo = (
                PHOTO_TAKEN_MARKER in text
                or self._photo_meta(submission) is not None
            )
        return {
            "kind": "photo",
            "text": text.replace(PHOTO_TAKEN_MARKER, "").strip(),
            "hasPhoto": has_photo,
        }

    def _describe_speech(self, task: TaskDefinition, submission: Submission) -> Dict[str, Any]:
        return {
            "kind": "speech",
            "targetText": _first_text(
                task.target_text, task.reference_text,
                submission.target_text, submission.reference_text,
            ),
            "recognizedText": _first_text(
                submission.recognized_text, submission.spoken_text,
                submission.transcript, submission.text,
            ),
            "audioUrl": submission.audio_url or "",
        }

    def _describe_collaboration(self, submission: Submission) -> Dict[str, Any]:
        return {
            "kind": "collaborative",
            "notes": _first_text(
                submission.notes, submission.main, submission.text,
                normalize_answer(submission.answer), submission.answer_text,
            ),
            "reply": _first_text(submission.reply),
            "artifacts": [a for a in submission.artifacts if not self._is_binary(a)],
        }

    def _describe_puzzle(self, task: TaskDefinition, submission: Submission) -> Dict[str, Any]:
        nodes: List[Dict[str, Any]] = []
        for item in task.config.items:
            node: Dict[str, Any] = {"id": item.id, "text": item.text}
            if item.correct_order is not None:
                node["correctOrder"] = item.correct_order
            nodes.append(node)
        if not nodes:
            for raw in submission.nodes:
                if isinstance(raw, Mapping):
                    nodes.append({"id": raw.get("id"), "text": str(raw.get("text") or "")})
                else:
                    nodes.append({"text": str(raw)})
        return {
            "kind": "puzzle",
            "nodes": nodes,
            "submittedOrder": [str(x) for x in submission.order],
            # client-reported; the judge decides whether to trust it
            "completed": bool(submission.completed),
        }

    def _describe_discovery(self, task: TaskDefinition, submission: Submission) -> Dict[str, Any]:
        return {
            "kind": "discovery",
            "text": self.extract_text(submission),
            "foundCount": submission.found_count if is_number(submission.found_count) else None,
            "expectedCount": len(task.differences) or None,
        }

    def _describe_arrangement(self, submission: Submission) -> Dict[str, Any]:
        return {
            "kind": "arrangement",
            "order": [str(x) for x in submission.order],
            "mapping": dict(submission.mapping or {}),
        }

    def _describe_generic(self, task: TaskDefinition, submission: Submission) -> Dict[str, Any]:
        raw = submission.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)
        raw.pop("photo", None)
        return {"prompt": task.prompt, "rawAnswer": raw}

    # ------------------------------------------------------------------
    # Photo helpers
    # ------------------------------------------------------------------
    def _photo_meta(self, submission: Submission) -> Optional[PhotoMeta]:
        photo = submission.photo
        if isinstance(photo, Mapping):
            meta = PhotoMeta(
                filename=self._str_or_none(photo.get("filename") or photo.get("name")),
                mimetype=self._str_or_none(photo.get("mimetype") or photo.get("type")),
                size=int(photo["size"]) if is_number(photo.get("size")) else None,
                url=self._url_or_none(photo.get("url")),
            )
            return meta
        if isinstance(photo, str) and photo.strip():
            return PhotoMeta(url=self._url_or_none(photo))
        url = self._url_or_none(submission.photo_url or submission.image_url)
        if url:
            return PhotoMeta(url=url)
        return None

    @staticmethod
    def _str_or_none(value: Any) -> Optional[str]:
        return str(value) if value is not None else None

    @staticmethod
    def _url_or_none(value: Any) -> Optional[str]:
        # inline data URLs are image bytes, never forwarded
        if not isinstance(value, str) or not value.strip() or value.startswith("data:"):
            return None
        return value.strip()

    @staticmethod
    def _is_binary(value: Any) -> bool:
        if isinstance(value, (bytes, bytearray)):
            return True
        return isinstance(value, str) and value.startswith("data:")
