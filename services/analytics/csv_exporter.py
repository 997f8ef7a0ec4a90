"""CSV Exporter for session analytics."""

import csv
import io
import logging
import os
from typing import Any, Dict, List, Optional

from config.models import AnalyticsResult, StudentAnalyticsSummary, TaskAnalyticsSummary

logger = logging.getLogger(__name__)


class CSVExporter:
    """
    Exports session analytics into spreadsheet-friendly CSV.
    One row per student, and one row per task.
    """

    # -------------------------------------------------------------------------
    # Public Methods
    # -------------------------------------------------------------------------

    def export_students(self, result: AnalyticsResult) -> str:
        """Generate the per-student CSV as a string."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=self._get_student_headers())
        writer.writeheader()
        for student in result.student_analytics_list:
            writer.writerow(self._student_to_row(student, result))

        logger.info(
            f"Exported student CSV for session {result.session_analytics.session_id} "
            f"({len(result.student_analytics_list)} students)."
        )
        return buffer.getvalue()

    def export_tasks(self, result: AnalyticsResult) -> str:
        """Generate the per-task CSV as a string."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=self._get_task_headers())
        writer.writeheader()
        for task in result.session_analytics.tasks:
            writer.writerow(self._task_to_row(task, result))

        logger.info(
            f"Exported task CSV for session {result.session_analytics.session_id} "
            f"({len(result.session_analytics.tasks)} tasks)."
        )
        return buffer.getvalue()

    def export_to_directory(self, result: AnalyticsResult, directory: str, prefix: Optional[str] = None) -> List[str]:
        """
        Write both CSVs into a directory.

        Returns:
            Paths of the written files (students first)
        """
        os.makedirs(directory, exist_ok=True)
        prefix = prefix or result.session_analytics.session_id

        paths = []
        for suffix, content in (("students", self.export_students(result)), ("tasks", self.export_tasks(result))):
            path = os.path.join(directory, f"{prefix}_{suffix}.csv")
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            paths.append(path)

        logger.info(f"CSV files written to {directory}")
        return paths

    # -------------------------------------------------------------------------
    # Internal Helpers
    # -------------------------------------------------------------------------

    def _get_student_headers(self) -> List[str]:
        return [
            "session_id",
            "student_id",
            "student_name",
            "total_points",
            "max_points",
            "score_pct",
            "accuracy_pct",
            "tasks_completed",
            "tasks_assigned",
            "avg_latency_ms",
        ]

    def _get_task_headers(self) -> List[str]:
        return [
            "session_id",
            "task_id",
            "task_type",
            "prompt",
            "avg_score",
            "avg_correct_pct",
            "correct_count",
            "incorrect_count",
            "submissions_count",
            "avg_latency_ms",
        ]

    def _student_to_row(self, student: StudentAnalyticsSummary, result: AnalyticsResult) -> Dict[str, Any]:
        score_pct = round(100 * student.total_points / student.max_points, 2) if student.max_points > 0 else 0.0
        return {
            "session_id": result.session_analytics.session_id,
            "student_id": student.student_id,
            "student_name": student.student_name,
            "total_points": round(student.total_points, 2),
            "max_points": round(student.max_points, 2),
            "score_pct": score_pct,
            "accuracy_pct": student.accuracy_pct,
            "tasks_completed": student.tasks_completed,
            "tasks_assigned": student.tasks_assigned,
            "avg_latency_ms": student.avg_latency_ms,
        }

    def _task_to_row(self, task: TaskAnalyticsSummary, result: AnalyticsResult) -> Dict[str, Any]:
        return {
            "session_id": result.session_analytics.session_id,
            "task_id": task.task_id,
            "task_type": task.task_type,
            "prompt": task.prompt,
            "avg_score": task.avg_score,
            "avg_correct_pct": task.avg_correct_pct,
            "correct_count": task.correct_count,
            "incorrect_count": task.incorrect_count,
            "submissions_count": task.submissions_count,
            "avg_latency_ms": task.avg_latency_ms,
        }
