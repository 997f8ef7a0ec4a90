"""PDF Session Report Generator for classroom analytics."""

import io
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak

from config.models import AnalyticsResult, StudentAnalyticsSummary

logger = logging.getLogger(__name__)

PRIMARY = colors.HexColor("#1B365D")
SECONDARY = colors.HexColor("#2C3E50")

HEADER_ROW_STYLE = [
    ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ("BACKGROUND", (0, 1), (-1, -1), colors.whitesmoke),
]


def _fmt_points(value: float) -> str:
    return f"{value:g}"


class PDFGenerator:
    """Generates a teacher-facing PDF report for one session."""

    def __init__(self):
        self.cell_style = ParagraphStyle(name="Cell", fontSize=9, leading=11)
        self.section_style = ParagraphStyle(
            name="SectionTitle", fontSize=16, leading=20, textColor=PRIMARY, spaceAfter=10
        )
        self.sub_title_style = ParagraphStyle(
            name="SubTitle", fontSize=13, leading=16, textColor=SECONDARY, spaceAfter=6
        )
        self.meta_style = ParagraphStyle(name="Meta", fontSize=10, alignment=1)

    # -------------------------------------------------------------------------
    # Public
    # -------------------------------------------------------------------------

    def generate_pdf(self, result: AnalyticsResult) -> bytes:
        """Build the session report and return the PDF bytes."""
        session = result.session_analytics
        logger.info(f"🧾 Generating session PDF for {session.session_id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Session Report {session.session_id}")

        story = []
        story.extend(self._build_header(result))
        story.append(Spacer(1, 0.3 * inch))
        story.extend(self._build_class_summary(result))
        story.append(Spacer(1, 0.4 * inch))
        story.extend(self._build_task_table(result))
        story.append(Spacer(1, 0.4 * inch))
        story.extend(self._build_team_table(result))

        for student in result.student_analytics_list:
            story.append(PageBreak())
            story.extend(self._build_student_transcript(student))

        story.append(Spacer(1, 0.5 * inch))
        story.extend(self._build_footer())

        doc.build(story)
        pdf_data = buffer.getvalue()
        buffer.close()
        return pdf_data

    def save_pdf(self, result: AnalyticsResult, path: str) -> str:
        """Write the session report to ``path`` and return its absolute path."""
        pdf_bytes = self.generate_pdf(result)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "wb") as f:
            f.write(pdf_bytes)
        logger.info(f"🗂️ Saved session PDF to {path}")
        return os.path.abspath(path)

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    def _build_header(self, result: AnalyticsResult):
        session = result.session_analytics
        header_style = ParagraphStyle(name="HeaderTitle", fontSize=20, leading=24, alignment=1, textColor=PRIMARY)
        return [
            Paragraph("Session Performance Report", header_style),
            Spacer(1, 0.1 * inch),
            Paragraph(f"Session: {escape(session.session_id)}", self.meta_style),
            Paragraph(f"Classroom: {escape(session.classroom_id or 'N/A')}", self.meta_style),
            Paragraph(
                f"Generated on: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}",
                self.meta_style,
            ),
        ]

    def _build_class_summary(self, result: AnalyticsResult):
        session = result.session_analytics
        data = [
            ["Measure", "Value"],
            ["Students", str(len(result.student_analytics_list))],
            ["Tasks", str(len(session.tasks))],
            ["Class Average Score", f"{session.class_average_score}%"],
            ["Class Average Accuracy", f"{session.class_average_accuracy}%"],
        ]
        table = Table(data, colWidths=[3 * inch, 2 * inch])
        table.setStyle(TableStyle(HEADER_ROW_STYLE + [("ALIGN", (0, 0), (-1, -1), "CENTER")]))
        return [Paragraph("Class Summary", self.section_style), table]

    def _build_task_table(self, result: AnalyticsResult):
        tasks = result.session_analytics.tasks
        elements = [Paragraph("Task Breakdown", self.section_style)]
        if not tasks:
            elements.append(Paragraph("No task submissions recorded.", self.cell_style))
            return elements

        data = [["Task", "Type", "Avg Score", "Correct %", "Submissions", "Avg Time (ms)"]]
        for task in tasks:
            data.append([
                Paragraph(escape(task.prompt or task.task_id), self.cell_style),
                task.task_type,
                f"{task.avg_score}%",
                f"{task.avg_correct_pct}%",
                str(task.submissions_count),
                str(task.avg_latency_ms),
            ])

        table = Table(data, colWidths=[2.6 * inch, 1.2 * inch, 0.8 * inch, 0.8 * inch, 0.9 * inch, 1.0 * inch])
        table.setStyle(TableStyle(HEADER_ROW_STYLE + [("ALIGN", (2, 1), (-1, -1), "CENTER")]))
        elements.append(table)
        return elements

    def _build_team_table(self, result: AnalyticsResult):
        teams = result.session_analytics.teams
        if not teams:
            return []

        data = [["Team", "Points", "Correct", "Incorrect", "Avg Time (ms)"]]
        for team in teams:
            data.append([
                team.team_name,
                _fmt_points(team.total_points),
                str(team.correct_count),
                str(team.incorrect_count),
                str(team.avg_latency_ms),
            ])

        table = Table(data, colWidths=[2.5 * inch, 1.0 * inch, 1.0 * inch, 1.0 * inch, 1.2 * inch])
        table.setStyle(TableStyle(HEADER_ROW_STYLE + [("ALIGN", (1, 1), (-1, -1), "CENTER")]))
        return [Paragraph("Teams", self.section_style), table]

    def _build_student_transcript(self, student: StudentAnalyticsSummary):
        elements = [
            Paragraph(escape(f"{student.student_name} ({student.student_id})"), self.section_style),
            Paragraph(
                f"Total Points: {_fmt_points(student.total_points)}/{_fmt_points(student.max_points)} | "
                f"Tasks: {student.tasks_completed}/{student.tasks_assigned} | "
                f"Accuracy: {student.accuracy_pct}% | "
                f"Average Response Time: {student.avg_latency_ms} ms",
                self.sub_title_style,
            ),
            Spacer(1, 0.1 * inch),
        ]

        data: List[list] = [["Task", "Type", "Points", "Result"]]
        for entry in student.per_task:
            data.append([
                Paragraph(escape(entry.prompt or entry.task_id), self.cell_style),
                entry.task_type,
                f"{_fmt_points(entry.points)}/{_fmt_points(entry.max_points)}",
                self._result_label(entry.is_correct),
            ])

        table = Table(data, colWidths=[3.6 * inch, 1.3 * inch, 1.0 * inch, 1.0 * inch])
        table.setStyle(TableStyle(HEADER_ROW_STYLE + [("ALIGN", (2, 1), (-1, -1), "CENTER")]))
        elements.append(table)
        return elements

    @staticmethod
    def _result_label(is_correct: Optional[bool]) -> str:
        if is_correct is True:
            return "Correct"
        if is_correct is False:
            return "Incorrect"
        return "-"

    def _build_footer(self):
        footer_style = ParagraphStyle(
            name="Footer",
            fontSize=9,
            leading=12,
            alignment=1,
            textColor=colors.HexColor("#666666"),
        )
        return [Paragraph("Best attempt per task shown for each student.", footer_style)]
