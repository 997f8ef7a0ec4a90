"""Main Analytics Service: scores a session's submissions and builds its analytics."""

import concurrent.futures
import json
import logging
import sys
import time
from typing import Any, Dict, Iterable, List, Optional

import click

from config.models import AnalyticsResult, ScoredSubmission, SessionContext, TaskDefinition
from config.settings import ScoringConfig, configure_logging, get_scoring_config
from scorers import AIClient, ScoringConfigurationError, ScoringDispatcher

from .csv_exporter import CSVExporter
from .pdf_generator import PDFGenerator
from .session_aggregator import SessionAnalyticsAggregator

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Orchestrates scoring, aggregation and export for one session."""

    def __init__(
        self,
        dispatcher: Optional[ScoringDispatcher] = None,
        aggregator: Optional[SessionAnalyticsAggregator] = None,
        csv_exporter: Optional[CSVExporter] = None,
        pdf_generator: Optional[PDFGenerator] = None,
        scoring_config: Optional[ScoringConfig] = None,
    ):
        self.scoring_config = scoring_config or get_scoring_config()
        self.dispatcher = dispatcher or ScoringDispatcher(scoring_config=self.scoring_config)
        self.aggregator = aggregator or SessionAnalyticsAggregator(self.scoring_config)
        self.csv_exporter = csv_exporter or CSVExporter()
        self.pdf_generator = pdf_generator or PDFGenerator()

    # -------------------------------------------------------------------------
    # SCORING
    # -------------------------------------------------------------------------

    def score_submissions(
        self,
        session: SessionContext,
        submissions: Iterable[Any],
        rubrics: Optional[Dict[str, Any]] = None,
    ) -> List[ScoredSubmission]:
        """
        Score every submission that has no result yet.

        Calls run concurrently on a bounded thread pool. A failed call is
        logged and leaves only that submission unscored.

        Args:
            session: roster and task set of the session
            submissions: scored or unscored submissions, in any order
            rubrics: optional task id -> rubric mapping
        Returns:
            Submissions in their input order, with results filled in
        """
        rubrics = rubrics or {}
        tasks = {task.id: task for task in session.tasks if task.id is not None}
        scored = [
            s if isinstance(s, ScoredSubmission) else ScoredSubmission.model_validate(s)
            for s in submissions
        ]

        pending = [
            (index, sub) for index, sub in enumerate(scored)
            if sub.result is None and sub.task_id in tasks
        ]
        if not pending:
            logger.info(f"No ungraded submissions for session {session.id}")
            return scored

        start_time = time.time()
        workers = max(1, min(self.scoring_config.max_concurrent_judgments, len(pending)))
        logger.info(f"Scoring {len(pending)} submissions for session {session.id} ({workers} workers)")

        failures = 0
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_idx = {}
            for index, sub in pending:
                task = tasks[sub.task_id]
                future = executor.submit(
                    self.dispatcher.score, task, sub.submission, self._rubric_for(task, rubrics)
                )
                future_to_idx[future] = index

            for future in concurrent.futures.as_completed(future_to_idx):
                index = future_to_idx[future]
                sub = scored[index]
                try:
                    result = future.result()
                except ScoringConfigurationError as e:
                    failures += 1
                    logger.error(f"Scoring not configured for submission {sub.id} (task {sub.task_id}): {e}")
                    continue
                except Exception as e:
                    failures += 1
                    logger.error(f"Scoring failed for submission {sub.id} (task {sub.task_id}): {e}", exc_info=True)
                    continue
                scored[index] = sub.model_copy(update={"result": result})

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Scored {len(pending) - failures}/{len(pending)} submissions for session {session.id} in {elapsed_ms} ms"
        )
        return scored

    @staticmethod
    def _rubric_for(task: TaskDefinition, rubrics: Dict[str, Any]) -> Optional[Any]:
        if task.id in rubrics:
            return rubrics[task.id]
        # tasks may carry their own rubric document
        return (task.model_extra or {}).get("rubric")

    # -------------------------------------------------------------------------
    # MAIN LOGIC
    # -------------------------------------------------------------------------

    def run_session(
        self,
        session: Any,
        submissions: Iterable[Any],
        rubrics: Optional[Dict[str, Any]] = None,
        score: bool = True,
        csv_dir: Optional[str] = None,
        pdf_path: Optional[str] = None,
    ) -> AnalyticsResult:
        """Score (optionally), aggregate and export one session."""
        session = session if isinstance(session, SessionContext) else SessionContext.model_validate(session)
        logger.info(f"Starting analytics for session {session.id}")

        if score:
            submissions = self.score_submissions(session, submissions, rubrics)

        result = self.aggregator.aggregate(session, submissions)

        if csv_dir:
            self.csv_exporter.export_to_directory(result, csv_dir)
        if pdf_path:
            self.pdf_generator.save_pdf(result, pdf_path)

        return result


# -------------------------------------------------------------------------
# CLI COMMANDS
# -------------------------------------------------------------------------

def _load_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _build_dispatcher() -> ScoringDispatcher:
    ai_client = AIClient()
    return ScoringDispatcher(judge=ai_client if ai_client.available else None)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL.")
def cli(log_level: Optional[str]):
    """Classroom scoring and session analytics CLI."""
    configure_logging(log_level)


@cli.command()
@click.argument("task_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("submission_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--rubric", "rubric_file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Rubric JSON for judgment-scored tasks.")
def score(task_file: str, submission_file: str, rubric_file: Optional[str]):
    """Score one submission and print the ScoreResult JSON."""
    dispatcher = _build_dispatcher()
    rubric = _load_json(rubric_file) if rubric_file else None
    try:
        result = dispatcher.score(_load_json(task_file), _load_json(submission_file), rubric)
    except ScoringConfigurationError as e:
        click.echo(f"❌ Scoring failed: {e}", err=True)
        sys.exit(1)
    click.echo(result.model_dump_json(by_alias=True, indent=2))


@cli.command()
@click.argument("session_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("submissions_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--score/--no-score", "do_score", default=False, help="Score ungraded submissions first.")
@click.option("--rubrics", "rubrics_file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="JSON object mapping task id to rubric.")
@click.option("--csv-dir", type=click.Path(file_okay=False), default=None, help="Write CSV exports here.")
@click.option("--pdf", "pdf_path", type=click.Path(dir_okay=False), default=None, help="Write the PDF report here.")
def aggregate(
    session_file: str,
    submissions_file: str,
    do_score: bool,
    rubrics_file: Optional[str],
    csv_dir: Optional[str],
    pdf_path: Optional[str],
):
    """Aggregate a session and print its SessionAnalytics JSON."""
    service = AnalyticsService(dispatcher=_build_dispatcher() if do_score else None)
    rubrics = _load_json(rubrics_file) if rubrics_file else None
    result = service.run_session(
        _load_json(session_file),
        _load_json(submissions_file),
        rubrics=rubrics,
        score=do_score,
        csv_dir=csv_dir,
        pdf_path=pdf_path,
    )

    session = result.session_analytics
    click.echo(f"✅ Session {session.session_id} aggregated successfully.", err=True)
    click.echo(f"Students: {len(result.student_analytics_list)}", err=True)
    click.echo(f"Class Average Score: {session.class_average_score}%", err=True)
    click.echo(f"Class Average Accuracy: {session.class_average_accuracy}%", err=True)
    click.echo(session.model_dump_json(by_alias=True, indent=2))


if __name__ == "__main__":
    cli()
