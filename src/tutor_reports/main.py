"""CLI entrypoint for tutor-reports."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import rich_click as click

from tutor_reports import __version__
from tutor_reports.batch.controllers import (
    BatchCliController,
    BatchInspectCommand,
    BatchQueueCommand,
    BatchRunCommand,
    BatchStatusCommand,
    BatchSweepCommand,
)
from tutor_reports.config import Settings
from tutor_reports.reports.controllers import (
    ReportsCliController,
    ReportShowCommand,
    ReportSubmitCommand,
    StudentAddCommand,
)
from tutor_reports.storage.common import StoreError

click.rich_click.USE_MARKDOWN = True
BATCH_CONTROLLER = BatchCliController()
REPORTS_CONTROLLER = ReportsCliController()


@click.group()
@click.version_option(version=__version__, prog_name="tutor-reports")
def tutor_reports() -> None:
    """Tutor reports CLI."""

    with _cli_errors():
        settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@tutor_reports.group()
def batch() -> None:
    """Batch queue sweep, scheduler, and inspection commands."""


@batch.command("sweep")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def batch_sweep(db_path: Path | None) -> None:
    """Process all pending tasks once ("process now")."""

    with _cli_errors():
        _emit_lines(BATCH_CONTROLLER.sweep(BatchSweepCommand(db_path=db_path)))


@batch.command("run")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--interval",
    "interval_seconds",
    type=click.FloatRange(min=0.0, min_open=True),
    default=None,
    help="Seconds between sweeps. Defaults to TUTOR_REPORTS_BATCH_SWEEP_INTERVAL_SECONDS.",
)
@click.option(
    "--max-sweeps",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many sweeps.",
)
def batch_run(
    db_path: Path | None,
    interval_seconds: float | None,
    max_sweeps: int | None,
) -> None:
    """Run the periodic sweep scheduler in the foreground."""

    with _cli_errors():
        _emit_lines(
            BATCH_CONTROLLER.run(
                BatchRunCommand(
                    db_path=db_path,
                    interval_seconds=interval_seconds,
                    max_sweeps=max_sweeps,
                ),
            ),
        )


@batch.command("status")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def batch_status(db_path: Path | None) -> None:
    """Show pending and processing counts and the last completion time."""

    with _cli_errors():
        _emit_lines(BATCH_CONTROLLER.status(BatchStatusCommand(db_path=db_path)))


@batch.command("queue")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--status",
    type=click.Choice(["pending", "processing", "completed", "failed"], case_sensitive=False),
    default=None,
    help="Optional status filter.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=50,
    show_default=True,
    help="Max tasks to print.",
)
def batch_queue(db_path: Path | None, status: str | None, limit: int) -> None:
    """List queued tasks, newest first."""

    with _cli_errors():
        _emit_lines(
            BATCH_CONTROLLER.list_queue(
                BatchQueueCommand(db_path=db_path, status=status, limit=limit),
            ),
        )


@batch.command("inspect")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--task-id", type=int, required=True, help="Task id.")
def batch_inspect(db_path: Path | None, task_id: int) -> None:
    """Inspect one task with event history."""

    with _cli_errors():
        _emit_lines(
            BATCH_CONTROLLER.inspect_task(BatchInspectCommand(db_path=db_path, task_id=task_id)),
        )


@tutor_reports.group()
def students() -> None:
    """Student commands."""


@students.command("add")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--name", required=True, help="Student name.")
@click.option("--grade", default=None, help="School grade.")
@click.option("--subject", default=None, help="Tutored subject.")
@click.option("--phone", default=None, help="Student phone.")
@click.option("--parent-phone", default=None, help="Parent phone.")
def students_add(  # noqa: PLR0913
    db_path: Path | None,
    name: str,
    grade: str | None,
    subject: str | None,
    phone: str | None,
    parent_phone: str | None,
) -> None:
    """Create a student."""

    with _cli_errors():
        _emit_lines(
            REPORTS_CONTROLLER.add_student(
                StudentAddCommand(
                    db_path=db_path,
                    name=name,
                    grade=grade,
                    subject=subject,
                    phone=phone,
                    parent_phone=parent_phone,
                ),
            ),
        )


@tutor_reports.group()
def reports() -> None:
    """Lesson report commands."""


@reports.command("submit")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--student-id", type=int, required=True, help="Student id.")
@click.option(
    "--class-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    required=True,
    help="Lesson date (YYYY-MM-DD).",
)
@click.option("--lesson-topics", default=None, help="Topics covered.")
@click.option(
    "--homework-score",
    type=click.IntRange(min=0, max=100),
    default=None,
    help="Homework score, 0-100.",
)
@click.option("--student-notes", default=None, help="Observations during the lesson.")
@click.option("--next-assignment", default=None, help="Assignment for the next lesson.")
def reports_submit(  # noqa: PLR0913
    db_path: Path | None,
    student_id: int,
    class_date: datetime,
    lesson_topics: str | None,
    homework_score: int | None,
    student_notes: str | None,
    next_assignment: str | None,
) -> None:
    """Save a lesson report and queue its parent-facing text generation."""

    with _cli_errors():
        _emit_lines(
            REPORTS_CONTROLLER.submit_report(
                ReportSubmitCommand(
                    db_path=db_path,
                    student_id=student_id,
                    class_date=class_date.date(),
                    lesson_topics=lesson_topics,
                    homework_score=homework_score,
                    student_notes=student_notes,
                    next_assignment=next_assignment,
                ),
            ),
        )


@reports.command("show")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--report-id", type=int, required=True, help="Report id.")
def reports_show(db_path: Path | None, report_id: int) -> None:
    """Show a report with its generation status and text."""

    with _cli_errors():
        _emit_lines(
            REPORTS_CONTROLLER.show_report(ReportShowCommand(db_path=db_path, report_id=report_id)),
        )


@contextmanager
def _cli_errors() -> Iterator[None]:
    try:
        yield
    except (ValueError, StoreError) as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    tutor_reports()
