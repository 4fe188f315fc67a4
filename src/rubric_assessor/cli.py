"""Console script for rubric_assessor."""

from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .assessment.models import SavedAssessment
from .assessment.session import AssessmentSession, ValidationError
from .config.loader import ConfigLoader
from .config.models import AppConfig
from .grading.feedback import FeedbackError, FeedbackGenerator
from .grading.scoring import ScoreSummary
from .output.pdf_generator import default_pdf_name, generate_assessment_pdf
from .rubrics.loader import RubricLoader
from .rubrics.models import Rubric, RubricWorkbook, Sheet
from .rubrics.parser import parse_rubric_sheet
from .storage.store import AssessmentStore, open_store
from .utils.logging import get_logger, setup_logging

app = typer.Typer(help="Score students against rubric templates and keep a history of assessments.")
console = Console()
logger = get_logger(__name__)

FILE_OPTION = typer.Option(None, "--file", "-f", help="Rubric template file (JSON, YAML or CSV).")
SCORE_OPTION = typer.Option(
    None,
    "--score",
    "-s",
    help="Selected level as KEY=SCORE; KEY is a criterion id, label or 1-based position.",
)


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj


def _store(ctx: typer.Context) -> AssessmentStore:
    config = _config(ctx)
    return open_store(config.storage.resolved_path, config.storage.key)


def _workbook(ctx: typer.Context, rubric_file: Optional[Path]) -> RubricWorkbook:
    try:
        return RubricLoader().load(rubric_file or _config(ctx).rubric_file)
    except (FileNotFoundError, ValueError) as exc:
        _fail(str(exc))


def _sheet(workbook: RubricWorkbook, key: str) -> Sheet:
    sheet = workbook.get_sheet(key)
    if sheet is None:
        names = ", ".join(f"'{s.name}'" for s in workbook.sheets)
        _fail(f"No sheet '{key}' in {workbook.file_name}. Available: {names}")
    return sheet


def _apply_scores(session: AssessmentSession, scores: Optional[List[str]]) -> None:
    for item in scores or []:
        key, sep, value = item.rpartition("=")
        if not sep or not key:
            raise ValidationError(f"Scores must look like KEY=SCORE, got '{item}'")
        criterion = session.rubric.find_criterion(key)
        if criterion is None:
            raise ValidationError(f"No criterion matches '{key}'")
        try:
            score = int(value)
        except ValueError:
            raise ValidationError(f"Score for '{key}' must be a whole number, got '{value}'") from None
        session.set_score(criterion.id, score)


def _generate_feedback(session: AssessmentSession) -> None:
    with console.status("Generating feedback..."):
        try:
            session.generate_feedback()
        except ValidationError as exc:
            console.print(f"[yellow]{escape(str(exc))}[/yellow]")
        except FeedbackError as exc:
            console.print(f"[bold red]Feedback failed:[/bold red] {escape(str(exc))}")


def _render_rubric(rubric: Rubric, scores: dict[str, int] | None = None) -> None:
    table = Table(title=escape(rubric.title or "Untitled rubric"), show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Criterion")
    table.add_column("Levels")
    if scores is not None:
        table.add_column("Score", justify="center")

    for position, criterion in enumerate(rubric.criteria, start=1):
        levels = "\n".join(
            escape(f"[{level.score}] {level.label}: {level.description}") for level in criterion.levels
        )
        row = [str(position), f"{escape(criterion.label)}\n[dim]{escape(criterion.id)}[/dim]", levels]
        if scores is not None:
            score = scores.get(criterion.id)
            row.append(str(score) if score else "-")
        table.add_row(*row)

    console.print(table)


def _render_summary(summary: ScoreSummary) -> None:
    console.print(f"Total: [bold]{summary.total}/{summary.max_score}[/bold]   Average: [bold]{summary.average}[/bold]")


def _render_feedback(feedback: str, strengths: str, improvements: str, reflection: str | None = None) -> None:
    for title, body in (
        ("Teacher Feedback", feedback),
        ("Strengths", strengths),
        ("Areas for Improvement", improvements),
        ("Student Self-Assessment", reflection or ""),
    ):
        if body.strip():
            console.print(Panel(escape(body.strip()), title=title, title_align="left"))


def _save(session: AssessmentSession) -> SavedAssessment:
    try:
        record = session.save()
    except ValidationError as exc:
        _fail(str(exc))
    console.print(f"[green]Saved assessment {record.id}[/green]")
    return record


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
):
    """Rubric assessment editor."""
    load_dotenv()
    try:
        app_config = ConfigLoader().load(config)
    except (FileNotFoundError, ValueError) as exc:
        _fail(str(exc))

    setup_logging("DEBUG" if verbose else app_config.log_level)
    ctx.obj = app_config


@app.command()
def templates(ctx: typer.Context, rubric_file: Optional[Path] = FILE_OPTION):
    """List the sheets of a template workbook."""
    workbook = _workbook(ctx, rubric_file)

    table = Table(title=escape(workbook.file_name))
    table.add_column("#", justify="right")
    table.add_column("Sheet")
    table.add_column("Title")
    table.add_column("Criteria", justify="right")
    for position, sheet in enumerate(workbook.sheets, start=1):
        rubric = parse_rubric_sheet(sheet)
        table.add_row(str(position), escape(sheet.name), escape(rubric.title), str(len(rubric.criteria)))
    console.print(table)


@app.command()
def show(ctx: typer.Context, sheet: str = typer.Argument(..., help="Sheet name or position."), rubric_file: Optional[Path] = FILE_OPTION):
    """Show the rubric parsed from one sheet."""
    rubric = parse_rubric_sheet(_sheet(_workbook(ctx, rubric_file), sheet))
    if not rubric.criteria:
        console.print(f"[yellow]No criteria found in '{sheet}'.[/yellow]")
        return
    _render_rubric(rubric)


@app.command()
def assess(
    ctx: typer.Context,
    sheet: str = typer.Argument(..., help="Sheet name or position."),
    student: str = typer.Option("", "--student", "-n", help="Student name."),
    task: str = typer.Option("", "--task", "-t", help="Task or assignment."),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Assessment date (YYYY-MM-DD), today by default."),
    scores: Optional[List[str]] = SCORE_OPTION,
    notes: str = typer.Option("", "--notes", help="Teacher notes, also passed to AI feedback."),
    reflection: Optional[str] = typer.Option(None, "--reflection", help="The student's self-assessment."),
    ai: bool = typer.Option(False, "--ai", help="Generate narrative feedback with the AI model."),
    save: bool = typer.Option(True, "--save/--no-save", help="Save the assessment to the history."),
    rubric_file: Optional[Path] = FILE_OPTION,
):
    """Score a student against a template sheet."""
    config = _config(ctx)
    session = AssessmentSession(
        _store(ctx),
        generator=FeedbackGenerator(config.feedback) if ai else None,
    )
    session.load_sheet(_sheet(_workbook(ctx, rubric_file), sheet))
    session.state.student_name = student
    session.state.task = task
    session.state.feedback = notes
    if date:
        session.state.date = date
    if reflection is not None:
        session.show_reflection = True
        session.state.student_reflection = reflection

    try:
        _apply_scores(session, scores)
    except ValidationError as exc:
        _fail(str(exc))

    if ai:
        _generate_feedback(session)

    _render_rubric(session.rubric, session.state.scores)
    _render_summary(session.totals())
    _render_feedback(
        session.state.feedback,
        session.state.strengths,
        session.state.improvements,
        session.state.student_reflection if session.show_reflection else None,
    )

    if save:
        _save(session)


@app.command()
def reopen(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Id of the saved assessment."),
    scores: Optional[List[str]] = SCORE_OPTION,
    notes: Optional[str] = typer.Option(None, "--notes", help="Replace the teacher notes / feedback text."),
    ai: bool = typer.Option(False, "--ai", help="Regenerate narrative feedback with the AI model."),
):
    """Adjust a saved assessment and save it in place."""
    config = _config(ctx)
    store = _store(ctx)
    record = store.get_by_id(record_id)
    if record is None:
        _fail(f"No saved assessment with id {record_id}")

    session = AssessmentSession(store, generator=FeedbackGenerator(config.feedback) if ai else None)
    session.load_saved(record)
    if notes is not None:
        session.state.feedback = notes

    try:
        _apply_scores(session, scores)
    except ValidationError as exc:
        _fail(str(exc))

    if ai:
        _generate_feedback(session)

    _render_summary(session.totals())
    _save(session)


@app.command()
def history(ctx: typer.Context):
    """List saved assessments, newest first."""
    records = _store(ctx).list()
    if not records:
        console.print("No saved assessments yet. Complete an assessment and save it to see it here.")
        return

    table = Table(title=f"{len(records)} Records")
    table.add_column("Student")
    table.add_column("Date")
    table.add_column("Task")
    table.add_column("Rubric")
    table.add_column("Score", justify="right")
    table.add_column("Id", overflow="fold")
    for record in records:
        table.add_row(
            escape(record.student_name),
            escape(record.date),
            escape(record.task or "No Task"),
            escape(record.rubric.title),
            f"{record.total_score}/{record.max_score}",
            record.id,
        )
    console.print(table)


@app.command()
def view(ctx: typer.Context, record_id: str = typer.Argument(..., help="Id of the saved assessment.")):
    """Show one saved assessment."""
    record = _store(ctx).get_by_id(record_id)
    if record is None:
        _fail(f"No saved assessment with id {record_id}")

    console.print(f"[bold]{escape(record.student_name)}[/bold]  {escape(record.date)}  {escape(record.task or 'No Task')}")
    _render_rubric(record.rubric, record.scores)
    _render_summary(ScoreSummary(record.total_score, record.max_score, record.average_score))
    _render_feedback(record.feedback, record.strengths, record.improvements, record.student_reflection)


@app.command()
def delete(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Id of the saved assessment."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
):
    """Delete a saved assessment."""
    store = _store(ctx)
    record = store.get_by_id(record_id)
    if record is None:
        console.print(f"No saved assessment with id {record_id}.")
        return

    if not yes and not typer.confirm(f"Delete the assessment of {record.student_name} ({record.date})?"):
        raise typer.Abort()
    store.delete(record_id)
    console.print(f"Deleted assessment {record_id}")


@app.command()
def export(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Id of the saved assessment."),
    output: Optional[Path] = typer.Argument(None, help="PDF file or directory (default: current directory)."),
):
    """Write a printable PDF of a saved assessment."""
    record = _store(ctx).get_by_id(record_id)
    if record is None:
        _fail(f"No saved assessment with id {record_id}")

    target = output or Path.cwd() / default_pdf_name(record)
    path = generate_assessment_pdf(record, target)
    console.print(f"Wrote {path}")


if __name__ == "__main__":
    app()
