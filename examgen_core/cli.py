"""Command line interface for examgen."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Table

from examgen_core.config import Settings, get_settings
from examgen_core.errors import ExamGenError
from examgen_core.extraction.extractor import DocumentExtractor
from examgen_core.generation.orchestrator import GenerationOrchestrator
from examgen_core.generation.stages import ModelGenerationBackend
from examgen_core.graph.build_exam_graph import build_exam_graph
from examgen_core.model_adapters.factory import build_model_adapter
from examgen_core.schemas.exam import AnswerKey, Blueprint, ExamPaper
from examgen_core.schemas.generation import (
    CognitiveRatios,
    GenerationInput,
    LessonTopic,
    ObjectiveFormats,
    QuestionCounts,
    QuestionTypeRatios,
    Stage,
)
from examgen_core.session import GenerationSession
from examgen_core.storage.kv import FileKeyValueStore
from examgen_core.storage.store import PersistenceStore
from examgen_core.utils.logging import get_logger, log_exceptions, set_package_level
from examgen_core.utils.pdf import check_file_type

app = typer.Typer(help="Generate blueprints, tests and answer keys from lesson PDFs.")
saved_app = typer.Typer(help="Manage saved tests.")
app.add_typer(saved_app, name="saved")

console = Console()
logger = get_logger(__name__)

STAGE_LABELS = {
    Stage.BLUEPRINT: "Analysing the lesson to build the blueprint",
    Stage.TEST: "Writing questions from the blueprint",
    Stage.SOLUTION: "Writing the answer key",
}


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Override EXAMGEN_LOG_LEVEL."),
) -> None:
    """examgen command line."""
    if log_level:
        set_package_level(log_level)


def _open_store(settings: Settings) -> PersistenceStore:
    kv = FileKeyValueStore(settings.storage_dir, quota_bytes=settings.storage_quota_bytes)
    return PersistenceStore(kv, key=settings.storage_key)


def _parse_topic(value: str) -> LessonTopic:
    """Parse ``"Name:START-END"`` (or ``"Name:PAGE"``) into a lesson topic."""
    name, sep, pages = value.rpartition(":")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected NAME:START-END, got {value!r}")
    start, _, end = pages.partition("-")
    try:
        start_page = int(start)
        end_page = int(end) if end else start_page
    except ValueError as e:
        raise typer.BadParameter(f"Invalid page range in {value!r}") from e
    if end_page < start_page:
        raise typer.BadParameter(f"Page range ends before it starts in {value!r}")
    return LessonTopic(name=name.strip(), start_page=start_page, end_page=end_page)


def _print_blueprint(blueprint: Blueprint) -> None:
    table = Table(title="Blueprint")
    for column in ("Topic", "Type", "Level", "Questions", "Points"):
        table.add_column(column)
    for row in blueprint.rows:
        table.add_row(
            row.topic,
            row.question_type,
            row.cognitive_level,
            str(row.question_count),
            f"{row.points:g}",
        )
    table.add_row("Total", "", "", str(blueprint.total_questions), f"{blueprint.total_points:g}")
    console.print(table)


def _print_exam(exam: ExamPaper, solution: AnswerKey | None) -> None:
    if exam.title:
        console.print(f"\n[bold]{exam.title}[/bold]")
    for question in exam.questions:
        console.print(
            f"\n[bold]{question.number}.[/bold] {question.content} "
            f"[dim]({question.question_type}, {question.cognitive_level}, "
            f"{question.points:g} pts)[/dim]"
        )
        for option in question.options:
            console.print(f"    {option}")
        entry = solution.for_question(question.id) if solution else None
        if entry is not None:
            console.print(f"    [green]Answer:[/green] {entry.answer}")
            if entry.explanation:
                console.print(f"    [dim]{entry.explanation}[/dim]")


@app.command()
def extract(
    pdf_path: Path = typer.Argument(..., help="Path to a PDF file."),
    json_output: Optional[Path] = typer.Option(
        None, "--json", help="Write the extracted document to JSON."
    ),
) -> None:
    """Extract reading-order text and page images from a PDF."""
    settings = get_settings()
    try:
        check_file_type(pdf_path.name, None)
        data = pdf_path.read_bytes()
    except ExamGenError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] Failed to read {pdf_path}: {e}")
        raise typer.Exit(code=1) from e

    extractor = DocumentExtractor(
        render_scale=settings.render_scale, jpeg_quality=settings.jpeg_quality
    )
    with Progress(
        TextColumn("Reading pages"), BarColumn(), TextColumn("{task.completed}/{task.total}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("extract", total=None)

        def on_page(number: int, total: int) -> None:
            progress.update(task, completed=number, total=total)

        try:
            result = asyncio.run(
                extractor.extract(data, name=pdf_path.stem, on_page=on_page)
            )
        except ExamGenError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1) from e

    document = result.document
    table = Table(title=f"{pdf_path.name} ({document.page_count} pages)")
    table.add_column("Page")
    table.add_column("Characters")
    table.add_column("Image")
    for page in document.pages:
        table.add_row(
            str(page.index),
            str(len(page.text)),
            f"{page.width}x{page.height}" if page.image else "-",
        )
    console.print(table)

    if result.warning is not None:
        console.print(f"[yellow]Warning:[/yellow] {result.warning}")

    if json_output:
        json_output.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"Document exported to [italic]{json_output}[/italic]")


@log_exceptions(logger)
async def _run_pipeline(
    graph: Any, orchestrator: GenerationOrchestrator, state: dict[str, Any]
) -> dict[str, Any]:
    try:
        return await graph.ainvoke(state)
    finally:
        await orchestrator.close()


@app.command()
def generate(
    pdf_path: Path = typer.Argument(..., help="Lesson PDF to generate the test from."),
    subject: str = typer.Option("Toán", help="Subject name."),
    class_name: str = typer.Option("", "--class", help="Class, e.g. 'Lớp 3'."),
    mcq_count: int = typer.Option(7, min=0, help="Number of objective questions."),
    written_count: int = typer.Option(3, min=0, help="Number of written questions."),
    mcq_ratio: int = typer.Option(
        70, min=0, max=100, help="Score share of objective questions (%)."
    ),
    recognition: int = typer.Option(30, min=0, help="Recognition questions (%)."),
    comprehension: int = typer.Option(40, min=0, help="Comprehension questions (%)."),
    application: int = typer.Option(30, min=0, help="Application questions (%)."),
    time_limit: int = typer.Option(40, min=1, help="Time limit in minutes."),
    topic: list[str] = typer.Option(
        [], "--topic", help="Lesson and page range, e.g. 'Phép cộng:3-5'. Repeatable."
    ),
    formats: list[str] = typer.Option(
        ["multiple_choice"],
        "--format",
        help="Objective formats: multiple_choice, true_false, matching, fill_blank.",
    ),
    solution: bool = typer.Option(True, help="Also generate the answer key."),
    save: bool = typer.Option(False, help="Save the generated test."),
    yes: bool = typer.Option(False, "--yes", help="Do not ask before discarding."),
    json_output: Optional[Path] = typer.Option(
        None, "--json", help="Write blueprint, test and answer key to JSON."
    ),
) -> None:
    """Run extraction, blueprint, test and answer key generation."""
    settings = get_settings()

    unknown = set(formats) - set(ObjectiveFormats.model_fields)
    if unknown:
        raise typer.BadParameter(f"Unknown formats: {', '.join(sorted(unknown))}")

    generation_input = GenerationInput(
        subject=subject,
        class_name=class_name,
        question_type_ratios=QuestionTypeRatios(
            multiple_choice=mcq_ratio, written=100 - mcq_ratio
        ),
        question_counts=QuestionCounts(
            multiple_choice=mcq_count, written=written_count
        ),
        cognitive_ratios=CognitiveRatios(
            recognition=recognition,
            comprehension=comprehension,
            application=application,
        ),
        objective_formats=ObjectiveFormats(
            **{name: name in formats for name in ObjectiveFormats.model_fields}
        ),
        time_limit=time_limit,
        lesson_topics=[_parse_topic(value) for value in topic],
    )

    try:
        adapter = build_model_adapter(settings)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    session = GenerationSession(generation_input=generation_input)

    with Progress(
        TextColumn("{task.description}"), BarColumn(), TextColumn("{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
    ) as progress:
        tasks: dict[Stage, TaskID] = {}

        def on_progress(stage: Stage, value: float) -> None:
            if stage not in tasks:
                tasks[stage] = progress.add_task(STAGE_LABELS[stage], total=100)
            progress.update(tasks[stage], completed=value)

        orchestrator = GenerationOrchestrator.from_settings(
            session,
            ModelGenerationBackend(adapter, language=settings.output_language),
            settings,
            on_progress=on_progress,
        )
        extractor = DocumentExtractor(
            render_scale=settings.render_scale, jpeg_quality=settings.jpeg_quality
        )
        graph = build_exam_graph(orchestrator, extractor)
        result = asyncio.run(
            _run_pipeline(
                graph,
                orchestrator,
                {"pdf_path": str(pdf_path), "include_solution": solution},
            )
        )

    for warning in result.get("warnings", []):
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    if session.blueprint is not None:
        _print_blueprint(session.blueprint)
    if session.exam is not None:
        _print_exam(session.exam, session.solution)

    if json_output and session.exam is not None:
        payload = {
            "input": session.generation_input.without_content().model_dump(mode="json"),
            "blueprint": session.blueprint.model_dump(mode="json")
            if session.blueprint
            else None,
            "test": session.exam.model_dump(mode="json"),
            "solution": session.solution.model_dump(mode="json")
            if session.solution
            else None,
        }
        json_output.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        console.print(f"Results exported to [italic]{json_output}[/italic]")

    if result.get("errors"):
        for error in result["errors"]:
            console.print(f"[bold red]Error:[/bold red] {error}")
        raise typer.Exit(code=1)

    if not save and not yes:
        save = not session.confirm_discard(lambda message: typer.confirm(message, default=False))

    if save:
        store_result = session.save_current(_open_store(settings))
        if store_result.ok:
            console.print("[bold green]Test saved.[/bold green]")
        else:
            console.print(f"[bold red]Error:[/bold red] {store_result.error}")
            raise typer.Exit(code=1)


@saved_app.command("list")
def list_saved() -> None:
    """List saved tests, most recent first."""
    store = _open_store(get_settings())
    if store.read_error is not None:
        console.print(f"[yellow]Warning:[/yellow] {store.read_error}")

    artifacts = store.list()
    if not artifacts:
        console.print("[yellow]No saved tests.[/yellow]")
        return

    table = Table(title="Saved tests")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Questions")
    for artifact in artifacts:
        table.add_row(
            artifact.id,
            artifact.display_name,
            str(len(artifact.test_data.questions)),
        )
    console.print(table)


@saved_app.command("show")
def show_saved(artifact_id: str = typer.Argument(..., help="Saved test id.")) -> None:
    """Print a saved test."""
    artifact = _open_store(get_settings()).get(artifact_id)
    if artifact is None:
        console.print(f"[bold red]Error:[/bold red] No saved test with id {artifact_id}")
        raise typer.Exit(code=1)

    session = GenerationSession()
    session.load_artifact(artifact)
    console.print(f"[bold]{artifact.display_name}[/bold]")
    _print_exam(session.exam, None)


@saved_app.command("delete")
def delete_saved(
    artifact_id: str = typer.Argument(..., help="Saved test id."),
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation."),
) -> None:
    """Delete a saved test."""
    store = _open_store(get_settings())
    artifact = store.get(artifact_id)
    if artifact is None:
        console.print(f"[bold red]Error:[/bold red] No saved test with id {artifact_id}")
        raise typer.Exit(code=1)

    if not yes and not typer.confirm(
        f"Delete '{artifact.display_name}'? This cannot be undone.", default=False
    ):
        raise typer.Exit()

    store_result = store.delete(artifact_id)
    if not store_result.ok:
        console.print(f"[bold red]Error:[/bold red] {store_result.error}")
        raise typer.Exit(code=1)
    console.print(f"Deleted [italic]{artifact.display_name}[/italic]")


if __name__ == "__main__":  # pragma: no cover
    app()
