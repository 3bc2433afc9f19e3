"""Build the end-to-end exam generation graph.

The graph runs the same stages a user would trigger one by one, for batch
use from the command line:

    ingest -> extract -> generate_blueprint -> generate_test
        -> [generate_solution] -> (output)

Any step that records an error ends the run. The solution step only runs
when ``include_solution`` is true (the default).
"""

from collections.abc import Callable
from typing import Annotated, Any, TypedDict

from langgraph.graph import END, StateGraph
from langgraph.types import Checkpointer

from examgen_core.extraction.extractor import DocumentExtractor
from examgen_core.generation.orchestrator import GenerationOrchestrator
from examgen_core.graph.nodes.extract import create_extract_node
from examgen_core.graph.nodes.generate import create_stage_node
from examgen_core.graph.nodes.ingest import ingest_node
from examgen_core.schemas.document import Document
from examgen_core.schemas.exam import AnswerKey, Blueprint, ExamPaper
from examgen_core.schemas.generation import Stage
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)


def _keep_last_str(existing: str | None, incoming: str | None) -> str | None:
    """Keep the latest value for string fields."""
    return incoming if incoming else existing


def _keep_max_int(existing: int, incoming: int) -> int:
    """Keep the maximum value for progress fields."""
    return max(existing or 0, incoming or 0)


def _merge_messages(existing: list[str], incoming: list[str]) -> list[str]:
    """Merge message lists, deduplicating while keeping order."""
    if not existing:
        return list(incoming or [])
    if not incoming:
        return list(existing)
    return list(dict.fromkeys([*existing, *incoming]))


class ExamPipelineState(TypedDict, total=False):
    """State passed through the exam pipeline."""

    # Input
    pdf_path: str
    pdf_data: bytes
    file_name: str
    content_type: str
    include_solution: bool

    # Extraction
    document_name: str
    document: Document

    # Stage results
    blueprint: Blueprint
    exam: ExamPaper
    solution: AnswerKey

    # Metadata
    current_step: Annotated[str, _keep_last_str]
    progress: Annotated[int, _keep_max_int]
    errors: Annotated[list[str], _merge_messages]
    warnings: Annotated[list[str], _merge_messages]


def _continue_to(next_node: str) -> Callable[[dict[str, Any]], str]:
    """Route to the next node unless the state carries errors."""

    def route(state: dict[str, Any]) -> str:
        if state.get("errors"):
            logger.warning(
                f"Stopping after {state.get('current_step')}: {state['errors'][-1]}"
            )
            return END
        return next_node

    return route


def _after_test(state: dict[str, Any]) -> str:
    if state.get("errors") or not state.get("include_solution", True):
        return END
    return "generate_solution"


def build_exam_graph(
    orchestrator: GenerationOrchestrator,
    extractor: DocumentExtractor | None = None,
    checkpointer: Checkpointer | None = None,
) -> Any:
    """Build the exam generation pipeline.

    Args:
        orchestrator: Orchestrator (and session) the stages run on
        extractor: Document extractor (defaults to a new one)
        checkpointer: Optional LangGraph checkpointer

    Returns:
        Compiled graph ready for invocation

    Example:
        >>> session = GenerationSession(generation_input=GenerationInput(subject="Toán"))
        >>> orchestrator = GenerationOrchestrator(session, ModelGenerationBackend(adapter))
        >>> graph = build_exam_graph(orchestrator)
        >>> result = await graph.ainvoke({"pdf_path": "/path/to/lesson.pdf"})
        >>> print(result["exam"].questions[0].content)
    """
    extractor = extractor or DocumentExtractor()

    graph = StateGraph(ExamPipelineState)

    graph.add_node("ingest", ingest_node)
    graph.add_node("extract", create_extract_node(extractor, orchestrator.session))
    # Node names must not clash with state keys ("blueprint", "solution")
    graph.add_node(
        "generate_blueprint", create_stage_node(orchestrator, Stage.BLUEPRINT)
    )
    graph.add_node("generate_test", create_stage_node(orchestrator, Stage.TEST))
    graph.add_node(
        "generate_solution", create_stage_node(orchestrator, Stage.SOLUTION)
    )

    graph.set_entry_point("ingest")
    graph.add_conditional_edges("ingest", _continue_to("extract"), ["extract", END])
    graph.add_conditional_edges(
        "extract", _continue_to("generate_blueprint"), ["generate_blueprint", END]
    )
    graph.add_conditional_edges(
        "generate_blueprint", _continue_to("generate_test"), ["generate_test", END]
    )
    graph.add_conditional_edges(
        "generate_test", _after_test, ["generate_solution", END]
    )
    graph.add_edge("generate_solution", END)

    return graph.compile(checkpointer=checkpointer)
