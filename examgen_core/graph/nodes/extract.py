"""Extract node: reading-order text and page images for every page."""

from collections.abc import Awaitable, Callable
from typing import Any

from examgen_core.errors import ExamGenError
from examgen_core.extraction.extractor import DocumentExtractor
from examgen_core.session import GenerationSession
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)


def create_extract_node(
    extractor: DocumentExtractor,
    session: GenerationSession,
) -> Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]:
    """Create an extract node bound to a session.

    Args:
        extractor: Document extractor
        session: Session that receives the extracted document

    Returns:
        Async node function
    """

    async def extract_node(state: dict[str, Any]) -> dict[str, Any]:
        """Extract the ingested PDF into the session.

        An empty document is reported as a warning, not an error.
        """
        pdf_data = state.get("pdf_data")
        if not pdf_data:
            return {
                **state,
                "errors": state.get("errors", []) + ["No PDF to extract"],
                "current_step": "extract",
            }

        try:
            result = await extractor.extract(
                pdf_data, name=state.get("document_name", "document")
            )
        except ExamGenError as e:
            session.reject_file(e)
            return {
                **state,
                "errors": state.get("errors", []) + [str(e)],
                "current_step": "extract",
            }

        session.load_document(result, file_name=state.get("file_name"))
        warnings = list(state.get("warnings", []))
        if result.warning is not None:
            warnings.append(str(result.warning))

        return {
            **state,
            "document": result.document,
            "warnings": warnings,
            "current_step": "extract",
            "progress": 30,
        }

    return extract_node
