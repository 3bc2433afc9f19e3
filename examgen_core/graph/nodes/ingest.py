"""Ingest node: load the PDF and check it before extraction."""

from pathlib import Path
from typing import Any

from examgen_core.errors import ExamGenError
from examgen_core.utils.logging import get_logger
from examgen_core.utils.pdf import check_file_type, get_pdf_info, validate_pdf

logger = get_logger(__name__)


def _fail(state: dict[str, Any], error_msg: str) -> dict[str, Any]:
    logger.error(error_msg)
    return {
        **state,
        "errors": state.get("errors", []) + [error_msg],
        "current_step": "ingest",
        "progress": 0,
    }


def ingest_node(state: dict[str, Any]) -> dict[str, Any]:
    """Load PDF bytes and reject anything that is not a PDF.

    Args:
        state: Pipeline state with pdf_path, or pdf_data together with
            file_name and/or content_type

    Returns:
        Updated state with pdf_data and document_name
    """
    pdf_path = state.get("pdf_path")
    pdf_data = state.get("pdf_data")
    file_name = state.get("file_name")

    logger.info(f"Ingesting PDF (path={pdf_path}, has_data={pdf_data is not None})")

    if pdf_path:
        path = Path(pdf_path)
        if not path.exists():
            return _fail(state, f"PDF not found: {pdf_path}")
        try:
            pdf_data = path.read_bytes()
            logger.info(f"Read PDF from {pdf_path} ({len(pdf_data)} bytes)")
        except OSError as e:
            return _fail(state, f"Failed to read PDF: {e}")
        file_name = file_name or path.name

    if not pdf_data:
        return _fail(state, "No PDF data provided")

    try:
        check_file_type(file_name, state.get("content_type"))
        validate_pdf(pdf_data)
    except ExamGenError as e:
        return _fail(state, str(e))

    pdf_info = get_pdf_info(pdf_data)
    logger.info(
        f"PDF validated: version={pdf_info.get('version')}, size={pdf_info.get('size_bytes')} bytes"
    )

    return {
        **state,
        "pdf_data": pdf_data,
        "file_name": file_name,
        "document_name": Path(file_name).stem if file_name else "document",
        "current_step": "ingest",
        "progress": 5,
        "errors": state.get("errors", []),
    }
