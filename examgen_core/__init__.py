"""examgen-core: Generate primary school tests from lesson PDFs.

This package extracts reading-order text and page images from a lesson PDF,
then asks a multimodal model for three things in sequence: the assessment
blueprint, the test that implements it, and the answer key. Generated tests
can be saved to a size-limited local store.

Interactive use drives the stages one at a time through the orchestrator:

    >>> session = GenerationSession()
    >>> session.load_document(await DocumentExtractor().extract(pdf_bytes))
    >>> orchestrator = GenerationOrchestrator(session, ModelGenerationBackend(adapter))
    >>> await orchestrator.start_blueprint()
    >>> await orchestrator.start_test()

Batch use runs the whole sequence as a graph:

    >>> graph = build_exam_graph(orchestrator)
    >>> result = await graph.ainvoke({"pdf_path": "lesson.pdf"})
"""

from examgen_core.extraction import DocumentExtractor, ExtractionResult
from examgen_core.generation import GenerationOrchestrator, ModelGenerationBackend
from examgen_core.graph import build_exam_graph
from examgen_core.schemas.document import Document, Page
from examgen_core.schemas.exam import AnswerKey, Blueprint, ExamPaper
from examgen_core.schemas.generation import GenerationInput, Stage
from examgen_core.session import GenerationSession
from examgen_core.storage import PersistenceStore

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "build_exam_graph",
    "DocumentExtractor",
    "ExtractionResult",
    "GenerationOrchestrator",
    "GenerationSession",
    "ModelGenerationBackend",
    "PersistenceStore",
    # Schemas
    "AnswerKey",
    "Blueprint",
    "Document",
    "ExamPaper",
    "GenerationInput",
    "Page",
    "Stage",
]
