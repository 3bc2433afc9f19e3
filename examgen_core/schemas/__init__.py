"""Data schemas for extraction, generation and storage.

This module exports the document models produced by extraction, the
generation parameters, the three stage outputs and the saved artifact.
"""

from examgen_core.schemas.artifacts import SavedArtifact
from examgen_core.schemas.document import Document, Page, TextFragment
from examgen_core.schemas.exam import (
    AnswerEntry,
    AnswerKey,
    Blueprint,
    BlueprintRow,
    ExamPaper,
    Question,
)
from examgen_core.schemas.generation import (
    CognitiveRatios,
    GenerationInput,
    GenerationState,
    LessonTopic,
    ObjectiveFormats,
    QuestionCounts,
    QuestionTypeRatios,
    Stage,
)

__all__ = [
    # Document
    "Document",
    "Page",
    "TextFragment",
    # Generation input
    "CognitiveRatios",
    "GenerationInput",
    "GenerationState",
    "LessonTopic",
    "ObjectiveFormats",
    "QuestionCounts",
    "QuestionTypeRatios",
    "Stage",
    # Stage outputs
    "AnswerEntry",
    "AnswerKey",
    "Blueprint",
    "BlueprintRow",
    "ExamPaper",
    "Question",
    # Storage
    "SavedArtifact",
]
