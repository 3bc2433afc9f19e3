"""The generation session aggregate.

A session holds everything one user works on: the uploaded document, the
generation parameters, the three stage results, per-stage progress and the
last error. Collaborators receive the session explicitly; there is no
module-level state.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from examgen_core.errors import ExamGenError, MissingPrerequisiteError
from examgen_core.extraction.extractor import ExtractionResult
from examgen_core.schemas.artifacts import SavedArtifact
from examgen_core.schemas.document import Document
from examgen_core.schemas.exam import AnswerKey, Blueprint, ExamPaper
from examgen_core.schemas.generation import GenerationInput, GenerationState, Stage
from examgen_core.storage.store import PersistenceStore, StoreResult
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

UNSAVED_WORK_MESSAGE = (
    "The generated test has not been saved. Leave anyway? Unsaved changes will be lost."
)

# Session attribute holding each stage's result
_RESULT_ATTRIBUTES = {
    Stage.BLUEPRINT: "blueprint",
    Stage.TEST: "exam",
    Stage.SOLUTION: "solution",
}

# Results discarded when a stage (re)starts: the stage itself and every later one
_CASCADE = {
    Stage.BLUEPRINT: (Stage.BLUEPRINT, Stage.TEST, Stage.SOLUTION),
    Stage.TEST: (Stage.TEST, Stage.SOLUTION),
    Stage.SOLUTION: (Stage.SOLUTION,),
}


def _stage_flags(value: Any) -> dict[Stage, Any]:
    return {stage: value for stage in Stage}


@dataclass
class GenerationSession:
    """State of one generation session."""

    generation_input: GenerationInput = field(default_factory=GenerationInput)
    file_name: str | None = None
    document: Document | None = None
    blueprint: Blueprint | None = None
    exam: ExamPaper | None = None
    solution: AnswerKey | None = None
    in_progress: dict[Stage, bool] = field(default_factory=lambda: _stage_flags(False))
    progress: dict[Stage, float] = field(default_factory=lambda: _stage_flags(0.0))
    last_error: ExamGenError | None = None
    saved: bool = False

    @property
    def state(self) -> GenerationState:
        if self.solution is not None:
            return GenerationState.SOLUTION_READY
        if self.exam is not None:
            return GenerationState.TEST_READY
        if self.blueprint is not None:
            return GenerationState.BLUEPRINT_READY
        return GenerationState.IDLE

    @property
    def busy_stage(self) -> Stage | None:
        """The stage currently running, if any."""
        for stage in Stage:
            if self.in_progress[stage]:
                return stage
        return None

    # Document

    def load_document(self, result: ExtractionResult, file_name: str | None = None) -> None:
        """Use an extracted document as the generation content.

        The empty-content advisory, if any, becomes the session error; the
        document is kept either way.
        """
        self.document = result.document
        self.file_name = file_name or result.document.name
        self.generation_input = self.generation_input.with_document(result.document)
        self.last_error = result.warning
        logger.info(
            f"Loaded {self.file_name}: {result.document.page_count} pages, "
            f"{len(self.generation_input.page_images)} images"
        )

    def reject_file(self, error: ExamGenError) -> None:
        """Record a rejected upload without touching the current document."""
        self.last_error = error
        logger.warning(f"Rejected file: {error}")

    def clear_document(self) -> None:
        self.document = None
        self.file_name = None
        self.generation_input = self.generation_input.without_content()

    # Stage transitions, driven by the orchestrator

    def begin_stage(self, stage: Stage) -> None:
        for cleared in _CASCADE[stage]:
            setattr(self, _RESULT_ATTRIBUTES[cleared], None)
        if stage in (Stage.BLUEPRINT, Stage.TEST):
            self.saved = False
        self.in_progress[stage] = True
        self.progress[stage] = 0.0
        self.last_error = None

    def end_stage(self, stage: Stage) -> None:
        self.in_progress[stage] = False

    def complete_stage(
        self, stage: Stage, result: Blueprint | ExamPaper | AnswerKey
    ) -> None:
        setattr(self, _RESULT_ATTRIBUTES[stage], result)
        self.progress[stage] = 100.0

    def fail_stage(self, stage: Stage, error: ExamGenError) -> None:
        self.last_error = error
        logger.error(f"Stage {stage.value} failed: {error}")

    # Saved artifacts

    def load_artifact(self, artifact: SavedArtifact) -> None:
        """Restore a saved test and its parameters.

        The document content is not stored with artifacts, so the current
        document is dropped along with the blueprint and solution.
        """
        self.generation_input = artifact.input_parameters.model_copy(deep=True)
        self.exam = artifact.test_data.model_copy(deep=True)
        self.blueprint = None
        self.solution = None
        self.document = None
        self.file_name = None
        self.last_error = None
        self.saved = True

    def save_current(self, store: PersistenceStore) -> StoreResult:
        """Save the current test to a store.

        Storage errors are recorded in ``last_error``; the test stays in the
        session either way.
        """
        if self.exam is None:
            error = MissingPrerequisiteError("There is no generated test to save.")
            self.last_error = error
            return StoreResult(error=error)

        artifact = SavedArtifact.create(self.exam, self.generation_input)
        result = store.save(artifact)
        if result.ok:
            self.mark_saved()
        else:
            self.last_error = result.error
        return result

    # Unsaved-work guard

    def mark_saved(self) -> None:
        self.saved = True

    @property
    def has_unsaved_work(self) -> bool:
        return self.exam is not None and not self.saved

    def confirm_discard(self, confirm: Callable[[str], bool]) -> bool:
        """Ask the host whether the session may be discarded.

        Args:
            confirm: Host callback that shows the message and returns the
                user's answer

        Returns:
            True when there is nothing unsaved or the user confirmed
        """
        if not self.has_unsaved_work:
            return True
        return bool(confirm(UNSAVED_WORK_MESSAGE))
