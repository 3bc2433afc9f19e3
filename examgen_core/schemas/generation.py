"""Generation parameters and input schemas."""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from examgen_core.errors import RatioValidationError
from examgen_core.schemas.document import Document


class Stage(str, Enum):
    """The three sequential generation steps."""

    BLUEPRINT = "blueprint"
    TEST = "test"
    SOLUTION = "solution"


class GenerationState(str, Enum):
    """Where a session is in the blueprint -> test -> solution sequence."""

    IDLE = "idle"
    BLUEPRINT_READY = "blueprint_ready"
    TEST_READY = "test_ready"
    SOLUTION_READY = "solution_ready"


class CognitiveRatios(BaseModel):
    """Recognition / comprehension / application percentage split.

    An invalid split can be built (the form allows it); it is rejected by
    ``ensure_valid`` when a stage starts.
    """

    recognition: int = Field(30, ge=0)
    comprehension: int = Field(40, ge=0)
    application: int = Field(30, ge=0)

    @property
    def total(self) -> int:
        return self.recognition + self.comprehension + self.application

    def ensure_valid(self) -> None:
        """Raise RatioValidationError unless the split sums to 100."""
        if self.total != 100:
            raise RatioValidationError(
                "Cognitive level ratios must add up to 100% "
                f"(currently {self.total}%)"
            )


class QuestionTypeRatios(BaseModel):
    """Share of the total score per question family, in percent."""

    multiple_choice: int = Field(70, ge=0, le=100)
    written: int = Field(30, ge=0, le=100)


class QuestionCounts(BaseModel):
    """Number of questions per question family."""

    multiple_choice: int = Field(7, ge=0)
    written: int = Field(3, ge=0)

    @property
    def total(self) -> int:
        return self.multiple_choice + self.written


class ObjectiveFormats(BaseModel):
    """Objective question formats the model may use."""

    multiple_choice: bool = True
    true_false: bool = False
    matching: bool = False
    fill_blank: bool = False

    def enabled(self) -> list[str]:
        """Names of the enabled formats, in declaration order."""
        return [name for name, on in self.model_dump().items() if on]


class LessonTopic(BaseModel):
    """A lesson and the page range of the document that covers it."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = ""
    start_page: int = Field(1, ge=1)
    end_page: int = Field(1, ge=1)


class GenerationInput(BaseModel):
    """Everything sent to the generation stages.

    ``extracted_text`` and ``page_images`` come from the uploaded document;
    the rest is user-supplied.
    """

    subject: str = "Toán"
    class_name: str = ""
    question_type_ratios: QuestionTypeRatios = Field(default_factory=QuestionTypeRatios)
    question_counts: QuestionCounts = Field(default_factory=QuestionCounts)
    cognitive_ratios: CognitiveRatios = Field(default_factory=CognitiveRatios)
    objective_formats: ObjectiveFormats = Field(default_factory=ObjectiveFormats)
    time_limit: int = Field(40, ge=1, description="Time limit in minutes")
    lesson_topics: list[LessonTopic] = Field(default_factory=list)
    extracted_text: str = Field("", description="Full document text")
    page_images: list[str] = Field(
        default_factory=list, description="Base64 JPEG page images"
    )

    def with_document(self, document: Document) -> "GenerationInput":
        """Return a copy whose content comes from an extracted document."""
        return self.model_copy(
            update={
                "extracted_text": document.full_text,
                "page_images": document.page_images,
            }
        )

    def without_content(self) -> "GenerationInput":
        """Return a copy with the bulk document content stripped."""
        return self.model_copy(
            deep=True, update={"extracted_text": "", "page_images": []}
        )
