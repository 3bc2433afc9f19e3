"""Saved test artifact schema."""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field

from examgen_core.schemas.exam import ExamPaper
from examgen_core.schemas.generation import GenerationInput

DISPLAY_TIME_FORMAT = "%d/%m/%Y %H:%M:%S"


class SavedArtifact(BaseModel):
    """A user-saved test together with the parameters that produced it.

    ``input_parameters`` never carries the document text or page images;
    they are stripped on creation to keep storage small.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    display_name: str
    created_at: datetime
    test_data: ExamPaper
    input_parameters: GenerationInput

    @classmethod
    def create(
        cls,
        exam: ExamPaper,
        generation_input: GenerationInput,
        now: datetime | None = None,
    ) -> "SavedArtifact":
        """Build an artifact for the current test.

        Args:
            exam: The generated test
            generation_input: Parameters used for generation
            now: Creation time (defaults to the current UTC time)

        Returns:
            New artifact with a fresh id
        """
        created_at = now or datetime.now(timezone.utc)
        return cls(
            display_name=(
                f"Đề {generation_input.subject} - "
                f"{created_at.astimezone().strftime(DISPLAY_TIME_FORMAT)}"
            ),
            created_at=created_at,
            test_data=exam,
            input_parameters=generation_input.without_content(),
        )
