"""Schemas for the generated blueprint, test and answer key."""

from pydantic import BaseModel, Field, model_validator


class BlueprintRow(BaseModel):
    """One cell group of the blueprint matrix."""

    topic: str = Field(..., description="Lesson or topic name")
    question_type: str = Field(..., description="e.g. multiple_choice, written")
    cognitive_level: str = Field(
        ..., description="recognition, comprehension or application"
    )
    question_count: int = Field(0, ge=0)
    points: float = Field(0.0, ge=0.0)


class Blueprint(BaseModel):
    """The assessment matrix produced by the first stage."""

    rows: list[BlueprintRow] = Field(default_factory=list)
    total_questions: int = Field(0, ge=0)
    total_points: float = Field(0.0, ge=0.0)
    notes: str | None = None

    @model_validator(mode="after")
    def _fill_totals(self) -> "Blueprint":
        if not self.total_questions:
            self.total_questions = sum(row.question_count for row in self.rows)
        if not self.total_points:
            self.total_points = sum(row.points for row in self.rows)
        return self


class Question(BaseModel):
    """A single question of the generated test."""

    id: str = ""
    number: int = 0
    question_type: str = Field(..., description="e.g. multiple_choice, written")
    cognitive_level: str = Field(
        ..., description="recognition, comprehension or application"
    )
    content: str = Field(..., description="Question text")
    options: list[str] = Field(
        default_factory=list, description="Choices for objective questions"
    )
    points: float = Field(0.0, ge=0.0)
    topic: str | None = None


class ExamPaper(BaseModel):
    """The generated test: an ordered list of questions."""

    title: str = ""
    questions: list[Question] = Field(default_factory=list)

    @model_validator(mode="after")
    def _number_questions(self) -> "ExamPaper":
        # Answer keys are matched on id, so every question needs one
        for position, question in enumerate(self.questions, start=1):
            if not question.number:
                question.number = position
            if not question.id:
                question.id = f"q{question.number}"
        return self

    @property
    def question_ids(self) -> list[str]:
        return [question.id for question in self.questions]


class AnswerEntry(BaseModel):
    """Expected answer and marking guidance for one question."""

    question_id: str
    answer: str
    explanation: str = ""
    points: float = Field(0.0, ge=0.0)


class AnswerKey(BaseModel):
    """The solution produced by the last stage, keyed by question id."""

    entries: list[AnswerEntry] = Field(default_factory=list)
    general_notes: str | None = None

    def for_question(self, question_id: str) -> AnswerEntry | None:
        for entry in self.entries:
            if entry.question_id == question_id:
                return entry
        return None
