"""Stage requests: prompts for blueprint, test and solution generation.

Each stage builds a prompt from the generation input, calls the model
adapter once, and validates the JSON reply into the stage's schema.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from examgen_core.errors import ModelResponseError
from examgen_core.model_adapters.base import BaseModelAdapter, JsonPayload
from examgen_core.schemas.exam import AnswerKey, Blueprint, ExamPaper
from examgen_core.schemas.generation import GenerationInput, Stage
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SYSTEM_INSTRUCTION = (
    "You are an experienced primary school teacher who writes assessments "
    "that follow the curriculum and the requested cognitive level split. "
    "Output valid JSON only."
)

BLUEPRINT_PROMPT = """Build the assessment matrix (blueprint) for a test.

{parameters}

Use only the lesson content below and the attached page images. Distribute the
questions over the listed lessons so that the question counts, the score share
per question family and the cognitive level percentages are respected.

Lesson content (pages separated by blank lines):
<<<
{content}
>>>

Write every text value in {language}.

OUTPUT FORMAT (JSON object):
{{
  "rows": [
    {{
      "topic": "<lesson name>",
      "question_type": "multiple_choice | true_false | matching | fill_blank | written",
      "cognitive_level": "recognition | comprehension | application",
      "question_count": <int>,
      "points": <number>
    }}
  ],
  "total_questions": <int>,
  "total_points": <number>,
  "notes": "<optional remarks>"
}}
"""

TEST_PROMPT = """Write the full test that implements the blueprint below.

{parameters}

Blueprint:
{blueprint}

Base every question on the lesson content below and the attached page images.
Each question must follow its blueprint row: same topic, question type and
cognitive level. Objective questions list their choices in "options"; written
questions leave "options" empty.

Lesson content (pages separated by blank lines):
<<<
{content}
>>>

Write every text value in {language}.

OUTPUT FORMAT (JSON object):
{{
  "title": "<test title>",
  "questions": [
    {{
      "id": "q1",
      "number": 1,
      "question_type": "multiple_choice | true_false | matching | fill_blank | written",
      "cognitive_level": "recognition | comprehension | application",
      "topic": "<lesson name>",
      "content": "<question text>",
      "options": ["A. ...", "B. ...", "C. ...", "D. ..."],
      "points": <number>
    }}
  ]
}}
"""

SOLUTION_PROMPT = """Write the answer key and marking guide for this test.

Subject: {subject}
Class: {class_name}
Objective questions are worth {mcq_ratio}% of the score, written questions {written_ratio}%.

Test:
{test}

Give one entry per question, using the question's "id". For objective
questions the answer is the correct option; for written questions give the
expected answer and how points are awarded.

Write every text value in {language}.

OUTPUT FORMAT (JSON object):
{{
  "entries": [
    {{
      "question_id": "q1",
      "answer": "<correct answer>",
      "explanation": "<working or marking guidance>",
      "points": <number>
    }}
  ],
  "general_notes": "<optional remarks for the marker>"
}}
"""


def format_parameters(generation_input: GenerationInput) -> str:
    """Describe the user-supplied parameters for a prompt."""
    ratios = generation_input.cognitive_ratios
    counts = generation_input.question_counts
    type_ratios = generation_input.question_type_ratios
    formats = generation_input.objective_formats.enabled() or ["multiple_choice"]

    lines = [
        f"Subject: {generation_input.subject}",
        f"Class: {generation_input.class_name or 'unspecified'}",
        f"Time limit: {generation_input.time_limit} minutes",
        f"Objective questions: {counts.multiple_choice} "
        f"({type_ratios.multiple_choice}% of the score), "
        f"allowed formats: {', '.join(formats)}",
        f"Written questions: {counts.written} ({type_ratios.written}% of the score)",
        f"Cognitive levels: recognition {ratios.recognition}%, "
        f"comprehension {ratios.comprehension}%, application {ratios.application}%",
    ]

    topics = [topic for topic in generation_input.lesson_topics if topic.name.strip()]
    if topics:
        lines.append("Lessons:")
        for topic in topics:
            lines.append(
                f"- {topic.name.strip()} (pages {topic.start_page}-{topic.end_page})"
            )
    return "\n".join(lines)


def _validate(model: type[ModelT], data: JsonPayload, list_key: str, stage: Stage) -> ModelT:
    """Validate a model reply, accepting a bare list for the main collection."""
    payload: Any = {list_key: data} if isinstance(data, list) else data
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.error(f"Invalid {stage.value} payload: {e}")
        raise ModelResponseError(
            f"The model returned an invalid {stage.value} "
            f"({e.error_count()} validation errors)"
        ) from e


class GenerationBackend(ABC):
    """The external generation capability, one request per stage."""

    @abstractmethod
    async def generate_blueprint(self, generation_input: GenerationInput) -> Blueprint:
        """Produce the blueprint for the given input."""

    @abstractmethod
    async def generate_test(
        self, generation_input: GenerationInput, blueprint: Blueprint
    ) -> ExamPaper:
        """Produce the test that implements a blueprint."""

    @abstractmethod
    async def generate_solution(
        self, test: ExamPaper, generation_input: GenerationInput
    ) -> AnswerKey:
        """Produce the answer key for a test."""


class ModelGenerationBackend(GenerationBackend):
    """Generation backend that prompts a model adapter."""

    def __init__(self, adapter: BaseModelAdapter, language: str = "Vietnamese"):
        self.adapter = adapter
        self.language = language

    async def generate_blueprint(self, generation_input: GenerationInput) -> Blueprint:
        prompt = BLUEPRINT_PROMPT.format(
            parameters=format_parameters(generation_input),
            content=generation_input.extracted_text,
            language=self.language,
        )
        logger.info(
            f"Requesting blueprint ({len(generation_input.extracted_text)} chars, "
            f"{len(generation_input.page_images)} images)"
        )
        data = await self.adapter.generate_structured(
            prompt,
            images=generation_input.page_images,
            system_instruction=SYSTEM_INSTRUCTION,
        )
        blueprint = _validate(Blueprint, data, "rows", Stage.BLUEPRINT)
        logger.info(
            f"Blueprint has {len(blueprint.rows)} rows, "
            f"{blueprint.total_questions} questions"
        )
        return blueprint

    async def generate_test(
        self, generation_input: GenerationInput, blueprint: Blueprint
    ) -> ExamPaper:
        prompt = TEST_PROMPT.format(
            parameters=format_parameters(generation_input),
            blueprint=blueprint.model_dump_json(indent=2),
            content=generation_input.extracted_text,
            language=self.language,
        )
        logger.info(f"Requesting test for {blueprint.total_questions} questions")
        data = await self.adapter.generate_structured(
            prompt,
            images=generation_input.page_images,
            system_instruction=SYSTEM_INSTRUCTION,
        )
        exam = _validate(ExamPaper, data, "questions", Stage.TEST)
        logger.info(f"Test has {len(exam.questions)} questions")
        return exam

    async def generate_solution(
        self, test: ExamPaper, generation_input: GenerationInput
    ) -> AnswerKey:
        prompt = SOLUTION_PROMPT.format(
            subject=generation_input.subject,
            class_name=generation_input.class_name or "unspecified",
            mcq_ratio=generation_input.question_type_ratios.multiple_choice,
            written_ratio=generation_input.question_type_ratios.written,
            test=json.dumps(test.model_dump(), ensure_ascii=False, indent=2),
            language=self.language,
        )
        logger.info(f"Requesting answer key for {len(test.questions)} questions")
        data = await self.adapter.generate_structured(
            prompt, system_instruction=SYSTEM_INSTRUCTION
        )
        solution = _validate(AnswerKey, data, "entries", Stage.SOLUTION)

        missing = set(test.question_ids) - {e.question_id for e in solution.entries}
        if missing:
            logger.warning(f"Answer key has no entry for {sorted(missing)}")
        return solution
