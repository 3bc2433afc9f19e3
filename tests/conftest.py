"""Shared fixtures: tiny PDFs, stage results and a scripted backend."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest
from PIL import Image

from examgen_core.extraction.raster import PageRenderer
from examgen_core.generation.stages import GenerationBackend
from examgen_core.schemas.exam import AnswerKey, Blueprint, ExamPaper
from examgen_core.schemas.generation import GenerationInput

# (x, y, text) or (x, y, text, font_size) in PDF points, origin at the bottom left
Word = tuple[Any, ...]
DEFAULT_FONT_SIZE = 12


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_text_pdf(pages: list[list[Word]], width: int = 300, height: int = 400) -> bytes:
    """Write a minimal Helvetica PDF with one text run per word."""
    page_count = len(pages)
    font_id = 3
    objects: dict[int, bytes] = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        font_id: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    kids = []
    for number, words in enumerate(pages):
        page_id = 4 + number * 2
        content_id = page_id + 1
        kids.append(f"{page_id} 0 R")
        runs = "".join(
            f"BT /F1 {size} Tf 1 0 0 1 {x} {y} Tm ({_escape(text)}) Tj ET\n"
            for x, y, text, size in (
                (*word, DEFAULT_FONT_SIZE) if len(word) == 3 else word
                for word in words
            )
        ).encode("latin-1")
        objects[page_id] = (
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width} {height}] "
            f"/Resources << /Font << /F1 {font_id} 0 R >> >> "
            f"/Contents {content_id} 0 R >>"
        ).encode("latin-1")
        objects[content_id] = (
            f"<< /Length {len(runs)} >>\nstream\n".encode("latin-1")
            + runs
            + b"endstream"
        )
    objects[2] = (
        f"<< /Type /Pages /Kids [{' '.join(kids)}] /Count {page_count} >>"
    ).encode("latin-1")

    out = bytearray(b"%PDF-1.4\n")
    offsets: dict[int, int] = {}
    for obj_id in sorted(objects):
        offsets[obj_id] = len(out)
        out += f"{obj_id} 0 obj\n".encode("latin-1") + objects[obj_id] + b"\nendobj\n"

    xref_offset = len(out)
    size = max(objects) + 1
    out += f"xref\n0 {size}\n".encode("latin-1")
    out += b"0000000000 65535 f \n"
    for obj_id in range(1, size):
        out += f"{offsets[obj_id]:010d} 00000 n \n".encode("latin-1")
    out += (
        f"trailer\n<< /Size {size} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode("latin-1")
    return bytes(out)


class SolidRenderer(PageRenderer):
    """Renders every page as a plain image sized by the scale."""

    def __init__(self, fail_on: set[int] | None = None):
        self.fail_on = fail_on or set()
        self.rendered: list[tuple[int, float]] = []
        self.closed = False

    def render_page(self, page_number: int, scale: float) -> Image.Image:
        if page_number in self.fail_on:
            raise RuntimeError(f"cannot draw page {page_number}")
        self.rendered.append((page_number, scale))
        return Image.new("RGB", (int(200 * scale), int(100 * scale)), "white")

    def close(self) -> None:
        self.closed = True


class ScriptedBackend(GenerationBackend):
    """Backend returning canned results, optionally failing or blocking.

    ``failures`` maps a stage name to the exception to raise. A stage named
    in ``hold`` waits until ``release`` is called.
    """

    def __init__(self, blueprint: Blueprint, exam: ExamPaper, answer_key: AnswerKey):
        self.results: dict[str, Any] = {
            "blueprint": blueprint,
            "test": exam,
            "solution": answer_key,
        }
        self.failures: dict[str, BaseException] = {}
        self.hold: set[str] = set()
        self.calls: list[str] = []
        self.inputs: list[GenerationInput] = []
        self._released = asyncio.Event()

    def release(self) -> None:
        self._released.set()

    async def _respond(self, stage: str) -> Any:
        self.calls.append(stage)
        if stage in self.hold:
            await self._released.wait()
        if stage in self.failures:
            raise self.failures[stage]
        return self.results[stage]

    async def generate_blueprint(self, generation_input: GenerationInput) -> Blueprint:
        self.inputs.append(generation_input)
        return await self._respond("blueprint")

    async def generate_test(
        self, generation_input: GenerationInput, blueprint: Blueprint
    ) -> ExamPaper:
        self.inputs.append(generation_input)
        return await self._respond("test")

    async def generate_solution(
        self, test: ExamPaper, generation_input: GenerationInput
    ) -> AnswerKey:
        self.inputs.append(generation_input)
        return await self._respond("solution")


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    return build_text_pdf


@pytest.fixture
def renderer() -> SolidRenderer:
    return SolidRenderer()


@pytest.fixture
def blueprint() -> Blueprint:
    return Blueprint.model_validate(
        {
            "rows": [
                {
                    "topic": "Phép cộng",
                    "question_type": "multiple_choice",
                    "cognitive_level": "recognition",
                    "question_count": 2,
                    "points": 2.0,
                },
                {
                    "topic": "Phép trừ",
                    "question_type": "written",
                    "cognitive_level": "application",
                    "question_count": 1,
                    "points": 3.0,
                },
            ]
        }
    )


@pytest.fixture
def exam() -> ExamPaper:
    return ExamPaper.model_validate(
        {
            "title": "Kiểm tra Toán",
            "questions": [
                {
                    "question_type": "multiple_choice",
                    "cognitive_level": "recognition",
                    "content": "2 + 3 = ?",
                    "options": ["A. 4", "B. 5", "C. 6", "D. 7"],
                    "points": 1.0,
                },
                {
                    "question_type": "written",
                    "cognitive_level": "application",
                    "content": "Lan có 10 quả táo, cho bạn 4 quả. Lan còn mấy quả?",
                    "points": 3.0,
                },
            ],
        }
    )


@pytest.fixture
def answer_key() -> AnswerKey:
    return AnswerKey.model_validate(
        {
            "entries": [
                {"question_id": "q1", "answer": "B", "points": 1.0},
                {
                    "question_id": "q2",
                    "answer": "6 quả",
                    "explanation": "10 - 4 = 6",
                    "points": 3.0,
                },
            ]
        }
    )


@pytest.fixture
def backend(
    blueprint: Blueprint, exam: ExamPaper, answer_key: AnswerKey
) -> ScriptedBackend:
    return ScriptedBackend(blueprint, exam, answer_key)
