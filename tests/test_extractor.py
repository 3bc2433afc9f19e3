"""Tests for document extraction."""

import base64

import pytest

from examgen_core.errors import EmptyExtractedContent, MalformedDocumentError
from examgen_core.extraction.extractor import (
    EMPTY_CONTENT_MESSAGE,
    UNREADABLE_MESSAGE,
    DocumentExtractor,
)

LESSON_PAGES = [
    [(40, 350, "Bai 1"), (40, 320, "Phep cong"), (150, 320, "trong pham vi 10")],
    [(40, 350, "Bai 2"), (40, 300, "Phep tru")],
]


class TestDocumentExtractor:
    """Tests for DocumentExtractor."""

    @pytest.mark.asyncio
    async def test_text_and_images_per_page(self, pdf_factory, renderer) -> None:
        """Test that each page yields reading-order text and a JPEG."""
        extractor = DocumentExtractor(renderer_factory=lambda data: renderer)

        result = await extractor.extract(pdf_factory(LESSON_PAGES), name="lesson")

        document = result.document
        assert result.warning is None
        assert document.name == "lesson"
        assert document.page_count == 2
        assert [page.index for page in document.pages] == [1, 2]
        assert document.pages[0].text == "Bai 1\nPhep cong trong pham vi 10"
        assert document.pages[1].text == "Bai 2\nPhep tru"
        assert len(document.page_images) == 2
        assert base64.b64decode(document.pages[0].image)[:2] == b"\xff\xd8"

    @pytest.mark.asyncio
    async def test_mixed_font_sizes_share_a_line(self, pdf_factory) -> None:
        """Test that runs on one baseline stay on one line whatever their size."""
        pages = [
            [
                (40, 300, "Cau 1.", 18),
                (120, 300, "Phep cong", 12),
                (40, 270, "Tinh 2 + 3", 10),
            ]
        ]
        extractor = DocumentExtractor(renderer_factory=lambda data: None)

        result = await extractor.extract(pdf_factory(pages))

        assert result.document.pages[0].text == "Cau 1. Phep cong\nTinh 2 + 3"

    @pytest.mark.asyncio
    async def test_pages_joined_with_blank_line(self, pdf_factory, renderer) -> None:
        """Test that the full text separates pages by a blank line."""
        extractor = DocumentExtractor(renderer_factory=lambda data: renderer)

        result = await extractor.extract(pdf_factory(LESSON_PAGES))

        assert result.document.full_text == (
            "Bai 1\nPhep cong trong pham vi 10\n\nBai 2\nPhep tru"
        )

    @pytest.mark.asyncio
    async def test_pages_processed_in_order(self, pdf_factory, renderer) -> None:
        """Test that pages are rendered and reported strictly in order."""
        seen: list[tuple[int, int]] = []
        extractor = DocumentExtractor(
            render_scale=2.0, renderer_factory=lambda data: renderer
        )

        await extractor.extract(
            pdf_factory(LESSON_PAGES * 2),
            on_page=lambda number, total: seen.append((number, total)),
        )

        assert seen == [(1, 4), (2, 4), (3, 4), (4, 4)]
        assert renderer.rendered == [(1, 2.0), (2, 2.0), (3, 2.0), (4, 2.0)]
        assert renderer.closed is True

    @pytest.mark.asyncio
    async def test_text_only_without_renderer(self, pdf_factory) -> None:
        """Test that extraction continues when pages cannot be rendered."""
        extractor = DocumentExtractor(renderer_factory=lambda data: None)

        result = await extractor.extract(pdf_factory(LESSON_PAGES))

        assert result.warning is None
        assert result.document.page_images == []
        assert all(page.image is None for page in result.document.pages)
        assert "Phep tru" in result.document.full_text

    @pytest.mark.asyncio
    async def test_failed_page_render_skipped(self, pdf_factory, renderer) -> None:
        """Test that a page that fails to render only loses its image."""
        renderer.fail_on = {1}
        extractor = DocumentExtractor(renderer_factory=lambda data: renderer)

        result = await extractor.extract(pdf_factory(LESSON_PAGES))

        assert result.document.pages[0].image is None
        assert result.document.pages[0].text.startswith("Bai 1")
        assert result.document.pages[1].image is not None

    @pytest.mark.asyncio
    async def test_empty_document_warns(self, pdf_factory) -> None:
        """Test that no text and no images gives an advisory, not an error."""
        extractor = DocumentExtractor(renderer_factory=lambda data: None)

        result = await extractor.extract(pdf_factory([[], []]))

        assert result.is_empty is True
        assert isinstance(result.warning, EmptyExtractedContent)
        assert str(result.warning) == EMPTY_CONTENT_MESSAGE
        assert result.document.page_count == 2

    @pytest.mark.asyncio
    async def test_images_alone_are_not_empty(self, pdf_factory, renderer) -> None:
        """Test that a scanned-looking document with images is usable."""
        extractor = DocumentExtractor(renderer_factory=lambda data: renderer)

        result = await extractor.extract(pdf_factory([[]]))

        assert result.warning is None
        assert result.document.full_text == ""
        assert len(result.document.page_images) == 1

    @pytest.mark.asyncio
    async def test_not_a_pdf(self) -> None:
        """Test that bytes without a PDF header are rejected."""
        extractor = DocumentExtractor(renderer_factory=lambda data: None)

        with pytest.raises(MalformedDocumentError):
            await extractor.extract(b"PK\x03\x04 definitely a zip file")

    @pytest.mark.asyncio
    async def test_unreadable_pdf(self) -> None:
        """Test that a damaged PDF gives the generic unreadable message."""
        extractor = DocumentExtractor(renderer_factory=lambda data: None)

        with pytest.raises(MalformedDocumentError) as exc_info:
            await extractor.extract(b"%PDF-1.4\nthis is not really a pdf\n%%EOF")

        assert str(exc_info.value) == UNREADABLE_MESSAGE
