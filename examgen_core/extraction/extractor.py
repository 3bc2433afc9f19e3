"""Document extraction: text and page images for every page of a PDF."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO
from typing import Any

import pdfplumber

from examgen_core.errors import EmptyExtractedContent, MalformedDocumentError
from examgen_core.extraction.raster import (
    JPEG_QUALITY,
    RENDER_SCALE,
    PageRasterizer,
    PageRenderer,
    open_renderer,
)
from examgen_core.extraction.text import fragments_from_words, reconstruct_page_text
from examgen_core.schemas.document import Document, Page
from examgen_core.utils.logging import get_logger
from examgen_core.utils.pdf import get_pdf_info, validate_pdf

logger = get_logger(__name__)

UNREADABLE_MESSAGE = (
    "Could not read the PDF file. It may be damaged or incompatible."
)
EMPTY_CONTENT_MESSAGE = "No text or images were found in the PDF file."

RendererFactory = Callable[[bytes], PageRenderer | None]
PageCallback = Callable[[int, int], None]


@dataclass
class ExtractionResult:
    """Outcome of a successful extraction.

    ``warning`` is set when the document yielded no text and no images;
    the document is still usable.
    """

    document: Document
    warning: EmptyExtractedContent | None = None

    @property
    def is_empty(self) -> bool:
        return self.warning is not None


def _read_page_text(page: Any) -> str:
    """Reconstruct the reading-order text of a pdfplumber page."""
    words = page.extract_words(return_chars=True)
    return reconstruct_page_text(fragments_from_words(words, page.height))


class DocumentExtractor:
    """Extract every page of a PDF, strictly in page order.

    Pages are processed one at a time because the raster surface is shared
    and pdfplumber page objects hold references into the same parser.
    """

    def __init__(
        self,
        render_scale: float = RENDER_SCALE,
        jpeg_quality: int = JPEG_QUALITY,
        renderer_factory: RendererFactory = open_renderer,
    ):
        self.render_scale = render_scale
        self.jpeg_quality = jpeg_quality
        self._renderer_factory = renderer_factory

    async def extract(
        self,
        data: bytes,
        name: str = "document",
        on_page: PageCallback | None = None,
    ) -> ExtractionResult:
        """Extract text and page images.

        Args:
            data: Raw PDF bytes (already checked to be declared as PDF)
            name: Document name
            on_page: Optional callback receiving (page_number, page_count)
                after each page

        Returns:
            ExtractionResult with the document and an empty-content advisory

        Raises:
            MalformedDocumentError: If the bytes cannot be read as a PDF
        """
        validate_pdf(data)
        info = get_pdf_info(data)
        logger.info(
            f"Extracting {name} (version={info.get('version')}, "
            f"size={info.get('size_bytes')} bytes)"
        )

        try:
            pdf = await asyncio.to_thread(pdfplumber.open, BytesIO(data))
        except Exception as e:
            logger.error(f"Failed to open PDF {name}: {e}")
            raise MalformedDocumentError(UNREADABLE_MESSAGE) from e

        try:
            try:
                pages = pdf.pages
            except Exception as e:
                logger.error(f"Failed to read page tree of {name}: {e}")
                raise MalformedDocumentError(UNREADABLE_MESSAGE) from e

            document = Document(name=name, page_count=len(pages))
            renderer = await asyncio.to_thread(self._renderer_factory, data)

            with PageRasterizer(
                renderer, scale=self.render_scale, quality=self.jpeg_quality
            ) as rasterizer:
                for number, page in enumerate(pages, start=1):
                    try:
                        text = await asyncio.to_thread(_read_page_text, page)
                    except Exception as e:
                        logger.error(f"Failed to read text of page {number}: {e}")
                        raise MalformedDocumentError(UNREADABLE_MESSAGE) from e

                    raster = await asyncio.to_thread(rasterizer.rasterize, number)
                    document.append_page(
                        Page(
                            index=number,
                            text=text,
                            image=raster.data if raster else None,
                            width=raster.width if raster else 0,
                            height=raster.height if raster else 0,
                        )
                    )
                    logger.debug(
                        f"Page {number}/{len(pages)}: {len(text)} chars, "
                        f"image={'yes' if raster else 'no'}"
                    )
                    if on_page is not None:
                        on_page(number, len(pages))
        finally:
            pdf.close()

        images = len(document.page_images)
        logger.info(
            f"Extracted {document.page_count} pages from {name} "
            f"({len(document.full_text)} chars, {images} images)"
        )

        if document.is_empty:
            logger.warning(f"No text or images extracted from {name}")
            return ExtractionResult(
                document=document, warning=EmptyExtractedContent(EMPTY_CONTENT_MESSAGE)
            )
        return ExtractionResult(document=document)
