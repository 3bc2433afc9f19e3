"""Page rasterization: render a page and encode it for transport."""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO
from types import TracebackType

from PIL import Image

from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

# Scale relative to 72 dpi, tuned for legibility vs. payload size
RENDER_SCALE = 1.5
JPEG_QUALITY = 80
PDF_POINTS_PER_INCH = 72


class PageRenderer(ABC):
    """Capability that turns a page of an open document into a bitmap."""

    @abstractmethod
    def render_page(self, page_number: int, scale: float) -> Image.Image:
        """Render one page.

        Args:
            page_number: 1-based page number
            scale: Scale factor relative to 72 dpi

        Returns:
            Rendered page image
        """

    def close(self) -> None:
        """Release renderer resources."""


class Pdf2ImageRenderer(PageRenderer):
    """Renderer backed by pdf2image (poppler)."""

    def __init__(self, pdf_data: bytes):
        self._pdf_data = pdf_data

    def render_page(self, page_number: int, scale: float) -> Image.Image:
        from pdf2image import convert_from_bytes

        images = convert_from_bytes(
            self._pdf_data,
            dpi=round(PDF_POINTS_PER_INCH * scale),
            first_page=page_number,
            last_page=page_number,
        )
        if not images:
            raise ValueError(f"Renderer returned no image for page {page_number}")
        return images[0]

    def close(self) -> None:
        self._pdf_data = b""


def open_renderer(pdf_data: bytes) -> PageRenderer | None:
    """Open a renderer for a document, if this environment can render.

    Args:
        pdf_data: Raw PDF bytes

    Returns:
        A renderer, or None when poppler is missing or cannot read the file
    """
    from pdf2image import pdfinfo_from_bytes
    from pdf2image.exceptions import (
        PDFInfoNotInstalledError,
        PDFPageCountError,
        PDFSyntaxError,
    )

    try:
        pdfinfo_from_bytes(pdf_data)
    except PDFInfoNotInstalledError:
        logger.warning("poppler is not installed, pages will not be rendered")
        return None
    except (PDFPageCountError, PDFSyntaxError) as e:
        logger.warning(f"Renderer cannot read this PDF, pages will not be rendered: {e}")
        return None
    return Pdf2ImageRenderer(pdf_data)


@dataclass(frozen=True)
class RasterizedPage:
    """An encoded page raster."""

    data: str  # base64 JPEG, no data-URL prefix
    width: int
    height: int


class PageRasterizer:
    """Render pages of one document onto a shared encode surface.

    The surface is allocated once per document and released by ``close``
    (or by leaving the ``with`` block). Without a renderer every call
    returns None and extraction continues text-only.
    """

    def __init__(
        self,
        renderer: PageRenderer | None,
        scale: float = RENDER_SCALE,
        quality: int = JPEG_QUALITY,
    ):
        self._renderer = renderer
        self.scale = scale
        self.quality = quality
        self._surface: BytesIO | None = BytesIO() if renderer is not None else None

    @property
    def available(self) -> bool:
        return self._renderer is not None and self._surface is not None

    def rasterize(self, page_number: int) -> RasterizedPage | None:
        """Render and encode one page.

        Args:
            page_number: 1-based page number

        Returns:
            Encoded page, or None when no surface is available or the page
            could not be rendered
        """
        if not self.available:
            return None

        try:
            image = self._renderer.render_page(page_number, self.scale)
        except Exception as e:
            logger.warning(f"Failed to render page {page_number}: {e}")
            return None

        surface = self._surface
        surface.seek(0)
        surface.truncate()
        if image.mode != "RGB":
            image = image.convert("RGB")
        image.save(surface, format="JPEG", quality=self.quality)

        encoded = base64.b64encode(surface.getvalue()).decode("ascii")
        logger.debug(
            f"Rendered page {page_number} ({image.width}x{image.height}, "
            f"{surface.tell()} bytes)"
        )
        return RasterizedPage(data=encoded, width=image.width, height=image.height)

    def close(self) -> None:
        """Release the surface and the renderer."""
        if self._surface is not None:
            self._surface.close()
            self._surface = None
        if self._renderer is not None:
            self._renderer.close()
            self._renderer = None

    def __enter__(self) -> "PageRasterizer":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
