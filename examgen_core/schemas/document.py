"""Document, page and text fragment schemas."""

from pydantic import BaseModel, Field

PAGE_SEPARATOR = "\n\n"


class TextFragment(BaseModel):
    """A positioned piece of text from one page.

    Coordinates are the fragment's baseline origin in page space, with
    larger ``origin_y`` meaning higher on the page.
    """

    content: str = Field(..., description="Text content")
    origin_x: float | None = Field(None, description="Baseline origin X")
    origin_y: float | None = Field(None, description="Baseline origin Y")


class Page(BaseModel):
    """A single extracted page."""

    index: int = Field(..., ge=1, description="1-based page number")
    text: str = Field("", description="Reading-order text")
    image: str | None = Field(
        None, description="Base64 JPEG raster without data-URL prefix"
    )
    width: int = Field(0, description="Raster width in pixels")
    height: int = Field(0, description="Raster height in pixels")


class Document(BaseModel):
    """A PDF document after extraction."""

    name: str = Field(..., description="Document name, usually the file stem")
    page_count: int = Field(0, description="Number of pages in the PDF")
    pages: list[Page] = Field(default_factory=list, description="Extracted pages")

    def append_page(self, page: Page) -> None:
        """Append the next page; pages must arrive in order."""
        expected = len(self.pages) + 1
        if page.index != expected:
            raise ValueError(f"Expected page {expected}, got page {page.index}")
        self.pages.append(page)

    @property
    def full_text(self) -> str:
        """All page texts joined by a blank line."""
        return PAGE_SEPARATOR.join(page.text for page in self.pages)

    @property
    def page_images(self) -> list[str]:
        """Rendered page images in page order (pages without one are skipped)."""
        return [page.image for page in self.pages if page.image]

    @property
    def is_empty(self) -> bool:
        """True when no text and no images were extracted."""
        return not self.full_text.strip() and not self.page_images
