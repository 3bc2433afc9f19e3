"""PDF extraction: reading-order text and page rasters."""

from examgen_core.extraction.extractor import DocumentExtractor, ExtractionResult
from examgen_core.extraction.raster import (
    PageRasterizer,
    PageRenderer,
    Pdf2ImageRenderer,
    RasterizedPage,
    open_renderer,
)
from examgen_core.extraction.text import fragments_from_words, reconstruct_page_text

__all__ = [
    "DocumentExtractor",
    "ExtractionResult",
    "PageRasterizer",
    "PageRenderer",
    "Pdf2ImageRenderer",
    "RasterizedPage",
    "fragments_from_words",
    "open_renderer",
    "reconstruct_page_text",
]
