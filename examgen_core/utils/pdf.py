"""PDF file checks run before extraction."""

from pathlib import PurePath

from examgen_core.errors import InvalidFileTypeError, MalformedDocumentError
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"

# PDF magic bytes
PDF_MAGIC = b"%PDF"


def check_file_type(filename: str | None, content_type: str | None) -> None:
    """Reject files that are not declared as PDFs.

    The declared MIME type wins. When the host did not declare one, the file
    name suffix is used instead.

    Args:
        filename: Original file name, if known
        content_type: Declared MIME type, if known

    Raises:
        InvalidFileTypeError: If the file is not declared as a PDF
    """
    if content_type:
        declared = content_type.split(";", 1)[0].strip().lower()
        if declared != PDF_MIME_TYPE:
            raise InvalidFileTypeError(
                f"Only PDF files are accepted (got {declared or 'unknown type'})"
            )
        return

    suffix = PurePath(filename).suffix.lower() if filename else ""
    if suffix != ".pdf":
        raise InvalidFileTypeError("Only PDF files are accepted")


def validate_pdf(data: bytes) -> bool:
    """Validate that data looks like a PDF file.

    Args:
        data: Raw file bytes

    Returns:
        True if valid PDF

    Raises:
        MalformedDocumentError: If validation fails
    """
    if not data:
        raise MalformedDocumentError("Empty file data")

    if len(data) < 4:
        raise MalformedDocumentError("File too small to be a valid PDF")

    if not data[:4].startswith(PDF_MAGIC):
        raise MalformedDocumentError(
            f"Invalid PDF: file does not start with PDF magic bytes. Got: {data[:4]!r}"
        )

    # PDFs should end with %%EOF
    if b"%%EOF" not in data[-1024:]:
        logger.warning("PDF does not contain %%EOF marker near end of file")

    logger.debug(f"PDF validation passed ({len(data)} bytes)")
    return True


def get_pdf_info(data: bytes) -> dict[str, str | int | None]:
    """Extract basic info from PDF data.

    Args:
        data: Raw PDF bytes

    Returns:
        Dict with size and header version
    """
    info: dict[str, str | int | None] = {
        "size_bytes": len(data),
        "version": None,
    }

    # Format: %PDF-1.7
    try:
        header = data[:20].decode("latin-1")
        if header.startswith("%PDF-"):
            version_end = header.find("\n")
            if version_end == -1:
                version_end = header.find("\r")
            if version_end == -1:
                version_end = 8
            info["version"] = header[5:version_end].strip()
    except (UnicodeDecodeError, IndexError):
        pass

    logger.debug(f"PDF info: {info}")
    return info
