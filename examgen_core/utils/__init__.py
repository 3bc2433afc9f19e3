"""Utility functions."""

from examgen_core.utils.logging import get_logger, log_exceptions, set_package_level
from examgen_core.utils.pdf import check_file_type, get_pdf_info, validate_pdf
from examgen_core.utils.retry import RateLimitError, with_retry

__all__ = [
    "get_logger",
    "log_exceptions",
    "set_package_level",
    "check_file_type",
    "get_pdf_info",
    "validate_pdf",
    "RateLimitError",
    "with_retry",
]
