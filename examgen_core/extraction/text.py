"""Reading-order reconstruction for the text of one page.

Fragments are ordered top of page first, then left to right, and a line
break is inserted whenever the baseline Y changes. This assumes a single
column typeset left-to-right, top-to-bottom: multi-column or rotated pages
come out interleaved, which is a known limitation of the heuristic.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from examgen_core.schemas.document import TextFragment

# Digits kept for coordinates derived from pdfplumber's float boxes
COORDINATE_PRECISION = 3


def _sort_key(fragment: TextFragment) -> tuple[float, float]:
    y = fragment.origin_y if fragment.origin_y is not None else 0.0
    x = fragment.origin_x if fragment.origin_x is not None else 0.0
    return (-y, x)


def reconstruct_page_text(fragments: Iterable[TextFragment]) -> str:
    """Join fragments into lines in reading order.

    Args:
        fragments: Unordered fragments of a single page

    Returns:
        Page text with one line per distinct baseline Y; fragments on the
        same line are separated by a single space
    """
    ordered = sorted(fragments, key=_sort_key)

    parts: list[str] = []
    current_y: float | None = None
    line_has_content = False

    for fragment in ordered:
        y = fragment.origin_y
        if y is not None and current_y is not None and y != current_y:
            parts.append("\n")
            line_has_content = False
        elif line_has_content:
            parts.append(" ")

        parts.append(fragment.content)
        line_has_content = line_has_content or bool(fragment.content)
        if y is not None:
            current_y = y

    return "".join(parts)


def _round(value: Any) -> float:
    return round(float(value), COORDINATE_PRECISION)


def _word_origin(
    word: Mapping[str, Any], page_height: float
) -> tuple[float | None, float | None]:
    """Baseline origin of a word in PDF space.

    The text matrix of the first character gives the baseline directly, so
    runs of different sizes or fonts on one line share a Y. Words extracted
    without ``return_chars`` fall back to the glyph box bottom, flipped from
    pdfplumber's top-down coordinates.
    """
    chars = word.get("chars") or []
    matrix = chars[0].get("matrix") if chars else None
    if matrix is not None:
        return _round(matrix[4]), _round(matrix[5])

    x0 = word.get("x0")
    bottom = word.get("bottom")
    return (
        _round(x0) if x0 is not None else None,
        _round(float(page_height) - float(bottom)) if bottom is not None else None,
    )


def fragments_from_words(
    words: Iterable[Mapping[str, Any]], page_height: float
) -> list[TextFragment]:
    """Convert pdfplumber word dicts into fragments.

    Args:
        words: Output of ``page.extract_words(return_chars=True)``
        page_height: Page height in points

    Returns:
        Fragments in extraction order
    """
    fragments = []
    for word in words:
        origin_x, origin_y = _word_origin(word, page_height)
        fragments.append(
            TextFragment(
                content=str(word.get("text", "")),
                origin_x=origin_x,
                origin_y=origin_y,
            )
        )
    return fragments
