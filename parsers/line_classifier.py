"""
Line classifier for document import.

Cheap, order-sensitive filter that decides whether a line of document text
can hold a product row. Skip reasons are kept for diagnostics only.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class SkipReason(str, Enum):
    """Why a line was not considered a product row."""
    BLANK = "blank"
    FOOTER = "footer"
    NUMERIC_ONLY = "numeric_only"
    TOO_SHORT = "too_short"


@dataclass
class LineClassification:
    """Classification of a single line."""
    index: int
    skip: bool
    reason: Optional[SkipReason] = None
    matched_term: Optional[str] = None


# Footer / summary vocabulary, matched as case-insensitive substrings
FOOTER_TERMS = [
    r"sub\s*total",
    r"total",
    r"grand",
    r"net",
    r"tax",
    r"discount",
    r"amount[\s\-_]*due",
    r"page",
    r"signature",
    r"terms",
    r"conditions",
    r"thank",
    r"regards",
]

FOOTER_PATTERN = re.compile("|".join(FOOTER_TERMS), re.IGNORECASE)

# Nothing but digits, punctuation, symbols and whitespace
NUMERIC_ONLY_PATTERN = re.compile(r"^[\d\W_]+$")


def classify_line(line: str, index: int) -> LineClassification:
    """
    Decide whether a line is noise or a product row candidate.

    Rules, first match wins:
        1. footer/summary vocabulary ("Total: 1500", "Page 2 of 3")
        2. only digits/punctuation/whitespace ("1,500.00  |  25")
        3. shorter than settings.min_line_length

    Args:
        line: Trimmed line text
        index: Line index in the document (for diagnostics)

    Returns:
        LineClassification with skip flag and reason
    """
    if not line or not line.strip():
        return LineClassification(index=index, skip=True, reason=SkipReason.BLANK)

    footer_match = FOOTER_PATTERN.search(line)
    if footer_match:
        logger.debug("line_skipped", index=index, reason="footer", term=footer_match.group(0))
        return LineClassification(
            index=index,
            skip=True,
            reason=SkipReason.FOOTER,
            matched_term=footer_match.group(0).lower()
        )

    if NUMERIC_ONLY_PATTERN.match(line):
        logger.debug("line_skipped", index=index, reason="numeric_only")
        return LineClassification(index=index, skip=True, reason=SkipReason.NUMERIC_ONLY)

    if len(line) < settings.min_line_length:
        logger.debug("line_skipped", index=index, reason="too_short", length=len(line))
        return LineClassification(index=index, skip=True, reason=SkipReason.TOO_SHORT)

    return LineClassification(index=index, skip=False)
