"""
Column layout detection for text tables.

Looks for a header row naming the item/quantity/price columns and records
where each keyword starts. Only a header layout drives position slicing,
and only on lines after the header.

Without a header, spacing statistics are still computed for the extraction
report: documents whose lines split into 3+ parts on runs of 2+ spaces are
flagged as tables, with quantity and price starting after the last two
whitespace runs of the first sampled line. That layout never cuts lines.

Never raises; the worst case is an empty layout.
"""

import re
from dataclasses import dataclass
from typing import Optional
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


# Header keyword families
NAME_HEADER = re.compile(r"\b(?:item|product|description|name|particulars|goods)", re.IGNORECASE)
QUANTITY_HEADER = re.compile(r"\b(?:qty|quantity|units|nos|pieces|qnty)", re.IGNORECASE)
PRICE_HEADER = re.compile(r"\b(?:price|rate|amount|cost|value|total)", re.IGNORECASE)

HEADER_FAMILIES = {
    "name": NAME_HEADER,
    "quantity": QUANTITY_HEADER,
    "price": PRICE_HEADER,
}

COLUMN_GAP = re.compile(r"\s{2,}")
HAS_LETTER = re.compile(r"[A-Za-z]")
HAS_DIGIT = re.compile(r"\d")

# Sampled lines must be at least this long to count as table rows
SAMPLE_MIN_LENGTH = 15
SAMPLE_MIN_COUNT = 3


@dataclass
class ColumnLayout:
    """Approximate column start offsets for name, quantity and price."""
    name: Optional[int] = None
    quantity: Optional[int] = None
    price: Optional[int] = None
    header_index: Optional[int] = None
    source: Optional[str] = None  # "header" or "spacing"

    @property
    def found(self) -> bool:
        """True if a header or spacing signal was detected."""
        return self.source is not None

    @property
    def is_complete(self) -> bool:
        """True if all three column offsets are known."""
        return None not in (self.name, self.quantity, self.price)

    @property
    def offsets(self) -> dict[str, int]:
        """Known offsets by column."""
        return {
            column: offset
            for column, offset in (
                ("name", self.name),
                ("quantity", self.quantity),
                ("price", self.price),
            )
            if offset is not None
        }

    def sorted_columns(self) -> list[tuple[str, int]]:
        """Columns ordered left to right."""
        return sorted(self.offsets.items(), key=lambda item: item[1])

    def applies_to(self, index: int) -> bool:
        """
        Whether position-based slicing should be tried on a line.

        Needs all three offsets from a header row, and the line must come
        after that header. Spacing layouts are reported but never slice.
        """
        if not self.is_complete or self.header_index is None:
            return False
        return index > self.header_index


def find_header(lines: list[str]) -> ColumnLayout:
    """
    Find the first line naming at least two of the three column families.

    Args:
        lines: Trimmed document lines

    Returns:
        ColumnLayout with header offsets, or an empty layout
    """
    for index, line in enumerate(lines):
        matches = {
            column: pattern.search(line)
            for column, pattern in HEADER_FAMILIES.items()
        }
        offsets = {column: match.start() for column, match in matches.items() if match}

        if len(offsets) >= 2:
            logger.debug("header_line_found", index=index, header=line, offsets=offsets)
            return ColumnLayout(header_index=index, source="header", **offsets)

    return ColumnLayout()


def infer_layout_from_spacing(lines: list[str]) -> ColumnLayout:
    """
    Infer columns from whitespace runs when no header exists.

    Args:
        lines: Trimmed document lines

    Returns:
        ColumnLayout with name at 0 and quantity/price after the last two
        whitespace runs of the first sample, or an empty layout
    """
    if len(lines) < settings.layout_min_lines:
        return ColumnLayout()

    samples = [
        line for line in lines[:settings.layout_sample_lines]
        if len(line) > SAMPLE_MIN_LENGTH and HAS_LETTER.search(line) and HAS_DIGIT.search(line)
    ]
    if len(samples) < SAMPLE_MIN_COUNT:
        return ColumnLayout()

    avg_parts = sum(len(COLUMN_GAP.split(line)) for line in samples) / len(samples)
    if avg_parts < settings.layout_min_avg_columns:
        logger.debug("no_table_structure", avg_columns=round(avg_parts, 2))
        return ColumnLayout()

    gaps = list(COLUMN_GAP.finditer(samples[0]))
    if len(gaps) < 2:
        return ColumnLayout()

    layout = ColumnLayout(
        name=0,
        quantity=gaps[-2].end(),
        price=gaps[-1].end(),
        source="spacing",
    )
    logger.debug(
        "table_structure_inferred",
        avg_columns=round(avg_parts, 2),
        offsets=layout.offsets
    )
    return layout


def detect_layout(lines: list[str]) -> ColumnLayout:
    """
    Detect column layout for a block of lines.

    Header detection first, spacing inference second.

    Args:
        lines: Trimmed, non-empty document lines

    Returns:
        ColumnLayout (empty if neither signal is present)
    """
    layout = find_header(lines)
    if layout.found:
        return layout
    return infer_layout_from_spacing(lines)
