"""
Line item extractor for product documents.

Turns free text from an invoice, quotation or price list into product
candidates (name, quantity, unit price) with a confidence score.

Per line, first success wins:
    1. Position-based slicing using the detected column layout (95)
    2. Ordered line-shape patterns, most specific first (98..75)
    3. Relaxed "text number number" fallback on longer lines (60)

If the whole document still yields nothing, a last-resort pass scans
every line again with an even looser pattern (40).
"""

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional
import structlog

from config.settings import settings
from models.extraction import ExtractedLineItem, ExtractionMethod, ExtractionReport
from parsers.column_layout import ColumnLayout, detect_layout
from parsers.line_classifier import classify_line
from parsers.name_normalizer import clean_product_name, infer_category

logger = structlog.get_logger(__name__)


# ===================
# LINE PATTERNS
# ===================

@dataclass(frozen=True)
class LinePattern:
    """One line shape. Groups: 1 = name, 2 = quantity, 3 = price."""
    name: str
    regex: re.Pattern
    confidence: int
    description: str


# Ordered by descending specificity; the first acceptable match wins
LINE_PATTERNS: list[LinePattern] = [
    LinePattern(
        name="pipe_tab_delimited",
        regex=re.compile(r'^(.+?)\s*[|\t]+\s*(\d+(?:\.\d+)?)\s*[|\t]+\s*[₹$€£]?\s*([\d,]+\.?\d*)\s*$'),
        confidence=98,
        description="Table with pipe/tab separators",
    ),
    LinePattern(
        name="wide_space_delimited",
        regex=re.compile(r'^(.+?)\s{3,}(\d+(?:\.\d+)?)\s{3,}[₹$€£]?\s*([\d,]+\.?\d*)\s*$'),
        confidence=95,
        description="Multiple spaces (3+) separator",
    ),
    LinePattern(
        name="space_delimited",
        regex=re.compile(r'^(.+?)\s{2,}(\d+(?:\.\d+)?)\s{2,}[₹$€£]?\s*([\d,]+\.?\d*)\s*$'),
        confidence=90,
        description="Multiple spaces (2+) separator",
    ),
    LinePattern(
        name="serial_prefixed",
        regex=re.compile(r'^(?:\d+\.?\s+)(.+?)\s+(\d+(?:\.\d+)?)\s+[₹$€£]?\s*([\d,]+\.?\d*)\s*$'),
        confidence=88,
        description="Serial number prefix",
    ),
    LinePattern(
        name="parenthetical_name",
        regex=re.compile(r'^(.+?(?:\s*\([^)]*\))?)\s+(\d+(?:\.\d+)?)\s+[₹$€£]?\s*([\d,]+\.?\d*)\s*$'),
        confidence=85,
        description="Name with parentheses",
    ),
    LinePattern(
        name="quantity_with_unit",
        regex=re.compile(
            r'^(.+?)\s+(\d+(?:\.\d+)?)\s*(?:pcs?|pieces?|units?|nos?|kg|gm|ltr|ml)?\s+[₹$€£]?\s*([\d,]+\.?\d*)\s*$',
            re.IGNORECASE
        ),
        confidence=83,
        description="Quantity with units",
    ),
    LinePattern(
        name="trailing_currency",
        regex=re.compile(r'^(.+?)\s+(\d+(?:\.\d+)?)\s+([\d,]+\.?\d*)\s*[₹$€£]\s*$'),
        confidence=82,
        description="Currency at end",
    ),
    LinePattern(
        name="colon_or_dash_name",
        regex=re.compile(r'^(.+?)[:\-]\s*(\d+(?:\.\d+)?)\s+[₹$€£]?\s*([\d,]+\.?\d*)\s*$'),
        confidence=80,
        description="Name with colon/dash",
    ),
    LinePattern(
        name="single_space_alpha_name",
        regex=re.compile(r'^([A-Za-z][A-Za-z\s\-()/&,.]{2,}?)\s+(\d+(?:\.\d+)?)\s+[₹$€£]?\s*([\d,]+\.?\d*)\s*$'),
        confidence=78,
        description="Single space separator",
    ),
    LinePattern(
        name="basic_three_column",
        regex=re.compile(r'^(.+?)\s+(\d+)\s+([\d,]+\.?\d*)\s*$'),
        confidence=75,
        description="Basic three-column",
    ),
]

FALLBACK_PATTERN = re.compile(r'([A-Za-z][^0-9]*?)\s+.*?(\d+(?:\.\d+)?)\s+.*?([\d,]+\.?\d*)')
LAST_RESORT_PATTERN = re.compile(r'([A-Za-z][^0-9]{2,}?)\s+.*?(\d+(?:\.\d+)?)\s+.*?([\d,]+\.?\d*)')
LAST_RESORT_SKIP = re.compile(r'total|page|footer|header|date|invoice|bill', re.IGNORECASE)

NUMBER_TOKEN = re.compile(r'\d+(?:\.\d+)?')
QUANTITY_TOKEN = re.compile(r'(\d+(?:\.\d+)?)')
PRICE_TOKEN = re.compile(r'[₹$€£]?\s*(\d[\d,]*(?:\.\d+)?)')
HAS_TEXT = re.compile(r'[A-Za-z]{3,}')
PRICE_NOISE = re.compile(r'[₹$€£,\s]')

# Cleaned names must be longer than this
MIN_NAME_LENGTH = 2
FALLBACK_MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 255


# ===================
# RESULT
# ===================

@dataclass
class ExtractionResult:
    """Result of extracting line items from document text."""
    items: list[ExtractedLineItem] = field(default_factory=list)
    layout: ColumnLayout = field(default_factory=ColumnLayout)
    total_lines: int = 0
    candidate_lines: int = 0
    skipped: Counter = field(default_factory=Counter)
    method_counts: Counter = field(default_factory=Counter)
    pattern_counts: Counter = field(default_factory=Counter)
    used_last_resort: bool = False

    @property
    def empty(self) -> bool:
        """True if nothing was found after every extraction stage."""
        return not self.items

    def to_report(self) -> ExtractionReport:
        """Convert diagnostics for API response."""
        return ExtractionReport(
            total_lines=self.total_lines,
            candidate_lines=self.candidate_lines,
            header_index=self.layout.header_index,
            layout_source=self.layout.source,
            column_offsets=self.layout.offsets,
            method_counts=dict(self.method_counts),
            pattern_counts=dict(self.pattern_counts),
            skipped=dict(self.skipped),
            used_last_resort=self.used_last_resort,
            empty=self.empty,
        )


# ===================
# NUMBER PARSING
# ===================

def _positive(value: float) -> Optional[float]:
    """Finite and above zero, else None."""
    return value if math.isfinite(value) and value > 0 else None


def parse_quantity(text: Optional[str]) -> Optional[float]:
    """First number in the text, if positive."""
    if not text:
        return None
    match = QUANTITY_TOKEN.search(text)
    if not match:
        return None
    return _positive(float(match.group(1)))


def parse_price(text: Optional[str]) -> Optional[float]:
    """
    First price-like number in the text, if positive.

    Handles a leading currency symbol and thousands separators:
        "$1,299.50" → 1299.5
    """
    if not text:
        return None
    match = PRICE_TOKEN.search(text)
    if not match:
        return None
    return _positive(float(match.group(1).replace(",", "")))


def parse_price_group(text: Optional[str]) -> Optional[float]:
    """Price captured by a line pattern, with currency/commas removed."""
    if not text:
        return None
    cleaned = PRICE_NOISE.sub("", text)
    try:
        return _positive(float(cleaned))
    except ValueError:
        return None


# ===================
# EXTRACTION STAGES
# ===================

@dataclass
class _Candidate:
    name: str
    quantity: float
    unit_price: float
    confidence: int
    method: ExtractionMethod
    pattern: Optional[str] = None


def _accept(
    name_text: Optional[str],
    quantity: Optional[float],
    unit_price: Optional[float],
    confidence: int,
    method: ExtractionMethod,
    pattern: Optional[str] = None,
    min_name_length: int = MIN_NAME_LENGTH,
) -> Optional[_Candidate]:
    if not name_text or quantity is None or unit_price is None:
        return None
    name = clean_product_name(name_text)[:MAX_NAME_LENGTH].strip()
    if len(name) <= min_name_length:
        return None
    return _Candidate(
        name=name,
        quantity=quantity,
        unit_price=unit_price,
        confidence=confidence,
        method=method,
        pattern=pattern,
    )


def slice_columns(line: str, layout: ColumnLayout) -> dict[str, str]:
    """
    Cut a line at the layout's column offsets.

    The leftmost column always starts at 0 so names are not clipped when
    the header keyword sits a little to the right.
    """
    columns = layout.sorted_columns()
    segments = {}
    for position, (column, offset) in enumerate(columns):
        start = 0 if position == 0 else offset
        end = columns[position + 1][1] if position + 1 < len(columns) else len(line)
        segments[column] = line[start:end].strip()
    return segments


def extract_by_position(line: str, layout: ColumnLayout) -> Optional[_Candidate]:
    """Stage 1: slice the line at known column offsets."""
    segments = slice_columns(line, layout)
    name_text = segments.get("name")
    quantity_text = segments.get("quantity")
    price_text = segments.get("price")

    if not (name_text and quantity_text and price_text):
        return None

    return _accept(
        name_text,
        parse_quantity(quantity_text),
        parse_price(price_text),
        confidence=settings.position_confidence,
        method=ExtractionMethod.POSITION,
    )


def looks_like_product_row(line: str) -> bool:
    """Line has text, at least two words and at least two numbers."""
    return (
        bool(HAS_TEXT.search(line))
        and len(line.split()) >= 2
        and len(NUMBER_TOKEN.findall(line)) >= 2
    )


def extract_by_pattern(line: str) -> Optional[_Candidate]:
    """Stage 2: first line pattern whose groups parse wins."""
    if not looks_like_product_row(line):
        return None

    for pattern in LINE_PATTERNS:
        match = pattern.regex.match(line)
        if not match:
            continue

        candidate = _accept(
            match.group(1).strip(),
            parse_quantity(match.group(2)),
            parse_price_group(match.group(3)),
            confidence=pattern.confidence,
            method=ExtractionMethod.PATTERN,
            pattern=pattern.name,
        )
        if candidate:
            return candidate

    return None


def _extract_loose(
    line: str,
    regex: re.Pattern,
    confidence: int,
    method: ExtractionMethod,
) -> Optional[_Candidate]:
    match = regex.search(line)
    if not match:
        return None
    return _accept(
        match.group(1).strip(),
        parse_quantity(match.group(2)),
        parse_price_group(match.group(3)),
        confidence=confidence,
        method=method,
        min_name_length=FALLBACK_MIN_NAME_LENGTH,
    )


def extract_by_fallback(line: str) -> Optional[_Candidate]:
    """Stage 3: relaxed pattern for longer lines."""
    if len(line) <= settings.fallback_min_line_length:
        return None
    return _extract_loose(
        line,
        FALLBACK_PATTERN,
        settings.fallback_confidence,
        ExtractionMethod.FALLBACK,
    )


def extract_last_resort(line: str) -> Optional[_Candidate]:
    """Whole-document last resort: skips only obvious document metadata."""
    if len(line) < settings.last_resort_min_line_length or LAST_RESORT_SKIP.search(line):
        return None
    return _extract_loose(
        line,
        LAST_RESORT_PATTERN,
        settings.last_resort_confidence,
        ExtractionMethod.LAST_RESORT,
    )


def extract_from_line(line: str, index: int, layout: ColumnLayout) -> Optional[_Candidate]:
    """
    Run stages 1-3 on a single classified line.

    Stages never overlap: a line accepted by one stage is not offered to
    the next.
    """
    if layout.applies_to(index):
        candidate = extract_by_position(line, layout)
        if candidate:
            return candidate

    candidate = extract_by_pattern(line)
    if candidate:
        return candidate

    return extract_by_fallback(line)


# ===================
# MAIN ENTRY POINTS
# ===================

def split_lines(text: str) -> list[str]:
    """Trimmed, non-empty lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def _to_item(candidate: _Candidate, position: int, line: str) -> ExtractedLineItem:
    return ExtractedLineItem(
        id=f"extracted_{position}",
        name=candidate.name,
        quantity=candidate.quantity,
        unit_price=candidate.unit_price,
        category=infer_category(candidate.name),
        confidence=candidate.confidence,
        source_text=line,
        method=candidate.method,
        pattern=candidate.pattern,
    )


def _record(result: ExtractionResult, candidate: _Candidate, line: str) -> None:
    result.items.append(_to_item(candidate, len(result.items) + 1, line))
    result.method_counts[candidate.method.value] += 1
    if candidate.pattern:
        result.pattern_counts[candidate.pattern] += 1


def extract_line_items(text: Optional[str]) -> ExtractionResult:
    """
    Extract product candidates from document text.

    Example:
        "Premium Wireless Headphones    25    199.99"
            → name="Premium Wireless Headphones", quantity=25, unit_price=199.99,
              confidence=95 (wide_space_delimited)

    Args:
        text: Plain text extracted from the document

    Returns:
        ExtractionResult with items and diagnostics. Never raises; a
        document with no recognizable rows gives an empty result.
    """
    result = ExtractionResult()
    if not text:
        logger.info("line_items_extracted", count=0, reason="empty_text")
        return result

    lines = split_lines(text)
    result.total_lines = len(lines)
    result.layout = detect_layout(lines)

    for index, line in enumerate(lines):
        if index == result.layout.header_index:
            result.skipped["header"] += 1
            continue

        classification = classify_line(line, index)
        if classification.skip:
            result.skipped[classification.reason.value] += 1
            continue

        result.candidate_lines += 1
        try:
            candidate = extract_from_line(line, index, result.layout)
        except Exception as e:
            logger.warning("line_extraction_failed", index=index, error=str(e))
            continue

        if candidate:
            _record(result, candidate, line)
        else:
            result.skipped["no_match"] += 1

    if not result.items:
        logger.info("no_items_found_trying_last_resort", lines=len(lines))
        result.used_last_resort = True
        for index, line in enumerate(lines):
            try:
                candidate = extract_last_resort(line)
            except Exception as e:
                logger.warning("line_extraction_failed", index=index, error=str(e), stage="last_resort")
                continue
            if candidate:
                _record(result, candidate, line)

    logger.info(
        "line_items_extracted",
        count=len(result.items),
        total_lines=result.total_lines,
        layout=result.layout.source,
        methods=dict(result.method_counts),
        used_last_resort=result.used_last_resort,
    )
    return result


def extract_candidates(text: Optional[str]) -> list[ExtractedLineItem]:
    """
    Extract product candidates from document text.

    Returns:
        List of ExtractedLineItem (empty if nothing was found)
    """
    return extract_line_items(text).items
