"""
Document text parsers.

Turn free text into product line items.
"""

from parsers.line_item_extractor import (
    LINE_PATTERNS,
    ExtractionResult,
    extract_line_items,
    extract_candidates,
)
from parsers.name_normalizer import clean_product_name, infer_category

__all__ = [
    "LINE_PATTERNS",
    "ExtractionResult",
    "extract_line_items",
    "extract_candidates",
    "clean_product_name",
    "infer_category",
]
