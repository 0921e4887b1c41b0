"""
Product name cleanup and category inference.

Names pulled out of invoice lines carry serial numbers, SKU prefixes and
stray separators. clean_product_name() strips those while keeping the
descriptive part; infer_category() guesses a category from keywords.
"""

import re
from typing import Optional

from models.catalog import DEFAULT_CATEGORY


# ===================
# CLEANUP RULES
# ===================

# "12. Widget" or "Sr. No. 4 Widget"
SERIAL_PREFIX = re.compile(r'^(?:\d+\.\s+|Sr\.?\s*No\.?\s*\d+\s*)', re.IGNORECASE)

# "AB-1234 Widget", "LED Widget": caps/digits/dashes/underscores, 3+ chars
SKU_PREFIX = re.compile(r'^[A-Z0-9\-_]{3,}\s+')

TRAILING_SEPARATOR = re.compile(r'[:\-]\s*$')
WHITESPACE_RUN = re.compile(r'\s+')
LEADING_PUNCTUATION = re.compile(r'^[\s\-.,:]+')
TRAILING_PUNCTUATION = re.compile(r'[\s\-.,:]+$')

# "(10 pcs)", "(Ref)", "(code)" - only unit/code words, other parentheses stay
UNIT_PARENTHETICAL = re.compile(
    r'\s*\([^)]*(?:pcs?|pieces?|units?|nos?|kg|gm|ltr|ml|code|ref)\)\s*$',
    re.IGNORECASE
)


# ===================
# CATEGORY KEYWORDS
# ===================

# Checked in order; first category with a matching keyword wins
CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "Electronics": [
        "laptop", "computer", "phone", "tablet", "monitor", "keyboard",
        "mouse", "headphone", "speaker", "camera",
    ],
    "Office Supplies": [
        "pen", "paper", "notebook", "folder", "stapler", "clip", "desk",
        "chair", "printer",
    ],
    "Furniture": ["table", "chair", "desk", "cabinet", "shelf", "sofa", "bed", "drawer"],
    "Clothing": ["shirt", "pant", "dress", "shoe", "jacket", "hat", "sock", "belt"],
    "Books": ["book", "manual", "guide", "textbook", "novel", "magazine", "journal"],
    "Tools": ["hammer", "screwdriver", "drill", "saw", "wrench", "plier", "tool"],
}


def _cleanup_pass(name: str) -> str:
    cleaned = SERIAL_PREFIX.sub('', name)
    cleaned = SKU_PREFIX.sub('', cleaned)
    cleaned = TRAILING_SEPARATOR.sub('', cleaned)
    cleaned = WHITESPACE_RUN.sub(' ', cleaned)
    cleaned = LEADING_PUNCTUATION.sub('', cleaned)
    cleaned = TRAILING_PUNCTUATION.sub('', cleaned)
    cleaned = UNIT_PARENTHETICAL.sub('', cleaned)
    return cleaned.strip()


def clean_product_name(name: Optional[str]) -> str:
    """
    Clean an extracted product name.

    Examples:
        "1. Premium Wireless Headphones"  → "Premium Wireless Headphones"
        "Sr. No. 3 Stapler -"             → "Stapler"
        "AB-1234 Desk Lamp"               → "Desk Lamp"
        "Copy Paper A4 (500 pcs)"         → "Copy Paper A4"
        "Ergonomic   Office Chair:"       → "Ergonomic Office Chair"
        "LED Monitor 24"                  → "Monitor 24"

    The rules are applied until the name stops changing, so cleaning an
    already clean name returns it unchanged.

    Args:
        name: Raw name text cut out of a line

    Returns:
        Cleaned name (may be empty)
    """
    if not name:
        return ""

    # Passes only delete characters or collapse whitespace, so this terminates
    cleaned = name
    while True:
        next_pass = _cleanup_pass(cleaned)
        if next_pass == cleaned:
            return cleaned
        cleaned = next_pass


def infer_category(name: Optional[str]) -> str:
    """
    Guess a category from keywords in the product name.

    Args:
        name: Cleaned product name

    Returns:
        Category name, or "General" when no keyword matches
    """
    if not name:
        return DEFAULT_CATEGORY

    name_lower = name.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in name_lower for keyword in keywords):
            return category
    return DEFAULT_CATEGORY
