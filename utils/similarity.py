"""
Name similarity for matching extracted items against the catalog.

Used by reconciliation to decide between update and create.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from rapidfuzz.distance import Levenshtein

from models.catalog import CatalogProduct


@dataclass
class ProductMatch:
    """Best catalog candidate for a name."""
    product: CatalogProduct
    similarity: float


def normalize_for_match(name: Optional[str]) -> str:
    """
    Normalize a product name for comparison.

    - "  Premium  Wireless Headphones " → "premium wireless headphones"

    Args:
        name: Product name (may be None)

    Returns:
        Lowercase, trimmed string with whitespace runs collapsed
    """
    if not name:
        return ""
    return " ".join(name.lower().split())


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity between two names in [0, 1].

    Rules, first match wins:
        1. equal after normalization → 1.0
        2. one contains the other → len(shorter) / len(longer)
        3. otherwise → (len(longer) - edit_distance) / len(longer)

    Both names are normalized first (case, outer and repeated whitespace).
    Symmetric; two empty strings count as identical.

    Args:
        a: First name
        b: Second name

    Returns:
        Similarity score
    """
    a = normalize_for_match(a)
    b = normalize_for_match(b)

    if a == b:
        return 1.0

    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)

    if shorter in longer:
        return len(shorter) / len(longer)

    distance = Levenshtein.distance(longer, shorter)
    return (len(longer) - distance) / len(longer)


def find_best_match(
    name: Optional[str],
    catalog: Sequence[CatalogProduct]
) -> Optional[ProductMatch]:
    """
    Find the catalog product whose name is most similar.

    Names are normalized before comparison. Ties keep the earliest product.

    Args:
        name: Extracted product name
        catalog: Catalog snapshot

    Returns:
        ProductMatch, or None if the catalog is empty
    """
    if not catalog:
        return None

    target = normalize_for_match(name)
    best = ProductMatch(
        product=catalog[0],
        similarity=similarity(target, catalog[0].name)
    )

    for product in catalog[1:]:
        score = similarity(target, product.name)
        if score > best.similarity:
            best = ProductMatch(product=product, similarity=score)

    return best
