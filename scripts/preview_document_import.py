"""
Preview a document import without touching the catalog.

Runs text extraction and line item extraction on a local file and prints
what an import session would show. With --catalog, also auto-maps the
items against products listed in a JSON file.

Usage:
    python scripts/preview_document_import.py invoice.pdf
    python scripts/preview_document_import.py quote.txt --catalog products.json
    python scripts/preview_document_import.py quote.txt --no-auto-mapping --json

The catalog file is a JSON list of products:
    [{"id": "p1", "name": "Ergonomic Office Chair", "category": "Furniture",
      "price": 280.0, "stock": 4}]
"""

import argparse
import json
import os
import sys
from pathlib import Path

# Allow imports from the project root when running as a script
_backend_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _backend_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_backend_dir, ".env"))

from models.catalog import CatalogProduct
from parsers.line_item_extractor import extract_line_items
from services.document_text_service import DocumentTextService
from services.reconciliation_service import ReconciliationService
from exceptions import ExtractionError


def load_catalog(path: str) -> list[CatalogProduct]:
    """Read catalog products from a JSON file."""
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    return [CatalogProduct(**row) for row in rows]


def print_table(items, mappings) -> None:
    by_id = {m.extracted_id: m for m in mappings}
    print(f"{'ID':<14} {'NAME':<40} {'QTY':>8} {'PRICE':>10} {'CONF':>5}  MAPPING")
    print("-" * 100)
    for item in items:
        mapping = by_id.get(item.id)
        target = ""
        if mapping:
            target = mapping.action.value
            if mapping.target_product_id:
                target += f" → {mapping.target_product_id}"
            elif mapping.target_category:
                target += f" ({mapping.target_category})"
            target += f" [{mapping.confidence}]"
        print(
            f"{item.id:<14} {item.name[:40]:<40} {item.quantity:>8g} "
            f"{item.unit_price:>10.2f} {item.confidence:>5}  {target}"
        )


def main():
    parser = argparse.ArgumentParser(
        description="Preview line items and mappings extracted from a document."
    )
    parser.add_argument("document", help="PDF or text file to parse")
    parser.add_argument(
        "--catalog",
        default="",
        help="JSON file with existing products to map against",
    )
    parser.add_argument(
        "--no-auto-mapping",
        action="store_true",
        help="Default every item to create instead of matching",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    args = parser.parse_args()

    path = Path(args.document)
    try:
        text = DocumentTextService().extract_text(path.read_bytes(), path.name)
    except ExtractionError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    result = extract_line_items(text)
    catalog = load_catalog(args.catalog) if args.catalog else []

    reconciliation = ReconciliationService()
    mappings = reconciliation.build_mappings(
        result.items,
        catalog,
        auto_mapping=not args.no_auto_mapping
    )

    if args.json:
        print(json.dumps({
            "items": [item.model_dump(mode="json") for item in result.items],
            "mappings": [m.model_dump(mode="json") for m in mappings],
            "stats": reconciliation.mapping_stats(mappings).model_dump(),
            "extraction": result.to_report().model_dump(mode="json"),
        }, indent=2))
        return

    report = result.to_report()
    print(f"\n{path.name}: {report.total_lines} lines, {len(result.items)} items")
    print(f"Layout: {report.layout_source or 'none'} {report.column_offsets}")
    print(f"Methods: {report.method_counts}  Skipped: {report.skipped}")
    if result.used_last_resort:
        print("Warning: used last-resort extraction, check every row")
    print()

    if result.empty:
        print("No product rows found.")
        return

    print_table(result.items, mappings)

    stats = reconciliation.mapping_stats(mappings)
    print(
        f"\n{stats.total} mappings: {stats.create} create, {stats.update} update, "
        f"{stats.ignore} ignore, {stats.high_confidence} high confidence"
    )


if __name__ == "__main__":
    main()
