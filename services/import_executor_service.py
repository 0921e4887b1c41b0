"""
Import executor: applies accepted mappings to the catalog.

One create or update call per mapping. A failed call is recorded and the
batch continues; the summary always reports created/updated counts and
every failure by item name.
"""

from typing import Optional, Sequence
import structlog

from models.catalog import DEFAULT_CATEGORY, ProductCreate, ProductUpdate
from models.extraction import ExtractedLineItem
from models.mapping import MappingAction, Mapping, ImportFailure, ImportSummary
from services.catalog_service import CatalogService, get_catalog_service
from exceptions import PersistenceError

logger = structlog.get_logger(__name__)


class ImportExecutor:
    """
    Runs an import against the catalog collaborator.

    No read-modify-write: a record changed or deleted by someone else after
    the snapshot was taken fails for that item only.
    """

    def __init__(self, catalog: Optional[CatalogService] = None):
        self.catalog = catalog if catalog is not None else get_catalog_service()

    def _create(self, mapping: Mapping, item: ExtractedLineItem) -> str:
        data = ProductCreate(
            name=item.name,
            category=mapping.target_category or DEFAULT_CATEGORY,
            price=item.unit_price,
            stock=item.quantity,
            description="",
        )
        return self.catalog.create_product(data, item_id=item.id)

    def _update(self, mapping: Mapping, item: ExtractedLineItem) -> str:
        if not mapping.target_product_id:
            raise PersistenceError(
                "update",
                f"Update for '{item.name}' has no target product",
                item_id=item.id,
                item_name=item.name
            )

        data = ProductUpdate(
            stock=item.quantity if mapping.update_stock else None,
            price=item.unit_price if mapping.update_price else None,
        )
        self.catalog.update_product(
            mapping.target_product_id,
            data,
            item_id=item.id,
            item_name=item.name
        )
        return mapping.target_product_id

    def run_import(
        self,
        mappings: Sequence[Mapping],
        candidates: Sequence[ExtractedLineItem]
    ) -> ImportSummary:
        """
        Execute mappings in order.

        Args:
            mappings: Finalized mappings
            candidates: Extracted items the mappings refer to

        Returns:
            ImportSummary with counts and per-item failures
        """
        items = {item.id: item for item in candidates}
        summary = ImportSummary()

        logger.info("import_started", mappings=len(mappings))

        for mapping in mappings:
            if mapping.action == MappingAction.IGNORE:
                summary.ignored_count += 1
                continue

            item = items.get(mapping.extracted_id)
            if item is None:
                logger.warning("import_item_missing", extracted_id=mapping.extracted_id)
                summary.skipped_count += 1
                continue

            try:
                if mapping.action == MappingAction.CREATE:
                    product_id = self._create(mapping, item)
                    summary.created_count += 1
                    summary.created_ids.append(product_id)
                else:
                    product_id = self._update(mapping, item)
                    summary.updated_count += 1
                    summary.updated_ids.append(product_id)

            except PersistenceError as e:
                logger.error(
                    "import_item_failed",
                    extracted_id=item.id,
                    name=item.name,
                    action=mapping.action,
                    error=e.message
                )
                summary.failures.append(ImportFailure(
                    id=item.id,
                    name=item.name,
                    action=mapping.action,
                    code=e.code,
                    error=e.message
                ))

            except Exception as e:
                logger.error(
                    "import_item_failed",
                    extracted_id=item.id,
                    name=item.name,
                    action=mapping.action,
                    error=str(e),
                    error_type=type(e).__name__
                )
                summary.failures.append(ImportFailure(
                    id=item.id,
                    name=item.name,
                    action=mapping.action,
                    code="UNEXPECTED_ERROR",
                    error=str(e)
                ))

        logger.info(
            "import_complete",
            created=summary.created_count,
            updated=summary.updated_count,
            ignored=summary.ignored_count,
            skipped=summary.skipped_count,
            failed=len(summary.failures)
        )
        return summary
