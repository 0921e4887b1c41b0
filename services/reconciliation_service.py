"""
Reconciliation service: decides what an import does with each extracted item.

Produces exactly one Mapping per ExtractedLineItem (create / update / ignore)
against a catalog snapshot passed in by the caller. User overrides are
applied here too, and mappings are validated before an import runs.
"""

from collections import defaultdict
from typing import Optional, Sequence
import structlog

from config.settings import settings
from models.catalog import DEFAULT_CATEGORY, CatalogProduct, CategoryRecord
from models.extraction import ExtractedLineItem
from models.mapping import (
    MappingAction,
    MatchReason,
    Mapping,
    MappingUpdate,
    MappingStats,
    MappingWarning,
)
from parsers.name_normalizer import infer_category
from utils.similarity import normalize_for_match, find_best_match
from exceptions import InvalidMappingError

logger = structlog.get_logger(__name__)


# Fields a user may override on a mapping
OVERRIDABLE_FIELDS = (
    "action",
    "target_product_id",
    "target_category",
    "update_price",
    "update_stock",
)


class ReconciliationService:
    """
    Mapping decisions between extracted items and the catalog.

    Stateless: every method works on the snapshot and mappings it is given.
    """

    # ===================
    # AUTO-MAPPING
    # ===================

    def resolve_category(
        self,
        category: Optional[str],
        categories: Sequence[CategoryRecord] = ()
    ) -> str:
        """
        Reuse the existing spelling of a category when one matches.

        Args:
            category: Category name from the item or inference
            categories: Known categories

        Returns:
            Matching category name, the input unchanged if unknown,
            or "General" if empty
        """
        if not category:
            return DEFAULT_CATEGORY

        wanted = category.strip().lower()
        for record in categories:
            if record.name.strip().lower() == wanted:
                return record.name
        return category

    def map_item(
        self,
        item: ExtractedLineItem,
        catalog: Sequence[CatalogProduct],
        categories: Sequence[CategoryRecord] = ()
    ) -> Mapping:
        """
        Auto-map a single extracted item.

        Order:
            1. exact name match (case/whitespace-insensitive) → update price + stock
            2. best fuzzy match above threshold → update stock only
            3. otherwise → create

        Args:
            item: Extracted line item
            catalog: Catalog snapshot
            categories: Known categories

        Returns:
            Mapping for the item
        """
        wanted = normalize_for_match(item.name)

        exact = next(
            (product for product in catalog if normalize_for_match(product.name) == wanted),
            None
        )
        if exact:
            return Mapping(
                extracted_id=item.id,
                action=MappingAction.UPDATE,
                target_product_id=exact.id,
                update_price=True,
                update_stock=True,
                confidence=settings.exact_match_confidence,
                match_reason=MatchReason.EXACT_NAME,
                similarity=1.0,
            )

        best = find_best_match(item.name, catalog)
        if best and best.similarity > settings.fuzzy_match_threshold:
            # Price is only overwritten on an exact match
            return Mapping(
                extracted_id=item.id,
                action=MappingAction.UPDATE,
                target_product_id=best.product.id,
                update_price=False,
                update_stock=True,
                confidence=round(best.similarity * 100),
                match_reason=MatchReason.FUZZY_NAME,
                similarity=best.similarity,
            )

        return Mapping(
            extracted_id=item.id,
            action=MappingAction.CREATE,
            target_category=self.resolve_category(
                item.category or infer_category(item.name),
                categories
            ),
            confidence=settings.create_confidence,
            match_reason=MatchReason.NO_MATCH,
            similarity=best.similarity if best else None,
        )

    def auto_map(
        self,
        candidates: Sequence[ExtractedLineItem],
        catalog: Sequence[CatalogProduct],
        categories: Sequence[CategoryRecord] = ()
    ) -> list[Mapping]:
        """
        Auto-map every extracted item against the catalog snapshot.

        Args:
            candidates: Extracted line items
            catalog: Catalog snapshot (loaded once by the caller)
            categories: Known categories

        Returns:
            One Mapping per candidate, in candidate order
        """
        mappings = [self.map_item(item, catalog, categories) for item in candidates]

        logger.info(
            "auto_mapping_complete",
            items=len(candidates),
            catalog_size=len(catalog),
            update=sum(1 for m in mappings if m.action == MappingAction.UPDATE),
            create=sum(1 for m in mappings if m.action == MappingAction.CREATE)
        )
        return mappings

    def default_mapping(
        self,
        item: ExtractedLineItem,
        categories: Sequence[CategoryRecord] = ()
    ) -> Mapping:
        """Plain create mapping used when auto-mapping is off."""
        return Mapping(
            extracted_id=item.id,
            action=MappingAction.CREATE,
            target_category=self.resolve_category(item.category, categories),
            confidence=settings.default_mapping_confidence,
            match_reason=MatchReason.DEFAULT,
        )

    def default_mappings(
        self,
        candidates: Sequence[ExtractedLineItem],
        categories: Sequence[CategoryRecord] = ()
    ) -> list[Mapping]:
        """Create mappings for every candidate without consulting the catalog."""
        return [self.default_mapping(item, categories) for item in candidates]

    def build_mappings(
        self,
        candidates: Sequence[ExtractedLineItem],
        catalog: Sequence[CatalogProduct],
        categories: Sequence[CategoryRecord] = (),
        auto_mapping: bool = True
    ) -> list[Mapping]:
        """
        Full mapping set for a session.

        Replaces any existing mappings, manual overrides included.
        """
        if auto_mapping:
            return self.auto_map(candidates, catalog, categories)
        return self.default_mappings(candidates, categories)

    # ===================
    # OVERRIDES
    # ===================

    def apply_override(self, mapping: Mapping, update: MappingUpdate) -> Mapping:
        """
        Apply a user override to one mapping.

        Only fields present in the request change. Leaving the update
        action always clears target_product_id. Invalid combinations
        (update without target) are accepted here and rejected by
        validate_mappings when the import is finalized.

        Args:
            mapping: Current mapping
            update: Fields set by the user

        Returns:
            New Mapping marked as manual
        """
        changes = {
            field: getattr(update, field)
            for field in OVERRIDABLE_FIELDS
            if field in update.model_fields_set
        }
        # Only the target fields can be cleared with null
        changes = {
            field: value for field, value in changes.items()
            if value is not None or field in ("target_product_id", "target_category")
        }

        if not changes:
            return mapping

        data = mapping.model_dump()
        data.update(changes)

        if data["action"] != MappingAction.UPDATE:
            data["target_product_id"] = None

        manual_fields = list(mapping.manual_fields)
        for field in changes:
            if field not in manual_fields:
                manual_fields.append(field)

        data["is_manual"] = True
        data["manual_fields"] = manual_fields
        data["match_reason"] = MatchReason.MANUAL

        logger.info(
            "mapping_overridden",
            extracted_id=mapping.extracted_id,
            fields=list(changes),
            action=data["action"]
        )
        return Mapping(**data)

    # ===================
    # VALIDATION
    # ===================

    def validate_mappings(
        self,
        mappings: Sequence[Mapping],
        candidates: Sequence[ExtractedLineItem],
        catalog: Sequence[CatalogProduct]
    ) -> None:
        """
        Check mappings before an import is executed.

        Every problem is collected, not only the first.

        Raises:
            InvalidMappingError: If any mapping cannot be imported
        """
        problems: list[dict] = []
        item_ids = {item.id for item in candidates}
        product_ids = {product.id for product in catalog}
        mapped_ids = set()

        for mapping in mappings:
            mapped_ids.add(mapping.extracted_id)

            if mapping.extracted_id not in item_ids:
                problems.append({
                    "extracted_id": mapping.extracted_id,
                    "code": "UNKNOWN_ITEM",
                    "message": "Mapping refers to an item that is not in the session"
                })
                continue

            if mapping.action != MappingAction.UPDATE:
                continue

            if not mapping.target_product_id:
                problems.append({
                    "extracted_id": mapping.extracted_id,
                    "code": "MISSING_TARGET",
                    "message": "Update mapping has no target product"
                })
            elif mapping.target_product_id not in product_ids:
                problems.append({
                    "extracted_id": mapping.extracted_id,
                    "code": "UNKNOWN_TARGET",
                    "message": f"Target product {mapping.target_product_id} is not in the catalog"
                })

        for item in candidates:
            if item.id not in mapped_ids:
                problems.append({
                    "extracted_id": item.id,
                    "code": "UNMAPPED_ITEM",
                    "message": f"Item '{item.name}' has no mapping"
                })

        if problems:
            logger.warning(
                "mapping_validation_failed",
                problem_count=len(problems),
                codes=sorted({p["code"] for p in problems})
            )
            raise InvalidMappingError(problems)

    def mapping_warnings(
        self,
        mappings: Sequence[Mapping],
        candidates: Sequence[ExtractedLineItem]
    ) -> list[MappingWarning]:
        """
        Non-blocking duplicate checks.

        - DUPLICATE_CREATE: two create mappings for the same normalized name
        - DUPLICATE_UPDATE_TARGET: two update mappings on the same product
        """
        names = {item.id: item.name for item in candidates}
        creates: dict[str, list[str]] = defaultdict(list)
        targets: dict[str, list[str]] = defaultdict(list)

        for mapping in mappings:
            if mapping.action == MappingAction.CREATE and mapping.extracted_id in names:
                creates[normalize_for_match(names[mapping.extracted_id])].append(mapping.extracted_id)
            elif mapping.action == MappingAction.UPDATE and mapping.target_product_id:
                targets[mapping.target_product_id].append(mapping.extracted_id)

        warnings = []
        for name, ids in creates.items():
            if len(ids) > 1:
                warnings.append(MappingWarning(
                    code="DUPLICATE_CREATE",
                    message=f"{len(ids)} items would create '{name}'",
                    extracted_ids=ids
                ))
        for product_id, ids in targets.items():
            if len(ids) > 1:
                warnings.append(MappingWarning(
                    code="DUPLICATE_UPDATE_TARGET",
                    message=f"{len(ids)} items update the same product",
                    extracted_ids=ids,
                    product_id=product_id
                ))
        return warnings

    # ===================
    # STATS / FILTERS
    # ===================

    def mapping_stats(self, mappings: Sequence[Mapping]) -> MappingStats:
        """Counts per action plus high-confidence mappings."""
        return MappingStats(
            total=len(mappings),
            create=sum(1 for m in mappings if m.action == MappingAction.CREATE),
            update=sum(1 for m in mappings if m.action == MappingAction.UPDATE),
            ignore=sum(1 for m in mappings if m.action == MappingAction.IGNORE),
            high_confidence=sum(
                1 for m in mappings
                if m.confidence > settings.high_confidence_threshold
            ),
        )

    def filter_mappings(
        self,
        mappings: Sequence[Mapping],
        candidates: Sequence[ExtractedLineItem],
        search: Optional[str] = None,
        action: Optional[MappingAction] = None
    ) -> list[Mapping]:
        """
        Filter mappings by item name and action.

        Args:
            mappings: Session mappings
            candidates: Session items (for names)
            search: Case-insensitive substring of the item name
            action: Only mappings with this action

        Returns:
            Matching mappings in original order
        """
        names = {item.id: item.name.lower() for item in candidates}
        term = search.strip().lower() if search else ""

        return [
            m for m in mappings
            if (not term or term in names.get(m.extracted_id, ""))
            and (action is None or m.action == action)
        ]


# Singleton instance
_reconciliation_service: Optional[ReconciliationService] = None


def get_reconciliation_service() -> ReconciliationService:
    """Get or create ReconciliationService instance."""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service
