"""
Unit tests for ReconciliationService.

Run: pytest tests/unit/test_reconciliation_service.py -v
"""

import pytest

from models.catalog import CategoryRecord
from models.mapping import MappingAction, MatchReason, MappingUpdate
from services.reconciliation_service import ReconciliationService, get_reconciliation_service
from exceptions import InvalidMappingError

from tests.factories import ExtractedItemFactory, CatalogProductFactory, MappingFactory


@pytest.fixture
def service() -> ReconciliationService:
    return ReconciliationService()


@pytest.fixture
def catalog():
    return [
        CatalogProductFactory.create(id="p1", name="Widget A"),
        CatalogProductFactory.create(id="p2", name="Premium Wireless Headphones"),
        CatalogProductFactory.create(id="p3", name="Ergonomic Office Chair"),
    ]


class TestAutoMap:
    """Exact, fuzzy and no-match decisions."""

    @pytest.mark.parametrize("name", ["widget a", "WIDGET A", "Widget   A"])
    def test_exact_match_wins(self, service, catalog, name):
        item = ExtractedItemFactory.create(name=name)

        mapping = service.auto_map([item], catalog)[0]

        assert mapping.action == MappingAction.UPDATE
        assert mapping.target_product_id == "p1"
        assert mapping.confidence == 95
        assert mapping.update_price is True
        assert mapping.update_stock is True
        assert mapping.match_reason == MatchReason.EXACT_NAME

    def test_fuzzy_match_updates_stock_only(self, service, catalog):
        item = ExtractedItemFactory.create(name="Premium Wireles Headphone")

        mapping = service.auto_map([item], catalog)[0]

        assert mapping.action == MappingAction.UPDATE
        assert mapping.target_product_id == "p2"
        assert mapping.update_price is False
        assert mapping.update_stock is True
        assert mapping.confidence == round(mapping.similarity * 100) == 93
        assert mapping.match_reason == MatchReason.FUZZY_NAME

    def test_no_match_creates(self, service, catalog):
        item = ExtractedItemFactory.create(name="Stainless Steel Water Bottle")

        mapping = service.auto_map([item], catalog)[0]

        assert mapping.action == MappingAction.CREATE
        assert mapping.target_product_id is None
        assert mapping.target_category == "General"
        assert mapping.confidence == 70
        assert mapping.match_reason == MatchReason.NO_MATCH

    def test_create_uses_item_category(self, service, catalog):
        item = ExtractedItemFactory.create(name="Mystery Gadget", category="Gifts")

        mapping = service.auto_map([item], catalog)[0]

        assert mapping.target_category == "Gifts"

    def test_create_reuses_known_category_spelling(self, service, catalog):
        item = ExtractedItemFactory.create(name="Bluetooth Speaker")
        categories = [CategoryRecord(id="c1", name="ELECTRONICS")]

        mapping = service.auto_map([item], catalog, categories)[0]

        assert mapping.target_category == "ELECTRONICS"

    def test_empty_catalog_creates_everything(self, service):
        items = ExtractedItemFactory.create_batch(3)

        mappings = service.auto_map(items, [])

        assert [m.action for m in mappings] == [MappingAction.CREATE] * 3
        assert [m.extracted_id for m in mappings] == [i.id for i in items]

    def test_update_iff_target(self, service, catalog):
        items = [
            ExtractedItemFactory.create(name="widget a"),
            ExtractedItemFactory.create(name="Premium Wireles Headphone"),
            ExtractedItemFactory.create(name="Stainless Steel Water Bottle"),
            ExtractedItemFactory.create(name="Ergonomic Office Chairs"),
        ]

        for mapping in service.auto_map(items, catalog):
            assert (mapping.action == MappingAction.UPDATE) == (mapping.target_product_id is not None)


class TestDefaultMappings:
    """Auto-mapping disabled."""

    def test_all_create_with_low_confidence(self, service, catalog):
        items = [
            ExtractedItemFactory.create(name="Widget A"),
            ExtractedItemFactory.create(name="Desk Lamp", category="Office Supplies"),
        ]

        mappings = service.build_mappings(items, catalog, auto_mapping=False)

        assert [m.action for m in mappings] == [MappingAction.CREATE, MappingAction.CREATE]
        assert [m.confidence for m in mappings] == [50, 50]
        assert [m.target_category for m in mappings] == ["General", "Office Supplies"]
        assert all(m.match_reason == MatchReason.DEFAULT for m in mappings)


class TestApplyOverride:
    """User overrides and dirty flags."""

    def test_leaving_update_clears_target(self, service):
        mapping = MappingFactory.create("extracted_1", MappingAction.UPDATE, target_product_id="p1")

        updated = service.apply_override(mapping, MappingUpdate(action=MappingAction.CREATE))

        assert updated.action == MappingAction.CREATE
        assert updated.target_product_id is None
        assert updated.is_manual is True
        assert updated.manual_fields == ["action"]
        assert updated.match_reason == MatchReason.MANUAL

    def test_only_provided_fields_change(self, service):
        mapping = MappingFactory.create(
            "extracted_1",
            MappingAction.UPDATE,
            target_product_id="p1",
            update_price=True,
            update_stock=True
        )

        updated = service.apply_override(mapping, MappingUpdate(update_price=False))

        assert updated.action == MappingAction.UPDATE
        assert updated.target_product_id == "p1"
        assert updated.update_price is False
        assert updated.update_stock is True
        assert updated.manual_fields == ["update_price"]

    def test_switch_to_update_with_target(self, service):
        mapping = MappingFactory.create("extracted_1", MappingAction.CREATE, target_category="General")

        updated = service.apply_override(
            mapping,
            MappingUpdate(action=MappingAction.UPDATE, target_product_id="p3", update_stock=True)
        )

        assert updated.action == MappingAction.UPDATE
        assert updated.target_product_id == "p3"
        assert set(updated.manual_fields) == {"action", "target_product_id", "update_stock"}

    def test_manual_fields_accumulate(self, service):
        mapping = MappingFactory.create("extracted_1")

        first = service.apply_override(mapping, MappingUpdate(target_category="Furniture"))
        second = service.apply_override(first, MappingUpdate(action=MappingAction.IGNORE))

        assert second.manual_fields == ["target_category", "action"]
        assert second.target_category == "Furniture"

    def test_empty_override_is_noop(self, service):
        mapping = MappingFactory.create("extracted_1")

        assert service.apply_override(mapping, MappingUpdate()) is mapping


class TestValidateMappings:
    """Finalization checks."""

    def test_valid_mappings_pass(self, service, catalog):
        items = ExtractedItemFactory.create_batch(2)
        mappings = [
            MappingFactory.update_for(items[0], "p1"),
            MappingFactory.create_for(items[1]),
        ]

        service.validate_mappings(mappings, items, catalog)

    def test_update_without_target_rejected(self, service, catalog):
        item = ExtractedItemFactory.create()
        mapping = MappingFactory.create(item.id, MappingAction.UPDATE)

        with pytest.raises(InvalidMappingError) as exc_info:
            service.validate_mappings([mapping], [item], catalog)

        assert exc_info.value.problems[0]["code"] == "MISSING_TARGET"
        assert exc_info.value.code == "INVALID_MAPPING"
        assert exc_info.value.status_code == 422

    def test_all_problems_reported(self, service, catalog):
        items = ExtractedItemFactory.create_batch(3)
        mappings = [
            MappingFactory.update_for(items[0], "deleted-product"),
            MappingFactory.create_for(items[1]),
            MappingFactory.create("ghost"),
        ]

        with pytest.raises(InvalidMappingError) as exc_info:
            service.validate_mappings(mappings, items, catalog)

        codes = sorted(p["code"] for p in exc_info.value.problems)
        assert codes == ["UNKNOWN_ITEM", "UNKNOWN_TARGET", "UNMAPPED_ITEM"]


class TestWarningsStatsFilters:

    def test_duplicate_create_warning(self, service):
        items = [
            ExtractedItemFactory.create(name="Desk Lamp"),
            ExtractedItemFactory.create(name="desk  lamp"),
        ]
        mappings = [MappingFactory.create_for(i) for i in items]

        warnings = service.mapping_warnings(mappings, items)

        assert len(warnings) == 1
        assert warnings[0].code == "DUPLICATE_CREATE"
        assert warnings[0].extracted_ids == [items[0].id, items[1].id]

    def test_duplicate_update_target_warning(self, service):
        items = ExtractedItemFactory.create_batch(2)
        mappings = [MappingFactory.update_for(i, "p1") for i in items]

        warnings = service.mapping_warnings(mappings, items)

        assert [w.code for w in warnings] == ["DUPLICATE_UPDATE_TARGET"]
        assert warnings[0].product_id == "p1"

    def test_stats(self, service):
        items = ExtractedItemFactory.create_batch(4)
        mappings = [
            MappingFactory.update_for(items[0], "p1"),
            MappingFactory.create(items[1].id, confidence=70),
            MappingFactory.create(items[2].id, MappingAction.IGNORE, confidence=81),
            MappingFactory.create(items[3].id, confidence=80),
        ]

        stats = service.mapping_stats(mappings)

        assert stats.total == 4
        assert stats.create == 2
        assert stats.update == 1
        assert stats.ignore == 1
        assert stats.high_confidence == 2

    def test_filter_by_search_and_action(self, service):
        items = [
            ExtractedItemFactory.create(name="Ergonomic Office Chair"),
            ExtractedItemFactory.create(name="Desk Lamp"),
            ExtractedItemFactory.create(name="Folding Chair"),
        ]
        mappings = [
            MappingFactory.update_for(items[0], "p3"),
            MappingFactory.create_for(items[1]),
            MappingFactory.create_for(items[2]),
        ]

        by_name = service.filter_mappings(mappings, items, search="CHAIR")
        by_both = service.filter_mappings(mappings, items, search="chair", action=MappingAction.CREATE)
        everything = service.filter_mappings(mappings, items)

        assert [m.extracted_id for m in by_name] == [items[0].id, items[2].id]
        assert [m.extracted_id for m in by_both] == [items[2].id]
        assert len(everything) == 3


def test_singleton():
    assert get_reconciliation_service() is get_reconciliation_service()
