"""
Import session service: the review flow between upload and execute.

Flow:
1. start_session / start_session_from_document: extract candidates, load the
   catalog snapshot once, build mappings
2. edit_item / add_item / delete_item: fix extracted rows by hand
3. update_mapping / rerun_auto_mapping: adjust create/update/ignore decisions
4. execute: validate mappings, write to the catalog, drop the session
   (or cancel: drop the session with no catalog changes)
"""

from typing import Optional
import structlog

from models.extraction import (
    ExtractionMethod,
    ExtractedLineItem,
    ExtractedItemCreate,
    ExtractedItemUpdate,
)
from models.mapping import MappingAction, Mapping, MappingUpdate, ImportSummary
from models.import_session import ImportSessionState, ImportSessionResponse
from parsers.line_item_extractor import extract_line_items
from parsers.name_normalizer import infer_category
from services.catalog_service import CatalogService, get_catalog_service
from services.document_text_service import DocumentTextService, get_document_text_service
from services.import_executor_service import ImportExecutor
from services.reconciliation_service import ReconciliationService, get_reconciliation_service
from services import session_store
from exceptions import (
    ImportSessionNotFoundError,
    ExtractedItemNotFoundError,
    MappingNotFoundError,
)

logger = structlog.get_logger(__name__)


MANUAL_SOURCE_TEXT = "Manually added"
MANUAL_CONFIDENCE = 100

# Item fields that may be set to null by an edit
NULLABLE_ITEM_FIELDS = ("category",)


class ImportSessionService:
    """
    Document import sessions.

    Collaborators are created lazily so the pipeline can run without a
    database until the catalog is actually needed.
    """

    def __init__(
        self,
        catalog: Optional[CatalogService] = None,
        reconciliation: Optional[ReconciliationService] = None,
        documents: Optional[DocumentTextService] = None,
    ):
        self._catalog = catalog
        self.reconciliation = reconciliation or get_reconciliation_service()
        self.documents = documents or get_document_text_service()

    @property
    def catalog(self) -> CatalogService:
        if self._catalog is None:
            self._catalog = get_catalog_service()
        return self._catalog

    # ===================
    # SESSION LIFECYCLE
    # ===================

    def start_session(
        self,
        text: str,
        auto_mapping: bool = True,
        source_name: Optional[str] = None
    ) -> ImportSessionState:
        """
        Start a session from extracted document text.

        An empty candidate list is not an error; the session reports
        is_empty and the extraction diagnostics instead.

        Args:
            text: Plain document text
            auto_mapping: Match against the catalog (else all create)
            source_name: File name or label for display

        Returns:
            Stored ImportSessionState
        """
        result = extract_line_items(text)

        catalog = self.catalog.list_existing_products()
        categories = self.catalog.list_categories()

        mappings = self.reconciliation.build_mappings(
            result.items,
            catalog,
            categories,
            auto_mapping=auto_mapping
        )

        session = ImportSessionState(
            id=session_store.new_session_id(),
            source_name=source_name,
            auto_mapping=auto_mapping,
            items=result.items,
            mappings=mappings,
            catalog=catalog,
            categories=categories,
            extraction=result.to_report(),
        )
        session_store.save_session(session.id, session)

        logger.info(
            "import_session_started",
            session_id=session.id,
            source=source_name,
            items=len(session.items),
            catalog_size=len(catalog),
            auto_mapping=auto_mapping,
            empty=session.is_empty
        )
        return session

    def start_session_from_document(
        self,
        content: bytes,
        filename: Optional[str] = None,
        auto_mapping: bool = True
    ) -> ImportSessionState:
        """
        Start a session from an uploaded document.

        Raises:
            ExtractionError: If no text can be read from the document
        """
        text = self.documents.extract_text(content, filename)
        return self.start_session(text, auto_mapping=auto_mapping, source_name=filename)

    def get_session(self, session_id: str) -> ImportSessionState:
        """
        Load a session.

        Raises:
            ImportSessionNotFoundError: If expired or unknown
        """
        session = session_store.load_session(session_id)
        if session is None:
            raise ImportSessionNotFoundError(session_id)
        return session

    def cancel(self, session_id: str) -> None:
        """
        Discard a session without touching the catalog.

        Raises:
            ImportSessionNotFoundError: If expired or unknown
        """
        if not session_store.delete_session(session_id):
            raise ImportSessionNotFoundError(session_id)
        logger.info("import_session_cancelled", session_id=session_id)

    # ===================
    # ITEM EDITS
    # ===================

    def _item_index(self, session: ImportSessionState, item_id: str) -> int:
        for index, item in enumerate(session.items):
            if item.id == item_id:
                return index
        raise ExtractedItemNotFoundError(item_id)

    def edit_item(
        self,
        session_id: str,
        item_id: str,
        update: ExtractedItemUpdate
    ) -> ExtractedLineItem:
        """
        Edit an extracted item by hand.

        The item's confidence becomes 100. Its mapping is left as is.
        """
        session = self.get_session(session_id)
        index = self._item_index(session, item_id)

        changes = {
            field: getattr(update, field)
            for field in update.model_fields_set
            if getattr(update, field) is not None or field in NULLABLE_ITEM_FIELDS
        }

        data = session.items[index].model_dump()
        data.update(changes)
        data["confidence"] = MANUAL_CONFIDENCE
        data["method"] = ExtractionMethod.MANUAL

        item = ExtractedLineItem(**data)
        session.items[index] = item
        session_store.save_session(session.id, session)

        logger.info(
            "extracted_item_edited",
            session_id=session_id,
            item_id=item_id,
            fields=sorted(changes)
        )
        return item

    def add_item(self, session_id: str, data: ExtractedItemCreate) -> ExtractedLineItem:
        """
        Add an item the extractor missed.

        Gets id manual_<n> and a default create mapping.
        """
        session = self.get_session(session_id)
        session.manual_counter += 1

        item = ExtractedLineItem(
            id=f"manual_{session.manual_counter}",
            name=data.name,
            quantity=data.quantity,
            unit_price=data.unit_price,
            category=data.category or infer_category(data.name),
            confidence=MANUAL_CONFIDENCE,
            source_text=MANUAL_SOURCE_TEXT,
            method=ExtractionMethod.MANUAL,
        )
        session.items.append(item)
        session.mappings.append(
            self.reconciliation.default_mapping(item, session.categories)
        )
        session_store.save_session(session.id, session)

        logger.info("extracted_item_added", session_id=session_id, item_id=item.id)
        return item

    def delete_item(self, session_id: str, item_id: str) -> None:
        """Remove an item together with its mapping."""
        session = self.get_session(session_id)
        index = self._item_index(session, item_id)

        del session.items[index]
        session.mappings = [m for m in session.mappings if m.extracted_id != item_id]
        session_store.save_session(session.id, session)

        logger.info("extracted_item_deleted", session_id=session_id, item_id=item_id)

    # ===================
    # MAPPINGS
    # ===================

    def update_mapping(
        self,
        session_id: str,
        extracted_id: str,
        update: MappingUpdate
    ) -> Mapping:
        """
        Override one mapping.

        Raises:
            MappingNotFoundError: If the item has no mapping
        """
        session = self.get_session(session_id)

        for index, mapping in enumerate(session.mappings):
            if mapping.extracted_id == extracted_id:
                updated = self.reconciliation.apply_override(mapping, update)
                session.mappings[index] = updated
                session_store.save_session(session.id, session)
                return updated

        raise MappingNotFoundError(extracted_id)

    def rerun_auto_mapping(self, session_id: str, enabled: bool = True) -> ImportSessionState:
        """
        Rebuild every mapping from the session's catalog snapshot.

        Manual overrides are discarded.
        """
        session = self.get_session(session_id)
        session.auto_mapping = enabled
        session.mappings = self.reconciliation.build_mappings(
            session.items,
            session.catalog,
            session.categories,
            auto_mapping=enabled
        )
        session_store.save_session(session.id, session)

        logger.info(
            "auto_mapping_rerun",
            session_id=session_id,
            enabled=enabled,
            mappings=len(session.mappings)
        )
        return session

    def list_mappings(
        self,
        session_id: str,
        search: Optional[str] = None,
        action: Optional[MappingAction] = None
    ) -> list[Mapping]:
        """Mappings filtered by item name and action."""
        session = self.get_session(session_id)
        return self.reconciliation.filter_mappings(
            session.mappings,
            session.items,
            search=search,
            action=action
        )

    # ===================
    # EXECUTE
    # ===================

    def execute(self, session_id: str) -> ImportSummary:
        """
        Finalize mappings and run the import.

        The session is removed once the import has run, whatever the
        per-item outcome.

        Raises:
            InvalidMappingError: If any mapping cannot be imported
                (the session is kept so it can be fixed)
        """
        session = self.get_session(session_id)

        self.reconciliation.validate_mappings(
            session.mappings,
            session.items,
            session.catalog
        )

        executor = ImportExecutor(self.catalog)
        summary = executor.run_import(session.mappings, session.items)

        session_store.delete_session(session_id)

        logger.info(
            "import_session_executed",
            session_id=session_id,
            created=summary.created_count,
            updated=summary.updated_count,
            failed=len(summary.failures)
        )
        return summary

    # ===================
    # RESPONSES
    # ===================

    def to_response(self, session: ImportSessionState) -> ImportSessionResponse:
        """Session view with stats and duplicate warnings."""
        return ImportSessionResponse(
            id=session.id,
            source_name=session.source_name,
            created_at=session.created_at,
            auto_mapping=session.auto_mapping,
            is_empty=session.is_empty,
            items=session.items,
            mappings=session.mappings,
            stats=self.reconciliation.mapping_stats(session.mappings),
            warnings=self.reconciliation.mapping_warnings(session.mappings, session.items),
            extraction=session.extraction,
            catalog_size=len(session.catalog),
            categories=[category.name for category in session.categories],
        )


# Singleton instance
_import_session_service: Optional[ImportSessionService] = None


def get_import_session_service() -> ImportSessionService:
    """Get or create ImportSessionService instance."""
    global _import_session_service
    if _import_session_service is None:
        _import_session_service = ImportSessionService()
    return _import_session_service
