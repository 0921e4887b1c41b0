"""
Business logic services.

Each service handles one step of the document import flow.
"""

from services.catalog_service import CatalogService, get_catalog_service
from services.document_text_service import DocumentTextService, get_document_text_service
from services.reconciliation_service import ReconciliationService, get_reconciliation_service
from services.import_executor_service import ImportExecutor
from services.import_session_service import ImportSessionService, get_import_session_service

__all__ = [
    "CatalogService",
    "get_catalog_service",
    "DocumentTextService",
    "get_document_text_service",
    "ReconciliationService",
    "get_reconciliation_service",
    "ImportExecutor",
    "ImportSessionService",
    "get_import_session_service",
]
