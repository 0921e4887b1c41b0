"""
Product import API routes.

Upload a document (or paste its text), review extracted items and their
create/update/ignore mappings, then execute the import.
"""

from fastapi import APIRouter, Query, UploadFile, File, Form
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.extraction import ExtractedLineItem, ExtractedItemCreate, ExtractedItemUpdate
from models.mapping import MappingAction, Mapping, MappingUpdate
from models.import_session import StartImportRequest, AutoMapRequest, ImportSessionResponse
from services.import_session_service import get_import_session_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# SESSIONS
# ===================

@router.post("/sessions/upload", response_model=ImportSessionResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(..., description="PDF or text document with product rows"),
    auto_mapping: bool = Form(True, description="Match items against the catalog")
):
    """
    Start an import session from an uploaded document.

    A document with no recognizable rows still creates a session
    (is_empty = true).

    Raises:
        422: Document unreadable (EXTRACTION_ERROR)
    """
    logger.info(
        "product_import_upload_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        content = await file.read()
        service = get_import_session_service()
        session = service.start_session_from_document(
            content,
            filename=file.filename,
            auto_mapping=auto_mapping
        )
        return service.to_response(session)

    except Exception as e:
        return handle_error(e)


@router.post("/sessions", response_model=ImportSessionResponse, status_code=201)
async def start_session(data: StartImportRequest):
    """Start an import session from already extracted text."""
    try:
        service = get_import_session_service()
        session = service.start_session(
            data.text,
            auto_mapping=data.auto_mapping,
            source_name=data.source_name
        )
        return service.to_response(session)

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}", response_model=ImportSessionResponse)
async def get_session(session_id: str):
    """
    Get session state with mapping stats and duplicate warnings.

    Raises:
        404: Session expired or not found
    """
    try:
        service = get_import_session_service()
        return service.to_response(service.get_session(session_id))

    except Exception as e:
        return handle_error(e)


@router.delete("/sessions/{session_id}")
async def cancel_session(session_id: str):
    """Discard a session. The catalog is not touched."""
    try:
        get_import_session_service().cancel(session_id)
        return {"cancelled": True, "session_id": session_id}

    except Exception as e:
        return handle_error(e)


# ===================
# ITEMS
# ===================

@router.post("/sessions/{session_id}/items", response_model=ExtractedLineItem, status_code=201)
async def add_item(session_id: str, data: ExtractedItemCreate):
    """Add an item by hand. It gets a create mapping."""
    try:
        return get_import_session_service().add_item(session_id, data)

    except Exception as e:
        return handle_error(e)


@router.patch("/sessions/{session_id}/items/{item_id}", response_model=ExtractedLineItem)
async def edit_item(session_id: str, item_id: str, data: ExtractedItemUpdate):
    """
    Edit an extracted item. Confidence becomes 100.

    Raises:
        404: Session or item not found
    """
    try:
        return get_import_session_service().edit_item(session_id, item_id, data)

    except Exception as e:
        return handle_error(e)


@router.delete("/sessions/{session_id}/items/{item_id}")
async def delete_item(session_id: str, item_id: str):
    """Remove an item and its mapping."""
    try:
        get_import_session_service().delete_item(session_id, item_id)
        return {"deleted": True, "item_id": item_id}

    except Exception as e:
        return handle_error(e)


# ===================
# MAPPINGS
# ===================

@router.get("/sessions/{session_id}/mappings", response_model=list[Mapping])
async def list_mappings(
    session_id: str,
    search: Optional[str] = Query(None, description="Filter by item name"),
    action: Optional[MappingAction] = Query(None, description="Filter by action")
):
    """List mappings, optionally filtered."""
    try:
        return get_import_session_service().list_mappings(
            session_id,
            search=search,
            action=action
        )

    except Exception as e:
        return handle_error(e)


@router.patch("/sessions/{session_id}/mappings/{extracted_id}", response_model=Mapping)
async def update_mapping(session_id: str, extracted_id: str, data: MappingUpdate):
    """
    Override one mapping.

    Switching away from update clears the target product.
    """
    try:
        return get_import_session_service().update_mapping(session_id, extracted_id, data)

    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/auto-map", response_model=ImportSessionResponse)
async def rerun_auto_mapping(session_id: str, data: AutoMapRequest):
    """Rebuild all mappings. Manual overrides are replaced."""
    try:
        service = get_import_session_service()
        session = service.rerun_auto_mapping(session_id, enabled=data.enabled)
        return service.to_response(session)

    except Exception as e:
        return handle_error(e)


# ===================
# EXECUTE
# ===================

@router.post("/sessions/{session_id}/execute")
async def execute_import(session_id: str):
    """
    Validate mappings and write them to the catalog.

    Per-item failures do not stop the import; they are listed in the
    summary.

    Raises:
        404: Session expired or not found
        422: Invalid mappings (INVALID_MAPPING)
    """
    try:
        summary = get_import_session_service().execute(session_id)
        return summary.to_dict()

    except Exception as e:
        return handle_error(e)
