"""
Uploads Router — CSV inventory ingest and upload history.
"""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from api.deps import get_current_seller, get_repository
from api.schemas import CamelModel
from core.config import get_settings
from db.models import Seller
from ingest.formats import Channel
from inventory.repository import InventoryRepository
from inventory.upload_service import FailureKind, UploadFailure, process_upload

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/uploads", tags=["uploads"])

CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}


# ─── Schemas ────────────────────────────────────────────────────────────────


class UploadResponse(CamelModel):
    upload_id: UUID
    filename: str
    channel: str
    status: str
    detected_platform: str | None
    confidence: float | None
    rows_processed: int | None
    rows_skipped: int | None
    error_message: str | None
    uploaded_at: datetime
    processed_at: datetime | None


# ─── Helpers ────────────────────────────────────────────────────────────────


def is_csv_upload(filename: str | None, content_type: str | None) -> bool:
    if filename and filename.lower().endswith(".csv"):
        return True
    return (content_type or "").split(";")[0].strip().lower() in CSV_CONTENT_TYPES


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("")
async def upload_csv(
    file: UploadFile = File(...),
    channel: Channel | None = Form(None),
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Ingest a marketplace inventory export."""
    seller_id = seller.seller_id
    if not is_csv_upload(file.filename, file.content_type):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    max_bytes = get_settings().max_upload_bytes
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(status_code=413, detail=f"File exceeds the {max_bytes} byte upload limit")

    result = await process_upload(
        repo,
        seller_id=seller_id,
        filename=file.filename or "upload.csv",
        content=content,
        channel=channel,
    )
    if isinstance(result, UploadFailure):
        status_code = 400 if result.kind is FailureKind.INVALID_INPUT else 500
        return JSONResponse(status_code=status_code, content=result.to_dict())
    return result.to_dict()


@router.get("", response_model=list[UploadResponse])
async def list_uploads(
    limit: int = Query(50, ge=1, le=200),
    seller: Seller = Depends(get_current_seller),
    repo: InventoryRepository = Depends(get_repository),
):
    """Upload history, newest first."""
    return await repo.list_uploads(seller.seller_id, limit=limit)
