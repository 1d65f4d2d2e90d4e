"""
Upload Service — one CSV upload end to end.

Flow:
  1. Record the upload as "processing"
  2. Parse the CSV structure (ParseError aborts, nothing is merged)
  3. Detect platform/channel and the column mapping from the headers
  4. Validate rows, merging valid ones in file order
  5. Sweep the whole seller and run the transition alert policy
  6. Record the terminal status and counts

The result distinguishes bad input from internal failure so the HTTP layer can
answer 400 or 500. Row-level problems never fail the upload.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from alerts.email import send_low_stock_email
from alerts.engine import EmailSender, notify_transitions
from db.models import CsvUpload
from ingest.csv_reader import ParseError, read_csv
from ingest.formats import Channel, DetectedFormat
from ingest.headers import analyze_headers, guess_channel_from_filename
from ingest.row_transformer import transform_rows
from inventory.locks import tenant_lock
from inventory.reconciliation import ProductTransition, merge_row, reconcile_tenant
from inventory.repository import InventoryRepository, StoreFailure

logger = structlog.get_logger()


class FailureKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    INTERNAL = "internal"


@dataclass
class UploadSummary:
    upload_id: uuid.UUID
    processed_count: int
    skipped_count: int
    detected_format: DetectedFormat
    failed_count: int = 0
    notifications_sent: int = 0

    @property
    def message(self) -> str:
        message = f"Successfully processed {self.processed_count} products"
        if self.skipped_count:
            message += f", skipped {self.skipped_count} invalid rows"
        if self.failed_count:
            message += f", {self.failed_count} rows could not be saved"
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "uploadId": str(self.upload_id),
            "processedCount": self.processed_count,
            "skippedCount": self.skipped_count,
            "detectedFormat": self.detected_format.to_dict(),
            "message": self.message,
        }


@dataclass
class UploadFailure:
    kind: FailureKind
    error: str
    details: str
    upload_id: uuid.UUID | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "details": self.details}


@dataclass
class _MergeOutcome:
    transitions: list[ProductTransition] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


async def process_upload(
    repo: InventoryRepository,
    *,
    seller_id: uuid.UUID,
    filename: str,
    content: bytes,
    channel: Channel | None = None,
    sender: EmailSender = send_low_stock_email,
) -> UploadSummary | UploadFailure:
    """Ingest one CSV export for a seller.

    ``channel`` overrides the detected channel when the seller states it
    explicitly.
    """
    async with tenant_lock(seller_id):
        upload = CsvUpload(
            seller_id=seller_id,
            filename=filename,
            channel=(channel or guess_channel_from_filename(filename) or Channel.AMAZON).value,
            status="processing",
        )
        try:
            await repo.create_upload(upload)
        except StoreFailure as exc:
            logger.error("upload.record_failed", seller_id=str(seller_id), filename=filename, error=exc.detail)
            return UploadFailure(FailureKind.INTERNAL, "Failed to process CSV", exc.detail)

        upload_id = upload.upload_id
        log = logger.bind(seller_id=str(seller_id), upload_id=str(upload_id))
        log.info("upload.started", filename=filename, size=len(content))

        try:
            return await _process(repo, log, upload_id, seller_id, filename, content, channel, sender)
        except ParseError as exc:
            log.warning("upload.parse_failed", error=str(exc))
            await _mark_error(repo, log, seller_id, upload_id, str(exc))
            return UploadFailure(FailureKind.INVALID_INPUT, "Invalid CSV file", str(exc), upload_id)
        except Exception as exc:
            log.exception("upload.failed", error=str(exc))
            await _mark_error(repo, log, seller_id, upload_id, str(exc))
            return UploadFailure(FailureKind.INTERNAL, "Failed to process CSV", str(exc), upload_id)


async def _process(
    repo: InventoryRepository,
    log,
    upload_id: uuid.UUID,
    seller_id: uuid.UUID,
    filename: str,
    content: bytes,
    channel_override: Channel | None,
    sender: EmailSender,
) -> UploadSummary:
    parsed = read_csv(content)
    detected = analyze_headers(parsed.headers, filename)
    channel = channel_override or detected.channel
    log.info(
        "upload.format_detected",
        platform=detected.platform.value,
        channel=channel.value,
        confidence=detected.confidence,
        mapping=detected.mapping.to_dict(),
    )

    settings_row = await repo.get_settings(seller_id)
    threshold = settings_row.global_low_stock_threshold
    notifications_enabled = settings_row.email_notifications_enabled

    transformed = transform_rows(parsed.rows, detected.mapping)
    for rejection in transformed.rejections:
        log.debug("upload.row_rejected", line=rejection.line_number, reason=rejection.reason.value)

    outcome = _MergeOutcome()
    for row in transformed.valid_rows:
        try:
            transition = await merge_row(repo, seller_id, channel, row, threshold)
        except StoreFailure as exc:
            log.error("upload.row_store_failed", sku=row.sku, line=row.line_number, error=exc.detail)
            outcome.failed.append(row.sku)
            continue
        outcome.transitions.append(transition)

    processed = len(outcome.transitions)
    sweep = await reconcile_tenant(repo, seller_id, threshold)
    if sweep.failed_count:
        # A rollback during the sweep expired the merged products
        for transition in outcome.transitions:
            await repo.refresh(transition.product)

    # Sweep transitions only matter for products this upload did not touch
    touched = {t.product.product_id for t in outcome.transitions}
    transitions = outcome.transitions + [t for t in sweep.transitions if t.product.product_id not in touched]
    sent = await notify_transitions(
        repo,
        seller_id,
        transitions,
        notifications_enabled=notifications_enabled,
        global_threshold=threshold,
        sender=sender,
    )

    error_message = None
    status = "completed"
    if outcome.failed:
        error_message = f"{len(outcome.failed)} rows could not be saved: {', '.join(outcome.failed[:10])}"
        if processed == 0:
            status = "error"

    upload = await repo.get_upload(seller_id, upload_id)
    await repo.finish_upload(
        upload,
        status,
        detected_platform=detected.platform.value,
        confidence=detected.confidence,
        channel=channel.value,
        rows_processed=processed,
        rows_skipped=transformed.skipped_count,
        error_message=error_message,
    )

    log.info(
        "upload.completed",
        status=status,
        processed=processed,
        skipped=transformed.skipped_count,
        failed=len(outcome.failed),
        notifications_sent=sent,
    )
    return UploadSummary(
        upload_id=upload_id,
        processed_count=processed,
        skipped_count=transformed.skipped_count,
        detected_format=DetectedFormat(
            platform=detected.platform,
            channel=channel,
            confidence=detected.confidence,
            mapping=detected.mapping,
        ),
        failed_count=len(outcome.failed),
        notifications_sent=sent,
    )


async def _mark_error(repo: InventoryRepository, log, seller_id: uuid.UUID, upload_id: uuid.UUID, message: str) -> None:
    try:
        await repo.rollback()
        upload = await repo.get_upload(seller_id, upload_id)
        if upload is not None:
            await repo.finish_upload(upload, "error", error_message=message)
    except (StoreFailure, SQLAlchemyError) as exc:
        log.error("upload.status_update_failed", error=str(exc))
