"""
Product import routes — bulk catalog import over Server-Sent Events.

Provides:
- POST /api/admin/products/import          – ZIP or CSV+images upload, streamed progress
- GET  /api/admin/products/import-template – sample CSV download
Version: 1.0.0
"""
import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import Response, StreamingResponse
from starlette.concurrency import run_in_threadpool

from storefront.container import get_audit_store, get_import_pipeline, get_rate_limiter
from storefront.core.auth import require_staff
from storefront.core.config import settings
from storefront.core.constants.product_import import TEMPLATE_CSV, TEMPLATE_FILENAME
from storefront.core.exceptions import RateLimitError, UploadRejectedError
from storefront.db.audit_store import AuditStore
from storefront.schemas.product_import import ImportEvent
from storefront.services.import_pipeline import ImportPipeline, ImportUpload
from storefront.utils.rate_limiter import ImportRateLimiter
from storefront.utils.zip_extractor import decode_csv_bytes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/products", tags=["product-import"])

SSE_HEADERS = {
    "Cache-Control": "no-store",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06")
RATE_LIMIT_MESSAGE = "Too many imports. Please try again later."


def format_sse(event: ImportEvent) -> str:
    return f"event: {event.event}\ndata: {json.dumps(event.data, ensure_ascii=False)}\n\n"


def _mb(num_bytes: int) -> int:
    return num_bytes // (1024 * 1024)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


async def _read_within(upload: UploadFile, limit: int, message: str, field: str) -> bytes:
    """Read an uploaded part, refusing anything over limit bytes."""
    if upload.size is not None and upload.size > limit:
        raise UploadRejectedError(message, field=field)
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise UploadRejectedError(message, field=field)
    return data


async def build_upload(
    zip_file: Optional[UploadFile],
    csv_file: Optional[UploadFile],
    images: List[UploadFile],
) -> ImportUpload:
    """
    Turn the multipart parts into an ImportUpload, enforcing size ceilings.

    Raises:
        UploadRejectedError: missing file, oversized part or non-ZIP archive
    """
    if zip_file is not None:
        zip_bytes = await _read_within(
            zip_file,
            settings.import_max_zip_bytes,
            f"ZIP file exceeds {_mb(settings.import_max_zip_bytes)}MB limit",
            "zipFile",
        )
        if zip_bytes:
            if not zip_bytes.startswith(ZIP_SIGNATURES):
                raise UploadRejectedError("Uploaded file is not a valid ZIP archive", field="zipFile")
            return ImportUpload(zip_bytes=zip_bytes)

    csv_bytes = b""
    if csv_file is not None:
        csv_bytes = await _read_within(
            csv_file,
            settings.import_max_csv_bytes,
            f"CSV file exceeds {_mb(settings.import_max_csv_bytes)}MB limit",
            "csvFile",
        )
    if not csv_bytes:
        raise UploadRejectedError("Either upload a ZIP file or a CSV file")

    image_map: Dict[str, bytes] = {}
    for image in images:
        name = (image.filename or "").strip().lower()
        if not name:
            continue
        data = await _read_within(
            image,
            settings.import_max_image_bytes,
            f"Image '{image.filename}' exceeds {_mb(settings.import_max_image_bytes)}MB limit",
            "images",
        )
        if data:
            image_map.setdefault(name, data)

    return ImportUpload(csv_text=decode_csv_bytes(csv_bytes), images=image_map)


async def enforce_import_rate_limit(rate_limiter: ImportRateLimiter, user_id: str) -> int:
    """Count this import against the caller; returns the remaining allowance."""
    identity = f"import:{user_id}"
    decision = await run_in_threadpool(rate_limiter.hit, identity)
    if not decision.allowed:
        raise RateLimitError(identity, retry_after=decision.retry_after)
    return decision.remaining


@router.post("/import")
async def import_products(
    request: Request,
    zip_file: Optional[UploadFile] = File(None, alias="zipFile"),
    csv_file: Optional[UploadFile] = File(None, alias="csvFile"),
    images: Optional[List[UploadFile]] = File(None, alias="images"),
    update_existing: str = Form("false", alias="updateExisting"),
    current_user: dict = Depends(require_staff),
    pipeline: ImportPipeline = Depends(get_import_pipeline),
    audit_store: AuditStore = Depends(get_audit_store),
    rate_limiter: ImportRateLimiter = Depends(get_rate_limiter),
):
    """Start an import and stream its progress as text/event-stream."""
    user_id = current_user["user_id"]

    try:
        remaining = await enforce_import_rate_limit(rate_limiter, user_id)
    except RateLimitError as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"code": "RATE_LIMITED", "message": RATE_LIMIT_MESSAGE},
            headers={"Retry-After": str(exc.retry_after), "X-RateLimit-Remaining": "0"},
        )

    try:
        upload = await build_upload(zip_file, csv_file, images or [])
    except UploadRejectedError as exc:
        logger.info("import upload rejected user=%s detail=%s", user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "INVALID_UPLOAD", "message": str(exc)},
        )

    is_update = update_existing.strip().lower() == "true"
    ip_address = client_ip(request)
    logger.info(
        "import started user=%s mode=%s update_existing=%s",
        user_id,
        "zip" if upload.is_zip else "csv",
        is_update,
    )

    async def event_stream():
        summary: Optional[Dict[str, Any]] = None
        async for event in pipeline.stream(upload, is_update):
            if event.event == "complete":
                summary = event.data["summary"]
            yield format_sse(event)

        if summary is not None:
            await audit_store.record(
                user_id=user_id,
                action="product_import",
                entity_type="import",
                details={**summary, "updateExisting": is_update},
                ip_address=ip_address,
            )

    headers = {**SSE_HEADERS, "X-RateLimit-Remaining": str(remaining)}
    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=headers)


@router.get("/import-template")
async def import_template():
    """Sample CSV showing every supported column."""
    return Response(
        content=TEMPLATE_CSV,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )
