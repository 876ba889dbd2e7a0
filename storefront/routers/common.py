"""Request/response helpers shared by the collection routers."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from storefront.core.log import get_logger
from storefront.domain.errors import (
    ConflictError,
    RecordNotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from storefront.services.catalog import Catalog
from storefront.services.entity_store import BlobUpload
from storefront.services.uploads import InvalidUploadError, check_image_upload

logger = get_logger("routers")

RESERVED_QUERY = {"limit"}


class BadRequest(Exception):
    """Malformed body; answered with 400 before any store call."""


def get_catalog(request: Request) -> Catalog:
    catalog = getattr(getattr(request.app, "state", None), "catalog", None)
    if not catalog:
        raise RuntimeError("Catalog not configured")
    return catalog


def query_filters(request: Request) -> Dict[str, Any]:
    filters: Dict[str, Any] = {}
    for key, value in request.query_params.items():
        if key in RESERVED_QUERY:
            continue
        lowered = value.strip().lower()
        if lowered in {"true", "false"}:
            filters[key] = lowered == "true"
        else:
            filters[key] = value
    return filters


async def read_payload(request: Request, *, image_field: Optional[str], max_bytes: int) -> Tuple[Dict[str, Any], Optional[BlobUpload]]:
    """
    Extract ``(fields, upload)`` from a JSON or form body.

    Blank form fields are dropped so a partial form never clears stored values.
    """
    content_type = (request.headers.get("content-type") or "").lower()
    if content_type.startswith("multipart/form-data") or content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        fields: Dict[str, Any] = {}
        upload: Optional[BlobUpload] = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if image_field and key == image_field and value.filename:
                    data = await value.read()
                    try:
                        upload = check_image_upload(data, value.content_type, value.filename, max_bytes)
                    except InvalidUploadError as exc:
                        raise BadRequest(str(exc)) from exc
                continue
            if isinstance(value, str) and value.strip():
                fields[key] = value.strip()
        return fields, upload
    body = await request.body()
    if not body.strip():
        return {}, None
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise BadRequest("Invalid JSON") from exc
    if not isinstance(payload, dict):
        raise BadRequest("Invalid JSON")
    return payload, None


def error_response(exc: Exception, label: str) -> JSONResponse:
    if isinstance(exc, BadRequest):
        return JSONResponse({"error": str(exc)}, status_code=400)
    if isinstance(exc, RecordNotFoundError):
        return JSONResponse({"error": f"{label} not found"}, status_code=404)
    if isinstance(exc, ValidationError):
        return JSONResponse(
            {
                "error": "Validation error",
                "details": f"Invalid or missing: {', '.join(exc.fields)}",
                "fields": exc.fields,
                "receivedData": exc.payload,
            },
            status_code=400,
        )
    if isinstance(exc, ConflictError):
        return JSONResponse({"error": str(exc) or "Conflict"}, status_code=409)
    if isinstance(exc, StorageUnavailableError):
        logger.error("storage unavailable", extra={"event": "storage_unavailable", "label": label, "error": str(exc)})
        return JSONResponse({"error": "Storage unavailable"}, status_code=503)
    return JSONResponse({"error": "Internal server error"}, status_code=500)
