"""Factory for the CRUD routers of the storefront collections."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from storefront.domain.errors import StoreError
from storefront.routers.common import BadRequest, error_response, get_catalog, query_filters, read_payload


def build_router(
    kind: str,
    label: str,
    *,
    added_message: str = "added successfully",
    allow_update: bool = True,
) -> APIRouter:
    """
    ``GET/POST /api/<kind>`` and ``GET/PUT/DELETE /api/<kind>/{record_id}``.

    Responses keep the storefront's shapes: the created/updated record under
    ``label.lower()``, the removed one under ``deleted<Label>``.
    """
    router = APIRouter(prefix=f"/api/{kind}", tags=[kind])
    key = label[0].lower() + label[1:]

    def _store(request: Request):
        return get_catalog(request).store(kind)

    def _max_bytes(request: Request) -> int:
        return request.app.state.settings.max_upload_bytes

    @router.get("")
    async def list_records(request: Request, limit: Optional[int] = Query(None, ge=0)):
        try:
            return await _store(request).list(query_filters(request), limit)
        except StoreError as exc:
            return error_response(exc, label)

    @router.get("/{record_id}")
    async def get_record(record_id: str, request: Request):
        try:
            return await _store(request).get(record_id)
        except StoreError as exc:
            return error_response(exc, label)

    @router.post("", status_code=201)
    async def add_record(request: Request):
        store = _store(request)
        try:
            fields, upload = await read_payload(request, image_field=store.image_field, max_bytes=_max_bytes(request))
            record = await store.add(fields, upload)
        except (BadRequest, StoreError) as exc:
            return error_response(exc, label)
        return JSONResponse({"message": f"{label} {added_message}", key: record}, status_code=201)

    if allow_update:
        @router.put("/{record_id}")
        async def update_record(record_id: str, request: Request):
            store = _store(request)
            try:
                fields, upload = await read_payload(request, image_field=store.image_field, max_bytes=_max_bytes(request))
                record = await store.update(record_id, fields, upload)
            except (BadRequest, StoreError) as exc:
                return error_response(exc, label)
            return {"message": f"{label} updated successfully", key: record}

    @router.delete("/{record_id}")
    async def delete_record(record_id: str, request: Request):
        try:
            record = await _store(request).remove(record_id)
        except StoreError as exc:
            return error_response(exc, label)
        return {"message": f"{label} deleted successfully", f"deleted{label}": record}

    return router
