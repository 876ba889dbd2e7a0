"""
Generic CRUD over one JSON-array collection.

Each mutation reads the whole file, changes it in memory and writes it back
while holding the collection's lock, so concurrent updates on the same file
cannot overwrite each other. Records of image-bearing kinds keep their
uploaded image in sync: uploads happen before the lock is taken, a failed
mutation rolls its upload back, and superseded/removed images are deleted in
the background once the record write is done.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from storefront.core.locks import KeyedLocks
from storefront.core.log import get_logger
from storefront.core.utils import now_iso
from storefront.domain import rules
from storefront.domain.errors import RecordNotFoundError
from storefront.domain.ids import IntegerIds, TokenIds, canonical_id
from storefront.repositories.blob_storage import BlobStore, owner_of
from storefront.repositories.json_storage import JsonCollection

logger = get_logger("entity_store")

PROTECTED_FIELDS = ("id", "createdAt")


@dataclass(frozen=True)
class BlobUpload:
    """Raw upload handed over by the HTTP adapter."""

    data: bytes
    content_type: str
    original_name: str


def _matches(value: Any, expected: Any) -> bool:
    if value == expected:
        return True
    if isinstance(value, bool) or isinstance(expected, bool):
        return False
    if value is None or expected is None:
        return False
    return str(value) == str(expected)


class EntityStore:
    """CRUD for one entity kind, with optional image lifecycle."""

    def __init__(
        self,
        kind: str,
        collection: JsonCollection,
        *,
        id_policy: IntegerIds | TokenIds | None = None,
        image_field: str | None = None,
        blob_store: BlobStore | None = None,
        blob_backends: Sequence[BlobStore] = (),
        locks: KeyedLocks | None = None,
    ) -> None:
        self.kind = kind
        self.collection = collection
        self.id_policy = id_policy or IntegerIds()
        self.image_field = image_field
        self.blob_store = blob_store
        backends = list(blob_backends)
        if blob_store is not None and blob_store not in backends:
            backends.insert(0, blob_store)
        self.blob_backends = backends
        self._locks = locks if locks is not None else KeyedLocks()
        self._cleanups: set[asyncio.Task] = set()

    @property
    def lock(self) -> asyncio.Lock:
        return self._locks.for_key(self.collection.key)

    # -------------------------- reads --------------------------
    async def _load(self) -> List[dict]:
        return await asyncio.to_thread(self.collection.load)

    async def list(self, filters: Optional[Mapping[str, Any]] = None, limit: Optional[int] = None) -> List[dict]:
        records = await self._load()
        if filters:
            records = [r for r in records if all(_matches(r.get(k), v) for k, v in filters.items())]
        if limit is not None:
            records = records[: max(0, int(limit))]
        return records

    async def get(self, record_id: Any) -> dict:
        records = await self._load()
        index = self._index_of(records, record_id)
        return records[index]

    def _index_of(self, records: List[dict], record_id: Any) -> int:
        target = canonical_id(record_id)
        for index, record in enumerate(records):
            if canonical_id(record.get("id")) == target:
                return index
        raise RecordNotFoundError(self.kind, record_id)

    # -------------------------- writes --------------------------
    async def _save(self, records: List[dict]) -> None:
        await asyncio.to_thread(self.collection.save, records)

    async def _issue_id(self, records: List[dict]) -> Any:
        existing = [r.get("id") for r in records]
        if isinstance(self.id_policy, IntegerIds):
            high_water = await asyncio.to_thread(self.collection.read_high_water)
            new_id = self.id_policy.next_id(existing, high_water)
            await asyncio.to_thread(self.collection.write_high_water, new_id)
            return new_id
        return self.id_policy.next_id(existing)

    async def _upload(self, blob: Optional[BlobUpload]) -> Optional[str]:
        if blob is None:
            return None
        if self.blob_store is None or self.image_field is None:
            raise ValueError(f"{self.kind} does not accept uploads")
        return await self.blob_store.upload(blob.data, blob.content_type, blob.original_name)

    async def add(self, fields: Mapping[str, Any], blob: Optional[BlobUpload] = None) -> dict:
        uploaded = await self._upload(blob)
        try:
            async with self.lock:
                records = await self._load()
                record = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
                if uploaded:
                    record[self.image_field] = uploaded
                rules.normalize(self.kind, record)
                stamp = now_iso()
                record = {"id": await self._issue_id(records), **record, "createdAt": stamp, "updatedAt": stamp}
                records.append(record)
                await self._save(records)
        except Exception:
            await self._rollback(uploaded)
            raise
        logger.info("record added", extra={"collection": self.kind, "record_id": record["id"]})
        return record

    async def update(self, record_id: Any, fields: Mapping[str, Any], blob: Optional[BlobUpload] = None) -> dict:
        uploaded = await self._upload(blob)
        try:
            async with self.lock:
                records = await self._load()
                index = self._index_of(records, record_id)
                current = records[index]
                changes = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
                if uploaded:
                    changes[self.image_field] = uploaded
                merged = {**current, **changes}
                rules.normalize(self.kind, merged, set(changes))
                merged["id"] = current.get("id")
                if "createdAt" in current:
                    merged["createdAt"] = current["createdAt"]
                merged["updatedAt"] = now_iso()
                records[index] = merged
                await self._save(records)
        except Exception:
            await self._rollback(uploaded)
            raise
        if self.image_field:
            old, new = current.get(self.image_field), merged.get(self.image_field)
            if self._superseded(old, new):
                self._schedule_cleanup(old, merged["id"])
        logger.info("record updated", extra={"collection": self.kind, "record_id": merged["id"]})
        return merged

    async def remove(self, record_id: Any) -> dict:
        async with self.lock:
            records = await self._load()
            index = self._index_of(records, record_id)
            removed = records.pop(index)
            await self._save(records)
        if self.image_field:
            self._schedule_cleanup(removed.get(self.image_field), removed.get("id"))
        logger.info("record removed", extra={"collection": self.kind, "record_id": removed.get("id")})
        return removed

    # -------------------------- blobs --------------------------
    def image_references(self, records: Iterable[Mapping[str, Any]]) -> List[str]:
        if not self.image_field:
            return []
        refs = []
        for record in records:
            value = record.get(self.image_field)
            if isinstance(value, str) and value.strip():
                refs.append(value)
        return refs

    async def _rollback(self, reference: Optional[str]) -> None:
        if not reference:
            return
        try:
            deleted = await self.blob_store.delete(reference)
        except Exception as exc:
            deleted = False
            logger.warning(
                "upload rollback failed",
                extra={"event": "blob_rollback_failed", "collection": self.kind, "reference": reference, "error": str(exc)},
            )
        else:
            if not deleted:
                logger.warning(
                    "upload rollback found nothing to delete",
                    extra={"event": "blob_rollback_failed", "collection": self.kind, "reference": reference},
                )

    def _superseded(self, old: Any, new: Any) -> bool:
        """True when ``old`` names a blob that ``new`` no longer points at."""
        backend = owner_of(old, self.blob_backends)
        if backend is None:
            return False
        if owner_of(new, self.blob_backends) is not backend:
            return True
        return backend.identity_of(old) != backend.identity_of(new)

    def _schedule_cleanup(self, reference: Any, record_id: Any) -> None:
        backend = owner_of(reference, self.blob_backends)
        if backend is None:
            return
        task = asyncio.get_running_loop().create_task(self._cleanup(backend, reference, record_id))
        self._cleanups.add(task)
        task.add_done_callback(self._cleanups.discard)

    async def _cleanup(self, backend: BlobStore, reference: str, record_id: Any) -> None:
        context = {"collection": self.kind, "record_id": record_id, "reference": reference, "backend": backend.name}
        try:
            deleted = await backend.delete(reference)
        except Exception as exc:
            logger.warning("blob cleanup failed", extra={"event": "blob_cleanup_failed", "error": str(exc), **context})
            return
        if deleted:
            logger.info("blob cleaned up", extra={"event": "blob_cleaned", **context})
        else:
            logger.warning("blob cleanup deleted nothing", extra={"event": "blob_cleanup_failed", **context})

    async def drain(self) -> None:
        """Wait for every pending background blob cleanup."""
        while self._cleanups:
            await asyncio.gather(*list(self._cleanups), return_exceptions=True)

    @property
    def pending_cleanups(self) -> int:
        return len(self._cleanups)

