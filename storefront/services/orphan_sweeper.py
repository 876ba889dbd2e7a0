"""
Orphaned image sweep.

Builds the set of image references still used by records, lists every blob
backend and deletes what nothing references. Individual failures are logged
and counted; the sweep keeps going. Running it again is always safe.

A blob uploaded for a record whose write has not landed yet can be swept if
the sweep lists the backend in between, so schedule it for quiet hours.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Sequence, Set

from storefront.core.config import Settings, get_settings
from storefront.core.log import get_logger
from storefront.repositories.blob_storage import BlobStore, owner_of
from storefront.services.catalog import build_catalog
from storefront.services.entity_store import EntityStore

logger = get_logger("orphan_sweeper")


@dataclass
class SweepReport:
    deleted_by_backend: Dict[str, int] = field(default_factory=dict)
    errors: int = 0
    live: int = 0

    @property
    def deleted(self) -> int:
        return sum(self.deleted_by_backend.values())

    @property
    def local_deleted(self) -> int:
        return self.deleted_by_backend.get("local", 0)

    @property
    def remote_deleted(self) -> int:
        return sum(n for name, n in self.deleted_by_backend.items() if name != "local")


class OrphanSweeper:
    def __init__(self, stores: Iterable[EntityStore], backends: Sequence[BlobStore]) -> None:
        self.stores = [s for s in stores if s.image_field]
        self.backends = list(backends)

    async def live_identities(self) -> Set[str]:
        """Normalized identities of every image a record still points to."""
        live: Set[str] = set()
        for store in self.stores:
            # a collection read failure propagates: without it nothing is known to be live
            records = await store.list()
            for reference in store.image_references(records):
                backend = owner_of(reference, self.backends)
                if backend is not None:
                    live.add(backend.identity_of(reference))
        return live

    async def sweep(self) -> SweepReport:
        live = await self.live_identities()
        report = SweepReport(live=len(live))
        logger.info("sweep started", extra={"event": "sweep_started", "live": len(live)})
        for backend in self.backends:
            report.deleted_by_backend[backend.name] = await self._sweep_backend(backend, live, report)
        logger.info(
            "sweep finished",
            extra={
                "event": "sweep_finished",
                "local_deleted": report.local_deleted,
                "remote_deleted": report.remote_deleted,
                "errors": report.errors,
            },
        )
        return report

    async def _sweep_backend(self, backend: BlobStore, live: Set[str], report: SweepReport) -> int:
        try:
            blobs = await backend.list()
        except Exception as exc:
            report.errors += 1
            logger.error("sweep listing failed", extra={"event": "sweep_list_failed", "backend": backend.name, "error": str(exc)})
            return 0
        deleted = 0
        for blob in blobs:
            if blob.identity in live:
                continue
            try:
                ok = await backend.delete(blob.reference)
            except Exception as exc:
                report.errors += 1
                logger.warning(
                    "orphan delete raised",
                    extra={"event": "sweep_delete_failed", "backend": backend.name, "reference": blob.reference, "error": str(exc)},
                )
                continue
            if ok:
                deleted += 1
                logger.info("orphan deleted", extra={"event": "sweep_deleted", "backend": backend.name, "reference": blob.reference})
            else:
                report.errors += 1
                logger.warning("orphan not deleted", extra={"event": "sweep_delete_failed", "backend": backend.name, "reference": blob.reference})
        return deleted


async def run_sweep(settings: Settings | None = None, *, s3_client=None) -> SweepReport:
    """Sweep every image-bearing collection against every configured backend."""
    catalog = build_catalog(settings or get_settings(), s3_client=s3_client)
    return await OrphanSweeper(catalog.image_stores, catalog.backends).sweep()
