"""Wiring of the four storefront collections and their blob backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from storefront.core.config import Settings
from storefront.core.locks import KeyedLocks
from storefront.domain import rules
from storefront.domain.ids import policy_for
from storefront.repositories.blob_storage import BlobStore, LocalBlobStore
from storefront.repositories.json_storage import JsonCollection
from storefront.repositories.s3_storage import S3BlobStore, build_s3_client
from storefront.services.entity_store import EntityStore

IMAGE_FIELDS = {rules.PRODUCTS: "image"}


@dataclass
class Catalog:
    stores: Dict[str, EntityStore]
    local_blobs: LocalBlobStore
    remote_blobs: Optional[S3BlobStore] = None
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def store(self, kind: str) -> EntityStore:
        return self.stores[kind]

    @property
    def backends(self) -> List[BlobStore]:
        return [b for b in (self.local_blobs, self.remote_blobs) if b is not None]

    @property
    def image_stores(self) -> List[EntityStore]:
        return [s for s in self.stores.values() if s.image_field]

    async def drain(self) -> None:
        for store in self.stores.values():
            await store.drain()


def build_catalog(settings: Settings, *, s3_client=None) -> Catalog:
    """Build every EntityStore from settings; S3 joins only when configured."""
    local = LocalBlobStore(settings.uploads_dir, settings.uploads_url_prefix)
    remote = None
    if settings.s3_configured or s3_client is not None:
        remote = S3BlobStore(
            s3_client if s3_client is not None else build_s3_client(settings),
            settings.s3_bucket_name,
            settings.aws_region,
            settings.s3_upload_prefix,
            public_read=settings.s3_public_read,
            timeout=settings.blob_timeout_seconds,
        )
    upload_target: BlobStore = remote if (settings.blob_backend == "s3" and remote is not None) else local
    backends = [b for b in (local, remote) if b is not None]
    locks = KeyedLocks()
    stores = {}
    for kind in rules.REQUIRED_FIELDS:
        image_field = IMAGE_FIELDS.get(kind)
        stores[kind] = EntityStore(
            kind,
            JsonCollection(settings.data_dir, kind),
            id_policy=policy_for(settings.id_policy),
            image_field=image_field,
            blob_store=upload_target if image_field else None,
            blob_backends=backends if image_field else (),
            locks=locks,
        )
    return Catalog(stores=stores, local_blobs=local, remote_blobs=remote, locks=locks)
