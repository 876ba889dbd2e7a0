"""
Blob storage for uploaded images.

Every backend satisfies the same contract: ``upload`` returns a reference
(URL or path) that is written into a record's image field, ``delete`` takes
that reference back, and ``list`` enumerates what the backend holds so the
orphan sweep can reconcile it against live records.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional
from uuid import uuid4

from storefront.core.log import get_logger
from storefront.core.utils import is_external_url
from storefront.domain.errors import StorageUnavailableError

logger = get_logger("blob_storage")


@dataclass(frozen=True)
class BlobInfo:
    identity: str
    reference: str


def file_extension(original_name: str | None) -> str:
    return os.path.splitext(original_name or "")[1].lower()


class BlobStore:
    """Contract shared by the local and object-storage backends."""

    name = "blob"

    async def upload(self, data: bytes, content_type: str, original_name: str) -> str:
        raise NotImplementedError

    async def delete(self, reference: str) -> bool:
        raise NotImplementedError

    async def list(self) -> List[BlobInfo]:
        raise NotImplementedError

    def owns(self, reference: object) -> bool:
        """True when ``reference`` points into this backend."""
        raise NotImplementedError

    def identity_of(self, reference: str) -> str:
        """Normalized identity used to match records against listed blobs."""
        raise NotImplementedError


def owner_of(reference: object, backends: Iterable[BlobStore]) -> Optional[BlobStore]:
    """Backend owning ``reference``; None for external URLs and empty values."""
    if not isinstance(reference, str) or not reference.strip():
        return None
    for backend in backends:
        if backend.owns(reference):
            return backend
    return None


class LocalBlobStore(BlobStore):
    """Files in one directory, referenced as ``<url_prefix>/<filename>``."""

    name = "local"

    def __init__(self, directory: str | os.PathLike, url_prefix: str = "/uploads", name_prefix: str = "product") -> None:
        self.directory = Path(directory)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.name_prefix = name_prefix
        self.directory.mkdir(parents=True, exist_ok=True)

    def owns(self, reference: object) -> bool:
        if not isinstance(reference, str) or is_external_url(reference):
            return False
        path = reference.split("?", 1)[0]
        return path.startswith(self.url_prefix + "/") and bool(os.path.basename(path))

    def identity_of(self, reference: str) -> str:
        return os.path.basename(reference.split("?", 1)[0])

    def _path_for(self, reference: str) -> Path:
        # basename only: a reference can never escape the uploads directory
        return self.directory / self.identity_of(reference)

    def _write(self, filename: str, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / filename).write_bytes(data)

    async def upload(self, data: bytes, content_type: str, original_name: str) -> str:
        filename = f"{self.name_prefix}-{uuid4().hex}{file_extension(original_name)}"
        try:
            await asyncio.to_thread(self._write, filename, data)
        except OSError as exc:
            raise StorageUnavailableError(f"cannot store upload {original_name!r}: {exc}") from exc
        logger.info("blob stored", extra={"backend": self.name, "reference": f"{self.url_prefix}/{filename}"})
        return f"{self.url_prefix}/{filename}"

    async def delete(self, reference: str) -> bool:
        if not self.owns(reference):
            return False
        path = self._path_for(reference)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.info("blob already gone", extra={"backend": self.name, "reference": reference})
            return False
        except OSError as exc:
            logger.warning("blob delete failed", extra={"backend": self.name, "reference": reference, "error": str(exc)})
            return False
        return True

    def _scan(self) -> List[BlobInfo]:
        self.directory.mkdir(parents=True, exist_ok=True)
        found = []
        for entry in sorted(os.scandir(self.directory), key=lambda e: e.name):
            if entry.is_file():
                found.append(BlobInfo(identity=entry.name, reference=f"{self.url_prefix}/{entry.name}"))
        return found

    async def list(self) -> List[BlobInfo]:
        try:
            return await asyncio.to_thread(self._scan)
        except OSError as exc:
            raise StorageUnavailableError(f"cannot list {self.directory}: {exc}") from exc
