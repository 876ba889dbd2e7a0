"""Shared fixtures: temp-dir Settings and an in-memory blob store."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the storefront package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront.core import config as core_config  # noqa: E402
from storefront.core.config import Settings  # noqa: E402
from storefront.repositories.blob_storage import BlobInfo, BlobStore  # noqa: E402


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        app_env="test",
        data_dir=str(tmp_path / "data"),
        uploads_dir=str(tmp_path / "uploads"),
        uploads_url_prefix="/uploads",
        id_policy="int",
        max_upload_bytes=5 * 1024 * 1024,
        blob_backend="local",
        aws_region="us-east-1",
        aws_access_key_id="",
        aws_secret_access_key="",
        s3_bucket_name="test-bucket",
        s3_upload_prefix="uploads",
        s3_public_read=True,
        blob_timeout_seconds=5.0,
        cors_origins=("*",),
        log_level="DEBUG",
        cleanup_timezone="UTC",
    )
    values.update(overrides)
    return Settings(**values)


class FakeBlobStore(BlobStore):
    """Blobs kept in a dict, referenced as ``/blobs/<n>``; records every call."""

    name = "fake"

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.deletes: list[str] = []
        self.fail_deletes = False
        self._counter = 0

    def owns(self, reference: object) -> bool:
        return isinstance(reference, str) and reference.startswith("/blobs/")

    def identity_of(self, reference: str) -> str:
        return reference.rsplit("/", 1)[-1]

    async def upload(self, data: bytes, content_type: str, original_name: str) -> str:
        self._counter += 1
        ref = f"/blobs/{self._counter}-{original_name}"
        self.blobs[ref] = data
        self.uploads.append(ref)
        return ref

    async def delete(self, reference: str) -> bool:
        self.deletes.append(reference)
        if self.fail_deletes:
            raise RuntimeError("blob backend down")
        return self.blobs.pop(reference, None) is not None

    async def list(self) -> list[BlobInfo]:
        return [BlobInfo(identity=self.identity_of(ref), reference=ref) for ref in self.blobs]


@pytest.fixture()
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    core_config.get_settings.cache_clear()
    yield make_settings(tmp_path)
    core_config.get_settings.cache_clear()


@pytest.fixture()
def fake_blobs() -> FakeBlobStore:
    return FakeBlobStore()
