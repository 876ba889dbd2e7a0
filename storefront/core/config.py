"""
Configuration helpers for the storefront backend.

Settings are read once from environment variables so that routers, services
and scripts never fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    data_dir: str
    uploads_dir: str
    uploads_url_prefix: str
    id_policy: str
    max_upload_bytes: int
    blob_backend: str
    aws_region: str
    aws_access_key_id: str
    aws_secret_access_key: str
    s3_bucket_name: str
    s3_upload_prefix: str
    s3_public_read: bool
    blob_timeout_seconds: float
    cors_origins: tuple[str, ...]
    log_level: str
    cleanup_timezone: str

    @property
    def s3_configured(self) -> bool:
        return bool(self.aws_access_key_id and self.aws_secret_access_key)


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _float(value: str, default: float = 0.0) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    id_policy = (os.getenv("ID_POLICY") or "int").strip().lower()
    if id_policy not in {"int", "token"}:
        id_policy = "int"
    blob_backend = (os.getenv("BLOB_BACKEND") or "local").strip().lower()
    if blob_backend not in {"local", "s3"}:
        blob_backend = "local"
    origins = tuple(o.strip() for o in (os.getenv("CORS_ORIGINS") or "*").split(",") if o.strip())

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        data_dir=os.path.abspath(os.getenv("DATA_DIR", "data")),
        uploads_dir=os.path.abspath(os.getenv("UPLOADS_DIR", os.path.join("public", "uploads"))),
        uploads_url_prefix="/" + (os.getenv("UPLOADS_URL_PREFIX") or "/uploads").strip("/"),
        id_policy=id_policy,
        max_upload_bytes=_int(os.getenv("MAX_UPLOAD_BYTES", "5242880"), 5 * 1024 * 1024),
        blob_backend=blob_backend,
        aws_region=os.getenv("AWS_REGION") or "us-east-1",
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID", ""),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", ""),
        s3_bucket_name=os.getenv("S3_BUCKET_NAME") or "for-the-best-queenz",
        s3_upload_prefix=(os.getenv("S3_UPLOAD_PREFIX") or "uploads").strip("/"),
        s3_public_read=_bool(os.getenv("S3_PUBLIC_READ"), True),
        blob_timeout_seconds=_float(os.getenv("BLOB_TIMEOUT_SECONDS", "10"), 10.0),
        cors_origins=origins or ("*",),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        cleanup_timezone=os.getenv("CLEANUP_TIMEZONE") or "America/New_York",
    )
