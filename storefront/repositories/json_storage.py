"""
JSON-array collection files.

One file per entity kind, pretty-printed with 2-space indentation. A missing
file is created as ``[]`` on first access and every write goes through a temp
file plus ``os.replace`` so a failed write never leaves a truncated array.
"""

from __future__ import annotations

from pathlib import Path
import json
import os
import tempfile

from storefront.core.log import get_logger
from storefront.domain.errors import StorageUnavailableError

logger = get_logger("json_storage")


def _atomic_write(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class JsonCollection:
    """Synchronous read/write of a single collection file."""

    def __init__(self, data_dir: str | os.PathLike, name: str) -> None:
        self.name = name
        self.path = Path(data_dir) / f"{name}.json"
        self.seq_path = Path(data_dir) / f"{name}.seq.json"

    @property
    def key(self) -> str:
        return str(self.path.resolve())

    def ensure(self) -> None:
        """Create the data directory and an empty array file when missing."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                _atomic_write(self.path, "[]")
                logger.info("collection initialized", extra={"collection": self.name})
        except OSError as exc:
            raise StorageUnavailableError(f"cannot initialize {self.path}: {exc}") from exc

    def load(self) -> list[dict]:
        self.ensure()
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StorageUnavailableError(f"cannot read {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise StorageUnavailableError(f"{self.path} does not contain a JSON array")
        return data

    def save(self, records: list[dict]) -> None:
        text = json.dumps(records, ensure_ascii=False, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(self.path, text)
        except OSError as exc:
            raise StorageUnavailableError(f"cannot write {self.path}: {exc}") from exc

    # ---------------------- id high-water mark ----------------------
    def read_high_water(self) -> int:
        try:
            with self.seq_path.open("r", encoding="utf-8") as f:
                return int(json.load(f).get("lastId") or 0)
        except FileNotFoundError:
            return 0
        except (OSError, ValueError, AttributeError, TypeError) as exc:
            # The collection itself still bounds the next id from below.
            logger.warning("unreadable id counter", extra={"collection": self.name, "error": str(exc)})
            return 0

    def write_high_water(self, value: int) -> None:
        try:
            _atomic_write(self.seq_path, json.dumps({"lastId": int(value)}, indent=2))
        except OSError as exc:
            raise StorageUnavailableError(f"cannot write {self.seq_path}: {exc}") from exc


def init_collections(data_dir: str | os.PathLike, names) -> list[JsonCollection]:
    """Create every named collection file that does not exist yet."""
    collections = [JsonCollection(data_dir, name) for name in names]
    for collection in collections:
        collection.ensure()
    return collections
