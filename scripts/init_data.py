#!/usr/bin/env python3
"""
Create the data directory and an empty JSON array for every collection.

Usage:
  python scripts/init_data.py [--data-dir ./data]
"""
from __future__ import annotations

import argparse
import sys

from storefront.core.config import get_settings
from storefront.core.log import configure_logging
from storefront.domain.rules import REQUIRED_FIELDS
from storefront.repositories.json_storage import init_collections


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Initialize storefront collections")
    ap.add_argument("--data-dir", default=settings.data_dir, help="Directory holding the collection files")
    args = ap.parse_args(argv)

    configure_logging(settings.log_level)
    for collection in init_collections(args.data_dir, REQUIRED_FIELDS):
        print(f"OK: {collection.path}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
