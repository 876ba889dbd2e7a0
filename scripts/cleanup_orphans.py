#!/usr/bin/env python3
"""
Delete uploaded images no product references anymore (local dir and, when
AWS credentials are configured, the S3 bucket).

Usage:
  python scripts/cleanup_orphans.py
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from storefront.core.config import get_settings
from storefront.core.log import configure_logging
from storefront.services.orphan_sweeper import run_sweep


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Remove orphaned product images")
    ap.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    report = asyncio.run(run_sweep(settings))
    print(
        f"Cleanup complete. Removed {report.local_deleted} local files and "
        f"{report.remote_deleted} S3 files ({report.errors} errors)."
    )


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Cleanup failed: {exc}\n")
        raise SystemExit(1)
