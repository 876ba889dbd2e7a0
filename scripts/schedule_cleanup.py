#!/usr/bin/env python3
"""
Run the orphaned-image cleanup every week (default: Sunday 02:00).

Usage:
  python scripts/schedule_cleanup.py [--weekday 6] [--hour 2] [--timezone America/New_York]
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from storefront.core.config import get_settings
from storefront.core.log import configure_logging, get_logger
from storefront.services.orphan_sweeper import run_sweep

logger = get_logger("schedule")


def next_run(now: datetime, weekday: int, hour: int) -> datetime:
    """Next ``weekday`` (Monday=0) at ``hour``:00 strictly after ``now``."""
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - now.weekday()) % 7)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


def seconds_until(when: datetime, now: datetime) -> float:
    # aware datetimes sharing a tzinfo subtract as wall clock; go through UTC
    return (when.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds()


async def run_forever(weekday: int, hour: int, tz: ZoneInfo) -> None:
    settings = get_settings()
    while True:
        now = datetime.now(tz)
        when = next_run(now, weekday, hour)
        logger.info("next cleanup scheduled", extra={"at": when.isoformat()})
        await asyncio.sleep(seconds_until(when, now))
        try:
            report = await run_sweep(settings)
        except Exception as exc:
            logger.error("scheduled cleanup failed", extra={"event": "sweep_failed", "error": str(exc)})
            continue
        logger.info(
            "scheduled cleanup completed",
            extra={"local_deleted": report.local_deleted, "remote_deleted": report.remote_deleted, "errors": report.errors},
        )


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Weekly orphaned-image cleanup")
    ap.add_argument("--weekday", type=int, default=6, help="0=Monday ... 6=Sunday")
    ap.add_argument("--hour", type=int, default=2)
    ap.add_argument("--timezone", default=settings.cleanup_timezone)
    args = ap.parse_args(argv)
    if not (0 <= args.weekday <= 6 and 0 <= args.hour <= 23):
        raise SystemExit("weekday must be 0-6 and hour 0-23")
    configure_logging(settings.log_level)
    asyncio.run(run_forever(args.weekday, args.hour, ZoneInfo(args.timezone)))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:  # pragma: no cover - CLI usage
        raise SystemExit(0)
