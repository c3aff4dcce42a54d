#!/usr/bin/env python3
"""
Run one daily-question delivery scan now, outside the web process.

Useful to check a user's delivery without waiting for the next tick.
Honors the same rules as the scheduler (access, once per day, delivery window).

Run from project root with DATABASE_URL and RESEND_API_KEY set:
  python scripts/run_delivery_scan.py
  python scripts/run_delivery_scan.py --at "2026-10-19 09:00" --window 0
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv(project_root / ".env")

from eduquest.db.session import SessionLocal
from eduquest.services.delivery_scheduler import DeliveryScheduler
from eduquest.services.email_dispatcher import EmailDispatcher


def main() -> int:
    parser = argparse.ArgumentParser(description="Run one delivery scan")
    parser.add_argument("--at", help="Pretend the scan runs at this local time (YYYY-MM-DD HH:MM)")
    parser.add_argument("--window", type=int, default=None, help="Delivery window in minutes")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    now = datetime.strptime(args.at, "%Y-%m-%d %H:%M") if args.at else None
    scheduler = DeliveryScheduler(
        session_factory=SessionLocal,
        dispatcher=EmailDispatcher(),
        window_minutes=args.window,
    )
    result = scheduler.run_once(now=now)
    print(f"checked={result.checked} sent={result.sent} skipped={result.skipped} failed={result.failed}")
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
