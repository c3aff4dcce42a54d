#!/usr/bin/env python3
"""
List users with their access state and delivery preferences.

Run from project root with DATABASE_URL set:
  python scripts/check_users.py
  python scripts/check_users.py --email alice
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv(project_root / ".env")

from eduquest.core.access import has_active_access
from eduquest.db.session import SessionLocal
from eduquest.models.user import User
from eduquest.services import profile_store


def main() -> None:
    parser = argparse.ArgumentParser(description="List users and delivery state")
    parser.add_argument("--email", help="Only users whose email contains this text")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        query = db.query(User).order_by(User.id)
        if args.email:
            query = query.filter(User.email.ilike(f"%{args.email}%"))
        users = query.all()

        today = date.today()
        for user in users:
            subjects = profile_store.get_user_subjects(db, user.id)
            access = "yes" if has_active_access(user, today) else "no"
            print(
                f"  ID: {user.id}, Email: {user.email}, Subscribed: {user.is_subscribed}, "
                f"Trial ends: {user.trial_ends_at}, Access: {access}, "
                f"Subjects: {len(subjects)}, "
                f"Time: {profile_store.preferred_email_time(subjects) if subjects else '-'}, "
                f"Last sent: {profile_store.last_sent_date(subjects) or '-'}"
            )

        print(f"\nTotal users listed: {len(users)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
