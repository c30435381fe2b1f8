#!/usr/bin/env python3
"""
Bootstrap the first MIS admin.

MIS accounts cannot self-register; once one exists, further admins are
added through POST /api/mis/users.

Usage: python scripts/create_mis_user.py admin@jobportal.io 'a-strong-password'
"""
import argparse

from jobportal.core.config import get_settings
from jobportal.core.exceptions import AlreadyExists
from jobportal.core.logging import configure_logging
from jobportal.db.postgres import create_tables, check_database_connection
from jobportal.services.user_service import create_user


def main():
    parser = argparse.ArgumentParser(description="Create an MIS admin account")
    parser.add_argument("email")
    parser.add_argument("password")
    args = parser.parse_args()

    configure_logging()
    settings = get_settings()

    print("=" * 50)
    print("JOB PORTAL - CREATE MIS USER")
    print("=" * 50)

    print(f"\n[1] Database: {settings.sqlalchemy_url.split('@')[-1]}")
    if not check_database_connection():
        print("    ❌ Database: FAILED")
        raise SystemExit(1)
    print("    ✅ Database: CONNECTED")

    print("\n[2] Creating tables (if missing)...")
    create_tables()

    print(f"\n[3] Creating MIS user {args.email}...")
    if len(args.password) < 8:
        print("    ❌ Password must be at least 8 characters")
        raise SystemExit(1)
    try:
        user_id = create_user(args.email, args.password, "mis")
    except AlreadyExists:
        print("    ⚠️  Email already registered")
        raise SystemExit(1)
    print(f"    ✅ Created user_id={user_id}")


if __name__ == "__main__":
    main()
