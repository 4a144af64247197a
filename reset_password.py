#!/usr/bin/env python3
"""
Reset an admin's password in the Daily Care SQLite database.

This script does not read or reveal any existing password.  It sets a
new PBKDF2 hash for the given e-mail.  The database is the one named
by ``DATABASE_URL``.

Usage:
    python reset_password.py --email admin@dailycare.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import asyncio
import getpass
import sys

from daily_care_api.app.services.admin_service import AdminService


def main() -> None:
    ap = argparse.ArgumentParser(description="Reset an admin password (SQLite).")
    ap.add_argument("--email", required=True, help="Admin e-mail to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < 6:
        print("[!] Password must be at least 6 characters.", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(AdminService.reset_password(args.email, new_password))
    except ValueError as e:
        print(f"[!] {e}", file=sys.stderr)
        sys.exit(2)
    print(f"[+] Password updated for {args.email}")


if __name__ == "__main__":
    main()
