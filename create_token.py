#!/usr/bin/env python3
"""
Print a long-lived access token for an existing admin.

Usage:
    python create_token.py --email admin@dailycare.com --days 365
"""

import argparse
import asyncio
import sys

from daily_care_api.app.core.security import token_for_admin
from daily_care_api.app.services.admin_service import AdminService


def main() -> None:
    ap = argparse.ArgumentParser(description="Create an admin access token.")
    ap.add_argument("--email", required=True, help="Admin e-mail")
    ap.add_argument("--days", type=int, default=365, help="Token lifetime in days")
    args = ap.parse_args()

    try:
        admin = asyncio.run(AdminService.get_by_email(args.email))
    except ValueError as e:
        print(f"[!] {e}", file=sys.stderr)
        sys.exit(2)
    print(token_for_admin(admin, expires_delta=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()
