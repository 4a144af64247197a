#!/usr/bin/env python3
"""
Apply migrations and load the initial data (default admin, settings,
sample UK locations).

Usage:
    python seed_db.py
"""

from daily_care_api.app.core.config import settings
from daily_care_api.app.core.db import init_db
from daily_care_api.app.core.logging_config import setup_logging
from daily_care_api.app.core.seed import seed_all


if __name__ == "__main__":
    setup_logging(settings.log_level)
    init_db()
    seed_all()
