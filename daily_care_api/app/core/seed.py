"""
Initial data for a fresh database.

``seed_all`` creates the default super admin (only when no admin
exists), upserts the default settings and inserts a sample set of UK
locations (only when the ``locations`` table is empty).  Each step is
safe to run repeatedly.
"""

import json
import logging
from typing import Any, Dict, List

from .config import settings
from .db import get_cursor
from .security import ROLE_SUPER_ADMIN, hash_password

logger = logging.getLogger(__name__)


DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {
        "key": "popup_config",
        "value": {
            "enabled": True,
            "title": "ON CALL",
            "introText": "We care for you",
            "content": "Temporary Recruitment Agency / Staffing Solutions.",
            "buttonText": "Get Started",
            "showOnce": False,
        },
        "description": "Configuration for the app popup modal",
    },
    {
        "key": "app_maintenance",
        "value": {
            "enabled": False,
            "title": "Maintenance Mode",
            "message": "We are currently performing maintenance. Please check back soon.",
        },
        "description": "App maintenance mode settings",
    },
    {
        "key": "app_config",
        "value": {
            "appName": "Daily Care",
            "version": "1.0.0",
            "supportEmail": "support@dailycare.com",
            "supportPhone": "1-800-CARE",
        },
        "description": "General app configuration",
    },
]

# (name, type, region, county, postcode, latitude, longitude)
SAMPLE_LOCATIONS = [
    ("Westminster", "area", "england", "London", "SW1A 1AA", 51.4994, -0.1347),
    ("Camden", "area", "england", "London", "NW1 0DU", 51.5492, -0.1426),
    ("Greenwich", "area", "england", "London", "SE10 8QY", 51.4825, -0.0076),
    ("Kensington", "area", "england", "London", "SW7 2AZ", 51.5016, -0.1749),
    ("Shoreditch", "area", "england", "London", "E1 6JE", 51.5223, -0.0786),
    ("Manchester City Centre", "area", "england", "Greater Manchester", "M1 1AA", 53.4794, -2.2453),
    ("Salford", "city", "england", "Greater Manchester", "M5 4WT", 53.4875, -2.2901),
    ("Stockport", "town", "england", "Greater Manchester", "SK1 3XE", 53.4106, -2.1575),
    ("Birmingham City Centre", "area", "england", "West Midlands", "B1 1BB", 52.4862, -1.8904),
    ("Edgbaston", "area", "england", "West Midlands", "B15 2TT", 52.4539, -1.9308),
    ("Solihull", "town", "england", "West Midlands", "B91 3DA", 52.4118, -1.7776),
    ("Leeds City Centre", "area", "england", "West Yorkshire", "LS1 4DY", 53.8008, -1.5491),
    ("Headingley", "area", "england", "West Yorkshire", "LS6 1EF", 53.8198, -1.5759),
    ("Liverpool City Centre", "area", "england", "Merseyside", "L1 8JQ", 53.4084, -2.9916),
    ("Wirral", "area", "england", "Merseyside", "CH41 6DY", 53.3727, -3.0738),
    ("Bristol City Centre", "area", "england", "Bristol", "BS1 4DJ", 51.4545, -2.5879),
    ("Clifton", "area", "england", "Bristol", "BS8 3JA", 51.4633, -2.6154),
    ("Sheffield City Centre", "area", "england", "South Yorkshire", "S1 1DA", 53.3811, -1.4701),
    ("Newcastle City Centre", "area", "england", "Tyne and Wear", "NE1 4ST", 54.9783, -1.6174),
    ("Oxford City Centre", "area", "england", "Oxfordshire", "OX1 1DP", 51.7520, -1.2577),
    ("Cambridge City Centre", "area", "england", "Cambridgeshire", "CB2 3QH", 52.2053, 0.1218),
    ("Edinburgh City Centre", "area", "scotland", "Edinburgh", "EH1 1YZ", 55.9533, -3.1883),
    ("Glasgow City Centre", "area", "scotland", "Glasgow", "G1 1XQ", 55.8642, -4.2518),
    ("Cardiff City Centre", "area", "wales", "Cardiff", "CF10 1BH", 51.4816, -3.1791),
    ("Swansea", "city", "wales", "Swansea", "SA1 3SN", 51.6214, -3.9436),
    ("Belfast City Centre", "area", "northern_ireland", "Belfast", "BT1 5GS", 54.5973, -5.9301),
]


def seed_admin() -> bool:
    """Create the default super admin if there is no admin yet."""
    with get_cursor() as cursor:
        if cursor.execute("SELECT id FROM admins LIMIT 1").fetchone():
            return False
        cursor.execute(
            "INSERT INTO admins (full_name, email, password, role) VALUES (?, ?, ?, ?)",
            (
                "Super Admin",
                settings.default_admin_email.lower(),
                hash_password(settings.default_admin_password),
                ROLE_SUPER_ADMIN,
            ),
        )
    logger.warning(
        "Default admin %s created; change its password after the first login", settings.default_admin_email
    )
    return True


def seed_settings() -> int:
    with get_cursor() as cursor:
        for entry in DEFAULT_SETTINGS:
            cursor.execute(
                "INSERT INTO settings (key, value, description) VALUES (?, ?, ?)"
                " ON CONFLICT(key) DO UPDATE SET value = excluded.value, description = excluded.description,"
                " updated_at = CURRENT_TIMESTAMP",
                (entry["key"], json.dumps(entry["value"]), entry["description"]),
            )
    logger.info("Seeded %d settings", len(DEFAULT_SETTINGS))
    return len(DEFAULT_SETTINGS)


def seed_locations() -> int:
    with get_cursor() as cursor:
        if cursor.execute("SELECT id FROM locations LIMIT 1").fetchone():
            logger.info("Locations already exist, skipping seeding")
            return 0
        cursor.executemany(
            "INSERT INTO locations (name, type, region, county, postcode, latitude, longitude) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            SAMPLE_LOCATIONS,
        )
    logger.info("Seeded %d locations", len(SAMPLE_LOCATIONS))
    return len(SAMPLE_LOCATIONS)


def seed_all() -> None:
    seed_admin()
    seed_settings()
    seed_locations()
