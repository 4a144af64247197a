"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API can start in a development environment without any setup.  In a
production deployment you should at least override ``JWT_SECRET``,
the SMTP credentials and the geocoding API keys.
"""

import os
import re
from dataclasses import dataclass


_DURATION_RE = re.compile(r"^(\d+)\s*([smhd]?)$", re.IGNORECASE)
_UNIT_MINUTES = {"s": 1 / 60, "m": 1, "h": 60, "d": 60 * 24}


def parse_duration_minutes(value: str) -> int:
    """Convert a duration such as ``"24h"`` or ``"30m"`` into minutes.

    A bare number is interpreted as minutes.  Seconds are rounded up so
    that ``"30s"`` still yields a usable one minute lifetime.

    Raises ``ValueError`` for anything else.
    """
    match = _DURATION_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = int(match.group(1)), (match.group(2) or "m").lower()
    minutes = amount * _UNIT_MINUTES[unit]
    return max(1, int(minutes + 0.999))


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Daily Care Admin API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    api_prefix: str = os.getenv("API_PREFIX", "/api")
    debug: bool = _env_bool("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Comma separated list of origins allowed to call the API from a
    # browser (admin panel and public site).  "*" allows any origin.
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")

    secret_key: str = os.getenv("JWT_SECRET", "change_me")
    access_token_expire_minutes: int = parse_duration_minutes(os.getenv("JWT_EXPIRES_IN", "24h"))
    algorithm: str = "HS256"
    token_issuer: str = os.getenv("JWT_ISSUER", "daily-care-api")

    # Path to the SQLite database file.  Relative paths are resolved
    # against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "daily_care.db")

    # When enabled, availability checks reject inputs that are neither a
    # full UK postcode nor a UK outward code.
    strict_uk_postcodes: bool = _env_bool("STRICT_UK_POSTCODES")

    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_secure: bool = _env_bool("SMTP_SECURE")
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_pass: str = os.getenv("SMTP_PASS", "")
    smtp_from: str = os.getenv("SMTP_FROM", "")
    mail_to_address: str = os.getenv("MAIL_TO_ADDRESS", "")
    # Maximum number of seconds the contact endpoint waits for the
    # notification e-mail before answering with ``pending``.
    email_wait_seconds: float = float(os.getenv("EMAIL_WAIT_SECONDS", "2"))

    geoapify_api_key: str = os.getenv("GEOAPIFY_API_KEY", "")
    geoapify_base_url: str = os.getenv("GEOAPIFY_BASE_URL", "https://api.geoapify.com/v1")
    geonames_username: str = os.getenv("GEONAMES_USERNAME", "")
    geonames_base_url: str = os.getenv("GEONAMES_BASE_URL", "http://api.geonames.org")
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

    # Credentials for the account created by the seeder when no admin
    # exists yet.  Change the password right after the first login.
    default_admin_email: str = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@dailycare.com")
    default_admin_password: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
