"""
config.py - Environment configuration for the Mood Journal API

All settings are read once at startup into a frozen Settings object which
is then handed to the components that need it. A local `.env` file is
loaded first (if one can be found); variables already present in the real
environment always win.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv, find_dotenv
import pytz

_logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/New_York"


def _load_env_file() -> None:
    """Load variables from the nearest .env file without overriding real env vars."""
    try:
        env_path = find_dotenv(usecwd=True)
        if env_path:
            load_dotenv(env_path, override=False)
            _logger.debug("Loaded .env from %s", env_path)
    except Exception as e:
        _logger.warning("Error loading .env: %s", e)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _optional(name: str) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    """Typed service configuration. Build with from_env() or pass explicitly in tests."""

    # Google Cloud (Firestore + Vertex AI)
    gcp_project: Optional[str] = None
    gcp_location: str = "us-central1"
    firestore_database: str = "(default)"
    vertex_model_name: str = "gemini-2.0-flash"
    recap_timeout_seconds: float = 60.0

    # Identity provider
    auth_jwks_url: Optional[str] = None
    auth_jwt_secret: Optional[str] = None
    auth_issuer: Optional[str] = None
    auth_audience: Optional[str] = None

    # HTTP server
    cors_enabled: bool = True
    cors_allow_origins: Tuple[str, ...] = ("*",)
    port: int = 5005
    log_level: str = "INFO"

    # Day boundaries for stats and recap freshness
    local_timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self):
        # Raises pytz.UnknownTimeZoneError at startup instead of on the first stats request.
        pytz.timezone(self.local_timezone)

    @property
    def tz(self):
        """The pytz timezone used for calendar-day bucketing."""
        return pytz.timezone(self.local_timezone)

    @classmethod
    def from_env(cls) -> "Settings":
        _load_env_file()
        origins = tuple(
            o.strip() for o in os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
        )
        return cls(
            gcp_project=_optional("GCP_PROJECT"),
            gcp_location=os.environ.get("GCP_LOCATION", "us-central1"),
            firestore_database=os.environ.get("FIRESTORE_DATABASE", "(default)"),
            vertex_model_name=os.environ.get("VERTEX_MODEL_NAME", "gemini-2.0-flash"),
            recap_timeout_seconds=float(os.environ.get("RECAP_TIMEOUT_SECONDS", "60")),
            auth_jwks_url=_optional("AUTH_JWKS_URL"),
            auth_jwt_secret=_optional("AUTH_JWT_SECRET"),
            auth_issuer=_optional("AUTH_ISSUER"),
            auth_audience=_optional("AUTH_AUDIENCE"),
            cors_enabled=_env_flag("CORS_ENABLED", "1"),
            cors_allow_origins=origins or ("*",),
            port=int(os.environ.get("PORT", "5005")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            local_timezone=os.environ.get("LOCAL_TIMEZONE", DEFAULT_TIMEZONE),
        )
