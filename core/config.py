"""Runtime configuration from environment variables.

A `.env` file at the repository root is loaded on import when present.

Variables:
- LEDGER_BRIDGE_LOG_LEVEL: logging level name (default "INFO")
- LEDGER_BRIDGE_LOG_JSON: "1"/"true" for JSON log lines
- REPORTING_TIMEZONE: IANA zone that offset-bearing timestamps are
  converted to before reporting-day grouping (default: keep as written)
- QBO_ENVIRONMENT: "sandbox" or "production" (default "sandbox")
- QBO_REALM_ID: QuickBooks company (realm) ID
- QBO_ACCESS_TOKEN: bearer token issued by the external auth service
- QBO_TOKEN_EXPIRES_AT: ISO timestamp when the token expires (optional)
- QBO_MINOR_VERSION: API minor version (default "65")
- QBO_TIMEOUT_SECONDS: per-request timeout (default 30)
- QBO_MAX_RETRIES: retries for 429/5xx responses (default 3)
"""

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parents[1] / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _env_datetime(name: str) -> Optional[datetime]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an ISO timestamp, got {value!r}")


@dataclass
class Settings:
    """Process-wide settings."""
    log_level: str = "INFO"
    log_json: bool = False
    reporting_timezone: Optional[str] = None

    qbo_environment: str = "sandbox"
    qbo_realm_id: Optional[str] = None
    qbo_access_token: Optional[str] = None
    qbo_token_expires_at: Optional[datetime] = None
    qbo_minor_version: str = "65"
    qbo_timeout_seconds: int = 30
    qbo_max_retries: int = 3

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        return cls(
            log_level=os.getenv("LEDGER_BRIDGE_LOG_LEVEL", "INFO").strip().upper(),
            log_json=_env_bool("LEDGER_BRIDGE_LOG_JSON"),
            reporting_timezone=os.getenv("REPORTING_TIMEZONE") or None,
            qbo_environment=os.getenv("QBO_ENVIRONMENT", "sandbox").strip().lower(),
            qbo_realm_id=os.getenv("QBO_REALM_ID") or None,
            qbo_access_token=os.getenv("QBO_ACCESS_TOKEN") or None,
            qbo_token_expires_at=_env_datetime("QBO_TOKEN_EXPIRES_AT"),
            qbo_minor_version=os.getenv("QBO_MINOR_VERSION", "65"),
            qbo_timeout_seconds=_env_int("QBO_TIMEOUT_SECONDS", 30),
            qbo_max_retries=_env_int("QBO_MAX_RETRIES", 3),
        )

    @property
    def qbo_configured(self) -> bool:
        """True when enough is set to talk to QuickBooks."""
        return bool(self.qbo_realm_id and self.qbo_access_token)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the cached process settings."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
