import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_SERVICE_URL = "https://ai-ra-worker.callierosecarp.workers.dev/"


@dataclass(frozen=True)
class FolioSettings:
    """Externally supplied constants; nothing in the engines hardcodes these."""

    service_url: str = DEFAULT_SERVICE_URL
    unit_interval_ms: float = 30
    log_interval_ms: float = 15
    redact_length: int = 144000
    http_timeout: float = 30
    cors_allow_origins: Optional[str] = None


def _env_number(name: str, default, cast):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> FolioSettings:
    """Builds settings from FOLIO_* environment variables."""
    return FolioSettings(
        service_url=(os.getenv("FOLIO_SERVICE_URL") or "").strip() or DEFAULT_SERVICE_URL,
        unit_interval_ms=_env_number("FOLIO_UNIT_INTERVAL_MS", 30, float),
        log_interval_ms=_env_number("FOLIO_LOG_INTERVAL_MS", 15, float),
        redact_length=_env_number("FOLIO_REDACT_LENGTH", 144000, int),
        http_timeout=_env_number("FOLIO_HTTP_TIMEOUT", 30, float),
        cors_allow_origins=(os.getenv("FOLIO_CORS_ALLOW_ORIGINS") or "").strip() or None,
    )
