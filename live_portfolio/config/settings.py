"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:8080/api"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the valuation server and its feed pollers."""

    app_name: str = "live-portfolio"
    transport_mode: str = "auto"
    http_transport: str = "sse"
    host: str = "0.0.0.0"
    port: int = 8000
    mcp_path: str = "/mcp"
    health_path: str = "/health"
    api_base_url: str = DEFAULT_API_URL
    request_timeout_seconds: float = 60.0
    poll_interval_seconds: float = 15.0
    poll_retries: int = 2
    poll_retry_delay_seconds: float = 1.0
    poll_stale_after_seconds: float = 15.0
    log_level: str = "INFO"


def _as_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _as_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _base_url(value: str | None) -> str:
    clean = (value or "").strip()
    return clean.rstrip("/") if clean else DEFAULT_API_URL


def get_settings() -> Settings:
    """Load runtime settings from environment variables."""
    load_dotenv()
    poll_interval = max(1.0, _as_float(os.getenv("POLL_INTERVAL_SECONDS"), 15.0))

    return Settings(
        app_name=os.getenv("APP_NAME", "live-portfolio"),
        transport_mode=os.getenv("TRANSPORT_MODE", "auto").strip().lower(),
        http_transport=os.getenv("HTTP_TRANSPORT", "sse").strip().lower(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_as_int(os.getenv("PORT"), 8000),
        mcp_path=os.getenv("MCP_PATH", "/mcp"),
        health_path=os.getenv("HEALTH_PATH", "/health"),
        api_base_url=_base_url(os.getenv("PORTFOLIO_API_URL")),
        request_timeout_seconds=max(1.0, _as_float(os.getenv("REQUEST_TIMEOUT_SECONDS"), 60.0)),
        poll_interval_seconds=poll_interval,
        poll_retries=max(0, _as_int(os.getenv("POLL_RETRIES"), 2)),
        poll_retry_delay_seconds=max(0.0, _as_float(os.getenv("POLL_RETRY_DELAY_SECONDS"), 1.0)),
        poll_stale_after_seconds=max(0.0, _as_float(os.getenv("POLL_STALE_AFTER_SECONDS"), poll_interval)),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
