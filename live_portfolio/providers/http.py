"""HTTP utilities and normalized feed errors."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

import requests
from requests.adapters import HTTPAdapter

from live_portfolio.providers.models import FeedName

FeedErrorCode = Literal["RATE_LIMIT", "AUTH", "NOT_FOUND", "UPSTREAM", "NETWORK", "BAD_RESPONSE"]
RETRIABLE_CODES = {"RATE_LIMIT", "NETWORK", "UPSTREAM", "BAD_RESPONSE"}
GENERIC_ERROR_MESSAGE = "Network error. Please try again."

_SESSION = requests.Session()
_SESSION.mount("https://", HTTPAdapter(pool_connections=10, pool_maxsize=20))
_SESSION.mount("http://", HTTPAdapter(pool_connections=10, pool_maxsize=20))


@dataclass
class FeedError(Exception):
    feed: FeedName
    code: FeedErrorCode
    message: str
    status: int | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def retriable(self) -> bool:
        return self.code in RETRIABLE_CODES


def map_status_to_code(status: int) -> FeedErrorCode:
    if status in {401, 403}:
        return "AUTH"
    if status == 404:
        return "NOT_FOUND"
    if status == 429:
        return "RATE_LIMIT"
    return "UPSTREAM"


def server_error_message(payload: Any) -> str | None:
    """Return the ``error`` field a feed server put in its response body, if any."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    if error is None or isinstance(error, bool):
        return None
    text = str(error).strip()
    return text or None


def request_json(
    method: str,
    url: str,
    feed: FeedName,
    timeout_seconds: float = 60.0,
    json_body: Any = None,
    files: dict[str, Any] | None = None,
) -> Any:
    """Send one request and return parsed JSON, mapping every failure to :class:`FeedError`.

    The error message is the server-supplied ``error`` field when present, else
    the transport error text, else a generic fallback.
    """
    try:
        response = _SESSION.request(method, url, json=json_body, files=files, timeout=timeout_seconds)
    except requests.RequestException as error:
        raise FeedError(feed, "NETWORK", str(error) or GENERIC_ERROR_MESSAGE) from error

    raw = response.text or ""
    parsed: Any = None
    decode_error: json.JSONDecodeError | None = None
    if raw:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as error:
            decode_error = error

    if not response.ok:
        message = server_error_message(parsed) or f"Request failed with status code {response.status_code}"
        raise FeedError(feed, map_status_to_code(response.status_code), message, response.status_code)

    if decode_error is not None:
        raise FeedError(
            feed,
            "BAD_RESPONSE",
            "Feed returned non-JSON content.",
            response.status_code,
        ) from decode_error
    return parsed
