"""Shared tool-layer helpers."""

from __future__ import annotations

import json
from typing import Any


def error_payload(error_type: str, message: str) -> dict[str, Any]:
    return {"ok": False, "error": {"type": error_type, "message": message}}


def dump(payload: object) -> str:
    return json.dumps(payload, ensure_ascii=True)
