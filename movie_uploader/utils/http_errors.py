"""HTTP error helpers for extracting movie service error details."""

from __future__ import annotations

import json
from typing import Any

import aiohttp


async def extract_error_detail(response: aiohttp.ClientResponse) -> str | None:
    """Extract error detail from an HTTP error response."""
    try:
        text = await response.text()
    except (aiohttp.ClientError, UnicodeDecodeError):
        return None

    if not text:
        return None

    try:
        payload: Any = json.loads(text)
    except ValueError:
        return text

    if not isinstance(payload, dict):
        return str(payload)

    detail_payload = payload.get("detail", payload)
    if not isinstance(detail_payload, dict):
        return str(detail_payload)

    detail = (
        detail_payload.get("message")
        or detail_payload.get("error")
        or detail_payload.get("exception")
    )
    return str(detail) if detail is not None else None
