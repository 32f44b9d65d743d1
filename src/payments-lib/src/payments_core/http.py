"""
payments_core.http — API Gateway proxy event/response helpers.

Every response carries wildcard CORS headers.  CORS is not a security
boundary here; bearer verification and authorize() are.
"""

from __future__ import annotations

import base64
import binascii
import json
from decimal import Decimal
from typing import Any

from payments_core.exceptions import InvalidInput

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type, idempotency-key"
    ),
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(body, default=_json_default),
    }


def error(status_code: int, message: str) -> dict[str, Any]:
    return response(status_code, {"error": message})


def preflight() -> dict[str, Any]:
    return {"statusCode": 200, "headers": dict(CORS_HEADERS), "body": "ok"}


def http_method(event: dict[str, Any]) -> str:
    method = event.get("httpMethod")
    if not method:
        method = event.get("requestContext", {}).get("http", {}).get("method")
    return str(method or "").upper()


def is_preflight(event: dict[str, Any]) -> bool:
    return http_method(event) == "OPTIONS"


def header(event: dict[str, Any], name: str) -> str | None:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    headers = event.get("headers") or {}
    if not isinstance(headers, dict):
        return None
    for key, value in headers.items():
        if str(key).lower() == wanted and value is not None:
            return str(value)
    return None


def json_body(event: dict[str, Any]) -> dict[str, Any]:
    """Decode the request body; an absent body is an empty object."""
    raw_body = event.get("body")
    if raw_body is None or raw_body == "":
        return {}
    if not isinstance(raw_body, str):
        raise InvalidInput("Request body must be a JSON string")
    if event.get("isBase64Encoded"):
        try:
            raw_body = base64.b64decode(raw_body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise InvalidInput("Malformed request body encoding") from exc
    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError as exc:
        raise InvalidInput("Malformed JSON body") from exc
    if not isinstance(body, dict):
        raise InvalidInput("JSON body must be an object")
    return body


def str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_str(body: dict[str, Any], field: str) -> str:
    value = body.get(field)
    if isinstance(value, (dict, list, bool)):
        raise InvalidInput(f"{field} must be a string")
    text = str_or_none(value)
    if text is None:
        raise InvalidInput(f"{field} required")
    return text
