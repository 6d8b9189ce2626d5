"""Lectura tolerante del body de `POST /api/emissions`.

Los formularios HTML envían `application/x-www-form-urlencoded`; el resto de
clientes envían JSON. Un body vacío o ilegible se trata como `{}` y la
validación posterior responde "Missing mode".
"""

from __future__ import annotations

import json
import math
from typing import Any
from urllib.parse import parse_qsl

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


def _try_json(text: str) -> Any | None:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        # RecursionError: anidamiento patológico ("[[[[...").
        return None
    return value if isinstance(value, (dict, list)) else None


def coerce_form_value(value: str) -> Any:
    """"true"/"false" -> bool; números -> int/float; el resto se deja igual."""

    if value in ("true", "false"):
        return value == "true"
    stripped = value.strip()
    if not stripped:
        return value
    try:
        number = float(stripped)
    except ValueError:
        return value
    if not math.isfinite(number):
        return value
    if number.is_integer() and stripped.lstrip("+-").isdigit():
        return int(number)
    return number


def parse_form(text: str) -> dict[str, Any]:
    return {key: coerce_form_value(value) for key, value in parse_qsl(text, keep_blank_values=True)}


def parse_request_body(raw: bytes | str, content_type: str | None = None) -> Any:
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    if not text.strip():
        return {}

    ctype = (content_type or "").lower()
    as_json = _try_json(text)
    if as_json is not None:
        return as_json
    if FORM_CONTENT_TYPE in ctype:
        return parse_form(text)
    return {}
