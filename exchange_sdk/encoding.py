"""
Exchange SDK - Field and URL Encoding.

============================================================
PURPOSE
============================================================
Turn an Operation's ordered fields into the exact text that is
signed and transmitted:
- URL query strings (form encoding, declared order)
- JSON bodies
- Path templates with `{name}` placeholders

VALUE RULES
- None           -> skipped
- bool           -> true / false
- Enum           -> its value
- Decimal, float -> plain decimal text (no exponent)
- int/str        -> text
- list/tuple     -> repeated `key[]` (query) or array (JSON)
- anything else  -> SerializeBodyError

============================================================
"""

import json
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Tuple
from urllib.parse import quote, urlencode, urlsplit

from .errors import (
    ConstructRequestError,
    SerializeBodyError,
    create_construct_error,
    create_serialize_error,
)


_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")


class BodyStyle(Enum):
    """How a write (non-GET) request carries its parameters."""

    FORM = "FORM"             # query string, application/x-www-form-urlencoded
    RAW_QUERY = "RAW_QUERY"   # query string, no content type
    JSON = "JSON"             # JSON object, application/json


@dataclass(frozen=True)
class EncodingRules:
    """Per-exchange encoding rules shared by signer and transport encoder."""

    body_style: BodyStyle = BodyStyle.RAW_QUERY
    keep_brackets: bool = False


# ============================================================
# VALUES
# ============================================================

def render_value(key: str, value: Any) -> str:
    """Render one scalar field value as text."""
    if isinstance(value, Enum):
        return render_value(key, value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SerializeBodyError(create_serialize_error(
                f"field '{key}' is not a finite number"
            ))
        # shortest round-trip digits, never exponent notation
        return format(Decimal(repr(value)), "f")
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (int, str)):
        return str(value)
    raise SerializeBodyError(create_serialize_error(
        f"field '{key}' has unsupported type {type(value).__name__}"
    ))


def _json_value(key: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return _json_value(key, value.value)
    if isinstance(value, (list, tuple)):
        return [_json_value(key, item) for item in value if item is not None]
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (bool, int, float, str)):
        return value
    raise SerializeBodyError(create_serialize_error(
        f"field '{key}' has unsupported type {type(value).__name__}"
    ))


def _pairs(fields: Iterable[Tuple[str, Any]]) -> List[Tuple[str, str]]:
    pairs = []
    for key, value in fields:
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            list_key = key if key.endswith("[]") else f"{key}[]"
            pairs.extend(
                (list_key, render_value(key, item)) for item in value if item is not None
            )
        else:
            pairs.append((key, render_value(key, value)))
    return pairs


# ============================================================
# QUERY AND BODY
# ============================================================

def revert_brackets(query: str) -> str:
    """Undo percent-escaping of square brackets (`states%5B%5D` -> `states[]`)."""
    return query.replace("%5B", "[").replace("%5D", "]")


def encode_query(fields: Iterable[Tuple[str, Any]], keep_brackets: bool = False) -> str:
    """
    Form-encode fields in declared order.

    Args:
        fields: Ordered (name, value) pairs
        keep_brackets: Leave `[` and `]` unescaped

    Returns:
        Encoded query without leading '?'
    """
    query = urlencode(_pairs(fields))
    return revert_brackets(query) if keep_brackets else query


def encode_json(fields: Iterable[Tuple[str, Any]]) -> bytes:
    """Encode fields as a compact JSON object, declared order kept."""
    body = {
        key: _json_value(key, value)
        for key, value in fields
        if value is not None
    }
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def append_param(query: str, key: str, value: str) -> str:
    """Append `key=value`, with no leading '&' on an empty query."""
    pair = f"{key}={value}"
    return f"{query}&{pair}" if query else pair


# ============================================================
# URLS
# ============================================================

def fill_path(url: str, path_params: Iterable[Tuple[str, Any]]) -> str:
    """
    Fill `{name}` placeholders from path parameters, percent-quoted.

    Raises:
        ConstructRequestError: Missing parameter or unbalanced braces
    """
    params = dict(path_params)

    def substitute(match: "re.Match") -> str:
        name = match.group(1)
        if not name:
            raise ConstructRequestError(create_construct_error(
                f"empty placeholder in URL template {url}"
            ))
        if params.get(name) is None:
            raise ConstructRequestError(create_construct_error(
                f"missing path parameter '{name}' for {url}"
            ))
        return quote(render_value(name, params[name]), safe="")

    filled = _PLACEHOLDER.sub(substitute, url)
    if "{" in filled or "}" in filled:
        raise ConstructRequestError(create_construct_error(
            f"unbalanced placeholder in URL template {url}"
        ))
    return filled


def ensure_no_query(url: str) -> None:
    """Base URLs must not carry a query; parameters are appended by the encoder."""
    parts = urlsplit(url)
    if parts.query or "?" in url:
        raise ConstructRequestError(create_construct_error(
            f"URL already has a query component: {url}"
        ))
    if not parts.scheme or not parts.netloc:
        raise ConstructRequestError(create_construct_error(
            f"URL is not absolute: {url}"
        ))


def path_and_query(url: str, query: str) -> str:
    """Request target as signed by header-HMAC schemes."""
    path = urlsplit(url).path or "/"
    return f"{path}?{query}" if query else path


def with_query(url: str, query: str) -> str:
    return f"{url}?{query}" if query else url
