"""
Exchange SDK - Response Decoding and Error Classification.

============================================================
PURPOSE
============================================================
Turn a WireResponse into the typed payload or a Failure.

1. Status predicate decides success vs failure
2. Success: JSON parse -> envelope unwrap -> response converter
3. Failure: parse the exchange error schema -> RequestFailed
4. Anything that does not parse -> DeserializeResponse

============================================================
"""

import json
from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Any, Callable, Optional, Tuple

from .errors import (
    DeserializeResponseError,
    RequestFailedError,
    create_deserialize_error,
    create_request_failed,
)
from .types import Operation, WireResponse


StatusPredicate = Callable[[int], bool]


def exactly_200(status: int) -> bool:
    return status == 200


def any_2xx(status: int) -> bool:
    return 200 <= status < 300


_MISSING = object()


def _lookup(data: Any, path: Tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(data, dict) or key not in data:
            return _MISSING
        data = data[key]
    return data


def _as_text(value: Any) -> Optional[str]:
    if value is None or value is _MISSING:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return json.dumps(value)


# ============================================================
# ERROR SCHEMA
# ============================================================

@dataclass(frozen=True)
class ErrorSchema:
    """
    Location of the code and message in an exchange error body.

    Binance: {"code": -1121, "msg": "..."}      -> ("code",), ("msg",)
    Upbit:   {"error": {"name", "message"}}     -> ("error", "name"), ("error", "message")
    """

    code_path: Tuple[str, ...]
    message_path: Tuple[str, ...]

    def parse(self, data: Any) -> Optional[Tuple[Optional[str], Optional[str]]]:
        """Return (code, message), or None if the body does not match."""
        code = _lookup(data, self.code_path)
        message = _lookup(data, self.message_path)
        if code is _MISSING and message is _MISSING:
            return None
        return _as_text(code), _as_text(message)


@dataclass(frozen=True)
class InBandStatus:
    """
    Status field inside a 2xx body (e.g. OKX "code": "0").

    A present field with a value other than `ok_value` is a rejection.
    """

    field: str
    ok_value: str


# ============================================================
# DECODER
# ============================================================

class ResponseDecoder:
    """Per-exchange response decoder."""

    def __init__(
        self,
        exchange_id: str,
        is_success: StatusPredicate,
        error_schema: ErrorSchema,
        envelope: Optional[str] = None,
        in_band_status: Optional[InBandStatus] = None,
    ):
        """
        Initialize decoder.

        Args:
            exchange_id: Exchange identifier
            is_success: Status predicate
            error_schema: Error body schema
            envelope: Success envelope field ("data"), None if unwrapped
            in_band_status: Status field checked inside 2xx bodies
        """
        self._exchange_id = exchange_id
        self._is_success = is_success
        self._error_schema = error_schema
        self._envelope = envelope
        self._in_band_status = in_band_status

    def is_success(self, status: int) -> bool:
        return self._is_success(status)

    def _parse_json(self, response: WireResponse, operation: Operation) -> Any:
        try:
            return json.loads(response.body)
        except (ValueError, UnicodeDecodeError) as e:
            raise DeserializeResponseError(create_deserialize_error(
                self._exchange_id,
                f"invalid JSON body: {e}",
                response.status,
                response.body,
                operation.name,
            )) from e

    def decode(self, response: WireResponse, operation: Operation) -> Any:
        """
        Decode a response.

        Returns:
            Typed payload

        Raises:
            RequestFailedError: Exchange rejected the request
            DeserializeResponseError: Body does not parse as expected
        """
        if not self._is_success(response.status):
            raise self._failure(response, operation)

        data = self._parse_json(response, operation)
        self._check_in_band(data, response, operation)

        if self._envelope is not None:
            if not isinstance(data, dict) or self._envelope not in data:
                raise DeserializeResponseError(create_deserialize_error(
                    self._exchange_id,
                    f"missing '{self._envelope}' envelope",
                    response.status,
                    response.body,
                    operation.name,
                ))
            data = data[self._envelope]

        if operation.response is None:
            return data

        try:
            return operation.response(data)
        except (KeyError, IndexError, TypeError, ValueError, InvalidOperation) as e:
            raise DeserializeResponseError(create_deserialize_error(
                self._exchange_id,
                f"unexpected response shape: {type(e).__name__}: {e}",
                response.status,
                response.body,
                operation.name,
            )) from e

    def _check_in_band(self, data: Any, response: WireResponse, operation: Operation) -> None:
        rule = self._in_band_status
        if rule is None or not isinstance(data, dict) or rule.field not in data:
            return
        if _as_text(data[rule.field]) == rule.ok_value:
            return

        parsed = self._error_schema.parse(data)
        code, message = parsed if parsed else (_as_text(data[rule.field]), None)
        raise RequestFailedError(create_request_failed(
            self._exchange_id, code, message, response.status, operation.name,
        ))

    def _failure(self, response: WireResponse, operation: Operation) -> Exception:
        try:
            data = json.loads(response.body)
        except (ValueError, UnicodeDecodeError):
            data = None

        parsed = self._error_schema.parse(data) if data is not None else None
        if parsed is None:
            return DeserializeResponseError(create_deserialize_error(
                self._exchange_id,
                f"HTTP {response.status} with unrecognized error body",
                response.status,
                response.body,
                operation.name,
            ))

        code, message = parsed
        return RequestFailedError(create_request_failed(
            self._exchange_id, code, message, response.status, operation.name,
        ))
