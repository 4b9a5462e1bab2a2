"""
Exchange SDK - Error Handling and Classification.

============================================================
PURPOSE
============================================================
Uniform failure representation for the request pipeline:
- One Failure value for every stage of the pipeline
- Distinct error kinds so callers can tell "the exchange said no"
  from "we could not reach it" from "we could not read the answer"
- Coarse classification of exchange error codes
- Retry hints for the wrapping layer (the pipeline never retries)

============================================================
ERROR KINDS
============================================================
1. CONSTRUCT_REQUEST     - URL/method assembly failed
2. SERIALIZE_BODY        - Field set could not be encoded
3. TRANSPORT             - Connection/TLS/timeout from the transport
4. REQUEST_FAILED        - Exchange rejected the request
5. DESERIALIZE_RESPONSE  - Response body did not match expected type
6. NOT_SUPPORTED         - Operation not available on this client

============================================================
"""

from enum import Enum
from typing import Optional, Dict, Any, Tuple
from dataclasses import dataclass


# ============================================================
# ERROR TAXONOMY
# ============================================================

class ErrorKind(Enum):
    """Pipeline stage error kinds."""

    CONSTRUCT_REQUEST = "CONSTRUCT_REQUEST"
    SERIALIZE_BODY = "SERIALIZE_BODY"
    TRANSPORT = "TRANSPORT"
    REQUEST_FAILED = "REQUEST_FAILED"
    DESERIALIZE_RESPONSE = "DESERIALIZE_RESPONSE"
    NOT_SUPPORTED = "NOT_SUPPORTED"


class ErrorCategory(Enum):
    """Classification of exchange-reported failures."""

    NETWORK = "NETWORK"
    AUTHENTICATION = "AUTHENTICATION"
    TIMESTAMP = "TIMESTAMP"
    RATE_LIMIT = "RATE_LIMIT"
    INVALID_REQUEST = "INVALID_REQUEST"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    EXCHANGE_ERROR = "EXCHANGE_ERROR"
    UNKNOWN = "UNKNOWN"


class RetryEligibility(Enum):
    """Hint for the caller. The pipeline itself never retries."""

    RETRY = "RETRY"           # Safe to retry with a fresh operation
    NO_RETRY = "NO_RETRY"     # Should not retry
    BACKOFF = "BACKOFF"       # Retry with exponential backoff


# ============================================================
# FAILURE
# ============================================================

@dataclass
class Failure:
    """
    Uniform failure value.

    `code` and `message` are exactly what the exchange supplied (None when
    the exchange schema has no such field or the failure happened locally).
    `detail` is our own description.
    """

    kind: ErrorKind
    detail: str

    # Exchange-supplied
    code: Optional[str] = None
    message: Optional[str] = None

    # Classification
    category: ErrorCategory = ErrorCategory.UNKNOWN
    retry_eligible: RetryEligibility = RetryEligibility.NO_RETRY

    # Context
    http_status: Optional[int] = None
    exchange_id: Optional[str] = None
    operation: Optional[str] = None
    body_preview: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "detail": self.detail,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retry_eligible": self.retry_eligible.value,
            "http_status": self.http_status,
            "exchange_id": self.exchange_id,
            "operation": self.operation,
        }

    def is_retryable(self) -> bool:
        """Check if a fresh attempt may succeed."""
        return self.retry_eligible in (RetryEligibility.RETRY, RetryEligibility.BACKOFF)

    def __str__(self) -> str:
        if self.kind == ErrorKind.REQUEST_FAILED:
            return (
                f"[{self.kind.value}] {self.exchange_id}: "
                f"code={self.code}, message={self.message}"
            )
        return f"[{self.kind.value}] {self.detail}"


# ============================================================
# EXCEPTIONS
# ============================================================

class PipelineException(Exception):
    """Exception wrapper for Failure."""

    kind: ErrorKind = ErrorKind.CONSTRUCT_REQUEST

    def __init__(self, failure: Failure):
        self.failure = failure
        super().__init__(str(failure))

    @property
    def code(self) -> Optional[str]:
        return self.failure.code

    @property
    def message(self) -> Optional[str]:
        return self.failure.message


class ConstructRequestError(PipelineException):
    kind = ErrorKind.CONSTRUCT_REQUEST


class SerializeBodyError(PipelineException):
    kind = ErrorKind.SERIALIZE_BODY


class TransportError(PipelineException):
    kind = ErrorKind.TRANSPORT


class RequestFailedError(PipelineException):
    kind = ErrorKind.REQUEST_FAILED


class DeserializeResponseError(PipelineException):
    kind = ErrorKind.DESERIALIZE_RESPONSE


class NotSupportedError(PipelineException):
    kind = ErrorKind.NOT_SUPPORTED


_EXCEPTION_BY_KIND = {
    ErrorKind.CONSTRUCT_REQUEST: ConstructRequestError,
    ErrorKind.SERIALIZE_BODY: SerializeBodyError,
    ErrorKind.TRANSPORT: TransportError,
    ErrorKind.REQUEST_FAILED: RequestFailedError,
    ErrorKind.DESERIALIZE_RESPONSE: DeserializeResponseError,
    ErrorKind.NOT_SUPPORTED: NotSupportedError,
}


def to_exception(failure: Failure) -> PipelineException:
    """Wrap a Failure in the exception class matching its kind."""
    return _EXCEPTION_BY_KIND[failure.kind](failure)


# ============================================================
# EXCHANGE CODE CLASSIFICATION
# ============================================================

Classification = Tuple[ErrorCategory, RetryEligibility]

BINANCE_ERROR_MAP: Dict[str, Classification] = {
    "-1003": (ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF),
    "-1015": (ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF),
    "-1002": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "-1022": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "-2014": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "-2015": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    # Timestamp outside recvWindow: re-sign with a fresh operation
    "-1021": (ErrorCategory.TIMESTAMP, RetryEligibility.RETRY),
    "-1100": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "-1102": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "-1121": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "-2010": (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    "-2011": (ErrorCategory.ORDER_NOT_FOUND, RetryEligibility.NO_RETRY),
    "-2013": (ErrorCategory.ORDER_NOT_FOUND, RetryEligibility.NO_RETRY),
    "-1000": (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY),
    "-1001": (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY),
}

OKX_ERROR_MAP: Dict[str, Classification] = {
    "50011": (ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF),
    "50013": (ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF),
    "50102": (ErrorCategory.TIMESTAMP, RetryEligibility.RETRY),
    "50103": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "50104": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "50105": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "50111": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "50112": (ErrorCategory.TIMESTAMP, RetryEligibility.RETRY),
    "50113": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "51000": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "51008": (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    "51603": (ErrorCategory.ORDER_NOT_FOUND, RetryEligibility.NO_RETRY),
    "50000": (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY),
    "50001": (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY),
}

UPBIT_ERROR_MAP: Dict[str, Classification] = {
    "invalid_query_payload": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "jwt_verification": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "expired_access_key": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "no_authorization_i_p": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "out_of_scope": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "nonce_used": (ErrorCategory.TIMESTAMP, RetryEligibility.RETRY),
    "insufficient_funds_bid": (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    "insufficient_funds_ask": (ErrorCategory.INSUFFICIENT_FUNDS, RetryEligibility.NO_RETRY),
    "order_not_found": (ErrorCategory.ORDER_NOT_FOUND, RetryEligibility.NO_RETRY),
    "validation_error": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
}

BITHUMB_ERROR_MAP: Dict[str, Classification] = {
    "5100": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "5200": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "5300": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "5302": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "5400": (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY),
    "5500": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "5900": (ErrorCategory.EXCHANGE_ERROR, RetryEligibility.NO_RETRY),
}

CRYPTOCOM_ERROR_MAP: Dict[str, Classification] = {
    "10002": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "10003": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "10004": (ErrorCategory.INVALID_REQUEST, RetryEligibility.NO_RETRY),
    "10006": (ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF),
    "40101": (ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY),
    "40102": (ErrorCategory.TIMESTAMP, RetryEligibility.RETRY),
}

ERROR_MAPS: Dict[str, Dict[str, Classification]] = {
    "binance": BINANCE_ERROR_MAP,
    "okx": OKX_ERROR_MAP,
    "upbit": UPBIT_ERROR_MAP,
    "bithumb": BITHUMB_ERROR_MAP,
    "cryptocom": CRYPTOCOM_ERROR_MAP,
}


def classify_exchange_error(
    exchange_id: str,
    code: Optional[str],
    http_status: Optional[int] = None,
) -> Classification:
    """
    Classify an exchange error code.

    Falls back to the HTTP status when the code is unknown.

    Args:
        exchange_id: Exchange identifier
        code: Exchange error code as text
        http_status: HTTP status code

    Returns:
        (category, retry eligibility)
    """
    table = ERROR_MAPS.get(exchange_id, {})

    if code is not None and code in table:
        return table[code]
    if http_status in (418, 429):
        return ErrorCategory.RATE_LIMIT, RetryEligibility.BACKOFF
    if http_status in (401, 403):
        return ErrorCategory.AUTHENTICATION, RetryEligibility.NO_RETRY
    if http_status is not None and http_status >= 500:
        return ErrorCategory.EXCHANGE_ERROR, RetryEligibility.RETRY
    return ErrorCategory.UNKNOWN, RetryEligibility.NO_RETRY


# ============================================================
# FAILURE HELPERS
# ============================================================

def create_request_failed(
    exchange_id: str,
    code: Optional[str],
    message: Optional[str],
    http_status: int,
    operation: str = None,
) -> Failure:
    """Create a failure for an exchange-rejected request."""
    category, retry = classify_exchange_error(exchange_id, code, http_status)
    return Failure(
        kind=ErrorKind.REQUEST_FAILED,
        detail=f"{exchange_id} rejected request with HTTP {http_status}",
        code=code,
        message=message,
        category=category,
        retry_eligible=retry,
        http_status=http_status,
        exchange_id=exchange_id,
        operation=operation,
    )


def create_transport_error(
    exchange_id: str,
    message: str,
    operation: str = None,
) -> Failure:
    """Create transport (network) failure."""
    return Failure(
        kind=ErrorKind.TRANSPORT,
        detail=message,
        category=ErrorCategory.NETWORK,
        retry_eligible=RetryEligibility.RETRY,
        exchange_id=exchange_id,
        operation=operation,
    )


def create_deserialize_error(
    exchange_id: str,
    message: str,
    http_status: int,
    body: bytes = b"",
    operation: str = None,
) -> Failure:
    """Create failure for an unreadable response body."""
    return Failure(
        kind=ErrorKind.DESERIALIZE_RESPONSE,
        detail=message,
        http_status=http_status,
        exchange_id=exchange_id,
        operation=operation,
        body_preview=body[:200].decode("utf-8", errors="replace") if body else None,
    )


def create_construct_error(
    message: str,
    exchange_id: str = None,
    operation: str = None,
) -> Failure:
    """Create request construction failure."""
    return Failure(
        kind=ErrorKind.CONSTRUCT_REQUEST,
        detail=message,
        exchange_id=exchange_id,
        operation=operation,
    )


def create_serialize_error(
    message: str,
    exchange_id: str = None,
    operation: str = None,
) -> Failure:
    """Create body serialization failure."""
    return Failure(
        kind=ErrorKind.SERIALIZE_BODY,
        detail=message,
        exchange_id=exchange_id,
        operation=operation,
    )


def create_not_supported_error(
    exchange_id: str,
    message: str,
    operation: str = None,
) -> Failure:
    """Create capability failure."""
    return Failure(
        kind=ErrorKind.NOT_SUPPORTED,
        detail=message,
        exchange_id=exchange_id,
        operation=operation,
    )
