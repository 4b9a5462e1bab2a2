"""
Exchange SDK - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Secure logging for pipeline calls with:
- Credential masking (API keys, secrets, signatures, tokens)
- Request/response sanitization
- Structured JSON log entries with correlation ids

============================================================
SECURITY REQUIREMENTS
============================================================
1. NEVER log raw API keys or secrets
2. Mask auth headers of every exchange
3. Log bodies only as a short hash

============================================================
"""

import logging
import re
import json
import hashlib
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from dataclasses import dataclass, asdict


logger = logging.getLogger(__name__)


# ============================================================
# SENSITIVE DATA PATTERNS
# ============================================================

# Header names that should be masked
SENSITIVE_HEADERS = {
    "authorization",
    "x-mbx-apikey",
    "ok-access-key",
    "ok-access-passphrase",
    "ok-access-sign",
    "api-key",
    "api-sign",
}

# Parameter names that should be masked
SENSITIVE_PARAMS = {
    "api_key",
    "apikey",
    "secret",
    "secret_key",
    "passphrase",
    "signature",
    "sign",
    "token",
    "access_key",
}


# ============================================================
# MASKING FUNCTIONS
# ============================================================

def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to show at start

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive headers (case-insensitive names)."""
    if not headers:
        return {}

    masked = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            masked[key] = mask_value(str(value))
        else:
            masked[key] = value
    return masked


def mask_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive parameters, recursing into nested dicts."""
    if not params:
        return {}

    masked = {}
    for key, value in params.items():
        if key.lower() in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value)) if value else value
        elif isinstance(value, dict):
            masked[key] = mask_params(value)
        else:
            masked[key] = value
    return masked


_URL_PARAM_PATTERNS = [
    re.compile(f"([?&]{param}=)([^&]+)", re.IGNORECASE)
    for param in sorted(SENSITIVE_PARAMS)
]


def mask_url(url: str) -> str:
    """Mask sensitive query parameters in a URL."""
    if not url:
        return url

    for pattern in _URL_PARAM_PATTERNS:
        url = pattern.sub(lambda m: f"{m.group(1)}***", url)
    return url


def hash_body(body: Optional[bytes]) -> Optional[str]:
    """Short SHA-256 digest of a body, never the body itself."""
    if not body:
        return None
    return hashlib.sha256(body).hexdigest()[:16]


# ============================================================
# LOG ENTRY STRUCTURES
# ============================================================

@dataclass
class RequestLogEntry:
    """Structured log entry for requests."""

    timestamp: str
    exchange_id: str
    operation: str
    method: str
    endpoint: str
    request_id: str

    # Request details (masked)
    headers: Dict[str, str] = None
    body_hash: str = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON logging."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


@dataclass
class ResponseLogEntry:
    """Structured log entry for responses."""

    timestamp: str
    exchange_id: str
    operation: str
    request_id: str

    status_code: int
    latency_ms: float
    success: bool

    error_kind: str = None
    error_code: str = None
    error_message: str = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON logging."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


# ============================================================
# REQUEST LOGGER
# ============================================================

class RequestLogger:
    """
    Secure logger for pipeline calls.

    Every header and URL passes through the masking functions before it
    reaches a log record.
    """

    def __init__(self, exchange_id: str, logger_name: str = None):
        """
        Initialize request logger.

        Args:
            exchange_id: Exchange identifier
            logger_name: Logger name (default: exchange_sdk.<exchange>)
        """
        self._exchange_id = exchange_id
        self._logger = logging.getLogger(logger_name or f"exchange_sdk.{exchange_id}")
        self._request_counter = 0

    def _generate_request_id(self) -> str:
        self._request_counter += 1
        return f"{self._exchange_id}-{self._request_counter}"

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def log_request(
        self,
        operation: str,
        method: str,
        url: str,
        headers: Dict[str, str] = None,
        body: Optional[bytes] = None,
    ) -> str:
        """
        Log outgoing request.

        Returns:
            Request ID for correlation
        """
        request_id = self._generate_request_id()

        entry = RequestLogEntry(
            timestamp=self._now(),
            exchange_id=self._exchange_id,
            operation=operation,
            method=method,
            endpoint=mask_url(url),
            request_id=request_id,
            headers=mask_headers(headers) if headers else None,
            body_hash=hash_body(body),
        )

        self._logger.debug(f"REQUEST: {entry.to_json()}")
        return request_id

    def log_response(
        self,
        operation: str,
        request_id: str,
        status_code: int,
        latency_ms: float,
        success: bool,
        error_kind: str = None,
        error_code: str = None,
        error_message: str = None,
    ) -> None:
        """Log incoming response. Failures go out at WARNING."""
        entry = ResponseLogEntry(
            timestamp=self._now(),
            exchange_id=self._exchange_id,
            operation=operation,
            request_id=request_id,
            status_code=status_code,
            latency_ms=round(latency_ms, 3),
            success=success,
            error_kind=error_kind,
            error_code=error_code,
            error_message=error_message[:200] if error_message else None,
        )

        if success:
            self._logger.debug(f"RESPONSE: {entry.to_json()}")
        else:
            self._logger.warning(f"RESPONSE_ERROR: {entry.to_json()}")
