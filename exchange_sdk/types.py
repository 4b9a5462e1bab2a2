"""
Exchange SDK - Core Types.

============================================================
PURPOSE
============================================================
Value types flowing through the pipeline:

    Operation -> SignedPayload -> WireRequest -> (transport)
              -> WireResponse -> Outcome

Credential is long-lived and shared read-only; everything else is
built once per call and discarded.

============================================================
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConstructRequestError, Failure, create_construct_error, to_exception
from .logging_utils import mask_value


# ============================================================
# ENUMS
# ============================================================

class HttpMethod(Enum):
    """HTTP methods used by the exchange APIs."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class AuthTag(Enum):
    """Authentication requirement of an operation."""

    DISABLED = "DISABLED"
    PRIVATE = "PRIVATE"


# ============================================================
# CREDENTIAL
# ============================================================

@dataclass(frozen=True)
class Credential:
    """
    API credential for one exchange account.

    Never printed in cleartext: repr/str mask every field.
    """

    api_key: str
    api_secret: str
    passphrase: Optional[str] = None  # OKX only

    def __repr__(self) -> str:
        return (
            f"Credential(api_key={mask_value(self.api_key)!r}, "
            f"api_secret='***', "
            f"passphrase={'***' if self.passphrase else None!r})"
        )

    __str__ = __repr__

    @classmethod
    def from_env(cls, exchange_id: str, dotenv_path: Optional[str] = None) -> "Credential":
        """
        Create credential from environment variables.

        Reads <EXCHANGE>_API_KEY, <EXCHANGE>_API_SECRET and
        <EXCHANGE>_PASSPHRASE after loading a .env file.

        Raises:
            ValueError: If key or secret is not set
        """
        load_dotenv(dotenv_path)
        prefix = exchange_id.upper()

        api_key = os.environ.get(f"{prefix}_API_KEY")
        api_secret = os.environ.get(f"{prefix}_API_SECRET")
        if not api_key or not api_secret:
            raise ValueError(f"{prefix}_API_KEY and {prefix}_API_SECRET must be set")

        return cls(
            api_key=api_key,
            api_secret=api_secret,
            passphrase=os.environ.get(f"{prefix}_PASSPHRASE") or None,
        )


# ============================================================
# OPERATION
# ============================================================

Fields = Tuple[Tuple[str, Any], ...]
ResponseConverter = Callable[[Any], Any]


def _as_pairs(value: Any) -> Fields:
    if value is None:
        return ()
    if isinstance(value, Mapping):
        return tuple(value.items())
    return tuple((str(k), v) for k, v in value)


@dataclass(frozen=True)
class Operation:
    """
    One API call before encoding and signing.

    `fields` keeps declaration order, which is the order the parameters
    are encoded (and therefore signed) in. Mapping input keeps insertion
    order. Build a fresh Operation for every call, retries included.
    """

    method: HttpMethod
    url: str
    """Absolute URL template, `{name}` placeholders filled from path_params."""

    fields: Fields = ()
    auth: AuthTag = AuthTag.DISABLED
    path_params: Fields = ()
    response: Optional[ResponseConverter] = None
    """Converter from the unwrapped JSON payload to the typed result."""

    name: str = "request"

    def __post_init__(self):
        object.__setattr__(self, "fields", _as_pairs(self.fields))
        object.__setattr__(self, "path_params", _as_pairs(self.path_params))
        if not isinstance(self.method, HttpMethod):
            try:
                method = HttpMethod(str(self.method).upper())
            except ValueError as e:
                raise ConstructRequestError(create_construct_error(
                    f"unsupported HTTP method {self.method!r}", operation=self.name
                )) from e
            object.__setattr__(self, "method", method)

    @property
    def is_private(self) -> bool:
        return self.auth == AuthTag.PRIVATE


# ============================================================
# SIGNED PAYLOAD
# ============================================================

@dataclass
class SignedPayload:
    """
    Output of a signing strategy.

    `query` is the byte-exact encoded parameter string that is transmitted
    (signature included where the scheme puts it there).
    """

    query: str = ""
    json_body: Optional[bytes] = None
    headers: Dict[str, str] = field(default_factory=dict)

    # Derived values, consumed only during signing
    timestamp: Optional[str] = None
    recv_window: Optional[int] = None
    nonce: Optional[str] = None
    signature: Optional[str] = None


# ============================================================
# WIRE TYPES
# ============================================================

@dataclass
class WireRequest:
    """HTTP request as handed to the transport."""

    method: HttpMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


@dataclass
class WireResponse:
    """HTTP response as returned by the transport."""

    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)


# ============================================================
# OUTCOME
# ============================================================

@dataclass
class Outcome:
    """Final result of a call: typed value or Failure."""

    value: Any = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> Any:
        """Return the value or raise the matching PipelineException."""
        if self.failure is not None:
            raise to_exception(self.failure)
        return self.value

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure) -> "Outcome":
        return cls(failure=failure)
