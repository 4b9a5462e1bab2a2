"""
Exchange SDK - Signing Strategies.

============================================================
PURPOSE
============================================================
Convert an Operation plus a Credential into a SignedPayload.

STRATEGIES
- DisabledStrategy     : public calls, no auth material at all
- QueryHmacStrategy    : Binance, HMAC-SHA256 hex appended to the query
- HeaderHmacStrategy   : OKX, HMAC-SHA256 base64 in OK-ACCESS-* headers
- BearerTokenStrategy  : Upbit, HS256 JWT with SHA512 query hash
- NoopStrategy         : Bithumb / Crypto.com, pass-through

SECURITY
- Signatures are computed over the final encoded bytes
- Time and nonce are sampled once per call

============================================================
"""

import base64
import hashlib
import hmac
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import jwt

from .clock import ClockProtocol, NonceFactory, SystemClock, uuid4_nonce
from .config import SigningConfig
from .encoding import (
    BodyStyle,
    EncodingRules,
    append_param,
    encode_json,
    encode_query,
    path_and_query,
)
from .errors import ConstructRequestError, create_construct_error
from .types import AuthTag, Credential, HttpMethod, Operation, SignedPayload


logger = logging.getLogger(__name__)


# ============================================================
# STRATEGY BASE
# ============================================================

class SigningStrategy(ABC):
    """Base class for signing strategies."""

    requires_credential: bool = True

    @abstractmethod
    def sign(
        self,
        operation: Operation,
        url: str,
        credential: Optional[Credential],
        rules: EncodingRules,
    ) -> SignedPayload:
        """
        Sign one call.

        Args:
            operation: Operation to sign
            url: Absolute URL, path parameters filled, no query
            credential: Credential (None for public calls)
            rules: Exchange encoding rules

        Returns:
            SignedPayload
        """
        pass

    @staticmethod
    def _unsigned(operation: Operation, rules: EncodingRules) -> SignedPayload:
        query = encode_query(operation.fields, keep_brackets=rules.keep_brackets)
        json_body = None
        if rules.body_style == BodyStyle.JSON and operation.method != HttpMethod.GET:
            json_body = encode_json(operation.fields)
        return SignedPayload(query=query, json_body=json_body)


class DisabledStrategy(SigningStrategy):
    """Public operations: encoded fields only, no auth header or field."""

    requires_credential = False

    def sign(self, operation, url, credential, rules):
        return self._unsigned(operation, rules)


class NoopStrategy(SigningStrategy):
    """
    Exchanges without an implemented signer.

    Private calls go out exactly like public ones.
    """

    requires_credential = False

    def sign(self, operation, url, credential, rules):
        if operation.is_private:
            logger.debug(
                f"{operation.name}: no signer for this exchange, "
                f"sending private operation unsigned"
            )
        return self._unsigned(operation, rules)


# ============================================================
# QUERY HMAC (BINANCE)
# ============================================================

class QueryHmacStrategy(SigningStrategy):
    """
    HMAC-SHA256 over the flattened query, signature appended.

    Binance signature: HEX(HMAC-SHA256(query + recvWindow + timestamp))
    """

    ALLOWED_METHODS = (HttpMethod.GET, HttpMethod.POST, HttpMethod.DELETE)

    def __init__(self, clock: ClockProtocol, recv_window_ms: int = 5000):
        self._clock = clock
        self._recv_window_ms = recv_window_ms

    @staticmethod
    def signature(secret: str, message: str) -> str:
        return hmac.new(
            secret.encode(),
            message.encode(),
            hashlib.sha256,
        ).hexdigest()

    def sign(self, operation, url, credential, rules):
        if operation.method not in self.ALLOWED_METHODS:
            raise ConstructRequestError(create_construct_error(
                f"method {operation.method.value} is not supported by query signing"
            ))

        timestamp = self._clock.now_ms()

        query = encode_query(operation.fields, keep_brackets=rules.keep_brackets)
        query = append_param(query, "recvWindow", str(self._recv_window_ms))
        query = append_param(query, "timestamp", str(timestamp))

        signature = self.signature(credential.api_secret, query)

        return SignedPayload(
            query=append_param(query, "signature", signature),
            headers={"X-MBX-APIKEY": credential.api_key},
            timestamp=str(timestamp),
            recv_window=self._recv_window_ms,
            signature=signature,
        )


# ============================================================
# HEADER HMAC (OKX)
# ============================================================

class HeaderHmacStrategy(SigningStrategy):
    """
    HMAC-SHA256 over timestamp + method + request target, in headers.

    OKX signature: BASE64(HMAC-SHA256(timestamp + METHOD + path?query))
    """

    def __init__(self, clock: ClockProtocol):
        self._clock = clock

    @staticmethod
    def signature(secret: str, message: str) -> str:
        digest = hmac.new(
            secret.encode(),
            message.encode(),
            hashlib.sha256,
        ).digest()
        return base64.b64encode(digest).decode()

    def sign(self, operation, url, credential, rules):
        if not credential.passphrase:
            raise ConstructRequestError(create_construct_error(
                "OK-ACCESS-PASSPHRASE requires a credential passphrase"
            ))

        query = encode_query(operation.fields, keep_brackets=rules.keep_brackets)
        timestamp = self._clock.iso_timestamp()

        # Writes carry the query as body; only GET puts it in the target
        target = path_and_query(url, query if operation.method == HttpMethod.GET else "")
        message = f"{timestamp}{operation.method.value}{target}"
        signature = self.signature(credential.api_secret, message)

        return SignedPayload(
            query=query,
            headers={
                "OK-ACCESS-KEY": credential.api_key,
                "OK-ACCESS-TIMESTAMP": timestamp,
                "OK-ACCESS-PASSPHRASE": credential.passphrase,
                "OK-ACCESS-SIGN": signature,
            },
            timestamp=timestamp,
            signature=signature,
        )


# ============================================================
# BEARER TOKEN (UPBIT)
# ============================================================

class BearerTokenStrategy(SigningStrategy):
    """
    HS256 JWT carrying a SHA512 hash of the encoded query.

    The token covers the query encoding; a write transmits the JSON
    encoding of the same fields.
    """

    def __init__(self, nonce_factory: NonceFactory = uuid4_nonce):
        self._nonce_factory = nonce_factory

    def sign(self, operation, url, credential, rules):
        payload = self._unsigned(operation, rules)
        nonce = self._nonce_factory()

        claims = {
            "access_key": credential.api_key,
            "nonce": nonce,
        }
        if payload.query:
            claims["query_hash"] = hashlib.sha512(payload.query.encode()).hexdigest()
            claims["query_hash_alg"] = "SHA512"

        token = jwt.encode(claims, credential.api_secret, algorithm="HS256")

        payload.headers = {"Authorization": f"Bearer {token}"}
        payload.nonce = nonce
        payload.signature = token
        return payload


# ============================================================
# REGISTRY
# ============================================================

class SigningMethod(Enum):
    """Closed set of private signing schemes."""

    QUERY_HMAC = "QUERY_HMAC"
    HEADER_HMAC = "HEADER_HMAC"
    BEARER_TOKEN = "BEARER_TOKEN"
    NONE = "NONE"


class SignerRegistry:
    """
    Strategy lookup by AuthTag.

    DISABLED always maps to DisabledStrategy; PRIVATE maps to the
    strategy built for the exchange's SigningMethod.
    """

    def __init__(
        self,
        method: SigningMethod,
        clock: ClockProtocol = None,
        nonce_factory: NonceFactory = None,
        config: SigningConfig = None,
    ):
        clock = clock or SystemClock()
        nonce_factory = nonce_factory or uuid4_nonce
        config = config or SigningConfig()

        self._method = method
        self._disabled = DisabledStrategy()
        self._private = build_strategy(method, clock, nonce_factory, config)

    @property
    def method(self) -> SigningMethod:
        return self._method

    def select(self, tag: AuthTag) -> SigningStrategy:
        if tag == AuthTag.PRIVATE:
            return self._private
        return self._disabled


def build_strategy(
    method: SigningMethod,
    clock: ClockProtocol,
    nonce_factory: NonceFactory,
    config: SigningConfig,
) -> SigningStrategy:
    """Build the private strategy for a signing method."""
    if method == SigningMethod.QUERY_HMAC:
        return QueryHmacStrategy(clock, config.recv_window_ms)
    if method == SigningMethod.HEADER_HMAC:
        return HeaderHmacStrategy(clock)
    if method == SigningMethod.BEARER_TOKEN:
        return BearerTokenStrategy(nonce_factory)
    return NoopStrategy()
