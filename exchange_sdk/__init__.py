"""
Exchange SDK.

============================================================
PURPOSE
============================================================
Authenticated request/response pipeline for cryptocurrency exchange
REST APIs (Binance, OKX, Upbit, Bithumb, Crypto.com).

- Per-exchange signing strategies
- Method-dependent wire encoding
- Response unwrapping and error classification
- Middleware chain over an aiohttp transport

============================================================
"""

from .types import (
    HttpMethod,
    AuthTag,
    Credential,
    Operation,
    SignedPayload,
    WireRequest,
    WireResponse,
    Outcome,
)

from .errors import (
    ErrorKind,
    ErrorCategory,
    RetryEligibility,
    Failure,
    PipelineException,
    ConstructRequestError,
    SerializeBodyError,
    TransportError,
    RequestFailedError,
    DeserializeResponseError,
    NotSupportedError,
    classify_exchange_error,
)

from .clock import (
    ClockProtocol,
    SystemClock,
    MockClock,
    uuid4_nonce,
    fixed_nonces,
)

from .config import (
    SigningConfig,
    TransportConfig,
    ClientConfig,
)

from .signing import (
    SigningStrategy,
    SigningMethod,
    SignerRegistry,
    DisabledStrategy,
    QueryHmacStrategy,
    HeaderHmacStrategy,
    BearerTokenStrategy,
    NoopStrategy,
)

from .transport import (
    TransportEncoder,
    HttpTransport,
    AiohttpTransport,
)

from .decoding import (
    ResponseDecoder,
    ErrorSchema,
)

from .middleware import (
    ExchangeRequest,
    ExchangeResponse,
    Pipeline,
    PipelineBuilder,
)

from .exchanges import (
    ExchangeId,
    ExchangeProfile,
    CommonOp,
    Orderbook,
    OrderbookLevel,
    get_profile,
)

from .client import (
    ExchangeClient,
    PrivateExchangeClient,
)

from .logging_utils import (
    RequestLogger,
    mask_value,
    mask_headers,
    mask_params,
    mask_url,
)


__all__ = [
    # Types
    "HttpMethod",
    "AuthTag",
    "Credential",
    "Operation",
    "SignedPayload",
    "WireRequest",
    "WireResponse",
    "Outcome",
    # Errors
    "ErrorKind",
    "ErrorCategory",
    "RetryEligibility",
    "Failure",
    "PipelineException",
    "ConstructRequestError",
    "SerializeBodyError",
    "TransportError",
    "RequestFailedError",
    "DeserializeResponseError",
    "NotSupportedError",
    "classify_exchange_error",
    # Clock
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "uuid4_nonce",
    "fixed_nonces",
    # Config
    "SigningConfig",
    "TransportConfig",
    "ClientConfig",
    # Signing
    "SigningStrategy",
    "SigningMethod",
    "SignerRegistry",
    "DisabledStrategy",
    "QueryHmacStrategy",
    "HeaderHmacStrategy",
    "BearerTokenStrategy",
    "NoopStrategy",
    # Transport
    "TransportEncoder",
    "HttpTransport",
    "AiohttpTransport",
    # Decoding
    "ResponseDecoder",
    "ErrorSchema",
    # Middleware
    "ExchangeRequest",
    "ExchangeResponse",
    "Pipeline",
    "PipelineBuilder",
    # Exchanges
    "ExchangeId",
    "ExchangeProfile",
    "CommonOp",
    "Orderbook",
    "OrderbookLevel",
    "get_profile",
    # Clients
    "ExchangeClient",
    "PrivateExchangeClient",
    # Logging
    "RequestLogger",
    "mask_value",
    "mask_headers",
    "mask_params",
    "mask_url",
]
