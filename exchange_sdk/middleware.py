"""
Exchange SDK - Middleware Chain.

============================================================
PURPOSE
============================================================
Three ordered stages around the transport:

    ExchangeTypingStage     Operation -> ExchangeRequest, unwraps ExchangeResponse
        AuthenticationStage     path fill, strategy by AuthTag, sign
            RawTransportStage       encode, send, decode

CRITICAL CONSTRAINTS:
- Failures propagate unchanged (context is only added, never replaced)
- No retry, no re-signing, no circuit breaking
- One request/response cycle per call, no shared mutable state

============================================================
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from .clock import ClockProtocol, NonceFactory
from .config import SigningConfig, TransportConfig
from .encoding import ensure_no_query, fill_path
from .errors import (
    NotSupportedError,
    PipelineException,
    TransportError,
    create_not_supported_error,
)
from .exchanges.base import ExchangeProfile
from .logging_utils import RequestLogger
from .signing import SignerRegistry
from .transport import AiohttpTransport, HttpTransport, TransportEncoder
from .types import Credential, Operation, Outcome, SignedPayload


logger = logging.getLogger(__name__)


# ============================================================
# STAGE MESSAGES
# ============================================================

@dataclass
class ExchangeRequest:
    """Operation tagged with the exchange it is sent to."""

    profile: ExchangeProfile
    operation: Operation
    credential: Optional[Credential] = None


@dataclass
class ExchangeResponse:
    """Typed result tagged with the exchange it came from."""

    profile: ExchangeProfile
    operation: Operation
    value: Any


# ============================================================
# RAW TRANSPORT STAGE
# ============================================================

class RawTransportStage:
    """Encodes the signed payload, sends it and decodes the response."""

    def __init__(self, transport: HttpTransport, request_logger: RequestLogger):
        self._transport = transport
        self._logger = request_logger

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    async def handle(self, request: ExchangeRequest, url: str, payload: SignedPayload) -> Any:
        profile = request.profile
        operation = request.operation

        wire = TransportEncoder(profile.rules).encode(operation.method, url, payload)

        request_id = self._logger.log_request(
            operation=operation.name,
            method=wire.method.value,
            url=wire.url,
            headers=wire.headers,
            body=wire.body,
        )
        start_time = time.monotonic()

        try:
            response = await self._transport.send(wire)
        except TransportError as e:
            self._logger.log_response(
                operation=operation.name,
                request_id=request_id,
                status_code=0,
                latency_ms=(time.monotonic() - start_time) * 1000,
                success=False,
                error_kind=e.failure.kind.value,
                error_message=e.failure.detail,
            )
            raise

        latency_ms = (time.monotonic() - start_time) * 1000

        try:
            value = profile.decoder.decode(response, operation)
        except PipelineException as e:
            self._logger.log_response(
                operation=operation.name,
                request_id=request_id,
                status_code=response.status,
                latency_ms=latency_ms,
                success=False,
                error_kind=e.failure.kind.value,
                error_code=e.failure.code,
                error_message=e.failure.message or e.failure.detail,
            )
            raise

        self._logger.log_response(
            operation=operation.name,
            request_id=request_id,
            status_code=response.status,
            latency_ms=latency_ms,
            success=True,
        )
        return value


# ============================================================
# AUTHENTICATION STAGE
# ============================================================

class AuthenticationStage:
    """Selects the signing strategy by AuthTag and applies it."""

    def __init__(self, signers: SignerRegistry, inner: RawTransportStage):
        self._signers = signers
        self._inner = inner

    async def handle(self, request: ExchangeRequest) -> Any:
        operation = request.operation

        url = fill_path(operation.url, operation.path_params)
        ensure_no_query(url)

        strategy = self._signers.select(operation.auth)
        if strategy.requires_credential and request.credential is None:
            raise NotSupportedError(create_not_supported_error(
                request.profile.exchange_id,
                f"{operation.name} is private and this client has no credential",
                operation.name,
            ))

        payload = strategy.sign(operation, url, request.credential, request.profile.rules)
        return await self._inner.handle(request, url, payload)


# ============================================================
# EXCHANGE TYPING STAGE
# ============================================================

class ExchangeTypingStage:
    """Outermost stage: exchange tagging and failure context."""

    def __init__(self, profile: ExchangeProfile, inner: AuthenticationStage):
        self._profile = profile
        self._inner = inner

    async def handle(self, operation: Operation, credential: Optional[Credential] = None) -> ExchangeResponse:
        request = ExchangeRequest(self._profile, operation, credential)
        try:
            value = await self._inner.handle(request)
        except PipelineException as e:
            failure = e.failure
            if failure.exchange_id is None:
                failure.exchange_id = self._profile.exchange_id
            if failure.operation is None:
                failure.operation = operation.name
            raise
        return ExchangeResponse(self._profile, operation, value)


# ============================================================
# PIPELINE
# ============================================================

class Pipeline:
    """Composed middleware chain for one exchange."""

    def __init__(self, profile: ExchangeProfile, entry: ExchangeTypingStage, transport: HttpTransport):
        self._profile = profile
        self._entry = entry
        self._transport = transport

    @property
    def profile(self) -> ExchangeProfile:
        return self._profile

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    async def request(self, operation: Operation, credential: Optional[Credential] = None) -> Any:
        """
        Run one call.

        Returns:
            Typed payload

        Raises:
            PipelineException: Subclass matching the failure kind
        """
        response = await self._entry.handle(operation, credential)
        return response.value

    async def execute(self, operation: Operation, credential: Optional[Credential] = None) -> Outcome:
        """Run one call, returning an Outcome instead of raising."""
        try:
            return Outcome.success(await self.request(operation, credential))
        except PipelineException as e:
            return Outcome.fail(e.failure)

    async def close(self) -> None:
        await self._transport.close()


# ============================================================
# PIPELINE BUILDER
# ============================================================

class PipelineBuilder:
    """
    Builder for constructing exchange pipelines.
    """

    def __init__(self, profile: ExchangeProfile):
        """
        Initialize builder.

        Args:
            profile: Exchange profile
        """
        self._profile = profile
        self._transport: Optional[HttpTransport] = None
        self._transport_config: Optional[TransportConfig] = None
        self._clock: Optional[ClockProtocol] = None
        self._nonce_factory: Optional[NonceFactory] = None
        self._signing_config: Optional[SigningConfig] = None
        self._request_logger: Optional[RequestLogger] = None

    def with_transport(self, transport: HttpTransport) -> "PipelineBuilder":
        """Set the transport."""
        self._transport = transport
        return self

    def with_transport_config(self, config: TransportConfig) -> "PipelineBuilder":
        """Set config for the default aiohttp transport."""
        self._transport_config = config
        return self

    def with_clock(self, clock: ClockProtocol) -> "PipelineBuilder":
        """Set the signing clock."""
        self._clock = clock
        return self

    def with_nonce_factory(self, nonce_factory: NonceFactory) -> "PipelineBuilder":
        """Set the nonce factory."""
        self._nonce_factory = nonce_factory
        return self

    def with_signing_config(self, config: SigningConfig) -> "PipelineBuilder":
        """Set signing config."""
        self._signing_config = config
        return self

    def with_request_logger(self, request_logger: RequestLogger) -> "PipelineBuilder":
        """Set the request logger."""
        self._request_logger = request_logger
        return self

    def build(self) -> Pipeline:
        """Build the pipeline."""
        transport = self._transport or AiohttpTransport(self._transport_config)
        request_logger = self._request_logger or RequestLogger(self._profile.exchange_id)
        signers = SignerRegistry(
            self._profile.signing_method,
            clock=self._clock,
            nonce_factory=self._nonce_factory,
            config=self._signing_config,
        )

        raw = RawTransportStage(transport, request_logger)
        auth = AuthenticationStage(signers, raw)
        entry = ExchangeTypingStage(self._profile, auth)

        logger.debug(
            f"Built pipeline for {self._profile.exchange_id} "
            f"(signing={self._profile.signing_method.value})"
        )
        return Pipeline(self._profile, entry, transport)
