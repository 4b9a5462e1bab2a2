"""
Exchange SDK - Clients.

============================================================
USAGE
============================================================
```python
async with ExchangeClient("binance") as client:
    book = await client.request(binance.get_depth("BTCUSDT", limit=5))

    private = client.with_auth(Credential.from_env("binance"))
    account = await private.request(binance.get_account())

    outcome = await private.execute(binance.cancel_open_orders("BTCUSDT"))
    if not outcome.ok:
        print(outcome.failure.code, outcome.failure.message)
```

============================================================
"""

import logging
from typing import Any, Optional, Union

from .clock import ClockProtocol, NonceFactory
from .config import ClientConfig
from .errors import NotSupportedError, create_not_supported_error
from .exchanges import ExchangeId, get_profile
from .exchanges.base import CommonOp, ExchangeProfile
from .middleware import Pipeline, PipelineBuilder
from .transport import AiohttpTransport, HttpTransport
from .types import Credential, Operation, Outcome


logger = logging.getLogger(__name__)


class ExchangeClient:
    """
    Public client for one exchange.

    Private operations raise NotSupportedError unless the exchange has no
    signer (they are then sent unsigned).
    """

    def __init__(
        self,
        exchange: Union[ExchangeId, str, ExchangeProfile],
        transport: Optional[HttpTransport] = None,
        config: Optional[ClientConfig] = None,
        clock: Optional[ClockProtocol] = None,
        nonce_factory: Optional[NonceFactory] = None,
    ):
        """
        Initialize client.

        Args:
            exchange: Exchange id, name or profile
            transport: HTTP transport (default: aiohttp)
            config: Client configuration
            clock: Signing clock
            nonce_factory: Nonce source for token signing
        """
        self._profile = get_profile(exchange)
        self._config = config or ClientConfig()
        self._transport = transport or AiohttpTransport(self._config.transport)

        builder = (
            PipelineBuilder(self._profile)
            .with_transport(self._transport)
            .with_signing_config(self._config.signing)
        )
        if clock is not None:
            builder.with_clock(clock)
        if nonce_factory is not None:
            builder.with_nonce_factory(nonce_factory)
        self._pipeline: Pipeline = builder.build()

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def exchange_id(self) -> str:
        return self._profile.exchange_id

    @property
    def profile(self) -> ExchangeProfile:
        return self._profile

    @property
    def credential(self) -> Optional[Credential]:
        return None

    # --------------------------------------------------------
    # CAPABILITIES
    # --------------------------------------------------------

    def supports(self, op: CommonOp) -> bool:
        return self._profile.supports(op, authenticated=self.credential is not None)

    def ensure_supported(self, op: CommonOp) -> None:
        """
        Raises:
            NotSupportedError: If this client cannot perform the operation
        """
        if not self.supports(op):
            raise NotSupportedError(create_not_supported_error(
                self.exchange_id,
                f"{op.value} is not supported by {type(self).__name__} for {self.exchange_id}",
                op.value,
            ))

    # --------------------------------------------------------
    # CALLS
    # --------------------------------------------------------

    async def request(self, operation: Operation) -> Any:
        """Run an operation, raising PipelineException on failure."""
        return await self._pipeline.request(operation, self.credential)

    async def execute(self, operation: Operation) -> Outcome:
        """Run an operation, returning an Outcome."""
        return await self._pipeline.execute(operation, self.credential)

    def with_auth(self, credential: Credential) -> "PrivateExchangeClient":
        """Private client sharing this client's pipeline and transport."""
        logger.debug(f"Private client created for {self.exchange_id}: {credential!r}")
        return PrivateExchangeClient(self, credential)

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    async def close(self) -> None:
        """Close the transport (shared with any with_auth clients)."""
        await self._transport.close()

    async def __aenter__(self) -> "ExchangeClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class PrivateExchangeClient(ExchangeClient):
    """Client holding a credential for private operations."""

    def __init__(self, parent: ExchangeClient, credential: Credential):
        self._profile = parent._profile
        self._config = parent._config
        self._transport = parent._transport
        self._pipeline = parent._pipeline
        self._credential = credential

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    def __repr__(self) -> str:
        return f"PrivateExchangeClient(exchange={self.exchange_id!r}, credential={self._credential!r})"
