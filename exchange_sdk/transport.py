"""
Exchange SDK - Transport.

============================================================
PURPOSE
============================================================
- TransportEncoder: method + SignedPayload -> WireRequest
- HttpTransport: sends a WireRequest, returns a WireResponse
- AiohttpTransport: aiohttp implementation

ENCODING RULES
- GET: query appended to the URL ('?' omitted when empty), no body
- Writes: query as body (form or raw) or JSON body, per exchange
- Accept: application/json on every request

Timeouts, pooling and TLS belong to aiohttp.

============================================================
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp
from yarl import URL

from .config import TransportConfig
from .encoding import BodyStyle, EncodingRules, with_query
from .errors import TransportError, create_transport_error
from .types import HttpMethod, SignedPayload, WireRequest, WireResponse


logger = logging.getLogger(__name__)


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


# ============================================================
# ENCODER
# ============================================================

class TransportEncoder:
    """Builds the WireRequest for one exchange's encoding rules."""

    def __init__(self, rules: EncodingRules):
        self._rules = rules

    def encode(self, method: HttpMethod, url: str, payload: SignedPayload) -> WireRequest:
        headers = {"Accept": "application/json"}
        headers.update(payload.headers)

        if method == HttpMethod.GET:
            return WireRequest(
                method=method,
                url=with_query(url, payload.query),
                headers=headers,
                body=None,
            )

        style = self._rules.body_style
        if style == BodyStyle.JSON:
            headers["Content-Type"] = JSON_CONTENT_TYPE
            body = payload.json_body
        elif style == BodyStyle.FORM:
            headers["Content-Type"] = FORM_CONTENT_TYPE
            body = payload.query.encode()
        else:
            body = payload.query.encode() if payload.query else None

        return WireRequest(method=method, url=url, headers=headers, body=body)


# ============================================================
# TRANSPORT
# ============================================================

class HttpTransport(ABC):
    """Abstract HTTP transport."""

    @abstractmethod
    async def send(self, request: WireRequest) -> WireResponse:
        """
        Send one request.

        Raises:
            TransportError: Connection, TLS or timeout failure
        """
        pass

    async def close(self) -> None:
        pass


class AiohttpTransport(HttpTransport):
    """
    aiohttp transport.

    URLs are passed pre-encoded so the signed query reaches the wire
    byte for byte.
    """

    def __init__(
        self,
        config: TransportConfig = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize transport.

        Args:
            config: Transport configuration
            session: Existing session to reuse (not closed by this transport)
        """
        self._config = config or TransportConfig()
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._config.client_timeout(),
                headers=self._config.default_headers or None,
            )
            self._owns_session = True
            logger.debug("aiohttp session opened")
        return self._session

    async def send(self, request: WireRequest) -> WireResponse:
        session = self._get_session()

        try:
            async with session.request(
                request.method.value,
                URL(request.url, encoded=True),
                headers=request.headers,
                data=request.body,
            ) as resp:
                body = await resp.read()
                return WireResponse(
                    status=resp.status,
                    body=body,
                    headers=dict(resp.headers),
                )
        except aiohttp.ClientError as e:
            raise TransportError(create_transport_error(
                None, f"{type(e).__name__}: {e}"
            )) from e
        except asyncio.TimeoutError as e:
            raise TransportError(create_transport_error(
                None, "request timed out"
            )) from e

    async def close(self) -> None:
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("aiohttp session closed")
        self._session = None
