"""
Middleware Chain and Client Tests.

============================================================
PURPOSE
============================================================
End-to-end pipeline behaviour over a recording transport.

TEST CATEGORIES:
- Disabled requests: no auth material on any exchange
- Wire encoding: GET vs write rules per exchange
- Private calls: credential checks, unsigned pass-through
- Failure propagation and Outcome
- Client capabilities and lifecycle

============================================================
"""

from decimal import Decimal
from urllib.parse import parse_qsl, urlsplit

import pytest

from exchange_sdk import (
    AuthTag,
    CommonOp,
    ConstructRequestError,
    Credential,
    ErrorKind,
    ExchangeClient,
    HttpMethod,
    MockClock,
    NotSupportedError,
    Operation,
    PipelineBuilder,
    RequestFailedError,
    TransportError,
    fixed_nonces,
)
from exchange_sdk.errors import create_transport_error
from exchange_sdk.exchanges import binance, bithumb, cryptocom, get_profile, okx, upbit


AUTH_HEADERS = {"x-mbx-apikey", "authorization", "ok-access-key", "ok-access-sign",
                "ok-access-timestamp", "ok-access-passphrase"}
AUTH_PARAMS = {"signature", "timestamp", "recvWindow"}

DISABLED_OPS = [
    ("binance", binance.get_depth("BTCUSDT", limit=5)),
    ("okx", okx.get_books("BTC-USDT", size=5)),
    ("upbit", upbit.get_orderbook(["KRW-BTC", "KRW-ETH"])),
    ("bithumb", bithumb.get_orderbook("BTC", "KRW", count=5)),
    ("cryptocom", cryptocom.get_book("BTC_USDT", depth=5)),
]


def make_client(exchange, transport, **kwargs):
    return ExchangeClient(
        exchange,
        transport=transport,
        clock=kwargs.pop("clock", MockClock(1499827319559)),
        nonce_factory=kwargs.pop("nonce_factory", fixed_nonces(f"nonce-{i}" for i in range(100))),
        **kwargs,
    )


# ============================================================
# DISABLED REQUESTS
# ============================================================

class TestDisabledRequests:
    """Tests that public calls carry no authentication material."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exchange, op", DISABLED_OPS)
    async def test_no_auth_material(self, exchange, op, transport):
        """Test no auth header or field, even on a credentialed client."""
        client = make_client(exchange, transport).with_auth(
            Credential(api_key="key-123456", api_secret="secret-123456", passphrase="pass")
        )

        await client.execute(op)

        wire = transport.last
        assert not AUTH_HEADERS & {name.lower() for name in wire.headers}
        params = {key for key, _ in parse_qsl(urlsplit(wire.url).query)}
        assert not AUTH_PARAMS & params
        assert wire.body is None
        assert wire.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_get_without_fields_has_no_question_mark(self, transport):
        """Test empty query leaves the URL untouched."""
        client = make_client("cryptocom", transport)

        await client.execute(cryptocom.get_ticker())

        assert transport.last.url == "https://api.crypto.com/v2/public/get-ticker"

    @pytest.mark.asyncio
    async def test_upbit_brackets_unescaped(self, transport):
        """Test bracketed list keys reach the URL unescaped."""
        client = make_client("upbit", transport)

        await client.execute(upbit.get_orderbook(["KRW-BTC", "KRW-ETH"]))

        assert transport.last.url == (
            "https://api.upbit.com/v1/orderbook?markets[]=KRW-BTC&markets[]=KRW-ETH"
        )

    @pytest.mark.asyncio
    async def test_path_template_filled(self, transport):
        """Test path parameters are filled before sending."""
        client = make_client("bithumb", transport)

        await client.execute(bithumb.get_orderbook("BTC", "KRW", count=5))

        assert transport.last.url == "https://api.bithumb.com/public/orderbook/BTC_KRW?count=5"


# ============================================================
# PRIVATE REQUESTS
# ============================================================

class TestPrivateRequests:
    """Tests for signed calls through the full chain."""

    @pytest.mark.asyncio
    async def test_binance_post_form_body(self, transport, binance_credential):
        """Test Binance writes carry the signed query as a form body."""
        transport.queue(200, {"orderId": 28})
        client = make_client("binance", transport).with_auth(binance_credential)

        result = await client.request(binance.place_order(
            "LTCBTC", binance.Side.BUY, binance.OrderType.LIMIT,
            quantity=1, price=Decimal("0.1"), time_in_force=binance.TimeInForce.GTC,
        ))

        wire = transport.last
        assert result == {"orderId": 28}
        assert wire.method == HttpMethod.POST
        assert wire.url == "https://api.binance.com/api/v3/order"
        assert wire.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert wire.headers["X-MBX-APIKEY"] == binance_credential.api_key
        assert wire.body.decode().startswith(
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1&price=0.1"
            "&recvWindow=5000&timestamp=1499827319559&signature=c8db56825ae71d6d79447849e617115f4a920fa2acdcab2"
        )

    @pytest.mark.asyncio
    async def test_binance_get_signed_in_url(self, transport, binance_credential):
        """Test Binance GET puts the signature in the URL."""
        transport.queue(200, [])
        client = make_client("binance", transport).with_auth(binance_credential)

        await client.request(binance.get_open_orders("LTCBTC"))

        wire = transport.last
        assert wire.body is None
        assert "Content-Type" not in wire.headers
        params = dict(parse_qsl(urlsplit(wire.url).query))
        assert params["symbol"] == "LTCBTC"
        assert params["timestamp"] == "1499827319559"
        assert len(params["signature"]) == 64

    @pytest.mark.asyncio
    async def test_okx_post_raw_query_body(self, transport, okx_credential):
        """Test OKX writes carry the raw query as body."""
        transport.queue(200, {"code": "0", "data": []})
        client = make_client("okx", transport).with_auth(okx_credential)
        op = Operation(
            method=HttpMethod.POST,
            url="https://aws.okx.com/api/v5/trade/cancel-order",
            fields=(("instId", "BTC-USDT"), ("ordId", "123")),
            auth=AuthTag.PRIVATE,
        )

        await client.request(op)

        wire = transport.last
        assert wire.url == "https://aws.okx.com/api/v5/trade/cancel-order"
        assert wire.body == b"instId=BTC-USDT&ordId=123"
        assert "Content-Type" not in wire.headers
        assert wire.headers["OK-ACCESS-TIMESTAMP"] == "2017-07-12T02:41:59.559Z"

    @pytest.mark.asyncio
    async def test_upbit_post_json_body(self, transport, upbit_credential):
        """Test Upbit writes carry JSON with a bearer token."""
        transport.queue(201, {"uuid": "abc"})
        client = make_client("upbit", transport).with_auth(upbit_credential)

        await client.request(upbit.place_order(
            "KRW-BTC", upbit.Side.SELL, upbit.OrderType.LIMIT,
            volume=Decimal("0.01"), price=Decimal("100"),
        ))

        wire = transport.last
        assert wire.headers["Content-Type"] == "application/json"
        assert wire.headers["Authorization"].startswith("Bearer ")
        assert wire.body == b'{"market":"KRW-BTC","side":"ask","volume":"0.01","price":"100","ord_type":"limit"}'

    @pytest.mark.asyncio
    async def test_private_without_credential_not_supported(self, transport):
        """Test a signed exchange refuses private calls on a public client."""
        client = make_client("binance", transport)

        with pytest.raises(NotSupportedError) as exc_info:
            await client.request(binance.get_account())

        assert exc_info.value.failure.exchange_id == "binance"
        assert exc_info.value.failure.operation == "get_account"
        assert transport.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exchange", ["bithumb", "cryptocom"])
    async def test_unsigned_exchange_private_equals_disabled(self, exchange, transport):
        """Test private calls on exchanges without a signer match public ones."""
        fields = (("order_currency", "BTC"), ("payment_currency", "KRW"), ("count", 10))
        url = "https://example.test/info/orders"
        private_op = Operation(method=HttpMethod.POST, url=url, fields=fields, auth=AuthTag.PRIVATE)
        public_op = Operation(method=HttpMethod.POST, url=url, fields=fields)

        public_client = make_client(exchange, transport)
        private_client = public_client.with_auth(Credential(api_key="k-12345", api_secret="s-12345"))

        await public_client.execute(private_op)
        await private_client.execute(private_op)
        await public_client.execute(public_op)

        first, second, third = transport.requests
        assert first == second == third
        assert first.body == b"order_currency=BTC&payment_currency=KRW&count=10"


# ============================================================
# FAILURES
# ============================================================

class TestFailures:
    """Tests for failure propagation."""

    @pytest.mark.asyncio
    async def test_request_failed_propagates(self, transport):
        """Test exchange rejection surfaces as RequestFailedError."""
        transport.queue(400, {"code": -1121, "msg": "Invalid symbol."})
        client = make_client("binance", transport)

        with pytest.raises(RequestFailedError) as exc_info:
            await client.request(binance.get_depth("NOPE"))

        assert exc_info.value.code == "-1121"

    @pytest.mark.asyncio
    async def test_execute_returns_outcome(self, transport):
        """Test execute wraps failures in an Outcome."""
        transport.queue(400, {"code": -1121, "msg": "Invalid symbol."})
        client = make_client("binance", transport)

        outcome = await client.execute(binance.get_depth("NOPE"))

        assert not outcome.ok
        assert outcome.failure.kind == ErrorKind.REQUEST_FAILED
        assert outcome.failure.operation == "get_depth"
        with pytest.raises(RequestFailedError):
            outcome.unwrap()

    @pytest.mark.asyncio
    async def test_execute_success(self, transport):
        """Test execute success value."""
        transport.queue(200, {"code": "0", "data": [{"instId": "BTC-USDT"}]})
        client = make_client("okx", transport)

        outcome = await client.execute(okx.get_ticker("BTC-USDT"))

        assert outcome.ok
        assert outcome.unwrap() == {"instId": "BTC-USDT"}

    @pytest.mark.asyncio
    async def test_transport_error_gets_context(self, transport):
        """Test transport failures gain exchange and operation context."""
        async def failing_send(request):
            raise TransportError(create_transport_error(None, "connection refused"))

        transport.send = failing_send
        client = make_client("okx", transport)

        outcome = await client.execute(okx.get_ticker("BTC-USDT"))

        assert outcome.failure.kind == ErrorKind.TRANSPORT
        assert outcome.failure.exchange_id == "okx"
        assert outcome.failure.operation == "get_ticker"
        assert outcome.failure.is_retryable()

    @pytest.mark.asyncio
    async def test_query_in_base_url(self, transport):
        """Test a base URL with a query fails before sending."""
        client = make_client("binance", transport)
        op = Operation(method=HttpMethod.GET, url="https://api.binance.com/api/v3/depth?symbol=X")

        with pytest.raises(ConstructRequestError):
            await client.request(op)

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_serialize_failure(self, transport):
        """Test unsupported field values fail before sending."""
        client = make_client("cryptocom", transport)
        op = Operation(method=HttpMethod.GET, url="https://x.test/p", fields=(("bad", object()),))

        outcome = await client.execute(op)

        assert outcome.failure.kind == ErrorKind.SERIALIZE_BODY
        assert outcome.failure.exchange_id == "cryptocom"
        assert transport.requests == []


# ============================================================
# BUILDER AND CLIENT
# ============================================================

class TestPipelineBuilder:
    """Tests for PipelineBuilder."""

    @pytest.mark.asyncio
    async def test_build_and_request(self, transport):
        """Test a built pipeline runs a call."""
        transport.queue(200, {"lastUpdateId": 1, "bids": [], "asks": []})
        pipeline = (
            PipelineBuilder(get_profile("binance"))
            .with_transport(transport)
            .with_clock(MockClock(0))
            .build()
        )

        book = await pipeline.request(binance.get_depth("BTCUSDT"))

        assert book.bids == []
        assert pipeline.profile.exchange_id == "binance"


class TestExchangeClient:
    """Tests for client capabilities and lifecycle."""

    def test_unknown_exchange(self, transport):
        """Test unsupported exchange name."""
        with pytest.raises(ValueError, match="Unsupported exchange"):
            ExchangeClient("kraken", transport=transport)

    def test_public_capabilities(self, transport):
        """Test public client supports only public common ops."""
        client = make_client("upbit", transport)

        client.ensure_supported(CommonOp.GET_ORDERBOOK)
        with pytest.raises(NotSupportedError):
            client.ensure_supported(CommonOp.PLACE_ORDER)

    def test_private_capabilities(self, transport, upbit_credential):
        """Test private client adds private common ops."""
        client = make_client("upbit", transport).with_auth(upbit_credential)

        client.ensure_supported(CommonOp.PLACE_ORDER)
        client.ensure_supported(CommonOp.GET_ORDERBOOK)
        with pytest.raises(NotSupportedError):
            client.ensure_supported(CommonOp.GET_POSITION)

    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self, transport):
        """Test async context manager closes the transport."""
        async with ExchangeClient("okx", transport=transport) as client:
            assert client.exchange_id == "okx"

        assert transport.closed is True

    def test_private_client_repr_masks_secret(self, transport, binance_credential):
        """Test credential never appears in cleartext."""
        client = make_client("binance", transport).with_auth(binance_credential)

        text = repr(client)

        assert binance_credential.api_secret not in text
        assert binance_credential.api_key not in text
