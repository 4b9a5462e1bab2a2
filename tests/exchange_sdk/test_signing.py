"""
Signing Strategy Tests.

============================================================
PURPOSE
============================================================
Unit tests for the per-exchange signing strategies.

TEST CATEGORIES:
- Query HMAC (Binance): documented vector, recvWindow, methods
- Header HMAC (OKX): timestamp format, prehash, passphrase
- Bearer token (Upbit): claims, query hash, JSON body
- No-op / disabled: no auth material

============================================================
"""

import base64
import hashlib
import hmac
import json
import logging
from decimal import Decimal

import jwt
import pytest

from exchange_sdk import (
    AuthTag,
    BearerTokenStrategy,
    ConstructRequestError,
    Credential,
    DisabledStrategy,
    HeaderHmacStrategy,
    HttpMethod,
    MockClock,
    NoopStrategy,
    Operation,
    QueryHmacStrategy,
    SignerRegistry,
    SigningConfig,
    SigningMethod,
    fixed_nonces,
)
from exchange_sdk.encoding import BodyStyle, EncodingRules
from exchange_sdk.exchanges import binance, okx, upbit


FORM = EncodingRules(body_style=BodyStyle.FORM)
RAW = EncodingRules(body_style=BodyStyle.RAW_QUERY)
UPBIT_RULES = EncodingRules(body_style=BodyStyle.JSON, keep_brackets=True)

DOC_COMBINED = (
    "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC"
    "&quantity=1&price=0.1&recvWindow=5000&timestamp=1499827319559"
)
DOC_SIGNATURE_PREFIX = "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2"


def doc_order() -> Operation:
    return binance.place_order(
        "LTCBTC",
        binance.Side.BUY,
        binance.OrderType.LIMIT,
        quantity=1,
        price=Decimal("0.1"),
        time_in_force=binance.TimeInForce.GTC,
    )


# ============================================================
# QUERY HMAC (BINANCE)
# ============================================================

class TestQueryHmacStrategy:
    """Tests for Binance query signing."""

    def test_documented_vector(self, clock, binance_credential):
        """Test the signature published in the Binance API docs."""
        strategy = QueryHmacStrategy(clock, recv_window_ms=5000)

        payload = strategy.sign(doc_order(), "https://api.binance.com/api/v3/order", binance_credential, FORM)

        assert payload.query.startswith(DOC_COMBINED + "&signature=")
        assert payload.signature.startswith(DOC_SIGNATURE_PREFIX)
        assert len(payload.signature) == 64
        assert payload.signature == payload.signature.lower()

        expected = hmac.new(
            binance_credential.api_secret.encode(),
            DOC_COMBINED.encode(),
            hashlib.sha256,
        ).hexdigest()
        assert payload.signature == expected
        assert payload.query == f"{DOC_COMBINED}&signature={expected}"

    def test_api_key_header(self, clock, binance_credential):
        """Test X-MBX-APIKEY is set on private GET."""
        strategy = QueryHmacStrategy(clock)

        payload = strategy.sign(binance.get_account(), "https://api.binance.com/api/v3/account", binance_credential, FORM)

        assert payload.headers == {"X-MBX-APIKEY": binance_credential.api_key}

    def test_empty_fields_no_leading_ampersand(self, clock, binance_credential):
        """Test signed query of a field-less operation."""
        strategy = QueryHmacStrategy(clock)

        payload = strategy.sign(binance.get_account(), "https://api.binance.com/api/v3/account", binance_credential, FORM)

        assert payload.query.startswith("recvWindow=5000&timestamp=1499827319559&signature=")

    def test_recv_window_configurable(self, clock, binance_credential):
        """Test custom recvWindow is signed."""
        strategy = QueryHmacStrategy(clock, recv_window_ms=10000)

        payload = strategy.sign(binance.get_account(), "https://api.binance.com/api/v3/account", binance_credential, FORM)

        assert "recvWindow=10000" in payload.query
        assert payload.recv_window == 10000

    def test_deterministic_with_fixed_clock(self, clock, binance_credential):
        """Test identical inputs give identical signatures."""
        strategy = QueryHmacStrategy(clock)
        url = "https://api.binance.com/api/v3/order"

        first = strategy.sign(doc_order(), url, binance_credential, FORM)
        second = strategy.sign(doc_order(), url, binance_credential, FORM)

        assert first.query == second.query

    def test_timestamp_sampled_per_call(self, clock, binance_credential):
        """Test a later call signs a later timestamp."""
        strategy = QueryHmacStrategy(clock)
        url = "https://api.binance.com/api/v3/order"

        first = strategy.sign(doc_order(), url, binance_credential, FORM)
        clock.advance(1)
        second = strategy.sign(doc_order(), url, binance_credential, FORM)

        assert first.timestamp == "1499827319559"
        assert second.timestamp == "1499827319560"
        assert first.signature != second.signature

    def test_put_rejected(self, clock, binance_credential):
        """Test methods other than GET/POST/DELETE are rejected."""
        strategy = QueryHmacStrategy(clock)
        op = Operation(
            method=HttpMethod.PUT,
            url="https://api.binance.com/api/v3/userDataStream",
            auth=AuthTag.PRIVATE,
        )

        with pytest.raises(ConstructRequestError):
            strategy.sign(op, op.url, binance_credential, FORM)


# ============================================================
# HEADER HMAC (OKX)
# ============================================================

class TestHeaderHmacStrategy:
    """Tests for OKX header signing."""

    def test_timestamp_format(self):
        """Test ISO-8601 with milliseconds and Z suffix."""
        clock = MockClock(1607418537715)

        assert clock.iso_timestamp() == "2020-12-08T09:08:57.715Z"

    def test_timestamp_pads_milliseconds(self):
        """Test sub-100ms values are zero padded."""
        clock = MockClock(1607418537005)

        assert clock.iso_timestamp() == "2020-12-08T09:08:57.005Z"

    def test_get_signature(self, okx_credential):
        """Test GET prehash includes path and query."""
        strategy = HeaderHmacStrategy(MockClock(1607418537715))
        op = okx.get_balance("BTC")

        payload = strategy.sign(op, op.url, okx_credential, RAW)

        message = "2020-12-08T09:08:57.715ZGET/api/v5/account/balance?ccy=BTC"
        expected = base64.b64encode(
            hmac.new(okx_credential.api_secret.encode(), message.encode(), hashlib.sha256).digest()
        ).decode()
        assert payload.signature == expected
        assert payload.query == "ccy=BTC"

    def test_headers(self, okx_credential):
        """Test all four OK-ACCESS headers."""
        strategy = HeaderHmacStrategy(MockClock(1607418537715))
        op = okx.get_balance()

        payload = strategy.sign(op, op.url, okx_credential, RAW)

        assert payload.headers["OK-ACCESS-KEY"] == okx_credential.api_key
        assert payload.headers["OK-ACCESS-TIMESTAMP"] == "2020-12-08T09:08:57.715Z"
        assert payload.headers["OK-ACCESS-PASSPHRASE"] == okx_credential.passphrase
        assert payload.headers["OK-ACCESS-SIGN"] == payload.signature
        assert len(payload.headers) == 4

    def test_no_query_signs_path_only(self, okx_credential):
        """Test empty query leaves no '?' in the prehash."""
        strategy = HeaderHmacStrategy(MockClock(1607418537715))
        op = okx.get_balance()

        payload = strategy.sign(op, op.url, okx_credential, RAW)

        message = "2020-12-08T09:08:57.715ZGET/api/v5/account/balance"
        expected = base64.b64encode(
            hmac.new(okx_credential.api_secret.encode(), message.encode(), hashlib.sha256).digest()
        ).decode()
        assert payload.signature == expected

    def test_write_signs_path_only(self, okx_credential):
        """Test POST prehash excludes the body-borne query."""
        strategy = HeaderHmacStrategy(MockClock(1607418537715))
        op = Operation(
            method=HttpMethod.POST,
            url="https://aws.okx.com/api/v5/trade/order",
            fields=(("instId", "BTC-USDT"), ("sz", "1")),
            auth=AuthTag.PRIVATE,
        )

        payload = strategy.sign(op, op.url, okx_credential, RAW)

        message = "2020-12-08T09:08:57.715ZPOST/api/v5/trade/order"
        expected = base64.b64encode(
            hmac.new(okx_credential.api_secret.encode(), message.encode(), hashlib.sha256).digest()
        ).decode()
        assert payload.signature == expected
        assert payload.query == "instId=BTC-USDT&sz=1"

    def test_missing_passphrase(self):
        """Test missing passphrase is a construction failure."""
        strategy = HeaderHmacStrategy(MockClock(1607418537715))
        credential = Credential(api_key="k", api_secret="s")
        op = okx.get_balance()

        with pytest.raises(ConstructRequestError, match="passphrase"):
            strategy.sign(op, op.url, credential, RAW)


# ============================================================
# BEARER TOKEN (UPBIT)
# ============================================================

class TestBearerTokenStrategy:
    """Tests for Upbit JWT signing."""

    def _claims(self, payload, credential):
        token = payload.headers["Authorization"].split(" ", 1)[1]
        return jwt.decode(token, credential.api_secret, algorithms=["HS256"])

    def test_claims_without_fields(self, upbit_credential):
        """Test field-less call carries no query hash."""
        strategy = BearerTokenStrategy(fixed_nonces(["nonce-1"]))
        op = upbit.get_accounts()

        payload = strategy.sign(op, op.url, upbit_credential, UPBIT_RULES)
        claims = self._claims(payload, upbit_credential)

        assert payload.headers["Authorization"].startswith("Bearer ")
        assert claims == {"access_key": upbit_credential.api_key, "nonce": "nonce-1"}

    def test_query_hash_over_bracketed_query(self, upbit_credential):
        """Test SHA512 hash covers the bracket-reverted query."""
        strategy = BearerTokenStrategy(fixed_nonces(["nonce-2"]))
        op = upbit.get_orders(
            "KRW-BTC",
            states=[upbit.OrderState.WAIT, upbit.OrderState.WATCH],
        )

        payload = strategy.sign(op, op.url, upbit_credential, UPBIT_RULES)
        claims = self._claims(payload, upbit_credential)

        expected_query = "market=KRW-BTC&states[]=wait&states[]=watch&order_by=desc"
        assert payload.query == expected_query
        assert claims["query_hash"] == hashlib.sha512(expected_query.encode()).hexdigest()
        assert claims["query_hash_alg"] == "SHA512"
        assert claims["nonce"] == "nonce-2"

    def test_write_body_is_json(self, upbit_credential):
        """Test POST carries the JSON encoding while hashing the query encoding."""
        strategy = BearerTokenStrategy(fixed_nonces(["nonce-3"]))
        op = upbit.place_order(
            "KRW-BTC",
            upbit.Side.BUY,
            upbit.OrderType.LIMIT,
            volume=Decimal("0.01"),
            price=Decimal("100"),
        )

        payload = strategy.sign(op, op.url, upbit_credential, UPBIT_RULES)
        claims = self._claims(payload, upbit_credential)

        assert json.loads(payload.json_body) == {
            "market": "KRW-BTC",
            "side": "bid",
            "volume": "0.01",
            "price": "100",
            "ord_type": "limit",
        }
        query = "market=KRW-BTC&side=bid&volume=0.01&price=100&ord_type=limit"
        assert payload.query == query
        assert claims["query_hash"] == hashlib.sha512(query.encode()).hexdigest()

    def test_fresh_nonce_per_call(self, upbit_credential):
        """Test each call draws a new nonce."""
        strategy = BearerTokenStrategy()
        op = upbit.get_accounts()

        first = strategy.sign(op, op.url, upbit_credential, UPBIT_RULES)
        second = strategy.sign(op, op.url, upbit_credential, UPBIT_RULES)

        assert first.nonce != second.nonce


# ============================================================
# DISABLED / NO-OP
# ============================================================

class TestUnsignedStrategies:
    """Tests for strategies that add no auth material."""

    def test_disabled_has_no_headers(self):
        """Test disabled strategy output."""
        op = binance.get_depth("BTCUSDT", limit=5)

        payload = DisabledStrategy().sign(op, op.url, None, FORM)

        assert payload.query == "symbol=BTCUSDT&limit=5"
        assert payload.headers == {}
        assert payload.signature is None
        assert payload.timestamp is None

    def test_noop_private_equals_disabled(self, caplog):
        """Test private operations pass through the no-op signer unsigned."""
        private = Operation(
            method=HttpMethod.POST,
            url="https://api.bithumb.com/info/orders",
            fields=(("count", 10), ("order_currency", "BTC")),
            auth=AuthTag.PRIVATE,
            name="get_orders",
        )
        public = Operation(
            method=HttpMethod.POST,
            url="https://api.bithumb.com/info/orders",
            fields=(("count", 10), ("order_currency", "BTC")),
            name="get_orders",
        )

        with caplog.at_level(logging.DEBUG, logger="exchange_sdk.signing"):
            signed = NoopStrategy().sign(private, private.url, None, RAW)
        unsigned = DisabledStrategy().sign(public, public.url, None, RAW)

        assert signed == unsigned
        assert "unsigned" in caplog.text

    def test_noop_needs_no_credential(self):
        """Test no-op strategy does not require a credential."""
        assert NoopStrategy.requires_credential is False
        assert QueryHmacStrategy.requires_credential is True


class TestSignerRegistry:
    """Tests for strategy selection by tag."""

    def test_disabled_tag_selects_disabled(self):
        """Test DISABLED never reaches the private signer."""
        registry = SignerRegistry(SigningMethod.QUERY_HMAC)

        assert isinstance(registry.select(AuthTag.DISABLED), DisabledStrategy)

    @pytest.mark.parametrize("method, expected", [
        (SigningMethod.QUERY_HMAC, QueryHmacStrategy),
        (SigningMethod.HEADER_HMAC, HeaderHmacStrategy),
        (SigningMethod.BEARER_TOKEN, BearerTokenStrategy),
        (SigningMethod.NONE, NoopStrategy),
    ])
    def test_private_tag_selects_method(self, method, expected):
        """Test PRIVATE maps to the exchange's signing method."""
        registry = SignerRegistry(method, config=SigningConfig(recv_window_ms=3000))

        assert isinstance(registry.select(AuthTag.PRIVATE), expected)
        assert registry.method == method
