"""
Binance Exchange Profile.

============================================================
API DOCUMENTATION
============================================================
Spot: https://binance-docs.github.io/apidocs/spot/en/
Futures: https://binance-docs.github.io/apidocs/futures/en/

AUTHENTICATION
- X-MBX-APIKEY header
- HMAC-SHA256 hex signature appended to the query
- recvWindow + timestamp signed with the parameters

RESPONSES
- Success is exactly HTTP 200, body unwrapped
- Error body: {"code": -1121, "msg": "Invalid symbol."}

============================================================
"""

from enum import Enum
from typing import Any, Optional

from ..decoding import ErrorSchema, ResponseDecoder, exactly_200
from ..encoding import BodyStyle, EncodingRules
from ..signing import SigningMethod
from ..types import AuthTag, HttpMethod, Operation
from .base import CommonOp, ExchangeProfile, Orderbook, level_from_pair


EXCHANGE_ID = "binance"

SPOT_URL = "https://api.binance.com"
FUTURES_URL = "https://fapi.binance.com"


class Side(Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"
    STOP_LOSS = "STOP_LOSS"
    STOP_LOSS_LIMIT = "STOP_LOSS_LIMIT"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_LIMIT = "TAKE_PROFIT_LIMIT"
    LIMIT_MAKER = "LIMIT_MAKER"


class TimeInForce(Enum):
    GTC = "GTC"
    IOC = "IOC"
    FOK = "FOK"


PROFILE = ExchangeProfile(
    exchange_id=EXCHANGE_ID,
    signing_method=SigningMethod.QUERY_HMAC,
    rules=EncodingRules(body_style=BodyStyle.FORM),
    decoder=ResponseDecoder(
        EXCHANGE_ID,
        is_success=exactly_200,
        error_schema=ErrorSchema(code_path=("code",), message_path=("msg",)),
    ),
    public_ops=frozenset({
        CommonOp.GET_TRADES,
        CommonOp.GET_ORDERBOOK,
    }),
    private_ops=frozenset({
        CommonOp.GET_ORDERS,
        CommonOp.PLACE_ORDER,
        CommonOp.CANCEL_ORDER,
        CommonOp.CANCEL_ALL_ORDERS,
        CommonOp.GET_BALANCE,
        CommonOp.GET_POSITION,
    }),
)


def parse_depth(data: Any) -> Orderbook:
    return Orderbook(
        bids=[level_from_pair(item) for item in data["bids"]],
        asks=[level_from_pair(item) for item in data["asks"]],
        timestamp=data.get("lastUpdateId"),
    )


# ============================================================
# SPOT
# ============================================================

def get_trades(symbol: str, limit: Optional[int] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{SPOT_URL}/api/v3/trades",
        fields=(("symbol", symbol), ("limit", limit)),
        name="get_trades",
    )


def get_depth(symbol: str, limit: Optional[int] = None) -> Operation:
    """Order book, converted to Orderbook."""
    return Operation(
        method=HttpMethod.GET,
        url=f"{SPOT_URL}/api/v3/depth",
        fields=(("symbol", symbol), ("limit", limit)),
        response=parse_depth,
        name="get_depth",
    )


def get_account() -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{SPOT_URL}/api/v3/account",
        auth=AuthTag.PRIVATE,
        name="get_account",
    )


def place_order(
    symbol: str,
    side: Side,
    order_type: OrderType,
    quantity=None,
    price=None,
    time_in_force: Optional[TimeInForce] = None,
    quote_order_qty=None,
    new_client_order_id: Optional[str] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.POST,
        url=f"{SPOT_URL}/api/v3/order",
        fields=(
            ("symbol", symbol),
            ("side", side),
            ("type", order_type),
            ("timeInForce", time_in_force),
            ("quantity", quantity),
            ("quoteOrderQty", quote_order_qty),
            ("price", price),
            ("newClientOrderId", new_client_order_id),
        ),
        auth=AuthTag.PRIVATE,
        name="place_order",
    )


def get_open_orders(symbol: Optional[str] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{SPOT_URL}/api/v3/openOrders",
        fields=(("symbol", symbol),),
        auth=AuthTag.PRIVATE,
        name="get_open_orders",
    )


def cancel_order(
    symbol: str,
    order_id: Optional[int] = None,
    orig_client_order_id: Optional[str] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.DELETE,
        url=f"{SPOT_URL}/api/v3/order",
        fields=(
            ("symbol", symbol),
            ("orderId", order_id),
            ("origClientOrderId", orig_client_order_id),
        ),
        auth=AuthTag.PRIVATE,
        name="cancel_order",
    )


def cancel_open_orders(symbol: str) -> Operation:
    return Operation(
        method=HttpMethod.DELETE,
        url=f"{SPOT_URL}/api/v3/openOrders",
        fields=(("symbol", symbol),),
        auth=AuthTag.PRIVATE,
        name="cancel_open_orders",
    )


# ============================================================
# USD-M FUTURES
# ============================================================

def futures_get_trades(symbol: str, limit: Optional[int] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{FUTURES_URL}/fapi/v1/trades",
        fields=(("symbol", symbol), ("limit", limit)),
        name="futures_get_trades",
    )


def futures_get_depth(symbol: str, limit: Optional[int] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{FUTURES_URL}/fapi/v1/depth",
        fields=(("symbol", symbol), ("limit", limit)),
        response=parse_depth,
        name="futures_get_depth",
    )


def futures_get_balance() -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{FUTURES_URL}/fapi/v2/balance",
        auth=AuthTag.PRIVATE,
        name="futures_get_balance",
    )


def futures_get_position_risk(symbol: Optional[str] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{FUTURES_URL}/fapi/v2/positionRisk",
        fields=(("symbol", symbol),),
        auth=AuthTag.PRIVATE,
        name="futures_get_position_risk",
    )


def futures_place_order(
    symbol: str,
    side: Side,
    order_type: OrderType,
    quantity=None,
    price=None,
    time_in_force: Optional[TimeInForce] = None,
    reduce_only: Optional[bool] = None,
    new_client_order_id: Optional[str] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.POST,
        url=f"{FUTURES_URL}/fapi/v1/order",
        fields=(
            ("symbol", symbol),
            ("side", side),
            ("type", order_type),
            ("timeInForce", time_in_force),
            ("quantity", quantity),
            ("reduceOnly", reduce_only),
            ("price", price),
            ("newClientOrderId", new_client_order_id),
        ),
        auth=AuthTag.PRIVATE,
        name="futures_place_order",
    )


def futures_get_open_order(
    symbol: str,
    order_id: Optional[int] = None,
    orig_client_order_id: Optional[str] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{FUTURES_URL}/fapi/v1/openOrder",
        fields=(
            ("symbol", symbol),
            ("orderId", order_id),
            ("origClientOrderId", orig_client_order_id),
        ),
        auth=AuthTag.PRIVATE,
        name="futures_get_open_order",
    )


def futures_get_open_orders(symbol: Optional[str] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{FUTURES_URL}/fapi/v1/openOrders",
        fields=(("symbol", symbol),),
        auth=AuthTag.PRIVATE,
        name="futures_get_open_orders",
    )


def futures_cancel_order(
    symbol: str,
    order_id: Optional[int] = None,
    orig_client_order_id: Optional[str] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.DELETE,
        url=f"{FUTURES_URL}/fapi/v1/order",
        fields=(
            ("symbol", symbol),
            ("orderId", order_id),
            ("origClientOrderId", orig_client_order_id),
        ),
        auth=AuthTag.PRIVATE,
        name="futures_cancel_order",
    )


def futures_cancel_all_open_orders(symbol: str) -> Operation:
    return Operation(
        method=HttpMethod.DELETE,
        url=f"{FUTURES_URL}/fapi/v1/allOpenOrders",
        fields=(("symbol", symbol),),
        auth=AuthTag.PRIVATE,
        name="futures_cancel_all_open_orders",
    )
