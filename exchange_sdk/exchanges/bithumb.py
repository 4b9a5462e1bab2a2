"""
Bithumb Exchange Profile.

============================================================
API DOCUMENTATION
============================================================
https://apidocs.bithumb.com/

AUTHENTICATION
- No signer implemented: private calls go out unsigned

RESPONSES
- Success is any 2xx, payload under "data"
- A 2xx body with "status" other than "0000" is a rejection
- Error body: {"status": "5600", "message": "..."}

============================================================
"""

from enum import Enum
from typing import Any, Optional

from ..decoding import ErrorSchema, InBandStatus, ResponseDecoder, any_2xx
from ..encoding import BodyStyle, EncodingRules
from ..signing import SigningMethod
from ..types import AuthTag, HttpMethod, Operation
from .base import CommonOp, ExchangeProfile, Orderbook, level_from_dict


EXCHANGE_ID = "bithumb"

BASE_URL = "https://api.bithumb.com"


class OrderType(Enum):
    BID = "bid"
    ASK = "ask"


class TradeKind(Enum):
    PLACE = "place"
    MARKET_BUY = "market_buy"
    MARKET_SELL = "market_sell"


PROFILE = ExchangeProfile(
    exchange_id=EXCHANGE_ID,
    signing_method=SigningMethod.NONE,
    rules=EncodingRules(body_style=BodyStyle.RAW_QUERY),
    decoder=ResponseDecoder(
        EXCHANGE_ID,
        is_success=any_2xx,
        error_schema=ErrorSchema(code_path=("status",), message_path=("message",)),
        envelope="data",
        in_band_status=InBandStatus(field="status", ok_value="0000"),
    ),
    public_ops=frozenset({
        CommonOp.GET_ORDERBOOK,
    }),
)


def parse_orderbook(data: Any) -> Orderbook:
    return Orderbook(
        bids=[level_from_dict(item) for item in data["bids"]],
        asks=[level_from_dict(item) for item in data["asks"]],
        symbol=f"{data['order_currency']}_{data['payment_currency']}",
        timestamp=data.get("timestamp"),
    )


def get_orderbook(
    order_currency: str,
    payment_currency: str,
    count: Optional[int] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/public/orderbook/{{order_currency}}_{{payment_currency}}",
        fields=(("count", count),),
        path_params=(
            ("order_currency", order_currency),
            ("payment_currency", payment_currency),
        ),
        response=parse_orderbook,
        name="get_orderbook",
    )


def get_orderbook_all(payment_currency: str, count: Optional[int] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/public/orderbook/ALL_{{payment_currency}}",
        fields=(("count", count),),
        path_params=(("payment_currency", payment_currency),),
        name="get_orderbook_all",
    )


def get_orders(
    order_currency: str,
    payment_currency: str,
    count: int = 100,
    order_id: Optional[str] = None,
    order_type: Optional[OrderType] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.POST,
        url=f"{BASE_URL}/info/orders",
        fields=(
            ("order_id", order_id),
            ("type", order_type),
            ("count", count),
            ("order_currency", order_currency),
            ("payment_currency", payment_currency),
        ),
        auth=AuthTag.PRIVATE,
        name="get_orders",
    )


def get_order_detail(order_id: str, order_currency: str, payment_currency: str) -> Operation:
    return Operation(
        method=HttpMethod.POST,
        url=f"{BASE_URL}/info/order_detail",
        fields=(
            ("order_id", order_id),
            ("order_currency", order_currency),
            ("payment_currency", payment_currency),
        ),
        auth=AuthTag.PRIVATE,
        name="get_order_detail",
    )


def trade(
    kind: TradeKind,
    order_currency: str,
    payment_currency: str,
    units,
    price=None,
    order_type: Optional[OrderType] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.POST,
        url=f"{BASE_URL}/trade/{{kind}}",
        fields=(
            ("order_currency", order_currency),
            ("payment_currency", payment_currency),
            ("units", units),
            ("price", price),
            ("type", order_type),
        ),
        path_params=(("kind", kind),),
        auth=AuthTag.PRIVATE,
        name="trade",
    )


def cancel_order(
    order_type: OrderType,
    order_id: str,
    order_currency: str,
    payment_currency: str,
) -> Operation:
    return Operation(
        method=HttpMethod.POST,
        url=f"{BASE_URL}/trade/cancel",
        fields=(
            ("type", order_type),
            ("order_id", order_id),
            ("order_currency", order_currency),
            ("payment_currency", payment_currency),
        ),
        auth=AuthTag.PRIVATE,
        name="cancel_order",
    )
