"""
Upbit Exchange Profile.

============================================================
API DOCUMENTATION
============================================================
https://docs.upbit.com/reference

AUTHENTICATION
- Authorization: Bearer <JWT>, HS256 signed with the secret key
- Claims: access_key, nonce (uuid4), query_hash (SHA512), query_hash_alg
- Bracketed list keys (states[]) are hashed and sent unescaped

RESPONSES
- Success is any 2xx, body unwrapped
- Error body: {"error": {"name": "...", "message": "..."}}

============================================================
"""

from enum import Enum
from typing import Any, List, Optional, Sequence

from ..decoding import ErrorSchema, ResponseDecoder, any_2xx
from ..encoding import BodyStyle, EncodingRules
from ..signing import SigningMethod
from ..types import AuthTag, HttpMethod, Operation
from .base import CommonOp, ExchangeProfile, Orderbook, level_from_dict


EXCHANGE_ID = "upbit"

BASE_URL = "https://api.upbit.com"


class Side(Enum):
    BUY = "bid"
    SELL = "ask"


class OrderType(Enum):
    LIMIT = "limit"
    MARKET_BUY = "price"
    MARKET_SELL = "market"


class OrderState(Enum):
    WAIT = "wait"
    WATCH = "watch"
    DONE = "done"
    CANCEL = "cancel"


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


PROFILE = ExchangeProfile(
    exchange_id=EXCHANGE_ID,
    signing_method=SigningMethod.BEARER_TOKEN,
    rules=EncodingRules(body_style=BodyStyle.JSON, keep_brackets=True),
    decoder=ResponseDecoder(
        EXCHANGE_ID,
        is_success=any_2xx,
        error_schema=ErrorSchema(
            code_path=("error", "name"),
            message_path=("error", "message"),
        ),
    ),
    public_ops=frozenset({
        CommonOp.GET_ORDERBOOK,
    }),
    private_ops=frozenset({
        CommonOp.GET_ORDERS,
        CommonOp.PLACE_ORDER,
        CommonOp.CANCEL_ORDER,
        CommonOp.GET_BALANCE,
    }),
)


def parse_orderbooks(data: Any) -> List[Orderbook]:
    """One Orderbook per market, units split into bid and ask levels."""
    books = []
    for item in data:
        units = item["orderbook_units"]
        books.append(Orderbook(
            bids=[level_from_dict(u, "bid_price", "bid_size") for u in units],
            asks=[level_from_dict(u, "ask_price", "ask_size") for u in units],
            symbol=item["market"],
            timestamp=item.get("timestamp"),
        ))
    return books


def get_orderbook(markets: Sequence[str]) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/v1/orderbook",
        fields=(("markets", list(markets)),),
        response=parse_orderbooks,
        name="get_orderbook",
    )


def get_accounts() -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/v1/accounts",
        auth=AuthTag.PRIVATE,
        name="get_accounts",
    )


def place_order(
    market: str,
    side: Side,
    ord_type: OrderType,
    volume=None,
    price=None,
    identifier: Optional[str] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.POST,
        url=f"{BASE_URL}/v1/orders",
        fields=(
            ("market", market),
            ("side", side),
            ("volume", volume),
            ("price", price),
            ("ord_type", ord_type),
            ("identifier", identifier),
        ),
        auth=AuthTag.PRIVATE,
        name="place_order",
    )


def get_orders(
    market: str,
    uuids: Sequence[str] = (),
    identifiers: Sequence[str] = (),
    state: Optional[OrderState] = None,
    states: Optional[Sequence[OrderState]] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    order_by: SortOrder = SortOrder.DESC,
) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/v1/orders",
        fields=(
            ("market", market),
            ("uuids", list(uuids)),
            ("identifiers", list(identifiers)),
            ("state", state),
            ("states", list(states) if states is not None else None),
            ("page", page),
            ("limit", limit),
            ("order_by", order_by),
        ),
        auth=AuthTag.PRIVATE,
        name="get_orders",
    )


def cancel_order(uuid: Optional[str] = None, identifier: Optional[str] = None) -> Operation:
    return Operation(
        method=HttpMethod.DELETE,
        url=f"{BASE_URL}/v1/order",
        fields=(("uuid", uuid), ("identifier", identifier)),
        auth=AuthTag.PRIVATE,
        name="cancel_order",
    )

