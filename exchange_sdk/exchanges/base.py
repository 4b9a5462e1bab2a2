"""
Exchange Profile - Base Definitions.

============================================================
PURPOSE
============================================================
A profile bundles everything the pipeline needs to know about one
exchange: signing method, encoding rules, response decoder and the
common operations it supports.

============================================================
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet, List, Sequence

from ..decoding import ResponseDecoder
from ..encoding import EncodingRules
from ..signing import SigningMethod


# ============================================================
# COMMON OPERATIONS
# ============================================================

class CommonOp(Enum):
    """Exchange-independent operation kinds."""

    GET_TICKERS = "GET_TICKERS"
    GET_TRADES = "GET_TRADES"
    GET_ORDERBOOK = "GET_ORDERBOOK"
    GET_ORDERS = "GET_ORDERS"
    GET_ALL_ORDERS = "GET_ALL_ORDERS"
    PLACE_ORDER = "PLACE_ORDER"
    CANCEL_ORDER = "CANCEL_ORDER"
    CANCEL_ALL_ORDERS = "CANCEL_ALL_ORDERS"
    GET_BALANCE = "GET_BALANCE"
    GET_POSITION = "GET_POSITION"


# ============================================================
# EXCHANGE PROFILE
# ============================================================

@dataclass(frozen=True)
class ExchangeProfile:
    """Per-exchange bundle of signer, encoding rules and decoder."""

    exchange_id: str
    signing_method: SigningMethod
    rules: EncodingRules
    decoder: ResponseDecoder

    public_ops: FrozenSet[CommonOp] = field(default_factory=frozenset)
    """Common operations available without credentials."""

    private_ops: FrozenSet[CommonOp] = field(default_factory=frozenset)
    """Additional common operations available with credentials."""

    def supports(self, op: CommonOp, authenticated: bool) -> bool:
        if op in self.public_ops:
            return True
        return authenticated and op in self.private_ops


# ============================================================
# ORDER BOOK
# ============================================================

@dataclass(frozen=True)
class OrderbookLevel:
    """One price level."""

    price: Decimal
    quantity: Decimal


@dataclass(frozen=True)
class Orderbook:
    """Order book snapshot, bids best-first then asks best-first."""

    bids: List[OrderbookLevel]
    asks: List[OrderbookLevel]
    symbol: str = None
    timestamp: Any = None


def level_from_pair(item: Sequence[Any]) -> OrderbookLevel:
    """[price, quantity, ...] -> OrderbookLevel"""
    if not isinstance(item, (list, tuple)) or len(item) < 2:
        raise TypeError(f"order book level must be a [price, quantity] pair, got {item!r}")
    return OrderbookLevel(price=Decimal(str(item[0])), quantity=Decimal(str(item[1])))


def level_from_dict(item: dict, price_key: str = "price", quantity_key: str = "quantity") -> OrderbookLevel:
    return OrderbookLevel(
        price=Decimal(str(item[price_key])),
        quantity=Decimal(str(item[quantity_key])),
    )
