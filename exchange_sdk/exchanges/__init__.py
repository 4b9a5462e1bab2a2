"""
Exchange profiles and operation catalogs.

Usage:
    from exchange_sdk.exchanges import ExchangeId, get_profile, binance

    profile = get_profile(ExchangeId.BINANCE)
    op = binance.get_depth("BTCUSDT", limit=10)
"""

from enum import Enum
from typing import Dict, Union

from .base import CommonOp, ExchangeProfile, Orderbook, OrderbookLevel
from . import binance, okx, upbit, bithumb, cryptocom


class ExchangeId(Enum):
    """Supported exchange identifiers."""

    BINANCE = "binance"
    OKX = "okx"
    UPBIT = "upbit"
    BITHUMB = "bithumb"
    CRYPTOCOM = "cryptocom"


PROFILES: Dict[ExchangeId, ExchangeProfile] = {
    ExchangeId.BINANCE: binance.PROFILE,
    ExchangeId.OKX: okx.PROFILE,
    ExchangeId.UPBIT: upbit.PROFILE,
    ExchangeId.BITHUMB: bithumb.PROFILE,
    ExchangeId.CRYPTOCOM: cryptocom.PROFILE,
}


def get_profile(exchange: Union[ExchangeId, str, ExchangeProfile]) -> ExchangeProfile:
    """
    Resolve an exchange profile.

    Raises:
        ValueError: If exchange not supported
    """
    if isinstance(exchange, ExchangeProfile):
        return exchange
    try:
        exchange_id = exchange if isinstance(exchange, ExchangeId) else ExchangeId(exchange.lower())
    except ValueError:
        supported = ", ".join(e.value for e in ExchangeId)
        raise ValueError(f"Unsupported exchange: {exchange}. Supported: {supported}")
    return PROFILES[exchange_id]


__all__ = [
    "ExchangeId",
    "ExchangeProfile",
    "CommonOp",
    "Orderbook",
    "OrderbookLevel",
    "PROFILES",
    "get_profile",
    "binance",
    "okx",
    "upbit",
    "bithumb",
    "cryptocom",
]
