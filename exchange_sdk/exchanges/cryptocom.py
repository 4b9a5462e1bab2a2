"""
Crypto.com Exchange Profile (v2).

============================================================
API DOCUMENTATION
============================================================
https://exchange-docs.crypto.com/spot/index.html

AUTHENTICATION
- No signer implemented: private calls go out unsigned

RESPONSES
- Success is any 2xx, payload under "data"
- Error body: {"code": "10004", "message": "BAD_REQUEST"}

============================================================
"""

from typing import Any, Optional

from ..decoding import ErrorSchema, InBandStatus, ResponseDecoder, any_2xx
from ..encoding import BodyStyle, EncodingRules
from ..signing import SigningMethod
from ..types import HttpMethod, Operation
from .base import CommonOp, ExchangeProfile, Orderbook, level_from_pair


EXCHANGE_ID = "cryptocom"

BASE_URL = "https://api.crypto.com/v2"


PROFILE = ExchangeProfile(
    exchange_id=EXCHANGE_ID,
    signing_method=SigningMethod.NONE,
    rules=EncodingRules(body_style=BodyStyle.RAW_QUERY),
    decoder=ResponseDecoder(
        EXCHANGE_ID,
        is_success=any_2xx,
        error_schema=ErrorSchema(code_path=("code",), message_path=("message",)),
        envelope="data",
        in_band_status=InBandStatus(field="code", ok_value="0"),
    ),
    public_ops=frozenset({
        CommonOp.GET_TICKERS,
        CommonOp.GET_TRADES,
        CommonOp.GET_ORDERBOOK,
    }),
)


def parse_book(data: Any) -> Orderbook:
    """data: {"instrument_name": ..., "data": [{"bids": [[p, q, n]], "asks": ..., "t": ...}]}"""
    book = data["data"][0] if "data" in data else data
    return Orderbook(
        bids=[level_from_pair(item) for item in book["bids"]],
        asks=[level_from_pair(item) for item in book["asks"]],
        symbol=data.get("instrument_name"),
        timestamp=book.get("t"),
    )


def get_ticker(instrument_name: Optional[str] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/public/get-ticker",
        fields=(("instrument_name", instrument_name),),
        name="get_ticker",
    )


def get_trades(instrument_name: str) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/public/get-trades",
        fields=(("instrument_name", instrument_name),),
        name="get_trades",
    )


def get_book(instrument_name: str, depth: Optional[int] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/public/get-book",
        fields=(("instrument_name", instrument_name), ("depth", depth)),
        response=parse_book,
        name="get_book",
    )
