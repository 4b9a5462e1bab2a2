"""
OKX Exchange Profile.

============================================================
API DOCUMENTATION
============================================================
https://www.okx.com/docs-v5/en/

AUTHENTICATION
- OK-ACCESS-KEY, OK-ACCESS-SIGN, OK-ACCESS-TIMESTAMP, OK-ACCESS-PASSPHRASE
- Signature: BASE64(HMAC-SHA256(timestamp + METHOD + requestPath))

RESPONSES
- Success is any 2xx, payload under "data"
- A 2xx body with "code" other than "0" is a rejection
- Error body: {"code": "50011", "msg": "..."}

============================================================
"""

from enum import Enum
from typing import Any, Optional

from ..decoding import ErrorSchema, InBandStatus, ResponseDecoder, any_2xx
from ..encoding import BodyStyle, EncodingRules
from ..signing import SigningMethod
from ..types import AuthTag, HttpMethod, Operation
from .base import CommonOp, ExchangeProfile, Orderbook, level_from_pair


EXCHANGE_ID = "okx"

BASE_URL = "https://aws.okx.com"


class InstType(Enum):
    SPOT = "SPOT"
    SWAP = "SWAP"
    FUTURES = "FUTURES"
    OPTION = "OPTION"


PROFILE = ExchangeProfile(
    exchange_id=EXCHANGE_ID,
    signing_method=SigningMethod.HEADER_HMAC,
    rules=EncodingRules(body_style=BodyStyle.RAW_QUERY),
    decoder=ResponseDecoder(
        EXCHANGE_ID,
        is_success=any_2xx,
        error_schema=ErrorSchema(code_path=("code",), message_path=("msg",)),
        envelope="data",
        in_band_status=InBandStatus(field="code", ok_value="0"),
    ),
    public_ops=frozenset({
        CommonOp.GET_TICKERS,
        CommonOp.GET_ORDERBOOK,
    }),
    private_ops=frozenset({
        CommonOp.GET_BALANCE,
    }),
)


def parse_books(data: Any) -> Orderbook:
    """data: [{"asks": [[px, sz, "0", numOrders]], "bids": [...], "ts": "..."}]"""
    book = data[0]
    return Orderbook(
        bids=[level_from_pair(item) for item in book["bids"]],
        asks=[level_from_pair(item) for item in book["asks"]],
        timestamp=book.get("ts"),
    )


def get_ticker(inst_id: str) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/api/v5/market/ticker",
        fields=(("instId", inst_id),),
        response=lambda data: data[0],
        name="get_ticker",
    )


def get_tickers(
    inst_type: InstType,
    underlying: Optional[str] = None,
    inst_family: Optional[str] = None,
) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/api/v5/market/tickers",
        fields=(
            ("instType", inst_type),
            ("uly", underlying),
            ("instFamily", inst_family),
        ),
        name="get_tickers",
    )


def get_books(inst_id: str, size: Optional[int] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/api/v5/market/books",
        fields=(("instId", inst_id), ("sz", size)),
        response=parse_books,
        name="get_books",
    )


def get_balance(ccy: Optional[str] = None) -> Operation:
    return Operation(
        method=HttpMethod.GET,
        url=f"{BASE_URL}/api/v5/account/balance",
        fields=(("ccy", ccy),),
        auth=AuthTag.PRIVATE,
        response=lambda data: data[0],
        name="get_balance",
    )
