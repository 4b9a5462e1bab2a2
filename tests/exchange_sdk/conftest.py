"""
Shared fixtures for exchange SDK tests.
"""

import json

import pytest

from exchange_sdk import (
    Credential,
    HttpTransport,
    MockClock,
    WireResponse,
)


# Binance API documentation example key pair
BINANCE_API_KEY = "vmPUZE6mv9SD5VNHk4HlWFsOr6aKE2zvsw0MuIgwCIPy6utIco14y7Ju91duEh8A"
BINANCE_SECRET = "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"
BINANCE_DOC_TIMESTAMP = 1499827319559


class StubTransport(HttpTransport):
    """Records requests and replays queued responses."""

    def __init__(self):
        self.requests = []
        self.closed = False
        self._responses = []

    def queue(self, status: int, body, headers=None) -> None:
        if not isinstance(body, bytes):
            body = json.dumps(body).encode()
        self._responses.append(WireResponse(status=status, body=body, headers=headers or {}))

    async def send(self, request):
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        return WireResponse(status=200, body=b"{}")

    async def close(self):
        self.closed = True

    @property
    def last(self):
        return self.requests[-1]


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def clock():
    return MockClock(BINANCE_DOC_TIMESTAMP)


@pytest.fixture
def binance_credential():
    return Credential(api_key=BINANCE_API_KEY, api_secret=BINANCE_SECRET)


@pytest.fixture
def okx_credential():
    return Credential(api_key="okx-key-0001", api_secret="okx-secret-0001", passphrase="okx-pass")


@pytest.fixture
def upbit_credential():
    return Credential(api_key="upbit-access-key", api_secret="upbit-secret-key-0123456789abcdefghijklmnop")
