"""
Exchange SDK - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the request pipeline.

CRITICAL CONSTRAINTS:
- No retries, no rate limiting in the pipeline
- Timeouts belong to the transport (aiohttp)
- Credentials only from explicit values or the environment

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp
from dotenv import load_dotenv


# ============================================================
# SIGNING CONFIGURATION
# ============================================================

@dataclass
class SigningConfig:
    """
    Signing configuration.
    """

    recv_window_ms: int = 5000
    """Binance recvWindow: maximum accepted age of a signed request."""

    def __post_init__(self):
        if self.recv_window_ms <= 0:
            raise ValueError("recv_window_ms must be positive")


# ============================================================
# TRANSPORT CONFIGURATION
# ============================================================

@dataclass
class TransportConfig:
    """
    Transport configuration.

    Passed straight to aiohttp; the pipeline adds no timeout semantics
    of its own.
    """

    connect_timeout_seconds: float = 5.0
    """Connection timeout."""

    total_timeout_seconds: float = 30.0
    """Total timeout for one request/response cycle."""

    default_headers: Dict[str, str] = field(default_factory=dict)
    """Headers added to every request (e.g. User-Agent)."""

    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.total_timeout_seconds,
            connect=self.connect_timeout_seconds,
        )


# ============================================================
# CLIENT CONFIGURATION
# ============================================================

@dataclass
class ClientConfig:
    """
    Aggregate client configuration.
    """

    signing: SigningConfig = field(default_factory=SigningConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ClientConfig":
        """
        Create config from environment variables.

        Reads EXCHANGE_SDK_RECV_WINDOW_MS, EXCHANGE_SDK_CONNECT_TIMEOUT and
        EXCHANGE_SDK_TOTAL_TIMEOUT after loading a .env file.
        """
        load_dotenv(dotenv_path)

        return cls(
            signing=SigningConfig(
                recv_window_ms=int(os.environ.get("EXCHANGE_SDK_RECV_WINDOW_MS", "5000")),
            ),
            transport=TransportConfig(
                connect_timeout_seconds=float(os.environ.get("EXCHANGE_SDK_CONNECT_TIMEOUT", "5.0")),
                total_timeout_seconds=float(os.environ.get("EXCHANGE_SDK_TOTAL_TIMEOUT", "30.0")),
            ),
        )
