"""Static catalogue constants; response schemas live in models.schemas."""

from .constants import (
    DEFAULT_MARKET_TOKENS,
    NETWORK_TOKENS,
    NETWORKS,
    TOKEN_ALIASES,
    TOKEN_INFO,
)  # re-export

__all__ = [
    "DEFAULT_MARKET_TOKENS",
    "NETWORK_TOKENS",
    "NETWORKS",
    "TOKEN_ALIASES",
    "TOKEN_INFO",
]
