from __future__ import annotations

"""Token identity resolution and catalogue lookups.

Pure functions, no I/O. Unknown tokens are passed through unchanged (lower-cased
id, upper-cased symbol) and fail later at the provider boundary.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from tokenfees.models.constants import (
    NETWORK_TOKENS,
    NETWORKS,
    TOKEN_ALIASES,
    TOKEN_INFO,
)


@dataclass(frozen=True)
class TokenRef:
    token_id: str
    symbol: str


# Reverse indexes so provider ids ("ethereum", "bitcoin") resolve to a symbol.
_BY_ID: Dict[str, Dict[str, str]] = {info["id"]: info for info in TOKEN_INFO.values()}
_ALIAS_BY_ID: Dict[str, str] = {token_id: sym for sym, token_id in TOKEN_ALIASES.items()}


def resolve_token(raw: str) -> TokenRef:
    key = (raw or "").strip().lower()
    info = TOKEN_INFO.get(key)
    if info:
        return TokenRef(token_id=info["id"], symbol=info["symbol"])
    if key in TOKEN_ALIASES:
        return TokenRef(token_id=TOKEN_ALIASES[key], symbol=key.upper())
    if key in _ALIAS_BY_ID:
        return TokenRef(token_id=key, symbol=_ALIAS_BY_ID[key].upper())
    info = _BY_ID.get(key)
    if info:
        return TokenRef(token_id=info["id"], symbol=info["symbol"])
    return TokenRef(token_id=key, symbol=key.upper())


def token_logo_url(symbol: str) -> Optional[str]:
    info = TOKEN_INFO.get(symbol.strip().lower())
    return info["logo_url"] if info else None


def supported_tokens() -> List[Dict[str, Any]]:
    return [
        {"id": info["id"], "symbol": info["symbol"], "name": info["name"], "logo_url": info["logo_url"]}
        for info in TOKEN_INFO.values()
    ]


def supported_networks() -> List[Dict[str, Any]]:
    return [{"id": network_id, **config} for network_id, config in NETWORKS.items()]


def network_tokens(network: str) -> List[Dict[str, Any]]:
    symbols = NETWORK_TOKENS.get(network.strip().lower(), [])
    out = []
    for symbol in symbols:
        info = TOKEN_INFO.get(symbol)
        out.append(
            {
                "symbol": symbol,
                "id": info["id"] if info else resolve_token(symbol).token_id,
                "name": info["name"] if info else symbol.upper(),
                "logo_url": info["logo_url"] if info else None,
            }
        )
    return out
