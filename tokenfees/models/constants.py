"""Static token and network catalogue.

Token keys are lower-case user-facing symbols; `id` is the market data
provider identifier (CoinGecko slug).
"""

from typing import Dict, List

TOKEN_INFO: Dict[str, Dict[str, str]] = {
    "eth": {
        "id": "ethereum",
        "symbol": "ETH",
        "name": "Ethereum",
        "logo_url": "https://cryptologos.cc/logos/ethereum-eth-logo.png",
    },
    "usdt": {
        "id": "tether",
        "symbol": "USDT",
        "name": "Tether USD",
        "logo_url": "https://cryptologos.cc/logos/tether-usdt-logo.png",
    },
    "wbtc": {
        "id": "bitcoin",
        "symbol": "WBTC",
        "name": "Wrapped Bitcoin",
        "logo_url": "https://cryptologos.cc/logos/wrapped-bitcoin-wbtc-logo.png",
    },
    "sol": {
        "id": "solana",
        "symbol": "SOL",
        "name": "Solana",
        "logo_url": "https://cryptologos.cc/logos/solana-sol-logo.png",
    },
    "pepe": {
        "id": "pepe",
        "symbol": "PEPE",
        "name": "Pepe",
        "logo_url": "https://cryptologos.cc/logos/pepe-pepe-logo.png",
    },
    "bnb": {
        "id": "binancecoin",
        "symbol": "BNB",
        "name": "BNB",
        "logo_url": "https://cryptologos.cc/logos/bnb-bnb-logo.png",
    },
    "matic": {
        "id": "matic-network",
        "symbol": "MATIC",
        "name": "Polygon",
        "logo_url": "https://cryptologos.cc/logos/polygon-matic-logo.png",
    },
}

# Extra symbol -> provider id aliases with no catalogue entry.
TOKEN_ALIASES: Dict[str, str] = {
    "btc": "bitcoin",
    "avax": "avalanche-2",
    "dot": "polkadot",
    "link": "chainlink",
    "uni": "uniswap",
    "ada": "cardano",
    "doge": "dogecoin",
    "shib": "shiba-inu",
}

NETWORKS: Dict[str, Dict[str, object]] = {
    "ethereum": {
        "name": "Ethereum",
        "mainnet_chain_id": 1,
        "testnet_chain_id": 11155111,
        "logo_url": "https://cryptologos.cc/logos/ethereum-eth-logo.png",
        "native_currency": {"name": "Ether", "symbol": "ETH", "decimals": 18},
    },
    "bsc": {
        "name": "BNB Smart Chain",
        "mainnet_chain_id": 56,
        "testnet_chain_id": 97,
        "logo_url": "https://cryptologos.cc/logos/bnb-bnb-logo.png",
        "native_currency": {"name": "BNB", "symbol": "BNB", "decimals": 18},
    },
    "polygon": {
        "name": "Polygon",
        "mainnet_chain_id": 137,
        "testnet_chain_id": 80001,
        "logo_url": "https://cryptologos.cc/logos/polygon-matic-logo.png",
        "native_currency": {"name": "MATIC", "symbol": "MATIC", "decimals": 18},
    },
}

NETWORK_TOKENS: Dict[str, List[str]] = {
    "ethereum": ["eth", "usdt", "wbtc", "sol", "pepe"],
    "bsc": ["eth", "usdt"],
    "polygon": ["eth", "usdt"],
}

DEFAULT_MARKET_TOKENS: List[str] = ["ethereum", "solana"]
