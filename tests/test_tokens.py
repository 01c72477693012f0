from tokenfees.services.tokens import (
    TokenRef,
    network_tokens,
    resolve_token,
    supported_networks,
    supported_tokens,
    token_logo_url,
)


def test_resolve_catalogue_symbol():
    assert resolve_token("eth") == TokenRef("ethereum", "ETH")
    assert resolve_token("  SOL ") == TokenRef("solana", "SOL")


def test_resolve_alias_without_catalogue_entry():
    assert resolve_token("btc") == TokenRef("bitcoin", "BTC")
    assert resolve_token("Doge") == TokenRef("dogecoin", "DOGE")


def test_resolve_provider_id():
    assert resolve_token("ethereum") == TokenRef("ethereum", "ETH")
    assert resolve_token("bitcoin") == TokenRef("bitcoin", "BTC")


def test_unknown_token_passes_through():
    assert resolve_token(" FooCoin ") == TokenRef("foocoin", "FOOCOIN")


def test_catalogue_lookups():
    symbols = {t["symbol"] for t in supported_tokens()}
    assert {"ETH", "USDT", "SOL"} <= symbols
    assert token_logo_url("ETH").endswith("ethereum-eth-logo.png")
    assert token_logo_url("nope") is None
    assert {n["id"] for n in supported_networks()} == {"ethereum", "bsc", "polygon"}


def test_network_tokens():
    tokens = network_tokens("BSC")
    assert [t["symbol"] for t in tokens] == ["eth", "usdt"]
    assert tokens[0]["id"] == "ethereum"
    assert network_tokens("solana-mainnet") == []
