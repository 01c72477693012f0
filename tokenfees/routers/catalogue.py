from typing import Any, Dict

from fastapi import APIRouter

from tokenfees.services.tokens import network_tokens, supported_networks, supported_tokens

router = APIRouter(prefix="/api", tags=["catalogue"])


@router.get("/supported-tokens", summary="List supported tokens")
def list_supported_tokens() -> Dict[str, Any]:
    return {"success": True, "tokens": supported_tokens()}


@router.get("/supported-networks", summary="List supported networks")
def list_supported_networks() -> Dict[str, Any]:
    return {"success": True, "networks": supported_networks()}


@router.get("/networks/{network}/tokens", summary="Tokens supported on a network")
def list_network_tokens(network: str) -> Dict[str, Any]:
    return {"success": True, "network": network.lower(), "tokens": network_tokens(network)}
