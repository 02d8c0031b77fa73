"""
Configuration for the GiftBox SDK.

Network definitions ship as ``networks.json`` inside the package; a few
environment variables override them at runtime:

- ``GIFTBOX_RPC_URL``: RPC endpoint for the working network
- ``GIFTBOX_CONTRACT_ADDRESS``: GiftBox contract address
- ``GIFTBOX_ENS_RPC_URL``: mainnet endpoint used for alias resolution
- ``GIFTBOX_CONFIRMATION_TIMEOUT``: seconds to wait for a receipt
- ``GIFTBOX_MAX_RECIPIENTS``: batch size cap
"""
import importlib.resources
import json
import logging
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Alias registries only live on mainnet, whatever network gifts are sent on
ALIAS_NETWORK = "mainnet"
ALIAS_CACHE_TTL = 5 * 60
ALIAS_LOOKUP_CONCURRENCY = 5

DEFAULT_NETWORK = "sepolia"

# Aliases known to resolve, used when the registry cannot be reached
KNOWN_ALIASES: Dict[str, str] = {
    "vitalik.eth": "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
}

SUPPORTED_TOKENS: Dict[str, Dict[str, Any]] = {
    "ETH": {"symbol": "ETH", "decimals": 18, "address": None},
    "PYUSD": {
        "symbol": "PYUSD",
        "decimals": 6,
        "address": {
            "mainnet": "0x6c3ea9036406852006290770BEdFcAbA0e23A0e8",
            "sepolia": "0xCaC524BcA292aaade2DF8A05cC58F0a65B1B3bB9",
        },
    },
    "USDC": {
        "symbol": "USDC",
        "decimals": 6,
        "address": {
            "mainnet": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            "sepolia": "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
        },
    },
}


class NetworkConfig:
    """Access to the packaged network definitions."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions, caching them after the first read.

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        resource = importlib.resources.files("giftbox_sdk").joinpath("networks.json")
        with resource.open("r", encoding="utf-8") as f:
            cls._networks_cache = json.load(f)
        logger.debug(f"Loaded {len(cls._networks_cache)} network definitions")
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get a single network's configuration.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{name}'. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, name: str = DEFAULT_NETWORK) -> str:
        return os.environ.get("GIFTBOX_RPC_URL") or cls.get_network(name)["rpc"]

    @classmethod
    def get_chain_id(cls, name: str = DEFAULT_NETWORK) -> int:
        return int(cls.get_network(name)["chainId"])

    @classmethod
    def get_gift_box_address(cls, name: str = DEFAULT_NETWORK) -> str:
        """
        Get the GiftBox contract address for a network.

        Raises:
            ValueError: If no contract is deployed on the network
        """
        address = os.environ.get("GIFTBOX_CONTRACT_ADDRESS") or cls.get_network(name).get("giftBox")
        if not address:
            raise ValueError(f"No GiftBox contract configured for network '{name}'")
        return address

    @classmethod
    def get_alias_rpc_urls(cls) -> List[str]:
        """RPC endpoints for alias resolution, primary first."""
        network = cls.get_network(ALIAS_NETWORK)
        urls = [network["rpc"], *network.get("backupRpcs", [])]
        override = os.environ.get("GIFTBOX_ENS_RPC_URL")
        if override:
            urls.insert(0, override)
        return urls

    @classmethod
    def get_explorer_tx_url(cls, tx_hash: str, name: str = DEFAULT_NETWORK) -> Optional[str]:
        explorer = cls.get_network(name).get("explorer")
        if not explorer:
            return None
        return f"{explorer.rstrip('/')}/tx/{tx_hash}"


def get_token(symbol: str, network: str = DEFAULT_NETWORK) -> Dict[str, Any]:
    """
    Look up a supported token's symbol, decimals and address on a network.

    Raises:
        ValueError: If the token is unknown or not deployed on the network
    """
    token = SUPPORTED_TOKENS.get(symbol.upper())
    if token is None:
        raise ValueError(f"Unsupported token '{symbol}'")
    address = token["address"]
    if isinstance(address, dict):
        if network not in address:
            raise ValueError(f"Token {symbol} is not available on '{network}'")
        address = address[network]
    return {"symbol": token["symbol"], "decimals": token["decimals"], "address": address}


class BulkConfig(BaseModel):
    """Tunables for batch parsing and sending"""
    max_recipients: int = 100
    default_unlock_hours: int = 24
    default_message: str = "A special gift for you!"
    validation_concurrency: int = ALIAS_LOOKUP_CONCURRENCY
    confirmation_timeout: float = 120.0

    @classmethod
    def from_env(cls) -> "BulkConfig":
        overrides: Dict[str, Any] = {}
        if os.environ.get("GIFTBOX_MAX_RECIPIENTS"):
            overrides["max_recipients"] = int(os.environ["GIFTBOX_MAX_RECIPIENTS"])
        if os.environ.get("GIFTBOX_CONFIRMATION_TIMEOUT"):
            overrides["confirmation_timeout"] = float(os.environ["GIFTBOX_CONFIRMATION_TIMEOUT"])
        return cls(**overrides)
