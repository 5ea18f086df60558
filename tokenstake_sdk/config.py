"""
Network configuration for the TokenStake SDK.

Networks are keyed by chain id. The packaged table lives in networks.json;
extra deployments can be registered at runtime.
"""
import os
import json
import logging
import importlib.resources
from typing import Dict, Any, Optional

from .exceptions import UnknownNetwork

logger = logging.getLogger(__name__)


class NetworkConfig:
    """Static lookup over the packaged network table"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load the network table, caching it after the first read.

        Returns:
            Mapping of chain id (as string) to network configuration
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        resource = importlib.resources.files("tokenstake_sdk").joinpath("networks.json")
        with resource.open("r") as f:
            cls._networks_cache = json.load(f)
        logger.debug(f"Loaded {len(cls._networks_cache)} network configurations")
        return cls._networks_cache

    @classmethod
    def register_network(cls, chain_id: int, config: Dict[str, Any]) -> None:
        """
        Add or replace a network entry, e.g. for a private deployment.

        Args:
            chain_id: Numeric chain id
            config: Entry with name, networkName, rpc, token and pools keys
        """
        networks = cls.load_networks()
        networks[str(chain_id)] = config

    @classmethod
    def get_network(cls, chain_id: int) -> Dict[str, Any]:
        """
        Get the configuration for a chain id.

        Raises:
            UnknownNetwork: If the chain id is not configured
        """
        networks = cls.load_networks()
        try:
            return networks[str(chain_id)]
        except KeyError:
            available = ", ".join(sorted(networks.keys()))
            raise UnknownNetwork(
                f"Network with chain id {chain_id} not configured. Available: {available}"
            )

    @classmethod
    def get_network_name(cls, chain_id: int) -> str:
        """Display name used in user-facing messages"""
        network = cls.get_network(chain_id)
        return network.get("networkName") or network["name"]

    @classmethod
    def get_rpc_url(cls, chain_id: int, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL for a chain id.

        Precedence: explicit override, then <NAME>_RPC_URL environment
        variable, then the packaged default.
        """
        if override:
            return override
        network = cls.get_network(chain_id)
        env_var = f"{network['name'].upper().replace('-', '_')}_RPC_URL"
        return os.environ.get(env_var) or network["rpc"]

    @classmethod
    def get_token(cls, chain_id: int) -> Dict[str, Any]:
        """Token entry (symbol, decimals, address) for a chain id"""
        return cls.get_network(chain_id)["token"]

    @classmethod
    def get_pool_addresses(cls, chain_id: int) -> Dict[str, str]:
        """Pool selector to contract address mapping for a chain id"""
        return cls.get_network(chain_id).get("pools", {})
