"""
Contract lookup for the active network.

The gateway maps a pool selector to the staking contract handle and returns
the token contract handle. It performs no I/O.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .abi import ERC20_ABI, STAKING_ABI
from .config import NetworkConfig
from .exceptions import UnknownPool


@dataclass(frozen=True)
class ContractHandle:
    """Address + ABI pair the transport binds calls against"""
    address: Optional[str]
    abi: List[Dict[str, Any]]
    label: str = ""


@dataclass(frozen=True)
class PoolHandle(ContractHandle):
    selector: str = ""


@dataclass(frozen=True)
class TokenHandle(ContractHandle):
    symbol: str = ""
    decimals: int = 18


class ContractGateway:
    """Resolves contract handles for one chain id"""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        # Fail early on an unconfigured network
        self.network = NetworkConfig.get_network(chain_id)

    @property
    def network_name(self) -> str:
        return NetworkConfig.get_network_name(self.chain_id)

    def selectors(self) -> List[str]:
        """Pool selectors with a deployed address on this network"""
        pools = NetworkConfig.get_pool_addresses(self.chain_id)
        return [selector for selector, address in pools.items() if address]

    def resolve_pool(self, selector: str) -> PoolHandle:
        """
        Get the staking contract for a pool selector.

        Raises:
            UnknownPool: If the selector has no address on this network
        """
        selector = getattr(selector, "value", selector)
        address = NetworkConfig.get_pool_addresses(self.chain_id).get(selector)
        if not address:
            raise UnknownPool(
                f"Pool '{selector}' is not configured on {self.network_name}"
            )
        return PoolHandle(address=address, abi=STAKING_ABI, label=f"staking:{selector}", selector=selector)

    def unbound_pool(self, address: str) -> PoolHandle:
        """Staking handle for a pool not in the table, e.g. a fresh deployment"""
        if not address:
            raise UnknownPool("A pool contract address is required")
        return PoolHandle(address=address, abi=STAKING_ABI, label="staking:unbound")

    def resolve_token(self) -> TokenHandle:
        """Get the staked token contract for this network"""
        token = NetworkConfig.get_token(self.chain_id)
        if not token.get("address"):
            raise UnknownPool(f"No token contract configured on {self.network_name}")
        return TokenHandle(
            address=token["address"],
            abi=ERC20_ABI,
            label="token",
            symbol=token.get("symbol", ""),
            decimals=token.get("decimals", 18),
        )
