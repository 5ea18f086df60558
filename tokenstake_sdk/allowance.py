"""
Approval check run before staking.
"""
import logging
from enum import Enum

from .exceptions import GatewayUnavailable, format_chain_error
from .gateway import PoolHandle, TokenHandle
from .transport import ChainTransport

logger = logging.getLogger(__name__)


class AllowanceDecision(str, Enum):
    ALREADY_SUFFICIENT = "already_sufficient"
    NEEDS_APPROVAL = "needs_approval"


def decide(current: int, required: int) -> AllowanceDecision:
    """Any shortfall needs a fresh approval for the full required amount"""
    if int(current) < int(required):
        return AllowanceDecision.NEEDS_APPROVAL
    return AllowanceDecision.ALREADY_SUFFICIENT


class AllowanceGuard:
    """Reads the token allowance granted to a pool and decides on approval"""

    def __init__(self, transport: ChainTransport, token: TokenHandle):
        self.transport = transport
        self.token = token

    async def current_allowance(self, owner: str, pool: PoolHandle) -> int:
        try:
            return int(await self.transport.call(self.token, "allowance", (owner, pool.address)))
        except Exception as e:
            raise GatewayUnavailable(f"Unable to read allowance: {format_chain_error(e)}") from e

    async def ensure_allowance(self, owner: str, pool: PoolHandle, required: int) -> AllowanceDecision:
        """
        Check whether ``owner`` has approved ``pool`` for ``required`` tokens.

        Args:
            owner: Token holder address
            pool: Staking contract that will pull the tokens
            required: Amount in base units

        Returns:
            NEEDS_APPROVAL if the current allowance is strictly less

        Raises:
            GatewayUnavailable: If the allowance cannot be read
        """
        current = await self.current_allowance(owner, pool)
        decision = decide(current, required)
        logger.debug(f"Allowance {current} for {pool.label}, required {required}: {decision.value}")
        return decision
