"""
Pool overview: everything shown for a pool tier in one refresh.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Sequence

from pydantic import BaseModel

from .amounts import format_amount, to_display_units
from .exceptions import GatewayUnavailable, format_chain_error
from .gateway import ContractGateway, ContractHandle
from .models import StakePool, StakingContext, UserPosition
from .status import CountdownPlan, StakingStatus, countdown_plan, derive_status
from .transport import ChainTransport

logger = logging.getLogger(__name__)

# Shown as the pool cap regardless of the contract setting
MAX_STAKE_DISPLAY_TOKENS = 10_000_000


class PoolOverview(BaseModel):
    pool: StakePool
    total_users: int
    position: UserPosition
    estimated_rewards: int
    token_balance: int
    token_symbol: str
    token_decimals: int = 18
    status: StakingStatus
    countdown_title: Optional[str] = None
    countdown_target: Optional[int] = None

    @property
    def lock_days(self) -> int:
        return self.pool.lock_seconds // 86400

    @property
    def countdown(self) -> Optional[CountdownPlan]:
        if self.countdown_title is None:
            return None
        return CountdownPlan(self.countdown_title, self.countdown_target)

    def render(self) -> Dict[str, str]:
        """Display strings for each figure"""
        symbol = self.token_symbol
        decimals = self.token_decimals
        return {
            "stakers": f"{self.total_users}",
            "apy": f"{self.pool.apy} %",
            "totalLocked": f"{to_display_units(self.pool.total_staked, decimals)} {symbol}",
            "userStaked": f"{to_display_units(self.position.stake_amount, decimals)}",
            "earlyUnstakeFee": f"{self.pool.early_unstake_fee / 100}%",
            "minStake": format_amount(self.pool.min_stake, symbol, decimals),
            "maxStake": format_amount(self.pool.max_stake, symbol, decimals),
            "lockPeriod": f"{self.lock_days} days" if self.lock_days > 0 else "",
            "status": self.status.value,
            "reward": f"Reward: {to_display_units(self.estimated_rewards, decimals)} {symbol}",
            "balance": f"Balance: {to_display_units(self.token_balance, decimals)}",
            "countdownTitle": self.countdown_title or "",
        }


async def _read(
    transport: ChainTransport,
    handle: ContractHandle,
    method: str,
    args: Sequence[Any] = (),
    sender: Optional[str] = None
) -> Any:
    try:
        return await transport.call(handle, method, args, sender)
    except Exception as e:
        raise GatewayUnavailable(f"{method} failed: {format_chain_error(e)}") from e


def decode_position(address: str, raw: Any) -> UserPosition:
    """Decode a getUser result, treating a malformed struct as a failed read"""
    try:
        return UserPosition.from_chain(address, raw)
    except (TypeError, ValueError) as e:
        raise GatewayUnavailable(f"getUser returned an unexpected value: {e}") from e


async def load_overview(
    transport: ChainTransport,
    gateway: ContractGateway,
    context: StakingContext,
    clock: Callable[[], float] = time.time
) -> PoolOverview:
    """
    Read pool and user figures for ``context``.

    Raises:
        UnknownPool: If the selector is not configured
        GatewayUnavailable: If any read fails
    """
    pool = gateway.resolve_pool(context.selector)
    token = gateway.resolve_token()
    address = context.address

    total_users = await _read(transport, pool, "getTotalUsers")
    apy = await _read(transport, pool, "getAPY")
    raw_user = await _read(transport, pool, "getUser", (address,))
    position = decode_position(address, raw_user)

    total_staked = await _read(transport, pool, "getTotalStakedTokens")
    early_fee = await _read(transport, pool, "getEarlyUnstakeFeePercentage")
    min_stake = await _read(transport, pool, "getMinimumStakingAmount")
    paused = await _read(transport, pool, "getStakingStatus")
    start_time = int(await _read(transport, pool, "getStakeStartDate"))
    end_time = int(await _read(transport, pool, "getStakeEndDate"))
    lock_seconds = int(await _read(transport, pool, "getStakeDays"))
    rewards = await _read(transport, pool, "getUserEstimatedRewards", sender=address)
    balance = await _read(transport, token, "balanceOf", (address,))

    now = clock()
    plan = countdown_plan(now, start_time, end_time)
    overview = PoolOverview(
        pool=StakePool(
            selector=pool.selector,
            apy=apy,
            total_staked=total_staked,
            min_stake=min_stake,
            max_stake=MAX_STAKE_DISPLAY_TOKENS * 10 ** token.decimals,
            early_unstake_fee=early_fee,
            start_time=start_time,
            end_time=end_time,
            lock_seconds=lock_seconds,
            paused=bool(paused),
        ),
        total_users=total_users,
        position=position,
        estimated_rewards=rewards,
        token_balance=balance,
        token_symbol=token.symbol,
        token_decimals=token.decimals,
        status=derive_status(now, bool(paused), start_time, end_time),
        countdown_title=plan.title if plan else None,
        countdown_target=int(plan.target) if plan else None,
    )
    logger.debug(f"Loaded overview for {pool.label}: {overview.status.value}")
    return overview
