"""
StakingClient - Main client for the TokenStake SDK.
"""
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Protocol

from .allowance import AllowanceDecision, AllowanceGuard
from .amounts import AmountLike, to_base_units
from .config import NetworkConfig
from .exceptions import (
    EstimationFailed, GatewayUnavailable, InsufficientBalance, InsufficientStake,
    NoRewardAvailable, StakingError, SubmissionFailed, UnknownNetwork,
    UnknownProvider, format_chain_error
)
from .gateway import ContractGateway
from .ledger import TransactionLedger
from .models import (
    ActionKind, InitializeParams, PendingAction, StakingContext, TransactionRecord,
    UserPosition
)
from .orchestrator import FlowState, OrchestrationRun, PostActionEffect, TransactionOrchestrator
from .overview import PoolOverview, decode_position, load_overview
from .status import CountdownItem, CountdownTimer
from .storage import CURRENT_USER_KEY, LocalStore
from .transport import ChainTransport, Signer, Web3Transport
from ._rate_limited_log import rate_limited_log


class Notifier(Protocol):
    """Receives short user-facing messages"""

    def error(self, message: str) -> None:
        ...

    def success(self, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that writes to a logger; used when none is supplied"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def success(self, message: str) -> None:
        self.logger.info(message)


@dataclass
class FlowResult:
    """Outcome of a user action; failures are reported, not raised"""
    action: PendingAction
    state: FlowState
    record: Optional[TransactionRecord] = None
    approval: Optional[TransactionRecord] = None
    error: Optional[StakingError] = None

    @property
    def ok(self) -> bool:
        return self.state == FlowState.CONFIRMED


class StakingClient:
    """
    Client for a token-staking contract.

    This client handles:
    1. Reading pool and user figures for a pool tier
    2. Staking (with token approval when needed), unstaking and claiming
    3. Initializing a freshly deployed pool
    4. Keeping a local ledger of confirmed transactions

    Action methods never raise for flow failures: errors are logged, sent to
    the notifier and returned in the FlowResult.
    """

    def __init__(
        self,
        transport: ChainTransport,
        chain_id: int,
        store: Optional[LocalStore] = None,
        notifier: Optional[Notifier] = None,
        on_confirmed: Optional[PostActionEffect] = None,
        on_countdown: Optional[Callable[[str, CountdownItem], None]] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the StakingClient

        Args:
            transport: Chain transport used for every read and write
            chain_id: Chain id of the network the pools live on
            store: Local state store (defaults to ~/.tokenstake/state.json)
            notifier: Receives user-facing messages
            on_confirmed: Awaited with the record after each confirmed write
            on_countdown: Called with (title, tick) while a countdown runs
            clock: Source of the current epoch time
            logger: Optional logger instance

        Raises:
            UnknownNetwork: If the chain id is not configured
        """
        self.transport = transport
        self.chain_id = chain_id
        self.gateway = ContractGateway(chain_id)
        self.store = store or LocalStore()
        self.ledger = TransactionLedger(self.store)
        self.logger = logger or logging.getLogger(__name__)
        self.notifier = notifier or LoggingNotifier(self.logger)
        self.orchestrator = TransactionOrchestrator(transport, self.ledger, on_confirmed)
        self.on_countdown = on_countdown
        self.clock = clock
        self.countdown_timer = CountdownTimer(clock=clock)

    @classmethod
    def from_network(
        cls,
        chain_id: int,
        priv_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        rpc_url: Optional[str] = None,
        **kwargs
    ) -> "StakingClient":
        """
        Build a client with a Web3Transport for a configured network.

        Args:
            chain_id: Configured chain id
            priv_key: Private key for local signing (optional)
            signer: Custom signer (optional)
            rpc_url: Override the configured RPC URL
            **kwargs: Passed to StakingClient
        """
        transport = Web3Transport(
            NetworkConfig.get_rpc_url(chain_id, override=rpc_url),
            priv_key=priv_key,
            signer=signer
        )
        return cls(transport, chain_id, **kwargs)

    @property
    def network_name(self) -> str:
        return self.gateway.network_name

    async def connect(self, selector: str) -> StakingContext:
        """
        Connect to the provider and pick the sending account.

        Raises:
            UnknownProvider: If the provider is unreachable or exposes no account
            UnknownNetwork: If the provider is on another chain
        """
        chain_id = await self.transport.connect()
        if chain_id != self.chain_id:
            raise UnknownNetwork(
                f"Wallet is on chain {chain_id}, please switch to {self.network_name}"
            )
        accounts = await self.transport.accounts()
        if not accounts:
            raise UnknownProvider("Please connect a wallet account")
        context = StakingContext(address=accounts[0], selector=selector, chain_id=chain_id)
        self.logger.info(f"Using account {context.address} on {self.network_name}")
        return context

    def transactions(self) -> List[TransactionRecord]:
        return self.ledger.all()

    def current_user(self) -> Optional[UserPosition]:
        """Position saved by the last successful refresh"""
        raw = self.store.get(CURRENT_USER_KEY)
        return UserPosition.model_validate(raw) if raw else None

    async def refresh(self, context: StakingContext) -> Optional[PoolOverview]:
        """
        Reload the figures for ``context`` and restart the countdown.

        Returns:
            The overview, or None if the data could not be fetched
        """
        self.countdown_timer.cancel()
        try:
            overview = await load_overview(self.transport, self.gateway, context, self.clock)
        except StakingError as e:
            rate_limited_log(f"Refresh of {context.selector} failed: {e}", "warning", self.logger)
            self.notifier.error(f"Unable to fetch data from {self.network_name}! Please refresh this page.")
            return None

        self.store.set(CURRENT_USER_KEY, overview.position.model_dump(mode="json"))

        plan = overview.countdown
        if plan and self.on_countdown is not None:
            title = plan.title
            self.countdown_timer.start(plan.target, lambda item: self.on_countdown(title, item))
        return overview

    async def stake(self, context: StakingContext, amount: AmountLike) -> FlowResult:
        """Stake ``amount`` display tokens, approving the pool first if needed"""
        action = PendingAction(kind=ActionKind.STAKE, selector=context.selector)
        approval: List[TransactionRecord] = []

        async def flow(intend: Callable[[int], None]) -> OrchestrationRun:
            pool = self.gateway.resolve_pool(context.selector)
            token = self.gateway.resolve_token()
            amount_wei = to_base_units(amount, token.decimals)
            intend(amount_wei)

            with self.orchestrator.reserve(context.address, pool, ActionKind.STAKE):
                balance = await self._read_int(token, "balanceOf", (context.address,))
                if balance < amount_wei:
                    raise InsufficientBalance(
                        f"Insufficient tokens on {self.network_name}. Please buy some tokens first!"
                    )

                guard = AllowanceGuard(self.transport, token)
                decision = await guard.ensure_allowance(context.address, pool, amount_wei)
                if decision == AllowanceDecision.NEEDS_APPROVAL:
                    approve_run = await self.orchestrator.execute(
                        ActionKind.APPROVE, token, "approve", (pool.address, amount_wei),
                        context.address, amount=amount_wei, lock_handle=pool
                    )
                    approval.append(approve_run.record)

                return await self.orchestrator.execute(
                    ActionKind.STAKE, pool, "stake", (amount_wei,), context.address,
                    amount=amount_wei, acquire_lock=False
                )

        result = await self._run_flow(action, flow)
        result.approval = approval[0] if approval else None
        return result

    async def unstake(self, context: StakingContext, amount: AmountLike) -> FlowResult:
        """Withdraw ``amount`` display tokens from the pool"""
        action = PendingAction(kind=ActionKind.UNSTAKE, selector=context.selector)

        async def flow(intend: Callable[[int], None]) -> OrchestrationRun:
            pool = self.gateway.resolve_pool(context.selector)
            token = self.gateway.resolve_token()
            amount_wei = to_base_units(amount, token.decimals)
            intend(amount_wei)

            with self.orchestrator.reserve(context.address, pool, ActionKind.UNSTAKE):
                try:
                    raw_user = await self.transport.call(pool, "getUser", (context.address,))
                except Exception as e:
                    raise GatewayUnavailable(f"Unable to read stake: {format_chain_error(e)}") from e
                position = decode_position(context.address, raw_user)
                if position.stake_amount < amount_wei:
                    raise InsufficientStake(f"Insufficient staked tokens on {self.network_name}!")

                return await self.orchestrator.execute(
                    ActionKind.UNSTAKE, pool, "unstake", (amount_wei,), context.address,
                    amount=amount_wei, acquire_lock=False
                )

        return await self._run_flow(action, flow)

    async def claim(self, context: StakingContext) -> FlowResult:
        """Claim the pending reward"""
        action = PendingAction(kind=ActionKind.CLAIM, selector=context.selector)

        async def flow(intend: Callable[[int], None]) -> OrchestrationRun:
            pool = self.gateway.resolve_pool(context.selector)

            with self.orchestrator.reserve(context.address, pool, ActionKind.CLAIM):
                try:
                    reward = await self.transport.call(
                        pool, "getUserEstimatedRewards", (), context.address
                    )
                except Exception as e:
                    raise GatewayUnavailable(f"Unable to read reward: {format_chain_error(e)}") from e
                if not reward:
                    raise NoRewardAvailable("Insufficient reward tokens to claim!")

                return await self.orchestrator.execute(
                    ActionKind.CLAIM, pool, "claimReward", (), context.address,
                    acquire_lock=False
                )

        return await self._run_flow(action, flow)

    async def initialize(
        self,
        context: StakingContext,
        pool_address: str,
        params: InitializeParams
    ) -> FlowResult:
        """Run the one-time initialize call on a freshly deployed pool"""
        action = PendingAction(kind=ActionKind.INITIALIZE, selector=context.selector)

        async def flow(intend: Callable[[int], None]) -> OrchestrationRun:
            pool = self.gateway.unbound_pool(pool_address)
            token = self.gateway.resolve_token()
            args = (
                params.owner,
                params.token_address,
                params.apy,
                to_base_units(params.min_stake, token.decimals, allow_zero=True),
                to_base_units(params.max_stake, token.decimals, allow_zero=True),
                params.start_time,
                params.end_time,
                params.lock_days,
                params.early_unstake_fee,
            )
            return await self.orchestrator.execute(
                ActionKind.INITIALIZE, pool, "initialize", args, context.address
            )

        return await self._run_flow(action, flow)

    async def close(self) -> None:
        self.countdown_timer.cancel()
        await self.transport.close()

    async def _read_int(self, handle, method, args=()) -> int:
        try:
            return int(await self.transport.call(handle, method, args))
        except Exception as e:
            raise GatewayUnavailable(f"{method} failed: {format_chain_error(e)}") from e

    async def _run_flow(
        self,
        action: PendingAction,
        flow: Callable[[Callable[[int], None]], Awaitable[OrchestrationRun]]
    ) -> FlowResult:
        def intend(amount: int) -> None:
            nonlocal action
            action = action.model_copy(update={"amount": amount})

        try:
            run = await flow(intend)
        except EstimationFailed as e:
            self.logger.warning(f"{action.kind.value} not sent: {e}")
            self.notifier.error(str(e))
            return FlowResult(action=action, state=FlowState.ESTIMATION_FAILED, error=e)
        except SubmissionFailed as e:
            self.logger.error(f"{action.kind.value} failed: {e}")
            self.notifier.error(str(e))
            return FlowResult(action=action, state=FlowState.FAILED, error=e)
        except StakingError as e:
            # Precondition failures never reach the chain
            self.logger.warning(f"{action.kind.value} rejected: {e}")
            self.notifier.error(str(e))
            return FlowResult(action=action, state=FlowState.IDLE, error=e)
        except Exception as e:
            self.logger.exception(f"Unexpected error during {action.kind.value}: {e}")
            error = SubmissionFailed(format_chain_error(e))
            self.notifier.error(str(error))
            return FlowResult(action=action, state=FlowState.FAILED, error=error)

        self.notifier.success(f"Transaction confirmed: {run.record.tx_hash}")
        return FlowResult(
            action=action,
            state=run.state,
            record=run.record,
        )
