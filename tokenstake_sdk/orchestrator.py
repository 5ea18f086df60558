"""
Transaction orchestration for on-chain writes.

Every write (approve, stake, unstake, claim, initialize) goes through the
same stages: estimate gas, submit, wait for the receipt, then record it and
run the post-action effect. Nothing is retried; a failed run is reported and
the caller decides whether to start a new one.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, List, Optional, Sequence, Set, Tuple

from .exceptions import (
    AlreadyInProgress, EstimationFailed, SubmissionFailed, format_chain_error
)
from .gateway import ContractHandle
from .ledger import TransactionLedger
from .models import ActionKind, TransactionRecord
from .transport import ChainTransport, TransactionHash, TransactionReceipt

logger = logging.getLogger(__name__)

PostActionEffect = Callable[[TransactionRecord], Awaitable[None]]


class FlowState(str, Enum):
    IDLE = "idle"
    ESTIMATING = "estimating"
    ESTIMATION_FAILED = "estimation_failed"
    SUBMITTING = "submitting"
    AWAITING_HASH = "awaiting_hash"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class OrchestrationRun:
    """Bookkeeping for a single write"""
    kind: ActionKind
    handle: ContractHandle
    method: str
    args: Tuple[Any, ...]
    sender: str
    amount: Optional[int] = None
    state: FlowState = FlowState.IDLE
    history: List[FlowState] = field(default_factory=list)
    gas: Optional[int] = None
    tx_hash: Optional[str] = None
    record: Optional[TransactionRecord] = None

    def advance(self, state: FlowState) -> None:
        logger.debug(f"{self.kind.value} {self.handle.label}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)


class TransactionOrchestrator:
    """
    Drives writes through Estimate -> Submit -> Confirm -> Finalize.

    A run holds a lock keyed by (sender, contract address, action kind) until
    it reaches a terminal state; starting the same run twice concurrently
    raises AlreadyInProgress instead of racing.
    """

    def __init__(
        self,
        transport: ChainTransport,
        ledger: TransactionLedger,
        on_confirmed: Optional[PostActionEffect] = None
    ):
        self.transport = transport
        self.ledger = ledger
        self.on_confirmed = on_confirmed
        self._in_flight: Set[Tuple[str, str, ActionKind]] = set()

    def is_running(self, sender: str, handle: ContractHandle, kind: ActionKind) -> bool:
        return self._lock_key(sender, handle, kind) in self._in_flight

    @staticmethod
    def _lock_key(sender: str, handle: ContractHandle, kind: ActionKind) -> Tuple[str, str, ActionKind]:
        return (sender.lower(), (handle.address or "").lower(), kind)

    @contextmanager
    def reserve(self, sender: str, handle: ContractHandle, kind: ActionKind) -> Iterator[None]:
        """Hold the (sender, contract, kind) slot or raise AlreadyInProgress"""
        key = self._lock_key(sender, handle, kind)
        if key in self._in_flight:
            raise AlreadyInProgress(f"A {kind.value} transaction is already in progress")
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)

    async def execute(
        self,
        kind: ActionKind,
        handle: ContractHandle,
        method: str,
        args: Sequence[Any],
        sender: str,
        amount: Optional[int] = None,
        acquire_lock: bool = True,
        lock_handle: Optional[ContractHandle] = None
    ) -> OrchestrationRun:
        """
        Run one write to completion.

        Args:
            kind: Action being performed
            handle: Contract to call
            method: Contract method name
            args: Positional method arguments
            sender: Address the transaction is sent from
            amount: Base-unit amount recorded with the transaction
            acquire_lock: False when the caller already holds reserve() for this run
            lock_handle: Contract the lock is keyed on, if not ``handle``
                (an approve is keyed on the pool it approves)

        Returns:
            The finished run, in state CONFIRMED

        Raises:
            AlreadyInProgress: If the same action is already running
            EstimationFailed: If gas estimation fails; nothing is sent
            SubmissionFailed: If sending or confirmation fails
        """
        run = OrchestrationRun(
            kind=kind, handle=handle, method=method, args=tuple(args),
            sender=sender, amount=amount
        )
        if not acquire_lock:
            await self._drive(run)
            return run
        with self.reserve(sender, lock_handle or handle, kind):
            await self._drive(run)
        return run

    async def _drive(self, run: OrchestrationRun) -> None:
        await self._estimate(run)
        await self._submit(run)
        await self._finalize(run)

    async def _estimate(self, run: OrchestrationRun) -> None:
        run.advance(FlowState.ESTIMATING)
        try:
            run.gas = await self.transport.estimate_gas(run.handle, run.method, run.args, run.sender)
        except Exception as e:
            run.advance(FlowState.ESTIMATION_FAILED)
            reason = format_chain_error(e)
            logger.error(f"Gas estimation for {run.method} failed: {reason}")
            raise EstimationFailed(reason, reason=reason) from e

    async def _submit(self, run: OrchestrationRun) -> None:
        run.advance(FlowState.SUBMITTING)
        receipt = None
        try:
            events = self.transport.send(run.handle, run.method, run.args, run.sender, run.gas)
            run.advance(FlowState.AWAITING_HASH)
            async for event in events:
                if isinstance(event, TransactionHash):
                    run.tx_hash = event.tx_hash
                    logger.info(f"Transaction Hash: {event.tx_hash}")
                elif isinstance(event, TransactionReceipt):
                    receipt = event.receipt
        except Exception as e:
            run.advance(FlowState.FAILED)
            message = format_chain_error(e)
            logger.error(f"{run.method} transaction failed: {message}")
            raise SubmissionFailed(message, tx_hash=run.tx_hash) from e

        if receipt is None:
            run.advance(FlowState.FAILED)
            raise SubmissionFailed(
                f"No receipt received for {run.method}", tx_hash=run.tx_hash
            )

        run.record = TransactionRecord.from_receipt(run.kind, receipt, amount=run.amount)
        if not run.record.succeeded:
            run.advance(FlowState.FAILED)
            logger.error(f"{run.method} reverted in transaction {run.record.tx_hash}")
            raise SubmissionFailed(
                f"Transaction reverted: {run.record.tx_hash}", tx_hash=run.record.tx_hash
            )
        run.advance(FlowState.CONFIRMED)

    async def _finalize(self, run: OrchestrationRun) -> None:
        await self.ledger.append(run.record)
        if self.on_confirmed is None:
            return
        try:
            await self.on_confirmed(run.record)
        except Exception as e:
            # record stays in the ledger
            logger.exception(f"Post-action effect for {run.record.tx_hash} failed: {e}")
