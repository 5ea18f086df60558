"""
Tests for the transaction orchestrator state machine.
"""
import asyncio

import pytest
from web3.exceptions import ContractLogicError

from tokenstake_sdk.exceptions import (
    AlreadyInProgress, EstimationFailed, SubmissionFailed, TransactionFailed
)
from tokenstake_sdk.gateway import ContractGateway
from tokenstake_sdk.ledger import TransactionLedger
from tokenstake_sdk.models import ActionKind
from tokenstake_sdk.orchestrator import FlowState, TransactionOrchestrator
from tests.conftest import TEST_CHAIN_ID, TEST_POOL, TEST_USER

AMOUNT = 5 * 10 ** 18


@pytest.fixture
def pool():
    return ContractGateway(TEST_CHAIN_ID).resolve_pool("sevenDays")


@pytest.fixture
def ledger(store):
    return TransactionLedger(store)


@pytest.mark.asyncio
async def test_confirmed_run(transport, ledger, pool):
    confirmed = []

    async def effect(record):
        confirmed.append(record)

    orchestrator = TransactionOrchestrator(transport, ledger, on_confirmed=effect)
    run = await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER, amount=AMOUNT)

    assert run.state == FlowState.CONFIRMED
    assert run.history == [
        FlowState.ESTIMATING, FlowState.SUBMITTING, FlowState.AWAITING_HASH, FlowState.CONFIRMED
    ]
    assert run.gas == 60000
    assert transport.calls == [("estimate", "stake", (AMOUNT,)), ("send", "stake", (AMOUNT,))]
    assert ledger.all() == [run.record]
    assert confirmed == [run.record]
    assert run.record.amount == AMOUNT
    assert run.record.to_address == TEST_POOL
    assert run.record.tx_hash == run.tx_hash


@pytest.mark.asyncio
async def test_estimation_failure_never_sends(transport, ledger, pool):
    transport.estimates["stake"] = ContractLogicError("execution reverted: Staking is paused")
    orchestrator = TransactionOrchestrator(transport, ledger)

    with pytest.raises(EstimationFailed) as exc_info:
        await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER)

    assert exc_info.value.reason == "Staking is paused"
    assert "send" not in [kind for kind, _, _ in transport.calls]
    assert ledger.all() == []
    assert not orchestrator.is_running(TEST_USER, pool, ActionKind.STAKE)


@pytest.mark.asyncio
async def test_send_failure(transport, ledger, pool):
    transport.send_errors["unstake"] = ValueError("user rejected transaction")
    orchestrator = TransactionOrchestrator(transport, ledger)

    with pytest.raises(SubmissionFailed, match="user rejected"):
        await orchestrator.execute(ActionKind.UNSTAKE, pool, "unstake", (AMOUNT,), TEST_USER)

    assert ledger.all() == []
    # one attempt only
    assert transport.methods("send") == ["unstake"]


@pytest.mark.asyncio
async def test_reverted_receipt_is_failed_and_not_recorded(transport, ledger, pool):
    transport.receipt_status["claimReward"] = 0
    orchestrator = TransactionOrchestrator(transport, ledger)

    with pytest.raises(SubmissionFailed, match="reverted") as exc_info:
        await orchestrator.execute(ActionKind.CLAIM, pool, "claimReward", (), TEST_USER)

    assert exc_info.value.tx_hash is not None
    assert ledger.all() == []


@pytest.mark.asyncio
async def test_missing_receipt_is_failed(transport, ledger, pool):
    transport.skip_receipt.add("stake")
    orchestrator = TransactionOrchestrator(transport, ledger)

    with pytest.raises(SubmissionFailed, match="No receipt"):
        await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER)

    assert ledger.all() == []


@pytest.mark.asyncio
async def test_effect_failure_keeps_record(transport, ledger, pool):
    async def effect(record):
        raise RuntimeError("results view unavailable")

    orchestrator = TransactionOrchestrator(transport, ledger, on_confirmed=effect)
    run = await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER)

    assert run.state == FlowState.CONFIRMED
    assert len(ledger.all()) == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_is_rejected(transport, ledger, pool):
    transport.hold = asyncio.Event()
    orchestrator = TransactionOrchestrator(transport, ledger)

    first = asyncio.ensure_future(
        orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER)
    )
    # let the first run reach AWAITING_HASH
    while "send" not in [kind for kind, _, _ in transport.calls]:
        await asyncio.sleep(0)
    assert orchestrator.is_running(TEST_USER, pool, ActionKind.STAKE)

    with pytest.raises(AlreadyInProgress):
        await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER.lower())

    assert not orchestrator.is_running(TEST_USER, pool, ActionKind.CLAIM)

    transport.hold.set()
    run = await first
    assert run.state == FlowState.CONFIRMED
    assert transport.methods("send") == ["stake"]
    assert not orchestrator.is_running(TEST_USER, pool, ActionKind.STAKE)


@pytest.mark.asyncio
async def test_lock_released_after_failure(transport, ledger, pool):
    transport.estimates["stake"] = ValueError("insufficient funds for gas")
    orchestrator = TransactionOrchestrator(transport, ledger)

    with pytest.raises(EstimationFailed):
        await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER)

    transport.estimates.pop("stake")
    run = await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER)
    assert run.state == FlowState.CONFIRMED


@pytest.mark.asyncio
async def test_approve_lock_is_keyed_on_spender_pool(transport, ledger, pool):
    transport.hold = asyncio.Event()
    token = ContractGateway(TEST_CHAIN_ID).resolve_token()
    other_pool = ContractGateway(TEST_CHAIN_ID).resolve_pool("tenDays")
    orchestrator = TransactionOrchestrator(transport, ledger)

    first = asyncio.ensure_future(orchestrator.execute(
        ActionKind.APPROVE, token, "approve", (pool.address, AMOUNT), TEST_USER, lock_handle=pool
    ))
    while "send" not in [kind for kind, _, _ in transport.calls]:
        await asyncio.sleep(0)

    assert orchestrator.is_running(TEST_USER, pool, ActionKind.APPROVE)
    assert not orchestrator.is_running(TEST_USER, other_pool, ActionKind.APPROVE)
    with pytest.raises(AlreadyInProgress):
        await orchestrator.execute(
            ActionKind.APPROVE, token, "approve", (pool.address, AMOUNT), TEST_USER, lock_handle=pool
        )

    second = asyncio.ensure_future(orchestrator.execute(
        ActionKind.APPROVE, token, "approve", (other_pool.address, AMOUNT), TEST_USER,
        lock_handle=other_pool
    ))
    transport.hold.set()
    runs = await asyncio.gather(first, second)

    assert [run.state for run in runs] == [FlowState.CONFIRMED, FlowState.CONFIRMED]
    assert transport.methods("send") == ["approve", "approve"]


@pytest.mark.asyncio
async def test_failed_state_matches_transaction_failed(transport, ledger, pool):
    transport.receipt_status["stake"] = 0
    orchestrator = TransactionOrchestrator(transport, ledger)

    with pytest.raises(TransactionFailed):
        await orchestrator.execute(ActionKind.STAKE, pool, "stake", (AMOUNT,), TEST_USER)
    assert TransactionFailed is SubmissionFailed
