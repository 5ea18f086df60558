"""
Pytest fixtures for the TokenStake SDK tests.
"""
import asyncio
import hashlib
from typing import Any, Dict, List, Optional, Tuple

import pytest

from tokenstake_sdk.client import StakingClient
from tokenstake_sdk.config import NetworkConfig
from tokenstake_sdk.models import StakingContext
from tokenstake_sdk.storage import LocalStore
from tokenstake_sdk.transport import ChainTransport, TransactionHash, TransactionReceipt
from tokenstake_sdk._rate_limited_log import reset_rate_limits

# Constants for testing (hardhat defaults, chain 31337)
TEST_CHAIN_ID = 31337
TEST_USER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_TOKEN = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TEST_POOL = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
TEST_NEW_POOL = "0x5FC8d32690cc91D4c39d9d3abcBD16989F875707"
TEST_PRIV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ONE_TOKEN = 10 ** 18
NOW = 1_700_000_000


class FakeTransport(ChainTransport):
    """
    Scripted in-memory transport.

    Reads are answered from ``reads`` keyed by method name; a value can be a
    constant, an exception to raise, or a callable taking the call args.
    Every call is appended to ``calls`` as (kind, method, args).
    """

    def __init__(self, chain_id: int = TEST_CHAIN_ID, accounts: Tuple[str, ...] = (TEST_USER,)):
        self.chain_id = chain_id
        self._accounts = list(accounts)
        self.connect_error: Optional[Exception] = None
        self.reads: Dict[str, Any] = {}
        self.estimates: Dict[str, Any] = {}
        self.send_errors: Dict[str, Exception] = {}
        self.receipt_status: Dict[str, int] = {}
        self.skip_receipt: set = set()
        self.hold: Optional[asyncio.Event] = None
        self.calls: List[Tuple[str, str, tuple]] = []
        self.block_number = 100

    def methods(self, kind: str) -> List[str]:
        return [method for k, method, _ in self.calls if k == kind]

    async def connect(self) -> int:
        if self.connect_error:
            raise self.connect_error
        return self.chain_id

    async def accounts(self):
        return list(self._accounts)

    async def call(self, handle, method, args=(), sender=None):
        self.calls.append(("call", method, tuple(args)))
        value = self.reads[method]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(*args)
        return value

    async def estimate_gas(self, handle, method, args, sender):
        self.calls.append(("estimate", method, tuple(args)))
        value = self.estimates.get(method, 60000)
        if isinstance(value, Exception):
            raise value
        return value

    async def send(self, handle, method, args, sender, gas):
        self.calls.append(("send", method, tuple(args)))
        if method in self.send_errors:
            raise self.send_errors[method]

        self.block_number += 1
        digest = hashlib.sha256(f"{method}:{args}:{self.block_number}".encode()).digest()
        yield TransactionHash('0x' + digest.hex())

        if self.hold is not None:
            await self.hold.wait()
        if method in self.skip_receipt:
            return

        if method == "approve":
            self.reads["allowance"] = args[1]

        yield TransactionReceipt({
            'transactionHash': digest,
            'blockHash': bytes.fromhex('ab' * 32),
            'blockNumber': self.block_number,
            'cumulativeGasUsed': gas * 2,
            'effectiveGasPrice': 10 ** 9,
            'gasUsed': gas,
            'status': self.receipt_status.get(method, 1),
            'from': sender,
            'to': handle.address,
            'type': 2,
            'logs': [],
        })


def pool_reads(**overrides) -> Dict[str, Any]:
    """Reads for an active pool where the user holds 1000 tokens"""
    reads = {
        "getTotalUsers": 12,
        "getAPY": 25,
        "getUser": (100 * ONE_TOKEN, 0, NOW - 3600, NOW - 60, 0),
        "getTotalStakedTokens": 5000 * ONE_TOKEN,
        "getEarlyUnstakeFeePercentage": 250,
        "getMinimumStakingAmount": 10 * ONE_TOKEN,
        "getStakingStatus": False,
        "getStakeStartDate": NOW - 86400,
        "getStakeEndDate": NOW + 7 * 86400,
        "getStakeDays": 7 * 86400,
        "getUserEstimatedRewards": 3 * ONE_TOKEN,
        "balanceOf": 1000 * ONE_TOKEN,
        "allowance": 0,
    }
    reads.update(overrides)
    return reads


class RecordingNotifier:
    def __init__(self):
        self.errors: List[str] = []
        self.successes: List[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def success(self, message: str) -> None:
        self.successes.append(message)


@pytest.fixture(autouse=True)
def _reset_shared_state():
    """Reload the packaged network table and rate limits for each test"""
    NetworkConfig._networks_cache = None
    reset_rate_limits()
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def transport():
    fake = FakeTransport()
    fake.reads.update(pool_reads())
    return fake


@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / "state.json"))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(transport, store, notifier):
    return StakingClient(transport, TEST_CHAIN_ID, store=store, notifier=notifier, clock=lambda: NOW)


@pytest.fixture
def context():
    return StakingContext(address=TEST_USER, selector="sevenDays", chain_id=TEST_CHAIN_ID)
