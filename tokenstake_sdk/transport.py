"""
Chain transport layer for the TokenStake SDK.

This module defines the shape the rest of the SDK depends on (call,
estimate_gas, send) and a web3.py implementation of it. Anything that
provides the same coroutines, e.g. a test double, can be used instead.
"""
import logging
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Protocol, Sequence, Union

from web3 import AsyncWeb3
from eth_account import Account
from eth_account.signers.base import BaseAccount

from .exceptions import UnknownProvider
from .gateway import ContractHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionHash:
    """Emitted once the transport has accepted a transaction"""
    tx_hash: str


@dataclass(frozen=True)
class TransactionReceipt:
    """Emitted once the transaction is included in a block"""
    receipt: Dict[str, Any]


TransactionEvent = Union[TransactionHash, TransactionReceipt]


class Signer(Protocol):
    """Protocol for custom signers"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...


class ChainTransport(ABC):
    """
    Abstract base class for chain transports.

    Every method is a coroutine; send is an async iterator that yields a
    TransactionHash and then a TransactionReceipt, or raises.
    """

    @abstractmethod
    async def connect(self) -> int:
        """
        Check the provider is reachable.

        Returns:
            Chain id reported by the provider

        Raises:
            UnknownProvider: If the provider cannot be reached
        """
        pass

    @abstractmethod
    async def accounts(self) -> Sequence[str]:
        """Addresses the provider can send from"""
        pass

    @abstractmethod
    async def call(
        self,
        handle: ContractHandle,
        method: str,
        args: Sequence[Any] = (),
        sender: Optional[str] = None
    ) -> Any:
        """Run a read-only contract call"""
        pass

    @abstractmethod
    async def estimate_gas(
        self,
        handle: ContractHandle,
        method: str,
        args: Sequence[Any],
        sender: str
    ) -> int:
        """Estimate gas for a write with the sender bound"""
        pass

    @abstractmethod
    def send(
        self,
        handle: ContractHandle,
        method: str,
        args: Sequence[Any],
        sender: str,
        gas: int
    ) -> AsyncIterator[TransactionEvent]:
        """Submit a write and stream its hash and receipt"""
        pass

    async def close(self) -> None:
        """Release provider resources"""
        pass


def _is_local(url: str) -> bool:
    parsed = urllib.parse.urlparse(url)
    host = parsed.netloc.split(':')[0] if parsed.netloc else ''
    return host in ('localhost', '127.0.0.1')


class Web3Transport(ChainTransport):
    """
    Transport backed by web3.py's AsyncWeb3.

    Transactions are signed locally with a private key or a custom signer.
    Without either, the node's own account signs (eth_sendTransaction), which
    is how an injected wallet provider behaves.
    """

    SUPPORTED_SCHEMES = ("http", "https")

    def __init__(
        self,
        rpc_url: str,
        priv_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        receipt_timeout: int = 120,
        poll_interval: float = 0.5,
        w3: Optional[AsyncWeb3] = None
    ):
        """
        Initialize the transport

        Args:
            rpc_url: JSON-RPC endpoint
            priv_key: Private key used to sign transactions (optional)
            signer: Custom signer object (optional)
            receipt_timeout: Seconds to wait for a receipt
            poll_interval: Receipt polling interval in seconds
            w3: Pre-built AsyncWeb3 instance (mainly for tests)

        Raises:
            UnknownProvider: If the URL scheme is unsupported
            ValueError: If the URL is not https and not localhost
        """
        parsed = urllib.parse.urlparse(rpc_url)
        if parsed.scheme not in self.SUPPORTED_SCHEMES:
            raise UnknownProvider(f"Unsupported provider: {rpc_url}")
        if parsed.scheme != 'https' and not _is_local(rpc_url):
            raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")

        self.rpc_url = rpc_url
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

        self.account: Optional[BaseAccount] = None
        self.signer = signer
        if priv_key:
            self.account = Account.from_key(priv_key)

    @property
    def address(self) -> Optional[str]:
        """Address of the local signer, if any"""
        if self.account:
            return self.account.address
        if self.signer:
            return self.signer.address
        return None

    def _function(self, handle: ContractHandle, method: str, args: Sequence[Any]):
        contract = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(handle.address),
            abi=handle.abi
        )
        # web3 only accepts checksummed address arguments
        args = [
            AsyncWeb3.to_checksum_address(arg)
            if isinstance(arg, str) and AsyncWeb3.is_address(arg) else arg
            for arg in args
        ]
        return getattr(contract.functions, method)(*args)

    async def connect(self) -> int:
        try:
            connected = await self.w3.is_connected()
        except Exception as e:
            raise UnknownProvider(f"Unable to reach provider at {self.rpc_url}: {e}")
        if not connected:
            raise UnknownProvider(f"Unable to reach provider at {self.rpc_url}")
        chain_id = await self.w3.eth.chain_id
        logger.info(f"Connected to chain {chain_id} via {self.rpc_url}")
        return chain_id

    async def accounts(self) -> Sequence[str]:
        """Accounts exposed by the provider, signer first"""
        if self.address:
            return [self.address]
        return await self.w3.eth.accounts

    async def call(self, handle, method, args=(), sender=None):
        params = {'from': AsyncWeb3.to_checksum_address(sender)} if sender else {}
        return await self._function(handle, method, args).call(params)

    async def estimate_gas(self, handle, method, args, sender):
        gas = await self._function(handle, method, args).estimate_gas({
            'from': AsyncWeb3.to_checksum_address(sender)
        })
        logger.debug(f"Estimated gas for {handle.label}.{method}: {gas}")
        return gas

    async def send(self, handle, method, args, sender, gas):
        function = self._function(handle, method, args)
        from_address = AsyncWeb3.to_checksum_address(sender)

        if self.account or self.signer:
            tx_params = {
                'from': from_address,
                'nonce': await self.w3.eth.get_transaction_count(from_address),
                'gas': gas,
            }
            tx = await function.build_transaction(tx_params)
            signer = self.account or self.signer
            signed_tx = signer.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        else:
            tx_hash = await function.transact({'from': from_address, 'gas': gas})

        yield TransactionHash('0x' + bytes(tx_hash).hex())

        receipt = await self.w3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=self.receipt_timeout,
            poll_latency=self.poll_interval
        )
        yield TransactionReceipt(dict(receipt))

    async def close(self) -> None:
        provider = self.w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
