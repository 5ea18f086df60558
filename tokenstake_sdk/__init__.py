"""
TokenStake SDK - client for token-staking smart contracts.
"""
from .version import __version__
from .client import StakingClient, FlowResult, LoggingNotifier, Notifier
from .config import NetworkConfig
from .gateway import ContractGateway, PoolHandle, TokenHandle
from .transport import ChainTransport, Web3Transport, TransactionHash, TransactionReceipt
from .orchestrator import TransactionOrchestrator, FlowState
from .ledger import TransactionLedger
from .storage import LocalStore
from .status import StakingStatus, CountdownTimer, derive_status, countdown, countdown_plan
from .amounts import to_base_units, to_display_units
from .models import (
    ActionKind, InitializeParams, PendingAction, PoolSelector, StakePool,
    StakingContext, TransactionRecord, UserPosition
)
from .exceptions import (
    StakingError, InvalidAmount, InsufficientBalance, InsufficientStake,
    NoRewardAvailable, UnknownPool, UnknownNetwork, UnknownProvider,
    GatewayUnavailable, AlreadyInProgress, EstimationFailed, SubmissionFailed,
    TransactionFailed
)

__all__ = [
    "StakingClient",
    "FlowResult",
    "LoggingNotifier",
    "Notifier",
    "NetworkConfig",
    "ContractGateway",
    "PoolHandle",
    "TokenHandle",
    "ChainTransport",
    "Web3Transport",
    "TransactionHash",
    "TransactionReceipt",
    "TransactionOrchestrator",
    "FlowState",
    "TransactionLedger",
    "LocalStore",
    "StakingStatus",
    "CountdownTimer",
    "derive_status",
    "countdown",
    "countdown_plan",
    "to_base_units",
    "to_display_units",
    "ActionKind",
    "InitializeParams",
    "PendingAction",
    "PoolSelector",
    "StakePool",
    "StakingContext",
    "TransactionRecord",
    "UserPosition",
    "StakingError",
    "InvalidAmount",
    "InsufficientBalance",
    "InsufficientStake",
    "NoRewardAvailable",
    "UnknownPool",
    "UnknownNetwork",
    "UnknownProvider",
    "GatewayUnavailable",
    "AlreadyInProgress",
    "EstimationFailed",
    "SubmissionFailed",
    "TransactionFailed",
    "__version__",
]
