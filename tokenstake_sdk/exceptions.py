"""
Exceptions for the TokenStake SDK.

Every error raised inside a staking flow derives from StakingError and carries
a message that can be shown to the user as-is.
"""
from typing import Optional


class StakingError(Exception):
    """Base exception for all staking flow errors."""
    pass


class InvalidAmount(StakingError, ValueError):
    """Raised when a user-entered amount is malformed, zero or negative."""
    pass


class InsufficientBalance(StakingError):
    """Raised when the wallet holds fewer tokens than the stake requires."""
    pass


class InsufficientStake(StakingError):
    """Raised when unstaking more than is currently staked."""
    pass


class NoRewardAvailable(StakingError):
    """Raised when claiming with no estimated reward."""
    pass


class UnknownPool(StakingError, ValueError):
    """Raised when a pool selector is not configured for the active network."""
    pass


class UnknownNetwork(StakingError, ValueError):
    """Raised when a chain id has no network configuration."""
    pass


class UnknownProvider(StakingError):
    """Raised when the wallet/provider connection cannot be established."""
    pass


class GatewayUnavailable(StakingError):
    """Raised when a read against the chain transport fails."""
    pass


class AlreadyInProgress(StakingError):
    """Raised when the same action is already running for a caller and pool."""
    pass


class EstimationFailed(StakingError):
    """Raised when gas estimation fails or the call would revert."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(message)


class SubmissionFailed(StakingError):
    """Raised when sending or confirming a transaction fails."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


# Failed is the name used by the flow state machine
TransactionFailed = SubmissionFailed


def format_chain_error(error: BaseException) -> str:
    """
    Turn a transport/web3 exception into a short user-facing message.

    Revert reasons from ContractLogicError are surfaced when present.

    Args:
        error: The exception to format

    Returns:
        Human readable message
    """
    if isinstance(error, StakingError):
        return str(error)

    message = getattr(error, "message", None) or str(error) or type(error).__name__
    if "execution reverted:" in message:
        reason = message.split("execution reverted:", 1)[1].strip()
        if reason:
            return reason
    return message
