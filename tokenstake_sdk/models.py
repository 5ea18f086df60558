"""
Data models for the TokenStake SDK.
"""
from enum import Enum
from typing import Dict, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .amounts import AmountLike


class PoolSelector(str, Enum):
    """Named staking tiers, one pool contract per tier and network"""
    SEVEN_DAYS = "sevenDays"
    TEN_DAYS = "tenDays"
    THIRTY_DAYS = "thirtyDays"
    NINETY_DAYS = "ninetyDays"


class ActionKind(str, Enum):
    """Kinds of on-chain writes driven by the orchestrator"""
    APPROVE = "approve"
    STAKE = "stake"
    UNSTAKE = "unstake"
    CLAIM = "claim"
    INITIALIZE = "initialize"


class StakingContext(BaseModel):
    """
    Who is acting, on which pool, on which chain.

    Passed explicitly into every gateway and orchestrator call.
    """
    model_config = ConfigDict(frozen=True)

    address: str
    selector: str
    chain_id: int

    def with_selector(self, selector: str) -> "StakingContext":
        """Return a copy pointing at another pool tier"""
        return self.model_copy(update={"selector": selector})


class StakePool(BaseModel):
    """Read-only view of a pool contract"""
    selector: str
    apy: int
    total_staked: int
    min_stake: int
    max_stake: int
    early_unstake_fee: int
    start_time: int
    end_time: int
    lock_seconds: int
    paused: bool


class UserPosition(BaseModel):
    """Per-address stake figures as returned by getUser"""
    model_config = ConfigDict(populate_by_name=True)

    address: str
    stake_amount: int = Field(0, alias="stakeAmount")
    last_stake_time: int = Field(0, alias="lastStakeTime")
    last_reward_calculation_time: int = Field(0, alias="lastRewardCalculationTime")
    reward_amount: int = Field(0, alias="rewardAmount")
    reward_claimed_so_far: int = Field(0, alias="rewardClaimedSoFar")

    @classmethod
    def from_chain(cls, address: str, raw: Any) -> "UserPosition":
        """
        Build a position from the getUser return value.

        web3 returns structs either as a mapping or as a positional tuple
        (stakeAmount, rewardAmount, lastStakeTime, lastRewardCalculationTime,
        rewardClaimedSoFar).
        """
        if isinstance(raw, dict):
            return cls.model_validate({"address": address, **raw})
        (stake_amount, reward_amount, last_stake_time,
         last_calc_time, claimed) = tuple(raw)
        return cls(
            address=address,
            stake_amount=stake_amount,
            reward_amount=reward_amount,
            last_stake_time=last_stake_time,
            last_reward_calculation_time=last_calc_time,
            reward_claimed_so_far=claimed,
        )


class PendingAction(BaseModel):
    """An in-flight user intent; never persisted"""
    model_config = ConfigDict(frozen=True)

    kind: ActionKind
    selector: str
    amount: Optional[int] = None


class InitializeParams(BaseModel):
    """Arguments for the one-time pool initialize call"""
    owner: str
    token_address: str
    apy: int
    min_stake: AmountLike
    max_stake: AmountLike
    start_time: int
    end_time: int
    lock_days: int
    early_unstake_fee: int


class TransactionRecord(BaseModel):
    """A confirmed transaction as stored in the ledger"""
    model_config = ConfigDict(populate_by_name=True)

    kind: ActionKind
    amount: Optional[int] = None
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    block_hash: str = Field(..., alias="blockHash")
    block_number: int = Field(..., alias="blockNumber")
    cumulative_gas_used: int = Field(0, alias="cumulativeGasUsed")
    effective_gas_price: Optional[int] = Field(None, alias="effectiveGasPrice")
    gas_used: int = Field(..., alias="gasUsed")
    status: int
    tx_hash: str = Field(..., alias="transactionHash")
    tx_type: Optional[int] = Field(None, alias="type")

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_receipt(
        cls,
        kind: ActionKind,
        receipt: Dict[str, Any],
        amount: Optional[int] = None
    ) -> "TransactionRecord":
        """
        Convert a web3 receipt to a ledger record

        Args:
            kind: Action that produced the receipt
            receipt: The web3 transaction receipt
            amount: Base-unit amount moved by the action, if any

        Returns:
            TransactionRecord
        """
        receipt_dict = dict(receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = '0x' + bytes(value).hex()

        receipt_dict.pop("logs", None)
        receipt_dict.pop("logsBloom", None)
        return cls.model_validate({**receipt_dict, "kind": kind, "amount": amount})
