"""
ABI fragments for the token and staking contracts.

Only the methods the SDK calls are listed.
"""


def _view(name, outputs, inputs=()):
    return {
        "inputs": [{"internalType": t, "name": n, "type": t} for n, t in inputs],
        "name": name,
        "outputs": [{"internalType": t, "name": n, "type": t} for n, t in outputs],
        "stateMutability": "view",
        "type": "function",
    }


def _write(name, inputs=()):
    return {
        "inputs": [{"internalType": t, "name": n, "type": t} for n, t in inputs],
        "name": name,
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    }


ERC20_ABI = [
    _view("balanceOf", [("", "uint256")], [("account", "address")]),
    _view("allowance", [("", "uint256")], [("owner", "address"), ("spender", "address")]),
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"}
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
]

USER_STRUCT = {
    "components": [
        {"internalType": "uint256", "name": "stakeAmount", "type": "uint256"},
        {"internalType": "uint256", "name": "rewardAmount", "type": "uint256"},
        {"internalType": "uint256", "name": "lastStakeTime", "type": "uint256"},
        {"internalType": "uint256", "name": "lastRewardCalculationTime", "type": "uint256"},
        {"internalType": "uint256", "name": "rewardClaimedSoFar", "type": "uint256"}
    ],
    "internalType": "struct TokenStaking.User",
    "name": "",
    "type": "tuple"
}

STAKING_ABI = [
    _view("getTotalUsers", [("", "uint256")]),
    _view("getAPY", [("", "uint256")]),
    {
        "inputs": [{"internalType": "address", "name": "userAddress", "type": "address"}],
        "name": "getUser",
        "outputs": [USER_STRUCT],
        "stateMutability": "view",
        "type": "function"
    },
    _view("getTotalStakedTokens", [("", "uint256")]),
    _view("getEarlyUnstakeFeePercentage", [("", "uint256")]),
    _view("getMinimumStakingAmount", [("", "uint256")]),
    _view("getStakingStatus", [("", "bool")]),
    _view("getStakeStartDate", [("", "uint256")]),
    _view("getStakeEndDate", [("", "uint256")]),
    _view("getStakeDays", [("", "uint256")]),
    _view("getUserEstimatedRewards", [("", "uint256")]),
    _write("stake", [("_amount", "uint256")]),
    _write("unstake", [("_amount", "uint256")]),
    _write("claimReward"),
    _write("initialize", [
        ("owner_", "address"),
        ("tokenAddress_", "address"),
        ("apyRate_", "uint256"),
        ("minimumStakingAmount_", "uint256"),
        ("maxStakeTokenLimit_", "uint256"),
        ("stakeStartDate_", "uint256"),
        ("stakeEndDate_", "uint256"),
        ("stakeDays_", "uint256"),
        ("earlyUnstakeFeePercentage_", "uint256"),
    ]),
]
