#!/usr/bin/env python3
"""
Simple example of using the TokenStake SDK.
"""
import os
import asyncio
import logging

from tokenstake_sdk import StakingClient


async def main():
    """
    Demonstrate basic usage of the StakingClient.

    This example shows how to:
    1. Connect to a configured network
    2. Read the overview of a pool tier
    3. Stake tokens (approving the pool first when needed)
    4. List the locally recorded transactions
    """
    logging.basicConfig(level=logging.INFO)

    # Read configuration from environment
    CHAIN_ID = int(os.environ.get("CHAIN_ID", "31337"))
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    POOL = os.environ.get("POOL", "sevenDays")
    AMOUNT = os.environ.get("STAKE_AMOUNT", "100")

    if not PRIVATE_KEY:
        print("ERROR: PRIVATE_KEY environment variable is required")
        return

    async def show_results(record):
        print(f"Confirmed {record.kind.value} in block {record.block_number}: {record.tx_hash}")

    client = StakingClient.from_network(CHAIN_ID, priv_key=PRIVATE_KEY, on_confirmed=show_results)
    try:
        context = await client.connect(POOL)
        print(f"Connected to {client.network_name} as {context.address}")

        overview = await client.refresh(context)
        if overview is None:
            return
        for label, value in overview.render().items():
            print(f"  {label}: {value}")

        result = await client.stake(context, AMOUNT)
        if not result.ok:
            print(f"Stake failed ({result.state.value}): {result.error}")
            return

        print("Transaction history:")
        for record in client.transactions():
            print(f"  {record.kind.value:<10} {record.amount or '-'} {record.tx_hash}")
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
