#!/usr/bin/env python3
"""
Send a batch of time-locked gifts from a CSV file with the GiftBox SDK.
"""
import asyncio
import os
import sys

from giftbox_sdk import BatchOrchestrator, NetworkConfig, RecipientResolver, Web3Session, parse


async def send_batch(table: str, private_key: str, network: str = "sepolia"):
    """
    Parse, validate and send a batch.

    This example shows how to:
    1. Parse a recipient table
    2. Validate recipients and assets
    3. Send every valid entry one at a time
    """
    result = parse(table)
    for message in result.warnings + result.errors:
        print(message)
    if not result.entries:
        return None

    session = Web3Session(
        NetworkConfig.get_rpc_url(network),
        priv_key=private_key,
        expected_chain_id=NetworkConfig.get_chain_id(network),
    )
    orchestrator = BatchOrchestrator(
        session=session,
        resolver=RecipientResolver(),
        contract_address=NetworkConfig.get_gift_box_address(network),
        on_update=lambda entry, summary: print(f"{entry.id}: {entry.status.value} {entry.error or ''}"),
    )
    return await orchestrator.run(result.entries)


def main():
    private_key = os.environ.get("GIFTBOX_PRIVATE_KEY")
    if not private_key:
        print("ERROR: GIFTBOX_PRIVATE_KEY environment variable is required")
        return
    if len(sys.argv) < 2:
        print("usage: bulk_send.py gifts.csv")
        return

    with open(sys.argv[1], encoding="utf-8") as f:
        report = asyncio.run(send_batch(f.read(), private_key))

    if report is not None:
        summary = report.summary
        print(f"Sent {summary.sent_entries}/{summary.total_recipients}, {summary.failed_entries} failed")


if __name__ == "__main__":
    main()
