"""
giftbox-cli: prepare, check and send gift batches from the command line.
"""
import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import typer

from giftbox_sdk import assets
from giftbox_sdk.batch import BatchOrchestrator, CSV_TEMPLATE, parse, write_template
from giftbox_sdk.client import GiftBoxClient
from giftbox_sdk.config import DEFAULT_NETWORK, BulkConfig, NetworkConfig, get_token
from giftbox_sdk.exceptions import GiftBoxError
from giftbox_sdk.models import AssetSelection, BulkEntry, FungibleAsset, NativeAsset
from giftbox_sdk.resolver import RecipientResolver, format_address
from giftbox_sdk.session import Web3Session
from giftbox_sdk.status import STATUS_TEXT, sort_by_priority, time_until_unlock
from giftbox_sdk.version import __version__

app = typer.Typer(help="Time-locked gifts on the GiftBox contract.")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _asset_template(token: str, network: str) -> AssetSelection:
    info = get_token(token, network)
    if info["address"] is None:
        return NativeAsset(amount="0")
    return FungibleAsset(
        token_address=info["address"],
        decimals=info["decimals"],
        amount="0",
        symbol=info["symbol"],
    )


def _read_batch(path: Path, token: str, network: str, config: BulkConfig):
    try:
        template = _asset_template(token, network)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    result = parse(path.read_text(encoding="utf-8-sig"), asset_template=template, config=config)
    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    for error in result.errors:
        typer.echo(f"Error: {error}", err=True)
    if not result.entries:
        raise typer.Exit(code=1)
    return result


def _contract_address(network: str) -> str:
    try:
        return NetworkConfig.get_gift_box_address(network)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)


def _print_entry(entry: BulkEntry) -> None:
    target = entry.resolved_address or entry.recipient.value
    line = f"{entry.row:>4}  {entry.status.value:<8}  {entry.recipient.value:<30}  {assets.describe(entry.asset):<16}  {format_address(target)}"
    if entry.error:
        line += f"  {entry.error}"
    if entry.tx_ref:
        line += f"  {entry.tx_ref}"
    typer.echo(line)


@app.command()
def version():
    """Print the SDK version."""
    typer.echo(__version__)


@app.command()
def template(
    path: Optional[Path] = typer.Argument(None, help="Where to write the template; prints it if omitted")
):
    """Write an example recipient table."""
    if path is None:
        typer.echo(CSV_TEMPLATE, nl=False)
        return
    write_template(path)
    typer.echo(f"Template written to {path}")


@app.command()
def check(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Recipient table"),
    token: str = typer.Option("ETH", help="Token every row sends"),
    network: str = typer.Option(DEFAULT_NETWORK, help="Network the gifts are sent on"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Parse a batch and validate every recipient without sending anything."""
    _setup_logging(verbose)
    config = BulkConfig.from_env()
    result = _read_batch(path, token, network, config)

    orchestrator = BatchOrchestrator(
        session=None,
        resolver=RecipientResolver(),
        contract_address=_contract_address(network),
        config=config,
    )
    entries = asyncio.run(orchestrator.validate(result.entries))
    for entry in entries:
        _print_entry(entry)

    summary = orchestrator.summary
    typer.echo(
        f"\n{summary.valid_entries}/{summary.total_recipients} valid, "
        f"total {summary.total_amount} {token}, estimated fee {summary.estimated_fee} ETH"
    )
    if summary.invalid_entries or result.errors:
        raise typer.Exit(code=1)


@app.command()
def send(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Recipient table"),
    token: str = typer.Option("ETH", help="Token every row sends"),
    network: str = typer.Option(DEFAULT_NETWORK, help="Network the gifts are sent on"),
    private_key: Optional[str] = typer.Option(
        None, envvar="GIFTBOX_PRIVATE_KEY", help="Sender key (or set GIFTBOX_PRIVATE_KEY)"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Validate a batch and send every valid entry."""
    _setup_logging(verbose)
    if not private_key:
        typer.echo("Error: a private key is required (--private-key or GIFTBOX_PRIVATE_KEY)", err=True)
        raise typer.Exit(code=2)

    config = BulkConfig.from_env()
    result = _read_batch(path, token, network, config)

    session = Web3Session(
        NetworkConfig.get_rpc_url(network),
        priv_key=private_key,
        expected_chain_id=NetworkConfig.get_chain_id(network),
        confirmation_timeout=config.confirmation_timeout,
    )
    orchestrator = BatchOrchestrator(
        session=session,
        resolver=RecipientResolver(),
        contract_address=_contract_address(network),
        config=config,
        on_update=lambda entry, summary: _print_entry(entry) if entry.status.value in ("sent", "failed") else None,
    )

    async def _validate():
        await asyncio.to_thread(session.assert_chain_id)
        return await orchestrator.validate(result.entries)

    try:
        asyncio.run(_validate())
    except GiftBoxError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    summary = orchestrator.summary
    for entry in orchestrator.entries:
        if entry.error:
            _print_entry(entry)
    typer.echo(
        f"{summary.valid_entries}/{summary.total_recipients} valid, "
        f"total {summary.total_amount} {token}, estimated fee {summary.estimated_fee} ETH"
    )
    if summary.valid_entries == 0:
        raise typer.Exit(code=1)
    if not yes and not typer.confirm("Send these gifts?"):
        raise typer.Exit(code=1)

    report = asyncio.run(orchestrator.send())

    typer.echo(f"\n{report.summary.sent_entries} sent, {report.summary.failed_entries} failed")
    for entry in report.entries:
        if entry.tx_ref:
            url = NetworkConfig.get_explorer_tx_url(entry.tx_ref, network)
            if url:
                typer.echo(f"{entry.id}: {url}")
    if report.summary.failed_entries:
        raise typer.Exit(code=1)


@app.command()
def status(
    address: str = typer.Argument(..., help="Account to list gifts for"),
    sent: bool = typer.Option(False, "--sent", help="List gifts sent instead of received"),
    network: str = typer.Option(DEFAULT_NETWORK, help="Network to read from"),
    rpc_url: Optional[str] = typer.Option(None, envvar="GIFTBOX_RPC_URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """List gifts for an account with their current status."""
    _setup_logging(verbose)
    client = GiftBoxClient(rpc_url=rpc_url, network=network)
    try:
        gifts = client.get_sent_gifts(address) if sent else client.get_received_gifts(address)
    except GiftBoxError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if not gifts:
        typer.echo("No gifts found")
        return

    now = int(time.time())
    for gift in sort_by_priority(gifts, now):
        gift_status = gift.status(now)
        other = gift.sender if not sent else (gift.alias or gift.recipient)
        line = f"#{gift.id:<6} {STATUS_TEXT[gift_status]:<16} {assets.describe(gift.asset):<16} {format_address(other) if other.startswith('0x') else other}"
        remaining = time_until_unlock(gift.unlock_timestamp, now)
        if remaining and not gift.claimed:
            line += f"  unlocks in {remaining}"
        if gift.message:
            line += f"  \"{gift.message}\""
        typer.echo(line)


def main():
    app(prog_name="giftbox-cli")


if __name__ == "__main__":
    main()
