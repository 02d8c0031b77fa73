"""
Batch orchestration: validate entries, then send them one at a time.
"""
import asyncio
import logging
import time
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel

from .. import assets, calls
from ..abi import GIFTBOX_ABI
from ..config import BulkConfig
from ..exceptions import BatchLimitExceeded, ConfirmationTimeout, InvalidFormatError, PreconditionError
from ..models import BatchSummary, BulkEntry, EntryStatus
from ..preconditions import PreconditionChecker
from ..resolver import RecipientResolver
from ..session import Session, confirm

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[BulkEntry, BatchSummary], None]

# Entries that passed validation, whatever happened to them afterwards
_VALIDATED = frozenset({EntryStatus.VALID, EntryStatus.SENDING, EntryStatus.SENT, EntryStatus.FAILED})


class CancellationToken:
    """Stops a running ``send`` before its next entry starts."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class BatchReport(BaseModel):
    """Per-entry outcomes plus the summary derived from them"""
    entries: List[BulkEntry]
    summary: BatchSummary
    cancelled: bool = False


def _format_decimal(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def summarize(entries: Sequence[BulkEntry], gas_price_wei: int = calls.DEFAULT_GAS_PRICE_WEI) -> BatchSummary:
    """
    Derive a batch summary from its entries.

    Amounts and fees count every entry that has not been rejected.
    """
    total = Decimal(0)
    fee_wei = 0
    for entry in entries:
        if entry.status == EntryStatus.INVALID:
            continue
        try:
            total += assets.display_amount(entry.asset)
        except InvalidFormatError:
            continue
        fee_wei += calls.GAS_LIMITS.get(entry.asset.kind, calls.GAS_LIMITS["native"]) * gas_price_wei

    return BatchSummary(
        total_recipients=len(entries),
        valid_entries=sum(1 for e in entries if e.status in _VALIDATED),
        invalid_entries=sum(1 for e in entries if e.status == EntryStatus.INVALID),
        sent_entries=sum(1 for e in entries if e.status == EntryStatus.SENT),
        failed_entries=sum(1 for e in entries if e.status == EntryStatus.FAILED),
        total_amount=_format_decimal(total),
        estimated_fee=assets.from_base_units(fee_wei, 18),
    )


class BatchOrchestrator:
    """
    Drives a batch of entries through validation and sending.

    Validation resolves recipients with a bounded number of lookups in
    flight. Sending is strictly sequential in input order: the next entry
    does not start until the current one is sent or failed. Entry failures
    are recorded on the entry and never stop the batch.
    An ``on_update`` callback that raises is logged and ignored.
    """

    def __init__(
        self,
        session: Optional[Session],
        resolver: RecipientResolver,
        contract_address: str,
        preconditions: Optional[PreconditionChecker] = None,
        config: Optional[BulkConfig] = None,
        on_update: Optional[UpdateCallback] = None,
        clock: Callable[[], float] = time.time,
        gas_price_wei: int = calls.DEFAULT_GAS_PRICE_WEI,
        logger: Optional[logging.Logger] = None
    ):
        self.session = session
        self.resolver = resolver
        self.contract_address = contract_address
        self.config = config or BulkConfig()
        self.preconditions = preconditions or PreconditionChecker(
            session, confirmation_timeout=self.config.confirmation_timeout
        )
        self.on_update = on_update
        self.clock = clock
        self.gas_price_wei = gas_price_wei
        self.logger = logger or logging.getLogger(__name__)
        self.entries: List[BulkEntry] = []

    @property
    def summary(self) -> BatchSummary:
        return summarize(self.entries, self.gas_price_wei)

    def _load(self, entries: Sequence[BulkEntry]) -> None:
        if len(entries) > self.config.max_recipients:
            raise BatchLimitExceeded(len(entries), self.config.max_recipients)
        self.entries = list(entries)

    def _transition(self, entry: BulkEntry, target: EntryStatus, error: Optional[str] = None) -> None:
        entry.transition(target, error)
        if error:
            self.logger.warning(f"{entry.id} (row {entry.row}) -> {target.value}: {error}")
        else:
            self.logger.debug(f"{entry.id} (row {entry.row}) -> {target.value}")
        if self.on_update is not None:
            try:
                self.on_update(entry, self.summary)
            except Exception as e:
                self.logger.error(f"Update callback failed for {entry.id}: {e}")

    async def validate(self, entries: Sequence[BulkEntry]) -> List[BulkEntry]:
        """
        Validate pending entries.

        Checks run in order recipient, asset, unlock date; the first failure
        marks the entry invalid.

        Raises:
            BatchLimitExceeded: If there are more entries than allowed
        """
        self._load(entries)
        semaphore = asyncio.Semaphore(self.config.validation_concurrency)

        async def _one(entry: BulkEntry) -> None:
            async with semaphore:
                await self._validate_entry(entry)

        await asyncio.gather(*(_one(e) for e in self.entries if e.status == EntryStatus.PENDING))
        summary = self.summary
        self.logger.info(
            f"Validated {summary.total_recipients} entries: "
            f"{summary.valid_entries} valid, {summary.invalid_entries} invalid"
        )
        return self.entries

    async def _validate_entry(self, entry: BulkEntry) -> None:
        self._transition(entry, EntryStatus.VALIDATING)

        try:
            resolution = await self.resolver.resolve(entry.recipient.value)
        except Exception as e:
            self._transition(entry, EntryStatus.INVALID, f"Could not resolve recipient {entry.recipient.value}: {e}")
            return
        if not resolution.ok:
            self._transition(
                entry,
                EntryStatus.INVALID,
                f"Could not resolve recipient {entry.recipient.value}: {resolution.error.value}",
            )
            return
        entry.resolved_address = resolution.address

        problems = assets.validate(entry.asset)
        if not problems:
            try:
                assets.asset_units(entry.asset)
            except InvalidFormatError as e:
                problems = [str(e)]
        if problems:
            self._transition(entry, EntryStatus.INVALID, problems[0])
            return

        if entry.unlock_timestamp <= self.clock():
            self._transition(entry, EntryStatus.INVALID, "Unlock date must be in the future")
            return

        self._transition(entry, EntryStatus.VALID)

    async def send(
        self,
        entries: Optional[Sequence[BulkEntry]] = None,
        cancel: Optional[CancellationToken] = None
    ) -> BatchReport:
        """
        Send every valid entry, one after another.

        Args:
            entries: Entries to send; defaults to the last validated batch
            cancel: Checked before each entry; an entry already sending
                runs to completion

        Returns:
            BatchReport, also when some or all entries failed

        Raises:
            ValueError: If the orchestrator has no session
            BatchLimitExceeded: If there are more entries than allowed
        """
        if self.session is None:
            raise ValueError("A session is required to send gifts")
        if entries is not None:
            self._load(entries)

        cancelled = False
        for entry in self.entries:
            if entry.status != EntryStatus.VALID:
                continue
            if cancel is not None and cancel.cancelled:
                self.logger.info(f"Batch cancelled before {entry.id}")
                cancelled = True
                break
            await self._send_entry(entry)

        summary = self.summary
        self.logger.info(
            f"Batch finished: {summary.sent_entries} sent, {summary.failed_entries} failed"
        )
        return BatchReport(entries=self.entries, summary=summary, cancelled=cancelled)

    async def _send_entry(self, entry: BulkEntry) -> None:
        self._transition(entry, EntryStatus.SENDING)

        if entry.unlock_timestamp <= self.clock():
            self._transition(entry, EntryStatus.FAILED, "Unlock date is no longer in the future")
            return

        try:
            await self.preconditions.ensure_transferable(entry.asset, self.session.address, self.contract_address)
            plan = calls.build(entry)
            tx_hash = await self.session.submit_transaction(self.contract_address, GIFTBOX_ABI, plan)
            entry.tx_ref = tx_hash
            await confirm(self.session, tx_hash, self.config.confirmation_timeout)
        except ConfirmationTimeout as e:
            self._transition(entry, EntryStatus.FAILED, f"Confirmation timeout: {e}")
            return
        except PreconditionError as e:
            # An approval that never confirmed is still a confirmation timeout
            if isinstance(e.cause, ConfirmationTimeout):
                self._transition(entry, EntryStatus.FAILED, f"Confirmation timeout: {e}")
            else:
                self._transition(entry, EntryStatus.FAILED, str(e))
            return
        except Exception as e:
            self._transition(entry, EntryStatus.FAILED, str(e))
            return

        self._transition(entry, EntryStatus.SENT)

    async def run(
        self,
        entries: Sequence[BulkEntry],
        cancel: Optional[CancellationToken] = None
    ) -> BatchReport:
        """Validate, then send whatever passed."""
        await self.validate(entries)
        return await self.send(cancel=cancel)
