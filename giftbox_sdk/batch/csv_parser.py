"""
Batch file ingestion.

Turns a delimited recipient table into ``BulkEntry`` objects. Row problems
are collected and reported, they never stop the rest of the file from being
read. Only structural problems (no usable header, too many rows) reject the
whole batch.
"""
import csv
import io
import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from .. import assets
from ..config import BulkConfig
from ..models import (
    AssetSelection,
    BulkEntry,
    NativeAsset,
    NonFungibleMulti,
    NonFungibleSingle,
    RecipientKind,
    classify_recipient,
)

logger = logging.getLogger(__name__)

# Accepted header names per column, matched case-insensitively
RECIPIENT_COLUMNS = ("recipient", "address", "wallet", "ens", "to")
AMOUNT_COLUMNS = ("amount", "value", "quantity", "eth")
UNLOCK_DATE_COLUMNS = ("unlock_date", "unlock", "date", "when")
MESSAGE_COLUMNS = ("message", "note", "memo", "description")

TABLE_HEADER = ["recipient", "amount", "unlock_date", "message"]

CSV_TEMPLATE = """recipient,amount,unlock_date,message
vitalik.eth,0.01,2025-02-14,Happy Valentine's Day!
0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0,0.02,2025-03-01,Thank you for your loyalty
alice.eth,0.015,2025-02-14,Enjoy your special gift
bob.eth,0.01,2025-02-20,Coffee on us!
carol.eth,0.02,2025-03-15,Spring promotion gift
"""

_YMD = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_MDY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DMY = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")


class ParseResult(BaseModel):
    """Outcome of parsing a batch table"""
    entries: List[BulkEntry] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def _find_column(headers: Sequence[str], names: Sequence[str]) -> int:
    for name in names:
        if name in headers:
            return headers.index(name)
    return -1


def parse_date(value: str) -> Optional[datetime]:
    """
    Parse an unlock date.

    Accepts ISO-8601 plus ``YYYY-MM-DD``, ``MM/DD/YYYY`` and ``DD-MM-YYYY``.
    Values without a timezone are taken as UTC.

    Returns:
        An aware datetime, or None if the value is not a date
    """
    text = value.strip()
    if not text:
        return None

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for pattern, order in ((_YMD, "ymd"), (_MDY, "mdy"), (_DMY, "dmy")):
            match = pattern.match(text)
            if not match:
                continue
            parts = dict(zip(order, (int(g) for g in match.groups())))
            try:
                parsed = datetime(parts["y"], parts["m"], parts["d"])
            except ValueError:
                return None
            break

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _cell(values: Sequence[str], index: int) -> str:
    if index == -1 or index >= len(values):
        return ""
    return values[index].strip()


def _amount_error(template: AssetSelection, amount: str) -> Optional[str]:
    if isinstance(template, NonFungibleMulti):
        if not amount.isdigit() or int(amount) < 1:
            return f"Invalid quantity: {amount}"
        return None
    if not assets.is_positive_decimal(amount):
        return f"Invalid amount: {amount}"
    return None


def parse(
    raw: str,
    asset_template: Optional[AssetSelection] = None,
    config: Optional[BulkConfig] = None,
    now: Optional[float] = None
) -> ParseResult:
    """
    Parse a recipient table.

    Args:
        raw: Table text with a header row
        asset_template: Asset every row sends; the row's amount replaces the
            template's. Defaults to native coin.
        config: Batch settings; defaults to ``BulkConfig()``
        now: Parse time in unix seconds, used for the default unlock date

    Returns:
        ParseResult. When a batch-level error occurs, ``entries`` is empty
        and ``errors`` holds a single message.

    Raises:
        ValueError: If the asset template is a single-edition NFT, which
            cannot be spread across rows
    """
    template = asset_template if asset_template is not None else NativeAsset(amount="0")
    if isinstance(template, NonFungibleSingle):
        raise ValueError("A single-edition NFT cannot be used as a batch asset")
    config = config or BulkConfig()
    parse_time = time.time() if now is None else now

    result = ParseResult()
    # Spreadsheet exports often start with a byte-order mark
    if raw.startswith("\ufeff"):
        raw = raw[1:]
    lines = [line for line in raw.splitlines() if line.strip()]
    if not lines:
        result.errors.append("CSV file is empty")
        return result

    rows = list(csv.reader(lines, skipinitialspace=True))
    headers = [h.strip().lower() for h in rows[0]]

    recipient_idx = _find_column(headers, RECIPIENT_COLUMNS)
    amount_idx = _find_column(headers, AMOUNT_COLUMNS)
    date_idx = _find_column(headers, UNLOCK_DATE_COLUMNS)
    message_idx = _find_column(headers, MESSAGE_COLUMNS)

    if recipient_idx == -1:
        result.errors.append("Missing required column: recipient/address")
        return result
    if amount_idx == -1:
        result.errors.append("Missing required column: amount")
        return result

    for position, values in enumerate(rows[1:], start=1):
        row = position + 1

        if len(values) <= max(recipient_idx, amount_idx):
            result.errors.append(f"Row {row}: Incomplete data")
            continue

        recipient = _cell(values, recipient_idx)
        amount = _cell(values, amount_idx)
        unlock_date = _cell(values, date_idx)
        message = _cell(values, message_idx) or config.default_message

        if not recipient:
            result.errors.append(f"Row {row}: Missing recipient address")
            continue
        identifier = classify_recipient(recipient)
        if identifier.kind == RecipientKind.INVALID:
            result.errors.append(f"Row {row}: Invalid recipient: {recipient}")
            continue

        amount_problem = _amount_error(template, amount)
        if amount_problem:
            result.errors.append(f"Row {row}: {amount_problem}")
            continue

        if unlock_date:
            parsed = parse_date(unlock_date)
            if parsed is None:
                result.errors.append(f"Row {row}: Invalid date format: {unlock_date}")
                continue
            unlock_timestamp = int(parsed.timestamp())
        else:
            unlock_timestamp = int(parse_time + config.default_unlock_hours * 3600)
            result.warnings.append(
                f"Row {row}: No unlock date provided, using default "
                f"({config.default_unlock_hours} hours from now)"
            )

        result.entries.append(BulkEntry(
            id=f"entry-{position}",
            row=row,
            recipient=identifier,
            alias=identifier.value if identifier.kind == RecipientKind.ALIAS else None,
            asset=template.model_copy(update={"amount": amount}),
            unlock_timestamp=unlock_timestamp,
            message=message,
        ))

    if not result.entries:
        result.errors.append("No valid entries found in CSV")
        return result

    if len(result.entries) > config.max_recipients:
        count = len(result.entries)
        logger.warning(f"Rejecting batch of {count} entries, limit is {config.max_recipients}")
        result.entries = []
        result.errors.append(f"Too many recipients: {count}. Maximum allowed: {config.max_recipients}")
        return result

    logger.debug(
        f"Parsed {len(result.entries)} entries with {len(result.errors)} errors "
        f"and {len(result.warnings)} warnings"
    )
    return result


def entries_to_table(entries: Sequence[BulkEntry]) -> str:
    """
    Write entries back out as a table that ``parse`` accepts.

    Unlock dates are written as full UTC timestamps so re-parsing gives the
    same unlock times.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(TABLE_HEADER)
    for entry in entries:
        unlock = datetime.fromtimestamp(entry.unlock_timestamp, tz=timezone.utc)
        writer.writerow([
            entry.recipient.value,
            getattr(entry.asset, "amount", "1"),
            unlock.strftime("%Y-%m-%dT%H:%M:%SZ"),
            entry.message,
        ])
    return buffer.getvalue()


def write_template(path: Union[str, Path]) -> Path:
    """Write the example recipient table to ``path``."""
    target = Path(path)
    target.write_text(CSV_TEMPLATE, encoding="utf-8")
    logger.info(f"Wrote batch template to {target}")
    return target

