"""Ledger ingestion - payment-processor CSV exports to a canonical ledger.

Each file is read and parsed in its own asyncio task with a private row
buffer. Disk reads run in worker threads; parsing is synchronous within a
task. When all tasks have finished, buffers are merged in input-file order,
run-unique identifiers are assigned from one shared counter, and the merged
ledger is sorted newest-first and grouped into reporting days.

A file that cannot be read or parsed is logged, counted as failed and
contributes no rows. The batch only fails (ParseError) when no file yields
a usable row.

Usage:
    from ingestion import LedgerIngestor
    from core.models import SourceKind

    summary = await LedgerIngestor().ingest_paths(["orders.csv"], SourceKind.SHOPIFY)
"""

import asyncio
import csv
import io
import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from decimal import Decimal
from pathlib import Path
from typing import Awaitable, Dict, List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from core.config import get_settings
from core.errors import ParseError
from core.models import ReportSummary, SourceKind, Transaction
from core.money import ZERO, cent_add, cent_sum, parse_amount
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import record_ingestion
from ingestion.columns import ColumnResolver
from ingestion.grouping import ReportingDayGrouper, date_range_label
from ingestion.sources import SourceProfile, get_profile

logger = get_logger(__name__)


# Anything that is not part of a plain signed decimal ("$1,234.50 USD")
_AMOUNT_NOISE = re.compile(r"[^0-9.\-]+")

_TIMESTAMP_FORMATS = [
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
    "%m/%d/%y %H:%M:%S",
    "%m/%d/%y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
]


# =============================================================================
# Inputs
# =============================================================================

@dataclass(frozen=True)
class SourceFile:
    """One uploaded export: display name plus decoded text."""
    name: str
    content: str


async def load_source_file(path: Union[str, Path]) -> SourceFile:
    """Read a CSV export from disk without blocking the event loop."""
    path = Path(path)
    content = await asyncio.to_thread(path.read_text, encoding="utf-8-sig")
    return SourceFile(name=path.name, content=content)


# =============================================================================
# Field parsing
# =============================================================================

def clean_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse an export amount cell.

    Blank is zero. Currency symbols, separators and labels are stripped
    first; None means the cell held something that is not a number.
    """
    if raw is None or not raw.strip():
        return ZERO
    return parse_amount(_AMOUNT_NOISE.sub("", raw))


def parse_timestamp(raw: Optional[str], reporting_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Parse an export timestamp into naive local wall-clock time.

    Offset-bearing values are converted to `reporting_tz` when given and
    otherwise keep the wall-clock time they were written with.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None

    if parsed.tzinfo is not None:
        if reporting_tz is not None:
            parsed = parsed.astimezone(reporting_tz)
        parsed = parsed.replace(tzinfo=None)
    return parsed


# =============================================================================
# Per-file parsing
# =============================================================================

@dataclass
class ParsedRow:
    """An accepted row awaiting its run-unique identifier."""
    reference: Optional[str]
    timestamp: datetime
    customer_name: str
    amount: Decimal
    fee: Decimal
    net: Decimal
    type: str
    card_brand: str
    currency: str
    source_file: str


@dataclass
class FileParseResult:
    source_file: str
    rows: List[ParsedRow] = field(default_factory=list)
    skipped: int = 0


def _is_blank(record: Dict[Optional[str], object]) -> bool:
    for key, value in record.items():
        if key is None or value is None:
            continue
        if isinstance(value, str) and value.strip():
            return False
    return True


class LedgerIngestor:
    """Turns payment-processor exports into a grouped ReportSummary."""

    def __init__(
        self,
        grouper: Optional[ReportingDayGrouper] = None,
        reporting_timezone: Optional[str] = None,
    ):
        self.grouper = grouper or ReportingDayGrouper()
        tz_name = reporting_timezone or get_settings().reporting_timezone
        self.reporting_tz: Optional[tzinfo] = ZoneInfo(tz_name) if tz_name else None

    async def ingest(
        self,
        files: Sequence[SourceFile],
        source_kind: Union[SourceKind, str],
    ) -> ReportSummary:
        """Parse, merge, sort and group a batch of in-memory exports.

        Raises:
            ParseError: if no file in the batch yields a usable row
            ValueError: if the source kind is unknown
        """
        profile = get_profile(source_kind)
        return await self._ingest_batch(
            profile,
            [source.name for source in files],
            [self._parse_file(source, profile) for source in files],
        )

    async def ingest_paths(
        self,
        paths: Sequence[Union[str, Path]],
        source_kind: Union[SourceKind, str],
    ) -> ReportSummary:
        """Read and ingest exports from disk.

        Each file is read inside its own task, so a file that is missing or
        does not decode fails alone like a file that does not parse.
        """
        profile = get_profile(source_kind)
        paths = [Path(p) for p in paths]
        return await self._ingest_batch(
            profile,
            [path.name for path in paths],
            [self._load_and_parse(path, profile) for path in paths],
        )

    async def _load_and_parse(self, path: Path, profile: SourceProfile) -> FileParseResult:
        with with_correlation(source_file=path.name):
            source = await load_source_file(path)
        return await self._parse_file(source, profile)

    async def _ingest_batch(
        self,
        profile: SourceProfile,
        names: List[str],
        tasks: List[Awaitable[FileParseResult]],
    ) -> ReportSummary:
        run_id = f"ingest-{uuid.uuid4().hex[:8]}"
        start = time.monotonic()

        with with_correlation(run_id=run_id, source_kind=profile.kind.value, stage="ingest"):
            logger.info(f"Ingesting {len(names)} {profile.kind.value} file(s)")

            results = await asyncio.gather(
                *tasks,
                return_exceptions=True,
            )

            parsed: List[ParsedRow] = []
            skipped = 0
            failed = 0
            for name, result in zip(names, results):
                if isinstance(result, Exception):
                    failed += 1
                    logger.warning(f"Could not ingest {name}: {result}")
                    continue
                if isinstance(result, BaseException):
                    raise result
                parsed.extend(result.rows)
                skipped += result.skipped

            duration_ms = (time.monotonic() - start) * 1000
            record_ingestion(
                profile.kind.value,
                files=len(names),
                accepted=len(parsed),
                skipped=skipped,
                files_failed=failed,
                duration_ms=duration_ms,
            )

            if not parsed:
                raise ParseError(
                    f"Failed to parse {profile.kind.value} CSV files: no valid transactions found."
                )

            transactions = self._assign_ids(parsed, profile)
            # list.sort is stable with reverse=True; equal timestamps keep emission order
            transactions.sort(key=lambda t: t.timestamp, reverse=True)

            groups = self.grouper.group(transactions)

            summary = ReportSummary(
                date_range=date_range_label(groups),
                total_amount=cent_sum(t.amount for t in transactions),
                total_fees=cent_sum(t.fee for t in transactions),
                total_net=cent_sum(t.net for t in transactions),
                transaction_count=len(transactions),
                daily_groups=groups,
                all_transactions=transactions,
            )

            logger.info(
                f"Ingested {summary.transaction_count} transactions into {len(groups)} reporting day(s)",
                extra_fields={"skipped": skipped, "files_failed": failed, "duration_ms": duration_ms},
            )
            return summary

    async def _parse_file(self, source: SourceFile, profile: SourceProfile) -> FileParseResult:
        with with_correlation(source_file=source.name):
            content = source.content.lstrip("\ufeff")
            reader = csv.DictReader(io.StringIO(content))
            if reader.fieldnames is None:
                logger.warning("File has no header row")
                return FileParseResult(source_file=source.name)

            reader.fieldnames = [name.strip() for name in reader.fieldnames]
            resolver = ColumnResolver(reader.fieldnames, profile.fields)

            result = FileParseResult(source_file=source.name)
            for line_no, record in enumerate(reader, start=2):
                row = self._parse_record(record, resolver, profile, source.name)
                if row is None:
                    result.skipped += 1
                    logger.debug(f"Skipped line {line_no}")
                    continue
                result.rows.append(row)

            logger.debug(f"Parsed {len(result.rows)} rows, skipped {result.skipped}")
            return result

    def _parse_record(
        self,
        record: Dict[Optional[str], object],
        resolver: ColumnResolver,
        profile: SourceProfile,
        source_name: str,
    ) -> Optional[ParsedRow]:
        """Normalize one CSV record; None drops the row."""
        if _is_blank(record):
            return None

        parts = [resolver.get(record, name) for name in profile.timestamp_fields]
        if any(part is None for part in parts):
            return None
        timestamp = parse_timestamp(" ".join(parts), self.reporting_tz)
        if timestamp is None:
            return None

        status = resolver.get(record, "status")
        if status in profile.excluded_types:
            return None

        amount = clean_amount(resolver.get(record, "amount"))
        fee = clean_amount(resolver.get(record, "fee"))
        net = clean_amount(resolver.get(record, "net"))
        if amount is None or fee is None or net is None:
            return None

        if profile.drop_all_zero and amount == 0 and fee == 0 and net == 0:
            return None

        if net == 0 and (amount != 0 or fee != 0):
            net = cent_add(amount, fee)

        return ParsedRow(
            reference=resolver.get(record, "reference"),
            timestamp=timestamp,
            customer_name=resolver.get(record, "customer"),
            amount=amount,
            fee=fee,
            net=net,
            type=status,
            card_brand=profile.fixed_card_brand or resolver.get(record, "card_brand"),
            currency=resolver.get(record, "currency"),
            source_file=source_name,
        )

    def _assign_ids(self, rows: List[ParsedRow], profile: SourceProfile) -> List[Transaction]:
        transactions = []
        for counter, row in enumerate(rows):
            reference = row.reference or f"{profile.reference_prefix}-{counter}"
            transactions.append(
                Transaction(
                    id=f"{reference}-{counter}",
                    order_number=reference,
                    timestamp=row.timestamp,
                    customer_name=row.customer_name,
                    amount=row.amount,
                    fee=row.fee,
                    net=row.net,
                    type=row.type,
                    card_brand=row.card_brand,
                    currency=row.currency,
                    source_file=row.source_file,
                )
            )
        return transactions
