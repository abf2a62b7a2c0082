"""Build normalized remote-ledger documents from converted rows.

Each builder takes the rows of one document group plus the account (and
vendor) maps, resolves every label, and returns a payload for the
connector. An unresolved label raises ResolutionError for that group.
"""

from datetime import date
from decimal import Decimal
from typing import Mapping, Optional, Sequence, Tuple

from connectors.ledger_base import (
    BillLinePayload,
    BillPayload,
    JournalEntryPayload,
    JournalLinePayload,
    PostingType,
)
from core.errors import ResolutionError
from core.models import BillRow, JournalRow
from core.money import ZERO, parse_amount
from name_resolver import NameResolver


def to_iso_date(value: Optional[str], today: Optional[date] = None) -> str:
    """Normalize M/D/YY or M/D/YYYY to YYYY-MM-DD.

    Two-digit years are 20xx. Blank means today; any other shape is
    passed through unchanged.
    """
    text = (value or "").strip()
    if not text:
        return (today or date.today()).isoformat()

    parts = text.split("/")
    if len(parts) == 3:
        month, day, year = parts
        if len(year) == 2:
            year = "20" + year
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    return text


def optional_iso_date(value: Optional[str]) -> Optional[str]:
    """Like to_iso_date, but blank stays None."""
    if not (value or "").strip():
        return None
    return to_iso_date(value)


def journal_line_amount(row: JournalRow) -> Tuple[Decimal, PostingType]:
    """Magnitude and side of a journal line.

    Debit wins when it holds anything but "" or "0"; a line with neither
    side filled is a zero Credit.
    """
    amount = parse_amount(row.debit or row.credit) or ZERO
    if row.debit not in ("", "0"):
        return amount, PostingType.DEBIT
    return amount, PostingType.CREDIT


def _account_not_found(label: str, document_number: str) -> ResolutionError:
    return ResolutionError(
        f'Account "{label}" not found in QuickBooks.',
        label=label,
        document_number=document_number,
    )


def build_journal_payload(
    document_number: str,
    rows: Sequence[JournalRow],
    accounts: Mapping[str, str],
    resolver: Optional[NameResolver] = None,
) -> JournalEntryPayload:
    resolver = resolver or NameResolver()

    lines = []
    for row in rows:
        account_id = resolver.resolve(row.account, accounts)
        if account_id is None:
            raise _account_not_found(row.account, document_number)

        amount, posting_type = journal_line_amount(row)
        lines.append(JournalLinePayload(
            description=row.description,
            amount=amount,
            posting_type=posting_type,
            account_id=account_id,
        ))

    return JournalEntryPayload(
        document_number=document_number,
        txn_date=to_iso_date(rows[0].journal_date if rows else ""),
        lines=lines,
    )


def build_bill_payload(
    document_number: str,
    rows: Sequence[BillRow],
    accounts: Mapping[str, str],
    vendors: Mapping[str, str],
    resolver: Optional[NameResolver] = None,
) -> BillPayload:
    resolver = resolver or NameResolver()
    head = rows[0] if rows else BillRow(bill_no=document_number)

    vendor_id = resolver.resolve_exact(head.supplier, vendors)
    if vendor_id is None:
        raise ResolutionError(
            f'Vendor "{head.supplier}" not found in QuickBooks.',
            label=head.supplier,
            document_number=document_number,
        )

    lines = []
    for row in rows:
        account_id = resolver.resolve(row.account, accounts)
        if account_id is None:
            raise _account_not_found(row.account, document_number)

        lines.append(BillLinePayload(
            description=row.description,
            amount=parse_amount(row.line_amount) or ZERO,
            account_id=account_id,
        ))

    return BillPayload(
        document_number=document_number,
        txn_date=to_iso_date(head.bill_date),
        due_date=optional_iso_date(head.due_date),
        vendor_id=vendor_id,
        lines=lines,
    )
