"""
Sync reconciliation tests.

A fake connector records every submission. Covers per-document failure
tolerance, strictly sequential submission in first-seen order, payload
shapes for journals and bills, and the error strings reported back.
"""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from connectors import CreatedDocumentRef, LedgerDocumentType, PostingType
from core.errors import ResolutionError, SubmissionError
from core.models import BillRow, ConversionMode, JournalRow
from core.observability.metrics import MetricsCollector
from name_resolver import NameDirectory
from sync import (
    SyncReconciler,
    build_bill_payload,
    build_journal_payload,
    group_rows,
    to_iso_date,
)


ACCOUNTS = {
    "0-121-0 UNDEPOSITED FUNDS": "4",
    "0-401-0 SALES": "12",
    "0-682-0 SHIPPING EXPENSE": "31",
}
VENDORS = {"Acme Freight": "7"}


def journal(no, account, debit="", credit=""):
    return JournalRow(
        journal_no=no,
        journal_date="1/5/24",
        description=f"Daily sales (Ref: {no})",
        account=account,
        debit=debit,
        credit=credit,
    )


def bill(no, supplier="Acme Freight", account="0-682-0", amount="150.00", due="3/10/24"):
    return BillRow(
        bill_no=no,
        supplier=supplier,
        bill_date="2/10/24",
        due_date=due,
        account=account,
        line_amount=amount,
        description="Freight in",
    )


def created(payload, doc_type, idempotency_key):
    return CreatedDocumentRef(
        id=f"qbo-{payload.document_number}",
        document_type=doc_type,
        document_number=payload.document_number,
        idempotency_key=idempotency_key,
    )


def fake_connector():
    connector = AsyncMock()

    async def create_journal_entry(payload, idempotency_key=None):
        return created(payload, LedgerDocumentType.JOURNAL_ENTRY, idempotency_key)

    async def create_bill(payload, idempotency_key=None):
        return created(payload, LedgerDocumentType.BILL, idempotency_key)

    connector.create_journal_entry.side_effect = create_journal_entry
    connector.create_bill.side_effect = create_bill
    return connector


def submit(connector, rows, mode, accounts=ACCOUNTS, vendors=VENDORS):
    directory = NameDirectory(accounts=accounts, vendors=vendors)
    return asyncio.run(SyncReconciler(connector, directory).submit(rows, mode))


@pytest.fixture(autouse=True)
def fresh_metrics():
    MetricsCollector.reset()
    yield
    MetricsCollector.reset()


class TestPartialBatch:
    """One bad group never stops the others."""

    def test_unresolved_account_fails_only_its_group(self):
        connector = fake_connector()
        rows = [
            journal("CPIIF-1", "0-121-0", debit="100.00"),
            journal("CPIIF-1", "0-401-0", credit="100.00"),
            journal("CPIIF-2", "9-999-0 UNKNOWN", debit="5.00"),
            journal("CPIIF-2", "0-401-0", credit="5.00"),
            journal("CPIIF-3", "0-121-0", debit="7.00"),
            journal("CPIIF-3", "0-401-0", credit="7.00"),
        ]

        result = submit(connector, rows, ConversionMode.GL)

        assert result.success_count == 2
        assert result.failure_count == 1
        assert result.errors == ['Journal CPIIF-2: Account "9-999-0 UNKNOWN" not found in QuickBooks.']
        submitted = [c.args[0].document_number for c in connector.create_journal_entry.await_args_list]
        assert submitted == ["CPIIF-1", "CPIIF-3"]
        assert [ref.id for ref in result.created] == ["qbo-CPIIF-1", "qbo-CPIIF-3"]

    def test_submission_error_recorded(self):
        connector = fake_connector()
        connector.create_bill.side_effect = [
            SubmissionError("Business Validation Error: Duplicate Document Number", status_code=400),
            CreatedDocumentRef(id="55", document_type=LedgerDocumentType.BILL),
        ]

        result = submit(connector, [bill("B-1"), bill("B-2")], ConversionMode.AP)

        assert result.success_count == 1
        assert result.errors == ["Bill B-1: Business Validation Error: Duplicate Document Number"]
        assert connector.create_bill.await_count == 2

    def test_unexpected_error_recorded(self):
        connector = fake_connector()
        connector.create_journal_entry.side_effect = RuntimeError("socket closed")

        result = submit(connector, [journal("CPIIF-1", "0-121-0", debit="1.00")], "GL")

        assert result.failure_count == 1
        assert result.errors == ["Journal CPIIF-1: socket closed"]

    def test_unknown_vendor(self):
        connector = fake_connector()
        result = submit(connector, [bill("B-1", supplier="Acme")], ConversionMode.AP)

        assert result.errors == ['Bill B-1: Vendor "Acme" not found in QuickBooks.']
        connector.create_bill.assert_not_awaited()

    def test_metrics_counted(self):
        connector = fake_connector()
        submit(connector, [bill("B-1"), bill("B-2", account="nope")], ConversionMode.AP)

        summary = MetricsCollector.instance().get_summary()
        assert summary["sync"]["submitted"] == 1
        assert summary["sync"]["failed"] == 1
        assert summary["sync"]["by_mode"]["AP"] == {"submitted": 1, "failed": 1}


class TestGrouping:
    """Document grouping."""

    def test_first_seen_order(self):
        rows = [
            journal("CPIIF-2", "a"),
            journal("CPIIF-1", "b"),
            journal("CPIIF-2", "c"),
        ]
        groups = group_rows(rows, ConversionMode.GL)
        assert list(groups) == ["CPIIF-2", "CPIIF-1"]
        assert [r.account for r in groups["CPIIF-2"]] == ["a", "c"]

    def test_rows_must_match_mode(self):
        with pytest.raises(TypeError):
            group_rows([journal("CPIIF-1", "a")], ConversionMode.AP)

    def test_idempotency_key_per_document(self):
        connector = fake_connector()
        result = submit(connector, [bill("B-1"), bill("B-2")], ConversionMode.AP)

        keys = [ref.idempotency_key for ref in result.created]
        assert len(set(keys)) == 2
        assert all(keys)


class TestPayloads:
    """Normalized document shapes."""

    def test_journal_payload(self):
        rows = [
            journal("CPIIF-1", "0-121-0", debit="100.00"),
            journal("CPIIF-1", "0-401-0", credit="100.00"),
            journal("CPIIF-1", "0-401-0"),
        ]
        payload = build_journal_payload("CPIIF-1", rows, ACCOUNTS)

        assert payload.txn_date == "2024-01-05"
        assert [(l.amount, l.posting_type, l.account_id) for l in payload.lines] == [
            (Decimal("100.00"), PostingType.DEBIT, "4"),
            (Decimal("100.00"), PostingType.CREDIT, "12"),
            (Decimal("0"), PostingType.CREDIT, "12"),
        ]
        assert payload.lines[0].description == "Daily sales (Ref: CPIIF-1)"

    def test_journal_zero_debit_posts_credit(self):
        payload = build_journal_payload("CPIIF-1", [journal("CPIIF-1", "0-401-0", debit="0", credit="3.00")], ACCOUNTS)
        assert payload.lines[0].posting_type == PostingType.CREDIT

    def test_bill_payload(self):
        payload = build_bill_payload("B-1", [bill("B-1"), bill("B-1", amount="-10.00")], ACCOUNTS, VENDORS)

        assert payload.vendor_id == "7"
        assert payload.txn_date == "2024-02-10"
        assert payload.due_date == "2024-03-10"
        assert [l.amount for l in payload.lines] == [Decimal("150.00"), Decimal("-10.00")]
        assert payload.lines[0].account_id == "31"
        assert payload.total_amount == Decimal("140.00")

    def test_blank_due_date_omitted(self):
        payload = build_bill_payload("B-1", [bill("B-1", due="")], ACCOUNTS, VENDORS)
        assert payload.due_date is None

    def test_unresolved_account_raises(self):
        with pytest.raises(ResolutionError) as exc:
            build_bill_payload("B-1", [bill("B-1", account="0-999-0")], ACCOUNTS, VENDORS)
        assert exc.value.label == "0-999-0"
        assert exc.value.document_number == "B-1"


class TestIsoDate:
    """M/D/YY[YY] normalization."""

    def test_short_and_long_years(self):
        assert to_iso_date("1/5/24") == "2024-01-05"
        assert to_iso_date("12/31/2023") == "2023-12-31"

    def test_other_formats_pass_through(self):
        assert to_iso_date("2024-01-05") == "2024-01-05"

    def test_blank_is_today(self):
        assert to_iso_date("", today=date(2024, 7, 4)) == "2024-07-04"
        assert to_iso_date(None, today=date(2024, 7, 4)) == "2024-07-04"
