"""
Ledger ingestion tests.

Covers column tolerance, reporting-day grouping at the 16:00 cutoff,
newest-first stable ordering, source-kind exclusions, per-file failure
isolation, and cent-safe totals.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal

import pytest

from core.errors import ParseError
from core.models import SourceKind
from ingestion import (
    ColumnResolver,
    FieldSpec,
    LedgerIngestor,
    ReportingDayGrouper,
    SourceFile,
    clean_amount,
    date_range_label,
    load_source_file,
    parse_timestamp,
)


def ingest(files, kind=SourceKind.SHOPIFY, **kwargs):
    return asyncio.run(LedgerIngestor(**kwargs).ingest(files, kind))


def shopify(name, *rows, header="Created at,Name,Billing Name,Amount,Fee,Net,Card Brand"):
    return SourceFile(name=name, content="\n".join((header,) + rows) + "\n")


class TestEndToEnd:
    """Two files, two reporting days."""

    def test_two_files_split_across_cutoff(self):
        summary = ingest([
            shopify("a.csv", "2024-01-05T15:30:00,#1001,Ann,100.00,-2.50,,visa"),
            shopify("b.csv", "2024-01-05T16:05:00,#1002,Bob,50.00,-1.00,,mastercard"),
        ])

        assert [g.date for g in summary.daily_groups] == ["1/6/2024", "1/5/2024"]
        later, earlier = summary.daily_groups
        assert later.count == 1
        assert later.subtotal_net == Decimal("49.00")
        assert earlier.count == 1
        assert earlier.subtotal_net == Decimal("97.50")

        assert summary.total_net == Decimal("146.50")
        assert summary.total_amount == Decimal("150.00")
        assert summary.total_fees == Decimal("-3.50")
        assert summary.transaction_count == 2
        assert summary.date_range == "1/5/2024 - 1/6/2024"

    def test_ids_share_one_counter_across_files(self):
        summary = ingest([
            shopify("a.csv", "2024-01-05T10:00:00,#1,Ann,10,0,10,visa"),
            shopify("b.csv", "2024-01-05T11:00:00,#1,Ann,10,0,10,visa"),
        ])
        ids = {t.id for t in summary.all_transactions}
        assert ids == {"#1-0", "#1-1"}

    def test_missing_reference_uses_prefix(self):
        summary = ingest([shopify("a.csv", "2024-01-05T10:00:00,,Ann,10,0,10,visa")])
        t = summary.all_transactions[0]
        assert t.order_number == "Line-0"
        assert t.id == "Line-0-0"

    def test_source_file_recorded(self):
        summary = ingest([shopify("orders.csv", "2024-01-05T10:00:00,#1,Ann,10,0,10,visa")])
        assert summary.all_transactions[0].source_file == "orders.csv"


@pytest.fixture
def metrics():
    from core.observability.metrics import MetricsCollector
    MetricsCollector.reset()
    yield MetricsCollector.instance()
    MetricsCollector.reset()


GOOD_ROW = "2024-01-05T10:00:00,#1,Ann,10.00,-0.50,,visa"


class TestFailedFiles:
    """One unreadable or unparsable file fails alone."""

    def write_good(self, tmp_path):
        path = tmp_path / "good.csv"
        path.write_text(shopify("good.csv", GOOD_ROW).content, encoding="utf-8")
        return path

    def test_unparsable_file_among_good(self, metrics):
        oversized = "2024-01-05T11:00:00,#2," + "x" * 200_000 + ",10,0,10,visa"
        summary = ingest([shopify("good.csv", GOOD_ROW), shopify("big.csv", oversized)])

        assert summary.transaction_count == 1
        assert summary.all_transactions[0].source_file == "good.csv"
        assert metrics.get_summary()["ingestion"]["files_failed"] == 1

    def test_undecodable_file_among_good(self, tmp_path, metrics):
        good = self.write_good(tmp_path)
        bad = tmp_path / "excel.csv"
        bad.write_bytes(
            "Created at,Name,Billing Name,Amount,Fee,Net,Card Brand\n"
            "2024-01-05T11:00:00,#2,José,10,0,10,visa\n".encode("cp1252")
        )

        summary = asyncio.run(LedgerIngestor().ingest_paths([good, bad], SourceKind.SHOPIFY))

        assert summary.transaction_count == 1
        assert summary.total_net == Decimal("9.50")
        assert metrics.get_summary()["ingestion"]["files_failed"] == 1

    def test_missing_file_among_good(self, tmp_path, metrics):
        good = self.write_good(tmp_path)

        summary = asyncio.run(LedgerIngestor().ingest_paths(
            [tmp_path / "missing.csv", good], SourceKind.SHOPIFY,
        ))

        assert [t.source_file for t in summary.all_transactions] == ["good.csv"]
        assert metrics.get_summary()["ingestion"]["files_failed"] == 1

    def test_every_file_failing_raises(self, tmp_path, metrics):
        with pytest.raises(ParseError):
            asyncio.run(LedgerIngestor().ingest_paths([tmp_path / "missing.csv"], SourceKind.SHOPIFY))
        assert metrics.get_summary()["ingestion"]["files_failed"] == 1


class TestReportingDay:
    """16:00 cutoff."""

    def test_boundary(self):
        grouper = ReportingDayGrouper()
        assert grouper.reporting_date(datetime(2024, 1, 5, 16, 0, 0)) == date(2024, 1, 6)
        assert grouper.reporting_date(datetime(2024, 1, 5, 15, 59, 59)) == date(2024, 1, 5)

    def test_same_calendar_day_two_groups(self):
        summary = ingest([shopify(
            "a.csv",
            "2024-01-05T15:59:00,#1,Ann,10,0,10,visa",
            "2024-01-05T16:01:00,#2,Bob,20,0,20,visa",
        )])
        assert len(summary.daily_groups) == 2

    def test_month_rollover(self):
        grouper = ReportingDayGrouper()
        assert grouper.reporting_date(datetime(2024, 1, 31, 17, 0)) == date(2024, 2, 1)

    def test_date_range_single_day(self):
        summary = ingest([shopify("a.csv", "2024-03-02T09:00:00,#1,Ann,10,0,10,visa")])
        assert summary.date_range == "3/2/2024"

    def test_date_range_without_groups(self):
        assert date_range_label([], today=date(2024, 7, 4)) == "7/4/2024"


class TestOrdering:
    """Newest first, stable among equal timestamps."""

    def test_duplicate_timestamps_keep_input_order(self):
        summary = ingest([shopify(
            "a.csv",
            "2024-01-05T10:00:00,#A,Ann,1,0,1,visa",
            "2024-01-05T12:00:00,#B,Ann,1,0,1,visa",
            "2024-01-05T10:00:00,#C,Ann,1,0,1,visa",
            "2024-01-05T10:00:00,#D,Ann,1,0,1,visa",
        )])
        assert [t.order_number for t in summary.all_transactions] == ["#B", "#A", "#C", "#D"]


class TestRowPolicy:
    """Defaults, net derivation and dropped rows."""

    def test_amount_noise_stripped(self):
        summary = ingest([shopify("a.csv", '2024-01-05T10:00:00,#1,Ann,"$1,000.00",-30.00,,visa')])
        t = summary.all_transactions[0]
        assert t.amount == Decimal("1000.00")
        assert t.net == Decimal("970.00")

    def test_unparsable_amount_drops_row(self):
        summary = ingest([shopify(
            "a.csv",
            "2024-01-05T10:00:00,#1,Ann,n/a,0,,visa",
            "2024-01-05T11:00:00,#2,Ann,5,0,5,visa",
        )])
        assert [t.order_number for t in summary.all_transactions] == ["#2"]

    def test_bad_timestamp_drops_row(self):
        summary = ingest([shopify(
            "a.csv",
            "yesterday,#1,Ann,5,0,5,visa",
            "2024-01-05T11:00:00,#2,Ann,5,0,5,visa",
        )])
        assert summary.transaction_count == 1

    def test_defaults(self):
        summary = ingest([shopify("a.csv", "2024-01-05T10:00:00,#1,,5,,,")])
        t = summary.all_transactions[0]
        assert t.customer_name == "Internal/Guest"
        assert t.card_brand == "N/A"
        assert t.type == "Unknown"
        assert t.currency == "USD"
        assert t.fee == Decimal("0")

    def test_first_column_is_timestamp_fallback(self):
        summary = ingest([shopify("a.csv", "2024-01-05 10:00:00,#1,5", header="When,Order,Total")])
        t = summary.all_transactions[0]
        assert t.timestamp == datetime(2024, 1, 5, 10, 0)
        assert t.amount == Decimal("5")

    def test_no_valid_rows_raises(self):
        with pytest.raises(ParseError, match="no valid transactions found"):
            ingest([shopify("a.csv", "garbage,#1,Ann,x,0,0,visa")])

    def test_empty_batch_raises(self):
        with pytest.raises(ParseError):
            ingest([])

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            ingest([shopify("a.csv", "2024-01-05T10:00:00,#1,Ann,5,0,5,visa")], kind="STRIPE")


class TestPayPal:
    """Source kind B specifics."""

    HEADER = "Date,Time,Name,Type,Gross,Fee,Net,Transaction ID"

    def paypal(self, *rows):
        return SourceFile(name="paypal.csv", content="\n".join((self.HEADER,) + rows))

    def test_withdrawals_and_zero_rows_dropped(self):
        summary = ingest([self.paypal(
            "1/5/2024,10:00:00,Ann,Express Checkout Payment,25.00,-1.00,24.00,TX1",
            "1/5/2024,11:00:00,,General Withdrawal,-500.00,0.00,-500.00,TX2",
            "1/5/2024,11:30:00,,User Initiated Withdrawal,-100.00,0.00,-100.00,TX3",
            "1/5/2024,12:00:00,,Summary,0.00,0.00,0.00,TX4",
        )], kind=SourceKind.PAYPAL)

        assert [t.order_number for t in summary.all_transactions] == ["TX1"]
        t = summary.all_transactions[0]
        assert t.card_brand == "PayPal"
        assert t.timestamp == datetime(2024, 1, 5, 10, 0)

    def test_missing_time_drops_row(self):
        summary = ingest([self.paypal(
            "1/5/2024,,Ann,Payment,25.00,-1.00,24.00,TX1",
            "1/5/2024,09:00:00,Ann,Payment,5.00,0,5.00,TX2",
        )], kind=SourceKind.PAYPAL)
        assert summary.transaction_count == 1

    def test_prefix_for_missing_transaction_id(self):
        summary = ingest([self.paypal("1/5/2024,10:00:00,Ann,Payment,25.00,-1.00,24.00,")], kind=SourceKind.PAYPAL)
        assert summary.all_transactions[0].order_number == "PP-0"


class TestSubtotals:
    """Per-day and per-source subtotals."""

    def test_source_subtotals(self):
        summary = ingest([
            shopify("a.csv", "2024-01-05T09:00:00,#1,Ann,10.10,-0.30,,visa", "2024-01-05T10:00:00,#2,Ann,20.20,-0.60,,visa"),
            shopify("b.csv", "2024-01-05T11:00:00,#3,Bob,5.00,0,5.00,visa"),
        ])
        (day,) = summary.daily_groups
        assert day.subtotal == Decimal("35.30")
        assert day.subtotal_net == Decimal("34.40")

        subtotals = {s.source_file: s for s in day.source_subtotals()}
        assert subtotals["a.csv"].count == 2
        assert subtotals["a.csv"].subtotal_net == Decimal("29.40")
        assert subtotals["b.csv"].subtotal_fees == Decimal("0.00")


class TestFieldParsing:
    """Cell-level helpers."""

    def test_clean_amount(self):
        assert clean_amount("") == Decimal("0")
        assert clean_amount("$1,234.50 USD") == Decimal("1234.50")
        assert clean_amount("-") is None

    def test_parse_timestamp_variants(self):
        assert parse_timestamp("2024-01-05T15:30:00") == datetime(2024, 1, 5, 15, 30)
        assert parse_timestamp("01/05/2024 3:30 PM") == datetime(2024, 1, 5, 15, 30)
        assert parse_timestamp("") is None
        assert parse_timestamp("not a date") is None

    def test_parse_timestamp_converts_to_reporting_zone(self):
        from zoneinfo import ZoneInfo

        parsed = parse_timestamp("2024-01-05T21:30:00Z", ZoneInfo("America/New_York"))
        assert parsed == datetime(2024, 1, 5, 16, 30)
        assert parsed.tzinfo is None

    def test_column_resolver_skips_blank_candidates(self):
        resolver = ColumnResolver(
            [" Amount ", "Total"],
            [FieldSpec("amount", ("Amount", "Total")), FieldSpec("fee", ("Fee",), default="0")],
        )
        assert resolver.columns_for("amount") == ["Amount", "Total"]
        assert resolver.get({"Amount": "  ", "Total": "7"}, "amount") == "7"
        assert resolver.get({}, "fee") == "0"
        assert not resolver.has("fee")

    def test_load_source_file(self, tmp_path):
        path = tmp_path / "orders.csv"
        path.write_text("\ufeffCreated at,Amount\n", encoding="utf-8")
        source = asyncio.run(load_source_file(path))
        assert source.name == "orders.csv"
        assert source.content.startswith("Created at")
