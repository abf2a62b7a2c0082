"""
Legacy IIF conversion tests.

Covers the GL journal path, the AP bill path with header context carried
from TRNS to SPL lines, account overrides, CSV rendering and the format
errors raised for documents without declaration lines.
"""

import pytest

from core.errors import FormatError
from core.models import BillRow, ConversionMode, JournalRow
from legacy import (
    ColumnLayout,
    LegacyFormatConverter,
    escape_csv_value,
    export_filename,
    journal_number,
    to_csv,
)


def iif(*lines):
    return "\n".join("\t".join(fields) for fields in lines)


GL_DOCUMENT = iif(
    ("!TRNS", "TRNSID", "TRNSTYPE", "DATE", "ACCNT", "NAME", "AMOUNT", "DOCNUM", "MEMO"),
    ("!SPL", "SPLID", "TRNSTYPE", "DATE", "ACCNT", "NAME", "AMOUNT", "DOCNUM", "MEMO"),
    ("!ENDTRNS",),
    ("TRNS", "1", "GENERAL JOURNAL", "1/5/24", "0-121-0", "", "100.00", "D100", "Deposit"),
    ("SPL", "2", "GENERAL JOURNAL", "1/5/24", "0-121-0", "Shop", "100.00", "D100", "Daily sales"),
    ("SPL", "3", "GENERAL JOURNAL", "1/5/24", "0-401-0", "Shop", "-100.00", "D100", "Daily sales, web"),
    ("ENDTRNS",),
)

AP_DOCUMENT = iif(
    ("!TRNS", "TRNSID", "TRNSTYPE", "DATE", "ACCNT", "NAME", "AMOUNT", "DOCNUM", "DUEDATE", "TERMS"),
    ("!SPL", "SPLID", "TRNSTYPE", "DATE", "ACCNT", "NAME", "AMOUNT", "DOCNUM", "MEMO"),
    ("!ENDTRNS",),
    ("TRNS", "1", "BILL", "2/10/24", "0-201-0", "Acme Freight", "-150.00", "B-2", "3/10/24", "Net 30"),
    ("SPL", "2", "BILL", "2/10/24", "0-682-0", "Acme Freight", "150.00", "B-2", "Freight in"),
    ("ENDTRNS",),
    ("TRNS", "3", "BILL", "1/15/24", "0-201-0", "Parts Co", "-80.00", "B-1", "2/15/24", "Net 30"),
    ("SPL", "4", "BILL", "1/15/24", "0-115-0", "Parts Co", "80.00", "B-1", "Parts"),
    ("SPL", "5", "BILL", "1/15/24", "0-201-0", "Parts Co", "-80.00", "B-1", "payable"),
    ("ENDTRNS",),
)


class TestJournalConversion:
    """GL mode."""

    def test_csv_matches_expected_literal(self):
        rows = LegacyFormatConverter().convert(GL_DOCUMENT, ConversionMode.GL)

        assert to_csv(rows, ConversionMode.GL) == (
            "JournalNo,JournalDate,DueDate,Description,Account,Debit,Credit,Name\n"
            "CPIIF-1524,1/5/24,,Daily sales (Ref: D100),0-121-0 UNDEPOSITED FUNDS,100.00,,Shop\n"
            'CPIIF-1524,1/5/24,,"Daily sales, web (Ref: D100)",0-401-0 SALES,,100.00,Shop'
        )

    def test_rows_are_journal_rows(self):
        rows = LegacyFormatConverter().convert(GL_DOCUMENT, "GL")
        assert all(isinstance(r, JournalRow) for r in rows)
        assert [r.document_key for r in rows] == ["CPIIF-1524", "CPIIF-1524"]

    def test_windows_line_endings(self):
        rows = LegacyFormatConverter().convert(GL_DOCUMENT.replace("\n", "\r\n"), ConversionMode.GL)
        assert len(rows) == 2
        assert rows[1].name == "Shop"

    def test_zero_and_invalid_amounts_leave_both_sides_empty(self):
        document = iif(
            ("!SPL", "DATE", "ACCNT", "AMOUNT", "DOCNUM"),
            ("SPL", "1/5/24", "0-999-0", "0", "X1"),
            ("SPL", "1/5/24", "0-999-0", "abc", "X1"),
        )
        rows = LegacyFormatConverter().convert(document, ConversionMode.GL)
        assert [(r.debit, r.credit) for r in rows] == [("", ""), ("", "")]
        assert rows[0].description == "(Ref: X1)"
        assert rows[0].account == "0-999-0"

    def test_sorted_by_journal_number(self):
        document = iif(
            ("!SPL", "DATE", "ACCNT", "AMOUNT", "DOCNUM"),
            ("SPL", "2/1/24", "A", "1", "X2"),
            ("SPL", "1/9/24", "B", "1", "X1"),
        )
        rows = LegacyFormatConverter().convert(document, ConversionMode.GL)
        assert [r.journal_no for r in rows] == ["CPIIF-1924", "CPIIF-2124"]

    def test_missing_spl_declaration(self):
        document = iif(("!TRNS", "DATE"), ("TRNS", "1/5/24"))
        with pytest.raises(FormatError, match=r"Could not find '!SPL' header row definition"):
            LegacyFormatConverter().convert(document, ConversionMode.GL)

    def test_custom_overrides(self):
        converter = LegacyFormatConverter(gl_overrides={"0-401-0": "Sales"})
        rows = converter.convert(GL_DOCUMENT, ConversionMode.GL)
        assert rows[1].account == "Sales"


class TestBillConversion:
    """AP mode."""

    def test_context_carried_and_payable_skipped(self):
        rows = LegacyFormatConverter().convert(AP_DOCUMENT, ConversionMode.AP)

        assert all(isinstance(r, BillRow) for r in rows)
        assert [r.bill_no for r in rows] == ["B-1", "B-2"]

        parts, freight = rows
        assert parts.supplier == "Parts Co"
        assert parts.bill_date == "1/15/24"
        assert parts.due_date == "2/15/24"
        assert parts.account == "0-115-0"
        assert parts.line_amount == "80.00"
        assert parts.description == "Parts"
        assert (parts.debit, parts.credit) == ("80.00", "0")

        assert freight.account == "0-682-0 SHIPPING EXPENSE"
        assert freight.supplier == "Acme Freight"
        assert freight.journal_no == "B-2"

    def test_csv_output(self):
        rows = LegacyFormatConverter().convert(AP_DOCUMENT, ConversionMode.AP)
        lines = to_csv(rows, ConversionMode.AP).split("\n")
        assert lines[0] == "Bill no,Supplier,Bill Date,Due Date,Account,Line Amount,Line Description"
        assert lines[1] == "B-1,Parts Co,1/15/24,2/15/24,0-115-0,80.00,Parts"
        assert len(lines) == 3

    def test_due_date_alternate_header(self):
        document = iif(
            ("!TRNS", "DATE", "NAME", "DOCNUM", "DUE DATE"),
            ("!SPL", "ACCNT", "AMOUNT", "MEMO"),
            ("TRNS", "1/2/24", "Acme", "B-9", "2/2/24"),
            ("SPL", "0-682-0", "-5.5", "Credit"),
        )
        (row,) = LegacyFormatConverter().convert(document, ConversionMode.AP)
        assert row.due_date == "2/2/24"
        assert row.line_amount == "-5.50"
        assert (row.debit, row.credit) == ("0", "5.50")

    def test_missing_trns_declaration(self):
        document = iif(("!SPL", "ACCNT"), ("SPL", "0-682-0"))
        with pytest.raises(FormatError, match=r"Could not find '!TRNS' header row definition"):
            LegacyFormatConverter().convert(document, ConversionMode.AP)

    def test_missing_spl_declaration(self):
        document = iif(("!TRNS", "DATE"), ("TRNS", "1/5/24"))
        with pytest.raises(FormatError, match=r"Could not find '!SPL' header row definition"):
            LegacyFormatConverter().convert(document, ConversionMode.AP)


class TestHelpers:
    """Layout lookup, journal numbers and CSV escaping."""

    def test_column_layout(self):
        layout = ColumnLayout.from_declaration(["!SPL", "DATE", "AMOUNT"])
        assert layout.kind == "SPL"
        assert layout.value(["SPL", "1/5/24"], "DATE") == "1/5/24"
        assert layout.value(["SPL", "1/5/24"], "AMOUNT") == ""
        assert layout.value(["SPL", "1/5/24"], "MEMO") == ""

    def test_journal_number(self):
        assert journal_number("12/31/2024") == "CPIIF-123124"
        assert journal_number("1/5/24") == "CPIIF-1524"
        assert journal_number("20240105") == "CPIIF-20240105"

    def test_escape_csv_value(self):
        assert escape_csv_value("plain") == "plain"
        assert escape_csv_value("a,b") == '"a,b"'
        assert escape_csv_value('say "hi"') == '"say ""hi"""'
        assert escape_csv_value("two\nlines") == '"two\nlines"'

    def test_export_filename(self):
        assert export_filename("ap_march.iif") == "ap_march_qbo.csv"
        assert export_filename("exports/gl.IIF") == "gl_qbo.csv"
        assert export_filename("") == "converted_qbo.csv"
