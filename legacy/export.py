"""CSV export of converted legacy rows in the remote ledger's import layout."""

from pathlib import PurePath
from typing import List, Sequence, Tuple, Union

from core.models import BillRow, ConversionMode, JournalRow

# (header, row attribute) pairs per mode
GL_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("JournalNo", "journal_no"),
    ("JournalDate", "journal_date"),
    ("DueDate", "due_date"),
    ("Description", "description"),
    ("Account", "account"),
    ("Debit", "debit"),
    ("Credit", "credit"),
    ("Name", "name"),
)

AP_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("Bill no", "bill_no"),
    ("Supplier", "supplier"),
    ("Bill Date", "bill_date"),
    ("Due Date", "due_date"),
    ("Account", "account"),
    ("Line Amount", "line_amount"),
    ("Line Description", "description"),
)


def escape_csv_value(value: str) -> str:
    """Double embedded quotes; wrap in quotes if it holds `"`, `,` or a newline."""
    if any(ch in value for ch in ('"', ",", "\n")):
        return '"' + value.replace('"', '""') + '"'
    return value


def to_csv(
    rows: Sequence[Union[JournalRow, BillRow]],
    mode: Union[ConversionMode, str] = ConversionMode.GL,
) -> str:
    """Render rows as CSV text: header first, "\\n" between lines, no trailing newline."""
    columns = AP_COLUMNS if ConversionMode(mode) == ConversionMode.AP else GL_COLUMNS

    lines: List[str] = [",".join(header for header, _ in columns)]
    for row in rows:
        lines.append(
            ",".join(escape_csv_value(str(getattr(row, attr, "") or "")) for _, attr in columns)
        )
    return "\n".join(lines)


def export_filename(source_name: str) -> str:
    """Output name for a converted document: "ap_march.iif" -> "ap_march_qbo.csv"."""
    stem = PurePath(source_name).stem or "converted"
    return f"{stem}_qbo.csv"
