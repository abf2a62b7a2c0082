"""Legacy IIF conversion - tab-delimited TRNS/SPL documents to import rows.

An IIF document interleaves two data-line kinds, each laid out by the most
recent declaration line of that kind:

    !TRNS   TRNSID  TRNSTYPE  DATE  ACCNT  NAME  AMOUNT  DOCNUM  DUEDATE
    !SPL    SPLID   TRNSTYPE  DATE  ACCNT  NAME  AMOUNT  DOCNUM  MEMO
    TRNS    ...     BILL      ...   0-201-0 ...  -125.00  B-1001  ...
    SPL     ...     BILL      ...   0-682-0 ...   125.00  B-1001  Freight
    ENDTRNS

GL mode turns every SPL line into a journal line. AP mode reads bill
header fields from each TRNS line into a RecordContext and emits one bill
line per following SPL line.

Usage:
    converter = LegacyFormatConverter()
    rows = converter.convert(document_text, ConversionMode.GL)
"""

import re
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

from core.errors import FormatError
from core.models import BillRow, ConversionMode, JournalRow
from core.money import ZERO, format_amount, parse_amount
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import record_conversion, record_conversion_failed
from legacy.overrides import (
    AP_ACCOUNT_OVERRIDES,
    GL_ACCOUNT_OVERRIDES,
    PAYABLE_ACCOUNT,
    apply_override,
)

logger = get_logger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")

TRNS = "TRNS"
SPL = "SPL"


@dataclass
class ColumnLayout:
    """Field positions declared by a `!TRNS` or `!SPL` line."""
    kind: str
    positions: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_declaration(cls, fields: Sequence[str]) -> "ColumnLayout":
        return cls(
            kind=fields[0].lstrip("!"),
            positions={name: index for index, name in enumerate(fields)},
        )

    def value(self, fields: Sequence[str], name: str) -> str:
        """Field value by column name; "" when undeclared or past the end."""
        index = self.positions.get(name)
        if index is None or index >= len(fields):
            return ""
        return fields[index]


@dataclass
class RecordContext:
    """Bill header fields carried from a TRNS line to its SPL lines."""
    doc_num: str = ""
    date: str = ""
    due_date: str = ""
    name: str = ""
    terms: str = ""

    def load(self, layout: ColumnLayout, fields: Sequence[str]) -> None:
        self.doc_num = layout.value(fields, "DOCNUM")
        self.date = layout.value(fields, "DATE")
        self.due_date = layout.value(fields, "DUEDATE") or layout.value(fields, "DUE DATE")
        self.name = layout.value(fields, "NAME")
        self.terms = layout.value(fields, "TERMS")


def journal_number(date: str) -> str:
    """CPIIF-MMDDYY from an M/D/Y date; otherwise CPIIF- plus the date sans "/"."""
    parts = date.split("/")
    if len(parts) == 3:
        month, day, year = parts
        return f"CPIIF-{month}{day}{year[-2:]}"
    return f"CPIIF-{date.replace('/', '')}"


def _line_fields(line: str) -> List[str]:
    return line.strip().split("\t")


class LegacyFormatConverter:
    """Converts IIF documents into journal or bill rows."""

    def __init__(
        self,
        gl_overrides: Mapping[str, str] = GL_ACCOUNT_OVERRIDES,
        ap_overrides: Mapping[str, str] = AP_ACCOUNT_OVERRIDES,
    ):
        self.gl_overrides = gl_overrides
        self.ap_overrides = ap_overrides

    def convert(
        self,
        document: str,
        mode: Union[ConversionMode, str],
    ) -> List[Union[JournalRow, BillRow]]:
        """Convert a whole document; nothing is returned on FormatError."""
        mode = ConversionMode(mode)
        run_id = f"convert-{uuid.uuid4().hex[:8]}"
        start = time.monotonic()

        with with_correlation(run_id=run_id, conversion_mode=mode.value, stage="convert"):
            try:
                if mode == ConversionMode.AP:
                    rows = self._convert_bills(document)
                else:
                    rows = self._convert_journal(document)
            except FormatError as e:
                record_conversion_failed(mode.value)
                logger.warning(f"Rejected document: {e}")
                raise

            duration_ms = (time.monotonic() - start) * 1000
            record_conversion(mode.value, len(rows), duration_ms)
            logger.info(f"Converted {len(rows)} {mode.value} rows")
            return rows

    # =========================================================================
    # General ledger
    # =========================================================================

    def _convert_journal(self, document: str) -> List[JournalRow]:
        layouts: Dict[str, ColumnLayout] = {}
        rows: List[JournalRow] = []

        for line in _LINE_BREAK.split(document):
            fields = _line_fields(line)
            kind = fields[0]

            if kind == "!" + SPL:
                layouts[SPL] = ColumnLayout.from_declaration(fields)
                continue
            if kind != SPL or SPL not in layouts:
                continue

            layout = layouts[SPL]
            doc_num = layout.value(fields, "DOCNUM")
            date = layout.value(fields, "DATE")
            memo = layout.value(fields, "MEMO")
            account = layout.value(fields, "ACCNT")

            amount = parse_amount(layout.value(fields, "AMOUNT")) or ZERO
            debit = format_amount(amount) if amount > 0 else ""
            credit = format_amount(-amount) if amount < 0 else ""

            rows.append(
                JournalRow(
                    journal_no=journal_number(date),
                    journal_date=date,
                    description=f"{memo} (Ref: {doc_num})" if memo else f"(Ref: {doc_num})",
                    account=apply_override(account, self.gl_overrides),
                    debit=debit,
                    credit=credit,
                    name=layout.value(fields, "NAME"),
                )
            )

        if SPL not in layouts:
            raise FormatError("Invalid IIF File: Could not find '!SPL' header row definition.")

        rows.sort(key=lambda r: r.journal_no)
        return rows

    # =========================================================================
    # Accounts payable
    # =========================================================================

    def _convert_bills(self, document: str) -> List[BillRow]:
        layouts: Dict[str, ColumnLayout] = {}
        context = RecordContext()
        rows: List[BillRow] = []

        for line in _LINE_BREAK.split(document):
            fields = _line_fields(line)
            kind = fields[0]

            if kind in ("!" + TRNS, "!" + SPL):
                layout = ColumnLayout.from_declaration(fields)
                layouts[layout.kind] = layout
                continue

            layout = layouts.get(kind) if kind in (TRNS, SPL) else None
            if layout is None:
                continue

            if kind == TRNS:
                # The header's payable credit is implied by the bill total remotely
                context.load(layout, fields)
                continue

            row = self._bill_row(layout, fields, context)
            if row is not None:
                rows.append(row)

        for required in (TRNS, SPL):
            if required not in layouts:
                raise FormatError(
                    f"Invalid IIF File: Could not find '!{required}' header row definition."
                )

        rows.sort(key=lambda r: (r.bill_date, r.bill_no))
        return rows

    def _bill_row(
        self,
        layout: ColumnLayout,
        fields: Sequence[str],
        context: RecordContext,
    ) -> Optional[BillRow]:
        account = layout.value(fields, "ACCNT")
        if account == PAYABLE_ACCOUNT:
            logger.debug(f"Skipped payable split on bill {context.doc_num}")
            return None

        amount = parse_amount(layout.value(fields, "AMOUNT")) or ZERO
        line_amount = format_amount(amount)

        return BillRow(
            bill_no=context.doc_num,
            supplier=context.name,
            bill_date=context.date,
            due_date=context.due_date,
            account=apply_override(account, self.ap_overrides),
            line_amount=line_amount,
            description=layout.value(fields, "MEMO"),
            journal_no=context.doc_num,
            name=context.name,
            debit=line_amount if amount > 0 else "0",
            credit=format_amount(-amount) if amount < 0 else "0",
        )
