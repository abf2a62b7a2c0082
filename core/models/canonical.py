"""Core canonical data models - ledger-neutral transaction and document types.

These models represent ingested transactions and converted legacy rows in a
standardized format that is independent of the remote ledger.

Remote-ledger field mappings are handled in /connectors/ and /sync/.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, ConfigDict
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from core.money import ZERO, cent_add, cent_sum


# =============================================================================
# Value Parsers
# =============================================================================

def _parse_decimal(value):
    """Parse decimal from various formats (string with $ or commas, floats, etc.)."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        s = s.replace("$", "").replace(",", "")
        if s.startswith("(") and s.endswith(")"):
            s = "-" + s[1:-1]
        return Decimal(s)
    return value


DecimalValue = Annotated[Decimal, BeforeValidator(_parse_decimal)]


# =============================================================================
# Enums
# =============================================================================

class SourceKind(str, Enum):
    """Payment-processor export flavours the ingestor understands."""
    SHOPIFY = "SHOPIFY"  # source kind A: order/payout ledger export
    PAYPAL = "PAYPAL"    # source kind B: activity export with Date + Time


class ConversionMode(str, Enum):
    """Legacy conversion target."""
    GL = "GL"  # general journal entries
    AP = "AP"  # vendor bills


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Ledger Models
# =============================================================================

class Transaction(CanonicalBase):
    """One normalized payment-processor ledger entry.

    `timestamp` is naive local wall-clock time; it drives both the sort
    order and the reporting-day cutoff.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Run-unique identifier: {reference}-{counter}")
    order_number: str
    timestamp: datetime
    customer_name: str
    amount: DecimalValue
    fee: DecimalValue = ZERO
    net: DecimalValue = ZERO
    type: str = "Unknown"
    card_brand: str = "N/A"
    currency: str = "USD"
    source_file: str = ""


class SourceSubtotal(CanonicalBase):
    """Cent-safe subtotals for the transactions of one source file."""
    source_file: str
    count: int = 0
    subtotal: Decimal = ZERO
    subtotal_fees: Decimal = ZERO
    subtotal_net: Decimal = ZERO


class DailyGroup(CanonicalBase):
    """Transactions attributed to one reporting day.

    Subtotals are kept in step with `transactions` by `append()`; never
    assign to `transactions` directly.
    """
    date: str = Field(..., description="Reporting date label, M/D/YYYY")
    transactions: List[Transaction] = Field(default_factory=list)
    count: int = 0
    subtotal: Decimal = ZERO
    subtotal_fees: Decimal = ZERO
    subtotal_net: Decimal = ZERO

    def append(self, transaction: Transaction) -> None:
        """Add a transaction and fold it into the running subtotals."""
        self.transactions.append(transaction)
        self.subtotal = cent_add(self.subtotal, transaction.amount)
        self.subtotal_fees = cent_add(self.subtotal_fees, transaction.fee)
        self.subtotal_net = cent_add(self.subtotal_net, transaction.net)
        self.count += 1

    def source_subtotals(self) -> List[SourceSubtotal]:
        """Split this day by originating file, in first-seen order."""
        by_file: "OrderedDict[str, List[Transaction]]" = OrderedDict()
        for t in self.transactions:
            by_file.setdefault(t.source_file or "Unknown Source", []).append(t)

        return [
            SourceSubtotal(
                source_file=name,
                count=len(txns),
                subtotal=cent_sum(t.amount for t in txns),
                subtotal_fees=cent_sum(t.fee for t in txns),
                subtotal_net=cent_sum(t.net for t in txns),
            )
            for name, txns in by_file.items()
        ]


class ReportSummary(CanonicalBase):
    """Aggregate view over one ingestion run."""
    date_range: str
    total_amount: Decimal = ZERO
    total_fees: Decimal = ZERO
    total_net: Decimal = ZERO
    transaction_count: int = 0
    daily_groups: List[DailyGroup] = Field(default_factory=list)
    all_transactions: List[Transaction] = Field(default_factory=list)


# =============================================================================
# Converted Legacy Rows
# =============================================================================

class JournalRow(CanonicalBase):
    """One general-journal line. Exactly one of debit/credit is non-empty
    unless the amount was zero."""
    kind: Literal["journal"] = "journal"
    journal_no: str
    journal_date: str = ""
    due_date: str = ""
    description: str = ""
    account: str = ""
    debit: str = ""
    credit: str = ""
    name: str = ""

    @property
    def document_key(self) -> str:
        return self.journal_no


class BillRow(CanonicalBase):
    """One vendor-bill expense line.

    `journal_no`, `name`, `debit` and `credit` mirror the bill fields in
    journal form so both shapes render through the same table code.
    """
    kind: Literal["bill"] = "bill"
    bill_no: str
    supplier: str = ""
    bill_date: str = ""
    due_date: str = ""
    account: str = ""
    line_amount: str = "0.00"
    description: str = ""

    journal_no: str = ""
    name: str = ""
    debit: str = "0"
    credit: str = "0"

    @property
    def document_key(self) -> str:
        return self.bill_no


ConvertedRow = Annotated[Union[JournalRow, BillRow], Field(discriminator="kind")]


def row_for_mode(mode: ConversionMode) -> type:
    """Row class produced by a conversion mode."""
    return BillRow if mode == ConversionMode.AP else JournalRow


def document_key(row: Union[JournalRow, BillRow]) -> Optional[str]:
    """Logical document identifier of a converted row."""
    return row.document_key
