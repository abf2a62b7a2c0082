"""Core data models - ledger-neutral canonical types.

This package contains all canonical data models that are intentionally
independent of the remote ledger.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    DecimalValue,

    # Enums
    SourceKind,
    ConversionMode,

    # Ledger
    Transaction,
    DailyGroup,
    SourceSubtotal,
    ReportSummary,

    # Converted rows
    JournalRow,
    BillRow,
    ConvertedRow,
    row_for_mode,
    document_key,
)

__all__ = [
    # Base
    "CanonicalBase",
    "DecimalValue",

    # Enums
    "SourceKind",
    "ConversionMode",

    # Ledger
    "Transaction",
    "DailyGroup",
    "SourceSubtotal",
    "ReportSummary",

    # Converted rows
    "JournalRow",
    "BillRow",
    "ConvertedRow",
    "row_for_mode",
    "document_key",
]
