"""Ledger ingestion - payment-processor CSV exports to reporting days.

This package turns Shopify-style and PayPal-style CSV exports into a
canonical, newest-first transaction ledger grouped by reporting day
(16:00 cutoff), with cent-safe subtotals and grand totals.

Usage:
    from ingestion import LedgerIngestor, SourceFile
    from core.models import SourceKind

    summary = await LedgerIngestor().ingest(
        [SourceFile(name="orders.csv", content=text)],
        SourceKind.SHOPIFY,
    )
    for day in summary.daily_groups:
        print(day.date, day.count, day.subtotal_net)
"""

from ingestion.columns import ColumnResolver, FieldSpec
from ingestion.sources import (
    SourceProfile,
    SHOPIFY_PROFILE,
    PAYPAL_PROFILE,
    get_profile,
)
from ingestion.grouping import (
    DEFAULT_CUTOFF,
    ReportingDayGrouper,
    date_range_label,
    format_date_label,
)
from ingestion.ledger import (
    LedgerIngestor,
    SourceFile,
    clean_amount,
    load_source_file,
    parse_timestamp,
)

__all__ = [
    # Columns
    "ColumnResolver",
    "FieldSpec",
    # Sources
    "SourceProfile",
    "SHOPIFY_PROFILE",
    "PAYPAL_PROFILE",
    "get_profile",
    # Grouping
    "DEFAULT_CUTOFF",
    "ReportingDayGrouper",
    "date_range_label",
    "format_date_label",
    # Ingestion
    "LedgerIngestor",
    "SourceFile",
    "clean_amount",
    "load_source_file",
    "parse_timestamp",
]
