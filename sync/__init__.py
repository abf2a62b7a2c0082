"""Sync reconciliation - converted rows to remote-ledger documents.

Usage:
    from sync import SyncReconciler

    reconciler = SyncReconciler(connector, directory)
    result = await reconciler.submit(rows, ConversionMode.AP)
"""

from sync.payloads import (
    build_bill_payload,
    build_journal_payload,
    journal_line_amount,
    optional_iso_date,
    to_iso_date,
)
from sync.reconciler import SyncReconciler, SyncResult, group_rows

__all__ = [
    # Payloads
    "build_bill_payload",
    "build_journal_payload",
    "journal_line_amount",
    "optional_iso_date",
    "to_iso_date",
    # Reconciler
    "SyncReconciler",
    "SyncResult",
    "group_rows",
]
