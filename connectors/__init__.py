"""Ledger Connectors - Pluggable remote accounting-ledger integrations.

This package contains the abstract ledger interface and concrete
implementations for specific ledgers (QuickBooks Online).

Core models are ledger-neutral. This package handles:
- Session handling for externally issued tokens
- Data transformation (normalized payload -> ledger format)
- API communication
- Document creation

Key Design Principle:
- The sync layer and API routes depend ONLY on the LedgerConnector interface
- All methods return NORMALIZED types (AccountRef, VendorRef, CreatedDocumentRef)
- No QuickBooks-specific types leak through the interface

To add a new ledger:
1. Create a new folder (e.g., xero/)
2. Implement LedgerConnector interface
3. Register using @register_connector decorator
"""

from connectors.ledger_base import (
    # Core interface
    LedgerConnector,
    LedgerConfig,
    LedgerConnectionStatus,
    LedgerDocumentType,
    ConnectionStatus,

    # Normalized reference types
    AccountRef,
    VendorRef,
    CreatedDocumentRef,

    # Document payloads
    PostingType,
    JournalEntryPayload,
    JournalLinePayload,
    BillPayload,
    BillLinePayload,

    # Factory functions
    create_connector,
    register_connector,
    list_available_connectors,
)

# Registers the "quickbooks" connector type
import connectors.quickbooks  # noqa: E402,F401

__all__ = [
    # Core interface
    "LedgerConnector",
    "LedgerConfig",
    "LedgerConnectionStatus",
    "LedgerDocumentType",
    "ConnectionStatus",

    # Normalized reference types
    "AccountRef",
    "VendorRef",
    "CreatedDocumentRef",

    # Document payloads
    "PostingType",
    "JournalEntryPayload",
    "JournalLinePayload",
    "BillPayload",
    "BillLinePayload",

    # Factory
    "create_connector",
    "register_connector",
    "list_available_connectors",
]
