"""QuickBooks Online Connector Package.

Implements the LedgerConnector interface for QuickBooks Online.
"""

from connectors.quickbooks.qbo_connector import (
    QuickBooksConnector,
    to_qbo_bill,
    to_qbo_journal_entry,
)
from connectors.quickbooks.qbo_models import (
    QBOAccount,
    QBOVendor,
    QBOJournalEntry,
    QBOBill,
    QBOLine,
    QBORef,
)
from connectors.quickbooks.qbo_auth import QBOSession
from connectors.quickbooks.qbo_client import (
    QBOApiClient,
    QBOApiConfig,
    QBOApiError,
    QBOAuthenticationError,
    QBONotFoundError,
    QBORateLimitError,
    QBOValidationError,
    RetryConfig,
)

__all__ = [
    # Connector
    "QuickBooksConnector",
    "to_qbo_bill",
    "to_qbo_journal_entry",
    # Session
    "QBOSession",
    # Client
    "QBOApiClient",
    "QBOApiConfig",
    "QBOApiError",
    "QBOAuthenticationError",
    "QBONotFoundError",
    "QBORateLimitError",
    "QBOValidationError",
    "RetryConfig",
    # Models
    "QBOAccount",
    "QBOVendor",
    "QBOJournalEntry",
    "QBOBill",
    "QBOLine",
    "QBORef",
]
