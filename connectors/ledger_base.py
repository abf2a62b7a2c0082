"""Abstract Remote-Ledger Connector Interface.

This module defines the interface that every remote accounting-ledger
connector implements. It is intentionally ledger-agnostic: no QuickBooks
specifics here.

Connectors implement this interface to:
1. Connect with an externally supplied session
2. List the chart of accounts and the vendor catalog
3. Transform normalized journal-entry and bill payloads to the ledger's wire format
4. Create documents

Key Design Principles:
- All methods return NORMALIZED objects (AccountRef, VendorRef, CreatedDocumentRef)
- The sync layer and API routes depend ONLY on this interface
- Ledger-specific implementations live in connector subfolders
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class LedgerConnectionStatus(str, Enum):
    """Connection status to the remote ledger."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"
    RATE_LIMITED = "RATE_LIMITED"


class LedgerDocumentType(str, Enum):
    """Documents the sync layer creates."""
    JOURNAL_ENTRY = "JOURNAL_ENTRY"
    BILL = "BILL"


class PostingType(str, Enum):
    """Side of a journal line."""
    DEBIT = "Debit"
    CREDIT = "Credit"


# =============================================================================
# Normalized Reference Models (Ledger-Agnostic)
# =============================================================================

class AccountRef(BaseModel):
    """Normalized chart-of-accounts entry.

    - id: opaque identifier used in document payloads
    - name: the label accounts are resolved by (e.g. "0-401-0 SALES")
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Ledger internal ID for API calls")
    name: str = Field(..., description="Account name as shown in the ledger")
    account_type: Optional[str] = Field(default=None, description="Asset, Expense, Income...")
    is_active: bool = Field(default=True)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class VendorRef(BaseModel):
    """Normalized vendor reference."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Ledger internal ID for API calls")
    name: str = Field(..., description="Vendor display name")
    is_active: bool = Field(default=True)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ConnectionStatus(BaseModel):
    """What the status endpoint reports about the remote ledger."""
    is_connected: bool = False
    status: LedgerConnectionStatus = LedgerConnectionStatus.DISCONNECTED
    realm_id: Optional[str] = None
    environment: Optional[str] = None


# =============================================================================
# Document Payloads (Normalized for submission)
# =============================================================================

class JournalLinePayload(BaseModel):
    """One journal-entry line with a resolved account."""
    description: str = ""
    amount: Decimal = Field(..., description="Line magnitude")
    posting_type: PostingType
    account_id: str


class JournalEntryPayload(BaseModel):
    """A journal entry ready for submission."""
    document_number: str
    txn_date: str = Field(..., description="ISO calendar date (YYYY-MM-DD)")
    lines: List[JournalLinePayload] = Field(default_factory=list)


class BillLinePayload(BaseModel):
    """One expense line of a vendor bill."""
    description: str = ""
    amount: Decimal
    account_id: str


class BillPayload(BaseModel):
    """A vendor bill ready for submission."""
    document_number: str
    txn_date: str = Field(..., description="ISO calendar date (YYYY-MM-DD)")
    due_date: Optional[str] = None
    vendor_id: str
    lines: List[BillLinePayload] = Field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))


class CreatedDocumentRef(BaseModel):
    """Reference to a document created in the remote ledger."""
    id: str = Field(..., description="Ledger internal document ID")
    document_type: LedgerDocumentType
    document_number: Optional[str] = None
    total_amount: Optional[Decimal] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # For idempotency
    idempotency_key: Optional[str] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class LedgerConfig:
    """Configuration for a ledger connector."""
    connector_type: str                     # "quickbooks"
    environment: str = "sandbox"            # "sandbox", "production"
    realm_id: Optional[str] = None          # Company within the ledger
    base_url: Optional[str] = None          # Override the API endpoint

    # Authentication (issued externally)
    auth_config: Dict[str, Any] = field(default_factory=dict)

    # Behavior
    max_retries: int = 3
    timeout_seconds: int = 30

    # Ledger-specific settings
    custom_settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings, connector_type: str = "quickbooks") -> "LedgerConfig":
        """Build a config from core.config.Settings."""
        return cls(
            connector_type=connector_type,
            environment=settings.qbo_environment,
            realm_id=settings.qbo_realm_id,
            auth_config={
                "access_token": settings.qbo_access_token,
                "expires_at": settings.qbo_token_expires_at,
            },
            max_retries=settings.qbo_max_retries,
            timeout_seconds=settings.qbo_timeout_seconds,
            custom_settings={"minor_version": settings.qbo_minor_version},
        )


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class LedgerConnector(ABC):
    """Abstract base class for remote-ledger connectors.

    Implementations:
    - connectors/quickbooks/qbo_connector.py
    """

    def __init__(self, config: LedgerConfig):
        self.config = config
        self._connection_status = LedgerConnectionStatus.DISCONNECTED

    # =========================================================================
    # Connection Management
    # =========================================================================

    @abstractmethod
    async def connect(self) -> bool:
        """Open the HTTP session; True when the session is usable."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        """Cheap authenticated round-trip."""
        pass

    @property
    def connection_status(self) -> LedgerConnectionStatus:
        return self._connection_status

    def get_status(self) -> ConnectionStatus:
        """Connection summary for status reporting."""
        return ConnectionStatus(
            is_connected=self._connection_status == LedgerConnectionStatus.CONNECTED,
            status=self._connection_status,
            realm_id=self.config.realm_id,
            environment=self.config.environment,
        )

    # =========================================================================
    # Catalog Listing
    # =========================================================================

    @abstractmethod
    async def list_accounts(self) -> List[AccountRef]:
        """The full chart of accounts."""
        pass

    @abstractmethod
    async def list_vendors(self) -> List[VendorRef]:
        """The full vendor catalog."""
        pass

    # =========================================================================
    # Document Creation
    # =========================================================================

    @abstractmethod
    async def create_journal_entry(
        self,
        payload: JournalEntryPayload,
        idempotency_key: Optional[str] = None,
    ) -> CreatedDocumentRef:
        """Create a journal entry.

        Raises:
            SubmissionError: the ledger rejected or failed the document
        """
        pass

    @abstractmethod
    async def create_bill(
        self,
        payload: BillPayload,
        idempotency_key: Optional[str] = None,
    ) -> CreatedDocumentRef:
        """Create a vendor bill.

        Raises:
            SubmissionError: the ledger rejected or failed the document
        """
        pass

    # -------------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------------

    def get_connector_name(self) -> str:
        return self.config.connector_type

    def get_environment(self) -> str:
        return self.config.environment


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: LedgerConfig) -> LedgerConnector:
    """Create a connector instance from configuration.

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())
