"""QuickBooks Online data models.

These are QBO-specific models that map to the v3 accounting API schema.
They are separate from the normalized types in connectors/ledger_base.py.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# QuickBooks API Models
# =============================================================================

class QBOBaseModel(BaseModel):
    """Base model for QBO API entities."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class QBORef(QBOBaseModel):
    """Reference to another entity: {"value": "<Id>", "name": "..."}."""
    value: str
    name: Optional[str] = None


class QBOAccount(QBOBaseModel):
    """QuickBooks Account entity.

    Maps to: SELECT * FROM Account
    """
    Id: str
    Name: str = ""
    FullyQualifiedName: Optional[str] = None
    AccountType: Optional[str] = None
    AccountSubType: Optional[str] = None
    AcctNum: Optional[str] = None
    Active: Optional[bool] = True
    CurrentBalance: Optional[Decimal] = None


class QBOVendor(QBOBaseModel):
    """QuickBooks Vendor entity.

    Maps to: SELECT * FROM Vendor
    """
    Id: str
    DisplayName: str = ""
    CompanyName: Optional[str] = None
    PrintOnCheckName: Optional[str] = None
    Active: Optional[bool] = True
    Balance: Optional[Decimal] = None


class QBOJournalEntryLineDetail(QBOBaseModel):
    PostingType: str  # "Debit" or "Credit"
    AccountRef: QBORef


class QBOAccountBasedExpenseLineDetail(QBOBaseModel):
    AccountRef: QBORef


class QBOLine(QBOBaseModel):
    """A document line. Exactly one detail object matches DetailType."""
    Description: Optional[str] = None
    Amount: float
    DetailType: str
    JournalEntryLineDetail: Optional[QBOJournalEntryLineDetail] = None
    AccountBasedExpenseLineDetail: Optional[QBOAccountBasedExpenseLineDetail] = None


class QBOJournalEntry(QBOBaseModel):
    """QuickBooks JournalEntry.

    Maps to: POST /journalentry
    """
    Id: Optional[str] = None
    DocNumber: Optional[str] = None
    TxnDate: Optional[str] = None
    Line: List[QBOLine] = Field(default_factory=list)


class QBOBill(QBOBaseModel):
    """QuickBooks Bill.

    Maps to: POST /bill
    """
    Id: Optional[str] = None
    DocNumber: Optional[str] = None
    TxnDate: Optional[str] = None
    DueDate: Optional[str] = None
    VendorRef: Optional[QBORef] = None
    Line: List[QBOLine] = Field(default_factory=list)
    TotalAmt: Optional[Decimal] = None
