"""QuickBooks Online Ledger Connector.

Implements the LedgerConnector interface for QuickBooks Online.
"""

from typing import Any, Dict, List, Optional

from connectors.ledger_base import (
    AccountRef,
    BillPayload,
    CreatedDocumentRef,
    JournalEntryPayload,
    LedgerConfig,
    LedgerConnectionStatus,
    LedgerConnector,
    LedgerDocumentType,
    VendorRef,
    register_connector,
)
from connectors.quickbooks.qbo_auth import QBOSession
from connectors.quickbooks.qbo_client import (
    QBOApiClient,
    QBOApiConfig,
    QBOApiError,
    QBORateLimitError,
    RetryConfig,
)
from connectors.quickbooks.qbo_models import (
    QBOAccount,
    QBOAccountBasedExpenseLineDetail,
    QBOBill,
    QBOJournalEntry,
    QBOJournalEntryLineDetail,
    QBOLine,
    QBORef,
    QBOVendor,
)
from core.errors import SubmissionError
from core.observability.logging import get_logger

logger = get_logger(__name__)


def to_qbo_journal_entry(payload: JournalEntryPayload) -> QBOJournalEntry:
    """Normalized journal entry -> QBO JournalEntry body."""
    return QBOJournalEntry(
        DocNumber=payload.document_number,
        TxnDate=payload.txn_date,
        Line=[
            QBOLine(
                Description=line.description,
                Amount=float(line.amount),
                DetailType="JournalEntryLineDetail",
                JournalEntryLineDetail=QBOJournalEntryLineDetail(
                    PostingType=line.posting_type.value,
                    AccountRef=QBORef(value=line.account_id),
                ),
            )
            for line in payload.lines
        ],
    )


def to_qbo_bill(payload: BillPayload) -> QBOBill:
    """Normalized bill -> QBO Bill body."""
    return QBOBill(
        DocNumber=payload.document_number,
        TxnDate=payload.txn_date,
        DueDate=payload.due_date,
        VendorRef=QBORef(value=payload.vendor_id),
        Line=[
            QBOLine(
                Description=line.description,
                Amount=float(line.amount),
                DetailType="AccountBasedExpenseLineDetail",
                AccountBasedExpenseLineDetail=QBOAccountBasedExpenseLineDetail(
                    AccountRef=QBORef(value=line.account_id),
                ),
            )
            for line in payload.lines
        ],
    )


@register_connector("quickbooks")
class QuickBooksConnector(LedgerConnector):
    """QuickBooks Online connector implementation.

    Required configuration:
    - realm_id: QuickBooks company ID
    - auth_config.access_token: bearer token issued by the external auth service

    Optional configuration:
    - auth_config.expires_at: token expiry (datetime)
    - environment: "sandbox" (default) or "production"
    - custom_settings.minor_version: API minor version (default: "65")
    """

    def __init__(
        self,
        config: LedgerConfig,
        session: Optional[QBOSession] = None,
        api_client: Optional[QBOApiClient] = None,
    ):
        super().__init__(config)

        self._session = session or QBOSession(
            access_token=config.auth_config.get("access_token"),
            realm_id=config.realm_id,
            expires_at=config.auth_config.get("expires_at"),
        )

        api_config = QBOApiConfig(
            environment=config.environment,
            base_url=config.base_url,
            minor_version=config.custom_settings.get("minor_version", "65"),
            retry_config=RetryConfig(max_retries=config.max_retries),
            timeout_seconds=config.timeout_seconds,
        )
        self._api_client = api_client or QBOApiClient(self._session, api_config)

    @property
    def session(self) -> QBOSession:
        return self._session

    # =========================================================================
    # Connection Management
    # =========================================================================

    async def connect(self) -> bool:
        """Open the HTTP session against QuickBooks."""
        success = await self._api_client.connect()
        if success:
            self._connection_status = LedgerConnectionStatus.CONNECTED
        else:
            logger.warning("QuickBooks session is missing or expired")
            self._connection_status = LedgerConnectionStatus.FAILED
        return success

    async def disconnect(self) -> None:
        await self._api_client.disconnect()
        self._connection_status = LedgerConnectionStatus.DISCONNECTED

    async def test_connection(self) -> bool:
        try:
            await self._ensure_connected()
            await self._api_client.query("SELECT * FROM Account MAXRESULTS 1")
            return True
        except QBOApiError as e:
            logger.warning(f"QuickBooks connection test failed: {e}")
            return False

    async def _ensure_connected(self) -> None:
        if not self._api_client.is_connected:
            await self.connect()

    # =========================================================================
    # Catalog Listing
    # =========================================================================

    async def list_accounts(self) -> List[AccountRef]:
        """All accounts, keyed by QuickBooks `Name`."""
        await self._ensure_connected()
        rows = await self._api_client.query_all("Account")

        accounts = []
        for data in rows:
            a = QBOAccount.model_validate(data)
            accounts.append(AccountRef(
                id=a.Id,
                name=a.Name,
                account_type=a.AccountType,
                is_active=a.Active is not False,
                metadata={"fully_qualified_name": a.FullyQualifiedName} if a.FullyQualifiedName else {},
            ))
        return accounts

    async def list_vendors(self) -> List[VendorRef]:
        """All vendors, keyed by QuickBooks `DisplayName`."""
        await self._ensure_connected()
        rows = await self._api_client.query_all("Vendor")

        vendors = []
        for data in rows:
            v = QBOVendor.model_validate(data)
            vendors.append(VendorRef(
                id=v.Id,
                name=v.DisplayName,
                is_active=v.Active is not False,
            ))
        return vendors

    # =========================================================================
    # Document Creation
    # =========================================================================

    async def create_journal_entry(
        self,
        payload: JournalEntryPayload,
        idempotency_key: Optional[str] = None,
    ) -> CreatedDocumentRef:
        body = to_qbo_journal_entry(payload).model_dump(exclude_none=True)
        created = await self._create("JournalEntry", body, payload.document_number, idempotency_key)

        return CreatedDocumentRef(
            id=str(created.get("Id", "")),
            document_type=LedgerDocumentType.JOURNAL_ENTRY,
            document_number=created.get("DocNumber", payload.document_number),
            idempotency_key=idempotency_key,
        )

    async def create_bill(
        self,
        payload: BillPayload,
        idempotency_key: Optional[str] = None,
    ) -> CreatedDocumentRef:
        body = to_qbo_bill(payload).model_dump(exclude_none=True)
        created = await self._create("Bill", body, payload.document_number, idempotency_key)

        return CreatedDocumentRef(
            id=str(created.get("Id", "")),
            document_type=LedgerDocumentType.BILL,
            document_number=created.get("DocNumber", payload.document_number),
            total_amount=created.get("TotalAmt", payload.total_amount),
            idempotency_key=idempotency_key,
        )

    async def _create(
        self,
        entity: str,
        body: Dict[str, Any],
        document_number: str,
        idempotency_key: Optional[str],
    ) -> Dict[str, Any]:
        """POST a document and unwrap the response; QBO errors become SubmissionError."""
        try:
            await self._ensure_connected()
            response = await self._api_client.create(entity, body, request_id=idempotency_key)
        except QBORateLimitError as e:
            self._connection_status = LedgerConnectionStatus.RATE_LIMITED
            raise SubmissionError(str(e), status_code=e.status_code, document_number=document_number) from e
        except QBOApiError as e:
            raise SubmissionError(str(e), status_code=e.status_code, document_number=document_number) from e

        return response.get(entity, response)
