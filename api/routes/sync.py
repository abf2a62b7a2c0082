"""Remote-ledger sync endpoints.

Requires a configured connector (QBO_REALM_ID and QBO_ACCESS_TOKEN, or one
injected through create_app).
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from connectors import ConnectionStatus, LedgerConnector
from core.models import ConversionMode, ConvertedRow
from core.observability.logging import get_logger
from name_resolver import NameDirectory
from sync import SyncReconciler, SyncResult


router = APIRouter()
logger = get_logger(__name__)


class SyncStatusResponse(BaseModel):
    """Connector state and current mapping sizes."""
    configured: bool
    connection: Optional[ConnectionStatus] = None
    accounts: int
    vendors: int


class SubmitRequest(BaseModel):
    """Converted rows to submit as remote documents."""
    mode: ConversionMode
    rows: List[ConvertedRow]


def get_directory(request: Request) -> NameDirectory:
    return request.app.state.directory


def get_connector(request: Request) -> LedgerConnector:
    connector = request.app.state.connector
    if connector is None:
        raise HTTPException(
            status_code=503,
            detail="QuickBooks is not configured. Set QBO_REALM_ID and QBO_ACCESS_TOKEN."
        )
    return connector


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    request: Request,
    directory: NameDirectory = Depends(get_directory),
) -> SyncStatusResponse:
    """Report connector state and mapping sizes."""
    connector = request.app.state.connector
    return SyncStatusResponse(
        configured=connector is not None,
        connection=connector.get_status() if connector else None,
        accounts=len(directory.accounts),
        vendors=len(directory.vendors),
    )


@router.post("/refresh-mappings")
async def refresh_mappings(
    connector: LedgerConnector = Depends(get_connector),
    directory: NameDirectory = Depends(get_directory),
) -> Dict[str, int]:
    """Reload the account and vendor maps from the remote ledger."""
    try:
        return await SyncReconciler(connector, directory).refresh_mappings()
    except Exception as e:
        logger.exception("Mapping refresh failed")
        raise HTTPException(status_code=502, detail=f"Mapping refresh failed: {e}")


@router.post("/submit", response_model=SyncResult)
async def submit_documents(
    request: SubmitRequest,
    connector: LedgerConnector = Depends(get_connector),
    directory: NameDirectory = Depends(get_directory),
) -> SyncResult:
    """Submit rows grouped into documents; failures are reported per document."""
    try:
        return await SyncReconciler(connector, directory).submit(request.rows, request.mode)
    except TypeError as e:
        raise HTTPException(status_code=422, detail=str(e))
