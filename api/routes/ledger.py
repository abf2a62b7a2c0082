"""Payment-processor ledger endpoints.

Accepts raw export contents and returns the grouped report.
"""

from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from core.errors import ParseError
from core.models import ReportSummary, SourceKind
from ingestion import LedgerIngestor, SourceFile


router = APIRouter()


class SourceFileIn(BaseModel):
    """One uploaded export."""
    name: str
    content: str


class IngestRequest(BaseModel):
    """Request to ingest a batch of exports of one kind."""
    source_kind: SourceKind
    files: List[SourceFileIn] = Field(..., min_length=1)


@router.post("/ingest", response_model=ReportSummary)
async def ingest_ledger(request: IngestRequest) -> ReportSummary:
    """Parse, sort and group the uploaded exports."""
    files = [SourceFile(name=f.name, content=f.content) for f in request.files]
    try:
        return await LedgerIngestor().ingest(files, request.source_kind)
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e))
