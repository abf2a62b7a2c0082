"""Legacy IIF conversion endpoints."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from core.errors import FormatError
from core.models import ConversionMode, ConvertedRow
from legacy import LegacyFormatConverter, export_filename, to_csv


router = APIRouter()


class ConvertRequest(BaseModel):
    """A tab-delimited legacy document and the target shape."""
    document: str
    mode: ConversionMode = ConversionMode.GL


class ExportRequest(ConvertRequest):
    """Conversion request that also names the source file."""
    filename: Optional[str] = None


class ConvertResponse(BaseModel):
    """Converted rows."""
    mode: ConversionMode
    count: int
    rows: List[ConvertedRow]


def _convert(request: ConvertRequest):
    try:
        return LegacyFormatConverter().convert(request.document, request.mode)
    except FormatError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/convert", response_model=ConvertResponse)
async def convert_document(request: ConvertRequest) -> ConvertResponse:
    """Convert a document to journal or bill rows."""
    rows = _convert(request)
    return ConvertResponse(mode=request.mode, count=len(rows), rows=rows)


@router.post("/export")
async def export_document(request: ExportRequest) -> Response:
    """Convert a document and return it as a CSV attachment."""
    rows = _convert(request)
    filename = export_filename(request.filename or "converted")
    return Response(
        content=to_csv(rows, request.mode),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
