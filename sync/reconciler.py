"""Sync reconciliation - submit converted rows to the remote ledger.

Rows are grouped by document number (journal number in GL mode, bill
number in AP mode) in first-seen order. Each group becomes one remote
document and is submitted on its own, strictly one after another. A group
that fails resolution or submission is recorded and counted; the batch
always continues with the next group.

Usage:
    directory = NameDirectory()
    reconciler = SyncReconciler(connector, directory)
    await reconciler.refresh_mappings()
    result = await reconciler.submit(rows, ConversionMode.GL)
    print(result.success_count, result.failure_count, result.errors)
"""

import time
import uuid
from collections import OrderedDict
from typing import Dict, List, Sequence, Union

from pydantic import BaseModel, Field

from connectors.ledger_base import CreatedDocumentRef, LedgerConnector
from core.errors import SyncError
from core.models import BillRow, ConversionMode, JournalRow, row_for_mode
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import (
    record_document_failed,
    record_document_submitted,
    record_processing_time,
)
from name_resolver import NameDirectory, NameResolver
from sync.payloads import build_bill_payload, build_journal_payload

logger = get_logger(__name__)

# Namespace for per-document idempotency keys
_IDEMPOTENCY_NAMESPACE = uuid.UUID("8f6d3c1e-52a4-4b7e-9a0f-2d51c7e4b6a3")


class SyncResult(BaseModel):
    """Mixed outcome of one submission batch."""
    success_count: int = 0
    failure_count: int = 0
    errors: List[str] = Field(default_factory=list)
    created: List[CreatedDocumentRef] = Field(default_factory=list)


def group_rows(
    rows: Sequence[Union[JournalRow, BillRow]],
    mode: ConversionMode,
) -> "OrderedDict[str, List[Union[JournalRow, BillRow]]]":
    """Group rows by document key in first-seen order.

    Raises:
        TypeError: a row does not belong to `mode`
    """
    expected = row_for_mode(mode)
    groups: "OrderedDict[str, List[Union[JournalRow, BillRow]]]" = OrderedDict()
    for row in rows:
        if not isinstance(row, expected):
            raise TypeError(f"{mode.value} sync expects {expected.__name__} rows, got {type(row).__name__}")
        groups.setdefault(row.document_key, []).append(row)
    return groups


class SyncReconciler:
    """Per-document, failure-tolerant submission to a LedgerConnector."""

    def __init__(
        self,
        connector: LedgerConnector,
        directory: NameDirectory,
        resolver: NameResolver = None,
    ):
        self.connector = connector
        self.directory = directory
        self.resolver = resolver or NameResolver()

    async def refresh_mappings(self) -> Dict[str, int]:
        """Rebuild the account and vendor maps from the connector."""
        return await self.directory.refresh(self.connector)

    async def submit(
        self,
        rows: Sequence[Union[JournalRow, BillRow]],
        mode: Union[ConversionMode, str],
    ) -> SyncResult:
        mode = ConversionMode(mode)
        groups = group_rows(rows, mode)
        label = "Bill" if mode == ConversionMode.AP else "Journal"
        run_id = f"sync-{uuid.uuid4().hex[:8]}"
        result = SyncResult()
        start = time.monotonic()

        with with_correlation(run_id=run_id, conversion_mode=mode.value, stage="sync"):
            logger.info(f"Submitting {len(groups)} {label.lower()} document(s)")

            for document_number, group in groups.items():
                with with_correlation(document_number=document_number):
                    try:
                        created = await self._submit_group(run_id, mode, document_number, group)
                    except SyncError as e:
                        self._record_failure(result, mode, label, document_number, str(e))
                        logger.warning(f"{label} {document_number} failed: {e}")
                        continue
                    except Exception as e:
                        self._record_failure(result, mode, label, document_number, str(e))
                        logger.exception(f"{label} {document_number} failed unexpectedly")
                        continue

                    result.success_count += 1
                    result.created.append(created)
                    record_document_submitted(mode.value)
                    logger.info(f"{label} {document_number} created as {created.id}")

            record_processing_time(f"sync.{mode.value}", (time.monotonic() - start) * 1000)
            logger.info(
                f"Sync complete: {result.success_count} succeeded, {result.failure_count} failed"
            )

        return result

    async def _submit_group(
        self,
        run_id: str,
        mode: ConversionMode,
        document_number: str,
        group: List[Union[JournalRow, BillRow]],
    ) -> CreatedDocumentRef:
        key = str(uuid.uuid5(_IDEMPOTENCY_NAMESPACE, f"{run_id}:{mode.value}:{document_number}"))

        if mode == ConversionMode.AP:
            payload = build_bill_payload(
                document_number,
                group,
                self.directory.accounts,
                self.directory.vendors,
                self.resolver,
            )
            return await self.connector.create_bill(payload, idempotency_key=key)

        payload = build_journal_payload(
            document_number,
            group,
            self.directory.accounts,
            self.resolver,
        )
        return await self.connector.create_journal_entry(payload, idempotency_key=key)

    @staticmethod
    def _record_failure(
        result: SyncResult,
        mode: ConversionMode,
        label: str,
        document_number: str,
        message: str,
    ) -> None:
        result.failure_count += 1
        result.errors.append(f"{label} {document_number}: {message}")
        record_document_failed(mode.value)
