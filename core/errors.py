"""Error taxonomy for ingestion, conversion and sync.

Parsing-stage errors (FormatError, ParseError) are fatal to the whole call.
Sync-stage errors (ResolutionError, SubmissionError) are scoped to a single
document group: the reconciler records them and moves on to the next group.

Individual malformed or excluded rows are never raised; they are dropped and
logged at debug level.
"""

from typing import Optional


class LedgerBridgeError(Exception):
    """Base exception for all ledger bridge errors."""
    pass


class FormatError(LedgerBridgeError):
    """A legacy document is missing a required declaration line."""
    pass


class ParseError(LedgerBridgeError):
    """An ingestion batch produced zero usable rows."""
    pass


class SyncError(LedgerBridgeError):
    """Base for errors scoped to one document group during sync."""

    def __init__(self, message: str, document_number: Optional[str] = None):
        super().__init__(message)
        self.document_number = document_number


class ResolutionError(SyncError):
    """An account or vendor label has no mapping in the remote ledger."""

    def __init__(self, message: str, label: str = "", document_number: Optional[str] = None):
        super().__init__(message, document_number)
        self.label = label


class SubmissionError(SyncError):
    """The remote ledger rejected or failed a document."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        document_number: Optional[str] = None,
    ):
        super().__init__(message, document_number)
        self.status_code = status_code
