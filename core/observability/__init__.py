"""
Observability Module for the ledger bridge

Provides:
- Structured logging with correlation IDs
- Metrics collection (ingestion, conversion, sync, processing times)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_ingestion,
    record_conversion,
    record_conversion_failed,
    record_document_submitted,
    record_document_failed,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    get_correlation_context,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_ingestion",
    "record_conversion",
    "record_conversion_failed",
    "record_document_submitted",
    "record_document_failed",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "get_correlation_context",
    "with_correlation",
]
