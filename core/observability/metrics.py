"""
Metrics Collection for the ledger bridge

Collects and exposes metrics for:
- Ingestion runs (files parsed, rows accepted, rows skipped)
- Legacy conversions (runs and rows by mode)
- Sync submissions (documents submitted / failed, client retries)
- Processing times (average, p95)

Metrics are held in-memory for the life of the process.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Any


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class IngestionMetrics:
    """Metrics for ledger ingestion."""
    runs: int = 0
    files: int = 0
    files_failed: int = 0
    rows_accepted: int = 0
    rows_skipped: int = 0

    # By source kind
    by_source: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(lambda: {"runs": 0, "accepted": 0, "skipped": 0}))


@dataclass
class ConversionMetrics:
    """Metrics for legacy IIF conversion."""
    runs: int = 0
    rows: int = 0
    failed: int = 0

    # By mode
    by_mode: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(lambda: {"runs": 0, "rows": 0, "failed": 0}))


@dataclass
class SyncMetrics:
    """Metrics for remote-ledger submission."""
    submitted: int = 0
    failed: int = 0
    retries: int = 0

    # By mode
    by_mode: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(lambda: {"submitted": 0, "failed": 0}))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    # Raw timing samples (keep last N for percentile calculations)
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    # By stage
    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_ingestion("SHOPIFY", files=2, accepted=40, skipped=1)
        metrics.record_document_submitted("GL")
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.ingestion = IngestionMetrics()
        self.conversions = ConversionMetrics()
        self.sync = SyncMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton (tests)."""
        with cls._lock:
            cls._instance = None

    # =========================================================================
    # Ingestion Metrics
    # =========================================================================

    def record_ingestion(
        self,
        source_kind: str,
        files: int,
        accepted: int,
        skipped: int,
        files_failed: int = 0,
        duration_ms: float = None,
    ):
        """Record one ingestion run."""
        with self._lock:
            self.ingestion.runs += 1
            self.ingestion.files += files
            self.ingestion.files_failed += files_failed
            self.ingestion.rows_accepted += accepted
            self.ingestion.rows_skipped += skipped
            by_source = self.ingestion.by_source[source_kind]
            by_source["runs"] += 1
            by_source["accepted"] += accepted
            by_source["skipped"] += skipped

            if duration_ms:
                self.timings.add_sample(duration_ms, f"ingest.{source_kind}")

    # =========================================================================
    # Conversion Metrics
    # =========================================================================

    def record_conversion(self, mode: str, rows: int, duration_ms: float = None):
        """Record a successful legacy conversion."""
        with self._lock:
            self.conversions.runs += 1
            self.conversions.rows += rows
            self.conversions.by_mode[mode]["runs"] += 1
            self.conversions.by_mode[mode]["rows"] += rows

            if duration_ms:
                self.timings.add_sample(duration_ms, f"convert.{mode}")

    def record_conversion_failed(self, mode: str):
        """Record a conversion rejected for format errors."""
        with self._lock:
            self.conversions.failed += 1
            self.conversions.by_mode[mode]["failed"] += 1

    # =========================================================================
    # Sync Metrics
    # =========================================================================

    def record_document_submitted(self, mode: str):
        """Record a document accepted by the remote ledger."""
        with self._lock:
            self.sync.submitted += 1
            self.sync.by_mode[mode]["submitted"] += 1

    def record_document_failed(self, mode: str):
        """Record a document that failed resolution or submission."""
        with self._lock:
            self.sync.failed += 1
            self.sync.by_mode[mode]["failed"] += 1

    def record_request_retry(self):
        """Record an HTTP retry against the remote ledger."""
        with self._lock:
            self.sync.retries += 1

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "ingestion": {
                    "runs": self.ingestion.runs,
                    "files": self.ingestion.files,
                    "files_failed": self.ingestion.files_failed,
                    "rows_accepted": self.ingestion.rows_accepted,
                    "rows_skipped": self.ingestion.rows_skipped,
                    "by_source": {k: dict(v) for k, v in self.ingestion.by_source.items()},
                },
                "conversions": {
                    "runs": self.conversions.runs,
                    "rows": self.conversions.rows,
                    "failed": self.conversions.failed,
                    "by_mode": {k: dict(v) for k, v in self.conversions.by_mode.items()},
                },
                "sync": {
                    "submitted": self.sync.submitted,
                    "failed": self.sync.failed,
                    "retries": self.sync.retries,
                    "by_mode": {k: dict(v) for k, v in self.sync.by_mode.items()},
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_ingestion(source_kind: str, files: int, accepted: int, skipped: int,
                     files_failed: int = 0, duration_ms: float = None):
    """Record one ingestion run."""
    get_metrics().record_ingestion(source_kind, files, accepted, skipped, files_failed, duration_ms)


def record_conversion(mode: str, rows: int, duration_ms: float = None):
    """Record a successful legacy conversion."""
    get_metrics().record_conversion(mode, rows, duration_ms)


def record_conversion_failed(mode: str):
    """Record a failed legacy conversion."""
    get_metrics().record_conversion_failed(mode)


def record_document_submitted(mode: str):
    """Record a submitted document."""
    get_metrics().record_document_submitted(mode)


def record_document_failed(mode: str):
    """Record a failed document."""
    get_metrics().record_document_failed(mode)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
