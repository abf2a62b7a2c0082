"""Core module - ledger-neutral models, money math, errors and configuration.

This module contains the canonical data models, cent-safe arithmetic, the
error taxonomy, settings and observability. It is intentionally independent
of the remote ledger.

Remote-ledger specifics (QuickBooks Online) belong in /connectors/.
"""

__version__ = "1.0.0"
