"""API Routes Package."""

from api.routes import health, ledger, legacy, sync

__all__ = [
    "health",
    "ledger",
    "legacy",
    "sync",
]
