"""API Package.

FastAPI server for Ledger Bridge.
"""

from api.server import create_app, app

__all__ = [
    "create_app",
    "app",
]
