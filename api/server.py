"""FastAPI server for Ledger Bridge.

Main entry point for the API server.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health, ledger, legacy, sync
from connectors import LedgerConfig, LedgerConnector, create_connector
from core.config import get_settings
from core.observability.logging import configure_logging, get_logger
from name_resolver import NameDirectory

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    configure_logging()
    settings = get_settings()
    if app.state.connector is None and settings.qbo_configured:
        app.state.connector = create_connector(LedgerConfig.from_settings(settings))
    logger.info("Ledger Bridge API starting up...")

    yield

    # Shutdown
    if app.state.connector is not None:
        await app.state.connector.disconnect()
    logger.info("Ledger Bridge API shutting down...")


def create_app(
    connector: Optional[LedgerConnector] = None,
    directory: Optional[NameDirectory] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    `connector` may be injected; otherwise one is built at startup when
    QBO_REALM_ID and QBO_ACCESS_TOKEN are set.
    """
    app = FastAPI(
        title="Ledger Bridge API",
        description="Payment-processor ledger reporting, legacy IIF conversion and QuickBooks sync",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.connector = connector
    app.state.directory = directory or NameDirectory()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(ledger.router, prefix="/ledger", tags=["Ledger"])
    app.include_router(legacy.router, prefix="/legacy", tags=["Legacy"])
    app.include_router(sync.router, prefix="/sync", tags=["Sync"])

    return app


# Default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
