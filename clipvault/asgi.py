"""ASGI entry point for uvicorn with hot reload support.

Usage:
    uvicorn clipvault.asgi:app --reload --host 0.0.0.0 --port 8742
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from clipvault.config import ClipVaultConfig
from clipvault.logging_filters import install_uvicorn_access_log_filters
from clipvault.main import Application

# Global application instance for lifespan management
_application: Application | None = None


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan for ASGI server."""
    global _application

    config = ClipVaultConfig.from_json_file()
    install_uvicorn_access_log_filters()
    _application = Application(config)
    await _application.setup()

    # Register routers
    _application.include_routers(fastapi_app)

    # Start background services
    await _application.start_background_services()

    yield

    # Shutdown
    await _application.shutdown()
    _application = None


# Create FastAPI app with lifespan
app = FastAPI(
    title="ClipVault",
    description="ClipVault media asset service",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
