"""Application entry point and bootstrap.

This module initializes all application components, wires dependencies,
and provides the main entry point for running the application.
"""

import asyncio
import logging
import signal
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from clipvault.config import ClipVaultConfig
from clipvault.dao import AssetDAO, ShareableLinkDAO
from clipvault.database import Database
from clipvault.logging_filters import install_uvicorn_access_log_filters
from clipvault.observability import setup_error_log_file, teardown_error_log_file
from clipvault.routers import create_asset_router, create_share_router
from clipvault.scheduler import (
    MaintenanceJob,
    MaintenanceScheduler,
    incoming_cleanup_task,
    link_sweep_task,
)
from clipvault.services import (
    AssetService,
    FFmpegGateway,
    LinkService,
    StagingService,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Incoming cleanup runs hourly; retention itself is configured in hours
INCOMING_CLEANUP_INTERVAL_SECONDS = 3600


class Application:
    """Main application container.

    Manages all application components and their lifecycle.
    Provides dependency injection and graceful shutdown.
    """

    def __init__(self, config: ClipVaultConfig) -> None:
        """Initialize the application with configuration.

        Args:
            config: Application configuration.
        """
        self.config = config
        self._shutdown_event = asyncio.Event()
        self._shut_down = False

        # Core components (initialized in setup)
        self.database: Database | None = None
        self.fastapi_app: FastAPI | None = None

        # DAOs
        self.asset_dao: AssetDAO | None = None
        self.link_dao: ShareableLinkDAO | None = None

        # Services
        self.staging: StagingService | None = None
        self.gateway: FFmpegGateway | None = None
        self.asset_service: AssetService | None = None
        self.link_service: LinkService | None = None

        # Background maintenance
        self.scheduler: MaintenanceScheduler | None = None

    async def setup(self) -> None:
        """Initialize all application components.

        Sets up database, DAOs, services, and the maintenance scheduler
        with proper dependency injection.
        """
        logger.info("Setting up application components...")

        # Initialize error log file handler early to capture setup errors
        setup_error_log_file(self.config)

        # Initialize database
        self.database = Database(self.config.database_url)
        if self.config.auto_create_tables:
            await self.database.init_db()
            logger.info("Database initialized (auto_create_tables=true)")
        else:
            logger.info(
                "Database initialized (auto_create_tables=false; relying on Alembic migrations)"
            )

        # Initialize DAOs
        self.asset_dao = AssetDAO(self.database)
        self.link_dao = ShareableLinkDAO(self.database)

        # Initialize services
        self.staging = StagingService(self.config.storage_root)
        logger.info("Media storage at %s", self.staging.root)

        self.gateway = FFmpegGateway(
            ffmpeg_binary=self.config.ffmpeg_binary,
            ffprobe_binary=self.config.ffprobe_binary,
            timeout_seconds=self.config.gateway_timeout_seconds,
        )
        self.asset_service = AssetService(
            self.asset_dao,
            self.staging,
            self.gateway,
            max_upload_bytes=self.config.default_max_upload_bytes,
            verify_received_size=self.config.verify_received_size,
        )
        self.link_service = LinkService(
            self.link_dao,
            self.asset_dao,
            self.config.public_base_url,
        )

        # Maintenance jobs
        self.scheduler = MaintenanceScheduler()
        staging = self.staging
        config = self.config
        self.scheduler.register(
            MaintenanceJob(
                name="incoming_cleanup",
                interval_seconds=INCOMING_CLEANUP_INTERVAL_SECONDS,
                run=lambda: incoming_cleanup_task(staging, config),
            )
        )
        if self.config.link_sweep_enabled:
            link_service = self.link_service
            self.scheduler.register(
                MaintenanceJob(
                    name="link_sweep",
                    interval_seconds=self.config.link_sweep_interval_seconds,
                    run=lambda: link_sweep_task(link_service),
                )
            )

        logger.info("Application setup complete")

    def include_routers(self, fastapi_app: FastAPI) -> None:
        """Register the asset and share routers on a FastAPI app.

        Raises:
            RuntimeError: If setup() has not run.
        """
        if self.asset_service is None or self.link_service is None or self.staging is None:
            raise RuntimeError("Application not set up")

        fastapi_app.include_router(
            create_asset_router(
                self.asset_service,
                self.staging,
                default_max_upload_bytes=self.config.default_max_upload_bytes,
            )
        )
        logger.info("Asset router registered")

        fastapi_app.include_router(
            create_share_router(
                self.link_service,
                chunk_size=self.config.stream_chunk_size,
            )
        )
        logger.info("Share router registered")

    def create_fastapi_app(self) -> FastAPI:
        """Create and configure FastAPI application.

        Sets up routers and lifespan management.

        Returns:
            Configured FastAPI application.
        """

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            """Manage application lifespan."""
            logger.info("FastAPI application starting...")
            yield
            logger.info("FastAPI application shutting down...")

        self.fastapi_app = FastAPI(
            title="ClipVault",
            description="ClipVault media asset service",
            version="1.0.0",
            lifespan=lifespan,
        )

        self.include_routers(self.fastapi_app)

        # Health check endpoint
        @self.fastapi_app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy"}

        return self.fastapi_app

    async def start_background_services(self) -> None:
        """Start the maintenance scheduler."""
        logger.info("Starting background services...")

        if self.scheduler:
            await self.scheduler.start()
            logger.info("Maintenance scheduler started")

    async def shutdown(self) -> None:
        """Gracefully shutdown all application components.

        Stops background services, closes database connections,
        and cleans up resources. Safe to call more than once.
        """
        if self._shut_down:
            return
        self._shut_down = True

        logger.info("Initiating graceful shutdown...")

        # Signal shutdown
        self._shutdown_event.set()

        # Stop maintenance scheduler
        if self.scheduler:
            await self.scheduler.stop()
            logger.info("Maintenance scheduler stopped")

        # Close database
        if self.database:
            await self.database.close()
            logger.info("Database connection closed")

        teardown_error_log_file()
        logger.info("Graceful shutdown complete")

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown.

        Registers handlers for SIGINT and SIGTERM that set the shutdown
        event; main() stops the server once it is set.
        """
        loop = asyncio.get_running_loop()

        def signal_handler(sig: signal.Signals) -> None:
            logger.info("Received signal %s, initiating shutdown...", sig.name)
            self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

        logger.info("Signal handlers registered")

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_event.is_set()

    async def wait_for_shutdown(self) -> None:
        """Block until a signal or shutdown() requests shutdown."""
        await self._shutdown_event.wait()


async def create_app(config: ClipVaultConfig | None = None) -> Application:
    """Create and setup the application.

    Factory function for creating the application with all
    components initialized.

    Args:
        config: Optional configuration. If not provided, loads from
                config.json with environment variable overrides.

    Returns:
        Initialized Application instance.
    """
    if config is None:
        config = ClipVaultConfig.from_json_file()

    app = Application(config)
    await app.setup()
    app.create_fastapi_app()

    return app


async def main(reload: bool = False) -> None:
    """Main entry point for running the application.

    Initializes all components and runs the application until
    shutdown is requested.

    Args:
        reload: Enable hot reload during development.
    """
    import uvicorn

    logger.info("Starting ClipVault...")

    app: Application | None = None
    try:
        # Load configuration
        config = ClipVaultConfig.from_json_file()
        logger.info("Configuration loaded")

        # Create and setup application
        app = await create_app(config)

        # Start background services
        await app.start_background_services()

        logger.info(
            "Application running. API available at http://%s:%d",
            config.api_host,
            config.api_port,
        )

        # Create uvicorn config and server
        uvicorn_config = uvicorn.Config(
            app.fastapi_app,
            host=config.api_host,
            port=config.api_port,
            log_level="info",
            reload=reload,
        )

        # Uvicorn configures its loggers in load(); filters go on afterwards.
        uvicorn_config.load()
        install_uvicorn_access_log_filters()

        server = uvicorn.Server(uvicorn_config)

        # Install signal handlers for graceful shutdown
        app.setup_signal_handlers()
        server.install_signal_handlers = lambda: None  # We handle signals

        serve_task = asyncio.create_task(server.serve())
        stop_task = asyncio.create_task(app.wait_for_shutdown())
        done, _ = await asyncio.wait(
            {serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if stop_task in done:
            server.should_exit = True
        else:
            stop_task.cancel()
        await serve_task

    except Exception as e:
        logger.exception("Application error: %s", e)
        raise
    finally:
        if app:
            await app.shutdown()


def cli() -> None:
    """Console script entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Run ClipVault application")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload")
    args = parser.parse_args()

    asyncio.run(main(reload=args.reload))


if __name__ == "__main__":
    cli()
