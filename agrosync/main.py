"""
Main entry point for AgroSync
Wires the offline data layer and serves the HTTP API
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agrosync import __version__
from agrosync.config.config_loader import load_config
from agrosync.core.logging_manager import setup_logging
from agrosync.core.services import SyncServices, build_services
from agrosync.api import entities, sync
from agrosync.api.dependencies import init_api_dependencies
from agrosync.api.error_handling import register_error_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start services on startup, stop them on shutdown"""
    services: SyncServices = app.state.services

    logger.info(f"Starting AgroSync v{__version__}...")
    await services.start()
    logger.info("AgroSync started successfully")

    yield

    logger.info("Shutting down AgroSync...")
    await services.stop()
    logger.info("AgroSync shutdown complete")


class AgroSyncApp:
    """AgroSync application: services plus the FastAPI surface"""

    def __init__(self, config: Dict[str, Any], services: Optional[SyncServices] = None):
        self.config = config
        self.services = services or build_services(config)

        api_config = config.get('api', {})

        self.app = FastAPI(
            title="AgroSync",
            description="Offline-first farm records with queued cloud synchronization",
            version=__version__,
            lifespan=lifespan
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=api_config.get('cors_origins', ["*"]),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"]
        )

        init_api_dependencies(self.app, api_config.get('api_key', 'development-key'), self.services)
        register_error_handlers(self.app)

        self.app.include_router(entities.router, prefix="/api/v1/entities", tags=["Entities"])
        self.app.include_router(sync.router, prefix="/api/v1/sync", tags=["Synchronization"])

        @self.app.get("/health")
        async def health_check():
            """Health check with local store and sync state"""
            health_status = {
                "status": "healthy",
                "version": __version__,
                "timestamp": int(time.time() * 1000)
            }

            if await self.services.db.health_check():
                health_status["database"] = {"status": "connected"}
            else:
                health_status["database"] = {"status": "error"}
                health_status["status"] = "degraded"

            try:
                sync_status = await self.services.engine.get_sync_status()
                health_status["sync"] = sync_status.to_dict()
            except Exception as e:
                logger.warning(f"Sync status unavailable for health check: {e}")
                health_status["sync"] = {"status": "error", "error": str(e)}
                health_status["status"] = "degraded"

            return health_status


def create_app(config: Optional[Dict[str, Any]] = None,
               services: Optional[SyncServices] = None) -> FastAPI:
    """Build the FastAPI application; loads config from disk when none is given"""
    if config is None:
        config = load_config()
    return AgroSyncApp(config, services).app


def main(config_path: Optional[str] = None):
    """Load config, set up logging and run the API server"""
    config = load_config(config_path)

    logging_config = config.get('logging', {})
    setup_logging(logging_config.get('level', 'INFO'), logging_config.get('file') or None)

    api_config = config.get('api', {})
    app = create_app(config)

    uvicorn.run(
        app,
        host=api_config.get('host', '0.0.0.0'),
        port=int(api_config.get('port', 8080)),
        log_config=None
    )


if __name__ == "__main__":
    main()
