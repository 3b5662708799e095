"""
PIMX remote store application
Serves the key-value documents the planner syncs against

Usage:
    # Local development
    uvicorn pimx.app:app --reload

    # Bound to every interface
    uvicorn pimx.app:app --host 0.0.0.0 --port 8787

    # Through the CLI (reads [server] from config.toml)
    pimx serve
"""

import sqlite3
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pimx import __version__
from pimx.config.loader import get_config
from pimx.core.db import get_db
from pimx.core.logger import get_logger
from pimx.handlers import register_fastapi_routes

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store before serving and log its size"""
    config_file = get_config().config_file
    db = get_db()
    logger.info(f"PIMX store up: config={config_file} db={db.db_path} keys={db.count_kv()}")

    yield

    logger.info("PIMX store stopped")


def create_app() -> FastAPI:
    """Build the store app with CORS and every registered route"""
    app = FastAPI(
        title="PIMX Store API",
        description="Key-value persistence for the PIMX planner dashboard",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Browser clients on any origin sync against this store
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_fastapi_routes(app, prefix="/api")

    @app.get("/")
    async def root():
        """Service name and version"""
        return {
            "service": "PIMX Store API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        """Liveness plus the number of stored keys"""
        try:
            keys = get_db().count_kv()
        except sqlite3.Error as e:
            logger.error(f"Health check cannot read the store: {e}")
            return {"status": "unhealthy", "service": "pimx-store", "error": str(e)}
        return {"status": "healthy", "service": "pimx-store", "keys": keys}

    return app


# Module-level instance for "uvicorn pimx.app:app"
app = create_app()


def run_server(
    host: Optional[str] = None, port: Optional[int] = None, debug: Optional[bool] = None
) -> None:
    """Run the store with uvicorn, filling unset options from [server]"""
    config = get_config()
    host = host or config.get("server.host", "0.0.0.0")
    port = port or config.get("server.port", 8787)
    debug = config.get("server.debug", False) if debug is None else debug

    logger.info(f"Starting server at http://{host}:{port}")

    uvicorn.run(
        "pimx.app:app",
        host=host,
        port=int(port),
        reload=debug,
        log_level="debug" if debug else "info",
    )


if __name__ == "__main__":
    run_server()
