"""
Nuvemshop OAuth token service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI

from api.middleware import register_exception_handlers, register_middleware
from config.settings import Settings, config
from connectors.encryption import TokenCipher
from connectors.nuvemshop import NuvemshopConnector
from connectors.routes import router as connector_router
from connectors.token_manager import TokenStore
from database.session import build_engine, init_schema

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "sqlalchemy.engine", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or config

    app = FastAPI(
        title="Nuvemshop OAuth",
        version="1.0.0",
        description="Authorization-code exchange and token storage for a Nuvemshop app.",
    )

    register_middleware(app)
    register_exception_handlers(app)

    app.include_router(connector_router)

    @app.on_event("startup")
    async def on_startup():
        logger.info("Connecting to the token database…")
        engine = build_engine(settings)
        await init_schema(engine)
        app.state.engine = engine
        app.state.token_store = TokenStore(engine, TokenCipher(settings.token_encryption_key))

        connector = NuvemshopConnector(settings)
        if not connector.is_configured():
            logger.warning("CLIENT_ID / CLIENT_SECRET not set — token exchange will fail")
        app.state.connector = connector

        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        connector = getattr(app.state, "connector", None)
        if connector is not None:
            await connector.aclose()
        engine = getattr(app.state, "engine", None)
        if engine is not None:
            await engine.dispose()
        logger.info("Shutdown complete.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
