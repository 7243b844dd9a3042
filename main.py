"""
Task API — application entry point.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.middleware import register_exception_handlers, register_middleware
from api.schemas import HealthResponse
from api.tasks import router as tasks_router
from api.users import router as users_router
from auth.routes import router as auth_router
from auth.tokens import TokenService
from config.settings import Settings, config
from database.session import build_engine, build_session_factory, create_tables, ping

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "asyncio", "aiosqlite", "httpcore", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or config

    app = FastAPI(
        title="Task API",
        version="1.0.0",
        description="User accounts with JWT access/refresh tokens and per-user task lists.",
    )

    # One engine, session factory and token service for the whole process.
    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url, echo=settings.database_echo)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.token_service = TokenService.from_settings(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    prefix = settings.api_prefix.rstrip("/")
    app.include_router(auth_router, prefix=f"{prefix}/auth")
    app.include_router(users_router, prefix=f"{prefix}/users")
    app.include_router(tasks_router, prefix=f"{prefix}/tasks")

    @app.get("/", tags=["meta"])
    async def root():
        return {
            "message": "Hello World!",
            "status": "Task API is running",
            "database": "Configured" if settings.database_url else "Not configured",
        }

    @app.get("/health", tags=["meta"], response_model=HealthResponse, responses={503: {"model": HealthResponse}})
    async def health():
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            await ping(app.state.engine)
        except Exception as exc:
            logger.warning("Health check failed: %s", exc)
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "database": "disconnected", "timestamp": timestamp},
            )
        return {"status": "healthy", "database": "connected", "timestamp": timestamp}

    @app.on_event("startup")
    async def on_startup():
        for problem in settings.secret_warnings():
            logger.warning("Insecure token configuration: %s", problem)

        if settings.auto_create_tables:
            logger.info("Ensuring database tables exist…")
            try:
                await create_tables(app.state.engine)
            except Exception as exc:
                # Requests will answer 503 until the database is reachable.
                logger.error("Could not create tables: %s", exc)

        tokens = app.state.token_service
        logger.info(
            "Token lifetimes: access=%s refresh=%s",
            tokens.access_ttl, tokens.refresh_ttl,
        )
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        logger.info("Shutting down, disposing database engine…")
        await app.state.engine.dispose()

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
