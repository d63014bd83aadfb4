"""FastAPI application: main entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.application.services.auth_service import PasswordHasher
from app.config import Settings, get_settings
from app.core.exceptions import AppError, app_error_handler, global_exception_handler, validation_exception_handler
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.infrastructure.database import DatabaseConnector
from app.infrastructure.email_sender import HttpEmailSender
from app.infrastructure.executor import QueryExecutor
from app.infrastructure.object_storage import HttpObjectStorage
from app.infrastructure.pool import ConnectionPool
from app.infrastructure.verification_store import InMemoryVerificationStore

# Import routers
from app.interfaces.api.auth import router as auth_router
from app.interfaces.api.health import router as health_router
from app.interfaces.api.profile import router as profile_router
from app.interfaces.api.scans import router as scans_router
from app.interfaces.api.uploads import router as uploads_router

logger = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan: startup and shutdown events."""
        logger.info("Starting rice leaf backend", env=settings.ENVIRONMENT)

        connector = DatabaseConnector(settings)
        if settings.DB_CREATE_TABLES:
            # dev only; production schemas are managed outside the app
            await connector.create_all()

        pool = ConnectionPool(
            connector.connect,
            max_size=settings.DB_POOL_MAX_SIZE,
            acquire_timeout=settings.DB_ACQUIRE_TIMEOUT_SECONDS,
        )
        app.state.settings = settings
        app.state.pool = pool
        app.state.executor = QueryExecutor(pool, request_timeout=settings.DB_REQUEST_TIMEOUT_SECONDS)
        app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        app.state.signup_store = InMemoryVerificationStore("signup")
        app.state.password_reset_store = InMemoryVerificationStore("password_reset")
        app.state.email_change_store = InMemoryVerificationStore("email_change")
        app.state.email_sender = HttpEmailSender(settings)
        app.state.object_storage = HttpObjectStorage(settings)

        yield

        await pool.shutdown_all()
        await connector.dispose()
        logger.info("Rice leaf backend stopped")

    app = FastAPI(
        title="Rice Leaf Scan API",
        description="Accounts, email verification, scans and disease information",
        version="1.0.0",
        lifespan=lifespan,
    )

    setup_middleware(app)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(uploads_router)
    app.include_router(scans_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=get_settings().PORT)
