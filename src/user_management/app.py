"""User management service application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from loguru import logger

from .common.config import Settings, get_settings, configure_logging
from .common.database import DatabaseManager, QueryRunner
from .common.exception_handlers import register_exception_handlers
from .features.users.repositories import UserDirectory
from .features.users.routers import router as users_router
from .features.users.services import UserService
from .integrations.identity_provider import (
    CredentialCache,
    IdentityBroker,
    IdentityProviderClient,
    AccessTokenValidator,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the service graph on startup and release it on shutdown."""
    settings: Settings = app.state.settings

    database = DatabaseManager.from_settings(settings)
    await database.create_pool()

    provider = IdentityProviderClient.from_settings(settings)
    token_validator = AccessTokenValidator.from_settings(settings)
    credential_cache = CredentialCache(
        provider,
        realm=settings.identity_provider_connection,
        scope=settings.identity_provider_scope,
        service_token_ttl=settings.service_token_ttl_seconds,
        safety_margin=settings.token_safety_margin_seconds,
    )
    broker = IdentityBroker(provider, credential_cache, connection=settings.identity_provider_connection)

    app.state.database = database
    app.state.provider = provider
    app.state.credential_cache = credential_cache
    app.state.token_validator = token_validator
    app.state.user_service = UserService(UserDirectory(QueryRunner(database)), broker)

    logger.info(f"{settings.app_name} {settings.app_version} started ({settings.environment})")
    try:
        yield
    finally:
        await token_validator.close()
        await provider.close()
        await database.close_pool()
        logger.info(f"{settings.app_name} stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="User registration and authentication backed by an external identity provider",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app, is_production=not settings.is_development)
    app.include_router(users_router, prefix=settings.api_prefix, tags=["Users"])

    @app.get("/health", tags=["Health"])
    async def health(request: Request):
        database: Optional[DatabaseManager] = getattr(request.app.state, "database", None)
        healthy = database is not None and await database.health_check()
        return {"status": "healthy" if healthy else "unhealthy", "database": healthy}

    return app
