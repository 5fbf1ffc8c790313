"""
Application factory for FastAPI.

Handles FastAPI application creation and configuration only; lifecycle and
dependency wiring live in dedicated modules.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.exception_handlers import register_exception_handlers
from app.api.middleware import RequestLoggingMiddleware
from app.api.router import api_router
from app.config.settings import Settings, get_settings
from app.core.container import DependencyContainer
from app.core.lifecycle import lifespan

logger = logging.getLogger(__name__)


class AppFactory:
    """
    Factory for creating and configuring FastAPI applications.

    Each configuration step is handled by a dedicated method.
    """

    def __init__(self, settings: Settings | None = None, container: DependencyContainer | None = None) -> None:
        """
        Initialize app factory.

        Args:
            settings: Application settings (uses default if not provided)
            container: Prebuilt dependency container (built at startup if not provided)
        """
        self._settings = settings or (container.settings if container else get_settings())
        self._container = container

    def create_app(self) -> FastAPI:
        app = self._create_base_app()
        if self._container is not None:
            app.state.container = self._container

        self._configure_middleware(app)
        self._configure_exception_handlers(app)
        self._configure_routes(app)
        self._configure_health_endpoint(app)

        logger.info(f"Application created: {self._settings.PROJECT_NAME}")
        return app

    def _create_base_app(self) -> FastAPI:
        return FastAPI(
            title=self._settings.PROJECT_NAME,
            description=self._settings.PROJECT_DESCRIPTION,
            version=self._settings.VERSION,
            docs_url=f"{self._settings.API_V1_STR}/docs" if self._settings.DEBUG else None,
            redoc_url=f"{self._settings.API_V1_STR}/redoc" if self._settings.DEBUG else None,
            lifespan=lifespan,
        )

    def _configure_middleware(self, app: FastAPI) -> None:
        """CORS outermost, then request logging."""
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if self._settings.DEBUG else [],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        app.add_middleware(RequestLoggingMiddleware)

        logger.info("Middleware configured")

    def _configure_exception_handlers(self, app: FastAPI) -> None:
        register_exception_handlers(app)

    def _configure_routes(self, app: FastAPI) -> None:
        app.include_router(api_router, prefix=self._settings.API_V1_STR)
        logger.info("Routes configured")

    def _configure_health_endpoint(self, app: FastAPI) -> None:
        """Add health check endpoint."""

        @app.get("/health", tags=["health"])
        async def health_check() -> dict[str, str]:
            return {
                "status": "ok",
                "environment": self._settings.ENVIRONMENT,
                "storage": self._settings.SCHEDULING_STORAGE_BACKEND,
            }


def create_app(settings: Settings | None = None, container: DependencyContainer | None = None) -> FastAPI:
    """
    Create FastAPI application using the factory.

    Args:
        settings: Optional settings override
        container: Optional prebuilt dependency container

    Returns:
        Configured FastAPI application
    """
    factory = AppFactory(settings, container)
    return factory.create_app()
