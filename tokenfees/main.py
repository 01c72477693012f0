import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .routers import health, prices, fees, volatility, catalogue
from .services.container import Services, build_services


def create_app(
    settings_override: Settings | None = None,
    services_override: Services | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment. Falls back to cached get_settings().
    services_override: pre-built Services (e.g. wired with fake providers).
    """
    settings = settings_override or get_settings()
    # Initialize logging early
    init_logging(debug=settings.debug)

    services = services_override or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Reference rate refresher lives exactly as long as the app
        services.start()
        logging.getLogger("tokenfees").info("service started")
        try:
            yield
        finally:
            services.stop()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.services = services

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.ServiceError, errors.service_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.not_found_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(prices.router)
    app.include_router(fees.router)
    app.include_router(volatility.router)
    app.include_router(catalogue.router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app


app = create_app()
