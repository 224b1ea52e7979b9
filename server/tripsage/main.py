"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.database import Database
from .core.errors import TransactionError
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    transaction_error_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import admin, booking, metrics, notifications

# Configure structured logging
setup_structured_logging()

# Configure traditional logging for compatibility
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Constructs the store client unless one was injected, prepares the
    schema, and disposes of the pool on shutdown.
    """
    logger.info("Starting FastAPI application")
    logger.info(f"Environment: {settings.environment}")

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database.from_settings(settings)
    database: Database = app.state.database

    try:
        setup_tracing()
        setup_metrics()
        instrument_sqlalchemy(database.engine)
        logger.info("Observability setup completed")

        await database.create_all()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down FastAPI application")
    if owns_database:
        await database.dispose()
        app.state.database = None
        logger.info("Database connections closed")
    logger.info("Application shutdown complete")


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Store client to use; when omitted the lifespan builds one
            from settings and disposes of it at shutdown

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="TripSage Booking API",
        description="Booking approvals, cascading user deletion and trip removal for the TripSage platform",
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.database = database

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    setup_middleware(app, enable_logging=True)

    instrument_fastapi(app)

    # Register exception handlers
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(TransactionError, transaction_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        description="Check if the service is healthy and responsive",
        response_model=dict,
    )
    async def health_check():
        return {
            "status": "healthy",
            "service": "tripsage-booking-api",
            "version": SERVICE_VERSION,
            "environment": settings.environment,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        description="Check that the store answers queries",
        response_model=dict,
    )
    async def readiness_check(request: Request):
        """
        Readiness check endpoint that pings the store.

        Returns:
            dict: Readiness status; 503 when the store is unreachable
        """
        database_ok = await request.app.state.database.ping()
        body = {
            "status": "ready" if database_ok else "not_ready",
            "service": "tripsage-booking-api",
            "checks": {"database": "ok" if database_ok else "unavailable"},
        }
        if not database_ok:
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
        return body

    # Register API routers
    app.include_router(admin.router)
    app.include_router(notifications.router)
    app.include_router(booking.router)
    app.include_router(metrics.router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tripsage.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
