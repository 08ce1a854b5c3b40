"""
Advisor Commission Engine

Main FastAPI application with:
- Commission simulation and sale recording
- Commission reporting per organization
- Admin management of commission records
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from commission_engine.api import api_router
from commission_engine.config import settings
from commission_engine.db import build_engine, build_sessionmaker
from commission_engine.errors import EngineError
from commission_engine.services.rates import RateCache

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the database engine and session factory
    - Creates the rate configuration cache

    Shutdown:
    - Disposes of the engine's connections
    """
    logger.info("Starting commission engine...")

    engine = build_engine(settings)
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.rate_cache = RateCache(ttl_seconds=settings.rate_cache_ttl_seconds)

    logger.info("Commission engine started successfully!")

    yield

    logger.info("Shutting down commission engine...")
    await engine.dispose()


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Expected failures: stable code and message."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are validation errors (400)."""
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "validation_error",
                "message": "Invalid request",
                "details": jsonable_encoder(exc.errors()),
            }
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a 500; details only outside production."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": message}},
    )


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    application = FastAPI(
        title="Advisor Commission Engine",
        description="Sales recording and commission calculation",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    application.add_exception_handler(EngineError, engine_error_handler)
    application.add_exception_handler(RequestValidationError, request_validation_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)

    application.include_router(api_router)  # /api/* endpoints
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "commission_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
