# src/services/autocomplete_service/app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from autocomplete_common.db import AsyncSessionLocal, async_engine
from autocomplete_common.db_base import Base
from autocomplete_common.exceptions import AutocompleteError
from autocomplete_common.health import create_health_router
from autocomplete_common.logging_utils import correlation_id_var, generate_correlation_id, setup_logging

from .bootstrap import build_context
from .routers import autocomplete

SERVICE_PREFIX = "ACP"
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Builds the provider registry, resolver and signer once per process and
    disposes of the database pool on shutdown.
    """
    logger.info("Autocomplete Service starting up...")
    app.state.autocomplete = build_context(AsyncSessionLocal, base=Base)
    yield
    logger.info("Autocomplete Service shutting down...")
    await async_engine.dispose()
    logger.info("Autocomplete Service has shut down gracefully.")


app = FastAPI(
    title="Autocomplete Service",
    description="Signed AJAX search and chip endpoints backing autocomplete form fields.",
    version="0.1.0",
    lifespan=lifespan,
)

# --- Prometheus Metrics ---
Instrumentator().instrument(app).expose(app)
logger.info("Prometheus metrics exposed at /metrics")


# Correlation ID Middleware
@app.middleware("http")
async def add_correlation_id_middleware(request: Request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id(SERVICE_PREFIX)
    token = correlation_id_var.set(correlation_id)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def _correlation_id(request: Request) -> str:
    correlation_id = request.headers.get("X-Correlation-ID") or correlation_id_var.get()
    if correlation_id == "<not-set>":
        correlation_id = generate_correlation_id(SERVICE_PREFIX)
    return correlation_id


@app.exception_handler(AutocompleteError)
async def autocomplete_exception_handler(request: Request, exc: AutocompleteError):
    """
    Answers every error of the autocomplete taxonomy with the status its class
    carries. Configuration errors are logged loudly: they are setup mistakes.
    """
    correlation_id = _correlation_id(request)
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"Autocomplete request failed: {exc}",
        extra={"correlation_id": correlation_id, "error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
            "correlation_id": correlation_id,
        },
    )


def _validation_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "ClientInputError",
            "message": "Invalid request parameters.",
            "details": _validation_errors(exc),
            "correlation_id": _correlation_id(request),
        },
    )


# Global Exception Handler
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catches any unhandled exceptions and returns a standardized 500 error response.
    """
    correlation_id = _correlation_id(request)
    logger.critical(
        f"Unhandled exception for request {request.method} {request.url}",
        exc_info=exc,
        extra={"correlation_id": correlation_id},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please contact support.",
            "correlation_id": correlation_id,
        },
    )


# Entity providers need the database; every request needs the provider registry.
health_router = create_health_router("db", "providers")
app.include_router(health_router)

app.include_router(autocomplete.router)
