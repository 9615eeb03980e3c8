# src/libs/autocomplete-common/autocomplete_common/health.py
import logging
import asyncio
from typing import Awaitable, Callable, Dict, Tuple

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import text

from .db import AsyncSessionLocal

logger = logging.getLogger(__name__)

DependencyCheck = Callable[[Request], Awaitable[bool]]


async def check_db_health(request: Request) -> bool:
    """Checks if a valid async connection can be established with the database."""
    try:
        async with AsyncSessionLocal() as session:
            async with session.begin():
                await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Health Check: Database connection failed: {e}", exc_info=False)
        return False


async def check_providers_health(request: Request) -> bool:
    """
    Ready once the startup hook has stored the autocomplete context and its
    registry holds at least one provider.
    """
    context = getattr(request.app.state, "autocomplete", None)
    if context is None:
        logger.warning("Health Check: autocomplete context is not initialised.")
        return False
    if not context.registry.names():
        logger.warning("Health Check: no autocomplete providers are registered.")
        return False
    return True


def create_health_router(*dependencies: str) -> APIRouter:
    """
    Creates the health check router of the autocomplete service.

    Args:
        *dependencies: Names of the readiness checks to run: 'db' for the
                       database behind entity providers, 'providers' for the
                       provider registry built on startup.

    Returns:
        A FastAPI APIRouter with /health/live and /health/ready endpoints.
    """
    router = APIRouter(tags=["Health"])

    dep_map: Dict[str, Tuple[str, DependencyCheck]] = {
        'db': ('database', check_db_health),
        'providers': ('providers', check_providers_health),
    }
    unknown = [dep for dep in dependencies if dep not in dep_map]
    if unknown:
        raise ValueError(f"Unknown health dependencies: {', '.join(unknown)}")

    @router.get("/health/live", status_code=status.HTTP_200_OK)
    async def liveness_probe():
        return {"status": "alive"}

    @router.get("/health/ready", status_code=status.HTTP_200_OK)
    async def readiness_probe(request: Request):
        results = await asyncio.gather(*[dep_map[dep][1](request) for dep in dependencies])

        dep_status = {
            dep_map[dep][0]: "ok" if ok else "unavailable"
            for dep, ok in zip(dependencies, results)
        }

        if all(results):
            return {"status": "ready", "dependencies": dep_status}

        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "not_ready", "dependencies": dep_status},
        )

    return router
