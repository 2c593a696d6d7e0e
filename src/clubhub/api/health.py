"""Probes for the orchestrator, mounted at the root without the API prefix."""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub import __version__
from clubhub.api.dependencies import DBSession
from clubhub.config import settings
from clubhub.modules.tenants.directory import DirectorySession


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, str]


async def ping(session: AsyncSession) -> str:
    """``"ok"``, or the driver's error text."""
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        return str(e)
    return "ok"


@router.get("/health/live", response_model=HealthResponse, summary="Liveness probe")
async def liveness() -> HealthResponse:
    return HealthResponse(status="alive")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks the membership registry and the tenant directory; 503 if either fails.",
)
async def readiness(db: DBSession, directory_db: DirectorySession) -> JSONResponse:
    checks = {"database": await ping(db), "tenant_directory": await ping(directory_db)}
    ready = all(result == "ok" for result in checks.values())
    body = ReadinessResponse(status="ready" if ready else "degraded", checks=checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )


@router.get("/info", summary="Application info")
async def info() -> dict[str, Any]:
    return {
        "app": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "debug": settings.debug,
    }
