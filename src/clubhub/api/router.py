"""Route table.

Probes live at the root; everything else is versioned under ``/api/v1``:
auth from core, then one router per feature module found by
``discover_modules`` (billing webhooks, signup, tenants, users).
"""

from fastapi import APIRouter

from clubhub.api.health import router as health_router
from clubhub.core.auth.routes import router as auth_router
from clubhub.modules import discover_modules


API_PREFIX = "/api/v1"


def build_api_router() -> APIRouter:
    v1 = APIRouter(prefix=API_PREFIX)
    for router in (auth_router, *discover_modules()):
        v1.include_router(router)

    root = APIRouter()
    root.include_router(health_router)
    root.include_router(v1)
    return root


api_router = build_api_router()
