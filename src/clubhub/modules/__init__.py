"""Feature modules with auto-discovery."""

import logging
from importlib import import_module
from pathlib import Path

from fastapi import APIRouter


logger = logging.getLogger(__name__)


def discover_modules() -> list[APIRouter]:
    """Auto-discover and return routers from all modules.

    Each subdirectory that ships a ``routes`` module exposing a
    ``router`` attribute is mounted. Package ``__init__`` files stay
    empty so that models can be imported without pulling in routes.

    Returns:
        List of FastAPI routers from discovered modules.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if not path.is_dir() or path.name.startswith("_"):
            continue
        if not (path / "routes.py").exists():
            continue
        module = import_module(f"clubhub.modules.{path.name}.routes")
        router = getattr(module, "router", None)
        if isinstance(router, APIRouter):
            routers.append(router)
            logger.info("Loaded module: %s", path.name)
        else:
            logger.warning("Module %s has no router", path.name)

    return routers
