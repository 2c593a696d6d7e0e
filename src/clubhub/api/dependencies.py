"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.core.database import get_db


# Type alias for the membership registry session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]
