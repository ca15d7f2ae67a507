from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from enjoyrecord.core.config import settings
from enjoyrecord.core.security import ADMIN_PASSWORD_HEADER, require_admin_password
from enjoyrecord.db.session import get_db_session

NEODB_TOKEN_HEADER = "x-neodb-token"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


async def require_admin(
    x_admin_password: str | None = Header(default=None, alias=ADMIN_PASSWORD_HEADER),
) -> None:
    check = require_admin_password(x_admin_password, settings.admin_password)
    if not check.ok:
        raise HTTPException(status_code=check.status, detail=check.error)


async def get_neodb_token(
    x_neodb_token: str | None = Header(default=None, alias=NEODB_TOKEN_HEADER),
) -> str | None:
    token = (x_neodb_token or "").strip()
    return token or None

