from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from enjoyrecord.api.deps import get_db, get_neodb_token, require_admin
from enjoyrecord.api.http_errors import NEODB_TIMEOUT_DETAIL, is_timeout
from enjoyrecord.services.neodb_import import import_from_neodb
from enjoyrecord.services.providers.errors import ProviderError

router = APIRouter(prefix="/api/neodb", tags=["neodb"])


@router.post("/import", dependencies=[Depends(require_admin)])
async def neodb_import_route(
    db: AsyncSession = Depends(get_db),
    token: str | None = Depends(get_neodb_token),
):
    if not token:
        raise HTTPException(status_code=400, detail="Missing NeoDB token.")

    try:
        result = await import_from_neodb(db, token)
    except ProviderError as e:
        await db.rollback()
        if is_timeout(e):
            raise HTTPException(status_code=504, detail=NEODB_TIMEOUT_DETAIL)
        raise HTTPException(status_code=500, detail=e.message or "NeoDB 同步失败")
    await db.commit()
    return asdict(result)
