from __future__ import annotations

from fastapi import APIRouter, Depends

from enjoyrecord.api.deps import require_admin
from enjoyrecord.core.config import settings

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/check")
async def admin_check():
    return {"configured": settings.admin_configured()}


@router.post("/verify", dependencies=[Depends(require_admin)])
async def admin_verify():
    return {"ok": True}
