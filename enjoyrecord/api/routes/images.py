from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from enjoyrecord.services.images import ImageFetchError, fetch_image_data_url

router = APIRouter(prefix="/api", tags=["images"])


@router.get("/image-base64")
async def image_base64_route(url: str | None = Query(default=None)):
    if not url or not url.strip():
        raise HTTPException(status_code=400, detail="Missing url parameter")

    try:
        data_url = await fetch_image_data_url(url.strip())
    except ImageFetchError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return JSONResponse(
        {"dataUrl": data_url},
        headers={"Cache-Control": "public, max-age=86400"},
    )
