from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from enjoyrecord.api.deps import get_db, get_neodb_token, require_admin
from enjoyrecord.api.http_errors import not_found, value_error
from enjoyrecord.schemas.records import (
    RecordCreateRequest,
    RecordEnvelope,
    RecordListOut,
    RecordPatchRequest,
    RecordStats,
)
from enjoyrecord.services.neodb import SyncItem, sync_to_neodb
from enjoyrecord.services.records import (
    UNSET,
    RecordNotFound,
    RecordPatch,
    compute_stats,
    create_record,
    delete_record,
    get_record,
    list_records,
    to_out,
    update_record,
    validate_patch,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/records", tags=["records"])


@router.get("", response_model=RecordListOut)
async def list_records_route(db: AsyncSession = Depends(get_db)):
    records = await list_records(db)
    return RecordListOut(records=[to_out(r) for r in records])


@router.get("/stats", response_model=RecordStats)
async def record_stats_route(db: AsyncSession = Depends(get_db)):
    return compute_stats(await list_records(db))


@router.get("/{record_id}", response_model=RecordEnvelope)
async def get_record_route(record_id: str, db: AsyncSession = Depends(get_db)):
    try:
        record = await get_record(db, record_id)
    except RecordNotFound as e:
        raise not_found(e)
    return RecordEnvelope(record=to_out(record))


@router.post(
    "",
    response_model=RecordEnvelope,
    dependencies=[Depends(require_admin)],
)
async def create_record_route(
    payload: RecordCreateRequest,
    db: AsyncSession = Depends(get_db),
    neodb_token: str | None = Depends(get_neodb_token),
):
    if not payload.title:
        raise HTTPException(status_code=400, detail="标题不能为空")

    try:
        record = await create_record(
            db,
            type=payload.type,
            title=payload.title,
            original_title=payload.original_title,
            year=payload.year,
            summary=payload.summary,
            cover_url=payload.cover_url,
            status=payload.status,
            rating=payload.rating,
            tags=payload.tags,
            notes=payload.notes,
            progress=payload.progress,
        )
    except ValueError as e:
        raise value_error(e)
    await db.commit()

    neodb_id = payload.source_ids.get("neodb")
    if neodb_id and neodb_token:
        result = await sync_to_neodb(
            SyncItem(
                type=payload.type,
                title=payload.title,
                status=payload.status,
                original_title=payload.original_title,
                year=payload.year,
                summary=payload.summary,
                cover_url=payload.cover_url,
                rating=payload.rating,
            ),
            neodb_id,
            neodb_token,
        )
        if not result.success:
            # The local record stays saved.
            logger.warning(
                "neodb sync failed (non-critical)",
                extra={"record_id": record.id, "neodb_id": neodb_id, "error": result.error},
            )

    return RecordEnvelope(record=to_out(record))


@router.patch(
    "/{record_id}",
    response_model=RecordEnvelope,
    dependencies=[Depends(require_admin)],
)
async def patch_record_route(
    record_id: str,
    payload: RecordPatchRequest,
    db: AsyncSession = Depends(get_db),
):
    # Only fields the client actually sent; an explicit null rating clears it.
    data = payload.model_dump(exclude_unset=True)
    patch = RecordPatch(
        status=data.get("status"),
        progress=payload.progress if "progress" in data else None,
        history_note=data.get("note"),
        rating=data["rating"] if "rating" in data else UNSET,
        notes=data.get("notes"),
    )

    try:
        validate_patch(patch)
        record = await update_record(db, record_id, patch)
    except RecordNotFound as e:
        raise not_found(e)
    except ValueError as e:
        raise value_error(e)
    await db.commit()
    return RecordEnvelope(record=to_out(record))


@router.delete("/{record_id}", dependencies=[Depends(require_admin)])
async def delete_record_route(record_id: str, db: AsyncSession = Depends(get_db)):
    deleted = await delete_record(db, record_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Record not found.")
    await db.commit()
    return {"ok": True}
