from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enjoyrecord.models.record import Record
from enjoyrecord.schemas.records import (
    NOTES_MAX_LENGTH,
    STATUS_OPTIONS,
    Cover,
    HistoryEntry,
    MonthlyCount,
    Progress,
    RatingBucket,
    RecordOut,
    RecordStats,
)
from enjoyrecord.schemas.search import MEDIA_TYPES

logger = logging.getLogger(__name__)

UNSET = object()

_DEFAULT_COVERS: dict[str, tuple[str, str]] = {
    "book": ("#f5efe8", "#b48a63"),
    "film": ("#f3ece6", "#b36b54"),
    "series": ("#eef0f2", "#6b7a86"),
    "game": ("#f0ede7", "#7f6d56"),
}
_FALLBACK_COVER = ("#f2eee8", "#9b8f82")


class RecordNotFound(LookupError):
    pass


@dataclass
class RecordPatch:
    status: str | None = None
    progress: Progress | None = None
    history_note: str | None = None
    rating: Any = UNSET
    notes: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def default_cover(media_type: str) -> tuple[str, str]:
    return _DEFAULT_COVERS.get(media_type, _FALLBACK_COVER)


def _progress_dict(progress: Progress | None) -> dict[str, Any] | None:
    if progress is None:
        return None
    return progress.model_dump(exclude_none=True)


def _record_progress(record: Record) -> Progress | None:
    if record.progress_current is None or record.progress_unit is None:
        return None
    return Progress(
        current=record.progress_current,
        total=record.progress_total,
        unit=record.progress_unit,
    )


def _history_entry(
    *,
    date: datetime,
    status: str,
    progress: Progress | None,
    note: str | None,
) -> dict[str, Any]:
    entry: dict[str, Any] = {"date": date.isoformat(), "status": status}
    if progress is not None:
        entry["progress"] = _progress_dict(progress)
    if note:
        entry["note"] = note
    return entry


def to_out(record: Record) -> RecordOut:
    tone, accent = record.cover_tone, record.cover_accent
    return RecordOut(
        id=record.id,
        type=record.type,
        title=record.title,
        original_title=record.original_title,
        year=record.year,
        summary=record.summary or "",
        cover_url=record.cover_url,
        cover=Cover(tone=tone, accent=accent),
        status=record.status,
        rating=record.rating,
        tags=list(record.tags or []),
        notes=record.notes,
        progress=_record_progress(record),
        started_at=_as_utc(record.started_at),
        completed_at=_as_utc(record.completed_at),
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        history=[HistoryEntry.model_validate(h) for h in (record.history or [])],
    )


def normalize_rating(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("Invalid rating value.")
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        raise ValueError("Invalid rating value.")
    if numeric != numeric:
        raise ValueError("Invalid rating value.")
    if numeric < 0 or numeric > 10:
        raise ValueError("Rating must be between 0 and 10.")
    return round(numeric, 1)


def validate_patch(patch: RecordPatch) -> RecordPatch:
    if patch.status is not None and patch.status not in STATUS_OPTIONS:
        raise ValueError("Invalid status.")

    if patch.rating is not UNSET:
        patch.rating = normalize_rating(patch.rating)

    if patch.notes is not None:
        trimmed = patch.notes.strip()
        if len(trimmed) > NOTES_MAX_LENGTH:
            raise ValueError(f"评价不能超过 {NOTES_MAX_LENGTH} 字")
        patch.notes = trimmed or None

    if (
        patch.status is None
        and patch.progress is None
        and not patch.history_note
        and patch.rating is UNSET
        and not patch.notes
    ):
        raise ValueError("No updates provided.")
    return patch


async def list_records(db: AsyncSession) -> list[Record]:
    q = select(Record).order_by(Record.updated_at.desc())
    return list((await db.execute(q)).scalars().all())


async def get_record(db: AsyncSession, record_id: str) -> Record:
    record = await db.get(Record, record_id)
    if record is None:
        raise RecordNotFound("Record not found.")
    return record


async def create_record(
    db: AsyncSession,
    *,
    type: str,
    title: str,
    original_title: str | None = None,
    year: int | None = None,
    summary: str | None = None,
    cover_url: str | None = None,
    status: str = "planned",
    rating: float | None = None,
    tags: list[str] | None = None,
    notes: str | None = None,
    progress: Progress | None = None,
) -> Record:
    title = (title or "").strip()
    if not title:
        raise ValueError("标题不能为空")
    if type not in MEDIA_TYPES:
        raise ValueError("Invalid type.")
    if status not in STATUS_OPTIONS:
        raise ValueError("Invalid status.")

    now = _utcnow()
    tone, accent = default_cover(type)
    record = Record(
        type=type,
        title=title,
        original_title=original_title or None,
        year=year if year is not None else now.year,
        summary=summary or "",
        cover_url=cover_url or None,
        cover_tone=tone,
        cover_accent=accent,
        status=status,
        rating=normalize_rating(rating),
        tags=list(tags or []),
        notes=notes or None,
        progress_current=progress.current if progress else None,
        progress_total=progress.total if progress else None,
        progress_unit=progress.unit if progress else None,
        started_at=now if status == "in_progress" else None,
        completed_at=now if status == "completed" else None,
        created_at=now,
        updated_at=now,
        history=[_history_entry(date=now, status=status, progress=progress, note=notes)],
    )
    db.add(record)
    await db.flush()
    logger.info("record created", extra={"record_id": record.id, "type": type})
    return record


async def update_record(db: AsyncSession, record_id: str, patch: RecordPatch) -> Record:
    record = await get_record(db, record_id)
    now = _utcnow()

    next_status = patch.status or record.status
    if patch.progress is not None:
        record.progress_current = patch.progress.current
        record.progress_total = patch.progress.total
        record.progress_unit = patch.progress.unit

    if patch.rating is not UNSET:
        # None clears the rating.
        record.rating = patch.rating
    if patch.notes is not None:
        record.notes = patch.notes

    if next_status == "in_progress" and record.started_at is None:
        record.started_at = now
    if next_status == "completed" and record.completed_at is None:
        record.completed_at = now
    record.status = next_status

    if patch.status is not None or patch.progress is not None or patch.history_note is not None:
        entry = _history_entry(
            date=now,
            status=next_status,
            progress=patch.progress or _record_progress(record),
            note=patch.history_note,
        )
        # Reassign so the JSON column registers the change.
        record.history = [*(record.history or []), entry]

    record.updated_at = now
    await db.flush()
    logger.info("record updated", extra={"record_id": record.id, "status": record.status})
    return record


async def delete_record(db: AsyncSession, record_id: str) -> bool:
    record = await db.get(Record, record_id)
    if record is None:
        return False
    await db.delete(record)
    await db.flush()
    logger.info("record deleted", extra={"record_id": record_id})
    return True


async def existing_record_keys(db: AsyncSession) -> set[str]:
    rows = (await db.execute(select(Record.type, Record.title))).all()
    return {record_key(media_type, title) for media_type, title in rows}


def record_key(media_type: str, title: str) -> str:
    return f"{media_type}:{title.strip().lower()}"


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def compute_stats(records: list[Record], *, now: datetime | None = None) -> RecordStats:
    now = _as_utc(now) or _utcnow()
    by_type = {t: 0 for t in MEDIA_TYPES}
    completed_by_type = {t: 0 for t in MEDIA_TYPES}
    buckets = [RatingBucket(label=label, count=0) for label in ("9+", "7.5-8.9", "6-7.4", "<6")]

    completed = [r for r in records if r.status == "completed"]
    in_progress = sum(1 for r in records if r.status == "in_progress")

    for r in records:
        if r.type in by_type:
            by_type[r.type] += 1

    rating_sum = 0.0
    for r in completed:
        if r.type in completed_by_type:
            completed_by_type[r.type] += 1
        rating = r.rating or 0
        rating_sum += rating
        if rating >= 9:
            buckets[0].count += 1
        elif rating >= 7.5:
            buckets[1].count += 1
        elif rating >= 6:
            buckets[2].count += 1
        else:
            buckets[3].count += 1

    monthly: list[MonthlyCount] = []
    for delta in range(-5, 1):
        year, month = _shift_month(now.year, now.month, delta)
        count = 0
        for r in completed:
            done = _as_utc(r.completed_at)
            if done is not None and done.year == year and done.month == month:
                count += 1
        monthly.append(MonthlyCount(month=f"{year:04d}-{month:02d}", count=count))

    return RecordStats(
        total=len(records),
        by_type=by_type,
        completed_by_type=completed_by_type,
        in_progress=in_progress,
        average_rating=round(rating_sum / (len(completed) or 1), 1),
        rating_buckets=buckets,
        monthly_completed=monthly,
    )
