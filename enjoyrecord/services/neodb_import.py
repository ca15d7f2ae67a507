from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from enjoyrecord.core.config import settings
from enjoyrecord.services.providers.errors import (
    InvalidToken,
    ParseError,
    ProviderError,
    UpstreamHTTPError,
    UpstreamTimeout,
)
from enjoyrecord.services.providers.fields import as_mapping, first_of, keys, pick_number, pick_str, to_year
from enjoyrecord.services.providers.neodb import (
    CATEGORY_TO_TYPE,
    INVALID_TOKEN_MESSAGE,
    auth_headers,
)
from enjoyrecord.services.records import create_record, existing_record_keys, normalize_rating, record_key

logger = logging.getLogger(__name__)

PAGE_SIZE = 50
TIMEOUT_MESSAGE = "NeoDB API 请求超时，请稍后重试"
NOTES_LIMIT = 200

# NeoDB shelf -> local status, in import order.
SHELF_STATUS: tuple[tuple[str, str], ...] = (
    ("wishlist", "planned"),
    ("progress", "in_progress"),
    ("complete", "completed"),
    ("dropped", "paused"),
)

_ITEM_CONTAINERS = ("item", "subject", "catalog_item", "target")


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    total: int = 0


@dataclass
class ShelfPage:
    entries: list[dict[str, Any]]
    has_next: bool


@dataclass
class MappedEntry:
    type: str
    title: str
    status: str
    original_title: str | None = None
    year: int | None = None
    summary: str = ""
    cover_url: str | None = None
    rating: float | None = None
    notes: str | None = None


def clamp_text(value: str | None, limit: int) -> str | None:
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    return trimmed[:limit]


def resolve_catalog_item(entry: Any) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    record = as_mapping(entry)
    if record is None:
        return None, None
    for container in _ITEM_CONTAINERS:
        item = as_mapping(record.get(container))
        if item is not None:
            return record, item
    return record, record


def _safe_rating(value: Any) -> float | None:
    try:
        return normalize_rating(value)
    except ValueError:
        return None


def map_shelf_entry(entry: Any, fallback_type: str, status: str) -> MappedEntry | None:
    record, item = resolve_catalog_item(entry)
    if record is None or item is None:
        return None

    category = pick_str(item, ("category", "type"))
    media_type = CATEGORY_TO_TYPE.get(category or "", fallback_type) if category else fallback_type
    title = pick_str(item, ("title", "display_title", "name")) or pick_str(record, ("title", "name"))
    if not media_type or not title:
        return None

    rating = pick_number(record, ("rating_grade", "rating", "rating_grade_display"))
    if rating is None:
        rating = pick_number(item, ("rating",))

    return MappedEntry(
        type=media_type,
        title=title,
        status=status,
        original_title=pick_str(item, ("original_title", "orig_title", "originalTitle")),
        year=first_of(item, keys("year", "pub_year", "published_year"), to_year),
        summary=pick_str(item, ("brief", "description", "summary")) or "",
        cover_url=pick_str(item, ("cover_image_url", "cover_url", "cover", "coverUrl")),
        rating=_safe_rating(rating),
        notes=clamp_text(pick_str(record, ("comment_text", "comment", "note")), NOTES_LIMIT),
    )


def _page_entries(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    for field in ("data", "results", "items"):
        value = payload.get(field)
        if isinstance(value, list):
            return value
    return []


async def fetch_shelf_page(
    client: httpx.AsyncClient,
    *,
    token: str,
    category: str,
    shelf_type: str,
    page: int,
) -> ShelfPage:
    url = f"{settings.neodb_api_base.rstrip('/')}/me/shelf"
    params = {
        "category": category,
        "shelf_type": shelf_type,
        "page": page,
        "page_size": PAGE_SIZE,
    }

    try:
        response = await client.get(
            url,
            params=params,
            headers=auth_headers(token),
            timeout=settings.neodb_timeout_seconds,
        )
    except httpx.TimeoutException as exc:
        raise UpstreamTimeout("neodb", TIMEOUT_MESSAGE) from exc
    except httpx.HTTPError as exc:
        raise ProviderError("neodb", f"NeoDB 请求失败: {exc}") from exc

    if response.status_code == 401:
        raise InvalidToken("neodb", INVALID_TOKEN_MESSAGE)
    if not response.is_success:
        raise UpstreamHTTPError("neodb", response.status_code, f"NeoDB API error: {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise ParseError("neodb", "NeoDB 返回数据无法解析") from exc

    entries = _page_entries(payload)
    total_pages = pick_number(payload, ("pages", "total_pages", "page_count")) if isinstance(payload, dict) else None
    has_next = page < total_pages if total_pages else len(entries) == PAGE_SIZE
    return ShelfPage(entries=entries, has_next=has_next)


async def _import_all(db: AsyncSession, client: httpx.AsyncClient, token: str) -> ImportResult:
    existing = await existing_record_keys(db)
    result = ImportResult()

    for category, fallback_type in CATEGORY_TO_TYPE.items():
        for shelf_type, status in SHELF_STATUS:
            page = 1
            has_next = True
            while has_next:
                shelf_page = await fetch_shelf_page(
                    client,
                    token=token,
                    category=category,
                    shelf_type=shelf_type,
                    page=page,
                )
                result.total += len(shelf_page.entries)
                for entry in shelf_page.entries:
                    mapped = map_shelf_entry(entry, fallback_type, status)
                    if mapped is None:
                        result.skipped += 1
                        continue
                    key = record_key(mapped.type, mapped.title)
                    if key in existing:
                        result.skipped += 1
                        continue
                    await create_record(
                        db,
                        type=mapped.type,
                        title=mapped.title,
                        original_title=mapped.original_title,
                        year=mapped.year,
                        summary=mapped.summary,
                        cover_url=mapped.cover_url,
                        status=mapped.status,
                        rating=mapped.rating,
                        notes=mapped.notes,
                    )
                    existing.add(key)
                    result.imported += 1
                page += 1
                has_next = shelf_page.has_next

    return result


async def import_from_neodb(
    db: AsyncSession,
    token: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> ImportResult:
    try:
        if client is not None:
            result = await _import_all(db, client, token)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as owned:
                result = await _import_all(db, owned, token)
    except ProviderError as exc:
        logger.error("neodb import failed", extra={"error": exc.message})
        raise

    logger.info(
        "neodb import completed",
        extra={"imported": result.imported, "skipped": result.skipped, "total": result.total},
    )
    return result
