from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import httpx

from enjoyrecord.core.config import settings
from enjoyrecord.schemas.search import MediaType, SearchItem
from enjoyrecord.services.providers.errors import ProviderError
from enjoyrecord.services.providers.neodb import NeoDBProvider, auth_headers, normalize_neodb_uuid

logger = logging.getLogger(__name__)

# Local status -> NeoDB shelf. NeoDB has no "paused" shelf.
SHELF_MAP: dict[str, str] = {
    "planned": "wishlist",
    "in_progress": "progress",
    "completed": "complete",
    "paused": "progress",
}


@dataclass
class SyncItem:
    type: MediaType
    title: str
    status: str
    original_title: str | None = None
    year: int | None = None
    summary: str | None = None
    cover_url: str | None = None
    rating: float | None = None


@dataclass
class SyncResult:
    success: bool
    error: str | None = None


def normalize_rating_grade(rating: float) -> int:
    # Half-up, not banker's rounding: 8.5 -> 9.
    return min(10, max(0, math.floor(rating + 0.5)))


def build_shelf_payload(item: SyncItem, neodb_id: str) -> dict[str, Any]:
    body: dict[str, Any] = {
        "item_uuid": normalize_neodb_uuid(neodb_id),
        "shelf_type": SHELF_MAP.get(item.status, "wishlist"),
        "visibility": 0,
    }
    if item.summary:
        body["comment_text"] = item.summary
    if item.rating is not None:
        body["rating_grade"] = normalize_rating_grade(item.rating)
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for field in ("message", "detail", "error"):
            value = payload.get(field)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return f"NeoDB API error: {response.status_code}"


async def search_neodb(
    media_type: MediaType | None,
    query: str,
    token: str | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> list[SearchItem]:
    logger.info(
        "neodb search",
        extra={"query": query, "type": media_type, "has_token": bool(token)},
    )

    async def _run(c: httpx.AsyncClient) -> list[SearchItem]:
        provider = NeoDBProvider(
            c,
            media_type=media_type,
            token=token,
            api_base=settings.neodb_api_base,
            timeout=settings.search_timeout_seconds,
        )
        return await provider.search(query)

    try:
        if client is not None:
            items = await _run(client)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as owned:
                items = await _run(owned)
    except ProviderError as exc:
        logger.error("neodb search failed", extra={"query": query, "type": media_type, "error": exc.message})
        raise

    logger.info("neodb search results", extra={"query": query, "type": media_type, "result_count": len(items)})
    return items


async def get_neodb_item(
    item_id: str,
    media_type: MediaType,
    token: str | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> SearchItem | None:
    async def _run(c: httpx.AsyncClient) -> SearchItem | None:
        provider = NeoDBProvider(
            c,
            media_type=media_type,
            token=token,
            api_base=settings.neodb_api_base,
            timeout=settings.search_timeout_seconds,
        )
        return await provider.get_item(item_id)

    try:
        if client is not None:
            return await _run(client)
        async with httpx.AsyncClient(follow_redirects=True) as owned:
            return await _run(owned)
    except ProviderError as exc:
        logger.error("neodb get item failed", extra={"id": item_id, "type": media_type, "error": exc.message})
        return None


async def sync_to_neodb(
    item: SyncItem,
    neodb_id: str,
    token: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> SyncResult:
    body = build_shelf_payload(item, neodb_id)
    logger.info(
        "neodb sync",
        extra={
            "neodb_id": neodb_id,
            "item_uuid": body["item_uuid"],
            "shelf_type": body["shelf_type"],
            "rating": item.rating,
        },
    )

    headers = {**auth_headers(token), "Content-Type": "application/json"}
    url = f"{settings.neodb_api_base.rstrip('/')}/me/shelf"

    try:
        if client is not None:
            response = await client.post(url, json=body, headers=headers, timeout=settings.neodb_timeout_seconds)
        else:
            async with httpx.AsyncClient(timeout=settings.neodb_timeout_seconds) as owned:
                response = await owned.post(url, json=body, headers=headers)
    except httpx.TimeoutException:
        logger.error("neodb sync failed", extra={"neodb_id": neodb_id, "error": "timeout"})
        return SyncResult(success=False, error="NeoDB API 请求超时，请稍后重试")
    except httpx.HTTPError as exc:
        logger.error("neodb sync failed", extra={"neodb_id": neodb_id, "error": str(exc)})
        return SyncResult(success=False, error=str(exc) or "同步失败")

    if not response.is_success:
        message = _error_message(response)
        logger.error(
            "neodb sync failed",
            extra={"neodb_id": neodb_id, "status": response.status_code, "error": message},
        )
        return SyncResult(success=False, error=message)

    logger.info("neodb sync success", extra={"neodb_id": neodb_id, "item_uuid": body["item_uuid"]})
    return SyncResult(success=True)
