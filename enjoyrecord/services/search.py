from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

import httpx

from enjoyrecord.core.config import settings
from enjoyrecord.schemas.search import MediaType, SearchItem
from enjoyrecord.services.providers import (
    OMDbProvider,
    OpenLibraryProvider,
    ProviderConfig,
    RawgProvider,
    SteamProvider,
    TMDBProvider,
)
from enjoyrecord.services.providers.errors import NoProvidersSucceeded, ProviderError

logger = logging.getLogger(__name__)

MANUAL_SOURCE = "manual"

_TYPE_LABELS: dict[str, str] = {
    "book": "书籍",
    "film": "电影",
    "series": "剧集",
    "game": "游戏",
}

_UNAVAILABLE_MESSAGES: dict[str, str] = {
    "film": "Movie providers are unavailable",
    "series": "Series providers are unavailable",
    "game": "Game providers are unavailable",
}

ProviderCall = tuple[str, Callable[[], Awaitable[list[SearchItem]]]]


@dataclass
class ProviderOutcome:
    provider: str
    items: list[SearchItem]
    error: ProviderError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_title(value: str) -> str:
    # Lowercase and keep only letters/digits; whitespace and punctuation drop out.
    return "".join(ch for ch in (value or "").lower() if ch.isalnum())


def merge_key(item: SearchItem) -> str:
    year = item.year if item.year is not None else ""
    return f"{item.type}-{normalize_title(item.title)}-{year}"


def merge_results(items: Iterable[SearchItem]) -> list[SearchItem]:
    merged: dict[str, SearchItem] = {}

    for item in items:
        key = merge_key(item)
        existing = merged.get(key)
        if existing is None:
            merged[key] = item.model_copy(
                update={"sources": list(item.sources), "source_ids": dict(item.source_ids)}
            )
            continue

        for source in item.sources:
            if source not in existing.sources:
                existing.sources.append(source)
        for provider, native_id in item.source_ids.items():
            # First-seen id per provider wins.
            existing.source_ids.setdefault(provider, native_id)

        if not existing.cover_url and item.cover_url:
            existing.cover_url = item.cover_url
        if not existing.summary and item.summary:
            existing.summary = item.summary
        if not existing.original_title and item.original_title:
            existing.original_title = item.original_title
        if not existing.year and item.year:
            existing.year = item.year

    return list(merged.values())


async def settle(calls: list[ProviderCall]) -> list[ProviderOutcome]:
    """Run every call concurrently; outcomes keep the order of ``calls``."""
    settled = await asyncio.gather(*(call() for _, call in calls), return_exceptions=True)

    outcomes: list[ProviderOutcome] = []
    for (provider, _), result in zip(calls, settled):
        if isinstance(result, ProviderError):
            logger.warning("provider failed", extra={"provider": provider, "error": result.message})
            outcomes.append(ProviderOutcome(provider=provider, items=[], error=result))
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.append(ProviderOutcome(provider=provider, items=result))
    return outcomes


def collect_results(outcomes: list[ProviderOutcome]) -> tuple[list[SearchItem], list[ProviderError]]:
    items = [item for outcome in outcomes for item in outcome.items]
    errors = [outcome.error for outcome in outcomes if outcome.error is not None]
    return items, errors


def _plan(
    media_type: MediaType,
    query: str,
    *,
    mode: str | None,
    client: httpx.AsyncClient,
    config: ProviderConfig,
) -> list[ProviderCall]:
    timeout = config.timeout_seconds

    if media_type == "book":
        books = OpenLibraryProvider(client, timeout=timeout)
        return [(books.name, lambda: books.search(query))]

    if media_type in ("film", "series"):
        tmdb = TMDBProvider(
            client,
            kind="movie" if media_type == "film" else "tv",
            api_key=config.tmdb_api_key,
            timeout=timeout,
        )
        omdb = OMDbProvider(
            client,
            kind="movie" if media_type == "film" else "series",
            api_key=config.omdb_api_key,
            timeout=timeout,
        )
        return [
            (tmdb.name, lambda: tmdb.search(query)),
            (omdb.name, lambda: omdb.search(query)),
        ]

    if media_type == "game":
        rawg = RawgProvider(client, api_key=config.rawg_api_key, timeout=timeout)
        if mode == "popular":
            return [(rawg.name, rawg.popular)]
        steam = SteamProvider(client, timeout=timeout)
        return [
            (rawg.name, lambda: rawg.search(query)),
            (steam.name, lambda: steam.search(query)),
        ]

    return []


async def _search_with_client(
    media_type: MediaType,
    query: str,
    *,
    mode: str | None,
    client: httpx.AsyncClient,
    config: ProviderConfig,
) -> list[SearchItem]:
    calls = _plan(media_type, query, mode=mode, client=client, config=config)
    if not calls:
        return []

    if len(calls) == 1:
        # A lone provider's error is the answer; nothing to fall back on.
        _, call = calls[0]
        return merge_results(await call())

    outcomes = await settle(calls)
    items, errors = collect_results(outcomes)
    if not items and len(errors) == len(outcomes):
        raise NoProvidersSucceeded(errors, _UNAVAILABLE_MESSAGES[media_type])
    return merge_results(items)


async def search_by_type(
    media_type: MediaType,
    query: str,
    *,
    mode: str | None = None,
    config: ProviderConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[SearchItem]:
    config = config or ProviderConfig.from_settings(settings)
    logger.info("search by type", extra={"type": media_type, "query": query, "mode": mode})

    if client is not None:
        return await _search_with_client(media_type, query, mode=mode, client=client, config=config)

    async with httpx.AsyncClient(timeout=config.timeout_seconds, follow_redirects=True) as owned:
        return await _search_with_client(media_type, query, mode=mode, client=owned, config=config)


def basic_search(media_type: MediaType, query: str) -> list[SearchItem]:
    label = _TYPE_LABELS.get(media_type, "条目")
    return [
        SearchItem(
            sources=[MANUAL_SOURCE],
            source_ids={MANUAL_SOURCE: str(int(time.time() * 1000))},
            type=media_type,
            title=query,
            summary=f"请手动编辑{label}信息",
        )
    ]
