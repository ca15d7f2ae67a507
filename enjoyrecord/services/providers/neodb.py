from __future__ import annotations

from typing import Any

from enjoyrecord.schemas.search import MediaType, SearchItem
from enjoyrecord.services.providers.base import SearchProvider
from enjoyrecord.services.providers.errors import InvalidToken, UpstreamHTTPError
from enjoyrecord.services.providers.fields import (
    as_text,
    first_of,
    keys,
    to_https,
    to_year,
)

DEFAULT_API_BASE = "https://neodb.social/api"
INVALID_TOKEN_MESSAGE = "NeoDB API Token 无效，请检查设置"

CATEGORY_MAP: dict[str, str] = {
    "book": "book",
    "film": "movie",
    "series": "tv",
    "game": "game",
}
CATEGORY_TO_TYPE: dict[str, str] = {category: media for media, category in CATEGORY_MAP.items()}

TITLE_FIELDS = keys("title", "display_title", "name")
ORIGINAL_TITLE_FIELDS = keys("original_title", "orig_title")
YEAR_FIELDS = keys("year", "pub_year")
SUMMARY_FIELDS = keys("brief", "description")
COVER_FIELDS = keys("cover_image_url")


def normalize_neodb_uuid(neodb_id: str | None) -> str:
    """Reduce an id, item URL or API path to its trailing uuid segment."""
    trimmed = (neodb_id or "").strip()
    if not trimmed:
        return trimmed
    without_query = trimmed.split("?", 1)[0]
    parts = [part for part in without_query.split("/") if part]
    return parts[-1] if parts else trimmed


def auth_headers(token: str | None) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if token and token.strip():
        headers["Authorization"] = f"Bearer {token.strip()}"
    return headers


class NeoDBProvider(SearchProvider):
    """NeoDB catalog search. A token is optional for search, required for shelves."""

    name = "neodb"
    label = "NeoDB"

    def __init__(
        self,
        client,
        *,
        media_type: MediaType | None = None,
        token: str | None = None,
        api_base: str = DEFAULT_API_BASE,
        **kwargs,
    ):
        super().__init__(client, **kwargs)
        self.media_type = media_type
        self._token = token
        self._api_base = api_base.rstrip("/")

    async def _fetch(self, url: str, params: dict[str, Any]) -> Any:
        try:
            return await self._get_json(url, params, headers=auth_headers(self._token))
        except UpstreamHTTPError as exc:
            if exc.status_code == 401:
                raise InvalidToken(self.name, INVALID_TOKEN_MESSAGE) from exc
            raise UpstreamHTTPError(
                self.name, exc.status_code, f"NeoDB API error: {exc.status_code}"
            ) from exc

    async def search(self, query: str) -> list[SearchItem]:
        params: dict[str, Any] = {"query": query}
        if self.media_type:
            params["category"] = CATEGORY_MAP[self.media_type]
        data = await self._fetch(f"{self._api_base}/catalog/search", params)
        rows = data.get("data") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []
        return self._build_items(rows)

    async def get_item(self, item_id: str) -> SearchItem | None:
        if not self.media_type:
            raise ValueError("media_type is required for item lookups")
        category = CATEGORY_MAP[self.media_type]
        data = await self._fetch(f"{self._api_base}/{category}/{normalize_neodb_uuid(item_id)}", {})
        if not isinstance(data, dict):
            return None
        return self.map_item(data)

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        title = first_of(row, TITLE_FIELDS, as_text)
        item_id = as_text(row.get("uuid")) or normalize_neodb_uuid(
            first_of(row, keys("api_url", "id", "url"), as_text)
        )
        if not title or not item_id:
            return None
        category = as_text(row.get("category"))
        media_type = self.media_type or CATEGORY_TO_TYPE.get(category or "", "book")
        return SearchItem(
            sources=[self.name],
            source_ids={self.name: item_id},
            type=media_type,
            title=title,
            original_title=first_of(row, ORIGINAL_TITLE_FIELDS, as_text),
            year=first_of(row, YEAR_FIELDS, to_year),
            summary=first_of(row, SUMMARY_FIELDS, as_text),
            cover_url=first_of(row, COVER_FIELDS, to_https),
        )
