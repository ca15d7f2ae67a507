from __future__ import annotations

from typing import Any

from enjoyrecord.schemas.search import SearchItem
from enjoyrecord.services.providers.base import SearchProvider
from enjoyrecord.services.providers.fields import as_text, first_of, key, to_https

STORE_SEARCH_URL = "https://store.steampowered.com/api/storesearch"

_TITLE = (key("name"),)
_COVER = (key("tiny_image"),)


class SteamProvider(SearchProvider):
    """Steam store search, using the Simplified Chinese storefront by default."""

    name = "steam"
    label = "Steam"

    def __init__(self, client, *, language: str = "schinese", country: str = "cn", **kwargs):
        super().__init__(client, **kwargs)
        self._language = language
        self._country = country

    async def search(self, query: str) -> list[SearchItem]:
        params = {"term": query, "l": self._language, "cc": self._country}
        data = await self._get_json(STORE_SEARCH_URL, params)
        return self._build_items(self._list_field(data, "items", required=False))

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        title = first_of(row, _TITLE, as_text)
        app_id = as_text(row.get("id"))
        if not title or not app_id:
            return None
        return SearchItem(
            sources=[self.name],
            source_ids={self.name: app_id},
            type="game",
            title=title,
            summary="来源：Steam",
            cover_url=first_of(row, _COVER, to_https),
        )
