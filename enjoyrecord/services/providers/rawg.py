from __future__ import annotations

from typing import Any

from enjoyrecord.schemas.search import SearchItem
from enjoyrecord.services.providers.base import MAX_RESULTS, SearchProvider
from enjoyrecord.services.providers.fields import as_text, first_of, join_names, key, to_https, to_year

GAMES_URL = "https://api.rawg.io/api/games"

_TITLE = (key("name"),)
_YEAR = (key("released"),)
_COVER = (key("background_image"),)


class RawgProvider(SearchProvider):
    name = "rawg"
    label = "RAWG"
    key_env = "RAWG_API_KEY"

    async def search(self, query: str) -> list[SearchItem]:
        self._ensure_configured()
        params = {"search": query, "page_size": MAX_RESULTS, "key": self._api_key}
        data = await self._get_json(GAMES_URL, params)
        # page_size already bounds the response.
        return self._build_items(self._list_field(data, "results"), limit=None)

    async def popular(self) -> list[SearchItem]:
        self._ensure_configured()
        params = {"ordering": "-added", "page_size": MAX_RESULTS, "key": self._api_key}
        data = await self._get_json(GAMES_URL, params)
        return self._build_items(self._list_field(data, "results"), limit=None)

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        title = first_of(row, _TITLE, as_text)
        rawg_id = as_text(row.get("id"))
        if not title or not rawg_id:
            return None
        return SearchItem(
            sources=[self.name],
            source_ids={self.name: rawg_id},
            type="game",
            title=title,
            year=first_of(row, _YEAR, to_year),
            summary=join_names(row.get("genres"), field="name"),
            cover_url=first_of(row, _COVER, to_https),
        )
