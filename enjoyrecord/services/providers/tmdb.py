from __future__ import annotations

from typing import Any, Literal

from enjoyrecord.schemas.search import SearchItem
from enjoyrecord.services.providers.base import SearchProvider
from enjoyrecord.services.providers.fields import as_text, first_of, key, keys, to_year

API_BASE = "https://api.themoviedb.org/3"
POSTER_BASE = "https://image.tmdb.org/t/p/w500"

TMDBKind = Literal["movie", "tv"]

_TITLE = keys("title", "name")
_ORIGINAL_TITLE = keys("original_title", "original_name")
_SUMMARY = (key("overview"),)
_DATE = {
    "movie": (key("release_date"),),
    "tv": (key("first_air_date"),),
}


class TMDBProvider(SearchProvider):
    name = "tmdb"
    label = "TMDB"
    key_env = "TMDB_API_KEY"

    def __init__(self, client, *, kind: TMDBKind = "movie", language: str = "zh-CN", **kwargs):
        super().__init__(client, **kwargs)
        if kind not in _DATE:
            raise ValueError(f"unsupported TMDB kind: {kind}")
        self.kind = kind
        self._language = language

    async def search(self, query: str) -> list[SearchItem]:
        self._ensure_configured()
        params = {"query": query, "language": self._language, "api_key": self._api_key}
        data = await self._get_json(f"{API_BASE}/search/{self.kind}", params)
        return self._build_items(self._list_field(data, "results"))

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        title = first_of(row, _TITLE, as_text)
        tmdb_id = as_text(row.get("id"))
        if not title or not tmdb_id:
            return None
        poster_path = as_text(row.get("poster_path"))
        return SearchItem(
            sources=[self.name],
            source_ids={self.name: tmdb_id},
            type="film" if self.kind == "movie" else "series",
            title=title,
            original_title=first_of(row, _ORIGINAL_TITLE, as_text),
            year=first_of(row, _DATE[self.kind], to_year),
            summary=first_of(row, _SUMMARY, as_text),
            cover_url=f"{POSTER_BASE}{poster_path}" if poster_path else None,
        )
