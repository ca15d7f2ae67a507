from __future__ import annotations

from typing import Any, Literal

from enjoyrecord.schemas.search import SearchItem
from enjoyrecord.services.providers.base import SearchProvider
from enjoyrecord.services.providers.fields import as_text, first_of, key, to_https, to_year

SEARCH_URL = "https://www.omdbapi.com/"

OMDbKind = Literal["movie", "series"]

_TITLE = (key("Title"),)
_YEAR = (key("Year"),)
_ID = (key("imdbID"),)


def _poster(value: Any) -> str | None:
    if value == "N/A":
        return None
    return to_https(value)


class OMDbProvider(SearchProvider):
    name = "omdb"
    label = "OMDb"
    key_env = "OMDB_API_KEY"

    def __init__(self, client, *, kind: OMDbKind = "movie", **kwargs):
        super().__init__(client, **kwargs)
        if kind not in ("movie", "series"):
            raise ValueError(f"unsupported OMDb kind: {kind}")
        self.kind = kind

    async def search(self, query: str) -> list[SearchItem]:
        self._ensure_configured()
        params = {"apikey": self._api_key, "s": query, "type": self.kind}
        data = await self._get_json(SEARCH_URL, params)
        # OMDb reports "no match" as a 200 with Response=False.
        if isinstance(data, dict) and data.get("Response") == "False":
            return []
        return self._build_items(self._list_field(data, "Search", required=False))

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        title = first_of(row, _TITLE, as_text)
        imdb_id = first_of(row, _ID, as_text)
        if not title or not imdb_id:
            return None
        return SearchItem(
            sources=[self.name],
            source_ids={self.name: imdb_id},
            type="film" if self.kind == "movie" else "series",
            title=title,
            year=first_of(row, _YEAR, to_year),
            cover_url=first_of(row, (key("Poster"),), _poster),
        )
