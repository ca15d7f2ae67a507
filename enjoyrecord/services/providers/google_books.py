from __future__ import annotations

from typing import Any

from enjoyrecord.schemas.search import SearchItem
from enjoyrecord.services.providers.base import MAX_RESULTS, SearchProvider
from enjoyrecord.services.providers.fields import (
    as_text,
    first_of,
    join_names,
    key,
    path,
    to_https,
    to_year,
)

SEARCH_URL = "https://www.googleapis.com/books/v1/volumes"

_TITLE = (path("volumeInfo", "title"),)
_ORIGINAL_TITLE = (path("volumeInfo", "subtitle"),)
_YEAR = (path("volumeInfo", "publishedDate"),)
_DESCRIPTION = (path("volumeInfo", "description"),)
_COVER = (
    path("volumeInfo", "imageLinks", "thumbnail"),
    path("volumeInfo", "imageLinks", "smallThumbnail"),
)


class GoogleBooksProvider(SearchProvider):
    """Google Books volume search restricted to Chinese-language editions."""

    name = "googlebooks"
    label = "Google Books"

    def __init__(self, client, *, lang_restrict: str = "zh", **kwargs):
        super().__init__(client, **kwargs)
        self._lang_restrict = lang_restrict

    async def search(self, query: str) -> list[SearchItem]:
        params = {"q": query, "maxResults": MAX_RESULTS, "langRestrict": self._lang_restrict}
        data = await self._get_json(SEARCH_URL, params)
        # "items" is omitted entirely when nothing matched.
        return self._build_items(self._list_field(data, "items", required=False))

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        title = first_of(row, _TITLE, as_text)
        volume_id = first_of(row, (key("id"),), as_text)
        if not title or not volume_id:
            return None
        authors = join_names((row.get("volumeInfo") or {}).get("authors"))
        summary = first_of(row, _DESCRIPTION, as_text) or (f"作者：{authors}" if authors else None)
        return SearchItem(
            sources=[self.name],
            source_ids={self.name: volume_id},
            type="book",
            title=title,
            original_title=first_of(row, _ORIGINAL_TITLE, as_text),
            year=first_of(row, _YEAR, to_year),
            summary=summary,
            cover_url=first_of(row, _COVER, to_https),
        )
