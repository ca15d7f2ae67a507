from __future__ import annotations

from typing import Any

from enjoyrecord.schemas.search import SearchItem
from enjoyrecord.services.providers.base import SearchProvider
from enjoyrecord.services.providers.fields import as_text, first_of, join_names, key, to_year
from enjoyrecord.services.transliteration import to_pinyin_query

SEARCH_URL = "https://openlibrary.org/search.json"
COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-L.jpg"

_TITLE = (key("title"),)
_ORIGINAL_TITLE = (key("subtitle"),)
_YEAR = (key("first_publish_year"), key("publish_year"))


def _cover_url(doc: dict[str, Any]) -> str | None:
    cover_id = doc.get("cover_i")
    if isinstance(cover_id, int) and not isinstance(cover_id, bool) and cover_id > 0:
        return COVER_URL.format(cover_id=cover_id)
    return None


def _year(value: Any) -> int | None:
    # publish_year is a list of every edition's year.
    if isinstance(value, list):
        years = [y for y in (to_year(v) for v in value) if y is not None]
        return min(years) if years else None
    return to_year(value)


class OpenLibraryProvider(SearchProvider):
    name = "openlibrary"
    label = "Open Library"

    async def search(self, query: str) -> list[SearchItem]:
        # Open Library does not index Han script, so Chinese queries go out as pinyin.
        data = await self._get_json(SEARCH_URL, {"q": to_pinyin_query(query)})
        return self._build_items(self._list_field(data, "docs"))

    def map_item(self, row: dict[str, Any]) -> SearchItem | None:
        title = first_of(row, _TITLE, as_text)
        doc_key = as_text(row.get("key"))
        if not title or not doc_key:
            return None
        authors = join_names(row.get("author_name"))
        return SearchItem(
            sources=[self.name],
            source_ids={self.name: doc_key},
            type="book",
            title=title,
            original_title=first_of(row, _ORIGINAL_TITLE, as_text),
            year=first_of(row, _YEAR, _year),
            summary=f"作者：{authors}" if authors else None,
            cover_url=_cover_url(row),
        )
