from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MediaType = Literal["book", "film", "series", "game"]
MEDIA_TYPES: tuple[str, ...] = ("book", "film", "series", "game")


class SearchItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sources: list[str] = Field(min_length=1)
    source_ids: dict[str, str] = Field(default_factory=dict, alias="sourceIds")
    type: MediaType
    title: str = Field(min_length=1)
    original_title: str | None = Field(default=None, alias="originalTitle")
    year: int | None = None
    summary: str | None = None
    cover_url: str | None = Field(default=None, alias="coverUrl")


class SearchResponse(BaseModel):
    results: list[SearchItem]
    warning: str | None = None
