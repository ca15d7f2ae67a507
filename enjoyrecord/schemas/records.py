from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from enjoyrecord.schemas.search import MediaType

RecordStatus = Literal["planned", "in_progress", "completed", "paused"]
ProgressUnit = Literal["pages", "chapters", "episodes", "hours"]

STATUS_OPTIONS: tuple[str, ...] = ("planned", "in_progress", "completed", "paused")
NOTES_MAX_LENGTH = 200


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Progress(CamelModel):
    current: int = Field(ge=0)
    total: int | None = Field(default=None, ge=0)
    unit: ProgressUnit


class Cover(CamelModel):
    tone: str
    accent: str


class HistoryEntry(CamelModel):
    date: datetime
    status: RecordStatus
    progress: Progress | None = None
    note: str | None = None


class RecordOut(CamelModel):
    id: str
    type: MediaType
    title: str
    original_title: str | None = Field(default=None, alias="originalTitle")
    year: int
    summary: str
    cover_url: str | None = Field(default=None, alias="coverUrl")
    cover: Cover
    status: RecordStatus
    rating: float | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    progress: Progress | None = None
    started_at: datetime | None = Field(default=None, alias="startedAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    history: list[HistoryEntry] = Field(default_factory=list)


class RecordCreateRequest(CamelModel):
    type: MediaType
    title: str = ""
    original_title: str | None = Field(default=None, alias="originalTitle")
    year: int | None = None
    summary: str = ""
    cover_url: str | None = Field(default=None, alias="coverUrl")
    status: RecordStatus = "planned"
    rating: float | None = Field(default=None, ge=0, le=10)
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    progress: Progress | None = None
    source_ids: dict[str, str] = Field(default_factory=dict, alias="sourceIds")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class RecordPatchRequest(CamelModel):
    status: str | None = None
    progress: Progress | None = None
    note: str | None = None
    rating: float | None = None
    notes: str | None = None


class RecordEnvelope(BaseModel):
    record: RecordOut


class RecordListOut(BaseModel):
    records: list[RecordOut]


class RatingBucket(BaseModel):
    label: str
    count: int


class MonthlyCount(BaseModel):
    month: str
    count: int


class RecordStats(BaseModel):
    total: int
    by_type: dict[str, int]
    completed_by_type: dict[str, int]
    in_progress: int
    average_rating: float
    rating_buckets: list[RatingBucket]
    monthly_completed: list[MonthlyCount]
