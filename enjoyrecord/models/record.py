from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from enjoyrecord.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(Base):
    __tablename__ = "records"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # "book" | "film" | "series" | "game"
    type: Mapped[str] = mapped_column(sa.String(10), nullable=False)
    title: Mapped[str] = mapped_column(sa.String(300), nullable=False)
    original_title: Mapped[str | None] = mapped_column(sa.String(300), nullable=True)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    summary: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")

    cover_url: Mapped[str | None] = mapped_column(sa.String(1000), nullable=True)
    cover_tone: Mapped[str] = mapped_column(sa.String(16), nullable=False)
    cover_accent: Mapped[str] = mapped_column(sa.String(16), nullable=False)

    # "planned" | "in_progress" | "completed" | "paused"
    status: Mapped[str] = mapped_column(sa.String(20), nullable=False, default="planned")
    rating: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    tags: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    progress_current: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    progress_total: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    # "pages" | "chapters" | "episodes" | "hours"
    progress_unit: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)

    started_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)

    # [{"date", "status", "progress"?, "note"?}, ...] oldest first
    history: Mapped[list[dict]] = mapped_column(sa.JSON, nullable=False, default=list)

    __table_args__ = (
        sa.CheckConstraint("type IN ('book','film','series','game')", name="ck_records_type"),
        sa.CheckConstraint(
            "status IN ('planned','in_progress','completed','paused')",
            name="ck_records_status",
        ),
        sa.CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 10)", name="ck_records_rating"),
        sa.Index("ix_records_updated_at", "updated_at"),
        sa.Index("ix_records_type_status", "type", "status"),
    )
