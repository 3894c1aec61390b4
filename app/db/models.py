from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class BlogTopicResearch(Base):
    __tablename__ = "blog_topic_research"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    shop: Mapped[str] = mapped_column(String(255), index=True)
    title: Mapped[str] = mapped_column(Text)
    primary_keyword: Mapped[str] = mapped_column(String(255))
    secondary_keywords: Mapped[str] = mapped_column(Text, default="[]")
    search_intent: Mapped[str] = mapped_column(String(64), default="")
    content_angle: Mapped[str] = mapped_column(Text, default="")
    target_audience: Mapped[str] = mapped_column(Text, default="")
    trend_justification: Mapped[str] = mapped_column(Text, default="")
    competitive_gap: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(128), index=True, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    @property
    def secondary_keyword_list(self) -> list[str]:
        try:
            value = json.loads(self.secondary_keywords)
        except (TypeError, ValueError):
            return []
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]


class KeywordSuggestionCache(Base):
    __tablename__ = "keyword_suggestion_cache"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    shop: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    topic_ids: Mapped[str] = mapped_column(Text, default="[]")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
