from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import BlogTopicResearch, KeywordSuggestionCache
from services.errors import NoJsonFoundError, ProviderError, ThrottledError
from services.payload_parser import parse_topic_list
from services.rate_limiter import RESEARCH_TOPICS, RateLimiter
from services.text_provider import TextGenerationProvider

logger = logging.getLogger(__name__)

SUGGESTIONS_PER_DAY = 3

CATEGORIES = (
    "Product Education",
    "Comparison & Reviews",
    "Problem-Solution",
    "Trend & News",
    "Lifestyle & Inspiration",
)

RESEARCH_PROMPT_TEMPLATE = """
You are an expert SEO content strategist and market researcher. Research the
ecommerce business below and develop a strategic list of blog topics with SEO
keywords.

Target website: {store_url}
Store profile: {store_profile}

Cover product and audience analysis, competitor content gaps, current market
and seasonal trends, common customer questions, and search intent.

Generate 20-30 blog topics organized into these categories:
{categories}

For each topic, provide EXACT JSON format:
{{
  "title": "...",
  "primaryKeyword": "...",
  "secondaryKeywords": ["...", "...", "..."],
  "searchIntent": "Informational|Commercial|Transactional",
  "contentAngle": "...",
  "targetAudience": "...",
  "trendJustification": "...",
  "competitiveGap": "...",
  "category": "{category_choices}"
}}

IMPORTANT: Return ONLY a JSON array. Start with [ and end with ]. No markdown. No other text.
""".strip()


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _keywords_json(value: Any) -> str:
    if not isinstance(value, list):
        return "[]"
    return json.dumps([str(item).strip() for item in value if str(item).strip()])


@dataclass(frozen=True)
class ResearchStatus:
    topic_count: int
    last_research_date: datetime | None


@dataclass(frozen=True)
class DailySuggestions:
    suggestions: list[BlogTopicResearch]
    total: int
    last_updated: datetime | None = None


def rotate_suggestions(
    topics: list[BlogTopicResearch], today: date, count: int = SUGGESTIONS_PER_DAY
) -> list[BlogTopicResearch]:
    """Pick ``count`` consecutive topics starting at a day-of-year offset, wrapping around."""
    if not topics:
        return []
    start = today.timetuple().tm_yday % len(topics)
    return [topics[(start + offset) % len(topics)] for offset in range(min(count, len(topics)))]


class TopicResearchService:
    """Research blog topics for a shop and serve them back from the database."""

    def __init__(
        self,
        session: AsyncSession,
        provider: TextGenerationProvider | None = None,
        rate_limiter: RateLimiter | None = None,
        store_url: str = "",
        store_profile: str = "",
    ) -> None:
        self._provider = provider
        self._session = session
        self._rate_limiter = rate_limiter
        self._store_url = store_url
        self._store_profile = store_profile

    def build_prompt(self) -> str:
        return RESEARCH_PROMPT_TEMPLATE.format(
            store_url=self._store_url or "not provided",
            store_profile=self._store_profile or "not provided",
            categories="\n".join(f"{index}. {name}" for index, name in enumerate(CATEGORIES, 1)),
            category_choices="|".join(CATEGORIES),
        )

    async def research(self, shop: str) -> list[BlogTopicResearch]:
        if self._provider is None:
            raise ProviderError("Topic research is not configured.")
        if self._rate_limiter is not None:
            message = await self._rate_limiter.check(shop, RESEARCH_TOPICS)
            if message:
                raise ThrottledError.from_message(message)

        raw_text = await self._provider.generate(self.build_prompt())
        entries = parse_topic_list(raw_text)
        if not entries:
            raise NoJsonFoundError(raw_text[:200])

        await self._session.execute(delete(BlogTopicResearch).where(BlogTopicResearch.shop == shop))
        topics = [
            BlogTopicResearch(
                shop=shop,
                title=_text(entry.get("title")),
                primary_keyword=_text(entry.get("primaryKeyword")),
                secondary_keywords=_keywords_json(entry.get("secondaryKeywords")),
                search_intent=_text(entry.get("searchIntent")),
                content_angle=_text(entry.get("contentAngle")),
                target_audience=_text(entry.get("targetAudience")),
                trend_justification=_text(entry.get("trendJustification")),
                competitive_gap=_text(entry.get("competitiveGap")),
                category=_text(entry.get("category")),
            )
            for entry in entries
        ]
        self._session.add_all(topics)
        await self._session.flush()

        topic_ids = json.dumps([topic.id for topic in topics])
        cache = await self._session.scalar(
            select(KeywordSuggestionCache).where(KeywordSuggestionCache.shop == shop)
        )
        if cache is None:
            self._session.add(KeywordSuggestionCache(shop=shop, topic_ids=topic_ids))
        else:
            cache.topic_ids = topic_ids

        await self._session.commit()
        logger.info("Stored %s researched topics for %s", len(topics), shop)
        return topics

    async def list_topics(self, shop: str, category: str | None = None) -> list[BlogTopicResearch]:
        statement = select(BlogTopicResearch).where(BlogTopicResearch.shop == shop)
        if category:
            statement = statement.where(BlogTopicResearch.category == category)
        result = await self._session.scalars(
            statement.order_by(BlogTopicResearch.category, BlogTopicResearch.title)
        )
        return list(result)

    async def _newest_first(self, shop: str) -> list[BlogTopicResearch]:
        result = await self._session.scalars(
            select(BlogTopicResearch)
            .where(BlogTopicResearch.shop == shop)
            .order_by(BlogTopicResearch.created_at.desc(), BlogTopicResearch.id)
        )
        return list(result)

    async def research_status(self, shop: str) -> ResearchStatus:
        topics = await self._newest_first(shop)
        return ResearchStatus(
            topic_count=len(topics),
            last_research_date=topics[0].created_at if topics else None,
        )

    async def daily_suggestions(self, shop: str, today: date) -> DailySuggestions:
        topics = await self._newest_first(shop)
        return DailySuggestions(
            suggestions=rotate_suggestions(topics, today),
            total=len(topics),
            last_updated=topics[0].updated_at if topics else None,
        )
