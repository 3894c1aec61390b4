"""Tests for topic research storage and daily suggestion rotation."""

import json
from datetime import date, datetime

import pytest
from sqlalchemy import select

from app.db.models import BlogTopicResearch, KeywordSuggestionCache
from services.errors import NoJsonFoundError, ThrottledError
from services.rate_limiter import RESEARCH_TOPICS, RateLimiter
from services.topic_research import TopicResearchService, rotate_suggestions
from tests.conftest import FakeTextProvider


def _topics_text(count: int, category: str = "Trend & News") -> str:
    return json.dumps(
        [
            {
                "title": f"Topic {index}",
                "primaryKeyword": f"keyword {index}",
                "secondaryKeywords": ["a", "b"],
                "searchIntent": "Informational",
                "contentAngle": "angle",
                "targetAudience": "shoppers",
                "trendJustification": "rising",
                "competitiveGap": "gap",
                "category": category,
            }
            for index in range(count)
        ]
    )


class TestRotateSuggestions:
    def test_starts_at_day_of_year_offset(self):
        topics = list("abcdefg")
        # 10 January is day 10; 10 % 7 == 3
        assert rotate_suggestions(topics, date(2025, 1, 10)) == ["d", "e", "f"]

    def test_wraps_around(self):
        topics = list("abcde")
        # 4 January is day 4
        assert rotate_suggestions(topics, date(2025, 1, 4)) == ["e", "a", "b"]

    def test_fewer_topics_than_suggestions(self):
        assert rotate_suggestions(["a", "b"], date(2025, 1, 1)) == ["b", "a"]

    def test_no_topics(self):
        assert rotate_suggestions([], date(2025, 1, 1)) == []


class TestResearch:
    @pytest.mark.asyncio
    async def test_stores_topics_and_cache(self, session):
        service = TopicResearchService(session, FakeTextProvider(_topics_text(4)))

        topics = await service.research("demo-store")

        assert len(topics) == 4
        stored = (await session.scalars(select(BlogTopicResearch))).all()
        assert len(stored) == 4
        assert stored[0].secondary_keyword_list == ["a", "b"]
        cache = await session.scalar(select(KeywordSuggestionCache))
        assert sorted(json.loads(cache.topic_ids)) == sorted(topic.id for topic in topics)

    @pytest.mark.asyncio
    async def test_rerun_replaces_previous_topics(self, session):
        first = TopicResearchService(session, FakeTextProvider(_topics_text(5)))
        await first.research("demo-store")
        second = TopicResearchService(session, FakeTextProvider(_topics_text(2)))
        topics = await second.research("demo-store")

        stored = (await session.scalars(select(BlogTopicResearch))).all()
        assert len(stored) == 2
        caches = (await session.scalars(select(KeywordSuggestionCache))).all()
        assert len(caches) == 1
        assert sorted(json.loads(caches[0].topic_ids)) == sorted(topic.id for topic in topics)

    @pytest.mark.asyncio
    async def test_other_shops_are_untouched(self, session):
        await TopicResearchService(session, FakeTextProvider(_topics_text(3))).research("other-store")
        await TopicResearchService(session, FakeTextProvider(_topics_text(1))).research("demo-store")

        service = TopicResearchService(session)
        assert len(await service.list_topics("other-store")) == 3
        assert len(await service.list_topics("demo-store")) == 1

    @pytest.mark.asyncio
    async def test_unparseable_output_keeps_existing_topics(self, session):
        await TopicResearchService(session, FakeTextProvider(_topics_text(3))).research("demo-store")

        service = TopicResearchService(session, FakeTextProvider("No topics today."))
        with pytest.raises(NoJsonFoundError):
            await service.research("demo-store")

        assert len(await TopicResearchService(session).list_topics("demo-store")) == 3

    @pytest.mark.asyncio
    async def test_throttled_before_provider_call(self, session):
        provider = FakeTextProvider(_topics_text(3))
        limiter = RateLimiter(limits={RESEARCH_TOPICS: "1/day"})
        service = TopicResearchService(session, provider, rate_limiter=limiter)

        await service.research("demo-store")
        with pytest.raises(ThrottledError) as excinfo:
            await service.research("demo-store")

        assert excinfo.value.status_code == 429
        assert len(provider.prompts) == 1


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_topics_filters_by_category(self, session):
        await TopicResearchService(session, FakeTextProvider(_topics_text(2, "Problem-Solution"))).research("demo-store")
        service = TopicResearchService(session)

        assert len(await service.list_topics("demo-store", category="Problem-Solution")) == 2
        assert await service.list_topics("demo-store", category="Trend & News") == []

    @pytest.mark.asyncio
    async def test_daily_suggestions(self, session):
        await TopicResearchService(session, FakeTextProvider(_topics_text(7))).research("demo-store")
        service = TopicResearchService(session)

        daily = await service.daily_suggestions("demo-store", date(2025, 1, 10))

        assert daily.total == 7
        assert len(daily.suggestions) == 3
        assert len({topic.id for topic in daily.suggestions}) == 3

    @pytest.mark.asyncio
    async def test_daily_suggestions_without_topics(self, session):
        daily = await TopicResearchService(session).daily_suggestions("demo-store", date(2025, 1, 10))
        assert daily.suggestions == []
        assert daily.total == 0
        assert daily.last_updated is None

    @pytest.mark.asyncio
    async def test_last_updated_comes_from_newest_topic(self, session):
        def topic(title, created_day, updated_day):
            return BlogTopicResearch(
                shop="demo-store",
                title=title,
                primary_keyword=title.lower(),
                created_at=datetime(2025, 1, created_day),
                updated_at=datetime(2025, 1, updated_day),
            )

        # C is rotated in and was touched most recently, but A is the newest topic
        session.add_all([topic("A", 4, 4), topic("B", 3, 3), topic("C", 2, 9), topic("D", 1, 1)])
        await session.commit()

        daily = await TopicResearchService(session).daily_suggestions("demo-store", date(2025, 1, 10))

        assert [item.title for item in daily.suggestions] == ["C", "D", "A"]
        assert daily.last_updated == datetime(2025, 1, 4)

    @pytest.mark.asyncio
    async def test_research_status(self, session):
        service = TopicResearchService(session, FakeTextProvider(_topics_text(3)))
        stored = await service.research("demo-store")

        status = await service.research_status("demo-store")

        assert status.topic_count == 3
        assert status.last_research_date == max(item.created_at for item in stored)

    @pytest.mark.asyncio
    async def test_research_status_without_topics(self, session):
        status = await TopicResearchService(session).research_status("demo-store")
        assert status.topic_count == 0
        assert status.last_research_date is None
