from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.db.models import BlogTopicResearch
from app.db.session import get_session
from app.dependencies import ShopContext, get_rate_limiter, get_shop_context, get_text_provider
from schemas.topics import (
    DailySuggestionsResponse,
    ResearchStatusResponse,
    ResearchTopicsResponse,
    TopicLibraryResponse,
    TopicResponse,
)
from services.errors import BlogAssistantError
from services.rate_limiter import RateLimiter
from services.text_provider import TextGenerationProvider
from services.topic_research import TopicResearchService

router = APIRouter(tags=["topics"])


def _topic_response(topic: BlogTopicResearch) -> TopicResponse:
    return TopicResponse(
        id=topic.id,
        title=topic.title,
        primary_keyword=topic.primary_keyword,
        secondary_keywords=topic.secondary_keyword_list,
        search_intent=topic.search_intent,
        content_angle=topic.content_angle,
        target_audience=topic.target_audience,
        trend_justification=topic.trend_justification,
        competitive_gap=topic.competitive_gap,
        category=topic.category,
    )


@router.get("/research-topics", response_model=ResearchStatusResponse)
async def research_status(
    shop: ShopContext = Depends(get_shop_context),
    session: AsyncSession = Depends(get_session),
) -> ResearchStatusResponse:
    status = await TopicResearchService(session).research_status(shop.subject)
    return ResearchStatusResponse(
        shop=shop.subject,
        topic_count=status.topic_count,
        last_research_date=status.last_research_date,
    )


@router.post("/research-topics", response_model=ResearchTopicsResponse)
async def research_topics(
    shop: ShopContext = Depends(get_shop_context),
    provider: TextGenerationProvider = Depends(get_text_provider),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ResearchTopicsResponse | JSONResponse:
    service = TopicResearchService(
        provider=provider,
        session=session,
        rate_limiter=rate_limiter,
        store_url=settings.store_url,
        store_profile=settings.store_profile,
    )
    try:
        topics = await service.research(shop.subject)
    except BlogAssistantError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    return ResearchTopicsResponse(
        success=True,
        topic_count=len(topics),
        message=f"Successfully generated {len(topics)} blog topics!",
    )


@router.get("/topics", response_model=TopicLibraryResponse)
async def list_topics(
    category: str | None = Query(default=None),
    shop: ShopContext = Depends(get_shop_context),
    session: AsyncSession = Depends(get_session),
) -> TopicLibraryResponse:
    service = TopicResearchService(session)
    topics = await service.list_topics(shop.subject, category=category)
    categories = sorted({topic.category for topic in topics if topic.category})
    return TopicLibraryResponse(
        shop=shop.subject,
        categories=categories,
        topics=[_topic_response(topic) for topic in topics],
    )


@router.get("/daily-suggestions", response_model=DailySuggestionsResponse)
async def daily_suggestions(
    suggestion_date: date | None = Query(default=None, alias="date"),
    shop: ShopContext = Depends(get_shop_context),
    session: AsyncSession = Depends(get_session),
) -> DailySuggestionsResponse:
    service = TopicResearchService(session)
    daily = await service.daily_suggestions(shop.subject, suggestion_date or date.today())
    if not daily.total:
        return DailySuggestionsResponse(
            has_topics=False,
            suggestions=[],
            total_topics=0,
            message="No research topics yet. Run research first!",
        )

    return DailySuggestionsResponse(
        has_topics=True,
        suggestions=[_topic_response(topic) for topic in daily.suggestions],
        total_topics=daily.total,
        last_updated=daily.last_updated,
    )
