from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings
from app.dependencies import (
    ShopContext,
    get_content_store,
    get_rate_limiter,
    get_shop_context,
    get_text_provider,
)
from schemas.blog import ArticleListResponse, ArticleResponse, BlogGenerationResponse
from services.blog_generator import BlogGeneratorService
from services.content_store import ContentStore
from services.errors import ContentStoreError, ThrottledError
from services.rate_limiter import RateLimiter
from services.text_provider import TextGenerationProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["blog"])


@router.post("/generate-blog", response_model=BlogGenerationResponse)
async def generate_blog(
    keyword: Annotated[str | None, Form()] = None,
    secondary_keywords: Annotated[str | None, Form(alias="secondaryKeywords")] = None,
    search_intent: Annotated[str | None, Form(alias="searchIntent")] = None,
    target_country: Annotated[str | None, Form(alias="targetCountry")] = None,
    audience_level: Annotated[str | None, Form(alias="audienceLevel")] = None,
    tone: Annotated[str | None, Form()] = None,
    word_count: Annotated[str | None, Form(alias="wordCount")] = None,
    shop: ShopContext = Depends(get_shop_context),
    provider: TextGenerationProvider = Depends(get_text_provider),
    content_store: ContentStore = Depends(get_content_store),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    service = BlogGeneratorService(
        provider=provider,
        content_store=content_store,
        rate_limiter=rate_limiter,
        strict_payload=settings.strict_payload,
        default_blog_title=settings.default_blog_title,
        author=settings.article_author,
    )
    result = await service.handle(
        shop.subject,
        {
            "keyword": keyword,
            "secondaryKeywords": secondary_keywords,
            "searchIntent": search_intent,
            "targetCountry": target_country,
            "audienceLevel": audience_level,
            "tone": tone,
            "wordCount": word_count,
        },
    )

    headers = None
    if isinstance(result.error, ThrottledError) and result.error.retry_after_seconds:
        headers = {"Retry-After": str(result.error.retry_after_seconds)}
    return JSONResponse(
        status_code=result.status_code,
        content=result.to_response(),
        headers=headers,
    )


@router.get("/articles", response_model=ArticleListResponse)
async def list_articles(
    shop: ShopContext = Depends(get_shop_context),
    content_store: ContentStore = Depends(get_content_store),
) -> ArticleListResponse | JSONResponse:
    try:
        articles = await content_store.list_articles()
    except ContentStoreError as exc:
        logger.warning("Failed to fetch articles for %s: %s", shop.subject, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    return ArticleListResponse(
        shop=shop.subject,
        articles=[
            ArticleResponse(
                id=article.id,
                title=article.title,
                handle=article.handle,
                is_published=article.is_published,
                created_at=article.created_at,
                blog_title=article.blog_title,
            )
            for article in articles
        ],
    )
