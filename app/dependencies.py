from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, HTTPException

from app.core.config import Settings, get_settings
from services.content_store import ContentStore, ShopifyContentStore
from services.rate_limiter import BLOG_GENERATION, RESEARCH_TOPICS, RateLimiter
from services.text_provider import OpenAITextProvider, TextGenerationProvider


@dataclass(frozen=True)
class ShopContext:
    domain: str
    subject: str


def get_shop_context(settings: Settings = Depends(get_settings)) -> ShopContext:
    if not settings.shop_domain:
        raise HTTPException(status_code=500, detail="Shop domain is not configured.")
    return ShopContext(domain=settings.shop_domain, subject=settings.shop_subject)


@lru_cache
def get_rate_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(
        storage_uri=settings.rate_limit_storage_uri,
        limits={
            BLOG_GENERATION: settings.blog_generation_limit,
            RESEARCH_TOPICS: settings.topic_research_limit,
        },
    )


def get_text_provider(settings: Settings = Depends(get_settings)) -> TextGenerationProvider:
    if not settings.openai_api_key:
        raise HTTPException(
            status_code=500,
            detail="Configuration error: API key not found. Please contact support.",
        )
    return OpenAITextProvider(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        max_output_tokens=settings.openai_max_output_tokens,
        temperature=settings.openai_temperature,
        timeout=settings.openai_timeout_seconds,
    )


def get_content_store(settings: Settings = Depends(get_settings)) -> ContentStore:
    if not settings.shop_domain or not settings.shop_admin_token:
        raise HTTPException(status_code=500, detail="Shop credentials are not configured.")
    return ShopifyContentStore(
        shop_domain=settings.shop_domain,
        access_token=settings.shop_admin_token,
        api_version=settings.shop_api_version,
        timeout=settings.shop_timeout_seconds,
    )
