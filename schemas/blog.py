from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BlogGenerationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    article_id: str | None = Field(default=None, alias="articleId")
    article_title: str | None = Field(default=None, alias="articleTitle")
    shop: str | None = None
    error: str | None = None


class ArticleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    handle: str
    is_published: bool = Field(alias="isPublished")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    blog_title: str | None = Field(default=None, alias="blogTitle")


class ArticleListResponse(BaseModel):
    shop: str
    articles: list[ArticleResponse]
