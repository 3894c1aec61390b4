from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TopicResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    primary_keyword: str = Field(alias="primaryKeyword")
    secondary_keywords: list[str] = Field(default_factory=list, alias="secondaryKeywords")
    search_intent: str = Field(default="", alias="searchIntent")
    content_angle: str = Field(default="", alias="contentAngle")
    target_audience: str = Field(default="", alias="targetAudience")
    trend_justification: str = Field(default="", alias="trendJustification")
    competitive_gap: str = Field(default="", alias="competitiveGap")
    category: str = ""


class ResearchTopicsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    topic_count: int = Field(alias="topicCount")
    message: str


class ResearchStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shop: str
    topic_count: int = Field(alias="topicCount")
    last_research_date: datetime | None = Field(default=None, alias="lastResearchDate")


class TopicLibraryResponse(BaseModel):
    shop: str
    categories: list[str]
    topics: list[TopicResponse]


class DailySuggestionsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_topics: bool = Field(alias="hasTopics")
    suggestions: list[TopicResponse]
    total_topics: int = Field(alias="totalTopics")
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")
    message: str | None = None
