"""Shared test fixtures: fake collaborators, in-memory SQLite session."""

import os

# Settings are cached on first use, so configure the environment before any
# application module is imported.
os.environ["BLOGASSIST_ENVIRONMENT"] = "test"
os.environ["BLOGASSIST_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BLOGASSIST_SHOP_DOMAIN"] = "demo-store.myshopify.com"
os.environ["BLOGASSIST_SHOP_ADMIN_TOKEN"] = "for-tests-only"
os.environ["BLOGASSIST_OPENAI_API_KEY"] = "for-tests-only"

import json

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.models import Base
from services.content_store import ArticleDraft, ArticleRecord, ArticleSummary, ContainerRef
from services.errors import ContentStoreError

VALID_FIELDS = {
    "keyword": "sustainable fashion",
    "secondaryKeywords": "eco clothing, ethical brands",
    "searchIntent": "informational",
    "targetCountry": "US",
    "audienceLevel": "beginner",
    "tone": "authoritative",
    "wordCount": "1500",
}

ARTICLE_PAYLOAD = {
    "selectedTitle": "Sustainable Fashion: A Beginner's Guide",
    "articleContent": "<h1>Sustainable Fashion</h1><p>Start here.</p>",
    "metaDescription": "Everything a beginner needs to know about sustainable fashion.",
    "tags": ["sustainable fashion", "eco"],
    "competitiveIntelligence": {"avgWordCount": "1200-1800"},
    "differentiationStrategy": {"primaryAngle": "Budget-first"},
    "eeatSignals": {"authorBio": "Stylist"},
    "technicalSEOChecklist": {"completed": ["Title tag"]},
}


class FakeTextProvider:
    def __init__(self, response: str = "", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class FakeContentStore:
    def __init__(
        self,
        containers: list[ContainerRef] | None = None,
        article_error: str | None = None,
        container_error: str | None = None,
    ) -> None:
        self.containers = list(containers or [])
        self.article_error = article_error
        self.container_error = container_error
        self.created_containers: list[str] = []
        self.drafts: list[ArticleDraft] = []
        self.summaries: list[ArticleSummary] = []

    async def list_containers(self, limit: int = 1) -> list[ContainerRef]:
        return self.containers[:limit]

    async def create_container(self, name: str) -> ContainerRef:
        if self.container_error:
            raise ContentStoreError(f"Failed to create blog: {self.container_error}")
        self.created_containers.append(name)
        container = ContainerRef(id=f"gid://shopify/Blog/{len(self.created_containers)}", title=name)
        self.containers.append(container)
        return container

    async def create_article(self, draft: ArticleDraft) -> ArticleRecord:
        if self.article_error:
            raise ContentStoreError(f"Failed to create article: {self.article_error}")
        self.drafts.append(draft)
        return ArticleRecord(
            id=f"gid://shopify/Article/{1000 + len(self.drafts)}",
            title=draft.title,
            handle=draft.slug,
        )

    async def list_articles(
        self, blog_limit: int = 10, article_limit: int = 50
    ) -> list[ArticleSummary]:
        return list(self.summaries)


def payload_text(payload: dict | None = None) -> str:
    return json.dumps(ARTICLE_PAYLOAD if payload is None else payload)


@pytest.fixture
def valid_fields() -> dict[str, str]:
    return dict(VALID_FIELDS)


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest_asyncio.fixture
async def session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as db_session:
        yield db_session
    await engine.dispose()
