from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

import httpx

from services.errors import ContentStoreError

logger = logging.getLogger(__name__)

LIST_BLOGS_QUERY = """
query ListBlogs($first: Int!) {
  blogs(first: $first) {
    edges {
      node {
        id
        title
      }
    }
  }
}
""".strip()

CREATE_BLOG_MUTATION = """
mutation CreateBlog($blog: BlogCreateInput!) {
  blogCreate(blog: $blog) {
    blog {
      id
      title
    }
    userErrors {
      field
      message
    }
  }
}
""".strip()

CREATE_ARTICLE_MUTATION = """
mutation CreateArticle($article: ArticleCreateInput!) {
  articleCreate(article: $article) {
    article {
      id
      title
      handle
    }
    userErrors {
      field
      message
    }
  }
}
""".strip()

LIST_ARTICLES_QUERY = """
query ListArticles($blogs: Int!, $articles: Int!) {
  blogs(first: $blogs) {
    edges {
      node {
        id
        title
        articles(first: $articles) {
          edges {
            node {
              id
              title
              handle
              isPublished
              createdAt
            }
          }
        }
      }
    }
  }
}
""".strip()


@dataclass(frozen=True)
class ContainerRef:
    id: str
    title: str | None = None


@dataclass(frozen=True)
class ArticleDraft:
    container_id: str
    title: str
    body: str
    summary: str
    slug: str
    tags: list[str] = field(default_factory=list)
    author: str = "SEO Assistant"
    draft: bool = True


@dataclass(frozen=True)
class ArticleRecord:
    id: str
    title: str
    handle: str | None = None


@dataclass(frozen=True)
class ArticleSummary:
    id: str
    title: str
    handle: str
    is_published: bool
    created_at: datetime | None
    blog_title: str | None


class ContentStore(Protocol):
    async def list_containers(self, limit: int = 1) -> list[ContainerRef]: ...

    async def create_container(self, name: str) -> ContainerRef: ...

    async def create_article(self, draft: ArticleDraft) -> ArticleRecord: ...

    async def list_articles(
        self, blog_limit: int = 10, article_limit: int = 50
    ) -> list[ArticleSummary]: ...


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unable to parse article timestamp: %s", value)
        return None


def _edges(connection: Any) -> list[dict[str, Any]]:
    if not isinstance(connection, dict):
        return []
    return [
        edge["node"]
        for edge in connection.get("edges") or []
        if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
    ]


class ShopifyContentStore:
    """Read and write blog content through the Shopify Admin GraphQL API."""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = "2025-01",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = f"https://{shop_domain}/admin/api/{api_version}/graphql.json"
        self._headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    async def _execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._endpoint,
                    headers=self._headers,
                    json={"query": query, "variables": variables or {}},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Shopify request failed: %s", exc)
            raise ContentStoreError("Content store request failed. Please try again.") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ContentStoreError("Content store returned an unreadable response.") from exc

        errors = body.get("errors")
        if errors:
            logger.error("Shopify GraphQL errors: %s", errors)
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message") if isinstance(first, dict) else str(first)
            raise ContentStoreError(f"Content store error: {message}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise ContentStoreError("Content store returned no data.")
        return data

    @staticmethod
    def _raise_user_errors(result: dict[str, Any], action: str) -> None:
        user_errors = result.get("userErrors") or []
        if user_errors:
            logger.error("Shopify user errors during %s: %s", action, user_errors)
            raise ContentStoreError(f"Failed to {action}: {user_errors[0].get('message')}")

    async def list_containers(self, limit: int = 1) -> list[ContainerRef]:
        data = await self._execute(LIST_BLOGS_QUERY, {"first": limit})
        return [
            ContainerRef(id=node["id"], title=node.get("title"))
            for node in _edges(data.get("blogs"))
            if node.get("id")
        ]

    async def create_container(self, name: str) -> ContainerRef:
        data = await self._execute(CREATE_BLOG_MUTATION, {"blog": {"title": name}})
        result = data.get("blogCreate") or {}
        self._raise_user_errors(result, "create blog")
        blog = result.get("blog") or {}
        if not blog.get("id"):
            raise ContentStoreError("Failed to create blog")
        return ContainerRef(id=blog["id"], title=blog.get("title"))

    async def create_article(self, draft: ArticleDraft) -> ArticleRecord:
        variables = {
            "article": {
                "blogId": draft.container_id,
                "title": draft.title,
                "body": draft.body,
                "summary": draft.summary,
                "handle": draft.slug,
                "tags": draft.tags,
                "author": {"name": draft.author},
                "isPublished": not draft.draft,
            }
        }
        data = await self._execute(CREATE_ARTICLE_MUTATION, variables)
        result = data.get("articleCreate") or {}
        self._raise_user_errors(result, "create article")
        article = result.get("article") or {}
        if not article.get("id"):
            raise ContentStoreError("Failed to create article")
        return ArticleRecord(
            id=article["id"],
            title=article.get("title") or draft.title,
            handle=article.get("handle"),
        )

    async def list_articles(
        self, blog_limit: int = 10, article_limit: int = 50
    ) -> list[ArticleSummary]:
        data = await self._execute(
            LIST_ARTICLES_QUERY, {"blogs": blog_limit, "articles": article_limit}
        )
        articles: list[ArticleSummary] = []
        for blog in _edges(data.get("blogs")):
            for node in _edges(blog.get("articles")):
                articles.append(
                    ArticleSummary(
                        id=node.get("id", ""),
                        title=node.get("title", ""),
                        handle=node.get("handle", ""),
                        is_published=bool(node.get("isPublished")),
                        created_at=_parse_timestamp(node.get("createdAt")),
                        blog_title=blog.get("title"),
                    )
                )
        articles.sort(
            key=lambda item: item.created_at.timestamp() if item.created_at else float("-inf"),
            reverse=True,
        )
        return articles
