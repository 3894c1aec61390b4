from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

from services.content_store import ArticleDraft, ContentStore
from services.errors import (
    BlogAssistantError,
    ContentStoreError,
    ProviderError,
    ThrottledError,
)
from services.payload_parser import GeneratedArticlePayload, parse_article_payload
from services.rate_limiter import BLOG_GENERATION, RateLimiter
from services.text_provider import TextGenerationProvider
from services.validation import GenerationRequest, validate_generation_request

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """
# SEO CONTENT STRATEGIST

You are an expert SEO strategist combining competitive SERP analysis, Google
EEAT guidelines, semantic search optimization and content differentiation.

Write a data-driven, strategically differentiated blog article designed to
outrank competitors through superior value, not just word count.

Inputs:
- Primary keyword: {keyword}
- Secondary keywords: {secondary_keywords}
- Search intent: {search_intent}
- Target country: {target_country}
- Audience level: {audience_level}
- Tone: {tone}
- Target length: {word_count} words

Requirements:
- Match the content structure to the search intent.
- Use the primary keyword in the title, the first 100 words and at least one H2.
- Paragraphs of at most 3 sentences; use lists and tables where useful.
- Include 6-8 FAQs targeting "People Also Ask" queries.
- URL slug: primary keyword, 3-5 words, hyphens.

FINAL OUTPUT (JSON ONLY - NO MARKDOWN BLOCKS, NO EXTRA TEXT)

{{
  "competitiveIntelligence": {{
    "avgWordCount": "Estimated min-max word count of top competitors",
    "contentGaps": ["Gap 1", "Gap 2"],
    "mustHaveSubtopics": ["Topic 1", "Topic 2"],
    "serpFeatures": ["Feature 1"],
    "differentiationOpportunity": "Specific angle to outrank competitors"
  }},
  "differentiationStrategy": {{
    "primaryAngle": "What makes this uniquely better",
    "uniqueElements": ["Element 1", "Element 2"],
    "valueProposition": "One-sentence reader benefit"
  }},
  "titleOptions": ["Title 1", "Title 2", "Title 3"],
  "selectedTitle": "The highest-performing title from above",
  "metaDescription": "150-160 char description with the primary keyword",
  "urlSlug": "primary-keyword-format",
  "articleContent": "Complete HTML article with H2s, H3s, paragraphs and lists. Minimum {word_count} words.",
  "faqSection": [
    {{"question": "What is {keyword}?", "answer": "Direct 40-60 word answer"}}
  ],
  "eeatSignals": {{
    "authorBio": "Suggested author credentials",
    "citationPlan": ["Source 1", "Source 2"],
    "originalElements": ["Element 1"]
  }},
  "internalLinkingSuggestions": ["Suggestion 1"],
  "externalLinkingSuggestions": ["Suggestion 1"],
  "imageRequirements": ["Image 1"],
  "technicalSEOChecklist": {{
    "completed": ["Item 1", "Item 2"]
  }},
  "schemaMarkup": {{
    "types": ["Article", "FAQPage"],
    "implementation": "JSON-LD"
  }},
  "contentSummary": "Two-sentence summary of the article",
  "tags": ["tag1", "tag2", "tag3"],
  "postPublishChecklist": ["Step 1"]
}}

Return ONLY the JSON object with all fields populated. No markdown code blocks. No extra text.
""".strip()

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class ArticleResult:
    id: str
    title: str


@dataclass(frozen=True)
class GenerationResult:
    article: ArticleResult | None = None
    error: BlogAssistantError | None = None
    shop: str | None = None

    @property
    def success(self) -> bool:
        return self.article is not None

    @property
    def status_code(self) -> int:
        return self.error.status_code if self.error else 200

    def to_response(self) -> dict[str, object]:
        if self.article is None:
            message = self.error.message if self.error else "Generation failed."
            return {"success": False, "error": message}
        response: dict[str, object] = {
            "success": True,
            "articleId": self.article.id,
            "articleTitle": self.article.title,
        }
        if self.shop:
            response["shop"] = self.shop
        return response


def build_prompt(request: GenerationRequest) -> str:
    return PROMPT_TEMPLATE.format(
        keyword=request.keyword,
        secondary_keywords=request.secondary_keywords or "none",
        search_intent=request.search_intent.value,
        target_country=request.target_country.value,
        audience_level=request.audience_level.value,
        tone=request.tone.value,
        word_count=request.word_count,
    )


def derive_slug(title: str) -> str:
    return _NON_ALPHANUMERIC.sub("-", title.lower()).strip("-")


def bare_resource_id(resource_id: str) -> str:
    """Return the trailing path segment of an identifier such as ``gid://shopify/Article/42``."""
    return resource_id.rstrip("/").rsplit("/", 1)[-1]


class BlogGeneratorService:
    """Turn validated blog requests into draft articles in the store.

    One provider call and at most three content-store calls per request, in
    strict order. Nothing is retried and nothing is deduplicated: running the
    same request twice produces two articles. Two concurrent first requests
    may each create a blog; the store tolerates that.
    """

    def __init__(
        self,
        provider: TextGenerationProvider,
        content_store: ContentStore,
        rate_limiter: RateLimiter | None = None,
        strict_payload: bool = False,
        default_blog_title: str = "News",
        author: str = "SEO Assistant",
    ) -> None:
        self._provider = provider
        self._content_store = content_store
        self._rate_limiter = rate_limiter
        self._strict_payload = strict_payload
        self._default_blog_title = default_blog_title
        self._author = author

    async def handle(self, shop: str, fields: Mapping[str, object]) -> GenerationResult:
        try:
            await self._check_quota(shop)
            request = validate_generation_request(fields)
        except BlogAssistantError as exc:
            logger.info("Rejected blog generation for %s: %s", shop, exc.message)
            return GenerationResult(error=exc, shop=shop)

        result = await self.generate(request)
        return GenerationResult(article=result.article, error=result.error, shop=shop)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        try:
            article = await self._run(request)
        except BlogAssistantError as exc:
            logger.warning("Blog generation failed (%s): %s", type(exc).__name__, exc.message)
            return GenerationResult(error=exc)
        return GenerationResult(article=article)

    async def _check_quota(self, shop: str) -> None:
        if self._rate_limiter is None:
            return
        message = await self._rate_limiter.check(shop, BLOG_GENERATION)
        if message:
            raise ThrottledError.from_message(message)

    async def _run(self, request: GenerationRequest) -> ArticleResult:
        prompt = build_prompt(request)
        try:
            raw_text = await self._provider.generate(prompt)
        except ProviderError:
            raise
        except TimeoutError as exc:
            raise ProviderError(
                "The request took too long. Please try again with a simpler keyword."
            ) from exc

        parsed = parse_article_payload(raw_text, strict=self._strict_payload)
        if parsed.error is not None:
            raise parsed.error
        payload = parsed.payload

        container_id = await self._resolve_blog()
        record = await self._content_store.create_article(self._draft(container_id, payload))
        logger.info("Created draft article %s in blog %s", record.id, container_id)
        return ArticleResult(id=bare_resource_id(record.id), title=record.title)

    async def _resolve_blog(self) -> str:
        containers = await self._content_store.list_containers(limit=1)
        if containers:
            return containers[0].id

        logger.info("No blog found; creating %r", self._default_blog_title)
        container = await self._content_store.create_container(self._default_blog_title)
        if not container.id:
            raise ContentStoreError("Failed to create blog")
        return container.id

    def _draft(self, container_id: str, payload: GeneratedArticlePayload) -> ArticleDraft:
        return ArticleDraft(
            container_id=container_id,
            title=payload.selected_title,
            body=payload.article_content,
            summary=payload.meta_description,
            slug=payload.url_slug or derive_slug(payload.selected_title),
            tags=payload.tags,
            author=self._author,
            draft=True,
        )
