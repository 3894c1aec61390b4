"""Recover structured payloads from free-form model output.

Model responses are untrusted text: they should hold a single JSON value but
may be wrapped in a code fence or surrounded by prose. The helpers here strip
the fence, locate the JSON region, parse it and check the required keys,
raising one of the payload errors from ``services.errors`` on each failure.
``parse_article_payload`` wraps the whole pipeline into a tagged result.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from services.errors import (
    IncompletePayloadError,
    MalformedJsonError,
    NoJsonFoundError,
    PayloadError,
)

logger = logging.getLogger(__name__)

CORE_FIELDS: tuple[str, ...] = ("selectedTitle", "articleContent", "metaDescription")
STRICT_FIELDS: tuple[str, ...] = CORE_FIELDS + (
    "competitiveIntelligence",
    "differentiationStrategy",
    "eeatSignals",
    "technicalSEOChecklist",
)

SAMPLE_CHARS = 200
CONTEXT_CHARS = 40

_LEADING_FENCE = re.compile(r"\A```\w*\n?")
_TRAILING_FENCE = re.compile(r"\n?```\Z")
_OBJECT_AT_END = re.compile(r"\{[\s\S]*\}\Z")
_OBJECT_ANYWHERE = re.compile(r"\{[\s\S]*\}")
_ARRAY_OF_OBJECTS = re.compile(r"\[\s*\{[\s\S]*\}\s*\]")

_KNOWN_KEYS = {
    "selectedTitle",
    "articleContent",
    "metaDescription",
    "urlSlug",
    "tags",
    "titleOptions",
    "faqSection",
    "contentSummary",
}


@dataclass(frozen=True)
class GeneratedArticlePayload:
    selected_title: str
    article_content: str
    meta_description: str
    tags: list[str] = field(default_factory=list)
    url_slug: str | None = None
    title_options: list[str] = field(default_factory=list)
    faq_section: list[dict[str, str]] = field(default_factory=list)
    content_summary: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ParseResult:
    payload: GeneratedArticlePayload | None = None
    error: PayloadError | None = None

    @property
    def ok(self) -> bool:
        return self.payload is not None


def _sample(text: str) -> str:
    if len(text) <= SAMPLE_CHARS:
        return text
    return text[:SAMPLE_CHARS] + "..."


def strip_code_fence(text: str) -> str:
    cleaned = _LEADING_FENCE.sub("", text, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json_region(text: str) -> str:
    cleaned = strip_code_fence(text)
    match = _OBJECT_AT_END.search(cleaned) or _OBJECT_ANYWHERE.search(cleaned)
    if not match:
        logger.warning("No JSON object found in model output (%s chars)", len(text))
        raise NoJsonFoundError(_sample(text))
    return match.group(0)


def parse_json_region(region: str) -> Any:
    try:
        return json.loads(region)
    except json.JSONDecodeError as exc:
        start = max(exc.pos - CONTEXT_CHARS, 0)
        context = region[start : exc.pos + CONTEXT_CHARS]
        logger.warning("Malformed JSON at position %s: %s (near %r)", exc.pos, exc.msg, context)
        raise MalformedJsonError(exc.pos, context) from exc


def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return not value


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def check_required_fields(data: Mapping[str, Any], required: Sequence[str]) -> None:
    missing = [key for key in required if _is_blank(data.get(key))]
    if missing:
        logger.warning("Model output missing required fields: %s", ", ".join(missing))
        raise IncompletePayloadError(missing)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _faq_list(value: Any) -> list[dict[str, str]]:
    if not isinstance(value, list):
        return []
    entries: list[dict[str, str]] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        question = item.get("question")
        answer = item.get("answer")
        if isinstance(question, str) and isinstance(answer, str):
            entries.append({"question": question, "answer": answer})
    return entries


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def build_article_payload(data: Mapping[str, Any]) -> GeneratedArticlePayload:
    return GeneratedArticlePayload(
        selected_title=str(data["selectedTitle"]).strip(),
        article_content=str(data["articleContent"]),
        meta_description=str(data["metaDescription"]).strip(),
        tags=_string_list(data.get("tags")),
        url_slug=_optional_text(data.get("urlSlug")),
        title_options=_string_list(data.get("titleOptions")),
        faq_section=_faq_list(data.get("faqSection")),
        content_summary=_optional_text(data.get("contentSummary")),
        extras={key: value for key, value in data.items() if key not in _KNOWN_KEYS},
    )


def parse_article_payload(raw_text: str, strict: bool = False) -> ParseResult:
    try:
        data = parse_json_region(extract_json_region(raw_text))
        if not isinstance(data, dict):
            raise MalformedJsonError(0, _sample(str(data)))
        check_required_fields(data, STRICT_FIELDS if strict else CORE_FIELDS)
    except PayloadError as exc:
        logger.error("Failed to parse model output: %s", _sample(raw_text))
        return ParseResult(error=exc)
    return ParseResult(payload=build_article_payload(data))


def parse_topic_list(raw_text: str) -> list[dict[str, Any]]:
    """Parse a JSON array of topic objects, dropping entries without a title or keyword."""
    match = _ARRAY_OF_OBJECTS.search(raw_text)
    if not match:
        logger.warning("No JSON array found in topic research output (%s chars)", len(raw_text))
        raise NoJsonFoundError(_sample(raw_text))

    data = parse_json_region(match.group(0))
    if not isinstance(data, list):
        raise MalformedJsonError(0, _sample(match.group(0)))

    topics = []
    for item in data:
        if not isinstance(item, dict):
            continue
        if not _is_text(item.get("title")) or not _is_text(item.get("primaryKeyword")):
            logger.debug("Skipping incomplete topic entry: %s", item)
            continue
        topics.append(item)
    return topics
