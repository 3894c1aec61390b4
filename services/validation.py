from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from services.errors import ValidationError

MAX_KEYWORD_LENGTH = 100
MAX_SECONDARY_KEYWORDS_LENGTH = 500
MIN_WORD_COUNT = 500
MAX_WORD_COUNT = 5000

_KEYWORD_PATTERN = re.compile(r"[a-zA-Z0-9 \-_()]+")
_SECONDARY_KEYWORDS_PATTERN = re.compile(r"[a-zA-Z0-9 \-_(),]+")
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


class SearchIntent(str, Enum):
    informational = "informational"
    commercial = "commercial"
    transactional = "transactional"


class Tone(str, Enum):
    authoritative = "authoritative"
    casual = "casual"
    formal = "formal"
    friendly = "friendly"


class AudienceLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class Country(str, Enum):
    US = "US"
    UK = "UK"
    CA = "CA"
    AU = "AU"
    IN = "IN"
    DE = "DE"
    FR = "FR"
    ES = "ES"


@dataclass(frozen=True)
class GenerationRequest:
    keyword: str
    secondary_keywords: str
    search_intent: SearchIntent
    target_country: Country
    audience_level: AudienceLevel
    tone: Tone
    word_count: int


def validate_keyword(keyword: object) -> str:
    if not keyword or not isinstance(keyword, str):
        raise ValidationError("keyword", "required", "Keyword is required")

    trimmed = keyword.strip()
    if not trimmed or len(trimmed) > MAX_KEYWORD_LENGTH:
        raise ValidationError(
            "keyword", "length", f"Keyword must be 1-{MAX_KEYWORD_LENGTH} characters"
        )
    if not _KEYWORD_PATTERN.fullmatch(trimmed):
        raise ValidationError("keyword", "charset", "Keyword contains invalid characters")
    return trimmed


def validate_secondary_keywords(keywords: object) -> str:
    if not keywords or not isinstance(keywords, str):
        return ""

    trimmed = keywords.strip()
    if not trimmed:
        return ""
    if len(trimmed) > MAX_SECONDARY_KEYWORDS_LENGTH:
        raise ValidationError(
            "secondaryKeywords",
            "length",
            f"Secondary keywords too long (max {MAX_SECONDARY_KEYWORDS_LENGTH} characters)",
        )
    if not _SECONDARY_KEYWORDS_PATTERN.fullmatch(trimmed):
        raise ValidationError(
            "secondaryKeywords", "charset", "Secondary keywords contain invalid characters"
        )
    return trimmed


def _validate_member(enum_type: type[Enum], field: str, label: str, value: object) -> Enum:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise ValidationError(field, "enum", f"Invalid {label}: {value}") from exc


def validate_search_intent(intent: object) -> SearchIntent:
    return _validate_member(SearchIntent, "searchIntent", "search intent", intent)


def validate_tone(tone: object) -> Tone:
    return _validate_member(Tone, "tone", "tone", tone)


def validate_audience_level(level: object) -> AudienceLevel:
    return _validate_member(AudienceLevel, "audienceLevel", "audience level", level)


def validate_country(country: object) -> Country:
    return _validate_member(Country, "targetCountry", "country", country)


def validate_word_count(count: object) -> int:
    message = f"Word count must be {MIN_WORD_COUNT}-{MAX_WORD_COUNT}"
    if isinstance(count, bool):
        raise ValidationError("wordCount", "range", message)
    if isinstance(count, int):
        value = count
    elif isinstance(count, str) and _INTEGER_PATTERN.fullmatch(count.strip()):
        try:
            value = int(count.strip())
        except ValueError:
            # digit strings past the interpreter's int conversion limit
            raise ValidationError("wordCount", "range", message) from None
    else:
        raise ValidationError("wordCount", "range", message)

    if value < MIN_WORD_COUNT or value > MAX_WORD_COUNT:
        raise ValidationError("wordCount", "range", message)
    return value


def validate_generation_request(fields: Mapping[str, object]) -> GenerationRequest:
    """Validate raw form fields, stopping at the first rejected one."""
    keyword = validate_keyword(fields.get("keyword"))
    secondary_keywords = validate_secondary_keywords(fields.get("secondaryKeywords"))
    search_intent = validate_search_intent(fields.get("searchIntent"))
    tone = validate_tone(fields.get("tone"))
    audience_level = validate_audience_level(fields.get("audienceLevel"))
    target_country = validate_country(fields.get("targetCountry"))
    word_count = validate_word_count(fields.get("wordCount"))

    return GenerationRequest(
        keyword=keyword,
        secondary_keywords=secondary_keywords,
        search_intent=search_intent,
        target_country=target_country,
        audience_level=audience_level,
        tone=tone,
        word_count=word_count,
    )
