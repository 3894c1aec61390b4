from __future__ import annotations

import re

RETRY_GUIDANCE = "Please try again. If this persists, try a different keyword."
_RETRY_SECONDS = re.compile(r"(\d+) seconds")


class BlogAssistantError(RuntimeError):
    """Base class for every failure surfaced to the caller."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BlogAssistantError):
    """Raised when a user-supplied generation parameter is rejected."""

    status_code = 400

    def __init__(self, field: str, constraint: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.constraint = constraint


class ThrottledError(BlogAssistantError):
    """Raised when a shop exceeded its quota for an action."""

    status_code = 429

    def __init__(self, message: str, retry_after_seconds: int | None = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

    @classmethod
    def from_message(cls, message: str) -> ThrottledError:
        match = _RETRY_SECONDS.search(message)
        return cls(message, int(match.group(1)) if match else None)


class ProviderError(BlogAssistantError):
    """Raised when the text-generation call itself fails."""

    def __init__(self, message: str = "The AI service request failed. " + RETRY_GUIDANCE) -> None:
        super().__init__(message)


class PayloadError(BlogAssistantError):
    """The provider answered but its output is not a usable payload."""


class NoJsonFoundError(PayloadError):
    def __init__(self, sample: str) -> None:
        super().__init__(
            "Generation Error: AI response did not contain valid JSON. "
            "This might be a temporary issue. Please try again."
        )
        self.sample = sample


class MalformedJsonError(PayloadError):
    def __init__(self, offset: int, context: str = "") -> None:
        super().__init__(
            f"Generation Error: Invalid JSON from AI at position {offset}. "
            "The AI response format was incorrect. Please try again."
        )
        self.offset = offset
        self.context = context


class IncompletePayloadError(PayloadError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"Generation Error: AI response missing critical fields: {', '.join(missing)}. "
            "The generated content is incomplete. Please try again."
        )
        self.missing = missing


class ContentStoreError(BlogAssistantError):
    """Raised when the store's content API rejects a read or write."""
