"""Gemini-backed code review for a single file diff."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from google import genai
from google.genai import types

from pr_autoreview.config import DEFAULT_GEMINI_MODEL

logger = logging.getLogger(__name__)

REVIEW_PROMPT_PREFIX = "Review the following code and provide detailed comments:"
NO_COMMENTS_FALLBACK = "No detailed comments provided by the AI model."
ERROR_FALLBACK = "Error analyzing code."


class CodeReviewer(Protocol):
    """Anything that turns a diff into review text."""

    def review_diff(self, diff_text: str | None) -> str:
        """Return review text for one file's diff."""


def build_review_prompt(diff_text: str | None) -> str:
    """Prefix the diff with the fixed review instruction."""
    return f"{REVIEW_PROMPT_PREFIX}\n\n{diff_text or ''}"


def build_genai_client(api_key: str, *, timeout_seconds: float | None = None) -> genai.Client:
    """Build a Gemini client. The key is not validated here."""
    http_options = None
    if timeout_seconds is not None:
        # HttpOptions.timeout is in milliseconds.
        http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000))
    return genai.Client(api_key=api_key, http_options=http_options)


class ReviewEngine:
    """Send diffs to Gemini and return the review text.

    Never raises: an empty answer becomes `NO_COMMENTS_FALLBACK` and any error from
    the service becomes `ERROR_FALLBACK`. Both are non-empty, so callers treat them
    like a real review.
    """

    def __init__(
        self,
        client: Any = None,
        *,
        api_key: str = "",
        model: str = DEFAULT_GEMINI_MODEL,
        timeout_seconds: float | None = None,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self.model = model
        self.last_call_failed = False

    def _get_client(self) -> Any:
        # Construction errors (e.g. a missing key) surface as a failed review call.
        if self._client is None:
            self._client = build_genai_client(self._api_key, timeout_seconds=self._timeout_seconds)
        return self._client

    def review_diff(self, diff_text: str | None) -> str:
        self.last_call_failed = False
        try:
            response = self._get_client().models.generate_content(
                model=self.model,
                contents=build_review_prompt(diff_text),
            )
            text = getattr(response, "text", None) if response is not None else None
        except Exception as error:
            logger.error("Error analyzing code with Gemini: %s", error)
            self.last_call_failed = True
            return ERROR_FALLBACK

        if isinstance(text, str) and text.strip():
            return text
        return NO_COMMENTS_FALLBACK
