"""Unit tests for the Gemini review engine."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import Any

import pytest
from pr_autoreview import review_engine
from pr_autoreview.review_engine import (
    ERROR_FALLBACK,
    NO_COMMENTS_FALLBACK,
    REVIEW_PROMPT_PREFIX,
    ReviewEngine,
    build_review_prompt,
)


class _StubModels:
    """Stands in for `genai.Client().models`."""

    def __init__(self, outcome: Any) -> None:
        self._outcome = outcome
        self.calls: list[dict[str, Any]] = []

    def generate_content(self, *, model: str, contents: str) -> Any:
        self.calls.append({"model": model, "contents": contents})
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


def make_engine(outcome: Any, *, model: str = "gemini-test") -> tuple[ReviewEngine, _StubModels]:
    """Build an engine around a stub client returning or raising `outcome`."""
    models = _StubModels(outcome)
    return ReviewEngine(SimpleNamespace(models=models), model=model), models


@pytest.mark.unit
def test_build_review_prompt_prefixes_instruction() -> None:
    prompt = build_review_prompt("@@ -1 +1 @@\n-a\n+b")
    assert prompt == f"{REVIEW_PROMPT_PREFIX}\n\n@@ -1 +1 @@\n-a\n+b"


@pytest.mark.unit
def test_build_review_prompt_treats_missing_patch_as_empty() -> None:
    assert build_review_prompt(None) == f"{REVIEW_PROMPT_PREFIX}\n\n"


@pytest.mark.unit
def test_review_diff_returns_response_text_verbatim() -> None:
    engine, models = make_engine(SimpleNamespace(text="  Looks fine, minor nit on line 3.\n"))

    result = engine.review_diff("+x = 1")

    assert result == "  Looks fine, minor nit on line 3.\n"
    assert models.calls == [
        {"model": "gemini-test", "contents": build_review_prompt("+x = 1")},
    ]
    assert engine.last_call_failed is False


@pytest.mark.unit
@pytest.mark.parametrize("text", ["", "   \n\t", None])
def test_review_diff_falls_back_when_text_is_empty(text: str | None) -> None:
    engine, _models = make_engine(SimpleNamespace(text=text))

    assert engine.review_diff("+x = 1") == NO_COMMENTS_FALLBACK
    assert engine.last_call_failed is False


@pytest.mark.unit
def test_review_diff_falls_back_when_response_has_no_text_attribute() -> None:
    engine, _models = make_engine(SimpleNamespace(candidates=[]))

    assert engine.review_diff("+x = 1") == NO_COMMENTS_FALLBACK


@pytest.mark.unit
def test_review_diff_returns_error_fallback_on_exception(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.ERROR, logger="pr_autoreview.review_engine")
    engine, _models = make_engine(RuntimeError("quota exceeded"))

    assert engine.review_diff("+x = 1") == ERROR_FALLBACK
    assert engine.last_call_failed is True
    assert "Error analyzing code with Gemini: quota exceeded" in caplog.text


@pytest.mark.unit
def test_last_call_failed_resets_on_next_successful_call() -> None:
    models = _StubModels(RuntimeError("boom"))
    engine = ReviewEngine(SimpleNamespace(models=models))
    engine.review_diff("+a")
    models._outcome = SimpleNamespace(text="ok")

    assert engine.review_diff("+b") == "ok"
    assert engine.last_call_failed is False


@pytest.mark.unit
def test_client_construction_error_becomes_error_fallback(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _raise_missing_key(api_key: str, *, timeout_seconds: float | None = None) -> Any:
        raise ValueError("Missing key inputs argument!")

    monkeypatch.setattr(review_engine, "build_genai_client", _raise_missing_key)
    engine = ReviewEngine(api_key="")

    assert engine.review_diff("+x = 1") == ERROR_FALLBACK
    assert engine.last_call_failed is True


@pytest.mark.unit
def test_client_is_built_once_with_key_and_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    built: list[tuple[str, float | None]] = []
    models = _StubModels(SimpleNamespace(text="fine"))

    def _build(api_key: str, *, timeout_seconds: float | None = None) -> Any:
        built.append((api_key, timeout_seconds))
        return SimpleNamespace(models=models)

    monkeypatch.setattr(review_engine, "build_genai_client", _build)
    engine = ReviewEngine(api_key="gemini-key", timeout_seconds=12.5)
    engine.review_diff("+a")
    engine.review_diff("+b")

    assert built == [("gemini-key", 12.5)]
    assert len(models.calls) == 2
