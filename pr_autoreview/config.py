"""Run configuration loaded once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


@dataclass(frozen=True, slots=True)
class ReviewConfig:
    """Credentials and target repository for one review run."""

    github_token: str
    gemini_api_key: str
    repo_owner: str
    repo_name: str
    gemini_model: str = DEFAULT_GEMINI_MODEL

    @property
    def repo_full_name(self) -> str:
        """Return the repository in owner/repo format."""
        return f"{self.repo_owner}/{self.repo_name}"

    def missing_settings(self) -> tuple[str, ...]:
        """Return names of required settings that are empty."""
        required = {
            "GITHUB_TOKEN": self.github_token,
            "GEMINI_API_KEY": self.gemini_api_key,
            "REPO_OWNER": self.repo_owner,
            "REPO_NAME": self.repo_name,
        }
        return tuple(name for name, value in required.items() if not value)

    def with_overrides(
        self,
        *,
        repo_owner: str | None = None,
        repo_name: str | None = None,
        gemini_model: str | None = None,
    ) -> ReviewConfig:
        """Return a copy with any non-empty override applied."""
        return replace(
            self,
            repo_owner=repo_owner or self.repo_owner,
            repo_name=repo_name or self.repo_name,
            gemini_model=gemini_model or self.gemini_model,
        )


def _first_env(*names: str) -> str:
    """Return the first non-empty environment value among names."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return ""


def _resolve_repository() -> tuple[str, str]:
    """Resolve owner and name from REPO_OWNER/REPO_NAME or GITHUB_REPOSITORY."""
    owner = _first_env("REPO_OWNER")
    name = _first_env("REPO_NAME")
    if owner and name:
        return owner, name

    repository = _first_env("GITHUB_REPOSITORY")
    fallback_owner, separator, fallback_name = repository.partition("/")
    if separator:
        return owner or fallback_owner, name or fallback_name
    return owner, name


def load_config(dotenv_path: Path | None = None) -> ReviewConfig:
    """Load configuration from process environment, reading `.env` first.

    Values already present in the environment win over `.env`. Missing values are
    kept as empty strings; the GitHub and Gemini calls fail downstream instead.
    """
    load_dotenv(dotenv_path=dotenv_path or Path.cwd() / ".env", override=False)
    owner, name = _resolve_repository()
    return ReviewConfig(
        github_token=_first_env("GITHUB_TOKEN", "GH_TOKEN"),
        gemini_api_key=_first_env("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        repo_owner=owner,
        repo_name=name,
        gemini_model=_first_env("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
    )
