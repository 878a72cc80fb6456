"""Outcome contract for one review run."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RunStatus(StrEnum):
    """Terminal state of a review run."""

    NO_PULL_REQUEST = "no_pull_request"
    NO_FILES = "no_files"
    APPROVED = "approved"
    NOT_APPROVED = "not_approved"
    ERROR = "error"


class FileReview(BaseModel):
    """What happened to one changed file."""

    model_config = ConfigDict(extra="forbid")

    filename: str = Field(min_length=1)
    commented: bool = False
    comment_posted: bool = False
    review_failed: bool = False


class RunStats(BaseModel):
    """Rollup counters for one review run."""

    model_config = ConfigDict(extra="forbid")

    files_reviewed: int = Field(default=0, ge=0)
    comments_posted: int = Field(default=0, ge=0)
    comment_failures: int = Field(default=0, ge=0)
    review_failures: int = Field(default=0, ge=0)
    approval_posted: bool = False


class ReviewOutcome(BaseModel):
    """Structured result of a review run."""

    model_config = ConfigDict(extra="forbid")

    schema_version: str = Field(default="v1", pattern=r"^v\d+$")
    status: RunStatus
    repository: str = ""
    pr_number: int | None = Field(default=None, ge=1)
    pr_title: str = ""
    dry_run: bool = False
    files: list[FileReview] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)
    stats: RunStats = Field(default_factory=RunStats)

    @property
    def has_issues(self) -> bool:
        """Return whether any file produced a review comment."""
        return any(file_review.commented for file_review in self.files)

    @model_validator(mode="after")
    def validate_terminal_action(self) -> ReviewOutcome:
        """An approval can only follow a run where no file was commented on."""
        if self.stats.approval_posted and self.has_issues:
            raise ValueError("approval_posted cannot be set when a file was commented on")
        if self.stats.approval_posted and self.status is not RunStatus.APPROVED:
            raise ValueError("approval_posted requires status 'approved'")
        return self
