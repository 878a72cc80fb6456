"""Review orchestration entrypoints."""

from __future__ import annotations

import logging
from typing import Protocol

from pr_autoreview.github_client import (
    CallResult,
    ChangedFile,
    PullRequest,
    latest_pull_request,
)
from pr_autoreview.output import format_file_comment
from pr_autoreview.review_engine import CodeReviewer
from pr_autoreview.schema import FileReview, ReviewOutcome, RunStats, RunStatus

logger = logging.getLogger(__name__)


class Repository(Protocol):
    """Repository operations the review run depends on."""

    repo_full_name: str

    def list_pull_requests(self) -> CallResult[tuple[PullRequest, ...]]: ...

    def list_changed_files(self, pr_number: int) -> CallResult[tuple[ChangedFile, ...]]: ...

    def post_comment(self, pr_number: int, body: str) -> CallResult[None]: ...

    def approve(self, pr_number: int) -> CallResult[None]: ...


def review_latest_pull_request(
    repository: Repository,
    reviewer: CodeReviewer,
    *,
    dry_run: bool = False,
) -> ReviewOutcome:
    """Review every changed file of the newest open PR, then approve or leave it open.

    Files are reviewed one at a time in the order GitHub lists them. Any non-empty
    review text is posted as a comment and blocks approval. Repository failures are
    recorded on the outcome; none of them stops the run early except a failed PR or
    file listing, which ends it without posting anything.
    """
    failures: list[str] = []

    pulls_result = repository.list_pull_requests()
    if pulls_result.failure is not None:
        failures.append(f"list pull requests: {pulls_result.failure.describe()}")
    pull_request = latest_pull_request(pulls_result.value or ())
    if pull_request is None:
        logger.info("No open pull requests found.")
        return ReviewOutcome(
            status=RunStatus.NO_PULL_REQUEST,
            repository=repository.repo_full_name,
            dry_run=dry_run,
            failures=failures,
        )

    logger.info("Reviewing PR: #%s - %s", pull_request.number, pull_request.title)

    files_result = repository.list_changed_files(pull_request.number)
    if files_result.failure is not None:
        failures.append(f"list changed files: {files_result.failure.describe()}")
    changed_files = files_result.value or ()
    if not changed_files:
        logger.info("No files to review.")
        return ReviewOutcome(
            status=RunStatus.NO_FILES,
            repository=repository.repo_full_name,
            pr_number=pull_request.number,
            pr_title=pull_request.title,
            dry_run=dry_run,
            failures=failures,
        )

    has_issues = False
    stats = RunStats()
    file_reviews: list[FileReview] = []

    for changed_file in changed_files:
        logger.info("Analyzing file: %s", changed_file.filename)
        review_text = reviewer.review_diff(changed_file.patch)
        stats.files_reviewed += 1
        file_review = FileReview(
            filename=changed_file.filename,
            review_failed=bool(getattr(reviewer, "last_call_failed", False)),
        )
        if file_review.review_failed:
            stats.review_failures += 1

        if review_text:
            has_issues = True
            file_review.commented = True
            body = format_file_comment(changed_file.filename, review_text)
            if dry_run:
                logger.info("Dry run: skipping comment for file: %s", changed_file.filename)
            else:
                comment_result = repository.post_comment(pull_request.number, body)
                if comment_result.failure is None:
                    file_review.comment_posted = True
                    stats.comments_posted += 1
                    logger.info("Comments added for file: %s", changed_file.filename)
                else:
                    stats.comment_failures += 1
                    failures.append(
                        f"comment for {changed_file.filename}: "
                        f"{comment_result.failure.describe()}"
                    )
        file_reviews.append(file_review)

    if has_issues:
        logger.info("Issues found. PR not approved.")
        status = RunStatus.NOT_APPROVED
    else:
        status = RunStatus.APPROVED
        if dry_run:
            logger.info("Dry run: skipping approval of PR #%s.", pull_request.number)
        else:
            approval_result = repository.approve(pull_request.number)
            if approval_result.failure is None:
                stats.approval_posted = True
                logger.info("PR approved.")
            else:
                failures.append(f"approve: {approval_result.failure.describe()}")
                logger.warning("PR approval could not be posted.")

    return ReviewOutcome(
        status=status,
        repository=repository.repo_full_name,
        pr_number=pull_request.number,
        pr_title=pull_request.title,
        dry_run=dry_run,
        files=file_reviews,
        failures=failures,
        stats=stats,
    )


def run_review(
    repository: Repository,
    reviewer: CodeReviewer,
    *,
    dry_run: bool = False,
) -> ReviewOutcome:
    """Run one review pass; unexpected errors are logged and reported, never raised."""
    try:
        return review_latest_pull_request(repository, reviewer, dry_run=dry_run)
    except Exception as error:
        logger.exception("Error reviewing PR: %s", error)
        return ReviewOutcome(
            status=RunStatus.ERROR,
            repository=getattr(repository, "repo_full_name", ""),
            dry_run=dry_run,
            failures=[f"unexpected error: {error}"],
        )
