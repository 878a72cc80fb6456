"""GitHub comment bodies and run summary rendering."""

from __future__ import annotations

from pr_autoreview.schema import ReviewOutcome, RunStatus

_STATUS_HEADLINES = {
    RunStatus.NO_PULL_REQUEST: "No open pull requests found.",
    RunStatus.NO_FILES: "No files to review.",
    RunStatus.APPROVED: "PR approved.",
    RunStatus.NOT_APPROVED: "Issues found. PR not approved.",
    RunStatus.ERROR: "Review run failed.",
}


def format_file_comment(filename: str, review_text: str) -> str:
    """Build the PR comment body for one file's review."""
    return f"Comments for {filename}:\n{review_text}"


def render_run_summary(outcome: ReviewOutcome) -> str:
    """Render a plain-text summary of a review run."""
    lines = [f"Repository: {outcome.repository or '-'}"]
    if outcome.pr_number is not None:
        lines.append(f"Pull request: #{outcome.pr_number} - {outcome.pr_title}")
    headline = _STATUS_HEADLINES[outcome.status]
    if outcome.dry_run:
        headline = f"{headline} (dry run, nothing posted)"
    lines.append(f"Result: {headline}")

    stats = outcome.stats
    if outcome.files:
        lines.append(
            f"Files reviewed: {stats.files_reviewed}, comments posted: {stats.comments_posted}, "
            f"comment failures: {stats.comment_failures}, review failures: {stats.review_failures}"
        )
        for file_review in outcome.files:
            if file_review.comment_posted:
                marker = "commented"
            elif file_review.commented:
                marker = "comment not posted"
            else:
                marker = "clean"
            lines.append(f"  - {file_review.filename}: {marker}")

    if outcome.failures:
        lines.append("Failures:")
        lines.extend(f"  - {failure}" for failure in outcome.failures)
    return "\n".join(lines)
