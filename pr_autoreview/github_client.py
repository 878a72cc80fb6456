"""GitHub API wrapper and the repository client used by the review run."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_JSON_ACCEPT = "application/vnd.github+json"
FILES_PER_PAGE = 100

T = TypeVar("T")


class GitHubInputError(ValueError):
    """Raised when repository or PR input values are invalid."""


class GitHubApiError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, *, status_code: int, endpoint: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class GitHubAuthError(GitHubApiError):
    """Raised when GitHub rejects the credential (401, or 403 without rate limiting)."""


class GitHubRateLimitError(GitHubApiError):
    """Raised when GitHub API rate limiting prevents request completion."""


class GitHubMalformedResponseError(GitHubApiError):
    """Raised when a GitHub response does not have the expected shape."""


@dataclass(frozen=True, slots=True)
class PullRequest:
    """Open pull request as listed by GitHub."""

    number: int
    title: str
    created_at: str
    html_url: str = ""


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """Changed file from the pull request files API."""

    filename: str
    status: str
    patch: str | None


class FailureReason(StrEnum):
    """Why a repository call could not complete."""

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    MALFORMED_RESPONSE = "malformed_response"
    HTTP_ERROR = "http_error"
    INVALID_INPUT = "invalid_input"


@dataclass(frozen=True, slots=True)
class CallFailure:
    """Structured failure for one repository call."""

    reason: FailureReason
    message: str
    endpoint: str = ""
    status_code: int | None = None

    def describe(self) -> str:
        """Return a one-line description for logs and run summaries."""
        if self.status_code is None:
            return f"{self.reason}: {self.message}"
        return f"{self.reason} (status {self.status_code}): {self.message}"


@dataclass(frozen=True, slots=True)
class CallResult(Generic[T]):
    """Value of a repository call, or the reason it failed."""

    value: T | None = None
    failure: CallFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def _ensure_mapping(value: object, *, context: str) -> dict[str, Any]:
    """Ensure a response fragment is a JSON object."""
    if not isinstance(value, dict):
        raise GitHubMalformedResponseError(
            f"Expected JSON object for {context}.",
            status_code=500,
            endpoint=context,
        )
    return value


def _require_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read a required string field from payload."""
    value = payload.get(key)
    if not isinstance(value, str):
        raise GitHubMalformedResponseError(
            f"Expected string field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_int(payload: dict[str, Any], *, key: str, endpoint: str) -> int:
    """Read a required integer field from payload."""
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise GitHubMalformedResponseError(
            f"Expected integer field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _optional_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str | None:
    """Read a string-or-null field from payload."""
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise GitHubMalformedResponseError(
            f"Expected '{key}' to be a string or null in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _raise_http_error(response: httpx.Response, endpoint: str) -> None:
    """Raise a typed error for a non-success GitHub API response."""
    message = f"GitHub API request failed with status {response.status_code} for '{endpoint}'."
    status_code = response.status_code
    if status_code == 429 or (
        status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
    ):
        raise GitHubRateLimitError(message, status_code=status_code, endpoint=endpoint)
    if status_code in {401, 403}:
        raise GitHubAuthError(message, status_code=status_code, endpoint=endpoint)
    raise GitHubApiError(message, status_code=status_code, endpoint=endpoint)


def _request(
    client: httpx.Client,
    method: str,
    endpoint: str,
    *,
    payload: dict[str, Any] | None = None,
) -> httpx.Response:
    """Perform one GitHub API request; no retries."""
    headers = {"Accept": GITHUB_JSON_ACCEPT}
    response = client.request(method, endpoint, headers=headers, json=payload)
    if response.status_code >= 400:
        _raise_http_error(response, endpoint)
    return response


def _request_json_list(client: httpx.Client, endpoint: str) -> list[dict[str, Any]]:
    """Perform a GET request that returns an array of objects."""
    response = _request(client, "GET", endpoint)
    try:
        payload = response.json()
    except ValueError as error:
        raise GitHubMalformedResponseError(
            "Expected JSON body in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        ) from error
    if not isinstance(payload, list):
        raise GitHubMalformedResponseError(
            "Expected JSON array in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return [_ensure_mapping(item, context=endpoint) for item in payload]


def parse_repo_full_name(repo_full_name: str) -> tuple[str, str]:
    """Parse and validate repository input in owner/repo format."""
    owner, separator, repo = repo_full_name.strip().partition("/")
    if not separator or not owner or not repo or "/" in repo:
        raise GitHubInputError(
            f"Invalid repo '{repo_full_name}'. Expected format is owner/repo."
        )
    return owner, repo


def validate_pr_number(pr_number: int) -> int:
    """Validate and normalize pull request number input."""
    if pr_number <= 0:
        raise GitHubInputError(f"Invalid PR number '{pr_number}'. Expected a positive integer.")
    return pr_number


def list_pull_requests(*, client: httpx.Client, repo_full_name: str) -> tuple[PullRequest, ...]:
    """List open pull requests, newest first as requested from GitHub."""
    owner, repo = parse_repo_full_name(repo_full_name)
    endpoint = f"/repos/{owner}/{repo}/pulls?state=open&sort=created&direction=desc"
    rows = _request_json_list(client, endpoint)
    return tuple(
        PullRequest(
            number=_require_int(row, key="number", endpoint=endpoint),
            title=_require_str(row, key="title", endpoint=endpoint),
            created_at=_require_str(row, key="created_at", endpoint=endpoint),
            html_url=_optional_str(row, key="html_url", endpoint=endpoint) or "",
        )
        for row in rows
    )


def latest_pull_request(pull_requests: Sequence[PullRequest]) -> PullRequest | None:
    """Return the most recently created pull request, or None for an empty list.

    GitHub timestamps are ISO 8601 in UTC, so string order is chronological. Ties
    keep the order GitHub returned.
    """
    if not pull_requests:
        return None
    return sorted(pull_requests, key=lambda pull_request: pull_request.created_at, reverse=True)[0]


def list_changed_files(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
) -> tuple[ChangedFile, ...]:
    """Fetch all changed files for a pull request with pagination."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    base_endpoint = f"/repos/{owner}/{repo}/pulls/{normalized_pr_number}/files"

    files: list[ChangedFile] = []
    page = 1
    while True:
        endpoint = f"{base_endpoint}?per_page={FILES_PER_PAGE}&page={page}"
        rows = _request_json_list(client, endpoint)
        for row in rows:
            files.append(
                ChangedFile(
                    filename=_require_str(row, key="filename", endpoint=endpoint),
                    status=_optional_str(row, key="status", endpoint=endpoint) or "modified",
                    patch=_optional_str(row, key="patch", endpoint=endpoint),
                )
            )
        if len(rows) < FILES_PER_PAGE:
            break
        page += 1

    return tuple(files)


def create_issue_comment(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
    body: str,
) -> None:
    """Post a conversation comment on a pull request."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    endpoint = f"/repos/{owner}/{repo}/issues/{normalized_pr_number}/comments"
    _request(client, "POST", endpoint, payload={"body": body})


def create_approval_review(*, client: httpx.Client, repo_full_name: str, pr_number: int) -> None:
    """Submit an approving review with no body."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    endpoint = f"/repos/{owner}/{repo}/pulls/{normalized_pr_number}/reviews"
    _request(client, "POST", endpoint, payload={"event": "APPROVE"})


def fetch_authenticated_user_login(*, client: httpx.Client) -> str:
    """Fetch authenticated GitHub user login for token validation."""
    endpoint = "/user"
    response = _request(client, "GET", endpoint)
    payload = _ensure_mapping(response.json(), context=endpoint)
    return _require_str(payload, key="login", endpoint=endpoint)


def build_github_client(
    token: str,
    timeout_seconds: float = 20,
    *,
    trust_env: bool = True,
) -> httpx.Client:
    """Build an authenticated GitHub HTTP client. The token is not validated here."""
    headers = {
        "Accept": GITHUB_JSON_ACCEPT,
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    return httpx.Client(
        base_url=GITHUB_API_BASE_URL,
        headers=headers,
        timeout=timeout_seconds,
        trust_env=trust_env,
    )


def _failure_from_error(error: Exception) -> CallFailure:
    """Map a caught exception to a structured call failure."""
    if isinstance(error, GitHubMalformedResponseError):
        reason = FailureReason.MALFORMED_RESPONSE
    elif isinstance(error, GitHubRateLimitError):
        reason = FailureReason.RATE_LIMIT
    elif isinstance(error, GitHubAuthError):
        reason = FailureReason.AUTHENTICATION
    elif isinstance(error, GitHubApiError):
        reason = FailureReason.HTTP_ERROR
    elif isinstance(error, GitHubInputError):
        reason = FailureReason.INVALID_INPUT
    elif isinstance(error, httpx.HTTPError):
        reason = FailureReason.NETWORK
    else:
        reason = FailureReason.MALFORMED_RESPONSE

    if isinstance(error, GitHubApiError):
        return CallFailure(
            reason=reason,
            message=str(error),
            endpoint=error.endpoint,
            status_code=error.status_code,
        )
    return CallFailure(reason=reason, message=str(error) or type(error).__name__)


class RepositoryClient:
    """Repository operations for one configured repository.

    Every operation is a containment boundary: GitHub, network and payload errors
    are logged and returned as a failed `CallResult` instead of being raised.
    """

    def __init__(self, client: httpx.Client, repo_full_name: str) -> None:
        self._client = client
        self.repo_full_name = repo_full_name

    def _contain(self, action: str, call: Callable[[], T]) -> CallResult[T]:
        try:
            return CallResult(value=call())
        except (GitHubApiError, httpx.HTTPError, ValueError) as error:
            failure = _failure_from_error(error)
        logger.error("Error %s: %s", action, failure.describe())
        return CallResult(failure=failure)

    def list_pull_requests(self) -> CallResult[tuple[PullRequest, ...]]:
        return self._contain(
            "fetching PR",
            lambda: list_pull_requests(client=self._client, repo_full_name=self.repo_full_name),
        )

    def list_changed_files(self, pr_number: int) -> CallResult[tuple[ChangedFile, ...]]:
        return self._contain(
            "fetching PR files",
            lambda: list_changed_files(
                client=self._client,
                repo_full_name=self.repo_full_name,
                pr_number=pr_number,
            ),
        )

    def post_comment(self, pr_number: int, body: str) -> CallResult[None]:
        return self._contain(
            "posting comment",
            lambda: create_issue_comment(
                client=self._client,
                repo_full_name=self.repo_full_name,
                pr_number=pr_number,
                body=body,
            ),
        )

    def approve(self, pr_number: int) -> CallResult[None]:
        return self._contain(
            "approving PR",
            lambda: create_approval_review(
                client=self._client,
                repo_full_name=self.repo_full_name,
                pr_number=pr_number,
            ),
        )
