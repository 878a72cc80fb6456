"""Typer CLI for the pull request auto-reviewer."""

from __future__ import annotations

import logging
from typing import Annotated

import httpx
import typer

from pr_autoreview.config import ReviewConfig, load_config
from pr_autoreview.github_client import (
    GitHubApiError,
    GitHubInputError,
    RepositoryClient,
    build_github_client,
    fetch_authenticated_user_login,
    list_pull_requests,
)
from pr_autoreview.observability import configure_logging
from pr_autoreview.orchestrator import run_review
from pr_autoreview.output import render_run_summary
from pr_autoreview.review_engine import ReviewEngine
from pr_autoreview.schema import ReviewOutcome, RunStatus

logger = logging.getLogger(__name__)

app = typer.Typer(help="Review the latest open pull request with Gemini and approve it when clean.")


def execute_review(
    config: ReviewConfig,
    *,
    dry_run: bool = False,
    timeout_seconds: float = 20,
    trust_env: bool = True,
) -> ReviewOutcome:
    """Build both clients from config and run one review pass."""
    reviewer = ReviewEngine(
        api_key=config.gemini_api_key,
        model=config.gemini_model,
        timeout_seconds=timeout_seconds,
    )
    try:
        http_client = build_github_client(
            config.github_token,
            timeout_seconds=timeout_seconds,
            trust_env=trust_env,
        )
    except ImportError as error:
        logger.error("Error reviewing PR: proxy transport dependency is missing (%s).", error)
        return ReviewOutcome(
            status=RunStatus.ERROR,
            repository=config.repo_full_name,
            dry_run=dry_run,
            failures=[f"proxy transport dependency is missing: {error}"],
        )

    with http_client:
        repository = RepositoryClient(http_client, config.repo_full_name)
        return run_review(repository, reviewer, dry_run=dry_run)


@app.command("review")
def review_command(
    owner: Annotated[
        str | None, typer.Option(help="Repository owner. Defaults to REPO_OWNER.")
    ] = None,
    repo: Annotated[
        str | None, typer.Option(help="Repository name. Defaults to REPO_NAME.")
    ] = None,
    model: Annotated[
        str | None, typer.Option(help="Gemini model. Defaults to GEMINI_MODEL.")
    ] = None,
    dry_run: Annotated[
        bool, typer.Option(help="Review files but skip posting comments and the approval.")
    ] = False,
    timeout_seconds: Annotated[
        float, typer.Option(help="Timeout in seconds for each GitHub and Gemini call.")
    ] = 20,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the run outcome as JSON.")
    ] = False,
    strict: Annotated[
        bool,
        typer.Option(help="Exit with code 1 when the run errored or any GitHub call failed."),
    ] = False,
    verbose: Annotated[bool, typer.Option(help="Enable debug logging.")] = False,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
) -> None:
    """Review the newest open pull request of the configured repository."""
    configure_logging(verbose=verbose)
    config = load_config().with_overrides(repo_owner=owner, repo_name=repo, gemini_model=model)
    missing = config.missing_settings()
    if missing:
        logger.warning("Missing configuration: %s.", ", ".join(missing))

    outcome = execute_review(
        config,
        dry_run=dry_run,
        timeout_seconds=timeout_seconds,
        trust_env=trust_env,
    )

    if json_output:
        typer.echo(outcome.model_dump_json(indent=2))
    else:
        typer.echo(render_run_summary(outcome))

    if strict and (outcome.status is RunStatus.ERROR or outcome.failures):
        raise typer.Exit(code=1)


@app.command("auth-check")
def auth_check_command(
    owner: Annotated[
        str | None, typer.Option(help="Repository owner. Defaults to REPO_OWNER.")
    ] = None,
    repo: Annotated[
        str | None, typer.Option(help="Repository name. Defaults to REPO_NAME.")
    ] = None,
    timeout_seconds: Annotated[
        int, typer.Option(help="GitHub API timeout in seconds for the validation call.")
    ] = 20,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
) -> None:
    """Validate the GitHub token and read access to the configured repository."""
    config = load_config().with_overrides(repo_owner=owner, repo_name=repo)
    if not config.github_token:
        typer.echo(
            "GitHub auth check failed: Missing GitHub token. "
            "Set GITHUB_TOKEN (preferred) or GH_TOKEN."
        )
        raise typer.Exit(code=1)

    try:
        with build_github_client(
            config.github_token,
            timeout_seconds=timeout_seconds,
            trust_env=trust_env,
        ) as client:
            login = fetch_authenticated_user_login(client=client)
            typer.echo(f"Authenticated as GitHub user '{login}'.")

            if config.repo_owner and config.repo_name:
                pull_requests = list_pull_requests(
                    client=client,
                    repo_full_name=config.repo_full_name,
                )
                typer.echo(
                    f"Repository access check passed for {config.repo_full_name} "
                    f"({len(pull_requests)} open pull request(s))."
                )
    except GitHubInputError as error:
        typer.echo(f"GitHub auth check failed: {error}")
        raise typer.Exit(code=1) from error
    except GitHubApiError as error:
        typer.echo(
            "GitHub auth check failed: "
            f"status={error.status_code} endpoint={error.endpoint}."
        )
        raise typer.Exit(code=1) from error
    except httpx.HTTPError as error:
        typer.echo(f"GitHub auth check failed: network error ({error}).")
        raise typer.Exit(code=1) from error
    except ImportError as error:
        typer.echo(
            "GitHub auth check failed: proxy transport dependency is missing. "
            "Try `pr-autoreview auth-check --no-trust-env`, or install `httpx[socks]`."
        )
        raise typer.Exit(code=1) from error

    if not config.gemini_api_key:
        typer.echo("Warning: GEMINI_API_KEY is not set; every file review will fail.")
    typer.echo("GitHub token setup is valid.")
