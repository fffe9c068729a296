"""Command-line front door for session-aware retrieval."""

import asyncio
import json
import sys
from urllib.parse import unquote

import click
import structlog
from pydantic import ValidationError

from sessionfetch.config.models import RetryPolicy
from sessionfetch.config.settings import get_settings
from sessionfetch.errors.models import ErrorKind
from sessionfetch.errors.validation import RequestValidationError, settings_error
from sessionfetch.observability.logging import configure_logging, get_logger
from sessionfetch.orchestrator import (
    AVAILABLE_STRATEGIES,
    DEFAULT_STRATEGY_NAMES,
    EscalationOrchestrator,
    RetrievalMetrics,
    build_strategies,
)


logger = structlog.get_logger()

EXIT_VALIDATION_ERROR = 2

EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.UNKNOWN: 1,
    ErrorKind.TIMEOUT: 4,
    ErrorKind.ACCESS_DENIED: 5,
    ErrorKind.UNAUTHORIZED: 6,
    ErrorKind.NETWORK_ERROR: 7,
}


def decode_url(value: str | None) -> str | None:
    """Decode a percent-encoded URL once, leaving plain URLs unchanged."""
    if value is None:
        return None
    if "://" not in value and "%3A" in value.upper():
        return unquote(value)
    return value


@click.group()
def cli() -> None:
    """Session-aware content retrieval."""


@cli.command("fetch")
@click.option("--target-url", "target_url", required=True, help="URL to retrieve.")
@click.option(
    "--base-url",
    "base_url",
    default=None,
    help="URL visited first to establish cookies and session headers.",
)
@click.option(
    "--budget",
    "budget",
    type=float,
    default=None,
    help="Total time budget in seconds.",
)
@click.option(
    "--max-attempts",
    "max_attempts",
    type=click.IntRange(1, 10),
    default=None,
    help="Attempts per strategy.",
)
@click.option(
    "--strategy",
    "strategy_names",
    type=click.Choice(AVAILABLE_STRATEGIES),
    multiple=True,
    help="Strategy to try, in order. Repeat to escalate.",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"]),
    default=None,
    help="Log output format.",
)
@click.option(
    "--log-level",
    default=None,
    help="Log level (DEBUG, INFO, WARNING, ERROR).",
)
def fetch_command(
    target_url: str,
    base_url: str | None,
    budget: float | None,
    max_attempts: int | None,
    strategy_names: tuple[str, ...],
    log_format: str | None,
    log_level: str | None,
) -> None:
    """Retrieve TARGET-URL and write its content to stdout."""
    try:
        settings = get_settings()
        config = settings.to_orchestrator_config()
    except ValidationError as e:
        click.echo(str(settings_error(e)), err=True)
        sys.exit(EXIT_VALIDATION_ERROR)

    if log_format is not None:
        settings = settings.model_copy(update={"log_format": log_format})
    if log_level is not None:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(
        level=settings.log_level_value,
        json_format=settings.log_format == "json",
    )
    log = get_logger().bind(component="cli")

    if max_attempts is not None:
        policy = RetryPolicy(
            **{**config.retry_policy.model_dump(), "max_attempts": max_attempts}
        )
        config = config.model_copy(update={"retry_policy": policy})

    strategies = build_strategies(
        strategy_names or DEFAULT_STRATEGY_NAMES,
        config,
        user_agent=settings.user_agent,
    )
    orchestrator = EscalationOrchestrator(strategies, config)

    try:
        result = asyncio.run(
            orchestrator.retrieve(
                target_url=decode_url(target_url),
                base_url=decode_url(base_url),
                total_budget_seconds=budget,
            )
        )
    except RequestValidationError as e:
        click.echo(str(e), err=True)
        sys.exit(EXIT_VALIDATION_ERROR)

    log.debug("metrics", **RetrievalMetrics.get_instance().to_dict())

    if result.content is not None:
        sys.stdout.buffer.write(result.content.body)
        sys.stdout.flush()
        return

    error = result.error
    if error is None:
        sys.exit(EXIT_CODES[ErrorKind.UNKNOWN])
    click.echo(json.dumps(error.to_dict(), indent=2), err=True)
    sys.exit(EXIT_CODES[error.kind])


def main() -> None:
    """Entry point for the sessionfetch command."""
    cli()


if __name__ == "__main__":
    main()
