"""CLI commands for serverlink."""

import logging
import sys
import uuid

import click
import structlog
from pydantic import ValidationError

from serverlink import __version__
from serverlink.fetch.config import FetchConfig
from serverlink.fetch.metrics import FetchMetrics
from serverlink.link.coordinator import WaitCoordinator, get
from serverlink.link.errors import LinkError, LinksNotReadyError
from serverlink.link.holder import LinkStatusHolder, StatusResponder
from serverlink.link.metrics import LinkMetrics
from serverlink.link.models import Status, WaitOptions
from serverlink.observability.logging import bind_run_context, configure_logging
from serverlink.settings import AppSettings, get_settings


logger = structlog.get_logger()

COMPONENT_CLI = "cli"


def _setup_logging(settings: AppSettings, verbose: bool, json_logs: bool | None) -> None:
    """Configure logging from settings and flags.

    Args:
        settings: Environment settings.
        verbose: Force DEBUG level.
        json_logs: Override for JSON output, None to use settings.
    """
    level = logging.DEBUG if verbose else logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    configure_logging(
        level=level,
        json_format=settings.log_json if json_logs is None else json_logs,
    )


def _build_wait_options(  # noqa: PLR0913
    settings: AppSettings,
    path: str | None,
    max_attempts: int | None,
    min_delay_ms: int | None,
    max_delay_ms: int | None,
    factor: float | None,
    timeout: float | None,
) -> WaitOptions:
    """Merge command-line flags over environment settings.

    Returns:
        Wait options for the coordinator.
    """
    flags = {
        "path": path,
        "max_attempts": max_attempts,
        "min_delay_ms": min_delay_ms,
        "max_delay_ms": max_delay_ms,
        "backoff_factor": factor,
        "timeout_seconds": timeout,
    }
    overrides = {name: value for name, value in flags.items() if value is not None}
    return settings.model_copy(update=overrides).wait_options()


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.option(
    "--json-logs/--no-json-logs",
    default=None,
    help="Use JSON format for logs (default: SERVERLINK_LOG_JSON).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool | None) -> None:
    """Declare and await server link readiness."""
    settings = get_settings()
    _setup_logging(settings, verbose, json_logs)
    ctx.obj = settings


@cli.command(name="wait")
@click.argument("hosts", nargs=-1, required=True)
@click.option("--path", default=None, help="Status endpoint path.")
@click.option(
    "--max-attempts", type=click.IntRange(min=1), default=None, help="Probes per host."
)
@click.option(
    "--min-delay-ms", type=click.IntRange(min=0), default=None, help="First backoff delay."
)
@click.option(
    "--max-delay-ms", type=click.IntRange(min=0), default=None, help="Backoff delay cap."
)
@click.option(
    "--factor", type=click.FloatRange(min=1.0), default=None, help="Backoff factor."
)
@click.option(
    "--timeout", type=click.FloatRange(min=0.0, min_open=True), default=None,
    help="Per-probe timeout in seconds.",
)
@click.pass_obj
def wait_command(  # noqa: PLR0913
    settings: AppSettings,
    hosts: tuple[str, ...],
    path: str | None,
    max_attempts: int | None,
    min_delay_ms: int | None,
    max_delay_ms: int | None,
    factor: float | None,
    timeout: float | None,
) -> None:
    """Wait until every HOST reports online."""
    try:
        options = _build_wait_options(
            settings, path, max_attempts, min_delay_ms, max_delay_ms, factor, timeout
        )
    except ValidationError as e:
        click.echo(f"Error: invalid options: {e}", err=True)
        sys.exit(2)

    run_id = str(uuid.uuid4())
    bind_run_context(run_id)
    log = logger.bind(component=COMPONENT_CLI, command="wait")
    coordinator = WaitCoordinator(options)

    try:
        coordinator.wait(list(hosts))
    except LinksNotReadyError as e:
        log.warning("links_not_ready", ready_count=e.ready_count)
        for host, outcome in zip(e.hosts, e.outcomes, strict=True):
            click.echo(f"{host}\t{_describe(outcome)}")
        sys.exit(1)
    finally:
        log.info(
            "wait_metrics",
            link=LinkMetrics.get_instance().to_dict(),
            fetch=FetchMetrics.get_instance().to_dict(),
        )

    for host in hosts:
        click.echo(f"{host}\t{Status.ONLINE.value}")


def _describe(outcome: Status | LinkError) -> str:
    """Render one host outcome for terminal output."""
    if isinstance(outcome, LinkError):
        return f"{outcome.code} after {outcome.attempts_used} attempt(s): {outcome.message}"
    return outcome.value


@cli.command(name="get")
@click.argument("host")
@click.option("--path", default=None, help="Status endpoint path.")
@click.pass_obj
def get_command(settings: AppSettings, host: str, path: str | None) -> None:
    """Print HOST's current status without retrying."""
    status = get(
        host,
        path=path or settings.path,
        config=FetchConfig(timeout_seconds=settings.timeout_seconds),
    )
    click.echo(status.value)


@cli.command(name="serve")
@click.option(
    "--status",
    type=click.Choice([s.value for s in Status if s != Status.INVALID]),
    default=Status.ONLINE.value,
    show_default=True,
    help="Status to advertise.",
)
@click.option("--path", default=None, help="Status endpoint path.")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address.")
@click.option("--port", type=click.IntRange(0, 65535), default=8080, show_default=True)
@click.pass_obj
def serve_command(
    settings: AppSettings,
    status: str,
    path: str | None,
    host: str,
    port: int,
) -> None:
    """Advertise a status over HTTP until interrupted."""
    responder = StatusResponder(
        LinkStatusHolder(status),
        path=path or settings.path,
        host=host,
        port=port,
    )
    click.echo(f"Serving '{status}' at {responder.url}{path or settings.path}")
    try:
        responder.serve_forever()
    except KeyboardInterrupt:
        click.echo("Stopped.")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
