"""Command-line interface for verdict."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from verdict.adapters import HTTPAdapterSettings, HTTPTargetAdapter, SimulatedTargetAdapter, TargetAdapter
from verdict.config import VerdictSettings
from verdict.errors import VerdictError
from verdict.execution import ExecutionEngine, RunTracer
from verdict.models import ResultStatus, TestResults
from verdict.notifications import LoggingNotifier, Notifier, WebhookNotifier
from verdict.reports import ConsoleReporter
from verdict.service import TestingService
from verdict.storage import SQLiteSuiteStore
from verdict.templates import TemplateRegistry
from verdict.tracing import init_tracing


logger = logging.getLogger(__name__)


def configure_logging(level: str, console: Console | None = None) -> None:
    handler = RichHandler(console=console or Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root = logging.getLogger("verdict")
    root.handlers[:] = [handler]
    root.setLevel(level.upper())


def load_suite_definition(path: Path) -> dict[str, Any]:
    """Read a suite definition JSON file (camelCase keys)."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{path} is not valid JSON: {e}", param_hint="SUITE_FILE") from e
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a JSON object", param_hint="SUITE_FILE")
    for key in ("name", "targetType", "targetId"):
        if key not in data:
            raise click.BadParameter(f"{path} is missing '{key}'", param_hint="SUITE_FILE")
    return data


def build_adapter(kind: str, settings: VerdictSettings) -> TargetAdapter:
    if kind == "http":
        if not settings.adapter_base_url:
            raise click.UsageError("--base-url or VERDICT_ADAPTER_BASE_URL is required for the http adapter")
        return HTTPTargetAdapter(HTTPAdapterSettings(base_url=settings.adapter_base_url))
    return SimulatedTargetAdapter(latency_ms=(10, 50))


def build_notifier(settings: VerdictSettings) -> Notifier:
    if settings.webhook_url:
        return WebhookNotifier(settings.webhook_url)
    return LoggingNotifier()


@click.group()
@click.option("--log-level", default=None, help="Log level for verdict loggers (default: VERDICT_LOG_LEVEL or WARNING)")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """Verdict - run test suites against agents, workflows, deployments and personas."""
    settings = VerdictSettings()
    if log_level:
        settings.log_level = log_level
    configure_logging(settings.log_level)
    ctx.obj = settings


@main.command()
@click.argument("suite_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--owner", default="local", show_default=True, help="Owner recorded on the stored suite")
@click.option("--adapter", "adapter_kind", type=click.Choice(["simulated", "http"]), default="simulated", show_default=True)
@click.option("--base-url", default=None, help="Root URL of the HTTP subject executors")
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), default=None, help="SQLite database file")
@click.option("--trace", is_flag=True, help="Write OpenTelemetry spans to the trace output file")
@click.option("--trace-output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--artifacts-dir", type=click.Path(file_okay=False, path_type=Path), default=None)
@click.option("-v", "--verbose", count=True, help="Show failing assertions and metrics")
@click.option("-q", "--quiet", is_flag=True, help="Only print the summary line")
@click.pass_obj
def run(
    settings: VerdictSettings,
    suite_file: Path,
    owner: str,
    adapter_kind: str,
    base_url: str | None,
    db_path: Path | None,
    trace: bool,
    trace_output: Path | None,
    artifacts_dir: Path | None,
    verbose: int,
    quiet: bool,
) -> None:
    """Store the suite defined in SUITE_FILE and run it.

    Exits with status 0 when every case passed and 1 otherwise.
    """
    settings.adapter_base_url = base_url or settings.adapter_base_url
    settings.db_path = db_path or settings.db_path
    settings.trace = trace or settings.trace
    settings.trace_output = trace_output or settings.trace_output
    settings.artifacts_dir = artifacts_dir or settings.artifacts_dir

    definition = load_suite_definition(suite_file)
    adapter = build_adapter(adapter_kind, settings)
    notifier = build_notifier(settings)
    reporter = ConsoleReporter(verbosity=-1 if quiet else verbose)

    if settings.trace:
        init_tracing(output_path=settings.trace_output)

    store = SQLiteSuiteStore(settings.db_path)
    engine = ExecutionEngine(
        store,
        adapter,
        notifier,
        tracer=RunTracer(enabled=settings.trace, include_content=settings.trace_content),
        reporter=reporter,
        artifacts_dir=settings.artifacts_dir,
        default_max_concurrency=settings.default_max_concurrency,
    )
    service = TestingService(store, engine)

    async def execute() -> TestResults:
        try:
            suite = service.create_suite(
                owner=definition.get("owner", owner),
                name=definition["name"],
                target_type=definition["targetType"],
                target_id=definition["targetId"],
                test_cases=definition.get("testCases", []),
                configuration=definition.get("configuration"),
                description=definition.get("description"),
            )
            logger.info("Stored suite %s from %s", suite.id, suite_file)
            results = await service.run_suite(suite.id)
            if settings.trace:
                await reporter.on_tracing_enabled(settings.trace_output)
            return results
        finally:
            if isinstance(adapter, HTTPTargetAdapter):
                await adapter.aclose()
            if isinstance(notifier, WebhookNotifier):
                await notifier.aclose()

    try:
        results = asyncio.run(execute())
    except (VerdictError, ValidationError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"results: {results.id}")
    raise SystemExit(0 if results.status == ResultStatus.PASSED else 1)


@main.command()
def templates() -> None:
    """List built-in suite templates."""
    table = Table(title="Templates")
    for column in ("id", "name", "target", "cases", "mode"):
        table.add_column(column)
    for template in TemplateRegistry().list_all():
        mode = "parallel" if template.configuration.parallel else "sequential"
        table.add_row(template.id, template.name, template.target_type.value, str(len(template.test_cases)), mode)
    Console().print(table)


@main.command()
@click.argument("owner")
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def suites(settings: VerdictSettings, owner: str, db_path: Path | None) -> None:
    """List the stored suites of OWNER, newest first."""
    try:
        found = SQLiteSuiteStore(db_path or settings.db_path).list_by_owner(owner)
    except VerdictError as e:
        raise click.ClickException(str(e)) from e

    if not found:
        click.echo(f"No suites for {owner}")
        return
    console = Console()
    for suite in found:
        last_run = suite.last_run_at.strftime("%Y-%m-%d %H:%M") if suite.last_run_at else "never"
        console.print(
            f"[bold]{escape(suite.name)}[/bold] [dim]{suite.id}[/dim]\n"
            f"  {suite.target_type.value}/{escape(suite.target_id)} - {suite.status.value}, "
            f"{len(suite.test_cases)} cases, last run {last_run}",
            soft_wrap=True,
        )


@main.command()
@click.argument("suite_id")
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def reset(settings: VerdictSettings, suite_id: str, db_path: Path | None) -> None:
    """Mark SUITE_ID as failed when a lost run left it stored as running."""
    store = SQLiteSuiteStore(db_path or settings.db_path)
    engine = ExecutionEngine(store, SimulatedTargetAdapter())
    try:
        suite = TestingService(store, engine).reset_suite(suite_id)
    except VerdictError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"{suite.id}: {suite.status.value}")


@main.command()
@click.argument("results_id")
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def results(settings: VerdictSettings, results_id: str, db_path: Path | None) -> None:
    """Print stored results RESULTS_ID as JSON."""
    store = SQLiteSuiteStore(db_path or settings.db_path)
    try:
        found = store.load_results(results_id)
    except VerdictError as e:
        raise click.ClickException(str(e)) from e
    if found is None:
        raise click.ClickException(f"Test results not found: {results_id}")
    click.echo(json.dumps(found.to_dict(), indent=2))


if __name__ == "__main__":
    main()
