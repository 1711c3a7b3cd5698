"""Console reporter for suite runs using Rich."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from verdict.models import ResultStatus
from verdict.reports.base import Reporter


if TYPE_CHECKING:
    from verdict.models import TestCaseResult, TestResults, TestSuite


_STATUS_CONFIG: dict[ResultStatus, tuple[str, str, str]] = {
    ResultStatus.PASSED: ("✓", "green", "PASSED"),
    ResultStatus.FAILED: ("✗", "red", "FAILED"),
    ResultStatus.ERROR: ("!", "yellow", "ERROR"),
    ResultStatus.SKIPPED: ("-", "yellow", "SKIPPED"),
}


class ConsoleReporter(Reporter):
    """Prints one line per case and a colored summary.

    ``verbosity`` below zero prints only the summary; above zero prints the
    failing assertion messages and case errors under each line.
    """

    def __init__(self, console: Console | None = None, verbosity: int = 0) -> None:
        self.console = console or Console(file=sys.__stdout__)
        self.verbosity = verbosity
        self._failures: list[TestCaseResult] = []

    def _status_color(self, status: ResultStatus) -> str:
        return _STATUS_CONFIG[status][1]

    def _print_section_header(self, title: str) -> None:
        width = self.console.width
        header_title = f" {title} "
        fill = max(width - len(header_title), 0)
        left = fill // 2
        self.console.print("=" * left + header_title + "=" * (fill - left))

    async def on_run_start(self, suite: TestSuite) -> None:
        self._failures = []
        self._print_section_header("VERDICT RUN STARTS")
        mode = "parallel" if suite.configuration.parallel else "sequential"
        self.console.print(
            f"suite: {escape(suite.name)} ({suite.id}) -- target {suite.target_type.value}/{escape(suite.target_id)}"
        )
        self.console.print(f"[bold]{len(suite.enabled_cases)} enabled cases[/bold], {mode}\n")

    async def on_case_complete(self, result: TestCaseResult) -> None:
        if result.status.is_failure:
            self._failures.append(result)
        if self.verbosity < 0:
            return

        symbol, color, label = _STATUS_CONFIG[result.status]
        duration = f"[dim]({result.duration:.1f}ms)[/dim]"
        attempts = f" [dim]x{result.attempts}[/dim]" if result.attempts > 1 else ""
        self.console.print(f"  [{color}]{symbol}[/{color}] {escape(result.name)} {duration}{attempts} [{color}]{label}[/{color}]")

        if self.verbosity > 0:
            if result.error:
                self.console.print(f"      [yellow]{escape(result.error)}[/yellow]")
            for assertion in result.assertions:
                if not assertion.passed:
                    self.console.print(f"      [red]{escape(assertion.message)}[/red]")

    async def on_run_cancelled(self, suite: TestSuite) -> None:
        self.console.print(f"[yellow]Run of '{escape(suite.name)}' cancelled.[/yellow]")

    async def on_run_complete(self, suite: TestSuite, results: TestResults) -> None:
        self.console.print()
        if self._failures and self.verbosity >= 0:
            self._print_failures()

        if self.verbosity > 0:
            self._print_metrics(results)

        s = results.summary
        parts = []
        if s.passed:
            parts.append(f"[green]{s.passed} passed[/green]")
        if s.failed:
            parts.append(f"[red]{s.failed} failed[/red]")
        if s.errors:
            parts.append(f"[yellow]{s.errors} errors[/yellow]")
        if s.skipped:
            parts.append(f"[yellow]{s.skipped} skipped[/yellow]")
        summary = ", ".join(parts) or "no cases"
        color = self._status_color(results.status)
        self.console.print(
            f"[{color}]{results.status.value.upper()}[/{color}] {summary} "
            f"[dim]in {results.duration / 1000:.2f}s ({s.pass_rate:.1f}% pass rate)[/dim]"
        )
        if results.persistence_error:
            self.console.print(f"[red]Results were not saved: {escape(results.persistence_error)}[/red]")
        for artifact in results.artifacts:
            self.console.print(f"[dim]report: {artifact.url}[/dim]")

    async def on_tracing_enabled(self, output_path: Path) -> None:
        self.console.print(f"[dim]Tracing written to {output_path}[/dim]")

    def _print_failures(self) -> None:
        self._print_section_header("FAILURES")
        for result in self._failures:
            color = self._status_color(result.status)
            self.console.print(f"[{color}]{escape(result.name)}[/{color}] ({result.case_id})")
            if result.error:
                self.console.print(f"  {escape(result.error)}")
            for assertion in result.assertions:
                if not assertion.passed:
                    self.console.print(f"  {escape(assertion.message)}")
                    self.console.print(f"    [dim]expected[/dim] {escape(repr(assertion.expected))}")
                    self.console.print(f"    [dim]actual[/dim]   {escape(repr(assertion.actual))}")
        self.console.print()

    def _print_metrics(self, results: TestResults) -> None:
        rt = results.metrics.response_time
        table = Table(title="Response time (ms)", show_edge=False)
        for column in ("min", "avg", "p95", "p99", "max"):
            table.add_column(column, justify="right")
        table.add_row(*(f"{v:.1f}" for v in (rt.min, rt.avg, rt.p95, rt.p99, rt.max)))
        self.console.print(table)
        self.console.print(
            f"throughput {results.metrics.throughput:.2f} cases/s, error rate {results.metrics.error_rate:.1f}%\n"
        )
