"""Run reporting."""

from verdict.reports.artifacts import ArtifactWriter, report_payload
from verdict.reports.base import Reporter
from verdict.reports.console import ConsoleReporter


__all__ = ["ArtifactWriter", "ConsoleReporter", "Reporter", "report_payload"]
