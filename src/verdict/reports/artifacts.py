"""Report files written after a run and recorded as artifacts."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any

from verdict.models import ReportingConfig, TestArtifact, TestResults, TestSuite


logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("json", "csv")

CSV_COLUMNS = ["case_id", "name", "status", "duration_ms", "attempts", "error", "failed_assertions"]


def report_payload(suite: TestSuite, results: TestResults, config: ReportingConfig) -> dict[str, Any]:
    """Results as a JSON-ready dict, trimmed by the suite's reporting options."""
    data = results.to_dict()
    data["suiteName"] = suite.name
    data["targetType"] = suite.target_type.value
    data["targetId"] = suite.target_id
    if not config.include_logs:
        for case in data["caseResults"]:
            case.pop("logs", None)
    if not config.include_metrics:
        data.pop("metrics", None)
        for case in data["caseResults"]:
            case.pop("metrics", None)
    return data


class ArtifactWriter:
    """Writes ``<results id>.<format>`` files under ``<output_dir>/<suite id>/``."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def write(self, suite: TestSuite, results: TestResults) -> list[TestArtifact]:
        config = suite.configuration.reporting
        if not config.enabled:
            return []

        target_dir = self.output_dir / suite.id
        target_dir.mkdir(parents=True, exist_ok=True)

        artifacts = []
        for fmt in dict.fromkeys(config.formats):
            if fmt not in SUPPORTED_FORMATS:
                logger.warning("Report format %r is not supported, skipping", fmt)
                continue
            path = target_dir / f"{results.id}.{fmt}"
            if fmt == "json":
                self._write_json(path, report_payload(suite, results, config))
            else:
                self._write_csv(path, results)
            artifacts.append(
                TestArtifact(
                    type="report",
                    name=path.name,
                    url=path.resolve().as_uri(),
                    size=path.stat().st_size,
                )
            )
            logger.debug("Wrote %s report to %s", fmt, path)
        return artifacts

    def _write_json(self, path: Path, payload: dict[str, Any]) -> None:
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    def _write_csv(self, path: Path, results: TestResults) -> None:
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            for case in results.case_results:
                writer.writerow(
                    {
                        "case_id": case.case_id,
                        "name": case.name,
                        "status": case.status.value,
                        "duration_ms": f"{case.duration:.3f}",
                        "attempts": case.attempts,
                        "error": case.error or "",
                        "failed_assertions": "; ".join(a.message for a in case.assertions if not a.passed),
                    }
                )
