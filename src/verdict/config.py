"""Runtime settings read from ``VERDICT_*`` environment variables."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VerdictSettings(BaseSettings):
    """Settings shared by the CLI and embedding applications.

    Attributes
    ----------
    db_path
        SQLite file for suites and results. ``None`` uses ``.verdict/verdict.db``
        under the project root.
    default_max_concurrency
        Parallel-mode cap for suites whose ``maxConcurrency`` is not positive.
    trace, trace_output
        Enable OpenTelemetry spans and choose the JSONL file they stream to.
    trace_content
        Copy case inputs into case spans.
    artifacts_dir
        Where report files are written when a suite enables reporting.
    adapter_base_url
        Root URL of the HTTP subject executors.
    webhook_url
        Endpoint for the webhook notifier; no notifier posts when unset.
    log_level
        Level for the ``verdict`` logger hierarchy.
    """

    db_path: Path | None = None
    default_max_concurrency: int = Field(default=10, gt=0)
    trace: bool = False
    trace_output: Path = Path("traces.jsonl")
    trace_content: bool = True
    artifacts_dir: Path | None = None
    adapter_base_url: str | None = None
    webhook_url: str | None = None
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(env_prefix="VERDICT_", extra="ignore")
