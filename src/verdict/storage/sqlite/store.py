"""SQLite storage backend for suites and run results."""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any

from verdict.errors import StoreError
from verdict.models import SuiteStatus, TestResults, TestSuite, utcnow
from verdict.storage.base import SuiteStore
from verdict.storage.sqlite.schema import SCHEMA


DEFAULT_DB_NAME = ".verdict/verdict.db"
SCHEMA_VERSION = 1

SUITE_UPSERT_SQL = """
    INSERT INTO test_suites (
        id, owner, name, description, target_type, target_id,
        test_cases_json, configuration_json, status, results_json,
        last_run_at, created_at, updated_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(id) DO UPDATE SET
        owner = excluded.owner,
        name = excluded.name,
        description = excluded.description,
        target_type = excluded.target_type,
        target_id = excluded.target_id,
        test_cases_json = excluded.test_cases_json,
        configuration_json = excluded.configuration_json,
        status = excluded.status,
        results_json = excluded.results_json,
        last_run_at = excluded.last_run_at,
        updated_at = excluded.updated_at
"""

RESULTS_INSERT_SQL = """
    INSERT OR REPLACE INTO test_results (
        id, suite_id, status, summary_json, case_results_json,
        metrics_json, artifacts_json, started_at, completed_at, duration
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def find_project_root() -> Path:
    """Find project root by searching for pyproject.toml or setup.py."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        if (parent / "pyproject.toml").exists() or (parent / "setup.py").exists():
            return parent
    return cwd


class SQLiteSuiteStore(SuiteStore):
    """SQLite-based storage; nested records are kept as JSON columns."""

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            path = find_project_root() / DEFAULT_DB_NAME
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._transaction() as conn:
            current_version = conn.execute("PRAGMA user_version").fetchone()[0]
            if current_version < SCHEMA_VERSION:
                conn.executescript(SCHEMA)
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.execute("PRAGMA busy_timeout = 5000")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(self._connect()) as conn, conn:
                yield conn
        except sqlite3.Error as e:
            raise StoreError(f"SQLite store at {self.path} failed: {e}") from e

    def save(self, suite: TestSuite) -> None:
        data = suite.to_dict()
        with self._transaction() as conn:
            conn.execute(
                SUITE_UPSERT_SQL,
                (
                    suite.id,
                    suite.owner,
                    suite.name,
                    suite.description,
                    suite.target_type.value,
                    suite.target_id,
                    json.dumps(data["testCases"]),
                    json.dumps(data["configuration"]),
                    suite.status.value,
                    json.dumps(data["results"]) if suite.results else None,
                    data["lastRunAt"],
                    data["createdAt"],
                    data["updatedAt"],
                ),
            )

    def load(self, suite_id: str) -> TestSuite | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM test_suites WHERE id = ?", (suite_id,)).fetchone()
        return self._row_to_suite(row) if row else None

    def list_by_owner(self, owner: str) -> list[TestSuite]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM test_suites WHERE owner = ? ORDER BY created_at DESC",
                (owner,),
            ).fetchall()
        return [self._row_to_suite(row) for row in rows]

    def update_status(self, suite_id: str, status: SuiteStatus) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE test_suites SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, utcnow().isoformat(), suite_id),
            )

    def save_results(self, results: TestResults) -> None:
        data = results.to_dict()
        with self._transaction() as conn:
            conn.execute(
                RESULTS_INSERT_SQL,
                (
                    results.id,
                    results.suite_id,
                    results.status.value,
                    json.dumps(data["summary"]),
                    json.dumps(data["caseResults"]),
                    json.dumps(data["metrics"]),
                    json.dumps(data["artifacts"]),
                    data["startedAt"],
                    data["completedAt"],
                    results.duration,
                ),
            )

    def load_results(self, results_id: str) -> TestResults | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM test_results WHERE id = ?", (results_id,)).fetchone()
        return self._row_to_results(row) if row else None

    def list_results(self, suite_id: str, limit: int = 10) -> list[TestResults]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM test_results WHERE suite_id = ? ORDER BY started_at DESC LIMIT ?",
                (suite_id, limit),
            ).fetchall()
        return [self._row_to_results(row) for row in rows]

    def _row_to_suite(self, row: sqlite3.Row) -> TestSuite:
        data: dict[str, Any] = {
            "id": row["id"],
            "owner": row["owner"],
            "name": row["name"],
            "description": row["description"],
            "targetType": row["target_type"],
            "targetId": row["target_id"],
            "testCases": json.loads(row["test_cases_json"]),
            "configuration": json.loads(row["configuration_json"]),
            "status": row["status"],
            "results": json.loads(row["results_json"]) if row["results_json"] else None,
            "lastRunAt": row["last_run_at"],
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        }
        return TestSuite.model_validate(data)

    def _row_to_results(self, row: sqlite3.Row) -> TestResults:
        return TestResults.model_validate(
            {
                "id": row["id"],
                "suiteId": row["suite_id"],
                "status": row["status"],
                "summary": json.loads(row["summary_json"]),
                "caseResults": json.loads(row["case_results_json"]),
                "metrics": json.loads(row["metrics_json"]),
                "artifacts": json.loads(row["artifacts_json"]),
                "startedAt": row["started_at"],
                "completedAt": row["completed_at"],
                "duration": row["duration"],
            }
        )
