"""SQLite schema definitions for suite storage."""

SCHEMA = """
CREATE TABLE IF NOT EXISTS test_suites (
    id                  TEXT PRIMARY KEY,
    owner               TEXT NOT NULL,
    name                TEXT NOT NULL,
    description         TEXT,
    target_type         TEXT NOT NULL CHECK (target_type IN ('agent', 'workflow', 'deployment', 'persona')),
    target_id           TEXT NOT NULL,
    test_cases_json     TEXT NOT NULL DEFAULT '[]',
    configuration_json  TEXT NOT NULL DEFAULT '{}',
    status              TEXT NOT NULL DEFAULT 'draft'
                        CHECK (status IN ('draft', 'ready', 'running', 'completed', 'failed', 'cancelled')),
    results_json        TEXT,
    last_run_at         TEXT,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_suites_owner ON test_suites(owner);
CREATE INDEX IF NOT EXISTS idx_suites_status ON test_suites(status);

CREATE TABLE IF NOT EXISTS test_results (
    id                  TEXT PRIMARY KEY,
    suite_id            TEXT NOT NULL REFERENCES test_suites(id) ON DELETE CASCADE,
    status              TEXT NOT NULL CHECK (status IN ('passed', 'failed', 'error', 'skipped')),
    summary_json        TEXT NOT NULL DEFAULT '{}',
    case_results_json   TEXT NOT NULL DEFAULT '[]',
    metrics_json        TEXT NOT NULL DEFAULT '{}',
    artifacts_json      TEXT NOT NULL DEFAULT '[]',
    started_at          TEXT NOT NULL,
    completed_at        TEXT NOT NULL,
    duration            REAL NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_results_suite ON test_results(suite_id);
CREATE INDEX IF NOT EXISTS idx_results_started ON test_results(started_at);
"""
