from verdict.storage.sqlite.store import SQLiteSuiteStore


__all__ = ["SQLiteSuiteStore"]
