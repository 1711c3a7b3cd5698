"""Exception hierarchy for verdict.

Only suite-admission problems surface from ``run_suite`` as exceptions.
Adapter failures are converted into case results by the case runner.
"""


class VerdictError(Exception):
    """Base class for all verdict errors."""


class SuiteNotFoundError(VerdictError):
    """Raised when a suite id is unknown to the store."""

    def __init__(self, suite_id: str) -> None:
        self.suite_id = suite_id
        super().__init__(f"Test suite not found: {suite_id}")


class ResultsNotFoundError(VerdictError):
    """Raised when a results id is unknown to the store."""

    def __init__(self, results_id: str) -> None:
        self.results_id = results_id
        super().__init__(f"Test results not found: {results_id}")


class TemplateNotFoundError(VerdictError):
    """Raised when a suite template id is unknown."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Test template not found: {template_id}")


class SuiteBusyError(VerdictError):
    """Raised when a suite already has a run in flight."""

    def __init__(self, suite_id: str) -> None:
        self.suite_id = suite_id
        super().__init__(f"Test suite is already running: {suite_id}")


class SuiteNotRunningError(VerdictError):
    """Raised when cancelling a suite that has no run in flight."""

    def __init__(self, suite_id: str) -> None:
        self.suite_id = suite_id
        super().__init__(f"Test suite is not running: {suite_id}")


class InvalidTransitionError(VerdictError):
    """Raised when a suite status change is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move suite from '{current}' to '{target}'")


class StoreError(VerdictError):
    """Raised when the suite store cannot be reached."""


class ExecutionError(VerdictError):
    """Raised when a run fails outside of any single test case."""


class AdapterError(VerdictError):
    """Base class for errors raised by target adapters."""


class AdapterTimeoutError(AdapterError, TimeoutError):
    """Raised when a target call exceeds its deadline."""


class RunCancelledError(AdapterError):
    """Raised by adapters that observe the run's cancel token."""

    def __init__(self, message: str = "Test aborted") -> None:
        super().__init__(message)


class UnsupportedTargetError(AdapterError):
    """Raised when no adapter handles a target type."""

    def __init__(self, target_type: str) -> None:
        self.target_type = target_type
        super().__init__(f"Unsupported target type: {target_type}")
