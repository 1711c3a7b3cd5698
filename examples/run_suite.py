"""Run a suite against simulated subjects, cancel a slow one and print the results.

    python examples/run_suite.py
"""

import asyncio
import logging

from rich.console import Console

from verdict import (
    ConsoleReporter,
    CustomPredicateRegistry,
    ExecutionEngine,
    InMemorySuiteStore,
    LoggingNotifier,
    SimulatedTargetAdapter,
    TestingService,
)
from verdict.errors import SuiteNotRunningError


registry = CustomPredicateRegistry()


@registry.register("all_steps_completed")
def all_steps_completed(actual, assertion):
    return isinstance(actual, list) and all(step.get("status") == "completed" for step in actual)


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    store = InMemorySuiteStore()
    engine = ExecutionEngine(
        store,
        SimulatedTargetAdapter(latency_ms=(50, 200), seed=7),
        LoggingNotifier(),
        registry=registry,
        reporter=ConsoleReporter(Console(), verbosity=1),
    )
    service = TestingService(store, engine)

    workflow = service.create_suite(
        owner="demo",
        name="Order workflow",
        target_type="workflow",
        target_id="order-flow",
        test_cases=[
            {
                "name": "all steps complete",
                "assertions": [{"type": "custom", "field": "steps", "operator": "all_steps_completed"}],
            },
            {
                "name": "final output",
                "assertions": [{"type": "equals", "field": "finalOutput", "value": "Workflow completed successfully"}],
            },
            {
                "name": "second step output",
                "assertions": [{"type": "equals", "field": "steps.1.output", "value": "Step 2 result"}],
            },
        ],
        configuration={"parallel": True, "maxConcurrency": 2, "notifications": {"enabled": True, "onSuccess": True}},
    )
    await service.run_suite(workflow.id)

    perf = service.create_suite_from_template("demo", "performance", "prod-eu", name="Slow deployment")
    perf = service.update_suite(
        perf.id,
        test_cases=[{"name": f"uptime check {i}", "assertions": [{"type": "range", "field": "uptime", "value": [99, 100]}]} for i in range(20)],
        configuration={"parallel": False},
    )
    run = asyncio.create_task(service.run_suite(perf.id))
    await asyncio.sleep(0.5)
    try:
        service.cancel_suite(perf.id)
    except SuiteNotRunningError:
        pass
    results = await run
    print(f"{service.get_suite(perf.id).status.value}: {results.summary.skipped} checks skipped")


if __name__ == "__main__":
    asyncio.run(main())
