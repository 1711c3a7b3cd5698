"""Assertion evaluation against structured outputs.

Two passes run over an adapter's output:

* declared assertions, one ``AssertionResult`` each;
* implicit output validation of ``ExpectedOutput.contains`` /
  ``not_contains`` / ``patterns``, run only when every declared assertion
  passed.

Both passes are pure. Exceptions raised while evaluating (bad regexes,
raising custom predicates, malformed expressions) become failed results.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, overload

from verdict.evaluation.expressions import evaluate
from verdict.evaluation.values import (
    StructuredValue,
    get_by_path,
    is_number,
    output_text,
    stringify,
    strict_equals,
    to_structured,
)
from verdict.models import AssertionResult, ExpectedOutput, TestAssertion


logger = logging.getLogger(__name__)

CustomPredicate = Callable[[StructuredValue, TestAssertion], bool]


class CustomPredicateRegistry:
    """Named predicates for ``custom`` assertions, keyed by ``operator``."""

    def __init__(self) -> None:
        self._predicates: dict[str, CustomPredicate] = {}

    @overload
    def register(self, name: str, fn: CustomPredicate) -> CustomPredicate: ...

    @overload
    def register(self, name: str, fn: None = None) -> Callable[[CustomPredicate], CustomPredicate]: ...

    def register(self, name: str, fn: CustomPredicate | None = None) -> Any:
        """Register ``fn`` under ``name``. Usable as a decorator."""
        if fn is None:
            return lambda f: self.register(name, f)
        self._predicates[name] = fn
        return fn

    def get(self, name: str) -> CustomPredicate | None:
        return self._predicates.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._predicates

    def names(self) -> list[str]:
        return sorted(self._predicates)


@dataclass
class CaseVerdict:
    """Outcome of both evaluation passes for one output."""

    passed: bool
    assertions: list[AssertionResult] = field(default_factory=list)


def _base_message(assertion: TestAssertion) -> str:
    return assertion.message or f"Assertion failed for field: {assertion.field}"


def _check_range(actual: Any, bounds: Any) -> bool:
    if not isinstance(bounds, list) or len(bounds) != 2:
        raise ValueError(f"range assertion needs a [min, max] pair, got {bounds!r}")
    low, high = bounds
    if not (is_number(low) and is_number(high)):
        raise ValueError(f"range bounds must be numbers, got {bounds!r}")
    return is_number(actual) and low <= actual <= high


def _check_custom(
    assertion: TestAssertion,
    actual: StructuredValue,
    output: StructuredValue,
    registry: CustomPredicateRegistry | None,
) -> bool:
    predicate = registry.get(assertion.operator) if registry else None
    if predicate is not None:
        return bool(predicate(actual, assertion))

    if isinstance(assertion.value, str) and assertion.value.strip():
        result = evaluate(assertion.value, {"actual": actual, "output": output})
        if not isinstance(result, bool):
            raise ValueError(f"custom expression must evaluate to true or false, got {result!r}")
        return result

    logger.warning(
        "No custom predicate registered for operator %r on field %r; treating as passed",
        assertion.operator,
        assertion.field,
    )
    return True


def evaluate_assertion(
    assertion: TestAssertion,
    output: Any,
    registry: CustomPredicateRegistry | None = None,
) -> AssertionResult:
    """Evaluate one declared assertion against ``output``."""
    output = to_structured(output)
    expected = to_structured(assertion.value)
    try:
        actual = get_by_path(output, assertion.field)

        match assertion.type:
            case "equals":
                passed = strict_equals(actual, expected)
            case "contains":
                passed = stringify(expected) in stringify(actual)
            case "matches":
                passed = re.search(stringify(expected), stringify(actual)) is not None
            case "range":
                passed = _check_range(actual, expected)
            case "custom":
                passed = _check_custom(assertion, actual, output, registry)
            case _:
                raise ValueError(f"Unknown assertion type: {assertion.type}")

    except Exception as e:  # noqa: BLE001
        return AssertionResult(
            assertion=assertion,
            passed=False,
            message=f"Assertion error: {e}",
            actual=None,
            expected=expected,
        )

    prefix = "Assertion passed" if passed else "Assertion failed"
    return AssertionResult(
        assertion=assertion,
        passed=passed,
        message=f"{prefix}: {_base_message(assertion)}",
        actual=actual,
        expected=expected,
    )


def evaluate_assertions(
    assertions: Iterable[TestAssertion],
    output: Any,
    registry: CustomPredicateRegistry | None = None,
) -> list[AssertionResult]:
    """Evaluate every declared assertion; never short-circuits."""
    return [evaluate_assertion(a, output, registry) for a in assertions]


def _validation_assertion(expected: ExpectedOutput) -> TestAssertion:
    return TestAssertion(
        type="custom",
        field="output",
        operator="validates",
        value=expected.to_dict(),
    )


def validate_output(output: Any, expected: ExpectedOutput) -> AssertionResult:
    """Check ``contains``, then ``not_contains``, then ``patterns``.

    The first failing check decides the message.
    """
    output = to_structured(output)
    text = output_text(output)
    passed = True
    message = "Output validation passed"

    try:
        for item in expected.contains or []:
            if item not in text:
                passed, message = False, f"Output does not contain: {item}"
                break

        if passed:
            for item in expected.not_contains or []:
                if item in text:
                    passed, message = False, f"Output should not contain: {item}"
                    break

        if passed:
            for pattern in expected.patterns or []:
                if re.search(pattern, text) is None:
                    passed, message = False, f"Output does not match pattern: {pattern}"
                    break

    except re.error as e:
        passed, message = False, f"Validation error: {e}"

    return AssertionResult(
        assertion=_validation_assertion(expected),
        passed=passed,
        message=message,
        actual=output,
        expected=expected.to_dict(),
    )


def evaluate_case(
    output: Any,
    assertions: Iterable[TestAssertion],
    expected: ExpectedOutput,
    registry: CustomPredicateRegistry | None = None,
) -> CaseVerdict:
    """Run both passes and decide the case verdict.

    The validation result is only recorded when it fails.
    """
    results = evaluate_assertions(assertions, output, registry)
    if not all(r.passed for r in results):
        return CaseVerdict(passed=False, assertions=results)

    validation = validate_output(output, expected)
    if not validation.passed:
        results.append(validation)
        return CaseVerdict(passed=False, assertions=results)
    return CaseVerdict(passed=True, assertions=results)
