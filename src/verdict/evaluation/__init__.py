"""Assertion evaluation over structured outputs."""

from verdict.evaluation.assertions import (
    CaseVerdict,
    CustomPredicate,
    CustomPredicateRegistry,
    evaluate_assertion,
    evaluate_assertions,
    evaluate_case,
    validate_output,
)
from verdict.evaluation.expressions import ExpressionError, evaluate
from verdict.evaluation.values import StructuredValue, get_by_path, output_text, stringify, to_structured


__all__ = [
    "CaseVerdict",
    "CustomPredicate",
    "CustomPredicateRegistry",
    "ExpressionError",
    "StructuredValue",
    "evaluate",
    "evaluate_assertion",
    "evaluate_assertions",
    "evaluate_case",
    "get_by_path",
    "output_text",
    "stringify",
    "to_structured",
    "validate_output",
]
