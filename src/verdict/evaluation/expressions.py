"""Allowlisted expression language for custom assertions.

Supports number, string, ``true``/``false``/``null`` literals, dotted
names resolved against a variable mapping, ``+ - * / %``, unary minus,
parentheses and a single comparison (``== != < <= > >=``). Nothing is
ever compiled or executed as Python.

Example::

    evaluate("actual.confidence * 100 >= 90", {"actual": {"confidence": 0.95}})
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from verdict.evaluation.values import get_by_path, is_number, strict_equals


class ExpressionError(ValueError):
    """Raised for malformed expressions or invalid operand types."""


_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<number>\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
      | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.(?:[A-Za-z_][A-Za-z0-9_]*|\d+))*)
      | (?P<op>==|!=|<=|>=|[-+*/%<>()])
    )
    """,
    re.VERBOSE,
)

_KEYWORDS: dict[str, Any] = {"true": True, "false": False, "null": None}
_COMPARISONS = {"==", "!=", "<", "<=", ">", ">="}


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    text: str
    position: int


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    position = 0
    source = source.rstrip()
    while position < len(source):
        match = _TOKEN_RE.match(source, position)
        if not match or match.end() == position:
            raise ExpressionError(f"Unexpected character at position {position}: {source[position]!r}")
        kind = match.lastgroup
        assert kind is not None
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        position = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser that evaluates while it parses."""

    def __init__(self, tokens: list[Token], variables: Mapping[str, Any]) -> None:
        self.tokens = tokens
        self.variables = variables
        self.index = 0

    def peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise ExpressionError("Unexpected end of expression")
        self.index += 1
        return token

    def parse(self) -> Any:
        value = self.comparison()
        if self.peek() is not None:
            token = self.peek()
            raise ExpressionError(f"Unexpected token {token.text!r} at position {token.position}")
        return value

    def comparison(self) -> Any:
        left = self.additive()
        token = self.peek()
        if token is not None and token.kind == "op" and token.text in _COMPARISONS:
            self.advance()
            right = self.additive()
            return _compare(token.text, left, right)
        return left

    def additive(self) -> Any:
        value = self.term()
        while (token := self.peek()) is not None and token.kind == "op" and token.text in {"+", "-"}:
            self.advance()
            value = _arithmetic(token.text, value, self.term())
        return value

    def term(self) -> Any:
        value = self.unary()
        while (token := self.peek()) is not None and token.kind == "op" and token.text in {"*", "/", "%"}:
            self.advance()
            value = _arithmetic(token.text, value, self.unary())
        return value

    def unary(self) -> Any:
        token = self.peek()
        if token is not None and token.kind == "op" and token.text == "-":
            self.advance()
            operand = self.unary()
            if not is_number(operand):
                raise ExpressionError(f"Cannot negate {operand!r}")
            return -operand
        return self.primary()

    def primary(self) -> Any:
        token = self.advance()
        if token.kind == "number":
            return int(token.text) if token.text.isdigit() else float(token.text)
        if token.kind == "string":
            return _unquote(token.text)
        if token.kind == "name":
            return self.resolve(token.text)
        if token.text == "(":
            value = self.comparison()
            closing = self.advance()
            if closing.text != ")":
                raise ExpressionError(f"Expected ')' at position {closing.position}")
            return value
        raise ExpressionError(f"Unexpected token {token.text!r} at position {token.position}")

    def resolve(self, dotted: str) -> Any:
        if dotted in _KEYWORDS:
            return _KEYWORDS[dotted]
        head, _, rest = dotted.partition(".")
        if head not in self.variables:
            raise ExpressionError(f"Unknown name: {head}")
        return get_by_path(self.variables[head], rest)


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


def _arithmetic(op: str, left: Any, right: Any) -> Any:
    if op == "+" and isinstance(left, str) and isinstance(right, str):
        return left + right
    if not (is_number(left) and is_number(right)):
        raise ExpressionError(f"Operator {op!r} needs numbers, got {left!r} and {right!r}")
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        raise ExpressionError("Division by zero")
    if op == "/":
        return left / right
    return left % right


def _compare(op: str, left: Any, right: Any) -> bool:
    if op == "==":
        return strict_equals(left, right)
    if op == "!=":
        return not strict_equals(left, right)
    comparable = (is_number(left) and is_number(right)) or (isinstance(left, str) and isinstance(right, str))
    if not comparable:
        raise ExpressionError(f"Cannot compare {left!r} {op} {right!r}")
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    return left >= right


def evaluate(source: str, variables: Mapping[str, Any] | None = None) -> Any:
    """Evaluate ``source`` against ``variables`` and return the value."""
    tokens = tokenize(source)
    if not tokens:
        raise ExpressionError("Empty expression")
    return _Parser(tokens, variables or {}).parse()
