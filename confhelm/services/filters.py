"""LDAP-style filter expressions over service properties.

Supported syntax:

    (key=value)        equality
    (key=*)            presence
    (key=pre*mid*)     substring with wildcards
    (key>=value)       ordering (numeric when the property is numeric)
    (key<=value)
    (key~=value)       approximate: case and whitespace insensitive
    (&(a=1)(b=2))      and
    (|(a=1)(b=2))      or
    (!(a=1))           not

Property keys match case-insensitively. A backslash escapes the next
character in a value. Sequence-valued properties match if any element does.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from confhelm.services.exceptions import InvalidFilterError

Predicate = Callable[[Mapping[str, Any]], bool]

_OPERATORS = (">=", "<=", "~=", "=")
_ATTRIBUTE_END = "=<>~()"


@dataclass(frozen=True)
class Filter:
    """A parsed filter expression."""

    expression: str
    predicate: Predicate

    def matches(self, properties: Mapping[str, Any]) -> bool:
        return self.predicate({str(key).lower(): value for key, value in properties.items()})


def _candidates(properties: Mapping[str, Any], attribute: str) -> list[Any]:
    value = properties.get(attribute)
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _as_number(actual: int | float, expected: str) -> int | float | None:
    try:
        return type(actual)(expected.strip())
    except ValueError:
        return None


def _equals(actual: Any, expected: str) -> bool:
    if isinstance(actual, bool):
        return actual == (expected.strip().lower() == "true")
    if isinstance(actual, (int, float)):
        return _as_number(actual, expected) == actual
    return str(actual) == expected


def _ordered(actual: Any, expected: str, operator: str) -> bool:
    if isinstance(actual, (int, float)) and not isinstance(actual, bool):
        bound = _as_number(actual, expected)
        if bound is None:
            return False
        return actual >= bound if operator == ">=" else actual <= bound
    text = str(actual)
    return text >= expected if operator == ">=" else text <= expected


def _approximate(actual: Any, expected: str) -> bool:
    return "".join(str(actual).split()).lower() == "".join(expected.split()).lower()


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, reason: str) -> InvalidFilterError:
        return InvalidFilterError(self.text, self.pos, reason)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def skip_whitespace(self) -> None:
        while self.peek().isspace():
            self.pos += 1

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise self.error(f"expected '{char}'")
        self.pos += 1

    def parse(self) -> Predicate:
        self.skip_whitespace()
        predicate = self.filter()
        self.skip_whitespace()
        if self.pos != len(self.text):
            raise self.error("unexpected trailing characters")
        return predicate

    def filter(self) -> Predicate:
        self.expect("(")
        self.skip_whitespace()
        head = self.peek()
        if head == "&":
            self.pos += 1
            operands = self.filter_list()
            predicate: Predicate = lambda p: all(f(p) for f in operands)  # noqa: E731
        elif head == "|":
            self.pos += 1
            operands = self.filter_list()
            predicate = lambda p: any(f(p) for f in operands)  # noqa: E731
        elif head == "!":
            self.pos += 1
            self.skip_whitespace()
            operand = self.filter()
            predicate = lambda p: not operand(p)  # noqa: E731
        else:
            predicate = self.item()
        self.skip_whitespace()
        self.expect(")")
        return predicate

    def filter_list(self) -> list[Predicate]:
        operands: list[Predicate] = []
        self.skip_whitespace()
        while self.peek() == "(":
            operands.append(self.filter())
            self.skip_whitespace()
        if not operands:
            raise self.error("empty filter list")
        return operands

    def item(self) -> Predicate:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in _ATTRIBUTE_END:
            self.pos += 1
        attribute = self.text[start : self.pos].strip().lower()
        if not attribute:
            raise self.error("missing attribute name")

        operator = next((op for op in _OPERATORS if self.text.startswith(op, self.pos)), None)
        if operator is None:
            raise self.error("expected an operator")
        self.pos += len(operator)

        segments = self.value()
        if operator != "=":
            if len(segments) > 1:
                raise self.error(f"wildcards are not allowed with '{operator}'")
            expected = segments[0]
            if operator == "~=":
                return lambda p: any(_approximate(v, expected) for v in _candidates(p, attribute))
            return lambda p: any(_ordered(v, expected, operator) for v in _candidates(p, attribute))

        if segments == ["", ""]:
            return lambda p: attribute in p
        if len(segments) == 1:
            expected = segments[0]
            return lambda p: any(_equals(v, expected) for v in _candidates(p, attribute))

        pattern = re.compile(".*".join(re.escape(s) for s in segments), re.DOTALL)
        return lambda p: any(pattern.fullmatch(str(v)) for v in _candidates(p, attribute))

    def value(self) -> list[str]:
        segments: list[str] = []
        current: list[str] = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == ")":
                break
            if char == "(":
                raise self.error("unescaped '(' in value")
            self.pos += 1
            if char == "\\":
                if self.pos >= len(self.text):
                    raise self.error("dangling escape")
                current.append(self.text[self.pos])
                self.pos += 1
            elif char == "*":
                segments.append("".join(current))
                current = []
            else:
                current.append(char)
        segments.append("".join(current))
        return segments


@lru_cache(maxsize=128)
def parse_filter(expression: str) -> Filter:
    """Parse a filter expression.

    Raises:
        InvalidFilterError: If the expression is malformed
    """
    return Filter(expression=expression, predicate=_Parser(expression).parse())
