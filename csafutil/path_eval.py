"""JSONPath evaluation on decoded JSON documents, with extraction helpers."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Any

Action = Callable[[Any], None]
Evaluable = Callable[[Any], Any]


class PathError(Exception):
    """Raised when an expression cannot be compiled, evaluated or matched."""


@dataclass(frozen=True)
class PathEvalMatcher:
    """An expression and the action to run on its result."""

    expr: str
    action: Action
    optional: bool = False


@dataclass(frozen=True)
class _Key:
    key: str | int

    def single(self, value: Any) -> Any:
        if isinstance(self.key, str):
            if isinstance(value, dict) and self.key in value:
                return value[self.key]
            raise PathError(f"unknown key {self.key}")
        if isinstance(value, list) and -len(value) <= self.key < len(value):
            return value[self.key]
        raise PathError(f"index {self.key} out of bounds")

    def select(self, value: Any) -> Iterator[Any]:
        try:
            yield self.single(value)
        except PathError:
            return


@dataclass(frozen=True)
class _Union:
    keys: tuple[_Key, ...]

    def select(self, value: Any) -> Iterator[Any]:
        for key in self.keys:
            yield from key.select(value)


@dataclass(frozen=True)
class _Wildcard:
    def select(self, value: Any) -> Iterator[Any]:
        if isinstance(value, dict):
            yield from value.values()
        elif isinstance(value, list):
            yield from value


@dataclass(frozen=True)
class _Slice:
    start: int | None
    stop: int | None
    step: int | None

    def select(self, value: Any) -> Iterator[Any]:
        if isinstance(value, list):
            yield from value[self.start:self.stop:self.step]


def _walk(value: Any) -> Iterator[Any]:
    yield value
    if isinstance(value, dict):
        children: Iterable[Any] = value.values()
    elif isinstance(value, list):
        children = value
    else:
        return
    for child in children:
        yield from _walk(child)


@dataclass(frozen=True)
class _Descend:
    inner: Any

    def select(self, value: Any) -> Iterator[Any]:
        for node in _walk(value):
            yield from self.inner.select(node)


_NAME = re.compile(r"\*|[^.\[\]\s]+")

_SUBSCRIPT = re.compile(
    r"""\s*(?:
        (?P<quoted>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
      | (?P<slice>-?\d*:-?\d*(?::-?\d*)?)
      | (?P<index>-?\d+)
      | (?P<star>\*)
    )\s*(?P<sep>[,\]])""",
    re.VERBOSE,
)


def _unquote(quoted: str) -> str:
    return re.sub(r"\\(.)", lambda m: m.group(1), quoted[1:-1])


def _parse_slice(text: str, expr: str) -> _Slice:
    numbers = [int(part) if part else None for part in text.split(":")]
    numbers += [None] * (3 - len(numbers))
    if numbers[2] == 0:
        raise PathError(f"slice step cannot be zero in {expr!r}")
    return _Slice(*numbers)


def _parse_dotted(text: str, pos: int, expr: str) -> tuple[Any, int]:
    m = _NAME.match(text, pos)
    if m is None:
        raise PathError(f"missing name at position {pos} in {expr!r}")
    name = m.group()
    return (_Wildcard() if name == "*" else _Key(name)), m.end()


def _parse_subscript(text: str, pos: int, expr: str) -> tuple[Any, int]:
    parts: list[Any] = []
    pos += 1
    while True:
        m = _SUBSCRIPT.match(text, pos)
        if m is None:
            raise PathError(f"invalid subscript at position {pos} in {expr!r}")
        pos = m.end()
        if m["quoted"] is not None:
            parts.append(_Key(_unquote(m["quoted"])))
        elif m["index"] is not None:
            parts.append(_Key(int(m["index"])))
        elif m["slice"] is not None:
            parts.append(_parse_slice(m["slice"], expr))
        else:
            parts.append(_Wildcard())
        if m["sep"] == "]":
            break
    if len(parts) == 1:
        return parts[0], pos
    if all(isinstance(part, _Key) for part in parts):
        return _Union(tuple(parts)), pos
    raise PathError(f"wildcards and slices cannot be combined in {expr!r}")


def _parse(expr: str) -> tuple[Any, ...]:
    text = expr.strip()
    if not text.startswith("$"):
        raise PathError(f"expression must start with '$': {expr!r}")
    steps: list[Any] = []
    pos = 1
    while pos < len(text):
        if text.startswith("..", pos):
            pos += 2
            if pos < len(text) and text[pos] == "[":
                selector, pos = _parse_subscript(text, pos, expr)
            else:
                selector, pos = _parse_dotted(text, pos, expr)
            steps.append(_Descend(selector))
        elif text[pos] == ".":
            selector, pos = _parse_dotted(text, pos + 1, expr)
            steps.append(selector)
        elif text[pos] == "[":
            selector, pos = _parse_subscript(text, pos, expr)
            steps.append(selector)
        else:
            raise PathError(f"unexpected {text[pos]!r} at position {pos} in {expr!r}")
    return tuple(steps)


def _evaluate(steps: tuple[Any, ...], doc: Any) -> Any:
    if all(isinstance(step, _Key) for step in steps):
        value = doc
        for step in steps:
            value = step.single(value)
        return value
    values = [doc]
    for step in steps:
        values = [found for value in values for found in step.select(value)]
    return values


class PathEval:
    """Evaluates JSONPath expressions, caching compiled expressions."""

    def __init__(self) -> None:
        self._exprs: dict[str, Evaluable] = {}

    def compile(self, expr: str) -> Evaluable:
        """Compile an expression and cache it on success."""
        cached = self._exprs.get(expr)
        if cached is not None:
            return cached
        evaluable = partial(_evaluate, _parse(expr))
        self._exprs[expr] = evaluable
        return evaluable

    def eval(self, expr: str, doc: Any) -> Any:
        """Evaluate an expression on a document and return the result."""
        if doc is None:
            raise PathError("no document to extract data from")
        return self.compile(expr)(doc)

    def extract(self, expr: str, action: Action, optional: bool, doc: Any) -> None:
        """Evaluate an expression and hand its result to an action.

        Failures are ignored when ``optional`` is true.
        """
        try:
            action(self.eval(expr, doc))
        except (PathError, ValueError, TypeError) as err:
            if not optional:
                raise PathError(f"extract failed '{expr}': {err}") from err

    def match(self, matchers: Iterable[PathEvalMatcher], doc: Any) -> None:
        """Run a series of matchers against a document."""
        for matcher in matchers:
            self.extract(matcher.expr, matcher.action, matcher.optional, doc)

    def strings(self, exprs: Sequence[str], optional: bool, doc: Any) -> list[str]:
        """Return the string results of several expressions.

        A failed optional expression repeats the previous result
        (an empty string at the start).
        """
        current = ""

        def keep(value: str) -> None:
            nonlocal current
            current = value

        matcher = string_matcher(keep)
        results = []
        for expr in exprs:
            self.extract(expr, matcher, optional, doc)
            results.append(current)
        return results


def remarshal_json(src: Any) -> Any:
    """Return a copy of ``src`` passed through JSON encoding and decoding."""
    return json.loads(json.dumps(src))


def remarshal_matcher(setter: Callable[[Any], None]) -> Action:
    """An action handing a JSON re-marshalled copy of the result to ``setter``."""

    def action(src: Any) -> None:
        setter(remarshal_json(src))

    return action


def bool_matcher(setter: Callable[[bool], None]) -> Action:
    """An action accepting only booleans."""

    def action(x: Any) -> None:
        if not isinstance(x, bool):
            raise PathError("not a bool")
        setter(x)

    return action


def string_matcher(setter: Callable[[str], None]) -> Action:
    """An action accepting only strings."""

    def action(x: Any) -> None:
        if not isinstance(x, str):
            raise PathError("not a string")
        setter(x)

    return action


def string_tree_matcher(target: list[str]) -> Action:
    """An action adding unique strings, also from nested lists, to ``target``."""

    def recurse(x: Any) -> None:
        if isinstance(x, str):
            if x not in target:
                target.append(x)
        elif isinstance(x, list):
            for item in x:
                recurse(item)
        else:
            raise PathError(f"unsupported type: {type(x).__name__}")

    return recurse


def time_matcher(setter: Callable[[datetime], None], fmt: str) -> Action:
    """An action parsing a string with the ``strptime`` format ``fmt``."""

    def action(x: Any) -> None:
        if not isinstance(x, str):
            raise PathError("not a string")
        setter(datetime.strptime(x, fmt))

    return action


def as_strings(x: Any) -> list[str] | None:
    """Return the strings of a list, or None if ``x`` is not a list."""
    if not isinstance(x, list):
        return None
    return [item for item in x if isinstance(item, str)]