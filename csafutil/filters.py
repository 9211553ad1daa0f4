"""Filtering names by lists of regular expressions."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator


class PatternMatcher:
    """A list of compiled regular expressions."""

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        compiled = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as err:
                raise ValueError(f"invalid ignore pattern: {err}") from err
        self._patterns: tuple[re.Pattern[str], ...] = tuple(compiled)

    def matches(self, s: str) -> bool:
        """Tell whether any expression matches somewhere in ``s``."""
        return any(pattern.search(s) for pattern in self._patterns)

    def __iter__(self) -> Iterator[re.Pattern[str]]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)