"""Log levels as used in configurations and on the command line."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

_OFFSET = re.compile(r"[+-]\d+")
_BASES = {"DEBUG": -4, "INFO": 0, "WARN": 4, "ERROR": 8}


@dataclass(frozen=True, order=True)
class LogLevel:
    """A severity: DEBUG is -4, INFO 0, WARN 4 and ERROR 8, with values in between."""

    level: int = 0

    def __str__(self) -> str:
        if self.level < INFO.level:
            name, base = "DEBUG", DEBUG.level
        elif self.level < WARN.level:
            name, base = "INFO", INFO.level
        elif self.level < ERROR.level:
            name, base = "WARN", WARN.level
        else:
            name, base = "ERROR", ERROR.level
        offset = self.level - base
        return name if offset == 0 else f"{name}{offset:+d}"

    def marshal_flag(self) -> str:
        """The level in the lower case form used for options."""
        return str(self).lower()

    @property
    def logging_level(self) -> int:
        """The corresponding level of the standard logging module."""
        return 20 + self.level * 5 // 2


DEBUG = LogLevel(-4)
INFO = LogLevel(0)
WARN = LogLevel(4)
ERROR = LogLevel(8)


def parse_log_level(value: str) -> LogLevel:
    """Parse a level name such as 'info' or 'WARN+2', ignoring case."""
    name, offset = value, 0
    m = re.search(r"[+-]", value)
    if m is not None:
        name, offset_text = value[: m.start()], value[m.start():]
        if not _OFFSET.fullmatch(offset_text):
            raise ValueError(
                f"slog: level string {json.dumps(value)}: invalid offset {json.dumps(offset_text)}"
            )
        offset = int(offset_text)
    base = _BASES.get(name.upper())
    if base is None:
        raise ValueError(f"slog: level string {json.dumps(value)}: unknown name")
    return LogLevel(base + offset)