"""A CSV writer that quotes every field."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TextIO


@dataclass
class FullyQuotedCSVWriter:
    """Buffers CSV records with every field in double quotes.

    Records reach ``stream`` only on ``flush`` or when leaving a ``with`` block.
    """

    stream: TextIO
    comma: str = ","
    use_crlf: bool = False
    _pending: list[str] = field(default_factory=list, init=False, repr=False)

    def write(self, record: Iterable[str]) -> None:
        """Buffer one record."""
        fields = []
        for value in record:
            if not self.use_crlf:
                value = value.replace("\r\n", "\n")
            fields.append('"' + value.replace('"', '""') + '"')
        self._pending.append(self.comma.join(fields) + ("\r\n" if self.use_crlf else "\n"))

    def flush(self) -> None:
        """Write all buffered records to the stream."""
        self.stream.write("".join(self._pending))
        self._pending.clear()
        flush = getattr(self.stream, "flush", None)
        if callable(flush):
            flush()

    def __enter__(self) -> FullyQuotedCSVWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.flush()