"""Writing multipart MIME bodies."""

from __future__ import annotations

import secrets
import string
from collections.abc import Mapping, Sequence
from typing import BinaryIO

_BOUNDARY_CHARS = frozenset(string.ascii_letters + string.digits + "'()+_,-./:=? ")
_TSPECIALS = frozenset('()<>@,;:\\"/[]?= ')


def _escape_quotes(s: str) -> str:
    return s.replace("\\", "\\\\").replace('"', '\\"')


def _check_boundary(boundary: str) -> None:
    if not 1 <= len(boundary) <= 70:
        raise ValueError("invalid boundary length")
    if boundary.endswith(" ") or any(c not in _BOUNDARY_CHARS for c in boundary):
        raise ValueError("invalid boundary character")


class _Part:
    """A writable part of a multipart body."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("multipart: can't write to finished part")
        self._stream.write(data)
        return len(data)


class MultipartWriter:
    """Writes a multipart body to a binary stream, one part after another."""

    def __init__(self, stream: BinaryIO, boundary: str | None = None) -> None:
        if boundary is None:
            boundary = secrets.token_hex(30)
        else:
            _check_boundary(boundary)
        self.stream = stream
        self.boundary = boundary
        self._last: _Part | None = None
        self._closed = False

    @property
    def content_type(self) -> str:
        """The Content-Type of a form data body written by this writer."""
        boundary = self.boundary
        if any(c in _TSPECIALS for c in boundary):
            boundary = f'"{boundary}"'
        return f"multipart/form-data; boundary={boundary}"

    def create_part(self, headers: Mapping[str, str | Sequence[str]]) -> _Part:
        """Start a new part with the given headers and return a writer for its body."""
        if self._closed:
            raise ValueError("multipart: writer is closed")
        if self._last is not None:
            self._last.closed = True
            lines = [f"\r\n--{self.boundary}\r\n"]
        else:
            lines = [f"--{self.boundary}\r\n"]
        for key in sorted(headers):
            values = headers[key]
            for value in [values] if isinstance(values, str) else values:
                lines.append(f"{key}: {value}\r\n")
        lines.append("\r\n")
        self.stream.write("".join(lines).encode("utf-8"))
        self._last = _Part(self.stream)
        return self._last

    def close(self) -> None:
        """Finish the last part and write the closing boundary."""
        if self._closed:
            return
        if self._last is not None:
            self._last.closed = True
            self.stream.write(f"\r\n--{self.boundary}--\r\n".encode("utf-8"))
        else:
            self.stream.write(f"--{self.boundary}--\r\n".encode("utf-8"))
        self._closed = True

    def __enter__(self) -> MultipartWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_form_file(
    writer: MultipartWriter, fieldname: str, filename: str, mime_type: str
) -> _Part:
    """Start a form file part with the given field name, file name and MIME type."""
    return writer.create_part(
        {
            "Content-Disposition": (
                f'form-data; name="{_escape_quotes(fieldname)}"; '
                f'filename="{_escape_quotes(filename)}"'
            ),
            "Content-Type": mime_type,
        }
    )