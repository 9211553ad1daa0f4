"""Reading and writing hex coded hash sum files."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from typing import Any

_HEX = re.compile(r"^([0-9A-Fa-f]+)")


def hash_from_reader(stream: Iterable[str] | Iterable[bytes]) -> bytes | None:
    """Return the hash from the first line starting with hex digits, or None."""
    for line in stream:
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        m = _HEX.match(line)
        if m:
            return bytes.fromhex(m.group(1))
    return None


def hash_from_file(fname: str | os.PathLike[str]) -> bytes | None:
    """Read a hex coded hash sum from a file."""
    with open(fname, "rb") as f:
        return hash_from_reader(f)


def write_hash_sum_to_file(fname: str | os.PathLike[str], name: str, digest: bytes) -> None:
    """Write ``digest`` and ``name`` as a hash sum line to ``fname``."""
    with open(fname, "w", encoding="utf-8", newline="\n") as f:
        f.write(f"{digest.hex()} {name}\n")


def write_hash_to_file(
    fname: str | os.PathLike[str], name: str, hasher: Any, data: bytes
) -> None:
    """Feed ``data`` to ``hasher`` and write the resulting sum to ``fname``."""
    hasher.update(data)
    write_hash_sum_to_file(fname, name, hasher.digest())