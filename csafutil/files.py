"""File name rules and file system helpers."""

from __future__ import annotations

import errno
import os
import random
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO

from csafutil.path_eval import PathError, PathEval, string_matcher

_INVALID_RUNES = re.compile(r"[^+\-a-z0-9]+")


def clean_file_name(s: str) -> str:
    """Lower-case ``s``, collapse invalid characters into '_' and add '.json'."""
    s = s.lower().removesuffix(".json")
    return _INVALID_RUNES.sub("_", s) + ".json"


def conforming_file_name(fname: str) -> bool:
    """Tell whether a file name conforms to the naming rules."""
    return fname == clean_file_name(fname)


def id_matches_filename(evaluator: PathEval, doc: Any, filename: str) -> None:
    """Raise ValueError unless ``filename`` derives from document/tracking/id."""
    ids: list[str] = []
    try:
        evaluator.extract("$.document.tracking.id", string_matcher(ids.append), False, doc)
    except PathError as err:
        raise ValueError(f"check that ID matches filename: {err}") from err
    tracking_id = ids[0]
    if clean_file_name(tracking_id) != filename:
        raise ValueError(
            f'filename {filename} does not match document/tracking/id "{tracking_id}"'
        )


def path_exists(path: str | os.PathLike[str]) -> bool:
    """Tell whether ``path`` exists; other stat errors propagate."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


@dataclass
class CountingWriter:
    """A writer that counts the bytes passed through it."""

    writer: BinaryIO
    count: int = 0

    def write(self, data: bytes) -> int:
        written = self.writer.write(data)
        if written is None:
            written = len(data)
        self.count += written
        return written


def write_to_file(fname: str | os.PathLike[str], write: Callable[[BinaryIO], Any]) -> None:
    """Create ``fname`` and let ``write`` fill it."""
    with open(fname, "wb") as f:
        write(f)


def deep_copy(dst: str | os.PathLike[str], src: str | os.PathLike[str]) -> None:
    """Copy the tree ``src`` into the existing directory ``dst``, hard linking files."""
    stack = [(os.fspath(dst), os.fspath(src))]
    while stack:
        target, source = stack.pop()
        with os.scandir(source) as entries:
            for entry in entries:
                new_dst = os.path.join(target, entry.name)
                if entry.is_dir(follow_symlinks=False):
                    os.mkdir(new_dst, 0o755)
                    stack.append((new_dst, entry.path))
                elif entry.is_file(follow_symlinks=False):
                    os.link(entry.path, new_dst)


def _mk_uniq(prefix: str, create: Callable[[str], None]) -> str:
    now = datetime.now()
    name = prefix + now.strftime("-%Y-%m-%d-%H%M%S")
    try:
        create(name)
        return name
    except FileExistsError:
        pass
    rnd = random.Random(int(now.timestamp()))
    for _ in range(10000):
        candidate = f"{name}-{rnd.getrandbits(32) & 0xFFFFFF:x}"
        try:
            create(candidate)
            return candidate
        except FileExistsError:
            continue
    raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), name)


def make_uniq_file(prefix: str) -> tuple[str, BinaryIO]:
    """Create a uniquely named file and return its name and a binary write handle.

    The name is the prefix plus a time stamp, with a random suffix on collision.
    """
    handles: list[BinaryIO] = []

    def create(name: str) -> None:
        fd = os.open(name, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        handles.append(os.fdopen(fd, "wb"))

    name = _mk_uniq(prefix, create)
    return name, handles[-1]


def make_uniq_dir(prefix: str) -> str:
    """Create a uniquely named directory and return its name."""
    return _mk_uniq(prefix, lambda name: os.mkdir(name, 0o755))