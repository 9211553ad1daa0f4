"""URL helpers."""

from __future__ import annotations

from urllib.parse import SplitResult, urlsplit


def base_url(url: str | SplitResult) -> str:
    """Return the URL up to and including the last '/' of its path."""
    parts = urlsplit(url) if isinstance(url, str) else url
    path = parts.path
    idx = path.rfind("/")
    if idx != -1:
        path = path[: idx + 1]
    if not path.startswith("/"):
        path = "/" + path
    return f"{parts.scheme}://{parts.netloc}{path}"