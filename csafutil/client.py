"""HTTP clients that can be stacked to add headers, logging and rate limiting."""

from __future__ import annotations

import copy
import logging
import math
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlencode

import requests
from requests.structures import CaseInsensitiveDict

Request = requests.Request | requests.PreparedRequest
HeaderValues = str | Sequence[str]
FormData = Mapping[str, HeaderValues]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_logger = logging.getLogger(__name__)


class Client(Protocol):
    """The operations every client in a stack offers."""

    def do(self, request: Request) -> Any: ...

    def get(self, url: str) -> Any: ...

    def head(self, url: str) -> Any: ...

    def post(self, url: str, content_type: str, body: Any) -> Any: ...

    def post_form(self, url: str, data: FormData) -> Any: ...


def _values(value: HeaderValues) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


def _encode_form(data: FormData) -> str:
    """Encode form data with keys in sorted order."""
    return urlencode(
        [(key, _values(data[key])) for key in sorted(data)], doseq=True
    )


class RateLimiter:
    """A token bucket allowing ``rate`` events per second with bursts of ``burst``."""

    def __init__(
        self,
        rate: float,
        burst: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not rate > 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if burst < 1:
            raise ValueError(f"burst must be at least 1, got {burst}")
        self.rate = float(rate)
        self.burst = burst
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._last = clock()

    def wait(self) -> float:
        """Block until an event is allowed; return the seconds slept."""
        if math.isinf(self.rate):
            return 0.0
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
            self._last = now
            self._tokens -= 1.0
            delay = -self._tokens / self.rate if self._tokens < 0 else 0.0
        if delay > 0:
            self._sleep(delay)
        return delay


class HttpClient:
    """The base of a client stack, sending requests through a requests session."""

    def __init__(
        self, session: requests.Session | None = None, timeout: float | None = None
    ) -> None:
        self._owns_session = session is None
        self.session = requests.Session() if session is None else session
        self.timeout = timeout

    def do(self, request: Request) -> Any:
        """Send a request, following redirects."""
        if isinstance(request, requests.Request):
            prepared = self.session.prepare_request(request)
        else:
            prepared = request
        return self.session.send(prepared, allow_redirects=True, timeout=self.timeout)

    def get(self, url: str) -> Any:
        return self.session.get(url, timeout=self.timeout)

    def head(self, url: str) -> Any:
        return self.session.head(url, allow_redirects=True, timeout=self.timeout)

    def post(self, url: str, content_type: str, body: Any) -> Any:
        return self.session.post(
            url, data=body, headers={"Content-Type": content_type}, timeout=self.timeout
        )

    def post_form(self, url: str, data: FormData) -> Any:
        return self.post(url, FORM_CONTENT_TYPE, _encode_form(data))

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class HeaderClient:
    """Adds extra header fields to every request, leaving the caller's request untouched."""

    client: Client
    header: Mapping[str, HeaderValues] = field(default_factory=dict)

    def do(self, request: Request) -> Any:
        outgoing = copy.copy(request)
        headers: CaseInsensitiveDict[str] = CaseInsensitiveDict(request.headers or {})
        for key, values in self.header.items():
            for value in _values(values):
                if key in headers:
                    headers[key] = f"{headers[key]}, {value}"
                else:
                    headers[key] = value
        outgoing.headers = headers
        return self.client.do(outgoing)

    def get(self, url: str) -> Any:
        return self.do(requests.Request("GET", url))

    def head(self, url: str) -> Any:
        return self.do(requests.Request("HEAD", url))

    def post(self, url: str, content_type: str, body: Any) -> Any:
        return self.do(
            requests.Request("POST", url, data=body, headers={"Content-Type": content_type})
        )

    def post_form(self, url: str, data: FormData) -> Any:
        return self.post(url, FORM_CONTENT_TYPE, _encode_form(data))


@dataclass
class LoggingClient:
    """Logs the method and URL of every call before passing it on."""

    client: Client
    log: Callable[[str, str], None] | None = None

    def _log(self, method: str, url: str) -> None:
        if self.log is not None:
            self.log(method, url)
        else:
            _logger.info("[%s]: %s", method, url)

    def do(self, request: Request) -> Any:
        self._log("DO", str(request.url))
        return self.client.do(request)

    def get(self, url: str) -> Any:
        self._log("GET", url)
        return self.client.get(url)

    def head(self, url: str) -> Any:
        self._log("HEAD", url)
        return self.client.head(url)

    def post(self, url: str, content_type: str, body: Any) -> Any:
        self._log("POST", url)
        return self.client.post(url, content_type, body)

    def post_form(self, url: str, data: FormData) -> Any:
        self._log("POST FORM", url)
        return self.client.post_form(url, data)


@dataclass
class LimitingClient:
    """Waits on a rate limiter before every call."""

    client: Client
    limiter: Any

    def do(self, request: Request) -> Any:
        self.limiter.wait()
        return self.client.do(request)

    def get(self, url: str) -> Any:
        self.limiter.wait()
        return self.client.get(url)

    def head(self, url: str) -> Any:
        self.limiter.wait()
        return self.client.head(url)

    def post(self, url: str, content_type: str, body: Any) -> Any:
        self.limiter.wait()
        return self.client.post(url, content_type, body)

    def post_form(self, url: str, data: FormData) -> Any:
        self.limiter.wait()
        return self.client.post_form(url, data)