import logging
from unittest.mock import Mock

import pytest
import requests

from csafutil.client import (
    HeaderClient,
    HttpClient,
    LimitingClient,
    LoggingClient,
    RateLimiter,
)

URL = "https://example.com/a"


class Recorder:
    def __init__(self, events=None):
        self.calls = []
        self.events = events if events is not None else []

    def _record(self, name, *args):
        self.calls.append((name, *args))
        self.events.append(name)
        return ("response", name)

    def do(self, request):
        return self._record("do", request)

    def get(self, url):
        return self._record("get", url)

    def head(self, url):
        return self._record("head", url)

    def post(self, url, content_type, body):
        return self._record("post", url, content_type, body)

    def post_form(self, url, data):
        return self._record("post_form", url, data)


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_header_client_adds_headers_to_copy():
    rec = Recorder()
    request = requests.Request("GET", URL, headers={"Accept": "text/html"})
    hc = HeaderClient(rec, {"User-Agent": "csafutil", "Accept": ["application/json"]})
    assert hc.do(request) == ("response", "do")
    sent = rec.calls[0][1]
    assert sent.headers["User-Agent"] == "csafutil"
    assert sent.headers["accept"] == "text/html, application/json"
    assert request.headers == {"Accept": "text/html"}


@pytest.mark.parametrize("name,method", [("get", "GET"), ("head", "HEAD")])
def test_header_client_builds_requests(name, method):
    rec = Recorder()
    hc = HeaderClient(rec, {"X-Test": "1"})
    getattr(hc, name)(URL)
    sent = rec.calls[0][1]
    assert (rec.calls[0][0], sent.method, sent.url) == ("do", method, URL)
    assert sent.headers["X-Test"] == "1"


def test_header_client_post_sets_content_type():
    rec = Recorder()
    HeaderClient(rec, {}).post(URL, "text/plain", b"body")
    sent = rec.calls[0][1]
    assert sent.method == "POST"
    assert sent.headers["Content-Type"] == "text/plain"
    assert sent.data == b"body"


def test_header_client_post_form_encodes_sorted():
    rec = Recorder()
    HeaderClient(rec, {}).post_form(URL, {"b": "x y", "a": ["1", "2"]})
    sent = rec.calls[0][1]
    assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert sent.data == "a=1&a=2&b=x+y"


@pytest.mark.parametrize(
    "name,args,logged",
    [
        ("get", (URL,), "GET"),
        ("head", (URL,), "HEAD"),
        ("post", (URL, "text/plain", b"x"), "POST"),
        ("post_form", (URL, {"k": "v"}), "POST FORM"),
    ],
)
def test_logging_client_logs_and_forwards(name, args, logged):
    rec = Recorder()
    seen = []
    lc = LoggingClient(rec, lambda method, url: seen.append((method, url)))
    assert getattr(lc, name)(*args) == ("response", name)
    assert seen == [(logged, URL)]
    assert rec.calls == [(name, *args)]


def test_logging_client_do_logs_request_url():
    rec = Recorder()
    seen = []
    LoggingClient(rec, lambda m, u: seen.append((m, u))).do(requests.Request("GET", URL))
    assert seen == [("DO", URL)]


def test_logging_client_default_log(caplog):
    with caplog.at_level(logging.INFO, logger="csafutil.client"):
        LoggingClient(Recorder()).get(URL)
    assert f"[GET]: {URL}" in caplog.messages


class CountingLimiter:
    def __init__(self, events):
        self.events = events

    def wait(self):
        self.events.append("wait")
        return 0.0


@pytest.mark.parametrize(
    "name,args",
    [
        ("do", (requests.Request("GET", URL),)),
        ("get", (URL,)),
        ("head", (URL,)),
        ("post", (URL, "text/plain", b"x")),
        ("post_form", (URL, {})),
    ],
)
def test_limiting_client_waits_first(name, args):
    events = []
    rec = Recorder(events)
    lc = LimitingClient(rec, CountingLimiter(events))
    assert getattr(lc, name)(*args) == ("response", name)
    assert events == ["wait", name]


def test_rate_limiter_burst_then_delay():
    clk = FakeClock()
    limiter = RateLimiter(2.0, 1, clock=clk.time, sleep=clk.sleep)
    assert limiter.wait() == 0.0
    assert limiter.wait() == pytest.approx(0.5)
    assert clk.sleeps == [pytest.approx(0.5)]


def test_rate_limiter_allows_burst():
    clk = FakeClock()
    limiter = RateLimiter(1.0, 3, clock=clk.time, sleep=clk.sleep)
    delays = [limiter.wait() for _ in range(3)]
    assert delays == [0.0, 0.0, 0.0]
    assert limiter.wait() > 0
    assert len(clk.sleeps) == 1


def test_rate_limiter_refills_over_time():
    clk = FakeClock()
    limiter = RateLimiter(1.0, 1, clock=clk.time, sleep=clk.sleep)
    limiter.wait()
    clk.now += 10
    assert limiter.wait() == 0.0
    assert clk.sleeps == []


def test_rate_limiter_infinite_never_sleeps():
    clk = FakeClock()
    limiter = RateLimiter(float("inf"), 1, clock=clk.time, sleep=clk.sleep)
    assert [limiter.wait() for _ in range(5)] == [0.0] * 5
    assert clk.sleeps == []


@pytest.mark.parametrize("rate,burst", [(0, 1), (-1, 1), (1, 0)])
def test_rate_limiter_rejects_bad_settings(rate, burst):
    with pytest.raises(ValueError):
        RateLimiter(rate, burst)


def test_http_client_head_follows_redirects():
    session = Mock()
    client = HttpClient(session=session, timeout=5)
    assert client.head(URL) is session.head.return_value
    session.head.assert_called_once_with(URL, allow_redirects=True, timeout=5)


def test_http_client_do_prepares_request():
    session = Mock()
    client = HttpClient(session=session)
    request = requests.Request("GET", URL)
    assert client.do(request) is session.send.return_value
    session.prepare_request.assert_called_once_with(request)
    session.send.assert_called_once_with(
        session.prepare_request.return_value, allow_redirects=True, timeout=None
    )


def test_http_client_post_form():
    session = Mock()
    client = HttpClient(session=session)
    assert client.post_form(URL, {"k": "v"}) is session.post.return_value
    session.post.assert_called_once_with(
        URL,
        data="k=v",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=None,
    )