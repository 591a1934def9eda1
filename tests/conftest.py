import json
import os
from http import HTTPStatus

# Keep test runs from writing log files into the user's data dir
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
import requests
from tenacity import wait_none

from api import http as api_http
from core.models import Product
from core.notifier import Notifier


def make_response(status: int, body=None, reason: str | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.reason = reason or HTTPStatus(status).phrase
    r.encoding = "utf-8"
    r.headers["Content-Type"] = "application/json"
    r._content = b"" if body is None else json.dumps(body).encode("utf-8")
    return r


class FakeBackend:
    """
    Stand-in for the QKart backend, patched over the shared requests session.
    Each route holds a queue of responses; the last one repeats.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method: str, path: str, status: int = 200, body=None, reason: str | None = None):
        self.routes.setdefault((method, path), []).append(make_response(status, body, reason))

    def fail(self, method: str, path: str, exc: Exception):
        self.routes.setdefault((method, path), []).append(exc)

    def calls_to(self, method: str, path: str):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    def request(self, method, url, timeout=None, headers=None, params=None, json=None):
        path = url[len(api_http.ENDPOINT):]
        self.calls.append(
            {
                "method": method,
                "path": path,
                "headers": headers or {},
                "params": params,
                "json": json,
                "timeout": timeout,
            }
        )
        queue = self.routes.get((method, path))
        if not queue:
            return make_response(404, {"success": False, "message": "Route not found"})
        resp = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(resp, Exception):
            raise resp
        return resp


class FakeTimer:
    def __init__(self, clock, interval, function, args=None, kwargs=None):
        self.clock = clock
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.due = None
        self.cancelled = False
        self.fired = False

    def start(self):
        self.due = self.clock.now + self.interval

    def cancel(self):
        self.cancelled = True

    @property
    def live(self) -> bool:
        return self.due is not None and not self.cancelled and not self.fired


class FakeClock:
    """Manual clock that drives FakeTimers; times are in seconds."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def timer(self, interval, function, args=None, kwargs=None):
        t = FakeTimer(self, interval, function, args, kwargs)
        self.timers.append(t)
        return t

    def advance_to(self, ms: float):
        target = ms / 1000.0
        while True:
            due = [t for t in self.timers if t.live and t.due <= target + 1e-9]
            if not due:
                break
            t = min(due, key=lambda x: x.due)
            self.now = t.due
            t.fired = True
            t.function(*t.args, **t.kwargs)
        self.now = target


@pytest.fixture
def backend(monkeypatch) -> FakeBackend:
    fb = FakeBackend()
    monkeypatch.setattr(api_http.SESSION, "request", fb.request)
    monkeypatch.setattr(api_http._send.retry, "wait", wait_none())
    return fb


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier(tmp_path) -> Notifier:
    stream = open(tmp_path / "notifications.txt", "w+", encoding="utf-8")
    yield Notifier(stream=stream)
    stream.close()


@pytest.fixture
def catalog_json():
    return [
        {
            "name": "iPhone XR",
            "category": "Phones",
            "cost": 100,
            "rating": 4,
            "image": "https://i.imgur.com/lulqWzW.jpg",
            "_id": "A",
        },
        {
            "name": "Basketball",
            "category": "Sports",
            "cost": 100,
            "rating": 5,
            "image": "https://i.imgur.com/lulqWzW.jpg",
            "_id": "B",
        },
        {
            "name": "Tan Leatherette Weekender Duffle",
            "category": "Fashion",
            "cost": 150,
            "rating": 4,
            "image": "https://crio-directus-assets.s3.ap-south-1.amazonaws.com/ff071a1c-1099-48f9-9b03-f858ccc53832.png",
            "_id": "C",
        },
    ]


@pytest.fixture
def catalog(catalog_json):
    return [Product.from_json(p) for p in catalog_json]
