"""Shared fixtures: a routing httpx transport that records every request."""

import sys
from typing import Callable, Union

import httpx
import pytest
import structlog

from tagscout.utils.config import Settings

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeReddit:
    """Routes requests by (method, path) and remembers what was sent.

    Each route holds a list of responses consumed in order; the last one
    repeats once the list runs out.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list[Route]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Route) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "no route"})
        route = queue.pop(0) if len(queue) > 1 else queue[0]
        return route(request) if callable(route) else route

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


def listing(*records: dict) -> dict:
    """Wrap record dicts in a Reddit listing document."""
    return {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": r} for r in records]}}


def reddit_record(**overrides) -> dict:
    record = {
        "id": "abc123",
        "title": "Learning Java in 2024",
        "selftext": "Any tips?",
        "author": "duke",
        "subreddit": "java",
        "permalink": "/r/java/comments/abc123/learning_java/",
        "url": "https://www.reddit.com/r/java/comments/abc123/learning_java/",
        "created_utc": 1700000000.0,
        "score": 42,
        "num_comments": 7,
        "thumbnail": "self",
    }
    record.update(overrides)
    return record


@pytest.fixture(autouse=True)
def _log_to_stderr():
    """Keep structlog output off stdout so CLI output can be parsed."""
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_reddit():
    return FakeReddit()


@pytest.fixture
def events():
    """Collects StrategyEvents emitted during a test."""
    return []


@pytest.fixture
def settings():
    return Settings(_env_file=None)
