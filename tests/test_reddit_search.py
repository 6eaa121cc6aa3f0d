"""Tests for the Reddit search cascade."""

import httpx
import pytest

from conftest import listing, reddit_record
from tagscout.reddit.search import (
    DEFAULT_SEARCHES,
    PUBLIC_SEARCH,
    SearchCascade,
    clamp_limit,
    normalize_tag,
)

SEARCH = "/search"
ALL_SEARCH = "/r/all/search"
PUBLIC = "/search.json"


async def _search(fake_reddit, tag, limit, token=None, events=None):
    async with httpx.AsyncClient(transport=fake_reddit.transport) as client:
        cascade = SearchCascade(client, "test-agent/1.0", on_event=events)
        return await cascade.search(tag, limit, token=token)


def _hosts(fake_reddit):
    return [(r.url.host, r.url.path, r.url.params.get("sort")) for r in fake_reddit.requests]


class TestHelpers:
    """Tests for normalize_tag and clamp_limit."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("java", "java"), ("#news", "news"), ("  #rust ", "rust"), ("#", ""), (None, ""), ("   ", "")],
    )
    def test_normalize_tag(self, raw, expected):
        assert normalize_tag(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected", [(None, 20), (0, 20), (-5, 20), (1, 1), (25, 25), (100, 100), (500, 100)]
    )
    def test_clamp_limit(self, raw, expected):
        assert clamp_limit(raw) == expected

    def test_strategy_table(self):
        assert [(s.path, s.sort) for s in DEFAULT_SEARCHES] == [
            (SEARCH, "relevance"),
            (SEARCH, "new"),
            (ALL_SEARCH, "relevance"),
            (ALL_SEARCH, "new"),
        ]
        assert all(s.authenticated for s in DEFAULT_SEARCHES)
        assert not PUBLIC_SEARCH.authenticated
        assert PUBLIC_SEARCH.max_limit == 50


class TestSearchCascade:
    """Tests for SearchCascade.search."""

    @pytest.mark.asyncio
    async def test_first_strategy_success_short_circuits(self, fake_reddit, events):
        fake_reddit.add("GET", SEARCH, httpx.Response(200, json=listing(reddit_record())))

        posts = await _search(fake_reddit, "java", 25, token="tok", events=events.append)

        assert [p.id for p in posts] == ["abc123"]
        assert len(fake_reddit.requests) == 1
        request = fake_reddit.requests[0]
        assert request.url.host == "oauth.reddit.com"
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["User-Agent"] == "test-agent/1.0"
        params = request.url.params
        assert params["q"] == "java"
        assert params["limit"] == "25"
        assert params["sort"] == "relevance"
        assert params["restrict_sr"] == "false"
        assert params["include_over_18"] == "on"
        assert [(e.strategy, e.outcome, e.count) for e in events] == [
            ("global_relevance", "success", 1)
        ]

    @pytest.mark.asyncio
    async def test_dead_end_then_success_skips_fallback(self, fake_reddit, events):
        fake_reddit.add(
            "GET",
            SEARCH,
            httpx.Response(200, json=listing()),
            httpx.Response(200, json=listing(reddit_record(id="second"))),
        )
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing(reddit_record())))

        posts = await _search(fake_reddit, "java", 10, token="tok", events=events.append)

        assert [p.id for p in posts] == ["second"]
        assert fake_reddit.calls(PUBLIC) == []
        assert [(e.strategy, e.outcome) for e in events] == [
            ("global_relevance", "dead_end"),
            ("global_new", "success"),
        ]

    @pytest.mark.asyncio
    async def test_failures_advance_through_every_strategy(self, fake_reddit, events):
        fake_reddit.add(
            "GET",
            SEARCH,
            httpx.Response(403, text="forbidden"),
            httpx.Response(429, text="slow down"),
        )
        fake_reddit.add(
            "GET",
            ALL_SEARCH,
            httpx.Response(500, text="oops"),
            httpx.Response(200, text="<html>not json</html>"),
        )
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing(reddit_record(id="pub"))))

        posts = await _search(fake_reddit, "java", 10, token="tok", events=events.append)

        assert [p.id for p in posts] == ["pub"]
        assert _hosts(fake_reddit) == [
            ("oauth.reddit.com", SEARCH, "relevance"),
            ("oauth.reddit.com", SEARCH, "new"),
            ("oauth.reddit.com", ALL_SEARCH, "relevance"),
            ("oauth.reddit.com", ALL_SEARCH, "new"),
            ("www.reddit.com", PUBLIC, "relevance"),
        ]
        assert [(e.stage, e.outcome, e.status_code) for e in events] == [
            ("search", "failure", 403),
            ("search", "failure", 429),
            ("search", "failure", 500),
            ("search", "failure", None),
            ("fallback", "success", 200),
        ]

    @pytest.mark.asyncio
    async def test_no_token_goes_straight_to_public_fallback(self, fake_reddit):
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing(reddit_record())))

        posts = await _search(fake_reddit, "java", 25)

        assert len(posts) == 1
        assert len(fake_reddit.requests) == 1
        request = fake_reddit.requests[0]
        assert request.url.host == "www.reddit.com"
        assert "Authorization" not in request.headers
        assert request.url.params["limit"] == "25"

    @pytest.mark.asyncio
    async def test_public_fallback_limit_is_capped(self, fake_reddit):
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing()))

        await _search(fake_reddit, "java", 100)

        assert fake_reddit.requests[0].url.params["limit"] == "50"

    @pytest.mark.asyncio
    async def test_public_fallback_empty_result_returned(self, fake_reddit, events):
        fake_reddit.add("GET", SEARCH, httpx.Response(200, json=listing()))
        fake_reddit.add("GET", ALL_SEARCH, httpx.Response(200, json=listing()))
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing()))

        posts = await _search(fake_reddit, "java", 10, token="tok", events=events.append)

        assert posts == []
        assert len(fake_reddit.calls(PUBLIC)) == 1
        assert [e.outcome for e in events] == ["dead_end"] * 5

    @pytest.mark.asyncio
    async def test_public_fallback_failure_returns_empty(self, fake_reddit):
        fake_reddit.add("GET", PUBLIC, httpx.Response(429, text="Too Many Requests"))

        assert await _search(fake_reddit, "java", 10) == []
        assert len(fake_reddit.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_a_failure(self, fake_reddit):
        def _timeout(request):
            raise httpx.ReadTimeout("timed out", request=request)

        fake_reddit.add("GET", SEARCH, _timeout)
        fake_reddit.add("GET", ALL_SEARCH, _timeout)
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing(reddit_record())))

        posts = await _search(fake_reddit, "java", 10, token="tok")

        assert len(posts) == 1

    @pytest.mark.asyncio
    async def test_hash_prefix_stripped_from_query(self, fake_reddit):
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing()))

        await _search(fake_reddit, "#news", 10)

        assert fake_reddit.requests[0].url.params["q"] == "news"
        assert "%23" not in str(fake_reddit.requests[0].url)

    @pytest.mark.asyncio
    async def test_tag_is_url_encoded(self, fake_reddit):
        fake_reddit.add("GET", PUBLIC, httpx.Response(200, json=listing()))

        await _search(fake_reddit, "c++ & rust", 10)

        request = fake_reddit.requests[0]
        assert request.url.params["q"] == "c++ & rust"
        assert b"c%2B%2B" in request.url.query

    @pytest.mark.asyncio
    async def test_blank_tag_makes_no_call(self, fake_reddit):
        assert await _search(fake_reddit, "  # ", 10, token="tok") == []
        assert fake_reddit.requests == []

    @pytest.mark.asyncio
    async def test_results_truncated_to_limit(self, fake_reddit):
        records = [reddit_record(id=str(i)) for i in range(5)]
        fake_reddit.add("GET", SEARCH, httpx.Response(200, json=listing(*records)))

        posts = await _search(fake_reddit, "java", 3, token="tok")

        assert [p.id for p in posts] == ["0", "1", "2"]

    @pytest.mark.asyncio
    async def test_raising_event_sink_does_not_break_cascade(self, fake_reddit):
        def _bad_sink(event):
            raise RuntimeError("observer broke")

        fake_reddit.add("GET", SEARCH, httpx.Response(200, json=listing(reddit_record())))

        posts = await _search(fake_reddit, "java", 10, token="tok", events=_bad_sink)

        assert len(posts) == 1
