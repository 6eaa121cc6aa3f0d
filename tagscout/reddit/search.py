"""Reddit search cascade.

Authenticated search intermittently returns empty or forbidden results, so
several (endpoint, sort) combinations are tried in order. The first one that
yields posts wins. If none does, one unauthenticated call to the public JSON
endpoint is made and whatever it returns is the answer.
"""

from dataclasses import dataclass
from typing import Optional, Union

import httpx
import structlog

from ..errors import ListingFormatError, PlatformAPIError, RateLimitExceeded, UnauthorizedError
from ..events import EventEmitter, EventSink, Stage, as_sinks
from ..models import Post
from ..utils.ingestion import normalize_reddit_listing

logger = structlog.get_logger()

OAUTH_BASE_URL = "https://oauth.reddit.com"
PUBLIC_BASE_URL = "https://www.reddit.com"

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
PUBLIC_MAX_LIMIT = 50


def normalize_tag(tag: Optional[str]) -> str:
    """Strip whitespace and a leading '#'."""
    tag = (tag or "").strip()
    if tag.startswith("#"):
        tag = tag[1:].strip()
    return tag


def clamp_limit(limit: Optional[int], upper: int = MAX_LIMIT, default: int = DEFAULT_LIMIT) -> int:
    """Unset or non-positive limits become ``default``; the result is in [1, upper]."""
    if limit is None or limit <= 0:
        limit = default
    return max(1, min(limit, upper))


@dataclass(frozen=True)
class SearchStrategy:
    """One search endpoint/sort combination.

    Attributes:
        name: Strategy name used in logs and events.
        base_url: Host the path is resolved against.
        path: Endpoint path, e.g. ``/search`` or ``/r/all/search``.
        sort: ``relevance`` or ``new``.
        authenticated: Sends the bearer token when True.
        max_limit: Upper bound applied to the requested limit.
    """

    name: str
    base_url: str
    path: str
    sort: str = "relevance"
    authenticated: bool = True
    max_limit: int = MAX_LIMIT

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}"

    def params(self, tag: str, limit: int) -> dict[str, Union[str, int]]:
        return {
            "q": tag,
            "limit": min(limit, self.max_limit),
            "sort": self.sort,
            "type": "link",
            "restrict_sr": "false",
            "include_over_18": "on",
            "raw_json": 1,
        }


DEFAULT_SEARCHES: tuple[SearchStrategy, ...] = (
    SearchStrategy("global_relevance", OAUTH_BASE_URL, "/search", sort="relevance"),
    SearchStrategy("global_new", OAUTH_BASE_URL, "/search", sort="new"),
    SearchStrategy("all_relevance", OAUTH_BASE_URL, "/r/all/search", sort="relevance"),
    SearchStrategy("all_new", OAUTH_BASE_URL, "/r/all/search", sort="new"),
)

PUBLIC_SEARCH = SearchStrategy(
    "public_json",
    PUBLIC_BASE_URL,
    "/search.json",
    sort="relevance",
    authenticated=False,
    max_limit=PUBLIC_MAX_LIMIT,
)


class SearchCascade:
    """Run search strategies in order until one returns posts.

    Usage:
        async with httpx.AsyncClient() as client:
            cascade = SearchCascade(client, user_agent="my-app/1.0")
            posts = await cascade.search("python", 25, token="abc")
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        strategies: tuple[SearchStrategy, ...] = DEFAULT_SEARCHES,
        fallback: SearchStrategy = PUBLIC_SEARCH,
        on_event: Union[EventSink, list[EventSink], None] = None,
    ):
        self._client = client
        self.user_agent = user_agent
        self.strategies = strategies
        self.fallback = fallback
        self._events = EventEmitter("reddit", as_sinks(on_event))

    async def search(
        self,
        tag: Optional[str],
        limit: Optional[int] = DEFAULT_LIMIT,
        token: Optional[str] = None,
    ) -> list[Post]:
        """Search posts for a tag.

        Args:
            tag: Search tag; a leading '#' is dropped.
            limit: Requested page size, clamped to [1, 100].
            token: Bearer token. Without one only the public fallback runs.

        Returns:
            Posts from the first strategy that produced any, else the
            fallback's result (possibly empty). Never raises for HTTP or
            payload failures.
        """
        query = normalize_tag(tag)
        if not query:
            return []
        capped = clamp_limit(limit)

        if token:
            for strategy in self.strategies:
                posts = await self._attempt(strategy, "search", query, capped, token)
                if posts:
                    return posts
        else:
            logger.debug("reddit_search_no_token", tag=query)

        posts = await self._attempt(self.fallback, "fallback", query, capped, None)
        return posts or []

    async def _attempt(
        self,
        strategy: SearchStrategy,
        stage: Stage,
        query: str,
        limit: int,
        token: Optional[str],
    ) -> Optional[list[Post]]:
        """Run one strategy. Returns None on failure, [] on a dead end."""
        effective_limit = min(limit, strategy.max_limit)
        try:
            posts = await self._request(strategy, query, effective_limit, token)
        except (PlatformAPIError, ListingFormatError, httpx.HTTPError) as exc:
            status_code = getattr(exc, "status_code", None)
            logger.warning(
                "reddit_search_failed",
                strategy=strategy.name,
                status_code=status_code,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self._events.emit(
                stage, strategy.name, "failure", status_code=status_code, detail=str(exc)
            )
            return None

        posts = posts[:effective_limit]
        if not posts:
            self._events.emit(stage, strategy.name, "dead_end", status_code=200, count=0)
            return []

        self._events.emit(stage, strategy.name, "success", status_code=200, count=len(posts))
        return posts

    async def _request(
        self,
        strategy: SearchStrategy,
        query: str,
        limit: int,
        token: Optional[str],
    ) -> list[Post]:
        """Issue the GET for one strategy and normalize the listing."""
        headers = {"User-Agent": self.user_agent}
        if strategy.authenticated:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("reddit_search_request", strategy=strategy.name, tag=query, limit=limit)
        response = await self._client.get(
            strategy.url,
            params=strategy.params(query, limit),
            headers=headers,
        )

        if response.status_code in (401, 403):
            raise UnauthorizedError(
                "Unauthorized/Forbidden (check client id, secret and scopes)",
                status_code=response.status_code,
                body=response.text,
            )
        if response.status_code == 429:
            raise RateLimitExceeded(
                "Rate limit exceeded",
                status_code=429,
                body=response.text,
            )
        if not response.is_success:
            raise PlatformAPIError(
                f"search failed: HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return normalize_reddit_listing(response.content)
