"""Reddit retrieval service.

Composes token acquisition and the search cascade behind
``fetch_posts_from_tag``. Every call opens its own HTTP client, authenticates
from scratch and never raises.
"""

from typing import Optional, Union

import httpx
import structlog

from ..events import EventSink, as_sinks
from ..models import Post
from ..providers import DEFAULT_USER_AGENT, SocialMediaService
from .auth import CredentialResolver, RedditCredentials, Token
from .search import DEFAULT_LIMIT, SearchCascade, normalize_tag

logger = structlog.get_logger()


class RedditService(SocialMediaService):
    """Search Reddit through the OAuth API with a public JSON fallback.

    Usage:
        service = RedditService(RedditCredentials(client_id="...", client_secret="..."))
        posts = await service.fetch_posts_from_tag("python", 25)
    """

    platform_name = "reddit"

    def __init__(
        self,
        credentials: Optional[RedditCredentials] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_event: Union[EventSink, list[EventSink], None] = None,
    ):
        self.credentials = credentials or RedditCredentials()
        self.user_agent = (user_agent or "").strip() or DEFAULT_USER_AGENT
        self.timeout = timeout
        self._transport = transport
        self._sinks = as_sinks(on_event)

    @property
    def has_credentials(self) -> bool:
        return self.credentials.has_any

    async def fetch_posts_from_tag(self, tag: str, limit: int = DEFAULT_LIMIT) -> list[Post]:
        """Fetch posts for a tag; returns [] on any failure."""
        if not normalize_tag(tag):
            return []

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                token: Optional[str] = None
                if self.has_credentials:
                    resolver = CredentialResolver(client, self.user_agent, on_event=self._sinks)
                    result = await resolver.resolve(self.credentials)
                    if isinstance(result, Token):
                        token = result.value
                    else:
                        logger.info("reddit_token_unavailable", reason=result.reason)

                cascade = SearchCascade(client, self.user_agent, on_event=self._sinks)
                posts = await cascade.search(tag, limit, token=token)
        except Exception as exc:  # noqa: BLE001
            logger.warning("reddit_fetch_failed", tag=tag, error=str(exc))
            return []

        logger.info("reddit_posts_fetched", tag=normalize_tag(tag), count=len(posts))
        return posts
