"""Mastodon retrieval service.

Uses the public hashtag timeline:
  GET https://<instance>/api/v1/timelines/tag/{hashtag}?limit=N
No authentication required for public timelines.
"""

from typing import Optional, Union
from urllib.parse import quote

import httpx
import structlog

from ..errors import ListingFormatError
from ..events import EventEmitter, EventSink, as_sinks
from ..models import Post
from ..providers import DEFAULT_USER_AGENT, SocialMediaService
from ..reddit.search import clamp_limit, normalize_tag
from ..utils.ingestion import normalize_mastodon_statuses

logger = structlog.get_logger()

DEFAULT_INSTANCE = "mastodon.social"
DEFAULT_LIMIT = 20
MAX_LIMIT = 80


def _instance_base_url(instance: str) -> str:
    instance = (instance or "").strip().rstrip("/") or DEFAULT_INSTANCE
    if instance.startswith(("http://", "https://")):
        return instance
    return f"https://{instance}"


class MastodonService(SocialMediaService):
    """Fetch posts from a Mastodon instance's hashtag timeline."""

    platform_name = "mastodon"

    def __init__(
        self,
        instance: str = DEFAULT_INSTANCE,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_event: Union[EventSink, list[EventSink], None] = None,
    ):
        self.base_url = _instance_base_url(instance)
        self.user_agent = (user_agent or "").strip() or DEFAULT_USER_AGENT
        self.timeout = timeout
        self._transport = transport
        self._events = EventEmitter(self.platform_name, as_sinks(on_event))

    def timeline_url(self, tag: str) -> str:
        return f"{self.base_url}/api/v1/timelines/tag/{quote(tag, safe='')}"

    async def fetch_posts_from_tag(self, tag: str, limit: int = DEFAULT_LIMIT) -> list[Post]:
        """Fetch posts; returns [] on any failure."""
        hashtag = normalize_tag(tag)
        if not hashtag:
            return []
        capped = clamp_limit(limit, upper=MAX_LIMIT, default=DEFAULT_LIMIT)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(
                    self.timeline_url(hashtag),
                    params={"limit": capped},
                    headers={"User-Agent": self.user_agent},
                )
            if not resp.is_success:
                logger.warning(
                    "mastodon_timeline_failed", status_code=resp.status_code, body=resp.text
                )
                self._events.emit(
                    "timeline", "tag_timeline", "failure", status_code=resp.status_code
                )
                return []
            posts = normalize_mastodon_statuses(resp.content)[:capped]
        except (httpx.HTTPError, ListingFormatError) as exc:
            logger.warning("mastodon_fetch_failed", tag=hashtag, error=str(exc))
            self._events.emit("timeline", "tag_timeline", "failure", detail=str(exc))
            return []
        except Exception as exc:  # noqa: BLE001
            logger.warning("mastodon_fetch_failed", tag=hashtag, error=str(exc))
            self._events.emit("timeline", "tag_timeline", "failure", detail=str(exc))
            return []

        outcome = "success" if posts else "dead_end"
        self._events.emit(
            "timeline", "tag_timeline", outcome, status_code=resp.status_code, count=len(posts)
        )
        logger.info("mastodon_posts_fetched", tag=hashtag, count=len(posts))
        return posts
