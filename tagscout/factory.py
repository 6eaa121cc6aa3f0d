"""Platform service factory."""

import asyncio
from typing import Iterable, Optional

import structlog

from .events import EventSink
from .mastodon import MastodonService
from .models import Post
from .providers import SocialMediaService
from .reddit import RedditService
from .utils.config import Settings, get_settings

logger = structlog.get_logger()

PLATFORMS = ("reddit", "mastodon")


def create_service(
    platform: Optional[str],
    settings: Optional[Settings] = None,
    on_event: Optional[EventSink] = None,
) -> SocialMediaService:
    """Build the service for a platform name.

    Unknown or missing platform names fall back to Reddit.
    """
    settings = settings or get_settings()
    name = (platform or "").strip().lower()

    if name == "mastodon":
        return MastodonService(
            instance=settings.mastodon_instance,
            user_agent=settings.mastodon_user_agent,
            timeout=settings.http_timeout,
            on_event=on_event,
        )
    if name != "reddit":
        logger.warning("unknown_platform_defaulting_to_reddit", platform=platform)

    return RedditService(
        credentials=settings.reddit_credentials(),
        user_agent=settings.reddit_user_agent,
        timeout=settings.http_timeout,
        on_event=on_event,
    )


async def fetch_from_platforms(
    tag: str,
    limit: int,
    platforms: Iterable[str] = PLATFORMS,
    settings: Optional[Settings] = None,
) -> dict[str, list[Post]]:
    """Fetch the same tag from several platforms concurrently.

    Returns:
        Mapping of platform name to its posts, in the order requested.
    """
    services: list[SocialMediaService] = []
    seen: set[str] = set()
    for platform in platforms:
        service = create_service(platform, settings)
        # unknown names fall back to reddit; run each platform once
        if service.platform_name in seen:
            continue
        seen.add(service.platform_name)
        services.append(service)

    results = await asyncio.gather(
        *(service.fetch_posts_from_tag(tag, limit) for service in services)
    )
    return {service.platform_name: posts for service, posts in zip(services, results)}
