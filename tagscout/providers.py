"""Social media service protocol.

This is the only surface the UI / command layer talks to. Platform services
are plugged in behind it without coupling callers to any HTTP details.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Post

DEFAULT_USER_AGENT = "TagScout/1.0 (+https://example.com)"


@runtime_checkable
class SocialMediaService(Protocol):
    """Protocol for tag-based post sources."""

    platform_name: str  # "reddit", "mastodon", ...

    async def fetch_posts_from_tag(self, tag: str, limit: int = 20) -> list[Post]:
        """Fetch recent posts for a tag.

        Should return empty list on failure; must not raise.
        """
        ...
