"""Canonical post model shared by every platform service."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Post(BaseModel):
    """One fetched social media item, platform-agnostic.

    Instances are built by the listing normalizer and are read-only afterwards.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    platform: str
    title: str
    author: Optional[str] = None  # "u/name", "@handle@instance", ...
    group: Optional[str] = None  # subreddit / community
    permalink: Optional[str] = None
    external_url: Optional[str] = None
    content: str
    score: int = 0
    num_comments: int = 0
    created_at_epoch_seconds: int = Field(default=0, ge=0)  # 0 = unknown
    tags: tuple[str, ...] = ()

    # Secondary engagement fields
    like_count: Optional[int] = None  # None => same as score
    share_count: int = 0
    thumbnail_url: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _content_defaults_to_title(cls, data: Any) -> Any:
        if isinstance(data, dict):
            content = data.get("content")
            if not isinstance(content, str) or not content.strip():
                data = {**data, "content": data.get("title") or ""}
        return data

    @property
    def key(self) -> tuple[str, Optional[str]]:
        """Identity of the post; ids are only unique within a platform."""
        return (self.platform, self.id)

    @property
    def url(self) -> Optional[str]:
        """External link if there is one, otherwise the permalink."""
        if self.external_url and self.external_url.strip():
            return self.external_url
        return self.permalink

    @property
    def likes(self) -> int:
        return self.like_count if self.like_count is not None else self.score

    @property
    def created_at(self) -> Optional[datetime]:
        if self.created_at_epoch_seconds <= 0:
            return None
        return datetime.fromtimestamp(self.created_at_epoch_seconds, tz=timezone.utc)
