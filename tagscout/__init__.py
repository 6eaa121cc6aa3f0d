"""tagscout - fetch social media posts for a tag in one normalized shape."""

from .models import Post
from .providers import SocialMediaService

__all__ = ["Post", "SocialMediaService"]
