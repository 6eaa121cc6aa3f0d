"""Utility modules."""

from .config import Settings, get_settings
from .ingestion import normalize, normalize_mastodon_statuses, normalize_reddit_listing

__all__ = [
    "Settings",
    "get_settings",
    "normalize",
    "normalize_mastodon_statuses",
    "normalize_reddit_listing",
]
