"""Mastodon integration module."""

from .client import MastodonService

__all__ = ["MastodonService"]
