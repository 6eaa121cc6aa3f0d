"""Reddit integration module."""

from .auth import CredentialResolver, RedditCredentials, Token, TokenResult, Unavailable
from .client import RedditService
from .search import SearchCascade, clamp_limit, normalize_tag

__all__ = [
    "CredentialResolver",
    "RedditCredentials",
    "RedditService",
    "SearchCascade",
    "Token",
    "TokenResult",
    "Unavailable",
    "clamp_limit",
    "normalize_tag",
]
