"""Exceptions raised inside the retrieval pipeline.

None of these escape a service's ``fetch_posts_from_tag``; strategy loops
catch them, log them and move on to the next strategy.
"""

from typing import Optional


class PlatformAPIError(Exception):
    """Base exception for platform HTTP errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(self.message)


class UnauthorizedError(PlatformAPIError):
    """401/403 from an authenticated endpoint."""

    pass


class RateLimitExceeded(PlatformAPIError):
    """Rate limit exceeded exception."""

    pass


class ListingFormatError(ValueError):
    """Response body is not valid JSON or lacks the expected listing shape."""
