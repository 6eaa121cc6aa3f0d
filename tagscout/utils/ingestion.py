"""Helpers to ingest raw platform JSON into the canonical Post model."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Mapping, Optional

from ..errors import ListingFormatError
from ..models import Post

REDDIT_BASE_URL = "https://www.reddit.com"
MASTODON_TITLE = "Mastodon post"


def _coerce_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _raw_text(value: Any) -> Optional[str]:
    """Non-blank strings unchanged; whitespace is only ignored for the blank check."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _coerce_id(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return _coerce_str(value)


def _coerce_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else default
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except (ValueError, OverflowError):
            return default
    return default


def _epoch_seconds(value: Any) -> int:
    seconds = _coerce_int(value)
    return seconds if seconds > 0 else 0


def _parse_timestamp(ts: Any) -> int:
    """ISO-8601 offset date-time to epoch seconds; 0 when unknown."""
    text = _coerce_str(ts)
    if not text:
        return 0
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        return 0
    return max(int(parsed.timestamp()), 0)


def _is_http_url(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(("http://", "https://"))


def _tag_names(items: Any, key: str) -> tuple[str, ...]:
    if not isinstance(items, list):
        return ()
    names: list[str] = []
    for item in items:
        if isinstance(item, Mapping):
            name = _coerce_str(item.get(key))
            if name:
                names.append(name)
    return tuple(names)


def _load(raw_body: Any) -> Any:
    if isinstance(raw_body, (bytes, bytearray)):
        raw_body = raw_body.decode("utf-8", errors="replace")
    if isinstance(raw_body, str):
        try:
            return json.loads(raw_body)
        except ValueError as exc:
            raise ListingFormatError(f"response body is not valid JSON: {exc}") from exc
    return raw_body


# =========================================================================
# Reddit
# =========================================================================


def reddit_post_from_item(item: Mapping[str, Any]) -> Optional[Post]:
    """Build a Post from one listing child's ``data`` object.

    Returns None when the record has no usable title.
    """
    title = _raw_text(item.get("title"))
    if not title:
        return None

    author = _coerce_str(item.get("author"))
    permalink = _coerce_str(item.get("permalink"))
    thumbnail = _coerce_str(item.get("thumbnail"))

    return Post(
        id=_coerce_id(item.get("id")),
        platform="reddit",
        title=title,
        author=f"u/{author}" if author else None,
        group=_coerce_str(item.get("subreddit")),
        permalink=f"{REDDIT_BASE_URL}{permalink}" if permalink else None,
        external_url=_coerce_str(item.get("url")),
        content=_raw_text(item.get("selftext")) or title,
        score=_coerce_int(item.get("score")),
        num_comments=_coerce_int(item.get("num_comments")),
        created_at_epoch_seconds=_epoch_seconds(item.get("created_utc")),
        tags=_tag_names(item.get("link_flair_richtext"), "t"),
        thumbnail_url=thumbnail if _is_http_url(thumbnail) else None,
    )


def normalize_reddit_listing(raw_body: Any) -> list[Post]:
    """Convert a Reddit listing document into Posts.

    Args:
        raw_body: JSON text/bytes or an already decoded document of the shape
            ``{"data": {"children": [{"data": {...}}, ...]}}``.

    Raises:
        ListingFormatError: If the body is not JSON or not a listing.
    """
    doc = _load(raw_body)
    data = doc.get("data") if isinstance(doc, Mapping) else None
    children = data.get("children") if isinstance(data, Mapping) else None
    if not isinstance(children, list):
        raise ListingFormatError("expected a listing with data.children")

    posts: list[Post] = []
    for child in children:
        item = child.get("data") if isinstance(child, Mapping) else None
        if not isinstance(item, Mapping):
            continue
        post = reddit_post_from_item(item)
        if post is not None:
            posts.append(post)
    return posts


# =========================================================================
# Mastodon
# =========================================================================


def _mastodon_handle(account: Any) -> Optional[str]:
    if not isinstance(account, Mapping):
        return None
    handle = _coerce_str(account.get("acct")) or _coerce_str(account.get("username"))
    if handle and not handle.startswith("@"):
        handle = f"@{handle}"
    return handle


def mastodon_post_from_status(status: Mapping[str, Any]) -> Post:
    """Build a Post from one Mastodon Status object."""
    author = _mastodon_handle(status.get("account"))
    # Some instances only fill in 'uri'
    status_url = _coerce_str(status.get("url")) or _coerce_str(status.get("uri"))
    favourites = _coerce_int(status.get("favourites_count"))
    title = f"{author}: {MASTODON_TITLE}" if author else MASTODON_TITLE

    return Post(
        id=_coerce_id(status.get("id")),
        platform="mastodon",
        title=title,
        author=author,
        permalink=status_url,
        external_url=status_url,
        content=_raw_text(status.get("content")) or title,
        score=favourites,
        num_comments=_coerce_int(status.get("replies_count")),
        created_at_epoch_seconds=_parse_timestamp(status.get("created_at")),
        tags=_tag_names(status.get("tags"), "name"),
        like_count=favourites,
        share_count=_coerce_int(status.get("reblogs_count")),
    )


def normalize_mastodon_statuses(raw_body: Any) -> list[Post]:
    """Convert a Mastodon timeline (JSON array of statuses) into Posts.

    Raises:
        ListingFormatError: If the body is not JSON or not an array.
    """
    doc = _load(raw_body)
    if not isinstance(doc, list):
        raise ListingFormatError("expected a JSON array of statuses")
    return [mastodon_post_from_status(s) for s in doc if isinstance(s, Mapping)]


_NORMALIZERS = {
    "reddit": normalize_reddit_listing,
    "mastodon": normalize_mastodon_statuses,
}


def normalize(raw_body: Any, platform: str) -> list[Post]:
    """Normalize a raw search-result document for the given platform."""
    try:
        normalizer = _NORMALIZERS[platform.lower()]
    except KeyError:
        raise ValueError(f"no listing normalizer for platform {platform!r}") from None
    return normalizer(raw_body)
