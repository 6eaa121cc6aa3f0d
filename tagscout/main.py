"""Command line entry point for tagscout."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

import structlog

from .factory import PLATFORMS, fetch_from_platforms
from .models import Post
from .utils import get_settings

logger = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    """Route structlog through stdlib logging on stderr."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    # Suppress noisy HTTP request logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def format_post(post: Post) -> str:
    """One-line summary of a post."""
    parts = [f"[{post.platform}]"]
    if post.author:
        parts.append(post.author)
    parts.append(post.title)
    line = " · ".join(parts)
    if post.url:
        line += f" · {post.url}"
    return line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tagscout",
        description="Fetch recent social media posts for a tag",
    )
    parser.add_argument("tag", help="Tag to search for (a leading '#' is ignored)")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum posts per platform (default: DEFAULT_LIMIT setting)",
    )
    parser.add_argument(
        "--platform",
        choices=[*PLATFORMS, "all"],
        default="reddit",
        help="Platform to search (default: reddit)",
    )
    parser.add_argument("--json", action="store_true", help="Print posts as JSON")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override LOG_LEVEL",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    platforms = PLATFORMS if args.platform == "all" else (args.platform,)
    limit = args.limit if args.limit is not None else settings.default_limit

    results = asyncio.run(fetch_from_platforms(args.tag, limit, platforms, settings))
    posts = [post for platform_posts in results.values() for post in platform_posts]

    if args.json:
        print(json.dumps([p.model_dump(mode="json") for p in posts], ensure_ascii=False, indent=2))
    elif not posts:
        print(f"No posts found for '{args.tag}'.")
    else:
        for post in posts:
            print(format_post(post))

    logger.debug("cli_done", tag=args.tag, platforms=list(platforms), count=len(posts))
    return 0
