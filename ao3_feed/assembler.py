"""Mapping of scraped works onto RSS feed records."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from . import __version__
from .fetcher import DEFAULT_BASE_URL, work_url
from .models import Chapter, Feed, FeedItem, Work

logger = logging.getLogger(__name__)

DESCRIPTION_SEPARATOR = "<hr />"
GENERATOR = f"ao3-feed {__version__}"


def chapter_label(chapter: Chapter) -> str:
    """Scraped chapter title, or a synthesized "Chapter N" label."""
    return chapter.title or f"Chapter {chapter.ordinal}"


def chapter_description(chapter: Chapter) -> str:
    """Chapter summary (when present), a separator, then the chapter body."""
    if chapter.summary:
        return f"{chapter.summary}{DESCRIPTION_SEPARATOR}{chapter.body}"
    return chapter.body


def _as_datetime(value: Optional[date]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def assemble_feed(work: Work, base_url: str = DEFAULT_BASE_URL) -> Feed:
    """Build the feed for a work. Items follow chapter order."""
    link = work_url(work.work_id, base_url)
    items = [
        FeedItem(
            title=chapter_label(chapter),
            link=f"{link}#chapter-{chapter.ordinal}",
            description=chapter_description(chapter),
            guid=f"{work.work_id}-{chapter.ordinal}",
            guid_is_permalink=False,
            content=chapter.body,
        )
        for chapter in work.chapters
    ]

    published = _as_datetime(work.published)
    feed = Feed(
        title=work.title,
        link=link,
        description=work.summary or "",
        items=items,
        language=work.language,
        pub_date=published,
        last_build_date=_as_datetime(work.updated) or published,
        categories=list(work.fandoms),
        generator=GENERATOR,
    )
    logger.debug("Assembled feed for work %s with %d items", work.work_id, len(items))
    return feed
