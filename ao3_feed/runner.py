"""High-level orchestration of the fetch, extract, assemble and render steps."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from .assembler import assemble_feed
from .extractor import extract_work
from .fetcher import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    fetch_work_page,
)
from .renderer import render_feed

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Source-site options for building a single feed."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


def execute(work_id: str, config: RunConfig) -> bytes:
    """Build the rendered feed for one work. Every step runs exactly once."""
    started = time.monotonic()

    raw = fetch_work_page(
        work_id,
        base_url=config.base_url,
        timeout=config.timeout,
        user_agent=config.user_agent,
    )
    work = extract_work(raw, work_id)
    feed = assemble_feed(work, base_url=config.base_url)
    payload = render_feed(feed)

    logger.info(
        "Built feed for work %s: %d items, %d bytes in %.2fs",
        work_id,
        len(feed.items),
        len(payload),
        time.monotonic() - started,
    )
    return payload
