"""Extraction of work and chapter data from AO3 full-work pages.

All assumptions about AO3's markup live in ``SELECTORS``. Each lookup
produces an ``Anchor`` tagged as found, absent-but-optional or
absent-and-fatal, and only fatal anchors stop the extraction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag

from .errors import ParseError
from .models import Chapter, Work

logger = logging.getLogger(__name__)

SELECTORS = {
    "work_title": "h2.title",
    "byline": "h3.byline",
    "author_links": "a[rel=author]",
    "work_summary": "#workskin > .preface .summary .userstuff",
    "chapters": "#chapters",
    "chapter_containers": "#chapters > .chapter",
    "oneshot_body": "#chapters > .userstuff",
    "chapter_title": "h3.title",
    "chapter_summary": ".summary .userstuff",
    "chapter_preface": ".preface",
    "landmark": ".landmark",
    "published": "dl.work.meta dd.published",
    "updated": "dl.work.meta dd.status",
    "language": "dl.work.meta dd.language",
    "fandoms": "dl.work.meta dd.fandom a.tag",
}

ANONYMOUS = "Anonymous"


class Presence(Enum):
    FOUND = "found"
    OPTIONAL_ABSENT = "absent-but-optional"
    FATAL_ABSENT = "absent-and-fatal"


@dataclass(frozen=True)
class Anchor:
    """Outcome of looking up one structural element of the page."""

    name: str
    node: Optional[Tag]
    presence: Presence

    @property
    def found(self) -> bool:
        return self.presence is Presence.FOUND

    def require(self) -> Tag:
        """Return the node, raising ParseError when a required anchor is missing."""
        if self.presence is Presence.FATAL_ABSENT or self.node is None:
            raise ParseError(f"missing {self.name} ({SELECTORS[self.name]})")
        return self.node


def locate(scope: Union[BeautifulSoup, Tag], name: str, required: bool = False) -> Anchor:
    """Look up a named selector under ``scope``."""
    node = scope.select_one(SELECTORS[name])
    if node is not None:
        return Anchor(name, node, Presence.FOUND)
    presence = Presence.FATAL_ABSENT if required else Presence.OPTIONAL_ABSENT
    logger.debug("Anchor %s is %s", name, presence.value)
    return Anchor(name, None, presence)


def inner_html(node: Tag) -> str:
    """Serialized children of a node, without the node's own tag."""
    return node.decode_contents().strip()


def _clean_text(node: Tag) -> str:
    return " ".join(node.get_text().split())


def _optional_text(anchor: Anchor) -> Optional[str]:
    if not anchor.found:
        return None
    return _clean_text(anchor.node) or None


def _parse_date(anchor: Anchor) -> Optional[date]:
    value = _optional_text(anchor)
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        logger.debug("Ignoring unparseable %s date %r", anchor.name, value)
        return None


def _extract_language(soup: BeautifulSoup) -> Optional[str]:
    # The dd's text is a display name ("English"); the lang attribute holds the code.
    anchor = locate(soup, "language")
    if not anchor.found:
        return None
    return anchor.node.get("lang") or _optional_text(anchor)


def _extract_author(soup: BeautifulSoup) -> str:
    byline = locate(soup, "byline")
    if not byline.found:
        return ANONYMOUS
    authors = [_clean_text(link) for link in byline.node.select(SELECTORS["author_links"])]
    authors = [name for name in authors if name]
    if authors:
        return ", ".join(authors)
    return _clean_text(byline.node) or ANONYMOUS


def _extract_body(container: Tag, ordinal: int) -> str:
    body = container.find("div", class_="userstuff", recursive=False)
    if body is not None:
        for landmark in body.select(SELECTORS["landmark"]):
            landmark.decompose()
        return inner_html(body)

    # Best effort: whatever remains once the chapter's preface blocks are gone.
    logger.warning("Chapter %d has no content block; using remaining markup", ordinal)
    for preface in container.select(SELECTORS["chapter_preface"]):
        preface.decompose()
    for landmark in container.select(SELECTORS["landmark"]):
        landmark.decompose()
    return inner_html(container)


def extract_chapter(container: Tag, ordinal: int) -> Chapter:
    """Build a Chapter from one chapter container; missing parts become empty."""
    title_anchor = locate(container, "chapter_title")
    title = _clean_text(title_anchor.node) if title_anchor.found else None

    summary_anchor = locate(container, "chapter_summary")
    summary = inner_html(summary_anchor.node) if summary_anchor.found else None

    return Chapter(
        ordinal=ordinal,
        title=title or None,
        summary=summary or None,
        body=_extract_body(container, ordinal),
    )


def _extract_chapters(soup: BeautifulSoup) -> List[Chapter]:
    chapters_root = locate(soup, "chapters", required=True)
    chapters_root.require()

    containers = soup.select(SELECTORS["chapter_containers"])
    if containers:
        return [
            extract_chapter(container, ordinal)
            for ordinal, container in enumerate(containers, start=1)
        ]

    # Single-chapter works render their text directly under #chapters.
    oneshot = locate(soup, "oneshot_body")
    if oneshot.found:
        return [extract_chapter(chapters_root.node, 1)]

    raise ParseError("no chapter containers found")


def extract_work(raw: Union[bytes, str], work_id: str) -> Work:
    """Parse a full-work page into a Work."""
    soup = BeautifulSoup(raw, "html.parser")

    title = _clean_text(locate(soup, "work_title", required=True).require())
    if not title:
        raise ParseError("work title is empty")

    summary_anchor = locate(soup, "work_summary")
    chapters = _extract_chapters(soup)

    work = Work(
        work_id=work_id,
        title=title,
        author=_extract_author(soup),
        summary=inner_html(summary_anchor.node) if summary_anchor.found else None,
        chapters=chapters,
        published=_parse_date(locate(soup, "published")),
        updated=_parse_date(locate(soup, "updated")),
        language=_extract_language(soup),
        fandoms=[_clean_text(tag) for tag in soup.select(SELECTORS["fandoms"])],
    )
    logger.info(
        "Extracted work %s '%s' with %d chapters", work_id, work.title, len(chapters)
    )
    return work
