"""Shared data models for ao3_feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


@dataclass
class Chapter:
    """One chapter of a work, in document order."""

    ordinal: int
    body: str
    title: Optional[str] = None
    summary: Optional[str] = None


@dataclass
class Work:
    """A scraped AO3 work."""

    work_id: str
    title: str
    author: str
    summary: Optional[str] = None
    chapters: List[Chapter] = field(default_factory=list)
    published: Optional[date] = None
    updated: Optional[date] = None
    language: Optional[str] = None
    fandoms: List[str] = field(default_factory=list)


@dataclass
class FeedItem:
    """A single RSS item; maps 1:1 to a chapter."""

    title: str
    link: str
    description: str
    guid: str
    guid_is_permalink: bool = False
    # Chapter body alone, emitted as content:encoded.
    content: Optional[str] = None


@dataclass
class Feed:
    """RSS channel metadata plus its items."""

    title: str
    link: str
    description: str
    items: List[FeedItem] = field(default_factory=list)
    language: Optional[str] = None
    pub_date: Optional[datetime] = None
    last_build_date: Optional[datetime] = None
    categories: List[str] = field(default_factory=list)
    generator: Optional[str] = None
