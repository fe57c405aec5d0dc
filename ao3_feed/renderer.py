"""RSS serialization through a Jinja2 template."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from email.utils import format_datetime
from importlib import resources

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from .errors import RenderError
from .models import Feed

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "feed.xml.j2"
XML_DECLARATION = b'<?xml version="1.0" encoding="UTF-8"?>\n'

# Code points XML 1.0 does not allow, even as character references.
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")

_ENV: Environment | None = None


def _xml_safe(value: object) -> str:
    """Drop characters that cannot appear in an XML document."""
    if value is None:
        return ""
    return _XML_ILLEGAL.sub("", str(value))


def _rfc822(value: datetime) -> str:
    return format_datetime(value)


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["xml", "xml.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["xml_safe"] = _xml_safe
        _ENV.filters["rfc822"] = _rfc822
    return _ENV


def _validate(feed: Feed) -> None:
    if not feed.title:
        raise RenderError("feed has no title")
    if not feed.link:
        raise RenderError("feed has no link")
    if not feed.items:
        raise RenderError("feed has no items")
    guids = [item.guid for item in feed.items]
    if len(set(guids)) != len(guids):
        raise RenderError("feed items do not have unique guids")


def render_feed(feed: Feed) -> bytes:
    """Serialize a feed as UTF-8 RSS 2.0."""
    _validate(feed)
    try:
        template = get_environment().get_template(TEMPLATE_NAME)
        document = template.render(feed=feed)
    except TemplateError as exc:
        logger.error("Failed to render feed '%s': %s", feed.title, exc)
        raise RenderError(f"template rendering failed: {exc}") from exc

    payload = document.encode("utf-8")
    logger.debug("Rendered feed '%s' (%d bytes)", feed.title, len(payload))
    return payload
