"""Retrieval of AO3 full-work pages."""

from __future__ import annotations

import logging
import re

import requests

from .errors import FetchError, FetchErrorKind, InvalidWorkId

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://archiveofourown.org"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "ao3-feed/0.1"

WORK_ID_PATTERN = re.compile(r"[0-9]+")
FULL_WORK_QUERY = "view_adult=true&view_full_work=true"


def validate_work_id(work_id: str) -> str:
    """Return the id unchanged, or raise InvalidWorkId."""
    if not work_id or not WORK_ID_PATTERN.fullmatch(work_id):
        raise InvalidWorkId(work_id)
    return work_id


def work_url(work_id: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """Canonical URL of a work."""
    return f"{base_url.rstrip('/')}/works/{work_id}"


def full_work_url(work_id: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """URL of the page that renders every chapter of a work."""
    return f"{work_url(work_id, base_url)}?{FULL_WORK_QUERY}"


def _classify_status(status_code: int) -> FetchErrorKind:
    if status_code in (404, 410):
        return FetchErrorKind.NOT_FOUND
    if status_code in (401, 403):
        return FetchErrorKind.FORBIDDEN
    if status_code == 429 or status_code >= 500:
        return FetchErrorKind.UNAVAILABLE
    return FetchErrorKind.UNEXPECTED_STATUS


def fetch_work_page(
    work_id: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> bytes:
    """Download the full-work view of a single work and return the raw page."""
    validate_work_id(work_id)
    url = full_work_url(work_id, base_url)
    logger.info("Fetching work %s (%s)", work_id, url)

    try:
        response = requests.get(
            url, timeout=timeout, headers={"User-Agent": user_agent}
        )
    except requests.Timeout as exc:
        logger.warning("Timed out fetching work %s after %.1fs", work_id, timeout)
        raise FetchError(
            FetchErrorKind.UNAVAILABLE, f"timed out fetching work {work_id}", exc
        ) from exc
    except requests.RequestException as exc:
        logger.warning("Failed to fetch work %s: %s", work_id, exc)
        raise FetchError(
            FetchErrorKind.UNAVAILABLE, f"could not reach source for work {work_id}", exc
        ) from exc

    status_code = response.status_code
    if not 200 <= status_code < 300:
        kind = _classify_status(status_code)
        logger.warning(
            "Source answered %d for work %s (%s)", status_code, work_id, kind.label
        )
        raise FetchError(kind, f"source answered HTTP {status_code} for work {work_id}")

    # Restricted works redirect anonymous visitors to the login form.
    if "/users/login" in (response.url or ""):
        logger.warning("Work %s is restricted to logged-in users", work_id)
        raise FetchError(
            FetchErrorKind.FORBIDDEN, f"work {work_id} is restricted to registered users"
        )

    logger.debug("Fetched %d bytes for work %s", len(response.content), work_id)
    return response.content
