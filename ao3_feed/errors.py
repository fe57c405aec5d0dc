"""Error taxonomy for the feed pipeline.

Every error is terminal for its request. Each class carries the HTTP status
the coordinator answers with when nothing has been streamed yet, and a short
``kind`` used for the in-band terminal marker once streaming has begun.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FeedError(Exception):
    """Base class for failures that end a feed request."""

    status_code = 500
    kind = "internal-error"

    def diagnostic(self) -> str:
        """Return the short text sent to the client."""
        return f"{self.kind}: {self}"


class InvalidWorkId(FeedError):
    """The work identifier does not look like an AO3 work id."""

    status_code = 400
    kind = "invalid-id"

    def __init__(self, work_id: str):
        super().__init__(f"not a valid work id: {work_id!r}")
        self.work_id = work_id


class FetchErrorKind(Enum):
    NOT_FOUND = ("not-found", 404)
    FORBIDDEN = ("forbidden", 403)
    UNAVAILABLE = ("unavailable", 503)
    UNEXPECTED_STATUS = ("unexpected-status", 502)

    def __init__(self, label: str, status_code: int):
        self.label = label
        self.status_code = status_code


class FetchError(FeedError):
    """The source page could not be retrieved."""

    def __init__(
        self,
        kind: FetchErrorKind,
        message: str,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.fetch_kind = kind
        self.cause = cause

    @property
    def kind(self) -> str:  # type: ignore[override]
        return self.fetch_kind.label

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return self.fetch_kind.status_code


class ParseError(FeedError):
    """The page no longer has the structure the extractor expects."""

    kind = "parse-error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class RenderError(FeedError):
    """The feed could not be serialized."""

    kind = "render-error"
