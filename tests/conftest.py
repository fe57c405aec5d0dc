import pathlib
import types

import pytest

FIXTURES = pathlib.Path(__file__).parent / "fixtures"


@pytest.fixture
def work_page() -> bytes:
    """Full-work view of a three-chapter work whose second chapter has no title."""
    return (FIXTURES / "work_12345.html").read_bytes()


@pytest.fixture
def oneshot_page() -> bytes:
    return (FIXTURES / "work_oneshot.html").read_bytes()


@pytest.fixture
def fake_source(monkeypatch):
    """Replace requests.get with a canned response and record the calls."""
    calls = []

    def install(content=b"", status_code=200, url=None, error=None):
        def fake_get(request_url, timeout=None, headers=None):
            calls.append({"url": request_url, "timeout": timeout, "headers": headers})
            if error is not None:
                raise error
            return types.SimpleNamespace(
                status_code=status_code,
                content=content,
                url=url or request_url,
            )

        monkeypatch.setattr("ao3_feed.fetcher.requests.get", fake_get)
        return calls

    return install
