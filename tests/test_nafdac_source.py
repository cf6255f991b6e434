"""
tests/test_nafdac_source.py

HTTP-level behaviour of the alert source, driven by an in-memory
requests-compatible session. No network access.
"""

from __future__ import annotations

import pytest
import requests

from app.config import ScraperSettings
from app.scraping.errors import SourceFetchError
from app.scraping.sources import NafdacAlertSource

LISTING_URL = "https://alerts.example.org/category/recalls-and-alerts/"
FIRST_URL = "https://alerts.example.org/public-alert-no-041-2026-recall-of-paracetamol/"
SECOND_URL = "https://alerts.example.org/public-alert-no-040-2026-falsified-amoxicillin/"

LISTING_HTML = f"""
<html><body>
  <article><h2 class="entry-title"><a href="{FIRST_URL}">Public Alert No. 041/2026: Recall of Paracetamol</a></h2></article>
  <article><h2 class="entry-title"><a href="{SECOND_URL}">Public Alert No. 040/2026: Falsified Amoxicillin</a></h2></article>
</body></html>
"""


def _detail(title: str) -> str:
    return (
        "<html><body><article>"
        f"<h1 class='entry-title'>{title}</h1>"
        "<time datetime='2026-10-14'>Oct 14, 2026</time>"
        "<div class='entry-content'><p>Batch No: AMX2209 is affected.</p></div>"
        "</article></body></html>"
    )


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status={self.status_code}", response=self)


class FakeHTTPSession:
    """Serves queued responses per URL; the last queued response repeats."""

    def __init__(self, routes: dict[str, list[FakeResponse | Exception]]) -> None:
        self.routes = routes
        self.requested: list[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.requested.append(url)
        queue = self.routes.get(url)
        if not queue:
            return FakeResponse(404)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


def _source(session: FakeHTTPSession, *, max_retries: int = 2) -> NafdacAlertSource:
    settings = ScraperSettings(
        source_url=LISTING_URL,
        max_retries=max_retries,
        backoff_initial_seconds=0.0,
        rate_limit_per_second=0.0,
    )
    return NafdacAlertSource(settings=settings, session=session)  # type: ignore[arg-type]


def test_fetches_listing_then_details_in_order() -> None:
    session = FakeHTTPSession(
        {
            LISTING_URL: [FakeResponse(200, LISTING_HTML)],
            FIRST_URL: [FakeResponse(200, _detail("Public Alert No. 041/2026: Recall of Paracetamol"))],
            SECOND_URL: [FakeResponse(200, _detail("Public Alert No. 040/2026: Falsified Amoxicillin"))],
        }
    )

    batch = _source(session).fetch_alerts(limit=5)

    assert [candidate.url for candidate in batch.candidates] == [FIRST_URL, SECOND_URL]
    assert batch.skipped == []
    assert session.requested == [LISTING_URL, FIRST_URL, SECOND_URL]
    assert batch.candidates[1].batch_numbers == ["AMX2209"]


def test_limit_caps_detail_requests() -> None:
    session = FakeHTTPSession(
        {
            LISTING_URL: [FakeResponse(200, LISTING_HTML)],
            FIRST_URL: [FakeResponse(200, _detail("Public Alert No. 041/2026: Recall of Paracetamol"))],
        }
    )

    batch = _source(session).fetch_alerts(limit=1)

    assert len(batch.candidates) == 1
    assert SECOND_URL not in session.requested


def test_unreadable_detail_page_is_reported_as_skipped() -> None:
    session = FakeHTTPSession(
        {
            LISTING_URL: [FakeResponse(200, LISTING_HTML)],
            FIRST_URL: [FakeResponse(404)],
            SECOND_URL: [FakeResponse(200, _detail("Public Alert No. 040/2026: Falsified Amoxicillin"))],
        }
    )

    batch = _source(session).fetch_alerts(limit=5)

    assert [candidate.url for candidate in batch.candidates] == [SECOND_URL]
    assert len(batch.skipped) == 1
    skipped = batch.skipped[0]
    assert skipped.url == FIRST_URL
    assert skipped.title == "Public Alert No. 041/2026: Recall of Paracetamol"
    assert "404" in skipped.error


def test_retryable_status_is_retried_until_success() -> None:
    session = FakeHTTPSession(
        {
            LISTING_URL: [FakeResponse(503), FakeResponse(200, "<html><body></body></html>")],
        }
    )

    batch = _source(session).fetch_alerts(limit=5)

    assert batch.candidates == []
    assert batch.skipped == []
    assert session.requested == [LISTING_URL, LISTING_URL]


def test_listing_failure_raises_after_retries() -> None:
    session = FakeHTTPSession({LISTING_URL: [requests.ConnectionError("refused")]})

    with pytest.raises(SourceFetchError):
        _source(session, max_retries=2).fetch_alerts(limit=5)

    assert session.requested == [LISTING_URL] * 3


def test_non_retryable_listing_status_fails_fast() -> None:
    session = FakeHTTPSession({LISTING_URL: [FakeResponse(403)]})

    with pytest.raises(SourceFetchError):
        _source(session).fetch_alerts(limit=5)

    assert session.requested == [LISTING_URL]
