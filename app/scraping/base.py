"""
Alert source abstraction and shared HTTP fetch mechanics.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
import requests
from bs4 import BeautifulSoup

from app.config import ScraperSettings
from app.domain.alerts import AlertBatch
from app.scraping.errors import SourceFetchError
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class AlertSource(ABC):
    """
    Produces a bounded, ordered batch of candidate alerts.
    """

    @abstractmethod
    def fetch_alerts(self, *, limit: int) -> AlertBatch:
        """
        Return at most `limit` listed alerts in upstream order, split into
        parsed candidates and skipped entries.

        Raises SourceFetchError when the upstream cannot be read at all.
        """


class HTTPAlertSource(AlertSource):
    """
    Base class implementing polite HTML fetching: throttling, timeout, retries.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.request_headers = {
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }
        self._min_request_interval_seconds = (
            1.0 / settings.rate_limit_per_second if settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float | None = None

    def fetch_soup(self, url: str) -> BeautifulSoup:
        response = self._request_with_retry(url)
        return BeautifulSoup(response.text, "html.parser")

    def _request_with_retry(self, url: str) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self.settings.max_retries + 1):
            self._apply_rate_limit()
            try:
                response = self.session.get(
                    url,
                    headers=self.request_headers,
                    timeout=self.settings.timeout_seconds,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    raise SourceFetchError(f"GET {url} failed with status={status_code}") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self.settings.max_retries:
                break

            backoff_seconds = self.settings.backoff_initial_seconds * (
                self.settings.backoff_multiplier**attempt
            )
            log_event(
                logger,
                logging.WARNING,
                "alert_source_retry",
                url=url,
                attempt=attempt + 1,
                max_retries=self.settings.max_retries,
                wait_seconds=round(backoff_seconds, 2),
                error=str(last_error),
            )
            time.sleep(backoff_seconds)

        raise SourceFetchError(f"Failed to fetch {url} after retries: {last_error}") from last_error

    def _apply_rate_limit(self) -> None:
        """
        Enforce the minimum interval between outbound requests.
        """

        if self._min_request_interval_seconds <= 0 or self._last_request_monotonic is None:
            self._last_request_monotonic = time.monotonic()
            return

        elapsed = time.monotonic() - self._last_request_monotonic
        remaining = self._min_request_interval_seconds - elapsed
        if remaining > 0:
            time.sleep(remaining)
        self._last_request_monotonic = time.monotonic()
