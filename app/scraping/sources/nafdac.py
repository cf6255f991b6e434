"""
Alert source for the NAFDAC "Recalls and Alerts" listing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.domain.alerts import AlertBatch, AlertCandidate, SkippedAlert
from app.scraping.base import HTTPAlertSource
from app.scraping.errors import SourceFetchError
from app.scraping.logging_utils import describe_error, log_event
from app.scraping.parsing import AlertHTMLParser

logger = logging.getLogger(__name__)


class NafdacAlertSource(HTTPAlertSource):
    """
    Reads the listing page, then each alert's detail page, in listing order.

    A detail page that cannot be fetched or parsed is reported in the batch
    as skipped. Nothing is stored for it, so the next run picks it up again.
    """

    def fetch_alerts(self, *, limit: int) -> AlertBatch:
        listing_url = self.settings.source_url
        try:
            listing = self.fetch_soup(listing_url)
            links = AlertHTMLParser.extract_alert_links(
                soup=listing,
                listing_url=listing_url,
                limit=limit,
            )
        except SourceFetchError:
            raise
        except Exception as exc:
            raise SourceFetchError(f"Unable to read alert listing {listing_url}: {exc}") from exc

        log_event(
            logger,
            logging.INFO,
            "alert_listing_scraped",
            listing_url=listing_url,
            links_found=len(links),
            limit=limit,
        )

        today = datetime.now(timezone.utc).date()
        candidates: list[AlertCandidate] = []
        skipped: list[SkippedAlert] = []
        for link in links[:limit]:
            try:
                detail = self.fetch_soup(link.url)
                candidates.append(
                    AlertHTMLParser.parse_alert_detail(
                        soup=detail,
                        url=link.url,
                        fallback_title=link.title,
                        today=today,
                    )
                )
            except Exception as exc:
                error = describe_error(exc)
                skipped.append(SkippedAlert(url=link.url, title=link.title, error=error))
                log_event(
                    logger,
                    logging.WARNING,
                    "alert_detail_skipped",
                    alert_url=link.url,
                    title=link.title,
                    error=error,
                )
        return AlertBatch(candidates=candidates, skipped=skipped)
