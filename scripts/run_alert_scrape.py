"""
Run one regulatory alert scrape from the CLI.

Competes for the same busy flag as the HTTP triggers and the scheduler.
Exit code is 0 on success, 1 when the run failed, 2 when another run holds
the flag.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict

from app.config import get_trigger_settings
from app.domain.alerts import ScrapeOutcome
from app.services.scrape_orchestrator import get_scrape_orchestrator


def main() -> int:
    parser = argparse.ArgumentParser(description="Run regulatory alert scraping ingestion.")
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=None,
        help="Max alerts to fetch; defaults to SCRAPER_MANUAL_LIMIT.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="INFO",
        help="Root log level (DEBUG, INFO, WARNING, ...).",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    limit = args.limit if args.limit is not None else get_trigger_settings().manual_limit
    if limit < 1:
        parser.error("--limit must be a positive integer")

    result = get_scrape_orchestrator().run(max_alerts=limit)
    print(json.dumps(asdict(result), indent=2, default=str))

    if result.outcome == ScrapeOutcome.REJECTED:
        return 2
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
