"""
app/api/dependencies.py

Shared FastAPI dependencies for request authentication.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Depends, HTTPException, Request, status

from app.config import TriggerSettings, get_trigger_settings

logger = logging.getLogger(__name__)


def require_cron_secret(
    request: Request,
    settings: TriggerSettings = Depends(get_trigger_settings),
) -> None:
    """
    Reject the request unless the shared-secret header matches the configured secret.

    A missing configured secret rejects every caller.
    """

    supplied = request.headers.get(settings.secret_header, "")
    expected = settings.cron_secret or ""

    if not supplied or not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
        logger.warning(
            "Rejected scrape trigger path=%s header_present=%s secret_configured=%s",
            request.url.path,
            bool(supplied),
            bool(expected),
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized cron job access",
        )
