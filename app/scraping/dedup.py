"""
Dedup key derivation for scraped alerts.

The key is the canonical form of the alert URL, so the same alert reached via
a tracking link, a fragment or a trailing slash maps to one stored record.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_QUERY_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "utm_id",
        "gclid",
        "fbclid",
        "mc_cid",
        "mc_eid",
        "ref",
        "ref_src",
        "amp",
    }
)


def canonicalize_url(url: str, *, strip_params: Iterable[str] | None = None) -> str:
    """
    Canonicalize an absolute URL.

    - Lowercase scheme and host, drop default ports
    - Remove the fragment
    - Strip tracking query parameters, sort the rest
    - Drop a trailing slash from any non-root path
    """

    raw = (url or "").strip()
    if not raw:
        raise ValueError("Cannot derive a dedup key from an empty URL.")

    parts = urlsplit(raw)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Cannot derive a dedup key from a relative URL: {raw!r}")

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    port = parts.port
    netloc = host
    if port is not None and (scheme, port) not in {("http", 80), ("https", 443)}:
        netloc = f"{host}:{port}"

    path = parts.path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"

    strip = {param.lower() for param in (strip_params if strip_params is not None else TRACKING_QUERY_PARAMS)}
    kept = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in strip
    ]
    kept.sort(key=lambda item: (item[0].lower(), item[1]))

    return urlunsplit((scheme, netloc, path, urlencode(kept, doseq=True), ""))


def build_dedup_key(url: str) -> str:
    return canonicalize_url(url)
