"""
BeautifulSoup-based parsing layer for regulatory alert listing and detail pages.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from app.domain.alerts import AlertCandidate
from app.scraping.dedup import canonicalize_url
from db.models.regulatory_alert import AlertType

DATE_PATTERNS = [
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%m/%d/%Y",
    "%d/%m/%Y",
]
EXCLUDED_URL_FRAGMENTS = (
    "/category/",
    "/tag/",
    "/page/",
    "/author/",
    "?paged=",
    "#comments",
    "/feed/",
)
GENERIC_TITLE_WORDS = ("home", "contact", "about", "privacy", "terms")
NAVIGATION_PHRASES = ("read more", "continue reading", "click here")
ALERT_PATH_MARKERS = ("/recall", "/alert", "/public-alert", "/notice", "/substandard", "/counterfeit")
KNOWN_PRODUCT_NAMES = (
    "paracetamol",
    "ibuprofen",
    "metronidazole",
    "ciprofloxacin",
    "amoxicillin",
    "artemether",
    "chloroquine",
)
BATCH_REGEX = re.compile(
    r"\b(?:batch|lot)\s*(?:no\.?|number|#)?\s*[:\-]?\s*([A-Z0-9][A-Z0-9\-/]{2,})",
    flags=re.IGNORECASE,
)
EXCERPT_FALLBACK_LENGTH = 200
MIN_LISTING_TITLE_LENGTH = 10
MIN_PATTERN_TITLE_LENGTH = 6


@dataclass(frozen=True)
class AlertLink:
    """
    One alert permalink discovered on the listing page.
    """

    url: str
    title: str


class AlertHTMLParser:
    """
    Deterministic parser utilities for alert HTML documents.
    """

    @classmethod
    def extract_alert_links(
        cls,
        *,
        soup: BeautifulSoup,
        listing_url: str,
        limit: int,
    ) -> list[AlertLink]:
        """
        Discover alert permalinks, trying progressively looser strategies.
        """

        for strategy in (cls._links_from_entry_titles, cls._links_from_archive, cls._links_from_url_patterns):
            links = strategy(soup=soup, listing_url=listing_url, limit=limit)
            if links:
                return links
        return []

    @classmethod
    def parse_alert_detail(
        cls,
        *,
        soup: BeautifulSoup,
        url: str,
        fallback_title: str,
        today: date,
    ) -> AlertCandidate:
        title = (
            cls._first_text(soup, ".entry-title, h1")
            or cls._first_text(soup, "title")
            or fallback_title
            or "Untitled Alert"
        )

        content_root = soup.select_one(".entry-content, .content, article")
        if content_root is not None:
            full_content = cls._clean_text(content_root.get_text(" ", strip=True))
        else:
            full_content = cls._clean_text(" ".join(p.get_text(" ", strip=True) for p in soup.find_all("p")))
        if not full_content:
            full_content = title

        batch_numbers = cls.extract_batch_numbers(full_content)
        return AlertCandidate(
            url=url,
            title=title[:500],
            excerpt=cls._extract_excerpt(soup=soup, content_root=content_root, full_content=full_content),
            published_date=cls._extract_published_date(soup) or today,
            batch_number=batch_numbers[0] if batch_numbers else None,
            alert_type=AlertType.RECALL if "recall" in title.lower() else AlertType.PUBLIC_ALERT,
            image=cls._extract_image(soup=soup, content_root=content_root, page_url=url),
            full_content=full_content,
            product_names=cls.extract_product_names(full_content),
            batch_numbers=batch_numbers,
        )

    @staticmethod
    def extract_product_names(text: str) -> list[str]:
        lowered = text.lower()
        return [name for name in KNOWN_PRODUCT_NAMES if name in lowered]

    @staticmethod
    def extract_batch_numbers(text: str) -> list[str]:
        found: list[str] = []
        for match in BATCH_REGEX.finditer(text):
            token = match.group(1).strip("-/")
            if not any(char.isdigit() for char in token):
                continue
            if token not in found:
                found.append(token)
        return found

    @classmethod
    def parse_date(cls, value: str) -> date | None:
        compact = cls._clean_text(value)
        if not compact:
            return None

        try:
            return datetime.fromisoformat(compact.replace("Z", "+00:00")).date()
        except ValueError:
            pass

        for pattern in DATE_PATTERNS:
            try:
                return datetime.strptime(compact, pattern).date()
            except ValueError:
                continue

        tokens = re.findall(
            r"\b(?:\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{4}|"
            r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2},\s+\d{4}|"
            r"\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{4})\b",
            compact,
            flags=re.IGNORECASE,
        )
        for token in tokens:
            for pattern in DATE_PATTERNS:
                try:
                    return datetime.strptime(token, pattern).date()
                except ValueError:
                    continue
        return None

    # ------------------------------------------------------------------
    # Listing strategies
    # ------------------------------------------------------------------

    @classmethod
    def _links_from_entry_titles(cls, *, soup: BeautifulSoup, listing_url: str, limit: int) -> list[AlertLink]:
        collector = _LinkCollector(listing_url=listing_url, limit=limit)
        selector = ".entry-title a, .post-title a, article h2 a, article h3 a, .post h2 a, .post h3 a"
        for anchor in soup.select(selector):
            if collector.full:
                break
            url = collector.resolve(anchor.get("href"))
            if url is None or cls._is_excluded(url):
                continue
            title = cls._clean_text(anchor.get_text(" ", strip=True))
            if len(title) < MIN_LISTING_TITLE_LENGTH or cls._is_generic_title(title):
                continue
            collector.add(url, title)
        return collector.links

    @classmethod
    def _links_from_archive(cls, *, soup: BeautifulSoup, listing_url: str, limit: int) -> list[AlertLink]:
        collector = _LinkCollector(listing_url=listing_url, limit=limit)
        for anchor in soup.select(".post a, .entry a, article a"):
            if collector.full:
                break
            href = anchor.get("href") or ""
            if "#" in href:
                continue
            url = collector.resolve(href)
            if url is None or cls._is_excluded(url):
                continue
            title = cls._clean_text(anchor.get_text(" ", strip=True))
            if len(title) < 5:
                title = cls._heading_near(anchor)
            lowered = title.lower()
            if len(title) < MIN_LISTING_TITLE_LENGTH or any(phrase in lowered for phrase in NAVIGATION_PHRASES):
                continue
            collector.add(url, title)
        return collector.links

    @classmethod
    def _links_from_url_patterns(cls, *, soup: BeautifulSoup, listing_url: str, limit: int) -> list[AlertLink]:
        collector = _LinkCollector(listing_url=listing_url, limit=limit)
        for anchor in soup.find_all("a", href=True):
            if collector.full:
                break
            url = collector.resolve(anchor.get("href"))
            if url is None or "/category/" in url:
                continue
            path = urlsplit(url).path.lower()
            if not any(marker in path for marker in ALERT_PATH_MARKERS):
                continue
            title = cls._clean_text(anchor.get_text(" ", strip=True)) or cls._heading_near(anchor) or "Public Alert"
            if len(title) < MIN_PATTERN_TITLE_LENGTH:
                continue
            collector.add(url, title)
        return collector.links

    # ------------------------------------------------------------------
    # Detail helpers
    # ------------------------------------------------------------------

    @classmethod
    def _extract_published_date(cls, soup: BeautifulSoup) -> date | None:
        node = soup.select_one("time[datetime]")
        if node is not None:
            parsed = cls.parse_date(str(node.get("datetime") or ""))
            if parsed is not None:
                return parsed
        return cls.parse_date(cls._first_text(soup, ".entry-date, .published, time"))

    @classmethod
    def _extract_excerpt(cls, *, soup: BeautifulSoup, content_root: Tag | None, full_content: str) -> str:
        scope = content_root if content_root is not None else soup
        for paragraph in scope.find_all("p"):
            text = cls._clean_text(paragraph.get_text(" ", strip=True))
            if text:
                return text
        if len(full_content) <= EXCERPT_FALLBACK_LENGTH:
            return full_content
        return full_content[:EXCERPT_FALLBACK_LENGTH] + "..."

    @staticmethod
    def _extract_image(*, soup: BeautifulSoup, content_root: Tag | None, page_url: str) -> str | None:
        meta = soup.find("meta", attrs={"property": "og:image"})
        if isinstance(meta, Tag) and meta.get("content"):
            return urljoin(page_url, str(meta["content"]).strip())
        scope = content_root if content_root is not None else soup
        image = scope.find("img", src=True)
        if isinstance(image, Tag):
            return urljoin(page_url, str(image["src"]).strip())
        return None

    @classmethod
    def _heading_near(cls, node: Tag) -> str:
        container = node.find_parent("article") or node.find_parent(class_=["post", "entry"])
        if container is None:
            return ""
        heading = container.select_one(".entry-title, .post-title, h1, h2, h3, .title")
        if heading is None:
            return ""
        return cls._clean_text(heading.get_text(" ", strip=True))

    @classmethod
    def _first_text(cls, soup: BeautifulSoup, selector: str) -> str:
        node = soup.select_one(selector)
        if node is None:
            return ""
        return cls._clean_text(node.get_text(" ", strip=True))

    @staticmethod
    def _is_excluded(url: str) -> bool:
        lowered = url.lower()
        return any(fragment in lowered for fragment in EXCLUDED_URL_FRAGMENTS)

    @staticmethod
    def _is_generic_title(title: str) -> bool:
        lowered = title.lower()
        return any(word in lowered for word in GENERIC_TITLE_WORDS)

    @staticmethod
    def _clean_text(value: str) -> str:
        return re.sub(r"\s+", " ", value or "").strip()


class _LinkCollector:
    """
    Accumulates same-site alert links, deduplicated by canonical URL.
    """

    def __init__(self, *, listing_url: str, limit: int) -> None:
        self._listing_url = listing_url
        self._listing_key = canonicalize_url(listing_url)
        self._host = (urlsplit(listing_url).hostname or "").lower()
        self._limit = max(1, limit)
        self._seen: set[str] = set()
        self.links: list[AlertLink] = []

    @property
    def full(self) -> bool:
        return len(self.links) >= self._limit

    def resolve(self, href: object) -> str | None:
        if not isinstance(href, str) or not href.strip():
            return None
        url = urljoin(self._listing_url, href.strip())
        parts = urlsplit(url)
        if parts.scheme not in {"http", "https"}:
            return None
        if (parts.hostname or "").lower() != self._host:
            return None
        return url

    def add(self, url: str, title: str) -> None:
        key = canonicalize_url(url)
        if key == self._listing_key or key in self._seen:
            return
        self._seen.add(key)
        self.links.append(AlertLink(url=url, title=title))
