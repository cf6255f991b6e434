"""
HTML parsing exports.
"""

from app.scraping.parsing.html_parsers import AlertHTMLParser, AlertLink

__all__ = ["AlertHTMLParser", "AlertLink"]
