"""
Exceptions raised by alert sources and stores.
"""

from __future__ import annotations


class SourceFetchError(RuntimeError):
    """
    Raised when the upstream listing cannot be fetched or parsed.
    """


class RecordIngestError(RuntimeError):
    """
    Raised when one candidate cannot be checked or stored.
    """
