"""Error kinds shared by the aggregator, connectors and surfaces."""

from __future__ import annotations


class ConfigurationInvalid(ValueError):
    """Raised before any fetch when the analysis input cannot be used."""


class ExternalFetchFailed(RuntimeError):
    """A search-results or ads-metrics call failed for a single keyword."""

    def __init__(self, message: str, keyword: str = "", source: str = "") -> None:
        super().__init__(message)
        self.keyword = keyword
        self.source = source


class ConfigurationStoreUnavailable(RuntimeError):
    """Credentials are missing or the spreadsheet store cannot be reached."""
