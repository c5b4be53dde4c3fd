"""Abstract data-source interfaces consumed by the aggregator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from sca.schema import CompetitorListing, YourMetrics


class SearchResultsProvider(ABC):
    """Ranked shopping listings and text ads for a keyword."""

    @abstractmethod
    def get_competitor_listing(self, keyword: str, country: str) -> CompetitorListing:
        """Return the listing for *keyword* in *country*.

        Raises ``ExternalFetchFailed`` when the provider call fails.
        """
        ...


class MetricsProvider(ABC):
    """The brand's own advertising performance for a keyword."""

    @abstractmethod
    def get_metrics(self, keyword: str, reporting_period: str) -> YourMetrics:
        """Return metrics for *keyword* over *reporting_period*.

        Raises ``ExternalFetchFailed`` when the provider call fails.
        """
        ...
