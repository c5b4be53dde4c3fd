"""Data-source provider package."""
from sca.providers.base import MetricsProvider, SearchResultsProvider
from sca.providers.demo_provider import DemoMetricsProvider, DemoSearchProvider

__all__ = [
    "MetricsProvider",
    "SearchResultsProvider",
    "DemoMetricsProvider",
    "DemoSearchProvider",
]
