"""Tests for the analysis aggregator (fake providers, no network)."""

from __future__ import annotations

import logging

import pytest

from sca.aggregator import (
    analyze,
    build_keyword_analysis,
    locate_brand,
    normalize_keywords,
    run_analysis,
)
from sca.config import AnalysisConfig
from sca.errors import ConfigurationInvalid, ExternalFetchFailed
from sca.providers.base import MetricsProvider, SearchResultsProvider
from sca.schema import Competitor, CompetitorListing, KeywordAnalysis, YourMetrics


def _comp(merchant: str, domain: str, price: str = "$100.00") -> Competitor:
    return Competitor(
        title=f"{merchant} product",
        price=price,
        merchant=merchant,
        link=f"https://www.{domain}/p/1",
    )


class FakeSearch(SearchResultsProvider):
    def __init__(self, listings, fail=()):
        self.listings = listings
        self.fail = set(fail)
        self.calls = []

    def get_competitor_listing(self, keyword, country):
        self.calls.append((keyword, country))
        if keyword in self.fail:
            raise ExternalFetchFailed("boom", keyword=keyword, source="fake")
        return self.listings.get(keyword, CompetitorListing())


class FakeMetrics(MetricsProvider):
    def __init__(self, fail=()):
        self.fail = set(fail)
        self.calls = []

    def get_metrics(self, keyword, reporting_period):
        self.calls.append((keyword, reporting_period))
        if keyword in self.fail:
            raise ExternalFetchFailed("ads down", keyword=keyword, source="fake")
        return YourMetrics(keyword=keyword, impressions=100, clicks=10, cost=5.0)


def test_normalize_keywords_trims_and_dedupes():
    assert normalize_keywords(["  a ", "", "b", "a", "   "]) == ["a", "b"]


def test_normalize_keywords_ignores_case_duplicates():
    kept = normalize_keywords(["Wireless Headphones", "wireless headphones", " WIRELESS headphones "])
    assert kept == ["Wireless Headphones"]


def test_run_analysis_fetches_case_variants_once():
    search = FakeSearch({})
    run_analysis(
        "shop.com.au", ["Gaming Headsets", "gaming headsets"], "LAST_7_DAYS", search, FakeMetrics()
    )
    assert search.calls == [("Gaming Headsets", "au")]


def test_normalize_keywords_caps_at_four(caplog):
    with caplog.at_level(logging.INFO, logger="sca.aggregator"):
        kept = normalize_keywords(["a", "b", "c", "d", "e", "f"])
    assert kept == ["a", "b", "c", "d"]
    assert "e, f" in caplog.text


def test_normalize_keywords_all_blank_raises():
    with pytest.raises(ConfigurationInvalid):
        normalize_keywords(["", "  "])


def test_locate_brand_excludes_brand_listing():
    comps = [_comp("A", "a.com"), _comp("Brand", "shop.com.au"), _comp("B", "b.com")]
    position, others = locate_brand(comps, "shop.com.au")
    assert position == 2
    assert [c.merchant for c in others] == ["A", "B"]


def test_locate_brand_missing():
    position, others = locate_brand([_comp("A", "a.com")], "shop.com.au")
    assert position is None
    assert len(others) == 1


def test_build_keyword_analysis_position_4_of_20():
    comps = [_comp(f"M{i}", f"m{i}.com", price="$10.00") for i in range(3)]
    comps.append(_comp("Brand", "shop.com.au"))
    comps += [_comp(f"F{i}", f"f{i}.com") for i in range(17)]
    listing = CompetitorListing(competitors=tuple(comps))

    a = build_keyword_analysis("kw", "shop.com.au", listing, YourMetrics(keyword="kw"))

    assert a.your_position == 4
    assert a.total_competitors == 20
    assert len(a.top_competitors) == 3
    assert a.avg_market_price == 10.0


def test_build_keyword_analysis_short_listing():
    listing = CompetitorListing(competitors=(_comp("A", "a.com"),))
    a = build_keyword_analysis("kw", "shop.com.au", listing, YourMetrics(keyword="kw"))
    assert a.total_competitors == 1
    assert len(a.top_competitors) == 1
    assert a.your_position is None


def test_keyword_analysis_rejects_inconsistent_counts():
    with pytest.raises(ValueError):
        KeywordAnalysis(
            keyword="kw",
            your_position=None,
            total_competitors=0,
            top_competitors=(_comp("A", "a.com"),),
            competitor_ads=(),
            your_metrics=YourMetrics(keyword="kw"),
        )
    with pytest.raises(ValueError):
        KeywordAnalysis(
            keyword="kw",
            your_position=5,
            total_competitors=2,
            top_competitors=(),
            competitor_ads=(),
            your_metrics=YourMetrics(keyword="kw"),
        )


def test_run_analysis_partial_results():
    search = FakeSearch({"a": CompetitorListing(), "b": CompetitorListing()}, fail=["b"])
    metrics = FakeMetrics(fail=["c"])

    run = run_analysis("https://www.shop.com.au", ["a", "b", "c"], "LAST_7_DAYS", search, metrics)

    assert run.brand_domain == "shop.com.au"
    assert [a.keyword for a in run.analyses] == ["a"]
    assert set(run.failures) == {"b", "c"}
    assert run.partial


def test_run_analysis_keeps_keyword_order():
    kws = ["d", "c", "b", "a"]
    run = run_analysis(
        "shop.com.au",
        kws,
        "LAST_30_DAYS",
        FakeSearch({}),
        FakeMetrics(),
        AnalysisConfig(max_workers=4),
    )
    assert [a.keyword for a in run.analyses] == kws
    assert not run.partial


def test_run_analysis_ignores_keywords_beyond_limit():
    search = FakeSearch({})
    metrics = FakeMetrics()
    run = run_analysis("shop.com.au", list("abcdef"), "LAST_7_DAYS", search, metrics)
    assert len(run.analyses) == 4
    assert sorted(k for k, _ in search.calls) == ["a", "b", "c", "d"]


def test_run_analysis_passes_country_and_period():
    search = FakeSearch({})
    metrics = FakeMetrics()
    run_analysis("shop.com.au", ["a"], "LAST_30_DAYS", search, metrics, AnalysisConfig(country="nz"))
    assert search.calls == [("a", "nz")]
    assert metrics.calls == [("a", "LAST_30_DAYS")]


@pytest.mark.parametrize(
    "brand_url, keywords, period",
    [
        ("", ["a"], "LAST_7_DAYS"),
        ("shop.com.au", [], "LAST_7_DAYS"),
        ("shop.com.au", ["a"], "YESTERDAY"),
    ],
)
def test_run_analysis_invalid_input_fetches_nothing(brand_url, keywords, period):
    search = FakeSearch({})
    with pytest.raises(ConfigurationInvalid):
        run_analysis(brand_url, keywords, period, search, FakeMetrics())
    assert search.calls == []


def test_unexpected_errors_propagate():
    class Broken(FakeSearch):
        def get_competitor_listing(self, keyword, country):
            raise KeyError("bug")

    with pytest.raises(KeyError):
        run_analysis("shop.com.au", ["a"], "LAST_7_DAYS", Broken({}), FakeMetrics())


def test_analyze_returns_list():
    out = analyze("shop.com.au", ["a", "b"], "LAST_7_DAYS", FakeSearch({}), FakeMetrics())
    assert [a.keyword for a in out] == ["a", "b"]
