"""Analysis aggregator — one KeywordAnalysis per keyword from search + ads data.

Each keyword is fetched independently on a small thread pool. A keyword whose
search-results or metrics call raises ``ExternalFetchFailed`` is dropped from
the result set and recorded in ``AnalysisRun.failures``; the batch carries on.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

from sca.config import AnalysisConfig
from sca.errors import ConfigurationInvalid, ExternalFetchFailed
from sca.parsing import average_price, extract_domain
from sca.providers.base import MetricsProvider, SearchResultsProvider
from sca.schema import (
    REPORTING_PERIODS,
    AnalysisRun,
    Competitor,
    CompetitorListing,
    KeywordAnalysis,
    YourMetrics,
)

logger = logging.getLogger(__name__)


def normalize_keywords(keywords: Sequence[str], max_keywords: int = 4) -> List[str]:
    """Trim keywords, drop blank slots and case-insensitive duplicates, keep at most *max_keywords*."""
    cleaned: List[str] = []
    seen = set()
    for k in keywords or []:
        kw = str(k or "").strip()
        if kw and kw.casefold() not in seen:
            seen.add(kw.casefold())
            cleaned.append(kw)
    if not cleaned:
        raise ConfigurationInvalid("At least one keyword is required")
    if len(cleaned) > max_keywords:
        logger.info(
            "Ignoring %d keyword(s) beyond the limit of %d: %s",
            len(cleaned) - max_keywords,
            max_keywords,
            ", ".join(cleaned[max_keywords:]),
        )
    return cleaned[:max_keywords]


def _validate_inputs(brand_url: str, reporting_period: str) -> None:
    if not str(brand_url or "").strip():
        raise ConfigurationInvalid("Brand URL is required")
    if reporting_period not in REPORTING_PERIODS:
        raise ConfigurationInvalid(
            f"Unknown reporting period '{reporting_period}'. "
            f"Expected one of: {', '.join(REPORTING_PERIODS)}"
        )


def locate_brand(
    competitors: Sequence[Competitor], brand_domain: str
) -> Tuple[Optional[int], List[Competitor]]:
    """Return (1-based brand position or None, listings that are not the brand)."""
    target = brand_domain.strip().lower()
    position: Optional[int] = None
    others: List[Competitor] = []
    for idx, comp in enumerate(competitors, start=1):
        if comp.link and extract_domain(comp.link).lower() == target:
            if position is None:
                position = idx
            continue
        others.append(comp)
    return position, others


def build_keyword_analysis(
    keyword: str,
    brand_domain: str,
    listing: CompetitorListing,
    metrics: YourMetrics,
    top_n: int = 3,
) -> KeywordAnalysis:
    """Combine one keyword's listing and metrics into a KeywordAnalysis."""
    position, competitors = locate_brand(listing.competitors, brand_domain)
    top = tuple(competitors[: max(top_n, 0)])
    return KeywordAnalysis(
        keyword=keyword,
        your_position=position,
        total_competitors=len(competitors),
        top_competitors=top,
        competitor_ads=tuple(listing.ads),
        your_metrics=metrics,
        avg_market_price=average_price(c.price for c in top),
    )


def _analyze_keyword(
    keyword: str,
    brand_domain: str,
    reporting_period: str,
    search_provider: SearchResultsProvider,
    metrics_provider: MetricsProvider,
    cfg: AnalysisConfig,
) -> KeywordAnalysis:
    listing = search_provider.get_competitor_listing(keyword, cfg.country)
    metrics = metrics_provider.get_metrics(keyword, reporting_period)
    analysis = build_keyword_analysis(
        keyword, brand_domain, listing, metrics, top_n=cfg.top_competitors
    )
    logger.debug(
        "Keyword '%s': position=%s competitors=%d ads=%d",
        keyword,
        analysis.your_position,
        analysis.total_competitors,
        len(analysis.competitor_ads),
    )
    return analysis


def run_analysis(
    brand_url: str,
    keywords: Sequence[str],
    reporting_period: str,
    search_provider: SearchResultsProvider,
    metrics_provider: MetricsProvider,
    cfg: Optional[AnalysisConfig] = None,
) -> AnalysisRun:
    """Analyze every keyword and report which ones failed.

    Raises ``ConfigurationInvalid`` before any fetch when the brand URL,
    keyword list or reporting period is unusable.
    """
    cfg = cfg or AnalysisConfig()
    _validate_inputs(brand_url, reporting_period)
    selected = normalize_keywords(keywords, cfg.max_keywords)
    brand_domain = extract_domain(brand_url.strip())

    logger.info(
        "Analyzing %d keyword(s) for %s over %s",
        len(selected),
        brand_domain,
        reporting_period,
    )

    results: Dict[str, KeywordAnalysis] = {}
    failures: Dict[str, str] = {}
    workers = max(1, min(cfg.max_workers, len(selected)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sca-keyword") as pool:
        futures = {
            kw: pool.submit(
                _analyze_keyword,
                kw,
                brand_domain,
                reporting_period,
                search_provider,
                metrics_provider,
                cfg,
            )
            for kw in selected
        }
        for kw, future in futures.items():
            try:
                results[kw] = future.result()
            except ExternalFetchFailed as exc:
                logger.warning("Dropping keyword '%s': %s", kw, exc)
                failures[kw] = str(exc)

    analyses = tuple(results[kw] for kw in selected if kw in results)
    if failures:
        logger.warning(
            "Partial results: %d of %d keyword(s) failed", len(failures), len(selected)
        )
    return AnalysisRun(
        brand_domain=brand_domain,
        reporting_period=reporting_period,
        analyses=analyses,
        failures=failures,
    )


def analyze(
    brand_url: str,
    keywords: Sequence[str],
    reporting_period: str,
    search_provider: SearchResultsProvider,
    metrics_provider: MetricsProvider,
    cfg: Optional[AnalysisConfig] = None,
) -> List[KeywordAnalysis]:
    """Return one KeywordAnalysis per keyword that fetched successfully."""
    run = run_analysis(
        brand_url, keywords, reporting_period, search_provider, metrics_provider, cfg
    )
    return list(run.analyses)
