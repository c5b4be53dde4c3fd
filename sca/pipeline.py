"""Main pipeline — aggregate → derive insights → export."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from sca.aggregator import run_analysis
from sca.config import AppConfig
from sca.insights import InsightSet, derive_insights
from sca.io_report import (
    analyses_to_dataframe,
    render_insights_report,
    write_report,
    write_results_csv,
)
from sca.providers.base import MetricsProvider, SearchResultsProvider

logger = logging.getLogger(__name__)


def run_pipeline(
    brand_url: str,
    keywords: Sequence[str],
    reporting_period: str,
    search_provider: SearchResultsProvider,
    metrics_provider: MetricsProvider,
    cfg: AppConfig,
    output_dir: Optional[str | Path] = None,
) -> Dict:
    """Execute one analysis run. Returns a summary dict.

    Keys: ``run`` (AnalysisRun), ``insights`` (list of InsightSet in keyword
    order), ``report`` (Markdown text), ``results`` (DataFrame) and, when
    *output_dir* is given, ``files`` with the written paths.
    """
    run = run_analysis(
        brand_url,
        keywords,
        reporting_period,
        search_provider,
        metrics_provider,
        cfg.analysis,
    )
    insights: List[InsightSet] = [derive_insights(a, cfg.insights) for a in run.analyses]
    by_keyword = {i.keyword: i for i in insights}

    results = analyses_to_dataframe(run.analyses, by_keyword)
    report = render_insights_report(run, insights)

    summary: Dict = {
        "run": run,
        "insights": insights,
        "results": results,
        "report": report,
        "analysed": len(run.analyses),
        "failed": len(run.failures),
    }

    if output_dir is not None:
        out = Path(output_dir)
        summary["files"] = {
            "results": write_results_csv(results, out / "results.csv"),
            "report": write_report(report, out / "insights.md"),
        }
        logger.info("Wrote results to %s", out)

    return summary
