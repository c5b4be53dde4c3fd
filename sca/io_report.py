"""CSV export and Markdown insights report."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

import pandas as pd
from jinja2 import Template

from sca.insights import InsightSet, format_roas
from sca.schema import AnalysisRun, KeywordAnalysis

_REPORT_TEMPLATE_PATH = Path(__file__).parent / "templates" / "insights_report.md"

RESULT_COLUMNS: List[str] = [
    "keyword",
    "your_position",
    "total_competitors",
    "avg_market_price",
    "impressions",
    "clicks",
    "cost",
    "impression_share",
    "avg_cpc",
    "conversions",
    "conversion_value",
    "roas",
    "competitor_ads",
]


def analyses_to_dataframe(
    analyses: Iterable[KeywordAnalysis], insights: Dict[str, InsightSet]
) -> pd.DataFrame:
    """One row per keyword; ROAS rendered as text so N/A survives the export."""
    rows = []
    for a in analyses:
        m = a.your_metrics
        ins = insights.get(a.keyword)
        rows.append(
            {
                "keyword": a.keyword,
                "your_position": a.your_position if a.your_position is not None else "N/A",
                "total_competitors": a.total_competitors,
                "avg_market_price": round(a.avg_market_price, 2),
                "impressions": m.impressions,
                "clicks": m.clicks,
                "cost": m.cost,
                "impression_share": m.impression_share,
                "avg_cpc": m.avg_cpc,
                "conversions": m.conversions,
                "conversion_value": m.conversion_value,
                "roas": ins.roas_display if ins else format_roas(None),
                "competitor_ads": len(a.competitor_ads),
            }
        )
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def competitors_to_dataframe(analysis: KeywordAnalysis) -> pd.DataFrame:
    rows = [
        {"#": idx, **{k: v for k, v in c.to_dict().items() if k != "thumbnail"}}
        for idx, c in enumerate(analysis.top_competitors, start=1)
    ]
    return pd.DataFrame(rows)


def render_insights_report(run: AnalysisRun, insights: Sequence[InsightSet]) -> str:
    by_keyword = {i.keyword: i for i in insights}
    items = [
        {"analysis": a, "insights": by_keyword[a.keyword]}
        for a in run.analyses
        if a.keyword in by_keyword
    ]
    tmpl = Template(_REPORT_TEMPLATE_PATH.read_text(encoding="utf-8"))
    return tmpl.render(
        run=run,
        items=items,
        generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
    )


def write_results_csv(df: pd.DataFrame, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(p, index=False, encoding="utf-8")
    return p


def write_report(text: str, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p
