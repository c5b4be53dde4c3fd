"""Insight deriver — presentation-ready judgments for a KeywordAnalysis.

Everything here is pure: no I/O, same input gives the same InsightSet.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Tuple

from sca.config import InsightConfig
from sca.schema import Competitor, KeywordAnalysis, YourMetrics

PositionTier = Literal["not_visible", "excellent", "good", "low"]
ImpressionShareTier = Literal["significant", "moderate", "strong"]

POSITION_TIER_TEXT: Dict[str, str] = {
    "not_visible": "Your products are not visible for this keyword. "
    "Consider expanding product targeting or increasing bids.",
    "excellent": "Excellent visibility in top positions!",
    "good": "Good visibility, consider optimizing to break into top 3.",
    "low": "Lower visibility - focus on improving product feed optimization and bids.",
}

IMPRESSION_SHARE_TEXT: Dict[str, str] = {
    "significant": "Significant opportunity to increase visibility through budget or bid optimization.",
    "moderate": "Moderate opportunity for growth through strategic bid increases.",
    "strong": "Strong market presence - focus on conversion optimization.",
}

ACTION_TEXT: Dict[str, str] = {
    "raise_bids": "Increase bids for better positioning",
    "raise_budget": "Consider budget increases to capture more impressions",
    "review_titles": "Analyze top competitor product titles for keyword optimization",
    "review_pricing": "Review pricing strategy against market leaders",
    "monitor_ad_copy": "Monitor competitor ad copy for messaging insights",
}

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class InsightSet:
    keyword: str
    position_tier: str
    position_message: str
    market_cpc_baseline: float
    cpc_vs_market_pct: Optional[float]
    pricing_message: str
    impression_share_tier: str
    impression_share_message: str
    recommended_actions: Tuple[str, ...]
    roas: Optional[float]
    top_competitor: Optional[Competitor]
    threat_message: str

    @property
    def action_texts(self) -> List[str]:
        return [ACTION_TEXT[a] for a in self.recommended_actions]

    @property
    def roas_display(self) -> str:
        return format_roas(self.roas)


# ─────────────────────────────────────────────────────────────────────────────
# Formatting
# ─────────────────────────────────────────────────────────────────────────────


def format_money(value: float) -> str:
    return f"${value:,.2f} AUD"


def format_pct(fraction: float, digits: int = 1) -> str:
    return f"{fraction * 100:.{digits}f}%"


def format_roas(roas: Optional[float]) -> str:
    if roas is None:
        return NOT_AVAILABLE
    return f"{roas:.2f}x"


# ─────────────────────────────────────────────────────────────────────────────
# Individual judgments
# ─────────────────────────────────────────────────────────────────────────────


def position_tier(position: Optional[int]) -> PositionTier:
    if position is None:
        return "not_visible"
    if position <= 3:
        return "excellent"
    if position <= 10:
        return "good"
    return "low"


def impression_share_tier(share: float) -> ImpressionShareTier:
    if share < 0.30:
        return "significant"
    if share < 0.60:
        return "moderate"
    return "strong"


def market_cpc_baseline(avg_market_price: float, ratio: float = 0.02) -> float:
    """Estimated market CPC: a fixed fraction of the average product price."""
    return avg_market_price * ratio


def cpc_vs_market(avg_cpc: float, baseline: float) -> Optional[float]:
    """Your CPC as a percentage of the market baseline; None without a baseline."""
    if baseline <= 0:
        return None
    return avg_cpc / baseline * 100


def compute_roas(metrics: YourMetrics) -> Optional[float]:
    """Return on ad spend, or None when nothing was spent."""
    if metrics.cost <= 0:
        return None
    roas = metrics.conversion_value / metrics.cost
    if math.isnan(roas) or math.isinf(roas):
        return None
    return roas


def recommended_actions(analysis: KeywordAnalysis) -> Tuple[str, ...]:
    actions: List[str] = []
    if analysis.your_position is not None and analysis.your_position > 5:
        actions.append("raise_bids")
    if analysis.your_metrics.impression_share < 0.5:
        actions.append("raise_budget")
    actions.append("review_titles")
    actions.append("review_pricing")
    if analysis.competitor_ads:
        actions.append("monitor_ad_copy")
    return tuple(actions)


# ─────────────────────────────────────────────────────────────────────────────
# Messages
# ─────────────────────────────────────────────────────────────────────────────


def _position_message(analysis: KeywordAnalysis, tier: str) -> str:
    if analysis.your_position is None:
        return POSITION_TIER_TEXT[tier]
    return (
        f"You're ranking at position #{analysis.your_position} out of "
        f"{analysis.total_competitors} competitors. {POSITION_TIER_TEXT[tier]}"
    )


def _pricing_message(analysis: KeywordAnalysis, pct: Optional[float]) -> str:
    msg = f"Market average price: {format_money(analysis.avg_market_price)}."
    cpc = format_money(analysis.your_metrics.avg_cpc)
    if pct is None:
        return f"{msg} Your average CPC of {cpc} cannot be compared: no market price baseline."
    return f"{msg} Your average CPC of {cpc} represents {pct:.0f}% of estimated market rate."


def _threat_message(top: Optional[Competitor]) -> str:
    if top is None:
        return f"Top competitor: {NOT_AVAILABLE}. Monitor their product titles and descriptions for optimization ideas."
    return (
        f"Top competitor: {top.merchant or NOT_AVAILABLE} with {top.price} pricing. "
        "Monitor their product titles and descriptions for optimization ideas."
    )


def derive_insights(
    analysis: KeywordAnalysis, cfg: Optional[InsightConfig] = None
) -> InsightSet:
    cfg = cfg or InsightConfig()
    metrics = analysis.your_metrics

    p_tier = position_tier(analysis.your_position)
    baseline = market_cpc_baseline(analysis.avg_market_price, cfg.cpc_price_ratio)
    pct = cpc_vs_market(metrics.avg_cpc, baseline)
    is_tier = impression_share_tier(metrics.impression_share)
    top = analysis.top_competitors[0] if analysis.top_competitors else None

    return InsightSet(
        keyword=analysis.keyword,
        position_tier=p_tier,
        position_message=_position_message(analysis, p_tier),
        market_cpc_baseline=baseline,
        cpc_vs_market_pct=pct,
        pricing_message=_pricing_message(analysis, pct),
        impression_share_tier=is_tier,
        impression_share_message=(
            f"Current impression share: {format_pct(metrics.impression_share)}. "
            f"{IMPRESSION_SHARE_TEXT[is_tier]}"
        ),
        recommended_actions=recommended_actions(analysis),
        roas=compute_roas(metrics),
        top_competitor=top,
        threat_message=_threat_message(top),
    )
