"""Tests for insight derivation."""

from __future__ import annotations

import pytest

from sca.config import InsightConfig
from sca.insights import (
    ACTION_TEXT,
    compute_roas,
    cpc_vs_market,
    derive_insights,
    format_roas,
    impression_share_tier,
    market_cpc_baseline,
    position_tier,
    recommended_actions,
)
from sca.schema import Competitor, CompetitorAd, KeywordAnalysis, YourMetrics


def _analysis(position=4, total=20, share=0.23, cost=145.67, value=1289.99, ads=(), top=None):
    if top is None:
        top = (
            Competitor(title="Sony", price="$449.99", merchant="JB Hi-Fi"),
            Competitor(title="Bose", price="$489.00", merchant="Harvey Norman"),
            Competitor(title="Apple", price="$899.00", merchant="Apple Store AU"),
        )
    return KeywordAnalysis(
        keyword="wireless headphones",
        your_position=position,
        total_competitors=total,
        top_competitors=top,
        competitor_ads=ads,
        your_metrics=YourMetrics(
            keyword="wireless headphones",
            impressions=15420,
            clicks=234,
            cost=cost,
            impression_share=share,
            avg_cpc=0.92,
            conversions=12,
            conversion_value=value,
        ),
        avg_market_price=612.33,
    )


@pytest.mark.parametrize(
    "position, tier",
    [(None, "not_visible"), (1, "excellent"), (3, "excellent"), (4, "good"), (10, "good"), (11, "low")],
)
def test_position_tier(position, tier):
    assert position_tier(position) == tier


@pytest.mark.parametrize(
    "share, tier",
    [(0.23, "significant"), (0.35, "moderate"), (0.75, "strong"), (0.30, "moderate"), (0.60, "strong")],
)
def test_impression_share_tier(share, tier):
    assert impression_share_tier(share) == tier


def test_market_cpc_baseline_and_comparison():
    baseline = market_cpc_baseline(612.33)
    assert baseline == pytest.approx(12.2466)
    assert cpc_vs_market(0.92, baseline) == pytest.approx(7.51, abs=0.01)
    assert cpc_vs_market(0.92, 0.0) is None


def test_roas():
    assert compute_roas(YourMetrics(keyword="k", cost=100.0, conversion_value=250.0)) == 2.5
    assert compute_roas(YourMetrics(keyword="k", cost=0.0, conversion_value=250.0)) is None
    assert format_roas(None) == "N/A"
    assert format_roas(2.5) == "2.50x"


def test_position_4_actions():
    actions = recommended_actions(_analysis(position=4))
    assert "raise_bids" not in actions
    assert "review_titles" in actions
    assert "review_pricing" in actions


def test_low_position_and_share_actions():
    actions = recommended_actions(_analysis(position=12, share=0.2))
    assert actions[:2] == ("raise_bids", "raise_budget")


def test_unranked_does_not_raise_bids():
    assert "raise_bids" not in recommended_actions(_analysis(position=None))


def test_monitor_ad_copy_only_with_ads():
    assert "monitor_ad_copy" not in recommended_actions(_analysis())
    ads = (CompetitorAd(title="Ad"),)
    assert recommended_actions(_analysis(ads=ads))[-1] == "monitor_ad_copy"


def test_derive_insights_messages():
    ins = derive_insights(_analysis())
    assert ins.position_tier == "good"
    assert "#4 out of 20" in ins.position_message
    assert "$612.33 AUD" in ins.pricing_message
    assert "8% of estimated market rate" in ins.pricing_message
    assert "23.0%" in ins.impression_share_message
    assert ins.impression_share_tier == "significant"
    assert ins.top_competitor.merchant == "JB Hi-Fi"
    assert "JB Hi-Fi with $449.99" in ins.threat_message
    assert ins.roas_display == "8.86x"
    assert ins.action_texts[0] == ACTION_TEXT["raise_budget"]


def test_derive_insights_without_spend_or_competitors():
    a = KeywordAnalysis(
        keyword="k",
        your_position=None,
        total_competitors=0,
        top_competitors=(),
        competitor_ads=(),
        your_metrics=YourMetrics(keyword="k"),
    )
    ins = derive_insights(a)
    assert ins.roas is None
    assert ins.roas_display == "N/A"
    assert ins.cpc_vs_market_pct is None
    assert ins.top_competitor is None
    assert "N/A" in ins.threat_message
    assert "not visible" in ins.position_message


def test_ratio_is_configurable():
    ins = derive_insights(_analysis(), InsightConfig(cpc_price_ratio=0.01))
    assert ins.market_cpc_baseline == pytest.approx(6.1233)
