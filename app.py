"""Streamlit app — Shopping Competitor Analysis.

Three tabs:
  ⚙️ Setup    — brand URL, reporting period, up to four keywords, run / demo
  📊 Results  — per-keyword metric cards, top competitors and competitor ads
  💡 Insights — strategic recommendations and the Markdown report download
"""

from __future__ import annotations

import os
from typing import List, Optional

import streamlit as st

from sca.config import AppConfig, load_config
from sca.connectors.google_sheets import SheetsConfigStore, build_sheets_client
from sca.errors import ConfigurationInvalid, ConfigurationStoreUnavailable
from sca.insights import InsightSet, format_money, format_pct
from sca.io_report import competitors_to_dataframe
from sca.logging_setup import setup_logging
from sca.pipeline import run_pipeline
from sca.providers.demo_provider import (
    DEMO_BRAND_URL,
    DEMO_KEYWORDS,
    DEMO_REPORTING_PERIOD,
    DemoMetricsProvider,
    DemoSearchProvider,
)
from sca.schema import REPORTING_PERIODS, KeywordAnalysis, UserConfiguration

# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

KEYWORD_SLOTS = 4
PERIOD_LABELS = {"LAST_7_DAYS": "Last 7 days", "LAST_30_DAYS": "Last 30 days"}

# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


@st.cache_resource
def _init_logging(level: str, path: Optional[str]) -> bool:
    setup_logging(level, path)
    return True


def _sheets_store(cfg: AppConfig, spreadsheet_id: str) -> SheetsConfigStore:
    return SheetsConfigStore(
        build_sheets_client(),
        spreadsheet_id,
        config_worksheet=cfg.sheets.config_worksheet,
        results_worksheet=cfg.sheets.results_worksheet,
    )


def _live_providers(cfg: AppConfig, serp_api_key: str, customer_id: str):
    from sca.connectors.google_ads import GoogleAdsMetricsProvider
    from sca.connectors.serpwow import SerpWowSearchProvider

    return (
        SerpWowSearchProvider(api_key=serp_api_key or None, cfg=cfg.serp),
        GoogleAdsMetricsProvider(customer_id=customer_id or None),
    )


def _store_summary(summary: dict, mode: str) -> None:
    # Only the latest run is kept.
    st.session_state.summary = summary
    st.session_state.mode = mode


def _run(
    cfg: AppConfig,
    brand_url: str,
    keywords: List[str],
    period: str,
    serp_api_key: str,
    customer_id: str,
) -> None:
    try:
        search, metrics = _live_providers(cfg, serp_api_key, customer_id)
        with st.spinner("Fetching search results and Google Ads metrics…"):
            summary = run_pipeline(brand_url, keywords, period, search, metrics, cfg)
    except ConfigurationInvalid as exc:
        st.error(f"❌ **Configuration problem:** {exc}")
        return
    _store_summary(summary, "live")
    st.success("✅ Analysis complete. Open the **Results** tab.")


def _run_demo(cfg: AppConfig) -> None:
    summary = run_pipeline(
        DEMO_BRAND_URL,
        DEMO_KEYWORDS,
        DEMO_REPORTING_PERIOD,
        DemoSearchProvider(),
        DemoMetricsProvider(),
        cfg,
    )
    _store_summary(summary, "demo")
    st.success("✅ Demo data loaded. Open the **Results** tab.")


# ─────────────────────────────────────────────────────────────────────────────
# Setup tab
# ─────────────────────────────────────────────────────────────────────────────


def _apply_loaded_config() -> None:
    stored: Optional[UserConfiguration] = st.session_state.pop("_loaded_config", None)
    if stored is None:
        return
    st.session_state.brand_url = stored.brand_url
    st.session_state.reporting_period = stored.reporting_period
    st.session_state.serp_api_key = stored.api_key or ""
    for i in range(KEYWORD_SLOTS):
        st.session_state[f"keyword_{i}"] = (
            stored.keywords[i] if i < len(stored.keywords) else ""
        )


def setup_tab(cfg: AppConfig) -> None:
    _apply_loaded_config()
    st.header("Analysis setup")
    st.markdown(
        "Compare your Google Shopping listings against the competitors ranking for "
        "up to **four keywords**."
    )

    col_left, col_right = st.columns([2, 1], gap="large")

    with col_left:
        brand_url = st.text_input(
            "🌐 **Brand website URL**",
            key="brand_url",
            placeholder="https://yourbrand.com.au",
        )
        period = st.selectbox(
            "Reporting period",
            list(REPORTING_PERIODS),
            format_func=lambda p: PERIOD_LABELS.get(p, p),
            key="reporting_period",
        )
        st.markdown("#### Target keywords")
        keyword_cols = st.columns(2)
        slots: List[str] = []
        for i in range(KEYWORD_SLOTS):
            with keyword_cols[i % 2]:
                slots.append(st.text_input(f"Keyword {i + 1}", key=f"keyword_{i}"))
        keywords = [k.strip() for k in slots if k.strip()]

    with col_right:
        st.markdown("#### Credentials")
        serp_api_key = st.text_input(
            "SerpWow API key",
            type="password",
            key="serp_api_key",
            help="Leave blank to use SCA_SERPWOW_API_KEY from the environment / .env.",
        )
        customer_id = st.text_input(
            "Google Ads customer ID",
            key="customer_id",
            placeholder="123-456-7890",
            help="Leave blank to use SCA_GOOGLE_ADS_CUSTOMER_ID.",
        )

    st.divider()
    col_run, col_demo, _ = st.columns([1, 1, 3])
    with col_run:
        can_run = bool(brand_url.strip()) and bool(keywords)
        if st.button("🚀 Start Analysis", type="primary", disabled=not can_run):
            _run(cfg, brand_url.strip(), keywords, period, serp_api_key, customer_id)
    with col_demo:
        if st.button("🧪 View Demo Data"):
            _run_demo(cfg)

    _sheets_section(cfg, brand_url, keywords, period, serp_api_key)


def _sheets_section(
    cfg: AppConfig, brand_url: str, keywords: List[str], period: str, serp_api_key: str
) -> None:
    with st.expander("📄 Google Sheets configuration (optional)", expanded=False):
        creds_present = bool(
            os.environ.get("SCA_GOOGLE_CREDS_JSON")
            or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
        )
        if not creds_present:
            st.info(
                "Google credentials not configured. Set `SCA_GOOGLE_CREDS_JSON` (or "
                "`GOOGLE_APPLICATION_CREDENTIALS`) to a Service Account JSON path."
            )
        spreadsheet_id = st.text_input(
            "Spreadsheet ID", value=cfg.sheets.spreadsheet_id, key="spreadsheet_id"
        )

        c1, c2 = st.columns(2)
        with c1:
            if st.button("💾 Save to Google Sheets", use_container_width=True):
                config = UserConfiguration(
                    brand_url=brand_url.strip(),
                    keywords=tuple(keywords),
                    reporting_period=period,
                    api_key=serp_api_key or None,
                )
                try:
                    stored = _sheets_store(cfg, spreadsheet_id).save(config)
                    st.success(f"Configuration saved at {stored.updated_at:%Y-%m-%d %H:%M} UTC.")
                except ConfigurationInvalid as exc:
                    st.error(f"❌ {exc}")
                except ConfigurationStoreUnavailable as exc:
                    st.error(f"❌ Google Sheets unavailable: {exc}")
        with c2:
            if st.button("📥 Load from Google Sheets", use_container_width=True):
                try:
                    stored = _sheets_store(cfg, spreadsheet_id).read()
                except ConfigurationStoreUnavailable as exc:
                    st.error(f"❌ Google Sheets unavailable: {exc}")
                    return
                if stored is None:
                    st.info("No configuration saved yet.")
                    return
                # Widget values can only be set before the widgets render.
                st.session_state._loaded_config = stored
                st.rerun()


# ─────────────────────────────────────────────────────────────────────────────
# Results tab
# ─────────────────────────────────────────────────────────────────────────────


def _render_keyword(analysis: KeywordAnalysis, ins: InsightSet) -> None:
    m = analysis.your_metrics
    pos = f"#{analysis.your_position}" if analysis.your_position else "Not visible"
    st.subheader(f"🔎 {analysis.keyword}")
    st.caption(f"Your position: **{pos}** of {analysis.total_competitors} competitors")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Impression share", format_pct(m.impression_share))
    c2.metric(
        "Avg CPC",
        f"${m.avg_cpc:.2f}",
        help=f"Estimated market CPC: ${ins.market_cpc_baseline:.2f}",
    )
    c3.metric("Spend", f"${m.cost:,.2f}")
    c4.metric("ROAS", ins.roas_display)

    if analysis.top_competitors:
        st.markdown(
            f"**Top competitors** · average price {format_money(analysis.avg_market_price)}"
        )
        st.dataframe(competitors_to_dataframe(analysis), use_container_width=True, hide_index=True)
    else:
        st.caption("No competitor listings found.")

    if analysis.competitor_ads:
        with st.expander(f"📢 Competitor ads ({len(analysis.competitor_ads)})"):
            for ad in analysis.competitor_ads:
                st.markdown(f"**{ad.title}**  \n{ad.description}  \n`{ad.url}` · {ad.merchant}")
    st.divider()


def results_tab() -> None:
    summary = st.session_state.get("summary")
    if summary is None:
        st.info("👈 Run an analysis or load the demo data from the **Setup** tab.")
        return

    run = summary["run"]
    if st.session_state.get("mode") == "demo":
        st.caption("🧪 Showing built-in demo data.")
    st.header(f"Results for {run.brand_domain}")
    st.caption(PERIOD_LABELS.get(run.reporting_period, run.reporting_period))

    if run.partial:
        st.warning(
            "⚠️ **Partial results.** These keywords could not be fetched:  \n"
            + "  \n".join(f"• `{kw}` — {err}" for kw, err in run.failures.items()),
            icon="⚠️",
        )
    if not run.analyses:
        st.error("No keyword could be analysed.")
        return

    for analysis, ins in zip(run.analyses, summary["insights"]):
        _render_keyword(analysis, ins)

    st.download_button(
        "⬇️ Download results.csv",
        data=summary["results"].to_csv(index=False).encode("utf-8"),
        file_name="results.csv",
        mime="text/csv",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Insights tab
# ─────────────────────────────────────────────────────────────────────────────


def insights_tab() -> None:
    summary = st.session_state.get("summary")
    if summary is None:
        st.info("👈 Insights appear once an analysis has run.")
        return

    st.header("💡 Strategic insights")
    for ins in summary["insights"]:
        with st.container(border=True):
            st.subheader(f'"{ins.keyword}" strategy')
            st.markdown(f"**Market position.** {ins.position_message}")
            st.markdown(f"**Pricing.** {ins.pricing_message}")
            st.markdown(f"**Impression share.** {ins.impression_share_message}")
            st.markdown(f"**Competitive threats.** {ins.threat_message}")
            st.markdown("**Recommended actions**")
            st.markdown("\n".join(f"- {t}" for t in ins.action_texts))

    st.download_button(
        "⬇️ Download insights.md",
        data=summary["report"].encode("utf-8"),
        file_name="insights.md",
        mime="text/markdown",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────


def main() -> None:
    st.set_page_config(
        page_title="Shopping Competitor Analysis",
        page_icon="🛒",
        layout="wide",
        initial_sidebar_state="collapsed",
    )
    cfg = load_config("config.yaml")
    _init_logging(cfg.logging.level, cfg.logging.path)

    st.title("🛒 Shopping Competitor Analysis")
    st.caption("Your Google Shopping performance vs. the competitors on the results page")

    tab_setup, tab_results, tab_insights = st.tabs(["⚙️ Setup", "📊 Results", "💡 Insights"])

    with tab_setup:
        setup_tab(cfg)

    with tab_results:
        results_tab()

    with tab_insights:
        insights_tab()


if __name__ == "__main__":
    main()
