"""Google Ads connector: the brand's own keyword performance as YourMetrics."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sca.config_google_ads import GoogleAdsConfig, load_google_ads_config
from sca.errors import ConfigurationInvalid, ExternalFetchFailed
from sca.providers.base import MetricsProvider
from sca.schema import REPORTING_PERIODS, YourMetrics

logger = logging.getLogger(__name__)


def _build_client(cfg: GoogleAdsConfig):
    from google.ads.googleads.client import GoogleAdsClient

    payload = {
        "developer_token": cfg.developer_token,
        "client_id": cfg.client_id,
        "client_secret": cfg.client_secret,
        "refresh_token": cfg.refresh_token,
        "use_proto_plus": True,
    }
    if cfg.login_customer_id:
        payload["login_customer_id"] = cfg.login_customer_id

    return GoogleAdsClient.load_from_dict(payload)


def _safe_float(v, default: float = 0.0) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def _safe_int(v, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _gaql_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_query(keyword: str, reporting_period: str) -> str:
    if reporting_period not in REPORTING_PERIODS:
        raise ConfigurationInvalid(f"Unsupported reporting period '{reporting_period}'.")

    return f"""
SELECT
  ad_group_criterion.keyword.text,
  metrics.impressions,
  metrics.clicks,
  metrics.cost_micros,
  metrics.search_impression_share,
  metrics.conversions,
  metrics.conversions_value
FROM keyword_view
WHERE segments.date DURING {reporting_period}
  AND ad_group_criterion.keyword.text = '{_gaql_string(keyword)}'
""".strip()


def aggregate_keyword_rows(keyword: str, rows: Iterable) -> YourMetrics:
    """Sum a keyword's rows across ad groups into one YourMetrics.

    Impression share is weighted by impressions; average CPC is cost over
    clicks.
    """
    impressions = clicks = 0
    cost = conversions = conversion_value = 0.0
    weighted_share = 0.0

    for row in rows:
        metrics = getattr(row, "metrics", None)
        row_impr = _safe_int(getattr(metrics, "impressions", 0))
        impressions += row_impr
        clicks += _safe_int(getattr(metrics, "clicks", 0))
        cost += _safe_float(getattr(metrics, "cost_micros", 0)) / 1_000_000.0
        conversions += _safe_float(getattr(metrics, "conversions", 0.0))
        conversion_value += _safe_float(getattr(metrics, "conversions_value", 0.0))
        weighted_share += _safe_float(getattr(metrics, "search_impression_share", 0.0)) * row_impr

    share = weighted_share / impressions if impressions > 0 else 0.0
    return YourMetrics(
        keyword=keyword,
        impressions=impressions,
        clicks=clicks,
        cost=round(cost, 2),
        impression_share=min(max(share, 0.0), 1.0),
        avg_cpc=round(cost / clicks, 2) if clicks > 0 else 0.0,
        conversions=int(round(conversions)),
        conversion_value=round(conversion_value, 2),
    )


class GoogleAdsMetricsProvider(MetricsProvider):
    """Reads keyword_view metrics from the caller's own Google Ads account."""

    def __init__(
        self,
        customer_id: Optional[str] = None,
        config_path: Optional[str] = None,
        client=None,
    ) -> None:
        self.cfg = load_google_ads_config(customer_id=customer_id, yaml_path=config_path)
        self.client = client or _build_client(self.cfg)

    def get_metrics(self, keyword: str, reporting_period: str) -> YourMetrics:
        query = build_query(keyword, reporting_period)
        service = self.client.get_service("GoogleAdsService")
        logger.info("Google Ads metrics for '%s' (%s)", keyword, reporting_period)

        try:
            stream = service.search_stream(customer_id=self.cfg.customer_id, query=query)
            rows = [r for batch in stream for r in getattr(batch, "results", [])]
        except Exception as exc:
            msg = str(exc)
            if any(k in msg.lower() for k in ["permission", "unauthorized", "authentication"]):
                raise ExternalFetchFailed(
                    "Google Ads authentication/permission error. Verify developer token, "
                    "OAuth creds, refresh token, and account access.",
                    keyword=keyword,
                    source="google_ads",
                ) from exc
            raise ExternalFetchFailed(
                f"Google Ads query failed: {exc}", keyword=keyword, source="google_ads"
            ) from exc

        logger.debug("Google Ads '%s': %d row(s)", keyword, len(rows))
        return aggregate_keyword_rows(keyword, rows)
