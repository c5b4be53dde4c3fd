"""SerpWow connector: Google shopping listings and text ads for a keyword."""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from sca.config import SerpConfig
from sca.errors import ConfigurationInvalid, ExternalFetchFailed
from sca.parsing import extract_domain
from sca.providers.base import SearchResultsProvider
from sca.schema import Competitor, CompetitorAd, CompetitorListing

logger = logging.getLogger(__name__)

API_KEY_ENV = "SCA_SERPWOW_API_KEY"


def redact_api_keys(text: str) -> str:
    """Remove API keys from error messages/URLs so they are never shown to users."""
    if not text or not isinstance(text, str):
        return text
    return re.sub(r"api_key=[a-zA-Z0-9_-]+", "api_key=***REDACTED***", text, flags=re.IGNORECASE)


def resolve_serp_api_key(explicit: Optional[str] = None) -> str:
    """Return *explicit* if set, else ``SCA_SERPWOW_API_KEY`` from env or ``.env``."""
    key = (explicit or "").strip()
    if key:
        return key
    load_dotenv()
    key = os.environ.get(API_KEY_ENV, "").strip()
    if not key:
        raise ConfigurationInvalid(
            f"SerpWow API key not configured. Enter it in Setup or set {API_KEY_ENV}."
        )
    return key


def _pick(d: dict, *keys, default=None):
    for k in keys:
        if k in d and d[k] not in (None, "", [], {}):
            return d[k]
    return default


def _safe_float(v, default: float = 0.0) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def _safe_int(v, default: int = 0) -> int:
    try:
        return int(float(str(v).replace(",", "")))
    except (TypeError, ValueError):
        return default


def _price_text(item: dict) -> str:
    raw = _pick(item, "price_raw", "extracted_price", "price", default="")
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return f"${raw:,.2f}"
    return str(raw)


def map_shopping_result(item: dict) -> Competitor:
    link = str(_pick(item, "link", "product_link", default="") or "")
    merchant = _pick(item, "merchant", "source", "seller", default="")
    if not merchant and link:
        merchant = extract_domain(link)
    rating = min(max(_safe_float(item.get("rating")), 0.0), 5.0)
    return Competitor(
        title=str(_pick(item, "title", default="") or ""),
        price=_price_text(item),
        merchant=str(merchant or ""),
        rating=rating,
        reviews=max(_safe_int(_pick(item, "reviews", "review_count", default=0)), 0),
        thumbnail=str(_pick(item, "image", "thumbnail", default="") or ""),
        link=link,
    )


def map_ad(ad: dict) -> CompetitorAd:
    url = str(_pick(ad, "displayed_link", "link", "tracking_link", default="") or "")
    merchant = _pick(ad, "domain", "advertiser", default="")
    if not merchant and url:
        merchant = extract_domain(url)
    return CompetitorAd(
        title=str(_pick(ad, "title", "headline", default="") or ""),
        description=str(_pick(ad, "description", "snippet", default="") or ""),
        url=url,
        merchant=str(merchant or ""),
    )


def parse_search_response(body: Dict[str, Any]) -> CompetitorListing:
    """Map a SerpWow response body onto a CompetitorListing."""
    items: List[dict] = _pick(body, "shopping_results", "inline_shopping", default=[]) or []
    ads: List[dict] = _pick(body, "ads", default=[]) or []
    return CompetitorListing(
        competitors=tuple(map_shopping_result(i) for i in items if isinstance(i, dict)),
        ads=tuple(map_ad(a) for a in ads if isinstance(a, dict)),
    )


class SerpWowSearchProvider(SearchResultsProvider):
    """Fetches one SERP per keyword from the SerpWow live search API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        cfg: Optional[SerpConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = resolve_serp_api_key(api_key)
        self.cfg = cfg or SerpConfig()
        # None: each call uses requests.get, one connection per request.
        self._session = session

    def _search(self, params: dict, keyword: str) -> dict:
        params = {**params, "api_key": self.api_key}
        try:
            http = self._session or requests
            r = http.get(
                self.cfg.endpoint, params=params, timeout=self.cfg.timeout_seconds
            )
        except requests.RequestException as exc:
            raise ExternalFetchFailed(
                redact_api_keys(f"SerpWow request failed: {exc}"),
                keyword=keyword,
                source="serpwow",
            ) from exc

        if not r.ok:
            err_msg = str(r.status_code)
            try:
                body = r.json()
                info = body.get("request_info", {}) if isinstance(body, dict) else {}
                if info.get("message"):
                    err_msg = f"{r.status_code}: {info['message']}"
            except ValueError:
                if r.text:
                    err_msg = f"{r.status_code}: {r.text[:200]}"
            raise ExternalFetchFailed(
                redact_api_keys(f"SerpWow error {err_msg}"), keyword=keyword, source="serpwow"
            )

        try:
            body = r.json()
        except ValueError as exc:
            raise ExternalFetchFailed(
                "SerpWow returned a non-JSON body", keyword=keyword, source="serpwow"
            ) from exc

        info = body.get("request_info", {}) if isinstance(body, dict) else {}
        if info.get("success") is False:
            raise ExternalFetchFailed(
                redact_api_keys(f"SerpWow error: {info.get('message', 'request unsuccessful')}"),
                keyword=keyword,
                source="serpwow",
            )
        return body

    def get_competitor_listing(self, keyword: str, country: str) -> CompetitorListing:
        params = {
            "q": keyword,
            "gl": country.lower(),
            "hl": self.cfg.hl,
            "google_domain": self.cfg.google_domain,
            "location": self.cfg.location,
        }
        logger.info("SerpWow search for '%s' (gl=%s)", keyword, params["gl"])
        body = self._search(params, keyword)
        listing = parse_search_response(body)
        logger.debug(
            "SerpWow '%s': %d listings, %d ads",
            keyword,
            len(listing.competitors),
            len(listing.ads),
        )
        return listing
