"""Internal data model for keyword competitive analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Tuple

ReportingPeriod = Literal["LAST_7_DAYS", "LAST_30_DAYS"]

REPORTING_PERIODS: Tuple[str, ...] = ("LAST_7_DAYS", "LAST_30_DAYS")


@dataclass(frozen=True)
class Competitor:
    title: str
    price: str
    merchant: str
    rating: float = 0.0
    reviews: int = 0
    thumbnail: str = ""
    link: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "price": self.price,
            "merchant": self.merchant,
            "rating": self.rating,
            "reviews": self.reviews,
            "thumbnail": self.thumbnail,
            "link": self.link,
        }


@dataclass(frozen=True)
class CompetitorAd:
    title: str
    description: str = ""
    url: str = ""
    merchant: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "merchant": self.merchant,
        }


@dataclass(frozen=True)
class CompetitorListing:
    """One search-results fetch: ranked product listings plus text ads."""

    competitors: Tuple[Competitor, ...] = ()
    ads: Tuple[CompetitorAd, ...] = ()


@dataclass(frozen=True)
class YourMetrics:
    keyword: str
    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    impression_share: float = 0.0
    avg_cpc: float = 0.0
    conversions: int = 0
    conversion_value: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "impressions": self.impressions,
            "clicks": self.clicks,
            "cost": self.cost,
            "impression_share": self.impression_share,
            "avg_cpc": self.avg_cpc,
            "conversions": self.conversions,
            "conversion_value": self.conversion_value,
        }


@dataclass(frozen=True)
class KeywordAnalysis:
    """Unit of output: the brand's standing for one keyword.

    ``your_position`` is ``None`` when the brand was not found in the listing.
    """

    keyword: str
    your_position: Optional[int]
    total_competitors: int
    top_competitors: Tuple[Competitor, ...]
    competitor_ads: Tuple[CompetitorAd, ...]
    your_metrics: YourMetrics
    avg_market_price: float = 0.0

    def __post_init__(self) -> None:
        if self.total_competitors < 0:
            raise ValueError("total_competitors must be non-negative")
        if len(self.top_competitors) > self.total_competitors:
            raise ValueError(
                f"{len(self.top_competitors)} top competitors exceed "
                f"total_competitors={self.total_competitors}"
            )
        if self.your_position is not None and not (
            1 <= self.your_position <= self.total_competitors + 1
        ):
            raise ValueError(
                f"your_position={self.your_position} outside 1..{self.total_competitors + 1}"
            )

    @property
    def ranked(self) -> bool:
        return self.your_position is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "your_position": self.your_position,
            "total_competitors": self.total_competitors,
            "top_competitors": [c.to_dict() for c in self.top_competitors],
            "competitor_ads": [a.to_dict() for a in self.competitor_ads],
            "your_metrics": self.your_metrics.to_dict(),
            "avg_market_price": self.avg_market_price,
        }


@dataclass(frozen=True)
class AnalysisRun:
    """Result of one batch: per-keyword analyses plus the keywords that failed."""

    brand_domain: str
    reporting_period: str
    analyses: Tuple[KeywordAnalysis, ...] = ()
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.failures)


@dataclass(frozen=True)
class UserConfiguration:
    brand_url: str
    keywords: Tuple[str, ...]
    reporting_period: str = "LAST_7_DAYS"
    api_key: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
