"""Demo providers — built-in Australian electronics data set, no API calls."""

from __future__ import annotations

from typing import Dict, List, Tuple

from sca.errors import ExternalFetchFailed
from sca.providers.base import MetricsProvider, SearchResultsProvider
from sca.schema import Competitor, CompetitorAd, CompetitorListing, YourMetrics

DEMO_BRAND_URL = "https://yourbrand.com.au"
DEMO_KEYWORDS: List[str] = [
    "wireless headphones",
    "bluetooth earbuds",
    "noise cancelling headphones",
    "gaming headsets",
]
DEMO_REPORTING_PERIOD = "LAST_7_DAYS"

_PLACEHOLDER = "https://via.placeholder.com/100x100/{colour}/white?text={label}"

# Lower-ranked listings padding each SERP out to a realistic size.
_FILLER_MERCHANTS: List[Tuple[str, str]] = [
    ("Kogan", "kogan.com"),
    ("Big W", "bigw.com.au"),
    ("The Good Guys", "thegoodguys.com.au"),
    ("Officeworks", "officeworks.com.au"),
    ("Amazon AU", "amazon.com.au"),
    ("eBay AU", "ebay.com.au"),
    ("Catch", "catch.com.au"),
    ("Myer", "myer.com.au"),
    ("David Jones", "davidjones.com"),
    ("Bing Lee", "binglee.com.au"),
    ("Mwave", "mwave.com.au"),
    ("Scorptec", "scorptec.com.au"),
    ("Umart", "umart.com.au"),
    ("Centre Com", "centrecom.com.au"),
    ("PLE Computers", "ple.com.au"),
    ("Target AU", "target.com.au"),
    ("Dick Smith", "dicksmith.com.au"),
]


def _listing(
    title: str,
    price: str,
    merchant: str,
    rating: float,
    reviews: int,
    domain: str,
    colour: str = "4F46E5",
) -> Competitor:
    label = title.split()[0]
    return Competitor(
        title=title,
        price=price,
        merchant=merchant,
        rating=rating,
        reviews=reviews,
        thumbnail=_PLACEHOLDER.format(colour=colour, label=label),
        link=f"https://www.{domain}/p/{title.lower().replace(' ', '-')}",
    )


def _fillers(keyword: str, count: int, base_price: float) -> List[Competitor]:
    out: List[Competitor] = []
    for i in range(count):
        merchant, domain = _FILLER_MERCHANTS[i % len(_FILLER_MERCHANTS)]
        price = base_price + 10 * ((i * 7) % 11)
        out.append(
            _listing(
                title=f"{keyword.title()} {merchant} Edition",
                price=f"${price:,.2f}",
                merchant=merchant,
                rating=round(3.6 + (i % 5) * 0.2, 1),
                reviews=40 + i * 13,
                domain=domain,
                colour="9CA3AF",
            )
        )
    return out


def _brand_listing(title: str, price: str) -> Competitor:
    return _listing(title, price, "Your Brand", 4.2, 188, "yourbrand.com.au", "16A34A")


_DEMO_LISTINGS: Dict[str, CompetitorListing] = {
    "wireless headphones": CompetitorListing(
        competitors=tuple(
            [
                _listing("Sony WH-1000XM4 Wireless Headphones", "$449.99", "JB Hi-Fi", 4.5, 1234, "jbhifi.com.au", "4F46E5"),
                _listing("Bose QuietComfort 45", "$489.00", "Harvey Norman", 4.4, 892, "harveynorman.com.au", "059669"),
                _listing("Apple AirPods Max", "$899.00", "Apple Store AU", 4.3, 567, "apple.com", "DC2626"),
                _brand_listing("YourBrand Studio Wireless Headphones", "$329.00"),
            ]
            + _fillers("wireless headphones", 17, 199.0)
        ),
        ads=(
            CompetitorAd(
                title="Premium Wireless Headphones | Free Shipping",
                description="Experience crystal clear sound with our premium headphones. 30-day money back guarantee.",
                url="brandexample.com.au/headphones",
                merchant="TechGear Pro",
            ),
        ),
    ),
    "bluetooth earbuds": CompetitorListing(
        competitors=tuple(
            [
                _listing("AirPods Pro (2nd generation)", "$399.00", "Apple Store AU", 4.6, 2341, "apple.com", "1F2937"),
                _brand_listing("YourBrand Pods Bluetooth Earbuds", "$149.00"),
                _listing("Samsung Galaxy Buds Pro", "$299.00", "Samsung Store", 4.3, 1456, "samsung.com", "3B82F6"),
            ]
            + _fillers("bluetooth earbuds", 16, 89.0)
        ),
        ads=(
            CompetitorAd(
                title="Best Bluetooth Earbuds 2024",
                description="Discover the latest in wireless audio technology. Compare top brands and find your perfect match.",
                url="audioworld.com.au/wireless",
                merchant="Audio World",
            ),
        ),
    ),
    "noise cancelling headphones": CompetitorListing(
        competitors=tuple(
            [
                _listing("Sony WH-1000XM5 Noise Cancelling", "$549.00", "JB Hi-Fi", 4.7, 3102, "jbhifi.com.au", "4F46E5"),
                _listing("Bose QuietComfort Ultra", "$649.95", "Bose AU", 4.5, 1190, "bose.com.au", "059669"),
                _listing("Sennheiser Momentum 4", "Price on request", "Sennheiser", 4.4, 640, "sennheiser.com", "111827"),
            ]
            + _fillers("noise cancelling headphones", 12, 249.0)
        ),
        ads=(),
    ),
    "gaming headsets": CompetitorListing(
        competitors=tuple(
            _fillers("gaming headsets", 11, 79.0)
            + [_brand_listing("YourBrand Arena Gaming Headset", "$119.00")]
            + _fillers("gaming headsets", 6, 129.0)
        ),
        ads=(
            CompetitorAd(
                title="Pro Gaming Headsets | Same Day Dispatch",
                description="7.1 surround sound, detachable mics and free returns on all gaming audio.",
                url="gamerhub.com.au/headsets",
                merchant="GamerHub",
            ),
            CompetitorAd(
                title="Gaming Headsets Sale - Up To 40% Off",
                description="Top brands including HyperX, SteelSeries and Logitech G.",
                url="pcbargains.com.au/audio",
                merchant="PC Bargains",
            ),
        ),
    ),
}

_DEMO_METRICS: Dict[str, YourMetrics] = {
    "wireless headphones": YourMetrics(
        keyword="wireless headphones",
        impressions=15420,
        clicks=234,
        cost=145.67,
        impression_share=0.23,
        avg_cpc=0.92,
        conversions=12,
        conversion_value=1289.99,
    ),
    "bluetooth earbuds": YourMetrics(
        keyword="bluetooth earbuds",
        impressions=8934,
        clicks=156,
        cost=98.34,
        impression_share=0.35,
        avg_cpc=0.95,
        conversions=8,
        conversion_value=699.99,
    ),
    "noise cancelling headphones": YourMetrics(
        keyword="noise cancelling headphones",
        impressions=0,
        clicks=0,
        cost=0.0,
        impression_share=0.0,
        avg_cpc=0.0,
        conversions=0,
        conversion_value=0.0,
    ),
    "gaming headsets": YourMetrics(
        keyword="gaming headsets",
        impressions=22150,
        clicks=512,
        cost=301.12,
        impression_share=0.64,
        avg_cpc=0.59,
        conversions=19,
        conversion_value=2261.00,
    ),
}


class DemoSearchProvider(SearchResultsProvider):
    """Serves the built-in listings; unknown keywords fail like a provider would."""

    def get_competitor_listing(self, keyword: str, country: str) -> CompetitorListing:
        listing = _DEMO_LISTINGS.get(keyword.strip().lower())
        if listing is None:
            raise ExternalFetchFailed(
                f"No demo search results for '{keyword}'", keyword=keyword, source="demo"
            )
        return listing


class DemoMetricsProvider(MetricsProvider):
    def get_metrics(self, keyword: str, reporting_period: str) -> YourMetrics:
        metrics = _DEMO_METRICS.get(keyword.strip().lower())
        if metrics is None:
            raise ExternalFetchFailed(
                f"No demo ads metrics for '{keyword}'", keyword=keyword, source="demo"
            )
        return metrics
