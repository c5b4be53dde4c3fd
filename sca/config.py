"""Load and validate config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from sca.errors import ConfigurationInvalid


@dataclass
class AnalysisConfig:
    country: str = "au"
    max_keywords: int = 4
    top_competitors: int = 3
    max_workers: int = 4


@dataclass
class InsightConfig:
    # Heuristic: expected click cost as a fraction of product price. Not
    # derived from any fetched CPC data.
    cpc_price_ratio: float = 0.02


@dataclass
class SerpConfig:
    endpoint: str = "https://api.serpwow.com/live/search"
    timeout_seconds: float = 60.0
    google_domain: str = "google.com.au"
    location: str = "Australia"
    hl: str = "en"


@dataclass
class SheetsConfig:
    spreadsheet_id: str = ""
    config_worksheet: str = "Config"
    results_worksheet: str = "Results"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    path: Optional[str] = "logs/sca.log"


@dataclass
class AppConfig:
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    insights: InsightConfig = field(default_factory=InsightConfig)
    serp: SerpConfig = field(default_factory=SerpConfig)
    sheets: SheetsConfig = field(default_factory=SheetsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    p = Path(path)
    raw: dict = {}
    if p.exists():
        with open(p, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    cfg = AppConfig(
        analysis=AnalysisConfig(**raw.get("analysis", {})),
        insights=InsightConfig(**raw.get("insights", {})),
        serp=SerpConfig(**raw.get("serp", {})),
        sheets=SheetsConfig(**raw.get("sheets", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
    )
    if cfg.analysis.max_keywords < 1:
        raise ConfigurationInvalid("analysis.max_keywords must be at least 1")
    if cfg.insights.cpc_price_ratio < 0:
        raise ConfigurationInvalid("insights.cpc_price_ratio must be non-negative")
    return cfg
