"""Credentials loader for the Google Ads metrics provider (bring your own account)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from sca.errors import ConfigurationInvalid


class GoogleAdsConfigError(ConfigurationInvalid):
    pass


@dataclass
class GoogleAdsConfig:
    developer_token: str
    client_id: str
    client_secret: str
    refresh_token: str
    customer_id: str
    login_customer_id: Optional[str] = None


def _clean(v) -> str:
    return str(v or "").strip()


def normalize_customer_id(value) -> str:
    """Google Ads shows ids as ``123-456-7890``; the API wants digits only."""
    return _clean(value).replace("-", "").replace(" ", "")


def load_google_ads_config(customer_id: Optional[str] = None, yaml_path: Optional[str] = None) -> GoogleAdsConfig:
    """Resolve credentials, environment first, then a google-ads.yaml file.

    The yaml file is *yaml_path*, else ``SCA_GOOGLE_ADS_YAML``, else
    ``google-ads.yaml`` in the working directory. An explicit *customer_id*
    wins over both sources.
    """
    load_dotenv()
    cfg_path = yaml_path or os.environ.get("SCA_GOOGLE_ADS_YAML") or "google-ads.yaml"
    raw = {}
    p = Path(cfg_path)
    if p.exists():
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    def _get(name: str) -> str:
        return _clean(os.environ.get(f"SCA_GOOGLE_ADS_{name.upper()}") or raw.get(name))

    values = {
        "developer_token": _get("developer_token"),
        "client_id": _get("client_id"),
        "client_secret": _get("client_secret"),
        "refresh_token": _get("refresh_token"),
        "customer_id": normalize_customer_id(customer_id or _get("customer_id")),
    }
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise GoogleAdsConfigError(
            "Missing Google Ads config: " + ", ".join(missing) + ". "
            "Set SCA_GOOGLE_ADS_* env vars or provide google-ads.yaml."
        )
    if not values["customer_id"].isdigit():
        raise GoogleAdsConfigError(
            f"Google Ads customer id must be numeric, got '{values['customer_id']}'."
        )

    login = normalize_customer_id(_get("login_customer_id")) or None
    return GoogleAdsConfig(login_customer_id=login, **values)
