"""Domain extraction and price parsing helpers."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Union
from urllib.parse import urlsplit

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_HOST_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")


def _is_valid_hostname(host: str) -> bool:
    try:
        ascii_host = host.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    if not ascii_host or len(ascii_host) > 253:
        return False
    return all(_HOST_LABEL_RE.match(label) for label in ascii_host.split("."))


def extract_domain(url: str) -> str:
    """Return the bare hostname of *url*, without a leading ``www.`` label.

    A missing scheme defaults to ``https://``. Malformed input is returned
    unchanged instead of raising.
    """
    raw = url if isinstance(url, str) else str(url or "")
    candidate = raw.strip()
    if not candidate:
        return raw
    if not _SCHEME_RE.match(candidate):
        candidate = f"https://{candidate}"
    try:
        parts = urlsplit(candidate)
        host = parts.hostname
        parts.port  # raises ValueError on a non-numeric or out-of-range port
    except ValueError:
        return raw
    if not host or not _is_valid_hostname(host):
        return raw
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def parse_price(value: Union[str, float, int, None]) -> Optional[float]:
    """Parse a currency-tagged price such as ``"A$1,299.00"``.

    Currency symbols, letters and thousands separators are stripped.
    Returns ``None`` when nothing numeric remains.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^\d.\-]", "", str(value))
    if not _NUMERIC_RE.match(cleaned):
        return None
    return float(cleaned)


def average_price(prices: Iterable[Union[str, float, int, None]]) -> float:
    """Arithmetic mean of the parseable prices; 0.0 when none parse."""
    parsed: List[float] = [p for p in (parse_price(v) for v in prices) if p is not None]
    if not parsed:
        return 0.0
    return sum(parsed) / len(parsed)
