"""Google Sheets configuration store.

One worksheet (``Config``) holds a header row and a single configuration row;
``save`` clears and rewrites it wholesale. A second worksheet (``Results``)
collects one appended row per analysed keyword and can be cleared below its
header.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1

from sca.errors import ConfigurationInvalid, ConfigurationStoreUnavailable
from sca.schema import REPORTING_PERIODS, AnalysisRun, UserConfiguration

logger = logging.getLogger(__name__)

CONFIG_HEADERS: List[str] = [
    "Brand URL",
    "Keywords",
    "Serp API Key",
    "Reporting Period",
    "Created At",
    "Updated At",
]
RESULTS_HEADERS: List[str] = [
    "Keyword",
    "Brand Domain",
    "Analysis Date",
    "Your Position",
    "Competitors Found",
    "Notes",
]
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# Anything that means the spreadsheet could not be reached or written.
_STORE_ERRORS = (gspread.exceptions.GSpreadException, requests.RequestException, GoogleAuthError)


def _resolve_creds_path(path: Optional[str] = None) -> str:
    path = path or os.environ.get("SCA_GOOGLE_CREDS_JSON") or os.environ.get(
        "GOOGLE_APPLICATION_CREDENTIALS"
    )
    if not path:
        raise ConfigurationStoreUnavailable(
            "Google credentials not configured. Set SCA_GOOGLE_CREDS_JSON or "
            "GOOGLE_APPLICATION_CREDENTIALS to a Service Account JSON path."
        )
    if not Path(path).exists():
        raise ConfigurationStoreUnavailable(f"Credential file not found: {path}")
    return path


def build_sheets_client(creds_path: Optional[str] = None) -> gspread.Client:
    """Authorize a gspread client from a service-account JSON file."""
    path = _resolve_creds_path(creds_path)
    try:
        creds = Credentials.from_service_account_file(path, scopes=SCOPES)
        return gspread.authorize(creds)
    except (ValueError, OSError) as exc:
        raise ConfigurationStoreUnavailable(f"Could not load Google credentials: {exc}") from exc


def validate_configuration(config: UserConfiguration) -> List[str]:
    """Return a list of human-readable problems; empty when the config is usable."""
    errors: List[str] = []
    if not (config.brand_url or "").strip():
        errors.append("Brand URL is required")
    if not config.keywords:
        errors.append("At least one keyword is required")
    elif any(not (k or "").strip() for k in config.keywords):
        errors.append("Keywords cannot be empty")
    elif any("," in k for k in config.keywords):
        errors.append("Keywords cannot contain commas")
    if config.reporting_period not in REPORTING_PERIODS:
        errors.append(f"Reporting period must be one of: {', '.join(REPORTING_PERIODS)}")
    return errors


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(value: str) -> Optional[datetime]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable timestamp in config sheet: %r", value)
        return None


def _cell(row: List[str], idx: int) -> str:
    return str(row[idx]).strip() if idx < len(row) and row[idx] is not None else ""


def config_to_row(config: UserConfiguration) -> List[str]:
    return [
        config.brand_url,
        ", ".join(config.keywords),
        config.api_key or "",
        config.reporting_period,
        config.created_at.isoformat() if config.created_at else "",
        config.updated_at.isoformat() if config.updated_at else "",
    ]


def row_to_config(row: List[str]) -> UserConfiguration:
    keywords = tuple(k.strip() for k in _cell(row, 1).split(",") if k.strip())
    return UserConfiguration(
        brand_url=_cell(row, 0),
        keywords=keywords,
        api_key=_cell(row, 2) or None,
        reporting_period=_cell(row, 3) or "LAST_7_DAYS",
        created_at=_parse_ts(_cell(row, 4)),
        updated_at=_parse_ts(_cell(row, 5)),
    )


class SheetsConfigStore:
    """Persist the single user configuration in a Google Spreadsheet."""

    def __init__(
        self,
        client: gspread.Client,
        spreadsheet_id: str,
        config_worksheet: str = "Config",
        results_worksheet: str = "Results",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not (spreadsheet_id or "").strip():
            raise ConfigurationStoreUnavailable("Spreadsheet ID is not configured.")
        self.client = client
        self.spreadsheet_id = spreadsheet_id.strip()
        self.config_worksheet = config_worksheet
        self.results_worksheet = results_worksheet
        self._clock = clock or _now

    # ── Worksheet access ──────────────────────────────────────────────────────

    def _spreadsheet(self):
        try:
            return self.client.open_by_key(self.spreadsheet_id)
        except _STORE_ERRORS as exc:
            raise ConfigurationStoreUnavailable(
                f"Could not open spreadsheet {self.spreadsheet_id}: {exc}"
            ) from exc

    def _worksheet(self, title: str, headers: List[str], create: bool):
        sh = self._spreadsheet()
        try:
            return sh.worksheet(title)
        except gspread.exceptions.WorksheetNotFound:
            if not create:
                return None
        except _STORE_ERRORS as exc:
            raise ConfigurationStoreUnavailable(
                f"Could not open worksheet '{title}': {exc}"
            ) from exc
        try:
            ws = sh.add_worksheet(title=title, rows=100, cols=len(headers))
            ws.update(values=[headers], range_name="A1")
        except _STORE_ERRORS as exc:
            raise ConfigurationStoreUnavailable(
                f"Could not create worksheet '{title}': {exc}"
            ) from exc
        logger.info("Created worksheet '%s'", title)
        return ws

    def _write(self, config: UserConfiguration) -> None:
        ws = self._worksheet(self.config_worksheet, CONFIG_HEADERS, create=True)
        try:
            ws.clear()
            ws.update(values=[CONFIG_HEADERS, config_to_row(config)], range_name="A1")
        except _STORE_ERRORS as exc:
            raise ConfigurationStoreUnavailable(f"Failed to write configuration: {exc}") from exc

    # ── Public API ────────────────────────────────────────────────────────────

    def read(self) -> Optional[UserConfiguration]:
        """Return the stored configuration, or None if nothing was ever saved."""
        ws = self._worksheet(self.config_worksheet, CONFIG_HEADERS, create=False)
        if ws is None:
            return None
        try:
            values = ws.get_all_values()
        except _STORE_ERRORS as exc:
            raise ConfigurationStoreUnavailable(f"Failed to read configuration: {exc}") from exc
        if len(values) < 2 or not any(str(v).strip() for v in values[1]):
            return None
        return row_to_config(values[1])

    def save(self, config: UserConfiguration) -> UserConfiguration:
        """Overwrite the stored configuration; both timestamps are set to now."""
        errors = validate_configuration(config)
        if errors:
            raise ConfigurationInvalid("; ".join(errors))
        now = self._clock()
        stored = replace(
            config,
            keywords=tuple(k.strip() for k in config.keywords),
            api_key=config.api_key or None,
            created_at=now,
            updated_at=now,
        )
        self._write(stored)
        logger.info("Configuration saved for %s", stored.brand_url)
        return stored

    def update_configuration(self, **changes) -> UserConfiguration:
        """Merge *changes* into the stored configuration and write it back.

        ``created_at`` is kept; ``updated_at`` always moves forward.
        """
        existing = self.read()
        if existing is None:
            raise ConfigurationInvalid("No existing configuration found to update")
        changes.pop("created_at", None)
        changes.pop("updated_at", None)
        if "keywords" in changes:
            changes["keywords"] = tuple(k.strip() for k in changes["keywords"])
        if "api_key" in changes:
            changes["api_key"] = changes["api_key"] or None
        merged = replace(existing, **changes)

        errors = validate_configuration(merged)
        if errors:
            raise ConfigurationInvalid("; ".join(errors))

        now = self._clock()
        if existing.updated_at is not None and now <= existing.updated_at:
            now = existing.updated_at + timedelta(microseconds=1)
        stored = replace(
            merged,
            created_at=existing.created_at or now,
            updated_at=now,
        )
        self._write(stored)
        logger.info("Configuration updated (%s)", ", ".join(sorted(changes)) or "no fields")
        return stored

    def append_results(self, run: AnalysisRun, insights_notes: Optional[dict] = None) -> int:
        """Append one row per analysed keyword to the Results worksheet.

        Failed keywords are appended too, with the error in Notes. Returns the
        number of rows written.
        """
        notes = insights_notes or {}
        analysed_at = self._clock().isoformat()
        rows: List[List[str]] = []
        for a in run.analyses:
            rows.append(
                [
                    a.keyword,
                    run.brand_domain,
                    analysed_at,
                    str(a.your_position) if a.your_position is not None else "N/A",
                    str(a.total_competitors),
                    notes.get(a.keyword, ""),
                ]
            )
        for kw, err in run.failures.items():
            rows.append([kw, run.brand_domain, analysed_at, "N/A", "N/A", f"fetch failed: {err}"])
        if not rows:
            return 0

        ws = self._worksheet(self.results_worksheet, RESULTS_HEADERS, create=True)
        try:
            if not ws.get_all_values():
                rows.insert(0, list(RESULTS_HEADERS))
                written = len(rows) - 1
            else:
                written = len(rows)
            ws.append_rows(rows, value_input_option="RAW")
        except _STORE_ERRORS as exc:
            raise ConfigurationStoreUnavailable(f"Failed to append results: {exc}") from exc
        logger.info("Appended %d result row(s) to '%s'", written, self.results_worksheet)
        return written

    def clear_results(self) -> int:
        """Blank every Results row below the header. Returns the rows cleared.

        A missing Results worksheet is left alone and counts as 0.
        """
        ws = self._worksheet(self.results_worksheet, RESULTS_HEADERS, create=False)
        if ws is None:
            return 0
        try:
            values = ws.get_all_values()
            last_row = len(values)
            if last_row <= 1:
                return 0
            last_col = max(len(r) for r in values) or len(RESULTS_HEADERS)
            end = rowcol_to_a1(last_row, last_col)
            ws.batch_clear([f"A2:{end}"])
        except _STORE_ERRORS as exc:
            raise ConfigurationStoreUnavailable(f"Failed to clear results: {exc}") from exc
        logger.info("Cleared %d result row(s) from '%s'", last_row - 1, self.results_worksheet)
        return last_row - 1
