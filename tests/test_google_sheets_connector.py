"""Tests for the Google Sheets configuration store with a fake spreadsheet (no network)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import gspread
import pytest

from sca.connectors.google_sheets import (
    CONFIG_HEADERS,
    RESULTS_HEADERS,
    SheetsConfigStore,
    build_sheets_client,
    row_to_config,
    validate_configuration,
)
from sca.errors import ConfigurationInvalid, ConfigurationStoreUnavailable
from sca.schema import AnalysisRun, KeywordAnalysis, UserConfiguration, YourMetrics

T0 = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)


class FakeWorksheet:
    def __init__(self, title):
        self.title = title
        self.values = []

    def clear(self):
        self.values = []

    def update(self, values=None, range_name=None):
        assert range_name == "A1"
        self.values = [list(map(str, row)) for row in values]

    def get_all_values(self):
        return [list(r) for r in self.values]

    def append_rows(self, rows, value_input_option=None):
        self.values.extend(list(r) for r in rows)

    def batch_clear(self, ranges):
        self.cleared = list(ranges)
        self.values = self.values[:1] + [[""] * len(r) for r in self.values[1:]]


class FakeSpreadsheet:
    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        if title not in self.sheets:
            raise gspread.exceptions.WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        self.sheets[title] = FakeWorksheet(title)
        return self.sheets[title]


class Clock:
    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0) if len(self.times) > 1 else self.times[0]


def _store(clock=None):
    sh = FakeSpreadsheet()
    client = MagicMock()
    client.open_by_key.return_value = sh
    return SheetsConfigStore(client, "sid", clock=clock or Clock(T0)), sh


def _config(**kw):
    base = dict(
        brand_url="https://yourbrand.com.au",
        keywords=("wireless headphones", "bluetooth earbuds"),
        reporting_period="LAST_7_DAYS",
        api_key="serp-key",
    )
    base.update(kw)
    return UserConfiguration(**base)


def test_read_before_save_is_none():
    store, sh = _store()
    assert store.read() is None
    assert sh.sheets == {}


def test_read_with_header_only_is_none():
    store, sh = _store()
    sh.add_worksheet("Config", 1, 6).values = [list(CONFIG_HEADERS)]
    assert store.read() is None


def test_save_then_read_round_trip():
    store, sh = _store()
    saved = store.save(_config())

    assert saved.created_at == saved.updated_at == T0
    assert sh.sheets["Config"].values[0] == CONFIG_HEADERS
    assert sh.sheets["Config"].values[1][1] == "wireless headphones, bluetooth earbuds"
    assert store.read() == saved


def test_save_overwrites_wholesale():
    store, sh = _store()
    store.save(_config())
    store.save(_config(keywords=("gaming headsets",), api_key=None))

    assert len(sh.sheets["Config"].values) == 2
    stored = store.read()
    assert stored.keywords == ("gaming headsets",)
    assert stored.api_key is None


def test_update_keeps_created_and_advances_updated():
    later = T0 + timedelta(hours=2)
    store, _ = _store(Clock(T0, later))
    saved = store.save(_config())

    updated = store.update_configuration(reporting_period="LAST_30_DAYS")

    assert updated.reporting_period == "LAST_30_DAYS"
    assert updated.created_at == saved.created_at
    assert updated.updated_at == later
    assert store.read() == updated


def test_update_within_same_instant_still_advances():
    store, _ = _store(Clock(T0))
    saved = store.save(_config())
    updated = store.update_configuration(keywords=[" new kw "])
    assert updated.updated_at > saved.updated_at
    assert updated.keywords == ("new kw",)


def test_update_without_existing_config_raises():
    store, _ = _store()
    with pytest.raises(ConfigurationInvalid):
        store.update_configuration(brand_url="https://x.com")


@pytest.mark.parametrize(
    "changes",
    [{"brand_url": "  "}, {"keywords": []}, {"keywords": ["a, b"]}, {"reporting_period": "TODAY"}],
)
def test_invalid_update_is_rejected(changes):
    store, _ = _store()
    store.save(_config())
    with pytest.raises(ConfigurationInvalid):
        store.update_configuration(**changes)


def test_validate_configuration_messages():
    errors = validate_configuration(_config(brand_url="", keywords=()))
    assert "Brand URL is required" in errors
    assert "At least one keyword is required" in errors
    assert validate_configuration(_config()) == []


def test_row_to_config_defaults():
    cfg = row_to_config(["https://b.com", "a,  b ,", "", ""])
    assert cfg.keywords == ("a", "b")
    assert cfg.api_key is None
    assert cfg.reporting_period == "LAST_7_DAYS"
    assert cfg.created_at is None


def test_append_results_creates_sheet_with_headers():
    store, sh = _store()
    analysis = KeywordAnalysis(
        keyword="wireless headphones",
        your_position=4,
        total_competitors=20,
        top_competitors=(),
        competitor_ads=(),
        your_metrics=YourMetrics(keyword="wireless headphones"),
    )
    run = AnalysisRun(
        brand_domain="yourbrand.com.au",
        reporting_period="LAST_7_DAYS",
        analyses=(analysis,),
        failures={"gaming headsets": "timeout"},
    )

    n = store.append_results(run, {"wireless headphones": "good"})

    ws = sh.sheets["Results"]
    assert n == 2
    assert ws.values[0] == RESULTS_HEADERS
    assert ws.values[1][:5] == ["wireless headphones", "yourbrand.com.au", T0.isoformat(), "4", "20"]
    assert ws.values[1][5] == "good"
    assert ws.values[2][3] == "N/A"
    assert "timeout" in ws.values[2][5]


def test_append_results_adds_header_to_empty_sheet():
    store, sh = _store()
    sh.add_worksheet("Results", 100, 6)
    run = AnalysisRun(
        brand_domain="yourbrand.com.au",
        reporting_period="LAST_7_DAYS",
        failures={"gaming headsets": "timeout"},
    )

    n = store.append_results(run)

    ws = sh.sheets["Results"]
    assert n == 1
    assert ws.values[0] == RESULTS_HEADERS
    assert ws.values[1][0] == "gaming headsets"


def test_clear_results_keeps_header():
    store, sh = _store()
    run = AnalysisRun(
        brand_domain="yourbrand.com.au",
        reporting_period="LAST_7_DAYS",
        failures={"a": "x", "b": "y"},
    )
    store.append_results(run)

    assert store.clear_results() == 2

    ws = sh.sheets["Results"]
    assert ws.cleared == ["A2:F3"]
    assert ws.values[0] == RESULTS_HEADERS
    assert all(not any(row) for row in ws.values[1:])


def test_clear_results_without_sheet_or_data():
    store, sh = _store()
    assert store.clear_results() == 0
    assert "Results" not in sh.sheets

    sh.add_worksheet("Results", 100, 6).values = [list(RESULTS_HEADERS)]
    assert store.clear_results() == 0
    assert not hasattr(sh.sheets["Results"], "cleared")


def test_store_errors_are_wrapped():
    client = MagicMock()
    client.open_by_key.side_effect = gspread.exceptions.SpreadsheetNotFound("nope")
    store = SheetsConfigStore(client, "sid")
    with pytest.raises(ConfigurationStoreUnavailable):
        store.read()


def test_blank_spreadsheet_id_raises():
    with pytest.raises(ConfigurationStoreUnavailable):
        SheetsConfigStore(MagicMock(), "  ")


def test_missing_credentials_raises():
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ConfigurationStoreUnavailable):
            build_sheets_client()


def test_build_client_authorizes_service_account(tmp_path):
    creds = tmp_path / "sa.json"
    creds.write_text("{}", encoding="utf-8")

    with patch.dict("os.environ", {"SCA_GOOGLE_CREDS_JSON": str(creds)}, clear=True):
        fake_creds_cls = MagicMock()
        fake_creds_cls.from_service_account_file.return_value = object()
        with patch("sca.connectors.google_sheets.Credentials", fake_creds_cls):
            with patch("sca.connectors.google_sheets.gspread.authorize") as authorize:
                client = build_sheets_client()

    assert client is authorize.return_value
    fake_creds_cls.from_service_account_file.assert_called_once()
