"""Tests for loading report settings."""

import pytest

from finstate.config import load_settings, parse_settings
from finstate.domain.settings import CashFlowMethod, InvalidEntryPolicy, ReportSettings


def test_defaults_without_config(monkeypatch):
    monkeypatch.delenv("FINSTATE_CONFIG", raising=False)
    assert load_settings() == ReportSettings()


def test_load_from_file(tmp_path):
    config = tmp_path / "finstate.toml"
    config.write_text(
        """
[company]
name = "Acme Ltd"

[fiscal_year]
start_month = 4

[reporting]
presentation_currency = "eur"
cash_flow_method = "direct"
invalid_entry_policy = "exclude"
tax_below_the_line = false
allow_prior_period_adjustments = true
""",
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.company.name == "Acme Ltd"
    assert settings.fiscal_year_start_month == 4
    assert settings.fiscal_year_start_day == 1
    assert settings.ifrs.presentation_currency == "EUR"
    assert settings.reporting_currency == "EUR"
    assert settings.ifrs.cash_flow_method == CashFlowMethod.DIRECT
    assert settings.invalid_entry_policy == InvalidEntryPolicy.EXCLUDE
    assert not settings.tax_below_the_line
    assert settings.allow_prior_period_adjustments
    assert settings.ifrs.comparative_period_required


def test_load_from_environment(tmp_path, monkeypatch):
    config = tmp_path / "finstate.toml"
    config.write_text("[reporting]\nsimplified_mode = true\n", encoding="utf-8")
    monkeypatch.setenv("FINSTATE_CONFIG", str(config))

    assert load_settings().simplified_mode


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.toml")


def test_invalid_toml(tmp_path):
    config = tmp_path / "broken.toml"
    config.write_text("[reporting\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Failed to parse"):
        load_settings(config)


@pytest.mark.parametrize(
    "data, message",
    [
        ({"fiscal_year": {"start_month": 13}}, "start_month must be 1-12"),
        ({"fiscal_year": {"start_day": 0}}, "start_day must be 1-31"),
        ({"fiscal_year": {"start_month": True}}, "must be of type int"),
        ({"reporting": {"rounding_precision": 9}}, "rounding_precision must be 0-8"),
        ({"reporting": {"simplified_mode": "yes"}}, "must be of type bool"),
        ({"reporting": {"cash_flow_method": "sideways"}}, "must be one of Indirect, Direct"),
        ({"reporting": "direct"}, r"\[reporting\] must be a table"),
    ],
)
def test_invalid_values(data, message):
    with pytest.raises(ValueError, match=message):
        parse_settings(data)


def test_empty_config():
    assert parse_settings({}) == ReportSettings()
