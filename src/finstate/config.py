"""Configuration helpers for finstate.

Report settings are read from a TOML file with three optional tables:

    [company]
    name = "Acme Ltd"
    legal_name = "Acme Trading Limited"

    [fiscal_year]
    start_month = 4
    start_day = 1

    [reporting]
    accounting_standard = "IFRS"
    presentation_currency = "EUR"
    cash_flow_method = "Indirect"
    tax_below_the_line = true
    simplified_mode = false
    comparative_period_required = true
    rounding_precision = 2
    invalid_entry_policy = "abort"
    allow_prior_period_adjustments = false

Every key is optional; anything missing keeps its default.
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from finstate.domain.settings import (
    CashFlowMethod,
    CompanyInfo,
    IFRSSettings,
    InvalidEntryPolicy,
    ReportSettings,
)

CONFIG_ENV_VAR = "FINSTATE_CONFIG"


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc


def _table(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"[{name}] must be a table")
    return section


def _typed(section: Mapping[str, Any], table: str, key: str, kind: type, default: Any) -> Any:
    if key not in section:
        return default
    value = section[key]
    # bool is a subclass of int; reject it where a number is expected
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"[{table}].{key} must be of type {kind.__name__}, got {value!r}")
    return value


def _choice(section: Mapping[str, Any], table: str, key: str, enum_type, default):
    raw = section.get(key)
    if raw is None:
        return default
    for member in enum_type:
        if str(raw).lower() == member.value.lower():
            return member
    allowed = ", ".join(m.value for m in enum_type)
    raise ValueError(f"[{table}].{key} must be one of {allowed}, got {raw!r}")


def parse_settings(data: Mapping[str, Any]) -> ReportSettings:
    """Build ReportSettings from parsed TOML data.

    Raises:
        ValueError: naming the offending key when a value is invalid.
    """
    defaults = ReportSettings()
    company = _table(data, "company")
    fiscal = _table(data, "fiscal_year")
    reporting = _table(data, "reporting")

    start_month = _typed(fiscal, "fiscal_year", "start_month", int, defaults.fiscal_year_start_month)
    start_day = _typed(fiscal, "fiscal_year", "start_day", int, defaults.fiscal_year_start_day)
    if not 1 <= start_month <= 12:
        raise ValueError(f"[fiscal_year].start_month must be 1-12, got {start_month}")
    if not 1 <= start_day <= 31:
        raise ValueError(f"[fiscal_year].start_day must be 1-31, got {start_day}")

    precision = _typed(
        reporting, "reporting", "rounding_precision", int, defaults.ifrs.rounding_precision
    )
    if not 0 <= precision <= 8:
        raise ValueError(f"[reporting].rounding_precision must be 0-8, got {precision}")

    presentation = _typed(reporting, "reporting", "presentation_currency", str, None)

    ifrs = IFRSSettings(
        accounting_standard=_typed(
            reporting, "reporting", "accounting_standard", str, defaults.ifrs.accounting_standard
        ),
        presentation_currency=presentation.upper() if presentation else None,
        rounding_precision=precision,
        comparative_period_required=_typed(
            reporting,
            "reporting",
            "comparative_period_required",
            bool,
            defaults.ifrs.comparative_period_required,
        ),
        cash_flow_method=_choice(
            reporting, "reporting", "cash_flow_method", CashFlowMethod, defaults.ifrs.cash_flow_method
        ),
    )
    return ReportSettings(
        ifrs=ifrs,
        company=CompanyInfo(
            name=_typed(company, "company", "name", str, defaults.company.name),
            legal_name=_typed(company, "company", "legal_name", str, None),
        ),
        fiscal_year_start_month=start_month,
        fiscal_year_start_day=start_day,
        tax_below_the_line=_typed(
            reporting, "reporting", "tax_below_the_line", bool, defaults.tax_below_the_line
        ),
        simplified_mode=_typed(
            reporting, "reporting", "simplified_mode", bool, defaults.simplified_mode
        ),
        invalid_entry_policy=_choice(
            reporting,
            "reporting",
            "invalid_entry_policy",
            InvalidEntryPolicy,
            defaults.invalid_entry_policy,
        ),
        allow_prior_period_adjustments=_typed(
            reporting,
            "reporting",
            "allow_prior_period_adjustments",
            bool,
            defaults.allow_prior_period_adjustments,
        ),
    )


def load_settings(path: Optional[str | Path] = None) -> ReportSettings:
    """Load report settings.

    Args:
        path: TOML file. If None, checks the FINSTATE_CONFIG environment
            variable; with neither, defaults are returned.

    Raises:
        FileNotFoundError: if an explicitly named file does not exist.
        ValueError: if the file cannot be parsed or a value is invalid.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if path is None:
        return ReportSettings()
    return parse_settings(_load_toml(Path(path)))
