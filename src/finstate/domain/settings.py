"""Settings passed explicitly into statement generation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class CashFlowMethod(str, Enum):
    """Cash flow statement presentation method."""

    INDIRECT = "Indirect"
    DIRECT = "Direct"


class InvalidEntryPolicy(str, Enum):
    """What to do with an entry that cannot be converted or matched to an account.

    ``abort`` fails generation with a typed error. ``exclude`` drops the entry
    and reports it as a warning on the statement.
    """

    ABORT = "abort"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class IFRSSettings:
    """Reporting framework settings."""

    accounting_standard: str = "IFRS"
    functional_currency: Optional[str] = None
    presentation_currency: Optional[str] = None
    rounding_precision: int = 2
    comparative_period_required: bool = True
    cash_flow_method: CashFlowMethod = CashFlowMethod.INDIRECT


@dataclass(frozen=True)
class CompanyInfo:
    """Company details printed on statement headers."""

    name: str = ""
    legal_name: Optional[str] = None
    company_id: Optional[int] = None


@dataclass(frozen=True)
class ReportSettings:
    """Everything statement builders need besides the ledger itself."""

    ifrs: IFRSSettings = field(default_factory=IFRSSettings)
    company: CompanyInfo = field(default_factory=CompanyInfo)
    fiscal_year_start_month: int = 1
    fiscal_year_start_day: int = 1
    tax_below_the_line: bool = True
    simplified_mode: bool = False
    invalid_entry_policy: InvalidEntryPolicy = InvalidEntryPolicy.ABORT
    allow_prior_period_adjustments: bool = False

    @property
    def reporting_currency(self) -> str:
        """Presentation currency, falling back to functional currency, then USD."""
        return self.ifrs.presentation_currency or self.ifrs.functional_currency or "USD"
