"""Accounting period domain service.

Periods move through a small state machine: ``open -> closed -> open``.
Closing is refused while child periods are still open, and reopening is only
possible when prior-period adjustments are allowed.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from finstate.database.base import Database
from finstate.domain.entities import DateRange, Period, PeriodType
from finstate.domain.errors import (
    ClosedPeriodError,
    ConflictError,
    DependencyError,
    InvalidRangeError,
    NotFoundError,
    PeriodOverlapError,
    ValidationError,
    company_not_found,
    period_closed,
    period_not_found,
)
from finstate.domain.money import quantize
from finstate.domain.period_resolver import day_before, fiscal_year_for, fiscal_year_range
from finstate.domain.profit_loss import build_profit_loss
from finstate.domain.reporting import ReportingService
from finstate.domain.settings import ReportSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodClosing:
    """Outcome of closing a period."""

    period: Period
    net_income: Decimal
    currency: str


class PeriodService:
    """Service for managing accounting periods."""

    def __init__(self, db: Database, settings: Optional[ReportSettings] = None):
        """Initialize period service.

        Args:
            db: Database instance
            settings: Fiscal year start and prior-period adjustment policy
        """
        self.db = db
        self.settings = settings or ReportSettings()

    def create_period(
        self,
        company_id: int,
        name: str,
        start_date: date,
        end_date: date,
        period_type: PeriodType | str = PeriodType.CUSTOM,
        fiscal_year: Optional[int] = None,
        parent_id: Optional[int] = None,
    ) -> int:
        """Create an accounting period.

        Args:
            company_id: Owning company
            name: Display name, e.g. "FY2024 Q1"
            start_date: First day of the period
            end_date: Last day of the period
            period_type: Annual, Interim, Quarterly, Monthly or Custom
            fiscal_year: Fiscal year label; derived from ``start_date`` if omitted
            parent_id: Enclosing period, e.g. the year of a quarter

        Returns:
            Period ID

        Raises:
            NotFoundError: If the company or parent period does not exist
            InvalidRangeError: If the end date is before the start date or the
                period does not fit inside its parent
            PeriodOverlapError: If it overlaps a period of the same type in the
                same fiscal year
        """
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))
        name = name.strip()
        if not name:
            raise ValidationError("Period name cannot be empty")
        if end_date < start_date:
            raise InvalidRangeError(
                f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
            )
        try:
            period_type = PeriodType(period_type)
        except ValueError as e:
            raise ValidationError(str(e)) from None
        if fiscal_year is None:
            fiscal_year = fiscal_year_for(
                start_date,
                self.settings.fiscal_year_start_month,
                self.settings.fiscal_year_start_day,
            )

        if parent_id is not None:
            parent = self.db.get_period(parent_id)
            if parent is None or parent.company_id != company_id:
                raise NotFoundError(period_not_found(parent_id))
            if not (parent.start_date <= start_date and end_date <= parent.end_date):
                raise InvalidRangeError(f"Period '{name}' does not fit inside '{parent.name}'")

        new_range = DateRange(start_date, end_date)
        for existing in self.db.list_periods(company_id, fiscal_year=fiscal_year):
            if existing.period_type == period_type and existing.date_range.overlaps(new_range):
                raise PeriodOverlapError(
                    f"Period '{name}' overlaps {period_type.value.lower()} period "
                    f"'{existing.name}' ({existing.start_date} to {existing.end_date})"
                )

        return self.db.create_period(
            company_id=company_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            fiscal_year=fiscal_year,
            period_type=period_type,
            parent_id=parent_id,
        )

    def create_fiscal_year(
        self, company_id: int, fiscal_year: int, include_months: bool = False
    ) -> list[int]:
        """Create a fiscal year with its four quarters, and optionally its months.

        Quarters are children of the year and months children of their
        quarter. Quarter and month boundaries follow the fiscal year start.

        Returns:
            IDs of every created period, year first
        """
        year_range = fiscal_year_range(
            fiscal_year, self.settings.fiscal_year_start_month, self.settings.fiscal_year_start_day
        )
        label = f"FY{fiscal_year}"
        year_id = self.create_period(
            company_id, label, year_range.start, year_range.end, PeriodType.ANNUAL, fiscal_year
        )
        created = [year_id]
        for quarter in range(4):
            q_start = year_range.start + relativedelta(months=3 * quarter)
            q_end = day_before(year_range.start + relativedelta(months=3 * (quarter + 1)))
            quarter_id = self.create_period(
                company_id,
                f"{label} Q{quarter + 1}",
                q_start,
                q_end,
                PeriodType.QUARTERLY,
                fiscal_year,
                parent_id=year_id,
            )
            created.append(quarter_id)
            if not include_months:
                continue
            for offset in range(3):
                month = 3 * quarter + offset
                m_start = year_range.start + relativedelta(months=month)
                m_end = day_before(year_range.start + relativedelta(months=month + 1))
                created.append(
                    self.create_period(
                        company_id,
                        f"{label} M{month + 1:02d}",
                        m_start,
                        m_end,
                        PeriodType.MONTHLY,
                        fiscal_year,
                        parent_id=quarter_id,
                    )
                )
        logger.info("Created fiscal year %s with %d periods", label, len(created))
        return created

    def get_period(self, period_id: int) -> Optional[Period]:
        return self.db.get_period(period_id)

    def list_periods(self, company_id: int, fiscal_year: Optional[int] = None) -> list[Period]:
        return self.db.list_periods(company_id, fiscal_year=fiscal_year)

    def closed_periods(self, company_id: int) -> list[Period]:
        return [p for p in self.db.list_periods(company_id) if p.is_closed]

    def find_period_for_date(
        self, company_id: int, day: date, period_type: Optional[PeriodType] = None
    ) -> Optional[Period]:
        """Return the shortest period containing ``day``, optionally of one type."""
        matches = [
            p
            for p in self.db.list_periods(company_id)
            if p.contains(day) and (period_type is None or p.period_type == period_type)
        ]
        if not matches:
            return None
        return min(matches, key=lambda p: (p.end_date - p.start_date, p.id))

    def ensure_open(self, company_id: int, day: date) -> None:
        """Raise if ``day`` falls inside a closed period.

        Raises:
            ClosedPeriodError: If a closed period contains the date
        """
        for period in self.closed_periods(company_id):
            if period.contains(day):
                raise ClosedPeriodError(period_closed(period.name, day))

    def close_period(
        self, period_id: int, closed_by: Optional[str] = None, now: Optional[datetime] = None
    ) -> PeriodClosing:
        """Close a period so no entry can be dated inside it.

        Net income for the period is reported for transfer to retained
        earnings; accumulated profit is derived from the ledger, so no
        closing entries are posted.

        Raises:
            NotFoundError: If the period does not exist
            ConflictError: If the period is already closed
            DependencyError: If a child period is still open
        """
        period = self.db.get_period(period_id)
        if period is None:
            raise NotFoundError(period_not_found(period_id))
        if period.is_closed:
            raise ConflictError(f"Period '{period.name}' is already closed")

        open_children = [
            p.name
            for p in self.db.list_periods(period.company_id)
            if p.parent_id == period_id and not p.is_closed
        ]
        if open_children:
            raise DependencyError(
                f"Cannot close '{period.name}': close {', '.join(open_children)} first"
            )

        reporting = ReportingService(self.db, self.settings)
        inputs = reporting.load_inputs(period.company_id, period)
        result = build_profit_loss(**inputs.builder_kwargs())
        net_income = quantize(result.data.net_income.amount, inputs.settings.ifrs.rounding_precision)

        self.db.close_period(period_id, closed_at=now or datetime.now(UTC), closed_by=closed_by)
        logger.info(
            "Closed period '%s'; net income %s %s transferred to retained earnings",
            period.name,
            net_income,
            inputs.settings.reporting_currency,
        )
        return PeriodClosing(
            period=self.db.get_period(period_id),
            net_income=net_income,
            currency=inputs.settings.reporting_currency,
        )

    def reopen_period(self, period_id: int) -> Period:
        """Reopen a closed period.

        Raises:
            NotFoundError: If the period does not exist
            ConflictError: If the period is open, or prior-period adjustments
                are not allowed
            DependencyError: If the enclosing period is still closed
        """
        period = self.db.get_period(period_id)
        if period is None:
            raise NotFoundError(period_not_found(period_id))
        if not period.is_closed:
            raise ConflictError(f"Period '{period.name}' is not closed")
        if not self.settings.allow_prior_period_adjustments:
            raise ConflictError(
                f"Cannot reopen '{period.name}': prior period adjustments are not allowed"
            )
        if period.parent_id is not None:
            parent = self.db.get_period(period.parent_id)
            if parent is not None and parent.is_closed:
                raise DependencyError(
                    f"Cannot reopen '{period.name}': reopen '{parent.name}' first"
                )
        self.db.reopen_period(period_id)
        logger.info("Reopened period '%s'", period.name)
        return self.db.get_period(period_id)
