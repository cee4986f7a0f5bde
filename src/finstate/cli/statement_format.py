"""Plain-text rendering of statements for the terminal."""

from decimal import Decimal
from typing import Optional

import click

from finstate.domain.balance_sheet import BalanceSheet
from finstate.domain.cash_flow import CashFlowStatement
from finstate.domain.entities import StatementResult, ValidationIssue
from finstate.domain.equity_changes import EquityChanges, EquityRow
from finstate.domain.money import quantize
from finstate.domain.profit_loss import ProfitAndLoss
from finstate.domain.statements import StatementLine, StatementMetadata, StatementSection

WIDTH = 78
LABEL_WIDTH = 44


def format_amount(amount: Optional[Decimal]) -> str:
    if amount is None:
        return ""
    amount = quantize(amount)
    if amount < 0:
        return f"({-amount:,.2f})"
    return f"{amount:,.2f}"


def _header(title: str, metadata: StatementMetadata, comparative: bool) -> None:
    click.echo()
    click.echo(title)
    if metadata.company_name:
        click.echo(metadata.company_name)
    click.echo(
        f"{metadata.period_start.isoformat()} to {metadata.period_end.isoformat()} "
        f"({metadata.currency}, {metadata.accounting_standard})"
    )
    click.echo("=" * WIDTH)
    if comparative:
        click.echo(f"{'':<{LABEL_WIDTH}} {'Current':>16} {'Prior':>16}")


def _line(line: StatementLine, indent: int = 2, comparative: bool = False) -> None:
    label = f"{' ' * indent}{line.label}"[:LABEL_WIDTH]
    prior = f" {format_amount(line.prior_amount):>16}" if comparative else ""
    click.echo(f"{label:<{LABEL_WIDTH}} {format_amount(line.amount):>16}{prior}")


def _section(section: StatementSection, comparative: bool) -> None:
    if not section.lines and section.total.amount == 0:
        return
    click.echo(section.title)
    for line in section.lines:
        _line(line, indent=2, comparative=comparative)
    _line(section.total, indent=0, comparative=comparative)
    click.echo("-" * WIDTH)


def _issues(issues: tuple[ValidationIssue, ...]) -> None:
    for issue in issues:
        reference = f" [{issue.ifrs_reference}]" if issue.ifrs_reference else ""
        click.echo(f"{issue.severity.value.upper()}: {issue.message}{reference}")
        if issue.suggestion:
            click.echo(f"  -> {issue.suggestion}")


def render_profit_loss(statement: ProfitAndLoss) -> None:
    comparative = statement.metadata.prior_period_start is not None
    _header("Statement of Profit or Loss", statement.metadata, comparative)
    _section(statement.revenue, comparative)
    _section(statement.cost_of_sales, comparative)
    _line(statement.gross_profit, indent=0, comparative=comparative)
    _section(statement.operating_expenses, comparative)
    _line(statement.operating_profit, indent=0, comparative=comparative)
    _section(statement.other_income, comparative)
    _section(statement.other_expenses, comparative)
    _line(statement.profit_before_tax, indent=0, comparative=comparative)
    _section(statement.tax, comparative)
    _line(statement.net_income, indent=0, comparative=comparative)
    _section(statement.other_comprehensive_income, comparative)
    _line(statement.total_comprehensive_income, indent=0, comparative=comparative)


def render_balance_sheet(statement: BalanceSheet) -> None:
    comparative = statement.metadata.prior_period_start is not None
    _header(f"Statement of Financial Position as of {statement.as_of}", statement.metadata, comparative)
    _section(statement.current_assets, comparative)
    _section(statement.non_current_assets, comparative)
    _line(statement.total_assets, indent=0, comparative=comparative)
    click.echo("=" * WIDTH)
    _section(statement.current_liabilities, comparative)
    _section(statement.non_current_liabilities, comparative)
    _line(statement.total_liabilities, indent=0, comparative=comparative)
    _section(statement.equity, comparative)
    _line(statement.total_liabilities_and_equity, indent=0, comparative=comparative)


def render_cash_flow(statement: CashFlowStatement) -> None:
    comparative = statement.metadata.prior_period_start is not None
    _header(
        f"Statement of Cash Flows ({statement.method.value} method)", statement.metadata, comparative
    )
    _section(statement.operating, comparative)
    _section(statement.investing, comparative)
    _section(statement.financing, comparative)
    _line(statement.net_change, indent=0, comparative=comparative)
    click.echo(f"{'Cash at beginning of period':<{LABEL_WIDTH}} {format_amount(statement.opening_cash):>16}")
    click.echo(f"{'Cash at end of period':<{LABEL_WIDTH}} {format_amount(statement.closing_cash):>16}")


def _equity_row(row: EquityRow) -> None:
    click.echo(
        f"{row.label[:30]:<30} {format_amount(row.share_capital):>11} "
        f"{format_amount(row.retained_earnings):>11} {format_amount(row.oci_reserve):>11} "
        f"{format_amount(row.other_reserves):>11} {format_amount(row.total):>12}"
    )


def render_equity_changes(statement: EquityChanges) -> None:
    _header("Statement of Changes in Equity", statement.metadata, False)
    click.echo(f"{'':<30} {'Share cap.':>11} {'Retained':>11} {'OCI':>11} {'Other':>11} {'Total':>12}")
    _equity_row(statement.opening)
    for row in statement.movements:
        _equity_row(row)
    click.echo("-" * WIDTH)
    _equity_row(statement.closing)


RENDERERS = {
    "profit_loss": render_profit_loss,
    "balance_sheet": render_balance_sheet,
    "cash_flow": render_cash_flow,
    "equity_changes": render_equity_changes,
}


def render_result(name: str, result: StatementResult) -> None:
    """Print a statement, or why it is unavailable, followed by its issues."""
    if result.available and result.data is not None:
        RENDERERS[name](result.data)
    _issues(result.validation)
