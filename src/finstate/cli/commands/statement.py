"""Financial statement commands."""

import json

import click
from finstate.cli.date_filters import period_options, resolve_cli_date_range
from finstate.cli.error_handling import handle_domain_error
from finstate.cli.resolution import company_option, resolve_company_or_exit
from finstate.cli.statement_format import render_result
from finstate.domain.entities import Severity
from finstate.domain.errors import NotFoundError, period_not_found
from finstate.domain.period_resolver import PeriodSelector, previous_range, resolve_period
from finstate.domain.reporting import BUILDERS, ReportingService, generate_statements
from finstate.domain.statements import as_date_range


def statement_options(func):
    """Options shared by every statement command."""
    options = [
        click.option("--period-id", type=int, help="Use a stored accounting period"),
        click.option("--compare", is_flag=True, help="Include the prior period as comparative"),
        click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text"),
        click.option("--strict", is_flag=True, help="Exit with status 1 when validation fails"),
        click.option("--jobs", type=int, default=1, show_default=True, help="Build statements in parallel"),
        company_option,
    ]
    func = period_options(func)
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_periods(ctx, company_id: int, options: dict):
    """Return (period, prior_period) from --period-id or the date options."""
    settings = ctx.obj["settings"]
    service = ReportingService(ctx.obj["db"], settings)
    flags = {
        name: options[name]
        for name in ("this_month", "last_month", "this_year", "last_year", "all_time")
    }

    if options["period_id"] is not None:
        if any(flags.values()) or options["start_date"] or options["end_date"]:
            click.echo("Error: --period-id cannot be combined with other period options.", err=True)
            ctx.exit(1)
        period = ctx.obj["db"].get_period(options["period_id"])
        if period is None or period.company_id != company_id:
            raise NotFoundError(period_not_found(options["period_id"]))
        prior = None
        if options["compare"]:
            prior = service.prior_period_for(period) or previous_range(period.date_range)
        return period, prior

    default = resolve_period(
        PeriodSelector.THIS_YEAR, settings.fiscal_year_start_month, settings.fiscal_year_start_day
    )
    date_range = resolve_cli_date_range(
        ctx,
        start_date=options["start_date"],
        end_date=options["end_date"],
        period_flags=flags,
        settings=settings,
        default_range=default,
    )
    prior = previous_range(date_range) if options["compare"] else None
    return date_range, prior


def _run(ctx, names: tuple[str, ...], options: dict) -> None:
    company_id = resolve_company_or_exit(ctx, options["company"])
    service = ReportingService(ctx.obj["db"], ctx.obj["settings"])

    try:
        period, prior = _resolve_periods(ctx, company_id, options)
        inputs = service.load_inputs(company_id, period, prior)
        if len(names) == 1:
            results = {names[0]: BUILDERS[names[0]](**inputs.builder_kwargs())}
            payload = results[names[0]].to_dict(inputs.settings.ifrs.rounding_precision)
            reconciliation = ()
        else:
            bundle = generate_statements(inputs, max_workers=options["jobs"])
            results = bundle.results()
            payload = bundle.to_dict()
            reconciliation = bundle.reconciliation
    except ValueError as e:
        handle_domain_error(ctx, e)

    if options["as_json"]:
        click.echo(json.dumps(payload, indent=2))
    else:
        for name, result in results.items():
            render_result(name, result)
        if reconciliation:
            click.echo("\nReconciliation:")
            click.echo("-" * 60)
            for issue in reconciliation:
                click.echo(f"{issue.severity.value.upper()}: {issue.message}")
        elif len(names) > 1:
            click.echo("\nAll statements reconcile.")

    failed = any(r.has_errors for r in results.values()) or any(
        i.severity == Severity.ERROR for i in reconciliation
    )
    if failed and options["strict"]:
        click.echo(f"Error: statements for {as_date_range(period).end} failed validation", err=True)
        ctx.exit(1)


@click.group()
def statement_group():
    """Generate financial statements."""
    pass


@statement_group.command("pl")
@statement_options
@click.pass_context
def profit_loss(ctx, **options):
    """Statement of profit or loss and other comprehensive income."""
    _run(ctx, ("profit_loss",), options)


@statement_group.command("bs")
@statement_options
@click.pass_context
def balance_sheet(ctx, **options):
    """Statement of financial position at the end of the period."""
    _run(ctx, ("balance_sheet",), options)


@statement_group.command("cf")
@statement_options
@click.pass_context
def cash_flow(ctx, **options):
    """Statement of cash flows."""
    _run(ctx, ("cash_flow",), options)


@statement_group.command("equity")
@statement_options
@click.pass_context
def equity_changes(ctx, **options):
    """Statement of changes in equity."""
    _run(ctx, ("equity_changes",), options)


@statement_group.command("all")
@statement_options
@click.pass_context
def all_statements(ctx, **options):
    """All four statements, cross-checked against each other.

    Examples:
        finstate statement all --last-year --compare
        finstate statement all --period-id 3 --json
    """
    _run(ctx, tuple(BUILDERS), options)


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group, name="statement")
