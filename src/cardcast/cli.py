"""Command line interface for CardCast."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

import click
from sqlalchemy.exc import IntegrityError

from .config import BaseConfig
from .domain.errors import ForecastInputError
from .domain.repositories import LedgerRepository
from .domain.strategy import Strategy
from .infra.database import bootstrap_database
from .infra.repositories import (
    SQLModelCreditCardRepository,
    SQLModelDebtConfigRepository,
    SQLModelForecastRepository,
    SQLModelLedgerRepository,
)
from .logging_config import setup_logging
from .models import Account, CardBucket, CreditCard, DebtConfig, MonthlyBudget, Transaction
from .services.available import compute_available
from .services.forecasting import ForecastService
from .services.validation import require_finite, require_money


@dataclass(slots=True)
class AppContext:
    config: BaseConfig
    session_factory: object
    service: ForecastService


def _parse_month(value: str | None) -> date | None:
    if value is None:
        return None
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise click.BadParameter(f"expected YYYY-MM or YYYY-MM-DD, got {value!r}")


def _pct(value) -> str:
    return f"{float(value) * 100:.2f}%"


def _amount(hint: str, value, *, allow_none: bool = False) -> float | None:
    """Reject negative or non-finite input before it reaches the database."""

    name = hint.lstrip("-").replace("-", "_").lower()
    try:
        amount = require_money(name, value, allow_none=allow_none)
    except ForecastInputError as exc:
        raise click.BadParameter(str(exc), param_hint=hint) from exc
    return None if amount is None else float(amount)


def _first_of_month(value: str | None) -> date:
    return (_parse_month(value) or date.today()).replace(day=1)


def _ledger(app: AppContext) -> LedgerRepository:
    if app.service.ledger is None:
        raise click.ClickException("No ledger store available")
    return app.service.ledger


def _card_names(app: AppContext) -> dict[int, str]:
    return {card.id: card.name for card in app.service.cards.list_all()}


@click.group()
@click.option("--database-url", envvar="CARDCAST_DATABASE_URL", default=None, help="Override the database URL.")
@click.pass_context
def cli(ctx: click.Context, database_url: str | None) -> None:
    """Credit card payoff forecasting."""

    config = BaseConfig()
    if database_url:
        config.DATABASE_URL = database_url
    setup_logging(config)
    _engine, session_factory = bootstrap_database(config)
    service = ForecastService(
        cards=SQLModelCreditCardRepository(session_factory),
        results=SQLModelForecastRepository(session_factory),
        configs=SQLModelDebtConfigRepository(session_factory),
        ledger=SQLModelLedgerRepository(session_factory),
        default_months=config.FORECAST_MONTHS,
        default_strategy=config.DEFAULT_STRATEGY,
    )
    ctx.obj = AppContext(config=config, session_factory=session_factory, service=service)


@cli.command("init-db")
@click.pass_obj
def init_db(app: AppContext) -> None:
    """Create database tables."""

    click.echo(f"Database ready: {app.config.DATABASE_URL}")


@cli.command("add-card")
@click.argument("name")
@click.option("--apr", "standard_apr", type=float, default=None, help="Standard APR (0.199 or 19.9).")
@click.option("--min-percentage", type=float, default=0.02, show_default=True)
@click.option("--min-floor", type=float, default=25.0, show_default=True)
@click.pass_obj
def add_card(app: AppContext, name: str, standard_apr, min_percentage, min_floor) -> None:
    """Add a credit card."""

    card = app.service.cards.create(
        CreditCard(
            name=name,
            standard_apr=_amount("--apr", standard_apr, allow_none=True),
            min_percentage=_amount("--min-percentage", min_percentage),
            min_floor=_amount("--min-floor", min_floor),
        )
    )
    click.echo(f"Created card {card.id}: {card.name}")


@cli.command("add-bucket")
@click.argument("card_id", type=int)
@click.argument("name")
@click.option("--balance", type=float, required=True)
@click.option("--type", "bucket_type", type=click.Choice(["purchases", "transfer"]), default="purchases")
@click.option("--promo-apr", type=float, default=None)
@click.option("--promo-end", default=None, help="Promotion end date (YYYY-MM-DD).")
@click.pass_obj
def add_bucket(app: AppContext, card_id: int, name: str, balance, bucket_type, promo_apr, promo_end) -> None:
    """Add a balance bucket to a card."""

    balance = _amount("--balance", balance)
    promo_apr = _amount("--promo-apr", promo_apr, allow_none=True)
    try:
        bucket = app.service.cards.add_bucket(
            CardBucket(
                card_id=card_id,
                bucket_name=name,
                bucket_type=bucket_type,
                current_balance=balance,
                promo_apr=promo_apr,
                promo_end_date=_parse_month(promo_end),
            )
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    click.echo(f"Created bucket {bucket.id} on card {card_id}: {bucket.bucket_name}")


@cli.command("set-budget")
@click.argument("amount", type=float)
@click.option("--strategy", type=click.Choice([s.value for s in Strategy]), default="avalanche")
@click.option("--month", default=None, help="Month the setting starts (YYYY-MM).")
@click.pass_obj
def set_budget(app: AppContext, amount: float, strategy: str, month: str | None) -> None:
    """Save the monthly payment budget and strategy used by default."""

    amount = _amount("AMOUNT", amount)
    start = _first_of_month(month)
    if app.service.configs is None:
        raise click.ClickException("No configuration store available")
    app.service.configs.save(DebtConfig(month=start, monthly_payment_budget=amount, strategy=strategy))
    click.echo(f"Saved {strategy} budget of {amount:.2f} from {start.isoformat()}")


@cli.command("forecast")
@click.option("--start-month", default=None, help="First simulated month (YYYY-MM).")
@click.option("--months", type=int, default=None, help="Months to simulate (1-360).")
@click.option("--budget", type=float, default=None, help="Total monthly payment budget.")
@click.option("--strategy", type=click.Choice([s.value for s in Strategy]), default=None)
@click.option("--use-available", is_flag=True, default=False, help="Budget from available funds.")
@click.option("--no-save", is_flag=True, default=False, help="Do not replace stored results.")
@click.pass_obj
def forecast(
    app: AppContext,
    start_month: str | None,
    months: int | None,
    budget: float | None,
    strategy: str | None,
    use_available: bool,
    no_save: bool,
) -> None:
    """Simulate month-by-month payoff of every card."""

    try:
        request = app.service.resolve_request(
            start_month=_parse_month(start_month),
            months=months,
            monthly_budget=budget,
            strategy=strategy,
            use_available=use_available,
        )
        outcome = app.service.calculate(request, save=not no_save)
    except ForecastInputError as exc:
        raise click.UsageError(str(exc)) from exc

    summary = outcome.summary
    click.echo(f"Strategy:        {summary.strategy.value}")
    click.echo(f"Starting debt:   {summary.total_debt:.2f}")
    click.echo(f"Total interest:  {summary.total_interest:.2f}")
    click.echo(f"Months simulated: {summary.months_to_payoff}")
    if outcome.debt_free_date is not None:
        click.echo(f"Debt free:       {outcome.debt_free_date.isoformat()}")
    else:
        click.secho(
            f"Warning: debt is not paid off within {request.months} months.", fg="yellow", err=True
        )

    if outcome.payoff_schedule:
        click.echo("\nPayoff schedule:")
        for entry in outcome.payoff_schedule:
            click.echo(
                f"  {entry.payoff_month.isoformat()}  {entry.card_name:<24} interest {entry.total_interest:.2f}"
            )
    if outcome.cliffs:
        click.echo("\nPromo cliffs:")
        for cliff in outcome.cliffs:
            click.echo(
                f"  {cliff.month.isoformat()}  {cliff.card_name} / {cliff.bucket_name}: "
                f"{_pct(cliff.from_apr)} -> {_pct(cliff.to_apr)} on {cliff.balance_at_cliff:.2f}"
            )


@cli.command("strategy")
@click.pass_obj
def strategy_cmd(app: AppContext) -> None:
    """Show which cards avalanche would pay first today."""

    try:
        report = app.service.strategy_report()
    except ForecastInputError as exc:
        raise click.UsageError(str(exc)) from exc
    if not report.cards:
        click.echo("No card balances.")
        return
    for rank, card in enumerate(report.cards, start=1):
        click.echo(
            f"{rank}. {card.card_name:<24} APR {_pct(card.max_effective_apr):>8}  "
            f"balance {card.total_balance:>10.2f}  minimum {card.minimum_payment:>8.2f}"
        )
    click.echo(f"Total debt {report.total_debt:.2f}, total minimums {report.total_min_payments:.2f}")


@cli.command("cliffs")
@click.option("--lookahead", type=click.IntRange(min=0), default=None, help="Months to look ahead.")
@click.pass_obj
def cliffs_cmd(app: AppContext, lookahead: int | None) -> None:
    """List promotional rates expiring soon."""

    months = lookahead if lookahead is not None else app.config.CLIFF_LOOKAHEAD_MONTHS
    try:
        warnings = app.service.cliff_report(lookahead_months=months)
    except ForecastInputError as exc:
        raise click.UsageError(str(exc)) from exc
    if not warnings:
        click.echo(f"No promotions end in the next {months} months.")
        return
    for warning in warnings:
        click.echo(
            f"{warning.promo_end_date.isoformat()}  {warning.card_name} / {warning.bucket_name}: "
            f"{_pct(warning.promo_apr)} -> {_pct(warning.standard_apr)}, "
            f"+{warning.monthly_interest_increase:.2f}/month on {warning.balance:.2f}"
        )


@cli.command("add-account")
@click.argument("name")
@click.option("--balance", type=float, default=0.0, show_default=True, help="Current cash balance.")
@click.option("--type", "account_type", type=click.Choice(["checking", "savings"]), default="checking")
@click.pass_obj
def add_account(app: AppContext, name: str, balance: float, account_type: str) -> None:
    """Add a cash account counted toward available funds."""

    try:
        balance = float(require_finite("balance", balance))
    except ForecastInputError as exc:
        raise click.BadParameter(str(exc), param_hint="--balance") from exc
    try:
        account = _ledger(app).add(Account(name=name, balance=balance, account_type=account_type))
    except IntegrityError as exc:
        raise click.UsageError(f"An account named {name!r} already exists") from exc
    click.echo(f"Created account {account.id}: {account.name} ({account.balance:.2f})")


@cli.command("add-bill")
@click.argument("name")
@click.argument("amount", type=float)
@click.option("--date", "due", default=None, help="Date the bill is paid (YYYY-MM-DD). Defaults to today.")
@click.option("--category", default=None, help="Grouping for the bill breakdown.")
@click.option("--account-id", type=int, default=None, help="Account the bill is paid from.")
@click.pass_obj
def add_bill(
    app: AppContext, name: str, amount: float, due: str | None, category: str | None, account_id: int | None
) -> None:
    """Record a recurring bill due in a given month."""

    amount = _amount("AMOUNT", amount)
    occurred_on = _parse_month(due) or date.today()
    try:
        bill = _ledger(app).add(
            Transaction(
                occurred_on=occurred_on,
                amount=-amount,
                description=name,
                category=category,
                is_recurring_bill=True,
                account_id=account_id,
            )
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    click.echo(f"Recorded bill {bill.id}: {name} {amount:.2f} on {occurred_on.isoformat()}")


@cli.command("set-category-budget")
@click.argument("category")
@click.argument("amount", type=float)
@click.option("--month", default=None, help="Budget month (YYYY-MM). Defaults to this month.")
@click.pass_obj
def set_category_budget(app: AppContext, category: str, amount: float, month: str | None) -> None:
    """Plan spending for one category in one month."""

    amount = _amount("AMOUNT", amount)
    start = _first_of_month(month)
    _ledger(app).add(MonthlyBudget(month=start, budget_category=category, allocated_amount=amount))
    click.echo(f"Budgeted {amount:.2f} for {category} in {start:%Y-%m}")


@cli.command("available")
@click.option("--month", default=None, help="Month to evaluate (YYYY-MM). Defaults to this month.")
@click.pass_obj
def available_cmd(app: AppContext, month: str | None) -> None:
    """Show the cash left for card payments this month."""

    try:
        funds = compute_available(
            ledger=_ledger(app),
            cards=app.service.cards.load_snapshot(),
            month=_first_of_month(month),
        )
    except ForecastInputError as exc:
        raise click.UsageError(str(exc)) from exc

    click.echo(f"Month:             {funds.month:%Y-%m}")
    click.echo(f"Account balances:  {funds.total_balance:.2f}")
    click.echo(f"Recurring bills:   {funds.recurring_bills:.2f}")
    for category, amount in sorted(funds.bill_breakdown.items()):
        click.echo(f"  {category:<16} {amount:.2f}")
    click.echo(f"Budgeted spending: {funds.budgeted_spending:.2f}")
    click.echo(f"Card minimums:     {funds.credit_card_min_payments:.2f}")
    for item in funds.card_min_payments:
        click.echo(f"  {item.card_name:<16} {item.min_payment:.2f}")
    click.echo(f"Available extra:   {funds.available_for_debt:.2f}")
    click.echo(f"Card budget:       {funds.card_payment_budget:.2f}")
    if funds.raw_available < 0:
        click.secho(f"Warning: short by {-funds.raw_available:.2f} this month.", fg="yellow", err=True)


@cli.command("results")
@click.option("--month", default=None, help="Only show one month (YYYY-MM).")
@click.pass_obj
def results_cmd(app: AppContext, month: str | None) -> None:
    """Print the stored forecast, card rows then the month's totals."""

    selected = _parse_month(month)
    rows = app.service.results.list_rows(month=selected.replace(day=1) if selected else None)
    if not rows:
        click.echo("No stored forecast rows.")
        return

    names = _card_names(app)
    for row in rows:
        if row.card_id is not None:
            click.echo(
                f"{row.month:%Y-%m}  {names.get(row.card_id, row.card_id):<24} "
                f"begin {row.card_beginning_balance:>10.2f}  interest {row.card_interest:>8.2f}  "
                f"paid {row.card_payment_allocation:>9.2f}  end {row.card_ending_balance:>10.2f}"
            )
            continue
        paid = row.total_minimum_payments + row.total_extra_payments
        line = (
            f"{row.month:%Y-%m}  {'Total':<24} "
            f"begin {row.total_beginning_debt:>10.2f}  interest {row.total_interest:>8.2f}  "
            f"paid {paid:>9.2f}  end {row.total_ending_debt:>10.2f}"
        )
        if row.has_cliff:
            line += "  promo cliff"
        click.echo(line)


@cli.command("payoff")
@click.pass_obj
def payoff_cmd(app: AppContext) -> None:
    """Print the stored payoff month of each card."""

    entries = app.service.results.list_payoffs()
    if not entries:
        click.echo("No cards are paid off in the stored forecast.")
        return

    names = _card_names(app)
    for entry in entries:
        click.echo(
            f"{entry.payoff_month.isoformat()}  {names.get(entry.card_id, entry.card_id):<24} "
            f"interest {entry.total_interest_on_card:.2f}"
        )


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
