from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from .config import PARAMS_ENV_VAR, default_params_path, load_params
from .loans import stack_loans
from .model import simulate
from .schemas import SimulationParams

app = typer.Typer(help="Compare long-run net worth of buying a home versus renting.")


@app.command()
def run(
    params: Optional[Path] = typer.Option(
        default_factory=default_params_path,
        help=f"JSON parameter file (env {PARAMS_ENV_VAR} if omitted).",
    ),
    years: Optional[int] = typer.Option(None, help="Projection horizon in years."),
    investment_return: Optional[float] = typer.Option(
        None, help="Annual portfolio return in percent (e.g., 7 for 7%)."
    ),
    inflation: Optional[float] = typer.Option(None, help="Annual inflation in percent."),
    home_price: Optional[float] = typer.Option(None, help="Purchase price of the home."),
    monthly_rent: Optional[float] = typer.Option(None, help="Starting monthly rent."),
    salary_budget: Optional[bool] = typer.Option(
        None,
        "--salary-budget/--auto-budget",
        help="Budget from a share of salary, or match the costlier scenario.",
    ),
    pay_down_early: Optional[bool] = typer.Option(
        None,
        "--pay-down-early/--invest-surplus",
        help="Put buy-side surplus into extra mortgage principal first.",
    ),
    show_timeline: bool = typer.Option(
        False, help="If set, dump the yearly timeline as JSON."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the full result as JSON instead of a report."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """
    Load parameters, apply command-line overrides and run the projection.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    overrides = {
        "years": years,
        "investment_return_rate": investment_return,
        "inflation_rate": inflation,
        "home_price": home_price,
        "monthly_rent": monthly_rent,
        "use_salary_based_budget": salary_budget,
        "pay_down_mortgage_early": pay_down_early,
    }
    try:
        loaded = load_params(params)
        loaded = dataclasses.replace(
            loaded, **{key: value for key, value in overrides.items() if value is not None}
        ).validate()
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    result = simulate(loaded)
    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    _echo_context(loaded)
    summary = result.summary
    typer.echo("")
    typer.echo(f"Buying net worth after {loaded.years} years: {summary.final_net_worth_buy:,.0f}")
    typer.echo(f"Renting net worth after {loaded.years} years: {summary.final_net_worth_rent:,.0f}")
    typer.echo(f"Initial outlay: {summary.initial_outlay:,.0f}")
    typer.echo(f"Total interest paid: {summary.total_interest_paid:,.0f}")
    typer.echo(f"Total principal paid: {summary.total_principal_paid:,.0f}")
    typer.echo(f"Total rent paid: {summary.total_rent_paid:,.0f}")
    typer.echo(f"Better outcome: {summary.better_option}")
    if summary.break_even_year:
        typer.echo(f"Buying catches up with renting in year {summary.break_even_year}")

    if show_timeline:
        payload = [snap.to_dict() for snap in result.yearly_data]
        typer.echo(json.dumps(payload, indent=2))


@app.command()
def defaults() -> None:
    """Print the default parameter set as JSON, a starting point for --params."""
    typer.echo(json.dumps(SimulationParams().to_dict(), indent=2))


def _echo_context(params: SimulationParams) -> None:
    loans = stack_loans(params)
    typer.echo(f"Home price: {params.home_price:,.0f}")
    typer.echo(
        f"Down payment: {params.down_payment:,.0f} "
        f"(+ {params.closing_costs:,.0f} closing costs)"
    )
    for label, loan in (
        ("Subsidized loan", loans.ptz),
        ("Secondary mortgage", loans.secondary),
        ("Primary mortgage", loans.primary),
    ):
        if loan.balance > 0:
            typer.echo(
                f"{label}: {loan.balance:,.0f} at {loan.annual_rate_pct:.2f}%, "
                f"{loan.payment:,.2f}/month"
            )
    if params.use_salary_based_budget:
        typer.echo(
            f"Budget: {params.housing_budget_percent:.1f}% of "
            f"{params.monthly_salary:,.0f} monthly salary"
        )
    else:
        typer.echo("Budget: matched to the costlier scenario each month")
    typer.echo(f"Starting rent: {params.monthly_rent:,.0f}/month")


if __name__ == "__main__":
    app()
