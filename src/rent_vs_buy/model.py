from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .loans import LoanStack, allocate_surplus, stack_loans
from .portfolio import PortfolioState
from .schemas import (
    MonthlyRecord,
    SimulationParams,
    SimulationResult,
    SimulationSummary,
    YearlyRecord,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyRates:
    """Per-month factors derived once from the annual percentages."""

    investment: float
    appreciation: float
    inflation: float
    salary_growth: float

    @classmethod
    def from_params(cls, params: SimulationParams) -> "MonthlyRates":
        return cls(
            # Nominal monthly rate, negative returns included.
            investment=params.investment_return_rate / 100.0 / 12.0,
            appreciation=annual_to_monthly_growth(params.home_appreciation_rate),
            inflation=annual_to_monthly_growth(params.inflation_rate),
            salary_growth=annual_to_monthly_growth(params.salary_growth_rate),
        )


@dataclass(frozen=True)
class EngineState:
    """Everything carried from one month into the next."""

    loans: LoanStack
    buy_portfolio: PortfolioState
    rent_portfolio: PortfolioState
    home_value: float
    rent: float
    rent_insurance: float
    sublet_income: float
    salary: float
    housing_budget_percent: float
    total_interest: float = 0.0
    total_principal: float = 0.0
    total_rent: float = 0.0
    year_interest: float = 0.0
    year_principal: float = 0.0

    @classmethod
    def initial(cls, params: SimulationParams) -> "EngineState":
        outlay = params.initial_outlay
        return cls(
            loans=stack_loans(params),
            buy_portfolio=PortfolioState(),
            # The renter invests the cash the buyer spends at closing.
            rent_portfolio=PortfolioState(value=outlay, principal=outlay),
            home_value=params.home_price,
            rent=params.monthly_rent,
            rent_insurance=params.rent_insurance_monthly,
            sublet_income=params.rent_out_income if params.rent_out_part else 0.0,
            salary=params.monthly_salary,
            housing_budget_percent=params.housing_budget_percent,
        )


def simulate(params: SimulationParams) -> SimulationResult:
    """
    Project buying against renting month by month over ``params.years``.

    Pure: no I/O, no exceptions for numeric input, identical params give an
    identical result.
    """
    months = max(int(params.years), 0) * 12
    rates = MonthlyRates.from_params(params)
    state = EngineState.initial(params)
    logger.debug("Simulating %d months", months)

    monthly_data: List[MonthlyRecord] = []
    yearly_data: List[YearlyRecord] = []
    for month in range(1, months + 1):
        state, record, snapshot = advance_month(params, rates, state, month)
        monthly_data.append(record)
        if snapshot is not None:
            yearly_data.append(snapshot)

    return SimulationResult(
        monthly_data=monthly_data,
        yearly_data=yearly_data,
        summary=_summarize(params, state, yearly_data),
    )


def advance_month(
    params: SimulationParams,
    rates: MonthlyRates,
    state: EngineState,
    month: int,
) -> Tuple[EngineState, MonthlyRecord, Optional[YearlyRecord]]:
    """Run one month and return the next state, its record and any year-end snapshot."""
    loans = state.loans
    ptz = loans.ptz.service()
    secondary = loans.secondary.service()
    primary = loans.primary.service()

    # Costs key off the start-of-month home value.
    property_tax = state.home_value * params.property_tax_rate / 100.0 / 12.0
    maintenance = state.home_value * params.maintenance_cost_yearly / 100.0 / 12.0
    home_insurance = (
        params.home_insurance_yearly
        * (1 + params.inflation_rate / 100.0) ** ((month - 1) / 12.0)
        / 12.0
    )
    marginal = params.marginal_tax_rate / 100.0
    tax_shield = (primary.interest + secondary.interest + property_tax) * marginal
    net_sublet_income = state.sublet_income - state.sublet_income * marginal

    # Fixed payments, charged for the whole horizon even once a loan is repaid.
    mandatory_cost = (
        loans.total_payment
        + property_tax
        + maintenance
        + home_insurance
        + params.pmi_monthly
    )
    net_buy_cost = mandatory_cost - tax_shield - net_sublet_income
    total_rent_cost = state.rent + state.rent_insurance

    if params.use_salary_based_budget:
        budget = state.salary * state.housing_budget_percent / 100.0
    else:
        budget = max(net_buy_cost, total_rent_cost)

    buy_surplus = budget - net_buy_cost
    extra_secondary = extra_primary = 0.0
    buy_contribution = buy_surplus
    if buy_surplus > 0 and params.pay_down_mortgage_early and params.use_salary_based_budget:
        # Secondary debt first, it usually carries the higher rate. The
        # interest-free subsidized loan is never repaid early.
        (extra_secondary, extra_primary), buy_contribution = allocate_surplus(
            buy_surplus,
            [
                loans.secondary.balance - secondary.principal,
                loans.primary.balance - primary.principal,
            ],
        )
    rent_contribution = budget - total_rent_cost

    next_loans = LoanStack(
        ptz=loans.ptz.repay(ptz.principal),
        secondary=loans.secondary.repay(secondary.principal + extra_secondary),
        primary=loans.primary.repay(primary.principal + extra_primary),
    )
    interest_paid = primary.interest + secondary.interest
    extra_principal = extra_secondary + extra_primary
    principal_paid = ptz.principal + secondary.principal + primary.principal + extra_principal

    next_state = replace(
        state,
        loans=next_loans,
        buy_portfolio=state.buy_portfolio.advance(rates.investment, buy_contribution),
        rent_portfolio=state.rent_portfolio.advance(rates.investment, rent_contribution),
        home_value=state.home_value * (1 + rates.appreciation),
        rent=state.rent * (1 + rates.inflation),
        rent_insurance=state.rent_insurance * (1 + rates.inflation),
        sublet_income=state.sublet_income * (1 + rates.inflation),
        salary=state.salary * (1 + rates.salary_growth),
        total_interest=state.total_interest + interest_paid,
        total_principal=state.total_principal + principal_paid,
        total_rent=state.total_rent + state.rent,
        year_interest=state.year_interest + interest_paid,
        year_principal=state.year_principal + principal_paid,
    )
    record = MonthlyRecord(
        month=month,
        interest_paid=interest_paid,
        principal_paid=principal_paid,
        balance=next_loans.total_balance,
        net_buy_cost=net_buy_cost,
        monthly_budget=budget,
        extra_principal=extra_principal,
        buy_contribution=buy_contribution,
        rent_contribution=rent_contribution,
    )
    if month % 12 != 0:
        return next_state, record, None

    snapshot = _year_end_snapshot(
        params,
        next_state,
        year=month // 12,
        buy_cash_outflow=net_buy_cost + extra_principal,
        rent_cost=total_rent_cost,
    )
    next_state = replace(
        next_state,
        housing_budget_percent=_step_budget_percent(
            next_state.housing_budget_percent,
            params.housing_budget_percent_annual_increase,
        ),
        year_interest=0.0,
        year_principal=0.0,
    )
    return next_state, record, snapshot


def _year_end_snapshot(
    params: SimulationParams,
    state: EngineState,
    *,
    year: int,
    buy_cash_outflow: float,
    rent_cost: float,
) -> YearlyRecord:
    debt = state.loans.total_balance
    selling_costs = state.home_value * params.selling_costs_percent / 100.0
    buy_portfolio = state.buy_portfolio.after_tax_value(params.capital_gains_tax_rate)
    rent_portfolio = state.rent_portfolio.after_tax_value(params.capital_gains_tax_rate)
    return YearlyRecord(
        year=year,
        home_value=state.home_value,
        mortgage_balance=debt,
        equity=state.home_value - debt,
        buy_cash_outflow=buy_cash_outflow,
        buy_portfolio=buy_portfolio,
        buy_net_worth=state.home_value - debt - selling_costs + buy_portfolio,
        yearly_interest_paid=state.year_interest,
        yearly_principal_paid=state.year_principal,
        rent_cost=rent_cost,
        rent_portfolio=rent_portfolio,
        rent_net_worth=rent_portfolio,
    )


def _step_budget_percent(current: float, annual_increase: float) -> float:
    if annual_increase == 0:
        return current
    return min(current + annual_increase, 100.0)


def _summarize(
    params: SimulationParams, state: EngineState, yearly_data: List[YearlyRecord]
) -> SimulationSummary:
    if not yearly_data:
        return SimulationSummary(initial_outlay=params.initial_outlay)
    final = yearly_data[-1]
    break_even = next(
        (snap.year for snap in yearly_data if snap.buy_net_worth >= snap.rent_net_worth),
        None,
    )
    return SimulationSummary(
        final_net_worth_buy=final.buy_net_worth,
        final_net_worth_rent=final.rent_net_worth,
        total_interest_paid=state.total_interest,
        total_rent_paid=state.total_rent,
        total_principal_paid=state.total_principal,
        initial_outlay=params.initial_outlay,
        break_even_year=break_even,
    )


def annual_to_monthly_growth(annual_rate_pct: float) -> float:
    """Monthly rate that compounds to ``annual_rate_pct`` over twelve months."""
    # A loss beyond 100% has no real 12th root; treat it as total loss.
    annual = max(annual_rate_pct / 100.0, -1.0)
    return (1 + annual) ** (1 / 12.0) - 1
