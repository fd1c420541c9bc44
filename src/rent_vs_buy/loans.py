"""
Loan stacking, amortized payments and monthly debt service.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, NamedTuple, Sequence, Tuple

from .schemas import SimulationParams

logger = logging.getLogger(__name__)

# Balances below this many currency units are treated as repaid.
BALANCE_EPSILON = 0.01


class DebtService(NamedTuple):
    interest: float
    principal: float


@dataclass(frozen=True)
class LoanState:
    """One debt instrument: fixed payment, shrinking balance."""

    name: str
    balance: float
    payment: float
    annual_rate_pct: float = 0.0

    @property
    def monthly_rate(self) -> float:
        return annual_to_monthly_rate(self.annual_rate_pct)

    def service(self) -> DebtService:
        """Mandatory interest/principal split for the coming month."""
        if self.balance <= 0:
            return DebtService(0.0, 0.0)
        interest = self.balance * self.monthly_rate
        principal = min(self.payment - interest, self.balance)
        return DebtService(interest, principal)

    def repay(self, principal: float) -> "LoanState":
        balance = self.balance - principal
        if balance < BALANCE_EPSILON:
            balance = 0.0
        return replace(self, balance=balance)


@dataclass(frozen=True)
class LoanStack:
    """The three instruments in stacking priority order."""

    ptz: LoanState
    secondary: LoanState
    primary: LoanState

    @property
    def total_balance(self) -> float:
        return self.ptz.balance + self.secondary.balance + self.primary.balance

    @property
    def total_payment(self) -> float:
        return self.ptz.payment + self.secondary.payment + self.primary.payment


def stack_loans(params: SimulationParams) -> LoanStack:
    """
    Split the financed amount across the subsidized loan, the secondary
    mortgage and the primary mortgage, in that order.

    Configured amounts are clamped so the three always add up to
    ``max(0, price - down payment)``; the primary mortgage takes the rest.
    """
    residual = max(0.0, params.home_price - params.down_payment)

    ptz_amount = min(params.ptz_amount if params.use_ptz else 0.0, residual)
    secondary_amount = params.mortgage2.amount if params.use_mortgage2 else 0.0
    if ptz_amount + secondary_amount > residual:
        logger.debug(
            "Secondary mortgage clamped from %.2f to %.2f",
            secondary_amount,
            residual - ptz_amount,
        )
        secondary_amount = max(0.0, residual - ptz_amount)
    primary_amount = max(0.0, residual - ptz_amount - secondary_amount)

    stack = LoanStack(
        ptz=LoanState(
            name="ptz",
            balance=ptz_amount,
            payment=monthly_mortgage_payment(ptz_amount, 0.0, params.ptz_term_years),
        ),
        secondary=LoanState(
            name="secondary",
            balance=secondary_amount,
            payment=monthly_mortgage_payment(
                secondary_amount, params.mortgage2.interest_rate, params.mortgage2.term_years
            ),
            annual_rate_pct=params.mortgage2.interest_rate,
        ),
        primary=LoanState(
            name="primary",
            balance=primary_amount,
            payment=monthly_mortgage_payment(
                primary_amount, params.mortgage1.interest_rate, params.mortgage1.term_years
            ),
            annual_rate_pct=params.mortgage1.interest_rate,
        ),
    )
    for loan in (stack.ptz, stack.secondary, stack.primary):
        logger.debug(
            "Loan %s: principal %.2f, payment %.2f/month", loan.name, loan.balance, loan.payment
        )
    return stack


def allocate_surplus(
    surplus: float, capacities: Sequence[float]
) -> Tuple[List[float], float]:
    """
    Hand out ``surplus`` to targets in priority order, each up to its capacity.

    Returns the amount given to every target and what is left over.
    """
    remaining = surplus
    allocations: List[float] = []
    for capacity in capacities:
        amount = min(capacity, remaining) if remaining > 0 and capacity > 0 else 0.0
        allocations.append(amount)
        remaining -= amount
    return allocations, remaining


def monthly_mortgage_payment(
    principal: float, annual_rate_pct: float, term_years: float
) -> float:
    if principal <= 0 or term_years <= 0:
        return 0.0
    term_months = term_years * 12
    monthly_rate = annual_to_monthly_rate(annual_rate_pct)
    if monthly_rate == 0:
        return principal / term_months
    growth = (1 + monthly_rate) ** term_months
    return principal * monthly_rate * growth / (growth - 1)


def annual_to_monthly_rate(annual_rate_pct: float) -> float:
    if annual_rate_pct <= 0:
        return 0.0
    return annual_rate_pct / 100.0 / 12.0
