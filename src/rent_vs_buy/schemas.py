from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional

# Fields expressed as a share of something that cannot exceed the whole.
_BOUNDED_PERCENT_FIELDS = (
    "capital_gains_tax_rate",
    "housing_budget_percent",
    "down_payment_percent",
    "marginal_tax_rate",
)


@dataclass(frozen=True)
class MortgageDetails:
    """Configuration of a single amortizing mortgage."""

    amount: float
    interest_rate: float  # annual percentage, e.g., 6.5
    term_years: float

    def updated(self, data: Mapping[str, Any]) -> "MortgageDetails":
        """Copy with the keys present in ``data`` overridden."""
        return replace(self, **_checked_kwargs(type(self), data, "mortgage"))


@dataclass(frozen=True)
class SimulationParams:
    """Inputs of one rent-vs-buy projection. Rates are annual percentages."""

    years: int = 10
    investment_return_rate: float = 7.0
    inflation_rate: float = 3.0  # rent, renter insurance, home insurance, sub-let income
    capital_gains_tax_rate: float = 30.0

    # Budget strategy
    use_salary_based_budget: bool = False
    monthly_salary: float = 5000.0
    salary_growth_rate: float = 3.0
    housing_budget_percent: float = 40.0
    housing_budget_percent_annual_increase: float = 0.0  # percentage points per year
    pay_down_mortgage_early: bool = False

    # Buying
    home_price: float = 500000.0
    down_payment_percent: float = 20.0
    closing_costs_percent: float = 3.0
    selling_costs_percent: float = 6.0
    home_appreciation_rate: float = 4.0
    property_tax_rate: float = 1.2  # of home value
    home_insurance_yearly: float = 1200.0
    maintenance_cost_yearly: float = 1.0  # of home value
    marginal_tax_rate: float = 25.0

    # Sub-letting part of the home
    rent_out_part: bool = False
    rent_out_income: float = 800.0  # monthly

    # Financing
    mortgage1: MortgageDetails = field(
        default_factory=lambda: MortgageDetails(amount=0.0, interest_rate=6.5, term_years=30)
    )
    use_mortgage2: bool = False
    mortgage2: MortgageDetails = field(
        default_factory=lambda: MortgageDetails(amount=50000.0, interest_rate=8.0, term_years=15)
    )
    pmi_monthly: float = 0.0
    use_ptz: bool = False
    ptz_amount: float = 60000.0
    ptz_term_years: float = 20

    # Renting
    monthly_rent: float = 2500.0
    rent_insurance_monthly: float = 20.0

    @property
    def down_payment(self) -> float:
        return self.home_price * self.down_payment_percent / 100.0

    @property
    def closing_costs(self) -> float:
        return self.home_price * self.closing_costs_percent / 100.0

    @property
    def initial_outlay(self) -> float:
        """Cash needed at purchase; the renter invests the same amount on day one."""
        return self.down_payment + self.closing_costs

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulationParams":
        kwargs = _checked_kwargs(cls, data, "simulation")
        defaults = cls()
        for key in ("mortgage1", "mortgage2"):
            if isinstance(kwargs.get(key), Mapping):
                kwargs[key] = getattr(defaults, key).updated(kwargs[key])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> "SimulationParams":
        """
        Check that every number is finite and non-negative.

        The engine itself clamps rather than failing; callers that accept
        user input run this first.
        """
        numbers: Dict[str, float] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, MortgageDetails):
                for sub in fields(value):
                    numbers[f"{item.name}.{sub.name}"] = getattr(value, sub.name)
            elif not isinstance(item.default, bool):
                numbers[item.name] = value

        for name, value in numbers.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value!r}")
        for name in _BOUNDED_PERCENT_FIELDS:
            if numbers[name] > 100:
                raise ValueError(f"{name} must be between 0 and 100, got {numbers[name]!r}")
        if int(self.years) != self.years:
            raise ValueError(f"years must be a whole number, got {self.years!r}")
        return self


@dataclass(frozen=True)
class MonthlyRecord:
    month: int
    interest_paid: float
    principal_paid: float  # mandatory + accelerated, all loans
    balance: float  # all loans
    net_buy_cost: float = 0.0
    monthly_budget: float = 0.0
    extra_principal: float = 0.0
    buy_contribution: float = 0.0
    rent_contribution: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class YearlyRecord:
    """
    Snapshot taken on the last month of each simulated year.

    Portfolio and net worth figures are after notional capital-gains tax.
    ``buy_cash_outflow`` and ``rent_cost`` are the closing month's monthly
    amounts, not yearly sums.
    """

    year: int
    home_value: float
    mortgage_balance: float
    equity: float
    buy_cash_outflow: float
    buy_portfolio: float
    buy_net_worth: float
    yearly_interest_paid: float
    yearly_principal_paid: float
    rent_cost: float
    rent_portfolio: float
    rent_net_worth: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SimulationSummary:
    final_net_worth_buy: float = 0.0
    final_net_worth_rent: float = 0.0
    total_interest_paid: float = 0.0
    total_rent_paid: float = 0.0  # rent only, renter insurance excluded
    total_principal_paid: float = 0.0
    initial_outlay: float = 0.0
    break_even_year: Optional[int] = None

    @property
    def better_option(self) -> str:
        if self.final_net_worth_buy > self.final_net_worth_rent:
            return "buying"
        if self.final_net_worth_rent > self.final_net_worth_buy:
            return "renting"
        return "tie"

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["better_option"] = self.better_option
        return payload


@dataclass(frozen=True)
class SimulationResult:
    monthly_data: List[MonthlyRecord] = field(default_factory=list)
    yearly_data: List[YearlyRecord] = field(default_factory=list)
    summary: SimulationSummary = field(default_factory=SimulationSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monthly_data": [record.to_dict() for record in self.monthly_data],
            "yearly_data": [record.to_dict() for record in self.yearly_data],
            "summary": self.summary.to_dict(),
        }


def _checked_kwargs(cls: type, data: Mapping[str, Any], label: str) -> Dict[str, Any]:
    known = {item.name for item in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {label} parameter(s): {', '.join(unknown)}")
    return dict(data)
