from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortfolioState:
    """Market value plus the principal contributed into it."""

    value: float = 0.0
    principal: float = 0.0

    @property
    def unrealized_gain(self) -> float:
        return self.value - self.principal

    def advance(self, monthly_rate: float, contribution: float) -> "PortfolioState":
        """Compound one month, then add a signed contribution (negative withdraws)."""
        return PortfolioState(
            value=self.value * (1 + monthly_rate) + contribution,
            principal=self.principal + contribution,
        )

    def after_tax_value(self, capital_gains_tax_pct: float) -> float:
        """Value if liquidated now. Only gains are taxed; losses are not offset."""
        gain = self.unrealized_gain
        if gain <= 0:
            return self.value
        return self.value - gain * capital_gains_tax_pct / 100.0
