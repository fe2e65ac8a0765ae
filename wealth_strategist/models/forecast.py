"""
Forecast models.

``ForecastAssumptions`` is the full, already-perturbed parameter set for one
scenario.  ``YearlyProjection`` is one step of the projection state machine;
``ForecastResult`` bundles the sequence with its summary.

Projections are append-only: ``projections[n]`` depends only on
``projections[n-1]`` and the assumptions.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from wealth_strategist.taxonomy.strategy_taxonomy import Scenario


class ForecastAssumptions(BaseModel):
    """Growth and lifecycle assumptions for a single scenario."""

    model_config = ConfigDict(frozen=True)

    property_growth_rate: float = 0.05
    stock_market_return: float = 0.08
    inflation_rate: float = 0.03
    salary_growth_rate: float = 0.04
    mortgage_rate: float = 0.045
    savings_rate: float = 0.02
    annual_savings_increase: float = 5_000.0
    retirement_age: int = 65
    life_expectancy: int = 90

    @model_validator(mode="after")
    def validate_ages(self) -> "ForecastAssumptions":
        if self.life_expectancy <= 0 or self.retirement_age <= 0:
            raise ValueError("retirement_age and life_expectancy must be positive.")
        return self


class YearlyProjection(BaseModel):
    """Projected balance sheet at the end of one year."""

    model_config = ConfigDict(frozen=True)

    year: int
    age: int
    net_worth: float
    property_value: float
    investment_value: float
    cash_value: float
    debt_value: float
    income: float
    expenses: float
    surplus: float


class ForecastSummary(BaseModel):
    """Headline retirement outcome for one scenario.

    Attributes:
        net_worth_at_retirement: Net worth in the first projected year at or
            after ``retirement_age``.
        projected_retirement_income: 4% of ``net_worth_at_retirement``.
        replacement_ratio: Retirement income ÷ current annual income.
        can_retire_comfortably: ``replacement_ratio >= 0.70``.
    """

    model_config = ConfigDict(frozen=True)

    current_age: int
    retirement_age: int
    years_to_retirement: int
    current_net_worth: float
    net_worth_at_retirement: float
    final_net_worth: float
    projected_retirement_income: float
    replacement_ratio: float
    can_retire_comfortably: bool


class ForecastResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    scenario: Scenario
    assumptions: ForecastAssumptions
    projections: tuple[YearlyProjection, ...]
    summary: ForecastSummary

    @model_validator(mode="after")
    def validate_ages_increase(self) -> "ForecastResult":
        for prev, cur in zip(self.projections, self.projections[1:]):
            if cur.age != prev.age + 1:
                raise ValueError(
                    f"Projection ages must increase by 1 per step, got "
                    f"{prev.age} then {cur.age}."
                )
        return self
