"""
Forecast engine: yearly balance-sheet projection.

Scenarios
---------
All three scenarios run the same transition function.  They differ only in
the assumptions, perturbed by ``adj`` (−spread, 0, +spread; spread = 0.30):

    property_growth_rate, stock_market_return, salary_growth_rate  × (1 + adj)
    mortgage_rate, savings_rate                                     × (1 − adj / 2)

Initial state (read from the packet)
------------------------------------
    property    Σ property.current_value
    investments Σ holding.current_value
    cash        cashflow.available_cash; 12 × positive monthly surplus when 0
    debt        Σ loan.balance
    income      12 × monthly_income            (100,000 when unknown)
    expenses    12 × monthly_expenses          (60,000 when unknown)
    net worth   snapshot.net_worth; assets − debt when unset
    age         cashflow.user_age
                → preferences.retirement_age − (time_horizon or 30)
                → 35

Transition (one step per year, year index 0 … life_expectancy − age)
--------------------------------------------------------------------
    property   *= 1 + property_growth_rate
    investments*= 1 + stock_market_return
    income      = income × (1 + salary_growth_rate)   while age < retirement_age
                = 4% × previous net worth             otherwise
    expenses   *= 1 + inflation_rate
    surplus     = income − expenses
    investments+= max(0, surplus) + annual_savings_increase (while working)
    drawdown    = min(previous cash, −surplus) when surplus < 0
    debt        = max(0, debt − drawdown)
    cash        = max(0.5 × expenses, cash + 0.2 × surplus or − drawdown)
    net worth   = property + investments + cash − debt
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from wealth_strategist.config import ForecastConfig
from wealth_strategist.models.forecast import (
    ForecastAssumptions,
    ForecastResult,
    ForecastSummary,
    YearlyProjection,
)
from wealth_strategist.models.snapshot import DataPacket
from wealth_strategist.taxonomy.strategy_taxonomy import Scenario

logger = logging.getLogger(__name__)

DEFAULT_AGE = 35
DEFAULT_ANNUAL_INCOME = 100_000.0
DEFAULT_ANNUAL_EXPENSES = 60_000.0
DEFAULT_TIME_HORIZON = 30
WITHDRAWAL_RATE = 0.04
COMFORTABLE_REPLACEMENT_RATIO = 0.70
_CASH_FLOOR_SHARE = 0.5
_SURPLUS_TO_CASH = 0.2


@dataclass(frozen=True)
class InitialState:
    """Balance sheet at the start of the projection."""

    age:         int
    net_worth:   float
    property:    float
    investments: float
    cash:        float
    debt:        float
    income:      float
    expenses:    float


# ── Assumptions ───────────────────────────────────────────────────────────────

def base_assumptions(
    config: Optional[ForecastConfig] = None,
    overrides: Optional[Mapping[str, float]] = None,
) -> ForecastAssumptions:
    """Default-scenario assumptions from config, with optional overrides."""
    cfg = config or ForecastConfig()
    values = cfg.model_dump(exclude={"scenario_spread"})
    if overrides:
        unknown = set(overrides) - set(ForecastAssumptions.model_fields)
        if unknown:
            raise ValueError(f"Unknown forecast assumption(s): {sorted(unknown)}")
        values.update(overrides)
    return ForecastAssumptions(**values)


def scenario_adjustment(scenario: Scenario, spread: float = 0.30) -> float:
    if scenario == Scenario.CONSERVATIVE:
        return -spread
    if scenario == Scenario.AGGRESSIVE:
        return spread
    return 0.0


def scenario_assumptions(
    base: ForecastAssumptions,
    scenario: Scenario,
    spread: float = 0.30,
) -> ForecastAssumptions:
    """Perturb ``base`` for ``scenario``.  DEFAULT returns an equal copy."""
    adj = scenario_adjustment(scenario, spread)
    return base.model_copy(update={
        "property_growth_rate": base.property_growth_rate * (1 + adj),
        "stock_market_return":  base.stock_market_return * (1 + adj),
        "salary_growth_rate":   base.salary_growth_rate * (1 + adj),
        "mortgage_rate":        base.mortgage_rate * (1 - adj * 0.5),
        "savings_rate":         base.savings_rate * (1 - adj * 0.5),
    })


# ── Initial state ─────────────────────────────────────────────────────────────

def current_age(packet: DataPacket) -> int:
    snapshot = packet.snapshot
    if snapshot and snapshot.cashflow and snapshot.cashflow.user_age is not None:
        return snapshot.cashflow.user_age
    prefs = packet.preferences
    if prefs and prefs.retirement_age is not None:
        horizon = prefs.time_horizon if prefs.time_horizon is not None else DEFAULT_TIME_HORIZON
        return max(0, prefs.retirement_age - horizon)
    return DEFAULT_AGE


def extract_initial_state(packet: DataPacket) -> InitialState:
    snapshot = packet.snapshot
    age = current_age(packet)
    if snapshot is None:
        return InitialState(
            age=age,
            net_worth=0.0,
            property=0.0,
            investments=0.0,
            cash=0.0,
            debt=0.0,
            income=DEFAULT_ANNUAL_INCOME,
            expenses=DEFAULT_ANNUAL_EXPENSES,
        )

    cashflow = snapshot.cashflow
    prop = snapshot.total_property_value()
    investments = snapshot.total_investment_value()
    debt = snapshot.total_debt()

    cash = snapshot.available_cash()
    if cash <= 0 and cashflow is not None:
        cash = max(0.0, cashflow.surplus()) * 12

    income = cashflow.monthly_income * 12 if cashflow and cashflow.monthly_income > 0 else DEFAULT_ANNUAL_INCOME
    expenses = (
        cashflow.monthly_expenses * 12
        if cashflow and cashflow.monthly_expenses > 0
        else DEFAULT_ANNUAL_EXPENSES
    )

    net_worth = snapshot.net_worth
    if net_worth is None:
        net_worth = prop + investments + cash - debt

    return InitialState(
        age=age,
        net_worth=net_worth,
        property=prop,
        investments=investments,
        cash=cash,
        debt=debt,
        income=income,
        expenses=expenses,
    )


# ── Projection ────────────────────────────────────────────────────────────────

def project(
    initial: InitialState,
    assumptions: ForecastAssumptions,
    start_year: int,
) -> list[YearlyProjection]:
    """Run the transition from ``initial`` until life expectancy.

    Always returns at least the year-0 step, even when the user is already
    past ``life_expectancy``.
    """
    steps = max(0, assumptions.life_expectancy - initial.age)

    net_worth = initial.net_worth
    prop = initial.property
    investments = initial.investments
    cash = initial.cash
    debt = initial.debt
    income = initial.income
    expenses = initial.expenses

    projections: list[YearlyProjection] = []
    for i in range(steps + 1):
        age = initial.age + i
        working = age < assumptions.retirement_age

        prop *= 1 + assumptions.property_growth_rate
        investments *= 1 + assumptions.stock_market_return
        income = income * (1 + assumptions.salary_growth_rate) if working else net_worth * WITHDRAWAL_RATE
        expenses *= 1 + assumptions.inflation_rate
        surplus = income - expenses

        investments += max(0.0, surplus) + (assumptions.annual_savings_increase if working else 0.0)

        drawdown = min(cash, -surplus) if surplus < 0 else 0.0
        debt = max(0.0, debt - drawdown)
        cash_delta = surplus * _SURPLUS_TO_CASH if surplus > 0 else -drawdown
        cash = max(expenses * _CASH_FLOOR_SHARE, cash + cash_delta)

        net_worth = prop + investments + cash - debt
        projections.append(YearlyProjection(
            year=start_year + i,
            age=age,
            net_worth=round(net_worth, 2),
            property_value=round(prop, 2),
            investment_value=round(investments, 2),
            cash_value=round(cash, 2),
            debt_value=round(debt, 2),
            income=round(income, 2),
            expenses=round(expenses, 2),
            surplus=round(surplus, 2),
        ))
    return projections


def summarize(
    initial: InitialState,
    assumptions: ForecastAssumptions,
    projections: list[YearlyProjection],
) -> ForecastSummary:
    at_retirement = next(
        (p for p in projections if p.age >= assumptions.retirement_age),
        None,
    )
    nw_at_retirement = at_retirement.net_worth if at_retirement else 0.0
    retirement_income = nw_at_retirement * WITHDRAWAL_RATE
    replacement = retirement_income / initial.income if initial.income > 0 else 0.0
    return ForecastSummary(
        current_age=initial.age,
        retirement_age=assumptions.retirement_age,
        years_to_retirement=max(0, assumptions.retirement_age - initial.age),
        current_net_worth=round(initial.net_worth, 2),
        net_worth_at_retirement=nw_at_retirement,
        final_net_worth=projections[-1].net_worth if projections else 0.0,
        projected_retirement_income=round(retirement_income, 2),
        replacement_ratio=round(replacement, 4),
        can_retire_comfortably=replacement >= COMFORTABLE_REPLACEMENT_RATIO,
    )


# ── Public API ────────────────────────────────────────────────────────────────

def generate_forecast(
    packet: DataPacket,
    scenario: Scenario = Scenario.DEFAULT,
    config: Optional[ForecastConfig] = None,
    overrides: Optional[Mapping[str, float]] = None,
) -> ForecastResult:
    """Project ``packet`` forward under one scenario.

    The user's preferred retirement age, when set, replaces the configured
    one.  ``overrides`` are applied before the scenario perturbation.
    """
    cfg = config or ForecastConfig()
    base = base_assumptions(cfg, overrides)
    prefs = packet.preferences
    if prefs and prefs.retirement_age is not None and not (overrides and "retirement_age" in overrides):
        base = base.model_copy(update={"retirement_age": prefs.retirement_age})

    assumptions = scenario_assumptions(base, scenario, cfg.scenario_spread)
    initial = extract_initial_state(packet)
    projections = project(initial, assumptions, packet.timestamp.year)
    summary = summarize(initial, assumptions, projections)

    logger.info(
        "Forecast %s for user=%s | age=%d years=%d retirement_nw=%.0f comfortable=%s",
        scenario, packet.user_id, initial.age, len(projections),
        summary.net_worth_at_retirement, summary.can_retire_comfortably,
    )
    return ForecastResult(
        scenario=scenario,
        assumptions=assumptions,
        projections=tuple(projections),
        summary=summary,
    )


def generate_all_scenarios(
    packet: DataPacket,
    config: Optional[ForecastConfig] = None,
    overrides: Optional[Mapping[str, float]] = None,
) -> dict[Scenario, ForecastResult]:
    """CONSERVATIVE, DEFAULT and AGGRESSIVE forecasts, in that order."""
    return {
        scenario: generate_forecast(packet, scenario, config, overrides)
        for scenario in (Scenario.CONSERVATIVE, Scenario.DEFAULT, Scenario.AGGRESSIVE)
    }
