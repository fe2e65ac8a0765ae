"""
Strategy taxonomy: the controlled vocabularies shared by every stage.

  - ``FindingType``     : what an analyzer observed (the evidence discriminant).
  - ``Severity``        : how far past its threshold the observation is.
  - ``StrategyCategory``: which part of the balance sheet it concerns.
  - ``StrategyType``    : urgency horizon derived from severity.
  - ``ConfidenceTier``  : coarse bucket over the 0–100 confidence score.
  - ``ConflictType``    : why a set of recommendations cannot all be adopted.
  - ``RiskAppetite``    : user preference driving target allocations.
  - ``Scenario``        : forecast perturbation.
  - ``EntityType``      : kind of snapshot object a recommendation touches.

This module has NO imports from any other ``wealth_strategist`` package.
"""

from enum import StrEnum


class Severity(StrEnum):
    """How urgently a finding needs attention."""

    CRITICAL = "critical"
    """Threshold breached badly; act now."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    """Optimisation opportunity, no risk if ignored."""


class FindingType(StrEnum):
    """Every observation an analyzer can emit."""

    # ── Debt ──────────────────────────────────────────────────────────────────
    DEBT_HIGH_DTI = "DEBT_HIGH_DTI"
    DEBT_MODERATE_DTI = "DEBT_MODERATE_DTI"
    DEBT_REFINANCE = "DEBT_REFINANCE"
    DEBT_CONSOLIDATE = "DEBT_CONSOLIDATE"
    DEBT_EARLY_REPAY = "DEBT_EARLY_REPAY"
    DEBT_OFFSET_OPTIMIZE = "DEBT_OFFSET_OPTIMIZE"

    # ── Cashflow ──────────────────────────────────────────────────────────────
    CASHFLOW_EMERGENCY_LOW = "CASHFLOW_EMERGENCY_LOW"
    CASHFLOW_EMERGENCY_EXCESS = "CASHFLOW_EMERGENCY_EXCESS"
    CASHFLOW_SPENDING_HIGH = "CASHFLOW_SPENDING_HIGH"
    CASHFLOW_SPENDING_MODERATE = "CASHFLOW_SPENDING_MODERATE"
    CASHFLOW_SURPLUS_ALLOCATION = "CASHFLOW_SURPLUS_ALLOCATION"
    CASHFLOW_DEFICIT = "CASHFLOW_DEFICIT"
    CASHFLOW_INCOME_UNSTABLE = "CASHFLOW_INCOME_UNSTABLE"

    # ── Investment ────────────────────────────────────────────────────────────
    INVESTMENT_CONCENTRATION = "INVESTMENT_CONCENTRATION"
    INVESTMENT_DIVERSIFICATION_LOW = "INVESTMENT_DIVERSIFICATION_LOW"
    INVESTMENT_REBALANCE = "INVESTMENT_REBALANCE"

    # ── Property ──────────────────────────────────────────────────────────────
    PROPERTY_LOW_YIELD = "PROPERTY_LOW_YIELD"
    PROPERTY_LOW_GROWTH = "PROPERTY_LOW_GROWTH"

    # ── Risk / liquidity ──────────────────────────────────────────────────────
    RISK_HIGH_LEVERAGE = "RISK_HIGH_LEVERAGE"
    RISK_GEOGRAPHIC = "RISK_GEOGRAPHIC"
    LIQUIDITY_LOW = "LIQUIDITY_LOW"
    LIQUIDITY_CASH_LOW = "LIQUIDITY_CASH_LOW"

    # ── Tax / retirement ──────────────────────────────────────────────────────
    TAX_LOSS_HARVEST = "TAX_LOSS_HARVEST"
    TAX_CGT_DISCOUNT = "TAX_CGT_DISCOUNT"
    RETIREMENT_SHORTFALL = "RETIREMENT_SHORTFALL"
    RETIREMENT_ON_TRACK = "RETIREMENT_ON_TRACK"


class StrategyCategory(StrEnum):
    """Balance-sheet area a recommendation belongs to."""

    DEBT = "DEBT"
    CASHFLOW = "CASHFLOW"
    INVESTMENT = "INVESTMENT"
    PROPERTY = "PROPERTY"
    RISK_RESILIENCE = "RISK_RESILIENCE"
    GROWTH = "GROWTH"


class StrategyType(StrEnum):
    """Time horizon for acting on a recommendation."""

    TACTICAL = "TACTICAL"
    """Days to weeks."""

    OPERATIONAL = "OPERATIONAL"
    """Weeks to months."""

    STRATEGIC = "STRATEGIC"
    """Months to a year."""

    LONG_TERM = "LONG_TERM"
    """Years."""


class ConfidenceTier(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ConflictType(StrEnum):
    """Reason a group of recommendations cannot all be adopted together."""

    MUTUALLY_EXCLUSIVE = "mutually_exclusive"
    """Alternative, not additive, actions."""

    COMPETING_PRIORITY = "competing_priority"
    """All draw on the same limited monthly surplus."""

    SAME_ENTITY = "same_entity"
    """Several actions target the same loan, property or holding."""


class RiskAppetite(StrEnum):
    CONSERVATIVE = "CONSERVATIVE"
    MODERATE = "MODERATE"
    AGGRESSIVE = "AGGRESSIVE"


class Scenario(StrEnum):
    """Forecast scenario; only the assumption multipliers differ."""

    CONSERVATIVE = "CONSERVATIVE"
    DEFAULT = "DEFAULT"
    AGGRESSIVE = "AGGRESSIVE"


class EntityType(StrEnum):
    LOAN = "LOAN"
    PROPERTY = "PROPERTY"
    INVESTMENT = "INVESTMENT"
