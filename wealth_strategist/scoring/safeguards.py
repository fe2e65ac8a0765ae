"""
Safeguard validator: hard policy limits applied after scoring.

Analyzers use the same ``SafeguardConfig`` to decide what is worth flagging,
but a finding only reaches the user if its evidence also passes the checks
below.  A violation means the evidence contradicts the finding (a "high DTI"
whose ratio is under the limit) or the action would push the user past a
limit (an early repayment while the emergency fund is short).

Violations are not errors.  Each is logged at WARNING with the threshold key
and the finding is dropped.

Checks by evidence type
-----------------------
refinance        : rate gap ≥ min_refinance_gap, break-even ≤
                   max_refinance_breakeven, total saving ≥ min_refinance_savings
consolidation    : monthly saving > 0
early repayment  : emergency fund ≥ min_emergency_fund
surplus plan     : no investment slice while the fund is below minimum;
                   slices must not exceed 150% of the surplus in total
debt-to-income   : DEBT_HIGH_DTI ratio must exceed max_debt_to_income;
                   DEBT_MODERATE_DTI ratio must not
leverage         : ratio must exceed max_leverage_ratio
liquidity ratio  : ratio must be below min_liquidity_ratio
cash reserve     : cash must be below min_cash_reserve
concentration    : share must exceed max_single_investment
diversification  : count must be below min_diversification
emergency fund   : EMERGENCY_LOW months must be below min_emergency_fund;
                   EMERGENCY_EXCESS redeployment must leave ≥ the minimum
expense ratio    : SPENDING_HIGH ratio must exceed max_expense_to_income
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from wealth_strategist.config import SafeguardConfig
from wealth_strategist.models.finding import (
    CashReserveEvidence,
    ConcentrationEvidence,
    ConsolidationEvidence,
    DebtToIncomeEvidence,
    DiversificationEvidence,
    EarlyRepaymentEvidence,
    EmergencyFundEvidence,
    ExpenseRatioEvidence,
    Finding,
    LeverageEvidence,
    LiquidityRatioEvidence,
    RefinanceEvidence,
    SurplusAllocationEvidence,
)
from wealth_strategist.scoring.scorer import ScoredFinding
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType

logger = logging.getLogger(__name__)

_SAFEGUARD_MESSAGES: dict[str, str] = {
    "max_debt_to_income":      "Debt-to-income ratio exceeds the safe maximum",
    "min_emergency_fund":      "Emergency fund would fall below the minimum months of expenses",
    "max_leverage_ratio":      "Portfolio leverage exceeds the safe maximum",
    "max_single_investment":   "Single investment exceeds the concentration limit",
    "min_liquidity_ratio":     "Liquid assets fall below the minimum share of total assets",
    "min_cash_reserve":        "Cash reserve falls below the minimum",
    "min_refinance_gap":       "Rate improvement too small to justify refinancing",
    "max_refinance_breakeven": "Refinance costs take too long to recover",
    "min_refinance_savings":   "Lifetime refinance saving is too small",
    "max_expense_to_income":   "Expenses exceed the safe share of income",
    "min_surplus_ratio":       "Surplus falls below the minimum share of income",
    "max_portfolio_volatility": "Portfolio volatility exceeds the safe maximum",
    "min_diversification":     "Too few holdings for adequate diversification",
    "min_data_quality":        "Data quality is too low for this recommendation",
    "max_data_age_days":       "Data is too old for this recommendation",
}

_GENERIC_MESSAGE = "This action violates financial safety guidelines"


@dataclass(frozen=True)
class SafeguardViolation:
    """One breached threshold.

    Attributes:
        threshold: ``SafeguardConfig`` field name, e.g. ``"max_refinance_breakeven"``.
        limit:     Configured limit value.
        actual:    Value found in the evidence.
        message:   Human-readable explanation.
    """

    threshold: str
    limit:     float
    actual:    float
    message:   str


def safeguard_message(threshold: str) -> str:
    """Human-readable message for a ``SafeguardConfig`` key."""
    return _SAFEGUARD_MESSAGES.get(threshold, _GENERIC_MESSAGE)


def validate_finding(
    finding: Finding,
    limits: Optional[SafeguardConfig] = None,
) -> list[SafeguardViolation]:
    """Check one finding's evidence against the hard limits.

    Returns:
        Violations found; empty when the finding may be surfaced.
    """
    lim = limits or SafeguardConfig()
    ev = finding.evidence
    out: list[SafeguardViolation] = []

    def require(ok: bool, threshold: str, actual: float) -> None:
        if not ok:
            out.append(SafeguardViolation(
                threshold=threshold,
                limit=float(getattr(lim, threshold)),
                actual=float(actual),
                message=safeguard_message(threshold),
            ))

    if isinstance(ev, RefinanceEvidence):
        require(ev.rate_gap >= lim.min_refinance_gap, "min_refinance_gap", ev.rate_gap)
        require(
            ev.break_even_months <= lim.max_refinance_breakeven,
            "max_refinance_breakeven", ev.break_even_months,
        )
        require(
            ev.total_savings >= lim.min_refinance_savings,
            "min_refinance_savings", ev.total_savings,
        )

    elif isinstance(ev, ConsolidationEvidence):
        if ev.monthly_savings <= 0:
            out.append(SafeguardViolation(
                threshold="consolidation_savings",
                limit=0.0,
                actual=ev.monthly_savings,
                message=_GENERIC_MESSAGE,
            ))

    elif isinstance(ev, EarlyRepaymentEvidence):
        require(
            ev.emergency_fund_months >= lim.min_emergency_fund,
            "min_emergency_fund", ev.emergency_fund_months,
        )

    elif isinstance(ev, SurplusAllocationEvidence):
        investing = any(a.target == "Investments" for a in ev.allocations)
        if investing:
            require(
                ev.emergency_fund_months >= lim.min_emergency_fund,
                "min_emergency_fund", ev.emergency_fund_months,
            )
        allocated = sum(a.amount for a in ev.allocations)
        if allocated > ev.monthly_surplus * 1.5 + 1e-6:
            # Slices are per-priority suggestions, not a partition; the
            # allocation rules never exceed 150% of surplus in total.
            out.append(SafeguardViolation(
                threshold="surplus_overallocation",
                limit=ev.monthly_surplus,
                actual=allocated,
                message=_GENERIC_MESSAGE,
            ))

    elif isinstance(ev, DebtToIncomeEvidence):
        if finding.type == FindingType.DEBT_HIGH_DTI:
            require(ev.ratio > lim.max_debt_to_income, "max_debt_to_income", ev.ratio)
        else:
            require(ev.ratio <= lim.max_debt_to_income, "max_debt_to_income", ev.ratio)

    elif isinstance(ev, LeverageEvidence):
        require(ev.leverage_ratio > lim.max_leverage_ratio, "max_leverage_ratio", ev.leverage_ratio)

    elif isinstance(ev, LiquidityRatioEvidence):
        require(ev.liquidity_ratio < lim.min_liquidity_ratio, "min_liquidity_ratio", ev.liquidity_ratio)

    elif isinstance(ev, CashReserveEvidence):
        require(ev.available_cash < lim.min_cash_reserve, "min_cash_reserve", ev.available_cash)

    elif isinstance(ev, ConcentrationEvidence):
        require(ev.percentage > lim.max_single_investment, "max_single_investment", ev.percentage)

    elif isinstance(ev, DiversificationEvidence):
        require(ev.holding_count < lim.min_diversification, "min_diversification", ev.holding_count)

    elif isinstance(ev, EmergencyFundEvidence):
        if finding.type == FindingType.CASHFLOW_EMERGENCY_LOW:
            require(ev.months_covered < lim.min_emergency_fund, "min_emergency_fund", ev.months_covered)
        elif ev.monthly_expenses > 0:
            remaining = (ev.available_cash - ev.excess) / ev.monthly_expenses
            require(remaining >= lim.min_emergency_fund, "min_emergency_fund", remaining)

    elif isinstance(ev, ExpenseRatioEvidence):
        if finding.type == FindingType.CASHFLOW_SPENDING_HIGH:
            require(
                ev.expense_ratio > lim.max_expense_to_income,
                "max_expense_to_income", ev.expense_ratio,
            )

    return out


def apply_safeguards(
    scored: Iterable[ScoredFinding],
    limits: Optional[SafeguardConfig] = None,
) -> tuple[list[ScoredFinding], list[tuple[ScoredFinding, list[SafeguardViolation]]]]:
    """Split scored findings into (passed, rejected-with-violations).

    Every rejection is logged at WARNING with the breached threshold keys.
    Input order is preserved in both lists.
    """
    passed: list[ScoredFinding] = []
    rejected: list[tuple[ScoredFinding, list[SafeguardViolation]]] = []
    for item in scored:
        violations = validate_finding(item.finding, limits)
        if violations:
            rejected.append((item, violations))
            logger.warning(
                "Safeguard rejected finding=%s (%s) | %s",
                item.finding.id,
                item.finding.type,
                "; ".join(
                    f"{v.threshold}: actual={v.actual:g} limit={v.limit:g}"
                    for v in violations
                ),
            )
        else:
            passed.append(item)
    return passed, rejected
