"""
Conservative and aggressive variants for each recommendation.

Every recommendation gets exactly two alternatives.  A handful of finding
types have dedicated templates; the rest fall back to a generic
gradual/accelerated pair scaled ×0.7 / ×1.3 from the headline saving.

Template multipliers
--------------------
DEBT_REFINANCE          fixed rate ×0.8     / variable + offset ×1.2
DEBT_CONSOLIDATE        highest-rate-first ×0.7 / consolidate + extra ×1.3
CASHFLOW_EMERGENCY_LOW  shortfall ×0.1      / shortfall ×0.5
INVESTMENT_REBALANCE    contributions only  / full rebalance (−$500 tax)
PROPERTY_LOW_YIELD      +$2,000 rent/year   / sell and redeploy
RISK_HIGH_LEVERAGE      gradual paydown ×0.7 / sell an asset ×1.3
RETIREMENT_SHORTFALL    delay retirement    / save ×1.5 into growth assets
"""

from __future__ import annotations

from typing import Callable

from wealth_strategist.models.finding import EmergencyFundEvidence
from wealth_strategist.models.recommendation import Alternative
from wealth_strategist.scoring.scorer import ScoredFinding
from wealth_strategist.synthesis.recommendations import financial_impact
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType

_REBALANCE_TAX_COST = -500.0
_RENT_INCREASE = 2_000.0
_REDEPLOY_GAIN = 50_000.0
_DELAY_RETIREMENT_SAVINGS = 150_000.0


def _refinance(amount: float) -> list[Alternative]:
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Refinance to Fixed Rate",
            description="Switch to a fixed-rate loan for stable repayments.",
            financial_impact=round(amount * 0.8, 2),
            risk_level="LOW",
            pros=("Predictable payments", "Protected from rate rises"),
            cons=("Less flexibility", "Break fees if you sell or refinance again"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Variable Rate with Offset Account",
            description="Take the variable rate and park spare cash in an offset account.",
            financial_impact=round(amount * 1.2, 2),
            risk_level="MEDIUM",
            pros=("Offset reduces interest", "No break fees"),
            cons=("Exposed to rate rises", "Requires spending discipline"),
        ),
    ]


def _consolidate(amount: float) -> list[Alternative]:
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Pay Highest Rate First",
            description="Keep the loans separate and direct extra repayments to the dearest one.",
            financial_impact=round(amount * 0.7, 2),
            risk_level="LOW",
            pros=("No consolidation costs", "Keeps flexibility"),
            cons=("Slower progress", "Several repayments to manage"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Consolidate and Make Extra Repayments",
            description="Consolidate, then repay above the minimum to clear debt sooner.",
            financial_impact=round(amount * 1.3, 2),
            risk_level="MEDIUM",
            pros=("Fastest debt reduction", "Single repayment"),
            cons=("Needs stronger cashflow", "Less cash on hand"),
        ),
    ]


def _emergency_low(scored: ScoredFinding) -> list[Alternative]:
    ev = scored.finding.evidence
    base = ev.shortfall if isinstance(ev, EmergencyFundEvidence) else 0.0
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Build to 6 Months Slowly",
            description="Set aside 10% of surplus each month until six months are covered.",
            financial_impact=round(base * 0.1, 2),
            risk_level="LOW",
            pros=("Gradual approach", "Leaves room for other goals"),
            cons=("Takes longer", "Longer period exposed to shocks"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Build to 3 Months Quickly",
            description="Put 50% of surplus into cash until three months are covered, then invest.",
            financial_impact=round(base * 0.5, 2),
            risk_level="MEDIUM",
            pros=("Buffer in place sooner", "Earlier start on investing"),
            cons=("Tight budget short-term", "Minimum buffer only"),
        ),
    ]


def _rebalance(_: float) -> list[Alternative]:
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Rebalance with New Contributions Only",
            description="Direct new money to underweight assets without selling anything.",
            financial_impact=0.0,
            risk_level="LOW",
            pros=("No capital gains tax", "No transaction costs"),
            cons=("Slow to correct", "Drift persists for a while"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Full Rebalance with Loss Harvesting",
            description="Sell overweight positions, harvest losses and rebalance in one go.",
            financial_impact=_REBALANCE_TAX_COST,
            risk_level="MEDIUM",
            pros=("Immediate correction", "Tax losses offset gains"),
            cons=("Transaction costs", "Possible tax on gains"),
        ),
    ]


def _low_yield(_: float) -> list[Alternative]:
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Increase Rent Gradually",
            description="Move rent to market rate over two to three years.",
            financial_impact=_RENT_INCREASE,
            risk_level="LOW",
            pros=("Keeps the tenant", "Low risk"),
            cons=("Slow yield improvement", "Still below target for a while"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Sell and Redeploy Capital",
            description="Sell the property and move the equity into higher-yielding assets.",
            financial_impact=_REDEPLOY_GAIN,
            risk_level="HIGH",
            pros=("Higher potential return", "Improves liquidity"),
            cons=("Capital gains tax", "Selling costs"),
        ),
    ]


def _high_leverage(amount: float) -> list[Alternative]:
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Gradual Debt Reduction",
            description="Direct 20% of surplus to debt over the next five years.",
            financial_impact=round(amount * 0.7, 2),
            risk_level="LOW",
            pros=("Steady progress", "Sustainable"),
            cons=("Leverage stays high for longer", "Opportunity cost"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Sell Underperforming Asset",
            description="Sell the weakest asset and use the proceeds to cut debt now.",
            financial_impact=round(amount * 1.3, 2),
            risk_level="HIGH",
            pros=("Immediate risk reduction", "Simpler balance sheet"),
            cons=("Capital gains tax", "Gives up future growth"),
        ),
    ]


def _retirement_shortfall(amount: float) -> list[Alternative]:
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Delay Retirement 2-3 Years",
            description="Work a little longer to save more and shorten the drawdown period.",
            financial_impact=_DELAY_RETIREMENT_SAVINGS,
            risk_level="LOW",
            pros=("More time to compound", "Lower market risk"),
            cons=("Later retirement", "Depends on health and employment"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Save More into Growth Assets",
            description="Raise the savings rate and shift to a growth-focused portfolio.",
            financial_impact=round(amount * 1.5, 2),
            risk_level="HIGH",
            pros=("Chance to retire on schedule", "Maximises wealth"),
            cons=("High savings rate needed", "Market volatility"),
        ),
    ]


def _generic(amount: float) -> list[Alternative]:
    return [
        Alternative(
            label="CONSERVATIVE",
            title="Gradual Approach",
            description="Implement the recommendation in stages over a longer timeframe.",
            financial_impact=round(amount * 0.7, 2),
            risk_level="LOW",
            pros=("Lower stress", "Easy to reverse"),
            cons=("Slower results", "Longer exposure to the current situation"),
        ),
        Alternative(
            label="AGGRESSIVE",
            title="Accelerated Approach",
            description="Implement the recommendation immediately with full commitment.",
            financial_impact=round(amount * 1.3, 2),
            risk_level="MEDIUM",
            pros=("Fastest results", "Maximum benefit"),
            cons=("Less flexibility", "Higher short-term strain"),
        ),
    ]


_TEMPLATES: dict[FindingType, Callable[[float], list[Alternative]]] = {
    FindingType.DEBT_REFINANCE:       _refinance,
    FindingType.DEBT_CONSOLIDATE:     _consolidate,
    FindingType.INVESTMENT_REBALANCE: _rebalance,
    FindingType.PROPERTY_LOW_YIELD:   _low_yield,
    FindingType.RISK_HIGH_LEVERAGE:   _high_leverage,
    FindingType.RETIREMENT_SHORTFALL: _retirement_shortfall,
}


def generate_alternatives(scored: ScoredFinding) -> list[Alternative]:
    """Return ``[CONSERVATIVE, AGGRESSIVE]`` alternatives for one finding."""
    finding = scored.finding
    if finding.type == FindingType.CASHFLOW_EMERGENCY_LOW:
        return _emergency_low(scored)

    amount = financial_impact(finding).headline_amount()
    template = _TEMPLATES.get(finding.type, _generic)
    return template(amount)
