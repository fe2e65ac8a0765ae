"""
Liquidity analyzer: liquid-asset ratio and absolute cash floor.

liquid assets = cash + holdings flagged ``is_liquid``
total assets  = cash + all holdings + property
"""

from __future__ import annotations

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.models.finding import CashReserveEvidence, Finding, LiquidityRatioEvidence
from wealth_strategist.models.snapshot import DataPacket
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity

_VERY_LOW_RATIO = 0.05
_VERY_LOW_CASH = 5_000.0


class LiquidityAnalyzer(Analyzer):
    name = "LiquidityAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        snapshot = self._require_snapshot(packet)

        cash = snapshot.available_cash()
        liquid = cash + sum(h.current_value for h in snapshot.investments if h.is_liquid)
        total = cash + snapshot.total_investment_value() + snapshot.total_property_value()

        if total > 0:
            ratio = liquid / total
            minimum = self.safeguards.min_liquidity_ratio
            if ratio < minimum:
                findings.append(Finding(
                    id="liquidity-low",
                    type=FindingType.LIQUIDITY_LOW,
                    severity=Severity.HIGH if ratio < _VERY_LOW_RATIO else Severity.MEDIUM,
                    title="Too little of your wealth is accessible",
                    description=(
                        f"Only {ratio:.1%} of assets can be turned into cash quickly; "
                        f"the minimum is {minimum:.0%}."
                    ),
                    impact=impact(60, 75, 85, 0, 90),
                    evidence=LiquidityRatioEvidence(
                        liquid_assets=liquid,
                        total_assets=total,
                        liquidity_ratio=ratio,
                        minimum=minimum,
                    ),
                    suggested_action="Direct new savings to cash or liquid funds until the ratio recovers.",
                ))

        floor = self.safeguards.min_cash_reserve
        if cash < floor:
            findings.append(Finding(
                id="cash-reserve-low",
                type=FindingType.LIQUIDITY_CASH_LOW,
                severity=Severity.HIGH if cash < _VERY_LOW_CASH else Severity.MEDIUM,
                title="Cash reserve below minimum",
                description=f"Cash of ${cash:,.0f} is below the ${floor:,.0f} reserve floor.",
                impact=impact(70, 80, 90, 0, 95),
                evidence=CashReserveEvidence(
                    available_cash=cash,
                    minimum=floor,
                    shortfall=round(floor - cash, 2),
                ),
                suggested_action=f"Top up cash by ${floor - cash:,.0f}.",
            ))
