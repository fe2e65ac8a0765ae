"""
Investment analyzer.

Checks
------
concentration   : any holding above max_single_investment (20%) of the
                  portfolio → high.
diversification : fewer than min_diversification (5) holdings → medium.
rebalancing     : each target class (stocks/bonds/cash) compared on its own
                  against the target allocation for the user's risk
                  appetite.  Absolute drift > 10% → one finding for that
                  class, low; > 15% → medium.  Holdings in other classes
                  count toward the total but have no target.
"""

from __future__ import annotations

from collections import defaultdict

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.errors import MissingDataError
from wealth_strategist.models.finding import (
    ConcentrationEvidence,
    DiversificationEvidence,
    Finding,
    RebalanceEvidence,
)
from wealth_strategist.models.snapshot import DataPacket, Holding
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, RiskAppetite, Severity

_REBALANCE_DRIFT = 0.10
_REBALANCE_DRIFT_MEDIUM = 0.15


class InvestmentAnalyzer(Analyzer):
    name = "InvestmentAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        snapshot = packet.snapshot
        if snapshot is None or not snapshot.investments:
            raise MissingDataError("No investment data available")

        holdings = snapshot.investments
        total = sum(h.current_value for h in holdings)
        if total <= 0:
            return

        for holding in holdings:
            share = holding.current_value / total
            if share > self.safeguards.max_single_investment:
                findings.append(self._concentration(holding, share, total))

        if len(holdings) < self.safeguards.min_diversification:
            findings.append(Finding(
                id="diversification-low",
                type=FindingType.INVESTMENT_DIVERSIFICATION_LOW,
                severity=Severity.MEDIUM,
                title="Portfolio is under-diversified",
                description=(
                    f"{len(holdings)} holding(s) is below the minimum of "
                    f"{self.safeguards.min_diversification}."
                ),
                impact=impact(50, 75, 30, 0, 85),
                evidence=DiversificationEvidence(
                    holding_count=len(holdings),
                    minimum=self.safeguards.min_diversification,
                ),
                suggested_action="Add low-cost diversified funds across asset classes.",
            ))

        findings.extend(self._rebalance(holdings, total, packet.risk_appetite()))

    def _concentration(self, holding: Holding, share: float, total: float) -> Finding:
        label = holding.name or holding.id
        limit = self.safeguards.max_single_investment
        return Finding(
            id=f"concentration-{holding.id}",
            type=FindingType.INVESTMENT_CONCENTRATION,
            severity=Severity.HIGH,
            title=f"Concentration risk in {label}",
            description=(
                f"{label} is {share:.0%} of the portfolio; a single position "
                f"should not exceed {limit:.0%}."
            ),
            impact=impact(60, 85, 40, 0, 90),
            evidence=ConcentrationEvidence(
                holding_id=holding.id,
                holding_name=label,
                holding_value=holding.current_value,
                portfolio_value=total,
                percentage=share,
                limit=limit,
            ),
            suggested_action=(
                f"Trim {label} to below {limit:.0%} and spread the proceeds "
                "across other holdings."
            ),
        )

    def _rebalance(
        self,
        holdings: tuple[Holding, ...],
        total: float,
        appetite: RiskAppetite,
    ) -> list[Finding]:
        target = self.settings.target_allocations.get(str(appetite))
        if not target:
            return []

        by_class: dict[str, float] = defaultdict(float)
        for h in holdings:
            by_class[h.asset_class.lower()] += h.current_value

        findings = []
        for asset_class, target_percent in target.items():
            current_value = by_class.get(asset_class, 0.0)
            current_percent = current_value / total
            drift = abs(current_percent - target_percent)
            if drift <= _REBALANCE_DRIFT:
                continue

            target_value = total * target_percent
            findings.append(Finding(
                id=f"rebalance-{asset_class}",
                type=FindingType.INVESTMENT_REBALANCE,
                severity=Severity.MEDIUM if drift > _REBALANCE_DRIFT_MEDIUM else Severity.LOW,
                title=f"Rebalancing needed: {asset_class}",
                description=(
                    f"Your {asset_class} allocation ({current_percent:.1%}) has drifted "
                    f"{drift:.1%} from the {appetite.lower()} target ({target_percent:.0%})."
                ),
                impact=impact(55, 65, 20, -10, 80),
                evidence=RebalanceEvidence(
                    risk_appetite=appetite,
                    asset_class=asset_class,
                    current_percent=round(current_percent, 4),
                    target_percent=target_percent,
                    drift=round(drift, 4),
                    current_value=current_value,
                    target_value=round(target_value, 2),
                    adjustment_needed=round(target_value - current_value, 2),
                ),
                suggested_action=(
                    f"Rebalance {asset_class} to {target_percent:.0%} of the portfolio "
                    f"(${target_value:,.0f}), using new contributions first to limit "
                    "capital gains."
                ),
            ))
        return findings
