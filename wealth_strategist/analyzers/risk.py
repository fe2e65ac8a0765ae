"""
Risk analyzer: portfolio leverage and geographic concentration.

Leverage = total debt ÷ (property value + investment value).
Geographic concentration fires when two or more properties all share one
location key (state, falling back to suburb).
"""

from __future__ import annotations

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.models.finding import Finding, GeographicEvidence, LeverageEvidence
from wealth_strategist.models.snapshot import DataPacket, Snapshot
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity


class RiskAnalyzer(Analyzer):
    name = "RiskAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        snapshot = self._require_snapshot(packet)

        leverage = self._leverage(snapshot)
        if leverage is not None:
            findings.append(leverage)

        geographic = self._geographic(snapshot)
        if geographic is not None:
            findings.append(geographic)

    def _leverage(self, snapshot: Snapshot) -> Finding | None:
        assets = snapshot.total_property_value() + snapshot.total_investment_value()
        debt = snapshot.total_debt()
        if assets <= 0 or debt <= 0:
            return None
        ratio = debt / assets
        limit = self.safeguards.max_leverage_ratio
        if ratio <= limit:
            return None

        return Finding(
            id="leverage-high",
            type=FindingType.RISK_HIGH_LEVERAGE,
            severity=Severity.HIGH,
            title="Portfolio is highly leveraged",
            description=(
                f"Debt is {ratio:.0%} of property and investment assets, above "
                f"the {limit:.0%} limit. A market fall could leave you in negative equity."
            ),
            impact=impact(70, 90, 75, 0, 90),
            evidence=LeverageEvidence(
                total_debt=debt,
                total_assets=assets,
                leverage_ratio=ratio,
                limit=limit,
            ),
            suggested_action="Pay down debt or avoid further leveraged purchases.",
        )

    def _geographic(self, snapshot: Snapshot) -> Finding | None:
        props = snapshot.properties
        if len(props) < 2:
            return None
        locations = {p.location_key() for p in props}
        if len(locations) != 1 or None in locations:
            return None
        location = locations.pop()

        return Finding(
            id=f"geographic-{location.lower().replace(' ', '-')}",
            type=FindingType.RISK_GEOGRAPHIC,
            severity=Severity.MEDIUM,
            title=f"All properties are in {location}",
            description=(
                f"{len(props)} properties share one market, so a local downturn "
                "hits the whole property portfolio."
            ),
            impact=impact(55, 70, 40, 0, 85),
            evidence=GeographicEvidence(
                location=location,
                property_ids=tuple(p.id for p in props),
            ),
            suggested_action="Consider a different region for the next property purchase.",
        )
