"""
Property analyzer: rental yield and long-run capital growth.

Yield is gross (annual rent ÷ current value) and only assessed for
investment properties with a known rent.  Growth is annualised over the
holding period and only assessed once a property has been held at least
``min_years_for_growth`` years.
"""

from __future__ import annotations

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.errors import MissingDataError
from wealth_strategist.models.finding import CapitalGrowthEvidence, Finding, RentalYieldEvidence
from wealth_strategist.models.snapshot import DataPacket, Property
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity


class PropertyAnalyzer(Analyzer):
    name = "PropertyAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        snapshot = packet.snapshot
        if snapshot is None or not snapshot.properties:
            raise MissingDataError("No property data available")

        for prop in snapshot.properties:
            low_yield = self._rental_yield(prop)
            if low_yield is not None:
                findings.append(low_yield)
            low_growth = self._capital_growth(prop)
            if low_growth is not None:
                findings.append(low_growth)

    def _rental_yield(self, prop: Property) -> Finding | None:
        if not prop.is_investment or not prop.monthly_rent or prop.current_value <= 0:
            return None
        annual_rent = prop.monthly_rent * 12
        gross_yield = annual_rent / prop.current_value
        threshold = self.settings.min_rental_yield
        if gross_yield >= threshold:
            return None

        label = prop.name or prop.id
        return Finding(
            id=f"low-yield-{prop.id}",
            type=FindingType.PROPERTY_LOW_YIELD,
            severity=Severity.MEDIUM,
            title=f"Low rental yield on {label}",
            description=(
                f"Gross yield is {gross_yield:.2%}, below the {threshold:.0%} "
                "benchmark for an investment property."
            ),
            impact=impact(60, 55, 40, 10, 85),
            evidence=RentalYieldEvidence(
                property_id=prop.id,
                annual_rent=annual_rent,
                current_value=prop.current_value,
                rental_yield=round(gross_yield, 4),
                threshold=threshold,
            ),
            suggested_action="Review rent against the market or reassess holding this property.",
        )

    def _capital_growth(self, prop: Property) -> Finding | None:
        years = prop.years_held
        if years is None or years < self.settings.min_years_for_growth:
            return None
        if prop.purchase_price <= 0 or prop.current_value <= 0:
            return None

        annual_growth = (prop.current_value / prop.purchase_price) ** (1 / years) - 1
        threshold = self.settings.min_capital_growth
        if annual_growth >= threshold:
            return None

        label = prop.name or prop.id
        return Finding(
            id=f"low-growth-{prop.id}",
            type=FindingType.PROPERTY_LOW_GROWTH,
            severity=Severity.MEDIUM,
            title=f"Weak capital growth on {label}",
            description=(
                f"Value has grown {annual_growth:.2%} a year over {years:g} years, "
                f"below the {threshold:.0%} benchmark."
            ),
            impact=impact(65, 50, 60, -15, 75),
            evidence=CapitalGrowthEvidence(
                property_id=prop.id,
                purchase_price=prop.purchase_price,
                current_value=prop.current_value,
                years_held=years,
                annual_growth=round(annual_growth, 4),
                threshold=threshold,
            ),
            suggested_action="Consider whether capital is better deployed elsewhere.",
        )
