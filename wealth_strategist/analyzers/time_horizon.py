"""
Time-horizon analyzer: retirement runway.

Projects current net worth forward to the user's retirement age, adding
annual savings (12 × monthly surplus) each year and compounding at
``retirement_growth_rate``.  The target is ``safe_withdrawal_multiple`` (25)
× annual expenses, i.e. the 4% rule.

success probability = min(100, projected ÷ target × 100)

A shortfall also reports the monthly saving that would close it (inverse of
the future value of an annuity).
"""

from __future__ import annotations

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.errors import MissingDataError
from wealth_strategist.models.finding import Finding, RetirementEvidence
from wealth_strategist.models.snapshot import DataPacket
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity
from wealth_strategist.utils.finance import future_value, required_monthly_saving

DEFAULT_AGE = 30
DEFAULT_MONTHLY_EXPENSES = 5_000.0


class TimeHorizonAnalyzer(Analyzer):
    name = "TimeHorizonAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        prefs = packet.preferences
        if prefs is None or prefs.retirement_age is None:
            raise MissingDataError("No retirement age preference available")
        snapshot = self._require_snapshot(packet)

        cashflow = snapshot.cashflow
        age = cashflow.user_age if cashflow and cashflow.user_age else DEFAULT_AGE
        years = prefs.retirement_age - age
        if years <= 0:
            return

        monthly_expenses = (
            cashflow.monthly_expenses if cashflow and cashflow.monthly_expenses > 0
            else DEFAULT_MONTHLY_EXPENSES
        )
        monthly_savings = max(0.0, cashflow.surplus()) if cashflow else 0.0
        net_worth = snapshot.net_worth or 0.0
        rate = self.settings.retirement_growth_rate

        required = monthly_expenses * 12 * self.settings.safe_withdrawal_multiple
        projected = future_value(net_worth, monthly_savings * 12, rate, years)
        probability = min(100.0, projected / required * 100) if required > 0 else 100.0

        base_evidence = dict(
            current_age=age,
            retirement_age=prefs.retirement_age,
            years_to_retirement=years,
            current_net_worth=net_worth,
            projected_net_worth=round(projected, 2),
            required_net_worth=round(required, 2),
            success_probability=round(probability, 1),
            current_monthly_savings=round(monthly_savings, 2),
        )

        if projected < required:
            needed = required_monthly_saving(required, net_worth, rate, years)
            if probability < 50:
                severity = Severity.CRITICAL
            elif probability < 75:
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM
            findings.append(Finding(
                id="retirement-shortfall",
                type=FindingType.RETIREMENT_SHORTFALL,
                severity=severity,
                title="Retirement savings off track",
                description=(
                    f"Projected ${projected:,.0f} by age {prefs.retirement_age} "
                    f"against ${required:,.0f} needed ({probability:.0f}% funded)."
                ),
                impact=impact(85, 80, 40, 15, 70),
                evidence=RetirementEvidence(
                    required_monthly_savings=round(needed, 2), **base_evidence
                ),
                suggested_action=(
                    f"Save about ${needed:,.0f}/month toward retirement, or revisit "
                    "the retirement age."
                ),
            ))
        else:
            findings.append(Finding(
                id="retirement-on-track",
                type=FindingType.RETIREMENT_ON_TRACK,
                severity=Severity.LOW,
                title="Retirement savings on track",
                description=(
                    f"Projected ${projected:,.0f} by age {prefs.retirement_age} covers "
                    f"the ${required:,.0f} target."
                ),
                impact=impact(60, 30, 20, 5, 70),
                evidence=RetirementEvidence(required_monthly_savings=0.0, **base_evidence),
                suggested_action="Keep the current savings rate and review annually.",
            ))
