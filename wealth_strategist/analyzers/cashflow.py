"""
Cashflow analyzer.

Checks
------
emergency fund   : available cash ÷ monthly essential expenses.
                   Below min_emergency_fund (3 months) → critical under 1,
                   high under 2, else medium, with the dollar shortfall.
                   More than $10k above 6 months → excess (low).
expense ratio    : expenses ÷ income.  > max_expense_to_income (0.80) →
                   critical; > 0.70 → medium.
surplus plan     : positive surplus split in priority order: emergency fund
                   (if short), high-interest debt (any loan > 8%), then
                   investing (only once the fund is adequate).
deficit          : surplus below −$500/month → critical.
income stability : stability score below 60 → high, suggest a 5-month buffer.
"""

from __future__ import annotations

import math

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.errors import MissingDataError
from wealth_strategist.models.finding import (
    AllocationPriority,
    DeficitEvidence,
    EmergencyFundEvidence,
    ExpenseRatioEvidence,
    Finding,
    IncomeStabilityEvidence,
    SurplusAllocationEvidence,
)
from wealth_strategist.models.snapshot import CashflowSummary, DataPacket, Snapshot
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity

_EXCESS_MIN_AMOUNT = 10_000.0
_DEFICIT_TOLERANCE = -500.0
_UNSTABLE_BUFFER_MULTIPLIER = 1.5
_HIGH_INTEREST_SHARE = 0.5
_INVEST_SHARE = 0.7


class CashflowAnalyzer(Analyzer):
    name = "CashflowAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        snapshot = packet.snapshot
        if snapshot is None or snapshot.cashflow is None:
            raise MissingDataError("No cashflow data available")
        cashflow = snapshot.cashflow

        expenses = cashflow.essential_expenses()
        fund_months = cashflow.available_cash / expenses if expenses > 0 else 0.0

        emergency = self._emergency_fund(cashflow, fund_months)
        if emergency is not None:
            findings.append(emergency)

        spending = self._expense_ratio(cashflow)
        if spending is not None:
            findings.append(spending)

        surplus = cashflow.surplus()
        if surplus > 0:
            findings.append(self._surplus_allocation(snapshot, surplus, fund_months))
        elif surplus < _DEFICIT_TOLERANCE:
            findings.append(self._deficit(cashflow, surplus))

        stability = self._income_stability(cashflow)
        if stability is not None:
            findings.append(stability)

    def _emergency_fund(self, cashflow: CashflowSummary, months: float) -> Finding | None:
        target = self.safeguards.min_emergency_fund
        expenses = cashflow.essential_expenses()

        if months < target:
            if months < 1:
                severity = Severity.CRITICAL
            elif months < 2:
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM
            shortfall = (target - months) * expenses
            return Finding(
                id="emergency-fund-low",
                type=FindingType.CASHFLOW_EMERGENCY_LOW,
                severity=severity,
                title="Emergency fund below minimum",
                description=(
                    f"Cash covers {months:.1f} months of essential expenses; the "
                    f"minimum buffer is {target:g} months."
                ),
                impact=impact(80, 95, 85, 0, 95),
                evidence=EmergencyFundEvidence(
                    months_covered=months,
                    target_months=target,
                    available_cash=cashflow.available_cash,
                    monthly_expenses=expenses,
                    shortfall=round(shortfall, 2),
                ),
                suggested_action=f"Build cash reserves by ${shortfall:,.0f} before other goals.",
            )

        excess_months = self.settings.emergency_excess_months
        if months >= excess_months:
            excess = (months - excess_months) * expenses
            if excess > _EXCESS_MIN_AMOUNT:
                return Finding(
                    id="emergency-fund-excess",
                    type=FindingType.CASHFLOW_EMERGENCY_EXCESS,
                    severity=Severity.LOW,
                    title="Excess cash beyond emergency needs",
                    description=(
                        f"Cash covers {months:.1f} months of expenses; about "
                        f"${excess:,.0f} above a {excess_months:g}-month buffer is idle."
                    ),
                    impact=impact(45, 0, -20, 5, 85),
                    evidence=EmergencyFundEvidence(
                        months_covered=months,
                        target_months=excess_months,
                        available_cash=cashflow.available_cash,
                        monthly_expenses=expenses,
                        excess=round(excess, 2),
                    ),
                    suggested_action="Move the excess into an offset account or investments.",
                )
        return None

    def _expense_ratio(self, cashflow: CashflowSummary) -> Finding | None:
        income = cashflow.monthly_income
        ratio = cashflow.monthly_expenses / income if income > 0 else 1.0
        limit = self.safeguards.max_expense_to_income
        moderate = self.settings.moderate_expense_ratio

        if ratio > limit:
            excess = cashflow.monthly_expenses - income * limit
            return Finding(
                id="spending-high",
                type=FindingType.CASHFLOW_SPENDING_HIGH,
                severity=Severity.CRITICAL,
                title="Spending consumes most of income",
                description=(
                    f"Expenses are {ratio:.0%} of income, above the {limit:.0%} "
                    "ceiling that leaves room for saving."
                ),
                impact=impact(75, 85, 80, 0, 90),
                evidence=ExpenseRatioEvidence(
                    expense_ratio=ratio,
                    threshold=limit,
                    monthly_income=income,
                    monthly_expenses=cashflow.monthly_expenses,
                    excess_spending=round(max(0.0, excess), 2),
                ),
                suggested_action=f"Cut about ${max(0.0, excess):,.0f}/month of discretionary spending.",
            )
        if ratio > moderate:
            excess = cashflow.monthly_expenses - income * moderate
            return Finding(
                id="spending-moderate",
                type=FindingType.CASHFLOW_SPENDING_MODERATE,
                severity=Severity.MEDIUM,
                title="Spending is on the high side",
                description=f"Expenses are {ratio:.0%} of income.",
                impact=impact(55, 60, 50, 0, 85),
                evidence=ExpenseRatioEvidence(
                    expense_ratio=ratio,
                    threshold=moderate,
                    monthly_income=income,
                    monthly_expenses=cashflow.monthly_expenses,
                    excess_spending=round(max(0.0, excess), 2),
                ),
                suggested_action="Review recurring subscriptions and discretionary categories.",
            )
        return None

    def _surplus_allocation(self, snapshot: Snapshot, surplus: float, fund_months: float) -> Finding:
        cashflow = snapshot.cashflow
        target = self.safeguards.min_emergency_fund
        fund_adequate = fund_months >= target

        allocations: list[AllocationPriority] = []
        if not fund_adequate:
            shortfall = (target - fund_months) * cashflow.essential_expenses()
            allocations.append(AllocationPriority(
                priority=len(allocations) + 1,
                target="Emergency Fund",
                amount=round(min(surplus, shortfall), 2),
                reason=f"Buffer is below {target:g} months of expenses",
            ))
        if any(l.interest_rate > self.settings.high_interest_rate for l in snapshot.loans):
            allocations.append(AllocationPriority(
                priority=len(allocations) + 1,
                target="High-Interest Debt",
                amount=round(surplus * _HIGH_INTEREST_SHARE, 2),
                reason=f"At least one loan charges more than {self.settings.high_interest_rate:.0%}",
            ))
        if fund_adequate:
            allocations.append(AllocationPriority(
                priority=len(allocations) + 1,
                target="Investments",
                amount=round(surplus * _INVEST_SHARE, 2),
                reason="Emergency fund is adequate; put surplus to work",
            ))

        first = allocations[0].target if allocations else "savings"
        return Finding(
            id="surplus-allocation",
            type=FindingType.CASHFLOW_SURPLUS_ALLOCATION,
            severity=Severity.MEDIUM if surplus > 1000 else Severity.LOW,
            title="Allocate monthly surplus",
            description=(
                f"You have ${surplus:,.0f}/month spare. Direct it to {first} first."
            ),
            impact=impact(70, 40, 30, 10, 85),
            evidence=SurplusAllocationEvidence(
                monthly_surplus=surplus,
                emergency_fund_months=fund_months,
                allocations=tuple(allocations),
            ),
            suggested_action="; ".join(
                f"{a.priority}. {a.target}: ${a.amount:,.0f}/month" for a in allocations
            ) or "Hold surplus in savings.",
        )

    def _deficit(self, cashflow: CashflowSummary, surplus: float) -> Finding:
        return Finding(
            id="cashflow-deficit",
            type=FindingType.CASHFLOW_DEFICIT,
            severity=Severity.CRITICAL,
            title="Spending exceeds income",
            description=f"You are running a deficit of ${-surplus:,.0f} every month.",
            impact=impact(90, 95, 90, 0, 95),
            evidence=DeficitEvidence(
                monthly_surplus=surplus,
                monthly_income=cashflow.monthly_income,
                monthly_expenses=cashflow.monthly_expenses,
            ),
            suggested_action="Cut expenses or raise income until cashflow is positive.",
        )

    def _income_stability(self, cashflow: CashflowSummary) -> Finding | None:
        score = cashflow.stability()
        threshold = self.settings.min_income_stability
        if score >= threshold:
            return None
        buffer_months = math.ceil(self.safeguards.min_emergency_fund * _UNSTABLE_BUFFER_MULTIPLIER)
        return Finding(
            id="income-unstable",
            type=FindingType.CASHFLOW_INCOME_UNSTABLE,
            severity=Severity.HIGH,
            title="Income is irregular",
            description=(
                f"Income stability scores {score:.0f}/100. Irregular income needs a "
                "larger cash buffer."
            ),
            impact=impact(65, 75, 70, 0, 75),
            evidence=IncomeStabilityEvidence(
                stability_score=score,
                threshold=threshold,
                recommended_buffer_months=buffer_months,
            ),
            suggested_action=f"Hold {buffer_months} months of expenses in cash.",
        )
