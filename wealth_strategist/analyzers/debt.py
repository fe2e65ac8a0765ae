"""
Debt analyzer.

Checks
------
debt-to-income   : Σ monthly repayments / monthly income.
                   > max_debt_to_income (0.43) → critical; > 0.35 → medium.
refinance        : per loan, amortised payment at the current vs. market rate
                   for the loan type.  Emitted only when all three refinance
                   safeguards pass: rate gap ≥ 0.5%, break-even ≤ 24 months,
                   lifetime saving ≥ $5,000.
consolidation    : ≥ 2 loans above 6% merged at the balance-weighted rate
                   minus 0.5% (floored at 4%) over their average remaining term.
early repayment  : only where the loan rate beats the assumed investment
                   return by more than 2%.
offset           : offset account holding less than it could, given cash on
                   hand (capped at half the loan balance).
"""

from __future__ import annotations

import logging
import math

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.errors import MissingDataError
from wealth_strategist.models.finding import (
    ConsolidationEvidence,
    DebtToIncomeEvidence,
    EarlyRepaymentEvidence,
    Finding,
    OffsetEvidence,
    RefinanceEvidence,
)
from wealth_strategist.models.snapshot import DataPacket, Loan, Snapshot
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity
from wealth_strategist.utils.finance import amortized_payment

logger = logging.getLogger(__name__)

_NO_SAVING_BREAK_EVEN = 999
_CONSOLIDATION_RATE_FLOOR_GAP = 0.005
_MIN_CONSOLIDATION_GAIN = 0.003
_CONSOLIDATION_MIN_RATE = 0.06
_OFFSET_SHARE_OF_BALANCE = 0.5
_OFFSET_MIN_IMPROVEMENT = 5_000.0
_MIN_EARLY_REPAY_SAVING = 1_000.0


class DebtAnalyzer(Analyzer):
    name = "DebtAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        snapshot = packet.snapshot
        if snapshot is None or not snapshot.loans:
            raise MissingDataError("No loan data available")

        dti = self._debt_to_income(snapshot)
        if dti is not None:
            findings.append(dti)

        for loan in snapshot.loans:
            refinance = self._refinance(loan)
            if refinance is not None:
                findings.append(refinance)

        consolidation = self._consolidation(snapshot.loans)
        if consolidation is not None:
            findings.append(consolidation)

        findings.extend(self._early_repayment(snapshot))
        findings.extend(self._offset(snapshot))

    # ── Debt-to-income ────────────────────────────────────────────────────────

    def _debt_to_income(self, snapshot: Snapshot) -> Finding | None:
        cashflow = snapshot.cashflow
        income = cashflow.monthly_income if cashflow else 0.0
        if income <= 0:
            return None

        monthly_debt = sum(loan.payment() for loan in snapshot.loans)
        ratio = monthly_debt / income
        limit = self.safeguards.max_debt_to_income

        if ratio > limit:
            return Finding(
                id="dti-high",
                type=FindingType.DEBT_HIGH_DTI,
                severity=Severity.CRITICAL,
                title="Debt-to-income ratio above safe limit",
                description=(
                    f"Loan repayments take {ratio:.1%} of monthly income, above the "
                    f"{limit:.0%} limit lenders and planners treat as unsafe."
                ),
                impact=impact(85, 90, 75, 0, 95),
                evidence=DebtToIncomeEvidence(
                    ratio=ratio,
                    monthly_debt=round(monthly_debt, 2),
                    monthly_income=income,
                    threshold=limit,
                ),
                suggested_action=(
                    "Reduce debt servicing: refinance high-rate loans, consolidate "
                    "personal debt or direct surplus to the most expensive loan."
                ),
            )
        if ratio > self.settings.moderate_dti_threshold:
            return Finding(
                id="dti-moderate",
                type=FindingType.DEBT_MODERATE_DTI,
                severity=Severity.MEDIUM,
                title="Debt-to-income ratio elevated",
                description=(
                    f"Loan repayments take {ratio:.1%} of monthly income. This is "
                    f"below the {limit:.0%} limit but leaves little headroom."
                ),
                impact=impact(60, 65, 55, 0, 95),
                evidence=DebtToIncomeEvidence(
                    ratio=ratio,
                    monthly_debt=round(monthly_debt, 2),
                    monthly_income=income,
                    threshold=self.settings.moderate_dti_threshold,
                ),
                suggested_action="Avoid new borrowing and review loan rates annually.",
            )
        return None

    # ── Refinance ─────────────────────────────────────────────────────────────

    def _refinance(self, loan: Loan) -> Finding | None:
        market_rate = self.settings.market_rate_for(loan.loan_type)
        rate_gap = loan.interest_rate - market_rate
        if rate_gap <= 0 or loan.balance <= 0:
            return None

        months = loan.months_left()
        current_payment = loan.payment()
        new_payment = amortized_payment(loan.balance, market_rate, months)
        monthly_savings = current_payment - new_payment
        costs = loan.balance * self.settings.refinance_cost_pct
        if monthly_savings > 0:
            break_even = math.ceil(costs / monthly_savings)
        else:
            break_even = _NO_SAVING_BREAK_EVEN
        total_savings = monthly_savings * months - costs

        passes = (
            rate_gap >= self.safeguards.min_refinance_gap
            and break_even <= self.safeguards.max_refinance_breakeven
            and total_savings >= self.safeguards.min_refinance_savings
        )
        if not passes:
            logger.debug(
                "Refinance for loan=%s not worthwhile | gap=%.4f break_even=%d total=%.0f",
                loan.id, rate_gap, break_even, total_savings,
            )
            return None

        if monthly_savings > 500:
            severity = Severity.HIGH
        elif monthly_savings > 200:
            severity = Severity.MEDIUM
        else:
            severity = Severity.LOW

        label = loan.name or loan.id
        return Finding(
            id=f"refinance-{loan.id}",
            type=FindingType.DEBT_REFINANCE,
            severity=severity,
            title=f"Refinance {label}",
            description=(
                f"Moving from {loan.interest_rate:.2%} to a market rate of "
                f"{market_rate:.2%} saves ${monthly_savings:,.0f}/month and "
                f"${total_savings:,.0f} over the remaining {months} months."
            ),
            impact=impact(min(100.0, total_savings / 1000 * 10), 30, -20, 5, 85),
            evidence=RefinanceEvidence(
                loan_id=loan.id,
                balance=loan.balance,
                current_rate=loan.interest_rate,
                market_rate=market_rate,
                rate_gap=round(rate_gap, 6),
                months_left=months,
                current_payment=round(current_payment, 2),
                new_payment=round(new_payment, 2),
                monthly_savings=round(monthly_savings, 2),
                refinance_costs=round(costs, 2),
                break_even_months=break_even,
                total_savings=round(total_savings, 2),
            ),
            suggested_action=(
                f"Obtain refinance quotes near {market_rate:.2%}; costs of about "
                f"${costs:,.0f} are recovered in {break_even} months."
            ),
        )

    # ── Consolidation ─────────────────────────────────────────────────────────

    def _consolidation(self, loans: tuple[Loan, ...]) -> Finding | None:
        candidates = [
            loan for loan in loans
            if loan.interest_rate > _CONSOLIDATION_MIN_RATE and loan.balance > 0
        ]
        if len(candidates) < 2:
            return None

        total_balance = sum(loan.balance for loan in candidates)
        weighted_rate = sum(l.balance * l.interest_rate for l in candidates) / total_balance
        new_rate = max(
            self.settings.consolidation_rate_floor,
            weighted_rate - _CONSOLIDATION_RATE_FLOOR_GAP,
        )
        if weighted_rate - new_rate < _MIN_CONSOLIDATION_GAIN:
            return None

        avg_months = round(sum(l.months_left() for l in candidates) / len(candidates))
        current_payment = sum(l.payment() for l in candidates)
        new_payment = amortized_payment(total_balance, new_rate, avg_months)
        monthly_savings = current_payment - new_payment
        if monthly_savings <= 0:
            return None
        costs = total_balance * self.settings.consolidation_cost_pct

        return Finding(
            id="consolidate-" + "-".join(sorted(l.id for l in candidates)),
            type=FindingType.DEBT_CONSOLIDATE,
            severity=Severity.HIGH if monthly_savings > 300 else Severity.MEDIUM,
            title=f"Consolidate {len(candidates)} high-interest loans",
            description=(
                f"${total_balance:,.0f} across {len(candidates)} loans averages "
                f"{weighted_rate:.2%}. One loan at {new_rate:.2%} saves "
                f"${monthly_savings:,.0f}/month."
            ),
            impact=impact(70, 35, 40, 0, 75),
            evidence=ConsolidationEvidence(
                loan_ids=tuple(l.id for l in candidates),
                total_balance=total_balance,
                weighted_rate=round(weighted_rate, 6),
                consolidated_rate=round(new_rate, 6),
                current_payment=round(current_payment, 2),
                new_payment=round(new_payment, 2),
                monthly_savings=round(monthly_savings, 2),
                consolidation_costs=round(costs, 2),
            ),
            suggested_action="Compare consolidation loan offers and close the old facilities.",
        )

    # ── Early repayment ───────────────────────────────────────────────────────

    def _early_repayment(self, snapshot: Snapshot) -> list[Finding]:
        cashflow = snapshot.cashflow
        surplus = cashflow.surplus() if cashflow else 0.0
        if surplus <= 0:
            return []

        hurdle = self.settings.assumed_investment_return + self.settings.early_repay_margin
        expenses = cashflow.essential_expenses() if cashflow else 0.0
        fund_months = cashflow.available_cash / expenses if cashflow and expenses > 0 else 0.0

        results: list[Finding] = []
        for loan in snapshot.loans:
            if loan.interest_rate <= hurdle:
                continue
            payment = loan.payment()
            extra = min(surplus * 0.5, payment)
            yearly_saved = loan.balance * (loan.interest_rate - self.settings.assumed_investment_return)
            if yearly_saved <= _MIN_EARLY_REPAY_SAVING:
                continue

            label = loan.name or loan.id
            results.append(Finding(
                id=f"early-repay-{loan.id}",
                type=FindingType.DEBT_EARLY_REPAY,
                severity=Severity.MEDIUM,
                title=f"Pay down {label} early",
                description=(
                    f"At {loan.interest_rate:.2%} this loan costs more than the "
                    f"{self.settings.assumed_investment_return:.0%} expected from "
                    f"investing; extra repayments are a guaranteed return."
                ),
                impact=impact(65, 40, -30, 10, 80),
                evidence=EarlyRepaymentEvidence(
                    loan_id=loan.id,
                    loan_rate=loan.interest_rate,
                    investment_return=self.settings.assumed_investment_return,
                    extra_payment=round(extra, 2),
                    yearly_interest_saved=round(yearly_saved, 2),
                    monthly_surplus=surplus,
                    emergency_fund_months=fund_months,
                ),
                suggested_action=f"Add ${extra:,.0f}/month to the {label} repayment.",
            ))
        return results

    # ── Offset ────────────────────────────────────────────────────────────────

    def _offset(self, snapshot: Snapshot) -> list[Finding]:
        cash = snapshot.available_cash()
        results: list[Finding] = []
        for loan in snapshot.loans:
            if loan.offset_balance is None:
                continue
            potential = min(cash, loan.balance * _OFFSET_SHARE_OF_BALANCE)
            if potential <= loan.offset_balance + _OFFSET_MIN_IMPROVEMENT:
                continue
            additional = potential - loan.offset_balance
            yearly = additional * loan.interest_rate

            label = loan.name or loan.id
            results.append(Finding(
                id=f"offset-{loan.id}",
                type=FindingType.DEBT_OFFSET_OPTIMIZE,
                severity=Severity.MEDIUM if yearly > 500 else Severity.LOW,
                title=f"Use the offset account on {label}",
                description=(
                    f"Moving ${additional:,.0f} of idle cash into the offset saves "
                    f"about ${yearly:,.0f} interest a year while keeping it accessible."
                ),
                impact=impact(min(100.0, yearly / 100 * 10), 10, 0, 5, 90),
                evidence=OffsetEvidence(
                    loan_id=loan.id,
                    loan_rate=loan.interest_rate,
                    offset_balance=loan.offset_balance,
                    available_cash=cash,
                    potential_offset=round(potential, 2),
                    additional_offset=round(additional, 2),
                    yearly_savings=round(yearly, 2),
                ),
                suggested_action=f"Transfer ${additional:,.0f} into the {label} offset account.",
            ))
        return results
