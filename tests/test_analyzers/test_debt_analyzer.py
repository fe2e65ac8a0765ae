"""
Tests for wealth_strategist/analyzers/debt.py.

What we test
------------
Debt-to-income:
  - 4,000 of repayments on 8,000 income (0.5) → critical DEBT_HIGH_DTI.
  - A ratio between 0.35 and 0.43 → medium DEBT_MODERATE_DTI.
  - Below 0.35, or with no income, no DTI finding is emitted.

Refinance:
  - 400k at 6% over 240 months vs a 4.5% market rate → positive monthly
    saving, break-even within 24 months, medium severity.
  - A rate gap under 0.5% is not flagged.
  - A lifetime saving under $5,000 is not flagged.

Consolidation:
  - Two loans above 6% → one DEBT_CONSOLIDATE at the weighted rate − 0.5%.
  - A single high-rate loan is never consolidated.

Early repayment:
  - Only loans above return + margin (9%) are flagged; the extra payment
    is capped at the scheduled repayment.

Offset:
  - Idle cash beyond the offset balance is flagged with interest saved.

Missing data:
  - No loans → one "No loan data available" error and no findings.
"""

from __future__ import annotations

import pytest

from wealth_strategist.analyzers.debt import DebtAnalyzer
from wealth_strategist.models.snapshot import CashflowSummary, Loan
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity


def _of_type(result, finding_type):
    return [f for f in result.findings if f.type == finding_type]


# ── Debt-to-income ────────────────────────────────────────────────────────────

class TestDebtToIncome:
    def test_half_of_income_is_critical(self, packet_factory):
        packet = packet_factory(
            loans=(Loan(id="l1", balance=300_000, interest_rate=0.05, monthly_payment=4_000),),
            cashflow=CashflowSummary(monthly_income=8_000, monthly_expenses=3_000),
        )
        result = DebtAnalyzer().analyze(packet)
        (dti,) = _of_type(result, FindingType.DEBT_HIGH_DTI)
        assert dti.severity == Severity.CRITICAL
        assert dti.id == "dti-high"
        assert dti.evidence.ratio == pytest.approx(0.5)
        assert dti.evidence.threshold == pytest.approx(0.43)

    def test_elevated_ratio_is_moderate(self, packet_factory):
        packet = packet_factory(
            loans=(Loan(id="l1", balance=300_000, interest_rate=0.05, monthly_payment=3_000),),
            cashflow=CashflowSummary(monthly_income=8_000, monthly_expenses=3_000),
        )
        result = DebtAnalyzer().analyze(packet)
        assert not _of_type(result, FindingType.DEBT_HIGH_DTI)
        (dti,) = _of_type(result, FindingType.DEBT_MODERATE_DTI)
        assert dti.severity == Severity.MEDIUM
        assert dti.evidence.ratio == pytest.approx(0.375)

    def test_low_ratio_not_flagged(self, packet_factory):
        packet = packet_factory(
            loans=(Loan(id="l1", balance=100_000, interest_rate=0.05, monthly_payment=1_000),),
            cashflow=CashflowSummary(monthly_income=8_000, monthly_expenses=3_000),
        )
        result = DebtAnalyzer().analyze(packet)
        assert not _of_type(result, FindingType.DEBT_HIGH_DTI)
        assert not _of_type(result, FindingType.DEBT_MODERATE_DTI)

    def test_no_income_skips_ratio(self, packet_factory):
        packet = packet_factory(
            loans=(Loan(id="l1", balance=300_000, interest_rate=0.05, monthly_payment=4_000),),
        )
        result = DebtAnalyzer().analyze(packet)
        assert result.ok
        assert not _of_type(result, FindingType.DEBT_HIGH_DTI)


# ── Refinance ─────────────────────────────────────────────────────────────────

class TestRefinance:
    def test_worked_example_is_flagged(self, packet_factory):
        loan = Loan(
            id="loan-1", loan_type="home-loan", balance=400_000,
            interest_rate=0.06, remaining_months=240,
        )
        result = DebtAnalyzer().analyze(packet_factory(loans=(loan,)))
        (refi,) = _of_type(result, FindingType.DEBT_REFINANCE)
        ev = refi.evidence
        assert refi.id == "refinance-loan-1"
        assert ev.market_rate == pytest.approx(0.045)
        assert ev.monthly_savings == pytest.approx(335.1, abs=1.0)
        assert ev.refinance_costs == pytest.approx(8_000.0)
        assert ev.break_even_months <= 24
        assert ev.total_savings > 5_000
        assert refi.severity == Severity.MEDIUM

    def test_small_rate_gap_not_flagged(self, packet_factory):
        loan = Loan(
            id="loan-1", loan_type="home-loan", balance=400_000,
            interest_rate=0.049, remaining_months=240,
        )
        result = DebtAnalyzer().analyze(packet_factory(loans=(loan,)))
        assert not _of_type(result, FindingType.DEBT_REFINANCE)

    def test_small_lifetime_saving_not_flagged(self, packet_factory):
        loan = Loan(
            id="loan-1", loan_type="home-loan", balance=20_000,
            interest_rate=0.06, remaining_months=240,
        )
        result = DebtAnalyzer().analyze(packet_factory(loans=(loan,)))
        assert not _of_type(result, FindingType.DEBT_REFINANCE)

    def test_loan_below_market_rate_not_flagged(self, packet_factory):
        loan = Loan(id="loan-1", loan_type="home-loan", balance=400_000, interest_rate=0.04)
        result = DebtAnalyzer().analyze(packet_factory(loans=(loan,)))
        assert not _of_type(result, FindingType.DEBT_REFINANCE)


# ── Consolidation ─────────────────────────────────────────────────────────────

class TestConsolidation:
    def test_two_high_rate_loans_consolidated(self, packet_factory):
        loans = (
            Loan(id="c1", balance=10_000, interest_rate=0.10, remaining_months=36),
            Loan(id="c2", balance=10_000, interest_rate=0.12, remaining_months=36),
        )
        result = DebtAnalyzer().analyze(packet_factory(loans=loans))
        (cons,) = _of_type(result, FindingType.DEBT_CONSOLIDATE)
        assert cons.id == "consolidate-c1-c2"
        assert cons.evidence.loan_ids == ("c1", "c2")
        assert cons.evidence.weighted_rate == pytest.approx(0.11)
        assert cons.evidence.consolidated_rate == pytest.approx(0.105)
        assert cons.evidence.monthly_savings > 0
        assert cons.evidence.consolidation_costs == pytest.approx(300.0)

    def test_single_high_rate_loan_not_consolidated(self, packet_factory):
        loans = (
            Loan(id="c1", balance=10_000, interest_rate=0.12, remaining_months=36),
            Loan(id="c2", balance=10_000, interest_rate=0.05, remaining_months=36),
        )
        result = DebtAnalyzer().analyze(packet_factory(loans=loans))
        assert not _of_type(result, FindingType.DEBT_CONSOLIDATE)


# ── Early repayment ───────────────────────────────────────────────────────────

class TestEarlyRepayment:
    def test_expensive_loan_flagged_with_capped_extra(self, packet_factory):
        loan = Loan(id="car", balance=25_000, interest_rate=0.115, remaining_months=48)
        packet = packet_factory(
            loans=(loan,),
            cashflow=CashflowSummary(
                monthly_income=10_000, monthly_expenses=6_000, available_cash=30_000,
            ),
        )
        result = DebtAnalyzer().analyze(packet)
        (early,) = _of_type(result, FindingType.DEBT_EARLY_REPAY)
        ev = early.evidence
        assert early.id == "early-repay-car"
        assert ev.yearly_interest_saved == pytest.approx(1_125.0)
        assert ev.extra_payment == pytest.approx(round(loan.payment(), 2))
        assert ev.emergency_fund_months == pytest.approx(5.0)

    def test_loan_below_hurdle_not_flagged(self, packet_factory):
        loan = Loan(id="car", balance=60_000, interest_rate=0.085, remaining_months=48)
        packet = packet_factory(
            loans=(loan,),
            cashflow=CashflowSummary(monthly_income=10_000, monthly_expenses=6_000),
        )
        result = DebtAnalyzer().analyze(packet)
        assert not _of_type(result, FindingType.DEBT_EARLY_REPAY)

    def test_no_surplus_no_early_repayment(self, packet_factory):
        loan = Loan(id="car", balance=25_000, interest_rate=0.115, remaining_months=48)
        packet = packet_factory(
            loans=(loan,),
            cashflow=CashflowSummary(monthly_income=6_000, monthly_expenses=6_000),
        )
        result = DebtAnalyzer().analyze(packet)
        assert not _of_type(result, FindingType.DEBT_EARLY_REPAY)


# ── Offset ────────────────────────────────────────────────────────────────────

class TestOffset:
    def test_idle_cash_flagged(self, packet_factory):
        loan = Loan(id="home", balance=400_000, interest_rate=0.06, offset_balance=0.0)
        packet = packet_factory(
            loans=(loan,),
            cashflow=CashflowSummary(available_cash=30_000),
        )
        result = DebtAnalyzer().analyze(packet)
        (offset,) = _of_type(result, FindingType.DEBT_OFFSET_OPTIMIZE)
        assert offset.evidence.additional_offset == pytest.approx(30_000.0)
        assert offset.evidence.yearly_savings == pytest.approx(1_800.0)
        assert offset.severity == Severity.MEDIUM

    def test_loan_without_offset_facility_skipped(self, packet_factory):
        loan = Loan(id="home", balance=400_000, interest_rate=0.06)
        packet = packet_factory(loans=(loan,), cashflow=CashflowSummary(available_cash=30_000))
        result = DebtAnalyzer().analyze(packet)
        assert not _of_type(result, FindingType.DEBT_OFFSET_OPTIMIZE)


# ── Missing data ──────────────────────────────────────────────────────────────

class TestMissingData:
    def test_no_loans_reports_error(self, packet_factory):
        result = DebtAnalyzer().analyze(packet_factory())
        assert result.findings == []
        assert result.errors == ["No loan data available"]
        assert not result.ok

    def test_no_snapshot_reports_error(self, packet_factory):
        result = DebtAnalyzer().analyze(packet_factory(snapshot=None))
        assert result.errors == ["No loan data available"]
