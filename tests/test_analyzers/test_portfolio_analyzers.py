"""
Tests for the balance-sheet analyzers: investment, property, risk, liquidity.

What we test
------------
InvestmentAnalyzer:
  - A holding above 20% of the portfolio → high INVESTMENT_CONCENTRATION.
  - Fewer than 5 holdings → INVESTMENT_DIVERSIFICATION_LOW.
  - Each asset class drifting > 10% from the target for the user's appetite
    → its own INVESTMENT_REBALANCE (medium above 15%); drift that only
    exceeds 10% summed across classes is not flagged, nor is an on-target mix.
  - No holdings → "No investment data available".

PropertyAnalyzer:
  - Gross yield under 3% on an investment property → PROPERTY_LOW_YIELD.
  - Owner-occupied property is never yield-assessed.
  - Annualised growth under 2% after 5+ years → PROPERTY_LOW_GROWTH;
    shorter holding periods are skipped.

RiskAnalyzer:
  - Debt above 80% of assets → RISK_HIGH_LEVERAGE.
  - All properties in one state → RISK_GEOGRAPHIC; mixed states or a single
    property → none.
  - No snapshot → "No portfolio data available".

LiquidityAnalyzer:
  - Liquid share under 10% → LIQUIDITY_LOW (high under 5%).
  - Cash under the 10,000 floor → LIQUIDITY_CASH_LOW with the shortfall.
  - Illiquid holdings do not count as liquid.
"""

from __future__ import annotations

import pytest

from wealth_strategist.analyzers.investment import InvestmentAnalyzer
from wealth_strategist.analyzers.liquidity import LiquidityAnalyzer
from wealth_strategist.analyzers.property import PropertyAnalyzer
from wealth_strategist.analyzers.risk import RiskAnalyzer
from wealth_strategist.models.snapshot import (
    CashflowSummary,
    Holding,
    Loan,
    Property,
    UserPreferences,
)
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, RiskAppetite, Severity


def _of_type(result, finding_type):
    return [f for f in result.findings if f.type == finding_type]


# ── Investment ────────────────────────────────────────────────────────────────

class TestInvestmentAnalyzer:
    def test_concentrated_holding_flagged(self, packet_factory):
        holdings = (Holding(id="big", name="BHP", asset_class="stocks", current_value=50_000),) + tuple(
            Holding(id=f"h{i}", asset_class="stocks", current_value=12_500) for i in range(4)
        )
        result = InvestmentAnalyzer().analyze(packet_factory(investments=holdings))
        (conc,) = _of_type(result, FindingType.INVESTMENT_CONCENTRATION)
        assert conc.id == "concentration-big"
        assert conc.severity == Severity.HIGH
        assert conc.evidence.percentage == pytest.approx(0.5)
        assert not _of_type(result, FindingType.INVESTMENT_DIVERSIFICATION_LOW)

    def test_too_few_holdings(self, packet_factory):
        holdings = tuple(
            Holding(id=f"h{i}", asset_class="stocks", current_value=10_000) for i in range(3)
        )
        result = InvestmentAnalyzer().analyze(packet_factory(investments=holdings))
        (div,) = _of_type(result, FindingType.INVESTMENT_DIVERSIFICATION_LOW)
        assert div.evidence.holding_count == 3
        assert div.evidence.minimum == 5

    def test_drift_uses_user_appetite(self, packet_factory):
        holdings = tuple(
            Holding(id=f"h{i}", asset_class="bonds", current_value=10_000) for i in range(5)
        )
        packet = packet_factory(
            investments=holdings,
            preferences=UserPreferences(risk_appetite=RiskAppetite.AGGRESSIVE),
        )
        found = _of_type(InvestmentAnalyzer().analyze(packet), FindingType.INVESTMENT_REBALANCE)
        by_id = {f.id: f for f in found}
        # cash target is 5%, so its 5% drift stays under the threshold
        assert sorted(by_id) == ["rebalance-bonds", "rebalance-stocks"]

        bonds = by_id["rebalance-bonds"]
        assert bonds.evidence.risk_appetite == RiskAppetite.AGGRESSIVE
        assert bonds.evidence.current_percent == pytest.approx(1.0)
        assert bonds.evidence.target_percent == pytest.approx(0.15)
        assert bonds.evidence.drift == pytest.approx(0.85)
        assert bonds.evidence.adjustment_needed == pytest.approx(-42_500.0)
        assert bonds.severity == Severity.MEDIUM
        assert by_id["rebalance-stocks"].evidence.adjustment_needed == pytest.approx(40_000.0)

    def test_small_drift_is_low_severity(self, packet_factory):
        holdings = (
            Holding(id="s", asset_class="stocks", current_value=72_000),
            Holding(id="b", asset_class="bonds", current_value=22_000),
            Holding(id="c", asset_class="cash", current_value=6_000),
        )
        found = _of_type(
            InvestmentAnalyzer().analyze(packet_factory(investments=holdings)),
            FindingType.INVESTMENT_REBALANCE,
        )
        assert [(f.id, f.severity) for f in found] == [("rebalance-stocks", Severity.LOW)]
        assert found[0].evidence.drift == pytest.approx(0.12)

    def test_drift_judged_per_class(self, packet_factory):
        # 6% + 6% + 0% sums past 10% but no single class crosses it
        holdings = (
            Holding(id="s", asset_class="stocks", current_value=66_000),
            Holding(id="b", asset_class="bonds", current_value=24_000),
            Holding(id="c", asset_class="cash", current_value=10_000),
        )
        result = InvestmentAnalyzer().analyze(packet_factory(investments=holdings))
        assert not _of_type(result, FindingType.INVESTMENT_REBALANCE)

    def test_on_target_mix_not_rebalanced(self, packet_factory):
        holdings = (
            Holding(id="s", asset_class="stocks", current_value=60_000),
            Holding(id="b", asset_class="bonds", current_value=30_000),
            Holding(id="c", asset_class="cash", current_value=10_000),
        )
        result = InvestmentAnalyzer().analyze(packet_factory(investments=holdings))
        assert not _of_type(result, FindingType.INVESTMENT_REBALANCE)

    def test_no_holdings_reports_error(self, packet_factory):
        result = InvestmentAnalyzer().analyze(packet_factory())
        assert result.errors == ["No investment data available"]


# ── Property ──────────────────────────────────────────────────────────────────

class TestPropertyAnalyzer:
    def test_low_rental_yield(self, packet_factory):
        rental = Property(
            id="p1", purchase_price=480_000, current_value=500_000,
            monthly_rent=1_000, is_investment=True,
        )
        (low,) = _of_type(
            PropertyAnalyzer().analyze(packet_factory(properties=(rental,))),
            FindingType.PROPERTY_LOW_YIELD,
        )
        assert low.id == "low-yield-p1"
        assert low.evidence.annual_rent == pytest.approx(12_000.0)
        assert low.evidence.rental_yield == pytest.approx(0.024)

    def test_owner_occupied_not_yield_assessed(self, packet_factory):
        home = Property(id="p1", purchase_price=480_000, current_value=500_000)
        result = PropertyAnalyzer().analyze(packet_factory(properties=(home,)))
        assert not _of_type(result, FindingType.PROPERTY_LOW_YIELD)

    def test_weak_growth_over_long_hold(self, packet_factory):
        prop = Property(id="p1", purchase_price=400_000, current_value=420_000, years_held=10)
        (growth,) = _of_type(
            PropertyAnalyzer().analyze(packet_factory(properties=(prop,))),
            FindingType.PROPERTY_LOW_GROWTH,
        )
        assert growth.evidence.annual_growth == pytest.approx((1.05 ** 0.1) - 1, abs=1e-4)
        assert growth.evidence.annual_growth < 0.02

    def test_short_hold_skips_growth(self, packet_factory):
        prop = Property(id="p1", purchase_price=400_000, current_value=400_000, years_held=3)
        result = PropertyAnalyzer().analyze(packet_factory(properties=(prop,)))
        assert not _of_type(result, FindingType.PROPERTY_LOW_GROWTH)

    def test_no_properties_reports_error(self, packet_factory):
        result = PropertyAnalyzer().analyze(packet_factory())
        assert result.errors == ["No property data available"]


# ── Risk ──────────────────────────────────────────────────────────────────────

class TestRiskAnalyzer:
    def test_high_leverage(self, packet_factory):
        packet = packet_factory(
            properties=(Property(id="p1", purchase_price=500_000, current_value=500_000),),
            loans=(Loan(id="l1", balance=450_000, interest_rate=0.06),),
        )
        (lev,) = _of_type(RiskAnalyzer().analyze(packet), FindingType.RISK_HIGH_LEVERAGE)
        assert lev.evidence.leverage_ratio == pytest.approx(0.9)
        assert lev.severity == Severity.HIGH

    def test_moderate_leverage_not_flagged(self, packet_factory):
        packet = packet_factory(
            properties=(Property(id="p1", purchase_price=500_000, current_value=500_000),),
            loans=(Loan(id="l1", balance=300_000, interest_rate=0.06),),
        )
        assert not _of_type(RiskAnalyzer().analyze(packet), FindingType.RISK_HIGH_LEVERAGE)

    def test_single_state_concentration(self, packet_factory):
        props = (
            Property(id="p1", purchase_price=1, current_value=1, state="VIC"),
            Property(id="p2", purchase_price=1, current_value=1, state="VIC"),
        )
        (geo,) = _of_type(
            RiskAnalyzer().analyze(packet_factory(properties=props)),
            FindingType.RISK_GEOGRAPHIC,
        )
        assert geo.id == "geographic-vic"
        assert geo.evidence.property_ids == ("p1", "p2")

    @pytest.mark.parametrize("states", [("VIC", "QLD"), ("VIC",), ("VIC", None)])
    def test_spread_or_unknown_locations_not_flagged(self, packet_factory, states):
        props = tuple(
            Property(id=f"p{i}", purchase_price=1, current_value=1, state=s)
            for i, s in enumerate(states)
        )
        result = RiskAnalyzer().analyze(packet_factory(properties=props))
        assert not _of_type(result, FindingType.RISK_GEOGRAPHIC)

    def test_no_snapshot_reports_error(self, packet_factory):
        result = RiskAnalyzer().analyze(packet_factory(snapshot=None))
        assert result.errors == ["No portfolio data available"]


# ── Liquidity ─────────────────────────────────────────────────────────────────

class TestLiquidityAnalyzer:
    def test_illiquid_balance_sheet(self, packet_factory):
        packet = packet_factory(
            cashflow=CashflowSummary(available_cash=5_000),
            properties=(Property(id="p1", purchase_price=500_000, current_value=500_000),),
        )
        result = LiquidityAnalyzer().analyze(packet)
        (low,) = _of_type(result, FindingType.LIQUIDITY_LOW)
        assert low.severity == Severity.HIGH
        assert low.evidence.liquidity_ratio == pytest.approx(5_000 / 505_000)
        (cash,) = _of_type(result, FindingType.LIQUIDITY_CASH_LOW)
        assert cash.severity == Severity.MEDIUM
        assert cash.evidence.shortfall == pytest.approx(5_000.0)

    def test_illiquid_holdings_excluded(self, packet_factory):
        packet = packet_factory(
            cashflow=CashflowSummary(available_cash=20_000),
            investments=(Holding(id="super", current_value=400_000, is_liquid=False),),
        )
        (low,) = _of_type(LiquidityAnalyzer().analyze(packet), FindingType.LIQUIDITY_LOW)
        assert low.evidence.liquid_assets == pytest.approx(20_000.0)
        assert low.evidence.total_assets == pytest.approx(420_000.0)

    def test_healthy_position_has_no_findings(self, packet_factory):
        packet = packet_factory(
            cashflow=CashflowSummary(available_cash=50_000),
            investments=(Holding(id="etf", current_value=100_000),),
            properties=(Property(id="p1", purchase_price=300_000, current_value=300_000),),
        )
        result = LiquidityAnalyzer().analyze(packet)
        assert result.findings == []
        assert result.ok
