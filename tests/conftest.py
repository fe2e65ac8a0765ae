"""
Shared pytest fixtures for the Wealth Strategist test suite.

Provides:
  - ``fixed_now``: the timestamp every deterministic run uses.
  - ``full_payload``: a provider payload with all five sources populated
    (data quality 100), as a plain dict in the JSON export shape.
  - ``sample_packet``: the same payload validated into a ``DataPacket``.
  - ``packet_factory``: builds a ``DataPacket`` from keyword sections, for
    analyzer tests that need one specific situation.
  - ``finding_factory``: builds a valid ``Finding`` of a chosen type.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from wealth_strategist.models.finding import (
    DebtToIncomeEvidence,
    EarlyRepaymentEvidence,
    EmergencyFundEvidence,
    Finding,
    ImpactScore,
    RefinanceEvidence,
    SurplusAllocationEvidence,
)
from wealth_strategist.models.snapshot import (
    CashflowSummary,
    DataPacket,
    Snapshot,
    UserPreferences,
)
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity

FIXED_NOW = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)

_FULL_PAYLOAD: dict[str, Any] = {
    "user_id": "u-100",
    "snapshot": {
        "net_worth": 610_000.0,
        "properties": [
            {
                "id": "prop-home",
                "name": "Family home",
                "purchase_price": 650_000.0,
                "current_value": 900_000.0,
                "years_held": 8,
                "state": "NSW",
            },
            {
                "id": "prop-rental",
                "name": "Parramatta unit",
                "purchase_price": 520_000.0,
                "current_value": 560_000.0,
                "monthly_rent": 1_100.0,
                "is_investment": True,
                "years_held": 6,
                "state": "NSW",
            },
        ],
        "loans": [
            {
                "id": "loan-home",
                "name": "Home loan",
                "loan_type": "home-loan",
                "balance": 400_000.0,
                "interest_rate": 0.06,
                "remaining_months": 240,
                "offset_balance": 0.0,
            },
            {
                "id": "loan-car",
                "name": "Car loan",
                "loan_type": "personal-loan",
                "balance": 25_000.0,
                "interest_rate": 0.115,
                "term_months": 60,
                "remaining_months": 48,
            },
        ],
        "investments": [
            {"id": "h-vas", "name": "VAS", "asset_class": "stocks",
             "current_value": 60_000.0, "cost_base": 45_000.0, "months_held": 30},
            {"id": "h-tech", "name": "Tech ETF", "asset_class": "stocks",
             "current_value": 15_000.0, "cost_base": 19_000.0, "months_held": 14},
            {"id": "h-bond", "name": "Bond fund", "asset_class": "bonds",
             "current_value": 12_000.0, "cost_base": 12_500.0, "months_held": 20},
        ],
        "cashflow": {
            "monthly_income": 14_000.0,
            "monthly_expenses": 8_000.0,
            "monthly_essential_expenses": 6_000.0,
            "available_cash": 30_000.0,
            "income_stability": 85.0,
            "user_age": 40,
        },
        "trends": [
            {"period": "2025-10", "net_worth": 590_000.0},
            {"period": "2025-11", "net_worth": 600_000.0},
            {"period": "2025-12", "net_worth": 610_000.0},
        ],
    },
    "insights": [
        {"id": "i-1", "severity": "high", "category": "debt", "title": "Rate above market"},
        {"id": "i-2", "severity": "medium", "category": "cashflow", "title": "Spending up 8%"},
        {"id": "i-3", "severity": "low", "category": "investment", "title": "Low diversification"},
        {"id": "i-4", "severity": "low", "category": "debt", "title": "Offset unused"},
        {"id": "i-5", "severity": "medium", "category": "property", "title": "Rent below market"},
    ],
    "health": {
        "consistency_score": 92.0,
        "module_health": {"portfolio": 95.0, "cashflow": 88.0},
    },
    "relationships": {
        "entities": [
            {"id": "loan-home", "type": "loan"},
            {"id": "prop-home", "type": "property"},
        ],
        "relationships": [
            {"source": "loan-home", "target": "prop-home", "relation": "secures"},
        ],
    },
    "preferences": {
        "risk_appetite": "moderate",
        "time_horizon": 25,
        "debt_comfort": "medium",
        "investment_style": "index",
        "retirement_age": 65,
    },
}


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def full_payload() -> dict[str, Any]:
    """A deep copy of the complete provider payload; safe to mutate."""
    return copy.deepcopy(_FULL_PAYLOAD)


@pytest.fixture
def sample_packet(full_payload: dict[str, Any]) -> DataPacket:
    """``full_payload`` validated into a ``DataPacket`` at ``FIXED_NOW``."""
    return DataPacket.model_validate({**full_payload, "timestamp": FIXED_NOW})


@pytest.fixture
def packet_factory() -> Callable[..., DataPacket]:
    """Return a builder for minimal packets.

    Usage::

        packet = packet_factory(cashflow=CashflowSummary(...), loans=(...))
        packet = packet_factory(snapshot=None, preferences=UserPreferences(...))
    """

    def _make(
        *,
        snapshot: Any = "build",
        preferences: UserPreferences | None = None,
        user_id: str = "u-test",
        **snapshot_fields: Any,
    ) -> DataPacket:
        if snapshot == "build":
            snapshot = Snapshot(**snapshot_fields)
        return DataPacket(
            user_id=user_id,
            snapshot=snapshot,
            preferences=preferences,
            timestamp=FIXED_NOW,
        )

    return _make


@pytest.fixture
def finding_factory() -> Callable[..., Finding]:
    """Return a builder for valid findings of the common types.

    Supported types: DEBT_HIGH_DTI, DEBT_REFINANCE, DEBT_EARLY_REPAY,
    CASHFLOW_EMERGENCY_LOW, CASHFLOW_SURPLUS_ALLOCATION.  ``impact`` and
    ``evidence`` may be overridden.
    """

    def _evidence(finding_type: FindingType, loan_id: str) -> Any:
        if finding_type == FindingType.DEBT_HIGH_DTI:
            return DebtToIncomeEvidence(
                ratio=0.5, monthly_debt=4_000.0, monthly_income=8_000.0, threshold=0.43,
            )
        if finding_type == FindingType.DEBT_REFINANCE:
            return RefinanceEvidence(
                loan_id=loan_id, balance=400_000.0, current_rate=0.06, market_rate=0.045,
                rate_gap=0.015, months_left=240, current_payment=2_865.72,
                new_payment=2_530.6, monthly_savings=335.12, refinance_costs=8_000.0,
                break_even_months=24, total_savings=72_428.8,
            )
        if finding_type == FindingType.DEBT_EARLY_REPAY:
            return EarlyRepaymentEvidence(
                loan_id=loan_id, loan_rate=0.115, investment_return=0.07,
                extra_payment=650.0, yearly_interest_saved=1_125.0,
                monthly_surplus=6_000.0, emergency_fund_months=5.0,
            )
        if finding_type == FindingType.CASHFLOW_EMERGENCY_LOW:
            return EmergencyFundEvidence(
                months_covered=0.6, target_months=3.0, available_cash=3_000.0,
                monthly_expenses=5_000.0, shortfall=12_000.0,
            )
        if finding_type == FindingType.CASHFLOW_SURPLUS_ALLOCATION:
            return SurplusAllocationEvidence(
                monthly_surplus=2_000.0, emergency_fund_months=4.0, allocations=(),
            )
        raise ValueError(f"finding_factory does not support {finding_type}")

    def _make(
        finding_type: FindingType = FindingType.DEBT_REFINANCE,
        *,
        id: str | None = None,
        severity: Severity = Severity.MEDIUM,
        impact: ImpactScore | None = None,
        evidence: Any = None,
        loan_id: str = "loan-1",
    ) -> Finding:
        return Finding(
            id=id or f"{finding_type.lower()}-{loan_id}",
            type=finding_type,
            severity=severity,
            title=f"Test {finding_type}",
            description="Test description.",
            impact=impact or ImpactScore(financial=60, risk=40, liquidity=20, tax=0, confidence=85),
            evidence=evidence if evidence is not None else _evidence(finding_type, loan_id),
            suggested_action="Do the thing.",
        )

    return _make


@pytest.fixture
def cashflow_factory() -> Callable[..., CashflowSummary]:
    def _make(**fields: Any) -> CashflowSummary:
        defaults = {"monthly_income": 10_000.0, "monthly_expenses": 6_000.0, "available_cash": 30_000.0}
        defaults.update(fields)
        return CashflowSummary(**defaults)

    return _make
