"""
Finding models: the typed output of every analyzer.

A ``Finding`` pairs a ``FindingType`` tag with exactly one evidence record.
Evidence is a pydantic discriminated union on ``kind``; each variant carries
the numbers that justify its finding type and nothing else.  Scoring, the
safeguard validator and the reasoning-trace builder all dispatch on the
evidence class, so adding a variant means adding a branch in each of them.

``EVIDENCE_KIND_BY_TYPE`` pins which evidence kind each finding type may
carry; ``Finding`` rejects any other combination at construction time.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, RiskAppetite, Severity


class ImpactScore(BaseModel):
    """Five independently bounded impact sub-scores.

    Attributes:
        financial: Money gained or saved, 0–100.
        risk: Risk reduced, 0–100.
        liquidity: Liquidity improvement; negative when the action locks up cash.
        tax: Tax benefit; negative when the action triggers tax.
        confidence: Confidence in the underlying data, 0–100.  ``None`` lets
            the scorer apply its moderate default.
    """

    model_config = ConfigDict(frozen=True)

    financial: float
    risk: float
    liquidity: float
    tax: float
    confidence: Optional[float] = None

    @field_validator("financial", "risk", "liquidity", "tax", "confidence")
    @classmethod
    def validate_bounds(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not -100.0 <= v <= 100.0:
            raise ValueError(f"Impact sub-scores must be in [-100, 100], got {v}.")
        return v


# ── Evidence variants ─────────────────────────────────────────────────────────


class _Evidence(BaseModel):
    model_config = ConfigDict(frozen=True)


class DebtToIncomeEvidence(_Evidence):
    kind: Literal["debt_to_income"] = "debt_to_income"
    ratio: float
    monthly_debt: float
    monthly_income: float
    threshold: float


class RefinanceEvidence(_Evidence):
    kind: Literal["refinance"] = "refinance"
    loan_id: str
    balance: float
    current_rate: float
    market_rate: float
    rate_gap: float
    months_left: int
    current_payment: float
    new_payment: float
    monthly_savings: float
    refinance_costs: float
    break_even_months: int
    total_savings: float


class ConsolidationEvidence(_Evidence):
    kind: Literal["consolidation"] = "consolidation"
    loan_ids: tuple[str, ...]
    total_balance: float
    weighted_rate: float
    consolidated_rate: float
    current_payment: float
    new_payment: float
    monthly_savings: float
    consolidation_costs: float


class EarlyRepaymentEvidence(_Evidence):
    kind: Literal["early_repayment"] = "early_repayment"
    loan_id: str
    loan_rate: float
    investment_return: float
    extra_payment: float
    yearly_interest_saved: float
    monthly_surplus: float
    emergency_fund_months: float


class OffsetEvidence(_Evidence):
    kind: Literal["offset"] = "offset"
    loan_id: str
    loan_rate: float
    offset_balance: float
    available_cash: float
    potential_offset: float
    additional_offset: float
    yearly_savings: float


class EmergencyFundEvidence(_Evidence):
    kind: Literal["emergency_fund"] = "emergency_fund"
    months_covered: float
    target_months: float
    available_cash: float
    monthly_expenses: float
    shortfall: float = 0.0
    excess: float = 0.0


class ExpenseRatioEvidence(_Evidence):
    kind: Literal["expense_ratio"] = "expense_ratio"
    expense_ratio: float
    threshold: float
    monthly_income: float
    monthly_expenses: float
    excess_spending: float


class AllocationPriority(BaseModel):
    """One slice of a surplus-allocation plan, in priority order."""

    model_config = ConfigDict(frozen=True)

    priority: int
    target: str
    amount: float
    reason: str


class SurplusAllocationEvidence(_Evidence):
    kind: Literal["surplus_allocation"] = "surplus_allocation"
    monthly_surplus: float
    emergency_fund_months: float
    allocations: tuple[AllocationPriority, ...]


class DeficitEvidence(_Evidence):
    kind: Literal["deficit"] = "deficit"
    monthly_surplus: float
    monthly_income: float
    monthly_expenses: float


class IncomeStabilityEvidence(_Evidence):
    kind: Literal["income_stability"] = "income_stability"
    stability_score: float
    threshold: float
    recommended_buffer_months: int


class ConcentrationEvidence(_Evidence):
    kind: Literal["concentration"] = "concentration"
    holding_id: str
    holding_name: str
    holding_value: float
    portfolio_value: float
    percentage: float
    limit: float


class DiversificationEvidence(_Evidence):
    kind: Literal["diversification"] = "diversification"
    holding_count: int
    minimum: int


class RebalanceEvidence(_Evidence):
    kind: Literal["rebalance"] = "rebalance"
    risk_appetite: RiskAppetite
    asset_class: str
    current_percent: float
    target_percent: float
    drift: float
    current_value: float
    target_value: float
    adjustment_needed: float


class RentalYieldEvidence(_Evidence):
    kind: Literal["rental_yield"] = "rental_yield"
    property_id: str
    annual_rent: float
    current_value: float
    rental_yield: float
    threshold: float


class CapitalGrowthEvidence(_Evidence):
    kind: Literal["capital_growth"] = "capital_growth"
    property_id: str
    purchase_price: float
    current_value: float
    years_held: float
    annual_growth: float
    threshold: float


class LeverageEvidence(_Evidence):
    kind: Literal["leverage"] = "leverage"
    total_debt: float
    total_assets: float
    leverage_ratio: float
    limit: float


class GeographicEvidence(_Evidence):
    kind: Literal["geographic"] = "geographic"
    location: str
    property_ids: tuple[str, ...]


class LiquidityRatioEvidence(_Evidence):
    kind: Literal["liquidity_ratio"] = "liquidity_ratio"
    liquid_assets: float
    total_assets: float
    liquidity_ratio: float
    minimum: float


class CashReserveEvidence(_Evidence):
    kind: Literal["cash_reserve"] = "cash_reserve"
    available_cash: float
    minimum: float
    shortfall: float


class LossHarvestEvidence(_Evidence):
    kind: Literal["loss_harvest"] = "loss_harvest"
    holding_ids: tuple[str, ...]
    total_loss: float
    estimated_tax_saving: float


class CgtDiscountEvidence(_Evidence):
    kind: Literal["cgt_discount"] = "cgt_discount"
    holding_id: str
    unrealized_gain: float
    months_held: int
    months_to_discount: int
    estimated_tax_saving: float


class RetirementEvidence(_Evidence):
    kind: Literal["retirement"] = "retirement"
    current_age: int
    retirement_age: int
    years_to_retirement: int
    current_net_worth: float
    projected_net_worth: float
    required_net_worth: float
    success_probability: float
    current_monthly_savings: float
    required_monthly_savings: float


Evidence = Annotated[
    Union[
        DebtToIncomeEvidence,
        RefinanceEvidence,
        ConsolidationEvidence,
        EarlyRepaymentEvidence,
        OffsetEvidence,
        EmergencyFundEvidence,
        ExpenseRatioEvidence,
        SurplusAllocationEvidence,
        DeficitEvidence,
        IncomeStabilityEvidence,
        ConcentrationEvidence,
        DiversificationEvidence,
        RebalanceEvidence,
        RentalYieldEvidence,
        CapitalGrowthEvidence,
        LeverageEvidence,
        GeographicEvidence,
        LiquidityRatioEvidence,
        CashReserveEvidence,
        LossHarvestEvidence,
        CgtDiscountEvidence,
        RetirementEvidence,
    ],
    Field(discriminator="kind"),
]

EVIDENCE_KIND_BY_TYPE: dict[FindingType, str] = {
    FindingType.DEBT_HIGH_DTI: "debt_to_income",
    FindingType.DEBT_MODERATE_DTI: "debt_to_income",
    FindingType.DEBT_REFINANCE: "refinance",
    FindingType.DEBT_CONSOLIDATE: "consolidation",
    FindingType.DEBT_EARLY_REPAY: "early_repayment",
    FindingType.DEBT_OFFSET_OPTIMIZE: "offset",
    FindingType.CASHFLOW_EMERGENCY_LOW: "emergency_fund",
    FindingType.CASHFLOW_EMERGENCY_EXCESS: "emergency_fund",
    FindingType.CASHFLOW_SPENDING_HIGH: "expense_ratio",
    FindingType.CASHFLOW_SPENDING_MODERATE: "expense_ratio",
    FindingType.CASHFLOW_SURPLUS_ALLOCATION: "surplus_allocation",
    FindingType.CASHFLOW_DEFICIT: "deficit",
    FindingType.CASHFLOW_INCOME_UNSTABLE: "income_stability",
    FindingType.INVESTMENT_CONCENTRATION: "concentration",
    FindingType.INVESTMENT_DIVERSIFICATION_LOW: "diversification",
    FindingType.INVESTMENT_REBALANCE: "rebalance",
    FindingType.PROPERTY_LOW_YIELD: "rental_yield",
    FindingType.PROPERTY_LOW_GROWTH: "capital_growth",
    FindingType.RISK_HIGH_LEVERAGE: "leverage",
    FindingType.RISK_GEOGRAPHIC: "geographic",
    FindingType.LIQUIDITY_LOW: "liquidity_ratio",
    FindingType.LIQUIDITY_CASH_LOW: "cash_reserve",
    FindingType.TAX_LOSS_HARVEST: "loss_harvest",
    FindingType.TAX_CGT_DISCOUNT: "cgt_discount",
    FindingType.RETIREMENT_SHORTFALL: "retirement",
    FindingType.RETIREMENT_ON_TRACK: "retirement",
}


class Finding(BaseModel):
    """One analyzer observation.

    Attributes:
        id: Deterministic id, e.g. ``"refinance-loan-1"``; stable across runs
            for the same snapshot.
        type: Finding type tag.
        severity: Urgency.
        title: Short headline.
        description: One or two sentences explaining the observation.
        impact: Impact sub-scores feeding the SBS.
        evidence: Typed supporting numbers.
        suggested_action: What the user should do.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: FindingType
    severity: Severity
    title: str
    description: str
    impact: ImpactScore
    evidence: Evidence
    suggested_action: str

    @model_validator(mode="after")
    def validate_evidence_kind(self) -> "Finding":
        expected = EVIDENCE_KIND_BY_TYPE[self.type]
        if self.evidence.kind != expected:
            raise ValueError(
                f"{self.type} findings carry '{expected}' evidence, "
                f"got '{self.evidence.kind}'."
            )
        return self
