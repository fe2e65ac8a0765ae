"""
Map scored findings to persistable ``StrategyRecommendation`` records.

Classification
--------------
category      : from the finding-type prefix (DEBT_, CASHFLOW_, INVESTMENT_,
                PROPERTY_; RISK_ and LIQUIDITY_ → RISK_RESILIENCE; everything
                else → GROWTH).
strategy type : critical → TACTICAL, high → OPERATIONAL, medium → STRATEGIC,
                low → LONG_TERM.
confidence    : data-confidence component ≥ 80 → HIGH, ≥ 60 → MEDIUM, else LOW.

Explainability
--------------
``evidence_lines`` matches each evidence variant to a formatter that turns its
numbers into markdown bullets for the reasoning trace.  The same evidence
is flattened into ``EvidenceGraph.facts``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from wealth_strategist.models.finding import (
    CapitalGrowthEvidence,
    CashReserveEvidence,
    CgtDiscountEvidence,
    ConcentrationEvidence,
    ConsolidationEvidence,
    DebtToIncomeEvidence,
    DeficitEvidence,
    DiversificationEvidence,
    EarlyRepaymentEvidence,
    EmergencyFundEvidence,
    ExpenseRatioEvidence,
    Finding,
    GeographicEvidence,
    IncomeStabilityEvidence,
    LeverageEvidence,
    LiquidityRatioEvidence,
    LossHarvestEvidence,
    OffsetEvidence,
    RebalanceEvidence,
    RefinanceEvidence,
    RentalYieldEvidence,
    RetirementEvidence,
    SurplusAllocationEvidence,
)
from wealth_strategist.models.recommendation import (
    AffectedEntity,
    Alternative,
    EvidenceGraph,
    FinancialImpact,
    LiquidityImpact,
    RiskImpact,
    StrategyRecommendation,
    TaxImpact,
)
from wealth_strategist.scoring.scorer import ScoredFinding, priority_for
from wealth_strategist.taxonomy.strategy_taxonomy import (
    ConfidenceTier,
    EntityType,
    FindingType,
    Severity,
    StrategyCategory,
    StrategyType,
)
from wealth_strategist.utils.time_utils import expiry_after

_CATEGORY_PREFIXES: tuple[tuple[str, StrategyCategory], ...] = (
    ("DEBT_",       StrategyCategory.DEBT),
    ("CASHFLOW_",   StrategyCategory.CASHFLOW),
    ("INVESTMENT_", StrategyCategory.INVESTMENT),
    ("PROPERTY_",   StrategyCategory.PROPERTY),
    ("RISK_",       StrategyCategory.RISK_RESILIENCE),
    ("LIQUIDITY_",  StrategyCategory.RISK_RESILIENCE),
)

_STRATEGY_TYPE_BY_SEVERITY: dict[Severity, StrategyType] = {
    Severity.CRITICAL: StrategyType.TACTICAL,
    Severity.HIGH:     StrategyType.OPERATIONAL,
    Severity.MEDIUM:   StrategyType.STRATEGIC,
    Severity.LOW:      StrategyType.LONG_TERM,
}

_DATA_SOURCES: dict[StrategyCategory, tuple[str, ...]] = {
    StrategyCategory.DEBT:            ("snapshot.loans", "snapshot.cashflow"),
    StrategyCategory.CASHFLOW:        ("snapshot.cashflow", "snapshot.loans"),
    StrategyCategory.INVESTMENT:      ("snapshot.investments", "preferences"),
    StrategyCategory.PROPERTY:        ("snapshot.properties",),
    StrategyCategory.RISK_RESILIENCE: (
        "snapshot.loans", "snapshot.properties", "snapshot.investments", "snapshot.cashflow",
    ),
    StrategyCategory.GROWTH:          ("snapshot", "preferences"),
}


# ── Classification ────────────────────────────────────────────────────────────

def category_for(finding_type: FindingType) -> StrategyCategory:
    for prefix, category in _CATEGORY_PREFIXES:
        if finding_type.startswith(prefix):
            return category
    return StrategyCategory.GROWTH


def strategy_type_for(severity: Severity) -> StrategyType:
    return _STRATEGY_TYPE_BY_SEVERITY[severity]


def confidence_tier(confidence: float) -> ConfidenceTier:
    if confidence >= 80:
        return ConfidenceTier.HIGH
    if confidence >= 60:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


# ── Impact sub-objects ────────────────────────────────────────────────────────

def financial_impact(finding: Finding) -> FinancialImpact:
    ev = finding.evidence
    score = finding.impact.financial
    if isinstance(ev, RefinanceEvidence):
        return FinancialImpact(
            score=score,
            monthly_savings=ev.monthly_savings,
            total_savings=ev.total_savings,
            upfront_cost=ev.refinance_costs,
        )
    if isinstance(ev, ConsolidationEvidence):
        return FinancialImpact(
            score=score,
            monthly_savings=ev.monthly_savings,
            upfront_cost=ev.consolidation_costs,
        )
    if isinstance(ev, EarlyRepaymentEvidence):
        return FinancialImpact(
            score=score,
            monthly_savings=round(ev.yearly_interest_saved / 12, 2),
            total_savings=ev.yearly_interest_saved,
        )
    if isinstance(ev, OffsetEvidence):
        return FinancialImpact(
            score=score,
            monthly_savings=round(ev.yearly_savings / 12, 2),
            total_savings=ev.yearly_savings,
        )
    if isinstance(ev, SurplusAllocationEvidence):
        return FinancialImpact(score=score, monthly_savings=ev.monthly_surplus)
    if isinstance(ev, ExpenseRatioEvidence):
        return FinancialImpact(score=score, monthly_savings=ev.excess_spending or None)
    if isinstance(ev, (LossHarvestEvidence, CgtDiscountEvidence)):
        return FinancialImpact(score=score, total_savings=ev.estimated_tax_saving)
    if isinstance(ev, RetirementEvidence):
        gap = ev.required_monthly_savings - ev.current_monthly_savings
        return FinancialImpact(score=score, monthly_savings=round(gap, 2) if gap > 0 else None)
    return FinancialImpact(score=score)


def risk_impact(finding: Finding) -> RiskImpact:
    score = finding.impact.risk
    if score >= 70:
        description = "Significantly reduces financial risk"
    elif score >= 40:
        description = "Moderately reduces financial risk"
    elif score > 0:
        description = "Slightly reduces financial risk"
    elif score == 0:
        description = "No material change to financial risk"
    else:
        description = "Increases exposure to financial risk"
    return RiskImpact(score=score, description=description)


def liquidity_impact(finding: Finding) -> LiquidityImpact:
    ev = finding.evidence
    cash: Optional[float] = None
    if isinstance(ev, EarlyRepaymentEvidence):
        cash = ev.extra_payment
    elif isinstance(ev, OffsetEvidence):
        cash = ev.additional_offset
    elif isinstance(ev, RefinanceEvidence):
        cash = ev.refinance_costs
    elif isinstance(ev, ConsolidationEvidence):
        cash = ev.consolidation_costs
    elif isinstance(ev, (EmergencyFundEvidence, CashReserveEvidence)) and ev.shortfall > 0:
        cash = ev.shortfall
    return LiquidityImpact(score=finding.impact.liquidity, cash_required=cash)


def tax_impact(finding: Finding) -> TaxImpact:
    ev = finding.evidence
    saving = None
    if isinstance(ev, (LossHarvestEvidence, CgtDiscountEvidence)):
        saving = ev.estimated_tax_saving
    return TaxImpact(score=finding.impact.tax, estimated_saving=saving)


# ── Reasoning trace ───────────────────────────────────────────────────────────

def _money(v: float) -> str:
    return f"${v:,.0f}"


def _pct(v: float) -> str:
    return f"{v:.2%}"


def _dti_lines(ev: DebtToIncomeEvidence) -> list[str]:
    return [
        f"Debt-to-income ratio: {_pct(ev.ratio)} (threshold {_pct(ev.threshold)})",
        f"Monthly repayments: {_money(ev.monthly_debt)}",
        f"Monthly income: {_money(ev.monthly_income)}",
    ]


def _refinance_lines(ev: RefinanceEvidence) -> list[str]:
    return [
        f"Loan {ev.loan_id}: balance {_money(ev.balance)}, {ev.months_left} months left",
        f"Current rate {_pct(ev.current_rate)} vs market {_pct(ev.market_rate)}",
        f"Payment {_money(ev.current_payment)} → {_money(ev.new_payment)} "
        f"(saves {_money(ev.monthly_savings)}/month)",
        f"Refinance costs {_money(ev.refinance_costs)}, break-even in {ev.break_even_months} months",
        f"Lifetime saving after costs: {_money(ev.total_savings)}",
    ]


def _consolidation_lines(ev: ConsolidationEvidence) -> list[str]:
    return [
        f"Loans: {', '.join(ev.loan_ids)} totalling {_money(ev.total_balance)}",
        f"Weighted rate {_pct(ev.weighted_rate)} → consolidated {_pct(ev.consolidated_rate)}",
        f"Payment {_money(ev.current_payment)} → {_money(ev.new_payment)} "
        f"(saves {_money(ev.monthly_savings)}/month)",
        f"Consolidation costs: {_money(ev.consolidation_costs)}",
    ]


def _early_repay_lines(ev: EarlyRepaymentEvidence) -> list[str]:
    return [
        f"Loan {ev.loan_id} rate {_pct(ev.loan_rate)} vs expected return {_pct(ev.investment_return)}",
        f"Extra repayment: {_money(ev.extra_payment)}/month",
        f"Interest saved: {_money(ev.yearly_interest_saved)}/year",
        f"Emergency fund: {ev.emergency_fund_months:.1f} months",
    ]


def _offset_lines(ev: OffsetEvidence) -> list[str]:
    return [
        f"Loan {ev.loan_id} rate {_pct(ev.loan_rate)}",
        f"Offset balance {_money(ev.offset_balance)} of a possible {_money(ev.potential_offset)}",
        f"Additional offset: {_money(ev.additional_offset)}",
        f"Interest saved: {_money(ev.yearly_savings)}/year",
    ]


def _emergency_lines(ev: EmergencyFundEvidence) -> list[str]:
    lines = [
        f"Months covered: {ev.months_covered:.1f} (target {ev.target_months:g})",
        f"Available cash: {_money(ev.available_cash)}",
        f"Monthly essential expenses: {_money(ev.monthly_expenses)}",
    ]
    if ev.shortfall:
        lines.append(f"Shortfall: {_money(ev.shortfall)}")
    if ev.excess:
        lines.append(f"Excess: {_money(ev.excess)}")
    return lines


def _expense_lines(ev: ExpenseRatioEvidence) -> list[str]:
    return [
        f"Expense ratio: {_pct(ev.expense_ratio)} (threshold {_pct(ev.threshold)})",
        f"Income {_money(ev.monthly_income)} vs expenses {_money(ev.monthly_expenses)}",
        f"Excess spending: {_money(ev.excess_spending)}/month",
    ]


def _surplus_lines(ev: SurplusAllocationEvidence) -> list[str]:
    lines = [
        f"Monthly surplus: {_money(ev.monthly_surplus)}",
        f"Emergency fund: {ev.emergency_fund_months:.1f} months",
    ]
    lines.extend(
        f"Priority {a.priority}: {a.target} {_money(a.amount)}/month ({a.reason})"
        for a in ev.allocations
    )
    return lines


def _deficit_lines(ev: DeficitEvidence) -> list[str]:
    return [
        f"Monthly deficit: {_money(-ev.monthly_surplus)}",
        f"Income {_money(ev.monthly_income)} vs expenses {_money(ev.monthly_expenses)}",
    ]


def _stability_lines(ev: IncomeStabilityEvidence) -> list[str]:
    return [
        f"Income stability: {ev.stability_score:.0f}/100 (threshold {ev.threshold:.0f})",
        f"Recommended buffer: {ev.recommended_buffer_months} months",
    ]


def _concentration_lines(ev: ConcentrationEvidence) -> list[str]:
    return [
        f"{ev.holding_name}: {_money(ev.holding_value)} of {_money(ev.portfolio_value)}",
        f"Share: {_pct(ev.percentage)} (limit {_pct(ev.limit)})",
    ]


def _diversification_lines(ev: DiversificationEvidence) -> list[str]:
    return [f"Holdings: {ev.holding_count} (minimum {ev.minimum})"]


def _rebalance_lines(ev: RebalanceEvidence) -> list[str]:
    return [
        f"Risk appetite: {ev.risk_appetite}",
        f"{ev.asset_class}: {_pct(ev.current_percent)} vs target {_pct(ev.target_percent)}",
        f"Drift: {_pct(ev.drift)}",
        f"Adjustment needed: {_money(ev.adjustment_needed)}",
    ]


def _yield_lines(ev: RentalYieldEvidence) -> list[str]:
    return [
        f"Property {ev.property_id}: rent {_money(ev.annual_rent)}/year on {_money(ev.current_value)}",
        f"Rental yield: {_pct(ev.rental_yield)} (threshold {_pct(ev.threshold)})",
    ]


def _growth_lines(ev: CapitalGrowthEvidence) -> list[str]:
    return [
        f"Property {ev.property_id}: {_money(ev.purchase_price)} → {_money(ev.current_value)} "
        f"over {ev.years_held:g} years",
        f"Annual growth: {_pct(ev.annual_growth)} (threshold {_pct(ev.threshold)})",
    ]


def _leverage_lines(ev: LeverageEvidence) -> list[str]:
    return [
        f"Total debt {_money(ev.total_debt)} vs assets {_money(ev.total_assets)}",
        f"Leverage: {_pct(ev.leverage_ratio)} (limit {_pct(ev.limit)})",
    ]


def _geographic_lines(ev: GeographicEvidence) -> list[str]:
    return [f"Location: {ev.location}", f"Properties: {', '.join(ev.property_ids)}"]


def _liquidity_lines(ev: LiquidityRatioEvidence) -> list[str]:
    return [
        f"Liquid assets {_money(ev.liquid_assets)} of {_money(ev.total_assets)}",
        f"Liquidity ratio: {_pct(ev.liquidity_ratio)} (minimum {_pct(ev.minimum)})",
    ]


def _cash_reserve_lines(ev: CashReserveEvidence) -> list[str]:
    return [
        f"Available cash: {_money(ev.available_cash)} (minimum {_money(ev.minimum)})",
        f"Shortfall: {_money(ev.shortfall)}",
    ]


def _loss_harvest_lines(ev: LossHarvestEvidence) -> list[str]:
    return [
        f"Holdings at a loss: {', '.join(ev.holding_ids)}",
        f"Total unrealised loss: {_money(ev.total_loss)}",
        f"Estimated tax saving: {_money(ev.estimated_tax_saving)}",
    ]


def _cgt_lines(ev: CgtDiscountEvidence) -> list[str]:
    return [
        f"Holding {ev.holding_id}: unrealised gain {_money(ev.unrealized_gain)}",
        f"Held {ev.months_held} months; discount applies in {ev.months_to_discount}",
        f"Estimated tax saving: {_money(ev.estimated_tax_saving)}",
    ]


def _retirement_lines(ev: RetirementEvidence) -> list[str]:
    return [
        f"Age {ev.current_age}, retiring at {ev.retirement_age} "
        f"({ev.years_to_retirement} years)",
        f"Net worth {_money(ev.current_net_worth)} → projected {_money(ev.projected_net_worth)}",
        f"Required at retirement: {_money(ev.required_net_worth)}",
        f"Success probability: {ev.success_probability:.0f}%",
        f"Monthly savings {_money(ev.current_monthly_savings)} "
        f"vs required {_money(ev.required_monthly_savings)}",
    ]


def evidence_lines(finding: Finding) -> list[str]:
    match finding.evidence:
        case DebtToIncomeEvidence() as ev:
            return _dti_lines(ev)
        case RefinanceEvidence() as ev:
            return _refinance_lines(ev)
        case ConsolidationEvidence() as ev:
            return _consolidation_lines(ev)
        case EarlyRepaymentEvidence() as ev:
            return _early_repay_lines(ev)
        case OffsetEvidence() as ev:
            return _offset_lines(ev)
        case EmergencyFundEvidence() as ev:
            return _emergency_lines(ev)
        case ExpenseRatioEvidence() as ev:
            return _expense_lines(ev)
        case SurplusAllocationEvidence() as ev:
            return _surplus_lines(ev)
        case DeficitEvidence() as ev:
            return _deficit_lines(ev)
        case IncomeStabilityEvidence() as ev:
            return _stability_lines(ev)
        case ConcentrationEvidence() as ev:
            return _concentration_lines(ev)
        case DiversificationEvidence() as ev:
            return _diversification_lines(ev)
        case RebalanceEvidence() as ev:
            return _rebalance_lines(ev)
        case RentalYieldEvidence() as ev:
            return _yield_lines(ev)
        case CapitalGrowthEvidence() as ev:
            return _growth_lines(ev)
        case LeverageEvidence() as ev:
            return _leverage_lines(ev)
        case GeographicEvidence() as ev:
            return _geographic_lines(ev)
        case LiquidityRatioEvidence() as ev:
            return _liquidity_lines(ev)
        case CashReserveEvidence() as ev:
            return _cash_reserve_lines(ev)
        case LossHarvestEvidence() as ev:
            return _loss_harvest_lines(ev)
        case CgtDiscountEvidence() as ev:
            return _cgt_lines(ev)
        case RetirementEvidence() as ev:
            return _retirement_lines(ev)
    raise TypeError(f"No reasoning-trace formatter for evidence kind '{finding.evidence.kind}'.")


def build_reasoning_trace(scored: ScoredFinding) -> str:
    """Markdown explanation: title, analysis, recommendation, evidence, scores."""
    finding = scored.finding
    imp = finding.impact
    lines = [
        f"### {finding.title}",
        "",
        "**Analysis:**",
        finding.description,
        "",
        "**Recommendation:**",
        finding.suggested_action,
        "",
        "**Evidence:**",
    ]
    lines.extend(f"  • {line}" for line in evidence_lines(finding))
    lines += [
        "",
        "**Impact Score:**",
        f"  • Financial: {imp.financial:g}/100",
        f"  • Risk: {imp.risk:g}/100",
        f"  • Liquidity: {imp.liquidity:g}/100",
        f"  • Tax: {imp.tax:g}/100",
        f"  • Confidence: {scored.confidence:g}/100",
        "",
        f"**Strategic Benefit Score:** {scored.sbs:.1f}",
    ]
    return "\n".join(lines)


# ── Evidence graph & entities ─────────────────────────────────────────────────

def build_evidence_graph(scored: ScoredFinding, category: StrategyCategory) -> EvidenceGraph:
    facts = scored.finding.evidence.model_dump(mode="json", exclude={"kind"})
    return EvidenceGraph(
        analyzer=scored.analyzer,
        data_sources=_DATA_SOURCES[category],
        facts=facts,
    )


def _entity_refs(evidence) -> tuple[tuple[EntityType, str], ...]:
    match evidence:
        case (
            RefinanceEvidence(loan_id=loan_id)
            | EarlyRepaymentEvidence(loan_id=loan_id)
            | OffsetEvidence(loan_id=loan_id)
        ):
            return ((EntityType.LOAN, loan_id),)
        case ConsolidationEvidence(loan_ids=loan_ids):
            return tuple((EntityType.LOAN, i) for i in loan_ids)
        case RentalYieldEvidence(property_id=property_id) | CapitalGrowthEvidence(property_id=property_id):
            return ((EntityType.PROPERTY, property_id),)
        case GeographicEvidence(property_ids=property_ids):
            return tuple((EntityType.PROPERTY, i) for i in property_ids)
        case ConcentrationEvidence(holding_id=holding_id) | CgtDiscountEvidence(holding_id=holding_id):
            return ((EntityType.INVESTMENT, holding_id),)
        case LossHarvestEvidence(holding_ids=holding_ids):
            return tuple((EntityType.INVESTMENT, i) for i in holding_ids)
        case _:
            return ()


def extract_affected_entities(finding: Finding) -> tuple[AffectedEntity, ...]:
    """LOAN / PROPERTY / INVESTMENT references named in the evidence, deduplicated."""
    entities: list[AffectedEntity] = []
    seen: set[str] = set()
    for entity_type, entity_id in _entity_refs(finding.evidence):
        entity = AffectedEntity(entity_type=entity_type, entity_id=entity_id)
        if entity.key not in seen:
            seen.add(entity.key)
            entities.append(entity)
    return tuple(entities)


# ── Record ────────────────────────────────────────────────────────────────────

def recommendation_id(user_id: str, finding_id: str) -> str:
    return f"{user_id}-{finding_id}"


def build_recommendation(
    scored: ScoredFinding,
    user_id: str,
    created_at: datetime,
    ttl_days: int = 30,
    alternatives: Sequence[Alternative] = (),
) -> StrategyRecommendation:
    """Build the persistable record for one safeguard-passed finding."""
    finding = scored.finding
    category = category_for(finding.type)
    return StrategyRecommendation(
        id=recommendation_id(user_id, finding.id),
        user_id=user_id,
        finding_id=finding.id,
        finding_type=finding.type,
        category=category,
        strategy_type=strategy_type_for(finding.severity),
        severity=finding.severity,
        title=finding.title,
        summary=finding.description,
        suggested_action=finding.suggested_action,
        sbs_score=scored.sbs,
        priority=priority_for(scored.sbs),
        score_components=scored.components.as_dict(),
        confidence=confidence_tier(scored.confidence),
        confidence_score=scored.confidence,
        financial_impact=financial_impact(finding),
        risk_impact=risk_impact(finding),
        liquidity_impact=liquidity_impact(finding),
        tax_impact=tax_impact(finding),
        reasoning_trace=build_reasoning_trace(scored),
        evidence_graph=build_evidence_graph(scored, category),
        affected_entities=extract_affected_entities(finding),
        alternatives=tuple(alternatives),
        created_at=created_at,
        expires_at=expiry_after(created_at, ttl_days),
    )
