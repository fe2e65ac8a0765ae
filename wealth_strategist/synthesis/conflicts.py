"""
Conflict detection and resolution across recommendations.

Three detection passes, each producing ``ConflictGroup`` objects:

1. Mutually exclusive: fixed pairs of finding types that are alternative,
   not additive, actions.  One group per pair present, holding every
   recommendation of either type.
2. Competing priority: two or more recommendations that all draw on the
   monthly surplus.
3. Same entity: two or more recommendations naming the same loan, property
   or holding.

A recommendation can appear in several groups.  Within a group the winner is
the highest SBS; equal scores fall back to the lexically smallest
recommendation id so the result never depends on analyzer completion order.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Sequence

from wealth_strategist.models.recommendation import (
    ConflictGroup,
    StrategyRecommendation,
    TradeoffOption,
)
from wealth_strategist.taxonomy.strategy_taxonomy import (
    ConflictType,
    FindingType,
    StrategyCategory,
)

logger = logging.getLogger(__name__)

MUTUALLY_EXCLUSIVE_PAIRS: tuple[tuple[FindingType, FindingType], ...] = (
    (FindingType.DEBT_REFINANCE, FindingType.DEBT_EARLY_REPAY),
    (FindingType.PROPERTY_LOW_YIELD, FindingType.PROPERTY_LOW_GROWTH),
    (FindingType.CASHFLOW_SURPLUS_ALLOCATION, FindingType.DEBT_EARLY_REPAY),
    (FindingType.CASHFLOW_EMERGENCY_LOW, FindingType.INVESTMENT_REBALANCE),
)

SURPLUS_COMPETING_TYPES: frozenset[FindingType] = frozenset({
    FindingType.CASHFLOW_SURPLUS_ALLOCATION,
    FindingType.DEBT_EARLY_REPAY,
    FindingType.CASHFLOW_EMERGENCY_LOW,
    FindingType.INVESTMENT_REBALANCE,
})

_CATEGORY_TRADEOFFS: dict[StrategyCategory, tuple[tuple[str, ...], tuple[str, ...]]] = {
    StrategyCategory.DEBT: (
        ("Reduces debt burden", "Lowers interest costs"),
        ("Reduces available cash", "Opportunity cost of investing"),
    ),
    StrategyCategory.CASHFLOW: (
        ("Improves monthly flexibility", "Strengthens the safety buffer"),
        ("Requires budget discipline", "Slower wealth building"),
    ),
    StrategyCategory.INVESTMENT: (
        ("Builds long-term wealth", "Potential for higher returns"),
        ("Market risk", "Liquidity reduction"),
    ),
    StrategyCategory.PROPERTY: (
        ("Improves portfolio return", "Uses existing assets"),
        ("High transaction costs", "Slow to implement"),
    ),
    StrategyCategory.RISK_RESILIENCE: (
        ("Improves financial safety", "Reduces stress"),
        ("Lower returns than investing",),
    ),
    StrategyCategory.GROWTH: (
        ("Improves long-term outcome", "Compounds over time"),
        ("Benefits are distant", "Requires sustained commitment"),
    ),
}


# ── Ranking ───────────────────────────────────────────────────────────────────

def _rank_key(rec: StrategyRecommendation) -> tuple[float, str]:
    return (-rec.sbs_score, rec.id)


def preferred_recommendation(recs: Sequence[StrategyRecommendation]) -> StrategyRecommendation:
    """Highest SBS; ties broken by the lexically smallest id."""
    return min(recs, key=_rank_key)


def suggest_resolution(recs: Sequence[StrategyRecommendation]) -> str:
    best = preferred_recommendation(recs)
    return (
        f'Recommendation: Proceed with "{best.title}" (SBS: {best.sbs_score:.1f}) '
        "as it provides the highest strategic benefit. Other options can be "
        "considered subsequently."
    )


def build_tradeoffs(recs: Sequence[StrategyRecommendation]) -> tuple[TradeoffOption, ...]:
    rows = []
    for rec in recs:
        pros, cons = _CATEGORY_TRADEOFFS[rec.category]
        rows.append(TradeoffOption(
            recommendation_id=rec.id,
            title=rec.title,
            sbs_score=rec.sbs_score,
            financial_impact=rec.financial_impact.headline_amount(),
            pros=pros,
            cons=cons,
        ))
    return tuple(rows)


def _group(
    group_id: str,
    conflict_type: ConflictType,
    recs: Sequence[StrategyRecommendation],
) -> ConflictGroup:
    return ConflictGroup(
        id=group_id,
        type=conflict_type,
        recommendations=tuple(recs),
        tradeoffs=build_tradeoffs(recs),
        suggested_resolution=suggest_resolution(recs),
        preferred_id=preferred_recommendation(recs).id,
    )


# ── Detection passes ──────────────────────────────────────────────────────────

def detect_mutually_exclusive(recs: Sequence[StrategyRecommendation]) -> list[ConflictGroup]:
    groups = []
    for first, second in MUTUALLY_EXCLUSIVE_PAIRS:
        left = [r for r in recs if r.finding_type == first]
        right = [r for r in recs if r.finding_type == second]
        if left and right:
            groups.append(_group(
                f"mutually-exclusive-{first}-{second}",
                ConflictType.MUTUALLY_EXCLUSIVE,
                left + right,
            ))
    return groups


def detect_competing_priorities(recs: Sequence[StrategyRecommendation]) -> list[ConflictGroup]:
    competing = [r for r in recs if r.finding_type in SURPLUS_COMPETING_TYPES]
    if len(competing) < 2:
        return []
    return [_group("competing-priority-surplus", ConflictType.COMPETING_PRIORITY, competing)]


def detect_entity_conflicts(recs: Sequence[StrategyRecommendation]) -> list[ConflictGroup]:
    by_entity: dict[str, list[StrategyRecommendation]] = defaultdict(list)
    for rec in recs:
        for entity in rec.affected_entities:
            members = by_entity[entity.key]
            if rec not in members:
                members.append(rec)

    return [
        _group(f"same-entity-{key}", ConflictType.SAME_ENTITY, members)
        for key, members in by_entity.items()
        if len(members) > 1
    ]


def detect_conflicts(recs: Sequence[StrategyRecommendation]) -> list[ConflictGroup]:
    """Run all three passes; groups come back in pass order."""
    groups = (
        detect_mutually_exclusive(recs)
        + detect_competing_priorities(recs)
        + detect_entity_conflicts(recs)
    )
    logger.info("Detected %d conflict group(s) across %d recommendation(s)", len(groups), len(recs))
    return groups


# ── Resolution ────────────────────────────────────────────────────────────────

def auto_resolve_conflicts(
    recs: Iterable[StrategyRecommendation],
    groups: Iterable[ConflictGroup],
) -> list[StrategyRecommendation]:
    """Drop every recommendation that loses in at least one group.

    Recommendations outside any group are kept.  Input order is preserved.
    """
    losers: set[str] = set()
    for group in groups:
        losers.update(rid for rid in group.recommendation_ids if rid != group.preferred_id)
    return [r for r in recs if r.id not in losers]
