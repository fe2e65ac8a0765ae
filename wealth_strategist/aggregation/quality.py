"""
Data quality scoring for an assembled ``DataPacket``.

Purpose
-------
``build_quality_report()`` scores how complete each of the five sources is
and combines them into one weighted figure.  That figure drives "limited
mode": when it falls below ``PipelineConfig.limited_mode_threshold`` (60),
only findings with confidence ≥ 80 survive to conflict resolution.

Per-source completeness (0–100)
-------------------------------
snapshot      : net worth 30, properties 20, loans 20, cashflow 15, trends 15
insights      : ≥5 across ≥3 categories → 100; ≥3 across ≥2 → 75; ≥1 → 50
health        : consistency score 40, module health 30, no orphans 15,
                no missing links 15
relationships : entities 50, relationships 50
preferences   : risk appetite 30, time horizon 20, debt comfort 20,
                investment style 15, retirement age 15

Overall = round(0.35·snapshot + 0.20·insights + 0.15·health
                + 0.15·relationships + 0.15·preferences)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from wealth_strategist.models.snapshot import (
    DataPacket,
    HealthMetrics,
    Insight,
    RelationalGraph,
    Snapshot,
    UserPreferences,
)
from wealth_strategist.taxonomy.strategy_taxonomy import ConfidenceTier

SOURCE_WEIGHTS: dict[str, float] = {
    "snapshot":      0.35,
    "insights":      0.20,
    "health":        0.15,
    "relationships": 0.15,
    "preferences":   0.15,
}

QUALITY_EXCELLENT = "Excellent"
QUALITY_GOOD = "Good"
QUALITY_FAIR = "Fair"
QUALITY_LIMITED = "Limited"

LIMITED_MODE_THRESHOLD = 60.0


@dataclass
class DataQualityReport:
    """Completeness of the packet sources.

    Attributes:
        completeness:     Source name → completeness 0–100 (integer-rounded).
        overall_score:    Weighted overall score 0–100.
        missing_critical: Human-readable names of missing critical inputs.
        recommendations:  Suggestions for improving data coverage.
        status:           "Excellent" / "Good" / "Fair" / "Limited".
        limited_mode:     True when ``overall_score`` is below the threshold.
    """

    completeness: dict[str, int]
    overall_score: int
    missing_critical: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    status: str = QUALITY_LIMITED
    limited_mode: bool = True


def build_quality_report(
    packet: DataPacket,
    limited_mode_threshold: float = LIMITED_MODE_THRESHOLD,
) -> DataQualityReport:
    """Score packet completeness and decide whether limited mode applies."""
    completeness = {
        "snapshot":      snapshot_completeness(packet.snapshot),
        "insights":      insights_completeness(packet.insights),
        "health":        health_completeness(packet.health),
        "relationships": relationships_completeness(packet.relationships),
        "preferences":   preferences_completeness(packet.preferences),
    }
    overall = round(sum(completeness[k] * w for k, w in SOURCE_WEIGHTS.items()))

    missing = _missing_critical(packet)
    return DataQualityReport(
        completeness=completeness,
        overall_score=overall,
        missing_critical=missing,
        recommendations=_improvement_recommendations(completeness, missing),
        status=quality_status(overall),
        limited_mode=overall < limited_mode_threshold,
    )


# ── Per-source scoring ────────────────────────────────────────────────────────

def snapshot_completeness(snapshot: Optional[Snapshot]) -> int:
    if snapshot is None:
        return 0
    score = 0
    if snapshot.net_worth is not None:
        score += 30
    if snapshot.properties:
        score += 20
    if snapshot.loans:
        score += 20
    if snapshot.cashflow is not None:
        score += 15
    if snapshot.trends:
        score += 15
    return score


def insights_completeness(insights: tuple[Insight, ...]) -> int:
    count = len(insights)
    categories = len({i.category for i in insights})
    if count >= 5 and categories >= 3:
        return 100
    if count >= 3 and categories >= 2:
        return 75
    if count >= 1:
        return 50
    return 0


def health_completeness(health: Optional[HealthMetrics]) -> int:
    if health is None:
        return 0
    score = 0
    if health.consistency_score is not None:
        score += 40
    if health.module_health:
        score += 30
    if not health.orphans:
        score += 15
    if not health.missing_links:
        score += 15
    return score


def relationships_completeness(graph: Optional[RelationalGraph]) -> int:
    if graph is None:
        return 0
    score = 0
    if graph.entities:
        score += 50
    if graph.relationships:
        score += 50
    return score


def preferences_completeness(preferences: Optional[UserPreferences]) -> int:
    if preferences is None:
        return 0
    score = 0
    if preferences.risk_appetite is not None:
        score += 30
    if preferences.time_horizon is not None:
        score += 20
    if preferences.debt_comfort is not None:
        score += 20
    if preferences.investment_style is not None:
        score += 15
    if preferences.retirement_age is not None:
        score += 15
    return score


# ── Report helpers ────────────────────────────────────────────────────────────

def quality_status(score: float) -> str:
    if score >= 80:
        return QUALITY_EXCELLENT
    if score >= 60:
        return QUALITY_GOOD
    if score >= 40:
        return QUALITY_FAIR
    return QUALITY_LIMITED


def calculate_confidence_level(
    quality_score: float,
    data_age_days: int,
    available_sources: set[str],
) -> ConfidenceTier:
    """Overall confidence in a run's output.

    HIGH needs quality ≥ 80, data no older than 30 days and the snapshot,
    insights and health sources all present; MEDIUM needs quality ≥ 60 and
    data no older than 90 days.
    """
    core = {"snapshot", "insights", "health"}
    if quality_score >= 80 and data_age_days <= 30 and core <= available_sources:
        return ConfidenceTier.HIGH
    if quality_score >= 60 and data_age_days <= 90:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def available_sources(packet: DataPacket) -> set[str]:
    sources = set()
    if packet.snapshot is not None:
        sources.add("snapshot")
    if packet.insights:
        sources.add("insights")
    if packet.health is not None:
        sources.add("health")
    if packet.relationships is not None:
        sources.add("relationships")
    if packet.preferences is not None:
        sources.add("preferences")
    return sources


def _missing_critical(packet: DataPacket) -> list[str]:
    missing: list[str] = []
    if packet.snapshot is None:
        missing.append("Portfolio Snapshot (critical)")
    else:
        if packet.snapshot.net_worth is None:
            missing.append("Net Worth calculation")
        if packet.snapshot.cashflow is None:
            missing.append("Cashflow data")
    if not packet.insights:
        missing.append("Insights Engine data")
    if packet.preferences is None:
        missing.append("User risk preferences (critical)")
    return missing


def _improvement_recommendations(
    completeness: dict[str, int],
    missing_critical: list[str],
) -> list[str]:
    recs: list[str] = []
    if completeness["snapshot"] < 60:
        recs.append("Add properties, loans and cashflow details to complete the portfolio snapshot")
    if completeness["insights"] < 60:
        recs.append("Link more accounts so the insights engine can detect patterns")
    if completeness["preferences"] < 60:
        recs.append("Set risk appetite, time horizon and retirement age in your preferences")
    if completeness["relationships"] < 50:
        recs.append("Link loans to the properties and accounts they relate to")
    if missing_critical:
        recs.append(f"Critical data missing: {', '.join(missing_critical)}")
    return recs
