"""
Strategy generation orchestration.

``StrategyOrchestrator.generate()`` runs the recommendation pipeline for one
user in a fixed sequence:

  Step 1 (Collect):      Fan out to the five providers, build the DataPacket.
  Step 2 (Quality):      Score source completeness; decide limited mode.
  Step 3 (Analyze):      Run the eight analyzers concurrently.
  Step 4 (Score):        SBS per finding, ranked descending.
  Step 5 (Safeguards):   Drop findings that breach hard limits; then, in
                         limited mode, drop findings below the confidence floor.
  Step 6 (Synthesize):   Map to records with alternatives, detect conflicts,
                         resolve each group to its preferred record, persist
                         through the sink.

Failure isolation
-----------------
- Provider failure:        Source becomes None / empty; run continues.
- Analyzer failure:        Recorded in that analyzer's errors; others continue.
- Safeguard rejection:     Not an error; logged at WARNING and counted.
- Persistence failure:     Per record; logged, remaining records still saved.
- Aggregator failure:      Fatal.  Result has no recommendations, quality 0,
                           limited mode on, and one top-level error.

Forecasts run separately through ``forecast()`` / ``forecast_all()`` and are
never on the recommendation path.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Protocol

from wealth_strategist.aggregation.collector import collect_data_packet
from wealth_strategist.aggregation.providers import DataProviders
from wealth_strategist.aggregation.quality import DataQualityReport, build_quality_report
from wealth_strategist.analyzers.runner import build_analyzers, run_analyzers
from wealth_strategist.config import AppConfig
from wealth_strategist.forecasting.engine import generate_all_scenarios, generate_forecast
from wealth_strategist.models.forecast import ForecastResult
from wealth_strategist.models.recommendation import ConflictGroup, StrategyRecommendation
from wealth_strategist.models.snapshot import DataPacket
from wealth_strategist.scoring.safeguards import apply_safeguards
from wealth_strategist.scoring.scorer import ScoredFinding, rank_scored, score_findings
from wealth_strategist.synthesis.alternatives import generate_alternatives
from wealth_strategist.synthesis.conflicts import auto_resolve_conflicts, detect_conflicts
from wealth_strategist.synthesis.recommendations import build_recommendation
from wealth_strategist.taxonomy.strategy_taxonomy import Scenario
from wealth_strategist.utils.logging import run_context
from wealth_strategist.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


# ── Persistence boundary ──────────────────────────────────────────────────────

class RecommendationSink(Protocol):
    """Where generated records go.  Implemented outside this package."""

    def expire_stale(self, user_id: str, before: datetime) -> int: ...

    def save(self, record: StrategyRecommendation) -> None: ...


class InMemoryRecommendationSink:
    """Dict-backed sink for the CLI and tests.

    ``active[user_id]`` holds the current records; ``expire_stale`` moves
    records created before the cutoff into ``expired[user_id]``.
    """

    def __init__(self) -> None:
        self.active: dict[str, list[StrategyRecommendation]] = {}
        self.expired: dict[str, list[StrategyRecommendation]] = {}

    def expire_stale(self, user_id: str, before: datetime) -> int:
        current = self.active.get(user_id, [])
        stale = [r for r in current if r.created_at < before]
        self.active[user_id] = [r for r in current if r.created_at >= before]
        self.expired.setdefault(user_id, []).extend(stale)
        return len(stale)

    def save(self, record: StrategyRecommendation) -> None:
        self.active.setdefault(record.user_id, []).append(record)


# ── Result type ───────────────────────────────────────────────────────────────

@dataclass
class StrategyRunResult:
    """Outcome of one ``generate()`` call.

    Attributes:
        user_id:           User the run was for.
        recommendations:   Records in SBS order (highest first).
        conflicts:         Conflict groups over ``recommendations``.
        resolved:          ``recommendations`` minus the losers of every conflict
                           group; the non-conflicting action list.
        quality:           Data-quality report (overall 0 on a fatal run).
        analyzers_run:     Number of analyzers executed.
        findings_count:    Raw findings across all analyzers.
        rejected_count:    Findings dropped by safeguards.
        filtered_count:    Findings dropped by the limited-mode confidence gate.
        saved_count:       Records the sink accepted.
        errors:            Analyzer, persistence or fatal error messages.
        status:            "success", "partial" or "failed".
        execution_time_ms: Wall-clock duration.
    """

    user_id:           str
    recommendations:   list[StrategyRecommendation] = field(default_factory=list)
    conflicts:         list[ConflictGroup]          = field(default_factory=list)
    resolved:          list[StrategyRecommendation] = field(default_factory=list)
    quality:           Optional[DataQualityReport]  = None
    analyzers_run:     int                          = 0
    findings_count:    int                          = 0
    rejected_count:    int                          = 0
    filtered_count:    int                          = 0
    saved_count:       int                          = 0
    errors:            list[str]                    = field(default_factory=list)
    status:            str                          = "started"
    started_at:        Optional[datetime]           = None
    finished_at:       Optional[datetime]           = None
    execution_time_ms: float                        = 0.0

    @property
    def limited_mode(self) -> bool:
        return self.quality.limited_mode if self.quality else True


# ── Orchestrator ──────────────────────────────────────────────────────────────

class StrategyOrchestrator:
    """Coordinates recommendation generation and forecasting for one user.

    Args:
        config:    AppConfig for this run.
        providers: The five data sources.
        sink:      Persistence target; defaults to an in-memory sink.
    """

    def __init__(
        self,
        config: AppConfig,
        providers: DataProviders,
        sink: Optional[RecommendationSink] = None,
    ) -> None:
        self.config = config
        self.providers = providers
        self.sink = sink if sink is not None else InMemoryRecommendationSink()

    def collect(self, user_id: str, now: Optional[datetime] = None) -> DataPacket:
        return collect_data_packet(
            user_id, self.providers, max_workers=self.config.pipeline.max_workers, now=now,
        )

    def generate(self, user_id: str, now: Optional[datetime] = None) -> StrategyRunResult:
        """Run the full recommendation pipeline for ``user_id``.

        Every record logged during the run carries ``user_id``.
        """
        with run_context(user_id=user_id):
            return self._generate(user_id, now)

    def _generate(self, user_id: str, now: Optional[datetime]) -> StrategyRunResult:
        started = now or utcnow()
        t0 = time.monotonic()
        result = StrategyRunResult(user_id=user_id, started_at=started)
        pipeline = self.config.pipeline

        # ── Step 1: Collect ───────────────────────────────────────────────────
        logger.info("[1/6] Collecting data for user=%s ...", user_id)
        try:
            packet = self.collect(user_id, now=started)
        except Exception as exc:
            logger.error("Strategy generation failed for user=%s: %s", user_id, exc)
            result.quality = DataQualityReport(completeness={}, overall_score=0, limited_mode=True)
            result.errors = [f"Strategy generation failed: {exc}"]
            result.status = "failed"
            return self._finish(result, t0)

        # ── Step 2: Quality ───────────────────────────────────────────────────
        logger.info("[2/6] Scoring data quality ...")
        quality = build_quality_report(packet, pipeline.limited_mode_threshold)
        result.quality = quality
        if quality.limited_mode:
            logger.warning(
                "Limited mode for user=%s | quality=%d < %.0f | missing=%s",
                user_id, quality.overall_score, pipeline.limited_mode_threshold,
                ", ".join(quality.missing_critical) or "none",
            )

        # ── Step 3: Analyze ───────────────────────────────────────────────────
        logger.info("[3/6] Running analyzers ...")
        analyzers = build_analyzers(self.config.safeguards, self.config.analyzer)
        analysis = run_analyzers(packet, analyzers, pipeline.max_workers)
        result.analyzers_run = len(analysis)
        pairs = []
        for res in analysis:
            pairs.extend((res.analyzer, f) for f in res.findings)
            result.errors.extend(f"{res.analyzer}: {err}" for err in res.errors)
        result.findings_count = len(pairs)

        # ── Step 4: Score ─────────────────────────────────────────────────────
        logger.info("[4/6] Scoring %d finding(s) ...", len(pairs))
        scored = rank_scored(score_findings(pairs, self.config.scoring))

        # ── Step 5: Safeguards + limited-mode gate ────────────────────────────
        logger.info("[5/6] Applying safeguards ...")
        passed, rejected = apply_safeguards(scored, self.config.safeguards)
        result.rejected_count = len(rejected)
        if quality.limited_mode:
            passed, result.filtered_count = self._confidence_gate(passed)

        # ── Step 6: Synthesize + persist ──────────────────────────────────────
        logger.info("[6/6] Building %d recommendation(s) ...", len(passed))
        result.recommendations = [
            build_recommendation(
                item,
                user_id,
                created_at=started,
                ttl_days=pipeline.recommendation_ttl_days,
                alternatives=generate_alternatives(item),
            )
            for item in passed
        ]
        result.conflicts = detect_conflicts(result.recommendations)
        result.resolved = auto_resolve_conflicts(result.recommendations, result.conflicts)
        self._persist(user_id, started, result)

        if not result.errors:
            result.status = "success"
        else:
            result.status = "partial"
        return self._finish(result, t0)

    def forecast(
        self,
        user_id: str,
        scenario: Scenario = Scenario.DEFAULT,
        overrides: Optional[Mapping[str, float]] = None,
    ) -> ForecastResult:
        with run_context(user_id=user_id, scenario=str(scenario)):
            packet = self.collect(user_id)
            return generate_forecast(packet, scenario, self.config.forecast, overrides)

    def forecast_all(
        self,
        user_id: str,
        overrides: Optional[Mapping[str, float]] = None,
    ) -> dict[Scenario, ForecastResult]:
        with run_context(user_id=user_id):
            packet = self.collect(user_id)
            return generate_all_scenarios(packet, self.config.forecast, overrides)

    # ── Private helpers ───────────────────────────────────────────────────────

    def _confidence_gate(self, scored: list[ScoredFinding]) -> tuple[list[ScoredFinding], int]:
        floor = self.config.pipeline.limited_mode_min_confidence
        kept = [s for s in scored if s.confidence >= floor]
        dropped = len(scored) - len(kept)
        if dropped:
            logger.info("Limited mode dropped %d finding(s) below confidence %.0f", dropped, floor)
        return kept, dropped

    def _persist(self, user_id: str, started: datetime, result: StrategyRunResult) -> None:
        try:
            expired = self.sink.expire_stale(user_id, started)
            logger.debug("Expired %d stale recommendation(s) for user=%s", expired, user_id)
        except Exception as exc:
            logger.error("Failed to expire stale recommendations for user=%s: %s", user_id, exc)
            result.errors.append(f"expire_stale failed: {exc}")

        for record in result.recommendations:
            try:
                self.sink.save(record)
                result.saved_count += 1
            except Exception as exc:
                logger.error("Failed to save recommendation %s: %s", record.id, exc)
                result.errors.append(f"save failed for {record.id}: {exc}")

    def _finish(self, result: StrategyRunResult, t0: float) -> StrategyRunResult:
        result.finished_at = utcnow()
        result.execution_time_ms = round((time.monotonic() - t0) * 1000, 1)
        logger.info(
            "Strategy generation finished | user=%s status=%s | findings=%d rejected=%d "
            "filtered=%d recommendations=%d conflicts=%d resolved=%d saved=%d errors=%d | %.0f ms",
            result.user_id, result.status, result.findings_count, result.rejected_count,
            result.filtered_count, len(result.recommendations), len(result.conflicts),
            len(result.resolved), result.saved_count, len(result.errors), result.execution_time_ms,
        )
        return result
