"""
Report writers for strategy runs and forecasts.

File layout (under ``PipelineConfig.output_dir``):
    recommendations_{user}_{date}.json
    conflicts_{user}_{date}.json
    forecast_{user}_{scenario}_{date}.csv

Files are never deleted or rotated here; each run writes a new dated set.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from wealth_strategist.models.forecast import ForecastResult, YearlyProjection
from wealth_strategist.pipeline.orchestrator import StrategyRunResult

logger = logging.getLogger(__name__)

FORECAST_COLUMNS: list[str] = list(YearlyProjection.model_fields)


def write_recommendations_json(
    result: StrategyRunResult,
    output_dir: Path,
    run_date: Optional[date] = None,
) -> Path:
    """Serialise the run summary and every recommendation record.

    Args:
        result:     Output of ``StrategyOrchestrator.generate()``.
        output_dir: Directory to write into (created if missing).
        run_date:   Date used in the filename; defaults to today.

    Returns:
        Path of the written file.
    """
    path = _dated_path(output_dir, f"recommendations_{result.user_id}", "json", run_date)
    quality = result.quality
    payload = {
        "user_id":        result.user_id,
        "status":         result.status,
        "started_at":     result.started_at,
        "finished_at":    result.finished_at,
        "execution_time_ms": result.execution_time_ms,
        "quality": {
            "overall_score":    quality.overall_score if quality else 0,
            "status":           quality.status if quality else None,
            "limited_mode":     result.limited_mode,
            "completeness":     quality.completeness if quality else {},
            "missing_critical": quality.missing_critical if quality else [],
        },
        "counts": {
            "analyzers_run":   result.analyzers_run,
            "findings":        result.findings_count,
            "rejected":        result.rejected_count,
            "filtered":        result.filtered_count,
            "recommendations": len(result.recommendations),
            "conflicts":       len(result.conflicts),
            "resolved":        len(result.resolved),
            "saved":           result.saved_count,
        },
        "errors": result.errors,
        "resolved_ids": [r.id for r in result.resolved],
        "recommendations": [r.model_dump(mode="json") for r in result.recommendations],
    }
    _write_json(path, payload)
    return path


def write_conflicts_json(
    result: StrategyRunResult,
    output_dir: Path,
    run_date: Optional[date] = None,
) -> Path:
    """Serialise conflict groups with member ids instead of full records."""
    path = _dated_path(output_dir, f"conflicts_{result.user_id}", "json", run_date)
    payload = {
        "user_id": result.user_id,
        "conflicts": [
            {
                "id":                   g.id,
                "type":                 str(g.type),
                "recommendation_ids":   g.recommendation_ids,
                "preferred_id":         g.preferred_id,
                "suggested_resolution": g.suggested_resolution,
                "tradeoffs":            [t.model_dump(mode="json") for t in g.tradeoffs],
            }
            for g in result.conflicts
        ],
    }
    _write_json(path, payload)
    return path


def write_forecast_csv(
    forecast: ForecastResult,
    output_dir: Path,
    user_id: str,
    run_date: Optional[date] = None,
) -> Path:
    """Write one row per projected year.

    Returns:
        Path of the written file.
    """
    path = _dated_path(
        output_dir, f"forecast_{user_id}_{forecast.scenario.lower()}", "csv", run_date
    )
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FORECAST_COLUMNS)
        writer.writeheader()
        writer.writerows(p.model_dump() for p in forecast.projections)
    logger.info("Wrote forecast (%s, %d rows): %s", forecast.scenario, len(forecast.projections), path)
    return path


# ── Helpers ───────────────────────────────────────────────────────────────────

def _dated_path(output_dir: Path, stem: str, suffix: str, run_date: Optional[date]) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    day = (run_date or date.today()).isoformat()
    return output_dir / f"{stem}_{day}.{suffix}"


def _write_json(path: Path, payload: dict) -> None:
    try:
        path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to write report %s: %s", path, exc)
        raise
    logger.info("Wrote report: %s", path)
