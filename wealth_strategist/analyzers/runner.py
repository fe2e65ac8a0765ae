"""
Parallel analyzer execution.

The eight analyzers share one immutable ``DataPacket`` and no mutable state,
so they run on a thread pool with a single join.  Results are returned in
registry order regardless of completion order, which keeps downstream
tie-breaks deterministic.

``Analyzer.analyze()`` already converts exceptions into error strings; the
extra guard here covers custom analyzers that do not inherit that behaviour.

Each task runs in a copy of the caller's ``contextvars`` context so log records
keep the run-context fields.
"""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

from wealth_strategist.analyzers.base import AnalysisResult, Analyzer
from wealth_strategist.analyzers.cashflow import CashflowAnalyzer
from wealth_strategist.analyzers.debt import DebtAnalyzer
from wealth_strategist.analyzers.investment import InvestmentAnalyzer
from wealth_strategist.analyzers.liquidity import LiquidityAnalyzer
from wealth_strategist.analyzers.property import PropertyAnalyzer
from wealth_strategist.analyzers.risk import RiskAnalyzer
from wealth_strategist.analyzers.tax import TaxAnalyzer
from wealth_strategist.analyzers.time_horizon import TimeHorizonAnalyzer
from wealth_strategist.config import AnalyzerConfig, SafeguardConfig
from wealth_strategist.models.snapshot import DataPacket

logger = logging.getLogger(__name__)

ANALYZER_CLASSES: tuple[type[Analyzer], ...] = (
    DebtAnalyzer,
    CashflowAnalyzer,
    InvestmentAnalyzer,
    PropertyAnalyzer,
    RiskAnalyzer,
    LiquidityAnalyzer,
    TaxAnalyzer,
    TimeHorizonAnalyzer,
)


def build_analyzers(
    safeguards: Optional[SafeguardConfig] = None,
    settings: Optional[AnalyzerConfig] = None,
) -> list[Analyzer]:
    """Instantiate every registered analyzer with the same configuration."""
    return [cls(safeguards, settings) for cls in ANALYZER_CLASSES]


def run_analyzers(
    packet: DataPacket,
    analyzers: Sequence[Analyzer],
    max_workers: int = 8,
) -> list[AnalysisResult]:
    """Run ``analyzers`` concurrently over ``packet``.

    Args:
        packet:      Shared input.
        analyzers:   Analyzer instances; output order follows this sequence.
        max_workers: Thread pool size.

    Returns:
        One ``AnalysisResult`` per analyzer, in input order.
    """
    if not analyzers:
        return []

    results: list[Optional[AnalysisResult]] = [None] * len(analyzers)
    workers = max(1, min(max_workers, len(analyzers)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="analyze") as pool:
        futures = {
            pool.submit(contextvars.copy_context().run, analyzer.analyze, packet): idx
            for idx, analyzer in enumerate(analyzers)
        }
        for future in as_completed(futures):
            idx = futures[future]
            name = getattr(analyzers[idx], "name", type(analyzers[idx]).__name__)
            try:
                results[idx] = future.result()
            except Exception as exc:
                logger.error("%s raised outside its error guard: %s", name, exc)
                results[idx] = AnalysisResult(
                    analyzer=name, errors=[f"{name} analysis error: {exc}"]
                )

    total = sum(len(r.findings) for r in results)
    failed = [r.analyzer for r in results if r.errors]
    logger.info(
        "Analyzers complete | analyzers=%d | findings=%d | with_errors=%s",
        len(results), total, ", ".join(failed) or "none",
    )
    return results
