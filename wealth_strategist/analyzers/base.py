"""
Abstract base class for all analyzers.

Every analyzer follows the same contract:
  1. Receive ``SafeguardConfig`` and ``AnalyzerConfig`` at construction.
  2. ``analyze(packet)`` is the sole public API and never raises.
  3. ``analyze()`` times the call, invokes ``_analyze()`` with an empty
     findings list, and converts any exception into an error string.
  4. ``_analyze()`` is the analyzer-specific implementation (overridden by
     subclasses).  It appends to the list it is given, so findings emitted
     before a failure are kept.

Missing input is not a failure: a subclass raises ``MissingDataError`` with a
descriptive message (e.g. "No loan data available") and the result carries
that message with no findings.

Usage::

    class MyAnalyzer(Analyzer):
        name = "MyAnalyzer"

        def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
            snapshot = self._require_snapshot(packet)
            ...
            findings.append(Finding(...))

    result = MyAnalyzer(safeguards, settings).analyze(packet)
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from wealth_strategist.config import AnalyzerConfig, SafeguardConfig
from wealth_strategist.errors import MissingDataError
from wealth_strategist.models.finding import Finding, ImpactScore
from wealth_strategist.models.snapshot import DataPacket, Snapshot

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of one analyzer run.

    Attributes:
        analyzer:          Analyzer name, e.g. ``"DebtAnalyzer"``.
        findings:          Findings emitted (possibly partial after an error).
        execution_time_ms: Wall-clock time spent in ``_analyze()``.
        errors:            Missing-data notices and caught exception messages.
    """

    analyzer: str
    findings: list[Finding] = field(default_factory=list)
    execution_time_ms: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Analyzer(ABC):
    """Abstract base for the eight rule-based analyzers.

    Attributes:
        name:       Display name used in results and error strings.
        safeguards: Policy thresholds (read-only).
        settings:   Market rates and soft constants (read-only).
    """

    name: str  # Override in subclass

    def __init__(
        self,
        safeguards: Optional[SafeguardConfig] = None,
        settings: Optional[AnalyzerConfig] = None,
    ) -> None:
        self.safeguards = safeguards or SafeguardConfig()
        self.settings = settings or AnalyzerConfig()

    def analyze(self, packet: DataPacket) -> AnalysisResult:
        """Run this analyzer over ``packet``.

        Returns:
            ``AnalysisResult``; ``errors`` is non-empty when input was missing
            or the analyzer failed part-way.
        """
        result = AnalysisResult(analyzer=self.name)
        t0 = time.perf_counter()
        try:
            self._analyze(packet, result.findings)
        except MissingDataError as exc:
            result.errors.append(str(exc))
            logger.info("%s skipped: %s", self.name, exc)
        except Exception as exc:
            result.errors.append(f"{self.name} analysis error: {exc}")
            logger.error(
                "%s FAILED after %d finding(s): %s",
                self.name, len(result.findings), exc,
            )
        result.execution_time_ms = (time.perf_counter() - t0) * 1000
        logger.debug(
            "%s completed | findings=%d | %.1f ms",
            self.name, len(result.findings), result.execution_time_ms,
        )
        return result

    @abstractmethod
    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        """Analyzer-specific implementation.

        Args:
            packet:   The shared, immutable data packet.
            findings: Output list; append each finding as soon as it is built.

        Raises:
            MissingDataError: When a required packet section is absent.
        """
        ...

    def _require_snapshot(self, packet: DataPacket, what: str = "portfolio") -> Snapshot:
        if packet.snapshot is None:
            raise MissingDataError(f"No {what} data available")
        return packet.snapshot


def impact(
    financial: float,
    risk: float,
    liquidity: float,
    tax: float,
    confidence: Optional[float] = None,
) -> ImpactScore:
    """Positional shorthand for ``ImpactScore`` used by every analyzer."""
    return ImpactScore(
        financial=financial, risk=risk, liquidity=liquidity, tax=tax, confidence=confidence,
    )
