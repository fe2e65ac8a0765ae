"""
Tax analyzer: loss harvesting and CGT-discount timing.

Loss harvesting sums unrealised losses across every loss-making holding with
a known cost base and flags the total once it exceeds ``loss_harvest_floor``.

The CGT nudge targets holdings 10–11 months old with a gain above
``cgt_gain_floor``: waiting until month 12 halves the taxable gain.
Estimated saving = gain × 50% × marginal rate.
"""

from __future__ import annotations

from wealth_strategist.analyzers.base import Analyzer, impact
from wealth_strategist.errors import MissingDataError
from wealth_strategist.models.finding import CgtDiscountEvidence, Finding, LossHarvestEvidence
from wealth_strategist.models.snapshot import DataPacket, Holding
from wealth_strategist.taxonomy.strategy_taxonomy import FindingType, Severity

_CGT_DISCOUNT_MONTHS = 12
_CGT_WINDOW_START = 10
_CGT_DISCOUNT_RATE = 0.5


class TaxAnalyzer(Analyzer):
    name = "TaxAnalyzer"

    def _analyze(self, packet: DataPacket, findings: list[Finding]) -> None:
        snapshot = packet.snapshot
        if snapshot is None or not snapshot.investments:
            raise MissingDataError("No investment data available for tax analysis")

        harvest = self._loss_harvest(snapshot.investments)
        if harvest is not None:
            findings.append(harvest)

        for holding in snapshot.investments:
            nudge = self._cgt_discount(holding)
            if nudge is not None:
                findings.append(nudge)

    def _loss_harvest(self, holdings: tuple[Holding, ...]) -> Finding | None:
        losers = [h for h in holdings if (h.unrealized_gain() or 0.0) < 0]
        total_loss = -sum(h.unrealized_gain() for h in losers)
        if total_loss <= self.settings.loss_harvest_floor:
            return None

        saving = total_loss * self.settings.marginal_tax_rate
        return Finding(
            id="loss-harvest",
            type=FindingType.TAX_LOSS_HARVEST,
            severity=Severity.LOW,
            title="Harvest unrealised losses",
            description=(
                f"{len(losers)} holding(s) carry ${total_loss:,.0f} of unrealised "
                "losses that could offset capital gains."
            ),
            impact=impact(40, 20, 10, 70, 75),
            evidence=LossHarvestEvidence(
                holding_ids=tuple(h.id for h in losers),
                total_loss=round(total_loss, 2),
                estimated_tax_saving=round(saving, 2),
            ),
            suggested_action="Realise the losses before year end and reinvest in a similar asset.",
        )

    def _cgt_discount(self, holding: Holding) -> Finding | None:
        gain = holding.unrealized_gain()
        months = holding.months_held
        if gain is None or months is None:
            return None
        if gain <= self.settings.cgt_gain_floor:
            return None
        if not _CGT_WINDOW_START <= months < _CGT_DISCOUNT_MONTHS:
            return None

        wait = _CGT_DISCOUNT_MONTHS - months
        saving = gain * _CGT_DISCOUNT_RATE * self.settings.marginal_tax_rate
        label = holding.name or holding.id
        return Finding(
            id=f"cgt-discount-{holding.id}",
            type=FindingType.TAX_CGT_DISCOUNT,
            severity=Severity.LOW,
            title=f"Hold {label} for the CGT discount",
            description=(
                f"{label} has a ${gain:,.0f} gain and qualifies for the 50% CGT "
                f"discount in {wait} month(s)."
            ),
            impact=impact(35, 10, 0, 60, 80),
            evidence=CgtDiscountEvidence(
                holding_id=holding.id,
                unrealized_gain=gain,
                months_held=months,
                months_to_discount=wait,
                estimated_tax_saving=round(saving, 2),
            ),
            suggested_action=f"Delay selling {label} for {wait} more month(s).",
        )
