"""
Financial snapshot value objects and the immutable ``DataPacket``.

These mirror the shapes returned by the five external data providers.  Every
optional field is explicit (``Optional[...] = None``); where the pipeline
needs a concrete number for a missing field, the defaulting rule lives in a
named method on the model (``Loan.payment()``, ``CashflowSummary.surplus()``)
so each read site documents the fallback instead of repeating ``or 0``.

All models are frozen and use tuples for collections, so one ``DataPacket``
can be shared by the eight analyzer threads without copying.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wealth_strategist.taxonomy.strategy_taxonomy import RiskAppetite
from wealth_strategist.utils.finance import amortized_payment
from wealth_strategist.utils.time_utils import utcnow

DEFAULT_LOAN_TERM_MONTHS = 360
DEFAULT_INCOME_STABILITY = 75.0


class Loan(BaseModel):
    """A single liability.

    Attributes:
        id: Provider-assigned identifier.
        name: Display name, e.g. ``"Home loan (Westpac)"``.
        loan_type: ``home-loan``, ``investment-loan``, ``personal-loan`` or
            anything else (treated as ``unknown`` for market-rate lookup).
        balance: Outstanding balance.
        interest_rate: Annual rate as a decimal.
        term_months: Original term; 360 when the provider omits it.
        remaining_months: Months left; falls back to ``term_months``.
        monthly_payment: Scheduled repayment; derived by amortisation when
            the provider omits it.
        offset_balance: Cash held in a linked offset account, or ``None``
            when the loan has no offset facility.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    loan_type: str = "unknown"
    balance: float = Field(ge=0)
    interest_rate: float = Field(ge=0)
    term_months: int = DEFAULT_LOAN_TERM_MONTHS
    remaining_months: Optional[int] = None
    monthly_payment: Optional[float] = None
    offset_balance: Optional[float] = None

    @field_validator("interest_rate")
    @classmethod
    def validate_rate(cls, v: float) -> float:
        if v > 1.0:
            raise ValueError(f"interest_rate must be a decimal (0.06 = 6%), got {v}.")
        return v

    def months_left(self) -> int:
        """``remaining_months``, else ``term_months``."""
        if self.remaining_months is not None and self.remaining_months > 0:
            return self.remaining_months
        return self.term_months if self.term_months > 0 else DEFAULT_LOAN_TERM_MONTHS

    def payment(self) -> float:
        """``monthly_payment``, else the amortised payment over ``months_left()``."""
        if self.monthly_payment is not None:
            return self.monthly_payment
        return amortized_payment(self.balance, self.interest_rate, self.months_left())


class Property(BaseModel):
    """A real-estate holding.

    Attributes:
        monthly_rent: Gross monthly rent, ``None`` for owner-occupied.
        years_held: Holding period in years, ``None`` if unknown.
        state / suburb: Location keys used for geographic concentration.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    purchase_price: float = Field(ge=0)
    current_value: float = Field(ge=0)
    monthly_rent: Optional[float] = None
    is_investment: bool = False
    years_held: Optional[float] = None
    state: Optional[str] = None
    suburb: Optional[str] = None

    def location_key(self) -> Optional[str]:
        """State if known, else suburb, else ``None``."""
        return self.state or self.suburb


class Holding(BaseModel):
    """A single investment position.

    Attributes:
        asset_class: ``stocks``, ``bonds``, ``cash`` or any other label.
        cost_base: Purchase cost; ``None`` when unknown (no gain/loss calc).
        months_held: Holding period; ``None`` when unknown.
        is_liquid: False for locked-up assets (super, private equity).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    asset_class: str = "other"
    current_value: float = Field(ge=0)
    cost_base: Optional[float] = None
    months_held: Optional[int] = None
    is_liquid: bool = True

    def unrealized_gain(self) -> Optional[float]:
        if self.cost_base is None:
            return None
        return self.current_value - self.cost_base


class CashflowSummary(BaseModel):
    """Monthly cashflow position.

    Attributes:
        monthly_essential_expenses: Non-discretionary spend used for the
            emergency buffer; falls back to ``monthly_expenses``.
        monthly_surplus: Reported surplus; falls back to income − expenses.
        income_stability: 0–100 score; falls back to 75.
        user_age: Age in years, used by retirement and forecast logic.
    """

    model_config = ConfigDict(frozen=True)

    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    monthly_essential_expenses: Optional[float] = None
    monthly_surplus: Optional[float] = None
    available_cash: float = 0.0
    income_stability: Optional[float] = None
    user_age: Optional[int] = None

    def essential_expenses(self) -> float:
        if self.monthly_essential_expenses is not None:
            return self.monthly_essential_expenses
        return self.monthly_expenses

    def surplus(self) -> float:
        if self.monthly_surplus is not None:
            return self.monthly_surplus
        return self.monthly_income - self.monthly_expenses

    def stability(self) -> float:
        if self.income_stability is not None:
            return self.income_stability
        return DEFAULT_INCOME_STABILITY


class TrendPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: str
    net_worth: float


class Snapshot(BaseModel):
    """Point-in-time portfolio snapshot."""

    model_config = ConfigDict(frozen=True)

    net_worth: Optional[float] = None
    properties: tuple[Property, ...] = ()
    loans: tuple[Loan, ...] = ()
    investments: tuple[Holding, ...] = ()
    cashflow: Optional[CashflowSummary] = None
    trends: tuple[TrendPoint, ...] = ()

    def total_property_value(self) -> float:
        return sum(p.current_value for p in self.properties)

    def total_investment_value(self) -> float:
        return sum(h.current_value for h in self.investments)

    def total_debt(self) -> float:
        return sum(loan.balance for loan in self.loans)

    def available_cash(self) -> float:
        return self.cashflow.available_cash if self.cashflow else 0.0


class Insight(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    severity: str
    category: str
    title: str
    description: str = ""


class HealthMetrics(BaseModel):
    """Data-consistency summary from the health provider."""

    model_config = ConfigDict(frozen=True)

    orphans: tuple[str, ...] = ()
    missing_links: tuple[str, ...] = ()
    consistency_score: Optional[float] = None
    module_health: dict[str, float] = {}


class GraphEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str


class GraphEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    relation: str = "linked"


class RelationalGraph(BaseModel):
    model_config = ConfigDict(frozen=True)

    entities: tuple[GraphEntity, ...] = ()
    relationships: tuple[GraphEdge, ...] = ()


class UserPreferences(BaseModel):
    """User risk and goal settings.  Every field may be unset."""

    model_config = ConfigDict(frozen=True)

    risk_appetite: Optional[RiskAppetite] = None
    time_horizon: Optional[int] = None
    debt_comfort: Optional[str] = None
    investment_style: Optional[str] = None
    retirement_age: Optional[int] = None

    @field_validator("risk_appetite", mode="before")
    @classmethod
    def normalize_appetite(cls, v: object) -> object:
        if isinstance(v, str):
            return v.upper()
        return v


class DataPacket(BaseModel):
    """Everything the analyzers see, gathered once per run.

    Any source may be ``None`` (or empty for insights) when its provider
    failed; analyzers must treat absence as "no finding", never as an error
    that stops the run.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    snapshot: Optional[Snapshot] = None
    insights: tuple[Insight, ...] = ()
    health: Optional[HealthMetrics] = None
    relationships: Optional[RelationalGraph] = None
    preferences: Optional[UserPreferences] = None
    timestamp: datetime = Field(default_factory=utcnow)

    def risk_appetite(self) -> RiskAppetite:
        """User risk appetite, MODERATE when unset."""
        if self.preferences and self.preferences.risk_appetite:
            return self.preferences.risk_appetite
        return RiskAppetite.MODERATE
