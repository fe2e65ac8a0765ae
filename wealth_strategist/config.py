"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``     : committed static defaults
  2. ``config/local.toml``       : optional local overrides (gitignored)
  3. ``.env``                    : local env overrides (gitignored)
  4. Environment variables       : ``WEALTH_STRATEGIST_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Every component (analyzers, scorer, safeguard validator, forecast engine,
orchestrator) receives its section of ``AppConfig`` through its constructor
or entry point.  There are no module-level threshold tables to patch in
tests; build an ``AppConfig`` (or a single sub-config) with the values you
need instead.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class SafeguardConfig(BaseModel):
    """Hard policy limits.

    Analyzers read these to decide whether a situation is worth flagging;
    the safeguard validator re-checks every finding's evidence against the
    same table before it can reach the user.
    """

    model_config = ConfigDict(frozen=True)

    max_debt_to_income: float = 0.43
    min_emergency_fund: float = 3.0          # months of essential expenses
    max_leverage_ratio: float = 0.80
    max_single_investment: float = 0.20
    min_liquidity_ratio: float = 0.10
    min_cash_reserve: float = 10_000.0
    min_refinance_gap: float = 0.005
    max_refinance_breakeven: int = 24        # months
    min_refinance_savings: float = 5_000.0
    max_expense_to_income: float = 0.80
    min_surplus_ratio: float = 0.10
    max_portfolio_volatility: float = 0.25
    min_diversification: int = 5
    min_data_quality: float = 60.0
    max_data_age_days: int = 90

    @field_validator(
        "max_debt_to_income", "max_leverage_ratio", "max_single_investment",
        "min_liquidity_ratio", "max_expense_to_income", "min_surplus_ratio",
    )
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"Ratio thresholds must be in (0.0, 1.0], got {v}.")
        return v


class AnalyzerConfig(BaseModel):
    """Soft constants used by the analyzers.

    Market rates are static illustrative values keyed by ``Loan.loan_type``;
    the ``"default"`` key is used for any type not listed.
    """

    model_config = ConfigDict(frozen=True)

    market_rates: dict[str, float] = {
        "home-loan": 0.045,
        "investment-loan": 0.050,
        "personal-loan": 0.080,
        "default": 0.060,
    }
    target_allocations: dict[str, dict[str, float]] = {
        "CONSERVATIVE": {"stocks": 0.40, "bonds": 0.50, "cash": 0.10},
        "MODERATE":     {"stocks": 0.60, "bonds": 0.30, "cash": 0.10},
        "AGGRESSIVE":   {"stocks": 0.80, "bonds": 0.15, "cash": 0.05},
    }
    moderate_dti_threshold: float = 0.35
    refinance_cost_pct: float = 0.02
    consolidation_cost_pct: float = 0.015
    consolidation_rate_floor: float = 0.04
    assumed_investment_return: float = 0.07
    early_repay_margin: float = 0.02
    emergency_excess_months: float = 6.0
    moderate_expense_ratio: float = 0.70
    high_interest_rate: float = 0.08
    min_income_stability: float = 60.0
    min_rental_yield: float = 0.03
    min_capital_growth: float = 0.02
    min_years_for_growth: float = 5.0
    loss_harvest_floor: float = 1_000.0
    cgt_gain_floor: float = 10_000.0
    marginal_tax_rate: float = 0.30
    retirement_growth_rate: float = 0.07
    safe_withdrawal_multiple: float = 25.0

    @field_validator("market_rates")
    @classmethod
    def validate_market_rates(cls, v: dict[str, float]) -> dict[str, float]:
        if "default" not in v:
            raise ValueError("market_rates must include a 'default' entry.")
        return v

    @field_validator("target_allocations")
    @classmethod
    def validate_allocations(
        cls, v: dict[str, dict[str, float]]
    ) -> dict[str, dict[str, float]]:
        for appetite, weights in v.items():
            total = sum(weights.values())
            if abs(total - 1.0) > 1e-6:
                raise ValueError(
                    f"target_allocations[{appetite}] must sum to 1.0, got {total:.4f}."
                )
        return v

    def market_rate_for(self, loan_type: str) -> float:
        return self.market_rates.get(loan_type, self.market_rates["default"])


class ScoringConfig(BaseModel):
    """Strategic Benefit Score weights."""

    model_config = ConfigDict(frozen=True)

    financial_weight: float = 0.40
    risk_weight: float = 0.25
    cost_avoidance_weight: float = 0.15
    liquidity_weight: float = 0.10
    tax_weight: float = 0.05
    confidence_weight: float = 0.05
    default_confidence: float = 70.0

    @model_validator(mode="after")
    def validate_weights(self) -> "ScoringConfig":
        total = (
            self.financial_weight + self.risk_weight + self.cost_avoidance_weight
            + self.liquidity_weight + self.tax_weight + self.confidence_weight
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"SBS weights must sum to 1.0, got {total:.4f}.")
        if not 0.0 <= self.default_confidence <= 100.0:
            raise ValueError(
                f"default_confidence must be in [0, 100], got {self.default_confidence}."
            )
        return self


class ForecastConfig(BaseModel):
    """Base forecast assumptions and scenario perturbation."""

    model_config = ConfigDict(frozen=True)

    scenario_spread: float = 0.30
    property_growth_rate: float = 0.05
    stock_market_return: float = 0.08
    inflation_rate: float = 0.03
    salary_growth_rate: float = 0.04
    mortgage_rate: float = 0.045
    savings_rate: float = 0.02
    annual_savings_increase: float = 5_000.0
    retirement_age: int = 65
    life_expectancy: int = 90

    @field_validator("scenario_spread")
    @classmethod
    def validate_spread(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError(f"scenario_spread must be in [0.0, 1.0), got {v}.")
        return v

    @model_validator(mode="after")
    def validate_ages(self) -> "ForecastConfig":
        if self.life_expectancy <= self.retirement_age:
            raise ValueError(
                f"life_expectancy ({self.life_expectancy}) must exceed "
                f"retirement_age ({self.retirement_age})."
            )
        return self


class PipelineConfig(BaseModel):
    """Pipeline execution parameters."""

    model_config = ConfigDict(frozen=True)

    max_workers: int = 8
    limited_mode_threshold: float = 60.0
    limited_mode_min_confidence: float = 80.0
    recommendation_ttl_days: int = 30
    output_dir: str = "data/outputs"

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}.")
        return v

    @field_validator("recommendation_ttl_days")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"recommendation_ttl_days must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration, merged from every layer.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    ``AppConfig()`` with no arguments gives the built-in defaults, which
    match ``config/default.toml``.
    """

    model_config = ConfigDict(frozen=True)

    safeguards: SafeguardConfig = SafeguardConfig()
    analyzer: AnalyzerConfig = AnalyzerConfig()
    scoring: ScoringConfig = ScoringConfig()
    forecast: ForecastConfig = ForecastConfig()
    pipeline: PipelineConfig = PipelineConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent

ENV_PREFIX = "WEALTH_STRATEGIST_"


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply WEALTH_STRATEGIST_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply WEALTH_STRATEGIST_* env vars to the raw config dict.

    Supported overrides:
      WEALTH_STRATEGIST_LOG_LEVEL               → raw["logging"]["level"]
      WEALTH_STRATEGIST_DEBUG                   → raw["debug"]
      WEALTH_STRATEGIST_MAX_WORKERS             → raw["pipeline"]["max_workers"]
      WEALTH_STRATEGIST_LIMITED_MODE_THRESHOLD  → raw["pipeline"]["limited_mode_threshold"]
    """
    if log_level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get(f"{ENV_PREFIX}DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    if workers := os.environ.get(f"{ENV_PREFIX}MAX_WORKERS"):
        raw.setdefault("pipeline", {})["max_workers"] = int(workers)

    if threshold := os.environ.get(f"{ENV_PREFIX}LIMITED_MODE_THRESHOLD"):
        raw.setdefault("pipeline", {})["limited_mode_threshold"] = float(threshold)

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        safeguards=SafeguardConfig(**raw.get("safeguards", {})),
        analyzer=AnalyzerConfig(**raw.get("analyzer", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        forecast=ForecastConfig(**raw.get("forecast", {})),
        pipeline=PipelineConfig(**raw.get("pipeline", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
