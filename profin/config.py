"""
Configuration management module for ProFin.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation, and serialization. Plan files (household, goals,
debts, planner settings) are validated through these models before any
domain object is built; the engines themselves never see a config dict.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Strict: Unknown fields are rejected (``extra="forbid"``)
- Environment-aware: ``AppSettings`` reads PROFIN_* variables and .env files
- Defaults: Sensible defaults for all parameters

Example
-------
>>> from profin.config import SimulationConfig, PlannerConfig
>>> sim = SimulationConfig(iterations=2000, seed=42)
>>> planner = PlannerConfig(tax_regime="old", simulation=sim)
>>>
>>> # Serialize to dict/JSON
>>> data = planner.model_dump()
>>> json_str = planner.model_dump_json()
>>>
>>> # Load from dict/JSON
>>> loaded = PlannerConfig.model_validate(data)
"""

from __future__ import annotations
from typing import List, Literal, Optional
import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_DOWNPAYMENT_PERCENT,
    DEFAULT_EXPECTED_RETURN,
    DEFAULT_INFLATION_RATE,
    DEFAULT_ITERATIONS,
    DEFAULT_LOAN_INTEREST_RATE,
    DEFAULT_LOAN_TENURE_YEARS,
    DEFAULT_VOLATILITY,
)

__all__ = [
    "SimulationConfig",
    "PlannerConfig",
    "DeductionsConfig",
    "GoalConfig",
    "DebtConfig",
    "HouseholdConfig",
    "PlanConfig",
    "AppSettings",
]

GoalType = Literal[
    "house", "retirement", "education", "car", "wedding", "travel", "emergency", "other",
]
LoanCategory = Literal["home", "car", "education", "personal", "credit-card", "gold", "other"]


# ---------------------------------------------------------------------------
# Simulation Configuration
# ---------------------------------------------------------------------------

class SimulationConfig(BaseModel):
    """
    Configuration for Monte Carlo simulation parameters.

    Attributes
    ----------
    iterations : int
        Number of Monte Carlo trials (1-100,000).
    seed : int, optional
        Root seed for reproducibility. If None, uses fresh OS entropy.
    workers : int
        Threads used to run trial blocks (1-64). Results do not depend on it.

    Examples
    --------
    >>> config = SimulationConfig(iterations=500, seed=42)
    >>> config.iterations
    500
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    iterations: int = Field(
        default=DEFAULT_ITERATIONS,
        ge=1,
        le=100_000,
        description="Number of Monte Carlo trials"
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Random seed for reproducibility"
    )
    workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Threads for trial blocks"
    )


# ---------------------------------------------------------------------------
# Planner Configuration
# ---------------------------------------------------------------------------

class PlannerConfig(BaseModel):
    """
    Household-wide planning assumptions.

    Attributes
    ----------
    tax_regime : {"old", "new"}
        Regime used to derive disposable income.
    inflation_rate : float
        General inflation (%) used when category rates are disabled.
    use_category_inflation : bool
        Inflate each goal at its category rate (education 10%, housing 7%, ...).
    financial_year : str
        Label shown in reports.
    default_volatility : float
        Annual volatility (%) for goals that do not set one.
    simulation : SimulationConfig
        Monte Carlo parameters.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tax_regime: Literal["old", "new"] = Field(
        default="new",
        description="Tax regime"
    )
    inflation_rate: float = Field(
        default=DEFAULT_INFLATION_RATE,
        ge=-50,
        le=50,
        description="General inflation rate (%)"
    )
    use_category_inflation: bool = Field(
        default=True,
        description="Use goal-category inflation rates"
    )
    financial_year: str = Field(
        default="FY2025-26",
        min_length=1,
        max_length=20,
        description="Financial year label"
    )
    default_volatility: float = Field(
        default=DEFAULT_VOLATILITY,
        ge=0,
        le=100,
        description="Default annual volatility (%)"
    )
    simulation: SimulationConfig = Field(
        default_factory=SimulationConfig,
        description="Simulation parameters"
    )


# ---------------------------------------------------------------------------
# Household and deductions
# ---------------------------------------------------------------------------

class DeductionsConfig(BaseModel):
    """Annual deduction claims and capital gains (see ``profin.tax.DeductionInputs``)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    retirement_instruments: float = Field(default=0.0, ge=0, description="80C claims")
    health_insurance: float = Field(default=0.0, ge=0, description="80D premiums")
    pension_scheme: float = Field(default=0.0, ge=0, description="80CCD(1B) contribution")
    mortgage_interest: float = Field(default=0.0, ge=0, description="Home-loan interest")
    hra_exemption: float = Field(default=0.0, ge=0, description="HRA exemption")
    long_term_gains: float = Field(default=0.0, ge=0, description="Realized LTCG")
    short_term_gains: float = Field(default=0.0, ge=0, description="Realized STCG")


class HouseholdConfig(BaseModel):
    """
    Monthly cash flows of the household.

    ``existing_emis`` defaults to the sum of the plan's debt installments
    when left unset.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    monthly_income: float = Field(ge=0, description="Gross monthly income")
    monthly_expenses: float = Field(default=0.0, ge=0, description="Fixed monthly expenses")
    existing_emis: Optional[float] = Field(
        default=None,
        ge=0,
        description="Existing loan installments (default: sum of debts)"
    )
    other_goal_contributions: float = Field(
        default=0.0,
        ge=0,
        description="Monthly contributions committed outside this plan"
    )
    deductions: DeductionsConfig = Field(
        default_factory=DeductionsConfig,
        description="Deduction claims"
    )


# ---------------------------------------------------------------------------
# Goals and debts
# ---------------------------------------------------------------------------

class GoalConfig(BaseModel):
    """
    Configuration for one savings goal.

    Examples
    --------
    >>> from datetime import date
    >>> goal = GoalConfig(
    ...     name="Apartment",
    ...     target_amount=8_000_000,
    ...     target_date=date(2031, 6, 1),
    ...     goal_type="house",
    ...     funding_type="loan",
    ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100, description="Goal name")
    target_amount: float = Field(gt=0, description="Cost in today's money")
    target_date: datetime.date = Field(description="When the money is needed")
    current_value: float = Field(default=0.0, ge=0, description="Amount already saved")
    monthly_contribution: float = Field(default=0.0, ge=0, description="Current monthly SIP")
    expected_return: float = Field(
        default=DEFAULT_EXPECTED_RETURN,
        ge=-50,
        le=100,
        description="Expected annual return (%)"
    )
    volatility: Optional[float] = Field(
        default=None,
        ge=0,
        le=100,
        description="Annual volatility (%); planner default when unset"
    )
    funding_type: Literal["cash", "loan"] = Field(default="cash", description="Funding type")
    inflation_adjust: bool = Field(default=True, description="Inflate the target")
    goal_type: GoalType = Field(default="other", description="Goal category")
    downpayment_percent: float = Field(
        default=DEFAULT_DOWNPAYMENT_PERCENT,
        ge=0,
        le=100,
        description="Down payment share for loan-funded goals (%)"
    )
    loan_interest_rate: float = Field(
        default=DEFAULT_LOAN_INTEREST_RATE,
        ge=0,
        le=50,
        description="Loan rate (%)"
    )
    loan_tenure_years: int = Field(
        default=DEFAULT_LOAN_TENURE_YEARS,
        ge=1,
        le=40,
        description="Loan tenure (years)"
    )


class DebtConfig(BaseModel):
    """Configuration for one outstanding loan."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100, description="Debt name")
    principal: float = Field(ge=0, description="Outstanding balance")
    annual_interest_rate: float = Field(ge=0, le=100, description="Annual rate (%)")
    monthly_installment: float = Field(gt=0, description="Monthly installment")
    loan_category: LoanCategory = Field(default="other", description="Loan category")


# ---------------------------------------------------------------------------
# Plan Configuration
# ---------------------------------------------------------------------------

class PlanConfig(BaseModel):
    """
    A complete household plan as stored in a JSON plan file.

    Attributes
    ----------
    name : str
        Plan name.
    as_of : date, optional
        Evaluation date. Defaults to today when the plan is assessed.
    household : HouseholdConfig
        Income, expenses and deductions.
    goals : List[GoalConfig]
        Savings goals (names must be unique).
    debts : List[DebtConfig]
        Outstanding loans (names must be unique).
    planner : PlannerConfig
        Regime, inflation and simulation settings.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default="My Plan", min_length=1, max_length=100, description="Plan name")
    as_of: Optional[datetime.date] = Field(default=None, description="Evaluation date")
    household: HouseholdConfig = Field(description="Household cash flows")
    goals: List[GoalConfig] = Field(default_factory=list, description="Savings goals")
    debts: List[DebtConfig] = Field(default_factory=list, description="Outstanding loans")
    planner: PlannerConfig = Field(default_factory=PlannerConfig, description="Planner settings")

    @field_validator("goals", "debts")
    @classmethod
    def validate_unique_names(cls, v, info):
        """Ensure goal and debt names are unique within the plan."""
        names = [item.name for item in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate {info.field_name} names: {duplicates}")
        return v

    @model_validator(mode="after")
    def validate_goal_dates(self):
        """Ensure every goal lies after ``as_of`` when it is pinned."""
        if self.as_of is not None:
            past = [g.name for g in self.goals if g.target_date <= self.as_of]
            if past:
                raise ValueError(f"goals with target dates not after {self.as_of}: {past}")
        return self


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with PROFIN_ (e.g., PROFIN_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    default_regime : str
        Tax regime used by the CLI when none is given
    default_iterations : int
        Monte Carlo trials used by the CLI when none are given
    currency_symbol : str
        Symbol used when printing amounts

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'

    # With .env file:
    # PROFIN_LOG_LEVEL=DEBUG
    >>> settings = AppSettings(_env_file=".env")
    """

    model_config = SettingsConfigDict(
        env_prefix="PROFIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    default_regime: Literal["old", "new"] = Field(
        default="new",
        description="Default tax regime for the CLI"
    )
    default_iterations: int = Field(
        default=DEFAULT_ITERATIONS,
        ge=1,
        le=100_000,
        description="Default Monte Carlo trials for the CLI"
    )
    currency_symbol: str = Field(
        default="₹",
        min_length=1,
        max_length=3,
        description="Currency symbol for output"
    )
