"""
Serialization module for ProFin plans and results.

Purpose
-------
Loads household plans from JSON, validates them through the Pydantic
models in ``profin.config`` and builds the engines' domain objects.
Results are written back as JSON for sharing or version control. Nothing
here keeps state between calls.

Design Principles
-----------------
- Type-safe: every file goes through ``PlanConfig`` validation
- Human-readable: JSON with a schema version
- Reproducible: seeds and planner settings travel with the plan

Example
-------
>>> from pathlib import Path
>>> from profin.serialization import load_plan, goals_from_plan, household_from_plan
>>> plan = load_plan(Path("plan.json"))
>>> goals = goals_from_plan(plan)
>>> household = household_from_plan(plan)
"""

from __future__ import annotations
from typing import Any, Dict, List, Union
from pathlib import Path
import json
import logging
import warnings

import pydantic

from .config import DebtConfig, GoalConfig, HouseholdConfig, PlanConfig
from .debt import DebtRecord
from .exceptions import ConfigurationError
from .goals import GoalSpec, HouseholdSnapshot
from .tax import DeductionInputs

__all__ = [
    "SCHEMA_VERSION",
    "load_plan",
    "save_plan",
    "plan_from_dict",
    "goal_from_config",
    "debt_from_config",
    "household_from_config",
    "goals_from_plan",
    "debts_from_plan",
    "household_from_plan",
    "save_result",
]

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# Plan files
# ---------------------------------------------------------------------------

def plan_from_dict(data: Dict[str, Any]) -> PlanConfig:
    """
    Validate a plan dictionary.

    A ``schema_version`` key is checked and removed before validation.

    Raises
    ------
    ConfigurationError
        If the data does not describe a valid plan.
    """
    data = dict(data)
    schema_version = data.pop("schema_version", SCHEMA_VERSION)
    if schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"Plan schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )
    try:
        return PlanConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"invalid plan: {exc}") from exc


def load_plan(path: Union[str, Path]) -> PlanConfig:
    """
    Load and validate a JSON plan file.

    Examples
    --------
    >>> plan = load_plan(Path("plan.json"))
    >>> plan.planner.tax_regime
    'new'
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path}: not valid JSON ({exc})") from exc
    LOGGER.debug("loaded plan file %s", path)
    return plan_from_dict(data)


def save_plan(plan: PlanConfig, path: Union[str, Path]) -> None:
    """Write ``plan`` to JSON with the current schema version."""
    path = Path(path)
    config = {"schema_version": SCHEMA_VERSION, **plan.model_dump(mode="json")}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------

def goal_from_config(config: GoalConfig, default_volatility: float) -> GoalSpec:
    """Build a ``GoalSpec``; an unset volatility takes the planner default."""
    return GoalSpec(
        name=config.name,
        target_amount=config.target_amount,
        target_date=config.target_date,
        current_value=config.current_value,
        monthly_contribution=config.monthly_contribution,
        expected_return=config.expected_return,
        volatility=config.volatility if config.volatility is not None else default_volatility,
        funding_type=config.funding_type,
        inflation_adjust=config.inflation_adjust,
        goal_type=config.goal_type,
        downpayment_percent=config.downpayment_percent,
        loan_interest_rate=config.loan_interest_rate,
        loan_tenure_years=config.loan_tenure_years,
    )


def debt_from_config(config: DebtConfig) -> DebtRecord:
    return DebtRecord(
        name=config.name,
        principal=config.principal,
        annual_interest_rate=config.annual_interest_rate,
        monthly_installment=config.monthly_installment,
        loan_category=config.loan_category,
    )


def household_from_config(
    config: HouseholdConfig,
    tax_regime: str = "new",
    debts: List[DebtConfig] = (),
) -> HouseholdSnapshot:
    """
    Build a ``HouseholdSnapshot``.

    When ``existing_emis`` is unset it is the sum of ``debts``' installments.
    """
    emis = config.existing_emis
    if emis is None:
        emis = sum(d.monthly_installment for d in debts)
    return HouseholdSnapshot(
        monthly_income=config.monthly_income,
        monthly_expenses=config.monthly_expenses,
        existing_emis=emis,
        other_goal_contributions=config.other_goal_contributions,
        tax_regime=tax_regime,
        deductions=DeductionInputs(**config.deductions.model_dump()),
    )


def goals_from_plan(plan: PlanConfig) -> List[GoalSpec]:
    return [goal_from_config(g, plan.planner.default_volatility) for g in plan.goals]


def debts_from_plan(plan: PlanConfig) -> List[DebtRecord]:
    return [debt_from_config(d) for d in plan.debts]


def household_from_plan(plan: PlanConfig) -> HouseholdSnapshot:
    return household_from_config(plan.household, plan.planner.tax_regime, plan.debts)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def save_result(result: Any, path: Union[str, Path]) -> None:
    """
    Save a result to JSON.

    Accepts any object with a ``to_dict()`` method, or a plain dict.

    Examples
    --------
    >>> save_result(compute_tax(1_800_000, "new"), Path("tax.json"))
    """
    payload = result.to_dict() if hasattr(result, "to_dict") else dict(result)
    config = {"schema_version": SCHEMA_VERSION, "result": payload}
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False, default=str)
