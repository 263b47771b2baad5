"""
Pytest configuration and fixtures for the ProFin test suite.

This module provides reusable fixtures for testing all ProFin components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import json
from datetime import date
from typing import List

import pytest

from profin.debt import DebtRecord
from profin.goals import GoalSpec, HouseholdSnapshot
from profin.tax import DeductionInputs


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def as_of() -> date:
    """Fixed evaluation date for tests."""
    return date(2025, 4, 1)


@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


@pytest.fixture
def iterations() -> int:
    """Standard number of Monte Carlo trials for tests."""
    return 500


# ---------------------------------------------------------------------------
# Debt Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def card_and_car() -> List[DebtRecord]:
    """
    Expensive short debt plus a cheaper long one.

    Credit card: 100,000 at 24%, installment 5,000
    Car loan:    500,000 at 9%,  installment 6,000
    """
    return [
        DebtRecord("Credit card", 100_000, 24.0, 5_000, "credit-card"),
        DebtRecord("Car loan", 500_000, 9.0, 6_000, "car"),
    ]


@pytest.fixture
def mixed_debts() -> List[DebtRecord]:
    """Four debts covering every priority band."""
    return [
        DebtRecord("Home loan", 3_000_000, 8.5, 30_000, "home"),
        DebtRecord("Personal loan", 150_000, 14.0, 7_000, "personal"),
        DebtRecord("Gold loan", 40_000, 10.0, 4_000, "gold"),
        DebtRecord("Credit card", 60_000, 36.0, 3_000, "credit-card"),
    ]


# ---------------------------------------------------------------------------
# Goal Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def education_goal() -> GoalSpec:
    """Cash-funded education goal ten years out."""
    return GoalSpec(
        name="Education",
        target_amount=2_000_000,
        target_date=date(2035, 4, 1),
        current_value=100_000,
        goal_type="education",
    )


@pytest.fixture
def house_goal() -> GoalSpec:
    """Loan-funded house purchase five years out, 20% down payment."""
    return GoalSpec(
        name="Apartment",
        target_amount=8_000_000,
        target_date=date(2030, 4, 1),
        current_value=300_000,
        goal_type="house",
        funding_type="loan",
    )


@pytest.fixture
def household() -> HouseholdSnapshot:
    """Salaried household: 1.5L gross monthly, new regime."""
    return HouseholdSnapshot(
        monthly_income=150_000,
        monthly_expenses=60_000,
        existing_emis=11_000,
        other_goal_contributions=5_000,
        tax_regime="new",
    )


@pytest.fixture
def old_regime_deductions() -> DeductionInputs:
    """Typical itemized claims for the old regime."""
    return DeductionInputs(
        retirement_instruments=150_000,
        health_insurance=25_000,
        pension_scheme=50_000,
        mortgage_interest=200_000,
    )


# ---------------------------------------------------------------------------
# Plan file Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def plan_dict() -> dict:
    """A complete plan as stored on disk."""
    return {
        "schema_version": "1.0.0",
        "name": "Sharma household",
        "as_of": "2025-04-01",
        "household": {
            "monthly_income": 200_000,
            "monthly_expenses": 70_000,
            "deductions": {"retirement_instruments": 150_000},
        },
        "goals": [
            {
                "name": "Education",
                "target_amount": 2_000_000,
                "target_date": "2035-04-01",
                "current_value": 100_000,
                "goal_type": "education",
                "monthly_contribution": 8_000,
            },
            {
                "name": "Apartment",
                "target_amount": 8_000_000,
                "target_date": "2030-04-01",
                "goal_type": "house",
                "funding_type": "loan",
            },
        ],
        "debts": [
            {
                "name": "Credit card",
                "principal": 100_000,
                "annual_interest_rate": 24,
                "monthly_installment": 5_000,
                "loan_category": "credit-card",
            },
            {
                "name": "Car loan",
                "principal": 500_000,
                "annual_interest_rate": 9,
                "monthly_installment": 6_000,
                "loan_category": "car",
            },
        ],
        "planner": {"simulation": {"iterations": 300, "seed": 7}},
    }


@pytest.fixture
def plan_file(tmp_path, plan_dict):
    """Plan written to a temporary JSON file."""
    path = tmp_path / "plan.json"
    with open(path, "w") as f:
        json.dump(plan_dict, f)
    return path
