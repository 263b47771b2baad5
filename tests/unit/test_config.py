"""
Unit tests for config.py Pydantic models.

Tests validation, defaults, and serialization of configuration classes.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from profin.config import (
    AppSettings,
    DebtConfig,
    GoalConfig,
    HouseholdConfig,
    PlanConfig,
    PlannerConfig,
    SimulationConfig,
)


class TestSimulationConfig:
    """Tests for SimulationConfig validation."""

    def test_defaults(self):
        """Default iterations, seed and workers."""
        config = SimulationConfig()

        assert config.iterations == 1000
        assert config.seed is None
        assert config.workers == 1

    def test_custom_values(self):
        """Explicit values are kept."""
        config = SimulationConfig(iterations=5000, seed=42, workers=4)
        assert config.iterations == 5000
        assert config.seed == 42
        assert config.workers == 4

    @pytest.mark.parametrize("kwargs", [
        {"iterations": 0},
        {"iterations": 200_000},
        {"seed": -1},
        {"workers": 0},
        {"workers": 65},
    ])
    def test_bounds(self, kwargs):
        """Out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            SimulationConfig(**kwargs)

    def test_frozen(self):
        """Configs cannot be mutated."""
        config = SimulationConfig()
        with pytest.raises(ValidationError):
            config.iterations = 10

    def test_extra_fields_forbidden(self):
        """Unknown fields are rejected."""
        with pytest.raises(ValidationError):
            SimulationConfig(n_sims=500)


class TestPlannerConfig:
    """Tests for PlannerConfig."""

    def test_defaults(self):
        """Default regime, inflation and simulation settings."""
        config = PlannerConfig()

        assert config.tax_regime == "new"
        assert config.inflation_rate == 6.0
        assert config.use_category_inflation is True
        assert config.simulation == SimulationConfig()

    def test_unknown_regime(self):
        """Only the old and new regimes are accepted."""
        with pytest.raises(ValidationError):
            PlannerConfig(tax_regime="flat")

    def test_round_trip(self):
        """A dumped config validates back to itself."""
        config = PlannerConfig(tax_regime="old", simulation=SimulationConfig(seed=3))
        assert PlannerConfig.model_validate(config.model_dump()) == config


class TestGoalAndDebtConfig:
    """Tests for goal and debt entries."""

    def test_goal_defaults(self):
        """Optional goal fields fall back to defaults."""
        goal = GoalConfig(name="Car", target_amount=800_000, target_date=date(2028, 1, 1))

        assert goal.volatility is None
        assert goal.funding_type == "cash"
        assert goal.goal_type == "other"
        assert goal.downpayment_percent == 20.0

    def test_goal_date_parsed_from_string(self):
        """ISO date strings become dates."""
        goal = GoalConfig.model_validate(
            {"name": "Car", "target_amount": 800_000, "target_date": "2028-01-01"}
        )
        assert goal.target_date == date(2028, 1, 1)

    @pytest.mark.parametrize("kwargs", [
        {"target_amount": 0},
        {"goal_type": "yacht"},
        {"funding_type": "gift"},
        {"downpayment_percent": 150},
        {"loan_tenure_years": 0},
    ])
    def test_goal_invalid(self, kwargs):
        """Invalid goal fields are rejected."""
        params = dict(name="Car", target_amount=800_000, target_date=date(2028, 1, 1))
        params.update(kwargs)
        with pytest.raises(ValidationError):
            GoalConfig(**params)

    @pytest.mark.parametrize("kwargs", [
        {"principal": -1},
        {"monthly_installment": 0},
        {"loan_category": "boat"},
    ])
    def test_debt_invalid(self, kwargs):
        """Invalid debt fields are rejected."""
        params = dict(name="Card", principal=50_000, annual_interest_rate=36, monthly_installment=2_000)
        params.update(kwargs)
        with pytest.raises(ValidationError):
            DebtConfig(**params)

    def test_household_emis_default_unset(self):
        """Existing EMIs stay unset until derived from debts."""
        household = HouseholdConfig(monthly_income=100_000)
        assert household.existing_emis is None
        assert household.deductions.retirement_instruments == 0


class TestPlanConfig:
    """Tests for whole-plan validation."""

    def test_valid_plan(self, plan_dict):
        """A full plan validates."""
        data = dict(plan_dict)
        data.pop("schema_version")
        plan = PlanConfig.model_validate(data)

        assert plan.as_of == date(2025, 4, 1)
        assert [g.name for g in plan.goals] == ["Education", "Apartment"]
        assert plan.planner.simulation.seed == 7

    def test_duplicate_goal_names(self):
        """Goal names must be unique."""
        goal = {"name": "Car", "target_amount": 800_000, "target_date": "2028-01-01"}
        with pytest.raises(ValidationError, match="duplicate goals names"):
            PlanConfig.model_validate({
                "household": {"monthly_income": 100_000},
                "goals": [goal, goal],
            })

    def test_duplicate_debt_names(self):
        """Debt names must be unique."""
        debt = {"name": "Card", "principal": 1_000, "annual_interest_rate": 36, "monthly_installment": 100}
        with pytest.raises(ValidationError, match="duplicate debts names"):
            PlanConfig.model_validate({
                "household": {"monthly_income": 100_000},
                "debts": [debt, debt],
            })

    def test_goal_before_as_of_rejected(self):
        """Goals must fall after the plan date."""
        with pytest.raises(ValidationError, match="not after"):
            PlanConfig.model_validate({
                "as_of": "2025-04-01",
                "household": {"monthly_income": 100_000},
                "goals": [{"name": "Old", "target_amount": 1_000, "target_date": "2025-04-01"}],
            })

    def test_household_required(self):
        """A plan needs a household."""
        with pytest.raises(ValidationError):
            PlanConfig.model_validate({"name": "Empty"})


class TestAppSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch, tmp_path):
        """Settings defaults without environment overrides."""
        monkeypatch.chdir(tmp_path)
        for var in ("PROFIN_LOG_LEVEL", "PROFIN_DEFAULT_REGIME", "PROFIN_DEFAULT_ITERATIONS"):
            monkeypatch.delenv(var, raising=False)
        settings = AppSettings()

        assert settings.log_level == "WARNING"
        assert settings.default_regime == "new"
        assert settings.default_iterations == 1000
        assert settings.currency_symbol == "₹"

    def test_environment_override(self, monkeypatch, tmp_path):
        """PROFIN_ variables override defaults."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PROFIN_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("PROFIN_DEFAULT_REGIME", "old")
        settings = AppSettings()

        assert settings.log_level == "DEBUG"
        assert settings.default_regime == "old"

    def test_env_file(self, monkeypatch, tmp_path):
        """Values are read from a .env file."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PROFIN_DEFAULT_ITERATIONS", raising=False)
        (tmp_path / ".env").write_text("PROFIN_DEFAULT_ITERATIONS=250\n")

        assert AppSettings().default_iterations == 250
