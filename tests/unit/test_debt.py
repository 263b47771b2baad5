"""
Unit tests for debt.py module.

Tests priority scoring, debt analysis, waterfall payoff plans, the
minimum-payments baseline and surplus allocation.
"""

import pandas as pd
import pytest

from profin.constants import HORIZON_CAP_MONTHS
from profin.debt import (
    DebtRecord,
    allocate_surplus,
    analyze_debts,
    build_payoff_plan,
    priority_score,
    should_prioritize_debt,
    simulate_minimum_payments,
)
from profin.exceptions import ValidationError


# ============================================================================
# RECORDS AND PRIORITY
# ============================================================================

class TestDebtRecord:
    """Test DebtRecord validation."""

    def test_valid_record(self):
        """Monthly rate and first-month interest of a car loan."""
        d = DebtRecord("Car", 500_000, 9, 6_000, "car")
        assert d.monthly_rate == pytest.approx(0.0075)
        assert d.first_month_interest == pytest.approx(3_750)
        assert d.is_convergent

    @pytest.mark.parametrize("kwargs", [
        {"principal": -1},
        {"annual_interest_rate": -0.5},
        {"monthly_installment": 0},
        {"monthly_installment": -100},
        {"loan_category": "boat"},
    ])
    def test_invalid_record(self, kwargs):
        """Invalid debt fields raise ValidationError."""
        params = dict(name="X", principal=1_000, annual_interest_rate=10, monthly_installment=100)
        params.update(kwargs)
        with pytest.raises(ValidationError):
            DebtRecord(**params)

    def test_non_convergent_detected(self):
        """An installment below the monthly interest never pays off."""
        d = DebtRecord("Stuck", 1_000_000, 24, 10_000, "personal")
        assert not d.is_convergent


class TestPriorityScore:
    """Test the payoff priority heuristic."""

    @pytest.mark.parametrize("debt, expected", [
        (DebtRecord("cc", 30_000, 36, 3_000, "credit-card"), 100 + 50 + 20),
        (DebtRecord("pl", 150_000, 14, 7_000, "personal"), 60 + 30 + 10),
        (DebtRecord("home", 3_000_000, 8.5, 30_000, "home"), 40 - 30),
        (DebtRecord("edu", 400_000, 8, 8_000, "education"), 20 - 30),
        (DebtRecord("car", 500_000, 16, 12_000, "car"), 80),
    ])
    def test_scores(self, debt, expected):
        """Score per rate band and loan category."""
        assert priority_score(debt) == expected


# ============================================================================
# ANALYSIS
# ============================================================================

class TestAnalyzeDebts:
    """Test standalone debt analysis."""

    def test_empty(self):
        """No debts, no analysis."""
        assert analyze_debts([]) is None

    def test_sorted_by_priority(self, mixed_debts):
        """Debts are listed from highest priority down."""
        analysis = analyze_debts(mixed_debts)
        priorities = [a.priority for a in analysis.debts]
        assert priorities == sorted(priorities, reverse=True)
        assert analysis.debts[0].debt.name == "Credit card"

    def test_totals(self, card_and_car):
        """Totals and the balance-weighted average rate."""
        analysis = analyze_debts(card_and_car)
        assert analysis.total_debt == 600_000
        assert analysis.total_monthly_payment == 11_000
        assert analysis.weighted_average_rate == pytest.approx((24 * 100_000 + 9 * 500_000) / 600_000)

    def test_high_interest_flag(self, card_and_car):
        """Rates above the threshold are flagged."""
        flags = {a.debt.name: a.is_high_interest for a in analyze_debts(card_and_car).debts}
        assert flags == {"Credit card": True, "Car loan": False}

    def test_non_convergent_bounded(self, caplog):
        """Non-convergent debts stop at the horizon cap and are reported."""
        stuck = DebtRecord("Stuck", 1_000_000, 24, 10_000, "personal")
        analysis = analyze_debts([stuck])

        assert analysis.debts[0].months_remaining == HORIZON_CAP_MONTHS
        assert not analysis.debts[0].converges
        assert analysis.non_convergent == [stuck]
        assert "does not cover interest" in caplog.text


# ============================================================================
# PAYOFF PLAN
# ============================================================================

class TestBuildPayoffPlan:
    """Test waterfall payoff simulation."""

    def test_no_debts(self):
        """No debts, no plan."""
        assert build_payoff_plan([]) is None

    def test_avalanche_pays_expensive_debt_first(self, card_and_car):
        """The extra payment goes to the highest rate first."""
        plan = build_payoff_plan(card_and_car, extra_payment=2_000, method="avalanche")

        first_month = [r for r in plan.schedule if r["month"] == 1]
        assert first_month[0]["debt"] == "Credit card"
        assert first_month[0]["payment"] == pytest.approx(7_000)
        assert first_month[1]["payment"] == pytest.approx(6_000)
        assert plan.payoff_month("Credit card") < plan.payoff_month("Car loan")
        assert plan.converged

    def test_snowball_orders_by_balance(self):
        """Snowball targets the smallest balance first."""
        debts = [
            DebtRecord("Big", 400_000, 20, 10_000, "personal"),
            DebtRecord("Small", 20_000, 10, 1_000, "other"),
        ]
        plan = build_payoff_plan(debts, extra_payment=3_000, method="snowball")
        assert plan.schedule[0]["debt"] == "Small"
        assert plan.schedule[0]["payment"] == pytest.approx(4_000)

    def test_ties_keep_input_order(self):
        """Equal rates keep the order the debts were given in."""
        debts = [
            DebtRecord("First", 50_000, 12, 2_000, "other"),
            DebtRecord("Second", 80_000, 12, 2_000, "other"),
        ]
        plan = build_payoff_plan(debts, extra_payment=1_000, method="avalanche")
        assert [d["name"] for d in plan.debts] == ["First", "Second"]
        assert plan.schedule[0]["payment"] == pytest.approx(3_000)

    def test_freed_installment_rolls_over(self, card_and_car):
        """After the card is paid off, its installment goes to the car loan every month."""
        plan = build_payoff_plan(card_and_car, extra_payment=2_000, method="avalanche")
        df = plan.to_frame()
        payoff = plan.payoff_month("Credit card")

        later = df[(df["debt"] == "Car loan") & (df["month"] > payoff) & (df["month"] < plan.total_months)]
        assert len(later) > 1
        assert later["payment"].tolist() == pytest.approx([6_000 + 5_000 + 2_000] * len(later))

    def test_payment_capped_at_balance_plus_interest(self, card_and_car):
        """The last payment clears the balance exactly."""
        plan = build_payoff_plan(card_and_car, extra_payment=2_000)
        for row in plan.schedule:
            assert row["balance"] >= 0
        last_card = [r for r in plan.schedule if r["debt"] == "Credit card"][-1]
        assert last_card["balance"] == 0
        assert last_card["payment"] <= 5_000 + 2_000

    def test_beats_baseline(self, mixed_debts):
        """Extra payments finish sooner and cost less interest."""
        plan = build_payoff_plan(mixed_debts, extra_payment=5_000)
        assert plan.baseline.months >= plan.total_months
        assert plan.baseline.total_interest >= plan.total_interest
        assert plan.months_saved >= 0
        assert plan.interest_saved >= 0

    def test_no_extra_still_not_worse_than_baseline(self, card_and_car):
        """Rolling over freed installments alone never hurts."""
        plan = build_payoff_plan(card_and_car, extra_payment=0)
        assert plan.baseline.months >= plan.total_months
        assert plan.baseline.total_interest >= plan.total_interest - 1e-6

    def test_summary_totals_consistent(self, card_and_car):
        """Schedule sums match the plan totals."""
        plan = build_payoff_plan(card_and_car, extra_payment=2_000)
        df = plan.to_frame()

        assert df["payment"].sum() == pytest.approx(plan.total_paid)
        assert df["interest"].sum() == pytest.approx(plan.total_interest)
        assert plan.total_paid == pytest.approx(600_000 + plan.total_interest)
        for d in plan.debts:
            assert d["total_paid"] == pytest.approx(d["initial_balance"] + d["interest_paid"])

    def test_to_frame_columns(self, card_and_car):
        """The schedule frame has one column per row field."""
        df = build_payoff_plan(card_and_car).to_frame()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["month", "debt", "payment", "interest", "principal", "balance"]

    def test_non_convergent_plan_stops_at_cap(self, caplog):
        """Plans that cannot finish stop at 600 months."""
        debts = [DebtRecord("Stuck", 1_000_000, 24, 10_000, "personal")]
        plan = build_payoff_plan(debts)

        assert plan.total_months == HORIZON_CAP_MONTHS
        assert not plan.converged
        assert plan.payoff_month("Stuck") is None
        assert "did not converge" in caplog.text

    def test_zero_balance_debt(self):
        """A debt with nothing owed is paid off at month 0."""
        debts = [
            DebtRecord("Closed", 0, 10, 1_000, "other"),
            DebtRecord("Open", 10_000, 10, 1_000, "other"),
        ]
        plan = build_payoff_plan(debts)
        assert plan.payoff_month("Closed") == 0
        assert all(r["debt"] == "Open" for r in plan.schedule)

    def test_unknown_payoff_month_name(self, card_and_car):
        """Asking for an unknown debt raises KeyError."""
        with pytest.raises(KeyError):
            build_payoff_plan(card_and_car).payoff_month("Boat")

    def test_invalid_method(self, card_and_car):
        """Only avalanche and snowball are accepted."""
        with pytest.raises(ValidationError, match="unknown payoff method"):
            build_payoff_plan(card_and_car, method="random")

    def test_negative_extra(self, card_and_car):
        """Negative extra payments are rejected."""
        with pytest.raises(ValidationError):
            build_payoff_plan(card_and_car, extra_payment=-1)


class TestMinimumPayments:
    """Test the baseline simulation."""

    def test_each_debt_at_own_pace(self, card_and_car):
        """The baseline ends when the slowest debt is repaid."""
        base = simulate_minimum_payments(card_and_car)
        car_alone = simulate_minimum_payments([card_and_car[1]])
        assert base.months == car_alone.months
        assert base.converged


# ============================================================================
# DEBT VS INVESTING
# ============================================================================

class TestSurplusAllocation:
    """Test prioritization and surplus split."""

    def test_no_debt(self):
        """Without debt there is nothing to prioritize."""
        res = should_prioritize_debt([])
        assert not res.prioritize_debt
        assert res.reason == "No debt"

    def test_expensive_debt_prioritized(self, card_and_car):
        """Debt costlier than the expected return comes first."""
        res = should_prioritize_debt(card_and_car, investment_return=12)
        assert res.prioritize_debt
        assert [d.name for d in res.debts] == ["Credit card"]

    def test_cheap_credit_card_still_prioritized(self):
        """Credit cards are always prioritized."""
        debts = [DebtRecord("Promo card", 20_000, 0, 2_000, "credit-card")]
        res = should_prioritize_debt(debts)
        assert res.prioritize_debt
        assert "credit card" in res.reason

    def test_cheap_debt_not_prioritized(self):
        """Cheap home loans do not beat investing."""
        debts = [DebtRecord("Home", 3_000_000, 8.5, 30_000, "home")]
        assert not should_prioritize_debt(debts).prioritize_debt

    def test_allocate_half_of_expensive_emis(self, card_and_car):
        """Half of the expensive EMIs go to debt, the rest to goals."""
        split = allocate_surplus(20_000, card_and_car)
        assert split.to_debt == pytest.approx(2_500)
        assert split.to_goals == pytest.approx(17_500)

    def test_allocate_capped_by_surplus(self, card_and_car):
        """Debt never gets more than the surplus."""
        split = allocate_surplus(1_000, card_and_car)
        assert split.to_debt == pytest.approx(1_000)
        assert split.to_goals == 0

    def test_allocate_all_to_goals(self):
        """Everything goes to goals when no debt is expensive."""
        debts = [DebtRecord("Home", 3_000_000, 8.5, 30_000, "home")]
        split = allocate_surplus(10_000, debts)
        assert split.to_debt == 0
        assert split.to_goals == 10_000
