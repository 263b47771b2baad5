"""
Debt payoff simulator for ProFin.

Purpose
-------
Builds month-by-month payoff schedules for a set of debts under the
avalanche (highest rate first) or snowball (smallest balance first)
ordering, and compares them with a minimum-payments baseline.

Waterfall reallocation
----------------------
Each month every active debt accrues interest on its balance and receives
its installment. The first debt in order that still carries a balance
also receives the extra payment plus the installments of every debt that
was paid off in an earlier month. Freed installments keep flowing to the
next target for the rest of the schedule.

Payments are capped at balance + interest. The simulation stops once all
balances are zero or after ``HORIZON_CAP_MONTHS`` months, in which case
the plan is marked ``converged=False``.

Example
-------
>>> from profin.debt import DebtRecord, build_payoff_plan
>>> debts = [
...     DebtRecord("Credit card", 100_000, 24, 5_000, "credit-card"),
...     DebtRecord("Car loan", 500_000, 9, 6_000, "car"),
... ]
>>> plan = build_payoff_plan(debts, extra_payment=2_000, method="avalanche")
>>> plan.payoff_month("Credit card") < plan.payoff_month("Car loan")
True
>>> plan.months_saved >= 0
True
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Dict, List, Literal, Optional, Sequence

import pandas as pd

from .constants import DEFAULT_EXPECTED_RETURN, HORIZON_CAP_MONTHS
from .exceptions import ValidationError
from .types import DebtSummaryDict, PaymentRowDict
from .utils import check_non_negative, check_positive, format_currency, round_money

__all__ = [
    "LOAN_CATEGORIES",
    "PayoffMethod",
    "DebtRecord",
    "priority_score",
    "DebtAnalysis",
    "DebtPortfolioAnalysis",
    "analyze_debts",
    "PayoffPlan",
    "BaselineResult",
    "build_payoff_plan",
    "simulate_minimum_payments",
    "DebtPriority",
    "should_prioritize_debt",
    "SurplusAllocation",
    "allocate_surplus",
]

LOGGER = logging.getLogger(__name__)

PayoffMethod = Literal["avalanche", "snowball"]

LOAN_CATEGORIES = ("home", "car", "education", "personal", "credit-card", "gold", "other")
TAX_ADVANTAGED_CATEGORIES = frozenset({"home", "education"})
HIGH_INTEREST_THRESHOLD = 12.0


# ---------------------------------------------------------------------------
# Debt records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DebtRecord:
    """
    One outstanding loan.

    Parameters
    ----------
    name : str
        Identifier used in schedules and summaries.
    principal : float
        Outstanding balance (≥ 0).
    annual_interest_rate : float
        Annual rate in whole percent (≥ 0).
    monthly_installment : float
        Contractual monthly payment (> 0).
    loan_category : str, default "other"
        One of ``LOAN_CATEGORIES``.
    """
    name: str
    principal: float
    annual_interest_rate: float
    monthly_installment: float
    loan_category: str = "other"

    def __post_init__(self):
        check_non_negative(f"{self.name}.principal", self.principal)
        check_non_negative(f"{self.name}.annual_interest_rate", self.annual_interest_rate)
        check_positive(f"{self.name}.monthly_installment", self.monthly_installment)
        if self.loan_category not in LOAN_CATEGORIES:
            raise ValidationError(
                f"{self.name}: unknown loan category '{self.loan_category}'. "
                f"Valid categories: {list(LOAN_CATEGORIES)}"
            )

    @property
    def monthly_rate(self) -> float:
        return self.annual_interest_rate / 100.0 / 12.0

    @property
    def first_month_interest(self) -> float:
        return self.principal * self.monthly_rate

    @property
    def is_convergent(self) -> bool:
        """True if the installment outpaces the first month's interest."""
        return self.principal == 0 or self.monthly_installment > self.first_month_interest


def priority_score(debt: DebtRecord) -> int:
    """
    Heuristic payoff priority (higher = pay first).

    Rate band (>20: 100, >15: 80, >12: 60, >8: 40, else 20), +50 for
    credit cards, +30 for personal loans, +20/+10 for balances under
    50,000/200,000, and -30 for tax-advantaged (home, education) loans.
    """
    rate = debt.annual_interest_rate
    if rate > 20:
        score = 100
    elif rate > 15:
        score = 80
    elif rate > 12:
        score = 60
    elif rate > 8:
        score = 40
    else:
        score = 20

    if debt.loan_category == "credit-card":
        score += 50
    elif debt.loan_category == "personal":
        score += 30

    if debt.principal < 50_000:
        score += 20
    elif debt.principal < 200_000:
        score += 10

    if debt.loan_category in TAX_ADVANTAGED_CATEGORIES:
        score -= 30
    return score


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DebtAnalysis:
    debt: DebtRecord
    months_remaining: int
    total_interest: float
    priority: int
    converges: bool

    @property
    def is_high_interest(self) -> bool:
        return self.debt.annual_interest_rate > HIGH_INTEREST_THRESHOLD


@dataclass(frozen=True)
class DebtPortfolioAnalysis:
    debts: List[DebtAnalysis]
    total_debt: float
    total_monthly_payment: float
    total_interest: float
    weighted_average_rate: float

    @property
    def non_convergent(self) -> List[DebtRecord]:
        return [a.debt for a in self.debts if not a.converges]


def _standalone_payoff(debt: DebtRecord) -> DebtAnalysis:
    balance = float(debt.principal)
    months = 0
    interest_total = 0.0
    while balance > 0 and months < HORIZON_CAP_MONTHS:
        interest = balance * debt.monthly_rate
        due = balance + interest
        payment = min(debt.monthly_installment, due)
        balance = 0.0 if payment >= due else due - payment
        interest_total += interest
        months += 1
    return DebtAnalysis(
        debt=debt,
        months_remaining=months,
        total_interest=interest_total,
        priority=priority_score(debt),
        converges=balance == 0,
    )


def analyze_debts(debts: Sequence[DebtRecord]) -> Optional[DebtPortfolioAnalysis]:
    """
    Per-debt payoff horizon and interest when paying installments only.

    Debts are returned sorted by priority (highest first; ties keep input
    order). Returns None when there are no debts.
    """
    if not debts:
        return None
    analyses = sorted((_standalone_payoff(d) for d in debts), key=lambda a: -a.priority)
    total = sum(d.principal for d in debts)
    weighted = (
        sum(d.annual_interest_rate * d.principal for d in debts) / total if total > 0 else 0.0
    )
    for a in analyses:
        if not a.converges:
            LOGGER.warning(
                "%s: installment %.2f does not cover interest %.2f; payoff exceeds %d months",
                a.debt.name, a.debt.monthly_installment, a.debt.first_month_interest,
                HORIZON_CAP_MONTHS,
            )
    return DebtPortfolioAnalysis(
        debts=analyses,
        total_debt=total,
        total_monthly_payment=sum(d.monthly_installment for d in debts),
        total_interest=sum(a.total_interest for a in analyses),
        weighted_average_rate=weighted,
    )


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

@dataclass
class _Ledger:
    """Mutable per-debt state for one simulation run."""
    debt: DebtRecord
    balance: float
    paid: float = 0.0
    interest: float = 0.0
    months_paid: int = 0
    payoff_month: Optional[int] = None


def _order(debts: Sequence[DebtRecord], method: str) -> List[DebtRecord]:
    if method == "avalanche":
        return sorted(debts, key=lambda d: -d.annual_interest_rate)
    if method == "snowball":
        return sorted(debts, key=lambda d: d.principal)
    raise ValidationError(
        f"unknown payoff method '{method}'. Valid methods: ['avalanche', 'snowball']"
    )


def _run(
    ordered: Sequence[DebtRecord],
    extra_payment: float,
    reallocate: bool,
    schedule: Optional[List[PaymentRowDict]] = None,
) -> tuple[int, List[_Ledger]]:
    ledgers = [
        _Ledger(d, float(d.principal), payoff_month=0 if d.principal == 0 else None)
        for d in ordered
    ]
    freed = 0.0
    month = 0
    while any(l.balance > 0 for l in ledgers) and month < HORIZON_CAP_MONTHS:
        month += 1
        target = next(l for l in ledgers if l.balance > 0)
        paid_off_now = []
        for l in ledgers:
            if l.balance <= 0:
                continue
            interest = l.balance * l.debt.monthly_rate
            due = l.balance + interest
            payment = l.debt.monthly_installment
            if l is target:
                payment += extra_payment + freed
            payment = min(payment, due)
            l.balance = 0.0 if payment >= due else due - payment
            l.paid += payment
            l.interest += interest
            l.months_paid += 1
            if schedule is not None:
                schedule.append({
                    "month": month,
                    "debt": l.debt.name,
                    "payment": payment,
                    "interest": interest,
                    "principal": payment - interest,
                    "balance": l.balance,
                })
            if l.balance == 0:
                l.payoff_month = month
                paid_off_now.append(l)
        # installments freed this month are available from next month on
        if reallocate:
            freed += sum(l.debt.monthly_installment for l in paid_off_now)
    return month, ledgers


@dataclass(frozen=True)
class BaselineResult:
    """Outcome of paying only the contractual installments."""
    months: int
    total_paid: float
    total_interest: float
    converged: bool


def simulate_minimum_payments(debts: Sequence[DebtRecord]) -> BaselineResult:
    """Pay every debt its installment only: no extra, no reallocation."""
    months, ledgers = _run(list(debts), 0.0, reallocate=False)
    return BaselineResult(
        months=months,
        total_paid=sum(l.paid for l in ledgers),
        total_interest=sum(l.interest for l in ledgers),
        converged=all(l.balance == 0 for l in ledgers),
    )


@dataclass(frozen=True)
class PayoffPlan:
    """
    Optimized payoff schedule and its comparison with the baseline.

    Attributes
    ----------
    method : str
        "avalanche" or "snowball".
    extra_payment : float
        Monthly amount on top of the installments.
    schedule : List[PaymentRowDict]
        One row per (month, active debt), in payment order.
    debts : List[DebtSummaryDict]
        Per-debt totals, in payment order.
    total_months : int
        Months until the last balance reached zero (or the cap).
    total_paid, total_interest : float
        Sums over all debts.
    converged : bool
        False when the month cap was hit with balances outstanding.
    baseline : BaselineResult
        Minimum-payments comparison run.
    """
    method: str
    extra_payment: float
    schedule: List[PaymentRowDict] = field(repr=False)
    debts: List[DebtSummaryDict]
    total_months: int
    total_paid: float
    total_interest: float
    converged: bool
    baseline: BaselineResult

    @property
    def months_saved(self) -> int:
        return self.baseline.months - self.total_months

    @property
    def interest_saved(self) -> float:
        return self.baseline.total_interest - self.total_interest

    def payoff_month(self, name: str) -> Optional[int]:
        """Month in which debt ``name`` reached zero (None if it never did)."""
        for d in self.debts:
            if d["name"] == name:
                return d.get("payoff_month")
        raise KeyError(name)

    def to_frame(self) -> pd.DataFrame:
        """Schedule as a DataFrame with columns month, debt, payment, interest, principal, balance."""
        return pd.DataFrame(
            self.schedule,
            columns=["month", "debt", "payment", "interest", "principal", "balance"],
        )

    def summary(self) -> Dict[str, object]:
        return {
            "method": self.method,
            "total_months": self.total_months,
            "total_paid": round_money(self.total_paid),
            "total_interest": round_money(self.total_interest),
            "months_saved": self.months_saved,
            "interest_saved": round_money(self.interest_saved),
            "converged": self.converged,
        }


def build_payoff_plan(
    debts: Sequence[DebtRecord],
    extra_payment: float = 0.0,
    method: PayoffMethod = "avalanche",
) -> Optional[PayoffPlan]:
    """
    Simulate the waterfall payoff of ``debts``.

    Parameters
    ----------
    debts : Sequence[DebtRecord]
        Debts to pay off. An empty sequence returns None.
    extra_payment : float, default 0
        Monthly surplus directed at the first unpaid debt in order.
    method : {"avalanche", "snowball"}
        Avalanche orders by rate (highest first), snowball by balance
        (smallest first). Ties keep input order.

    Returns
    -------
    PayoffPlan or None

    Raises
    ------
    ValidationError
        Unknown method or negative extra payment.
    """
    check_non_negative("extra_payment", extra_payment)
    ordered = _order(debts, method)
    if not ordered:
        return None

    schedule: List[PaymentRowDict] = []
    months, ledgers = _run(ordered, float(extra_payment), reallocate=True, schedule=schedule)
    converged = all(l.balance == 0 for l in ledgers)
    if not converged:
        LOGGER.warning(
            "payoff plan did not converge within %d months; outstanding: %s",
            HORIZON_CAP_MONTHS,
            ", ".join(l.debt.name for l in ledgers if l.balance > 0),
        )

    summaries: List[DebtSummaryDict] = []
    for l in ledgers:
        row: DebtSummaryDict = {
            "name": l.debt.name,
            "initial_balance": float(l.debt.principal),
            "total_paid": l.paid,
            "interest_paid": l.interest,
            "months_paid": l.months_paid,
        }
        if l.payoff_month is not None:
            row["payoff_month"] = l.payoff_month
        summaries.append(row)

    return PayoffPlan(
        method=method,
        extra_payment=float(extra_payment),
        schedule=schedule,
        debts=summaries,
        total_months=months,
        total_paid=sum(l.paid for l in ledgers),
        total_interest=sum(l.interest for l in ledgers),
        converged=converged,
        baseline=simulate_minimum_payments(ordered),
    )


# ---------------------------------------------------------------------------
# Debt vs. investing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DebtPriority:
    prioritize_debt: bool
    reason: str
    debts: List[DebtRecord] = field(default_factory=list)


def should_prioritize_debt(
    debts: Sequence[DebtRecord],
    investment_return: float = DEFAULT_EXPECTED_RETURN,
) -> DebtPriority:
    """
    Whether surplus should go to debt before goals.

    Yes when any debt costs more than ``investment_return``, or when
    there is credit-card debt at all.
    """
    if not debts:
        return DebtPriority(False, "No debt")
    expensive = [d for d in debts if d.annual_interest_rate > investment_return]
    if expensive:
        total = sum(d.principal for d in expensive)
        return DebtPriority(
            True,
            f"Clear high-interest debt first ({format_currency(total)} "
            f"at rates above {investment_return:g}%)",
            expensive,
        )
    cards = [d for d in debts if d.loan_category == "credit-card"]
    if cards:
        return DebtPriority(True, "Clear credit card debt first", cards)
    return DebtPriority(
        False,
        f"Debt interest rates are below expected investment returns ({investment_return:g}%)",
    )


@dataclass(frozen=True)
class SurplusAllocation:
    to_debt: float
    to_goals: float
    recommendation: str


def allocate_surplus(
    surplus: float,
    debts: Sequence[DebtRecord],
    investment_return: float = DEFAULT_EXPECTED_RETURN,
) -> SurplusAllocation:
    """
    Split a monthly surplus between extra debt payments and goals.

    When debt takes priority, up to half the installments of debts
    costing more than ``investment_return`` go to debt; the rest to goals.
    """
    check_non_negative("surplus", surplus)
    priority = should_prioritize_debt(debts, investment_return)
    if not priority.prioritize_debt:
        return SurplusAllocation(0.0, float(surplus), "Invest entire surplus in goals")

    expensive_emis = sum(
        d.monthly_installment for d in debts if d.annual_interest_rate > investment_return
    )
    to_debt = min(float(surplus), expensive_emis * 0.5)
    if to_debt > 0:
        message = f"Allocate {format_currency(to_debt)} extra to debt payoff"
    else:
        message = "Invest surplus in goals"
    return SurplusAllocation(to_debt, float(surplus) - to_debt, message)
