"""
Tax engine for ProFin.

Purpose
-------
Computes annual income-tax liability under a configurable regime. The
engine is a fixed seven-step pipeline; regimes differ only in the data in
``profin.tax_data`` (slabs, deductions, rebate, surcharge, cess, gains).

Pipeline
--------
1. Subtract the standard deduction.
2. If the regime allows itemized deductions, subtract each category capped
   at its ceiling, plus the HRA exemption. Taxable income is floored at 0.
3. Progressive slab tax (each slab taxes only the income inside it).
4. Rebate = min(slab tax, cap) when taxable income ≤ rebate threshold.
5. Surcharge = base tax × rate of the highest tier taxable income exceeds.
6. Cess = cess% × (base tax + surcharge).
7. Capital gains: LTCG above the exemption and STCG at flat rates.

Example
-------
>>> from profin.tax import compute_tax, compare_regimes
>>> res = compute_tax(1_200_000, "new", {})
>>> res.taxable_income, res.base_tax
(1125000.0, 52500.0)
>>> compare_regimes(1_200_000).cheaper
'new'
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, fields
import logging
from typing import Dict, Iterable, Mapping, Optional, Union

from .exceptions import ConfigurationError, ValidationError
from .tax_data import REGIMES, RETIREMENT_INSTRUMENT_TYPES, TaxRegimeConfig, TaxSlab
from .types import TaxBreakdownDict
from .utils import check_non_negative, format_currency, round_money

__all__ = [
    "DeductionInputs",
    "TaxResult",
    "RegimeComparison",
    "HarvestingOpportunity",
    "DeductionUtilization",
    "BracketChange",
    "get_regime",
    "compute_tax",
    "compare_regimes",
    "marginal_rate",
    "post_tax_return",
    "harvesting_opportunity",
    "retirement_deduction_utilization",
    "tax_bracket_change",
]

LOGGER = logging.getLogger(__name__)

RegimeLike = Union[str, TaxRegimeConfig]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeductionInputs:
    """
    Annual deduction claims and capital gains of one taxpayer.

    Amounts are what the taxpayer claims; ceilings are applied by the
    engine, and only for regimes that allow itemized deductions. Capital
    gains are taxed under every regime.

    Parameters
    ----------
    retirement_instruments : float, default 0
        PPF, ELSS, EPF, life premiums, tuition, home-loan principal (80C).
    health_insurance : float, default 0
        Health insurance premiums for self and parents (80D).
    pension_scheme : float, default 0
        Additional pension-scheme contribution (80CCD(1B)).
    mortgage_interest : float, default 0
        Interest on a self-occupied home loan (24(b)).
    hra_exemption : float, default 0
        House-rent allowance exemption, deducted as given (no ceiling).
    long_term_gains : float, default 0
        Long-term capital gains realized in the year.
    short_term_gains : float, default 0
        Short-term capital gains realized in the year.
    """
    retirement_instruments: float = 0.0
    health_insurance: float = 0.0
    pension_scheme: float = 0.0
    mortgage_interest: float = 0.0
    hra_exemption: float = 0.0
    long_term_gains: float = 0.0
    short_term_gains: float = 0.0

    def __post_init__(self):
        for f in fields(self):
            check_non_negative(f.name, getattr(self, f.name))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, float]]) -> "DeductionInputs":
        """Build from a dict; unknown keys raise ValidationError."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValidationError(
                f"unknown deduction field(s): {sorted(unknown)}. "
                f"Valid fields: {sorted(known)}"
            )
        values = {}
        for k, v in data.items():
            try:
                values[k] = float(v)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"deduction '{k}' must be a number, got {v!r}") from e
        return cls(**values)


DeductionsLike = Union[DeductionInputs, Mapping[str, float], None]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaxResult:
    """
    Annual tax liability under one regime.

    Attributes
    ----------
    regime : str
        Regime name.
    gross_income : float
        Income before deductions.
    taxable_income : float
        Income after deductions, floored at 0.
    slab_tax : float
        Progressive tax before rebate.
    rebate : float
        Rebate granted (0 above the threshold).
    base_tax : float
        slab_tax - rebate.
    surcharge, cess, capital_gains_tax : float
        Components added on top of base tax.
    total_tax : float
        base_tax + surcharge + cess + capital_gains_tax.
    effective_rate : float
        total_tax / gross_income as a fraction (0 when gross ≤ 0).
    breakdown : TaxBreakdownDict
        Deductions, exemptions and per-slab tax.
    """
    regime: str
    gross_income: float
    taxable_income: float
    slab_tax: float
    rebate: float
    base_tax: float
    surcharge: float
    cess: float
    capital_gains_tax: float
    total_tax: float
    effective_rate: float
    breakdown: TaxBreakdownDict

    @property
    def monthly_tax(self) -> float:
        return self.total_tax / 12.0

    def to_dict(self) -> Dict[str, object]:
        """Presentation view with rounded amounts and the effective rate in %."""
        out: Dict[str, object] = {
            k: round_money(v) if isinstance(v, float) else v
            for k, v in asdict(self).items()
            if k not in ("breakdown", "effective_rate")
        }
        out["effective_rate_pct"] = round(self.effective_rate * 100.0, 2)
        out["monthly_tax"] = round_money(self.monthly_tax)
        return out


@dataclass(frozen=True)
class RegimeComparison:
    old: TaxResult
    new: TaxResult

    @property
    def difference(self) -> float:
        """old.total_tax - new.total_tax (positive: new regime is cheaper)."""
        return self.old.total_tax - self.new.total_tax

    @property
    def cheaper(self) -> str:
        return "new" if self.difference >= 0 else "old"

    @property
    def savings(self) -> float:
        return abs(self.difference)

    @property
    def recommendation(self) -> str:
        if self.savings == 0:
            return "Both regimes result in the same tax; the new regime needs no paperwork."
        return (
            f"The {self.cheaper} regime saves you {format_currency(round_money(self.savings))} per year"
        )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def get_regime(regime: RegimeLike) -> TaxRegimeConfig:
    """Resolve a regime name to its configuration (configs pass through)."""
    if isinstance(regime, TaxRegimeConfig):
        return regime
    try:
        return REGIMES[regime]
    except KeyError:
        raise ConfigurationError(
            f"unknown tax regime '{regime}'. Valid regimes: {sorted(REGIMES)}"
        ) from None


def _slab_taxes(taxable_income: float, slabs: Iterable[TaxSlab]) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for slab in slabs:
        if taxable_income <= slab.lower:
            break
        upper = taxable_income if slab.upper is None else min(taxable_income, slab.upper)
        # multiply before dividing so round amounts stay exact
        out[slab.label] = (upper - slab.lower) * slab.rate / 100.0
    return out


def _itemized(config: TaxRegimeConfig, d: DeductionInputs) -> Dict[str, float]:
    caps = config.ceilings
    return {
        "retirement_instruments": min(d.retirement_instruments, caps.retirement_instruments),
        "health_insurance": min(d.health_insurance, caps.health_insurance),
        "pension_scheme": min(d.pension_scheme, caps.pension_scheme),
        "mortgage_interest": min(d.mortgage_interest, caps.mortgage_interest),
    }


def compute_tax(
    gross_income: float,
    regime: RegimeLike = "new",
    deductions: DeductionsLike = None,
) -> TaxResult:
    """
    Compute annual tax for ``gross_income`` under ``regime``.

    Parameters
    ----------
    gross_income : float
        Annual gross income (non-negative).
    regime : str or TaxRegimeConfig, default "new"
        Regime name ("old", "new") or a custom configuration.
    deductions : DeductionInputs or mapping, optional
        Deduction claims and capital gains. Itemized claims are ignored
        by regimes that do not allow them.

    Returns
    -------
    TaxResult

    Raises
    ------
    ValidationError
        If gross income or any deduction is negative.
    ConfigurationError
        If the regime name is unknown.
    """
    check_non_negative("gross_income", gross_income)
    config = get_regime(regime)
    d = deductions if isinstance(deductions, DeductionInputs) else DeductionInputs.from_mapping(deductions)
    gross = float(gross_income)

    # 1-2. deductions
    applied = {"standard_deduction": config.standard_deduction}
    exemptions: Dict[str, float] = {}
    if config.allows_itemized:
        applied.update(_itemized(config, d))
        exemptions["hra"] = d.hra_exemption
    taxable = max(0.0, gross - sum(applied.values()) - sum(exemptions.values()))

    # 3. slabs
    slab_taxes = _slab_taxes(taxable, config.slabs)
    slab_tax = sum(slab_taxes.values())

    # 4. rebate
    rebate = min(slab_tax, config.rebate_cap) if taxable <= config.rebate_threshold else 0.0
    base_tax = slab_tax - rebate

    # 5. surcharge (single tier rate, not marginal)
    surcharge_rate = 0.0
    for tier in config.surcharge_tiers:
        if taxable > tier.threshold:
            surcharge_rate = tier.rate
    surcharge = base_tax * surcharge_rate / 100.0

    # 6. cess
    cess = (base_tax + surcharge) * config.cess_rate / 100.0

    # 7. capital gains
    ltcg_tax = max(0.0, d.long_term_gains - config.ltcg_exemption) * config.ltcg_rate / 100.0
    stcg_tax = d.short_term_gains * config.stcg_rate / 100.0
    gains_tax = ltcg_tax + stcg_tax

    total = base_tax + surcharge + cess + gains_tax
    LOGGER.debug(
        "compute_tax[%s]: gross=%.2f taxable=%.2f base=%.2f total=%.2f",
        config.name, gross, taxable, base_tax, total,
    )
    return TaxResult(
        regime=config.name,
        gross_income=gross,
        taxable_income=taxable,
        slab_tax=slab_tax,
        rebate=rebate,
        base_tax=base_tax,
        surcharge=surcharge,
        cess=cess,
        capital_gains_tax=gains_tax,
        total_tax=total,
        effective_rate=total / gross if gross > 0 else 0.0,
        breakdown={
            "gross_income": gross,
            "deductions": applied,
            "exemptions": exemptions,
            "taxable_income": taxable,
            "slab_taxes": slab_taxes,
        },
    )


def compare_regimes(
    gross_income: float,
    deductions: DeductionsLike = None,
) -> RegimeComparison:
    """Compute tax under both regimes; ties favour the new regime."""
    return RegimeComparison(
        old=compute_tax(gross_income, "old", deductions),
        new=compute_tax(gross_income, "new", deductions),
    )


# ---------------------------------------------------------------------------
# Helpers built on the regime data
# ---------------------------------------------------------------------------

def marginal_rate(gross_income: float, regime: RegimeLike = "new") -> float:
    """Rate (%) of the highest slab whose lower bound ``gross_income`` exceeds."""
    config = get_regime(regime)
    for slab in reversed(config.slabs):
        if gross_income > slab.lower:
            return slab.rate
    return 0.0


_EQUITY_TYPES = frozenset({"equity", "mutual-funds"})
_DEBT_TYPES = frozenset({"fd", "bonds"})
_EXEMPT_TYPES = frozenset({"ppf", "epf"})
_PHYSICAL_TYPES = frozenset({"gold", "real-estate"})


def post_tax_return(
    pre_tax_return: float,
    investment_type: str,
    holding_period: str = "long",
    tax_bracket: float = 30.0,
) -> float:
    """
    Approximate post-tax return (%) of an instrument.

    Interest-bearing instruments (fd, bonds) are taxed at ``tax_bracket``;
    equity and mutual funds at 12.5% long term or 20% short term; ppf and
    epf are exempt; nps has 40% of the return taxable; gold and real
    estate keep 85% of the return. Unknown types are taxed at the bracket.
    """
    config = get_regime("new")
    kind = investment_type.lower()
    if kind in _DEBT_TYPES:
        return pre_tax_return * (1.0 - tax_bracket / 100.0)
    if kind in _EQUITY_TYPES:
        rate = config.ltcg_rate if holding_period == "long" else config.stcg_rate
        return pre_tax_return * (1.0 - rate / 100.0)
    if kind in _EXEMPT_TYPES:
        return pre_tax_return
    if kind == "nps":
        return pre_tax_return * (1.0 - 0.4 * tax_bracket / 100.0)
    if kind in _PHYSICAL_TYPES:
        return pre_tax_return * 0.85
    return pre_tax_return * (1.0 - tax_bracket / 100.0)


@dataclass(frozen=True)
class HarvestingOpportunity:
    remaining_exemption: float
    harvestable_amount: float
    tax_saved: float

    @property
    def has_opportunity(self) -> bool:
        return self.harvestable_amount > 0


def harvesting_opportunity(
    realized_gains: float,
    unrealized_gains: float,
    regime: RegimeLike = "new",
) -> HarvestingOpportunity:
    """
    How much unrealized long-term gain can be booked tax-free this year.

    Booking gains up to the remaining LTCG exemption resets the cost basis
    without tax; the saving is that amount at the LTCG rate.
    """
    check_non_negative("realized_gains", realized_gains)
    check_non_negative("unrealized_gains", unrealized_gains)
    config = get_regime(regime)
    remaining = max(0.0, config.ltcg_exemption - realized_gains)
    harvestable = min(remaining, unrealized_gains)
    return HarvestingOpportunity(
        remaining_exemption=remaining,
        harvestable_amount=harvestable,
        tax_saved=harvestable * config.ltcg_rate / 100.0,
    )


@dataclass(frozen=True)
class DeductionUtilization:
    used: float
    limit: float

    @property
    def remaining(self) -> float:
        return max(0.0, self.limit - self.used)

    @property
    def utilization(self) -> float:
        """Share of the ceiling used, in % (capped at 100)."""
        return min(100.0, self.used / self.limit * 100.0) if self.limit > 0 else 0.0


def retirement_deduction_utilization(
    investments: Iterable[Mapping[str, object]],
    regime: RegimeLike = "old",
) -> DeductionUtilization:
    """
    Sum eligible instruments against the retirement-instrument ceiling.

    Each investment is a mapping with a ``type`` and either an
    ``annual_amount`` or a monthly ``amount`` (annualized ×12).
    """
    config = get_regime(regime)
    used = 0.0
    for inv in investments:
        if str(inv.get("type", "")).lower() not in RETIREMENT_INSTRUMENT_TYPES:
            continue
        if "annual_amount" in inv:
            used += float(inv["annual_amount"])
        else:
            used += float(inv.get("amount", 0.0)) * 12.0
    return DeductionUtilization(used=used, limit=config.ceilings.retirement_instruments)


@dataclass(frozen=True)
class BracketChange:
    previous_bracket: float
    new_bracket: float

    @property
    def changed(self) -> bool:
        """True only when the move is into a higher slab."""
        return self.new_bracket > self.previous_bracket

    @property
    def message(self) -> str:
        if not self.changed:
            return ""
        return f"You've moved to the {self.new_bracket:g}% tax bracket"

    @property
    def suggestion(self) -> str:
        if not self.changed:
            return ""
        return "Consider increasing retirement-instrument and health-insurance claims"


def tax_bracket_change(
    previous_monthly_income: float,
    new_monthly_income: float,
    regime: RegimeLike = "new",
) -> BracketChange:
    """
    Compare the marginal slab before and after a change in monthly income.

    Both incomes are annualized (x12) before looking up the slab.

    Examples
    --------
    >>> tax_bracket_change(100_000, 110_000).changed
    True
    >>> tax_bracket_change(110_000, 100_000).changed
    False
    """
    check_non_negative("previous_monthly_income", previous_monthly_income)
    check_non_negative("new_monthly_income", new_monthly_income)
    return BracketChange(
        previous_bracket=marginal_rate(previous_monthly_income * 12.0, regime),
        new_bracket=marginal_rate(new_monthly_income * 12.0, regime),
    )
