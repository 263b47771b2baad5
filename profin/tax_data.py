"""Tax regime schema and reference data (Indian income tax, FY2025-26 as modelled).

Regimes are plain data. The engine in ``tax.py`` never branches on a regime
name; every difference between "old" and "new" lives here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Final, Optional, Tuple

from .exceptions import ConfigurationError

__all__ = [
    "TaxSlab",
    "SurchargeTier",
    "DeductionCeilings",
    "TaxRegimeConfig",
    "FINANCIAL_YEAR",
    "NEW_REGIME",
    "OLD_REGIME",
    "REGIMES",
    "RETIREMENT_INSTRUMENT_TYPES",
]

FINANCIAL_YEAR: Final[str] = "FY2025-26"


@dataclass(frozen=True)
class TaxSlab:
    """Income in (lower, upper] taxed at ``rate`` percent. ``upper=None`` is unbounded."""
    lower: float
    upper: Optional[float]
    rate: float

    @property
    def label(self) -> str:
        upper = "inf" if self.upper is None else f"{self.upper:,.0f}"
        return f"{self.lower:,.0f}-{upper}@{self.rate:g}%"


@dataclass(frozen=True)
class SurchargeTier:
    """Surcharge ``rate`` percent on base tax once taxable income exceeds ``threshold``."""
    threshold: float
    rate: float


@dataclass(frozen=True)
class DeductionCeilings:
    """Independent caps on itemized deductions (only used when a regime allows them)."""
    retirement_instruments: float = 150_000.0  # 80C: PPF, ELSS, EPF, premiums, principal
    health_insurance: float = 50_000.0         # 80D: self + parents
    pension_scheme: float = 50_000.0           # 80CCD(1B): additional NPS
    mortgage_interest: float = 200_000.0       # 24(b): self-occupied property


@dataclass(frozen=True)
class TaxRegimeConfig:
    """
    Complete description of one tax regime.

    Slabs must start at zero, be contiguous and end with an unbounded slab,
    so together they cover [0, inf) with no gaps or overlaps. Surcharge
    tiers must have strictly increasing thresholds.
    """
    name: str
    slabs: Tuple[TaxSlab, ...]
    standard_deduction: float
    rebate_threshold: float
    rebate_cap: float
    surcharge_tiers: Tuple[SurchargeTier, ...] = ()
    cess_rate: float = 4.0
    allows_itemized: bool = False
    ceilings: DeductionCeilings = field(default_factory=DeductionCeilings)
    ltcg_exemption: float = 125_000.0
    ltcg_rate: float = 12.5
    stcg_rate: float = 20.0

    def __post_init__(self):
        if not self.slabs:
            raise ConfigurationError(f"regime '{self.name}' has no slabs")
        if self.slabs[0].lower != 0:
            raise ConfigurationError(
                f"regime '{self.name}': first slab must start at 0, got {self.slabs[0].lower}"
            )
        for i, slab in enumerate(self.slabs):
            if not (0 <= slab.rate <= 100):
                raise ConfigurationError(f"slab {i} rate must be in [0, 100], got {slab.rate}")
            last = i == len(self.slabs) - 1
            if slab.upper is None and not last:
                raise ConfigurationError(f"slab {i} is unbounded but is not the top slab")
            if last and slab.upper is not None:
                raise ConfigurationError(
                    f"top slab must be unbounded (upper=None), got {slab.upper}"
                )
            if slab.upper is not None and slab.upper <= slab.lower:
                raise ConfigurationError(
                    f"slab {i} upper bound {slab.upper} must exceed lower bound {slab.lower}"
                )
            if i > 0 and slab.lower != self.slabs[i - 1].upper:
                raise ConfigurationError(
                    f"slab {i} starts at {slab.lower} but previous slab ends at "
                    f"{self.slabs[i - 1].upper}. Slabs must be contiguous."
                )
        thresholds = [t.threshold for t in self.surcharge_tiers]
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ConfigurationError("surcharge thresholds must be strictly increasing")
        if self.standard_deduction < 0 or self.rebate_threshold < 0 or self.rebate_cap < 0:
            raise ConfigurationError("deduction and rebate parameters must be non-negative")


# Surcharge and capital-gains parameters are the same under both regimes.
_SURCHARGE: Final[Tuple[SurchargeTier, ...]] = (
    SurchargeTier(5_000_000.0, 10.0),
    SurchargeTier(10_000_000.0, 15.0),
    SurchargeTier(20_000_000.0, 25.0),
    SurchargeTier(50_000_000.0, 37.0),
)

NEW_REGIME: Final[TaxRegimeConfig] = TaxRegimeConfig(
    name="new",
    slabs=(
        TaxSlab(0.0, 400_000.0, 0.0),
        TaxSlab(400_000.0, 800_000.0, 5.0),
        TaxSlab(800_000.0, 1_200_000.0, 10.0),
        TaxSlab(1_200_000.0, 1_600_000.0, 15.0),
        TaxSlab(1_600_000.0, 2_000_000.0, 20.0),
        TaxSlab(2_000_000.0, 2_400_000.0, 25.0),
        TaxSlab(2_400_000.0, None, 30.0),
    ),
    standard_deduction=75_000.0,
    rebate_threshold=700_000.0,
    rebate_cap=25_000.0,
    surcharge_tiers=_SURCHARGE,
    allows_itemized=False,
)

OLD_REGIME: Final[TaxRegimeConfig] = TaxRegimeConfig(
    name="old",
    slabs=(
        TaxSlab(0.0, 250_000.0, 0.0),
        TaxSlab(250_000.0, 500_000.0, 5.0),
        TaxSlab(500_000.0, 1_000_000.0, 20.0),
        TaxSlab(1_000_000.0, None, 30.0),
    ),
    standard_deduction=50_000.0,
    rebate_threshold=500_000.0,
    rebate_cap=12_500.0,
    surcharge_tiers=_SURCHARGE,
    allows_itemized=True,
)

REGIMES: Final[Dict[str, TaxRegimeConfig]] = {
    "new": NEW_REGIME,
    "old": OLD_REGIME,
}

RETIREMENT_INSTRUMENT_TYPES: Final[frozenset] = frozenset({
    "ppf", "elss", "li-premium", "nsc", "tuition", "home-loan-principal", "epf",
})
"""Instrument types eligible for the combined retirement-instrument ceiling (80C)."""
