"""
Normal variate generation for ProFin simulations.

Mathematical Model
------------------
Monthly returns are drawn as r ~ N(μ, σ) through the Box–Muller transform:

    U1 ~ U(0, 1],  U2 ~ U[0, 1)
    Z  = sqrt(-2 ln U1) * cos(2π U2)
    r  = μ + σ Z

Only the cosine branch is used; the paired sine variate is discarded so
every monthly step consumes two fresh uniforms.

Design principles
-----------------
- Interface, not implementation: simulations depend on the
  ``NormalVariateGenerator`` protocol, so tests can inject deterministic
  generators without touching simulation logic.
- No global state: every generator wraps its own ``numpy.random.Generator``.
- Independent streams: ``spawn_generators`` derives non-overlapping streams
  from one ``SeedSequence``, one per block of trials.
"""

from __future__ import annotations
from typing import Callable, List, Optional, Protocol, Union

import numpy as np

__all__ = [
    "NormalVariateGenerator",
    "GeneratorFactory",
    "BoxMullerGenerator",
    "NumpyNormalGenerator",
    "root_sequence",
    "spawn_generators",
]

SeedLike = Union[int, np.random.SeedSequence, None]


class NormalVariateGenerator(Protocol):
    """Anything that can produce a vector of normal variates."""

    def normal(self, mean: float, stdev: float, size: int) -> np.ndarray:
        ...


GeneratorFactory = Callable[[np.random.Generator], NormalVariateGenerator]


class BoxMullerGenerator:
    """
    Box–Muller normal generator over a NumPy bit stream.

    Parameters
    ----------
    rng : np.random.Generator, optional
        Source of uniform draws. If None, one is created from ``seed``.
    seed : int, optional
        Seed used only when ``rng`` is None.

    Examples
    --------
    >>> gen = BoxMullerGenerator(seed=42)
    >>> z = gen.normal(0.01, 0.0433, size=1000)
    >>> z.shape
    (1000,)
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def standard_normal(self, size: int) -> np.ndarray:
        """Draw ``size`` standard normal variates (two uniforms each)."""
        # random() is in [0, 1); flip it into (0, 1] so log() stays finite
        u1 = 1.0 - self.rng.random(size)
        u2 = self.rng.random(size)
        return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)

    def normal(self, mean: float, stdev: float, size: int) -> np.ndarray:
        return mean + stdev * self.standard_normal(size)

    def __repr__(self) -> str:
        return f"BoxMullerGenerator(rng={type(self.rng.bit_generator).__name__})"


class NumpyNormalGenerator:
    """Normal generator delegating to ``Generator.normal`` (ziggurat)."""

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def normal(self, mean: float, stdev: float, size: int) -> np.ndarray:
        return self.rng.normal(loc=mean, scale=stdev, size=size)


def root_sequence(seed: SeedLike) -> np.random.SeedSequence:
    """
    Root ``SeedSequence`` for ``seed``.

    A ``SeedSequence`` argument is copied rather than reused: ``spawn``
    advances its child counter, so spawning from the caller's object
    twice would hand out different streams.
    """
    if isinstance(seed, np.random.SeedSequence):
        return np.random.SeedSequence(
            seed.entropy, spawn_key=seed.spawn_key, pool_size=seed.pool_size
        )
    return np.random.SeedSequence(seed)


def spawn_generators(
    seed: SeedLike,
    n: int,
    factory: GeneratorFactory = BoxMullerGenerator,
) -> List[NormalVariateGenerator]:
    """
    Build ``n`` generators on statistically independent streams.

    Parameters
    ----------
    seed : int, SeedSequence or None
        Root entropy. None draws fresh OS entropy (non-deterministic).
    n : int
        Number of generators to spawn.
    factory : callable, default BoxMullerGenerator
        Wraps each child ``np.random.Generator`` into a variate generator.

    Returns
    -------
    List[NormalVariateGenerator]
        Same seed and ``n`` always yield the same streams.

    Examples
    --------
    >>> gens = spawn_generators(42, 4)
    >>> len(gens)
    4
    """
    root = root_sequence(seed)
    return [factory(np.random.default_rng(child)) for child in root.spawn(n)]
