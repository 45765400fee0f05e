"""
Injectable random number source.

Every draw in Kometes goes through a :class:`RandomSource` owned by the
caller (normally the spawn scheduler), so that sampling is reproducible
from a single seed and no module keeps global random state.

Examples
--------
>>> from kometes import RandomSource
>>> rng = RandomSource(seed=42)
>>> 0.0 <= rng.random() < 1.0
True
>>> rng.weighted_choice([("PotatoRoid", 0.75), ("CaAsteroidCarbon", 0.25)])  # doctest: +SKIP
'PotatoRoid'
"""

import numpy as np
from typing import Iterable, Optional, Tuple, TypeVar
from .errors import InvalidParameterError, InvalidOperationError

T = TypeVar("T")


class RandomSource:
    """
    Pseudo-random primitives on top of a ``numpy.random.Generator``.

    Parameters
    ----------
    seed : int, optional
        Seed for the underlying generator. None draws fresh OS entropy.

    Notes
    -----
    Uniform variates are on [0, 1). Wherever a logarithm of a uniform
    variate is needed, ``1 - U`` is used instead so the argument is never 0.
    """

    def __init__(self, seed: Optional[int] = None):
        self.reseed(seed)

    def reseed(self, seed: Optional[int] = None):
        """Restart the generator, discarding any cached normal variate."""
        self._generator = np.random.default_rng(seed)
        self._spare_normal = None

    # ========== BASIC VARIATES ==========
    def random(self) -> float:
        """Uniform variate on [0, 1)."""
        return float(self._generator.random())

    def _open_random(self) -> float:
        """Uniform variate on (0, 1]."""
        return 1.0 - self.random()

    def uniform(self, a: float, b: float) -> float:
        """Uniform variate on [a, b)."""
        return a + (b - a) * self.random()

    def log_uniform(self, a: float, b: float) -> float:
        """
        Variate whose logarithm is uniform on [ln a, ln b).

        Raises
        ------
        InvalidParameterError
            Unless 0 < a <= b
        """
        if a <= 0.0 or b < a:
            raise InvalidParameterError(
                f"Log-uniform distribution requires 0 < min <= max (gave {a}, {b})")
        if a == b:
            return a
        return float(np.exp(self.uniform(np.log(a), np.log(b))))

    def integer(self, lo: int, hi: int) -> int:
        """Uniform integer on [lo, hi)."""
        if hi <= lo:
            raise InvalidParameterError(f"Empty integer range [{lo}, {hi})")
        return int(self._generator.integers(lo, hi))

    def sign(self) -> int:
        """+1 or -1 with equal probability."""
        return 1 if self.random() < 0.5 else -1

    # ========== CONTINUOUS DISTRIBUTIONS ==========
    def normal(self, mean: float = 0.0, sd: float = 1.0) -> float:
        """
        Gaussian variate by the Box-Muller transform.

        Each transform yields two independent variates; the second is kept
        for the next call.
        """
        if sd < 0.0:
            raise InvalidParameterError(
                f"Normal distribution requires a nonnegative standard deviation (gave {sd})")
        if self._spare_normal is not None:
            z, self._spare_normal = self._spare_normal, None
        else:
            radius = np.sqrt(-2.0 * np.log(self._open_random()))
            theta = 2.0 * np.pi * self.random()
            z = radius * np.cos(theta)
            self._spare_normal = radius * np.sin(theta)
        return float(mean + sd * z)

    def lognormal(self, mu: float, sigma: float) -> float:
        """Variate whose logarithm is Normal(mu, sigma)."""
        return float(np.exp(self.normal(mu, sigma)))

    def rayleigh(self, sigma: float) -> float:
        """Rayleigh variate with scale ``sigma`` (mean σ√(π/2))."""
        if sigma < 0.0:
            raise InvalidParameterError(
                f"Rayleigh distribution requires a nonnegative scale (gave {sigma})")
        return float(np.sqrt(-2.0 * sigma**2 * np.log(self._open_random())))

    def exponential(self, mean: float) -> float:
        """Exponential variate with the given mean."""
        if mean < 0.0:
            raise InvalidParameterError(
                f"Exponential distribution requires a nonnegative mean (gave {mean})")
        return float(-mean * np.log(self._open_random()))

    def gamma(self, k: float, theta: float = 1.0) -> float:
        """
        Gamma variate with shape ``k`` and scale ``theta``.

        Uses the method of Marsaglia & Tsang, ACM Trans. Math. Softw. 26, 363
        (2000). Shapes below 1 are drawn as Gamma(k+1) * U^(1/k).
        """
        if k <= 0.0 or theta <= 0.0:
            raise InvalidParameterError(
                f"Gamma distribution requires positive shape and scale (gave {k}, {theta})")
        if k < 1.0:
            return self.gamma(k + 1.0, theta) * self._open_random()**(1.0 / k)

        d = k - 1.0 / 3.0
        c = 1.0 / np.sqrt(9.0 * d)
        while True:
            x = self.normal()
            v = (1.0 + c * x)**3
            if v <= 0.0:
                continue
            if np.log(self._open_random()) < 0.5 * x**2 + d - d * v + d * np.log(v):
                return float(theta * d * v)

    def beta(self, alpha: float, beta: float) -> float:
        """Beta variate on [0, 1], as a ratio of two Gamma(·, 1) variates."""
        if alpha <= 0.0 or beta <= 0.0:
            raise InvalidParameterError(
                f"Beta distribution requires positive shape parameters (gave {alpha}, {beta})")
        x = self.gamma(alpha)
        y = self.gamma(beta)
        return x / (x + y)

    # ========== ANGLES ==========
    def angle(self) -> float:
        """Uniform angle on [0°, 360°)."""
        return self.uniform(0.0, 360.0)

    def isotropic(self) -> float:
        """
        Polar angle on [0°, 180°] with density proportional to sin θ.

        Used as an inclination, this makes the orbit normal uniform on the sphere.
        """
        return float(np.degrees(np.arccos(1.0 - 2.0 * self.random())))

    # ========== SELECTION ==========
    def weighted_choice(self, weighted_items: Iterable[Tuple[T, float]]) -> T:
        """
        Select an item with probability proportional to its weight.

        Parameters
        ----------
        weighted_items : iterable of (item, weight)
            Weights must be nonnegative, with at least one positive.

        Raises
        ------
        InvalidOperationError
            If the collection is empty, any weight is negative, or all are zero
        """
        pairs = list(weighted_items)
        if not pairs:
            raise InvalidOperationError("Cannot select from an empty collection")
        total = 0.0
        for item, weight in pairs:
            if weight < 0.0:
                raise InvalidOperationError(
                    f"Negative weight {weight} given for {item!r}")
            total += weight
        if total <= 0.0:
            raise InvalidOperationError("Cannot select when all weights are zero")

        threshold = self.random() * total
        cumulative = 0.0
        for item, weight in pairs:
            cumulative += weight
            if cumulative >= threshold and weight > 0.0:
                return item
        # Rounding error; fall back to the last item that can be drawn
        return next(item for item, weight in reversed(pairs) if weight > 0.0)

    def __repr__(self):
        return f"RandomSource({self._generator.bit_generator.__class__.__name__})"
