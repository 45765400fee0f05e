"""
Global Configuration for Kometes Package
========================================

This module provides package-wide configuration settings that users can modify
to control numerical tolerances, spawn scheduling and validation behavior.

Examples
--------
View current configuration:

>>> import kometes
>>> print(kometes.config)

Modify settings:

>>> kometes.config.SOI_PRECISION = 0.1  # Finer sphere-of-influence crossings
>>> kometes.config.MAX_UNTRACKED_DAYS = 40.0  # Asteroids linger longer

Reset to defaults:

>>> kometes.config.reset()

Temporarily modify settings:

>>> with kometes.temp_config(RENAME_ASTEROIDS=False):
...     # Stock names for this block only
...     spawner.tick(now)

Notes
-----
These settings affect package-wide behavior. Modifying them will impact
all subsequent operations until changed again or reset.
"""

from dataclasses import dataclass
from contextlib import contextmanager


@dataclass
class KometesConfig:
    """
    Global configuration for Kometes package.

    Attributes
    ----------
    EQUALITY_RTOL : float
        Relative tolerance for floating-point equality comparisons of orbits.
        Default: 1e-12
    EQUALITY_ATOL : float
        Absolute tolerance for floating-point equality comparisons of orbits.
        Default: 1e-14
    KEPLER_TOL : float
        Convergence tolerance for Kepler's equation [rad].
        Default: 1e-12
    KEPLER_MAX_ITER : int
        Iteration cap for the Newton solver of Kepler's equation.
        Default: 100
    VECTOR_EPSILON : float
        Vectors shorter than this are treated as zero when building
        reference frames.
        Default: 1e-8
    SOI_PRECISION : float
        Time precision of sphere-of-influence crossings [s].
        Default: 1.0
    SECONDS_PER_DAY : float
        Length of the day in which spawn rates and untracked lifetimes
        are given [s]. Spawn rates are always quoted per Earth day.
        Default: 86400.0
    MIN_CHECK_INTERVAL : float
        Shortest delay a scheduler tick may request [s].
        Default: 0.1
    FIXED_RATE_INTERVAL : float
        Nominal delay between ticks of the fixed-rate spawner [s].
        Default: 5.0
    STOCKALIKE_INTERVAL : float
        Nominal delay between ticks of the group-limited spawner [s].
        Default: 15.0
    MIN_UNTRACKED_DAYS : float
        Minimum number of days an asteroid stays visible while untracked.
        Default: 1.0
    MAX_UNTRACKED_DAYS : float
        Maximum number of days an asteroid stays visible while untracked.
        Default: 20.0
    SPAWN_GROUP_MIN : int
        Lower bound on the untracked-asteroid threshold of the group-limited
        spawner.
        Default: 3
    SPAWN_GROUP_MAX : int
        Upper bound (exclusive) on the untracked-asteroid threshold of the
        group-limited spawner.
        Default: 8
    SPAWN_ODDS_AGAINST : int
        Odds against a spawn on each group-limited check.
        Default: 2
    RENAME_ASTEROIDS : bool
        If True, asteroid names carry the title of their asteroid set.
        Default: True
    DEFAULT_CLASS : str
        Asteroid class used when a set's class table cannot be sampled.
        Default: 'PotatoRoid'
    STRICT_VALIDATION : bool
        If True, unrecognised configuration blocks raise exceptions.
        If False, they issue warnings and are skipped.
        Default: True
    """

    # Numerical tolerance for equality comparisons
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    # Orbit geometry
    KEPLER_TOL: float = 1e-12
    KEPLER_MAX_ITER: int = 100
    VECTOR_EPSILON: float = 1e-8
    SOI_PRECISION: float = 1.0

    # Scheduling
    SECONDS_PER_DAY: float = 86400.0
    MIN_CHECK_INTERVAL: float = 0.1
    FIXED_RATE_INTERVAL: float = 5.0
    STOCKALIKE_INTERVAL: float = 15.0
    MIN_UNTRACKED_DAYS: float = 1.0
    MAX_UNTRACKED_DAYS: float = 20.0
    SPAWN_GROUP_MIN: int = 3
    SPAWN_GROUP_MAX: int = 8
    SPAWN_ODDS_AGAINST: int = 2

    # Asteroid presentation
    RENAME_ASTEROIDS: bool = True
    DEFAULT_CLASS: str = 'PotatoRoid'

    # Validation behavior
    STRICT_VALIDATION: bool = True

    def untracked_times(self):
        """
        Return the validated (minimum, maximum) untracked lifetime in days.

        Raises
        ------
        ValueError
            If the minimum is negative, the maximum is not positive, or
            the minimum exceeds the maximum.
        """
        lo, hi = self.MIN_UNTRACKED_DAYS, self.MAX_UNTRACKED_DAYS
        if lo < 0.0:
            raise ValueError(f"Minimum untracked time may not be negative (gave {lo})")
        if hi <= 0.0:
            raise ValueError(f"Maximum untracked time must be positive (gave {hi})")
        if hi < lo:
            raise ValueError(f"Maximum untracked time must be at least minimum time "
                             f"(gave {lo} > {hi})")
        return lo, hi

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import kometes
        >>> kometes.config.SOI_PRECISION = 10.0  # Modify
        >>> kometes.config.reset()  # Back to defaults
        >>> kometes.config.SOI_PRECISION
        1.0
        """
        defaults = KometesConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["KometesConfig:"]
        lines.append("  Numerical Tolerances:")
        lines.append(f"    EQUALITY_RTOL = {self.EQUALITY_RTOL}")
        lines.append(f"    EQUALITY_ATOL = {self.EQUALITY_ATOL}")
        lines.append(f"    KEPLER_TOL = {self.KEPLER_TOL}")
        lines.append(f"    KEPLER_MAX_ITER = {self.KEPLER_MAX_ITER}")
        lines.append(f"    VECTOR_EPSILON = {self.VECTOR_EPSILON}")
        lines.append(f"    SOI_PRECISION = {self.SOI_PRECISION}")
        lines.append("  Scheduling:")
        lines.append(f"    SECONDS_PER_DAY = {self.SECONDS_PER_DAY}")
        lines.append(f"    MIN_CHECK_INTERVAL = {self.MIN_CHECK_INTERVAL}")
        lines.append(f"    FIXED_RATE_INTERVAL = {self.FIXED_RATE_INTERVAL}")
        lines.append(f"    STOCKALIKE_INTERVAL = {self.STOCKALIKE_INTERVAL}")
        lines.append(f"    MIN_UNTRACKED_DAYS = {self.MIN_UNTRACKED_DAYS}")
        lines.append(f"    MAX_UNTRACKED_DAYS = {self.MAX_UNTRACKED_DAYS}")
        lines.append(f"    SPAWN_GROUP_MIN = {self.SPAWN_GROUP_MIN}")
        lines.append(f"    SPAWN_GROUP_MAX = {self.SPAWN_GROUP_MAX}")
        lines.append(f"    SPAWN_ODDS_AGAINST = {self.SPAWN_ODDS_AGAINST}")
        lines.append("  Behavior:")
        lines.append(f"    RENAME_ASTEROIDS = {self.RENAME_ASTEROIDS}")
        lines.append(f"    DEFAULT_CLASS = '{self.DEFAULT_CLASS}'")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        return "\n".join(lines)


# Global configuration instance
config = KometesConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import kometes
    >>> with kometes.temp_config(SOI_PRECISION=0.01, STRICT_VALIDATION=False):
    ...     orbit = flyby.draw_orbit(ctx)
    >>> # Original config restored here
    >>> kometes.config.SOI_PRECISION
    1.0

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    old_values = {}
    for key, value in kwargs.items():
        if not hasattr(config, key):
            raise AttributeError(
                f"KometesConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
