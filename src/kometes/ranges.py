"""
Parameter Ranges
================

A parameter range holds the raw configuration strings of one orbital
property (min, max, avg, stddev) together with its distribution. The
strings are resolved into numbers once, against a body registry, and the
resolved numbers are reused for every draw until :meth:`ValueRange.invalidate`
is called.

Sub-typed ranges also record what the drawn number means, e.g. whether an
orbit size is a semimajor axis or a periapsis distance.

Examples
--------
>>> from kometes import SizeRange, SizeType, RandomSource, kerbol_system
>>> size = SizeRange("LogUniform", type=SizeType.SEMIMAJOR_AXIS,
...                  min="Ratio(Dres.sma, 0.9)", max="Resonance(Jool, 3:2)")
>>> size.resolve(kerbol_system())
>>> a = size.draw(RandomSource(seed=1))
"""

from typing import Dict, Optional
import numpy as np
from .distributions import Distribution, draw_value
from .errors import InvalidOperationError, KometesError
from .formulas import evaluate_formula
from .random_source import RandomSource
from .utils import ConfigEnum


# ========== SUB-TYPES ==========
class SizeType(ConfigEnum):
    SEMIMAJOR_AXIS = "SemimajorAxis"
    PERIAPSIS = "Periapsis"
    APOAPSIS = "Apoapsis"


class PeriType(ConfigEnum):
    ARGUMENT = "Argument"
    LONGITUDE = "Longitude"


class PhaseType(ConfigEnum):
    MEAN_ANOMALY = "MeanAnomaly"
    MEAN_LONGITUDE = "MeanLongitude"


class EpochType(ConfigEnum):
    GAME_START = "GameStart"
    NOW = "Now"


class ApproachType(ConfigEnum):
    IMPACT_PARAMETER = "ImpactParameter"
    PERIAPSIS = "Periapsis"


def _initial_value(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        return np.nan


class ValueRange:
    """
    Distribution of one orbital property, given as configuration strings.

    Parameters
    ----------
    dist : Distribution or str
        Distribution kind
    min, max, avg, stddev : str or float, optional
        Raw values; numbers or formulas (see :mod:`kometes.formulas`)
    name : str, optional
        Label used in error messages, e.g. ``"eccentricity"``

    Notes
    -----
    Before the first :meth:`resolve`, the numeric fields hold the values of
    any raw strings that are plain numbers (NaN otherwise), but :meth:`draw`
    refuses to run.
    """
    FIELDS = ("min", "max", "avg", "stddev")
    # Fields that accept Resonance(...) formulas
    RESONANCE_FIELDS = ()
    # Config keys of the sub-type tags, mapped to their enums
    SUBTYPES: Dict[str, type] = {}

    def __init__(self, dist, min="0", max="1", avg="0", stddev="0",
                 name: Optional[str] = None):
        self.dist = Distribution.parse(dist)
        self.name = name
        self._raw = {"min": str(min), "max": str(max), "avg": str(avg), "stddev": str(stddev)}
        self._values = {field: _initial_value(raw) for field, raw in self._raw.items()}
        self.resolved = False

    @classmethod
    def from_config(cls, mapping, defaults: "ValueRange", name: Optional[str] = None):
        """
        Build a range from a configuration record.

        Parameters
        ----------
        mapping : dict or None
            May contain ``dist``, ``min``, ``max``, ``avg``, ``stddev`` and
            the sub-type keys of this class (``type``, ``epoch``). Missing
            keys keep the values of ``defaults``.
        defaults : ValueRange
            Range of the same class supplying default values
        name : str, optional
            Label for the new range; defaults to that of ``defaults``
        """
        kwargs = defaults._init_kwargs()
        for key in ("dist",) + cls.FIELDS:
            if mapping and key in mapping:
                kwargs[key] = mapping[key]
        for key, enum_cls in cls.SUBTYPES.items():
            if mapping and key in mapping:
                kwargs[key] = enum_cls.parse(mapping[key])
        if name is not None:
            kwargs["name"] = name
        return cls(**kwargs)

    def _init_kwargs(self):
        kwargs = dict(self._raw)
        kwargs["dist"] = self.dist
        kwargs["name"] = self.name
        for key in self.SUBTYPES:
            kwargs[key] = getattr(self, key)
        return kwargs

    # ========== RESOLUTION ==========
    def resolve(self, bodies):
        """
        Evaluate the raw strings against a body registry.

        On failure the numeric values are left as they were.

        Raises
        ------
        ParseError, BodyLookupError
            With a message naming the range and the field that failed
        """
        values = {}
        for field in self.FIELDS:
            try:
                values[field] = evaluate_formula(
                    self._raw[field], bodies, allow_resonance=field in self.RESONANCE_FIELDS)
            except KometesError as e:
                raise type(e)(f"Could not resolve {field} of {self}: {e}") from e
        self._values = values
        self.resolved = True

    def invalidate(self):
        """Force the raw strings to be re-evaluated before the next draw."""
        self.resolved = False

    @property
    def raw(self) -> Dict[str, str]:
        """The unevaluated configuration strings."""
        return dict(self._raw)

    @property
    def min(self):
        return self._values["min"]

    @property
    def max(self):
        return self._values["max"]

    @property
    def avg(self):
        return self._values["avg"]

    @property
    def stddev(self):
        return self._values["stddev"]

    # ========== SAMPLING ==========
    def draw(self, rng: RandomSource) -> float:
        """
        Draw one value with the resolved parameters.

        Raises
        ------
        InvalidOperationError
            If the range has not been resolved
        InvalidParameterError
            If the parameters do not suit the distribution
        """
        if not self.resolved:
            raise InvalidOperationError(f"Range {self} must be resolved before drawing")
        return draw_value(self.dist, rng, self.min, self.max, self.avg, self.stddev)

    def __str__(self):
        return self.name if self.name is not None else "range"

    def __repr__(self):
        subtypes = "".join(f", {key}={getattr(self, key).value}" for key in self.SUBTYPES)
        return (f"{type(self).__name__}({self.dist.value}, min={self._raw['min']!r}, "
                f"max={self._raw['max']!r}, avg={self._raw['avg']!r}, "
                f"stddev={self._raw['stddev']!r}{subtypes})")


def wrapped_draw(value_range: ValueRange, rng: RandomSource, property_name: str,
                 set_name: str) -> float:
    """
    Draw from a range, attributing any failure to an orbital property and
    an asteroid set.

    Raises
    ------
    InvalidOperationError
        Chained to the original error
    """
    try:
        return value_range.draw(rng)
    except KometesError as e:
        raise InvalidOperationError(
            f"Could not set orbit property '{property_name}' for group '{set_name}'.") from e


class SizeRange(ValueRange):
    """Orbit size; min, max and avg may also be ``Resonance(...)`` formulas."""
    RESONANCE_FIELDS = ("min", "max", "avg")
    SUBTYPES = {"type": SizeType}

    def __init__(self, dist, type=SizeType.SEMIMAJOR_AXIS, min="0", max="1",
                 avg="0", stddev="0", name=None):
        super().__init__(dist, min, max, avg, stddev, name)
        self.type = SizeType.parse(type)


class PeriRange(ValueRange):
    """Position of periapsis, as an argument or a longitude [deg]."""
    SUBTYPES = {"type": PeriType}

    def __init__(self, dist, type=PeriType.ARGUMENT, min="0", max="1",
                 avg="0", stddev="0", name=None):
        super().__init__(dist, min, max, avg, stddev, name)
        self.type = PeriType.parse(type)


class PhaseRange(ValueRange):
    """Position along the orbit [deg] and the epoch at which it applies."""
    SUBTYPES = {"type": PhaseType, "epoch": EpochType}

    def __init__(self, dist, type=PhaseType.MEAN_ANOMALY, epoch=EpochType.GAME_START,
                 min="0", max="1", avg="0", stddev="0", name=None):
        super().__init__(dist, min, max, avg, stddev, name)
        self.type = PhaseType.parse(type)
        self.epoch = EpochType.parse(epoch)


class ApproachRange(ValueRange):
    """Closest approach of a flyby, as an impact parameter or a periapsis [m]."""
    SUBTYPES = {"type": ApproachType}

    def __init__(self, dist, type=ApproachType.PERIAPSIS, min="0", max="1",
                 avg="0", stddev="0", name=None):
        super().__init__(dist, min, max, avg, stddev, name)
        self.type = ApproachType.parse(type)
