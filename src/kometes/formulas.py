"""
Formula Evaluator
=================

Configuration values may be plain numbers or one of three formulas that
refer to the properties of a celestial body:

* ``Ratio(<body>.<key>, <factor>)``: the property times ``factor``
* ``Offset(<body>.<key>, <delta>)``: the property plus ``delta``
* ``Resonance(<body>, <m>:<n>)``: the semimajor axis of an orbit in m:n
  mean-motion resonance with the body (orbit sizes only)

Formulas are case-insensitive and ignore whitespace around punctuation.
See :meth:`kometes.bodies.SolarSystem.lookup` for the property keys.

Examples
--------
>>> from kometes import parse_formula, kerbol_system
>>> formula = parse_formula("Ratio(Jool.sma, 0.5)")
>>> formula
Ratio(body='Jool', key='sma', factor=0.5)
>>> formula.evaluate(kerbol_system()) == 0.5 * 68773560320.0
True
"""

import re
import numpy as np
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union
from .errors import ParseError

if TYPE_CHECKING:
    from .bodies import SolarSystem

_PLANET = r"(?P<planet>.+)"
_PROP = (r"(?P<prop>rad|soi|sma|per|apo|ecc|inc|(?:a|l)pe|lan|mn(?:a|l)0"
         r"|p(?:rot|sol|orb)|v(?:esc|orb|min|max))")
_NUMBER = r"[-+.e\d]+"
_PLANET_PROP = _PLANET + r"\s*\.\s*" + _PROP

_RATIO = re.compile(r"ratio\(\s*" + _PLANET_PROP + r"\s*,\s*(?P<ratio>" + _NUMBER + r")\s*\)",
                    re.IGNORECASE)
_OFFSET = re.compile(r"offset\(\s*" + _PLANET_PROP + r"\s*,\s*(?P<incr>" + _NUMBER + r")\s*\)",
                     re.IGNORECASE)
_RESONANCE = re.compile(r"resonance\(\s*" + _PLANET + r"\s*,\s*(?P<m>\d+)\s*:\s*(?P<n>\d+)\s*\)",
                        re.IGNORECASE)


# ========== FORMULA TYPES ==========
@dataclass(frozen=True)
class Literal:
    value: float

    def evaluate(self, bodies: "SolarSystem") -> float:
        return self.value


@dataclass(frozen=True)
class Ratio:
    """A body property scaled by a constant factor."""
    body: str
    key: str
    factor: float

    def evaluate(self, bodies: "SolarSystem") -> float:
        return bodies.lookup(self.body, self.key) * self.factor


@dataclass(frozen=True)
class Offset:
    """A body property shifted by a constant."""
    body: str
    key: str
    delta: float

    def evaluate(self, bodies: "SolarSystem") -> float:
        return bodies.lookup(self.body, self.key) + self.delta


@dataclass(frozen=True)
class Resonance:
    """
    Semimajor axis of an orbit completing ``n`` revolutions for every ``m``
    revolutions of ``body``. By Kepler's third law this is
    ``sma(body) * (n/m)^(2/3)``.
    """
    body: str
    m: int
    n: int

    def evaluate(self, bodies: "SolarSystem") -> float:
        return bodies.lookup(self.body, "sma") * (self.n / self.m)**(2.0 / 3.0)


Formula = Union[Literal, Ratio, Offset, Resonance]


# ========== PARSING ==========
def _parse_number(text: str, original: str) -> float:
    try:
        return float(text)
    except ValueError as e:
        raise ParseError(f"Cannot parse '{text}' in '{original}' as a number") from e


def parse_formula(text, allow_resonance: bool = False) -> Formula:
    """
    Parse a configuration value into a formula.

    Parameters
    ----------
    text : str or float
        The value to parse. Numbers are wrapped as :class:`Literal`.
    allow_resonance : bool, optional
        Whether ``Resonance(...)`` is accepted (orbit sizes only)

    Returns
    -------
    Literal, Ratio, Offset or Resonance

    Raises
    ------
    ParseError
        If ``text`` is not a number or a recognised formula
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return Literal(float(text))
    raw = str(text).strip()

    try:
        return Literal(float(raw))
    except ValueError:
        pass

    match = _RATIO.fullmatch(raw)
    if match:
        return Ratio(match.group("planet").strip(), match.group("prop").lower(),
                     _parse_number(match.group("ratio"), raw))

    match = _OFFSET.fullmatch(raw)
    if match:
        return Offset(match.group("planet").strip(), match.group("prop").lower(),
                      _parse_number(match.group("incr"), raw))

    match = _RESONANCE.fullmatch(raw)
    if match:
        if not allow_resonance:
            raise ParseError(f"Resonance formulas are only allowed for orbit sizes (gave '{raw}')")
        m, n = int(match.group("m")), int(match.group("n"))
        if m <= 0 or n <= 0:
            raise ParseError(f"Resonance terms must be positive integers (gave {m}:{n})")
        return Resonance(match.group("planet").strip(), m, n)

    raise ParseError(f"Cannot parse '{raw}' as a number or formula")


def evaluate_formula(text, bodies: "SolarSystem", allow_resonance: bool = False) -> float:
    """
    Parse and evaluate a configuration value in one step.

    Raises
    ------
    ParseError
        If ``text`` cannot be parsed
    BodyLookupError
        If the formula refers to an unknown body or property
    """
    return parse_formula(text, allow_resonance=allow_resonance).evaluate(bodies)


# ========== ANGLE CONVERSIONS ==========
def anomaly_to_longitude(anom, i, ape, lan):
    """
    Convert an orbital anomaly to a longitude measured along the reference
    plane. All angles in degrees.

    Parameters
    ----------
    anom : float
        Angle from periapsis within the orbital plane (mean, eccentric or true)
    i : float
        Inclination
    ape : float
        Argument of periapsis
    lan : float
        Longitude of ascending node
    """
    phase = np.radians(anom + ape)
    cos_l = np.cos(phase)
    sin_l = np.cos(np.radians(i)) * np.sin(phase)
    # cos_l and sin_l are not normalized, but atan2 doesn't care
    return float(np.degrees(np.arctan2(sin_l, cos_l)) + lan)


def longitude_to_anomaly(long, i, ape, lan):
    """
    Convert a longitude along the reference plane to an angle from
    periapsis. Inverse of :func:`anomaly_to_longitude` for any non-polar
    inclination; all angles in degrees.
    """
    cos_i = np.cos(np.radians(i))
    dl = np.radians(long - lan)
    # tan(θ+ω) = tan(l-Ω)/cos(i), with cos(θ+ω) taking the sign of cos(l-Ω)
    cos_u = cos_i**2 * np.cos(dl)
    sin_u = cos_i * np.sin(dl)
    return float(np.degrees(np.arctan2(sin_u, cos_u)) - ape)
