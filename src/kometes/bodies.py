"""
Celestial bodies and the read-only registry that formulas are evaluated against.
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import Dict, Iterable, Optional
from .errors import BodyLookupError
from .orbit import Orbit
from .formulas import anomaly_to_longitude


@dataclass(frozen=True)
class CelestialBody:
    """
    Immutable parameters for a celestial body.

    Attributes
    ----------
    name : str
        Unique name of the body
    mu : float
        Gravitational parameter [m³/s²]
    radius : float
        Equatorial radius [m]
    soi : float, optional
        Sphere of influence radius [m]; infinite for the root star
    orbit : Orbit, optional
        The body's orbit around its parent; None for the root star
    rotation_period : float, optional
        Sidereal rotation period [s]; None if the body does not rotate
    solar_day : float, optional
        Length of the solar day [s]; None if the body has no meaningful one
    home : bool, optional
        Whether the body is the player's home world
    """
    name: str
    mu: float
    radius: float
    soi: float = math.inf
    orbit: Optional[Orbit] = None
    rotation_period: Optional[float] = None
    solar_day: Optional[float] = None
    home: bool = False

    def __post_init__(self):
        #Validate parameters
        if self.mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {self.mu}")
        if self.radius <= 0:
            raise ValueError(f"Radius must be positive, got {self.radius}")
        if self.soi <= self.radius:
            raise ValueError(f"Sphere of influence of {self.name} must extend beyond its "
                             f"surface, got soi={self.soi}")

    @property
    def parent(self) -> Optional[str]:
        """Name of the body this one orbits, or None for the root."""
        return self.orbit.body.name if self.orbit is not None else None

    def __str__(self):
        return self.name


def _ellipse_mean_speed(orbit: Orbit) -> float:
    # Ramanujan-style series for the ellipse circumference
    a = orbit.semimajor_axis
    b = orbit.semi_minor_axis
    h = ((a - b) / (a + b))**2
    correction = 1.0
    for n in range(1, 10):
        coeff = (_double_factorial(2 * n - 1) / (2**n * math.factorial(n))) / (2 * n - 1)
        correction += coeff**2 * h**n
    return math.pi * (a + b) * correction / orbit.period


def _double_factorial(n: int) -> int:
    result = 1
    while n > 1:
        result *= n
        n -= 2
    return result


class SolarSystem:
    """
    Read-only registry of celestial bodies, keyed by exact name.

    Parameters
    ----------
    bodies : iterable of CelestialBody
        Every body in the system. Parents must be included alongside
        the bodies that orbit them.

    Examples
    --------
    >>> from kometes.defaults import kerbol_system
    >>> bodies = kerbol_system()
    >>> bodies.lookup("Jool", "sma")
    68773560320.0
    """

    # Property keys that do not need an orbit
    SURFACE_KEYS = ("rad", "soi", "prot", "psol", "vesc")
    ORBIT_KEYS = ("sma", "per", "apo", "ecc", "inc", "ape", "lpe", "lan",
                  "mna0", "mnl0", "porb", "vorb", "vmin", "vmax")

    def __init__(self, bodies: Iterable[CelestialBody]):
        self._bodies: Dict[str, CelestialBody] = {}
        for body in bodies:
            if body.name in self._bodies:
                raise ValueError(f"Duplicate body name '{body.name}'")
            self._bodies[body.name] = body

    def get(self, name: str) -> CelestialBody:
        """
        Return the body with the given name.

        Raises
        ------
        BodyLookupError
            If no body has that name
        """
        try:
            return self._bodies[name]
        except KeyError:
            raise BodyLookupError(f"Could not find celestial body '{name}'") from None

    def parent_of(self, body) -> Optional[CelestialBody]:
        """The body that ``body`` orbits, or None for the root."""
        if isinstance(body, str):
            body = self.get(body)
        return body.orbit.body if body.orbit is not None else None

    @property
    def home(self) -> CelestialBody:
        """The player's home world."""
        for body in self._bodies.values():
            if body.home:
                return body
        raise BodyLookupError("No home world defined")

    def lookup(self, body, key: str) -> float:
        """
        Return a named property of a body.

        Parameters
        ----------
        body : str or CelestialBody
            The body to query
        key : str
            Property key, case-insensitive. One of ``rad``, ``soi``,
            ``prot``, ``psol``, ``vesc``, ``sma``, ``per``, ``apo``, ``ecc``,
            ``inc``, ``ape``, ``lpe``, ``lan``, ``mna0``, ``mnl0``, ``porb``,
            ``vorb``, ``vmin``, ``vmax``. Angles are returned in degrees.

        Raises
        ------
        BodyLookupError
            If the body is unknown, the key is unknown, or the property is
            not defined for this body
        """
        if isinstance(body, str):
            body = self.get(body)
        key = key.strip().lower()

        if key == "rad":
            return body.radius
        if key == "soi":
            return body.soi
        if key == "prot":
            return body.rotation_period if body.rotation_period is not None else math.inf
        if key == "psol":
            if body.solar_day is None:
                raise BodyLookupError(f"{body.name} does not have a solar day")
            return body.solar_day
        if key == "vesc":
            return math.sqrt(2.0 * body.mu / body.radius)
        if key not in self.ORBIT_KEYS:
            raise BodyLookupError(f"Celestial bodies do not have a '{key}' value")

        orbit = body.orbit
        if orbit is None:
            raise BodyLookupError(f"{body.name} does not orbit anything, so it has no '{key}'")
        if key == "sma":
            return orbit.semimajor_axis
        if key == "per":
            return orbit.periapsis
        if key == "apo":
            return orbit.apoapsis
        if key == "ecc":
            return orbit.eccentricity
        if key == "inc":
            return np.degrees(orbit.inclination)
        if key == "ape":
            return np.degrees(orbit.argument_of_periapsis)
        if key == "lan":
            return np.degrees(orbit.lan)
        if key == "lpe":
            return np.degrees(orbit.lan + orbit.argument_of_periapsis)
        if key == "mna0":
            return self._mean_anomaly_at_start(orbit)
        if key == "mnl0":
            return anomaly_to_longitude(self._mean_anomaly_at_start(orbit),
                                        np.degrees(orbit.inclination),
                                        np.degrees(orbit.argument_of_periapsis),
                                        np.degrees(orbit.lan))
        if key == "porb":
            return orbit.period
        if key == "vorb":
            return _ellipse_mean_speed(orbit)
        if key == "vmin":
            return orbit.speed_at_distance(orbit.apoapsis)
        # vmax
        return orbit.speed_at_distance(orbit.periapsis)

    @staticmethod
    def _mean_anomaly_at_start(orbit: Orbit) -> float:
        # Mean anomaly at UT 0 [deg], wrapped to [0, 360)
        return float(np.degrees(np.mod(orbit.mean_anomaly_at(0.0), 2 * np.pi)))

    def __contains__(self, name):
        return name in self._bodies

    def __iter__(self):
        return iter(self._bodies.values())

    def __len__(self):
        return len(self._bodies)

    def __repr__(self):
        return f"SolarSystem({list(self._bodies)})"
