"""
Default Solar System
====================

Factory for a stock-like Kerbol system, for tests and for hosts that do not
supply their own body registry.

Values are those of the stock game, in SI units (m, m³/s², s). Angles are
given in degrees here and converted to radians for the orbits.

Examples
--------
>>> from kometes import kerbol_system
>>> bodies = kerbol_system()
>>> bodies.home.name
'Kerbin'
>>> bodies.lookup("Dres", "soi")
32832840.0
"""
import math
import numpy as np
from .bodies import CelestialBody, SolarSystem
from .orbit import Orbit

"""
Orbital elements of the planets and moons at UT 0
Columns: name, mu, radius, soi, parent, a, e, i, lan, argp, M0 [rad], rotation period
"""
_KERBOL_BODIES = [
    ("Moho", 1.6860938e11, 250000.0, 9646663.0,
     "Sun", 5263138304.0, 0.2, 7.0, 70.0, 15.0, 3.14, 1210000.0),
    ("Eve", 8.1717302e12, 700000.0, 85109365.0,
     "Sun", 9832684544.0, 0.01, 2.1, 15.0, 0.0, 3.14, 80500.0),
    ("Kerbin", 3.5316e12, 600000.0, 84159286.0,
     "Sun", 13599840256.0, 0.0, 0.0, 0.0, 0.0, 3.14, 21549.425),
    ("Mun", 6.5138398e10, 200000.0, 2429559.1,
     "Kerbin", 12000000.0, 0.0, 0.0, 0.0, 0.0, 1.7, 138984.38),
    ("Minmus", 1.7658e9, 60000.0, 2247428.4,
     "Kerbin", 47000000.0, 0.0, 6.0, 78.0, 38.0, 0.9, 40400.0),
    ("Duna", 3.0136321e11, 320000.0, 47921949.0,
     "Sun", 20726155264.0, 0.051, 0.06, 135.5, 0.0, 3.14, 65517.859),
    ("Ike", 1.8568369e10, 130000.0, 1049598.9,
     "Duna", 3200000.0, 0.03, 0.2, 0.0, 0.0, 1.7, 65517.862),
    ("Dres", 2.1484489e10, 138000.0, 32832840.0,
     "Sun", 40839348203.0, 0.145, 5.0, 280.0, 90.0, 3.14, 34800.0),
    ("Jool", 2.82528e14, 6000000.0, 2455985200.0,
     "Sun", 68773560320.0, 0.05, 1.304, 52.0, 0.0, 0.1, 36000.0),
    ("Eeloo", 7.4410815e10, 210000.0, 119082940.0,
     "Sun", 90118820000.0, 0.26, 6.15, 50.0, 260.0, 3.14, 19460.0),
]

HOME_WORLD = "Kerbin"


def _solar_day(rotation_period, year):
    # Synodic rotation relative to the star
    return 1.0 / (1.0 / rotation_period - 1.0 / year)


def kerbol_system():
    """
    Create the stock Kerbol system: Sun, Moho, Eve, Kerbin, Mun, Minmus,
    Duna, Ike, Dres, Jool and Eeloo.

    Returns
    -------
    SolarSystem
        Registry with Kerbin as the home world. The Sun has an infinite
        sphere of influence and no solar day.
    """
    sun = CelestialBody(name="Sun", mu=1.1723328e18, radius=261600000.0,
                        soi=math.inf, rotation_period=432000.0)
    bodies = {"Sun": sun}
    for (name, mu, radius, soi, parent, a, e, i, lan, argp, M0, rotation) in _KERBOL_BODIES:
        orbit = Orbit(np.radians(i), e, a, np.radians(lan), np.radians(argp), M0,
                      0.0, bodies[parent])
        # Moons share the solar day of the planet they orbit
        year = orbit.period if parent == "Sun" else bodies[parent].orbit.period
        bodies[name] = CelestialBody(name=name, mu=mu, radius=radius, soi=soi,
                                     orbit=orbit, rotation_period=rotation,
                                     solar_day=_solar_day(rotation, year),
                                     home=(name == HOME_WORLD))
    return SolarSystem(bodies.values())
