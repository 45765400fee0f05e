"""
Kometes: Procedural Asteroid Orbits and Spawning

A Python package for generating asteroid and comet orbits from declarative
configuration, including patched-conic flybys, and for scheduling when
the generated asteroids appear in a game.
"""

# Configuration and errors
from .config import config, temp_config
from .errors import (KometesError, ParseError, BodyLookupError,
                     InvalidParameterError, InvalidOperationError)

# Core classes
from .orbit import Orbit, solve_kepler, solve_kepler_hyperbolic
from .bodies import CelestialBody, SolarSystem
from .random_source import RandomSource
from .distributions import Distribution, draw_value
from .formulas import (parse_formula, evaluate_formula, anomaly_to_longitude,
                       longitude_to_anomaly)
from .ranges import (ValueRange, SizeRange, PeriRange, PhaseRange, ApproachRange,
                     SizeType, PeriType, PhaseType, EpochType, ApproachType)
from .frames import ReferenceFrame, FrameRegistry
from .conditions import Condition, Operator, ProgressState
from .asteroid_sets import AsteroidSet, DrawContext, Population, Flyby, DefaultAsteroids
from .loader import AsteroidCatalog, load_catalog
from .spawners import Asteroid, InMemoryHost, FixedRateSpawner, StockalikeSpawner

# Stock solar system
from .defaults import kerbol_system

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from kometes import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    # Errors
    "KometesError",
    "ParseError",
    "BodyLookupError",
    "InvalidParameterError",
    "InvalidOperationError",
    # Classes
    "Orbit",
    "CelestialBody",
    "SolarSystem",
    "RandomSource",
    "Distribution",
    "ValueRange",
    "SizeRange",
    "PeriRange",
    "PhaseRange",
    "ApproachRange",
    "SizeType",
    "PeriType",
    "PhaseType",
    "EpochType",
    "ApproachType",
    "ReferenceFrame",
    "FrameRegistry",
    "Condition",
    "Operator",
    "ProgressState",
    "AsteroidSet",
    "DrawContext",
    "Population",
    "Flyby",
    "DefaultAsteroids",
    "AsteroidCatalog",
    "Asteroid",
    "InMemoryHost",
    "FixedRateSpawner",
    "StockalikeSpawner",
    # Functions
    "solve_kepler",
    "solve_kepler_hyperbolic",
    "draw_value",
    "parse_formula",
    "evaluate_formula",
    "anomaly_to_longitude",
    "longitude_to_anomaly",
    "load_catalog",
    "kerbol_system",
]
