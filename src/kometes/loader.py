"""
Asteroid Catalog
================

Builds asteroid sets and reference frames from configuration records that
an external reader has already parsed into dictionaries.

Asteroid set records carry a ``type`` of ``ASTEROIDGROUP`` (a
:class:`~kometes.asteroid_sets.Population`), ``INTERCEPT`` (a
:class:`~kometes.asteroid_sets.Flyby`) or ``DEFAULT`` (a
:class:`~kometes.asteroid_sets.DefaultAsteroids`). Frame records carry a
``type`` of ``REFPLANE`` or ``REFVECTORS``.

Each record is loaded on its own: a record that fails is logged and
skipped, and does not affect the others.

Examples
--------
>>> from kometes import load_catalog, kerbol_system
>>> records = [{
...     "type": "ASTEROIDGROUP", "name": "belt", "title": "Belt",
...     "centralBody": "Sun", "spawnRate": 0.3,
...     "orbitSize": {"dist": "LogUniform", "min": "Ratio(Dres.sma, 0.8)",
...                   "max": "Ratio(Dres.sma, 1.2)"},
...     "eccentricity": {"avg": 0.1},
... }]
>>> catalog = load_catalog(records, kerbol_system())
>>> len(catalog)
1
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional
from .asteroid_sets import AsteroidSet, DefaultAsteroids, Flyby, Population
from .conditions import Condition, GameState
from .errors import KometesError, ParseError
from .frames import FrameRegistry, ReferenceFrame
from .random_source import RandomSource
from .utils import describe_failure, validation_error

logger = logging.getLogger(__name__)

FRAME_TYPES = ("REFPLANE", "REFVECTORS")


class AsteroidCatalog:
    """
    The asteroid sets and reference frames available to a spawner.

    Parameters
    ----------
    sets : iterable of AsteroidSet
    frames : FrameRegistry, optional
    """

    def __init__(self, sets: Iterable[AsteroidSet] = (), frames: Optional[FrameRegistry] = None):
        self._sets: List[AsteroidSet] = list(sets)
        self.frames = frames if frames is not None else FrameRegistry()

    def total_rate(self, state: Optional[GameState] = None) -> float:
        """Combined spawn rate of all sets [asteroids per day]."""
        return sum(asteroid_set.spawn_rate(state) for asteroid_set in self._sets)

    def draw_asteroid_set(self, rng: RandomSource,
                          state: Optional[GameState] = None) -> AsteroidSet:
        """
        Choose a set with probability proportional to its current spawn rate.

        Raises
        ------
        InvalidOperationError
            If there are no sets or no set currently spawns asteroids
        """
        return rng.weighted_choice([(asteroid_set, asteroid_set.spawn_rate(state))
                                    for asteroid_set in self._sets])

    def get(self, name: str) -> AsteroidSet:
        for asteroid_set in self._sets:
            if asteroid_set.name == name:
                return asteroid_set
        raise KeyError(f"No asteroid set named '{name}'")

    def __iter__(self):
        return iter(self._sets)

    def __len__(self):
        return len(self._sets)

    def __repr__(self):
        return f"AsteroidCatalog({[asteroid_set.name for asteroid_set in self._sets]})"


# ========== RECORD CONVERSION ==========
def _common_options(record: Mapping) -> Dict:
    try:
        spawn_rate = float(record.get("spawnRate", 0.0))
    except (TypeError, ValueError) as e:
        raise ParseError(f"Cannot parse spawn rate '{record.get('spawnRate')}'") from e

    condition = record.get("detectable")
    if isinstance(condition, Mapping):
        condition = Condition.from_config(condition)
    elif isinstance(condition, str):
        condition = Condition(clauses=[condition])
    elif condition is not None:
        condition = Condition(clauses=condition)

    return dict(title=record.get("title", "Ast."), spawn_rate=spawn_rate,
                condition=condition, class_ratios=record.get("asteroidTypes"))


def _ranges(record: Mapping, defaults: Dict) -> Dict:
    # Config key -> range built on the default of the same key
    return {key: type(default).from_config(record.get(key), default)
            for key, default in defaults.items()}


def _population(record: Mapping) -> Population:
    ranges = _ranges(record, Population.default_ranges())
    return Population(record.get("name", "invalid"),
                      central_body=record.get("centralBody", "Sun"),
                      orbit_size=ranges["orbitSize"], eccentricity=ranges["eccentricity"],
                      inclination=ranges["inclination"], periapsis=ranges["periapsis"],
                      ascending_node=ranges["ascNode"], orbit_phase=ranges["orbitPhase"],
                      ref_plane=record.get("refPlane"), **_common_options(record))


def _flyby(record: Mapping) -> Flyby:
    ranges = _ranges(record, Flyby.default_ranges())
    return Flyby(record.get("name", "invalid"),
                 target_body=record.get("targetBody", "Kerbin"),
                 approach=ranges["approach"], warn_time=ranges["warnTime"],
                 v_soi=ranges["vSoi"], **_common_options(record))


def _default(record: Mapping) -> DefaultAsteroids:
    return DefaultAsteroids(record.get("name", "default"), **_common_options(record))


SET_BUILDERS = {
    "ASTEROIDGROUP": _population,
    "INTERCEPT": _flyby,
    "DEFAULT": _default,
}


def build_asteroid_set(record: Mapping, bodies) -> AsteroidSet:
    """
    Build and resolve one asteroid set from its configuration record.

    Raises
    ------
    KometesError
        If the record cannot be interpreted or its ranges cannot be resolved
    """
    kind = str(record.get("type", "")).upper()
    if kind not in SET_BUILDERS:
        raise ParseError(f"Unknown asteroid set type '{record.get('type')}'")
    asteroid_set = SET_BUILDERS[kind](record)
    asteroid_set.resolve(bodies)
    return asteroid_set


# ========== LOADING ==========
def load_frames(frame_records: Iterable[Mapping], bodies,
                default_frame: Optional[str] = None) -> FrameRegistry:
    """
    Build the reference frames, skipping (and logging) any that fail.
    """
    frames = []
    for record in frame_records:
        try:
            if str(record.get("type", "")).upper() not in FRAME_TYPES:
                validation_error(f"Unknown reference frame type '{record.get('type')}'",
                                 ParseError)
                continue
            frames.append(ReferenceFrame.from_config(record, bodies))
        except KometesError as e:
            logger.error("Could not load reference plane '%s'. %s",
                         record.get("name"), describe_failure(e))
            continue
        logger.debug("Reference plane '%s' loaded", record.get("name"))
    return FrameRegistry(frames, default_frame)


def load_catalog(records: Iterable[Mapping], bodies, frame_records: Iterable[Mapping] = (),
                 default_frame: Optional[str] = None) -> AsteroidCatalog:
    """
    Build an asteroid catalog from configuration records.

    Parameters
    ----------
    records : iterable of dict
        Asteroid set records
    bodies : SolarSystem
        Registry against which formulas are resolved
    frame_records : iterable of dict, optional
        Reference frame records
    default_frame : str, optional
        Name of the frame used by populations that name none

    Returns
    -------
    AsteroidCatalog
        Every set and frame that loaded successfully

    Notes
    -----
    A record of unknown type is skipped like any other failing record. It
    is logged as an error if ``config.STRICT_VALIDATION`` is True, and
    reported as a ``UserWarning`` otherwise.
    """
    frames = load_frames(frame_records, bodies, default_frame)
    sets = []
    for record in records:
        try:
            if str(record.get("type", "")).upper() not in SET_BUILDERS:
                validation_error(f"Unknown asteroid set type '{record.get('type')}'",
                                 ParseError)
                continue
            asteroid_set = build_asteroid_set(record, bodies)
        except KometesError as e:
            # Attempt to parse remaining populations
            logger.error("Could not load asteroid group '%s'. %s",
                         record.get("name"), describe_failure(e))
            continue
        logger.debug("Asteroid group '%s' loaded", asteroid_set.name)
        sets.append(asteroid_set)
    return AsteroidCatalog(sets, frames)
