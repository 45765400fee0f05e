"""
Asteroid Sets
=============

An asteroid set describes one family of asteroids: how often they appear,
what their orbits look like, and what they are made of. Three kinds exist:

* :class:`Population`: asteroids on stable orbits around a central body
* :class:`Flyby`: asteroids on hyperbolic approach to a target body
* :class:`DefaultAsteroids`: emulation of the stock spawning behaviour

All share the :class:`AsteroidSet` interface used by the spawn scheduler.
"""

import logging
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple
from .bodies import SolarSystem
from .conditions import Condition, GameState, parse_predicate
from .config import config
from .distributions import Distribution, lognormal_parameters
from .errors import BodyLookupError, InvalidOperationError, KometesError
from .frames import FrameRegistry
from .orbit import Orbit
from .proportions import parse_proportions
from .random_source import RandomSource
from .ranges import (ValueRange, SizeRange, PeriRange, PhaseRange, ApproachRange,
                     SizeType, PeriType, PhaseType, EpochType, ApproachType, wrapped_draw)
from .synthesis import impact_to_periapsis, intercept_orbit, stable_orbit
from .utils import describe_failure

logger = logging.getLogger(__name__)

SIZE_CLASSES = "ABCDEFGHI"

# Keyframes (time, value, in-tangent, out-tangent) of the stock size curve:
# 12% class A, 13% B, 49% C, 13% D and 12% E
_SIZE_CURVE = (
    (0.0, 0.0, 1.5, 1.5),
    (0.3, 0.45, 0.875, 0.875),
    (0.7, 0.55, 0.875, 0.875),
    (1.0, 1.0, 1.5, 1.5),
)


def _evaluate_size_curve(x: float) -> float:
    # Cubic Hermite interpolation between keyframes
    for (t0, v0, _, out0), (t1, v1, in1, _) in zip(_SIZE_CURVE, _SIZE_CURVE[1:]):
        if x <= t1:
            dt = t1 - t0
            s = (x - t0) / dt
            h00 = 2 * s**3 - 3 * s**2 + 1
            h10 = s**3 - 2 * s**2 + s
            h01 = -2 * s**3 + 3 * s**2
            h11 = s**3 - s**2
            return h00 * v0 + h10 * dt * out0 + h01 * v1 + h11 * dt * in1
    return _SIZE_CURVE[-1][1]


@dataclass
class DrawContext:
    """Everything an orbit draw needs to know about the world."""
    bodies: SolarSystem
    rng: RandomSource
    ut: float
    frames: Optional[FrameRegistry] = None
    state: Optional[GameState] = None


class AsteroidSet(ABC):
    """
    Shared behaviour of all asteroid sets.

    Parameters
    ----------
    name : str
        Unique identifier of the set
    title : str, optional
        Name given to asteroids from this set
    spawn_rate : float, optional
        Asteroids per day while the set's condition holds
    condition : Condition, optional
        Eligibility condition; None means always eligible
    class_ratios : list, optional
        Relative frequencies of asteroid classes, as (label, weight) pairs or
        ``"<weight> <label>"`` strings. Defaults to ``config.DEFAULT_CLASS`` only.
    """

    def __init__(self, name: str, title: str = "Ast.", spawn_rate: float = 0.0,
                 condition: Optional[Condition] = None, class_ratios=None):
        self.name = name
        self.title = title
        self.rate = float(spawn_rate)
        self.condition = condition
        if class_ratios is None:
            class_ratios = [(config.DEFAULT_CLASS, 1.0)]
        self.class_ratios: List[Tuple[str, float]] = [
            parse_proportions([ratio])[0] if isinstance(ratio, str) else tuple(ratio)
            for ratio in class_ratios]

    def spawn_rate(self, state: Optional[GameState] = None) -> float:
        """
        The current spawn rate [asteroids per day].

        Zero if the set has a condition that does not hold. Conditions
        cannot hold without a game state to check them against.
        """
        if self.condition is None or len(self.condition) == 0:
            return self.rate
        if state is not None and self.condition.check(state):
            return self.rate
        return 0.0

    def ranges(self) -> List[ValueRange]:
        """The parameter ranges this set draws from."""
        return []

    def resolve(self, bodies: SolarSystem):
        """Evaluate every range of the set against ``bodies``."""
        for value_range in self.ranges():
            value_range.resolve(bodies)

    @abstractmethod
    def draw_orbit(self, ctx: DrawContext) -> Orbit:
        """
        Generate the orbit of a new asteroid.

        Raises
        ------
        InvalidOperationError
            If the set cannot produce a valid orbit
        """
        pass

    def draw_asteroid_class(self, rng: RandomSource) -> str:
        """Choose an asteroid class, falling back to ``config.DEFAULT_CLASS``."""
        try:
            return rng.weighted_choice(self.class_ratios)
        except InvalidOperationError as e:
            logger.error("Could not select asteroid class for %s. %s", self.name,
                         describe_failure(e))
            return config.DEFAULT_CLASS

    def draw_tracking_lifetime(self, rng: RandomSource) -> Tuple[float, float]:
        """
        Draw how long an untracked asteroid stays visible.

        Returns
        -------
        tuple of float
            (lifetime, maximum lifetime) [s]
        """
        lo, hi = config.untracked_times()
        day = config.SECONDS_PER_DAY
        return rng.uniform(lo, hi) * day, hi * day

    def draw_size_class(self, rng: RandomSource) -> str:
        """Draw a size class letter with the stock size distribution."""
        index = int(_evaluate_size_curve(rng.random()) * len(SIZE_CLASSES))
        return SIZE_CLASSES[min(max(index, 0), len(SIZE_CLASSES) - 1)]

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r}, spawn_rate={self.rate})"


class Population(AsteroidSet):
    """
    Asteroids on orbits around ``central_body``.

    Ranges left as None take the defaults of :meth:`default_ranges`: log-uniform
    semimajor axis, Rayleigh eccentricity and inclination, and uniform
    periapsis, node and phase angles.
    """

    def __init__(self, name, central_body="Sun", title="Ast.", spawn_rate=0.0,
                 orbit_size=None, eccentricity=None, inclination=None,
                 periapsis=None, ascending_node=None, orbit_phase=None,
                 ref_plane: Optional[str] = None, condition=None, class_ratios=None):
        super().__init__(name, title, spawn_rate, condition, class_ratios)
        defaults = self.default_ranges()
        self.central_body = central_body
        self.orbit_size = orbit_size if orbit_size is not None else defaults["orbitSize"]
        self.eccentricity = eccentricity if eccentricity is not None else defaults["eccentricity"]
        self.inclination = inclination if inclination is not None else defaults["inclination"]
        self.periapsis = periapsis if periapsis is not None else defaults["periapsis"]
        self.ascending_node = (ascending_node if ascending_node is not None
                               else defaults["ascNode"])
        self.orbit_phase = orbit_phase if orbit_phase is not None else defaults["orbitPhase"]
        self.ref_plane = ref_plane

    @staticmethod
    def default_ranges():
        """Fresh default ranges, keyed by their configuration names."""
        return {
            "orbitSize": SizeRange(Distribution.LOG_UNIFORM, SizeType.SEMIMAJOR_AXIS,
                                   name="orbitSize"),
            "eccentricity": ValueRange(Distribution.RAYLEIGH, min=0.0, max=1.0,
                                       name="eccentricity"),
            "inclination": ValueRange(Distribution.RAYLEIGH, name="inclination"),
            "periapsis": PeriRange(Distribution.UNIFORM, PeriType.ARGUMENT,
                                   min=0.0, max=360.0, name="periapsis"),
            "ascNode": ValueRange(Distribution.UNIFORM, min=0.0, max=360.0, name="ascNode"),
            "orbitPhase": PhaseRange(Distribution.UNIFORM, PhaseType.MEAN_ANOMALY,
                                     EpochType.GAME_START, min=0.0, max=360.0,
                                     name="orbitPhase"),
        }

    def ranges(self):
        return [self.orbit_size, self.eccentricity, self.inclination,
                self.periapsis, self.ascending_node, self.orbit_phase]

    def draw_orbit(self, ctx: DrawContext) -> Orbit:
        try:
            body = ctx.bodies.get(self.central_body)
        except BodyLookupError as e:
            raise InvalidOperationError(
                f"Asteroid group '{self.name}' orbits unknown body '{self.central_body}'") from e
        frame = None
        if ctx.frames is not None:
            try:
                frame = ctx.frames.frame_for(self.ref_plane)
            except BodyLookupError as e:
                raise InvalidOperationError(
                    f"Asteroid group '{self.name}' uses unknown reference frame "
                    f"'{self.ref_plane}'") from e
        elif self.ref_plane is not None:
            raise InvalidOperationError(
                f"Asteroid group '{self.name}' uses unknown reference frame '{self.ref_plane}'")

        logger.debug("Drawing orbit from %s", self.name)
        return stable_orbit(body, ctx.rng, ctx.ut, self.orbit_size, self.eccentricity,
                            self.inclination, self.periapsis, self.ascending_node,
                            self.orbit_phase, frame=frame, label=self.name)


class Flyby(AsteroidSet):
    """
    Asteroids on hyperbolic approach to ``target_body``.

    ``warn_time`` is the time from spawning to closest approach [s]; negative
    values spawn asteroids that have already passed. ``v_soi`` is the
    hyperbolic excess speed [m/s].
    """

    def __init__(self, name, target_body="Kerbin", title="Ast.", spawn_rate=0.0,
                 approach=None, warn_time=None, v_soi=None, condition=None,
                 class_ratios=None):
        super().__init__(name, title, spawn_rate, condition, class_ratios)
        defaults = self.default_ranges()
        self.target_body = target_body
        self.approach = approach if approach is not None else defaults["approach"]
        self.warn_time = warn_time if warn_time is not None else defaults["warnTime"]
        self.v_soi = v_soi if v_soi is not None else defaults["vSoi"]

    @staticmethod
    def default_ranges():
        """Fresh default ranges, keyed by their configuration names."""
        return {
            "approach": ApproachRange(Distribution.UNIFORM, ApproachType.PERIAPSIS,
                                      min=0.0, name="approach"),
            "warnTime": ValueRange(Distribution.UNIFORM, name="warnTime"),
            "vSoi": ValueRange(Distribution.LOG_NORMAL, avg=300.0, stddev=100.0, name="vSoi"),
        }

    def ranges(self):
        return [self.approach, self.warn_time, self.v_soi]

    def draw_orbit(self, ctx: DrawContext) -> Orbit:
        try:
            body = ctx.bodies.get(self.target_body)
        except BodyLookupError as e:
            raise InvalidOperationError(
                f"Asteroid group '{self.name}' targets unknown body '{self.target_body}'") from e

        logger.debug("Drawing orbit from %s", self.name)
        v_inf = wrapped_draw(self.v_soi, ctx.rng, "vSoi", self.name)
        delta_t = wrapped_draw(self.warn_time, ctx.rng, "warnTime", self.name)
        if v_inf <= 0.0:
            raise InvalidOperationError(
                f"Asteroids in group '{self.name}' must have positive SOI entry speed "
                f"(generated {v_inf})")

        distance = wrapped_draw(self.approach, ctx.rng, "approach", self.name)
        if distance < 0.0:
            raise InvalidOperationError(
                f"Asteroids in group '{self.name}' cannot have negative approach distance "
                f"(generated {distance})")
        if self.approach.type is ApproachType.IMPACT_PARAMETER:
            periapsis = impact_to_periapsis(distance, body.mu, v_inf)
        else:
            periapsis = distance
        logger.debug("Asteroid will pass %g m from %s in %g s; v_inf = %g m/s",
                     periapsis, body.name, delta_t, v_inf)

        try:
            return intercept_orbit(body, periapsis, v_inf, ctx.ut + delta_t, ctx.ut, ctx.rng)
        except KometesError as e:
            raise InvalidOperationError(f"Could not create orbit for group '{self.name}'") from e


class DefaultAsteroids(AsteroidSet):
    """
    Asteroids created the way the stock game creates them.

    Once the player has reached Dres, one asteroid in four orbits Dres;
    the rest fly by the home world between 12.5 and 55 days after they
    are found.
    """
    DRES = "Dres"
    DRES_ODDS = 4
    DRES_SMA_FACTOR = (0.55, 0.65)
    DRES_SPREAD = 0.005  # Rayleigh scale of e, and of i in degrees
    FLYBY_DELAY_DAYS = (12.5, 55.0)
    FLYBY_SOI_FRACTION = 0.25  # Largest periapsis, as a fraction of the SOI
    FLYBY_V_INF = (300.0, 100.0)  # Mean and standard deviation [m/s]

    def __init__(self, name="default", title="Ast.", spawn_rate=0.0, condition=None,
                 class_ratios=None):
        super().__init__(name, title, spawn_rate, condition, class_ratios)

    def draw_orbit(self, ctx: DrawContext) -> Orbit:
        rng = ctx.rng
        dres = ctx.bodies.get(self.DRES) if self.DRES in ctx.bodies else None
        reached = (dres is not None and ctx.state is not None
                   and parse_predicate(f"{self.DRES}.reached").check(ctx.state))

        if reached and rng.integer(0, self.DRES_ODDS) == 0:
            # Drestroids
            a = rng.log_uniform(*self.DRES_SMA_FACTOR) * dres.soi
            e = rng.rayleigh(self.DRES_SPREAD)
            i = rng.rayleigh(self.DRES_SPREAD)
            lan = rng.angle()
            aPe = rng.angle()
            mEp = np.radians(rng.angle())
            logger.debug("New orbit at %g m, e = %g, i = %g, aPe = %g, lAn = %g, mEp = %g at epoch %g",
                         a, e, i, aPe, lan, mEp, ctx.ut)
            return Orbit(np.radians(i), e, a, np.radians(lan), np.radians(aPe), mEp,
                         ctx.ut, dres)

        try:
            home = ctx.bodies.home
        except BodyLookupError as e:
            raise InvalidOperationError("Cannot create stockalike orbits; home world not found") from e
        day = home.solar_day if home.solar_day is not None else config.SECONDS_PER_DAY
        delay = rng.uniform(*self.FLYBY_DELAY_DAYS)
        logger.debug("New orbit will pass by %s in %g days", home.name, delay)
        periapsis = rng.uniform(home.radius, self.FLYBY_SOI_FRACTION * home.soi)
        v_inf = rng.lognormal(*lognormal_parameters(*self.FLYBY_V_INF))
        try:
            return intercept_orbit(home, periapsis, v_inf, ctx.ut + delay * day, ctx.ut, rng)
        except KometesError as e:
            raise InvalidOperationError(f"Could not create orbit for group '{self.name}'") from e
