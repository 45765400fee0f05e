"""
Spawn Scheduler
===============

Spawners decide when asteroids appear and disappear. The host calls
:meth:`AbstractSpawner.tick` periodically with the current time; each tick
removes untracked asteroids whose signal has been lost, then possibly
spawns new ones, and returns the delay until the next tick.

Two policies are available:

* :class:`FixedRateSpawner` spawns asteroids as a Poisson process whose
  rate is the combined spawn rate of all asteroid sets.
* :class:`StockalikeSpawner` imitates the stock game, keeping a small
  group of untracked asteroids in play.

Examples
--------
>>> from kometes import (FixedRateSpawner, InMemoryHost, RandomSource,
...                      kerbol_system, load_catalog)
>>> bodies = kerbol_system()
>>> catalog = load_catalog(records, bodies)  # doctest: +SKIP
>>> spawner = FixedRateSpawner(catalog, InMemoryHost(), bodies, RandomSource(seed=7))
>>> delay = spawner.tick(now=0.0)  # doctest: +SKIP
"""

import logging
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol
from .asteroid_sets import AsteroidSet, DrawContext
from .conditions import GameState
from .config import config
from .errors import KometesError
from .orbit import Orbit
from .random_source import RandomSource
from .utils import describe_failure

logger = logging.getLogger(__name__)


@dataclass
class Asteroid:
    """
    A spawned asteroid, as handed to the host.

    Attributes
    ----------
    name : str
    set_name : str
        Name of the asteroid set it was drawn from
    orbit : Orbit
    asteroid_class : str
        Physical class, e.g. ``"PotatoRoid"``
    size_class : str
        Size class letter, ``"A"`` to ``"I"``
    discovery_ut : float
        Time of spawning [s]
    lifetime : float
        How long the asteroid stays visible while untracked [s]
    max_lifetime : float
        Largest lifetime any asteroid can be given [s]
    tracked : bool
        Whether the player is tracking the asteroid
    """
    name: str
    set_name: str
    orbit: Orbit
    asteroid_class: str
    size_class: str
    discovery_ut: float
    lifetime: float
    max_lifetime: float
    tracked: bool = False

    def signal_life(self, ut: float) -> float:
        """Remaining untracked lifetime at ``ut`` [s]; the asteroid is lost at 0."""
        return self.discovery_ut + self.lifetime - ut


class AsteroidHost(Protocol):
    """The game-side collection that spawned asteroids live in."""

    def asteroids(self) -> Iterable[Asteroid]:
        ...

    def add(self, asteroid: Asteroid):
        ...

    def remove(self, asteroid: Asteroid):
        ...

    def asteroids_trackable(self) -> bool:
        ...


class InMemoryHost:
    """
    :class:`AsteroidHost` that keeps asteroids in a list.

    Parameters
    ----------
    trackable : bool, optional
        Whether the player can detect asteroids (e.g. has a tracking station)
    """

    def __init__(self, trackable: bool = True):
        self.trackable = trackable
        self._asteroids: List[Asteroid] = []

    def asteroids(self):
        return list(self._asteroids)

    def add(self, asteroid):
        self._asteroids.append(asteroid)

    def remove(self, asteroid):
        self._asteroids.remove(asteroid)

    def asteroids_trackable(self):
        return self.trackable

    def __len__(self):
        return len(self._asteroids)


def generate_designation(rng: RandomSource) -> str:
    """Random catalogue designation of the form ``ABC-123``."""
    letters = "".join(chr(ord("A") + rng.integer(0, 26)) for _ in range(3))
    return f"{letters}-{rng.integer(0, 1000):03d}"


def make_name(asteroid_set: AsteroidSet, rng: RandomSource) -> str:
    """
    Name for a new asteroid: the set's title followed by a designation, or
    ``"Ast."`` and a designation if ``config.RENAME_ASTEROIDS`` is False.
    """
    designation = generate_designation(rng)
    if config.RENAME_ASTEROIDS:
        return f"{asteroid_set.title} {designation}"
    return f"Ast. {designation}"


class AbstractSpawner(ABC):
    """
    Spawning behaviour common to all policies; subclasses decide when to spawn.

    Parameters
    ----------
    catalog : AsteroidCatalog
        The asteroid sets to draw from
    host : AsteroidHost
        Where asteroids are added and removed
    bodies : SolarSystem
        Registry the orbits are drawn in
    rng : RandomSource, optional
        Source of randomness; a freshly seeded one if None
    state : GameState, optional
        Player progress, for asteroid set conditions
    """

    def __init__(self, catalog, host: AsteroidHost, bodies, rng: Optional[RandomSource] = None,
                 state: Optional[GameState] = None):
        self.catalog = catalog
        self.host = host
        self.bodies = bodies
        self.rng = rng if rng is not None else RandomSource()
        self.state = state

    def tick(self, now: float, warp_rate: float = 1.0) -> float:
        """
        Remove lost asteroids and possibly spawn new ones.

        Parameters
        ----------
        now : float
            Current time [s]
        warp_rate : float, optional
            Current time acceleration factor

        Returns
        -------
        float
            Delay before the next tick [s of real time], never less than
            ``config.MIN_CHECK_INTERVAL``
        """
        self.check_despawn(now)
        self.check_spawn(now)
        return max(self.check_interval() / warp_rate, config.MIN_CHECK_INTERVAL)

    def check_interval(self) -> float:
        """Nominal time between ticks, uncorrected for time warp [s]."""
        return config.STOCKALIKE_INTERVAL

    @abstractmethod
    def check_spawn(self, now: float):
        """Spawn asteroids if it is time to."""
        pass

    def check_despawn(self, now: float):
        """Remove untracked asteroids whose signal has run out."""
        lost = [asteroid for asteroid in self.host.asteroids()
                if not asteroid.tracked and asteroid.signal_life(now) <= 0]
        for asteroid in lost:
            logger.info("Asteroid %s has been untracked for too long and is now lost.",
                        asteroid.name)
            self.host.remove(asteroid)

    def untracked_count(self) -> int:
        return sum(1 for asteroid in self.host.asteroids() if not asteroid.tracked)

    def spawn_asteroid(self, now: float) -> Optional[Asteroid]:
        """
        Create an asteroid from a randomly chosen set and add it to the host.

        Failures are logged rather than raised.

        Returns
        -------
        Asteroid or None
            The new asteroid, or None if none could be created
        """
        try:
            asteroid_set = self.catalog.draw_asteroid_set(self.rng, self.state)
            asteroid = self._create_asteroid(asteroid_set, now)
        except (KometesError, ValueError, ArithmeticError) as e:
            logger.error("Could not create new asteroid. %s", describe_failure(e))
            return None
        self.host.add(asteroid)
        logger.info("[%s]: New object found: %s in asteroid set %s.",
                    type(self).__name__, asteroid.name, asteroid_set)
        return asteroid

    def _create_asteroid(self, asteroid_set: AsteroidSet, now: float) -> Asteroid:
        ctx = DrawContext(self.bodies, self.rng, now, self.catalog.frames, self.state)
        orbit = asteroid_set.draw_orbit(ctx)
        name = make_name(asteroid_set, self.rng)
        lifetime, max_lifetime = asteroid_set.draw_tracking_lifetime(self.rng)
        size_class = asteroid_set.draw_size_class(self.rng)
        asteroid_class = asteroid_set.draw_asteroid_class(self.rng)
        return Asteroid(name, asteroid_set.name, orbit, asteroid_class, size_class,
                        now, lifetime, max_lifetime)


class FixedRateSpawner(AbstractSpawner):
    """
    Spawns asteroids at exponentially distributed intervals whose mean is
    the inverse of the catalog's total spawn rate.

    The time of the next arrival is the only state, and can be saved and
    restored with :meth:`save_state` and :meth:`load_state`.
    """
    STATE_KEY = "NextAsteroidUT"

    def __init__(self, catalog, host, bodies, rng=None, state=None):
        super().__init__(catalog, host, bodies, rng, state)
        self.next_arrival: Optional[float] = None

    def check_interval(self):
        return config.FIXED_RATE_INTERVAL

    def asteroid_wait(self) -> float:
        """Draw the time to the next arrival [s]; infinite if nothing spawns."""
        rate = self.catalog.total_rate(self.state) / config.SECONDS_PER_DAY
        if rate <= 0.0:
            return np.inf
        return self.rng.exponential(1.0 / rate)

    def check_spawn(self, now):
        if self.next_arrival is None or np.isinf(self.next_arrival):
            # Memoryless, so starting over is equivalent to having waited
            self.next_arrival = now + self.asteroid_wait()
        while now > self.next_arrival:
            if self.host.asteroids_trackable():
                logger.info("[%s]: Spawning asteroid scheduled for UT %.1f",
                            type(self).__name__, self.next_arrival)
                self.spawn_asteroid(now)
            self.next_arrival += self.asteroid_wait()

    def save_state(self):
        """Scheduler state for persistence."""
        if self.next_arrival is None:
            return {}
        return {self.STATE_KEY: self.next_arrival}

    def load_state(self, saved):
        """Restore state written by :meth:`save_state`."""
        value = saved.get(self.STATE_KEY)
        self.next_arrival = float(value) if value is not None else None


class StockalikeSpawner(AbstractSpawner):
    """
    Keeps a random-sized group of untracked asteroids in play, spawning
    with fixed odds whenever the group is below its threshold.
    """

    def check_interval(self):
        return config.STOCKALIKE_INTERVAL

    def check_spawn(self, now):
        if not self.host.asteroids_trackable():
            return
        threshold = self.rng.integer(config.SPAWN_GROUP_MIN, config.SPAWN_GROUP_MAX)
        if self.untracked_count() < threshold:
            if self.rng.random() < 1.0 / (1.0 + config.SPAWN_ODDS_AGAINST):
                self.spawn_asteroid(now)
            else:
                logger.debug("[%s]: No new objects this time. (Odds are 1:%d)",
                             type(self).__name__, config.SPAWN_ODDS_AGAINST)
