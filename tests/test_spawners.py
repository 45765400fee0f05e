"""
Test suite for the spawn schedulers and the in-memory asteroid host.
"""

import logging
import numpy as np
import pytest
from kometes import (Asteroid, AsteroidCatalog, FixedRateSpawner, InMemoryHost, Population,
                     StockalikeSpawner, RandomSource, temp_config,
                     kerbol_system, load_catalog)
from kometes.spawners import generate_designation, make_name

DAY = 86400.0


@pytest.fixture(scope="module")
def bodies():
    return kerbol_system()


@pytest.fixture
def catalog(bodies):
    records = [{"type": "ASTEROIDGROUP", "name": "mun-ring", "title": "Ring",
                "centralBody": "Kerbin", "spawnRate": 2.0,
                "orbitSize": {"dist": "Uniform", "min": "Ratio(Mun.sma, 0.4)",
                              "max": "Ratio(Mun.sma, 0.6)"},
                "eccentricity": {"dist": "Uniform", "min": 0.0, "max": 0.1}}]
    return load_catalog(records, bodies)


@pytest.fixture
def host():
    return InMemoryHost()


def make_asteroid(orbit, discovery_ut=0.0, lifetime=10.0, tracked=False):
    return Asteroid("Ast. XYZ-001", "mun-ring", orbit, "PotatoRoid", "C",
                    discovery_ut, lifetime, 20.0, tracked)


class TestNames:
    """Tests for asteroid naming."""

    def test_designation(self):
        rng = RandomSource(seed=11)
        for _ in range(100):
            designation = generate_designation(rng)
            letters, digits = designation.split("-")
            assert len(letters) == 3 and letters.isalpha() and letters.isupper()
            assert len(digits) == 3 and digits.isdigit()

    def test_titled_name(self, catalog):
        name = make_name(catalog.get("mun-ring"), RandomSource(seed=1))
        assert name.startswith("Ring ")

    def test_stock_name(self, catalog):
        with temp_config(RENAME_ASTEROIDS=False):
            name = make_name(catalog.get("mun-ring"), RandomSource(seed=1))
        assert name.startswith("Ast. ")


class TestInMemoryHost:
    """Tests for the list-backed host."""

    def test_add_remove(self, bodies, host):
        asteroid = make_asteroid(bodies.get("Mun").orbit)
        host.add(asteroid)
        assert len(host) == 1
        assert host.asteroids() == [asteroid]
        host.remove(asteroid)
        assert len(host) == 0

    def test_signal_life(self, bodies):
        asteroid = make_asteroid(bodies.get("Mun").orbit, discovery_ut=100.0, lifetime=50.0)
        assert asteroid.signal_life(120.0) == 30.0
        assert asteroid.signal_life(200.0) == -50.0


class TestTick:
    """Tests for behaviour shared by all spawners."""

    def test_tick_interval(self, catalog, host, bodies):
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=1))
        assert spawner.tick(0.0) == 5.0
        assert spawner.tick(1.0, warp_rate=10.0) == 0.5
        assert spawner.tick(2.0, warp_rate=1000.0) == 0.1

    def test_stockalike_interval(self, catalog, host, bodies):
        spawner = StockalikeSpawner(catalog, InMemoryHost(trackable=False), bodies)
        assert spawner.tick(0.0) == 15.0

    def test_despawn(self, catalog, host, bodies):
        orbit = bodies.get("Mun").orbit
        lost = make_asteroid(orbit, lifetime=10.0)
        tracked = make_asteroid(orbit, lifetime=10.0, tracked=True)
        fresh = make_asteroid(orbit, lifetime=100.0)
        for asteroid in (lost, tracked, fresh):
            host.add(asteroid)
        spawner = StockalikeSpawner(catalog, host, bodies, RandomSource(seed=2))
        spawner.check_despawn(11.0)
        assert host.asteroids() == [tracked, fresh]
        assert spawner.untracked_count() == 1

    def test_spawn_asteroid(self, catalog, host, bodies):
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=3))
        asteroid = spawner.spawn_asteroid(1000.0)
        assert host.asteroids() == [asteroid]
        assert asteroid.set_name == "mun-ring"
        assert asteroid.orbit.body.name == "Kerbin"
        assert asteroid.discovery_ut == 1000.0
        assert DAY <= asteroid.lifetime < 20 * DAY
        assert asteroid.asteroid_class == "PotatoRoid"
        assert asteroid.size_class in "ABCDEFGHI"
        assert not asteroid.tracked

    def test_spawn_failure_logged(self, bodies, host, caplog):
        # Ranges that were never resolved cannot be drawn from
        catalog = AsteroidCatalog([Population("raw", spawn_rate=1.0)])
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=4))
        with caplog.at_level(logging.ERROR, logger="kometes.spawners"):
            assert spawner.spawn_asteroid(0.0) is None
        assert len(host) == 0
        assert "Could not create new asteroid" in caplog.text

    def test_nothing_to_spawn(self, bodies, host, caplog):
        spawner = FixedRateSpawner(AsteroidCatalog(), host, bodies, RandomSource(seed=4))
        with caplog.at_level(logging.ERROR, logger="kometes.spawners"):
            assert spawner.spawn_asteroid(0.0) is None
        assert "Could not create new asteroid" in caplog.text


class TestFixedRateSpawner:
    """Tests for Poisson-process spawning."""

    def test_wait_time_mean(self, catalog, host, bodies):
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=5))
        waits = np.array([spawner.asteroid_wait() for _ in range(20000)])
        assert waits.mean() == pytest.approx(DAY / 2.0, rel=0.03)
        # Exponential: standard deviation equals the mean
        assert waits.std() == pytest.approx(DAY / 2.0, rel=0.05)

    def test_no_rate_never_spawns(self, bodies, host):
        spawner = FixedRateSpawner(AsteroidCatalog(), host, bodies, RandomSource(seed=6))
        assert spawner.asteroid_wait() == np.inf
        spawner.tick(0.0)
        spawner.tick(1e9)
        assert len(host) == 0
        assert spawner.next_arrival == np.inf

    def test_first_tick_schedules(self, catalog, host, bodies):
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=7))
        assert spawner.next_arrival is None
        spawner.tick(100.0)
        assert spawner.next_arrival >= 100.0
        assert len(host) == 0

    def test_spawn_count(self, catalog, host, bodies):
        """Arrivals over a long interval match the configured rate."""
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=8))
        spawner.tick(0.0)
        with temp_config(MIN_UNTRACKED_DAYS=1000.0, MAX_UNTRACKED_DAYS=1000.0):
            for day in range(1, 401):
                spawner.tick(day * DAY)
        # 2 per day for 400 days; Poisson standard deviation is about 28
        assert 800 - 120 < len(host) < 800 + 120
        assert spawner.next_arrival > 400 * DAY

    def test_untrackable_host_skips_arrivals(self, catalog, bodies):
        host = InMemoryHost(trackable=False)
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=9))
        spawner.tick(0.0)
        spawner.tick(10 * DAY)
        assert len(host) == 0
        assert spawner.next_arrival > 10 * DAY

    def test_save_and_load(self, catalog, host, bodies):
        spawner = FixedRateSpawner(catalog, host, bodies, RandomSource(seed=10))
        assert spawner.save_state() == {}
        spawner.tick(0.0)
        saved = spawner.save_state()
        assert saved == {"NextAsteroidUT": spawner.next_arrival}

        restored = FixedRateSpawner(catalog, InMemoryHost(), bodies, RandomSource(seed=10))
        restored.load_state({"NextAsteroidUT": str(saved["NextAsteroidUT"])})
        assert restored.next_arrival == pytest.approx(saved["NextAsteroidUT"])
        restored.load_state({})
        assert restored.next_arrival is None


class TestStockalikeSpawner:
    """Tests for group-limited spawning."""

    def test_keeps_small_group(self, catalog, host, bodies):
        spawner = StockalikeSpawner(catalog, host, bodies, RandomSource(seed=12))
        for tick in range(300):
            spawner.tick(tick * 15.0)
        assert 3 <= len(host) <= 7

    def test_tracked_asteroids_do_not_count(self, catalog, host, bodies):
        orbit = bodies.get("Mun").orbit
        for _ in range(10):
            host.add(make_asteroid(orbit, lifetime=1e9, tracked=True))
        spawner = StockalikeSpawner(catalog, host, bodies, RandomSource(seed=13))
        for tick in range(300):
            spawner.tick(tick * 15.0)
        assert 3 <= spawner.untracked_count() <= 7

    def test_untrackable_host(self, catalog, bodies):
        host = InMemoryHost(trackable=False)
        spawner = StockalikeSpawner(catalog, host, bodies, RandomSource(seed=14))
        for tick in range(100):
            spawner.tick(tick * 15.0)
        assert len(host) == 0
