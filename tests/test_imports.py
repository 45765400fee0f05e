"""Smoke tests to verify package imports work."""

def test_package_imports():
    """Test that all main classes can be imported."""
    from kometes import Orbit, SolarSystem, RandomSource, Population, Flyby, FixedRateSpawner
    assert Orbit is not None
    assert SolarSystem is not None
    assert RandomSource is not None
    assert Population is not None
    assert Flyby is not None
    assert FixedRateSpawner is not None

def test_version_exists():
    """Test that version is defined."""
    import kometes
    assert hasattr(kometes, '__version__')
    assert kometes.__version__ == "0.1.0"

def test_can_create_orbit():
    """Test basic Orbit creation."""
    from kometes import Orbit, kerbol_system
    sun = kerbol_system().get("Sun")
    orbit = Orbit(0.1, 0.01, 1.5e10, 0, 0, 0, 0.0, sun)
    assert orbit.semimajor_axis == 1.5e10

def test_can_create_system():
    """Test basic SolarSystem creation."""
    from kometes import kerbol_system
    bodies = kerbol_system()
    assert bodies.get("Kerbin").mu == 3.5316e12
    assert len(bodies) == 11

def test_can_create_random_source():
    """Test basic RandomSource creation."""
    from kometes import RandomSource
    rng = RandomSource(seed=1)
    assert 0.0 <= rng.random() < 1.0
