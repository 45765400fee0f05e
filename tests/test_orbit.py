"""
Test suite for the Orbit class and Kepler solvers.

Tests validation, derived properties, propagation, conversion from state
vectors, and batch export.
"""

import numpy as np
import pytest
from kometes import Orbit, solve_kepler, solve_kepler_hyperbolic, kerbol_system
from kometes.errors import InvalidOperationError


@pytest.fixture(scope="module")
def bodies():
    return kerbol_system()


@pytest.fixture
def sun(bodies):
    return bodies.get("Sun")


@pytest.fixture
def kerbin(bodies):
    return bodies.get("Kerbin")


@pytest.fixture
def ellipse(sun):
    """Moderately eccentric, inclined heliocentric orbit"""
    return Orbit(np.radians(10), 0.3, 2e10, np.radians(40), np.radians(60), 1.0, 0.0, sun)


@pytest.fixture
def hyperbola(kerbin):
    """Hyperbolic flyby of Kerbin"""
    return Orbit(np.radians(30), 1.5, -1e7, np.radians(10), np.radians(20), 0.5, 0.0, kerbin)


# ========== KEPLER'S EQUATION ==========
class TestKeplerSolvers:
    """Tests for the elliptic and hyperbolic Kepler solvers."""

    @pytest.mark.parametrize("M, e", [(0.5, 0.0), (2.0, 0.3), (5.0, 0.9), (3.1, 0.99)])
    def test_elliptic_residual(self, M, e):
        E = solve_kepler(M, e)
        assert E - e * np.sin(E) == pytest.approx(M, abs=1e-10)

    def test_elliptic_wraps_mean_anomaly(self):
        """Negative mean anomalies are wrapped to [0, 2π)."""
        E = solve_kepler(-1.0, 0.2)
        assert E - 0.2 * np.sin(E) == pytest.approx(2 * np.pi - 1.0, abs=1e-10)

    @pytest.mark.parametrize("M, e", [(50.0, 1.2), (-3.0, 2.0), (0.01, 1.05), (1000.0, 3.0)])
    def test_hyperbolic_residual(self, M, e):
        H = solve_kepler_hyperbolic(M, e)
        assert e * np.sinh(H) - H == pytest.approx(M, rel=1e-10, abs=1e-10)


# ========== VALIDATION ==========
class TestValidation:
    """Tests for element validation."""

    @pytest.mark.parametrize("e, a", [
        (-0.1, 1e9),   # negative eccentricity
        (1.0, 1e9),    # parabolic
        (0.5, -1e9),   # ellipse with negative a
        (1.5, 1e9),    # hyperbola with positive a
        (np.nan, 1e9),
    ])
    def test_invalid_elements(self, sun, e, a):
        with pytest.raises(InvalidOperationError):
            Orbit(0.0, e, a, 0.0, 0.0, 0.0, 0.0, sun)

    def test_validation_can_be_skipped(self, sun):
        orbit = Orbit(0.0, -0.1, 1e9, 0.0, 0.0, 0.0, 0.0, sun, validate=False)
        assert orbit.eccentricity == -0.1

    def test_elements_read_only(self, ellipse):
        with pytest.raises(ValueError):
            ellipse.elements[0] = 1.0


# ========== PROPERTIES ==========
class TestProperties:
    """Tests for derived orbital quantities."""

    def test_kerbin_period(self, kerbin):
        orbit = kerbin.orbit
        expected = 2 * np.pi * np.sqrt(orbit.semimajor_axis**3 / orbit.mu)
        assert orbit.period == pytest.approx(expected)
        assert orbit.period == pytest.approx(9203545, rel=1e-4)

    def test_apsides(self, ellipse):
        assert ellipse.periapsis == pytest.approx(1.4e10)
        assert ellipse.apoapsis == pytest.approx(2.6e10)
        assert ellipse.is_bound

    def test_unbound_apsides(self, hyperbola):
        assert hyperbola.periapsis == pytest.approx(5e6)
        assert hyperbola.apoapsis == np.inf
        assert hyperbola.period == np.inf
        assert hyperbola.specific_energy > 0
        assert not hyperbola.is_bound

    def test_vis_viva(self, ellipse, hyperbola):
        for orbit in (ellipse, hyperbola):
            for t in (0.0, 3.7e4, 1.2e6):
                speed = np.linalg.norm(orbit.velocity_at(t))
                assert speed == pytest.approx(orbit.speed_at_distance(orbit.radius_at(t)),
                                              rel=1e-9)

    def test_radius_matches_position(self, ellipse):
        t = 4.2e6
        assert np.linalg.norm(ellipse.position_at(t)) == pytest.approx(ellipse.radius_at(t))

    def test_time_of_periapsis_hyperbolic(self, kerbin):
        orbit = Orbit(0.0, 1.2, -1e7, 0.0, 0.0, 0.0, 100.0, kerbin)
        assert orbit.time_of_periapsis == pytest.approx(100.0)

    def test_time_of_periapsis_picks_closest_passage(self, sun):
        orbit = Orbit(0.0, 0.1, 1e10, 0.0, 0.0, 2 * np.pi - 0.1, 0.0, sun)
        assert orbit.time_of_periapsis == pytest.approx(0.1 / orbit.mean_motion)
        assert orbit.radius_at(orbit.time_of_periapsis) == pytest.approx(orbit.periapsis)

    def test_equatorial_orbit_stays_in_plane(self, kerbin):
        orbit = Orbit(0.0, 0.2, 2e7, 0.0, 0.0, 0.0, 0.0, kerbin)
        for t in np.linspace(0, orbit.period, 7):
            assert orbit.position_at(t)[2] == pytest.approx(0.0, abs=1e-6)


# ========== STATE VECTORS ==========
class TestStateVectors:
    """Tests for conversion from state vectors."""

    def test_elliptic_round_trip(self, ellipse):
        t0 = 1e6
        r, v = ellipse.state_at(t0)
        copy = Orbit.from_state_vectors(r, v, ellipse.body, t0)
        assert copy.epoch == t0
        assert copy.eccentricity == pytest.approx(ellipse.eccentricity, abs=1e-9)
        assert copy.semimajor_axis == pytest.approx(ellipse.semimajor_axis, rel=1e-9)
        assert copy.inclination == pytest.approx(ellipse.inclination, abs=1e-9)
        assert copy.lan == pytest.approx(ellipse.lan, abs=1e-9)
        assert copy.argument_of_periapsis == pytest.approx(ellipse.argument_of_periapsis,
                                                           abs=1e-8)
        for t in (t0, 5e6, 3e7):
            assert np.allclose(copy.position_at(t), ellipse.position_at(t), rtol=1e-7, atol=1.0)

    def test_hyperbolic_round_trip(self, hyperbola):
        t0 = 1000.0
        r, v = hyperbola.state_at(t0)
        copy = Orbit.from_state_vectors(r, v, hyperbola.body, t0)
        assert copy.eccentricity == pytest.approx(1.5, abs=1e-9)
        assert copy.semimajor_axis == pytest.approx(-1e7, rel=1e-9)
        for t in (t0, -4000.0, 5000.0):
            assert np.allclose(copy.position_at(t), hyperbola.position_at(t), rtol=1e-7, atol=1e-2)
            assert np.allclose(copy.velocity_at(t), hyperbola.velocity_at(t), rtol=1e-7)

    def test_radial_state_rejected(self, sun):
        with pytest.raises(InvalidOperationError):
            Orbit.from_state_vectors([1e10, 0, 0], [1e3, 0, 0], sun, 0.0)


# ========== UTILITIES ==========
class TestUtilities:
    """Tests for copying, comparison and export."""

    def test_copy_equal(self, ellipse):
        assert ellipse.copy_with() == ellipse

    def test_copy_with_changes(self, ellipse):
        changed = ellipse.copy_with(eccentricity=0.31, epoch=50.0)
        assert changed.eccentricity == 0.31
        assert changed.epoch == 50.0
        assert changed != ellipse
        assert changed.semimajor_axis == ellipse.semimajor_axis

    def test_copy_with_unknown_parameter(self, ellipse):
        with pytest.raises(TypeError):
            ellipse.copy_with(period=1.0)

    def test_not_hashable(self, ellipse):
        with pytest.raises(TypeError):
            hash(ellipse)

    def test_to_numpy(self, ellipse, hyperbola):
        arr = Orbit.Batch.to_numpy([ellipse, hyperbola])
        assert arr.shape == (2, 6)
        assert arr[1, 1] == 1.5

    def test_to_dataframe(self, ellipse, hyperbola):
        df = Orbit.Batch.to_dataframe([ellipse, hyperbola], index=["a", "b"])
        assert list(df.columns) == ['body', 'epoch', 'i', 'e', 'a', 'lan', 'w', 'M0']
        assert df["body"].tolist() == ["Sun", "Kerbin"]
        assert df.loc["a", "i"] == pytest.approx(10.0)
        assert df.loc["b", "a"] == -1e7

    def test_to_dataframe_empty(self):
        df = Orbit.Batch.to_dataframe([])
        assert len(df) == 0
        assert 'M0' in df.columns

    def test_to_dataframe_index_mismatch(self, ellipse):
        with pytest.raises(ValueError):
            Orbit.Batch.to_dataframe([ellipse], index=[0, 1])

    def test_str(self, ellipse):
        assert "Orbit around Sun" in str(ellipse)
