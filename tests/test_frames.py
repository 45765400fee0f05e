"""
Test suite for reference frames and the frame registry.
"""

import logging
import numpy as np
import pytest
from kometes import ReferenceFrame, FrameRegistry, kerbol_system
from kometes.errors import BodyLookupError, InvalidOperationError, ParseError


@pytest.fixture(scope="module")
def bodies():
    return kerbol_system()


class TestOrbitAngles:
    """Tests for frames built from orbit angles."""

    def test_identity(self):
        frame = ReferenceFrame.from_orbit_angles("ecliptic", 0.0, 0.0, 0.0)
        assert np.allclose(frame.matrix, np.eye(3))

    def test_polar_normal(self):
        """The local z axis is the normal of an orbit with those angles."""
        frame = ReferenceFrame.from_orbit_angles("polar", 90.0, 0.0, 0.0)
        assert np.allclose(frame.to_default_frame([0, 0, 1]), [0, -1, 0])

    @pytest.mark.parametrize("i, lan, arg", [(30.0, 45.0, 10.0), (120.0, 300.0, 200.0)])
    def test_orthonormal(self, i, lan, arg):
        matrix = ReferenceFrame.from_orbit_angles("tilted", i, lan, arg).matrix
        assert np.allclose(matrix.T @ matrix, np.eye(3))
        assert np.linalg.det(matrix) == pytest.approx(1.0)

    def test_inverse(self):
        frame = ReferenceFrame.from_orbit_angles("tilted", 25.0, 70.0, 5.0)
        v = np.array([1.0, -2.0, 3.0])
        assert np.allclose(frame.from_default_frame(frame.to_default_frame(v)), v)

    def test_matrix_read_only(self):
        frame = ReferenceFrame.from_orbit_angles("tilted", 25.0, 70.0, 5.0)
        with pytest.raises(ValueError):
            frame.matrix[0, 0] = 2.0


class TestVectors:
    """Tests for frames built from a normal and a reference vector."""

    def test_identity(self):
        frame = ReferenceFrame.from_vectors("ecliptic", [0, 0, 2], [3, 0, 5])
        assert np.allclose(frame.matrix, np.eye(3))

    def test_axes(self):
        frame = ReferenceFrame.from_vectors("sideways", [1, 0, 0], [0, 1, 0])
        assert np.allclose(frame.to_default_frame([0, 0, 1]), [1, 0, 0])
        assert np.allclose(frame.to_default_frame([1, 0, 0]), [0, 1, 0])
        assert np.allclose(frame.to_default_frame([0, 1, 0]), [0, 0, 1])

    def test_matches_orbit_angles(self):
        i, lan = np.radians(35.0), np.radians(120.0)
        normal = [np.sin(lan) * np.sin(i), -np.cos(lan) * np.sin(i), np.cos(i)]
        node = [np.cos(lan), np.sin(lan), 0.0]
        from_vectors = ReferenceFrame.from_vectors("a", normal, node)
        from_angles = ReferenceFrame.from_orbit_angles("b", 35.0, 120.0, 0.0)
        assert np.allclose(from_vectors.matrix, from_angles.matrix)

    def test_zero_normal(self):
        with pytest.raises(InvalidOperationError, match="zero normal"):
            ReferenceFrame.from_vectors("bad", [0, 0, 0], [1, 0, 0])

    def test_parallel_reference(self):
        with pytest.raises(InvalidOperationError, match="parallel"):
            ReferenceFrame.from_vectors("bad", [0, 0, 1], [0, 0, -3])

    def test_wrong_shape(self):
        with pytest.raises(InvalidOperationError):
            ReferenceFrame("bad", np.eye(2))


class TestFromConfig:
    """Tests for frames built from configuration records."""

    def test_refplane(self, bodies):
        frame = ReferenceFrame.from_config(
            {"type": "REFPLANE", "name": "jool", "inclination": "Ratio(Jool.inc, 1)",
             "longAscNode": "Ratio(Jool.lan, 1)", "argReference": 0}, bodies)
        expected = ReferenceFrame.from_orbit_angles("x", 1.304, 52.0, 0.0)
        assert frame.name == "jool"
        assert np.allclose(frame.matrix, expected.matrix)

    def test_refvectors_strings(self, bodies):
        frame = ReferenceFrame.from_config(
            {"type": "RefVectors", "name": "v", "normVector": "1, 0, 0",
             "refVector": "0 1 0"}, bodies)
        assert np.allclose(frame.to_default_frame([0, 0, 1]), [1, 0, 0])

    def test_refvectors_lists(self, bodies):
        frame = ReferenceFrame.from_config(
            {"type": "REFVECTORS", "name": "v", "normVector": [0, 0, 1],
             "refVector": [1, 0, 0]}, bodies)
        assert np.allclose(frame.matrix, np.eye(3))

    def test_bad_vector(self, bodies):
        with pytest.raises(ParseError):
            ReferenceFrame.from_config(
                {"type": "REFVECTORS", "normVector": "1, 0", "refVector": "0, 1, 0"}, bodies)

    def test_unknown_type(self, bodies):
        with pytest.raises(ParseError):
            ReferenceFrame.from_config({"type": "REFPOINT"}, bodies)


class TestFrameRegistry:
    """Tests for frame lookup."""

    @pytest.fixture
    def frames(self):
        return [ReferenceFrame.from_orbit_angles("a", 10.0, 0.0, 0.0),
                ReferenceFrame.from_orbit_angles("b", 20.0, 0.0, 0.0)]

    def test_lookup(self, frames):
        registry = FrameRegistry(frames, default="b")
        assert registry.get("a") is frames[0]
        assert registry.default is frames[1]
        assert registry.frame_for(None) is frames[1]
        assert registry.frame_for("a") is frames[0]
        assert "a" in registry
        assert len(registry) == 2

    def test_unknown_frame(self, frames):
        with pytest.raises(BodyLookupError):
            FrameRegistry(frames).get("c")

    def test_no_default(self, frames):
        assert FrameRegistry(frames).frame_for(None) is None

    def test_unknown_default(self, frames, caplog):
        with caplog.at_level(logging.ERROR, logger="kometes.frames"):
            registry = FrameRegistry(frames, default="c")
        assert registry.default is None
        assert "No such reference plane 'c'" in caplog.text
