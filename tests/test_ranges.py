"""
Test suite for parameter ranges: construction, resolution against a body
registry, and drawing.
"""

import numpy as np
import pytest
from kometes import (ValueRange, SizeRange, PeriRange, PhaseRange, ApproachRange,
                     SizeType, PeriType, PhaseType, EpochType, ApproachType,
                     Distribution, RandomSource, SolarSystem, kerbol_system)
from kometes.errors import (BodyLookupError, InvalidOperationError,
                            InvalidParameterError, ParseError)
from kometes.ranges import wrapped_draw


@pytest.fixture(scope="module")
def bodies():
    return kerbol_system()


@pytest.fixture
def rng():
    return RandomSource(seed=99)


class TestConstruction:
    """Tests for building ranges."""

    def test_defaults(self):
        value_range = ValueRange("Uniform")
        assert value_range.dist is Distribution.UNIFORM
        assert value_range.raw == {"min": "0", "max": "1", "avg": "0", "stddev": "0"}
        assert not value_range.resolved

    def test_numeric_fields_before_resolution(self):
        value_range = ValueRange("Uniform", min=2, max="Ratio(Kerbin.rad, 3)")
        assert value_range.min == 2.0
        assert np.isnan(value_range.max)

    def test_unknown_distribution(self):
        with pytest.raises(ParseError):
            ValueRange("Triangular")

    def test_subtypes(self):
        assert SizeRange("Uniform").type is SizeType.SEMIMAJOR_AXIS
        assert SizeRange("Uniform", type="periapsis").type is SizeType.PERIAPSIS
        assert PeriRange("Uniform", type="Longitude").type is PeriType.LONGITUDE
        phase = PhaseRange("Uniform", type="MeanLongitude", epoch="now")
        assert phase.type is PhaseType.MEAN_LONGITUDE
        assert phase.epoch is EpochType.NOW
        assert ApproachRange("Uniform", type="ImpactParameter").type is \
            ApproachType.IMPACT_PARAMETER

    def test_unknown_subtype(self):
        with pytest.raises(ParseError):
            SizeRange("Uniform", type="Diameter")

    def test_repr(self):
        text = repr(SizeRange("LogUniform", min="1e9", max="2e9"))
        assert "SizeRange(LogUniform" in text
        assert "type=SemimajorAxis" in text


class TestFromConfig:
    """Tests for building ranges from configuration records."""

    def test_missing_keys_use_defaults(self):
        defaults = ValueRange(Distribution.RAYLEIGH, min=0.0, max=1.0, name="eccentricity")
        value_range = ValueRange.from_config({"avg": "0.2"}, defaults)
        assert value_range.dist is Distribution.RAYLEIGH
        assert value_range.raw["avg"] == "0.2"
        assert value_range.raw["max"] == "1.0"
        assert str(value_range) == "eccentricity"

    def test_none_gives_copy_of_defaults(self):
        defaults = PhaseRange("Uniform", epoch=EpochType.NOW, min=0, max=360, name="orbitPhase")
        value_range = PhaseRange.from_config(None, defaults)
        assert value_range is not defaults
        assert value_range.epoch is EpochType.NOW
        assert value_range.raw == defaults.raw

    def test_subtype_keys(self):
        defaults = SizeRange("LogUniform", name="orbitSize")
        value_range = SizeRange.from_config({"type": "apoapsis", "dist": "Gaussian"}, defaults)
        assert value_range.type is SizeType.APOAPSIS
        assert value_range.dist is Distribution.GAUSSIAN

    def test_bad_subtype_key(self):
        with pytest.raises(ParseError):
            PeriRange.from_config({"type": "Anomaly"}, PeriRange("Uniform"))


class TestResolution:
    """Tests for resolving formulas against a body registry."""

    def test_resolve(self, bodies):
        value_range = ValueRange("Uniform", min="Ratio(Kerbin.rad, 2)",
                                 max="Offset(Kerbin.rad, 600000)")
        value_range.resolve(bodies)
        assert value_range.resolved
        assert value_range.min == 1.2e6
        assert value_range.max == 1.2e6

    def test_resonance_only_in_sizes(self, bodies):
        size = SizeRange("Uniform", min="Resonance(Jool, 3:2)", max="Resonance(Jool, 1:1)")
        size.resolve(bodies)
        assert size.max == pytest.approx(bodies.lookup("Jool", "sma"))
        assert size.min < size.max

        with pytest.raises(ParseError, match="min"):
            ValueRange("Uniform", min="Resonance(Jool, 3:2)").resolve(bodies)

    def test_resonance_not_allowed_in_stddev(self, bodies):
        size = SizeRange("Gaussian", avg="1e9", stddev="Resonance(Jool, 3:2)")
        with pytest.raises(ParseError, match="stddev"):
            size.resolve(bodies)

    def test_failure_names_field_and_range(self, bodies):
        value_range = ValueRange("Uniform", max="Ratio(Vall.sma, 1)", name="orbitSize")
        with pytest.raises(BodyLookupError, match="max of orbitSize") as info:
            value_range.resolve(bodies)
        assert isinstance(info.value.__cause__, BodyLookupError)
        assert not value_range.resolved

    def test_failure_keeps_previous_values(self, bodies):
        value_range = ValueRange("Uniform", min="Ratio(Jool.sma, 0.5)", max="Ratio(Jool.sma, 1)")
        value_range.resolve(bodies)
        old = (value_range.min, value_range.max)

        sun_only = SolarSystem([bodies.get("Sun")])
        with pytest.raises(BodyLookupError):
            value_range.resolve(sun_only)
        assert (value_range.min, value_range.max) == old

    def test_invalidate(self, bodies, rng):
        value_range = ValueRange("Uniform", min="1", max="2")
        value_range.resolve(bodies)
        value_range.invalidate()
        with pytest.raises(InvalidOperationError):
            value_range.draw(rng)


class TestDraw:
    """Tests for drawing from resolved ranges."""

    def test_draw_requires_resolution(self, rng):
        with pytest.raises(InvalidOperationError, match="resolved"):
            ValueRange("Uniform").draw(rng)

    def test_draw_within_bounds(self, bodies, rng):
        value_range = ValueRange("LogUniform", min="Ratio(Dres.sma, 0.9)",
                                 max="Ratio(Dres.sma, 1.1)")
        value_range.resolve(bodies)
        dres = bodies.lookup("Dres", "sma")
        for _ in range(500):
            assert 0.9 * dres <= value_range.draw(rng) <= 1.1 * dres

    def test_wrapped_draw(self, bodies, rng):
        value_range = ValueRange("Beta", min=0, max=1, avg=2, stddev=0.1)
        value_range.resolve(bodies)
        with pytest.raises(InvalidOperationError, match="'eccentricity' for group 'belt'") \
                as info:
            wrapped_draw(value_range, rng, "eccentricity", "belt")
        assert isinstance(info.value.__cause__, InvalidParameterError)
