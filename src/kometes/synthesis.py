"""
Orbit Synthesizers
==================

Functions that turn drawn numbers into orbits:

* :func:`stable_orbit` builds a closed (or accidentally open) orbit from six
  parameter ranges, optionally defined in a custom reference frame.
* :func:`intercept_orbit` builds a hyperbolic flyby of a target body and
  patches it outward through the spheres of influence of the target's
  ancestors until the orbit is valid at the current time.

All angles drawn from ranges are in degrees.
"""

import logging
import numpy as np
from typing import Optional
from .config import config
from .errors import InvalidOperationError
from .formulas import longitude_to_anomaly
from .frames import ReferenceFrame
from .orbit import Orbit
from .random_source import RandomSource
from .ranges import (SizeRange, ValueRange, PeriRange, PhaseRange, SizeType,
                     PeriType, PhaseType, EpochType, wrapped_draw)

logger = logging.getLogger(__name__)


# ========== STABLE ORBITS ==========
def stable_orbit(body, rng: RandomSource, now: float, orbit_size: SizeRange,
                 eccentricity: ValueRange, inclination: ValueRange,
                 periapsis: PeriRange, ascending_node: ValueRange,
                 orbit_phase: PhaseRange, frame: Optional[ReferenceFrame] = None,
                 label: str = "population") -> Orbit:
    """
    Draw an orbit around ``body`` from resolved parameter ranges.

    Parameters
    ----------
    body : CelestialBody
        Body at the focus of the orbit
    rng : RandomSource
    now : float
        Current time [s]; the epoch of ``Now`` phases and of frame transforms
    orbit_size, eccentricity, inclination, periapsis, ascending_node, orbit_phase
        Resolved ranges for each orbital property
    frame : ReferenceFrame, optional
        Frame in which the drawn elements are defined; None for the default frame
    label : str
        Name of the asteroid set, for error messages

    Raises
    ------
    InvalidOperationError
        If a draw fails or the drawn elements do not form a valid orbit
    """
    # Properties with only one reasonable parametrization
    e = wrapped_draw(eccentricity, rng, "eccentricity", label)
    if e < 0.0:
        raise InvalidOperationError(
            f"Asteroids in group '{label}' cannot have negative eccentricity (generated {e})")
    # Sign of inclination is redundant with 180-degree shift in longitude of ascending node
    i = wrapped_draw(inclination, rng, "inclination", label)
    lan = wrapped_draw(ascending_node, rng, "ascNode", label)

    # Position of periapsis
    peri = wrapped_draw(periapsis, rng, "periapsis", label)
    if periapsis.type is PeriType.LONGITUDE:
        aPe = peri - lan
    else:
        aPe = peri

    # Semimajor axis
    size = wrapped_draw(orbit_size, rng, "orbitSize", label)
    if orbit_size.type is SizeType.PERIAPSIS:
        if e == 1.0:
            raise InvalidOperationError(
                f"Asteroids in group '{label}' cannot have parabolic orbits "
                f"(eccentricity {e})")
        a = size / (1.0 - e)
    elif orbit_size.type is SizeType.APOAPSIS:
        if e > 1.0:
            raise InvalidOperationError(
                f"Asteroids in group '{label}' cannot constrain apoapsis on unbound "
                f"orbits (eccentricity {e})")
        a = size / (1.0 + e)
    else:
        a = size

    # Mean anomaly at epoch
    phase = wrapped_draw(orbit_phase, rng, "orbitPhase", label)
    if orbit_phase.type is PhaseType.MEAN_LONGITUDE:
        phase = longitude_to_anomaly(phase, i, aPe, lan)
    mEp = np.radians(phase)
    epoch = now if orbit_phase.epoch is EpochType.NOW else 0.0

    # Fix accidentally hyperbolic orbits
    if a * (1.0 - e) < 0.0:
        a = -a

    logger.debug("New orbit at %g m, e = %g, i = %g, aPe = %g, lAn = %g, mEp = %g at epoch %g",
                 a, e, i, aPe, lan, mEp, epoch)
    try:
        orbit = Orbit(np.radians(i), e, a, np.radians(lan), np.radians(aPe), mEp, epoch, body)
    except InvalidOperationError as err:
        raise InvalidOperationError(f"Could not create orbit for group '{label}'") from err

    if frame is not None:
        logger.debug("Transforming orbit from frame %s", frame)
        orbit = transform_orbit(orbit, frame, now)
    return orbit


def transform_orbit(orbit: Orbit, frame: ReferenceFrame, ut: float) -> Orbit:
    """
    Reinterpret an orbit defined in ``frame`` in the default frame, by
    rotating its state vectors at ``ut``.
    """
    position, velocity = orbit.state_at(ut)
    return Orbit.from_state_vectors(frame.to_default_frame(position),
                                    frame.to_default_frame(velocity), orbit.body, ut)


# ========== HYPERBOLIC ORBITS ==========
def impact_to_periapsis(b: float, mu: float, v_inf: float) -> float:
    """
    Periapsis of a hyperbola with impact parameter ``b`` and excess speed ``v_inf``.
    """
    if v_inf <= 0.0:
        raise InvalidOperationError(
            f"Hyperbolic orbits must have positive excess speed, gave {v_inf}")
    if b < 0.0:
        raise InvalidOperationError(f"Impact parameters cannot be negative, gave {b}")
    a = -mu / v_inf**2
    x = b / a
    return a * (1.0 - np.sqrt(x**2 + 1.0))


def hyperbolic_orbit(body, periapsis: float, v_inf: float, ut_peri: float,
                     rng: RandomSource) -> Orbit:
    """
    Randomly oriented hyperbolic orbit around ``body``.

    Parameters
    ----------
    body : CelestialBody
    periapsis : float
        Periapsis distance [m]
    v_inf : float
        Hyperbolic excess speed [m/s]
    ut_peri : float
        Time of periapsis passage [s]
    rng : RandomSource

    Raises
    ------
    InvalidOperationError
        If ``v_inf`` is not positive or ``periapsis`` is negative
    """
    if v_inf <= 0.0:
        raise InvalidOperationError(
            f"Hyperbolic orbits must have positive excess speed, gave {v_inf}")
    if periapsis < 0.0:
        raise InvalidOperationError(f"Orbits cannot have a negative periapsis, gave {periapsis}")

    a = -body.mu / v_inf**2
    e = 1.0 - periapsis / a
    i = rng.isotropic()
    lan = rng.angle()
    aPe = rng.angle()

    logger.debug("New hyperbolic orbit around %s at %g m, e = %g, i = %g, aPe = %g, lAn = %g",
                 body.name, a, e, i, aPe, lan)
    return Orbit(np.radians(i), e, a, np.radians(lan), np.radians(aPe), 0.0, ut_peri, body)


def needs_soi_transition(orbit: Orbit, ut: float) -> bool:
    """
    Whether ``orbit`` is outside its body's sphere of influence at ``ut``.

    An elliptical orbit reaching beyond the sphere is also considered
    outside if ``ut`` is more than half a period from its epoch, since the
    orbit would have left the sphere by then.
    """
    soi = orbit.body.soi
    if not np.isfinite(soi):
        return False
    if not orbit.is_bound:
        return orbit.radius_at(ut) > soi
    return (orbit.apoapsis > soi
            and (abs(ut - orbit.epoch) > 0.5 * orbit.period
                 or orbit.radius_at(ut) > soi))


def soi_crossing(orbit: Orbit, ut: float) -> float:
    """
    Time at which ``orbit`` crosses its body's sphere of influence.

    Finds the entry if the periapsis passage is after ``ut`` and the exit
    otherwise, to within ``config.SOI_PRECISION`` seconds.

    Raises
    ------
    InvalidOperationError
        If the body has no finite sphere of influence or the orbit never
        leaves it
    """
    soi = orbit.body.soi
    if not np.isfinite(soi):
        raise InvalidOperationError(f"Body {orbit.body.name} does not have a sphere of influence")
    if orbit.is_bound and orbit.apoapsis <= soi:
        raise InvalidOperationError(f"Orbit around {orbit.body.name} does not leave its SOI")

    inner = orbit.time_of_periapsis
    outer = inner
    half_period = np.pi / orbit.mean_motion
    step = -half_period if inner > ut else half_period
    while orbit.radius_at(outer) < soi:
        outer += step

    # Pinpoint SOI entry/exit
    while abs(outer - inner) > config.SOI_PRECISION:
        mid = 0.5 * (inner + outer)
        if orbit.radius_at(mid) < soi:
            inner = mid
        else:
            outer = mid
    return 0.5 * (inner + outer)


def patch_to_parent(orbit: Orbit, ut: float) -> Orbit:
    """
    Continue ``orbit`` around the parent of its reference body, from the
    point where it crosses the reference body's sphere of influence.

    Raises
    ------
    InvalidOperationError
        If the orbit is already in the right sphere of influence, or the
        reference body has no parent
    """
    if not needs_soi_transition(orbit, ut):
        raise InvalidOperationError(
            f"Orbit is in the correct SOI ({orbit.body.name}); no patching needed")
    old_parent = orbit.body
    if old_parent.orbit is None:
        raise InvalidOperationError(
            f"Cannot patch an orbit around {old_parent.name}, which has no parent")
    new_parent = old_parent.orbit.body

    ut_soi = soi_crossing(orbit, ut)
    logger.debug("Patching SOI transition from %s to %s at UT %.1f",
                 old_parent.name, new_parent.name, ut_soi)
    # Need position/velocity relative to new_parent, not old_parent
    x_old, v_old = orbit.state_at(ut_soi)
    x_parent, v_parent = old_parent.orbit.state_at(ut_soi)
    return Orbit.from_state_vectors(x_old + x_parent, v_old + v_parent, new_parent, ut_soi)


def intercept_orbit(body, periapsis: float, v_inf: float, ut_peri: float, now: float,
                    rng: RandomSource) -> Orbit:
    """
    Hyperbolic flyby of ``body``, expressed around whichever ancestor's
    sphere of influence contains it at ``now``.

    The root body has an infinite sphere of influence, so the loop always
    terminates there. An orbit lying entirely outside the target's sphere
    is patched at its periapsis passage.
    """
    orbit = hyperbolic_orbit(body, periapsis, v_inf, ut_peri, rng)
    while needs_soi_transition(orbit, now):
        orbit = patch_to_parent(orbit, now)
    return orbit
