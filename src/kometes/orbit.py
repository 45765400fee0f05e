'''Two-body conic orbits for procedurally generated asteroids
Orbit class definition'''

import numpy as np
from typing import TYPE_CHECKING, Optional
from .config import config
from .errors import InvalidOperationError

if TYPE_CHECKING:
    from .bodies import CelestialBody


# ========== ROTATIONS ==========
def rotation_x(angle):
    """Rotation matrix about the x-axis by ``angle`` [rad]."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [1, 0,  0],
        [0, c, -s],
        [0, s,  c]
    ])


def rotation_z(angle):
    """Rotation matrix about the z-axis by ``angle`` [rad]."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [c, -s, 0],
        [s,  c, 0],
        [0,  0, 1]
    ])


# ========== KEPLER'S EQUATION ==========
def solve_kepler(M: float, e: float, tol: Optional[float] = None,
                 max_iter: Optional[int] = None) -> float:
    """
    Solve Kepler's equation M = E - e*sin(E) for the eccentric anomaly E
    using Newton-Raphson iteration. ``M`` is wrapped to [0, 2π).
    """
    tol = config.KEPLER_TOL if tol is None else tol
    max_iter = config.KEPLER_MAX_ITER if max_iter is None else max_iter
    M = np.mod(M, 2 * np.pi)
    E = M if e < 0.8 else np.pi
    for _ in range(max_iter):
        dE = (E - e * np.sin(E) - M) / (1.0 - e * np.cos(E))
        E -= dE
        if abs(dE) < tol:
            break
    return E


def solve_kepler_hyperbolic(M: float, e: float, tol: Optional[float] = None,
                            max_iter: Optional[int] = None) -> float:
    """
    Solve the hyperbolic Kepler equation M = e*sinh(H) - H for the
    hyperbolic anomaly H using Newton-Raphson iteration.
    """
    tol = config.KEPLER_TOL if tol is None else tol
    max_iter = config.KEPLER_MAX_ITER if max_iter is None else max_iter
    # Logarithmic starting guess converges for all |M|
    H = np.sign(M) * np.log(2 * abs(M) / e + 1.8)
    for _ in range(max_iter):
        dH = (e * np.sinh(H) - H - M) / (e * np.cosh(H) - 1.0)
        H -= dH
        if abs(dH) < tol * max(1.0, abs(H)):
            break
    return H


class Orbit:
    """
    An immutable Keplerian orbit around a celestial body.

    Angles are stored in radians. The semimajor axis is negative for
    hyperbolic orbits. The mean anomaly is measured at ``epoch`` (UT, s).

    Parameters
    ----------
    inclination : float
        Inclination [rad]
    eccentricity : float
        Eccentricity, nonnegative and not exactly 1
    semimajor_axis : float
        Semimajor axis [m]; positive for e < 1, negative for e > 1
    lan : float
        Longitude of ascending node [rad]
    argument_of_periapsis : float
        Argument of periapsis [rad]
    mean_anomaly_at_epoch : float
        Mean anomaly at ``epoch`` [rad]
    epoch : float
        Reference time of the mean anomaly [s]
    body : CelestialBody
        The body at the focus of the orbit
    validate : bool, optional
        Whether to check the elements for physical consistency (default True)
    """
    # ========== CONSTRUCTION ==========
    def __init__(self, inclination, eccentricity, semimajor_axis, lan,
                 argument_of_periapsis, mean_anomaly_at_epoch, epoch,
                 body: "CelestialBody", validate=True):
        self._body = body
        self._epoch = float(epoch)
        self.elements = np.array([inclination, eccentricity, semimajor_axis,
                                  lan, argument_of_periapsis,
                                  mean_anomaly_at_epoch], dtype=float)
        # Ensure immutability of elements array
        self.elements.flags.writeable = False
        if validate:
            self._validate()

    @classmethod
    def from_state_vectors(cls, position, velocity, body: "CelestialBody", ut: float):
        """
        Create the orbit passing through a state at a given time.

        Uses algorithm from Flores & Fantino, Advances in Space Research, v.75,pp.4910

        Parameters
        ----------
        position : array-like
            Position relative to ``body`` [m]
        velocity : array-like
            Velocity relative to ``body`` [m/s]
        body : CelestialBody
            The new reference body
        ut : float
            Time at which the state is given; becomes the orbit's epoch

        Raises
        ------
        InvalidOperationError
            If the state is degenerate (zero position or angular momentum)
        """
        rvec = np.asarray(position, dtype=float)
        vvec = np.asarray(velocity, dtype=float)
        mu = body.mu
        r = np.linalg.norm(rvec)
        # calculate angular momentum vector h = r × v
        hvec = np.cross(rvec, vvec)
        h = np.linalg.norm(hvec)
        if r == 0.0 or h == 0.0:
            raise InvalidOperationError(
                f"Cannot build an orbit around {body.name} from a radial or "
                f"zero state (r={rvec}, v={vvec})")
        # calculate inclination
        i = np.arctan2(np.sqrt(hvec[0]**2 + hvec[1]**2), hvec[2])
        # find longitude of ascending node
        lan = np.arctan2(hvec[0], -hvec[1])
        # define line of nodes vector
        nhat = np.array([np.cos(lan), np.sin(lan), 0])
        # define an intermediate vector b in the orbit plane
        bhat = np.cross(hvec / h, nhat)
        # find semimajor axis from energy equation
        a = ((2 / r) - (np.dot(vvec, vvec) / mu))**(-1)
        # find eccentricity vector
        evec = np.cross(vvec, hvec) / mu - rvec / r
        # find argument of periapsis and true anomaly
        w = np.arctan2(np.dot(evec, bhat), np.dot(evec, nhat))
        nu = np.arctan2(np.dot(rvec, bhat), np.dot(rvec, nhat)) - w
        e = np.linalg.norm(evec)
        return cls(i, e, a, lan, w, cls._true_to_mean(nu, e), ut, body,
                   validate=False)

    # ========== VALIDATION ==========
    def _validate(self):
        """Check that the elements describe a physical conic section."""
        if not np.all(np.isfinite(self.elements)) or not np.isfinite(self._epoch):
            raise InvalidOperationError(
                f"Orbital elements contain NaN or Inf: {self.elements.tolist()}")
        i, e, a, lan, w, M0 = self.elements
        if e < 0:
            raise InvalidOperationError(f"Eccentricity cannot be negative, got e={e}")
        if e == 1:
            raise InvalidOperationError("Parabolic orbits (e=1) are not supported")
        if e < 1 and a <= 0:
            raise InvalidOperationError(f"Elliptic orbit (e={e}) "
                                        f"requires positive semi-major axis, got a={a}")
        if e > 1 and a >= 0:
            raise InvalidOperationError(f"Hyperbolic orbit (e={e}) "
                                        f"requires negative semi-major axis, got a={a}")
        if self._body is None or self._body.mu <= 0:
            raise InvalidOperationError("Orbit requires a body with positive mu")

    # ========== PROPERTY ACCESS ==========
    @property
    def body(self) -> "CelestialBody":
        """The body at the focus of the orbit"""
        return self._body

    @property
    def mu(self):
        """Gravitational parameter of the reference body [m³/s²]"""
        return self._body.mu

    @property
    def epoch(self):
        """Reference time of the mean anomaly [s]"""
        return self._epoch

    @property
    def inclination(self):
        return self.elements[0]

    @property
    def eccentricity(self):
        return self.elements[1]

    @property
    def semimajor_axis(self):
        return self.elements[2]

    @property
    def lan(self):
        """Longitude of ascending node [rad]"""
        return self.elements[3]

    @property
    def argument_of_periapsis(self):
        return self.elements[4]

    @property
    def mean_anomaly_at_epoch(self):
        return self.elements[5]

    @property
    def is_bound(self):
        return self.eccentricity < 1

    # ========== ORBITAL PROPERTIES ==========
    @property
    def periapsis(self):
        """Periapsis distance from the body center [m]"""
        return self.semimajor_axis * (1 - self.eccentricity)

    @property
    def apoapsis(self):
        """Apoapsis distance [m]; infinite for unbound orbits"""
        if not self.is_bound:
            return np.inf
        return self.semimajor_axis * (1 + self.eccentricity)

    @property
    def mean_motion(self):
        """Mean motion (n = √(μ/|a|³)) [rad/s]"""
        return np.sqrt(self.mu / abs(self.semimajor_axis)**3)

    @property
    def period(self):
        """Orbital period [s]; infinite for unbound orbits"""
        if not self.is_bound:
            return np.inf
        return 2 * np.pi / self.mean_motion

    @property
    def semi_minor_axis(self):
        a, e = self.semimajor_axis, self.eccentricity
        return abs(a) * np.sqrt(abs(1 - e**2))

    @property
    def specific_energy(self):
        """Specific orbital energy (energy per unit mass)"""
        return -self.mu / (2 * self.semimajor_axis)

    @property
    def time_of_periapsis(self):
        """
        Time of the periapsis passage closest to the epoch.

        Unique for hyperbolic orbits.
        """
        M0 = self.mean_anomaly_at_epoch
        if self.is_bound:
            # Wrap to (-π, π] so the closest passage is chosen
            M0 = np.pi - np.mod(np.pi - M0, 2 * np.pi)
        return self._epoch - M0 / self.mean_motion

    def speed_at_distance(self, r):
        """Orbital speed at distance ``r`` from the body center (vis-viva)"""
        return np.sqrt(self.mu * (2.0 / r - 1.0 / self.semimajor_axis))

    # ========== STATE AT TIME ==========
    def mean_anomaly_at(self, ut):
        """Mean anomaly at time ``ut``; unwrapped [rad]"""
        return self.mean_anomaly_at_epoch + self.mean_motion * (ut - self._epoch)

    def true_anomaly_at(self, ut):
        """True anomaly at time ``ut`` [rad]"""
        M = self.mean_anomaly_at(ut)
        e = self.eccentricity
        if self.is_bound:
            E = solve_kepler(M, e)
            return 2 * np.arctan2(np.sqrt(1 + e) * np.sin(E / 2),
                                  np.sqrt(1 - e) * np.cos(E / 2))
        H = solve_kepler_hyperbolic(M, e)
        return 2 * np.arctan(np.sqrt((e + 1) / (e - 1)) * np.tanh(H / 2))

    def state_at(self, ut):
        """
        Position and velocity relative to the body at time ``ut``.

        Returns
        -------
        tuple of np.ndarray
            (position [m], velocity [m/s])
        """
        i, e, a, lan, w, _ = self.elements
        nu = self.true_anomaly_at(ut)
        # find semi-latus rectum (positive for both ellipses and hyperbolae)
        p = a * (1 - e**2)
        # find position in perifocal frame
        r_mag = p / (1 + e * np.cos(nu))
        rvec = np.array([r_mag * np.cos(nu), r_mag * np.sin(nu), 0])
        # find velocity in perifocal frame
        vvec = np.array([-np.sqrt(self.mu / p) * np.sin(nu),
                         np.sqrt(self.mu / p) * (e + np.cos(nu)), 0])
        # rotate from perifocal frame to inertial frame using DCM
        DCM = rotation_z(lan) @ rotation_x(i) @ rotation_z(w)
        return DCM @ rvec, DCM @ vvec

    def position_at(self, ut):
        """Position relative to the body at time ``ut`` [m]"""
        return self.state_at(ut)[0]

    def velocity_at(self, ut):
        """Velocity relative to the body at time ``ut`` [m/s]"""
        return self.state_at(ut)[1]

    def radius_at(self, ut):
        """Distance from the body center at time ``ut`` [m]"""
        i, e, a, lan, w, _ = self.elements
        nu = self.true_anomaly_at(ut)
        return a * (1 - e**2) / (1 + e * np.cos(nu))

    # ========== UTILITY METHODS ==========
    def copy_with(self, **changes):
        """
        Return a new orbit with some elements replaced.

        Accepts the constructor's parameter names, e.g.
        ``orbit.copy_with(semimajor_axis=2e9, epoch=0.0)``.
        """
        params = dict(
            inclination=self.inclination,
            eccentricity=self.eccentricity,
            semimajor_axis=self.semimajor_axis,
            lan=self.lan,
            argument_of_periapsis=self.argument_of_periapsis,
            mean_anomaly_at_epoch=self.mean_anomaly_at_epoch,
            epoch=self._epoch,
            body=self._body,
        )
        unknown = set(changes) - set(params)
        if unknown:
            raise TypeError(f"Unknown orbit parameters: {sorted(unknown)}")
        params.update(changes)
        return Orbit(**params)

    @staticmethod
    def _true_to_mean(nu, e):
        """Convert a true anomaly to a mean anomaly [rad]"""
        if e < 1:
            E = 2 * np.arctan2(np.sqrt(1 - e) * np.sin(nu / 2),
                               np.sqrt(1 + e) * np.cos(nu / 2))
            return E - e * np.sin(E)
        H = 2 * np.arctanh(np.sqrt((e - 1) / (e + 1)) * np.tan(nu / 2))
        return e * np.sinh(H) - H

    # ========== BATCH OPERATIONS ==========
    class Batch:
        """
        Batch operations on collections of orbits.
        """
        @staticmethod
        def to_numpy(orbits):
            """
            Convert list of orbits to a NumPy array of shape (n_orbits, 6).

            Columns are [i, e, a, lan, w, M0]; epochs and bodies are dropped.
            """
            return np.array([o.elements for o in orbits])

        @staticmethod
        def to_dataframe(orbits, index=None):
            """
            Convert list of orbits to pandas DataFrame.

            Parameters
            ----------
            orbits : list of Orbit
            index : array-like, optional
                Index for the DataFrame. If None, uses integer index.

            Returns
            -------
            pd.DataFrame
                Columns ['body', 'epoch', 'i', 'e', 'a', 'lan', 'w', 'M0'],
                angles in degrees except the mean anomaly (radians).
            """
            # pandas isn't needed unless this function is used
            try:
                import pandas as pd
            except ImportError:
                raise ImportError("pandas required for to_dataframe()")
            columns = ['body', 'epoch', 'i', 'e', 'a', 'lan', 'w', 'M0']
            if not orbits:
                return pd.DataFrame(columns=columns)
            if index is not None and len(index) != len(orbits):
                raise ValueError(
                    f"Index length ({len(index)}) must match "
                    f"number of orbits ({len(orbits)})"
                )
            rows = [(o.body.name, o.epoch,
                     np.degrees(o.inclination), o.eccentricity, o.semimajor_axis,
                     np.degrees(o.lan), np.degrees(o.argument_of_periapsis),
                     o.mean_anomaly_at_epoch) for o in orbits]
            return pd.DataFrame(rows, columns=columns, index=index)

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        return (f"Orbit({self.elements.tolist()}, epoch={self._epoch}, "
                f"body={self._body.name!r})")

    def __str__(self):
        i, e, a, lan, w, M0 = self.elements
        return (f"Orbit around {self._body.name}:\n"
                f"  a     = {a:16.1f} m\n"
                f"  e     = {e:16.6f}\n"
                f"  i     = {np.degrees(i):16.4f}°\n"
                f"  LAN   = {np.degrees(lan):16.4f}°\n"
                f"  ω     = {np.degrees(w):16.4f}°\n"
                f"  M0    = {M0:16.6f} rad at UT {self._epoch:.1f}")

    def __eq__(self, other):
        #Check equality with tolerance
        if not isinstance(other, Orbit):
            return False
        return (self._body.name == other._body.name and
                np.isclose(self._epoch, other._epoch,
                           rtol=config.EQUALITY_RTOL, atol=config.EQUALITY_ATOL) and
                np.allclose(self.elements, other.elements,
                            rtol=config.EQUALITY_RTOL, atol=config.EQUALITY_ATOL))

    __hash__ = None
