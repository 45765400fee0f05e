"""
Reference frames in which asteroid populations may be defined.

A frame is a single rotation taking vectors in the population's local
frame to the default game frame. It can be given either as the angles of
an orbit (inclination, ascending node, argument of the reference
direction) or as a pair of vectors (plane normal and reference direction).
"""

import logging
import numpy as np
from typing import Dict, Iterable, Optional
from .config import config
from .errors import BodyLookupError, InvalidOperationError, ParseError
from .formulas import evaluate_formula
from .orbit import rotation_x, rotation_z

logger = logging.getLogger(__name__)


class ReferenceFrame:
    """
    A named rotation from a local frame to the default frame.

    Parameters
    ----------
    name : str
        Unique name of the frame
    matrix : array-like, shape (3, 3)
        Orthonormal matrix whose columns are the local x, y and z axes
        expressed in the default frame
    """

    def __init__(self, name: str, matrix):
        self.name = name
        self.matrix = np.array(matrix, dtype=float)
        if self.matrix.shape != (3, 3):
            raise InvalidOperationError(
                f"Frame '{name}' needs a 3x3 rotation matrix, got shape {self.matrix.shape}")
        self.matrix.flags.writeable = False

    @classmethod
    def from_orbit_angles(cls, name: str, inclination: float, lan: float,
                          arg_reference: float):
        """
        Frame whose xy-plane is an orbital plane.

        Parameters
        ----------
        inclination : float
            Inclination of the plane [deg]
        lan : float
            Longitude of the ascending node [deg]
        arg_reference : float
            Angle from the ascending node to the local x axis [deg]
        """
        matrix = (rotation_z(np.radians(lan)) @ rotation_x(np.radians(inclination))
                  @ rotation_z(np.radians(arg_reference)))
        return cls(name, matrix)

    @classmethod
    def from_vectors(cls, name: str, normal, reference):
        """
        Frame whose local z axis is ``normal`` and whose local x axis is the
        component of ``reference`` perpendicular to ``normal``.

        Raises
        ------
        InvalidOperationError
            If ``normal`` is zero or ``reference`` is parallel to it
        """
        normal = np.asarray(normal, dtype=float)
        reference = np.asarray(reference, dtype=float)
        norm = np.linalg.norm(normal)
        if norm < config.VECTOR_EPSILON:
            raise InvalidOperationError(f"Frame '{name}' has a zero normal vector")
        z_hat = normal / norm
        # Only the component in the plane is useful
        in_plane = reference - np.dot(reference, z_hat) * z_hat
        in_plane_norm = np.linalg.norm(in_plane)
        if in_plane_norm < config.VECTOR_EPSILON:
            raise InvalidOperationError(
                f"Frame '{name}' has a reference vector parallel to its normal vector")
        x_hat = in_plane / in_plane_norm
        y_hat = np.cross(z_hat, x_hat)
        return cls(name, np.column_stack([x_hat, y_hat, z_hat]))

    @classmethod
    def from_config(cls, record, bodies):
        """
        Build a frame from a ``REFPLANE`` or ``REFVECTORS`` config record.

        ``REFPLANE`` records give ``longAscNode``, ``inclination`` and
        ``argReference`` as numbers or formulas; ``REFVECTORS`` records give
        ``normVector`` and ``refVector`` as 3-sequences or ``"x, y, z"`` strings.
        """
        kind = str(record.get("type", "")).upper()
        name = record.get("name", "invalid")
        if kind == "REFPLANE":
            return cls.from_orbit_angles(
                name,
                evaluate_formula(record.get("inclination", 0.0), bodies),
                evaluate_formula(record.get("longAscNode", 0.0), bodies),
                evaluate_formula(record.get("argReference", 0.0), bodies))
        if kind == "REFVECTORS":
            return cls.from_vectors(name,
                                    _parse_vector(record.get("normVector", (0, 0, 0))),
                                    _parse_vector(record.get("refVector", (0, 0, 0))))
        raise ParseError(f"Unknown reference frame type '{record.get('type')}'")

    def to_default_frame(self, vector):
        """Express a local-frame vector in the default frame."""
        return self.matrix @ np.asarray(vector, dtype=float)

    def from_default_frame(self, vector):
        """Express a default-frame vector in the local frame."""
        return self.matrix.T @ np.asarray(vector, dtype=float)

    def __repr__(self):
        return f"ReferenceFrame({self.name!r})"

    def __str__(self):
        return self.name


def _parse_vector(value):
    if isinstance(value, str):
        parts = value.replace(",", " ").split()
    else:
        parts = list(value)
    try:
        vector = np.array([float(part) for part in parts])
    except (TypeError, ValueError) as e:
        raise ParseError(f"Cannot parse '{value}' as a vector") from e
    if vector.shape != (3,):
        raise ParseError(f"Vectors need exactly three components, got '{value}'")
    return vector


class FrameRegistry:
    """
    Named reference frames, with an optional default for populations that
    do not name one.

    Parameters
    ----------
    frames : iterable of ReferenceFrame
    default : str, optional
        Name of the default frame. If no frame has this name, an error is
        logged and no default is used.
    """

    def __init__(self, frames: Iterable[ReferenceFrame] = (), default: Optional[str] = None):
        self._frames: Dict[str, ReferenceFrame] = {}
        for frame in frames:
            self._frames[frame.name] = frame
        self.default_name = default
        if default is not None and default not in self._frames:
            logger.error("No such reference plane '%s'; using the default frame", default)
            self.default_name = None

    def get(self, name: str) -> ReferenceFrame:
        """
        Raises
        ------
        BodyLookupError
            If no frame has that name
        """
        try:
            return self._frames[name]
        except KeyError:
            raise BodyLookupError(f"No such reference frame: '{name}'") from None

    @property
    def default(self) -> Optional[ReferenceFrame]:
        return self._frames[self.default_name] if self.default_name is not None else None

    def frame_for(self, name: Optional[str]) -> Optional[ReferenceFrame]:
        """The named frame, or the default frame (possibly None) if ``name`` is None."""
        if name is None:
            return self.default
        return self.get(name)

    def __contains__(self, name):
        return name in self._frames

    def __iter__(self):
        return iter(self._frames.values())

    def __len__(self):
        return len(self._frames)
