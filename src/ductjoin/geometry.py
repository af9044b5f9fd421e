"""
Geometry Utilities for Connector Realignment

Vector math, unbounded lines and the point-to-line projection used to snap a
picked point onto a duct centerline.

================================================================================
CONNECTOR FRAME CONVENTION
================================================================================

Every connector carries a local coordinate frame stored as a 4x4 homogeneous
transformation matrix in world coordinates:

- Origin (translation column): the connector location
- Z-axis (third column): the duct centerline direction at the connector
- X-axis: rotational reference, perpendicular to Z
- Y-axis: completes the right-hand system

A duct's centerline through a connector is therefore the unbounded line
through the frame origin along its Z-axis.

================================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TypeAlias

import numpy as np

from .errors import InvalidGeometry

Point3: TypeAlias = tuple[float, float, float]
Vector3: TypeAlias = tuple[float, float, float]

# Absolute tolerance at unit scale; scaled up with coordinate magnitude
DEFAULT_TOLERANCE = 1e-9


# =============================================================================
# VECTOR UTILITIES
# =============================================================================


def as_point(value) -> Point3:
    """Convert any 3-sequence (list, tuple, ndarray) to a float tuple."""
    if len(value) != 3:
        raise InvalidGeometry(f"Expected 3 coordinates, got {len(value)}: {value!r}")
    point = (float(value[0]), float(value[1]), float(value[2]))
    if not all(math.isfinite(c) for c in point):
        raise InvalidGeometry(f"Non-finite coordinates: {point}")
    return point


def add(a: Point3, v: Vector3) -> Point3:
    return (a[0] + v[0], a[1] + v[1], a[2] + v[2])


def subtract(a: Point3, b: Point3) -> Vector3:
    """Vector from b to a."""
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def dot(a: Vector3, b: Vector3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def length(v: Vector3) -> float:
    return math.sqrt(dot(v, v))


def distance(a: Point3, b: Point3) -> float:
    """Euclidean distance between two points."""
    return length(subtract(a, b))


def normalize(v: Vector3) -> Vector3:
    """
    Return the unit vector along v.

    Raises:
        InvalidGeometry: If v has zero length or non-finite components
    """
    n = length(v)
    if not math.isfinite(n) or n < 1e-12:
        raise InvalidGeometry(f"Cannot normalize degenerate direction {v}")
    return (v[0] / n, v[1] / n, v[2] / n)


def scaled_tolerance(tolerance: float, *points: Point3) -> float:
    """
    Scale an absolute tolerance to the magnitude of the coordinates involved.

    Floating point error grows with coordinate size, so a fixed 1e-9 is only
    meaningful near the origin.
    """
    scale = max((abs(c) for p in points for c in p), default=0.0)
    return tolerance * max(1.0, scale)


def is_almost_equal(a: Point3, b: Point3, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """True if a and b coincide within a magnitude-scaled tolerance."""
    return distance(a, b) <= scaled_tolerance(tolerance, a, b)


# =============================================================================
# TRANSFORMATION MATRIX UTILITIES
# =============================================================================


def identity_matrix() -> np.ndarray:
    """Return 4x4 identity matrix."""
    return np.eye(4)


def translation_matrix(x: float, y: float, z: float) -> np.ndarray:
    """Create 4x4 translation matrix."""
    T = np.eye(4)
    T[0, 3] = x
    T[1, 3] = y
    T[2, 3] = z
    return T


def get_position(T: np.ndarray) -> Point3:
    """Extract position from transformation matrix."""
    return (float(T[0, 3]), float(T[1, 3]), float(T[2, 3]))


def get_x_axis(T: np.ndarray) -> Vector3:
    """Extract X-axis direction from transformation matrix."""
    return (float(T[0, 0]), float(T[1, 0]), float(T[2, 0]))


def get_z_axis(T: np.ndarray) -> Vector3:
    """Extract Z-axis direction from transformation matrix."""
    return (float(T[0, 2]), float(T[1, 2]), float(T[2, 2]))


def frame_matrix(
    origin: Point3,
    z_direction: Vector3,
    x_direction: Vector3 | None = None,
) -> np.ndarray:
    """
    Build a connector frame from an origin and a Z direction.

    If no X direction is given, world +Z is used as the "up" reference
    (world +X when Z is vertical). The given X direction is
    re-orthogonalized against Z.

    Raises:
        InvalidGeometry: If z_direction is degenerate or x_direction is
            parallel to it
    """
    z = np.array(normalize(z_direction))

    if x_direction is None:
        up = np.array([0.0, 0.0, 1.0])
        if abs(float(np.dot(up, z))) > 0.999:
            up = np.array([1.0, 0.0, 0.0])
        x = up - np.dot(up, z) * z
    else:
        x = np.array(x_direction, dtype=float)
        x = x - np.dot(x, z) * z

    x_norm = np.linalg.norm(x)
    if x_norm < 1e-12:
        raise InvalidGeometry(f"X direction {x_direction} is parallel to Z direction {z_direction}")
    x = x / x_norm
    y = np.cross(z, x)

    T = np.eye(4)
    T[0:3, 0] = x
    T[0:3, 1] = y
    T[0:3, 2] = z
    T[0:3, 3] = origin
    return T


def translate_matrix(T: np.ndarray, v: Vector3) -> np.ndarray:
    """Return a copy of T moved rigidly by vector v (rotation unchanged)."""
    return translation_matrix(*v) @ T


# =============================================================================
# LINES
# =============================================================================


@dataclass(frozen=True)
class Line:
    """
    An unbounded line through origin along a unit direction.

    Use Line.unbound() to construct from an arbitrary (non-unit) direction.
    """

    origin: Point3
    direction: Vector3

    @classmethod
    def unbound(cls, origin, direction) -> Line:
        """
        Create an unbounded line, normalizing the direction.

        Raises:
            InvalidGeometry: If the direction has zero length
        """
        return cls(as_point(origin), normalize(as_point(direction)))

    @classmethod
    def from_frame(cls, T: np.ndarray) -> Line:
        """The centerline of a connector frame: through its origin along its Z-axis."""
        return cls.unbound(get_position(T), get_z_axis(T))

    def point_at(self, parameter: float) -> Point3:
        return add(self.origin, (
            parameter * self.direction[0],
            parameter * self.direction[1],
            parameter * self.direction[2],
        ))


def project_point_onto_line(point: Point3, line: Line) -> Point3:
    """
    Return the closest point on an unbounded line to the given point.

    Args:
        point: Point to project
        line: Target line (direction need not be pre-normalized)

    Returns:
        Foot of the perpendicular from point onto the line

    Raises:
        InvalidGeometry: If the line direction is degenerate
    """
    direction = normalize(line.direction)
    t = dot(subtract(point, line.origin), direction)
    return add(line.origin, (t * direction[0], t * direction[1], t * direction[2]))


def distance_to_line(point: Point3, line: Line) -> float:
    """Perpendicular distance from a point to an unbounded line."""
    return distance(point, project_point_onto_line(point, line))
