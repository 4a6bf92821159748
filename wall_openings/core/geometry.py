"""Vector helpers for segments and walls.

Coordinate System:
    - x, y = horizontal plane
    - z = Up (positive upward)

All points and vectors are numpy arrays of shape (3,). Lengths are in the
project's units (meters unless configured otherwise).
"""

import numpy as np


def normalize(v: np.ndarray) -> np.ndarray:
    """Normalize a vector to unit length.

    Args:
        v: Input vector.

    Returns:
        Unit vector in the same direction.

    Raises:
        ValueError: If the vector has zero length.
    """
    v = np.asarray(v, dtype=float)
    length = np.linalg.norm(v)
    if length < 1e-10:
        raise ValueError("Cannot normalize zero-length vector")
    return v / length


def dot(a: np.ndarray, b: np.ndarray) -> float:
    """Compute dot product of two vectors."""
    return float(np.dot(a, b))


def cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Compute cross product of two 3D vectors."""
    return np.cross(a, b)


def distance_between(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(np.asarray(b, dtype=float) - np.asarray(a, dtype=float)))


def point_along(origin: np.ndarray, direction: np.ndarray, distance: float) -> np.ndarray:
    """Point reached by travelling ``distance`` from ``origin`` along ``direction``.

    Examples:
        >>> point_along(np.array([0, 0, 0]), np.array([1, 0, 0]), 4.0)
        array([4., 0., 0.])
    """
    return np.asarray(origin, dtype=float) + np.asarray(direction, dtype=float) * distance


def horizontal_normal(axis: np.ndarray) -> np.ndarray:
    """Rotate a horizontal direction 90 degrees counter-clockwise about z.

    Args:
        axis: Horizontal unit vector (z component ignored).

    Returns:
        Horizontal unit vector perpendicular to ``axis``.
    """
    return normalize(np.array([-axis[1], axis[0], 0.0]))
