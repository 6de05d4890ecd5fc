"""
Coordinate Models for the Unit-Sphere Mesh.

This module implements the conversions between geographic coordinates
(latitude/longitude in degrees) and points on the unit sphere, plus the
small set of vector operations the mesh needs on those points.

Scientific Context
------------------
Domain: Spherical geometry
Model: Unit sphere (radius 1), metric outputs scaled by a spherical radius

Why a Sphere and Not the WGS84 Ellipsoid
----------------------------------------
1. The mesh is a partition of the sphere built by recursive bisection of
   great-circle arcs. Its cells are spherical triangles; the addresses are
   defined by that construction, not by any metric model of Earth.

2. Latitude here is treated as geocentric-on-sphere. The difference from
   geodetic latitude (up to ~0.19°) is irrelevant for addressing because
   every conversion in the system uses this same model.

3. Exact spherical predicates (cross/dot products) are valid for
   triangles of any size. A planar lat/lon approximation is not, and
   level-1 cells span ~8,000 km.

Conventions
-----------
- Latitude in [-90, 90] degrees, positive north.
- Longitude in [-180, 180] degrees, positive east.
- X-axis through (0°, 0°), Y-axis through (0°, 90°E), Z-axis through the
  North Pole.
"""

from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import MeshConstants
from common.errors import CellValidationError


def validate_lat_lon(lat_deg: float, lon_deg: float) -> None:
    """Reject coordinates outside the geographic domain.

    Parameters
    ----------
    lat_deg : float
        Latitude in degrees.
    lon_deg : float
        Longitude in degrees.

    Raises
    ------
    CellValidationError
        If either value is NaN or outside its range. Values are never
        clamped.
    """
    if not np.isfinite(lat_deg) or not -90.0 <= lat_deg <= 90.0:
        raise CellValidationError(f"Invalid latitude: {lat_deg}. Must be -90 to +90.")
    if not np.isfinite(lon_deg) or not -180.0 <= lon_deg <= 180.0:
        raise CellValidationError(f"Invalid longitude: {lon_deg}. Must be -180 to +180.")


def normalize(vector: NDArray[np.float64]) -> NDArray[np.float64]:
    """Project a non-zero vector onto the unit sphere.

    Parameters
    ----------
    vector : ndarray
        Vector of shape (3,) or (N, 3).

    Returns
    -------
    ndarray
        Vector(s) of the same shape with unit Euclidean norm.
    """
    vector = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(vector, axis=-1, keepdims=True)
    return vector / norm


def spherical_to_cartesian(lat_deg: float, lon_deg: float) -> NDArray[np.float64]:
    """Convert latitude/longitude to a point on the unit sphere.

    Parameters
    ----------
    lat_deg : float
        Latitude in degrees (-90 to +90).
    lon_deg : float
        Longitude in degrees (-180 to +180).

    Returns
    -------
    ndarray
        Unit vector (x, y, z).

    Notes
    -----
    x = cos φ cos λ, y = cos φ sin λ, z = sin φ.
    Inputs are not range-checked here; callers validate with
    :func:`validate_lat_lon` before converting user data.

    Examples
    --------
    >>> spherical_to_cartesian(90.0, 0.0).round(12)
    array([0., 0., 1.])
    """
    lat_rad = np.radians(lat_deg)
    lon_rad = np.radians(lon_deg)
    cos_lat = np.cos(lat_rad)
    return np.array([
        cos_lat * np.cos(lon_rad),
        cos_lat * np.sin(lon_rad),
        np.sin(lat_rad),
    ], dtype=np.float64)


def cartesian_to_spherical(vector: NDArray[np.float64]) -> Tuple[float, float]:
    """Convert a unit-sphere point to latitude/longitude.

    Parameters
    ----------
    vector : ndarray
        Unit vector (x, y, z).

    Returns
    -------
    Tuple[float, float]
        (lat_deg, lon_deg). Latitude is asin(z), longitude is atan2(y, x).

    Notes
    -----
    z is clipped to [-1, 1] so that rounding just outside the sphere
    cannot produce NaN at the poles.
    """
    x, y, z = (float(c) for c in vector)
    lat = np.degrees(np.arcsin(np.clip(z, -1.0, 1.0)))
    lon = np.degrees(np.arctan2(y, x))
    return float(lat), float(lon)


def cartesian_to_spherical_batch(
    vectors: NDArray[np.float64]
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Vectorized :func:`cartesian_to_spherical` for an (N, 3) array.

    Returns
    -------
    Tuple[ndarray, ndarray]
        (lat_deg, lon_deg) arrays of shape (N,).
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    lat = np.degrees(np.arcsin(np.clip(vectors[:, 2], -1.0, 1.0)))
    lon = np.degrees(np.arctan2(vectors[:, 1], vectors[:, 0]))
    return lat, lon


def is_unit_vector(vector: NDArray[np.float64]) -> bool:
    """Whether a vector lies on the unit sphere within tolerance."""
    norm = float(np.linalg.norm(vector))
    return abs(norm - 1.0) <= MeshConstants.UNIT_NORM_TOLERANCE.value


def angular_distance(a: NDArray[np.float64], b: NDArray[np.float64]) -> float:
    """Central angle between two unit vectors, in radians.

    Uses atan2(|a × b|, a · b), which stays accurate for both nearly
    identical and nearly antipodal points (unlike acos of the dot product).
    """
    return float(np.arctan2(np.linalg.norm(np.cross(a, b)), np.dot(a, b)))


def slerp(
    a: NDArray[np.float64],
    b: NDArray[np.float64],
    fraction: float
) -> NDArray[np.float64]:
    """Spherical linear interpolation between two unit vectors.

    Parameters
    ----------
    a, b : ndarray
        Endpoints on the unit sphere.
    fraction : float
        0 returns ``a``, 1 returns ``b``.

    Returns
    -------
    ndarray
        Point on the great-circle arc from ``a`` to ``b``.

    Notes
    -----
    Undefined for antipodal endpoints; mesh edges are always far shorter
    than a half circle so this never applies to cell outlines.
    """
    omega = angular_distance(a, b)
    if omega < 1e-15:
        return np.array(a, dtype=np.float64)
    sin_omega = np.sin(omega)
    return (np.sin((1.0 - fraction) * omega) * a + np.sin(fraction * omega) * b) / sin_omega
