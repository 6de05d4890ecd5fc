"""
Great-Circle Distance Calculations on the Mesh Sphere.

This module provides distances, azimuths and path sampling on the same
sphere the mesh metrics are expressed on (radius
``MeshConstants.SPHERE_RADIUS``). Using one sphere for both the cell
geometry and the distance ranking keeps nearest-cell ordering consistent
with cell areas and perimeters.

Implementation
--------------
This module wraps the `pyproj` library configured with a spherical figure
(a == b). pyproj uses the GeographicLib algorithms by Charles Karney,
which on a sphere reduce to exact great-circle solutions and stay
well conditioned for nearly antipodal points.

References
----------
- Karney, C.F.F. (2013). Algorithms for geodesics. Journal of Geodesy, 87(1), 43-55.
- GeographicLib: https://geographiclib.sourceforge.io/
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np
from numpy.typing import NDArray

from pyproj import Geod

from common.constants import MeshConstants


# Great-circle calculator on the mesh sphere
_mesh_geod = Geod(
    a=MeshConstants.SPHERE_RADIUS.value,
    b=MeshConstants.SPHERE_RADIUS.value
)


@dataclass
class GreatCircleResult:
    """Result of an inverse great-circle calculation.

    Attributes
    ----------
    distance_m : float
        Great-circle distance in meters.
    azimuth_forward_deg : float
        Forward azimuth (direction from point 1 to point 2) in degrees,
        clockwise from north, in [0, 360).
    azimuth_back_deg : float
        Back azimuth (direction from point 2 to point 1) in degrees,
        clockwise from north, in [0, 360).
    """
    distance_m: float
    azimuth_forward_deg: float
    azimuth_back_deg: float


def great_circle_inverse(
    lat1_deg: float,
    lon1_deg: float,
    lat2_deg: float,
    lon2_deg: float
) -> GreatCircleResult:
    """Solve the inverse problem: distance and azimuths between two points.

    Parameters
    ----------
    lat1_deg, lon1_deg : float
        First point in degrees.
    lat2_deg, lon2_deg : float
        Second point in degrees.

    Returns
    -------
    GreatCircleResult
        Distance in meters, forward and back azimuths in degrees.

    Examples
    --------
    >>> # Quarter of the equator
    >>> result = great_circle_inverse(0.0, 0.0, 0.0, 90.0)
    >>> round(result.distance_m / 1000)
    10008
    """
    az_forward, az_back, distance_m = _mesh_geod.inv(
        lon1_deg, lat1_deg, lon2_deg, lat2_deg
    )

    return GreatCircleResult(
        distance_m=float(distance_m),
        azimuth_forward_deg=float(az_forward % 360.0),
        azimuth_back_deg=float(az_back % 360.0)
    )


def great_circle_distance(
    lat1_deg: float,
    lon1_deg: float,
    lat2_deg: float,
    lon2_deg: float
) -> float:
    """Compute great-circle distance between two points.

    This is a convenience function that returns only the distance.

    Returns
    -------
    float
        Distance in meters.
    """
    return great_circle_inverse(lat1_deg, lon1_deg, lat2_deg, lon2_deg).distance_m


def great_circle_distance_batch(
    lat1_deg: NDArray[np.float64],
    lon1_deg: NDArray[np.float64],
    lat2_deg: NDArray[np.float64],
    lon2_deg: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Compute great-circle distances for arrays of point pairs.

    Notes
    -----
    Inputs are broadcast against each other, so a single query point can
    be compared against many candidates in one call.
    """
    lat1, lon1, lat2, lon2 = np.broadcast_arrays(
        np.asarray(lat1_deg, dtype=np.float64),
        np.asarray(lon1_deg, dtype=np.float64),
        np.asarray(lat2_deg, dtype=np.float64),
        np.asarray(lon2_deg, dtype=np.float64),
    )

    _, _, distances = _mesh_geod.inv(lon1, lat1, lon2, lat2)

    return np.asarray(distances, dtype=np.float64)


def sample_great_circle(
    lat1_deg: float,
    lon1_deg: float,
    lat2_deg: float,
    lon2_deg: float,
    step_m: float
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Sample points along the great circle between two endpoints.

    Parameters
    ----------
    lat1_deg, lon1_deg : float
        Start point in degrees.
    lat2_deg, lon2_deg : float
        End point in degrees.
    step_m : float
        Spacing between consecutive samples in meters (must be positive).

    Returns
    -------
    Tuple[ndarray, ndarray]
        (latitudes_deg, longitudes_deg). Samples are taken at distances
        0, step, 2·step, ... strictly below the total length, followed by
        the exact end point. Coincident endpoints yield a single sample.
    """
    if step_m <= 0:
        raise ValueError(f"step_m must be positive, got {step_m}")

    result = great_circle_inverse(lat1_deg, lon1_deg, lat2_deg, lon2_deg)
    total = result.distance_m

    if total <= 0.0:
        return np.array([lat1_deg], dtype=np.float64), np.array([lon1_deg], dtype=np.float64)

    distances = np.arange(0.0, total, step_m, dtype=np.float64)
    n = distances.size

    lons, lats, _ = _mesh_geod.fwd(
        np.full(n, lon1_deg, dtype=np.float64),
        np.full(n, lat1_deg, dtype=np.float64),
        np.full(n, result.azimuth_forward_deg, dtype=np.float64),
        distances
    )

    lats = np.clip(np.asarray(lats, dtype=np.float64), -90.0, 90.0)
    lons = np.asarray(lons, dtype=np.float64)
    lons = np.where(lons > 180.0, lons - 360.0, lons)
    lons = np.where(lons < -180.0, lons + 360.0, lons)

    # Pin the first sample and append the exact end point
    lats[0], lons[0] = lat1_deg, lon1_deg
    lats = np.append(lats, lat2_deg)
    lons = np.append(lons, lon2_deg)

    return lats, lons
