"""
Geospatial Module for the Hierarchical Cell Index.

All conversions between geographic coordinates and the unit sphere, and
all great-circle distance calculations, originate from this module. The
mesh modules never convert or measure independently.

This module provides:
- Latitude/longitude <-> unit-vector conversions
- Vector helpers on the unit sphere (normalization, central angle, slerp)
- Great-circle distances and path sampling on the mesh sphere
"""

from geospatial.coordinate_models import (
    validate_lat_lon,
    normalize,
    spherical_to_cartesian,
    cartesian_to_spherical,
    cartesian_to_spherical_batch,
    is_unit_vector,
    angular_distance,
    slerp,
)

from geospatial.distance_calculations import (
    GreatCircleResult,
    great_circle_inverse,
    great_circle_distance,
    great_circle_distance_batch,
    sample_great_circle,
)

__all__ = [
    # Coordinate models
    "validate_lat_lon",
    "normalize",
    "spherical_to_cartesian",
    "cartesian_to_spherical",
    "cartesian_to_spherical_batch",
    "is_unit_vector",
    "angular_distance",
    "slerp",
    # Distance calculations
    "GreatCircleResult",
    "great_circle_inverse",
    "great_circle_distance",
    "great_circle_distance_batch",
    "sample_great_circle",
]
