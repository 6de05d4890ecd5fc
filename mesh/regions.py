"""
Cell / Bounding-Box Intersection Tests.

Region search prunes whole subtrees of the mesh, so the test used here must
never report "disjoint" for a cell that actually overlaps the query box.
Two complementary checks are OR-ed together:

1. Planar test in longitude/latitude space (shapely). The cell outline is
   densified along its great-circle edges so that the curved edges are
   followed closely, unwrapped across the antimeridian, and closed along
   the pole for cells that contain one. The query box is tested at its own
   longitude and shifted by ±360° to meet the unwrapped outline.

2. Exact spherical test: the box corners and centre are tested for
   containment in the cell with the same predicate used by point lookup.
   This catches boxes that are tiny compared to the cell (including
   degenerate point boxes).

A bounding box crossing the antimeridian (``west > east``) is split into
its two non-wrapping parts before testing.
"""

from typing import List, Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

from shapely.affinity import translate
from shapely.geometry import LineString, Point, Polygon, box
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from common.types import BoundingBox, UnitVector
from geospatial.coordinate_models import (
    angular_distance,
    cartesian_to_spherical_batch,
    slerp,
    spherical_to_cartesian,
)
from mesh.icosahedron import is_point_in_spherical_triangle


# Longest outline segment, in degrees of arc, after densification
OUTLINE_MAX_SEGMENT_DEG = 1.0

_NORTH_POLE = np.array([0.0, 0.0, 1.0])
_SOUTH_POLE = np.array([0.0, 0.0, -1.0])

_LONGITUDE_SHIFTS = (-360.0, 0.0, 360.0)

BoxPart = Tuple[float, float, float, float]


def densify_edge(a: UnitVector, b: UnitVector, max_segment_deg: float = OUTLINE_MAX_SEGMENT_DEG) -> List[UnitVector]:
    """Points along the arc from ``a`` towards ``b``, excluding ``b``."""
    segments = max(1, int(np.ceil(np.degrees(angular_distance(a, b)) / max_segment_deg)))
    return [slerp(a, b, k / segments) for k in range(segments)]


def cell_outline_lon_lat(
    v0: UnitVector,
    v1: UnitVector,
    v2: UnitVector,
    max_segment_deg: float = OUTLINE_MAX_SEGMENT_DEG
) -> NDArray[np.float64]:
    """Densified, antimeridian-unwrapped outline of a spherical triangle.

    Parameters
    ----------
    v0, v1, v2 : ndarray
        Triangle vertices on the unit sphere.
    max_segment_deg : float
        Largest arc between consecutive outline points.

    Returns
    -------
    ndarray
        (N, 2) array of ``(lon, lat)`` points forming a closed ring.
        Longitudes are continuous, so they may leave [-180, 180]. For a
        triangle containing a pole the ring drifts by 360° and is closed
        along that pole's latitude.
    """
    points = []
    for a, b in ((v0, v1), (v1, v2), (v2, v0)):
        points.extend(densify_edge(a, b, max_segment_deg))
    points.append(np.asarray(v0, dtype=np.float64))

    lat, lon = cartesian_to_spherical_batch(np.array(points))
    lon = np.degrees(np.unwrap(np.radians(lon)))

    drift = lon[-1] - lon[0]
    if abs(drift) > 180.0:
        if is_point_in_spherical_triangle(_NORTH_POLE, v0, v1, v2):
            pole_lat = 90.0
        elif is_point_in_spherical_triangle(_SOUTH_POLE, v0, v1, v2):
            pole_lat = -90.0
        else:
            # Outline passes through a pole; the closing point sits there
            pole_lat = 90.0 if np.sum(lat) > 0 else -90.0
        lon = np.concatenate([lon, [lon[-1], lon[0], lon[0]]])
        lat = np.concatenate([lat, [pole_lat, pole_lat, lat[0]]])

    return np.column_stack([lon, lat])


def cell_outline_polygon(v0: UnitVector, v1: UnitVector, v2: UnitVector) -> BaseGeometry:
    """Planar shapely geometry of a cell outline (see :func:`cell_outline_lon_lat`)."""
    polygon = Polygon(cell_outline_lon_lat(v0, v1, v2))
    if not polygon.is_valid:
        return make_valid(polygon)
    return polygon


def box_part_geometry(part: BoxPart) -> BaseGeometry:
    """Shapely geometry for a non-wrapping ``(west, south, east, north)`` box.

    Zero-width or zero-height boxes become lines or points, which shapely
    handles correctly in predicates, unlike degenerate polygons.
    """
    west, south, east, north = part
    if west == east and south == north:
        return Point(west, south)
    if west == east or south == north:
        return LineString([(west, south), (east, north)])
    return box(west, south, east, north)


def box_probe_points(part: BoxPart) -> List[UnitVector]:
    """Unit vectors of a box part's four corners and its centre."""
    west, south, east, north = part
    lon_lat = [
        (west, south),
        (east, south),
        (east, north),
        (west, north),
        ((west + east) / 2.0, (south + north) / 2.0),
    ]
    return [spherical_to_cartesian(lat, lon) for lon, lat in lon_lat]


class BoxQuery:
    """A bounding box prepared for repeated intersection tests.

    Parameters
    ----------
    bbox : BoundingBox or sequence
        ``[west, south, east, north]`` in degrees.

    Examples
    --------
    >>> from mesh.icosahedron import get_face_vertices
    >>> query = BoxQuery([-180.0, -90.0, 180.0, 90.0])
    >>> query.intersects_triangle(*get_face_vertices(0))
    True
    """

    def __init__(self, bbox):
        self.bbox = BoundingBox.from_sequence(bbox)
        self.parts: List[BoxPart] = self.bbox.parts()

        self._shapes = [
            translate(box_part_geometry(part), xoff=shift)
            for part in self.parts
            for shift in _LONGITUDE_SHIFTS
        ]
        self._probes = [p for part in self.parts for p in box_probe_points(part)]

    def intersects_triangle(self, v0: UnitVector, v1: UnitVector, v2: UnitVector) -> bool:
        """Whether a spherical triangle may overlap the box.

        False only when the triangle is disjoint from every box part.
        """
        for probe in self._probes:
            if is_point_in_spherical_triangle(probe, v0, v1, v2):
                return True

        outline = cell_outline_polygon(v0, v1, v2)
        return any(outline.intersects(shape) for shape in self._shapes)


def triangle_intersects_bbox(
    v0: UnitVector,
    v1: UnitVector,
    v2: UnitVector,
    bbox: Sequence[float]
) -> bool:
    """One-off form of :meth:`BoxQuery.intersects_triangle`."""
    return BoxQuery(bbox).intersects_triangle(v0, v1, v2)
