"""
Cell Geometry - Convert Cell Identifiers to Geographic Geometry.

This module computes the actual coordinates of a cell by replaying its
subdivision path from the seed face down to the cell's level.

Process
-------
1. Start with the seed face's 3 vertices (level 1)
2. For each path digit, subdivide and keep the indicated child
3. Convert the final 3 vertices to longitude/latitude

Example: face=7, level=5, path=(0, 1, 3, 2) performs exactly 4
subdivisions, taking child 0, then 1, then 3, then 2.

Output Format
-------------
Geometries are plain dicts following GeoJSON (RFC 7946). Coordinates are
``[longitude, latitude]`` (NOT lat/lon), and polygon rings are closed
(first point repeated as last).

Metrics
-------
Areas and perimeters are computed on the sphere of radius
``MeshConstants.SPHERE_RADIUS`` using exact spherical trigonometry:
great-circle edge lengths and L'Huilier's formula for the spherical
excess.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple, Union
import numpy as np

from common.constants import MeshConstants
from common.types import CellId, GeoJSONGeometry, TriangleVertices, UnitVector
from geospatial.coordinate_models import cartesian_to_spherical, normalize
from mesh.addressing import encode_cell_id
from mesh.icosahedron import descend_vertices


def cell_to_unit_vertices(cell: CellId) -> TriangleVertices:
    """Get the 3 unit-sphere vertices of a cell.

    Traversal is always exactly ``level - 1`` subdivision steps.
    """
    if not isinstance(cell, CellId):
        cell = CellId(face=cell.face, level=cell.level, path=tuple(cell.path))
    return descend_vertices(cell.face, cell.path)


def centroid_unit_vector(v0: UnitVector, v1: UnitVector, v2: UnitVector) -> UnitVector:
    """Normalized vertex average of a spherical triangle.

    This approximates the true spherical centroid closely enough for
    display, indexing and tie-breaking, but it is not area weighted.
    """
    return normalize(np.asarray(v0) + np.asarray(v1) + np.asarray(v2))


def _lon_lat(vector: UnitVector) -> List[float]:
    lat, lon = cartesian_to_spherical(vector)
    return [lon, lat]


def vertices_to_ring(v0: UnitVector, v1: UnitVector, v2: UnitVector) -> List[List[float]]:
    """Closed ``[lon, lat]`` ring for a triangle."""
    first = _lon_lat(v0)
    return [first, _lon_lat(v1), _lon_lat(v2), list(first)]


def cell_to_polygon(cell: CellId) -> GeoJSONGeometry:
    """Convert a cell identifier to a GeoJSON Polygon.

    Returns
    -------
    dict
        ``{"type": "Polygon", "coordinates": [[v0, v1, v2, v0]]}`` with
        each vertex as ``[lon, lat]`` in degrees.
    """
    return {
        "type": "Polygon",
        "coordinates": [vertices_to_ring(*cell_to_unit_vertices(cell))],
    }


def cell_to_centroid(cell: CellId) -> GeoJSONGeometry:
    """Compute the centroid of a cell as a GeoJSON Point.

    Method: average the 3 vertices in Cartesian space, then normalize to
    the sphere. See :func:`centroid_unit_vector` for accuracy notes.
    """
    return {
        "type": "Point",
        "coordinates": _lon_lat(centroid_unit_vector(*cell_to_unit_vertices(cell))),
    }


def cell_to_vertices(cell: CellId) -> Tuple[GeoJSONGeometry, GeoJSONGeometry, GeoJSONGeometry]:
    """Get the 3 corner vertices of a cell as GeoJSON Points, in path order."""
    return tuple(
        {"type": "Point", "coordinates": _lon_lat(v)}
        for v in cell_to_unit_vertices(cell)
    )


def arc_length_rad(a: UnitVector, b: UnitVector) -> float:
    """Great-circle angle between two unit vectors.

    acos of the dot product, clamped to [-1, 1] so that rounding cannot
    produce NaN.
    """
    return float(np.arccos(np.clip(np.dot(a, b), -1.0, 1.0)))


def triangle_edge_lengths_rad(
    v0: UnitVector,
    v1: UnitVector,
    v2: UnitVector
) -> Tuple[float, float, float]:
    """Edge lengths (a, b, c) opposite v0, v1, v2 respectively, in radians."""
    return arc_length_rad(v1, v2), arc_length_rad(v0, v2), arc_length_rad(v0, v1)


def triangle_area_steradians(v0: UnitVector, v1: UnitVector, v2: UnitVector) -> float:
    """Spherical excess of a triangle on the unit sphere.

    Notes
    -----
    L'Huilier's theorem:

        tan(E/4) = sqrt(tan(s/2) tan((s-a)/2) tan((s-b)/2) tan((s-c)/2))

    with s = (a + b + c) / 2. The excess E equals the area on the unit
    sphere. Tiny negative products from rounding on degenerate triangles
    are treated as zero.
    """
    a, b, c = triangle_edge_lengths_rad(v0, v1, v2)
    s = (a + b + c) / 2.0
    product = (
        np.tan(s / 2.0)
        * np.tan((s - a) / 2.0)
        * np.tan((s - b) / 2.0)
        * np.tan((s - c) / 2.0)
    )
    return float(4.0 * np.arctan(np.sqrt(max(product, 0.0))))


def cell_area_m2(cell: CellId) -> float:
    """Area of a cell in square meters (spherical excess × R²)."""
    radius = MeshConstants.SPHERE_RADIUS.value
    return triangle_area_steradians(*cell_to_unit_vertices(cell)) * radius ** 2


def cell_perimeter_m(cell: CellId) -> float:
    """Perimeter of a cell in meters (sum of great-circle edges × R)."""
    radius = MeshConstants.SPHERE_RADIUS.value
    return sum(triangle_edge_lengths_rad(*cell_to_unit_vertices(cell))) * radius


def crosses_antimeridian(polygon: Union[GeoJSONGeometry, Sequence[Sequence[float]]]) -> bool:
    """Check whether a ring crosses the antimeridian (±180° longitude).

    Parameters
    ----------
    polygon : dict or sequence
        GeoJSON Polygon (outer ring is tested) or a bare ring of
        ``[lon, lat]`` pairs.

    Returns
    -------
    bool
        True if any consecutive pair of ring vertices differs in
        longitude by more than 180°.
    """
    if isinstance(polygon, dict):
        ring = polygon["coordinates"][0]
    else:
        ring = polygon

    for (lon1, _), (lon2, _) in zip(ring[:-1], ring[1:]):
        if abs(lon2 - lon1) > 180.0:
            return True
    return False


@dataclass(frozen=True)
class CellRecord:
    """Everything an external store needs to persist one cell.

    The index only computes these values; ownership, counters and other
    application state belong to the caller.

    Attributes
    ----------
    cell_id : str
        Encoded STEP-TRI-v1 identifier.
    face, level : int
        Structured identifier fields.
    path : Tuple[int, ...]
        Structured identifier path.
    polygon : dict
        GeoJSON Polygon.
    centroid : dict
        GeoJSON Point.
    unit_vertices : Tuple[Tuple[float, float, float], ...]
        Cell corners on the unit sphere.
    area_m2 : float
        Cell area in square meters.
    """
    cell_id: str
    face: int
    level: int
    path: Tuple[int, ...]
    polygon: GeoJSONGeometry = field(compare=False)
    centroid: GeoJSONGeometry = field(compare=False)
    unit_vertices: Tuple[Tuple[float, float, float], ...] = field(compare=False)
    area_m2: float = field(compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form for JSON serialization."""
        return {
            "cellId": self.cell_id,
            "face": self.face,
            "level": self.level,
            "path": list(self.path),
            "polygon": self.polygon,
            "centroid": self.centroid,
            "vertices": [list(v) for v in self.unit_vertices],
            "areaM2": self.area_m2,
        }


def cell_record(cell: CellId) -> CellRecord:
    """Compute the persistable description of a cell in one traversal."""
    v0, v1, v2 = cell_to_unit_vertices(cell)
    radius = MeshConstants.SPHERE_RADIUS.value
    return CellRecord(
        cell_id=encode_cell_id(cell),
        face=cell.face,
        level=cell.level,
        path=tuple(cell.path),
        polygon={"type": "Polygon", "coordinates": [vertices_to_ring(v0, v1, v2)]},
        centroid={"type": "Point", "coordinates": _lon_lat(centroid_unit_vector(v0, v1, v2))},
        unit_vertices=tuple(tuple(float(c) for c in v) for v in (v0, v1, v2)),
        area_m2=triangle_area_steradians(v0, v1, v2) * radius ** 2,
    )


def cell_to_feature(cell: CellId) -> Dict[str, Any]:
    """GeoJSON Feature of a cell with identifier and metrics as properties."""
    v0, v1, v2 = cell_to_unit_vertices(cell)
    radius = MeshConstants.SPHERE_RADIUS.value
    ring = vertices_to_ring(v0, v1, v2)
    return {
        "type": "Feature",
        "id": encode_cell_id(cell),
        "geometry": {"type": "Polygon", "coordinates": [ring]},
        "properties": {
            "face": cell.face,
            "level": cell.level,
            "path": list(cell.path),
            "area_m2": triangle_area_steradians(v0, v1, v2) * radius ** 2,
            "perimeter_m": sum(triangle_edge_lengths_rad(v0, v1, v2)) * radius,
            "crosses_antimeridian": crosses_antimeridian(ring),
        },
    }
