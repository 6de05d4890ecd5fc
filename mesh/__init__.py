"""
Mesh Module for the Hierarchical Cell Index.

This module implements the icosahedral triangular mesh: a partition of
the sphere into 20 seed triangles, each recursively split into 4 children
down to level 21.

Submodules:
- icosahedron: seed polyhedron, subdivision, containment predicate
- addressing: cell identifiers, STEP-TRI-v1 encoding, hierarchy navigation
- polygon: cell geometry (GeoJSON) and spherical metrics
- regions: cell / bounding-box intersection tests
- lookup: point, bounding-box, nearest and path queries
"""

from mesh.icosahedron import (
    ICOSAHEDRON_VERTICES,
    ICOSAHEDRON_FACES,
    get_face_vertices,
    geodesic_midpoint,
    subdivide_triangle,
    is_point_in_spherical_triangle,
)

from mesh.addressing import (
    encode_cell_id,
    decode_cell_id,
    is_valid_encoded,
    root_cells,
    parent_of,
    children_of,
    ancestor_at,
    is_ancestor,
    path_to_int,
    int_to_path,
    cell_count_at_level,
    approx_side_length_m,
    LevelSummary,
    level_summary,
)

from mesh.polygon import (
    cell_to_unit_vertices,
    cell_to_polygon,
    cell_to_centroid,
    cell_to_vertices,
    cell_area_m2,
    cell_perimeter_m,
    crosses_antimeridian,
    triangle_area_steradians,
    arc_length_rad,
    CellRecord,
    cell_record,
    cell_to_feature,
)

from mesh.regions import (
    BoxQuery,
    triangle_intersects_bbox,
)

from mesh.lookup import (
    LookupConfig,
    point_to_cell,
    is_point_in_cell,
    cells_in_bbox,
    nearest_cells,
    cells_along_path,
)

__all__ = [
    # Seed geometry
    "ICOSAHEDRON_VERTICES",
    "ICOSAHEDRON_FACES",
    "get_face_vertices",
    "geodesic_midpoint",
    "subdivide_triangle",
    "is_point_in_spherical_triangle",
    # Addressing
    "encode_cell_id",
    "decode_cell_id",
    "is_valid_encoded",
    "root_cells",
    "parent_of",
    "children_of",
    "ancestor_at",
    "is_ancestor",
    "path_to_int",
    "int_to_path",
    "cell_count_at_level",
    "approx_side_length_m",
    "LevelSummary",
    "level_summary",
    # Geometry
    "cell_to_unit_vertices",
    "cell_to_polygon",
    "cell_to_centroid",
    "cell_to_vertices",
    "cell_area_m2",
    "cell_perimeter_m",
    "crosses_antimeridian",
    "triangle_area_steradians",
    "arc_length_rad",
    "CellRecord",
    "cell_record",
    "cell_to_feature",
    # Regions
    "BoxQuery",
    "triangle_intersects_bbox",
    # Lookup
    "LookupConfig",
    "point_to_cell",
    "is_point_in_cell",
    "cells_in_bbox",
    "nearest_cells",
    "cells_along_path",
]
