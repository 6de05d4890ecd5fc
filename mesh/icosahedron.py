"""
Icosahedron Seed Geometry for the Cell Mesh.

A regular icosahedron has 12 vertices, 20 triangular faces and 30 edges.
Projected onto the unit sphere, its faces are the 20 level-1 cells of the
mesh; every finer cell is obtained by recursive 4-way subdivision of one
of them.

Why an Icosahedron
------------------
1. Most uniform distribution of vertices among the Platonic solids, so
   cell sizes vary least across the globe.
2. Faces are triangles, which subdivide into triangles indefinitely.
3. Distortion stays bounded across all 21 refinement levels.

Tables
------
``ICOSAHEDRON_VERTICES`` and ``ICOSAHEDRON_FACES`` are read-only numpy
arrays initialized at import time. Their order is part of the addressing
scheme: changing either table renames every cell.
"""

from typing import List, Sequence
import numpy as np
from numpy.typing import NDArray

from common.constants import MeshConstants
from common.types import TriangleVertices, UnitVector, check_face
from geospatial.coordinate_models import normalize


PHI = MeshConstants.GOLDEN_RATIO.value


def _build_vertices() -> NDArray[np.float64]:
    # Three orthogonal golden rectangles, normalized onto the unit sphere
    raw = np.array([
        # Rectangle in XY plane
        [-1.0, PHI, 0.0],
        [1.0, PHI, 0.0],
        [-1.0, -PHI, 0.0],
        [1.0, -PHI, 0.0],
        # Rectangle in YZ plane
        [0.0, -1.0, PHI],
        [0.0, 1.0, PHI],
        [0.0, -1.0, -PHI],
        [0.0, 1.0, -PHI],
        # Rectangle in XZ plane
        [PHI, 0.0, -1.0],
        [PHI, 0.0, 1.0],
        [-PHI, 0.0, -1.0],
        [-PHI, 0.0, 1.0],
    ], dtype=np.float64)
    vertices = normalize(raw)
    vertices.flags.writeable = False
    return vertices


def _build_faces() -> NDArray[np.int64]:
    faces = np.array([
        # 5 faces around vertex 0
        [0, 11, 5],
        [0, 5, 1],
        [0, 1, 7],
        [0, 7, 10],
        [0, 10, 11],
        # 5 adjacent faces (upper band)
        [1, 5, 9],
        [5, 11, 4],
        [11, 10, 2],
        [10, 7, 6],
        [7, 1, 8],
        # 5 faces forming lower band
        [3, 9, 4],
        [3, 4, 2],
        [3, 2, 6],
        [3, 6, 8],
        [3, 8, 9],
        # 5 faces around vertex 3
        [4, 9, 5],
        [2, 4, 11],
        [6, 2, 10],
        [8, 6, 7],
        [9, 8, 1],
    ], dtype=np.int64)
    faces.flags.writeable = False
    return faces


ICOSAHEDRON_VERTICES: NDArray[np.float64] = _build_vertices()
ICOSAHEDRON_FACES: NDArray[np.int64] = _build_faces()


def get_face_vertices(face: int) -> TriangleVertices:
    """Get the 3 unit-sphere vertices of a seed face.

    Parameters
    ----------
    face : int
        Face index, 0-19.

    Returns
    -------
    Tuple[ndarray, ndarray, ndarray]
        The face's vertices in table order (outward winding).

    Raises
    ------
    CellValidationError
        If ``face`` is not in [0, 19]. Out-of-range faces indicate an
        integration bug and are never clamped.
    """
    i0, i1, i2 = ICOSAHEDRON_FACES[check_face(face)]
    return (
        ICOSAHEDRON_VERTICES[i0],
        ICOSAHEDRON_VERTICES[i1],
        ICOSAHEDRON_VERTICES[i2],
    )


def geodesic_midpoint(a: UnitVector, b: UnitVector) -> UnitVector:
    """Compute the great-circle midpoint of two unit-sphere points.

    Method: average the two vectors and normalize back onto the sphere.
    For the arc between two non-antipodal points this is exactly the
    midpoint of the arc, which is the only case the mesh needs.
    """
    return normalize((np.asarray(a) + np.asarray(b)) / 2.0)


def subdivide_triangle(
    v0: UnitVector,
    v1: UnitVector,
    v2: UnitVector
) -> List[TriangleVertices]:
    """Subdivide a spherical triangle into 4 children.

    Parameters
    ----------
    v0, v1, v2 : ndarray
        Parent vertices on the unit sphere.

    Returns
    -------
    List[Tuple[ndarray, ndarray, ndarray]]
        Children in this fixed order:

        - T0 = [v0, m01, m20]  (corner at v0)
        - T1 = [m01, v1, m12]  (corner at v1)
        - T2 = [m20, m12, v2]  (corner at v2)
        - T3 = [m01, m12, m20] (centre)

        where ``mij`` is the geodesic midpoint of edge vi-vj. Child index
        ``i`` in a cell path always denotes ``T_i``.
    """
    m01 = geodesic_midpoint(v0, v1)
    m12 = geodesic_midpoint(v1, v2)
    m20 = geodesic_midpoint(v2, v0)

    return [
        (v0, m01, m20),
        (m01, v1, m12),
        (m20, m12, v2),
        (m01, m12, m20),
    ]


def is_point_in_spherical_triangle(
    point: UnitVector,
    v0: UnitVector,
    v1: UnitVector,
    v2: UnitVector,
    tolerance: float = MeshConstants.CONTAINMENT_TOLERANCE.value
) -> bool:
    """Test whether a point lies inside a spherical triangle.

    Algorithm: the point is inside iff, for each of the three edges, it is
    on the same side of the edge's great-circle plane as the opposite
    vertex. For edge (a, b) with opposite vertex c the plane normal is
    n = (a × b) / |a × b|, and the sides agree when
    (n · p) · sign(n · c) >= -tolerance.

    Parameters
    ----------
    point : ndarray
        Test point on the unit sphere.
    v0, v1, v2 : ndarray
        Triangle vertices on the unit sphere.
    tolerance : float
        Non-strict tolerance in radians; points on an edge (or within
        rounding of it) count as inside.

    Returns
    -------
    bool
        True if inside or on the boundary.

    Notes
    -----
    Exact for triangles of any size; no planar approximation is made.
    The normal is unit length, so ``n · p`` is the sine of the point's
    angular distance from the edge's great circle and the tolerance means
    the same thing at level 1 and at level 21.

    A test on the raw products (a × b · p)(a × b · c) against the same
    tolerance is not equivalent: its effective angular tolerance grows as
    cells shrink, so at fine levels it accepts points well outside an
    edge. Identifiers issued with that test can name a different cell
    than this one for points near cell edges; systems exchanging
    identifiers must use the same predicate.
    """
    for a, b, opposite in ((v0, v1, v2), (v1, v2, v0), (v2, v0, v1)):
        normal = np.cross(a, b)
        normal = normal / np.linalg.norm(normal)
        if np.dot(normal, point) * np.sign(np.dot(normal, opposite)) < -tolerance:
            return False
    return True


def find_seed_face(point: UnitVector) -> int:
    """Index of the first seed face (in table order) containing a point.

    Returns
    -------
    int
        Face index 0-19, or -1 if no face claims the point (which cannot
        happen for a unit vector, since the faces cover the sphere).
    """
    for face in range(MeshConstants.NUM_FACES):
        if is_point_in_spherical_triangle(point, *get_face_vertices(face)):
            return face
    return -1


def descend_vertices(face: int, path: Sequence[int]) -> TriangleVertices:
    """Replay a subdivision path from a seed face.

    Parameters
    ----------
    face : int
        Seed face index.
    path : Sequence[int]
        Child digits, each 0-3.

    Returns
    -------
    Tuple[ndarray, ndarray, ndarray]
        Vertices of the cell reached after ``len(path)`` subdivisions.
    """
    v0, v1, v2 = get_face_vertices(face)
    for child_index in path:
        v0, v1, v2 = subdivide_triangle(v0, v1, v2)[child_index]
    return v0, v1, v2
