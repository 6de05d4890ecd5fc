"""
Spatial Lookup - Which Cell(s) Answer a Geographic Query.

This module answers the four query types of the index:

- point_to_cell: the cell at a given level containing a point
- cells_in_bbox: all cells at a level overlapping a bounding box
- nearest_cells: the containing cell and its siblings, by distance
- cells_along_path: the cells crossed by a great-circle path

Descent Model
-------------
Point lookup is a linear chain of states: the current cell, one level
deeper per step, with no backtracking. At each step the 4 children are
tested with the exact spherical containment predicate.

Boundary Fallback
-----------------
A point on a shared edge or vertex may be claimed by several children,
and rounding can leave a point claimed by none. In both cases the child
whose centroid is angularly closest to the point is chosen (among the
claimants, or among all four when none claims it), with ties going to
the lower child index. This is a deterministic heuristic: it always
returns the same cell for the same input, but near shared edges it is
not guaranteed to agree with a half-open edge-ownership convention.

All functions are pure; nothing is cached between calls.
"""

from dataclasses import astuple, dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union
import numpy as np

import pint

from common.constants import MeshConstants
from common.errors import CellValidationError
from common.logging_config import get_logger
from common.types import CellId, TriangleVertices, UnitVector, check_level
from common.units import to_si_magnitude
from geospatial.coordinate_models import (
    angular_distance,
    cartesian_to_spherical,
    spherical_to_cartesian,
    validate_lat_lon,
)
from geospatial.distance_calculations import (
    great_circle_distance,
    great_circle_distance_batch,
    sample_great_circle,
)
from mesh.addressing import children_of, parent_of
from mesh.icosahedron import (
    find_seed_face,
    get_face_vertices,
    is_point_in_spherical_triangle,
    subdivide_triangle,
)
from mesh.polygon import cell_to_unit_vertices, centroid_unit_vector
from mesh.regions import BoxQuery

logger = get_logger(__name__)


def _check_positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
        raise CellValidationError(f"Invalid {name}: {value!r}. Must be a positive integer.")
    return int(value)


@dataclass
class LookupConfig:
    """Tuning for spatial queries.

    Attributes
    ----------
    max_results : int
        Upper bound on cells returned by a bounding-box search.
    nearest_count : int
        Default number of cells returned by a nearest-cells query.
    path_min_step : float or pint.Quantity
        Smallest spacing between samples along a path (meters if bare).
    path_sample_fraction : float
        Sample spacing as a fraction of the path length; the larger of
        this and ``path_min_step`` is used.
    """
    max_results: int = MeshConstants.DEFAULT_MAX_RESULTS
    nearest_count: int = MeshConstants.DEFAULT_NEAREST_COUNT
    path_min_step: Union[float, pint.Quantity] = MeshConstants.PATH_MIN_SAMPLE_STEP.value
    path_sample_fraction: float = MeshConstants.PATH_SAMPLE_FRACTION

    def __post_init__(self):
        _check_positive_int("max_results", self.max_results)
        _check_positive_int("nearest_count", self.nearest_count)
        if to_si_magnitude(self.path_min_step, "m") <= 0:
            raise CellValidationError(
                f"Invalid path_min_step: {self.path_min_step}. Must be positive."
            )
        if not 0.0 < self.path_sample_fraction <= 1.0:
            raise CellValidationError(
                f"Invalid path_sample_fraction: {self.path_sample_fraction}. "
                f"Must be in (0, 1]."
            )

    def path_step_m(self, total_length_m: float) -> float:
        """Sample spacing in meters for a path of the given length."""
        return max(
            to_si_magnitude(self.path_min_step, "m"),
            self.path_sample_fraction * total_length_m
        )


DEFAULT_CONFIG = LookupConfig()


def _select_child(point: UnitVector, children: Sequence[TriangleVertices]) -> Tuple[int, int]:
    """Pick the child to descend into.

    Returns
    -------
    Tuple[int, int]
        (child index, number of children claiming the point).
    """
    claims = [
        i for i, child in enumerate(children)
        if is_point_in_spherical_triangle(point, *child)
    ]
    if len(claims) == 1:
        return claims[0], 1

    candidates = claims if claims else range(len(children))
    best = min(
        candidates,
        key=lambda i: (angular_distance(centroid_unit_vector(*children[i]), point), i)
    )
    return best, len(claims)


def point_to_cell(lat: float, lon: float, level: int) -> Optional[CellId]:
    """Find the cell at ``level`` containing a point.

    Parameters
    ----------
    lat : float
        Latitude in degrees (-90 to +90).
    lon : float
        Longitude in degrees (-180 to +180).
    level : int
        Target level, 1-21.

    Returns
    -------
    CellId or None
        The containing cell. None only if no seed face claims the point,
        which does not happen for valid coordinates.

    Raises
    ------
    CellValidationError
        If latitude, longitude or level is out of range.

    Examples
    --------
    >>> point_to_cell(47.4979, 19.0402, 1).level
    1
    """
    validate_lat_lon(lat, lon)
    level = check_level(level)

    point = spherical_to_cartesian(lat, lon)

    face = find_seed_face(point)
    if face < 0:
        logger.warning(f"No seed face contains point ({lat}, {lon})")
        return None

    vertices = get_face_vertices(face)
    path: List[int] = []

    for _ in range(level - 1):
        children = subdivide_triangle(*vertices)
        child_index, n_claims = _select_child(point, children)
        if n_claims != 1:
            logger.debug(
                f"Boundary fallback at level {len(path) + 2} for ({lat}, {lon}): "
                f"{n_claims} children claimed the point, chose child {child_index}"
            )
        path.append(child_index)
        vertices = children[child_index]

    return CellId(face=face, level=level, path=tuple(path))


def is_point_in_cell(lat: float, lon: float, cell: CellId) -> bool:
    """Exact test of whether a point lies inside (or on the edge of) a cell.

    Used to confirm that claimed coordinates fall in the cell an encoded
    identifier is bound to.
    """
    validate_lat_lon(lat, lon)
    point = spherical_to_cartesian(lat, lon)
    return is_point_in_spherical_triangle(point, *cell_to_unit_vertices(cell))


def cells_in_bbox(
    bbox: Sequence[float],
    level: int,
    max_results: Optional[int] = None,
    config: Optional[LookupConfig] = None
) -> List[CellId]:
    """Find the cells at ``level`` overlapping a bounding box.

    Parameters
    ----------
    bbox : sequence or BoundingBox
        ``[west, south, east, north]`` in degrees. ``west > east`` denotes
        a box crossing the antimeridian.
    level : int
        Target level, 1-21.
    max_results : int, optional
        Stop after this many cells. Defaults to ``config.max_results``.
    config : LookupConfig, optional
        Query tuning.

    Returns
    -------
    List[CellId]
        Overlapping cells in depth-first order: faces 0..19, children in
        digit order. The list is truncated, not ranked, when the limit is
        reached.

    Raises
    ------
    CellValidationError
        If the bbox, level or limit is invalid.

    Notes
    -----
    Search is an explicit-stack depth-first traversal that prunes every
    subtree whose root cell does not overlap the box. Cost grows with the
    number of cells at ``level`` inside the box, so keep ``max_results``
    bounded for large boxes at fine levels.
    """
    config = config or DEFAULT_CONFIG
    level = check_level(level)
    limit = _check_positive_int(
        "max_results", config.max_results if max_results is None else max_results
    )
    query = BoxQuery(bbox)

    # Reversed so that face 0 is popped first
    stack = [
        (face, (), get_face_vertices(face))
        for face in reversed(range(MeshConstants.NUM_FACES))
    ]
    results: List[CellId] = []
    visited = 0
    pruned = 0

    while stack:
        face, path, vertices = stack.pop()
        visited += 1

        if not query.intersects_triangle(*vertices):
            pruned += 1
            continue

        if len(path) + 1 == level:
            results.append(CellId(face=face, level=level, path=path))
            if len(results) >= limit:
                if stack:
                    logger.info(
                        f"Bounding-box search truncated at {limit} cells "
                        f"(level {level}, bbox {list(astuple(query.bbox))})"
                    )
                break
            continue

        children = subdivide_triangle(*vertices)
        for child_index in reversed(range(MeshConstants.CHILDREN_PER_CELL)):
            stack.append((face, path + (child_index,), children[child_index]))

    logger.debug(
        f"Bounding-box search: visited {visited} cells, pruned {pruned}, "
        f"returned {len(results)}"
    )
    return results


def _dedupe(cells: Iterable[CellId]) -> List[CellId]:
    seen = set()
    unique = []
    for cell in cells:
        if cell is not None and cell not in seen:
            seen.add(cell)
            unique.append(cell)
    return unique


def nearest_cells(
    lat: float,
    lon: float,
    level: int,
    count: Optional[int] = None,
    config: Optional[LookupConfig] = None
) -> List[CellId]:
    """Find the cells nearest to a point at ``level``.

    Candidates are the containing cell and, above level 1, its 3 siblings.
    They are ordered by great-circle distance from the point to each
    cell's centroid; equal distances keep candidate order.

    Parameters
    ----------
    lat, lon : float
        Query point in degrees.
    level : int
        Target level, 1-21.
    count : int, optional
        Maximum number of cells to return. Defaults to
        ``config.nearest_count``.

    Returns
    -------
    List[CellId]
        At most ``count`` cells, closest first.
    """
    config = config or DEFAULT_CONFIG
    count = _check_positive_int("count", config.nearest_count if count is None else count)

    cell = point_to_cell(lat, lon, level)
    if cell is None:
        return []

    candidates = [cell]
    if not cell.is_root:
        candidates.extend(children_of(parent_of(cell)))
    candidates = _dedupe(candidates)

    centroids = [
        cartesian_to_spherical(centroid_unit_vector(*cell_to_unit_vertices(c)))
        for c in candidates
    ]
    distances = great_circle_distance_batch(
        lat, lon,
        np.array([c[0] for c in centroids]),
        np.array([c[1] for c in centroids])
    )

    order = sorted(range(len(candidates)), key=lambda i: distances[i])
    return [candidates[i] for i in order[:count]]


def cells_along_path(
    start: Sequence[float],
    end: Sequence[float],
    level: int,
    config: Optional[LookupConfig] = None
) -> List[CellId]:
    """Find the cells crossed by the great-circle path between two points.

    Parameters
    ----------
    start, end : sequence of float
        Endpoints as ``(lon, lat)`` pairs in degrees (GeoJSON order).
    level : int
        Target level, 1-21.
    config : LookupConfig, optional
        Sampling tuning.

    Returns
    -------
    List[CellId]
        Distinct cells in the order they are first encountered.

    Notes
    -----
    The path is sampled every ``max(path_min_step, fraction × length)``
    (by default every 1 km or 1% of the length, whichever is larger), and
    the end point is always sampled. A cell the path clips between two
    samples can be missed.
    """
    config = config or DEFAULT_CONFIG
    lon1, lat1 = (float(v) for v in start)
    lon2, lat2 = (float(v) for v in end)
    validate_lat_lon(lat1, lon1)
    validate_lat_lon(lat2, lon2)
    level = check_level(level)

    total_m = great_circle_distance(lat1, lon1, lat2, lon2)
    step_m = config.path_step_m(total_m)

    lats, lons = sample_great_circle(lat1, lon1, lat2, lon2, step_m)
    logger.debug(
        f"Path query: {total_m:.0f} m sampled every {step_m:.0f} m "
        f"({lats.size} samples) at level {level}"
    )

    return _dedupe(
        point_to_cell(float(lat), float(lon), level)
        for lat, lon in zip(lats, lons)
    )
