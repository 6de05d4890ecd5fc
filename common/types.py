"""
Type Definitions for the Hierarchical Cell Index.

This module defines the value types exchanged between the mesh modules and
their callers. All of them are immutable and compare by value; none is ever
stored or mutated by the index itself.

Design Rationale
----------------
Using frozen dataclasses instead of raw tuples/dicts provides:
1. Validation at construction - an invalid CellId cannot exist
2. Hashability - ids can be used in sets and as dict keys
3. Clear field names in tracebacks and logs
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

from common.constants import MeshConstants
from common.errors import CellValidationError


def check_level(level: Any) -> int:
    if isinstance(level, bool) or not isinstance(level, (int, np.integer)):
        raise CellValidationError(
            f"Invalid level: {level!r}. Must be an integer "
            f"{MeshConstants.MIN_LEVEL}-{MeshConstants.MAX_LEVEL}."
        )
    if not MeshConstants.MIN_LEVEL <= level <= MeshConstants.MAX_LEVEL:
        raise CellValidationError(
            f"Invalid level: {level}. Must be "
            f"{MeshConstants.MIN_LEVEL}-{MeshConstants.MAX_LEVEL}."
        )
    return int(level)


def check_face(face: Any) -> int:
    if isinstance(face, bool) or not isinstance(face, (int, np.integer)):
        raise CellValidationError(
            f"Invalid face: {face!r}. Must be an integer 0-{MeshConstants.NUM_FACES - 1}."
        )
    if not 0 <= face < MeshConstants.NUM_FACES:
        raise CellValidationError(
            f"Invalid face: {face}. Must be 0-{MeshConstants.NUM_FACES - 1}."
        )
    return int(face)


@dataclass(frozen=True)
class CellId:
    """Structured identifier of one cell of the mesh.

    Attributes
    ----------
    face : int
        Seed face index, 0-19.
    level : int
        Subdivision depth, 1 (seed faces) to 21.
    path : Tuple[int, ...]
        Child choices from the seed face down to this cell, one digit 0-3
        per subdivision. Length is always ``level - 1``.

    Notes
    -----
    Child digit ``i`` always denotes the i-th triangle returned by
    :func:`mesh.icosahedron.subdivide_triangle`: 0, 1, 2 are the corner
    children at the parent's v0, v1, v2 and 3 is the centre child.

    Examples
    --------
    >>> cell = CellId(face=7, level=5, path=(0, 1, 3, 2))
    >>> cell == CellId(7, 5, [0, 1, 3, 2])
    True
    """
    face: int
    level: int
    path: Tuple[int, ...] = ()

    def __post_init__(self):
        """Validate ranges and normalize the path to a tuple of ints."""
        face = check_face(self.face)
        level = check_level(self.level)

        path = tuple(self.path)
        if len(path) != level - 1:
            raise CellValidationError(
                f"Path length mismatch: level={level} requires path length="
                f"{level - 1}, got {len(path)}."
            )
        digits = []
        for digit in path:
            if isinstance(digit, bool) or not isinstance(digit, (int, np.integer)) \
                    or not 0 <= digit < MeshConstants.CHILDREN_PER_CELL:
                raise CellValidationError(
                    f"Invalid path digit: {digit!r}. Must be 0-3."
                )
            digits.append(int(digit))

        object.__setattr__(self, "face", face)
        object.__setattr__(self, "level", level)
        object.__setattr__(self, "path", tuple(digits))

    @classmethod
    def root(cls, face: int) -> 'CellId':
        """Create the level-1 identifier of a seed face."""
        return cls(face=face, level=1, path=())

    @property
    def is_root(self) -> bool:
        """Whether this is a seed-level (level 1) cell."""
        return self.level == MeshConstants.MIN_LEVEL

    @property
    def is_leaf_level(self) -> bool:
        """Whether this cell is at the maximum subdivision depth."""
        return self.level == MeshConstants.MAX_LEVEL

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form for JSON serialization."""
        return {"face": self.face, "level": self.level, "path": list(self.path)}


@dataclass(frozen=True)
class BoundingBox:
    """A geographic bounding box in degrees.

    Attributes
    ----------
    west, south, east, north : float
        Box edges in degrees. Longitudes in [-180, 180], latitudes in
        [-90, 90], ``south <= north``.

    Notes
    -----
    Following RFC 7946 §5.2, a box with ``west > east`` crosses the
    antimeridian and covers ``[west, 180] ∪ [-180, east]``.
    """
    west: float
    south: float
    east: float
    north: float

    def __post_init__(self):
        """Validate edge ranges and ordering."""
        for name in ("west", "east"):
            value = getattr(self, name)
            if not np.isfinite(value) or not -180.0 <= value <= 180.0:
                raise CellValidationError(
                    f"Invalid longitude in bbox: {name}={value}. Must be -180 to +180."
                )
        for name in ("south", "north"):
            value = getattr(self, name)
            if not np.isfinite(value) or not -90.0 <= value <= 90.0:
                raise CellValidationError(
                    f"Invalid latitude in bbox: {name}={value}. Must be -90 to +90."
                )
        if self.south > self.north:
            raise CellValidationError(
                f"Invalid bbox: south ({self.south}) > north ({self.north})."
            )

    @classmethod
    def from_sequence(cls, bbox: Sequence[float]) -> 'BoundingBox':
        """Create from ``[west, south, east, north]``."""
        if isinstance(bbox, BoundingBox):
            return bbox
        if len(bbox) != 4:
            raise CellValidationError(
                f"Invalid bbox: expected [west, south, east, north], got {list(bbox)!r}."
            )
        west, south, east, north = (float(v) for v in bbox)
        return cls(west=west, south=south, east=east, north=north)

    @property
    def crosses_antimeridian(self) -> bool:
        """Whether the box wraps across ±180° longitude."""
        return self.west > self.east

    def parts(self) -> List[Tuple[float, float, float, float]]:
        """Split into non-wrapping ``(west, south, east, north)`` boxes."""
        if self.crosses_antimeridian:
            return [
                (self.west, self.south, 180.0, self.north),
                (-180.0, self.south, self.east, self.north),
            ]
        return [(self.west, self.south, self.east, self.north)]


# Type aliases for array and GeoJSON types
UnitVector = NDArray[np.float64]  # Shape: (3,), norm 1
TriangleVertices = Tuple[UnitVector, UnitVector, UnitVector]
GeoJSONGeometry = Dict[str, Any]  # RFC 7946 geometry dict, [lon, lat] order
