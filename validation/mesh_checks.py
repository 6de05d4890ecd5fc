"""
Consistency Checks for the Cell Mesh.

This module provides checks verifying that the mesh and its identifiers
obey the properties every consumer relies on.

Check Categories
----------------
1. Conservation (children areas sum to the parent area, faces tile the sphere)
2. Codec integrity (encode/decode round trip)
3. Hierarchy (parent_of inverts children_of)
4. Lookup (returned cells contain the query point, whole-world coverage)

Checks return :class:`ValidationResult` records rather than raising, so a
caller can run them all and report. With ``strict_mode`` the first failure
raises :class:`MeshConsistencyError` instead.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import numpy as np

from common.constants import MeshConstants
from common.errors import CellIntegrityError, CellValidationError, MeshConsistencyError
from common.logging_config import get_logger
from common.types import CellId
from geospatial.coordinate_models import spherical_to_cartesian
from mesh.addressing import children_of, decode_cell_id, encode_cell_id, parent_of
from mesh.icosahedron import is_point_in_spherical_triangle, subdivide_triangle
from mesh.lookup import cells_in_bbox, point_to_cell
from mesh.polygon import cell_to_unit_vertices, triangle_area_steradians

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes
    ----------
    test_name : str
        Name of the check.
    passed : bool
        Whether the check passed.
    message : str
        Description of result.
    details : dict
        Additional details.
    """
    test_name: str
    passed: bool
    message: str
    details: Dict[str, Any]


def sample_cells(level: int, count: int, seed: int = 0) -> List[CellId]:
    """Draw reproducible pseudo-random cells at a level.

    Parameters
    ----------
    level : int
        Level of the sampled cells.
    count : int
        Number of cells.
    seed : int
        Random seed; equal seeds give equal samples.
    """
    rng = np.random.default_rng(seed)
    faces = rng.integers(0, MeshConstants.NUM_FACES, size=count)
    paths = rng.integers(0, MeshConstants.CHILDREN_PER_CELL, size=(count, level - 1))
    return [
        CellId(face=int(face), level=level, path=tuple(int(d) for d in path))
        for face, path in zip(faces, paths)
    ]


class MeshConsistencyChecker:
    """Checker for geometric and addressing consistency of the mesh.

    Examples
    --------
    >>> checker = MeshConsistencyChecker()
    >>> all(r.passed for r in checker.check_all(levels=(1, 2)))
    True
    """

    def __init__(
        self,
        strict_mode: bool = False,
        log_violations: bool = True
    ):
        """Initialize mesh checker.

        Parameters
        ----------
        strict_mode : bool
            If True, raise MeshConsistencyError on the first failed check.
        log_violations : bool
            Whether to log failed checks.
        """
        self.strict_mode = strict_mode
        self.log_violations = log_violations
        self._logger = get_logger("MeshConsistencyChecker")

    def _report(self, result: ValidationResult) -> ValidationResult:
        if not result.passed:
            if self.log_violations:
                self._logger.warning(f"{result.test_name} failed: {result.message}")
            if self.strict_mode:
                raise MeshConsistencyError(f"{result.test_name}: {result.message}")
        return result

    def check_all(
        self,
        levels: Sequence[int] = (1, 5, 10),
        samples_per_level: int = 32
    ) -> List[ValidationResult]:
        """Run every check.

        Parameters
        ----------
        levels : sequence of int
            Levels at which sampled cells and lookups are checked.
        samples_per_level : int
            Number of random cells per level.

        Returns
        -------
        List[ValidationResult]
            Results of all checks.
        """
        results = []

        # 1. Faces tile the sphere
        results.append(self.check_total_area())

        for level in levels:
            cells = sample_cells(level, samples_per_level, seed=level)

            # 2. Area conservation under subdivision
            if level < MeshConstants.MAX_LEVEL:
                results.append(self.check_area_conservation(cells))

            # 3. Codec round trip
            results.append(self.check_round_trip(cells))

            # 4. Hierarchy
            if level < MeshConstants.MAX_LEVEL:
                results.append(self.check_parent_child(cells))

            # 5. Point lookup containment
            results.append(self.check_point_containment(level))

        # 6. Whole-world coverage
        results.append(self.check_world_coverage())

        return results

    def check_total_area(self, rel_tol: float = 1e-9) -> ValidationResult:
        """Check that the 20 seed faces cover exactly 4π steradians."""
        total = sum(
            triangle_area_steradians(*cell_to_unit_vertices(CellId.root(face)))
            for face in range(MeshConstants.NUM_FACES)
        )
        rel_error = abs(total - 4.0 * np.pi) / (4.0 * np.pi)

        return self._report(ValidationResult(
            test_name="total_area",
            passed=rel_error <= rel_tol,
            message=f"Seed faces cover {total:.12f} sr (relative error {rel_error:.2e})",
            details={
                'total_sr': total,
                'relative_error': rel_error,
                'tolerance': rel_tol,
            }
        ))

    def check_area_conservation(
        self,
        cells: Sequence[CellId],
        rel_tol: float = 1e-3
    ) -> ValidationResult:
        """Check that the 4 children of each cell sum to the cell's area."""
        worst = 0.0
        worst_cell: Optional[CellId] = None

        for cell in cells:
            vertices = cell_to_unit_vertices(cell)
            parent_area = triangle_area_steradians(*vertices)
            child_area = sum(
                triangle_area_steradians(*child) for child in subdivide_triangle(*vertices)
            )
            rel_error = abs(child_area - parent_area) / parent_area
            if rel_error > worst:
                worst, worst_cell = rel_error, cell

        return self._report(ValidationResult(
            test_name="area_conservation",
            passed=worst <= rel_tol,
            message=f"Area conservation: worst relative error {worst:.2e} "
                    f"over {len(cells)} cells",
            details={
                'worst_relative_error': worst,
                'worst_cell': worst_cell,
                'tolerance': rel_tol,
                'num_cells': len(cells),
            }
        ))

    def check_round_trip(self, cells: Sequence[CellId]) -> ValidationResult:
        """Check that decoding an encoded identifier reproduces it."""
        failures = []
        for cell in cells:
            encoded = encode_cell_id(cell)
            try:
                decoded = decode_cell_id(encoded)
            except (CellValidationError, CellIntegrityError) as e:
                failures.append((encoded, str(e)))
                continue
            if decoded != cell:
                failures.append((encoded, repr(decoded)))

        return self._report(ValidationResult(
            test_name="round_trip",
            passed=not failures,
            message=f"Round trip: {len(failures)} of {len(cells)} identifiers failed",
            details={'failures': failures, 'num_cells': len(cells)}
        ))

    def check_parent_child(self, cells: Sequence[CellId]) -> ValidationResult:
        """Check that parent_of inverts each of children_of."""
        failures = [
            (cell, child)
            for cell in cells
            for child in children_of(cell)
            if parent_of(child) != cell
        ]

        return self._report(ValidationResult(
            test_name="parent_child",
            passed=not failures,
            message=f"Parent/child inverse: {len(failures)} violations",
            details={'failures': failures, 'num_cells': len(cells)}
        ))

    def check_point_containment(
        self,
        level: int,
        lat_step: float = 15.0,
        lon_step: float = 30.0
    ) -> ValidationResult:
        """Check that point_to_cell returns a cell containing the point.

        Points are taken on a regular latitude/longitude grid including
        both poles and the antimeridian.
        """
        failures = []
        num_points = 0

        for lat in np.arange(-90.0, 90.0 + lat_step / 2, lat_step):
            for lon in np.arange(-180.0, 180.0 + lon_step / 2, lon_step):
                num_points += 1
                lat_f, lon_f = float(min(lat, 90.0)), float(min(lon, 180.0))
                cell = point_to_cell(lat_f, lon_f, level)
                point = spherical_to_cartesian(lat_f, lon_f)
                if cell is None or not is_point_in_spherical_triangle(
                    point, *cell_to_unit_vertices(cell)
                ):
                    failures.append((lat_f, lon_f, cell))

        return self._report(ValidationResult(
            test_name="point_containment",
            passed=not failures,
            message=f"Point containment at level {level}: "
                    f"{len(failures)} of {num_points} points outside their cell",
            details={'failures': failures, 'level': level, 'num_points': num_points}
        ))

    def check_world_coverage(self) -> ValidationResult:
        """Check that a whole-world box at level 1 yields each seed face once."""
        cells = cells_in_bbox(
            [-180.0, -90.0, 180.0, 90.0], 1, max_results=MeshConstants.NUM_FACES
        )
        faces = [cell.face for cell in cells]
        expected = list(range(MeshConstants.NUM_FACES))

        return self._report(ValidationResult(
            test_name="world_coverage",
            passed=sorted(faces) == expected,
            message=f"Whole-world search returned {len(cells)} seed cells",
            details={'faces': faces}
        ))
