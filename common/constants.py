"""
Mesh Constants for the Hierarchical Icosahedral Cell Index.

This module provides the fixed numeric parameters of the mesh together with
their provenance. Every value that changes the identity of a cell (sphere
radius used for metrics, level limits, encoded widths) is defined here once.

References
----------
- Icosahedron construction: Coxeter, H.S.M. (1973). Regular Polytopes.
- Spherical excess: L'Huilier's theorem, Todhunter (1886), Spherical
  Trigonometry, §102.
- Mean Earth radius: IUGG, rounded to whole kilometres for mesh metrics.
"""

from dataclasses import dataclass
from typing import Final
import numpy as np


@dataclass(frozen=True)
class Constant:
    """A mesh constant with tolerance and provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    uncertainty : float
        The accepted numerical uncertainty of the constant (0 if exact).
    unit : str
        The unit of the constant.
    source : str
        Reference for the constant value.
    description : str
        Human-readable description of the constant.
    """
    value: float
    uncertainty: float
    unit: str
    source: str
    description: str


class MeshConstants:
    """Registry of constants used throughout the mesh.

    All constants are class attributes with full metadata.

    Sphere Model
    ------------
    The mesh lives on the unit sphere. Metric outputs (areas, perimeters,
    distances) are scaled by a single spherical Earth radius so that the
    numbers are reproducible across deployments and match already-issued
    cell metadata.

    Addressing
    ----------
    Level limits and encoded widths are part of the identifier wire format
    and must never change within a format version.
    """

    # =========================================================================
    # Sphere Model
    # =========================================================================

    SPHERE_RADIUS: Final[Constant] = Constant(
        value=6_371_000.0,
        uncertainty=0.0,  # Defined exactly for the mesh
        unit="m",
        source="IUGG mean radius, rounded",
        description="Radius of the sphere used for all mesh metric outputs"
    )

    GOLDEN_RATIO: Final[Constant] = Constant(
        value=(1.0 + np.sqrt(5.0)) / 2.0,
        uncertainty=0.0,
        unit="dimensionless",
        source="Coxeter, Regular Polytopes",
        description="Golden ratio used to place the icosahedron vertices"
    )

    BASE_SIDE_LENGTH: Final[Constant] = Constant(
        value=8_000_000.0,
        uncertainty=1_000_000.0,  # Seed edges are ~7,000 km on the ground
        unit="m",
        source="Mesh sizing convention",
        description="Nominal side length of a level-1 cell"
    )

    # =========================================================================
    # Numerical Tolerances
    # =========================================================================

    CONTAINMENT_TOLERANCE: Final[Constant] = Constant(
        value=1e-10,
        uncertainty=0.0,
        unit="dimensionless",
        source="Mesh convention",
        description="Non-strict tolerance on the sine of a point's angular "
                    "distance outside an edge in the point-in-triangle test"
    )

    UNIT_NORM_TOLERANCE: Final[Constant] = Constant(
        value=1e-9,
        uncertainty=0.0,
        unit="dimensionless",
        source="Mesh convention",
        description="Allowed deviation of a unit-sphere point's norm from 1"
    )

    # =========================================================================
    # Addressing
    # =========================================================================

    NUM_FACES: Final[int] = 20
    NUM_VERTICES: Final[int] = 12
    CHILDREN_PER_CELL: Final[int] = 4
    MIN_LEVEL: Final[int] = 1
    MAX_LEVEL: Final[int] = 21
    PATH_WIDTH: Final[int] = 20  # MAX_LEVEL - 1 digits, zero padded
    CHECKSUM_LENGTH: Final[int] = 3
    CHECKSUM_BITS: Final[int] = 15

    ID_PREFIX: Final[str] = "STEP-TRI-v1:"
    CHECKSUM_ALPHABET: Final[str] = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

    # =========================================================================
    # Query Defaults
    # =========================================================================

    DEFAULT_MAX_RESULTS: Final[int] = 10_000
    DEFAULT_NEAREST_COUNT: Final[int] = 10

    PATH_MIN_SAMPLE_STEP: Final[Constant] = Constant(
        value=1_000.0,
        uncertainty=0.0,
        unit="m",
        source="Mesh convention",
        description="Smallest spacing between samples along a path query"
    )

    PATH_SAMPLE_FRACTION: Final[float] = 0.01  # 1% of path length

    @staticmethod
    def face_char(face: int) -> str:
        """Letter used for a seed face in encoded identifiers (A=0 ... T=19)."""
        return chr(ord("A") + face)
