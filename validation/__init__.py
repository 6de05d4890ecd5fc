"""
Validation Framework for the Cell Mesh.

This module provides consistency checks over geometry, addressing and
lookup.
"""

from validation.mesh_checks import (
    ValidationResult,
    MeshConsistencyChecker,
    sample_cells,
)

__all__ = [
    "ValidationResult",
    "MeshConsistencyChecker",
    "sample_cells",
]
