"""
Common utilities and infrastructure for the Hierarchical Cell Index.

This package provides foundational components used across all modules:
- Mesh constants with provenance
- Exception hierarchy (validation vs. integrity failures)
- Value types (cell identifiers, bounding boxes)
- Unit registry for metric outputs
- Logging infrastructure
"""

from common.constants import MeshConstants
from common.errors import (
    MeshError,
    CellValidationError,
    CellFormatError,
    CellIntegrityError,
    MeshConsistencyError,
)
from common.types import CellId, BoundingBox
from common.units import ureg, Q_, ensure_quantity
from common.logging_config import get_logger

__all__ = [
    "MeshConstants",
    "MeshError",
    "CellValidationError",
    "CellFormatError",
    "CellIntegrityError",
    "MeshConsistencyError",
    "CellId",
    "BoundingBox",
    "ureg",
    "Q_",
    "ensure_quantity",
    "get_logger",
]
