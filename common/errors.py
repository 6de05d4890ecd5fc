"""
Exception Types for the Cell Index.

Two families of failure are distinguished:

- Validation errors: the caller passed something outside the valid domain
  (coordinates, levels, face indices, bounding boxes, malformed encoded
  identifiers). The message always names the offending value and the
  valid range.
- Integrity errors: an encoded identifier is well formed but its checksum
  does not match its payload. None of its embedded fields can be trusted.

All errors derive from ``ValueError`` so existing callers that guard
against bad input keep working.
"""


class MeshError(ValueError):
    """Base class for all errors raised by the cell index."""


class CellValidationError(MeshError):
    """An input lies outside its valid domain."""


class CellFormatError(CellValidationError):
    """An encoded cell identifier is malformed."""


class CellIntegrityError(MeshError):
    """An encoded cell identifier failed checksum verification.

    Attributes
    ----------
    expected : str
        Checksum recomputed from the payload.
    received : str
        Checksum carried by the encoded string.
    """

    def __init__(self, message: str, expected: str = "", received: str = ""):
        super().__init__(message)
        self.expected = expected
        self.received = received


class MeshConsistencyError(MeshError):
    """A mesh consistency check failed in strict mode."""
