"""
STEP-TRI-v1 Cell Addressing Scheme.

Every cell of the mesh has a globally unique, deterministic text
identifier derived from its structured form (face, level, path).

Format
------
``STEP-TRI-v1:{faceChar}{level}-{pathDigits}-{checksum}``

- ``faceChar``: ``'A' + face`` (A=0 ... T=19)
- ``level``: decimal 1-21, no leading zeros
- ``pathDigits``: the path's quaternary digits, right-padded with ``0`` to
  20 characters (the path length at level 21). Padding is not part of
  the path.
- ``checksum``: first 15 bits of SHA-256 over ``{faceChar}{level}-{pathDigits}``
  written as 3 symbols of the alphabet ``A-Z2-7``, most significant first.

Examples
--------
- face=0, level=1: ``STEP-TRI-v1:A1-00000000000000000000-???``
- face=7, level=5, path=(0, 1, 3, 2): ``STEP-TRI-v1:H5-01320000000000000000-???``

The format is bit-exact: already-issued identifiers must keep decoding, so
nothing in this module may change its output for a given input.

Properties
----------
- Deterministic: the same cell always has the same identifier.
- Hierarchical: the parent is obtained by dropping the last path digit.
- Fixed width: identifiers of one level sort and compare as strings.
- Versioned: the prefix allows a future format to coexist.
"""

from dataclasses import dataclass
import hashlib
import re
from typing import List, Sequence, Tuple

import numpy as np
import pint

from common.constants import MeshConstants
from common.errors import CellFormatError, CellIntegrityError, CellValidationError
from common.types import CellId, check_level
from common.units import Q_


_FACE_LEVEL_RE = re.compile(r"^([A-Z])([1-9][0-9]?)$")
_PATH_RE = re.compile(r"^[0-3]{%d}$" % MeshConstants.PATH_WIDTH)


# =============================================================================
# Checksum
# =============================================================================

def _encode_base32(value: int, length: int) -> str:
    alphabet = MeshConstants.CHECKSUM_ALPHABET
    symbols = []
    for _ in range(length):
        symbols.append(alphabet[value % 32])
        value //= 32
    return "".join(reversed(symbols))


def compute_checksum(payload: str) -> str:
    """Compute the 3-symbol checksum of an identifier payload.

    Parameters
    ----------
    payload : str
        ``{faceChar}{level}-{pathDigits}``, exactly as it appears in the
        encoded identifier.

    Returns
    -------
    str
        3 characters from ``A-Z2-7``.

    Notes
    -----
    value = (h[0] << 7) | (h[1] >> 1), the first 15 bits of the SHA-256
    digest. 15 bits give 32,768 values, enough to catch transcription
    errors; this is an integrity check, not an authenticity proof.
    """
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    value = int.from_bytes(digest[:2], "big") >> (16 - MeshConstants.CHECKSUM_BITS)
    return _encode_base32(value, MeshConstants.CHECKSUM_LENGTH)


# =============================================================================
# Encode / Decode
# =============================================================================

def _payload(cell: CellId) -> str:
    face_char = MeshConstants.face_char(cell.face)
    path_str = "".join(str(d) for d in cell.path).ljust(MeshConstants.PATH_WIDTH, "0")
    return f"{face_char}{cell.level}-{path_str}"


def encode_cell_id(cell: CellId) -> str:
    """Encode a cell identifier to its STEP-TRI-v1 string.

    Parameters
    ----------
    cell : CellId
        Identifier to encode. Any object with ``face``, ``level`` and
        ``path`` attributes is accepted and validated.

    Returns
    -------
    str
        Encoded identifier with checksum.

    Raises
    ------
    CellValidationError
        If face, level or path are out of range or inconsistent.
    """
    cell = CellId(face=cell.face, level=cell.level, path=tuple(cell.path))
    payload = _payload(cell)
    return f"{MeshConstants.ID_PREFIX}{payload}-{compute_checksum(payload)}"


def decode_cell_id(encoded: str) -> CellId:
    """Decode a STEP-TRI-v1 string to a cell identifier.

    Parameters
    ----------
    encoded : str
        Encoded identifier.

    Returns
    -------
    CellId
        The decoded identifier; path padding is discarded.

    Raises
    ------
    CellFormatError
        If the string is not shaped like an identifier: missing prefix,
        not exactly 3 dash-separated segments, face letter outside A-T,
        non-numeric or out-of-range level, or path segment that is not 20
        digits 0-3.
    CellIntegrityError
        If the string is well formed but its checksum does not match.
        None of its fields should be trusted.
    """
    if not isinstance(encoded, str):
        raise CellFormatError(
            f"Invalid cell ID: expected str, got {type(encoded).__name__}."
        )

    prefix = MeshConstants.ID_PREFIX
    if not encoded.startswith(prefix):
        raise CellFormatError(
            f"Invalid cell ID format: missing {prefix!r} prefix in {encoded!r}."
        )

    parts = encoded[len(prefix):].split("-")
    if len(parts) != 3:
        raise CellFormatError(
            f"Invalid cell ID format: expected 3 dash-separated parts after the "
            f"prefix, got {len(parts)} in {encoded!r}."
        )

    face_level, path_str, provided_checksum = parts

    match = _FACE_LEVEL_RE.match(face_level)
    if match is None:
        raise CellFormatError(
            f"Invalid face/level segment: {face_level!r}. Expected a face letter "
            f"A-T followed by a level 1-{MeshConstants.MAX_LEVEL}."
        )
    face_char, level_str = match.groups()

    face = ord(face_char) - ord("A")
    if face >= MeshConstants.NUM_FACES:
        raise CellFormatError(f"Invalid face character: {face_char!r}. Must be A-T.")

    level = int(level_str)
    if not MeshConstants.MIN_LEVEL <= level <= MeshConstants.MAX_LEVEL:
        raise CellFormatError(
            f"Invalid level: {level}. Must be "
            f"{MeshConstants.MIN_LEVEL}-{MeshConstants.MAX_LEVEL}."
        )

    if not _PATH_RE.match(path_str):
        raise CellFormatError(
            f"Invalid path segment: {path_str!r}. Must be exactly "
            f"{MeshConstants.PATH_WIDTH} digits 0-3."
        )

    # Any checksum segment that differs from the recomputed one, including
    # one with foreign characters, is a content mismatch rather than a shape error
    computed_checksum = compute_checksum(f"{face_level}-{path_str}")
    if computed_checksum != provided_checksum:
        raise CellIntegrityError(
            f"Checksum mismatch: expected {computed_checksum}, got {provided_checksum}",
            expected=computed_checksum,
            received=provided_checksum
        )

    path = tuple(int(c) for c in path_str[:level - 1])
    return CellId(face=face, level=level, path=path)


def is_valid_encoded(encoded: str) -> bool:
    """Whether a string decodes cleanly (format and checksum)."""
    try:
        decode_cell_id(encoded)
    except (CellFormatError, CellIntegrityError):
        return False
    return True


# =============================================================================
# Hierarchy Navigation
# =============================================================================

def root_cells() -> List[CellId]:
    """The 20 level-1 identifiers, face 0 first."""
    return [CellId.root(face) for face in range(MeshConstants.NUM_FACES)]


def parent_of(cell: CellId) -> CellId:
    """Get the parent identifier (one level up).

    Raises
    ------
    CellValidationError
        If ``cell`` is at level 1.

    Examples
    --------
    >>> parent_of(CellId(7, 5, (0, 1, 3, 2)))
    CellId(face=7, level=4, path=(0, 1, 3))
    """
    if cell.level == MeshConstants.MIN_LEVEL:
        raise CellValidationError(
            f"Level {MeshConstants.MIN_LEVEL} cells have no parent (face={cell.face})."
        )
    return CellId(face=cell.face, level=cell.level - 1, path=cell.path[:-1])


def children_of(cell: CellId) -> Tuple[CellId, CellId, CellId, CellId]:
    """Get the 4 child identifiers (one level down), digits 0 to 3.

    Raises
    ------
    CellValidationError
        If ``cell`` is at level 21 (maximum depth).
    """
    if cell.level == MeshConstants.MAX_LEVEL:
        raise CellValidationError(
            f"Level {MeshConstants.MAX_LEVEL} cells cannot subdivide (max depth)."
        )
    return tuple(
        CellId(face=cell.face, level=cell.level + 1, path=cell.path + (digit,))
        for digit in range(MeshConstants.CHILDREN_PER_CELL)
    )


def ancestor_at(cell: CellId, level: int) -> CellId:
    """Get the ancestor of ``cell`` at a coarser (or equal) level.

    Raises
    ------
    CellValidationError
        If ``level`` is invalid or finer than ``cell.level``.
    """
    level = check_level(level)
    if level > cell.level:
        raise CellValidationError(
            f"Invalid ancestor level: {level}. Must be 1-{cell.level} for a "
            f"level-{cell.level} cell."
        )
    return CellId(face=cell.face, level=level, path=cell.path[:level - 1])


def is_ancestor(ancestor: CellId, cell: CellId) -> bool:
    """Whether ``ancestor`` strictly contains ``cell`` in the hierarchy."""
    return (
        ancestor.face == cell.face
        and ancestor.level < cell.level
        and cell.path[:len(ancestor.path)] == ancestor.path
    )


# =============================================================================
# Path Packing
# =============================================================================

def path_to_int(path: Sequence[int]) -> int:
    """Pack a path into an integer, 2 bits per digit, first digit most significant.

    A full 20-digit path needs 40 bits, well within a 64-bit integer.

    Examples
    --------
    >>> path_to_int([0, 1, 3, 2])
    30
    """
    if len(path) > MeshConstants.PATH_WIDTH:
        raise CellValidationError(
            f"Invalid path length: {len(path)}. Must be 0-{MeshConstants.PATH_WIDTH}."
        )
    value = 0
    for digit in path:
        if isinstance(digit, bool) or not isinstance(digit, (int, np.integer)) \
                or not 0 <= digit <= 3:
            raise CellValidationError(f"Invalid path digit: {digit!r}. Must be 0-3.")
        value = (value << 2) | int(digit)
    return value


def int_to_path(value: int, length: int) -> Tuple[int, ...]:
    """Unpack an integer produced by :func:`path_to_int`.

    Parameters
    ----------
    value : int
        Packed path, in [0, 4**length).
    length : int
        Number of digits, 0-20.

    Returns
    -------
    Tuple[int, ...]
        The path digits.
    """
    if not 0 <= length <= MeshConstants.PATH_WIDTH:
        raise CellValidationError(
            f"Invalid path length: {length}. Must be 0-{MeshConstants.PATH_WIDTH}."
        )
    if not 0 <= value < 4 ** length:
        raise CellValidationError(
            f"Invalid packed path: {value}. Must be 0-{4 ** length - 1} for length {length}."
        )
    digits = []
    for _ in range(length):
        digits.append(value & 3)
        value >>= 2
    return tuple(reversed(digits))


# =============================================================================
# Level Statistics
# =============================================================================

def cell_count_at_level(level: int) -> int:
    """Total number of cells at a level: 20 × 4^(level - 1).

    Level 21 has 21,990,232,555,520 cells; Python integers are exact at
    every level.
    """
    level = check_level(level)
    return MeshConstants.NUM_FACES * 4 ** (level - 1)


def approx_side_length_m(level: int) -> float:
    """Approximate side length of cells at a level, in meters.

    Formula: 8,000 km / 2^(level - 1). Level 1 ≈ 8,000 km, level 10 ≈
    15.6 km, level 21 ≈ 7.6 m.
    """
    level = check_level(level)
    return MeshConstants.BASE_SIDE_LENGTH.value / 2 ** (level - 1)


@dataclass(frozen=True)
class LevelSummary:
    """Size figures for one subdivision level.

    Attributes
    ----------
    level : int
        Subdivision level.
    cell_count : int
        Number of cells covering the sphere.
    side_length : pint.Quantity
        Approximate cell side length.
    mean_cell_area : pint.Quantity
        Sphere area divided by the cell count.
    """
    level: int
    cell_count: int
    side_length: pint.Quantity
    mean_cell_area: pint.Quantity


def level_summary(level: int) -> LevelSummary:
    """Describe cell count and sizes at a level, with units."""
    count = cell_count_at_level(level)
    radius = MeshConstants.SPHERE_RADIUS.value
    sphere_area = 4.0 * np.pi * radius ** 2
    return LevelSummary(
        level=level,
        cell_count=count,
        side_length=Q_(approx_side_length_m(level), "m"),
        mean_cell_area=Q_(sphere_area / count, "m**2"),
    )
