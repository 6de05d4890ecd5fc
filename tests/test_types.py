"""Tests for identifier and bounding-box value types."""

import numpy as np
import pytest

from common.errors import CellValidationError, MeshError
from common.types import BoundingBox, CellId


class TestCellId:

    def test_path_normalized_to_int_tuple(self):
        cell = CellId(np.int64(3), 4, [np.int64(1), 2, 3])
        assert cell.path == (1, 2, 3)
        assert type(cell.face) is int
        assert all(type(d) is int for d in cell.path)

    def test_value_equality_and_hashing(self):
        a = CellId(7, 5, (0, 1, 3, 2))
        b = CellId(7, 5, [0, 1, 3, 2])
        assert a == b
        assert len({a, b}) == 1

    def test_immutable(self):
        cell = CellId.root(0)
        with pytest.raises(AttributeError):
            cell.level = 2

    def test_root(self):
        root = CellId.root(19)
        assert root.is_root
        assert not root.is_leaf_level
        assert root.to_dict() == {"face": 19, "level": 1, "path": []}

    def test_leaf_level(self):
        assert CellId(0, 21, (0,) * 20).is_leaf_level

    @pytest.mark.parametrize("face,level,path", [
        (20, 1, ()),
        (-1, 1, ()),
        (True, 1, ()),
        (0, 0, ()),
        (0, 22, (0,) * 21),
        (0, 2.0, (0,)),
        (0, 3, (0,)),
        (0, 2, (4,)),
        (0, 2, (-1,)),
        (0, 2, (False,)),
        (0, 2, ("1",)),
    ])
    def test_invalid(self, face, level, path):
        with pytest.raises(CellValidationError):
            CellId(face, level, path)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            CellId(0, 2, ())
        assert issubclass(CellValidationError, MeshError)


class TestBoundingBox:

    def test_from_sequence(self):
        bbox = BoundingBox.from_sequence([1, 2, 3, 4])
        assert (bbox.west, bbox.south, bbox.east, bbox.north) == (1.0, 2.0, 3.0, 4.0)
        assert BoundingBox.from_sequence(bbox) is bbox

    def test_parts_regular(self):
        bbox = BoundingBox(-10.0, -5.0, 10.0, 5.0)
        assert not bbox.crosses_antimeridian
        assert bbox.parts() == [(-10.0, -5.0, 10.0, 5.0)]

    def test_parts_crossing_antimeridian(self):
        bbox = BoundingBox(170.0, -5.0, -170.0, 5.0)
        assert bbox.crosses_antimeridian
        assert bbox.parts() == [(170.0, -5.0, 180.0, 5.0), (-180.0, -5.0, -170.0, 5.0)]

    @pytest.mark.parametrize("values", [
        [0.0, 10.0, 1.0, 5.0],
        [-181.0, 0.0, 0.0, 1.0],
        [0.0, 0.0, 0.0, 91.0],
        [0.0, float("nan"), 1.0, 1.0],
        [0.0, 1.0, 2.0],
    ])
    def test_invalid(self, values):
        with pytest.raises(CellValidationError):
            BoundingBox.from_sequence(values)
