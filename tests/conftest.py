"""Shared fixtures for the cell index tests."""

import numpy as np
import pytest

from common.types import CellId
from validation.mesh_checks import sample_cells


BUDAPEST = (47.4979, 19.0402)


@pytest.fixture
def budapest():
    """(lat, lon) of Budapest."""
    return BUDAPEST


@pytest.fixture
def sample_cell():
    return CellId(face=7, level=5, path=(0, 1, 3, 2))


@pytest.fixture(params=[1, 2, 5, 10, 21])
def random_cells(request):
    """Reproducible random cells at several levels, including the maximum."""
    return sample_cells(request.param, 16, seed=request.param)


@pytest.fixture
def latlon_grid():
    """Coarse global grid including both poles and the antimeridian."""
    lats = np.arange(-90.0, 90.0 + 1e-9, 10.0)
    lons = np.arange(-180.0, 180.0 + 1e-9, 20.0)
    return [(float(lat), float(lon)) for lat in lats for lon in lons]
