"""Tests for point, bounding-box, nearest and path queries."""

import importlib
import logging

import pytest

from common.constants import MeshConstants
from common.errors import CellValidationError
from common.types import CellId
from common.units import Q_
from geospatial.coordinate_models import cartesian_to_spherical, spherical_to_cartesian
from geospatial.distance_calculations import great_circle_distance
from mesh.addressing import children_of, parent_of, root_cells
from mesh.icosahedron import (
    ICOSAHEDRON_VERTICES,
    geodesic_midpoint,
    get_face_vertices,
    is_point_in_spherical_triangle,
)
from mesh.lookup import (
    LookupConfig,
    cells_along_path,
    cells_in_bbox,
    is_point_in_cell,
    nearest_cells,
    point_to_cell,
)
from mesh.polygon import cell_to_centroid, cell_to_unit_vertices


WORLD = [-180.0, -90.0, 180.0, 90.0]
VIENNA = (48.2082, 16.3738)


class TestPointToCell:

    def test_budapest_level_1(self, budapest):
        cell = point_to_cell(*budapest, 1)
        assert cell.level == 1
        assert cell.path == ()

    def test_budapest_level_5_ancestry(self, budapest):
        coarse = point_to_cell(*budapest, 1)
        fine = point_to_cell(*budapest, 5)
        assert fine.level == 5
        assert len(fine.path) == 4

        cell = fine
        for _ in range(4):
            cell = parent_of(cell)
        assert cell == coarse

    @pytest.mark.parametrize("level", [1, 5, 10])
    def test_containment_grid(self, latlon_grid, level):
        for lat, lon in latlon_grid:
            cell = point_to_cell(lat, lon, level)
            assert cell is not None
            assert cell.level == level
            point = spherical_to_cartesian(lat, lon)
            assert is_point_in_spherical_triangle(point, *cell_to_unit_vertices(cell))

    def test_nested_levels_agree(self, budapest):
        cells = [point_to_cell(*budapest, level) for level in range(1, 22)]
        for parent, child in zip(cells, cells[1:]):
            assert parent_of(child) == parent

    def test_determinism_interior_point(self, budapest):
        results = {point_to_cell(*budapest, 12) for _ in range(5)}
        assert len(results) == 1

    @pytest.mark.parametrize("point", [
        geodesic_midpoint(*get_face_vertices(0)[:2]),
        ICOSAHEDRON_VERTICES[5],
        geodesic_midpoint(
            geodesic_midpoint(*get_face_vertices(9)[:2]),
            get_face_vertices(9)[2]
        ),
    ])
    def test_determinism_on_shared_edges(self, point):
        lat, lon = cartesian_to_spherical(point)
        first = point_to_cell(lat, lon, 8)
        for _ in range(3):
            assert point_to_cell(lat, lon, 8) == first
        assert is_point_in_cell(lat, lon, first)

    def test_poles(self):
        for lat in (90.0, -90.0):
            for lon in (0.0, 123.0, -180.0):
                cell = point_to_cell(lat, lon, 6)
                assert is_point_in_cell(lat, lon, cell)

    def test_antimeridian_longitudes_agree(self):
        assert point_to_cell(50.0, 180.0, 7) == point_to_cell(50.0, -180.0, 7)

    def test_boundary_fallback_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="mesh.lookup")
        lat, lon = cartesian_to_spherical(geodesic_midpoint(*get_face_vertices(0)[:2]))
        point_to_cell(lat, lon, 2)
        assert any("Boundary fallback" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize("lat,lon,level", [
        (91.0, 0.0, 1),
        (-90.5, 0.0, 1),
        (0.0, 180.5, 1),
        (float("nan"), 0.0, 1),
        (0.0, 0.0, 0),
        (0.0, 0.0, 22),
    ])
    def test_invalid_inputs(self, lat, lon, level):
        with pytest.raises(CellValidationError):
            point_to_cell(lat, lon, level)


class TestIsPointInCell:

    def test_inside_and_outside(self, budapest):
        cell = point_to_cell(*budapest, 5)
        assert is_point_in_cell(*budapest, cell)
        assert not is_point_in_cell(-47.4979, -160.9598, cell)


class TestCellsInBbox:

    def test_whole_world_level_1(self):
        cells = cells_in_bbox(WORLD, 1, 20)
        assert cells == root_cells()

    def test_whole_world_level_2(self):
        cells = cells_in_bbox(WORLD, 2)
        assert len(cells) == 80
        assert len(set(cells)) == 80

    def test_depth_first_order_and_truncation(self, caplog):
        caplog.set_level(logging.INFO, logger="mesh.lookup")
        cells = cells_in_bbox(WORLD, 3, max_results=5)
        assert cells == [
            CellId(0, 3, (0, 0)),
            CellId(0, 3, (0, 1)),
            CellId(0, 3, (0, 2)),
            CellId(0, 3, (0, 3)),
            CellId(0, 3, (1, 0)),
        ]
        assert any("truncated" in r.getMessage() for r in caplog.records)

    def test_small_box(self, budapest):
        lat, lon = budapest
        bbox = [lon - 0.1, lat - 0.1, lon + 0.1, lat + 0.1]
        cells = cells_in_bbox(bbox, 5)

        centre = point_to_cell((bbox[1] + bbox[3]) / 2, (bbox[0] + bbox[2]) / 2, 5)
        assert centre in cells
        assert all(c.level == 5 for c in cells)
        assert point_to_cell(-lat, lon - 180.0, 5) not in cells

    def test_point_box(self, budapest):
        lat, lon = budapest
        cells = cells_in_bbox([lon, lat, lon, lat], 5)
        assert point_to_cell(lat, lon, 5) in cells

    def test_box_crossing_antimeridian(self):
        cells = cells_in_bbox([170.0, -10.0, -170.0, 10.0], 3)
        assert point_to_cell(0.0, 175.0, 3) in cells
        assert point_to_cell(0.0, -175.0, 3) in cells
        assert len(set(cells)) == len(cells)
        assert point_to_cell(0.0, 0.0, 3) not in cells

    def test_polar_box(self):
        cells = cells_in_bbox([-180.0, 85.0, 180.0, 90.0], 4)
        assert point_to_cell(90.0, 0.0, 4) in cells
        assert point_to_cell(87.0, 45.0, 4) in cells
        assert point_to_cell(0.0, 0.0, 4) not in cells

    def test_finer_level_refines_coarser(self, budapest):
        lat, lon = budapest
        bbox = [lon - 1.0, lat - 1.0, lon + 1.0, lat + 1.0]
        coarse = set(cells_in_bbox(bbox, 4))
        for cell in cells_in_bbox(bbox, 6):
            assert parent_of(parent_of(cell)) in coarse

    @pytest.mark.parametrize("bbox", [
        [10.0, 50.0, 20.0, 40.0],
        [0.0, 0.0, 200.0, 10.0],
        [0.0, -95.0, 10.0, 10.0],
        [0.0, 0.0, 10.0],
    ])
    def test_invalid_bbox(self, bbox):
        with pytest.raises(CellValidationError):
            cells_in_bbox(bbox, 2)

    @pytest.mark.parametrize("max_results", [0, -1, 2.5])
    def test_invalid_max_results(self, max_results):
        with pytest.raises(CellValidationError):
            cells_in_bbox(WORLD, 1, max_results)

    def test_config_limit(self):
        assert len(cells_in_bbox(WORLD, 2, config=LookupConfig(max_results=7))) == 7


class TestNearestCells:

    def test_containing_cell_and_siblings(self, budapest):
        cell = point_to_cell(*budapest, 5)
        cells = nearest_cells(*budapest, 5)
        assert len(cells) == 4
        assert set(cells) == set(children_of(parent_of(cell)))

    def test_sorted_by_distance(self, budapest):
        lat, lon = budapest
        distances = []
        for cell in nearest_cells(lat, lon, 7):
            c_lon, c_lat = cell_to_centroid(cell)["coordinates"]
            distances.append(great_circle_distance(lat, lon, c_lat, c_lon))
        assert distances == sorted(distances)

    def test_count_limits_result(self, budapest):
        assert len(nearest_cells(*budapest, 5, count=2)) == 2

    def test_level_1_has_no_siblings(self, budapest):
        assert nearest_cells(*budapest, 1) == [point_to_cell(*budapest, 1)]

    def test_invalid_count(self, budapest):
        with pytest.raises(CellValidationError):
            nearest_cells(*budapest, 5, count=0)


class TestCellsAlongPath:

    def test_single_point_path(self, budapest):
        lat, lon = budapest
        assert cells_along_path((lon, lat), (lon, lat), 9) == [point_to_cell(lat, lon, 9)]

    def test_budapest_to_vienna(self, budapest):
        lat1, lon1 = budapest
        lat2, lon2 = VIENNA
        cells = cells_along_path((lon1, lat1), (lon2, lat2), 8)

        assert cells[0] == point_to_cell(lat1, lon1, 8)
        assert cells[-1] == point_to_cell(lat2, lon2, 8)
        assert len(set(cells)) == len(cells)
        assert len(cells) > 1

    def test_path_across_antimeridian(self):
        cells = cells_along_path((179.5, 1.0), (-179.5, 1.0), 6)
        assert cells[0] == point_to_cell(1.0, 179.5, 6)
        assert cells[-1] == point_to_cell(1.0, -179.5, 6)

    def test_coarse_sampling_with_quantity(self, budapest):
        lat, lon = budapest
        config = LookupConfig(path_min_step=Q_(500, "km"))
        cells = cells_along_path((lon, lat), (lon + 0.5, lat), 10, config=config)
        # Only the two endpoints are sampled
        assert 1 <= len(cells) <= 2
        assert cells[0] == point_to_cell(lat, lon, 10)

    def test_invalid_endpoint(self):
        with pytest.raises(CellValidationError):
            cells_along_path((200.0, 0.0), (0.0, 0.0), 3)


class TestLookupConfig:

    def test_module_reloads_with_defaults(self):
        import mesh.lookup

        module = importlib.reload(mesh.lookup)
        assert module.DEFAULT_CONFIG == module.LookupConfig()
        assert module.DEFAULT_CONFIG.max_results == MeshConstants.DEFAULT_MAX_RESULTS

    def test_package_exports_resolve(self):
        import mesh

        missing = [name for name in mesh.__all__ if not hasattr(mesh, name)]
        assert missing == []
        assert isinstance(mesh.LookupConfig(), mesh.LookupConfig)

    def test_step_uses_larger_of_minimum_and_fraction(self):
        config = LookupConfig()
        assert config.path_step_m(10_000.0) == 1000.0
        assert config.path_step_m(1_000_000.0) == pytest.approx(10_000.0)

    def test_quantity_step(self):
        assert LookupConfig(path_min_step=Q_(2, "km")).path_step_m(0.0) == pytest.approx(2000.0)

    def test_incompatible_units(self):
        with pytest.raises(ValueError):
            LookupConfig(path_min_step=Q_(2, "s"))

    @pytest.mark.parametrize("kwargs", [
        {"max_results": 0},
        {"nearest_count": -3},
        {"path_min_step": 0.0},
        {"path_sample_fraction": 0.0},
        {"path_sample_fraction": 1.5},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(CellValidationError):
            LookupConfig(**kwargs)
