"""Tests for coordinate conversions and great-circle distances."""

import numpy as np
import pytest

from common.constants import MeshConstants
from common.errors import CellValidationError
from geospatial.coordinate_models import (
    angular_distance,
    cartesian_to_spherical,
    cartesian_to_spherical_batch,
    is_unit_vector,
    normalize,
    slerp,
    spherical_to_cartesian,
    validate_lat_lon,
)
from geospatial.distance_calculations import (
    great_circle_distance,
    great_circle_distance_batch,
    great_circle_inverse,
    sample_great_circle,
)


R = MeshConstants.SPHERE_RADIUS.value


class TestCoordinateModels:

    def test_axes(self):
        np.testing.assert_allclose(spherical_to_cartesian(0.0, 0.0), [1.0, 0.0, 0.0], atol=1e-15)
        np.testing.assert_allclose(spherical_to_cartesian(0.0, 90.0), [0.0, 1.0, 0.0], atol=1e-15)
        np.testing.assert_allclose(spherical_to_cartesian(90.0, 0.0), [0.0, 0.0, 1.0], atol=1e-15)

    @pytest.mark.parametrize("lat,lon", [
        (0.0, 0.0),
        (47.4979, 19.0402),
        (-33.8688, 151.2093),
        (64.1466, -21.9426),
        (-89.0, 179.0),
    ])
    def test_round_trip(self, lat, lon):
        got_lat, got_lon = cartesian_to_spherical(spherical_to_cartesian(lat, lon))
        assert got_lat == pytest.approx(lat, abs=1e-9)
        assert got_lon == pytest.approx(lon, abs=1e-9)

    def test_output_is_unit_vector(self):
        assert is_unit_vector(spherical_to_cartesian(12.3, -45.6))

    def test_pole_rounding_does_not_produce_nan(self):
        lat, _ = cartesian_to_spherical(np.array([0.0, 0.0, 1.0 + 1e-15]))
        assert lat == 90.0

    def test_batch_matches_scalar(self):
        vectors = np.array([spherical_to_cartesian(10.0, 20.0), spherical_to_cartesian(-30.0, 140.0)])
        lats, lons = cartesian_to_spherical_batch(vectors)
        np.testing.assert_allclose(lats, [10.0, -30.0])
        np.testing.assert_allclose(lons, [20.0, 140.0])

    def test_normalize_rows(self):
        rows = normalize(np.array([[3.0, 4.0, 0.0], [0.0, 0.0, 2.0]]))
        np.testing.assert_allclose(np.linalg.norm(rows, axis=1), 1.0)

    def test_angular_distance(self):
        x = np.array([1.0, 0.0, 0.0])
        y = np.array([0.0, 1.0, 0.0])
        assert angular_distance(x, y) == pytest.approx(np.pi / 2)
        assert angular_distance(x, -x) == pytest.approx(np.pi)
        assert angular_distance(x, x) == 0.0

    def test_slerp(self):
        x = np.array([1.0, 0.0, 0.0])
        y = np.array([0.0, 1.0, 0.0])
        np.testing.assert_allclose(slerp(x, y, 0.0), x, atol=1e-15)
        np.testing.assert_allclose(slerp(x, y, 1.0), y, atol=1e-15)
        np.testing.assert_allclose(slerp(x, y, 0.5), normalize(x + y), atol=1e-15)

    @pytest.mark.parametrize("lat,lon", [
        (90.1, 0.0),
        (-91.0, 0.0),
        (0.0, 180.1),
        (0.0, -181.0),
        (float("nan"), 0.0),
        (0.0, float("inf")),
    ])
    def test_validate_rejects_out_of_range(self, lat, lon):
        with pytest.raises(CellValidationError):
            validate_lat_lon(lat, lon)

    def test_validate_accepts_limits(self):
        validate_lat_lon(90.0, 180.0)
        validate_lat_lon(-90.0, -180.0)


class TestGreatCircle:

    def test_quarter_equator(self):
        result = great_circle_inverse(0.0, 0.0, 0.0, 90.0)
        assert result.distance_m == pytest.approx(np.pi / 2 * R, rel=1e-9)
        assert result.azimuth_forward_deg == pytest.approx(90.0)

    def test_distance_matches_central_angle(self):
        a = spherical_to_cartesian(47.4979, 19.0402)
        b = spherical_to_cartesian(48.2082, 16.3738)
        assert great_circle_distance(47.4979, 19.0402, 48.2082, 16.3738) == pytest.approx(
            angular_distance(a, b) * R, rel=1e-9
        )

    def test_batch_broadcasts(self):
        distances = great_circle_distance_batch(0.0, 0.0, np.array([0.0, 0.0]), np.array([90.0, 180.0]))
        np.testing.assert_allclose(distances, [np.pi / 2 * R, np.pi * R], rtol=1e-9)


class TestSampling:

    def test_samples_include_endpoints(self):
        lats, lons = sample_great_circle(0.0, 0.0, 0.0, 90.0, 1_000_000.0)
        # 0, 1000, ..., 10000 km, then the exact end at ~10008 km
        assert lats.size == 12
        assert (lats[0], lons[0]) == (0.0, 0.0)
        assert (lats[-1], lons[-1]) == (0.0, 90.0)
        np.testing.assert_allclose(lats, 0.0, atol=1e-9)
        assert np.all(np.diff(lons) > 0)

    def test_coincident_endpoints(self):
        lats, lons = sample_great_circle(10.0, 20.0, 10.0, 20.0, 1000.0)
        assert lats.tolist() == [10.0]
        assert lons.tolist() == [20.0]

    def test_longitudes_wrapped(self):
        _, lons = sample_great_circle(0.0, 179.0, 0.0, -179.0, 10_000.0)
        assert np.all(np.abs(lons) <= 180.0)

    def test_non_positive_step(self):
        with pytest.raises(ValueError):
            sample_great_circle(0.0, 0.0, 1.0, 1.0, 0.0)
