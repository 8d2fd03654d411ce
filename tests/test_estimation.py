"""Tests for the point-light projection model."""

import pytest

from umbra_shadow.estimation import (
    ProximityLabel,
    StandoffEstimator,
    estimate_standoff,
    projected_shadow_area,
    projection_scale,
    proximity_label,
)


class TestProjection:

    def test_scale(self):
        assert projection_scale(50, 0) == pytest.approx(1.0)
        assert projection_scale(50, 25) == pytest.approx(2.0)

    def test_scale_gap_floored(self):
        assert projection_scale(50, 50) == pytest.approx(500.0)
        assert projection_scale(50, 80) == pytest.approx(500.0)

    def test_projected_area(self):
        assert projected_shadow_area(2000, 50, 25) == pytest.approx(8000)


class TestEstimateStandoff:

    def test_touching(self):
        assert estimate_standoff(50, 2000, 2000) == pytest.approx(0.0)

    def test_quadrupled_area_is_halfway(self):
        assert estimate_standoff(50, 2000, 8000) == pytest.approx(25.0)

    def test_shadow_smaller_than_baseline(self):
        assert estimate_standoff(50, 2000, 1500) == 0.0

    @pytest.mark.parametrize("reference, observed", [(2000, 0), (0, 2000), (-5, 100)])
    def test_missing_area_returns_light_distance(self, reference, observed):
        assert estimate_standoff(50, reference, observed) == 50

    @pytest.mark.parametrize("standoff", [0.5, 5.0, 20.0, 45.0])
    def test_inverts_forward_model(self, standoff):
        area = projected_shadow_area(2000, 50, standoff)
        assert estimate_standoff(50, 2000, area) == pytest.approx(standoff)


class TestProximityLabel:

    @pytest.mark.parametrize("standoff, label", [
        (0.0, ProximityLabel.TOUCHING),
        (1.99, ProximityLabel.TOUCHING),
        (2.0, ProximityLabel.NEAR),
        (9.99, ProximityLabel.NEAR),
        (10.0, ProximityLabel.AWAY),
    ])
    def test_bands(self, standoff, label):
        assert proximity_label(standoff) is label

    def test_label_values(self):
        assert ProximityLabel.TOUCHING.value == "Touching"


class TestStandoffEstimator:

    def test_estimate(self):
        estimator = StandoffEstimator(light_distance=50, reference_area=2000)
        estimate = estimator.estimate(8000)

        assert estimate.standoff == pytest.approx(25.0)
        assert estimate.label is ProximityLabel.AWAY
        assert estimate.observed_area == 8000
        assert str(estimate) == "h=25.0 (Away, 8000px)"

    def test_expected_area(self):
        estimator = StandoffEstimator(light_distance=50, reference_area=2000)
        assert estimator.expected_area(0) == pytest.approx(2000)

    @pytest.mark.parametrize("kwargs", [
        {'light_distance': 0, 'reference_area': 2000},
        {'light_distance': 50, 'reference_area': -1},
    ])
    def test_invalid_geometry(self, kwargs):
        with pytest.raises(ValueError):
            StandoffEstimator(**kwargs)
