"""Tests for window statistics and the FrameHistory ring buffer."""

import numpy as np
import pytest

from umbra_shadow.analytics import (
    FrameHistory,
    FrameMetrics,
    METRIC_NAMES,
    MetricStats,
    mean_abs_delta,
    mean_std,
)
from umbra_shadow.segmentation import ShadowSummary
from tests.helpers import shadow_summary


def metrics(area):
    return FrameMetrics(area, 1.0, 1.0, 0.0, 0.0, 10.0)


class TestStats:

    def test_population_std(self):
        stats = mean_std([2, 4, 4, 4, 5, 5, 7, 9])
        assert stats.mean == pytest.approx(5.0)
        assert stats.std == pytest.approx(2.0)

    def test_constant_values(self):
        assert mean_std([3.5] * 10) == MetricStats(mean=3.5, std=0.0)

    def test_empty(self):
        assert mean_std([]) == MetricStats()

    def test_mean_abs_delta(self):
        assert mean_abs_delta([1, 3, 1, 3]) == pytest.approx(2.0)
        assert mean_abs_delta(np.array([5.0])) == 0.0


class TestFrameMetrics:

    def test_from_summary(self):
        m = FrameMetrics.from_summary(shadow_summary())

        assert m.area == 500
        assert m.width == 24
        assert m.height == 19
        assert m.centroid_x == pytest.approx(22.0)
        assert m.centroid_y == pytest.approx(19.5)
        assert m.intensity == pytest.approx(40.0)

    def test_empty_summary_is_all_zero(self):
        assert FrameMetrics.from_summary(ShadowSummary.empty()).as_row() == (0.0,) * 6

    def test_row_order_matches_metric_names(self):
        m = FrameMetrics(1, 2, 3, 4, 5, 6)
        assert dict(zip(METRIC_NAMES, m.as_row()))["centroid_y"] == 5


class TestFrameHistory:

    def test_fills_then_evicts_oldest(self):
        history = FrameHistory(capacity=3)
        for area in (1, 2):
            history.append(metrics(area))

        assert len(history) == 2
        assert not history.is_full
        assert history.column("area").tolist() == [1, 2]

        for area in (3, 4, 5):
            history.append(metrics(area))

        assert len(history) == 3
        assert history.is_full
        assert history.total_observed == 5
        assert history.column("area").tolist() == [3, 4, 5]

    def test_ordered_wraps_oldest_first(self):
        history = FrameHistory(capacity=4)
        for area in range(10):
            history.append(metrics(area))

        assert history.ordered()[:, 0].tolist() == [6, 7, 8, 9]

    def test_never_exceeds_capacity(self):
        history = FrameHistory(capacity=25)
        for area in range(100):
            history.append(metrics(area))
            assert len(history) <= 25

    def test_ordered_returns_copy(self):
        history = FrameHistory(capacity=2)
        history.append(metrics(1))
        history.ordered()[0, 0] = 99
        assert history.column("area").tolist() == [1]

    def test_clear(self):
        history = FrameHistory(capacity=2)
        history.append(metrics(1))
        history.append(metrics(2))
        history.clear()

        assert len(history) == 0
        assert history.total_observed == 0
        assert history.column("area").size == 0

    def test_unknown_metric(self):
        with pytest.raises(KeyError):
            FrameHistory().column("depth")

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            FrameHistory(capacity=0)
