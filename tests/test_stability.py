"""Tests for StabilityTracker.

Each scenario feeds a full window of synthetic summaries and checks which
of the six checks fail.
"""

import pytest

from umbra_shadow.analytics import StabilityThresholds, StabilityTracker, StabilityVerdict
from umbra_shadow.logging import LogEvent
from tests.helpers import shadow_summary


def feed(tracker, summaries):
    verdict = None
    for summary in summaries:
        verdict = tracker.observe(summary)
    return verdict


@pytest.fixture
def tracker():
    return StabilityTracker()


class TestWindowFill:

    def test_not_evaluated_before_window_full(self, tracker):
        verdict = feed(tracker, [shadow_summary()] * 24)

        assert not verdict.stable
        assert not verdict.evaluated
        assert verdict.observations == 24
        assert str(verdict) == "ACQUIRING (24 frames)"

    def test_evaluated_at_exactly_window_size(self, tracker):
        verdict = feed(tracker, [shadow_summary()] * 25)

        assert verdict.evaluated
        assert verdict.observations == 25
        assert verdict.stable

    def test_window_keeps_sliding(self, tracker):
        feed(tracker, [shadow_summary()] * 60)
        assert len(tracker) == 25
        assert tracker.history.total_observed == 60
        assert tracker.is_stable

    def test_current_verdict_matches_last_observe(self, tracker):
        verdict = feed(tracker, [shadow_summary()] * 25)
        assert tracker.current_verdict() is verdict

    def test_reset_clears_history(self, tracker):
        feed(tracker, [shadow_summary()] * 25)
        tracker.reset()

        assert len(tracker) == 0
        assert tracker.current_verdict() == StabilityVerdict.not_ready()

        verdict = feed(tracker, [shadow_summary()] * 24)
        assert not verdict.evaluated


class TestStabilityChecks:

    def test_identical_frames_are_stable(self, tracker):
        verdict = feed(tracker, [shadow_summary()] * 25)

        assert verdict.stable
        assert verdict.failed_checks == ()
        assert verdict.area.mean == pytest.approx(500)
        assert verdict.area.std == pytest.approx(0)
        assert verdict.width.mean == pytest.approx(24)
        assert verdict.height.mean == pytest.approx(19)
        assert verdict.intensity.mean == pytest.approx(40)
        assert str(verdict).startswith("LOCKED")

    def test_alternating_area_is_unstable(self, tracker):
        summaries = [shadow_summary(pixel_count=500 if i % 2 else 900) for i in range(25)]
        verdict = feed(tracker, summaries)

        assert not verdict.stable
        assert "area_stable" in verdict.failed_checks

    def test_small_shadow_fails_presence(self, tracker):
        verdict = feed(tracker, [shadow_summary(pixel_count=100)] * 25)
        assert verdict.failed_checks == ("area_present",)

    def test_empty_frames_are_never_stable(self, tracker):
        from umbra_shadow.segmentation import ShadowSummary

        verdict = feed(tracker, [ShadowSummary.empty()] * 25)
        assert not verdict.stable
        assert "area_present" in verdict.failed_checks

    def test_drifting_position_fails(self, tracker):
        summaries = [shadow_summary(min_x=10 + i, max_x=34 + i) for i in range(25)]
        verdict = feed(tracker, summaries)

        assert verdict.failed_checks == ("position_stable",)
        assert verdict.centroid_x.std > 2.0

    def test_oscillating_width_fails_jitter(self, tracker):
        summaries = [shadow_summary(max_x=34 + 2 * (i % 2)) for i in range(25)]
        verdict = feed(tracker, summaries)

        assert verdict.failed_checks == ("jitter_low",)
        assert verdict.width.std < 3.0
        assert verdict.width_jitter == pytest.approx(2.0)

    def test_growing_dimensions_fail(self, tracker):
        summaries = [
            shadow_summary(min_x=30 - i // 2, max_x=30 + i - i // 2) for i in range(25)
        ]
        verdict = feed(tracker, summaries)

        assert "dimensions_stable" in verdict.failed_checks

    def test_light_shadow_fails_quality(self, tracker):
        verdict = feed(tracker, [shadow_summary(average_intensity=70.0)] * 25)
        assert verdict.failed_checks == ("shadow_quality",)

    def test_single_outlier_breaks_lock(self, tracker):
        feed(tracker, [shadow_summary()] * 25)
        verdict = tracker.observe(shadow_summary(pixel_count=2000))

        assert not verdict.stable
        assert "area_stable" in verdict.failed_checks

    def test_verdict_to_dict(self, tracker):
        data = feed(tracker, [shadow_summary()] * 25).to_dict()

        assert data['stable'] is True
        assert data['area'] == {'mean': 500.0, 'std': 0.0}
        assert data['failed_checks'] == []


class TestThresholds:

    def test_custom_window(self):
        tracker = StabilityTracker(StabilityThresholds(window_size=5))
        assert feed(tracker, [shadow_summary()] * 5).stable

    @pytest.mark.parametrize("kwargs", [
        {'window_size': 1},
        {'min_mean_area': -1},
        {'max_area_cv': 0},
        {'max_centroid_std': -2.0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            StabilityThresholds(**kwargs)


class TestTransitionLogging:

    def test_lock_and_loss_logged_once(self, recording_logger):
        tracker = StabilityTracker(logger=recording_logger)

        feed(tracker, [shadow_summary()] * 30)
        tracker.observe(shadow_summary(pixel_count=2000))
        tracker.observe(shadow_summary(pixel_count=2000))

        assert recording_logger.events() == [
            LogEvent.STABILITY_LOCKED,
            LogEvent.STABILITY_LOST,
        ]
        lost = recording_logger.records[1]
        assert "area_stable" in lost['metadata']['failed_checks']
