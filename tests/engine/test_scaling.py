"""Tests for per-item scale resolution."""

import pytest

from docpager.engine.scaling import ScalingResolver, pages_for


class TestPagesFor:
    def test_empty_block_takes_one_page(self):
        assert pages_for(0, 1000, 1.0) == 1

    def test_exact_fit_does_not_spill(self):
        assert pages_for(2000, 1000, 1.0) == 2

    def test_partial_page(self):
        assert pages_for(2001, 1000, 1.0) == 3

    def test_counts_whole_pixels(self):
        """A scaled height that rounds onto the page boundary does not need another page."""
        assert pages_for(600, 1046, 1.7434) == 1


class TestScalingResolver:
    """Test suite for ScalingResolver."""

    def test_no_target_keeps_natural_scale(self):
        decision = ScalingResolver().resolve(2500, 1000)

        assert decision.scale == 1.0
        assert decision.expected_pages == 3
        assert decision.target_pages is None
        assert not decision.low_confidence

    def test_fitting_natural_scale_is_not_kept_for_several_pages(self):
        """Content that already needs two pages still takes the smallest two-page scale."""
        decision = ScalingResolver().resolve(1800, 1000, target_pages=2)

        assert decision.scale == pytest.approx(0.5559)
        assert decision.expected_pages == 2
        assert pages_for(1800, 1000, decision.scale - 1e-4) == 1

    def test_shrink_takes_smallest_scale_reaching_target(self):
        decision = ScalingResolver().resolve(4000, 1000, target_pages=3)

        assert decision.scale == pytest.approx(0.5002)
        assert decision.expected_pages == 3
        assert not decision.low_confidence
        # one grid step smaller no longer needs three pages
        assert pages_for(4000, 1000, decision.scale - 1e-4) == 2

    def test_smallest_scale_may_fall_below_legible_minimum(self):
        decision = ScalingResolver().resolve(3000, 1000, target_pages=2)

        assert decision.scale == pytest.approx(0.3336, abs=2e-4)
        assert pages_for(3000, 1000, decision.scale) == 2
        assert pages_for(3000, 1000, decision.scale - 1e-4) == 1
        assert decision.low_confidence

    def test_single_page_keeps_fitting_natural_scale(self):
        decision = ScalingResolver().resolve(800, 1000, target_pages=1)

        assert decision.scale == 1.0
        assert decision.expected_pages == 1
        assert not decision.low_confidence

    def test_single_page_shrink_is_flagged(self):
        decision = ScalingResolver().resolve(1600, 1000, target_pages=1)

        assert decision.scale == pytest.approx(0.6253)
        assert decision.expected_pages == 1
        assert pages_for(1600, 1000, decision.scale + 1e-4) == 2
        assert decision.low_confidence
        assert "one page" in decision.reason

    def test_grow_takes_smallest_scale_reaching_target(self):
        decision = ScalingResolver().resolve(500, 1000, target_pages=2)

        assert decision.scale == pytest.approx(2.001, abs=2e-4)
        assert decision.expected_pages == 2
        assert pages_for(500, 1000, decision.scale) == 2
        assert pages_for(500, 1000, decision.scale - 1e-4) == 1

    def test_page_count_property_holds(self):
        resolver = ScalingResolver()
        for height, target in [(123.0, 1), (5000.0, 3), (777.7, 4), (10.0, 2), (600.0, 2)]:
            decision = resolver.resolve(height, 1046, target)
            assert decision.expected_pages == target
            assert pages_for(height, 1046, decision.scale) == target

    def test_below_legible_minimum_is_flagged(self):
        decision = ScalingResolver().resolve(10000, 1000, target_pages=1)

        assert decision.scale == pytest.approx(0.1)
        assert decision.expected_pages == 1
        assert decision.low_confidence
        assert "below" in decision.reason

    def test_above_maximum_is_flagged(self):
        decision = ScalingResolver().resolve(500, 1000, target_pages=3)

        assert decision.scale == pytest.approx(4.001, abs=2e-4)
        assert decision.expected_pages == 3
        assert decision.low_confidence
        assert "above" in decision.reason

    def test_custom_legible_range(self):
        decision = ScalingResolver(min_legible_scale=0.8).resolve(3000, 1000, target_pages=2)

        assert decision.low_confidence

    def test_deterministic(self):
        resolver = ScalingResolver()

        assert resolver.resolve(3333, 1046, 2) == resolver.resolve(3333, 1046, 2)

    def test_invalid_target(self):
        with pytest.raises(ValueError):
            ScalingResolver().resolve(100, 1000, target_pages=0)

    def test_invalid_content_height(self):
        with pytest.raises(ValueError):
            ScalingResolver().resolve(100, 0, target_pages=1)

    def test_zero_height_ignores_target(self):
        decision = ScalingResolver(natural_scale=1.5).resolve(0, 1000, target_pages=3)

        assert decision.scale == 1.5
        assert decision.expected_pages == 1
