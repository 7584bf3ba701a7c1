"""
Tests for capture size selection.
"""

import pytest

from preview_geometry.config import Size
from preview_geometry.exceptions import DegenerateGeometryError, InvalidArgumentError
from preview_geometry.size_selector import (
    SizeSelector,
    select_optimal_size,
    target_size,
)


@pytest.fixture
def phone_sizes():
    """A typical list of preview sizes reported by a back camera."""
    return [
        Size(1280, 720),
        Size(1920, 1080),
        Size(1080, 1920),
        Size(3840, 2160),
        Size(720, 1280),
        Size(2160, 3840),
        Size(640, 480),
        Size(1440, 1080),
    ]


class TestTargetSize:
    """Tests for rotation-adjusted targets."""

    def test_no_swap_for_0_and_180(self):
        viewport = Size(1080, 2400)
        assert target_size(0, viewport) == viewport
        assert target_size(180, viewport) == viewport

    def test_swap_for_90_and_270(self):
        viewport = Size(1080, 2400)
        assert target_size(90, viewport) == Size(2400, 1080)
        assert target_size(270, viewport) == Size(2400, 1080)


class TestSelectOptimalSize:
    """Tests for the two-pass selection policy."""

    def test_empty_list_raises(self):
        with pytest.raises(InvalidArgumentError):
            select_optimal_size([], 0, Size(1080, 1920))

    def test_degenerate_viewport_raises(self, phone_sizes):
        with pytest.raises(DegenerateGeometryError):
            select_optimal_size(phone_sizes, 0, Size(0, 1920))

    @pytest.mark.parametrize("rotation", [0, 90, 180, 270])
    @pytest.mark.parametrize("viewport", [
        Size(1080, 1920), Size(1080, 2400), Size(800, 800), Size(333, 1000),
    ])
    def test_result_is_a_candidate(self, phone_sizes, rotation, viewport):
        """Selection never synthesizes a size."""
        result = select_optimal_size(phone_sizes, rotation, viewport)
        assert result in phone_sizes

    @pytest.mark.parametrize("rotation, expected", [
        (0, Size(1080, 1920)),
        (90, Size(1920, 1080)),
        (180, Size(1080, 1920)),
        (270, Size(1920, 1080)),
    ])
    def test_exact_match_wins(self, phone_sizes, rotation, expected):
        """An entry matching the target ratio and area is returned."""
        assert select_optimal_size(phone_sizes, rotation, Size(1080, 1920)) == expected

    def test_prefers_covering_sizes(self):
        """A larger aspect-matched size beats a closer but smaller one."""
        candidates = [Size(1280, 720), Size(3840, 2160)]
        assert select_optimal_size(candidates, 0, Size(1920, 1080)) == Size(3840, 2160)

    def test_closest_area_when_nothing_covers(self):
        candidates = [Size(640, 360), Size(1280, 720)]
        assert select_optimal_size(candidates, 0, Size(1920, 1080)) == Size(1280, 720)

    def test_closest_area_among_covering(self):
        candidates = [Size(3840, 2160), Size(2560, 1440), Size(1920, 1080)]
        assert select_optimal_size(candidates, 90, Size(1080, 1920)) == Size(1920, 1080)

    def test_aspect_tolerance_is_absolute(self):
        """
        Target ratio 0.45: 720x1280 (0.5625) is within 0.15 absolute but
        25% away relatively. It must pass the aspect filter and win over
        900x3200, which the fallback score would prefer.
        """
        close_ratio = Size(720, 1280)
        better_score = Size(900, 3200)
        candidates = [close_ratio, better_score]

        assert select_optimal_size(candidates, 0, Size(1080, 2400)) == close_ratio

        # Without any tolerance the fallback score decides
        strict = SizeSelector(aspect_tolerance=0.0)
        assert strict.select(candidates, 0, Size(1080, 2400)) == better_score

    def test_ties_go_to_first_candidate(self):
        first = Size(1280, 720)
        second = Size(1280, 720)
        result = select_optimal_size([first, second], 0, Size(1920, 1080))
        assert result is first

    def test_zero_dimension_candidates_are_skipped(self):
        candidates = [Size(0, 1080), Size(1920, 1080)]
        assert select_optimal_size(candidates, 0, Size(1920, 1080)) == Size(1920, 1080)

    def test_only_zero_dimension_candidates_raise(self):
        with pytest.raises(InvalidArgumentError):
            select_optimal_size([Size(0, 1080), Size(1920, 0)], 0, Size(1920, 1080))

    @pytest.mark.parametrize("rotation", [45, 100, -30])
    def test_rotation_off_quarter_turn_raises(self, phone_sizes, rotation):
        with pytest.raises(InvalidArgumentError):
            select_optimal_size(phone_sizes, rotation, Size(1080, 1920))

    def test_negative_tolerance_rejected(self):
        with pytest.raises(InvalidArgumentError):
            SizeSelector(aspect_tolerance=-0.1)


class TestFallbackScoring:
    """Regression fixtures for the weighted fallback score."""

    @pytest.fixture
    def candidates(self):
        return [Size(640, 480), Size(1920, 1080)]

    def test_portrait_viewport_without_rotation(self, candidates):
        """
        Target 1080x2400 (ratio 0.45) matches neither 4:3 nor 16:9 within
        0.15, so the fallback score decides. 640x480 scores lower because
        its ratio is closer to 0.45.
        """
        selector = SizeSelector()
        scores = dict(selector.rank(candidates, 0, Size(1080, 2400)))

        assert scores[Size(640, 480)] == pytest.approx(1.6385185, rel=1e-6)
        assert scores[Size(1920, 1080)] == pytest.approx(2.1254321, rel=1e-6)
        assert select_optimal_size(candidates, 0, Size(1080, 2400)) == Size(640, 480)

    def test_portrait_viewport_with_rotation(self, candidates):
        """Rotated target 2400x1080 makes 1920x1080 the better choice."""
        selector = SizeSelector()
        scores = dict(selector.rank(candidates, 90, Size(1080, 2400)))

        assert scores[Size(640, 480)] == pytest.approx(0.5444444, rel=1e-6)
        assert scores[Size(1920, 1080)] == pytest.approx(0.2, rel=1e-6)
        assert select_optimal_size(candidates, 90, Size(1080, 2400)) == Size(1920, 1080)

    def test_rank_rejects_empty_list(self):
        with pytest.raises(InvalidArgumentError):
            SizeSelector().rank([], 0, Size(1080, 2400))

    def test_rank_rejects_degenerate_viewport(self, candidates):
        with pytest.raises(DegenerateGeometryError):
            SizeSelector().rank(candidates, 0, Size(1080, 0))

    def test_rank_skips_zero_dimension_candidates(self, candidates):
        ranked = SizeSelector().rank([Size(0, 480)] + candidates, 0, Size(1080, 2400))
        assert [s for s, _ in ranked] == candidates

    def test_custom_weights(self, candidates):
        """Weighting area only picks the closest resolution."""
        selector = SizeSelector(ratio_weight=0.0, area_weight=1.0)
        assert selector.select(candidates, 0, Size(1080, 2400)) == Size(1920, 1080)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
