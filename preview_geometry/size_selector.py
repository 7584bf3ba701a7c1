"""
Capture size selection.

Picks the supported capture resolution that best matches a viewport once
the frame has been rotated for display.

Selection strategy:
    1. Prefer candidates whose aspect ratio is within an absolute tolerance
       of the target ratio (0.15 on the width/height scale, not relative)
    2. Among those, prefer sizes covering the target in both dimensions,
       then pick the closest area
    3. Without any aspect match, minimise a weighted score of normalised
       ratio difference (0.7) and normalised area difference (0.3)

The result is always one of the candidates; ties go to the earliest entry.
"""

import logging
from typing import List, Sequence, Tuple

from .config import Size
from .exceptions import DegenerateGeometryError, InvalidArgumentError
from .rotation import is_quarter_turn

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_TOLERANCE = 0.15
DEFAULT_RATIO_WEIGHT = 0.7
DEFAULT_AREA_WEIGHT = 0.3


def target_size(effective_rotation: int, viewport: Size) -> Size:
    """
    Size a capture frame should have before rotation to match the viewport.

    Args:
        effective_rotation: Clockwise rotation applied to the frame
        viewport: Display surface size

    Returns:
        Viewport size, transposed for 90/270 degree rotations
    """
    if is_quarter_turn(effective_rotation):
        return viewport.transposed()
    return viewport


class SizeSelector:
    """
    Chooses a capture size from the list reported by a camera device.

    Example usage:
        selector = SizeSelector()
        size = selector.select(candidates, effective_rotation=90,
                               viewport=Size(1080, 2400))
    """

    def __init__(
        self,
        aspect_tolerance: float = DEFAULT_ASPECT_TOLERANCE,
        ratio_weight: float = DEFAULT_RATIO_WEIGHT,
        area_weight: float = DEFAULT_AREA_WEIGHT,
    ):
        """
        Args:
            aspect_tolerance: Maximum absolute difference between candidate
                and target width/height ratios in the aspect pass
            ratio_weight: Weight of the ratio term in the fallback score
            area_weight: Weight of the area term in the fallback score
        """
        if aspect_tolerance < 0:
            raise InvalidArgumentError(
                f"aspect_tolerance must be non-negative, got {aspect_tolerance}"
            )
        self.aspect_tolerance = aspect_tolerance
        self.ratio_weight = ratio_weight
        self.area_weight = area_weight

    def select(
        self,
        candidates: Sequence[Size],
        effective_rotation: int,
        viewport: Size,
    ) -> Size:
        """
        Select the optimal capture size.

        Args:
            candidates: Sizes supported by the device, in reported order
            effective_rotation: Clockwise rotation applied before display
            viewport: Display surface size

        Returns:
            The chosen entry of ``candidates``
        """
        usable = self._usable_candidates(candidates, viewport)

        target = target_size(effective_rotation, viewport)
        target_ratio = target.aspect_ratio
        target_area = target.area
        logger.debug(
            f"Target {target} (ratio {target_ratio:.4f}) for viewport {viewport}, "
            f"rotation {effective_rotation}"
        )

        aspect_matches = [
            s for s in usable
            if abs(s.aspect_ratio - target_ratio) <= self.aspect_tolerance
        ]

        if aspect_matches:
            covering = [
                s for s in aspect_matches
                if s.width >= target.width and s.height >= target.height
            ]
            pool = covering or aspect_matches
            # min() keeps the first of equal keys
            best = min(pool, key=lambda s: abs(s.area - target_area))
            logger.debug(
                f"Aspect pass: {len(aspect_matches)} match(es), "
                f"{len(covering)} covering target, chose {best}"
            )
            return best

        best = min(
            usable,
            key=lambda s: self.fallback_score(s, target),
        )
        logger.debug(f"No aspect match, fallback score chose {best}")
        return best

    def fallback_score(self, candidate: Size, target: Size) -> float:
        """
        Weighted similarity score used when no candidate matches the ratio.

        Lower is better.

        Args:
            candidate: Capture size to score
            target: Rotation-adjusted target size

        Returns:
            ratio_weight * relative ratio error + area_weight * relative area error
        """
        target_ratio = target.aspect_ratio
        target_area = target.area
        ratio_diff = abs(candidate.aspect_ratio - target_ratio) / target_ratio
        area_diff = abs(candidate.area - target_area) / target_area
        return self.ratio_weight * ratio_diff + self.area_weight * area_diff

    def rank(
        self,
        candidates: Sequence[Size],
        effective_rotation: int,
        viewport: Size,
    ) -> List[Tuple[Size, float]]:
        """
        Fallback scores of every candidate, in input order.

        Useful for logging and for recording selection fixtures.
        """
        usable = self._usable_candidates(candidates, viewport)
        target = target_size(effective_rotation, viewport)
        return [(s, self.fallback_score(s, target)) for s in usable]

    @staticmethod
    def _usable_candidates(candidates: Sequence[Size], viewport: Size) -> List[Size]:
        """Validate inputs and drop candidates with a zero dimension."""
        if not candidates:
            raise InvalidArgumentError("Candidate size list cannot be empty")
        if viewport.is_degenerate:
            raise DegenerateGeometryError(f"Viewport has a zero dimension: {viewport}")

        usable = [s for s in candidates if not s.is_degenerate]
        if len(usable) < len(candidates):
            logger.warning(
                f"Ignoring {len(candidates) - len(usable)} candidate(s) with a zero dimension"
            )
        if not usable:
            raise InvalidArgumentError("No candidate size has a positive area")
        return usable


def select_optimal_size(
    candidates: Sequence[Size],
    effective_rotation: int,
    viewport: Size,
) -> Size:
    """
    Convenience function using the default tolerance and weights.

    Args:
        candidates: Sizes supported by the device
        effective_rotation: Clockwise rotation applied before display
        viewport: Display surface size

    Returns:
        The chosen entry of ``candidates``
    """
    return SizeSelector().select(candidates, effective_rotation, viewport)
