"""
Preview planner module.

This is the main module that orchestrates the preview setup workflow:
    1. Load configuration and candidate sizes
    2. Compute the effective rotation from facing, sensor and display
    3. Select the capture size for the viewport
    4. Compute the preview transform (direct derivation)
    5. Recompute it by matrix inversion and cross-check both
    6. Generate a plan report

A capture-session layer applies the selected size to the device and the
transform to the preview surface; the planner itself performs no camera I/O.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import PreviewConfig, Size, ScalePolicy
from .data_loader import CandidateSource
from .rotation import effective_rotation, normalize_rotation
from .size_selector import SizeSelector
from .transforms import (
    AffineTransform,
    PreviewTransformComputer,
    TransformComponents,
    transforms_agree,
)

logger = logging.getLogger(__name__)


@dataclass
class PreviewPlan:
    """Result of planning a preview for one device/viewport combination."""
    viewport: Size
    sensor_orientation: int
    display_rotation: int
    is_front_facing: bool
    scale_policy: ScalePolicy
    mirror: bool

    effective_rotation: int = 0
    capture_size: Optional[Size] = None
    candidate_count: int = 0

    preview_transform: Optional[AffineTransform] = None
    inverted_transform: Optional[AffineTransform] = None
    components: Optional[TransformComponents] = None

    # Cross-check of the two derivations
    tolerance: float = 1e-4
    formulations_agree: bool = False

    candidates: List[Size] = field(default_factory=list)


class PreviewPlanner:
    """
    Main class for planning a camera preview.

    Example usage:
        config = PreviewConfig.from_yaml("preview.yaml")
        planner = PreviewPlanner(config)
        planner.load_data()
        plan = planner.plan()
        planner.save_report(plan, "plan.json")
    """

    def __init__(self, config: PreviewConfig, tolerance: float = 1e-4):
        """
        Initialize the planner.

        Args:
            config: Configuration object
            tolerance: Relative tolerance for the formulation cross-check
        """
        self.config = config
        self.tolerance = tolerance
        self.selector = SizeSelector(aspect_tolerance=config.aspect_tolerance)
        self.source = CandidateSource(config)
        self.candidates: List[Size] = []

        logger.info(
            f"Planner initialized for viewport {config.viewport}, "
            f"policy {config.scale_policy.name}"
        )

    def load_data(self) -> None:
        """Load candidate sizes from the configuration and size file."""
        self.candidates = self.source.load()
        logger.info(f"Loaded {len(self.candidates)} candidate sizes")

    def plan(self) -> PreviewPlan:
        """
        Run the planning workflow.

        Returns:
            PreviewPlan with the selected size and transforms
        """
        cfg = self.config
        sensor = normalize_rotation(cfg.camera.sensor_orientation)
        display = normalize_rotation(cfg.display_rotation)

        plan = PreviewPlan(
            viewport=cfg.viewport,
            sensor_orientation=sensor,
            display_rotation=display,
            is_front_facing=cfg.camera.is_front_facing,
            scale_policy=cfg.scale_policy,
            mirror=cfg.mirror,
            tolerance=self.tolerance,
            candidates=list(self.candidates),
            candidate_count=len(self.candidates),
        )

        plan.effective_rotation = effective_rotation(
            cfg.camera.is_front_facing, sensor, display
        )
        logger.info(
            f"Sensor orientation {sensor}, display rotation {display} -> "
            f"effective rotation {plan.effective_rotation}"
        )

        plan.capture_size = self.selector.select(
            self.candidates, plan.effective_rotation, cfg.viewport
        )
        logger.info(f"Selected capture size {plan.capture_size}")

        plan.preview_transform = PreviewTransformComputer.preview_transform(
            plan.effective_rotation,
            plan.capture_size,
            cfg.viewport,
            cfg.scale_policy,
            cfg.mirror,
        )
        plan.inverted_transform = PreviewTransformComputer.preview_transform_by_inversion(
            plan.effective_rotation,
            plan.capture_size,
            cfg.viewport,
            cfg.scale_policy,
            cfg.mirror,
        )
        plan.components = plan.preview_transform.decompose()
        plan.formulations_agree = transforms_agree(
            plan.preview_transform, plan.inverted_transform, rtol=self.tolerance
        )

        if plan.formulations_agree:
            logger.info("Direct and inverted preview transforms agree")
        else:
            logger.warning(
                f"Preview transform mismatch: direct={plan.preview_transform!r}, "
                f"inverted={plan.inverted_transform!r}"
            )

        return plan

    def save_report(
        self,
        plan: PreviewPlan,
        output_path: str,
        include_candidates: bool = True,
    ) -> None:
        """
        Save a plan to a JSON file.

        Args:
            plan: Plan to save
            output_path: Path for output JSON file
            include_candidates: Whether to include the candidate list
        """
        components = plan.components
        data = {
            'inputs': {
                'viewport': str(plan.viewport),
                'sensor_orientation': plan.sensor_orientation,
                'display_rotation': plan.display_rotation,
                'facing': 'front' if plan.is_front_facing else 'back',
                'scale_policy': plan.scale_policy.value,
                'mirror': plan.mirror,
                'candidate_count': plan.candidate_count,
            },
            'effective_rotation': plan.effective_rotation,
            'capture_size': str(plan.capture_size) if plan.capture_size else None,
            'preview_matrix': plan.preview_transform.as_list() if plan.preview_transform else None,
            'components': {
                'scale_x': components.scale_x,
                'scale_y': components.scale_y,
                'rotation_degrees': components.rotation_degrees,
                'translate_x': components.translate_x,
                'translate_y': components.translate_y,
            } if components else None,
            'cross_check': {
                'tolerance': plan.tolerance,
                'agree': plan.formulations_agree,
                'inverted_matrix': (
                    plan.inverted_transform.as_list() if plan.inverted_transform else None
                ),
            },
        }

        if include_candidates:
            data['candidates'] = [str(s) for s in plan.candidates]

        with open(output_path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.info(f"Report saved to {output_path}")


def run_planning(config_path: str, output_dir: Optional[str] = None) -> PreviewPlan:
    """
    Convenience function to plan a preview from a config file.

    Args:
        config_path: Path to YAML configuration file
        output_dir: Optional directory for the JSON report

    Returns:
        PreviewPlan with results
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = PreviewConfig.from_yaml(config_path)
    planner = PreviewPlanner(config)
    planner.load_data()
    plan = planner.plan()

    if output_dir:
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        planner.save_report(plan, str(output_path / 'preview_plan.json'))

    return plan
