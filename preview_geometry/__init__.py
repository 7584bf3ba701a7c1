"""
Camera Preview Geometry Package

Pure geometry for showing a camera stream on a preview surface that
stretches its content to fill the view:

    - Select the capture size that best fits a viewport after rotation
    - Compute the affine transform that rotates, rescales, crops or
      letterboxes, and optionally mirrors the stretched preview
    - Map detection points from raw frame coordinates for overlays

Conventions:
    - Rotations are clockwise degrees in {0, 90, 180, 270}
    - Image frame: x right, y down, origin at the top-left corner
    - Sizes are given unrotated, as reported by the camera device

Supported Formats:
    - YAML preview configuration
    - CSV or text candidate size lists
    - JSON plan reports
"""

from .config import PreviewConfig, CameraSettings, FilePaths, Size, ScalePolicy
from .exceptions import PreviewGeometryError, InvalidArgumentError, DegenerateGeometryError
from .rotation import (
    VALID_ROTATIONS,
    normalize_rotation,
    effective_rotation,
    fold_platform_rotation,
    snap_device_orientation,
    capture_rotation,
)
from .size_selector import SizeSelector, select_optimal_size
from .transforms import (
    AffineTransform,
    TransformComponents,
    PreviewTransformComputer,
    compute_preview_transform,
    map_frame_points_to_preview,
    transforms_agree,
)
from .data_loader import CandidateSource, load_candidate_sizes
from .planner import PreviewPlanner, PreviewPlan, run_planning

__version__ = "1.0.0"
__all__ = [
    "PreviewConfig",
    "CameraSettings",
    "FilePaths",
    "Size",
    "ScalePolicy",
    "PreviewGeometryError",
    "InvalidArgumentError",
    "DegenerateGeometryError",
    "VALID_ROTATIONS",
    "normalize_rotation",
    "effective_rotation",
    "fold_platform_rotation",
    "snap_device_orientation",
    "capture_rotation",
    "SizeSelector",
    "select_optimal_size",
    "AffineTransform",
    "TransformComponents",
    "PreviewTransformComputer",
    "compute_preview_transform",
    "map_frame_points_to_preview",
    "transforms_agree",
    "CandidateSource",
    "load_candidate_sizes",
    "PreviewPlanner",
    "PreviewPlan",
    "run_planning",
]
