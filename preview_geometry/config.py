"""
Configuration module for camera preview geometry.

Holds the value types shared by the size selector and the transform
computer, and loads a preview configuration from YAML files.
"""

import os
import yaml
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, List, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Size:
    """Pixel dimensions of a capture frame or a viewport."""
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def is_degenerate(self) -> bool:
        """True if either dimension is zero or negative."""
        return self.width <= 0 or self.height <= 0

    def transposed(self) -> "Size":
        """Return the size with width and height swapped."""
        return Size(self.height, self.width)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def parse(cls, text: str) -> "Size":
        """
        Parse a size written as ``WIDTHxHEIGHT`` (e.g. ``1920x1080``).

        Args:
            text: Size string; ``x``, ``X`` and ``*`` are accepted separators

        Returns:
            Parsed Size
        """
        normalized = text.strip().lower().replace('*', 'x')
        parts = normalized.split('x')
        if len(parts) != 2:
            raise ValueError(f"Invalid size string: {text!r}")
        try:
            return cls(int(parts[0]), int(parts[1]))
        except ValueError:
            raise ValueError(f"Invalid size string: {text!r}") from None

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class ScalePolicy(Enum):
    """
    How a capture frame is mapped onto a viewport of another aspect ratio.

    STRETCH_FILL: ignore aspect ratio, fill the viewport exactly
    NATIVE_SIZE: no scaling, show the frame at its native resolution
    CROP_FILL: keep aspect ratio, cover the whole viewport (may crop)
    FIT_INSIDE: keep aspect ratio, fit inside the viewport (may letterbox)
    """
    STRETCH_FILL = 'stretch_fill'
    NATIVE_SIZE = 'native_size'
    CROP_FILL = 'crop_fill'
    FIT_INSIDE = 'fit_inside'

    @classmethod
    def from_name(cls, name: str) -> "ScalePolicy":
        """
        Look up a policy by value, member name or Android ScaleType alias.

        Args:
            name: e.g. 'crop_fill', 'CROP_FILL' or 'center_crop'

        Returns:
            Matching ScalePolicy
        """
        key = name.strip().lower()
        key = _SCALE_TYPE_ALIASES.get(key, key)
        for policy in cls:
            if policy.value == key:
                return policy
        raise ValueError(f"Unknown scale policy: {name!r}")


# Android ImageView/TextureView ScaleType names
_SCALE_TYPE_ALIASES = {
    'fit_xy': 'stretch_fill',
    'center': 'native_size',
    'center_crop': 'crop_fill',
    'center_inside': 'fit_inside',
}


@dataclass
class CameraSettings:
    """Camera mounting parameters reported by the device."""
    sensor_orientation: int = 0  # Degrees the frame is rotated clockwise to match the device
    is_front_facing: bool = False


@dataclass
class FilePaths:
    """Paths to optional input data files."""
    candidate_sizes: Optional[str] = None  # CSV or text list of supported sizes


@dataclass
class PreviewConfig:
    """
    Main configuration class for preview planning.

    Attributes:
        viewport: Size of the rendering surface in pixels
        camera: Sensor orientation and facing
        display_rotation: Current display rotation in degrees
        scale_policy: How the frame is fitted to the viewport
        mirror: Apply an extra horizontal flip to the preview
        aspect_tolerance: Absolute tolerance on the width/height ratio
        candidate_sizes: Supported capture sizes given inline
        files: Optional input files (candidate size list)
    """
    viewport: Size
    camera: CameraSettings = field(default_factory=CameraSettings)
    display_rotation: int = 0
    scale_policy: ScalePolicy = ScalePolicy.CROP_FILL
    mirror: bool = False
    aspect_tolerance: float = 0.15
    candidate_sizes: List[Size] = field(default_factory=list)
    files: FilePaths = field(default_factory=FilePaths)

    @classmethod
    def from_yaml(cls, config_path: str) -> "PreviewConfig":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            PreviewConfig object with loaded parameters

        Example YAML structure:
            viewport:
              width: 1080
              height: 2400
            camera:
              facing: back
              sensor_orientation: 90
            display_rotation: 0
            scale_policy: crop_fill
            mirror: false
            aspect_tolerance: 0.15
            candidate_sizes:
              - 1920x1080
              - 1280x720
            files:
              candidate_sizes: "sizes.csv"
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration must be a mapping, got {type(data).__name__}"
            )

        logger.info(f"Loading configuration from {config_path}")

        vp_data = data.get('viewport')
        if not vp_data:
            raise ValueError("Configuration is missing 'viewport'")
        viewport = _parse_size(vp_data)

        # Parse camera settings (optional)
        cam_data = _section(data, 'camera')
        facing = str(cam_data.get('facing', 'back')).lower()
        if facing not in ('back', 'front'):
            raise ValueError(f"Unknown camera facing: {facing!r}")
        camera = CameraSettings(
            sensor_orientation=int(cam_data.get('sensor_orientation', 0)),
            is_front_facing=facing == 'front',
        )

        candidates = [_parse_size(s) for s in data.get('candidate_sizes') or []]

        # Resolve paths relative to config file location
        files_data = _section(data, 'files')
        sizes_path = files_data.get('candidate_sizes')
        if sizes_path:
            sizes_path = str(path.parent / sizes_path)

        return cls(
            viewport=viewport,
            camera=camera,
            display_rotation=int(data.get('display_rotation', 0)),
            scale_policy=ScalePolicy.from_name(data.get('scale_policy', 'crop_fill')),
            mirror=bool(data.get('mirror', False)),
            aspect_tolerance=float(data.get('aspect_tolerance', 0.15)),
            candidate_sizes=candidates,
            files=FilePaths(candidate_sizes=sizes_path),
        )

    def to_yaml(self, config_path: str) -> None:
        """
        Save configuration to a YAML file.

        Relative file paths are rewritten relative to the new file's folder,
        so that ``from_yaml`` resolves them to the same location.
        """
        sizes_path = self.files.candidate_sizes
        if sizes_path and not os.path.isabs(sizes_path):
            sizes_path = os.path.relpath(sizes_path, Path(config_path).parent)

        data = {
            'viewport': {
                'width': self.viewport.width,
                'height': self.viewport.height,
            },
            'camera': {
                'facing': 'front' if self.camera.is_front_facing else 'back',
                'sensor_orientation': self.camera.sensor_orientation,
            },
            'display_rotation': self.display_rotation,
            'scale_policy': self.scale_policy.value,
            'mirror': self.mirror,
            'aspect_tolerance': self.aspect_tolerance,
            'candidate_sizes': [str(s) for s in self.candidate_sizes],
            'files': {
                'candidate_sizes': sizes_path,
            },
        }

        with open(config_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {config_path}")


def _section(data: dict, key: str) -> dict:
    """Return a nested mapping, treating a missing or empty section as {}."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Section '{key}' must be a mapping, got {type(value).__name__}")
    return value


def _parse_size(value) -> Size:
    """Accept either a mapping with width/height or a 'WxH' string."""
    if isinstance(value, str):
        return Size.parse(value)
    if isinstance(value, dict):
        try:
            return Size(int(value['width']), int(value['height']))
        except KeyError as e:
            raise ValueError(f"Size is missing {e}") from None
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Size(int(value[0]), int(value[1]))
    raise ValueError(f"Cannot interpret {value!r} as a size")
