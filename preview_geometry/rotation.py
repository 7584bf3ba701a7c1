"""
Rotation helpers shared by size selection and transform computation.

Conventions:
    - All angles are integer degrees, clockwise, in {0, 90, 180, 270}
    - Sensor orientation: clockwise rotation that brings a raw frame upright
      in the device's natural orientation
    - Display rotation: rotation of the current display away from natural
    - Effective rotation: clockwise rotation that brings a raw frame upright
      on the current display, mirror compensation included
"""

import logging
from typing import Optional

from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

VALID_ROTATIONS = (0, 90, 180, 270)

# Reported by orientation sensors when the device is lying flat
ORIENTATION_UNKNOWN = -1


def normalize_rotation(degrees: int) -> int:
    """
    Reduce an angle to [0, 360) and check it is a quarter turn multiple.

    Args:
        degrees: Angle in degrees, may be negative or >= 360

    Returns:
        Equivalent rotation in VALID_ROTATIONS
    """
    normalized = int(degrees) % 360
    if normalized not in VALID_ROTATIONS:
        raise InvalidArgumentError(
            f"Rotation must be a multiple of 90 degrees, got {degrees}"
        )
    return normalized


def is_quarter_turn(rotation: int) -> bool:
    """True if the rotation swaps width and height (90 or 270)."""
    return normalize_rotation(rotation) in (90, 270)


def effective_rotation(
    is_front_facing: bool,
    sensor_orientation: int,
    display_rotation: int,
) -> int:
    """
    Compute the rotation a frame needs to appear upright on the display.

    Front cameras mirror their output, so the sum of sensor and display
    rotation is taken in the opposite direction: this makes the content,
    not only its bounding box, land right side up.

    Args:
        is_front_facing: True for a front (selfie) camera
        sensor_orientation: Sensor mounting angle in degrees
        display_rotation: Current display rotation in degrees

    Returns:
        Clockwise rotation in degrees, one of VALID_ROTATIONS
    """
    if is_front_facing:
        result = (sensor_orientation + display_rotation) % 360
        result = (360 - result) % 360
    else:
        result = (sensor_orientation - display_rotation + 360) % 360
    return result


def fold_platform_rotation(rotation: int, platform_rotation: int) -> int:
    """
    Remove a rotation the platform has already applied to the stream.

    Camera2 pre-rotates the preview stream for the natural orientation, so
    callers on that path subtract the part the platform handled before
    asking for a transform.

    Args:
        rotation: Effective rotation in degrees
        platform_rotation: Rotation already applied upstream in degrees

    Returns:
        Remaining clockwise rotation in degrees
    """
    return normalize_rotation(rotation - platform_rotation)


def snap_device_orientation(degrees: int) -> Optional[int]:
    """
    Round a raw orientation sensor reading to the nearest quarter turn.

    Args:
        degrees: Sensor reading in [0, 360), or ORIENTATION_UNKNOWN

    Returns:
        Nearest of VALID_ROTATIONS, or None when the orientation is unknown
    """
    if degrees == ORIENTATION_UNKNOWN:
        return None
    return ((degrees + 45) // 90 * 90) % 360


def capture_rotation(
    is_front_facing: bool,
    sensor_orientation: int,
    device_orientation: int,
) -> int:
    """
    Rotation hint to store with a still image or video recording.

    Unlike effective_rotation this follows the physical device orientation
    rather than the display, so pictures stay upright when the UI is locked.
    """
    if is_front_facing:
        return (sensor_orientation - device_orientation + 360) % 360
    return (sensor_orientation + device_orientation) % 360
