"""
Preview transform module.

This module computes the 2-D affine transforms that place a camera frame on
a preview surface:
    1. Preview transform: applied on top of the surface's default stretch
    2. Frame-to-display matrix: raw frame coordinates to display coordinates
    3. Overlay mapping: raw frame points to the default (unrotated) stretch

Coordinate System Definitions:
    - Frame: raw capture buffer, origin top-left, x right, y down, unrotated
    - Display: viewport pixels, origin top-left, x right, y down
    - Default stretch: the surface scales the unrotated frame to fill the
      viewport before any transform is applied

Transform Conventions:
    - 3x3 homogeneous matrices acting on column vectors [x, y, 1]
    - post_* operations apply after the existing transform (M' = T @ M)
    - Positive angles rotate clockwise on screen since y points down
"""

import math
import numpy as np
from typing import Callable, Dict, Tuple, Union, Sequence
from dataclasses import dataclass
import logging

from .config import Size, ScalePolicy
from .exceptions import DegenerateGeometryError
from .rotation import is_quarter_turn, normalize_rotation

logger = logging.getLogger(__name__)

# Smallest accepted ratio of singular values of an invertible linear part
_SINGULAR_RTOL = 1e-12

# Exact values for quarter turns avoid 6e-17 residue from math.cos
_QUARTER_TURN_COS_SIN = {
    0: (1.0, 0.0),
    90: (0.0, 1.0),
    180: (-1.0, 0.0),
    270: (0.0, -1.0),
}

PointsLike = Union[Sequence[float], Sequence[Sequence[float]], np.ndarray]


def _cos_sin(degrees: float) -> Tuple[float, float]:
    if float(degrees).is_integer() and int(degrees) % 90 == 0:
        return _QUARTER_TURN_COS_SIN[int(degrees) % 360]
    rad = math.radians(degrees)
    return math.cos(rad), math.sin(rad)


@dataclass(frozen=True)
class TransformComponents:
    """
    Decomposition of a transform of the form translate @ scale @ rotate.

    Attributes:
        scale_x: Horizontal scale, negative when mirrored
        scale_y: Vertical scale (always reported positive)
        rotation_degrees: Clockwise rotation in [0, 360)
        translate_x: Horizontal translation in pixels
        translate_y: Vertical translation in pixels
    """
    scale_x: float
    scale_y: float
    rotation_degrees: float
    translate_x: float
    translate_y: float


@dataclass(frozen=True, eq=False)
class AffineTransform:
    """
    Immutable 2-D affine transform stored as a 3x3 homogeneous matrix.

    Every operation returns a new transform.
    """
    matrix: np.ndarray

    def __post_init__(self):
        m = np.array(self.matrix, dtype=np.float64)
        if m.shape != (3, 3):
            raise ValueError(f"Affine matrix must be 3x3, got {m.shape}")
        m.setflags(write=False)
        object.__setattr__(self, 'matrix', m)

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls(np.eye(3))

    @classmethod
    def translation(cls, dx: float, dy: float) -> "AffineTransform":
        return cls(np.array([
            [1.0, 0.0, dx],
            [0.0, 1.0, dy],
            [0.0, 0.0, 1.0],
        ]))

    @classmethod
    def rotation(cls, degrees: float, px: float = 0.0, py: float = 0.0) -> "AffineTransform":
        """Clockwise (on screen) rotation about the pivot (px, py)."""
        c, s = _cos_sin(degrees)
        R = cls(np.array([
            [c, -s, 0.0],
            [s, c, 0.0],
            [0.0, 0.0, 1.0],
        ]))
        if px == 0 and py == 0:
            return R
        return cls.translation(-px, -py).post_concat(R).post_translate(px, py)

    @classmethod
    def scaling(cls, sx: float, sy: float, px: float = 0.0, py: float = 0.0) -> "AffineTransform":
        """Scale about the pivot (px, py)."""
        S = cls(np.diag([sx, sy, 1.0]))
        if px == 0 and py == 0:
            return S
        return cls.translation(-px, -py).post_concat(S).post_translate(px, py)

    def post_concat(self, other: "AffineTransform") -> "AffineTransform":
        """Return the transform applying self first, then ``other``."""
        return AffineTransform(other.matrix @ self.matrix)

    def post_translate(self, dx: float, dy: float) -> "AffineTransform":
        return self.post_concat(AffineTransform.translation(dx, dy))

    def post_rotate(self, degrees: float, px: float = 0.0, py: float = 0.0) -> "AffineTransform":
        return self.post_concat(AffineTransform.rotation(degrees, px, py))

    def post_scale(self, sx: float, sy: float, px: float = 0.0, py: float = 0.0) -> "AffineTransform":
        return self.post_concat(AffineTransform.scaling(sx, sy, px, py))

    def inverted(self) -> "AffineTransform":
        """
        Inverse transform.

        Raises:
            DegenerateGeometryError: if the matrix is singular
        """
        # Singular values of the linear part; the ratio test does not
        # depend on the overall scale of the transform
        s = np.linalg.svd(self.matrix[:2, :2], compute_uv=False)
        if s[-1] == 0.0 or s[-1] < s[0] * _SINGULAR_RTOL:
            raise DegenerateGeometryError("Transform is not invertible")
        return AffineTransform(np.linalg.inv(self.matrix))

    def map_points(self, points: PointsLike) -> np.ndarray:
        """
        Apply the transform to points.

        Args:
            points: A single (x, y) pair or an Nx2 array of points

        Returns:
            Transformed points with the same shape as the input
        """
        pts = np.asarray(points, dtype=np.float64)
        single = pts.ndim == 1
        pts = np.atleast_2d(pts)
        if pts.shape[1] != 2:
            raise ValueError(f"Points must have shape (N, 2), got {pts.shape}")

        homogeneous = np.column_stack([pts, np.ones(len(pts))])
        mapped = (self.matrix @ homogeneous.T).T[:, :2]
        return mapped[0] if single else mapped

    def decompose(self) -> TransformComponents:
        """
        Split the transform into scale, rotation and translation.

        Assumes the linear part has the form diag(sx, sy) @ R(theta) with
        sy > 0, which holds for every transform built in this module.
        """
        a, b = self.matrix[0, 0], self.matrix[0, 1]
        c, d = self.matrix[1, 0], self.matrix[1, 1]

        scale_y = math.hypot(c, d)
        theta = math.atan2(c, d)
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        scale_x = a * cos_t - b * sin_t

        rotation = math.degrees(theta) % 360.0
        # atan2 can return -0.0 / 360 - eps for a zero angle
        if math.isclose(rotation, 360.0, abs_tol=1e-9):
            rotation = 0.0

        return TransformComponents(
            scale_x=scale_x,
            scale_y=scale_y,
            rotation_degrees=rotation,
            translate_x=float(self.matrix[0, 2]),
            translate_y=float(self.matrix[1, 2]),
        )

    def is_close(self, other: "AffineTransform", rtol: float = 1e-4, atol: float = 1e-6) -> bool:
        return bool(np.allclose(self.matrix, other.matrix, rtol=rtol, atol=atol))

    def as_list(self) -> list:
        """Matrix as nested lists (row-major), for JSON output."""
        return self.matrix.tolist()

    def __repr__(self) -> str:
        rows = ', '.join(
            '[' + ', '.join(f"{v:.6g}" for v in row) + ']' for row in self.matrix
        )
        return f"AffineTransform([{rows}])"


# Per-policy scale factors for the preview surface. The surface has already
# stretched the unrotated frame to the viewport, so factors are relative to
# the viewport seen in rotated space.
ScaleFunction = Callable[[Size, Size, Size], Tuple[float, float]]


def _surface_stretch_fill(rotated: Size, viewport: Size, viewport_rotated: Size) -> Tuple[float, float]:
    return (
        viewport.width / viewport_rotated.width,
        viewport.height / viewport_rotated.height,
    )


def _surface_native_size(rotated: Size, viewport: Size, viewport_rotated: Size) -> Tuple[float, float]:
    return (
        rotated.width / viewport_rotated.width,
        rotated.height / viewport_rotated.height,
    )


def _surface_crop_fill(rotated: Size, viewport: Size, viewport_rotated: Size) -> Tuple[float, float]:
    common = max(viewport.width / rotated.width, viewport.height / rotated.height)
    return (
        common * rotated.width / viewport_rotated.width,
        common * rotated.height / viewport_rotated.height,
    )


def _surface_fit_inside(rotated: Size, viewport: Size, viewport_rotated: Size) -> Tuple[float, float]:
    common = min(viewport.width / rotated.width, viewport.height / rotated.height)
    return (
        common * rotated.width / viewport_rotated.width,
        common * rotated.height / viewport_rotated.height,
    )


_SURFACE_SCALE: Dict[ScalePolicy, ScaleFunction] = {
    ScalePolicy.STRETCH_FILL: _surface_stretch_fill,
    ScalePolicy.NATIVE_SIZE: _surface_native_size,
    ScalePolicy.CROP_FILL: _surface_crop_fill,
    ScalePolicy.FIT_INSIDE: _surface_fit_inside,
}


# Per-policy scale from the rotated raw frame straight to display pixels.
def _frame_stretch_fill(rotated: Size, viewport: Size) -> Tuple[float, float]:
    return viewport.width / rotated.width, viewport.height / rotated.height


def _frame_native_size(rotated: Size, viewport: Size) -> Tuple[float, float]:
    return 1.0, 1.0


def _frame_crop_fill(rotated: Size, viewport: Size) -> Tuple[float, float]:
    common = max(viewport.width / rotated.width, viewport.height / rotated.height)
    return common, common


def _frame_fit_inside(rotated: Size, viewport: Size) -> Tuple[float, float]:
    common = min(viewport.width / rotated.width, viewport.height / rotated.height)
    return common, common


_FRAME_SCALE: Dict[ScalePolicy, Callable[[Size, Size], Tuple[float, float]]] = {
    ScalePolicy.STRETCH_FILL: _frame_stretch_fill,
    ScalePolicy.NATIVE_SIZE: _frame_native_size,
    ScalePolicy.CROP_FILL: _frame_crop_fill,
    ScalePolicy.FIT_INSIDE: _frame_fit_inside,
}


def _require_area(name: str, size: Size) -> None:
    if size.is_degenerate:
        raise DegenerateGeometryError(f"{name} has a zero dimension: {size}")


def rotated_size(effective_rotation: int, size: Size) -> Size:
    """Bounding size after rotating ``size`` by ``effective_rotation``."""
    return size.transposed() if is_quarter_turn(effective_rotation) else size


class PreviewTransformComputer:
    """
    Computes transforms for a preview surface that stretches its content.

    Two derivations of the preview transform are provided:
        1. Direct: rotate about the viewport centre, then apply a scale that
           compensates the default stretch
        2. By inversion: frame_to_display @ inverse(default_stretch)

    Both describe the same physical transform and must agree to within
    floating point tolerance.
    """

    @staticmethod
    def surface_scale(
        effective_rotation: int,
        capture_size: Size,
        viewport: Size,
        policy: ScalePolicy,
    ) -> Tuple[float, float]:
        """
        Scale factors to apply after rotation, relative to the stretched surface.

        Args:
            effective_rotation: Clockwise rotation in degrees
            capture_size: Raw (unrotated) frame size
            viewport: Surface size
            policy: Scale policy

        Returns:
            (scale_x, scale_y)
        """
        _require_area("Capture size", capture_size)
        _require_area("Viewport", viewport)
        rotated = rotated_size(effective_rotation, capture_size)
        viewport_rotated = rotated_size(effective_rotation, viewport)
        return _SURFACE_SCALE[policy](rotated, viewport, viewport_rotated)

    @staticmethod
    def frame_scale(
        effective_rotation: int,
        capture_size: Size,
        viewport: Size,
        policy: ScalePolicy,
    ) -> Tuple[float, float]:
        """Scale factors from rotated frame pixels to display pixels."""
        _require_area("Capture size", capture_size)
        _require_area("Viewport", viewport)
        rotated = rotated_size(effective_rotation, capture_size)
        return _FRAME_SCALE[policy](rotated, viewport)

    @staticmethod
    def preview_transform(
        effective_rotation: int,
        capture_size: Size,
        viewport: Size,
        policy: ScalePolicy = ScalePolicy.CROP_FILL,
        mirror: bool = False,
    ) -> AffineTransform:
        """
        Transform to set on a preview surface that stretches the frame.

        The rotation has to act first: the compensating scale is expressed
        in the post-rotation bounding box, so swapping the order distorts
        the image for 90/270 degree rotations.

        Args:
            effective_rotation: Clockwise rotation in degrees
            capture_size: Raw (unrotated) frame size
            viewport: Surface size
            policy: Scale policy
            mirror: Flip horizontally about the viewport centre

        Returns:
            AffineTransform in surface coordinates
        """
        rotation = normalize_rotation(effective_rotation)
        scale_x, scale_y = PreviewTransformComputer.surface_scale(
            rotation, capture_size, viewport, policy
        )
        if mirror:
            scale_x = -scale_x

        cx = viewport.width / 2.0
        cy = viewport.height / 2.0
        transform = (
            AffineTransform.identity()
            .post_rotate(rotation, cx, cy)
            .post_scale(scale_x, scale_y, cx, cy)
        )

        logger.debug(
            f"Preview transform: rotation={rotation}, capture={capture_size}, "
            f"viewport={viewport}, policy={policy.name}, scale=({scale_x:.4f}, {scale_y:.4f})"
        )
        return transform

    @staticmethod
    def default_stretch_matrix(capture_size: Size, viewport: Size) -> AffineTransform:
        """Scale the unrotated frame to fill the viewport, as the surface does."""
        _require_area("Capture size", capture_size)
        _require_area("Viewport", viewport)
        return AffineTransform.scaling(
            viewport.width / capture_size.width,
            viewport.height / capture_size.height,
        )

    @staticmethod
    def frame_to_display_matrix(
        effective_rotation: int,
        capture_size: Size,
        viewport: Size,
        policy: ScalePolicy = ScalePolicy.CROP_FILL,
        mirror: bool = False,
    ) -> AffineTransform:
        """
        Map raw frame coordinates to where they are shown on the display.

        Steps:
            1. Move the frame centre to the origin
            2. Rotate clockwise by the effective rotation
            3. Mirror horizontally (optional)
            4. Scale according to the policy
            5. Move the origin to the viewport centre

        Use the same policy and mirror flag as the preview transform so that
        mapped points line up with the shown image.
        """
        rotation = normalize_rotation(effective_rotation)
        scale_x, scale_y = PreviewTransformComputer.frame_scale(
            rotation, capture_size, viewport, policy
        )

        transform = (
            AffineTransform.translation(-capture_size.width / 2.0, -capture_size.height / 2.0)
            .post_rotate(rotation)
        )
        if mirror:
            transform = transform.post_scale(-1.0, 1.0)
        return (
            transform
            .post_scale(scale_x, scale_y)
            .post_translate(viewport.width / 2.0, viewport.height / 2.0)
        )

    @staticmethod
    def preview_transform_by_inversion(
        effective_rotation: int,
        capture_size: Size,
        viewport: Size,
        policy: ScalePolicy = ScalePolicy.CROP_FILL,
        mirror: bool = False,
    ) -> AffineTransform:
        """
        Preview transform derived as frame_to_display @ inverse(default_stretch).

        The surface shows ``preview @ stretch`` applied to frame points, which
        must equal the frame-to-display matrix.
        """
        display = PreviewTransformComputer.frame_to_display_matrix(
            effective_rotation, capture_size, viewport, policy, mirror
        )
        stretch = PreviewTransformComputer.default_stretch_matrix(capture_size, viewport)
        return stretch.inverted().post_concat(display)

    @staticmethod
    def overlay_matrix(
        capture_size: Size,
        viewport: Size,
        sensor_orientation: int,
        is_front_facing: bool = False,
    ) -> AffineTransform:
        """
        Map raw frame points into the default (unrotated) preview stretch.

        Used to draw detection overlays. Works on points, not on the
        rendering surface, and is keyed on the raw sensor orientation
        rather than the effective rotation.

        Steps:
            1. Move the frame centre to the origin
            2. Rotate by (360 - sensor_orientation)
            3. Move the origin to the rotated frame's centre
            4. Mirror across the rotated frame width for front cameras
            5. Scale by viewport / capture_size
        """
        _require_area("Capture size", capture_size)
        _require_area("Viewport", viewport)
        orientation = normalize_rotation(sensor_orientation)
        angle = (360 - orientation) % 360
        rotated = rotated_size(angle, capture_size)

        transform = (
            AffineTransform.translation(-capture_size.width / 2.0, -capture_size.height / 2.0)
            .post_rotate(angle)
            .post_translate(rotated.width / 2.0, rotated.height / 2.0)
        )
        if is_front_facing:
            transform = transform.post_scale(-1.0, 1.0).post_translate(rotated.width, 0.0)
        return transform.post_scale(
            viewport.width / capture_size.width,
            viewport.height / capture_size.height,
        )


def compute_preview_transform(
    effective_rotation: int,
    capture_size: Size,
    viewport: Size,
    policy: ScalePolicy = ScalePolicy.CROP_FILL,
    mirror: bool = False,
) -> AffineTransform:
    """Convenience wrapper for PreviewTransformComputer.preview_transform."""
    return PreviewTransformComputer.preview_transform(
        effective_rotation, capture_size, viewport, policy, mirror
    )


def map_frame_points_to_preview(
    points: PointsLike,
    capture_size: Size,
    viewport: Size,
    sensor_orientation: int,
    is_front_facing: bool = False,
) -> np.ndarray:
    """
    Map detection points from raw frame coordinates for overlay drawing.

    Args:
        points: A single (x, y) pair or an Nx2 array in frame pixels
        capture_size: Raw frame size
        viewport: Preview surface size
        sensor_orientation: Sensor mounting angle in degrees
        is_front_facing: True for a front camera

    Returns:
        Points in default-stretch preview coordinates
    """
    matrix = PreviewTransformComputer.overlay_matrix(
        capture_size, viewport, sensor_orientation, is_front_facing
    )
    return matrix.map_points(points)


def transforms_agree(
    a: AffineTransform,
    b: AffineTransform,
    rtol: float = 1e-4,
    atol: float = 1e-6,
) -> bool:
    """
    Check that two transforms match in scale, rotation and full matrix.

    Args:
        a: First transform
        b: Second transform
        rtol: Relative tolerance on scale factors and matrix entries
        atol: Absolute tolerance for entries that should be zero

    Returns:
        True if both transforms describe the same mapping
    """
    ca, cb = a.decompose(), b.decompose()

    if not math.isclose(ca.scale_x, cb.scale_x, rel_tol=rtol, abs_tol=atol):
        return False
    if not math.isclose(ca.scale_y, cb.scale_y, rel_tol=rtol, abs_tol=atol):
        return False

    # Compare angles on the circle
    delta = abs(ca.rotation_degrees - cb.rotation_degrees) % 360.0
    delta = min(delta, 360.0 - delta)
    if delta > rtol * 360.0:
        return False

    return a.is_close(b, rtol=rtol, atol=atol)
