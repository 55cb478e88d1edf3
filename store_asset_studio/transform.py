"""
Rotation geometry for the crop pipeline (Qt-free, Pillow-free).

The crop UI works on the image *after* rotation about its own centre.  The
rotated image is drawn centred inside a canvas sized to its bounding box, and
crop rectangles are sub-rectangles of that canvas.  ``resolve()`` computes the
whole-pixel bounding box so the rasterizer allocates exactly the space the
crop rectangle assumes, and rejects rectangles that cannot be rasterized.
"""

import logging
import math
from dataclasses import dataclass

from store_asset_studio.errors import InvalidRegionError
from store_asset_studio.models import BoundingBox, CropRegion

logger = logging.getLogger(__name__)

# Exact (cos, sin) for right angles, so 90/180/270 never pick up float drift
_RIGHT_ANGLE_TRIG = {
    0: (1, 0),
    90: (0, 1),
    180: (-1, 0),
    270: (0, -1),
}


@dataclass(frozen=True)
class ResolvedTransform:
    """Everything the rasterizer needs to place the crop."""
    rotation: float
    bounding_box: BoundingBox
    region: CropRegion

    @property
    def is_right_angle(self) -> bool:
        return self.rotation in _RIGHT_ANGLE_TRIG


# =============================================================================
# Rotation helpers
# =============================================================================
def normalize_rotation(degrees: float) -> float:
    """Map any angle into [0, 360). (-90 → 270, 360 → 0)"""
    r = float(degrees) % 360.0
    # Tiny negative angles round up to exactly 360.0
    return 0.0 if r == 360.0 else r


def rotation_trig(degrees: float) -> tuple[float, float]:
    """Return ``(cos, sin)`` of the angle, exact for multiples of 90°."""
    r = normalize_rotation(degrees)
    if r in _RIGHT_ANGLE_TRIG:
        return _RIGHT_ANGLE_TRIG[int(r)]
    rad = math.radians(r)
    return math.cos(rad), math.sin(rad)


def rotated_bounding_box(width: int, height: int, degrees: float) -> BoundingBox:
    """Whole-pixel bounding box of a ``width`` × ``height`` image rotated about its centre.

    ``(|w·cos θ| + |h·sin θ|, |w·sin θ| + |h·cos θ|)``, rounded on both axes.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    cos_th, sin_th = rotation_trig(degrees)
    bw = abs(width * cos_th) + abs(height * sin_th)
    bh = abs(width * sin_th) + abs(height * cos_th)
    return BoundingBox(int(round(bw)), int(round(bh)))


# =============================================================================
# Region validation
# =============================================================================
def validate_region(region: CropRegion, bbox: BoundingBox) -> CropRegion:
    """Raise InvalidRegionError if *region* cannot be rasterized inside *bbox*.

    Rectangles that only partly overlap the box are accepted; the uncovered
    part comes out transparent.
    """
    values = (region.x, region.y, region.width, region.height)
    if not all(math.isfinite(v) for v in values):
        raise InvalidRegionError(f"Crop region has non-finite coordinates: {region}")
    if region.width <= 0 or region.height <= 0:
        raise InvalidRegionError(
            f"Crop region must have positive size, got {region.width}x{region.height}"
        )
    if (region.right <= 0 or region.bottom <= 0
            or region.x >= bbox.width or region.y >= bbox.height):
        raise InvalidRegionError(
            f"Crop region {region} lies outside the {bbox.width}x{bbox.height} bounding box"
        )
    return region


def resolve(source_width: int, source_height: int, rotation_degrees: float,
            region: CropRegion) -> ResolvedTransform:
    """Compute the rotated bounding box and validate *region* against it."""
    rotation = normalize_rotation(rotation_degrees)
    bbox = rotated_bounding_box(source_width, source_height, rotation)
    validate_region(region, bbox)
    logger.debug(
        "Resolved %dx%d @ %.2f° -> bbox %dx%d, crop %s",
        source_width, source_height, rotation, bbox.width, bbox.height, region,
    )
    return ResolvedTransform(rotation, bbox, region)
