"""
Crop-rectangle bookkeeping: Viewport snapshot → CropRegion.

The crop window always has the asset's aspect ratio.  At zoom 1.0 it is the
largest such window that fits the rotated image's bounding box; zooming in
shrinks it around the centre and the pan offset moves it, clamped so it
never leaves the box.  All results are whole pixels in displayed
(post-rotation) coordinates, ready for ``rasterizer.rasterize``.
"""

from store_asset_studio.models import CropRegion, Viewport
from store_asset_studio.transform import rotated_bounding_box


def calculate_max_crop(img_w: int, img_h: int, aspect: float) -> tuple[int, int]:
    """Calculate the maximum crop dimensions for a given aspect ratio within an image."""
    if aspect <= 0:
        raise ValueError(f"Aspect ratio must be positive, got {aspect!r}")
    # Try full width
    crop_w = img_w
    crop_h = int(round(crop_w / aspect))
    if crop_h <= img_h:
        return crop_w, max(1, crop_h)
    # Full height
    crop_h = img_h
    crop_w = int(round(crop_h * aspect))
    return max(1, min(crop_w, img_w)), crop_h


def center_crop(img_w: int, img_h: int, crop_w: int, crop_h: int) -> CropRegion:
    """Return a centered crop rectangle."""
    x = (img_w - crop_w) // 2
    y = (img_h - crop_h) // 2
    return CropRegion(x, y, crop_w, crop_h)


def clamp_crop(crop: CropRegion, img_w: int, img_h: int) -> CropRegion:
    """Clamp crop rectangle to image bounds."""
    w = max(1, min(int(round(crop.width)), img_w))
    h = max(1, min(int(round(crop.height)), img_h))
    x = max(0, min(int(round(crop.x)), img_w - w))
    y = max(0, min(int(round(crop.y)), img_h - h))
    return CropRegion(x, y, w, h)


def crop_region_for(source_w: int, source_h: int, viewport: Viewport, aspect: float) -> CropRegion:
    """Resolve a viewport snapshot into a crop rectangle of the given aspect ratio."""
    bbox = rotated_bounding_box(source_w, source_h, viewport.rotation)
    max_w, max_h = calculate_max_crop(bbox.width, bbox.height, aspect)
    crop_w = max(1, int(round(max_w / viewport.zoom)))
    crop_h = max(1, int(round(max_h / viewport.zoom)))
    centred = center_crop(bbox.width, bbox.height, crop_w, crop_h)
    moved = CropRegion(
        centred.x + viewport.offset_x, centred.y + viewport.offset_y, crop_w, crop_h,
    )
    return clamp_crop(moved, bbox.width, bbox.height)
