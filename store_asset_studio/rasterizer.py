"""
Rasterizer: rotate, crop, resample and encode (Qt-free).

Two independent drawing stages, each a pure function returning a new Pillow
image that the caller owns:

1. ``rotate_onto_canvas`` draws the source rotated about its centre onto a
   transparent canvas sized to the rotated bounding box.
2. ``crop_and_resample`` cuts the crop region out of that canvas and
   stretches it to the exact output size.

``rasterize`` composes them, closes both surfaces on every exit path and
returns PNG bytes.  Safe to import in worker processes.
"""

import io
import logging

from PIL import Image

from store_asset_studio.config import (
    MAX_OUTPUT_DIMENSION, PNG_COMPRESS_LEVEL, RESAMPLING_FILTER, ROTATION_RESAMPLING,
)
from store_asset_studio.errors import EncodingError, InvalidRegionError
from store_asset_studio.models import BoundingBox, CropRegion, OutputRaster, OutputSpec, SourceImage
from store_asset_studio.transform import normalize_rotation, resolve, rotation_trig

logger = logging.getLogger(__name__)

# Angles are clockwise on screen (y axis pointing down); Pillow's
# ROTATE_* transposes are counter-clockwise.
_CLOCKWISE_TRANSPOSE = {
    90.0: Image.Transpose.ROTATE_270,
    180.0: Image.Transpose.ROTATE_180,
    270.0: Image.Transpose.ROTATE_90,
}

_TRANSPARENT = (0, 0, 0, 0)


# =============================================================================
# Stage 1: rotate into the bounding box
# =============================================================================
def _affine_rotate(rgba: Image.Image, rotation: float, bbox: BoundingBox) -> Image.Image:
    """Translate to the canvas centre, rotate, translate back by half the source size, draw.

    Pillow's affine transform maps *output* coordinates to *input*
    coordinates, so the matrix below is the inverse of that sequence.
    """
    cos_th, sin_th = rotation_trig(rotation)
    cx, cy = bbox.width / 2, bbox.height / 2
    sx, sy = rgba.width / 2, rgba.height / 2
    matrix = (
        cos_th, sin_th, sx - cos_th * cx - sin_th * cy,
        -sin_th, cos_th, sy + sin_th * cx - cos_th * cy,
    )
    # Interpolate premultiplied so transparent fill does not darken edges
    with rgba.convert("RGBa") as premultiplied:
        with premultiplied.transform(
            bbox.size, Image.Transform.AFFINE, matrix,
            resample=ROTATION_RESAMPLING, fillcolor=_TRANSPARENT,
        ) as rotated:
            return rotated.convert("RGBA")


def rotate_onto_canvas(image: Image.Image, rotation: float, bbox: BoundingBox) -> Image.Image:
    """Return a new RGBA canvas of ``bbox.size`` with *image* rotated about its centre."""
    rotation = normalize_rotation(rotation)
    with image.convert("RGBA") as rgba:
        if rotation == 0.0:
            canvas = rgba.copy()
        elif rotation in _CLOCKWISE_TRANSPOSE:
            canvas = rgba.transpose(_CLOCKWISE_TRANSPOSE[rotation])
        else:
            canvas = _affine_rotate(rgba, rotation, bbox)

    if canvas.size != bbox.size:
        # Right-angle paths can only disagree with the box if it was computed
        # for a different source size.
        canvas.close()
        raise ValueError(f"Rotated canvas is {canvas.size}, expected {bbox.size}")
    return canvas


# =============================================================================
# Stage 2: crop and resample to the output size
# =============================================================================
def crop_and_resample(canvas: Image.Image, region: CropRegion,
                      output_width: int, output_height: int,
                      resample: Image.Resampling = RESAMPLING_FILTER) -> Image.Image:
    """Cut *region* out of *canvas* and stretch it to exactly ``output_width`` × ``output_height``.

    Parts of the region outside the canvas come out transparent.  The
    aspect ratio of *region* is ignored.
    """
    target = (output_width, output_height)
    with canvas.crop(region.box()) as cropped:
        if cropped.size == target:
            return cropped.copy()
        return cropped.resize(target, resample)


# =============================================================================
# Encoding
# =============================================================================
def encode_png(image: Image.Image) -> bytes:
    """Serialize *image* as lossless PNG, preserving alpha."""
    buf = io.BytesIO()
    try:
        image.save(buf, "PNG", compress_level=PNG_COMPRESS_LEVEL)
    except (OSError, ValueError) as exc:
        raise EncodingError(f"PNG encoding failed: {exc}") from exc
    return buf.getvalue()


# =============================================================================
# Pipeline
# =============================================================================
def _check_output_size(output_width: int, output_height: int) -> OutputSpec:
    spec = OutputSpec(output_width, output_height)
    if max(spec.width, spec.height) > MAX_OUTPUT_DIMENSION:
        raise ValueError(
            f"Output {spec} exceeds the {MAX_OUTPUT_DIMENSION}px limit per side"
        )
    return spec


def rasterize(source: SourceImage | Image.Image, rotation_degrees: float, region: CropRegion,
              output_width: int, output_height: int,
              resample: Image.Resampling = RESAMPLING_FILTER) -> OutputRaster:
    """Render *region* of the rotated *source* into an ``output_width`` × ``output_height`` PNG.

    *source* is a ``SourceImage`` (or an already decoded Pillow image).

    Raises InvalidRegionError for empty or out-of-bounds regions and
    EncodingError if the final buffer cannot be produced.  No partial
    output is ever returned.
    """
    spec = _check_output_size(output_width, output_height)
    image = source.image if isinstance(source, SourceImage) else source
    resolved = resolve(image.width, image.height, rotation_degrees, region)

    try:
        with rotate_onto_canvas(image, resolved.rotation, resolved.bounding_box) as canvas:
            with crop_and_resample(canvas, region, spec.width, spec.height, resample) as final:
                data = encode_png(final)
    except (InvalidRegionError, EncodingError):
        raise
    except (OSError, ValueError, MemoryError) as exc:
        logger.error("Rasterization failed for %s at %.2f°: %s", region, resolved.rotation, exc)
        raise EncodingError(f"Could not produce {spec} raster: {exc}") from exc

    raster = OutputRaster(spec.width, spec.height, data)
    logger.info(
        "Rasterized %dx%d @ %.2f° crop %s -> %s (%.1f KB)",
        image.width, image.height, resolved.rotation, region, spec, raster.size_kb,
    )
    return raster
