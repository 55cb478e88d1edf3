"""
Qt-free image I/O utilities.

The two ends of the pipeline that touch files: decoding an upload into a
``SourceImage`` (Pillow, psd-tools for PSD) and writing an ``OutputRaster``
out under a store-ready file name.  The pipeline itself never sees paths.
Safe to import in worker processes.
"""

import io
import logging
from pathlib import Path

from PIL import Image, ImageOps
from psd_tools import PSDImage

from store_asset_studio.config import IMAGE_EXTENSIONS, OUTPUT_FILE_PREFIX
from store_asset_studio.errors import UnsupportedImageError
from store_asset_studio.models import OutputRaster, OutputSpec, SourceImage

logger = logging.getLogger(__name__)


# =============================================================================
# Decoding (upload side)
# =============================================================================
def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.composite()
    return Image.open(path)


def get_image_size(path: Path) -> tuple[int, int]:
    """Get image dimensions without fully loading/compositing."""
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.width, psd.height
    with Image.open(path) as img:
        return img.size


def _decode(img: Image.Image, name: str) -> SourceImage:
    """First frame, EXIF orientation applied, pixels loaded into memory."""
    img.seek(0)
    decoded = ImageOps.exif_transpose(img)
    decoded.load()
    return SourceImage(decoded, name=name)


def load_source_image(path) -> SourceImage:
    """Decode an uploaded file into a SourceImage.

    Raises UnsupportedImageError for unknown extensions and for files that
    fail to decode.
    """
    path = Path(path)
    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        raise UnsupportedImageError(f"Unsupported image type: {path.name}")
    try:
        with open_image(path) as img:
            source = _decode(img, path.name)
    except Exception as exc:
        raise UnsupportedImageError(f"Could not decode {path.name}: {exc}") from exc
    logger.debug("Loaded source %s (%dx%d)", path.name, source.width, source.height)
    return source


def load_source_bytes(data: bytes, name: str = "") -> SourceImage:
    """Decode an in-memory upload (e.g. a file received over a form post)."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _decode(img, name)
    except Exception as exc:
        raise UnsupportedImageError(f"Could not decode {name or 'upload'}: {exc}") from exc


# =============================================================================
# Writing (output side)
# =============================================================================
def output_file_name(asset_id: str, spec: OutputSpec) -> str:
    """Store-ready file name. ('cover', 1280x800) → 'chrome-cover-1280x800.png'"""
    return f"{OUTPUT_FILE_PREFIX}-{asset_id}-{spec.width}x{spec.height}.png"


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def write_raster(raster: OutputRaster, directory, file_name: str) -> Path:
    """Write the raster's bytes to *directory*, never overwriting an existing file."""
    if raster.released:
        raise ValueError("Cannot write a released OutputRaster")
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    while True:
        out_path = unique_path(out_dir / file_name)
        try:
            # Exclusive create: parallel workers may pick the same name
            with open(out_path, "xb") as f:
                f.write(raster.data)
        except FileExistsError:
            continue
        break
    logger.info("Wrote %s (%.1f KB)", out_path, raster.size_kb)
    return out_path
