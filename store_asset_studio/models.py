"""
Data models shared by the pipeline, the session and the batch worker.

Everything the interactive UI hands to the pipeline is a frozen value:
``Viewport`` and ``CropRegion`` are snapshots taken at confirm time, so no
live crop state crosses into the transformation core.  ``OutputRaster`` is
the one mutable type because its owner releases the buffer when it is
replaced.
"""

import io
from dataclasses import dataclass, field

from PIL import Image

from store_asset_studio.config import ZOOM_MAX, ZOOM_MIN


# =============================================================================
# Source and target descriptions
# =============================================================================
@dataclass(frozen=True)
class SourceImage:
    """Decoded bitmap of an uploaded file."""
    image: Image.Image = field(repr=False)
    name: str = ""

    def __post_init__(self):
        w, h = self.image.size
        if w <= 0 or h <= 0:
            raise ValueError(f"Source image must have positive dimensions, got {w}x{h}")

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def close(self) -> None:
        self.image.close()


@dataclass(frozen=True)
class OutputSpec:
    """Fixed pixel size an asset must be exported at."""
    width: int
    height: int

    def __post_init__(self):
        for name in ("width", "height"):
            val = getattr(self, name)
            if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
                raise ValueError(f"OutputSpec {name} must be a positive integer, got {val!r}")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class AlternativeSize:
    label: str
    width: int
    height: int


@dataclass(frozen=True)
class AssetDefinition:
    """One asset slot: a default output size plus optional alternatives."""
    id: str
    title: str
    width: int
    height: int
    description: str = ""
    alternatives: tuple[AlternativeSize, ...] = ()

    @property
    def spec(self) -> OutputSpec:
        return OutputSpec(self.width, self.height)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


# =============================================================================
# Crop geometry
# =============================================================================
@dataclass(frozen=True)
class Viewport:
    """Snapshot of the crop UI: pan offset, zoom and rotation.

    The offset is measured in displayed (rotated) pixels from the centred
    position, positive values moving the crop window right / down.
    """
    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0
    rotation: float = 0.0

    def __post_init__(self):
        # Written so NaN fails the check too
        if not ZOOM_MIN <= self.zoom <= ZOOM_MAX:
            raise ValueError(
                f"Viewport zoom must be between {ZOOM_MIN} and {ZOOM_MAX}, got {self.zoom!r}"
            )
        # Keep rotation in [0, 360)
        object.__setattr__(self, "rotation", float(self.rotation) % 360.0)


@dataclass(frozen=True)
class CropRegion:
    """Crop rectangle in displayed (post-rotation) pixel coordinates."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_tuple(cls, rect) -> "CropRegion":
        x, y, w, h = rect
        return cls(x, y, w, h)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def box(self) -> tuple[int, int, int, int]:
        """Whole-pixel ``(left, top, right, bottom)`` box for Pillow."""
        left = round(self.x)
        top = round(self.y)
        return left, top, max(left + 1, round(self.right)), max(top + 1, round(self.bottom))


@dataclass(frozen=True)
class BoundingBox:
    """Whole-pixel size of an image after rotation about its centre."""
    width: int
    height: int

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


# =============================================================================
# Pipeline output
# =============================================================================
@dataclass
class OutputRaster:
    """Encoded PNG bytes at exactly the requested output size."""
    width: int
    height: int
    data: bytes = field(repr=False)
    mode: str = "RGBA"
    format: str = "PNG"
    released: bool = False

    @property
    def size(self) -> int:
        """Encoded size in bytes."""
        return len(self.data)

    @property
    def size_kb(self) -> float:
        return self.size / 1024

    def open(self) -> Image.Image:
        """Decode the buffer back into a Pillow image (for previews)."""
        if self.released:
            raise ValueError("OutputRaster has been released")
        return Image.open(io.BytesIO(self.data))

    def release(self) -> None:
        """Drop the encoded buffer. Safe to call more than once."""
        self.data = b""
        self.released = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
