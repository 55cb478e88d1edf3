"""
Pytest configuration and shared fixtures for the pipeline tests.
"""
import pytest
from PIL import Image, ImageDraw

from store_asset_studio import assets
from store_asset_studio.models import AssetDefinition, AlternativeSize, SourceImage


def _pattern(width: int, height: int, mode: str = "RGB") -> Image.Image:
    """Deterministic image where every pixel encodes its own position."""
    img = Image.new("RGB", (width, height))
    img.putdata([
        (x % 256, y % 256, (x // 256 + y // 256 * 8) % 256)
        for y in range(height) for x in range(width)
    ])
    return img if mode == "RGB" else img.convert(mode)


@pytest.fixture
def pattern_image():
    """Factory for position-encoded test images."""
    return _pattern


@pytest.fixture
def halves_image():
    """4x2 image: left half red, right half blue."""
    img = Image.new("RGB", (4, 2), (0, 0, 255))
    ImageDraw.Draw(img).rectangle((0, 0, 1, 1), fill=(255, 0, 0))
    return img


@pytest.fixture
def source_128(pattern_image):
    return SourceImage(pattern_image(128, 128), name="icon.png")


@pytest.fixture
def cover_asset():
    return AssetDefinition(
        id="cover",
        title="Marquee / Cover",
        width=1280,
        height=800,
        alternatives=(AlternativeSize("Small Cover", 640, 400),),
    )


@pytest.fixture
def config_home(tmp_path, monkeypatch):
    """Point asset persistence at a temporary config directory."""
    monkeypatch.setattr(assets, "config_dir", lambda: tmp_path)
    return tmp_path
