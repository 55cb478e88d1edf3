"""
Application constants and configuration.

DEFAULT_ASSETS provides the built-in store asset presets. Runtime presets are
loaded from assets.json via the assets module. All other constants control
rasterization, file handling and the viewport limits the crop UI works with.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is shared by all persistence modules.
"""

import os
import sys
from pathlib import Path

from PIL import Image

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "store-asset-studio"

# Environment variable that overrides the log level (debug, info, ...)
LOG_LEVEL_ENV = "STORE_ASSET_STUDIO_LOG_LEVEL"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory

# =============================================================================
# DEFAULT ASSETS: Chrome Web Store listing images
# =============================================================================
DEFAULT_ASSETS = [
    {
        "id": "icon",
        "title": "Store Icon",
        "description": "The main icon used in the Chrome Web Store listing and extension management page.",
        "width": 128,
        "height": 128,
        "alternatives": [],
    },
    {
        "id": "cover",
        "title": "Marquee / Cover",
        "description": "The large promotional image used at the top of your store listing.",
        "width": 1280,
        "height": 800,
        "alternatives": [
            {"label": "Small Cover", "width": 640, "height": 400},
        ],
    },
    {
        "id": "promo-small",
        "title": "Small Promo Tile",
        "description": "A smaller promotional tile used in related items or search results.",
        "width": 440,
        "height": 280,
        "alternatives": [],
    },
    {
        "id": "promo-marquee",
        "title": "Marquee Promo Tile",
        "description": "Wide banner used for featuring your extension in special store collections.",
        "width": 1400,
        "height": 560,
        "alternatives": [],
    },
]

# Exported files are named f"{OUTPUT_FILE_PREFIX}-{asset_id}-{w}x{h}.png"
OUTPUT_FILE_PREFIX = "chrome"

# PNG compression level (0-9, 9 = maximum compression). PNG is lossless, this
# only trades encode time for file size.
PNG_COMPRESS_LEVEL = 9

# Resampling used when stretching the crop to the output size
RESAMPLING_FILTER = Image.Resampling.LANCZOS

# Resampling used when rotating by angles that are not multiples of 90°
ROTATION_RESAMPLING = Image.Resampling.BICUBIC

# Upper bound for a single output side (pixels)
MAX_OUTPUT_DIMENSION = 16_384

# Viewport limits used by the crop UI
ZOOM_MIN = 1.0
ZOOM_MAX = 3.0

# Supported source image extensions
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tiff", ".tif", ".psd"}
