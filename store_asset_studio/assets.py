"""
Asset definitions persistence: load, save, and validate asset presets.

Runtime presets are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``).  On first launch (or if the file
is missing/corrupt), the file is created from DEFAULT_ASSETS.

The on-disk format uses a versioned envelope::

    {"version": 1, "assets": [ ... ]}

Each asset has a default ``width``/``height`` and an optional
``alternatives`` list of extra output sizes for the same slot.
"""

import json
import logging
from copy import deepcopy
from math import gcd
from pathlib import Path

from store_asset_studio.config import DEFAULT_ASSETS, MAX_OUTPUT_DIMENSION, config_dir
from store_asset_studio.models import AlternativeSize, AssetDefinition, OutputSpec

logger = logging.getLogger(__name__)

_ASSETS_FILENAME = "assets.json"
_FORMAT_VERSION = 1

_ASSET_REQUIRED_KEYS = {"id", "title", "width", "height"}
_ALT_REQUIRED_KEYS = {"label", "width", "height"}
_SIZE_KEYS = ("width", "height")

# Asset ids end up in file names
_INVALID_ID_CHARS = set('<>:"/\\|?*\0 ')


# =============================================================================
# Aspect-ratio helpers
# =============================================================================
def normalize_ratio(w: int, h: int) -> tuple[int, int]:
    """Reduce ratio to simplest form via GCD. (1280, 800) → (8, 5)"""
    g = gcd(w, h)
    return w // g, h // g


def aspect_key(w: int, h: int) -> str:
    """Normalized string key. (1400, 560) → '5:2'"""
    nw, nh = normalize_ratio(w, h)
    return f"{nw}:{nh}"


# =============================================================================
# Conversion
# =============================================================================
def asset_from_dict(data: dict) -> AssetDefinition:
    """Build an AssetDefinition from a validated dict."""
    alternatives = tuple(
        AlternativeSize(alt["label"], alt["width"], alt["height"])
        for alt in data.get("alternatives") or ()
    )
    return AssetDefinition(
        id=data["id"],
        title=data["title"],
        width=data["width"],
        height=data["height"],
        description=data.get("description", ""),
        alternatives=alternatives,
    )


def asset_to_dict(asset: AssetDefinition) -> dict:
    return {
        "id": asset.id,
        "title": asset.title,
        "description": asset.description,
        "width": asset.width,
        "height": asset.height,
        "alternatives": [
            {"label": alt.label, "width": alt.width, "height": alt.height}
            for alt in asset.alternatives
        ],
    }


def output_specs(asset: AssetDefinition) -> list[OutputSpec]:
    """All output sizes an asset slot offers, default first."""
    specs = [asset.spec]
    for alt in asset.alternatives:
        spec = OutputSpec(alt.width, alt.height)
        if spec not in specs:
            specs.append(spec)
    return specs


def find_asset(assets: list[AssetDefinition], asset_id: str) -> AssetDefinition:
    """Return the asset with *asset_id*; raises KeyError if there is none."""
    for asset in assets:
        if asset.id == asset_id:
            return asset
    raise KeyError(f"Unknown asset id: {asset_id!r}")


# =============================================================================
# Config directory helpers
# =============================================================================
def _assets_path() -> Path:
    """Return the full path to assets.json."""
    return config_dir() / _ASSETS_FILENAME


# =============================================================================
# Validation
# =============================================================================
def validate_asset_id(asset_id: str) -> str | None:
    """
    Validate an asset id for safe use inside an output file name.

    Returns an error string if invalid, or None if valid.
    """
    if not isinstance(asset_id, str) or not asset_id.strip():
        return "id must be a non-empty string"
    if asset_id.startswith(".") or asset_id.endswith("."):
        return "id must not start or end with a dot"
    bad = _INVALID_ID_CHARS & set(asset_id)
    if bad:
        return f"id contains invalid characters: {' '.join(sorted(repr(c) for c in bad))}"
    return None


def _size_errors(prefix: str, entry: dict) -> list[str]:
    errors = []
    for key in _SIZE_KEYS:
        val = entry.get(key)
        if not isinstance(val, int) or isinstance(val, bool) or val <= 0:
            errors.append(f"{prefix}: {key} must be a positive integer, got {val!r}")
        elif val > MAX_OUTPUT_DIMENSION:
            errors.append(f"{prefix}: {key} must be at most {MAX_OUTPUT_DIMENSION}, got {val}")
    return errors


def validate_assets(data: object) -> list[str]:
    """
    Validate an asset definitions data structure.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list):
        errors.append("Assets data must be a list")
        return errors

    ids_seen: set[str] = set()

    for i, asset in enumerate(data):
        prefix = f"Asset #{i + 1}"

        if not isinstance(asset, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        missing = _ASSET_REQUIRED_KEYS - asset.keys()
        if missing:
            errors.append(f"{prefix}: missing keys: {', '.join(sorted(missing))}")
            continue

        asset_id = asset.get("id")
        id_err = validate_asset_id(asset_id)
        if id_err:
            errors.append(f"{prefix}: {id_err}")
        elif asset_id in ids_seen:
            errors.append(f"{prefix}: duplicate id '{asset_id}'")
        else:
            ids_seen.add(asset_id)

        title = asset.get("title")
        if not isinstance(title, str) or not title.strip():
            errors.append(f"{prefix}: title must be a non-empty string")

        if not isinstance(asset.get("description", ""), str):
            errors.append(f"{prefix}: description must be a string")

        errors.extend(_size_errors(prefix, asset))

        alternatives = asset.get("alternatives", [])
        if alternatives is None:
            continue
        if not isinstance(alternatives, list):
            errors.append(f"{prefix}: alternatives must be a list")
            continue

        for j, alt in enumerate(alternatives):
            aprefix = f"{prefix} alternative #{j + 1}"
            if not isinstance(alt, dict):
                errors.append(f"{aprefix}: must be a dict")
                continue
            amissing = _ALT_REQUIRED_KEYS - alt.keys()
            if amissing:
                errors.append(f"{aprefix}: missing keys: {', '.join(sorted(amissing))}")
                continue
            label = alt.get("label")
            if not isinstance(label, str) or not label.strip():
                errors.append(f"{aprefix}: label must be a non-empty string")
            errors.extend(_size_errors(aprefix, alt))

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def load_assets() -> list[AssetDefinition]:
    """
    Load asset definitions from assets.json.

    If the file is missing, corrupt, or fails validation, writes the
    defaults and returns them.
    """
    path = _assets_path()

    if not path.exists():
        logger.info("assets.json not found — creating with defaults at %s", path)
        _write_defaults(path)
        return _defaults()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read assets.json (%s) — restoring defaults", exc)
        _write_defaults(path)
        return _defaults()

    if not isinstance(raw, dict) or "version" not in raw or "assets" not in raw:
        logger.warning("assets.json missing version envelope — restoring defaults")
        _write_defaults(path)
        return _defaults()

    data = raw["assets"]
    errors = validate_assets(data)
    if errors:
        logger.warning(
            "assets.json validation failed:\n  %s\nRestoring defaults.",
            "\n  ".join(errors),
        )
        _write_defaults(path)
        return _defaults()

    return [asset_from_dict(a) for a in data]


def save_assets(assets: list[AssetDefinition]) -> None:
    """
    Validate and write asset definitions to assets.json.

    Raises ValueError if validation fails.
    Raises OSError if the file cannot be written.
    """
    data = [asset_to_dict(a) for a in assets]
    errors = validate_assets(data)
    if errors:
        raise ValueError("Invalid asset definitions:\n  " + "\n  ".join(errors))

    envelope = {"version": _FORMAT_VERSION, "assets": data}
    path = _assets_path()
    path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved %d asset definition(s) to %s", len(data), path)


def _defaults() -> list[AssetDefinition]:
    return [asset_from_dict(a) for a in DEFAULT_ASSETS]


def _write_defaults(path: Path) -> None:
    """Write DEFAULT_ASSETS to the given path in versioned envelope."""
    try:
        envelope = {"version": _FORMAT_VERSION, "assets": deepcopy(DEFAULT_ASSETS)}
        path.write_text(
            json.dumps(envelope, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
    except OSError as exc:
        logger.error("Could not write default assets to %s: %s", path, exc)
