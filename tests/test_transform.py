import math

import pytest

from store_asset_studio.errors import InvalidRegionError
from store_asset_studio.models import BoundingBox, CropRegion
from store_asset_studio.transform import (
    normalize_rotation, resolve, rotated_bounding_box, rotation_trig, validate_region,
)


class TestNormalizeRotation:

    @pytest.mark.parametrize("degrees, expected", [
        (0, 0.0), (45, 45.0), (360, 0.0), (450, 90.0), (-90, 270.0), (-1e-20, 0.0),
    ])
    def test_wraps_into_range(self, degrees, expected):
        assert normalize_rotation(degrees) == expected

    def test_right_angles_are_exact(self):
        assert rotation_trig(90) == (0, 1)
        assert rotation_trig(180) == (-1, 0)
        assert rotation_trig(-90) == (0, -1)


class TestBoundingBox:

    def test_zero_rotation_is_noop(self):
        bbox = rotated_bounding_box(800, 600, 0)
        assert bbox == BoundingBox(800, 600)
        assert isinstance(bbox.width, int) and isinstance(bbox.height, int)

    @pytest.mark.parametrize("degrees, expected", [
        (90, (600, 800)), (180, (800, 600)), (270, (600, 800)), (360, (800, 600)),
    ])
    def test_right_angles_swap_exactly(self, degrees, expected):
        assert rotated_bounding_box(800, 600, degrees).size == expected

    def test_odd_sizes_do_not_drift(self):
        assert rotated_bounding_box(1001, 333, 90).size == (333, 1001)
        assert rotated_bounding_box(1001, 333, 270).size == (333, 1001)

    def test_45_degrees_expands(self):
        bbox = rotated_bounding_box(1000, 1000, 45)
        assert abs(bbox.width - 1414) <= 1
        assert abs(bbox.height - 1414) <= 1

    def test_formula_for_arbitrary_angle(self):
        theta = math.radians(30)
        w, h = 400, 200
        bbox = rotated_bounding_box(w, h, 30)
        assert bbox.width == round(abs(w * math.cos(theta)) + abs(h * math.sin(theta)))
        assert bbox.height == round(abs(w * math.sin(theta)) + abs(h * math.cos(theta)))

    def test_rejects_empty_image(self):
        with pytest.raises(ValueError):
            rotated_bounding_box(0, 100, 0)


class TestValidateRegion:

    bbox = BoundingBox(200, 100)

    @pytest.mark.parametrize("region", [
        CropRegion(10, 10, 0, 50),
        CropRegion(10, 10, 50, 0),
        CropRegion(10, 10, -5, 50),
    ])
    def test_empty_region_rejected(self, region):
        with pytest.raises(InvalidRegionError):
            validate_region(region, self.bbox)

    @pytest.mark.parametrize("region", [
        CropRegion(200, 0, 10, 10),
        CropRegion(0, 100, 10, 10),
        CropRegion(-20, 0, 20, 10),
        CropRegion(0, -10, 10, 10),
    ])
    def test_region_outside_box_rejected(self, region):
        with pytest.raises(InvalidRegionError):
            validate_region(region, self.bbox)

    def test_partial_overlap_accepted(self):
        region = CropRegion(150, 50, 100, 100)
        assert validate_region(region, self.bbox) is region

    def test_non_finite_rejected(self):
        with pytest.raises(InvalidRegionError):
            validate_region(CropRegion(float("nan"), 0, 10, 10), self.bbox)

    def test_invalid_region_is_value_error(self):
        with pytest.raises(ValueError):
            validate_region(CropRegion(0, 0, 0, 0), self.bbox)


def test_resolve_returns_box_and_region():
    region = CropRegion(0, 0, 600, 800)
    resolved = resolve(800, 600, -270, region)
    assert resolved.rotation == 90.0
    assert resolved.bounding_box.size == (600, 800)
    assert resolved.region == region
    assert resolved.is_right_angle


def test_resolve_validates_against_rotated_box():
    # Inside the 45° box but outside the unrotated 100x100 image
    resolve(100, 100, 45, CropRegion(120, 120, 10, 10))
    with pytest.raises(InvalidRegionError):
        resolve(100, 100, 0, CropRegion(120, 120, 10, 10))
