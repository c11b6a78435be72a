"""
Tests for CropTransform module
"""

import numpy as np
import pytest

from api.exceptions import ImageNotFoundException, InvalidCropException, SelectionTooSmallException
from core.crop_transform import CropTransform
from schemas import ROI, CropRequest, Point, Size

NATIVE = Size(width=640, height=480)
DISPLAY = Size(width=320, height=240)


def selection(x1, y1, x2, y2) -> CropRequest:
    return CropRequest(start_point=Point(x=x1, y=y1), end_point=Point(x=x2, y=y2))


class TestComputeCrop:
    """Test display -> native mapping"""

    def test_full_display_maps_to_full_frame(self):
        roi = CropTransform.compute_crop(selection(0, 0, 320, 240), DISPLAY, NATIVE)

        assert roi == ROI(x=0, y=0, width=640, height=480)

    def test_scale_applied_to_both_axes(self):
        roi = CropTransform.compute_crop(selection(50, 40, 200, 150), DISPLAY, NATIVE)

        assert roi.to_dict() == {"x": 100, "y": 80, "width": 300, "height": 220}

    def test_points_in_any_order(self):
        forward = CropTransform.compute_crop(selection(50, 40, 200, 150), DISPLAY, NATIVE)
        backward = CropTransform.compute_crop(selection(200, 150, 50, 40), DISPLAY, NATIVE)
        crossed = CropTransform.compute_crop(selection(200, 40, 50, 150), DISPLAY, NATIVE)

        assert forward == backward == crossed

    def test_points_outside_display_are_clamped(self):
        roi = CropTransform.compute_crop(selection(-50, -20, 400, 300), DISPLAY, NATIVE)

        assert roi == ROI(x=0, y=0, width=640, height=480)

    def test_selection_below_minimum(self):
        # 20x20 display pixels -> 40x40 native pixels
        with pytest.raises(SelectionTooSmallException) as exc_info:
            CropTransform.compute_crop(selection(10, 10, 30, 30), DISPLAY, NATIVE)

        assert exc_info.value.status_code == 422
        assert exc_info.value.details["min_size"] == 50

    def test_minimum_applies_to_each_axis(self):
        # wide but only 20 native pixels tall
        with pytest.raises(SelectionTooSmallException):
            CropTransform.compute_crop(selection(0, 100, 320, 110), DISPLAY, NATIVE)

    def test_selection_exactly_at_minimum(self):
        roi = CropTransform.compute_crop(selection(0, 0, 25, 25), DISPLAY, NATIVE)

        assert roi.width == 50
        assert roi.height == 50

    def test_custom_minimum(self):
        roi = CropTransform.compute_crop(selection(10, 10, 30, 30), DISPLAY, NATIVE, min_size=10)

        assert roi.to_dict() == {"x": 20, "y": 20, "width": 40, "height": 40}

    def test_result_stays_inside_native_frame_with_mismatched_aspect(self):
        # Square display over a 4:3 image: the bottom of the display has no pixels
        display = Size(width=320, height=320)
        roi = CropTransform.compute_crop(selection(0, 200, 320, 320), display, NATIVE)

        assert roi.y2 <= 480
        assert roi.x2 <= 640
        assert roi.height == 80

    def test_clipped_result_rechecked_against_minimum(self):
        display = Size(width=320, height=320)

        with pytest.raises(SelectionTooSmallException):
            CropTransform.compute_crop(selection(0, 220, 320, 320), display, NATIVE)


class TestApplyCrop:
    """Test cutting ROIs out of buffers"""

    def test_full_frame_crop_is_identity(self, test_image):
        height, width = test_image.shape[:2]

        cropped = CropTransform.apply_crop(test_image, ROI(x=0, y=0, width=width, height=height))

        assert np.array_equal(cropped, test_image)
        assert cropped is not test_image

    def test_crop_dimensions_and_content(self, gradient_image):
        roi = ROI(x=100, y=80, width=300, height=220)

        cropped = CropTransform.apply_crop(gradient_image, roi)

        assert cropped.shape == (220, 300, 3)
        assert np.array_equal(cropped, gradient_image[80:300, 100:400])

    def test_crop_is_independent_copy(self, gradient_image):
        cropped = CropTransform.apply_crop(gradient_image, ROI(x=0, y=0, width=60, height=60))
        cropped[:] = 0

        assert gradient_image[10, 10, 0] == 10

    def test_grayscale_buffer(self):
        gray = np.arange(100 * 120, dtype=np.uint16).reshape(100, 120).astype(np.uint8)

        cropped = CropTransform.apply_crop(gray, ROI(x=10, y=20, width=50, height=60))

        assert cropped.shape == (60, 50)

    def test_roi_outside_buffer(self, test_image):
        with pytest.raises(InvalidCropException):
            CropTransform.apply_crop(test_image, ROI(x=600, y=0, width=100, height=100))

    def test_non_image_buffer(self):
        with pytest.raises(InvalidCropException):
            CropTransform.apply_crop(np.zeros((2, 10, 10, 3)), ROI(x=0, y=0, width=5, height=5))


class TestCropImage:
    """Test crops applied to stored images"""

    def test_crop_replaces_buffer_in_place(self, image_store, gradient_image):
        image_id = image_store.add(gradient_image)
        image_store.toggle_selection(image_id)

        roi = CropTransform.crop_image(
            image_store, image_id, selection(50, 40, 200, 150), DISPLAY
        )

        image = image_store.get(image_id)
        assert roi.to_dict() == {"x": 100, "y": 80, "width": 300, "height": 220}
        assert (image.width, image.height) == (300, 220)
        assert np.array_equal(image.buffer, gradient_image[80:300, 100:400])
        assert image.selected is False
        assert image_store.ids() == (image_id,)

    def test_too_small_selection_leaves_store_unchanged(self, image_store, test_image):
        image_id = image_store.add(test_image)
        events = []
        image_store.subscribe(events.append)

        with pytest.raises(SelectionTooSmallException):
            CropTransform.crop_image(image_store, image_id, selection(10, 10, 30, 30), DISPLAY)

        assert image_store.get(image_id).buffer is test_image
        assert events == []

    def test_unknown_image(self, image_store):
        with pytest.raises(ImageNotFoundException):
            CropTransform.crop_image(image_store, "img_missing", selection(0, 0, 100, 100), DISPLAY)
