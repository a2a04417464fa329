"""Tests for binarization helpers and image I/O."""

import cv2
import numpy as np
import pytest

from sheet_rectifier.exceptions import ImageLoadError, ImageSaveError, ValidationError
from sheet_rectifier.processors import (
    FinalCropProcessor,
    binarize_image,
    get_image_files,
    ink_mask,
    load_image,
    paper_mask,
    save_image,
    to_grayscale,
)


@pytest.fixture
def two_tone() -> np.ndarray:
    image = np.full((50, 80, 3), 240, dtype=np.uint8)
    image[10:20, 10:70] = 20
    return image


class TestBinarize:
    """Grayscale and threshold helpers."""

    def test_to_grayscale_handles_channels(self, two_tone):
        assert to_grayscale(two_tone).shape == (50, 80)
        assert to_grayscale(cv2.cvtColor(two_tone, cv2.COLOR_BGR2BGRA)).shape == (50, 80)
        gray = to_grayscale(two_tone[:, :, 0])
        assert gray.shape == (50, 80)

    def test_binary_values_only(self, two_tone):
        binary = binarize_image(two_tone)
        assert set(np.unique(binary)) <= {0, 255}

    def test_paper_and_ink_are_complementary(self, two_tone):
        paper = paper_mask(two_tone)
        ink = ink_mask(two_tone)

        assert paper[0, 0] == 255 and ink[0, 0] == 0
        assert paper[15, 40] == 0 and ink[15, 40] == 255

    def test_fixed_threshold(self, two_tone):
        binary = binarize_image(two_tone, method="fixed", threshold=100, invert=True)
        assert binary[15, 40] == 255
        assert binary[0, 0] == 0

    def test_unknown_method(self, two_tone):
        with pytest.raises(ValueError):
            binarize_image(two_tone, method="adaptive")


class TestImageIO:
    """Loading, saving and listing images."""

    def test_save_and_load(self, temp_dir, two_tone):
        path = temp_dir / "nested" / "page.png"

        save_image(two_tone, path)
        loaded = load_image(path)

        assert loaded.shape == two_tone.shape
        np.testing.assert_array_equal(loaded, two_tone)

    def test_load_missing_file(self, temp_dir):
        with pytest.raises(ImageLoadError):
            load_image(temp_dir / "missing.jpg")

    def test_load_undecodable_file(self, temp_dir):
        path = temp_dir / "broken.jpg"
        path.write_bytes(b"not an image")

        with pytest.raises(ImageLoadError) as exc_info:
            load_image(path)
        assert "broken.jpg" in str(exc_info.value)

    def test_save_empty_image(self, temp_dir):
        with pytest.raises(ImageSaveError):
            save_image(np.zeros((0, 0), dtype=np.uint8), temp_dir / "empty.jpg")

    def test_save_none(self, temp_dir):
        with pytest.raises(ImageSaveError):
            save_image(None, temp_dir / "none.jpg")

    def test_get_image_files_is_flat_and_sorted(self, temp_dir, two_tone):
        for name in ["b.JPG", "a.jpg", "c.jpeg", "d.png"]:
            cv2.imwrite(str(temp_dir / name), two_tone)
        (temp_dir / "sub").mkdir()
        cv2.imwrite(str(temp_dir / "sub" / "e.jpg"), two_tone)

        files = get_image_files(temp_dir, [".jpg", ".jpeg"])

        assert [f.name for f in files] == ["a.jpg", "b.JPG", "c.jpeg"]


class TestValidation:
    """Input validation shared by all processors."""

    def test_rejects_none(self):
        with pytest.raises(ValidationError):
            FinalCropProcessor().process(None)

    def test_rejects_empty(self):
        with pytest.raises(ValidationError):
            FinalCropProcessor().process(np.zeros((0, 10), dtype=np.uint8))
