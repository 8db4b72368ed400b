"""Unit tests for the saved-photos gallery flow."""

import logging
from unittest.mock import patch

import pytest
from PIL import Image

from fbdict.core.codecs import ImageCodable, ImageCodec
from fbdict.core.errors import EncodeFailure
from fbdict.core.file_backed_dict import FileBackedDictionary
from fbdict.gallery.saved_photos import SavedPhotos


@pytest.fixture
def gallery(photo_store):
    """Gallery over an empty temporary photo store."""
    return SavedPhotos(photo_store)


# ============================================================================
# save_photo Tests
# ============================================================================


class TestSavePhoto:
    """Tests for saving the pending photo."""

    def test_nothing_captured_saves_nothing(self, gallery, caplog):
        with caplog.at_level(logging.WARNING, logger="fbdict.gallery.saved_photos"):
            assert gallery.save_photo() is None

        assert gallery.count == 0
        assert "no image to save" in caplog.text

    def test_saves_with_sequential_keys(self, gallery, red_image, blue_image):
        gallery.capture(red_image)
        first = gallery.save_photo()
        gallery.capture(blue_image)
        second = gallery.save_photo()

        assert (first, second) == ("image000", "image001")
        assert gallery.count == 2
        assert gallery.photo("image001").tobytes() == blue_image.tobytes()

    def test_save_clears_pending_photo(self, gallery, red_image):
        gallery.capture(red_image)
        gallery.save_photo()

        assert gallery.captured_image is None
        assert gallery.save_photo() is None
        assert gallery.count == 1

    def test_save_skips_taken_key(self, gallery, red_image, blue_image):
        for _ in range(3):
            gallery.capture(red_image)
            gallery.save_photo()
        gallery.store.remove("image000")

        gallery.capture(blue_image)
        key = gallery.save_photo()

        assert key == "image003"
        assert gallery.photo("image002").tobytes() == red_image.tobytes()
        assert gallery.sorted_keys() == ["image001", "image002", "image003"]

    def test_encode_failure_keeps_pending_photo(self, gallery):
        cmyk = Image.new("CMYK", (4, 4))
        gallery.capture(cmyk)

        with pytest.raises(EncodeFailure):
            gallery.save_photo()

        assert gallery.captured_image is cmyk
        assert gallery.count == 0


class TestCapacity:
    """The photo cap is enforced by the gallery, not by the store."""

    def test_rejects_save_once_cap_reached(self, photo_store, red_image, blue_image, caplog):
        gallery = SavedPhotos(photo_store, max_photos=3)
        for _ in range(3):
            gallery.capture(red_image)
            assert gallery.save_photo() is not None

        gallery.capture(blue_image)
        with caplog.at_level(logging.WARNING, logger="fbdict.gallery.saved_photos"):
            assert gallery.save_photo() is None

        assert gallery.is_full
        assert gallery.count == 3
        assert gallery.captured_image is blue_image
        assert "limit reached" in caplog.text

    def test_store_itself_has_no_cap(self, photo_store, red_image):
        SavedPhotos(photo_store, max_photos=1)
        for index in range(3):
            photo_store[f"extra{index}"] = ImageCodable(red_image)

        assert photo_store.count == 3

    def test_default_cap_is_120(self, photo_store, test_config):
        with patch("fbdict.gallery.saved_photos.config", test_config):
            gallery = SavedPhotos(photo_store)

        assert gallery.max_photos == 120

    def test_invalid_cap_rejected(self, photo_store):
        with pytest.raises(ValueError):
            SavedPhotos(photo_store, max_photos=0)


# ============================================================================
# Gallery helpers
# ============================================================================


class TestGalleryHelpers:
    def test_default_store_uses_configured_directory(self, test_config):
        with patch("fbdict.gallery.saved_photos.config", test_config):
            gallery = SavedPhotos()

        assert gallery.store.directory == (test_config.storage_root / "saved-photos").resolve()

    def test_sorted_keys_are_lexicographic(self, photo_store, red_image):
        for key in ["image010", "image002", "image001"]:
            photo_store[key] = ImageCodable(red_image)

        assert SavedPhotos(photo_store).sorted_keys() == ["image001", "image002", "image010"]

    def test_photo_missing_returns_none(self, gallery):
        assert gallery.photo("image999") is None

    def test_clear_photo_drops_pending(self, gallery, red_image):
        gallery.capture(red_image)
        gallery.clear_photo()
        assert gallery.captured_image is None

    def test_clear_all_photos_empties_store(self, gallery, red_image):
        for _ in range(4):
            gallery.capture(red_image)
            gallery.save_photo()

        gallery.clear_all_photos()

        assert gallery.count == 0
        assert list(gallery.store.directory.iterdir()) == []
        assert not gallery.is_full

    def test_gallery_survives_restart(self, storage_root, red_image):
        gallery = SavedPhotos(FileBackedDictionary("saved-photos", ImageCodec(), root=storage_root))
        gallery.capture(red_image)
        gallery.save_photo()

        reopened = SavedPhotos(
            FileBackedDictionary("saved-photos", ImageCodec(), root=storage_root)
        )

        assert reopened.sorted_keys() == ["image000"]
        assert reopened.photo("image000").tobytes() == red_image.tobytes()
