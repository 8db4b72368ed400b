"""Saved-photos gallery.

This is the call site that owns the application-level policy around the
photo store: one pending captured image at a time, sequential
``image000``-style keys, and a hard cap on the number of saved photos.
The container itself knows nothing about the cap.
"""

from __future__ import annotations

import logging

from PIL import Image

from fbdict.core.codecs import ImageCodable, ImageCodec
from fbdict.core.config import config
from fbdict.core.file_backed_dict import FileBackedDictionary

logger = logging.getLogger(__name__)

KEY_FORMAT = "image{:03d}"


class SavedPhotos:
    """Pending capture plus the persistent gallery of saved photos.

    Args:
        store: Backing container. Defaults to a ``FileBackedDictionary``
            named ``config.photos_directory_name`` under ``config.storage_root``.
        max_photos: Capacity cap. Defaults to ``config.max_saved_photos``.
    """

    def __init__(
        self,
        store: FileBackedDictionary[ImageCodable] | None = None,
        *,
        max_photos: int | None = None,
    ):
        if store is None:
            store = FileBackedDictionary(
                config.photos_directory_name, ImageCodec(), root=config.storage_root
            )
        self.store = store
        self.max_photos = max_photos if max_photos is not None else config.max_saved_photos
        if self.max_photos < 1:
            raise ValueError(f"max_photos must be at least 1, got {self.max_photos}")
        self.captured_image: Image.Image | None = None

    @property
    def count(self) -> int:
        return self.store.count

    @property
    def is_full(self) -> bool:
        return self.store.count >= self.max_photos

    def capture(self, image: Image.Image) -> None:
        """Set the pending photo, replacing any previous one."""
        self.captured_image = image

    def clear_photo(self) -> None:
        """Drop the pending photo without saving it."""
        self.captured_image = None

    def save_photo(self) -> str | None:
        """Save the pending photo to the gallery.

        The key is derived from the current count, so photos are stored as
        ``image000``, ``image001`` and so on. If that key is taken (a photo
        was removed individually) the next free number is used instead.

        Returns:
            The key the photo was saved under, or None if there was nothing to
            save or the gallery is full.

        Raises:
            EncodeFailure: If the image cannot be encoded. The pending photo
                is kept.
            StorageIOFailure: If the photo cannot be written. The pending
                photo is kept.
        """
        if self.captured_image is None or self.is_full:
            logger.warning(
                f"save_photo: no image to save or limit reached "
                f"({self.store.count}/{self.max_photos})"
            )
            return None

        index = self.store.count
        while KEY_FORMAT.format(index) in self.store:
            index += 1
        key = KEY_FORMAT.format(index)
        self.store[key] = ImageCodable(self.captured_image)
        width, height = self.captured_image.size
        logger.info(f"Saved photo {key} ({width}x{height})")
        self.clear_photo()
        return key

    def clear_all_photos(self) -> None:
        """Delete every saved photo."""
        self.store.remove_all()

    def sorted_keys(self) -> list[str]:
        """Keys in the order the gallery grid shows them."""
        return sorted(self.store.keys())

    def photo(self, key: str) -> Image.Image | None:
        """Return the saved image for ``key``, or None if there is none."""
        codable = self.store.get(key)
        return codable.image if codable is not None else None
