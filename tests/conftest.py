"""Shared pytest fixtures for fbdict tests."""

import pytest
from pathlib import Path
import tempfile
import shutil
from typing import Generator

from PIL import Image

from fbdict.core.codecs import BytesCodec, ImageCodable, ImageCodec
from fbdict.core.config import FBDictConfig
from fbdict.core.file_backed_dict import FileBackedDictionary


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def storage_root(temp_dir: Path) -> Path:
    """Storage root inside the temporary directory."""
    root = temp_dir / "storage"
    root.mkdir()
    return root


@pytest.fixture
def test_config(storage_root: Path) -> FBDictConfig:
    """Create a test configuration rooted in the temporary directory.

    Args:
        storage_root: Temporary storage root from fixture

    Returns:
        FBDictConfig instance for testing
    """
    return FBDictConfig(
        storage_root=str(storage_root),
        photos_directory_name="saved-photos",
        max_saved_photos=120,
        _env_file=None,
    )


@pytest.fixture
def red_image() -> Image.Image:
    """Small solid red RGB image."""
    return Image.new("RGB", (8, 6), (255, 0, 0))


@pytest.fixture
def blue_image() -> Image.Image:
    """Small solid blue RGB image."""
    return Image.new("RGB", (6, 8), (0, 0, 255))


@pytest.fixture
def gradient_image() -> Image.Image:
    """RGBA image with distinct pixel values so round trips are meaningful."""
    image = Image.new("RGBA", (16, 16))
    image.putdata([(x * 16, y * 16, (x + y) * 8, 255) for y in range(16) for x in range(16)])
    return image


@pytest.fixture
def photo_store(storage_root: Path) -> FileBackedDictionary[ImageCodable]:
    """Empty image container in the temporary storage root."""
    return FileBackedDictionary("saved-photos", ImageCodec(), root=storage_root)


@pytest.fixture
def bytes_store(storage_root: Path) -> FileBackedDictionary[bytes]:
    """Empty raw-bytes container in the temporary storage root."""
    return FileBackedDictionary("blobs", BytesCodec(), root=storage_root)
