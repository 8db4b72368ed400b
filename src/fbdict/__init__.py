"""fbdict - dictionary-like containers persisted as one file per entry."""

__version__ = "0.1.0"

from fbdict.core.codecs import BytesCodec, Codec, ImageCodable, ImageCodec, ModelCodec
from fbdict.core.config import FBDictConfig, config
from fbdict.core.errors import (
    DecodeFailure,
    EncodeFailure,
    FileBackedDictError,
    StorageIOFailure,
)
from fbdict.core.file_backed_dict import ChangeEvent, FileBackedDictionary
from fbdict.gallery.saved_photos import SavedPhotos

__all__ = [
    "BytesCodec",
    "ChangeEvent",
    "Codec",
    "DecodeFailure",
    "EncodeFailure",
    "FBDictConfig",
    "FileBackedDictError",
    "FileBackedDictionary",
    "ImageCodable",
    "ImageCodec",
    "ModelCodec",
    "SavedPhotos",
    "StorageIOFailure",
    "config",
]
