"""Value codecs for the file-backed dictionary.

A codec turns a typed value into the byte blob stored in an entry file and
back again. The container only ever talks to the ``Codec`` protocol, so any
pair of ``encode``/``decode`` callables can back a dictionary.

Codecs
------
ModelCodec
    Any pydantic model, stored as UTF-8 JSON using field aliases.
ImageCodec
    Pillow images wrapped in ``ImageCodable``. The file holds a JSON object
    with a single ``imageData`` field carrying the base64 PNG bytes.
BytesCodec
    Raw bytes, stored as-is.
"""

from __future__ import annotations

import base64
import io
from typing import Generic, Protocol, TypeVar

from PIL import Image
from pydantic import Base64Bytes, BaseModel, ConfigDict, Field, ValidationError

from fbdict.core.errors import DecodeFailure, EncodeFailure

V = TypeVar("V")
M = TypeVar("M", bound=BaseModel)


class Codec(Protocol[V]):
    """Serialize/deserialize capability pair used by the container."""

    def encode(self, value: V) -> bytes: ...

    def decode(self, data: bytes) -> V: ...


class BytesCodec:
    """Identity codec for raw ``bytes`` values."""

    def encode(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise EncodeFailure(f"Expected bytes, got {type(value).__name__}")
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class ModelCodec(Generic[M]):
    """Codec for pydantic models serialised as JSON.

    Args:
        model_type: The ``BaseModel`` subclass every stored value must be.
    """

    def __init__(self, model_type: type[M]):
        self.model_type = model_type

    def encode(self, value: M) -> bytes:
        if not isinstance(value, self.model_type):
            raise EncodeFailure(
                f"Expected {self.model_type.__name__}, got {type(value).__name__}"
            )
        try:
            return value.model_dump_json(by_alias=True).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodeFailure(f"{self.model_type.__name__} could not be serialised: {e}") from e

    def decode(self, data: bytes) -> M:
        try:
            return self.model_type.model_validate_json(data)
        except ValidationError as e:
            raise DecodeFailure(
                f"Data could not be converted to {self.model_type.__name__}: "
                f"{e.error_count()} validation error(s)"
            ) from e


class ImagePayload(BaseModel):
    """Stored form of an image: one opaque PNG blob under ``imageData``."""

    model_config = ConfigDict(populate_by_name=True)

    image_data: Base64Bytes = Field(alias="imageData")

    @classmethod
    def from_image_bytes(cls, data: bytes) -> ImagePayload:
        """Build a payload from raw image bytes.

        ``Base64Bytes`` decodes on every validation, Python input included, so
        the raw bytes are encoded here first.
        """
        return cls(image_data=base64.b64encode(data))


class ImageCodable:
    """Codable wrapper around a Pillow image.

    Two wrappers compare equal when their images have the same size, mode
    and pixel data, which is what survives a PNG round trip.
    """

    def __init__(self, image: Image.Image):
        self.image = image

    def to_payload(self) -> ImagePayload:
        """Encode the wrapped image as PNG.

        Raises:
            EncodeFailure: If Pillow cannot write the image as PNG
                (e.g. an unsupported mode such as CMYK).
        """
        buffer = io.BytesIO()
        try:
            self.image.save(buffer, format="PNG")
        except (OSError, ValueError, KeyError) as e:
            raise EncodeFailure(f"Image could not be converted to PNG data: {e}") from e
        return ImagePayload.from_image_bytes(buffer.getvalue())

    @classmethod
    def from_payload(cls, payload: ImagePayload) -> ImageCodable:
        """Rebuild an image from its stored payload.

        The image is fully decoded here so that truncated or corrupt data is
        reported immediately rather than on first pixel access.

        Raises:
            DecodeFailure: If the blob is not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(payload.image_data))
            image.load()
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            raise DecodeFailure(f"Data could not be converted to an image: {e}") from e
        return cls(image)

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageCodable):
            return NotImplemented
        return (
            self.image.size == other.image.size
            and self.image.mode == other.image.mode
            and self.image.tobytes() == other.image.tobytes()
        )

    def __repr__(self) -> str:
        width, height = self.image.size
        return f"ImageCodable(mode={self.image.mode!r}, size={width}x{height})"


class ImageCodec:
    """Codec storing ``ImageCodable`` values as JSON-wrapped PNG."""

    def __init__(self):
        self._payload_codec = ModelCodec(ImagePayload)

    def encode(self, value: ImageCodable) -> bytes:
        if not isinstance(value, ImageCodable):
            raise EncodeFailure(f"Expected ImageCodable, got {type(value).__name__}")
        return self._payload_codec.encode(value.to_payload())

    def decode(self, data: bytes) -> ImageCodable:
        return ImageCodable.from_payload(self._payload_codec.decode(data))
