"""Exceptions raised by the file-backed dictionary and its codecs."""


class FileBackedDictError(Exception):
    """Base class for all file-backed dictionary errors.

    Attributes:
        key: The entry key the failure relates to, or None when the failure
            is not tied to a single entry (e.g. creating the directory).
    """

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class EncodeFailure(FileBackedDictError):
    """A value could not be serialised to bytes."""

    pass


class DecodeFailure(FileBackedDictError):
    """Stored bytes could not be reconstructed into a value."""

    pass


class StorageIOFailure(FileBackedDictError):
    """A filesystem operation on the backing directory failed.

    The originating ``OSError`` is available as ``__cause__``.
    """

    pass
