"""Dictionary whose entries are persisted as one file each on disk.

``FileBackedDictionary`` keeps an in-memory mapping from string keys to
values and mirrors it into a dedicated backing directory:

- every entry lives in its own file, named after the key
- the file holds the codec's byte encoding of the value
- mutations are written through synchronously before the call returns
- construction eagerly loads every decodable file already in the directory

Because the whole state is rederivable from disk, a container never needs to
be closed and process termination loses no data.

Key to file name mapping
------------------------
A key is percent-encoded with ``urllib.parse.quote(key, safe="")``, its
percent escapes are lowercased, every uppercase letter is written as ``^``
followed by the lowercase letter, and the ``.json`` suffix is added. So
``"image000"`` is stored in ``image000.json``, ``"a/b"`` in ``a%2fb.json`` and
``"Photo"`` in ``^photo.json``. File names are therefore all lowercase, which
keeps distinct keys in distinct files on case-insensitive filesystems too.
The mapping is stable across runs and the names never contain path
separators. Only files whose stem is the canonical encoding of some key
belong to the container; anything else in the directory is ignored and never
deleted.

Failure handling
----------------
Files that cannot be read or decoded at load time are skipped with a warning,
whatever exception the codec raised for them.
Mutations encode first and touch memory only after the disk operation
succeeded, so an ``EncodeFailure`` or ``StorageIOFailure`` leaves both the
in-memory view and the directory as they were.
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import threading
from collections.abc import Callable, Iterator, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, Literal, TypeVar
from urllib.parse import quote, unquote

from fbdict.core.codecs import Codec
from fbdict.core.config import config
from fbdict.core.errors import StorageIOFailure

logger = logging.getLogger(__name__)

V = TypeVar("V")

ENTRY_SUFFIX = ".json"
TEMP_SUFFIX = ".tmp"
MAX_FILENAME_BYTES = 255

_UPPERCASE_ESCAPE = re.compile(r"\^([a-z])")
_CASE_SENSITIVE_PART = re.compile(r"%[0-9A-F]{2}|[A-Z]")


def key_to_filename(key: str) -> str:
    """Return the entry file name for ``key``.

    Args:
        key: Entry key, a non-empty string.

    Returns:
        File name inside the backing directory.

    Raises:
        TypeError: If the key is not a string.
        ValueError: If the key is empty or its file name would be too long.
    """
    if not isinstance(key, str):
        raise TypeError(f"Keys must be strings, got {type(key).__name__}")
    if not key:
        raise ValueError("Keys must be non-empty strings")

    filename = _encode_stem(key) + ENTRY_SUFFIX
    # The temp file written next to the entry must fit as well.
    if len(filename.encode("utf-8")) + len(TEMP_SUFFIX) > MAX_FILENAME_BYTES:
        raise ValueError(f"Key is too long to be stored as a file name: {key[:32]!r}...")
    return filename


def filename_to_key(filename: str) -> str | None:
    """Return the key stored in ``filename``, or None if it is not an entry file."""
    if not filename.endswith(ENTRY_SUFFIX):
        return None

    stem = filename[: -len(ENTRY_SUFFIX)]
    if not stem:
        return None

    unescaped = _UPPERCASE_ESCAPE.sub(lambda match: match.group(1).upper(), stem)
    try:
        key = unquote(unescaped, errors="strict")
    except UnicodeDecodeError:
        return None

    # Non-canonical spellings (uppercase letters or hex, unescaped reserved
    # characters) would let two files claim the same key.
    if _encode_stem(key) != stem:
        return None
    return key


def _lower_part(match: re.Match) -> str:
    part = match.group()
    if part.startswith("%"):
        return part.lower()
    return "^" + part.lower()


def _encode_stem(key: str) -> str:
    # quote() escapes "^", so a literal "^" in the output always marks an
    # uppercase letter.
    return _CASE_SENSITIVE_PART.sub(_lower_part, quote(key, safe=""))


def _is_temp_filename(filename: str) -> bool:
    return filename.endswith(TEMP_SUFFIX) and (
        filename_to_key(filename[: -len(TEMP_SUFFIX)]) is not None
    )


@dataclass(frozen=True)
class ChangeEvent:
    """Notification sent to listeners after a successful mutation.

    Attributes:
        kind: ``"set"``, ``"remove"`` or ``"clear"``.
        key: The affected key, or None for ``"clear"``.
    """

    kind: Literal["set", "remove", "clear"]
    key: str | None = None


Listener = Callable[[ChangeEvent], None]


class FileBackedDictionary(MutableMapping[str, V], Generic[V]):
    """Mapping of string keys to values, written through to one file per key.

    All operations take an internal re-entrant lock around the in-memory map
    and the file operations, so a container may be shared between threads.
    Listeners are called after the lock has been released.

    ``keys()`` returns a list snapshot rather than a live view, so callers can
    sort it or keep iterating while other threads mutate the container.
    ``items()`` and ``values()`` are the usual live ``Mapping`` views and
    reflect later mutations.

    Args:
        directory_name: Name of the backing directory, relative to ``root``.
        codec: Codec used to turn values into file contents and back.
        root: Storage root. Defaults to ``config.storage_root``.

    Raises:
        ValueError: If ``directory_name`` is empty or resolves outside ``root``.
        StorageIOFailure: If the backing directory cannot be created or listed.

    Example:
        >>> photos = FileBackedDictionary("saved-photos", ImageCodec())
        >>> photos["image000"] = ImageCodable(image)
        >>> sorted(photos.keys())
        ['image000']
    """

    def __init__(self, directory_name: str, codec: Codec[V], *, root: str | Path | None = None):
        if not directory_name:
            raise ValueError("directory_name must be a non-empty string")

        storage_root = Path(root) if root is not None else config.storage_root
        directory = (storage_root / directory_name).resolve()
        resolved_root = storage_root.resolve()
        if directory == resolved_root or resolved_root not in directory.parents:
            raise ValueError(
                f"directory_name {directory_name!r} must name a directory inside {storage_root}"
            )

        self._directory = directory
        self._codec = codec
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOFailure(f"Could not create directory {self._directory}: {e}") from e

        self._entries: dict[str, V] = self._load()
        logger.info(f"Loaded {len(self._entries)} entries from {self._directory}")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, V]:
        entries: dict[str, V] = {}
        for path in self._list_directory():
            key = filename_to_key(path.name)
            if key is None or not path.is_file():
                continue

            try:
                data = path.read_bytes()
            except OSError as e:
                logger.warning(f"Skipping unreadable entry file {path.name}: {e}")
                continue

            # Codecs are expected to raise DecodeFailure, but any error from a
            # single file only drops that entry.
            try:
                entries[key] = self._codec.decode(data)
            except Exception as e:
                logger.warning(f"Skipping undecodable entry file {path.name}: {e}")

        return entries

    def _list_directory(self) -> list[Path]:
        try:
            return sorted(self._directory.iterdir())
        except OSError as e:
            raise StorageIOFailure(f"Could not list directory {self._directory}: {e}") from e

    def reload(self) -> None:
        """Discard the in-memory view and load it again from disk."""
        with self._lock:
            self._entries = self._load()
            count = len(self._entries)
        logger.info(f"Reloaded {count} entries from {self._directory}")

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def directory(self) -> Path:
        """The resolved backing directory."""
        return self._directory

    def path_for(self, key: str) -> Path:
        """Return the path of the file that stores ``key``."""
        return self._directory / key_to_filename(key)

    # ------------------------------------------------------------------
    # Reads (memory only)
    # ------------------------------------------------------------------

    def get(self, key: str, default: V | None = None) -> V | None:
        with self._lock:
            return self._entries.get(key, default)

    def __getitem__(self, key: str) -> V:
        with self._lock:
            return self._entries[key]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    @property
    def count(self) -> int:
        """Number of entries."""
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        """Return a snapshot of the current keys, in no particular order."""
        with self._lock:
            return list(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    # ------------------------------------------------------------------
    # Mutations (write-through)
    # ------------------------------------------------------------------

    def set(self, key: str, value: V) -> None:
        """Store ``value`` under ``key`` and write its file.

        Raises:
            EncodeFailure: If the codec cannot serialise ``value``.
            StorageIOFailure: If the entry file cannot be written.
        """
        path = self.path_for(key)
        data = self._codec.encode(value)

        with self._lock:
            self._write_file(key, path, data)
            self._entries[key] = value

        logger.debug(f"Stored {key!r} ({len(data)} bytes) in {path.name}")
        self._notify(ChangeEvent("set", key))

    def __setitem__(self, key: str, value: V) -> None:
        self.set(key, value)

    def _write_file(self, key: str, path: Path, data: bytes) -> None:
        # Write to a sibling temp file and rename so a crash never leaves a
        # half-written entry under the real name.
        tmp_path = path.with_name(path.name + TEMP_SUFFIX)
        try:
            with open(tmp_path, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise StorageIOFailure(f"Could not write entry {key!r} to {path}: {e}", key=key) from e

    def remove(self, key: str) -> bool:
        """Remove ``key`` and delete its file.

        Removing a key that is not present is a no-op.

        Returns:
            True if an entry was removed, False if the key was absent.

        Raises:
            StorageIOFailure: If the entry file cannot be deleted. The entry
                is kept in that case.
        """
        path = self.path_for(key)

        with self._lock:
            if key not in self._entries:
                return False
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise StorageIOFailure(
                    f"Could not delete entry {key!r} at {path}: {e}", key=key
                ) from e
            del self._entries[key]

        logger.debug(f"Removed {key!r}")
        self._notify(ChangeEvent("remove", key))
        return True

    def __delitem__(self, key: str) -> None:
        if not self.remove(key):
            raise KeyError(key)

    def remove_all(self) -> int:
        """Remove every entry and delete every file owned by this container.

        Entry files that failed to decode at load time and leftover temp files
        are deleted too. Files that do not belong to the container are kept.

        Returns:
            Number of files deleted.

        Raises:
            StorageIOFailure: If a file cannot be deleted. Entries whose files
                were already deleted are gone from memory as well.
        """
        deleted = 0
        with self._lock:
            for path in self._list_directory():
                key = filename_to_key(path.name)
                if key is None and not _is_temp_filename(path.name):
                    continue
                if not path.is_file():
                    continue
                try:
                    path.unlink(missing_ok=True)
                except OSError as e:
                    raise StorageIOFailure(
                        f"Could not delete {path} while clearing {self._directory}: {e}", key=key
                    ) from e
                deleted += 1
                if key is not None:
                    self._entries.pop(key, None)

            # Whatever is left had no file on disk anymore.
            self._entries.clear()

        logger.info(f"Cleared {self._directory} ({deleted} files deleted)")
        self._notify(ChangeEvent("clear"))
        return deleted

    def clear(self) -> None:
        self.remove_all()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for change events.

        Args:
            listener: Callable receiving a ``ChangeEvent`` after each
                successful mutation.

        Returns:
            A callable that unregisters the listener. Calling it more than
            once is harmless.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: ChangeEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Change listener {listener!r} failed on {event}: {e}", exc_info=True)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self._directory)!r}, count={len(self._entries)})"
