"""Read-only access to the entries of an .sr container.

An .sr file is a ZIP archive. This module isolates every interaction with
the archive: opening it by path, looking up an entry's size, and reading an
entry into memory. ZIP-level failures are reported as ReadFailureError.
"""

from __future__ import annotations

import logging
import os
import zipfile

from sigrok_sr_reader.errors import MissingEntryError, ReadFailureError

logger = logging.getLogger(__name__)

# Errors zipfile can raise while reading a member: CRC mismatch, truncated
# or corrupt stream, unsupported compression method, encrypted member.
_ZIP_READ_ERRORS = (zipfile.BadZipFile, OSError, EOFError, NotImplementedError, RuntimeError)


class SrContainer:
    """An open .sr archive.

    Use as a context manager so the archive handle is released on every
    exit path::

        with SrContainer(path) as container:
            size = container.entry_size("metadata")
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self._path = os.fspath(path)
        try:
            self._zip: zipfile.ZipFile | None = zipfile.ZipFile(self._path, "r")
        except (zipfile.BadZipFile, OSError) as e:
            raise ReadFailureError(f"Could not open '{self._path}': {e}") from e
        logger.debug("Opened container %s", self._path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._zip is None

    def _archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise ReadFailureError(f"Container '{self._path}' is closed.")
        return self._zip

    def entry_size(self, name: str) -> int | None:
        """Return the uncompressed size of an entry, or None if it is absent."""
        try:
            info = self._archive().getinfo(name)
        except KeyError:
            return None
        return info.file_size

    def read_into(self, name: str, buffer) -> int:
        """Read an entry into a caller-supplied writable buffer.

        The buffer must be exactly as large as the entry. Returns the number
        of bytes read. A short read raises ReadFailureError.
        """
        view = memoryview(buffer).cast("B")
        expected = self.entry_size(name)
        if expected is None:
            raise MissingEntryError(name)
        if expected != len(view):
            raise ReadFailureError(
                f"Entry '{name}' is {expected} bytes, buffer holds {len(view)}."
            )

        total = 0
        try:
            with self._archive().open(name) as fp:
                while total < expected:
                    n = fp.readinto(view[total:])
                    if not n:
                        break
                    total += n
        except _ZIP_READ_ERRORS as e:
            raise ReadFailureError(f"Could not read entry '{name}': {e}") from e

        if total != expected:
            raise ReadFailureError(
                f"Short read on entry '{name}': got {total} of {expected} bytes."
            )
        return total

    def read_bytes(self, name: str) -> bytes:
        """Read a whole entry. Raises MissingEntryError if it is absent."""
        size = self.entry_size(name)
        if size is None:
            raise MissingEntryError(name)
        buffer = bytearray(size)
        self.read_into(name, buffer)
        return bytes(buffer)

    def read_text(self, name: str, encoding: str = "utf-8") -> str:
        """Read a whole entry as text."""
        raw = self.read_bytes(name)
        return raw.decode(encoding, errors="replace")

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
            logger.debug("Closed container %s", self._path)

    def __enter__(self) -> SrContainer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
