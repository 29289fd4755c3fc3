"""Exceptions raised while decoding or querying a sigrok .sr capture."""

from __future__ import annotations


class SrError(Exception):
    """Generic .sr decoding error."""


# ---------------------------------------------------------------------------
# Decode-time errors
# ---------------------------------------------------------------------------

class MissingEntryError(SrError):
    """A required entry is not present in the container."""

    def __init__(self, entry: str) -> None:
        super().__init__(f"Entry '{entry}' not found in capture file.")
        self.entry = entry


class ReadFailureError(SrError):
    """The container could not be opened, stat'd or fully read."""


class UnsupportedVersionError(SrError):
    """The 'version' entry does not hold the supported format version."""

    def __init__(self, version: bytes, supported: bytes) -> None:
        super().__init__(
            f"Version {version!r} of the sr format is not supported "
            f"(only version {supported.decode('ascii')} is supported)."
        )
        self.version = version


class InvalidUnitSizeError(SrError):
    """Metadata did not declare a usable unit size."""


# ---------------------------------------------------------------------------
# Query-time errors
# ---------------------------------------------------------------------------

class UnknownChannelError(SrError):
    """No channel with the requested name exists in the capture."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        msg = f"Channel '{name}' not found."
        if available is not None:
            msg += f" Available channels: {', '.join(available) or '(none)'}"
        super().__init__(msg)
        self.name = name


class OutOfRangeError(SrError, IndexError):
    """A sample index or bit position lies outside the decoded buffer."""


class CaptureClosedError(SrError):
    """The capture was closed and its data released."""
