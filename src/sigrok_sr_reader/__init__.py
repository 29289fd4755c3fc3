"""Read sigrok .sr logic analyzer captures."""

from sigrok_sr_reader.errors import (
    CaptureClosedError,
    InvalidUnitSizeError,
    MissingEntryError,
    OutOfRangeError,
    ReadFailureError,
    SrError,
    UnknownChannelError,
    UnsupportedVersionError,
)
from sigrok_sr_reader.sr_reader import Channel, SrCapture, open_capture

__all__ = [
    "CaptureClosedError",
    "Channel",
    "InvalidUnitSizeError",
    "MissingEntryError",
    "OutOfRangeError",
    "ReadFailureError",
    "SrCapture",
    "SrError",
    "UnknownChannelError",
    "UnsupportedVersionError",
    "open_capture",
]
