"""Decode sigrok .sr capture files into a randomly addressable sample buffer.

Decoding is one sequential pipeline over the container:

    version gate -> metadata parser -> segment assembler

and yields an SrCapture that answers channel and sample queries. Channels
are packed LSB-first within each unit_size-wide sample word, so the channel
declared as probe<N> lives at bit N-1 of every sample.
"""

from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass

import numpy as np

from sigrok_sr_reader.container import SrContainer
from sigrok_sr_reader.errors import (
    CaptureClosedError,
    InvalidUnitSizeError,
    MissingEntryError,
    OutOfRangeError,
    ReadFailureError,
    UnknownChannelError,
    UnsupportedVersionError,
)

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = b"2"
LENGTH_NAME_MAX = 20

VERSION_ENTRY = "version"
METADATA_ENTRY = "metadata"
SEGMENT_PREFIX = "logic-1-"

_MAX_UNIT_SIZE = 255


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Channel:
    number: int
    name: str

    @property
    def bit_position(self) -> int:
        """Zero-based bit index of this channel within a sample word."""
        return self.number - 1


@dataclass(frozen=True)
class SrMetadata:
    channels: tuple[Channel, ...]
    unit_size: int
    sample_rate: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_PROBE_RE = re.compile(r"probe(\d+)=\s*(\S+)", re.ASCII)
_UNITSIZE_RE = re.compile(r"unitsize=\s*(\d+)", re.ASCII)
_SAMPLERATE_RE = re.compile(r"samplerate=\s*(\S.*)")

# Longest suffix first so "khz" is not mistaken for "hz".
_RATE_MULTIPLIERS = {
    "khz": 1_000,
    "mhz": 1_000_000,
    "ghz": 1_000_000_000,
    "hz": 1,
    "k": 1_000,
    "m": 1_000_000,
    "g": 1_000_000_000,
}


def _parse_sample_rate(rate_str: str) -> int:
    """Parse a sample rate string like '1 MHz', '200k', '100' into Hz."""
    number = rate_str.strip().lower().replace(" ", "")
    mult = 1
    for suffix, suffix_mult in _RATE_MULTIPLIERS.items():
        if number.endswith(suffix):
            number, mult = number[: -len(suffix)], suffix_mult
            break
    hz = float(number) * mult
    if not math.isfinite(hz) or hz < 0:
        raise ValueError(f"Invalid sample rate {rate_str!r}")
    return int(hz)


def _segment_name(index: int) -> str:
    return f"{SEGMENT_PREFIX}{index}"


# ---------------------------------------------------------------------------
# Version gate
# ---------------------------------------------------------------------------

def check_version(container: SrContainer) -> None:
    """Fail unless the 'version' entry holds exactly the supported version."""
    if container.entry_size(VERSION_ENTRY) is None:
        raise MissingEntryError(VERSION_ENTRY)
    version = container.read_bytes(VERSION_ENTRY)
    if version != SUPPORTED_VERSION:
        raise UnsupportedVersionError(version, SUPPORTED_VERSION)


# ---------------------------------------------------------------------------
# Metadata parser
# ---------------------------------------------------------------------------

def parse_metadata_text(text: str, max_name_length: int = LENGTH_NAME_MAX) -> SrMetadata:
    """Parse the text of a 'metadata' entry.

    Recognises ``probe<N>=<name>`` and ``unitsize=<N>`` lines (plus an
    optional ``samplerate=``); every other line is ignored. Probe names
    longer than max_name_length are truncated.

    Raises InvalidUnitSizeError if no non-zero unit size was declared.
    """
    channels: list[Channel] = []
    unit_size = 0
    sample_rate = 0

    for line in text.split("\n"):
        if not line:
            continue

        m = _PROBE_RE.match(line)
        if m:
            number, name = int(m.group(1)), m.group(2)
            if len(name) > max_name_length:
                logger.warning(
                    "Channel name '%s' truncated to %d characters",
                    name, max_name_length,
                )
                name = name[:max_name_length]
            channels.append(Channel(number=number, name=name))
            continue

        m = _UNITSIZE_RE.match(line)
        if m:
            unit_size = int(m.group(1))
            if unit_size > _MAX_UNIT_SIZE:
                raise InvalidUnitSizeError(
                    f"Invalid unitsize {unit_size} (must be 1-{_MAX_UNIT_SIZE})."
                )
            continue

        m = _SAMPLERATE_RE.match(line)
        if m:
            try:
                sample_rate = _parse_sample_rate(m.group(1))
            except ValueError:
                logger.debug("Ignoring unparsable samplerate %r", m.group(1))

    if unit_size == 0:
        raise InvalidUnitSizeError("Invalid unitsize 0: metadata declares no unit size.")

    return SrMetadata(channels=tuple(channels), unit_size=unit_size, sample_rate=sample_rate)


def read_metadata(container: SrContainer, max_name_length: int = LENGTH_NAME_MAX) -> SrMetadata:
    """Read and parse the 'metadata' entry of a container."""
    if container.entry_size(METADATA_ENTRY) is None:
        raise MissingEntryError(METADATA_ENTRY)
    text = container.read_text(METADATA_ENTRY)
    metadata = parse_metadata_text(text, max_name_length=max_name_length)
    logger.debug(
        "Parsed metadata: %d channels, unitsize %d",
        len(metadata.channels), metadata.unit_size,
    )
    return metadata


# ---------------------------------------------------------------------------
# Segment assembler
# ---------------------------------------------------------------------------

def assemble_segments(container: SrContainer) -> np.ndarray:
    """Concatenate logic-1-1, logic-1-2, ... into one read-only uint8 array.

    Discovery stops at the first missing index, so a gap in the numbering
    drops every later segment.
    """
    sizes: list[int] = []
    while True:
        size = container.entry_size(_segment_name(len(sizes) + 1))
        if size is None:
            break
        sizes.append(size)

    data = np.empty(sum(sizes), dtype=np.uint8)
    view = memoryview(data)
    pos = 0
    for index, size in enumerate(sizes, start=1):
        name = _segment_name(index)
        try:
            container.read_into(name, view[pos:pos + size])
        except MissingEntryError as e:
            raise ReadFailureError(f"Entry '{name}' disappeared while reading.") from e
        pos += size

    data.flags.writeable = False
    logger.debug("Assembled %d segments, %d bytes", len(sizes), data.size)
    return data


# ---------------------------------------------------------------------------
# Decoded capture
# ---------------------------------------------------------------------------

class SrCapture:
    """A fully decoded .sr capture.

    Instances are immutable once built and may be queried from several
    threads at once. close() releases the sample buffer and channel table;
    any query after that raises CaptureClosedError.
    """

    def __init__(self, path: str, metadata: SrMetadata, data: np.ndarray) -> None:
        self._path = path
        self._channels: tuple[Channel, ...] | None = metadata.channels
        self._unit_size = metadata.unit_size
        self._sample_rate = metadata.sample_rate
        self._data: np.ndarray | None = data

    def __repr__(self) -> str:
        if self.closed:
            return f"<SrCapture {self._path!r} closed>"
        return (
            f"<SrCapture {self._path!r} channels={self.channel_count()} "
            f"unit_size={self._unit_size} samples={self.sample_count()}>"
        )

    # -- lifecycle ---------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._data is None

    def close(self) -> None:
        self._data = None
        self._channels = None

    def __enter__(self) -> SrCapture:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _buffer(self) -> np.ndarray:
        if self._data is None:
            raise CaptureClosedError(f"Capture '{self._path}' is closed.")
        return self._data

    def _channel_table(self) -> tuple[Channel, ...]:
        if self._channels is None:
            raise CaptureClosedError(f"Capture '{self._path}' is closed.")
        return self._channels

    # -- properties --------------------------------------------------------

    @property
    def path(self) -> str:
        return self._path

    @property
    def unit_size(self) -> int:
        return self._unit_size

    @property
    def sample_rate(self) -> int:
        """Sample rate in Hz from the metadata, or 0 if not declared."""
        return self._sample_rate

    @property
    def channels(self) -> tuple[Channel, ...]:
        return self._channel_table()

    # -- queries -----------------------------------------------------------

    def channel_count(self) -> int:
        return len(self._channel_table())

    def channel(self, name: str) -> Channel:
        """Return the first channel called name (case-sensitive)."""
        table = self._channel_table()
        for ch in table:
            if ch.name == name:
                return ch
        raise UnknownChannelError(name, [ch.name for ch in table])

    def channel_bit_position(self, name: str) -> int:
        return self.channel(name).bit_position

    def sample_count(self) -> int:
        return self._buffer().size // self._unit_size

    def _check_bit_position(self, bit_position: int) -> None:
        if not 0 <= bit_position < 8 * self._unit_size:
            raise OutOfRangeError(
                f"Bit position {bit_position} out of range "
                f"(unitsize {self._unit_size} holds {8 * self._unit_size} bits)."
            )

    def sample_value(self, bit_position: int, sample_index: int) -> bool:
        """Logic level of the channel at bit_position in sample sample_index."""
        data = self._buffer()
        self._check_bit_position(bit_position)
        count = data.size // self._unit_size
        if not 0 <= sample_index < count:
            raise OutOfRangeError(
                f"Sample {sample_index} out of range (capture has {count} samples)."
            )
        byte = int(data[self._unit_size * sample_index + bit_position // 8])
        return bool((byte >> (bit_position % 8)) & 1)

    def as_matrix(self) -> np.ndarray:
        """Read-only view of the buffer shaped [sample_count, unit_size]."""
        data = self._buffer()
        count = data.size // self._unit_size
        return data[: count * self._unit_size].reshape(count, self._unit_size)

    def channel_samples(
        self,
        bit_position: int,
        start: int = 0,
        stop: int | None = None,
    ) -> np.ndarray:
        """Logic levels of one channel over samples [start, stop) as a bool array.

        start and stop are clamped to the capture like slice bounds.
        """
        self._check_bit_position(bit_position)
        column = self.as_matrix()[start:stop, bit_position // 8]
        return ((column >> (bit_position % 8)) & 1).astype(bool)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def open_capture(path: str | os.PathLike, max_name_length: int = LENGTH_NAME_MAX) -> SrCapture:
    """Decode an .sr file.

    Either returns a fully decoded SrCapture or raises an SrError subclass;
    the archive is closed in both cases.
    """
    path = os.fspath(path)
    with SrContainer(path) as container:
        check_version(container)
        metadata = read_metadata(container, max_name_length=max_name_length)
        data = assemble_segments(container)

    logger.debug("Decoded %s: %d samples", path, data.size // metadata.unit_size)
    return SrCapture(path, metadata, data)
