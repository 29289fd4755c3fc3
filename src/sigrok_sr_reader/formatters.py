"""Format decoded captures for LLM consumption.

A capture can hold millions of samples. These functions render the channel
table and bounded windows of sample bits as short plain text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sigrok_sr_reader.sr_reader import Channel, SrCapture


def _format_rate(hz: int) -> str:
    for mult, unit in ((1_000_000_000, "GHz"), (1_000_000, "MHz"), (1_000, "kHz")):
        if hz >= mult and hz % mult == 0:
            return f"{hz // mult} {unit}"
    return f"{hz} Hz"


def format_capture_info(capture_id: str, capture: SrCapture, description: str = "") -> str:
    """One-paragraph summary of an opened capture."""
    parts = [
        f"Capture opened as {capture_id}",
        f"  File: {capture.path}",
        f"  Channels: {capture.channel_count()}",
        f"  Unit size: {capture.unit_size} byte(s) per sample",
        f"  Samples: {capture.sample_count()}",
    ]
    if capture.sample_rate:
        parts.append(f"  Sample rate: {_format_rate(capture.sample_rate)}")
    if description:
        parts.append(f"  Description: {description}")
    return "\n".join(parts)


def format_channel_table(capture: SrCapture) -> str:
    """List channels in metadata order with their bit positions."""
    channels = capture.channels
    if not channels:
        return "Capture declares no channels."

    width = max(10, max(len(ch.name) for ch in channels) + 2)
    lines = [
        f"Channels ({len(channels)}):",
        f"  {'Name':<{width}} {'Probe':>5} {'Bit':>5}",
    ]
    for ch in channels:
        lines.append(f"  {ch.name:<{width}} {ch.number:>5} {ch.bit_position:>5}")
    return "\n".join(lines)


def format_sample_window(
    capture: SrCapture,
    start_sample: int = 0,
    window_size: int = 1000,
    channels: list[Channel] | None = None,
) -> str:
    """Render a window of samples, one line per sample, one column per channel.

    Each line is the sample index followed by a '0'/'1' per channel, in the
    order given (default: every channel, in metadata order). A channel whose
    probe number lies outside the sample word shows '?'.
    """
    total = capture.sample_count()
    if total == 0:
        return "No sample data available."

    if channels is None:
        channels = list(capture.channels)
    if not channels:
        return "No channels selected."

    # Clamp window to available data
    start = max(0, min(start_sample, total - 1))
    end = min(start + max(window_size, 1), total)

    word_bits = 8 * capture.unit_size
    columns = [
        capture.channel_samples(ch.bit_position, start, end)
        if 0 <= ch.bit_position < word_bits else None
        for ch in channels
    ]

    header = (
        f"Samples {start}-{end - 1} of {total} total "
        f"(showing {end - start} samples):\n"
        f"Channels: {' '.join(ch.name for ch in channels)}\n"
    )
    idx_width = len(str(end - 1))
    lines = []
    for row in range(end - start):
        bits = "".join(
            "?" if col is None else ("1" if col[row] else "0") for col in columns
        )
        lines.append(f"{start + row:>{idx_width}}: {bits}")

    return header + "\n".join(lines)
