"""Tests for formatters.py."""

import numpy as np

from sigrok_sr_reader.formatters import (
    format_capture_info,
    format_channel_table,
    format_sample_window,
)
from sigrok_sr_reader.sr_reader import Channel, SrCapture, SrMetadata


def _capture(channels, unit_size, data, sample_rate=0):
    metadata = SrMetadata(channels=tuple(channels), unit_size=unit_size, sample_rate=sample_rate)
    return SrCapture("test.sr", metadata, np.array(data, dtype=np.uint8))


# ---------------------------------------------------------------------------
# format_capture_info
# ---------------------------------------------------------------------------

def test_capture_info(example_capture):
    result = format_capture_info("cap_001", example_capture, description="boot")
    assert "cap_001" in result
    assert "File: example.sr" in result
    assert "Channels: 2" in result
    assert "Samples: 3" in result
    assert "Description: boot" in result
    assert "Sample rate" not in result


def test_capture_info_sample_rate():
    cap = _capture([Channel(1, "A")], 1, [0], sample_rate=24_000_000)
    assert "Sample rate: 24 MHz" in format_capture_info("cap_002", cap)

    cap = _capture([Channel(1, "A")], 1, [0], sample_rate=1_500)
    assert "Sample rate: 1500 Hz" in format_capture_info("cap_003", cap)


# ---------------------------------------------------------------------------
# format_channel_table
# ---------------------------------------------------------------------------

def test_channel_table(example_capture):
    result = format_channel_table(example_capture)
    lines = result.splitlines()
    assert lines[0] == "Channels (2):"
    assert "Bit" in lines[1]
    assert lines[2].split() == ["CLK", "1", "0"]
    assert lines[3].split() == ["DATA", "2", "1"]


def test_channel_table_empty():
    cap = _capture([], 1, [0, 0])
    assert "no channels" in format_channel_table(cap)


# ---------------------------------------------------------------------------
# format_sample_window
# ---------------------------------------------------------------------------

def test_sample_window_all_channels(example_capture):
    result = format_sample_window(example_capture)
    lines = result.splitlines()
    assert lines[0] == "Samples 0-2 of 3 total (showing 3 samples):"
    assert lines[1] == "Channels: CLK DATA"
    assert lines[2:] == ["0: 10", "1: 01", "2: 11"]


def test_sample_window_subset_and_order(example_capture):
    data = example_capture.channel("DATA")
    result = format_sample_window(example_capture, channels=[data])
    assert result.splitlines()[2:] == ["0: 0", "1: 1", "2: 1"]


def test_sample_window_clamped(example_capture):
    result = format_sample_window(example_capture, start_sample=2, window_size=10)
    lines = result.splitlines()
    assert lines[0] == "Samples 2-2 of 3 total (showing 1 samples):"
    assert lines[2:] == ["2: 11"]


def test_sample_window_start_past_end(example_capture):
    result = format_sample_window(example_capture, start_sample=50, window_size=2)
    assert result.startswith("Samples 2-2 of 3 total")


def test_sample_window_index_padding():
    cap = _capture([Channel(1, "A")], 1, [i % 2 for i in range(12)])
    lines = format_sample_window(cap, start_sample=8, window_size=4).splitlines()
    assert lines[2:] == [" 8: 0", " 9: 1", "10: 0", "11: 1"]


def test_sample_window_multi_byte_unit():
    # probe10 lives in the second byte of each 2-byte sample word
    cap = _capture([Channel(1, "LO"), Channel(10, "HI")], 2, [0x01, 0x00, 0x00, 0x02])
    lines = format_sample_window(cap).splitlines()
    assert lines[2:] == ["0: 10", "1: 01"]


def test_sample_window_unaddressable_channels():
    # probe0 and probe9 have no bit in a 1-byte sample word
    cap = _capture(
        [Channel(1, "CLK"), Channel(0, "ZERO"), Channel(9, "HIGH"), Channel(2, "DATA")],
        1,
        [0x01, 0x02],
    )
    lines = format_sample_window(cap).splitlines()
    assert lines[1] == "Channels: CLK ZERO HIGH DATA"
    assert lines[2:] == ["0: 1??0", "1: 0??1"]


def test_sample_window_empty():
    cap = _capture([Channel(1, "A")], 1, [])
    assert format_sample_window(cap) == "No sample data available."


def test_sample_window_no_channels():
    cap = _capture([], 1, [0x01])
    assert format_sample_window(cap) == "No channels selected."
