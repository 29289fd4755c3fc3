"""Shared fixtures: build small .sr archives on disk."""

import zipfile

import numpy as np
import pytest

from sigrok_sr_reader.sr_reader import Channel, SrCapture, SrMetadata

EXAMPLE_METADATA = "probe1=CLK\nprobe2=DATA\nunitsize=1\n"


def write_sr(path, version=b"2", metadata=EXAMPLE_METADATA, segments=(), extra=None):
    """Write an .sr archive. None for version/metadata leaves the entry out."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        if version is not None:
            zf.writestr("version", version)
        if metadata is not None:
            zf.writestr("metadata", metadata)
        for i, seg in enumerate(segments, start=1):
            zf.writestr(f"logic-1-{i}", bytes(seg))
        for name, content in (extra or {}).items():
            zf.writestr(name, content)
    return str(path)


@pytest.fixture
def make_sr(tmp_path):
    """Factory writing a fresh .sr file per call and returning its path."""
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        return write_sr(tmp_path / f"capture_{counter['n']}.sr", **kwargs)

    return _make


@pytest.fixture
def example_sr(make_sr):
    return make_sr(segments=[[0x01, 0x02]])


@pytest.fixture
def example_capture():
    """In-memory capture: CLK on bit 0, DATA on bit 1, three samples."""
    metadata = SrMetadata(
        channels=(Channel(1, "CLK"), Channel(2, "DATA")),
        unit_size=1,
    )
    return SrCapture("example.sr", metadata, np.array([0x01, 0x02, 0x03], dtype=np.uint8))
